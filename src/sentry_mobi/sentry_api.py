from __future__ import annotations
import contextvars
import logging
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generic, List, Optional, Tuple, TypeVar
from urllib.parse import quote

import httpx

from .config import Settings
from .decode import (
    decode_event,
    decode_issue,
    decode_json,
    decode_list,
    decode_organization,
    decode_project,
)
from .errors import TransportError, UpstreamError
from .models import Event, Issue, Organization, Project
from .mutation import StatusUpdate, encode, status_label
from .pagination import next_cursor

log = logging.getLogger(__name__)

T = TypeVar("T")

ORGANIZATIONS_PATH = "/organizations/"
PROJECTS_PATH_TEMPLATE = "/organizations/{org}/projects/"
ISSUES_PATH_TEMPLATE = "/projects/{org}/{proj}/issues/"
# the public docs still list /issues/{id}/ without the org, that one is outdated
ISSUE_PATH_TEMPLATE = "/organizations/{org}/issues/{issue_id}/"
LATEST_EVENT_PATH_TEMPLATE = "/organizations/{org}/issues/{issue_id}/events/latest/"


def _seg(value: str) -> str:
    return quote(value, safe="")


@dataclass(frozen=True)
class Page(Generic[T]):
    items: List[T] = field(default_factory=list)
    next_cursor: Optional[str] = None


class SentryClient:
    """Authorized Sentry API handle for one request.

    Obtain it through ``SentryToken.client()``; every call carries the
    bearer token set on the underlying httpx client.
    """

    def __init__(self, settings: Settings, client: httpx.Client) -> None:
        self.settings = settings
        self.client = client

    # lifecycle
    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "SentryClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _url(self, path: str) -> str:
        return self.settings.api_base + path

    # transport
    def _send(self, method: str, url: str, *, params: Dict[str, Any] | None = None,
              json: Any = None) -> httpx.Response:
        try:
            r = self.client.request(method, url, params=params, json=json)
        except httpx.TransportError as e:
            raise TransportError(str(e) or type(e).__name__, url=url) from e
        if not r.is_success:
            raise UpstreamError(r.status_code, r.text, url=str(r.request.url))
        return r

    def fetch_page(
        self,
        url: str,
        decode_item: Callable[[Any], T],
        *,
        params: Dict[str, Any] | None = None,
        cursor: str | None = None,
        context: str = "page",
    ) -> Page[T]:
        """GET one page. A cursor replaces url and params entirely."""
        if cursor:
            r = self._send("GET", cursor)
        else:
            r = self._send("GET", url, params={k: v for k, v in (params or {}).items() if v is not None})
        items = decode_list(decode_json(r.content, context=context), decode_item, context=context)
        return Page(items=items, next_cursor=next_cursor(r.headers))

    def get_one(self, url: str, decode: Callable[[Any], T], context: str) -> T:
        r = self._send("GET", url)
        return decode(decode_json(r.content, context=context))

    # API
    def list_organizations(self, cursor: str | None = None, query: str | None = None) -> Page[Organization]:
        return self.fetch_page(
            self._url(ORGANIZATIONS_PATH), decode_organization,
            params={"query": query}, cursor=cursor, context="organizations",
        )

    def list_organizations_all_regions(self) -> List[Organization]:
        """Organizations from every configured region, in region order."""
        urls = [self.settings.region_base(d) + ORGANIZATIONS_PATH for d in self.settings.region_domains]
        calls = [
            (lambda u=u: self.fetch_page(u, decode_organization, context="organizations").items)
            for u in urls
        ]
        out: List[Organization] = []
        for items in run_all(*calls):
            out.extend(items)
        return out

    def list_projects(self, org: str, cursor: str | None = None, query: str | None = None) -> Page[Project]:
        return self.fetch_page(
            self._url(PROJECTS_PATH_TEMPLATE.format(org=_seg(org))), decode_project,
            params={"query": query}, cursor=cursor, context="projects",
        )

    def list_issues(self, org: str, proj: str, query: str | None = None,
                    cursor: str | None = None) -> Page[Issue]:
        return self.fetch_page(
            self._url(ISSUES_PATH_TEMPLATE.format(org=_seg(org), proj=_seg(proj))), decode_issue,
            params={"query": query}, cursor=cursor, context="issues",
        )

    def get_issue(self, org: str, issue_id: str) -> Issue:
        url = self._url(ISSUE_PATH_TEMPLATE.format(org=_seg(org), issue_id=_seg(issue_id)))
        return self.get_one(url, decode_issue, context="issue")

    def get_latest_event(self, org: str, issue_id: str) -> Event:
        url = self._url(LATEST_EVENT_PATH_TEMPLATE.format(org=_seg(org), issue_id=_seg(issue_id)))
        return self.get_one(url, decode_event, context="event")

    def get_issue_with_latest_event(self, org: str, issue_id: str) -> Tuple[Issue, Event]:
        issue, event = run_all(
            lambda: self.get_issue(org, issue_id),
            lambda: self.get_latest_event(org, issue_id),
        )
        return issue, event

    def update_issue_status(self, org: str, issue_id: str, update: StatusUpdate) -> str:
        """PUT the new status once; returns the label of the status Sentry reports back."""
        payload = encode(update)
        url = self._url(ISSUE_PATH_TEMPLATE.format(org=_seg(org), issue_id=_seg(issue_id)))
        r = self._send("PUT", url, json=payload.to_json())
        log.info("Issue status updated", extra={"issue_id": issue_id, "status": update.value})

        data: Any = None
        if r.content:
            data = decode_json(r.content, context="issue update")
        if not isinstance(data, dict):
            return status_label(payload.status, payload.substatus)
        status = data.get("status")
        if not isinstance(status, str):
            return status_label(payload.status, payload.substatus)
        substatus = data.get("substatus")
        return status_label(status, substatus if isinstance(substatus, str) else None)


def run_all(*calls: Callable[[], Any]) -> List[Any]:
    """Run independent calls concurrently; all succeed or the first error propagates.

    Pending siblings are cancelled on failure and no partial results escape.
    """
    if not calls:
        return []
    if len(calls) == 1:
        return [calls[0]()]
    executor = ThreadPoolExecutor(max_workers=len(calls))
    try:
        # request_id & Co. in die Worker-Threads mitnehmen
        futures = [executor.submit(contextvars.copy_context().run, c) for c in calls]
        done, _ = wait(futures, return_when=FIRST_EXCEPTION)
        for f in futures:
            if f in done and f.exception() is not None:
                raise f.exception()
        return [f.result() for f in futures]
    finally:
        # nicht auf den langsameren Nachbarn warten, sein Ergebnis wird verworfen
        executor.shutdown(wait=False, cancel_futures=True)


__all__ = [
    "Page",
    "SentryClient",
    "run_all",
]
