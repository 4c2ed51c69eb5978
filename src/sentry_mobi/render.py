# src/sentry_mobi/render.py
"""Shape decoded records into display documents (plain JSON-ready dicts).

Only ordering, truncation and counting live here; markup belongs to
whatever front-end consumes these documents.
"""
from __future__ import annotations
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence, TypeVar
from urllib.parse import quote

from .models import (
    BreadcrumbsEntry,
    Event,
    EventEntry,
    ExceptionEntry,
    Frame,
    Issue,
    MessageEntry,
    Organization,
    Project,
    RequestEntry,
    Stacktrace,
    ThreadsEntry,
    UnknownEntry,
)

T = TypeVar("T")

BREADCRUMB_LIMIT = 20


def sort_bookmarked(items: Iterable[T]) -> List[T]:
    """Bookmarked first; sorted() is stable so the API order survives within each group."""
    return sorted(items, key=lambda o: not getattr(o, "is_bookmarked", False))


def format_count(raw: str) -> str:
    try:
        return f"{int(raw.strip()):,}"
    except (ValueError, AttributeError):
        return raw


def parse_ts(s: Optional[str]) -> Optional[datetime]:
    if not s:
        return None
    try:
        dt = datetime.fromisoformat(s.replace("Z", "+00:00"))
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def relative_time(ts: str, now: Optional[datetime] = None) -> str:
    """Age like "3 days 2 hours "; the raw string if ts is unparsable or in the future."""
    dt = parse_ts(ts)
    if dt is None:
        return ts
    now = now or datetime.now(timezone.utc)
    delta = now - dt
    if delta.total_seconds() < 0:
        return ts
    secs = int(delta.total_seconds())
    days, rem = divmod(secs, 86400)
    hours, rem = divmod(rem, 3600)
    minutes, seconds = divmod(rem, 60)
    out = ""
    for n, unit in ((days, "days"), (hours, "hours"), (minutes, "minutes"), (seconds, "seconds")):
        if n > 0:
            out += f"{n} {unit} "
    return out


# -- entries ----------------------------------------------------------------

def format_frame(frame: Frame) -> str:
    func = frame.function or "<unknown>"
    if not frame.filename:
        return func
    loc = frame.filename if frame.line_no is None else f"{frame.filename}:{frame.line_no}"
    return f"{func} in {loc}"


def frames_view(stacktrace: Optional[Stacktrace]) -> List[Dict[str, Any]]:
    """Most recent call first. Non-app frames are only flagged, never dropped."""
    if stacktrace is None:
        return []
    return [
        {
            "text": format_frame(f),
            "function": f.function,
            "filename": f.filename,
            "line_no": f.line_no,
            "in_app": f.in_app,
            "hidden": not f.in_app,
        }
        for f in reversed(stacktrace.frames)
    ]


def breadcrumbs_view(entry: BreadcrumbsEntry, limit: int = BREADCRUMB_LIMIT) -> Dict[str, Any]:
    total = len(entry.values)
    shown = list(reversed(entry.values))[:limit]
    notice = f"{len(shown)} out of {total}" if total > len(shown) else None
    return {
        "type": entry.type,
        "values": [
            {"timestamp": b.timestamp, "level": b.level, "message": b.message, "category": b.category}
            for b in shown
        ],
        "total": total,
        "notice": notice,
    }


def threads_view(entry: ThreadsEntry) -> Dict[str, Any]:
    return {
        "type": entry.type,
        "values": [
            {
                "id": t.id,
                "name": t.name,
                "crashed": t.crashed,
                "current": t.current,
                "frames": frames_view(t.stacktrace),
            }
            for t in entry.values
            if t.crashed or t.current
        ],
    }


def exception_view(entry: ExceptionEntry) -> Dict[str, Any]:
    return {
        "type": entry.type,
        "values": [
            {"type": e.type, "value": e.value, "module": e.module, "frames": frames_view(e.stacktrace)}
            for e in entry.values
        ],
    }


def request_view(entry: RequestEntry) -> Dict[str, Any]:
    return {
        "type": entry.type,
        "method": entry.method,
        "url": entry.url,
        "query": [list(p) for p in entry.query],
        "headers": [list(p) for p in entry.headers],
        "cookies": [list(p) for p in entry.cookies],
        "env": dict(entry.env),
        "body": entry.body,
    }


def entry_view(entry: EventEntry) -> Dict[str, Any]:
    if isinstance(entry, MessageEntry):
        return {"type": entry.type, "formatted": entry.formatted}
    if isinstance(entry, BreadcrumbsEntry):
        return breadcrumbs_view(entry)
    if isinstance(entry, ThreadsEntry):
        return threads_view(entry)
    if isinstance(entry, ExceptionEntry):
        return exception_view(entry)
    if isinstance(entry, RequestEntry):
        return request_view(entry)
    if isinstance(entry, UnknownEntry):
        return {"type": entry.type, "unknown": True, "raw": entry.to_dict()}
    raise TypeError(f"not an event entry: {entry!r}")


# -- documents --------------------------------------------------------------

def organization_overview(orgs: Sequence[Organization], next_cursor: Optional[str] = None) -> Dict[str, Any]:
    return {
        "title": "organizations",
        "organizations": [
            {
                "name": o.name,
                "slug": o.slug,
                "href": f"/{quote(o.slug, safe='')}",
                "bookmarked": o.is_bookmarked,
                "region": f"{o.region_host}/{o.slug}",
            }
            for o in sort_bookmarked(orgs)
        ],
        "next_cursor": next_cursor,
    }


def organization_details(org: str, projects: Sequence[Project],
                         next_cursor: Optional[str] = None) -> Dict[str, Any]:
    return {
        "title": f"{org}: projects",
        "organization": org,
        "projects": [
            {
                "name": p.name,
                "slug": p.slug,
                "href": f"/{quote(org, safe='')}/{quote(p.slug, safe='')}",
                "bookmarked": p.is_bookmarked,
            }
            for p in sort_bookmarked(projects)
        ],
        "next_cursor": next_cursor,
    }


def _issue_row(org: str, proj: str, i: Issue, now: Optional[datetime]) -> Dict[str, Any]:
    return {
        "id": i.id,
        "short_id": i.short_id,
        "title": i.title,
        "culprit": i.culprit,
        "level": i.level,
        "status": i.status,
        "events": format_count(i.event_count),
        "first_seen": relative_time(i.first_seen, now),
        "last_seen": relative_time(i.last_seen, now),
        "href": f"/{quote(org, safe='')}/{quote(proj, safe='')}/issues/{quote(i.id, safe='')}",
        "permalink": i.permalink,
    }


def project_details(org: str, proj: str, issues: Sequence[Issue], query: Optional[str] = None,
                    next_cursor: Optional[str] = None, now: Optional[datetime] = None) -> Dict[str, Any]:
    return {
        "title": f"{org}/{proj}: issues",
        "organization": org,
        "project": proj,
        "query": query or "",
        "issues": [_issue_row(org, proj, i, now) for i in issues],
        "next_cursor": next_cursor,
    }


def issue_details(org: str, proj: str, issue: Issue, event: Event,
                  now: Optional[datetime] = None) -> Dict[str, Any]:
    heading = event.message or issue.title
    props = []
    if issue.culprit:
        props.append(("culprit", issue.culprit))
    props.append(("first seen", relative_time(issue.first_seen, now)))
    props.append(("last seen", relative_time(issue.last_seen, now)))
    if issue.logger is not None:
        props.append(("logger", issue.logger))
    props.append(("status", issue.status))
    props.append(("events", format_count(issue.event_count)))

    return {
        "title": f"{issue.title} - {org}/{proj}",
        "short_id": issue.short_id,
        "level": issue.level,
        "heading": heading,
        "properties": [{"label": k, "value": v} for k, v in props],
        "permalink": issue.permalink,
        "event_timestamp": event.timestamp,
        "tags": [
            {
                "key": t.key,
                "value": t.value,
                "more": f"/{quote(org, safe='')}/{quote(proj, safe='')}?query="
                        + quote(f"{t.key}:{t.value}", safe=":"),
            }
            for t in event.tags
        ],
        "entries": [entry_view(e) for e in event.entries],
    }
