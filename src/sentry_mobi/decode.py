# src/sentry_mobi/decode.py
"""Decode Sentry JSON payloads (camelCase) into the records in models.py.

Top-level records are strict: a missing required field means the upstream
schema changed, and we raise DecodeError. Event entries are the exception.
An entry with an unknown ``type``, or a known type whose payload does not
fit, becomes an UnknownEntry carrying the original fields untouched.
"""
from __future__ import annotations
import json
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, TypeVar

from .errors import DecodeError
from .models import (
    Breadcrumb,
    BreadcrumbsEntry,
    Event,
    EventEntry,
    ExceptionEntry,
    ExceptionValue,
    Frame,
    Issue,
    MessageEntry,
    Organization,
    Project,
    RequestEntry,
    Stacktrace,
    Tag,
    Thread,
    ThreadsEntry,
    UnknownEntry,
)

log = logging.getLogger(__name__)

T = TypeVar("T")

REGION_URL_PREFIX = "https://"


class _ShapeError(ValueError):
    """A field is missing or has the wrong JSON type."""


def _req_str(d: Mapping[str, Any], key: str) -> str:
    if key not in d or d[key] is None:
        raise _ShapeError(f"missing field {key!r}")
    val = d[key]
    if not isinstance(val, str):
        raise _ShapeError(f"field {key!r} must be a string, got {type(val).__name__}")
    return val


def _opt_str(d: Mapping[str, Any], key: str, default: Optional[str] = None) -> Optional[str]:
    val = d.get(key)
    if val is None:
        return default
    if not isinstance(val, str):
        raise _ShapeError(f"field {key!r} must be a string, got {type(val).__name__}")
    return val


def _opt_bool(d: Mapping[str, Any], key: str, default: bool = False) -> bool:
    val = d.get(key)
    if val is None:
        return default
    if not isinstance(val, bool):
        raise _ShapeError(f"field {key!r} must be a boolean, got {type(val).__name__}")
    return val


def _opt_int(d: Mapping[str, Any], key: str) -> Optional[int]:
    val = d.get(key)
    if val is None:
        return None
    # bool ist auch ein int
    if isinstance(val, bool) or not isinstance(val, int):
        raise _ShapeError(f"field {key!r} must be an integer, got {type(val).__name__}")
    return val


def _count_str(d: Mapping[str, Any], key: str, default: str = "0") -> str:
    """Counts stay strings; an int on the wire is stringified, never narrowed."""
    val = d.get(key)
    if val is None:
        return default
    if isinstance(val, bool) or not isinstance(val, (str, int)):
        raise _ShapeError(f"field {key!r} must be a string or integer")
    return str(val)


def _id_str(d: Mapping[str, Any], key: str) -> str:
    val = d.get(key)
    if val is None:
        raise _ShapeError(f"missing field {key!r}")
    if isinstance(val, bool) or not isinstance(val, (str, int)):
        raise _ShapeError(f"field {key!r} must be a string or integer")
    return str(val)


def _obj(val: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(val, Mapping):
        raise _ShapeError(f"{what} must be an object, got {type(val).__name__}")
    return val


def _arr(val: Any, what: str) -> List[Any]:
    if val is None:
        return []
    if not isinstance(val, list):
        raise _ShapeError(f"{what} must be an array, got {type(val).__name__}")
    return val


def _pairs(val: Any, what: str) -> Tuple[Tuple[str, str], ...]:
    """Headers/cookies arrive as [[k, v], ...] or as an object."""
    if val is None:
        return ()
    if isinstance(val, Mapping):
        return tuple((str(k), "" if v is None else str(v)) for k, v in val.items())
    out = []
    for item in _arr(val, what):
        if not isinstance(item, list) or len(item) != 2:
            raise _ShapeError(f"{what} items must be [key, value] pairs")
        k, v = item
        out.append((str(k), "" if v is None else str(v)))
    return tuple(out)


def _strict(context: str, fn: Callable[[Mapping[str, Any]], T], raw: Any) -> T:
    try:
        return fn(_obj(raw, context))
    except _ShapeError as e:
        raise DecodeError(str(e), context=context) from None


# -- top-level JSON ---------------------------------------------------------

def decode_json(body: bytes | str, context: str | None = None) -> Any:
    try:
        return json.loads(body)
    except (ValueError, UnicodeDecodeError) as e:
        raise DecodeError(f"malformed JSON: {e}", context=context) from None


def decode_list(payload: Any, decode_item: Callable[[Any], T], context: str) -> List[T]:
    if not isinstance(payload, list):
        raise DecodeError(f"expected a JSON array, got {type(payload).__name__}", context=context)
    return [decode_item(item) for item in payload]


# -- organizations / projects / issues --------------------------------------

def region_host(region_url: Optional[str]) -> str:
    if not region_url or not region_url.startswith(REGION_URL_PREFIX):
        return ""
    return region_url[len(REGION_URL_PREFIX):]


def _organization(d: Mapping[str, Any]) -> Organization:
    links = d.get("links")
    region_url = links.get("regionUrl") if isinstance(links, Mapping) else None
    return Organization(
        name=_req_str(d, "name"),
        slug=_req_str(d, "slug"),
        is_bookmarked=_opt_bool(d, "isBookmarked"),
        region_host=region_host(region_url if isinstance(region_url, str) else None),
    )


def _project(d: Mapping[str, Any]) -> Project:
    return Project(
        name=_req_str(d, "name"),
        slug=_req_str(d, "slug"),
        is_bookmarked=_opt_bool(d, "isBookmarked"),
    )


def _issue(d: Mapping[str, Any]) -> Issue:
    return Issue(
        id=_id_str(d, "id"),
        title=_req_str(d, "title"),
        first_seen=_req_str(d, "firstSeen"),
        last_seen=_req_str(d, "lastSeen"),
        status=_req_str(d, "status"),
        level=_req_str(d, "level"),
        permalink=_req_str(d, "permalink"),
        short_id=_req_str(d, "shortId"),
        culprit=_opt_str(d, "culprit", "") or "",
        logger=_opt_str(d, "logger"),
        event_count=_count_str(d, "count"),
        substatus=_opt_str(d, "substatus"),
    )


def decode_organization(raw: Any) -> Organization:
    return _strict("organization", _organization, raw)


def decode_project(raw: Any) -> Project:
    return _strict("project", _project, raw)


def decode_issue(raw: Any) -> Issue:
    return _strict("issue", _issue, raw)


# -- stack traces -----------------------------------------------------------

def _frame(d: Mapping[str, Any]) -> Frame:
    return Frame(
        function=_opt_str(d, "function"),
        filename=_opt_str(d, "filename"),
        line_no=_opt_int(d, "lineNo"),
        in_app=_opt_bool(d, "inApp"),
        module=_opt_str(d, "module"),
    )


def _stacktrace(val: Any) -> Optional[Stacktrace]:
    if val is None:
        return None
    st = _obj(val, "stacktrace")
    frames = tuple(_frame(_obj(f, "frame")) for f in _arr(st.get("frames"), "frames"))
    return Stacktrace(frames=frames)


# -- event entries ----------------------------------------------------------

def _data(raw: Mapping[str, Any]) -> Mapping[str, Any]:
    return _obj(raw.get("data"), "entry data")


def _message_entry(raw: Mapping[str, Any]) -> MessageEntry:
    return MessageEntry(formatted=_req_str(_data(raw), "formatted"))


def _breadcrumb(d: Mapping[str, Any]) -> Breadcrumb:
    return Breadcrumb(
        timestamp=_req_str(d, "timestamp"),
        level=_opt_str(d, "level", "info") or "info",
        message=_opt_str(d, "message", "") or "",
        category=_opt_str(d, "category"),
    )


def _breadcrumbs_entry(raw: Mapping[str, Any]) -> BreadcrumbsEntry:
    values = _arr(_data(raw).get("values"), "breadcrumbs")
    return BreadcrumbsEntry(values=tuple(_breadcrumb(_obj(v, "breadcrumb")) for v in values))


def _thread(d: Mapping[str, Any]) -> Thread:
    tid = d.get("id")
    return Thread(
        crashed=_opt_bool(d, "crashed"),
        current=_opt_bool(d, "current"),
        stacktrace=_stacktrace(d.get("stacktrace")),
        id=None if tid is None else str(tid),
        name=_opt_str(d, "name"),
    )


def _threads_entry(raw: Mapping[str, Any]) -> ThreadsEntry:
    values = _arr(_data(raw).get("values"), "threads")
    return ThreadsEntry(values=tuple(_thread(_obj(v, "thread")) for v in values))


def _exception_value(d: Mapping[str, Any]) -> ExceptionValue:
    return ExceptionValue(
        type=_req_str(d, "type"),
        value=_opt_str(d, "value", "") or "",
        stacktrace=_stacktrace(d.get("stacktrace")),
        module=_opt_str(d, "module"),
    )


def _exception_entry(raw: Mapping[str, Any]) -> ExceptionEntry:
    values = _arr(_data(raw).get("values"), "exceptions")
    return ExceptionEntry(values=tuple(_exception_value(_obj(v, "exception")) for v in values))


def _request_entry(raw: Mapping[str, Any]) -> RequestEntry:
    d = _data(raw)
    env = d.get("env")
    if env is not None and not isinstance(env, Mapping):
        raise _ShapeError("env must be an object")
    return RequestEntry(
        method=_req_str(d, "method"),
        url=_req_str(d, "url"),
        headers=_pairs(d.get("headers"), "headers"),
        cookies=_pairs(d.get("cookies"), "cookies"),
        env=dict(env or {}),
        body=d.get("data"),
        query=_pairs(d.get("query"), "query"),
    )


ENTRY_DECODERS: Dict[str, Callable[[Mapping[str, Any]], EventEntry]] = {
    "message": _message_entry,
    "breadcrumbs": _breadcrumbs_entry,
    "threads": _threads_entry,
    "exception": _exception_entry,
    "request": _request_entry,
}


def _unknown(raw: Mapping[str, Any]) -> UnknownEntry:
    return UnknownEntry(
        type=raw.get("type"),
        raw={k: v for k, v in raw.items() if k != "type"},
        has_type="type" in raw,
    )


def decode_entry(raw: Any) -> EventEntry:
    """Decode one entry; never fails for a JSON object."""
    if not isinstance(raw, Mapping):
        raise DecodeError(f"entry must be an object, got {type(raw).__name__}", context="event entry")
    entry = raw

    kind = entry.get("type")
    decoder = ENTRY_DECODERS.get(kind) if isinstance(kind, str) else None
    if decoder is None:
        return _unknown(entry)
    try:
        return decoder(entry)
    except _ShapeError as e:
        log.debug("Entry shape mismatch, keeping raw", extra={"entry_type": kind, "cause": str(e)})
        return _unknown(entry)


# -- events -----------------------------------------------------------------

def _tag(d: Mapping[str, Any]) -> Tag:
    value = d.get("value")
    return Tag(key=_req_str(d, "key"), value="" if value is None else str(value))


def _event(d: Mapping[str, Any]) -> Event:
    tags = tuple(_tag(_obj(t, "tag")) for t in _arr(d.get("tags"), "tags"))
    entries = tuple(decode_entry(e) for e in _arr(d.get("entries"), "entries"))
    return Event(
        timestamp=_req_str(d, "dateCreated"),
        message=_opt_str(d, "message", "") or "",
        tags=tags,
        entries=entries,
        event_id=_opt_str(d, "eventID"),
    )


def decode_event(raw: Any) -> Event:
    return _strict("event", _event, raw)
