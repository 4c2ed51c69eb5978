# src/sentry_mobi/models.py
"""Typed records decoded from Sentry API responses.

Every record is built from a single response body and thrown away after the
request. Optional wire fields carry their default right here on the field.
Timestamps stay strings (ISO 8601 as sent); parsing happens at display time.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple, Union


@dataclass(frozen=True)
class Organization:
    name: str
    slug: str
    is_bookmarked: bool = False
    region_host: str = ""   # "" wenn links.regionUrl fehlt oder kaputt ist


@dataclass(frozen=True)
class Project:
    name: str
    slug: str
    is_bookmarked: bool = False


@dataclass(frozen=True)
class Issue:
    id: str
    title: str
    first_seen: str
    last_seen: str
    status: str
    level: str
    permalink: str
    short_id: str
    culprit: str = ""
    logger: Optional[str] = None
    event_count: str = "0"  # bewusst String, kann > 2**53 sein
    substatus: Optional[str] = None


@dataclass(frozen=True)
class Tag:
    key: str
    value: str


@dataclass(frozen=True)
class Frame:
    function: Optional[str] = None
    filename: Optional[str] = None
    line_no: Optional[int] = None
    in_app: bool = False
    module: Optional[str] = None


@dataclass(frozen=True)
class Stacktrace:
    # stored oldest call first, as sent
    frames: Tuple[Frame, ...] = ()


@dataclass(frozen=True)
class Breadcrumb:
    timestamp: str
    level: str = "info"
    message: str = ""
    category: Optional[str] = None


@dataclass(frozen=True)
class Thread:
    crashed: bool = False
    current: bool = False
    stacktrace: Optional[Stacktrace] = None
    id: Optional[str] = None
    name: Optional[str] = None


@dataclass(frozen=True)
class ExceptionValue:
    type: str
    value: str = ""
    stacktrace: Optional[Stacktrace] = None
    module: Optional[str] = None


@dataclass(frozen=True)
class MessageEntry:
    formatted: str
    type: str = field(default="message", init=False)


@dataclass(frozen=True)
class BreadcrumbsEntry:
    values: Tuple[Breadcrumb, ...] = ()
    type: str = field(default="breadcrumbs", init=False)


@dataclass(frozen=True)
class ThreadsEntry:
    values: Tuple[Thread, ...] = ()
    type: str = field(default="threads", init=False)


@dataclass(frozen=True)
class ExceptionEntry:
    values: Tuple[ExceptionValue, ...] = ()
    type: str = field(default="exception", init=False)


@dataclass(frozen=True)
class RequestEntry:
    method: str
    url: str
    headers: Tuple[Tuple[str, str], ...] = ()
    cookies: Tuple[Tuple[str, str], ...] = ()
    env: Dict[str, Any] = field(default_factory=dict)
    body: Any = None
    query: Tuple[Tuple[str, str], ...] = ()
    type: str = field(default="request", init=False)


@dataclass(frozen=True)
class UnknownEntry:
    """Any entry we do not understand, kept exactly as received."""
    type: Any
    raw: Dict[str, Any] = field(default_factory=dict)  # all fields except "type"
    has_type: bool = True  # False: "type" fehlte, to_dict() erfindet ihn nicht

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"type": self.type} if self.has_type else {}
        out.update(self.raw)
        return out


EventEntry = Union[
    MessageEntry,
    BreadcrumbsEntry,
    ThreadsEntry,
    ExceptionEntry,
    RequestEntry,
    UnknownEntry,
]


@dataclass(frozen=True)
class Event:
    timestamp: str
    message: str = ""
    tags: Tuple[Tag, ...] = ()
    entries: Tuple[EventEntry, ...] = ()
    event_id: Optional[str] = None
