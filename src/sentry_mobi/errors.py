"""Error taxonomy and the single boundary handler that maps errors to responses."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote

log = logging.getLogger(__name__)

BODY_LOG_LIMIT = 500


class SentryMobiError(Exception):
    """Base class for everything the core raises on purpose."""


class Unauthenticated(SentryMobiError):
    """No token in the session. Not a failure: the caller redirects to login."""

    def __init__(self, redirect_to: Optional[str] = None) -> None:
        super().__init__("no token found")
        self.redirect_to = redirect_to


class UpstreamError(SentryMobiError):
    def __init__(self, status_code: int, body: str, url: str | None = None) -> None:
        super().__init__(f"failed to fetch from sentry api: {status_code}")
        self.status_code = status_code
        self.body = body
        self.url = url


class DecodeError(SentryMobiError):
    def __init__(self, cause: str, context: str | None = None) -> None:
        msg = f"failed to decode {context}: {cause}" if context else f"failed to decode: {cause}"
        super().__init__(msg)
        self.cause = cause
        self.context = context


class TransportError(SentryMobiError):
    def __init__(self, message: str, url: str | None = None) -> None:
        super().__init__(f"failed to reach sentry api: {message}")
        self.url = url


def truncate(text: str, limit: int = BODY_LOG_LIMIT) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


def login_redirect(redirect_to: Optional[str]) -> str:
    if not redirect_to:
        return "/"
    return "/?redirect_to=" + quote(redirect_to, safe="/")


@dataclass(frozen=True)
class BoundaryResponse:
    status: int
    body: str = ""
    location: Optional[str] = None

    @property
    def is_redirect(self) -> bool:
        return self.location is not None


def handle_error(exc: Exception) -> BoundaryResponse:
    """Turn any core error into a response; only Unauthenticated is special."""
    if isinstance(exc, Unauthenticated):
        return BoundaryResponse(status=303, location=login_redirect(exc.redirect_to))

    if isinstance(exc, UpstreamError):
        log.error("Upstream error", extra={
            "status_code": exc.status_code, "url": exc.url, "body": truncate(exc.body),
        })
    elif isinstance(exc, DecodeError):
        log.error("Decode error", extra={"context": exc.context, "cause": exc.cause})
    elif isinstance(exc, TransportError):
        log.error("Transport error", extra={"url": exc.url, "error": str(exc)})
    else:
        log.exception("error while serving request", exc_info=exc)
    return BoundaryResponse(status=500, body=str(exc))
