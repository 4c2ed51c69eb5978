"""Credential context: session token -> authorized SentryClient, or Unauthenticated."""
from __future__ import annotations
from dataclasses import dataclass
from typing import MutableMapping, Optional, Protocol

import httpx

from .config import Settings
from .errors import Unauthenticated, login_redirect
from .sentry_api import SentryClient

SESSION_COOKIE_KEY = "sentry_token"


class SessionStore(Protocol):
    def get_token(self) -> Optional[str]: ...

    def set_token(self, token: str) -> None: ...

    def clear_token(self) -> None: ...


class DictSession:
    """SessionStore over any mutable mapping (a cookie session, a plain dict)."""

    def __init__(self, data: MutableMapping[str, str] | None = None) -> None:
        self.data = data if data is not None else {}

    def get_token(self) -> Optional[str]:
        return self.data.get(SESSION_COOKIE_KEY)

    def set_token(self, token: str) -> None:
        self.data[SESSION_COOKIE_KEY] = token

    def clear_token(self) -> None:
        self.data.pop(SESSION_COOKIE_KEY, None)


@dataclass(frozen=True)
class SentryToken:
    """A Sentry API token, possibly empty, plus the URI to come back to after login."""
    token: str = ""
    redirect_to: str = "/"

    @classmethod
    def from_session(cls, session: SessionStore, current_uri: str) -> "SentryToken":
        return cls(token=session.get_token() or "", redirect_to=current_uri)

    @property
    def is_empty(self) -> bool:
        return not self.token

    def client(self, settings: Settings, transport: httpx.BaseTransport | None = None) -> SentryClient:
        if self.is_empty:
            raise Unauthenticated(redirect_to=self.redirect_to)
        return SentryClient(settings, settings.build_client(self.token, transport=transport))

    def __repr__(self) -> str:
        # Token nie ausgeben
        return f"SentryToken(token={'***' if self.token else ''!r}, redirect_to={self.redirect_to!r})"


def resolve(
    session_token: Optional[str],
    current_uri: str,
    settings: Settings,
    transport: httpx.BaseTransport | None = None,
) -> SentryClient:
    return SentryToken(token=session_token or "", redirect_to=current_uri).client(settings, transport=transport)


def login(session: SessionStore, token: str, redirect_to: Optional[str] = None) -> str:
    """Store the token and return where to send the browser next."""
    session.set_token(token)
    return redirect_to or "/"


def logout(session: SessionStore) -> str:
    session.clear_token()
    return "/"


__all__ = [
    "DictSession",
    "SentryToken",
    "SessionStore",
    "login",
    "login_redirect",
    "logout",
    "resolve",
]
