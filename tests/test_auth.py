# tests/test_auth.py
from __future__ import annotations
import httpx
import pytest
from sentry_mobi.auth import DictSession, SentryToken, login, logout, resolve
from sentry_mobi.config import Settings
from sentry_mobi.errors import Unauthenticated, handle_error


class CountingTransport(httpx.MockTransport):
    def __init__(self):
        self.calls: list[httpx.Request] = []
        super().__init__(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        return httpx.Response(200, json=[])


def make_settings() -> Settings:
    return Settings(api_host="sentry.example.com", timeout_s=5.0)


@pytest.mark.parametrize("token", [None, ""])
def test_missing_token_is_unauthenticated_without_network(token):
    transport = CountingTransport()
    with pytest.raises(Unauthenticated) as exc:
        resolve(token, "/acme/web?query=is:unresolved", make_settings(), transport=transport)
    assert exc.value.redirect_to == "/acme/web?query=is:unresolved"
    assert transport.calls == []


def test_empty_session_redirects_back_after_login():
    transport = CountingTransport()
    creds = SentryToken.from_session(DictSession(), "/acme")
    with pytest.raises(Unauthenticated) as exc:
        creds.client(make_settings(), transport=transport).list_organizations()
    resp = handle_error(exc.value)
    assert resp.status == 303
    assert resp.location == "/?redirect_to=/acme"
    assert transport.calls == []


def test_client_sends_bearer_token_on_every_call():
    transport = CountingTransport()
    session = DictSession()
    login(session, "secret-token")
    api = SentryToken.from_session(session, "/").client(make_settings(), transport=transport)
    assert transport.calls == []  # Konstruktion ohne I/O

    api.list_organizations()
    api.list_projects("acme")
    assert len(transport.calls) == 2
    for req in transport.calls:
        assert req.headers["Authorization"] == "Bearer secret-token"


def test_login_and_logout_roundtrip():
    session = DictSession()
    assert login(session, "t", "/acme/web") == "/acme/web"
    assert session.get_token() == "t"
    assert login(session, "t2") == "/"
    assert logout(session) == "/"
    assert session.get_token() is None


def test_token_repr_hides_secret():
    assert "secret" not in repr(SentryToken(token="secret", redirect_to="/"))
