# tests/test_decode.py
import pytest
from sentry_mobi.decode import (
    decode_entry,
    decode_event,
    decode_issue,
    decode_json,
    decode_list,
    decode_organization,
    decode_project,
)
from sentry_mobi.errors import DecodeError
from sentry_mobi.models import (
    BreadcrumbsEntry,
    ExceptionEntry,
    MessageEntry,
    RequestEntry,
    ThreadsEntry,
    UnknownEntry,
)


def issue_payload(**overrides):
    raw = {
        "id": "4711",
        "title": "ZeroDivisionError: division by zero",
        "culprit": "app.views in index",
        "firstSeen": "2024-09-01T10:00:00.000Z",
        "lastSeen": "2024-09-02T12:00:00.000Z",
        "status": "unresolved",
        "level": "error",
        "permalink": "https://acme.sentry.io/issues/4711/",
        "shortId": "WEB-1A",
        "count": "12345678901234567890",
    }
    raw.update(overrides)
    return raw


def test_organization_region_host():
    org = decode_organization({
        "name": "Acme", "slug": "acme", "isBookmarked": True,
        "links": {"regionUrl": "https://us.sentry.io", "organizationUrl": "https://acme.sentry.io"},
    })
    assert org.region_host == "us.sentry.io"
    assert org.is_bookmarked is True


def test_organization_malformed_region_is_empty_not_error():
    assert decode_organization({"name": "A", "slug": "a", "links": {"regionUrl": "us.sentry.io"}}).region_host == ""
    assert decode_organization({"name": "A", "slug": "a"}).region_host == ""
    assert decode_organization({"name": "A", "slug": "a"}).is_bookmarked is False


def test_project_requires_slug():
    assert decode_project({"name": "Web", "slug": "web"}).slug == "web"
    with pytest.raises(DecodeError) as exc:
        decode_project({"name": "Web"})
    assert exc.value.context == "project"


def test_issue_defaults_and_count_stays_string():
    raw = issue_payload()
    del raw["culprit"]
    issue = decode_issue(raw)
    assert issue.culprit == ""
    assert issue.logger is None
    assert issue.event_count == "12345678901234567890"
    assert decode_issue(issue_payload(count=42)).event_count == "42"


def test_issue_missing_required_field_fails_hard():
    raw = issue_payload()
    del raw["shortId"]
    with pytest.raises(DecodeError):
        decode_issue(raw)


def test_malformed_json_and_non_list():
    with pytest.raises(DecodeError):
        decode_json(b"{not json")
    with pytest.raises(DecodeError):
        decode_list({"detail": "nope"}, decode_project, context="projects")


def test_unknown_entry_type_is_preserved_verbatim():
    raw = {"type": "spans", "data": [{"op": "db"}], "extra": {"nested": [1, 2]}}
    entry = decode_entry(raw)
    assert isinstance(entry, UnknownEntry)
    assert entry.type == "spans"
    assert entry.raw == {"data": [{"op": "db"}], "extra": {"nested": [1, 2]}}
    assert entry.to_dict() == raw


def test_known_type_with_wrong_shape_falls_back_to_unknown():
    raw = {"type": "message", "data": {"formatted": 123}}
    entry = decode_entry(raw)
    assert isinstance(entry, UnknownEntry)
    assert entry.to_dict() == raw

    assert isinstance(decode_entry({"type": "request", "data": None}), UnknownEntry)
    assert isinstance(decode_entry({"data": {}}), UnknownEntry)


def test_entry_without_type_reexports_unchanged():
    raw = {"data": {"x": 1}}
    entry = decode_entry(raw)
    assert isinstance(entry, UnknownEntry)
    assert entry.type is None
    assert entry.to_dict() == raw

    # explizites null bleibt erhalten
    assert decode_entry({"type": None, "data": 1}).to_dict() == {"type": None, "data": 1}


def test_entry_that_is_not_an_object_fails():
    with pytest.raises(DecodeError):
        decode_entry(["message"])


def test_known_entries():
    assert decode_entry({"type": "message", "data": {"formatted": "hi"}}) == MessageEntry(formatted="hi")

    crumbs = decode_entry({"type": "breadcrumbs", "data": {"values": [
        {"timestamp": "2024-09-01T10:00:00Z", "message": "GET /", "category": "http"},
        {"timestamp": "2024-09-01T10:00:01Z", "level": "error"},
    ]}})
    assert isinstance(crumbs, BreadcrumbsEntry)
    assert crumbs.values[0].level == "info"
    assert crumbs.values[1].message == ""

    threads = decode_entry({"type": "threads", "data": {"values": [
        {"id": 1, "crashed": True, "stacktrace": {"frames": [
            {"function": "main", "filename": "app.py", "lineNo": 3, "inApp": True},
            {"function": "run"},
        ]}},
        {"id": 2},
    ]}})
    assert isinstance(threads, ThreadsEntry)
    frames = threads.values[0].stacktrace.frames
    assert frames[0].line_no == 3 and frames[0].in_app
    assert frames[1].filename is None and frames[1].line_no is None and not frames[1].in_app
    assert threads.values[1].stacktrace is None
    assert threads.values[0].id == "1"

    exc = decode_entry({"type": "exception", "data": {"values": [{"type": "ValueError", "value": "bad"}]}})
    assert isinstance(exc, ExceptionEntry)
    assert exc.values[0].type == "ValueError"

    req = decode_entry({"type": "request", "data": {
        "method": "POST", "url": "https://acme.example/api",
        "headers": [["Content-Type", "application/json"]],
        "cookies": {"session": "abc"},
        "env": {"REMOTE_ADDR": "127.0.0.1"},
        "data": {"a": 1},
    }})
    assert isinstance(req, RequestEntry)
    assert req.headers == (("Content-Type", "application/json"),)
    assert req.cookies == (("session", "abc"),)
    assert req.body == {"a": 1}


def test_event_keeps_entry_order_and_defaults():
    event = decode_event({
        "dateCreated": "2024-09-02T12:00:00Z",
        "entries": [
            {"type": "exception", "data": {"values": [{"type": "E"}]}},
            {"type": "debugmeta", "data": {"images": []}},
            {"type": "message", "data": {"formatted": "m"}},
        ],
    })
    assert [e.type for e in event.entries] == ["exception", "debugmeta", "message"]
    assert event.tags == ()
    assert event.message == ""


def test_event_tags():
    event = decode_event({
        "dateCreated": "2024-09-02T12:00:00Z",
        "message": "boom",
        "tags": [{"key": "browser", "value": "Firefox"}, {"key": "level", "value": "error"}],
    })
    assert [(t.key, t.value) for t in event.tags] == [("browser", "Firefox"), ("level", "error")]


def test_event_without_timestamp_fails_hard():
    with pytest.raises(DecodeError) as exc:
        decode_event({"entries": []})
    assert exc.value.context == "event"
