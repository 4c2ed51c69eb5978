# tests/test_main.py
from __future__ import annotations
import json
import httpx
from sentry_mobi.main import EXIT_NEEDS_AUTH, main


def run_cli(capsys, monkeypatch, tmp_path, argv, handler):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("SENTRY_TOKEN", raising=False)
    monkeypatch.setenv("SENTRY_API_HOST", "sentry.local")
    monkeypatch.setattr("sentry_mobi.main.setup_logging_from_env", lambda: "test")
    code = main(argv, transport=httpx.MockTransport(handler))
    return code, capsys.readouterr()


def test_projects_command(capsys, monkeypatch, tmp_path):
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["Authorization"] == "Bearer tok"
        return httpx.Response(200, json=[{"name": "Web", "slug": "web"}, {"name": "Api", "slug": "api", "isBookmarked": True}])

    code, out = run_cli(capsys, monkeypatch, tmp_path, ["--token", "tok", "projects", "acme"], handler)
    assert code == 0
    doc = json.loads(out.out)
    assert [p["slug"] for p in doc["projects"]] == ["api", "web"]


def test_without_token_needs_auth(capsys, monkeypatch, tmp_path):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json=[])

    code, out = run_cli(capsys, monkeypatch, tmp_path, ["issues", "acme", "web"], handler)
    assert code == EXIT_NEEDS_AUTH
    assert "redirect_to=/acme/web" in out.err
    assert calls == []


def test_upstream_failure_exit_code(capsys, monkeypatch, tmp_path):
    code, out = run_cli(
        capsys, monkeypatch, tmp_path, ["--token", "tok", "orgs"],
        lambda request: httpx.Response(401, json={"detail": "Invalid token"}),
    )
    assert code == 1
    assert "401" in out.err


def test_bad_timeout_is_exit_code_not_traceback(capsys, monkeypatch, tmp_path):
    monkeypatch.setenv("SENTRY_TIMEOUT_S", "soon")
    code, out = run_cli(
        capsys, monkeypatch, tmp_path, ["--token", "tok", "orgs"],
        lambda request: httpx.Response(200, json=[]),
    )
    assert code == 1
    assert "SENTRY_TIMEOUT_S" in out.err


def test_bad_log_max_bytes_is_exit_code_not_traceback(capsys, monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("LOG_MAX_BYTES", "ten megs")
    code = main(["--token", "tok", "orgs"], transport=httpx.MockTransport(lambda r: httpx.Response(200, json=[])))
    assert code == 1
    assert "LOG_MAX_BYTES" in capsys.readouterr().err
