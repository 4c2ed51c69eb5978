import pytest
from sentry_mobi.config import Settings

VARS = ("SENTRY_API_HOST", "SENTRY_REGION_DOMAINS", "SENTRY_TIMEOUT_S", "SENTRY_CA_BUNDLE")


def clear_env(monkeypatch):
    for var in VARS:
        # setenv first, so undo also removes what load_dotenv writes
        monkeypatch.setenv(var, "x")
        monkeypatch.delenv(var)


def test_from_env_defaults(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    clear_env(monkeypatch)
    s = Settings.from_env(tmp_path / "missing.env")
    assert s.api_base == "https://sentry.io/api/0"
    assert s.region_domains == ("us.sentry.io", "de.sentry.io")
    assert s.timeout_s == 30.0


def test_from_env_file(monkeypatch, tmp_path):
    clear_env(monkeypatch)
    env = tmp_path / ".env"
    env.write_text(
        "SENTRY_API_HOST=https://sentry.example.com/\n"
        "SENTRY_REGION_DOMAINS=eu.example.com, us.example.com\n"
        "SENTRY_TIMEOUT_S=2.5\n",
        encoding="utf-8",
    )
    s = Settings.from_env(env)
    assert s.api_host == "sentry.example.com"
    assert s.region_domains == ("eu.example.com", "us.example.com")
    assert s.timeout_s == 2.5


def test_bad_timeout(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("SENTRY_TIMEOUT_S", "soon")
    with pytest.raises(RuntimeError, match="SENTRY_TIMEOUT_S"):
        Settings.from_env(tmp_path / "missing.env")


def test_build_client_sets_bearer_header():
    client = Settings().build_client("abc")
    try:
        assert client.headers["Authorization"] == "Bearer abc"
    finally:
        client.close()
