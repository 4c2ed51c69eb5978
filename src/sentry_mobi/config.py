# src/sentry_mobi/config.py
from __future__ import annotations
import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple
import httpx
from dotenv import load_dotenv, find_dotenv

log = logging.getLogger(__name__)

DEFAULT_API_HOST = "sentry.io"
DEFAULT_REGION_DOMAINS = ("us.sentry.io", "de.sentry.io")
API_PREFIX = "/api/0"


def _parse_float(name: str, val: Optional[str], default: float) -> float:
    if val is None or not val.strip():
        return default
    try:
        return float(val)
    except ValueError:
        raise RuntimeError(f"Invalid value for {name}: {val!r} (expected a number)") from None


def _parse_domains(val: Optional[str]) -> Tuple[str, ...]:
    if not val:
        return DEFAULT_REGION_DOMAINS
    domains = tuple(d.strip() for d in val.split(",") if d.strip())
    return domains or DEFAULT_REGION_DOMAINS


def _on_request(request: httpx.Request) -> None:
    request.extensions["start_time"] = time.perf_counter()
    # keine Header/Secrets loggen!
    log.debug("HTTP request", extra={"method": request.method, "url": str(request.url)})


def _on_response(response: httpx.Response) -> None:
    req = response.request
    start = req.extensions.get("start_time")
    elapsed_ms = int((time.perf_counter() - start) * 1000) if start is not None else None
    log.info("HTTP response", extra={
        "method": req.method, "url": str(req.url),
        "status_code": response.status_code, "elapsed_ms": elapsed_ms,
    })


@dataclass(frozen=True)
class Settings:
    api_host: str = DEFAULT_API_HOST
    region_domains: Tuple[str, ...] = DEFAULT_REGION_DOMAINS
    ca_bundle: Optional[str] = None
    timeout_s: float = 30.0

    @property
    def api_base(self) -> str:
        return f"https://{self.api_host}{API_PREFIX}"

    def region_base(self, domain: str) -> str:
        return f"https://{domain}{API_PREFIX}"

    @classmethod
    def from_env(cls, env_path: Optional[str | Path] = None) -> "Settings":
        load_env(env_path)
        api_host = (os.getenv("SENTRY_API_HOST") or DEFAULT_API_HOST).strip().rstrip("/")
        if api_host.startswith("https://"):
            api_host = api_host[len("https://"):]
        return cls(
            api_host=api_host,
            region_domains=_parse_domains(os.getenv("SENTRY_REGION_DOMAINS")),
            ca_bundle=os.getenv("SENTRY_CA_BUNDLE") or None,
            timeout_s=_parse_float("SENTRY_TIMEOUT_S", os.getenv("SENTRY_TIMEOUT_S"), 30.0),
        )

    def build_client(self, token: str, transport: httpx.BaseTransport | None = None) -> httpx.Client:
        """Authorized client; construction performs no network I/O."""
        headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
        }
        timeout = httpx.Timeout(self.timeout_s)
        verify = self.ca_bundle if self.ca_bundle else True
        return httpx.Client(
            headers=headers,
            timeout=timeout,
            verify=verify,
            transport=transport,
            follow_redirects=False,
            event_hooks={"request": [_on_request], "response": [_on_response]},
        )


def load_env(env_path: Optional[str | Path] = None) -> bool:
    """Load the first .env found: explicit path, cwd, repo root, then find_dotenv."""
    candidates = []
    if env_path:
        candidates.append(Path(env_path))
    candidates.append(Path.cwd() / ".env")
    candidates.append(Path(__file__).resolve().parents[2] / ".env")
    for p in candidates:
        if p.is_file():
            load_dotenv(p, override=False)
            return True
    p = find_dotenv(usecwd=True)
    if p:
        load_dotenv(p, override=False)
        return True
    return False
