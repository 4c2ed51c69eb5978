"""Logging for the proxy core: one request id per inbound call on every record."""
from __future__ import annotations

import contextvars
import logging
import os
import sys
import uuid
from logging.handlers import RotatingFileHandler
from typing import IO, Optional

from pythonjsonlogger.json import JsonFormatter

_request_id: contextvars.ContextVar[str] = contextvars.ContextVar("request_id", default="-")

# markiert unsere Handler, damit ein zweiter Aufruf nur diese ersetzt
_OWNED = "_sentry_mobi_handler"


def bind_request_id(request_id: Optional[str] = None) -> str:
    """Set the id for the current request (context); a fresh uuid when none is given."""
    rid = request_id or str(uuid.uuid4())
    _request_id.set(rid)
    return rid


def current_request_id() -> str:
    return _request_id.get()


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = _request_id.get()
        return True


def _env_int(name: str, default: int) -> int:
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    try:
        return int(val)
    except ValueError:
        raise RuntimeError(f"Invalid value for {name}: {val!r} (expected an integer)") from None


def _build_formatter(json_mode: bool) -> logging.Formatter:
    if json_mode:
        return JsonFormatter(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s %(request_id)s",
            datefmt="%Y-%m-%dT%H:%M:%S%z",
        )
    return logging.Formatter(
        fmt="%(asctime)s %(levelname)-8s [%(request_id)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _own(handler: logging.Handler, fmt: logging.Formatter) -> logging.Handler:
    handler.setFormatter(fmt)
    handler.addFilter(RequestIdFilter())
    setattr(handler, _OWNED, True)
    return handler


def setup_logging_from_env(stream: IO[str] | None = None) -> None:
    """(Re)configure root logging from LOG_* env vars. Safe to call more than once."""
    level_name = os.getenv("LOG_LEVEL", "INFO").upper()
    log_level = getattr(logging, level_name, logging.INFO)
    json_mode = os.getenv("LOG_JSON", "false").lower() == "true"
    log_file = os.getenv("LOG_FILE")
    max_bytes = _env_int("LOG_MAX_BYTES", 10485760)
    backup_count = _env_int("LOG_BACKUP_COUNT", 5)

    root = logging.getLogger()
    root.setLevel(log_level)
    for h in list(root.handlers):
        if getattr(h, _OWNED, False):
            root.removeHandler(h)
            h.close()

    fmt = _build_formatter(json_mode)
    # stderr, stdout gehört dem JSON-Output der CLI
    root.addHandler(_own(logging.StreamHandler(stream or sys.stderr), fmt))

    if log_file:
        try:
            fh = RotatingFileHandler(log_file, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8")
        except OSError as e:
            logging.getLogger(__name__).warning("Log file not writable, console only", extra={"error": str(e)})
        else:
            root.addHandler(_own(fh, fmt))

    if log_level > logging.DEBUG:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)

    logging.getLogger(__name__).debug("Logging initialized")
