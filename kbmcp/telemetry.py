"""Structured events for the JSON log.

An event is a log record whose message is the event name and whose
``json`` extra holds ``{"event", "payload", "size_bytes"[, "duration_ms"]}``.
Credentials travel through settings and request headers, so payloads are
scrubbed before they reach any handler.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Mapping
from typing import Any

from .log import logger

REDACTED = "[REDACTED]"

# A key is sensitive when its lowercased form contains one of these.
_SENSITIVE_FRAGMENTS = (
    "authorization",
    "token",
    "secret",
    "password",
    "private_key",
    "api_key",
    "cookie",
)


def _is_sensitive(key: object) -> bool:
    lowered = str(key).lower()
    return any(fragment in lowered for fragment in _SENSITIVE_FRAGMENTS)


def _scrub(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {k: REDACTED if _is_sensitive(k) else _scrub(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return type(value)(_scrub(v) for v in value)
    return value


def sanitize(data: Mapping[str, Any]) -> dict[str, Any]:
    """Return a copy of *data* with credential-like values replaced by ``[REDACTED]``."""
    return _scrub(dict(data))


def log_event(
    event: str,
    payload: Mapping[str, Any] | None = None,
    *,
    start_time: float | None = None,
    level: int = logging.INFO,
) -> None:
    """Emit *event* with a scrubbed *payload*.

    ``start_time`` is a :func:`time.monotonic` reading; when given the
    elapsed milliseconds are recorded as ``duration_ms``.
    """
    body = sanitize(payload) if payload else {}
    data: dict[str, Any] = {
        "event": event,
        "payload": body,
        "size_bytes": len(json.dumps(body, ensure_ascii=False, default=str).encode("utf-8")),
    }
    if start_time is not None:
        data["duration_ms"] = int((time.monotonic() - start_time) * 1000)
    logger.log(level, event, extra={"json": data})


__all__ = ["REDACTED", "log_event", "sanitize"]
