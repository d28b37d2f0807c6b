"""Logging setup for the knowledge-base server and CLI.

Everything under the ``kbmcp`` logger goes to three sinks: a terse console
stream on ``stderr``, a rotating text log and a rotating JSON-lines log.  The
JSON log carries the structured ``extra={"json": ...}`` payloads emitted by
:mod:`kbmcp.telemetry` and the request logger.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from dataclasses import dataclass
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from .util.time import utc_now_iso

LOG_DIR_ENV = "KBMCP_LOG_DIR"

logger = logging.getLogger("kbmcp")

# Libraries that log every HTTP round-trip at INFO.
_CHATTY_LOGGERS = ("httpx", "httpcore", "google.auth", "urllib3")


@dataclass(frozen=True)
class _LogFile:
    name: str
    max_bytes: int = 5 * 1024 * 1024
    backups: int = 5


TEXT_LOG = _LogFile("kbmcp.log")
JSON_LOG = _LogFile("kbmcp.jsonl")

_log_dir: Path | None = None


def _structured(record: logging.LogRecord) -> Any:
    return getattr(record, "json", None)


class ConsoleFormatter(logging.Formatter):
    """``LEVEL: message`` lines, followed by the payload of telemetry events."""

    def __init__(self) -> None:
        super().__init__("%(levelname)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        data = _structured(record)
        if not isinstance(data, dict) or not isinstance(record.msg, str):
            return line
        event = data.get("event")
        if not isinstance(event, str) or record.msg.strip() != event.strip():
            return line
        payload = data.get("payload")
        if payload is None:
            return line
        return f"{line} {json.dumps(payload, ensure_ascii=False, default=str)}"


class JsonFormatter(logging.Formatter):
    """Render a record as one JSON object.

    Mapping payloads are merged into the top level; anything else is kept
    under ``data``.  ``message``, ``level`` and ``timestamp`` are always set
    unless the payload already provides them.
    """

    def format(self, record: logging.LogRecord) -> str:
        record.message = record.getMessage()
        payload = _structured(record)
        if isinstance(payload, dict):
            data: dict[str, Any] = dict(payload)
        elif payload is None:
            data = {}
        else:
            data = {"data": payload}
        data.setdefault("message", record.message)
        data.setdefault("level", record.levelname)
        data.setdefault("timestamp", utc_now_iso())
        if record.name != logger.name:
            data.setdefault("logger", record.name)
        if record.exc_info:
            data.setdefault("exc_info", self.formatException(record.exc_info))
        return json.dumps(data, ensure_ascii=False, default=str)


class JsonlHandler(RotatingFileHandler):
    """Rotating handler writing :class:`JsonFormatter` lines."""

    def __init__(
        self,
        filename: Path | str,
        *,
        max_bytes: int | None = None,
        backup_count: int = JSON_LOG.backups,
        encoding: str = "utf-8",
        delay: bool = False,
    ) -> None:
        path = Path(filename)
        path.parent.mkdir(parents=True, exist_ok=True)
        super().__init__(
            path,
            maxBytes=JSON_LOG.max_bytes if max_bytes is None else max_bytes,
            backupCount=backup_count,
            encoding=encoding,
            delay=delay,
        )
        self.setFormatter(JsonFormatter())


def _rotate_if_already_full(handler: RotatingFileHandler, existing_size: int) -> None:
    """Start a fresh file when the one left by a previous run is at its limit."""
    max_bytes = getattr(handler, "maxBytes", 0) or 0
    if 0 < max_bytes <= existing_size:
        handler.doRollover()


def _open_rotating(
    path: Path,
    spec: _LogFile,
    *,
    structured: bool,
    text_format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s",
    level: int = logging.DEBUG,
) -> RotatingFileHandler:
    existing = path.stat().st_size if path.exists() else 0
    handler: RotatingFileHandler
    if structured:
        handler = JsonlHandler(path, max_bytes=spec.max_bytes, backup_count=spec.backups)
    else:
        handler = RotatingFileHandler(
            path, encoding="utf-8", maxBytes=spec.max_bytes, backupCount=spec.backups
        )
        handler.setFormatter(logging.Formatter(text_format))
    handler.setLevel(level)
    _rotate_if_already_full(handler, existing)
    return handler


def _resolve_log_dir(log_dir: str | Path | None) -> Path:
    if log_dir is None:
        log_dir = os.environ.get(LOG_DIR_ENV) or Path.home() / ".kbmcp" / "logs"
    path = Path(log_dir).expanduser()
    path.mkdir(parents=True, exist_ok=True)
    return path.resolve()


def configure_logging(level: int = logging.INFO, *, log_dir: str | Path | None = None) -> None:
    """Attach the console and file handlers to the ``kbmcp`` logger.

    Only the first call installs handlers.  *level* applies to the console;
    files always receive DEBUG.  HTTP client libraries are held at WARNING
    unless *level* asks for DEBUG output.
    """
    global _log_dir

    if logger.handlers:
        if _log_dir is None:
            _log_dir = _resolve_log_dir(log_dir)
        return

    _log_dir = _resolve_log_dir(log_dir)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    console.setFormatter(ConsoleFormatter())
    logger.addHandler(console)
    logger.addHandler(_open_rotating(_log_dir / TEXT_LOG.name, TEXT_LOG, structured=False))
    logger.addHandler(_open_rotating(_log_dir / JSON_LOG.name, JSON_LOG, structured=True))
    logger.setLevel(logging.DEBUG)

    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if level <= logging.DEBUG else logging.WARNING)


def get_log_directory() -> Path:
    """Return the directory holding the log files, configuring logging if needed."""
    if _log_dir is None:
        configure_logging()
    assert _log_dir is not None
    return _log_dir


__all__ = [
    "ConsoleFormatter",
    "JsonFormatter",
    "JsonlHandler",
    "LOG_DIR_ENV",
    "configure_logging",
    "get_log_directory",
    "logger",
]
