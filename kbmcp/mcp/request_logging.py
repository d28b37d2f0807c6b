"""Access log for the MCP HTTP server.

Requests and tool/resource/prompt calls go to ``server.log`` and
``server.jsonl`` in the server's log directory.  The request logger does not
propagate, so document traffic stays out of the application log.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from fastapi import Request

from ..log import _LogFile, _open_rotating, configure_logging, get_log_directory, logger
from ..util.time import utc_now_iso
from .utils import sanitize

request_logger = logger.getChild("mcp.requests")
request_logger.setLevel(logging.INFO)
request_logger.propagate = False

SERVER_LOG = _LogFile("server.log", max_bytes=2 * 1024 * 1024)
SERVER_JSONL = _LogFile("server.jsonl", max_bytes=2 * 1024 * 1024)

_handlers: list[RotatingFileHandler] = []


def configure_request_logging(log_dir: str | Path | None) -> Path:
    """(Re)open the access log files and return their directory.

    Without *log_dir* the files live in ``mcp/`` under the application log
    directory.
    """
    configure_logging()
    close_request_logging_handlers()
    directory = Path(log_dir).expanduser() if log_dir else get_log_directory() / "mcp"
    directory.mkdir(parents=True, exist_ok=True)
    _handlers.append(
        _open_rotating(
            directory / SERVER_LOG.name,
            SERVER_LOG,
            structured=False,
            text_format="%(asctime)s %(levelname)s %(message)s",
            level=logging.INFO,
        )
    )
    _handlers.append(
        _open_rotating(directory / SERVER_JSONL.name, SERVER_JSONL, structured=True, level=logging.INFO)
    )
    for handler in _handlers:
        request_logger.addHandler(handler)
    return directory


def log_request(
    request: Request,
    status: int,
    *,
    duration_ms: float | None = None,
    error: str | None = None,
) -> None:
    """Write one access-log line for a finished HTTP request."""
    entry: dict[str, Any] = {
        "timestamp": utc_now_iso(),
        "method": request.method,
        "path": request.url.path,
        "status": status,
        "headers": sanitize(dict(request.headers)),
    }
    if request.query_params:
        entry["query"] = sanitize(dict(request.query_params))
    request_id = getattr(request.state, "request_id", None)
    if request_id:
        entry["request_id"] = request_id
    if request.client:
        entry["client"] = f"{request.client.host}:{request.client.port}"
    if duration_ms is not None:
        entry["duration_ms"] = round(duration_ms, 3)
    if error is not None:
        entry["error"] = error
    level = logging.WARNING if status >= 500 else logging.INFO
    request_logger.log(
        level,
        "%s %s -> %s",
        request.method,
        request.url.path,
        status,
        extra={"json": entry},
    )


def _document_ids(arguments: Mapping[str, Any]) -> list[str]:
    ids: list[str] = []
    single = arguments.get("doc_id")
    if isinstance(single, str) and single:
        ids.append(single)
    many = arguments.get("doc_ids")
    if isinstance(many, (list, tuple)):
        ids.extend(str(item) for item in many)
    return ids


def log_call_event(
    kind: str,
    name: str,
    arguments: Mapping[str, Any] | None,
    outcome: str,
    *,
    request_id: str | None,
    error: str | None = None,
) -> None:
    """Record a ``tool``, ``resource`` or ``prompt`` call and the documents it named."""
    payload: dict[str, Any] = {"timestamp": utc_now_iso(), kind: name, "outcome": outcome}
    if arguments:
        payload["arguments"] = sanitize(arguments)
        documents = _document_ids(arguments)
        if documents:
            payload["documents"] = documents
    if request_id:
        payload["request_id"] = request_id
    if error is not None:
        payload["error"] = error
    request_logger.info("%s %s %s", kind, name, outcome, extra={"json": payload})


def close_request_logging_handlers() -> None:
    """Detach and close the access log handlers."""
    while _handlers:
        handler = _handlers.pop()
        request_logger.removeHandler(handler)
        handler.close()


__all__ = [
    "close_request_logging_handlers",
    "configure_request_logging",
    "log_call_event",
    "log_request",
    "request_logger",
]
