"""Result envelopes, error mapping and tool-call logging for the MCP surface."""
from __future__ import annotations

from collections.abc import Iterator, Mapping
from enum import Enum
from json import JSONDecodeError
from typing import Any

import httpx

from ..errors import (
    AuthenticationError,
    BackendError,
    ConfigurationError,
    ConversionError,
    DocumentAccessError,
    DocumentNotFoundError,
    NotADocumentError,
    PreconditionError,
    UnknownWorkflowError,
)
from ..log import logger
from ..telemetry import sanitize
from ..util.time import utc_now_iso

# Transport failures worth retrying, besides anything raised by httpx.
_TRANSIENT = (httpx.HTTPError, ConnectionError, TimeoutError)


def log_tool(
    tool: str,
    params: Mapping[str, Any],
    result: Any,
    *,
    max_result_length: int | None = 1000,
) -> Any:
    """Write a JSONL entry for a tool call and hand *result* back unchanged.

    Document text in ``content`` items is cut to *max_result_length*
    characters in the entry (``None`` keeps it whole); error results are
    logged by their ``error`` payload instead.
    """
    entry: dict[str, Any] = {"timestamp": utc_now_iso(), "tool": tool, "params": sanitize(params)}
    if isinstance(result, dict) and "error" in result:
        entry["error"] = result["error"]
    else:
        entry["result"] = _loggable(result, max_result_length)
    logger.info("tool %s", tool, extra={"json": entry})
    return result


def _loggable(result: Any, limit: int | None) -> Any:
    if limit is None:
        return result
    if isinstance(result, str):
        return result if len(result) <= limit else result[:limit] + "..."
    if isinstance(result, dict) and isinstance(result.get("content"), list):
        items = []
        for item in result["content"]:
            if isinstance(item, dict) and isinstance(item.get("text"), str):
                item = {**item, "text": _loggable(item["text"], limit)}
            items.append(item)
        return {**result, "content": items}
    return result


def text_result(text: str) -> dict[str, Any]:
    """Wrap ``text`` into an MCP tool result."""
    return {"content": [{"type": "text", "text": text}]}


class ErrorCode(str, Enum):
    """Codes carried in ``error.code`` of tool, resource and prompt failures."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    UNAUTHORIZED = "UNAUTHORIZED"
    CONFIGURATION = "CONFIGURATION"
    INTERNAL = "INTERNAL"


def mcp_error(
    code: ErrorCode | str,
    message: str,
    details: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Return ``{"error": {"code", "message"[, "details"]}}``."""
    error: dict[str, Any] = {"code": getattr(code, "value", code), "message": message}
    if details:
        error["details"] = dict(details)
    return {"error": error}


def _causes(exc: BaseException) -> Iterator[BaseException]:
    """Walk *exc* and the exceptions it was raised from or during."""
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__ or current.__context__


# Checked in order; subclasses must precede their bases.
_ERROR_CODES: tuple[tuple[type[BaseException], ErrorCode], ...] = (
    (DocumentNotFoundError, ErrorCode.NOT_FOUND),
    (UnknownWorkflowError, ErrorCode.NOT_FOUND),
    (DocumentAccessError, ErrorCode.UNAUTHORIZED),
    (AuthenticationError, ErrorCode.UNAUTHORIZED),
    (ConfigurationError, ErrorCode.CONFIGURATION),
    (PreconditionError, ErrorCode.VALIDATION_ERROR),
    (NotADocumentError, ErrorCode.VALIDATION_ERROR),
    (ConversionError, ErrorCode.VALIDATION_ERROR),
    (BackendError, ErrorCode.INTERNAL),
)


def map_exception_to_error_code(exc: BaseException) -> ErrorCode:
    """Pick the :class:`ErrorCode` for *exc*.

    Knowledge-base errors map by type.  For anything else a JSON decoding
    error anywhere in the chain means bad input; a transport failure means
    the backend is unreachable (``INTERNAL``).  The rest is treated as bad
    input.
    """
    for err_type, code in _ERROR_CODES:
        if isinstance(exc, err_type):
            return code
    chain = list(_causes(exc))
    if any(isinstance(err, JSONDecodeError) for err in chain):
        return ErrorCode.VALIDATION_ERROR
    if any(isinstance(err, _TRANSIENT) for err in chain):
        return ErrorCode.INTERNAL
    return ErrorCode.VALIDATION_ERROR


def exception_to_mcp_error(exc: BaseException) -> dict[str, Any]:
    """Convert *exc* into an MCP-compatible error payload."""
    code = map_exception_to_error_code(exc)
    message = str(exc) or type(exc).__name__
    details: dict[str, Any] = {"type": type(exc).__name__}
    document_id = getattr(exc, "document_id", None)
    if document_id:
        details["document_id"] = document_id
    return mcp_error(code, message, details)


def tool_error(exc: BaseException) -> dict[str, Any]:
    """Return a marked tool result the assistant can read and recover from."""
    payload = exception_to_mcp_error(exc)
    payload["content"] = [{"type": "text", "text": f"Error: {payload['error']['message']}"}]
    payload["isError"] = True
    return payload


__all__ = [
    "ErrorCode",
    "exception_to_mcp_error",
    "log_tool",
    "map_exception_to_error_code",
    "mcp_error",
    "sanitize",
    "text_result",
    "tool_error",
]
