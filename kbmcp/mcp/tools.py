"""Knowledge-base tools exposed over MCP.

Each function takes the :class:`~kbmcp.services.KnowledgeBase` explicitly,
returns an MCP tool result and logs the invocation through
:func:`~kbmcp.mcp.utils.log_tool`.  Failures the assistant can act on come
back as marked error results instead of exceptions.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from ..core.formatting import (
    format_batch,
    format_catalog,
    format_core_documents,
    format_folder_listing,
    format_guide,
    format_search_results,
)
from ..core.model import FileType, OutputFormat
from ..errors import KnowledgeBaseError, PreconditionError
from ..services.knowledge_base import KnowledgeBase
from ..settings import MAX_SEARCH_RESULTS_LIMIT
from .utils import log_tool, text_result, tool_error


def _text(name: str, value: Any, *, required: bool = True) -> str | None:
    if value is None:
        if required:
            raise PreconditionError(f"{name} is required")
        return None
    if not isinstance(value, str):
        raise PreconditionError(f"{name} must be a string, got {type(value).__name__}")
    return value


def _flag(name: str, value: Any) -> bool:
    if value is None:
        return False
    if not isinstance(value, bool):
        raise PreconditionError(f"{name} must be true or false, got {value!r}")
    return value


def _document_ids(value: Any) -> list[str]:
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        raise PreconditionError("doc_ids must be an array of document IDs")
    if not all(isinstance(item, str) for item in value):
        raise PreconditionError("doc_ids must contain only string document IDs")
    return list(value)


def _output_format(kb: KnowledgeBase, value: str | None) -> OutputFormat:
    try:
        return OutputFormat.coerce(
            _text("format", value, required=False), kb.settings.defaults.output_format
        )
    except ValueError as exc:
        raise PreconditionError(str(exc)) from exc


def _file_type(value: str | None) -> FileType:
    value = _text("file_type", value, required=False)
    if not value:
        return FileType.ALL
    try:
        return FileType(str(value).strip().lower())
    except ValueError:
        choices = ", ".join(item.value for item in FileType)
        raise PreconditionError(
            f"unsupported file_type: {value} (expected one of {choices})"
        ) from None


def _max_results(kb: KnowledgeBase, value: int | str | None) -> int:
    if value is None or value == "":
        return kb.settings.defaults.max_search_results
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        raise PreconditionError(f"max_results must be an integer, got {value!r}") from None
    if parsed <= 0:
        return kb.settings.defaults.max_search_results
    return min(parsed, MAX_SEARCH_RESULTS_LIMIT)


async def search_docs(
    kb: KnowledgeBase,
    query: str,
    *,
    file_type: str | None = None,
    folder_id: str | None = None,
    max_results: int | None = None,
) -> dict[str, Any]:
    params = {
        "query": query,
        "file_type": file_type,
        "folder_id": folder_id,
        "max_results": max_results,
    }
    try:
        hits = await kb.explorer.search(
            _text("query", query),
            file_type=_file_type(file_type),
            folder_id=_text("folder_id", folder_id, required=False),
            max_results=_max_results(kb, max_results),
        )
    except KnowledgeBaseError as exc:
        return log_tool("search_docs", params, tool_error(exc))
    return log_tool("search_docs", params, text_result(format_search_results(query, hits)))


async def list_folder(
    kb: KnowledgeBase,
    folder_id: str | None = None,
    *,
    include_subfolders: bool = False,
) -> dict[str, Any]:
    params = {"folder_id": folder_id, "include_subfolders": include_subfolders}
    try:
        listing = await kb.explorer.list_folder(
            _text("folder_id", folder_id, required=False),
            include_subfolders=_flag("include_subfolders", include_subfolders),
        )
    except KnowledgeBaseError as exc:
        return log_tool("list_folder", params, tool_error(exc))
    return log_tool("list_folder", params, text_result(format_folder_listing(listing)))


async def read_doc(
    kb: KnowledgeBase,
    doc_id: str,
    *,
    format: str | None = None,
) -> dict[str, Any]:
    """Read one document annotated with its role and corrections."""
    params = {"doc_id": doc_id, "format": format}
    try:
        block = await kb.preloader.load(_text("doc_id", doc_id), _output_format(kb, format))
    except KnowledgeBaseError as exc:
        return log_tool("read_doc", params, tool_error(exc))
    return log_tool("read_doc", params, text_result(block.text))


async def read_docs(
    kb: KnowledgeBase,
    doc_ids: Sequence[str],
    *,
    format: str | None = None,
) -> dict[str, Any]:
    """Read up to ten documents concurrently; failures are reported inline."""
    params = {"doc_ids": doc_ids, "format": format}
    try:
        result = await kb.preloader.preload(
            _document_ids(doc_ids),
            _output_format(kb, format),
        )
    except KnowledgeBaseError as exc:
        return log_tool("read_docs", params, tool_error(exc))
    text = format_batch([block.text for block in result.succeeded], result.failed)
    return log_tool("read_docs", params, text_result(text))


async def list_core_docs(kb: KnowledgeBase) -> dict[str, Any]:
    try:
        documents = kb.core_documents()
    except KnowledgeBaseError as exc:
        return log_tool("list_core_docs", {}, tool_error(exc))
    return log_tool("list_core_docs", {}, text_result(format_core_documents(documents)))


async def get_kb_map(kb: KnowledgeBase) -> dict[str, Any]:
    text = format_catalog(kb.catalog_text(), str(kb.paths.map_path))
    return log_tool("get_kb_map", {}, text_result(text))


async def get_kb_guide(kb: KnowledgeBase) -> dict[str, Any]:
    text = format_guide(kb.guide_text(), str(kb.paths.guide_path))
    return log_tool("get_kb_guide", {}, text_result(text))


__all__ = [
    "get_kb_guide",
    "get_kb_map",
    "list_core_docs",
    "list_folder",
    "read_doc",
    "read_docs",
    "search_docs",
]
