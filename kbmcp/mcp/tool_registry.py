"""MCP tool schema metadata."""

from __future__ import annotations

from collections.abc import Mapping
from copy import deepcopy
from typing import Any

from ..core.model import FileType, OutputFormat
from ..services.preload import MAX_BATCH_DOCUMENTS
from ..settings import MAX_SEARCH_RESULTS_LIMIT

_ROLE_NOTE = (
    "Documents are labeled by role: Brand/Marketing docs are CONSTRAINTS (follow exactly), "
    "Clinical docs are REFERENCE (cite accurately, never fabricate), Blog content is "
    "INSPIRATION (do not copy verbatim), Product docs are SOURCE OF TRUTH (use exact names "
    "and instructions)."
)

_FORMATS = [fmt.value for fmt in OutputFormat]


def _schema_copy(schema: Mapping[str, Any] | None) -> dict[str, Any] | None:
    if schema is None:
        return None
    return deepcopy(dict(schema))


TOOL_DESCRIPTIONS: dict[str, str] = {
    "search_docs": (
        "Search for documents in the knowledge base using keywords. Returns matching "
        "documents with their IDs, names, types, and paths."
    ),
    "list_folder": (
        "Browse the contents of a folder in the knowledge base. Shows files and "
        "subfolders with their IDs and types."
    ),
    "read_doc": (
        "Read the full content of a single document. For loading multiple documents at "
        "once, use read_docs instead. " + _ROLE_NOTE
    ),
    "read_docs": (
        f"Read multiple documents at once by their IDs (max {MAX_BATCH_DOCUMENTS}). Much "
        "faster than calling read_doc repeatedly. " + _ROLE_NOTE
    ),
    "list_core_docs": (
        "List the core documents that are always available. These are essential "
        "documents pre-configured by admins for quick access."
    ),
    "get_kb_map": (
        "Get the knowledge base map — a guide describing what documents are available, "
        "what each one is about, and when to use them. Use this to orient yourself in "
        "the knowledge base."
    ),
    "get_kb_guide": (
        "Get the knowledge base guide — documented corrections and usage rules, global "
        "and per category. Read it before producing content from loaded documents."
    ),
}


TOOL_ARGUMENT_SCHEMAS: dict[str, dict[str, Any]] = {
    "search_docs": {
        "type": "object",
        "properties": {
            "query": {
                "type": "string",
                "description": "Search query - keywords or phrases to find in documents",
            },
            "file_type": {
                "type": "string",
                "enum": [item.value for item in FileType],
                "description": "Filter results by file type (optional, default: all)",
            },
            "folder_id": {
                "type": "string",
                "description": "Limit search to a specific folder ID (optional)",
            },
            "max_results": {
                "type": "integer",
                "minimum": 1,
                "maximum": MAX_SEARCH_RESULTS_LIMIT,
                "description": (
                    "Maximum number of results to return "
                    f"(default: 10, max: {MAX_SEARCH_RESULTS_LIMIT})"
                ),
            },
        },
        "required": ["query"],
        "additionalProperties": False,
    },
    "list_folder": {
        "type": "object",
        "properties": {
            "folder_id": {
                "type": "string",
                "description": (
                    "Folder ID to list contents of (optional, defaults to knowledge base root)"
                ),
            },
            "include_subfolders": {
                "type": "boolean",
                "default": False,
                "description": "Include contents of subfolders recursively (default: false)",
            },
        },
        "additionalProperties": False,
    },
    "read_doc": {
        "type": "object",
        "properties": {
            "doc_id": {
                "type": "string",
                "description": "The document ID (from search_docs or list_folder results)",
            },
            "format": {
                "type": "string",
                "enum": _FORMATS,
                "description": "Output format for the document content (default: markdown)",
            },
        },
        "required": ["doc_id"],
        "additionalProperties": False,
    },
    "read_docs": {
        "type": "object",
        "properties": {
            "doc_ids": {
                "type": "array",
                "items": {"type": "string"},
                "minItems": 1,
                "maxItems": MAX_BATCH_DOCUMENTS,
                "description": f"Array of document IDs to read (max {MAX_BATCH_DOCUMENTS})",
            },
            "format": {
                "type": "string",
                "enum": _FORMATS,
                "description": "Output format for all documents (default: markdown)",
            },
        },
        "required": ["doc_ids"],
        "additionalProperties": False,
    },
    "list_core_docs": {
        "type": "object",
        "properties": {},
        "additionalProperties": False,
    },
    "get_kb_map": {
        "type": "object",
        "properties": {},
        "additionalProperties": False,
    },
    "get_kb_guide": {
        "type": "object",
        "properties": {},
        "additionalProperties": False,
    },
}


def describe_tools(names: list[str]) -> list[dict[str, Any]]:
    """Return MCP ``tools/list`` entries for ``names``."""
    return [
        {
            "name": name,
            "description": TOOL_DESCRIPTIONS.get(name, ""),
            "inputSchema": _schema_copy(TOOL_ARGUMENT_SCHEMAS.get(name))
            or {"type": "object", "properties": {}},
        }
        for name in names
    ]


__all__ = ["TOOL_ARGUMENT_SCHEMAS", "TOOL_DESCRIPTIONS", "describe_tools"]
