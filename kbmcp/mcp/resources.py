"""Core documents and the catalog exposed as MCP resources."""

from __future__ import annotations

import re
from typing import Any

from ..core.formatting import format_catalog
from ..core.model import OutputFormat
from ..errors import PreconditionError
from ..services.knowledge_base import KnowledgeBase

URI_SCHEME = "kb"
URI_PREFIX = f"{URI_SCHEME}://knowledge-base/"
MAP_URI = URI_PREFIX + "map"
RESOURCE_MIME_TYPE = "text/markdown"

_URI_RE = re.compile(rf"^{re.escape(URI_PREFIX)}(?P<id>.+)$")


def resource_uri(document_id: str) -> str:
    return URI_PREFIX + document_id


def list_resources(kb: KnowledgeBase) -> list[dict[str, Any]]:
    """Return core documents as resources, preceded by the map when one exists."""
    resources = [
        {
            "uri": resource_uri(doc.id),
            "mimeType": RESOURCE_MIME_TYPE,
            "name": doc.name,
            "description": doc.description,
        }
        for doc in kb.core_documents()
    ]
    if kb.catalog_text() is not None:
        resources.insert(
            0,
            {
                "uri": MAP_URI,
                "mimeType": RESOURCE_MIME_TYPE,
                "name": "Knowledge Base Map",
                "description": (
                    "A guide describing what documents are available in the knowledge base, "
                    "what each one is about, and when to use them."
                ),
            },
        )
    return resources


async def read_resource(kb: KnowledgeBase, uri: str) -> dict[str, Any]:
    """Read ``uri`` the way ``read_doc`` does, in markdown.

    Raises :class:`PreconditionError` for URIs outside the ``kb://`` scheme
    and lets backend failures propagate.
    """
    match = _URI_RE.match(uri or "")
    if match is None:
        raise PreconditionError(f"Invalid resource URI: {uri}")
    document_id = match.group("id")
    if uri == MAP_URI:
        text = format_catalog(kb.catalog_text(), str(kb.paths.map_path))
    else:
        block = await kb.preloader.load(document_id, OutputFormat.MARKDOWN)
        text = block.text
    return {"contents": [{"uri": uri, "mimeType": RESOURCE_MIME_TYPE, "text": text}]}


__all__ = ["MAP_URI", "URI_PREFIX", "list_resources", "read_resource", "resource_uri"]
