"""Render documents and listings into assistant-facing markdown text.

Every function here is pure: all inputs must already be resident.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence

from ..util.time import format_human_date, format_human_timestamp
from .model import (
    CoreDocument,
    FetchedDocument,
    FolderListing,
    PreloadFailure,
    RoleDescriptor,
    SearchHit,
)

BLOCK_SEPARATOR = "\n\n---\n\n"

_MIME_DESCRIPTIONS = {
    "application/vnd.google-apps.document": "Google Doc",
    "application/vnd.google-apps.spreadsheet": "Google Sheet",
    "application/vnd.google-apps.presentation": "Google Slides",
    "application/vnd.google-apps.folder": "Folder",
    "application/pdf": "PDF",
    "application/msword": "Word Document",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "Word Document",
    "application/vnd.ms-excel": "Excel Spreadsheet",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": "Excel Spreadsheet",
    "application/vnd.ms-powerpoint": "PowerPoint",
    "application/vnd.openxmlformats-officedocument.presentationml.presentation": "PowerPoint",
    "text/plain": "Text File",
    "text/markdown": "Markdown",
    "text/html": "HTML",
}

_ROLE_HEADING_RE = re.compile(r"^# \[(?P<label>.+?)\] ")


def describe_mime_type(mime_type: str) -> str:
    """Return a human name for ``mime_type``, or the MIME type itself."""
    return _MIME_DESCRIPTIONS.get(mime_type, mime_type)


def format_document(
    document: FetchedDocument,
    role: RoleDescriptor | None,
    *,
    corrections: str | None = None,
) -> str:
    """Render ``document`` with its role label and instruction when present."""

    lines: list[str] = []
    if role is not None:
        lines.append(f"# [{role.label}] {document.name}")
        lines.append("")
        lines.append(f"> **{role.instruction}**")
    else:
        lines.append(f"# {document.name}")
    lines.append("")
    lines.append(f"**Type:** {describe_mime_type(document.source_format)}")
    lines.append(f"**Last Modified:** {format_human_timestamp(document.modified_time)}")
    if document.last_editor:
        lines.append(f"**Modified By:** {document.last_editor}")
    lines.append(f"**[Open in Drive]({document.external_link})**")
    lines.append("")
    lines.append("---")
    lines.append("")
    lines.append(document.content)
    text = "\n".join(lines)
    if corrections:
        text = f"{text}{BLOCK_SEPARATOR}{corrections}"
    return text


def parse_role_label(text: str) -> str | None:
    """Return the role label from the heading of a formatted block."""
    first_line = text.split("\n", 1)[0]
    match = _ROLE_HEADING_RE.match(first_line)
    return match.group("label") if match else None


def format_batch(
    blocks: Sequence[str],
    failures: Sequence[PreloadFailure],
) -> str:
    """Render the ``read_docs`` payload: loaded blocks, then the failure report."""

    sections: list[str] = []
    if blocks:
        sections.append(f"Loaded {len(blocks)} document(s):\n")
        for block in blocks:
            sections.append(block)
            sections.append("\n---\n")
    if failures:
        sections.append(f"\nFailed to load {len(failures)} document(s):")
        for failure in failures:
            sections.append(f"- {failure.document_id}: {failure.message}")
    return "\n".join(sections)


def format_search_results(query: str, hits: Sequence[SearchHit]) -> str:
    if not hits:
        return f'No documents found matching "{query}"'
    lines = [f'Found {len(hits)} document(s) matching "{query}":', ""]
    for hit in hits:
        lines.append(f"- **{hit.name}** ({describe_mime_type(hit.mime_type)})")
        lines.append(f"  - ID: {hit.id}")
        lines.append(f"  - Path: {hit.path}")
        lines.append(f"  - Modified: {format_human_date(hit.modified_time)}")
        lines.append(f"  - [Open in Drive]({hit.web_view_link})")
        lines.append("")
    return "\n".join(lines)


def format_folder_listing(listing: FolderListing) -> str:
    lines = [f"**{listing.folder.name}** ({listing.folder.path})", ""]
    folders = [entry for entry in listing.contents if entry.kind == "folder"]
    files = [entry for entry in listing.contents if entry.kind == "file"]
    if folders:
        lines.append("**Folders:**")
        for folder in folders:
            lines.append(f"  - 📁 {folder.name} (id: {folder.id})")
        lines.append("")
    if files:
        lines.append("**Files:**")
        for entry in files:
            kind = describe_mime_type(entry.mime_type)
            modified = format_human_date(entry.modified_time)
            lines.append(f"  - 📄 {entry.name} ({kind}, modified: {modified})")
            lines.append(f"    ID: {entry.id}")
        lines.append("")
    if not folders and not files:
        lines.append("(empty folder)")
    return "\n".join(lines)


def group_core_documents(documents: Iterable[CoreDocument]) -> dict[str, list[CoreDocument]]:
    """Group ``documents`` by category keeping first-seen category order."""
    grouped: dict[str, list[CoreDocument]] = {}
    for doc in documents:
        grouped.setdefault(doc.category or "Uncategorized", []).append(doc)
    return grouped


def format_core_documents(documents: Sequence[CoreDocument]) -> str:
    if not documents:
        return (
            "No core documents configured. Add documents to core-docs.json "
            "to make them always available."
        )
    lines = [
        f"**Core Documents ({len(documents)}):**",
        "",
        "These documents are always available and can be loaded for context:",
        "",
    ]
    for category, docs in group_core_documents(documents).items():
        lines.append(f"### {category}")
        for doc in docs:
            lines.append(f"- **{doc.name}** (id: `{doc.id}`)")
            lines.append(f"  {doc.description}")
        lines.append("")
    lines.append("---")
    lines.append("*Use `read_doc` with the document ID to load a document into context.*")
    return "\n".join(lines)


def format_catalog(content: str | None, path: str) -> str:
    """Return the raw map or a notice explaining where to create it."""
    if content is not None:
        return content
    return (
        "No knowledge base map found.\n\n"
        f"Create a map file at `{path}` to provide orientation for the knowledge base.\n"
        "The map is a markdown file that describes what documents are available, "
        "what each one is about, and when to use them."
    )


def format_guide(content: str | None, path: str) -> str:
    """Return the raw correction guide or a notice explaining where to create it."""
    if content is not None:
        return content
    return (
        "No knowledge base guide found.\n\n"
        f"Create a guide file at `{path}` to provide corrections and usage guidelines.\n"
        "The guide is a markdown file with sections matching kb-map categories "
        "(## Global, ## Brand & Marketing, etc.) containing documented error corrections."
    )


__all__ = [
    "BLOCK_SEPARATOR",
    "describe_mime_type",
    "format_batch",
    "format_catalog",
    "format_core_documents",
    "format_document",
    "format_folder_listing",
    "format_guide",
    "format_search_results",
    "group_core_documents",
    "parse_role_label",
]
