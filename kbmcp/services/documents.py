"""Document reads, searches and folder listings on top of a backend."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace

from ..backend.convert import convert
from ..backend.base import DocumentBackend
from ..backend.provider import ClientProvider
from ..core.model import (
    FetchedDocument,
    FileType,
    FolderEntry,
    FolderInfo,
    FolderListing,
    OutputFormat,
    SearchHit,
)
from ..errors import NotADocumentError, PreconditionError
from ..settings import AppSettings

logger = logging.getLogger(__name__)


class DocumentReader:
    """Fetch one document and render it into an output format."""

    def __init__(self, provider: ClientProvider) -> None:
        self._provider = provider

    async def read(self, document_id: str, output_format: OutputFormat) -> FetchedDocument:
        """Return ``document_id`` converted to ``output_format``.

        Raises :class:`NotADocumentError` for folders and lets backend
        errors (not found, access denied, transport) propagate.
        """
        if not document_id or not document_id.strip():
            raise PreconditionError("Document ID is required")
        document_id = document_id.strip()
        backend = await self._provider.get()
        metadata = await backend.get_metadata(document_id)
        if metadata.is_folder:
            raise NotADocumentError(
                f'"{metadata.name}" is a folder, not a document. '
                "Use list_folder to browse its contents."
            )
        raw = await backend.get_content(metadata)
        content = await asyncio.to_thread(convert, raw.data, raw.mime_type, output_format)
        logger.debug("Read %s (%s) as %s", document_id, metadata.mime_type, output_format.value)
        return FetchedDocument(
            id=metadata.id,
            name=metadata.name,
            source_format=metadata.mime_type,
            content=content,
            created_time=metadata.created_time,
            modified_time=metadata.modified_time,
            size=metadata.size,
            last_editor=metadata.last_editor,
            external_link=metadata.web_view_link,
        )


class DocumentExplorer:
    """Search and browse the knowledge-base folder tree."""

    def __init__(self, provider: ClientProvider, settings: AppSettings) -> None:
        self._provider = provider
        self._settings = settings

    async def search(
        self,
        query: str,
        *,
        file_type: FileType = FileType.ALL,
        folder_id: str | None = None,
        max_results: int | None = None,
    ) -> list[SearchHit]:
        if not query or not query.strip():
            raise PreconditionError("Search query is required")
        limit = max_results or self._settings.defaults.max_search_results
        backend = await self._provider.get()
        return await backend.search(
            query,
            file_type=file_type,
            folder_id=folder_id or None,
            max_results=limit,
        )

    async def list_folder(
        self,
        folder_id: str | None = None,
        *,
        include_subfolders: bool = False,
    ) -> FolderListing:
        """List ``folder_id`` (the knowledge-base root by default).

        With ``include_subfolders`` every descendant is appended after the
        direct children, its name prefixed with the containing folder's
        name(s).
        """
        target = folder_id or self._settings.knowledge_base.root_folder_id
        if not target:
            raise PreconditionError("folder_id is required when no root folder is configured")
        backend = await self._provider.get()
        metadata = await backend.get_metadata(target)
        parent = metadata.parents[0] if metadata.parents else None
        parent_path = await backend.folder_path(parent)
        path = metadata.name if parent_path == "/" else f"{parent_path}/{metadata.name}"
        contents = await self._collect(backend, target, include_subfolders)
        return FolderListing(
            folder=FolderInfo(id=metadata.id, name=metadata.name, path=path),
            contents=contents,
        )

    async def _collect(
        self,
        backend: DocumentBackend,
        folder_id: str,
        recursive: bool,
    ) -> list[FolderEntry]:
        children = await backend.list_children(folder_id)
        contents = list(children)
        if not recursive:
            return contents
        for child in children:
            if child.kind != "folder":
                continue
            nested = await self._collect(backend, child.id, True)
            contents.extend(
                replace(entry, name=f"{child.name}/{entry.name}") for entry in nested
            )
        return contents


__all__ = ["DocumentExplorer", "DocumentReader"]
