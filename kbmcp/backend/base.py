"""Interface every document repository backend implements."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from ..core.model import DocumentMetadata, FileType, FolderEntry, SearchHit


@dataclass(frozen=True, slots=True)
class RawContent:
    """Bytes downloaded for a document and the MIME type they are encoded in."""

    data: bytes
    mime_type: str


@runtime_checkable
class DocumentBackend(Protocol):
    """Async access to a repository of documents and folders."""

    async def search(
        self,
        query: str,
        *,
        file_type: FileType = FileType.ALL,
        folder_id: str | None = None,
        max_results: int = 10,
    ) -> list[SearchHit]: ...

    async def get_metadata(self, document_id: str) -> DocumentMetadata: ...

    async def get_content(self, metadata: DocumentMetadata) -> RawContent: ...

    async def list_children(self, folder_id: str) -> list[FolderEntry]: ...

    async def folder_path(self, parent_id: str | None) -> str: ...

    async def aclose(self) -> None: ...


__all__ = ["DocumentBackend", "RawContent"]
