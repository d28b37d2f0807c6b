"""In-memory document backend for tests."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from kbmcp.backend.base import RawContent
from kbmcp.core.model import (
    FOLDER_MIME_TYPE,
    DocumentMetadata,
    FileType,
    FolderEntry,
    SearchHit,
)
from kbmcp.errors import BackendError, DocumentAccessError, DocumentNotFoundError

TEXT_MIME = "text/plain"


@dataclass
class FakeFile:
    id: str
    name: str
    content: str = ""
    mime_type: str = TEXT_MIME
    parent: str | None = None
    modified_time: str = "2024-03-01T10:30:00Z"
    last_editor: str | None = None


@dataclass
class FakeBackend:
    """Implements :class:`kbmcp.backend.base.DocumentBackend` over a dict."""

    files: dict[str, FakeFile] = field(default_factory=dict)
    denied: set[str] = field(default_factory=set)
    broken: set[str] = field(default_factory=set)
    calls: list[tuple[str, str]] = field(default_factory=list)
    closed: bool = False

    @classmethod
    def with_files(cls, files: Iterable[FakeFile]) -> FakeBackend:
        return cls(files={item.id: item for item in files})

    def add(self, item: FakeFile) -> FakeFile:
        self.files[item.id] = item
        return item

    def _lookup(self, document_id: str) -> FakeFile:
        if document_id in self.broken:
            raise BackendError(f"Drive API error 500: backend exploded for {document_id}")
        if document_id in self.denied:
            raise DocumentAccessError(document_id)
        try:
            return self.files[document_id]
        except KeyError:
            raise DocumentNotFoundError(document_id) from None

    def _metadata(self, item: FakeFile) -> DocumentMetadata:
        return DocumentMetadata(
            id=item.id,
            name=item.name,
            mime_type=item.mime_type,
            modified_time=item.modified_time,
            last_editor=item.last_editor,
            web_view_link=f"https://drive.example/{item.id}",
            parents=(item.parent,) if item.parent else (),
        )

    async def search(
        self,
        query: str,
        *,
        file_type: FileType = FileType.ALL,
        folder_id: str | None = None,
        max_results: int = 10,
    ) -> list[SearchHit]:
        self.calls.append(("search", query))
        needle = query.lower()
        hits: list[SearchHit] = []
        for item in self.files.values():
            if item.mime_type == FOLDER_MIME_TYPE:
                continue
            if folder_id and item.parent != folder_id:
                continue
            if needle not in item.name.lower() and needle not in item.content.lower():
                continue
            hits.append(
                SearchHit(
                    id=item.id,
                    name=item.name,
                    mime_type=item.mime_type,
                    modified_time=item.modified_time,
                    path=await self.folder_path(item.parent),
                    web_view_link=f"https://drive.example/{item.id}",
                )
            )
        return hits[:max_results]

    async def get_metadata(self, document_id: str) -> DocumentMetadata:
        self.calls.append(("get_metadata", document_id))
        return self._metadata(self._lookup(document_id))

    async def get_content(self, metadata: DocumentMetadata) -> RawContent:
        self.calls.append(("get_content", metadata.id))
        item = self._lookup(metadata.id)
        return RawContent(data=item.content.encode("utf-8"), mime_type=item.mime_type)

    async def list_children(self, folder_id: str) -> list[FolderEntry]:
        self.calls.append(("list_children", folder_id))
        children = [item for item in self.files.values() if item.parent == folder_id]
        children.sort(key=lambda item: (item.mime_type != FOLDER_MIME_TYPE, item.name))
        return [
            FolderEntry(
                id=item.id,
                name=item.name,
                mime_type=item.mime_type,
                modified_time=item.modified_time,
            )
            for item in children
        ]

    async def folder_path(self, parent_id: str | None) -> str:
        parts: list[str] = []
        current = parent_id
        while current and current in self.files:
            item = self.files[current]
            parts.insert(0, item.name)
            current = item.parent
        return "/".join(parts) if parts else "/"

    async def aclose(self) -> None:
        self.closed = True


def folder(id: str, name: str, parent: str | None = None) -> FakeFile:
    return FakeFile(id=id, name=name, mime_type=FOLDER_MIME_TYPE, parent=parent)
