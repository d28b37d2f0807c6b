"""Google Drive v3 backend over :mod:`httpx`."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from ..core.model import (
    DocumentMetadata,
    FileType,
    FolderEntry,
    SearchHit,
)
from ..errors import (
    AuthenticationError,
    BackendError,
    DocumentAccessError,
    DocumentNotFoundError,
)
from ..settings import KnowledgeBaseSettings
from .base import RawContent

logger = logging.getLogger(__name__)

DRIVE_API_URL = "https://www.googleapis.com/drive/v3/"
MAX_PATH_DEPTH = 10
LIST_PAGE_SIZE = 1000

MIME_TYPE_FILTERS: dict[FileType, tuple[str, ...]] = {
    FileType.DOCUMENT: (
        "application/vnd.google-apps.document",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ),
    FileType.SPREADSHEET: (
        "application/vnd.google-apps.spreadsheet",
        "application/vnd.ms-excel",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ),
    FileType.PRESENTATION: (
        "application/vnd.google-apps.presentation",
        "application/vnd.ms-powerpoint",
        "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    ),
    FileType.PDF: ("application/pdf",),
}

EXPORT_MIME_TYPES = {
    "application/vnd.google-apps.document": "text/plain",
    "application/vnd.google-apps.spreadsheet": "text/csv",
    "application/vnd.google-apps.presentation": "text/plain",
}

_METADATA_FIELDS = (
    "id, name, mimeType, modifiedTime, createdTime, size, webViewLink, "
    "lastModifyingUser, parents"
)

TokenProvider = Callable[[], Awaitable[str]]


def _quote(value: str) -> str:
    return value.replace("\\", "\\\\").replace("'", "\\'")


def build_search_query(query: str, file_type: FileType, folder_id: str | None) -> str:
    """Return the Drive ``q`` expression for a full-text search."""
    parts = [f"fullText contains '{_quote(query)}'"]
    if folder_id:
        parts.append(f"'{_quote(folder_id)}' in parents")
    mime_types = MIME_TYPE_FILTERS.get(file_type)
    if mime_types:
        parts.append("(" + " or ".join(f"mimeType='{m}'" for m in mime_types) + ")")
    parts.append("trashed = false")
    return " and ".join(parts)


class DriveBackend:
    """Read-only access to a Drive folder or shared drive."""

    def __init__(
        self,
        knowledge_base: KnowledgeBaseSettings,
        token_provider: TokenProvider,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._kb = knowledge_base
        self._token_provider = token_provider
        self._client = client or httpx.AsyncClient(base_url=DRIVE_API_URL, timeout=timeout)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        path: str,
        params: dict[str, Any],
        *,
        document_id: str | None = None,
    ) -> httpx.Response:
        token = await self._token_provider()
        try:
            response = await self._client.get(
                path,
                params=params,
                headers={"Authorization": f"Bearer {token}"},
            )
        except httpx.TransportError as exc:
            raise BackendError(f"Drive request failed: {exc}") from exc
        if response.is_success:
            return response
        status = response.status_code
        detail = _error_message(response)
        if status == 404 and document_id is not None:
            raise DocumentNotFoundError(document_id)
        if status == 403 and document_id is not None:
            raise DocumentAccessError(document_id, f"permission denied for {document_id}: {detail}")
        if status == 401:
            raise AuthenticationError(f"Drive rejected credentials: {detail}")
        raise BackendError(f"Drive API error {status}: {detail}")

    async def _json(self, path: str, params: dict[str, Any], **kwargs: Any) -> dict[str, Any]:
        response = await self._request(path, params, **kwargs)
        try:
            return response.json()
        except ValueError as exc:
            raise BackendError(f"Drive returned invalid JSON for {path}") from exc

    async def search(
        self,
        query: str,
        *,
        file_type: FileType = FileType.ALL,
        folder_id: str | None = None,
        max_results: int = 10,
    ) -> list[SearchHit]:
        params: dict[str, Any] = {
            "q": build_search_query(query, file_type, folder_id),
            "pageSize": max_results,
            "fields": "files(id, name, mimeType, modifiedTime, webViewLink, size, parents)",
            "orderBy": "modifiedTime desc",
            "supportsAllDrives": "true",
            "includeItemsFromAllDrives": "true",
        }
        if self._kb.type == "shared_drive":
            params["corpora"] = "drive"
            params["driveId"] = self._kb.root_folder_id
        else:
            params["corpora"] = "user"
        data = await self._json("files", params)
        files = data.get("files") or []
        paths = await asyncio.gather(
            *(self.folder_path((item.get("parents") or [None])[0]) for item in files)
        )
        return [
            SearchHit(
                id=item["id"],
                name=item.get("name", ""),
                mime_type=item.get("mimeType", ""),
                modified_time=item.get("modifiedTime", ""),
                path=path,
                web_view_link=item.get("webViewLink", ""),
                size=item.get("size"),
            )
            for item, path in zip(files, paths)
        ]

    async def get_metadata(self, document_id: str) -> DocumentMetadata:
        data = await self._json(
            f"files/{document_id}",
            {"fields": _METADATA_FIELDS, "supportsAllDrives": "true"},
            document_id=document_id,
        )
        metadata = DocumentMetadata.from_mapping(data)
        if not metadata.id or not metadata.mime_type:
            raise BackendError(f"Failed to retrieve metadata for {document_id}")
        return metadata

    async def get_content(self, metadata: DocumentMetadata) -> RawContent:
        """Download ``metadata``'s file, exporting workspace formats to text."""
        if metadata.mime_type.startswith("application/vnd.google-apps."):
            export_type = EXPORT_MIME_TYPES.get(metadata.mime_type, "text/plain")
            response = await self._request(
                f"files/{metadata.id}/export",
                {"mimeType": export_type},
                document_id=metadata.id,
            )
            return RawContent(data=response.content, mime_type=export_type)
        response = await self._request(
            f"files/{metadata.id}",
            {"alt": "media", "supportsAllDrives": "true"},
            document_id=metadata.id,
        )
        return RawContent(data=response.content, mime_type=metadata.mime_type)

    async def list_children(self, folder_id: str) -> list[FolderEntry]:
        entries: list[FolderEntry] = []
        page_token: str | None = None
        while True:
            params: dict[str, Any] = {
                "q": f"'{_quote(folder_id)}' in parents and trashed = false",
                "fields": "nextPageToken, files(id, name, mimeType, modifiedTime, size)",
                "orderBy": "folder, name",
                "pageSize": LIST_PAGE_SIZE,
                "supportsAllDrives": "true",
                "includeItemsFromAllDrives": "true",
            }
            if page_token:
                params["pageToken"] = page_token
            data = await self._json("files", params, document_id=folder_id)
            for item in data.get("files") or []:
                entries.append(
                    FolderEntry(
                        id=item["id"],
                        name=item.get("name", ""),
                        mime_type=item.get("mimeType", ""),
                        modified_time=item.get("modifiedTime", ""),
                        size=item.get("size"),
                    )
                )
            page_token = data.get("nextPageToken")
            if not page_token:
                return entries

    async def folder_path(self, parent_id: str | None) -> str:
        """Walk up from ``parent_id`` and return ``a/b/c`` (``/`` at the root)."""
        parts: list[str] = []
        current = parent_id
        depth = 0
        while current and depth < MAX_PATH_DEPTH:
            try:
                data = await self._json(
                    f"files/{current}",
                    {"fields": "id, name, parents", "supportsAllDrives": "true"},
                    document_id=current,
                )
            except BackendError as exc:
                logger.debug("Stopped path resolution at %s: %s", current, exc)
                break
            parts.insert(0, data.get("name", ""))
            current = (data.get("parents") or [None])[0]
            depth += 1
        return "/".join(parts) if parts else "/"


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text[:200] or response.reason_phrase
    error = payload.get("error") if isinstance(payload, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    return response.reason_phrase


__all__ = [
    "DRIVE_API_URL",
    "DriveBackend",
    "EXPORT_MIME_TYPES",
    "MIME_TYPE_FILTERS",
    "build_search_query",
]
