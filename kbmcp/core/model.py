"""Domain models for knowledge-base documents and their roles."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"


class OutputFormat(str, Enum):
    """Enumerate formats a document can be rendered into."""

    TEXT = "text"
    MARKDOWN = "markdown"
    HTML = "html"

    @classmethod
    def coerce(cls, value: OutputFormat | str | None, default: OutputFormat) -> OutputFormat:
        """Return ``value`` as an :class:`OutputFormat`, ``default`` when empty."""
        if value is None or value == "":
            return default
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            choices = ", ".join(item.value for item in cls)
            raise ValueError(f"unsupported format: {value} (expected one of {choices})") from exc


class FileType(str, Enum):
    """Search filters accepted by ``search_docs``."""

    DOCUMENT = "document"
    SPREADSHEET = "spreadsheet"
    PDF = "pdf"
    PRESENTATION = "presentation"
    ALL = "all"


@dataclass(frozen=True, slots=True)
class CatalogEntry:
    """One identifier bound to a catalog category."""

    document_id: str
    category: str


@dataclass(frozen=True, slots=True)
class RoleDescriptor:
    """Behavioural instruction attached to every document of a category."""

    category: str
    label: str
    instruction: str


@dataclass(frozen=True, slots=True)
class DocumentMetadata:
    """Metadata reported by the repository for a single file."""

    id: str
    name: str
    mime_type: str
    created_time: str = ""
    modified_time: str = ""
    size: str | None = None
    last_editor: str | None = None
    web_view_link: str = ""
    parents: tuple[str, ...] = ()

    @property
    def is_folder(self) -> bool:
        return self.mime_type == FOLDER_MIME_TYPE

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> DocumentMetadata:
        """Build metadata from a Drive ``files`` resource."""
        editor = data.get("lastModifyingUser")
        editor_name = None
        if isinstance(editor, Mapping):
            editor_name = editor.get("displayName") or None
        size = data.get("size")
        return cls(
            id=str(data.get("id") or ""),
            name=str(data.get("name") or ""),
            mime_type=str(data.get("mimeType") or ""),
            created_time=str(data.get("createdTime") or ""),
            modified_time=str(data.get("modifiedTime") or ""),
            size=str(size) if size not in (None, "") else None,
            last_editor=editor_name,
            web_view_link=str(data.get("webViewLink") or ""),
            parents=tuple(data.get("parents") or ()),
        )


@dataclass(frozen=True, slots=True)
class FetchedDocument:
    """A document retrieved and rendered into the requested format."""

    id: str
    name: str
    source_format: str
    content: str
    created_time: str = ""
    modified_time: str = ""
    size: str | None = None
    last_editor: str | None = None
    external_link: str = ""


@dataclass(frozen=True, slots=True)
class FormattedBlock:
    """A fetched document rendered for the assistant, with its role."""

    document: FetchedDocument
    role: RoleDescriptor | None
    text: str

    @property
    def document_id(self) -> str:
        return self.document.id


@dataclass(frozen=True, slots=True)
class PreloadFailure:
    """A requested id that could not be loaded, with the triggering message."""

    document_id: str
    message: str


@dataclass(slots=True)
class PreloadResult:
    """Outcome of a batch fetch.

    Every requested id ends up in exactly one of ``succeeded`` or ``failed``.
    """

    succeeded: list[FormattedBlock] = field(default_factory=list)
    failed: list[PreloadFailure] = field(default_factory=list)

    @property
    def failed_ids(self) -> list[str]:
        return [failure.document_id for failure in self.failed]

    @property
    def succeeded_ids(self) -> list[str]:
        return [block.document_id for block in self.succeeded]

    def combined_text(self, separator: str = "\n\n---\n\n") -> str:
        """Join the rendered blocks in order."""
        return separator.join(block.text for block in self.succeeded)


@dataclass(frozen=True, slots=True)
class SearchHit:
    """One search result with its resolved folder path."""

    id: str
    name: str
    mime_type: str
    modified_time: str
    path: str
    web_view_link: str = ""
    size: str | None = None


@dataclass(frozen=True, slots=True)
class FolderInfo:
    """Identity of a listed folder."""

    id: str
    name: str
    path: str


@dataclass(frozen=True, slots=True)
class FolderEntry:
    """A child of a listed folder."""

    id: str
    name: str
    mime_type: str
    modified_time: str = ""
    size: str | None = None

    @property
    def kind(self) -> str:
        return "folder" if self.mime_type == FOLDER_MIME_TYPE else "file"


@dataclass(frozen=True, slots=True)
class FolderListing:
    """Folder identity plus its (optionally recursive) contents."""

    folder: FolderInfo
    contents: list[FolderEntry]


@dataclass(frozen=True, slots=True)
class CoreDocument:
    """An operator-curated, always-available document."""

    id: str
    name: str
    description: str = ""
    category: str = ""

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> CoreDocument:
        """Build a core document entry from ``core-docs.json``."""
        if not isinstance(data, Mapping):
            raise ValueError("core document entry must be a mapping")
        doc_id = str(data.get("id") or "").strip()
        if not doc_id:
            raise ValueError("core document entry is missing an id")
        return cls(
            id=doc_id,
            name=str(data.get("name") or doc_id),
            description=str(data.get("description") or ""),
            category=str(data.get("category") or ""),
        )


__all__ = [
    "CatalogEntry",
    "CoreDocument",
    "DocumentMetadata",
    "FOLDER_MIME_TYPE",
    "FetchedDocument",
    "FileType",
    "FolderEntry",
    "FolderInfo",
    "FolderListing",
    "FormattedBlock",
    "OutputFormat",
    "PreloadFailure",
    "PreloadResult",
    "RoleDescriptor",
    "SearchHit",
]
