"""Role classification and formatting core of kbmcp."""

from .catalog import CategoryIndex, parse_catalog
from .formatting import format_document, parse_role_label
from .model import (
    CatalogEntry,
    CoreDocument,
    FetchedDocument,
    FormattedBlock,
    OutputFormat,
    PreloadFailure,
    PreloadResult,
    RoleDescriptor,
)
from .overlay import CorrectionGuide, parse_guide
from .roles import ROLE_DESCRIPTORS, RoleResolver

__all__ = [
    "CatalogEntry",
    "CategoryIndex",
    "CoreDocument",
    "CorrectionGuide",
    "FetchedDocument",
    "FormattedBlock",
    "OutputFormat",
    "PreloadFailure",
    "PreloadResult",
    "ROLE_DESCRIPTORS",
    "RoleDescriptor",
    "RoleResolver",
    "format_document",
    "parse_catalog",
    "parse_guide",
    "parse_role_label",
]
