"""Exception hierarchy shared by the knowledge-base layers."""

from __future__ import annotations


class KnowledgeBaseError(Exception):
    """Base class for errors raised by kbmcp."""


class PreconditionError(KnowledgeBaseError, ValueError):
    """Raised when a caller misuses an operation (empty or oversized input)."""


class ConfigurationError(KnowledgeBaseError):
    """Raised when settings are missing or inconsistent."""


class AuthenticationError(KnowledgeBaseError):
    """Raised when backend credentials cannot be obtained or refreshed."""


class BackendError(KnowledgeBaseError):
    """Raised when the document repository fails to answer a request."""


class DocumentNotFoundError(BackendError):
    """Raised when a document id does not exist in the repository."""

    def __init__(self, document_id: str, message: str | None = None) -> None:
        self.document_id = document_id
        super().__init__(message or f"document not found: {document_id}")


class DocumentAccessError(BackendError):
    """Raised when the repository denies access to a document."""

    def __init__(self, document_id: str, message: str | None = None) -> None:
        self.document_id = document_id
        super().__init__(message or f"permission denied for document: {document_id}")


class NotADocumentError(KnowledgeBaseError):
    """Raised when a read targets a folder instead of a file."""


class ConversionError(KnowledgeBaseError):
    """Raised when document bytes cannot be converted to the requested format."""


class UnknownWorkflowError(KnowledgeBaseError, LookupError):
    """Raised when a prompt workflow name is not registered."""


__all__ = [
    "AuthenticationError",
    "BackendError",
    "ConfigurationError",
    "ConversionError",
    "DocumentAccessError",
    "DocumentNotFoundError",
    "KnowledgeBaseError",
    "NotADocumentError",
    "PreconditionError",
    "UnknownWorkflowError",
]
