"""Document repository backends."""

from .base import DocumentBackend, RawContent
from .provider import ClientProvider, drive_backend_factory

__all__ = ["ClientProvider", "DocumentBackend", "RawContent", "drive_backend_factory"]
