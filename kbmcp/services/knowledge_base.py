"""Wiring of the catalog, roles, overlay and backend into one object."""

from __future__ import annotations

from collections.abc import Mapping

from ..backend.provider import ClientProvider, drive_backend_factory
from ..core.catalog import CategoryIndex
from ..core.model import CoreDocument
from ..core.overlay import CorrectionGuide
from ..core.roles import RoleResolver
from ..settings import AppSettings
from ..sources import ConfigPaths, KnowledgeSources
from .documents import DocumentExplorer, DocumentReader
from .preload import Preloader


class KnowledgeBase:
    """Everything a tool, resource or workflow needs to serve a request."""

    def __init__(
        self,
        settings: AppSettings,
        sources: KnowledgeSources,
        provider: ClientProvider,
    ) -> None:
        self.settings = settings
        self.sources = sources
        self.provider = provider
        self.index = CategoryIndex(sources.load_map)
        self.roles = RoleResolver(self.index)
        self.guide = CorrectionGuide(sources.load_guide, self.roles)
        self.reader = DocumentReader(provider)
        self.explorer = DocumentExplorer(provider, settings)
        self.preloader = Preloader(self.reader, self.roles, self.guide)

    @classmethod
    def from_settings(
        cls,
        settings: AppSettings,
        paths: ConfigPaths,
        environ: Mapping[str, str] | None = None,
    ) -> KnowledgeBase:
        """Build a knowledge base backed by Google Drive."""
        provider = ClientProvider(drive_backend_factory(settings, paths, environ))
        return cls(settings, KnowledgeSources(paths), provider)

    @property
    def paths(self) -> ConfigPaths:
        return self.sources.paths

    def core_documents(self) -> list[CoreDocument]:
        return self.sources.load_core_documents()

    def catalog_text(self) -> str | None:
        return self.sources.load_map()

    def guide_text(self) -> str | None:
        return self.sources.load_guide()

    def reload(self) -> None:
        """Drop cached catalog and overlay parses."""
        self.roles.reset()
        self.guide.reset()

    async def aclose(self) -> None:
        await self.provider.aclose()


__all__ = ["KnowledgeBase"]
