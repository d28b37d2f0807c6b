"""Shared, lazily created document backend."""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Awaitable, Callable, Mapping

from google.oauth2.credentials import Credentials as UserCredentials

from ..settings import AppSettings
from ..sources import ConfigPaths
from .auth import TokenSource, load_credentials, resolve_token_path
from .base import DocumentBackend
from .drive import DriveBackend

logger = logging.getLogger(__name__)

BackendFactory = Callable[[], Awaitable[DocumentBackend]]


class ClientProvider:
    """Hand out one backend instance, created on first use.

    Concurrent first callers share a single initialisation; a failed
    initialisation is not cached so the next caller retries.
    """

    def __init__(self, factory: BackendFactory) -> None:
        self._factory = factory
        self._backend: DocumentBackend | None = None
        self._lock = asyncio.Lock()

    @classmethod
    def from_backend(cls, backend: DocumentBackend) -> ClientProvider:
        async def factory() -> DocumentBackend:
            return backend

        return cls(factory)

    async def get(self) -> DocumentBackend:
        backend = self._backend
        if backend is not None:
            return backend
        async with self._lock:
            if self._backend is None:
                self._backend = await self._factory()
                logger.debug("Document backend initialised: %s", type(self._backend).__name__)
            return self._backend

    async def aclose(self) -> None:
        backend, self._backend = self._backend, None
        if backend is not None:
            await backend.aclose()


def drive_backend_factory(
    settings: AppSettings,
    paths: ConfigPaths,
    environ: Mapping[str, str] | None = None,
) -> BackendFactory:
    """Return a factory building a :class:`DriveBackend` from ``settings``."""
    env = dict(os.environ if environ is None else environ)

    async def factory() -> DocumentBackend:
        settings.require_drive_access()
        credentials = await asyncio.to_thread(load_credentials, settings, paths.token_path, env)
        token_path = (
            resolve_token_path(settings, paths.token_path)
            if isinstance(credentials, UserCredentials)
            else None
        )
        source = TokenSource(credentials, token_path)
        # Surface refresh failures at acquisition rather than on the first request.
        await source()
        return DriveBackend(settings.knowledge_base, source)

    return factory


__all__ = ["BackendFactory", "ClientProvider", "drive_backend_factory"]
