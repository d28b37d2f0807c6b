"""Pytest configuration for the kbmcp test suite."""

from __future__ import annotations

import os
import tempfile
from collections.abc import Callable
from pathlib import Path

import pytest

from kbmcp.backend.provider import ClientProvider
from kbmcp.log import LOG_DIR_ENV
from kbmcp.services.knowledge_base import KnowledgeBase
from kbmcp.settings import AppSettings
from kbmcp.sources import ConfigPaths, KnowledgeSources
from tests.fakes import FakeBackend
from tests.samples import sample_backend, sample_settings, write_config

# Keep log files out of the user's home directory.
os.environ.setdefault(LOG_DIR_ENV, tempfile.mkdtemp(prefix="kbmcp-test-logs-"))


@pytest.fixture
def config_paths(tmp_path: Path) -> ConfigPaths:
    return write_config(tmp_path / "config")


@pytest.fixture
def backend() -> FakeBackend:
    return sample_backend()


KnowledgeBaseFactory = Callable[..., KnowledgeBase]


@pytest.fixture
def make_kb(config_paths: ConfigPaths, backend: FakeBackend) -> KnowledgeBaseFactory:
    """Build a knowledge base over the fake backend and the sample config."""

    def factory(
        *,
        paths: ConfigPaths | None = None,
        fake: FakeBackend | None = None,
        settings: AppSettings | None = None,
        provider: ClientProvider | None = None,
    ) -> KnowledgeBase:
        return KnowledgeBase(
            settings or sample_settings(),
            KnowledgeSources(paths or config_paths),
            provider or ClientProvider.from_backend(fake or backend),
        )

    return factory


@pytest.fixture
def kb(make_kb: KnowledgeBaseFactory) -> KnowledgeBase:
    return make_kb()
