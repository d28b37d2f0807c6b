"""Locations and loaders for operator-maintained knowledge-base files."""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from .core.model import CoreDocument
from .errors import ConfigurationError

logger = logging.getLogger(__name__)

CONFIG_DIR_ENV = "KBMCP_CONFIG_DIR"
CONFIG_FILE_ENV = "KBMCP_CONFIG"
DEFAULT_CONFIG_DIR = Path.home() / ".config" / "kbmcp"

MAP_FILENAME = "kb-map.md"
GUIDE_FILENAME = "kb-guide.md"
CORE_DOCS_FILENAME = "core-docs.json"
TOKEN_FILENAME = "token.json"
CONFIG_FILENAMES = ("config.toml", "config.json")


@dataclass(frozen=True, slots=True)
class ConfigPaths:
    """Paths of every file kept in the configuration directory."""

    config_dir: Path
    explicit_config: Path | None = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ConfigPaths:
        env = os.environ if environ is None else environ
        directory = env.get(CONFIG_DIR_ENV)
        config_dir = Path(directory).expanduser() if directory else DEFAULT_CONFIG_DIR
        explicit = env.get(CONFIG_FILE_ENV)
        return cls(
            config_dir=config_dir,
            explicit_config=Path(explicit).expanduser() if explicit else None,
        )

    def config_file(self) -> Path | None:
        """Return the configuration file to load, if any exists."""
        if self.explicit_config is not None:
            if not self.explicit_config.is_file():
                raise ConfigurationError(
                    f"Configuration file not found at {self.explicit_config}"
                )
            return self.explicit_config
        for name in CONFIG_FILENAMES:
            candidate = self.config_dir / name
            if candidate.is_file():
                return candidate
        return None

    @property
    def map_path(self) -> Path:
        return self.config_dir / MAP_FILENAME

    @property
    def guide_path(self) -> Path:
        return self.config_dir / GUIDE_FILENAME

    @property
    def core_docs_path(self) -> Path:
        return self.config_dir / CORE_DOCS_FILENAME

    @property
    def tokens_dir(self) -> Path:
        return self.config_dir / "tokens"

    @property
    def token_path(self) -> Path:
        return self.tokens_dir / TOKEN_FILENAME


def _read_optional(path: Path) -> str | None:
    if not path.is_file():
        return None
    return path.read_text(encoding="utf-8")


class KnowledgeSources:
    """Read the map, guide and core-document list from ``paths``.

    Absent files yield ``None`` (or an empty list); every read goes to disk
    so a ``reset`` on the consumers picks up edits.
    """

    def __init__(self, paths: ConfigPaths) -> None:
        self.paths = paths

    def load_map(self) -> str | None:
        return _read_optional(self.paths.map_path)

    def load_guide(self) -> str | None:
        return _read_optional(self.paths.guide_path)

    def load_core_documents(self) -> list[CoreDocument]:
        """Return the curated core documents, ``[]`` when none are configured."""
        text = _read_optional(self.paths.core_docs_path)
        if text is None:
            logger.info("No %s found; core document list is empty", CORE_DOCS_FILENAME)
            return []
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ConfigurationError(
                f"{self.paths.core_docs_path} is not valid JSON: {exc}"
            ) from exc
        entries = data.get("coreDocs", []) if isinstance(data, Mapping) else data
        if not isinstance(entries, list):
            raise ConfigurationError(f"{self.paths.core_docs_path}: coreDocs must be a list")
        documents: list[CoreDocument] = []
        for raw in entries:
            try:
                documents.append(CoreDocument.from_mapping(raw))
            except ValueError as exc:
                raise ConfigurationError(
                    f"{self.paths.core_docs_path}: {exc}"
                ) from exc
        return documents


__all__ = [
    "CONFIG_DIR_ENV",
    "CONFIG_FILE_ENV",
    "ConfigPaths",
    "KnowledgeSources",
]
