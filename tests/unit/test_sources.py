"""Tests for configuration paths and knowledge-base file loading."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from kbmcp.core.model import CoreDocument
from kbmcp.errors import ConfigurationError
from kbmcp.sources import ConfigPaths, KnowledgeSources
from tests.samples import KB_MAP, write_config

pytestmark = pytest.mark.unit


def test_paths_from_environment(tmp_path: Path) -> None:
    paths = ConfigPaths.from_env(
        {"KBMCP_CONFIG_DIR": str(tmp_path), "KBMCP_CONFIG": str(tmp_path / "x.toml")}
    )
    assert paths.map_path == tmp_path / "kb-map.md"
    assert paths.guide_path == tmp_path / "kb-guide.md"
    assert paths.core_docs_path == tmp_path / "core-docs.json"
    assert paths.token_path == tmp_path / "tokens" / "token.json"
    assert paths.explicit_config == tmp_path / "x.toml"


def test_absent_files_load_as_none(tmp_path: Path) -> None:
    sources = KnowledgeSources(ConfigPaths(config_dir=tmp_path))
    assert sources.load_map() is None
    assert sources.load_guide() is None
    assert sources.load_core_documents() == []


def test_files_are_reread_on_every_load(tmp_path: Path) -> None:
    paths = write_config(tmp_path)
    sources = KnowledgeSources(paths)
    assert sources.load_map() == KB_MAP
    paths.map_path.write_text("## Product\n", encoding="utf-8")
    assert sources.load_map() == "## Product\n"


def test_core_documents_from_wrapped_object(tmp_path: Path) -> None:
    documents = KnowledgeSources(write_config(tmp_path)).load_core_documents()
    assert [doc.id for doc in documents] == ["brand-positioning", "clinical-study"]
    assert documents[0].category == "Brand"


def test_core_documents_from_bare_list(tmp_path: Path) -> None:
    paths = write_config(tmp_path, core_docs=[{"id": "only"}])
    assert KnowledgeSources(paths).load_core_documents() == [
        CoreDocument(id="only", name="only")
    ]


@pytest.mark.parametrize(
    "content",
    ["{not json", json.dumps({"coreDocs": {"id": "x"}}), json.dumps([{"name": "no id"}])],
    ids=["invalid-json", "not-a-list", "missing-id"],
)
def test_malformed_core_documents(tmp_path: Path, content: str) -> None:
    paths = write_config(tmp_path, core_docs=None)
    paths.core_docs_path.write_text(content, encoding="utf-8")
    with pytest.raises(ConfigurationError):
        KnowledgeSources(paths).load_core_documents()
