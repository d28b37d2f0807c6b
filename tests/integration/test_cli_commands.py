"""Tests for the kbmcp command line."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from kbmcp import __version__
from kbmcp.cli.main import main
from tests.samples import BRAND_ID, CLINICAL_ID, KB_MAP, write_config

pytestmark = pytest.mark.integration


def run_cli(config_dir: Path, *argv: str) -> int:
    return main(["--config-dir", str(config_dir), *argv])


@pytest.fixture
def config_dir(tmp_path: Path) -> Path:
    return write_config(tmp_path / "config").config_dir


def test_version(capsys) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["--version"])
    assert excinfo.value.code == 0
    assert __version__ in capsys.readouterr().out


def test_role_of_listed_document(config_dir: Path, capsys) -> None:
    assert run_cli(config_dir, "role", CLINICAL_ID) == 0
    data = json.loads(capsys.readouterr().out)
    assert data == {
        "id": CLINICAL_ID,
        "category": "Clinical & Research",
        "label": "REFERENCE — CITE ACCURATELY",
        "instruction": "Use exact claims from this document. Never fabricate or paraphrase medical claims.",
    }


def test_role_of_unlisted_document(config_dir: Path, capsys) -> None:
    assert run_cli(config_dir, "role", "budget-2024") == 0
    data = json.loads(capsys.readouterr().out)
    assert data["category"] == "Finance"
    assert data["label"] is None


def test_prompt_list(config_dir: Path, capsys) -> None:
    assert run_cli(config_dir, "prompt", "--list") == 0
    out = capsys.readouterr().out.splitlines()
    assert out[0].startswith("orientation (task_context): ")
    assert out[2].startswith("guide-creation (topic, guide_type): ")


def test_prompt_orientation_offline(config_dir: Path, capsys) -> None:
    assert run_cli(config_dir, "prompt", "orientation", "--offline") == 0
    out = capsys.readouterr().out
    assert KB_MAP.strip() in out
    assert "## Known Corrections" in out


def test_prompt_marketing_offline_lists_documents(config_dir: Path, capsys) -> None:
    code = run_cli(config_dir, "prompt", "marketing-creation", "--offline", "--arg", "task=launch email")
    assert code == 0
    out = capsys.readouterr().out
    assert "Pre-loading failed." in out
    assert "## Current Task\nlaunch email" in out


@pytest.mark.parametrize(
    "argv",
    [("prompt",), ("prompt", "poem"), ("prompt", "orientation", "--arg", "no-equals")],
    ids=["missing-name", "unknown", "bad-arg"],
)
def test_prompt_usage_errors(config_dir: Path, capsys, argv) -> None:
    assert run_cli(config_dir, *argv) == 2
    assert capsys.readouterr().out.strip()


def test_check_reports_problems(config_dir: Path, capsys) -> None:
    assert run_cli(config_dir, "check") == 1
    data = json.loads(capsys.readouterr().out)
    assert data["categories"] == {
        "Brand & Marketing": 3,
        "Clinical & Research": 1,
        "Topic Articles & Blog Content": 1,
        "Finance": 1,
    }
    assert data["categories_without_role"] == ["Finance"]
    assert data["guide"]["unmatched_sections"] == ["Retired Section"]
    assert data["core_documents"] == 2
    assert "knowledge_base.root_folder_id is required" in data["problems"]
    assert "guide section 'Retired Section' matches no map category" in data["problems"]


def test_check_passes_on_consistent_configuration(tmp_path: Path, capsys) -> None:
    config_dir = write_config(
        tmp_path / "good",
        kb_guide="## Global\nNever promise a cure.\n\n## Product\nUse exact names.\n",
        kb_map="## Product\n- **Manual** (id: `manual`)\n",
    ).config_dir
    (config_dir / "config.json").write_text(
        json.dumps({"knowledgeBase": {"rootFolderId": "root"}, "google": {"authType": "service_account"}}),
        encoding="utf-8",
    )
    assert run_cli(config_dir, "check") == 0
    data = json.loads(capsys.readouterr().out)
    assert data["problems"] == []
    assert data["auth_type"] == "service_account"
    assert data["guide"] == {"global": True, "sections": ["Product"], "unmatched_sections": []}


def test_invalid_configuration(tmp_path: Path, capsys) -> None:
    config_dir = tmp_path / "bad"
    config_dir.mkdir()
    (config_dir / "config.json").write_text('{"mcp": {"port": "not-a-port"}}', encoding="utf-8")
    assert run_cli(config_dir, "role", BRAND_ID) == 2
    assert "invalid configuration" in capsys.readouterr().err


def test_auth_without_client_credentials(config_dir: Path, capsys) -> None:
    assert run_cli(config_dir, "auth", "--no-browser") == 1
    assert "client_id" in capsys.readouterr().out
