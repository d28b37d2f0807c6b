"""Tests for settings resolution."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from kbmcp.core.model import OutputFormat
from kbmcp.errors import ConfigurationError
from kbmcp.settings import (
    AppSettings,
    DefaultsSettings,
    WorkflowSettings,
    load_app_settings,
    load_settings,
    settings_from_env,
)
from kbmcp.sources import ConfigPaths

pytestmark = pytest.mark.unit


def test_defaults_without_any_configuration(tmp_path: Path) -> None:
    settings = load_settings(ConfigPaths(config_dir=tmp_path), environ={})
    assert settings.knowledge_base.root_folder_id == ""
    assert settings.mcp.port == 59363
    assert settings.mcp.require_token is False
    assert settings.defaults.max_search_results == 10
    assert settings.defaults.output_format is OutputFormat.MARKDOWN
    assert settings.workflows.brand_name == "Aletha Health"
    assert len(settings.workflows.critical_documents) == 3


def test_json_config_accepts_camel_case_keys(tmp_path: Path) -> None:
    (tmp_path / "config.json").write_text(
        json.dumps(
            {
                "knowledgeBase": {"rootFolderId": " abc ", "type": "shared_drive"},
                "google": {"authType": "oauth", "clientId": "id", "clientSecret": "secret"},
                "defaults": {"maxSearchResults": 80, "outputFormat": "HTML"},
            }
        ),
        encoding="utf-8",
    )
    settings = load_settings(ConfigPaths(config_dir=tmp_path), environ={})
    assert settings.knowledge_base.root_folder_id == "abc"
    assert settings.knowledge_base.type == "shared_drive"
    assert settings.defaults.max_search_results == 50
    assert settings.defaults.output_format is OutputFormat.HTML
    settings.require_drive_access()


def test_toml_config_takes_precedence_over_json(tmp_path: Path) -> None:
    (tmp_path / "config.toml").write_text(
        '[knowledge_base]\nroot_folder_id = "from-toml"\n\n[mcp]\nport = 8123\n',
        encoding="utf-8",
    )
    (tmp_path / "config.json").write_text('{"knowledgeBase": {"rootFolderId": "from-json"}}')
    settings = load_settings(ConfigPaths(config_dir=tmp_path), environ={})
    assert settings.knowledge_base.root_folder_id == "from-toml"
    assert settings.mcp.port == 8123


def test_environment_replaces_config_file(tmp_path: Path) -> None:
    (tmp_path / "config.json").write_text('{"knowledgeBase": {"rootFolderId": "file"}}')
    settings = load_settings(
        ConfigPaths(config_dir=tmp_path),
        environ={"KBMCP_ROOT_FOLDER_ID": "env-root", "KBMCP_MAX_RESULTS": "25"},
    )
    assert settings.knowledge_base.root_folder_id == "env-root"
    assert settings.google.auth_type == "service_account"
    assert settings.defaults.max_search_results == 25


def test_environment_server_overrides_apply_to_file_config(tmp_path: Path) -> None:
    settings = load_settings(
        ConfigPaths(config_dir=tmp_path),
        environ={"KBMCP_PORT": "9000", "KBMCP_TOKEN": "s3cret"},
    )
    assert settings.mcp.port == 9000
    assert settings.mcp.token == "s3cret"
    assert settings.mcp.require_token is True


def test_settings_from_env_requires_root_folder() -> None:
    assert settings_from_env({"KBMCP_CLIENT_ID": "x"}) is None


def test_missing_explicit_config_is_an_error(tmp_path: Path) -> None:
    paths = ConfigPaths(config_dir=tmp_path, explicit_config=tmp_path / "absent.toml")
    with pytest.raises(ConfigurationError, match="Configuration file not found"):
        load_settings(paths, environ={})


def test_invalid_config_is_reported_as_value_error(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text('{"knowledgeBase": {"type": "bucket"}}')
    with pytest.raises(ValueError):
        load_app_settings(path)


@pytest.mark.parametrize(("raw", "expected"), [(None, 10), ("", 10), (0, 10), (-3, 10), ("7", 7), (500, 50)])
def test_max_search_results_is_clamped(raw, expected) -> None:
    assert DefaultsSettings(max_search_results=raw).max_search_results == expected


def test_unknown_output_format_is_rejected() -> None:
    with pytest.raises(ValidationError):
        DefaultsSettings(output_format="pdf")


def test_require_drive_access() -> None:
    with pytest.raises(ConfigurationError, match="root_folder_id"):
        AppSettings().require_drive_access()
    settings = AppSettings(knowledge_base={"root_folder_id": "root"})
    with pytest.raises(ConfigurationError, match="client_id"):
        settings.require_drive_access()
    AppSettings(
        knowledge_base={"root_folder_id": "root"},
        google={"auth_type": "service_account"},
    ).require_drive_access()


def test_author_attribution() -> None:
    assert WorkflowSettings().author_attribution == "Christine Annie, MPT"
    assert WorkflowSettings(author_credentials="").author_attribution == "Christine Annie"
