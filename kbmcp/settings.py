"""Typed application settings with Pydantic validation."""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal

import tomllib
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from .core.model import OutputFormat
from .errors import ConfigurationError
from .sources import ConfigPaths

logger = logging.getLogger(__name__)

DEFAULT_MAX_SEARCH_RESULTS = 10
MAX_SEARCH_RESULTS_LIMIT = 50
DEFAULT_REDIRECT_URI = "http://localhost:3000/oauth/callback"
DEFAULT_MCP_PORT = 59363

ENV_PREFIX = "KBMCP_"


class _SettingsModel(BaseModel):
    # ``config.json`` files use camelCase keys; TOML files use snake_case.
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
    )


class KnowledgeBaseSettings(_SettingsModel):
    """Where the knowledge base lives in Google Drive."""

    root_folder_id: str = ""
    root_folder_name: str = "Knowledge Base"
    type: Literal["folder", "shared_drive"] = "folder"

    @field_validator("root_folder_id", "root_folder_name", mode="before")
    @classmethod
    def _strip(cls, value: str | None) -> str:
        if value is None:
            return ""
        return str(value).strip()


class ServiceAccountKey(_SettingsModel):
    """Inline service-account key material."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    client_email: str
    private_key: str
    project_id: str | None = None


class GoogleSettings(_SettingsModel):
    """Credentials used to reach the Drive API."""

    auth_type: Literal["oauth", "service_account"] = "oauth"
    client_id: str | None = None
    client_secret: str | None = None
    redirect_uri: str = DEFAULT_REDIRECT_URI
    service_account: ServiceAccountKey | None = None
    service_account_key_file: str | None = None
    token_file: str | None = None

    @field_validator(
        "client_id",
        "client_secret",
        "service_account_key_file",
        "token_file",
        mode="before",
    )
    @classmethod
    def _empty_to_none(cls, value: str | Path | None) -> str | None:
        """Convert empty strings to ``None``."""
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @field_validator("redirect_uri", mode="before")
    @classmethod
    def _default_redirect(cls, value: str | None) -> str:
        if value is None:
            return DEFAULT_REDIRECT_URI
        text = str(value).strip()
        return text or DEFAULT_REDIRECT_URI


class DefaultsSettings(_SettingsModel):
    """Defaults applied when a tool call omits an argument."""

    max_search_results: int = DEFAULT_MAX_SEARCH_RESULTS
    output_format: OutputFormat = OutputFormat.MARKDOWN

    @field_validator("max_search_results", mode="before")
    @classmethod
    def _normalize_max_search_results(cls, value: int | str | None) -> int:
        """Coerce ``value`` into the supported result window."""
        if value is None:
            return DEFAULT_MAX_SEARCH_RESULTS
        if isinstance(value, str):
            raw = value.strip()
            if not raw:
                return DEFAULT_MAX_SEARCH_RESULTS
            try:
                parsed = int(raw)
            except ValueError:  # pragma: no cover - delegated to Pydantic
                return value
        else:
            if isinstance(value, bool):
                raise TypeError("Boolean is not a valid max_search_results")
            parsed = int(value)
        if parsed <= 0:
            return DEFAULT_MAX_SEARCH_RESULTS
        return min(parsed, MAX_SEARCH_RESULTS_LIMIT)

    @field_validator("output_format", mode="before")
    @classmethod
    def _normalize_output_format(cls, value: OutputFormat | str | None) -> OutputFormat:
        return OutputFormat.coerce(value, OutputFormat.MARKDOWN)


class MCPSettings(_SettingsModel):
    """Settings for the HTTP server."""

    host: str = "127.0.0.1"
    port: int = DEFAULT_MCP_PORT
    log_dir: str | None = None
    require_token: bool = False
    token: str = ""

    @field_validator("log_dir", mode="before")
    @classmethod
    def _normalize_log_dir(cls, value: str | Path | None) -> str | None:
        """Convert empty strings to ``None`` and normalise paths."""
        if value is None:
            return None
        text = str(value).strip()
        return text or None


class CriticalDocument(_SettingsModel):
    """A document every content workflow preloads."""

    id: str
    name: str


def _default_critical_documents() -> list[CriticalDocument]:
    return [
        CriticalDocument(id="1LZ-4x4ZPdTthGGf8RV67Mt68wXUsUj_4", name="Brand Positioning"),
        CriticalDocument(id="1Wi_ol-uuYkHLJm9ieaHiMFzDFUW5weuP", name="Writing Guidelines"),
        CriticalDocument(id="1LwOyI8-rIBQMrRDZ4mKcStNdJWb6fx2n", name="Quick Claims Reference"),
    ]


class WorkflowSettings(_SettingsModel):
    """Vocabulary and preload set used by the content workflows."""

    brand_name: str = "Aletha Health"
    website_url: str = "https://alethahealth.com"
    critical_documents: list[CriticalDocument] = Field(
        default_factory=_default_critical_documents
    )
    product_names: list[str] = Field(
        default_factory=lambda: ["Hip Hook Mark", "Range", "Orbit", "Band"]
    )
    author_name: str = "Christine Annie"
    author_credentials: str = "MPT"
    author_title: str = "Physical Therapist"
    author_experience_years: int = 25

    @property
    def critical_ids(self) -> list[str]:
        return [doc.id for doc in self.critical_documents]

    @property
    def author_attribution(self) -> str:
        if not self.author_credentials:
            return self.author_name
        return f"{self.author_name}, {self.author_credentials}"


class AppSettings(_SettingsModel):
    """Aggregate settings for the application."""

    knowledge_base: KnowledgeBaseSettings = Field(default_factory=KnowledgeBaseSettings)
    google: GoogleSettings = Field(default_factory=GoogleSettings)
    defaults: DefaultsSettings = Field(default_factory=DefaultsSettings)
    mcp: MCPSettings = Field(default_factory=MCPSettings)
    workflows: WorkflowSettings = Field(default_factory=WorkflowSettings)

    def to_dict(self) -> dict:
        """Return settings as a plain dictionary."""
        return self.model_dump()

    def require_drive_access(self) -> None:
        """Raise :class:`ConfigurationError` when Drive cannot be reached."""
        if not self.knowledge_base.root_folder_id:
            raise ConfigurationError("knowledge_base.root_folder_id is required")
        google = self.google
        if google.auth_type == "oauth" and not (google.client_id and google.client_secret):
            raise ConfigurationError(
                "google.client_id and google.client_secret are required for OAuth authentication"
            )


def load_app_settings(path: str | Path) -> AppSettings:
    """Load :class:`AppSettings` from *path* with validation.

    Format is detected by file extension: ``.toml`` uses :mod:`tomllib`,
    everything else is treated as JSON.  Any validation errors are wrapped into
    :class:`ValueError` with a human-friendly message.
    """
    p = Path(path)
    with p.open("rb") as fh:
        data = tomllib.load(fh) if p.suffix.lower() == ".toml" else json.load(fh)
    try:
        return AppSettings.model_validate(data)
    except ValidationError as exc:
        raise ValueError(str(exc)) from exc


def _env(environ: Mapping[str, str], name: str) -> str | None:
    value = environ.get(ENV_PREFIX + name)
    if value is None:
        return None
    value = value.strip()
    return value or None


def settings_from_env(environ: Mapping[str, str] | None = None) -> AppSettings | None:
    """Build settings from ``KBMCP_*`` variables.

    Returns ``None`` unless ``KBMCP_ROOT_FOLDER_ID`` is set, in which case the
    environment is the whole configuration and no file is consulted.
    """
    env = os.environ if environ is None else environ
    root_folder_id = _env(env, "ROOT_FOLDER_ID")
    if root_folder_id is None:
        return None
    data: dict[str, Any] = {
        "knowledge_base": {
            "root_folder_id": root_folder_id,
            "root_folder_name": _env(env, "ROOT_FOLDER_NAME") or "Knowledge Base",
            "type": _env(env, "FOLDER_TYPE") or "folder",
        },
        "google": {
            "auth_type": _env(env, "AUTH_TYPE") or "service_account",
            "client_id": _env(env, "CLIENT_ID"),
            "client_secret": _env(env, "CLIENT_SECRET"),
            "redirect_uri": _env(env, "REDIRECT_URI"),
        },
        "defaults": {
            "max_search_results": _env(env, "MAX_RESULTS"),
            "output_format": _env(env, "OUTPUT_FORMAT"),
        },
        "mcp": _mcp_overrides(env),
    }
    try:
        return AppSettings.model_validate(data)
    except ValidationError as exc:
        raise ValueError(str(exc)) from exc


def _mcp_overrides(env: Mapping[str, str]) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    host = _env(env, "HOST")
    if host:
        overrides["host"] = host
    port = _env(env, "PORT")
    if port:
        overrides["port"] = port
    token = _env(env, "TOKEN")
    if token:
        overrides["token"] = token
        overrides["require_token"] = True
    log_dir = _env(env, "LOG_DIR")
    if log_dir:
        overrides["log_dir"] = log_dir
    return overrides


def load_settings(
    paths: ConfigPaths | None = None,
    environ: Mapping[str, str] | None = None,
) -> AppSettings:
    """Resolve settings from the environment, then the config file.

    A missing config file is not an error: defaults are returned and any
    Drive access later fails with :class:`ConfigurationError`.
    """
    env = os.environ if environ is None else environ
    from_env = settings_from_env(env)
    if from_env is not None:
        logger.debug("Using configuration from %sROOT_FOLDER_ID environment", ENV_PREFIX)
        return from_env
    paths = paths or ConfigPaths.from_env(env)
    config_file = paths.config_file()
    if config_file is None:
        logger.info("No configuration file found in %s; using defaults", paths.config_dir)
        settings = AppSettings()
    else:
        logger.debug("Loading configuration from %s", config_file)
        settings = load_app_settings(config_file)
    overrides = _mcp_overrides(env)
    if overrides:
        settings.mcp = MCPSettings.model_validate({**settings.mcp.model_dump(), **overrides})
    return settings


__all__ = [
    "AppSettings",
    "CriticalDocument",
    "DefaultsSettings",
    "GoogleSettings",
    "KnowledgeBaseSettings",
    "MCPSettings",
    "MAX_SEARCH_RESULTS_LIMIT",
    "ServiceAccountKey",
    "WorkflowSettings",
    "load_app_settings",
    "load_settings",
    "settings_from_env",
]
