"""Google credential loading for the Drive backend."""

from __future__ import annotations

import asyncio
import base64
import binascii
import json
import logging
import os
import threading
from collections.abc import Mapping
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import google.auth.exceptions
from google.auth.credentials import Credentials as BaseCredentials
from google.auth.transport.requests import Request
from google.oauth2 import service_account
from google.oauth2.credentials import Credentials as UserCredentials
from google_auth_oauthlib.flow import InstalledAppFlow

from ..errors import AuthenticationError, ConfigurationError
from ..settings import AppSettings

logger = logging.getLogger(__name__)

DRIVE_SCOPES = [
    "https://www.googleapis.com/auth/drive.readonly",
    "https://www.googleapis.com/auth/drive.metadata.readonly",
]
TOKEN_URI = "https://oauth2.googleapis.com/token"
REAUTH_HINT = "Please re-authenticate using: kbmcp auth"


def _parse_key(raw: str, source: str, *, allow_plain_json: bool = True) -> dict[str, Any]:
    """Decode a service-account key given as JSON or base64-encoded JSON."""
    if allow_plain_json:
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            data = None
        if isinstance(data, dict):
            return data
    try:
        decoded = base64.b64decode(raw, validate=False).decode("utf-8")
        data = json.loads(decoded)
    except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError) as exc:
        kind = "JSON or base64-encoded JSON" if allow_plain_json else "base64-encoded JSON"
        raise ConfigurationError(f"{source} is not valid {kind}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"{source} does not contain a JSON object")
    return data


def _read_key_file(path: str, source: str) -> dict[str, Any]:
    key_path = Path(path).expanduser()
    try:
        data = json.loads(key_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigurationError(f"{source} file not found or invalid: {key_path}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"{source} file not found or invalid: {key_path}")
    return data


def _is_complete(info: Mapping[str, Any]) -> bool:
    return bool(info.get("client_email") and info.get("private_key"))


def load_service_account_info(
    settings: AppSettings,
    environ: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """Return service-account key material from the first configured source.

    Sources are tried in order: ``KBMCP_SERVICE_ACCOUNT_KEY`` (JSON or
    base64), the inline ``google.service_account`` table, the
    ``google.service_account_key_file`` path, ``GOOGLE_SERVICE_ACCOUNT_KEY``
    (base64) and ``GOOGLE_APPLICATION_CREDENTIALS`` (path).
    """
    env = os.environ if environ is None else environ
    google_cfg = settings.google

    raw = env.get("KBMCP_SERVICE_ACCOUNT_KEY")
    if raw:
        info = _parse_key(raw, "KBMCP_SERVICE_ACCOUNT_KEY")
        if _is_complete(info):
            return info
    if google_cfg.service_account is not None:
        info = google_cfg.service_account.model_dump(exclude_none=True)
        if _is_complete(info):
            return info
    if google_cfg.service_account_key_file:
        info = _read_key_file(google_cfg.service_account_key_file, "Service account key")
        if _is_complete(info):
            return info
        raise ConfigurationError(
            f"Service account key file not found or invalid: {google_cfg.service_account_key_file}"
        )
    raw = env.get("GOOGLE_SERVICE_ACCOUNT_KEY")
    if raw:
        info = _parse_key(raw, "GOOGLE_SERVICE_ACCOUNT_KEY", allow_plain_json=False)
        if _is_complete(info):
            return info
    path = env.get("GOOGLE_APPLICATION_CREDENTIALS")
    if path:
        info = _read_key_file(path, "GOOGLE_APPLICATION_CREDENTIALS")
        if _is_complete(info):
            return info
        raise ConfigurationError(f"GOOGLE_APPLICATION_CREDENTIALS file not found or invalid: {path}")
    raise ConfigurationError(
        "No service account credentials found. Provide one of: "
        "KBMCP_SERVICE_ACCOUNT_KEY env var, google.service_account in config, "
        "google.service_account_key_file path, GOOGLE_SERVICE_ACCOUNT_KEY (base64), "
        "or GOOGLE_APPLICATION_CREDENTIALS (path)"
    )


def resolve_token_path(settings: AppSettings, default: Path) -> Path:
    """Return where OAuth user tokens are stored."""
    if settings.google.token_file:
        return Path(settings.google.token_file).expanduser()
    return default


def load_credentials(
    settings: AppSettings,
    token_path: Path,
    environ: Mapping[str, str] | None = None,
) -> BaseCredentials:
    """Return Drive credentials for the configured authentication type."""
    if settings.google.auth_type == "service_account":
        info = dict(load_service_account_info(settings, environ))
        info.setdefault("token_uri", TOKEN_URI)
        try:
            return service_account.Credentials.from_service_account_info(
                info, scopes=DRIVE_SCOPES
            )
        except ValueError as exc:
            raise AuthenticationError(f"Invalid service account key: {exc}") from exc

    path = resolve_token_path(settings, token_path)
    if not path.is_file():
        raise AuthenticationError(f"No authentication tokens found. {REAUTH_HINT}")
    try:
        return UserCredentials.from_authorized_user_file(str(path), DRIVE_SCOPES)
    except ValueError as exc:
        raise AuthenticationError(f"Stored tokens at {path} are invalid. {REAUTH_HINT}") from exc


def save_user_credentials(credentials: UserCredentials, token_path: Path) -> None:
    token_path.parent.mkdir(parents=True, exist_ok=True)
    token_path.write_text(credentials.to_json(), encoding="utf-8")
    try:
        token_path.chmod(0o600)
    except OSError:  # pragma: no cover - platform dependent
        logger.debug("Could not restrict permissions on %s", token_path)


class TokenSource:
    """Hand out fresh access tokens from google-auth credentials.

    Refreshed user tokens are written back to ``token_path`` so the next
    start does not need another round trip.
    """

    def __init__(self, credentials: BaseCredentials, token_path: Path | None = None) -> None:
        self._credentials = credentials
        self._token_path = token_path
        self._lock = threading.Lock()

    def token(self) -> str:
        with self._lock:
            credentials = self._credentials
            if not credentials.valid:
                try:
                    credentials.refresh(Request())
                except google.auth.exceptions.RefreshError as exc:
                    raise AuthenticationError(
                        f"Failed to refresh access token. {REAUTH_HINT}"
                    ) from exc
                except google.auth.exceptions.TransportError as exc:
                    raise AuthenticationError(f"Token refresh failed: {exc}") from exc
                if isinstance(credentials, UserCredentials) and self._token_path is not None:
                    save_user_credentials(credentials, self._token_path)
            return credentials.token

    async def __call__(self) -> str:
        return await asyncio.to_thread(self.token)


def run_oauth_flow(settings: AppSettings, token_path: Path, *, open_browser: bool = True) -> UserCredentials:
    """Run the installed-app consent flow and store the resulting tokens."""
    google_cfg = settings.google
    if not google_cfg.client_id or not google_cfg.client_secret:
        raise ConfigurationError(
            "google.client_id and google.client_secret are required for OAuth authentication"
        )
    client_config = {
        "installed": {
            "client_id": google_cfg.client_id,
            "client_secret": google_cfg.client_secret,
            "auth_uri": "https://accounts.google.com/o/oauth2/auth",
            "token_uri": TOKEN_URI,
            "redirect_uris": [google_cfg.redirect_uri],
        }
    }
    flow = InstalledAppFlow.from_client_config(client_config, scopes=DRIVE_SCOPES)
    credentials = flow.run_local_server(
        port=_redirect_port(google_cfg.redirect_uri),
        open_browser=open_browser,
        access_type="offline",
        prompt="consent",
    )
    save_user_credentials(credentials, token_path)
    logger.info("Stored OAuth tokens at %s", token_path)
    return credentials


def _redirect_port(redirect_uri: str) -> int:
    port = urlparse(redirect_uri).port
    return port or 3000


__all__ = [
    "DRIVE_SCOPES",
    "TokenSource",
    "load_credentials",
    "load_service_account_info",
    "resolve_token_path",
    "run_oauth_flow",
    "save_user_credentials",
]
