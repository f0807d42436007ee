"""Service-account credentials for the Google Sheets backend."""
from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path
from typing import Any, Dict, Optional

from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2 import service_account

from sitetasks.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

SHEETS_SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]


def load_service_account_info(key_setting: Optional[str]) -> Dict[str, Any]:
    """Parse GOOGLE_SERVICE_ACCOUNT_KEY, given either as inline JSON or as a key file path."""
    if not key_setting or not key_setting.strip():
        raise ConfigurationError("GOOGLE_SERVICE_ACCOUNT_KEY environment variable is not set")

    content = key_setting.strip()
    if content.startswith("{"):
        try:
            return json.loads(content)
        except json.JSONDecodeError as exc:
            raise ConfigurationError(
                f"Failed to parse GOOGLE_SERVICE_ACCOUNT_KEY as JSON: {exc}. "
                "Make sure you pasted the entire JSON content, not a file path."
            ) from exc

    if content.startswith("./"):
        content = content[2:]
    path = Path(content)
    if not path.is_absolute():
        path = Path.cwd() / path

    if not path.exists():
        if os.environ.get("VERCEL") or os.environ.get("AWS_LAMBDA_FUNCTION_NAME"):
            raise ConfigurationError(
                f"GOOGLE_SERVICE_ACCOUNT_KEY is set to a file path ({key_setting}), but file paths "
                "don't work on serverless platforms. Paste the entire JSON content instead."
            )
        raise ConfigurationError(f"Service account key file not found: {path}")

    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigurationError(f"Cannot read service account key file {path}: {exc}") from exc


class ServiceAccountTokenProvider:
    """Hands out OAuth access tokens for a service account, refreshing on expiry."""

    def __init__(self, key_setting: Optional[str]):
        self._key_setting = key_setting
        self._credentials: Optional[service_account.Credentials] = None
        self._lock = threading.Lock()

    def __call__(self) -> str:
        with self._lock:
            if self._credentials is None:
                info = load_service_account_info(self._key_setting)
                try:
                    self._credentials = service_account.Credentials.from_service_account_info(
                        info, scopes=SHEETS_SCOPES
                    )
                except (ValueError, GoogleAuthError) as exc:
                    raise ConfigurationError(f"Invalid service account key: {exc}") from exc

            if not self._credentials.valid:
                try:
                    self._credentials.refresh(Request())
                except GoogleAuthError as exc:
                    logger.error("Service account token refresh failed: %s", exc)
                    raise ConfigurationError(f"Service account credentials were rejected: {exc}") from exc
            return self._credentials.token
