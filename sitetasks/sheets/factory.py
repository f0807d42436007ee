"""Spreadsheet backend selection from settings."""
from __future__ import annotations

from sitetasks.config import Settings
from sitetasks.core.exceptions import ConfigurationError
from sitetasks.sheets.backend import SpreadsheetBackend
from sitetasks.sheets.credentials import ServiceAccountTokenProvider
from sitetasks.sheets.google_sheets import GoogleSheetsBackend
from sitetasks.sheets.workbook import WorkbookBackend


def build_backend(settings: Settings) -> SpreadsheetBackend:
    """Create the backend named by SHEETS_BACKEND."""
    mode = settings.SHEETS_BACKEND.strip().lower()
    if mode == "google":
        return GoogleSheetsBackend(
            settings.GOOGLE_SHEET_ID,
            ServiceAccountTokenProvider(settings.GOOGLE_SERVICE_ACCOUNT_KEY),
            api_url=settings.GOOGLE_SHEETS_API_URL,
            timeout=settings.SHEETS_TIMEOUT_SECONDS,
        )
    if mode == "workbook":
        return WorkbookBackend(settings.WORKBOOK_PATH)
    raise ConfigurationError(f"Unknown SHEETS_BACKEND '{settings.SHEETS_BACKEND}' (expected workbook or google)")
