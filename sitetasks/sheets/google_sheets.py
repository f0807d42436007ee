"""Google Sheets v4 REST backend."""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence
from urllib.parse import quote

import httpx

from sitetasks.core.exceptions import BackendError, BackendNotFound, ConfigurationError, NotFoundError
from sitetasks.sheets.backend import (
    DATA_ROW_LIMIT,
    HEADER_BACKGROUND,
    HEADER_FOREGROUND,
    DropdownRule,
    RowHighlightRule,
    SpreadsheetBackend,
)

logger = logging.getLogger(__name__)


def _color(hex_value: str) -> Dict[str, float]:
    hex_value = hex_value.lstrip("#")
    red, green, blue = (int(hex_value[i : i + 2], 16) / 255 for i in (0, 2, 4))
    return {"red": round(red, 3), "green": round(green, 3), "blue": round(blue, 3)}


def _column_index(letter: str) -> int:
    index = 0
    for char in letter.upper():
        index = index * 26 + (ord(char) - ord("A") + 1)
    return index - 1


def _a1(title: str, cells: str = "") -> str:
    escaped = title.replace("'", "''")
    return f"'{escaped}'!{cells}" if cells else f"'{escaped}'"


class GoogleSheetsBackend(SpreadsheetBackend):
    """Spreadsheet backend talking to the Google Sheets REST API.

    Configuration is checked per call, so a missing sheet id surfaces as a
    failure result of the operation rather than at start-up.
    """

    def __init__(
        self,
        spreadsheet_id: Optional[str],
        token_provider: Callable[[], str],
        *,
        api_url: str = "https://sheets.googleapis.com/v4/spreadsheets",
        timeout: float = 30.0,
        client: Optional[httpx.Client] = None,
    ):
        self.spreadsheet_id = spreadsheet_id
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self._token_provider = token_provider
        self._client = client

    def _base_url(self) -> str:
        if not self.spreadsheet_id:
            raise ConfigurationError("GOOGLE_SHEET_ID environment variable is not set")
        return f"{self.api_url}/{self.spreadsheet_id}"

    def _values_url(self, a1_range: str, suffix: str = "") -> str:
        return f"{self._base_url()}/values/{quote(a1_range, safe='')}{suffix}"

    def _request(self, method: str, url: str, **kwargs: Any) -> Dict[str, Any]:
        headers = {"Authorization": f"Bearer {self._token_provider()}"}
        try:
            if self._client is not None:
                response = self._client.request(method, url, headers=headers, timeout=self.timeout, **kwargs)
            else:
                with httpx.Client() as client:
                    response = client.request(method, url, headers=headers, timeout=self.timeout, **kwargs)
        except httpx.HTTPError as exc:
            logger.error("Google Sheets request %s %s failed: %s", method, url, exc)
            raise BackendError(f"Google Sheets request failed: {exc}") from exc

        if response.status_code >= 400:
            message = self._error_message(response)
            if response.status_code in (403, 404):
                raise BackendNotFound(self.spreadsheet_id, message)
            raise BackendError(f"Google Sheets API error ({response.status_code}): {message}")

        if not response.content:
            return {}
        return response.json()

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            return response.json().get("error", {}).get("message") or response.text
        except ValueError:
            return response.text

    def _batch_update(self, requests: List[Dict[str, Any]]) -> Dict[str, Any]:
        return self._request("POST", f"{self._base_url()}:batchUpdate", json={"requests": requests})

    def _sheet_properties(self) -> List[Dict[str, Any]]:
        data = self._request("GET", self._base_url(), params={"fields": "sheets.properties"})
        return [sheet.get("properties", {}) for sheet in data.get("sheets", [])]

    def _sheet_id(self, title: str) -> int:
        for properties in self._sheet_properties():
            if properties.get("title") == title:
                return properties["sheetId"]
        raise NotFoundError(f"Tab '{title}' does not exist")

    def list_tabs(self) -> List[str]:
        return [properties.get("title", "") for properties in self._sheet_properties()]

    def add_tab(self, title: str) -> None:
        self._batch_update([{"addSheet": {"properties": {"title": title}}}])

    def write_header(self, title: str, headers: Sequence[str]) -> None:
        self.update_row(title, 1, headers)

    def style_header(self, title: str, column_count: int) -> None:
        sheet_id = self._sheet_id(title)
        self._batch_update(
            [
                {
                    "repeatCell": {
                        "range": {
                            "sheetId": sheet_id,
                            "startRowIndex": 0,
                            "endRowIndex": 1,
                            "startColumnIndex": 0,
                            "endColumnIndex": column_count,
                        },
                        "cell": {
                            "userEnteredFormat": {
                                "backgroundColor": _color(HEADER_BACKGROUND),
                                "textFormat": {"foregroundColor": _color(HEADER_FOREGROUND), "bold": True},
                            }
                        },
                        "fields": "userEnteredFormat(backgroundColor,textFormat)",
                    }
                },
                {
                    "updateSheetProperties": {
                        "properties": {"sheetId": sheet_id, "gridProperties": {"frozenRowCount": 1}},
                        "fields": "gridProperties.frozenRowCount",
                    }
                },
            ]
        )

    def add_dropdown(self, title: str, rule: DropdownRule) -> None:
        column = _column_index(rule.column)
        if rule.source_tab:
            source_column = rule.source_column or "A"
            condition = {
                "type": "ONE_OF_RANGE",
                "values": [{"userEnteredValue": f"={_a1(rule.source_tab, f'{source_column}2:{source_column}')}"}],
            }
        else:
            condition = {
                "type": "ONE_OF_LIST",
                "values": [{"userEnteredValue": value} for value in rule.values],
            }
        self._batch_update(
            [
                {
                    "setDataValidation": {
                        "range": {
                            "sheetId": self._sheet_id(title),
                            "startRowIndex": 1,
                            "endRowIndex": DATA_ROW_LIMIT,
                            "startColumnIndex": column,
                            "endColumnIndex": column + 1,
                        },
                        "rule": {"condition": condition, "strict": rule.strict, "showCustomUi": True},
                    }
                }
            ]
        )

    def add_row_highlight(self, title: str, rule: RowHighlightRule, column_count: int) -> None:
        self._batch_update(
            [
                {
                    "addConditionalFormatRule": {
                        "rule": {
                            "ranges": [
                                {
                                    "sheetId": self._sheet_id(title),
                                    "startRowIndex": 1,
                                    "endRowIndex": DATA_ROW_LIMIT,
                                    "startColumnIndex": 0,
                                    "endColumnIndex": column_count,
                                }
                            ],
                            "booleanRule": {
                                "condition": {
                                    "type": "CUSTOM_FORMULA",
                                    "values": [{"userEnteredValue": f'=${rule.column}2="{rule.value}"'}],
                                },
                                "format": {"backgroundColor": _color(rule.color)},
                            },
                        },
                        "index": 0,
                    }
                }
            ]
        )

    def append_rows(self, title: str, rows: Sequence[Sequence[Any]]) -> None:
        self._request(
            "POST",
            self._values_url(_a1(title, "A1"), ":append"),
            params={"valueInputOption": "USER_ENTERED", "insertDataOption": "INSERT_ROWS"},
            json={"values": [list(row) for row in rows]},
        )

    def get_values(self, title: str) -> List[List[Any]]:
        data = self._request(
            "GET",
            self._values_url(_a1(title)),
            params={"valueRenderOption": "FORMATTED_VALUE"},
        )
        return data.get("values", [])

    def update_row(self, title: str, row_number: int, values: Sequence[Any]) -> None:
        self._request(
            "PUT",
            self._values_url(_a1(title, f"A{row_number}")),
            params={"valueInputOption": "USER_ENTERED"},
            json={"values": [list(values)]},
        )
