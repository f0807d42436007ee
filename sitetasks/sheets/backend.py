"""Spreadsheet backend interface shared by the workbook and Google implementations."""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, List, Sequence

# Header styling shared by every tab: dark blue fill, bold white text.
HEADER_BACKGROUND = "336699"
HEADER_FOREGROUND = "FFFFFF"

# Validation and conditional formatting cover data rows 2..DATA_ROW_LIMIT.
DATA_ROW_LIMIT = 5000


@dataclass(frozen=True)
class DropdownRule:
    """Restrict a column's data cells to a list or to the values of a range."""

    column: str
    values: Sequence[str] = ()
    source_tab: str = ""
    source_column: str = ""
    strict: bool = True


@dataclass(frozen=True)
class RowHighlightRule:
    """Tint whole data rows whose cell in ``column`` equals ``value``."""

    column: str
    value: str
    color: str  # RRGGBB


class SpreadsheetBackend(ABC):
    """Minimal tabular operations the sheet store needs from a backend."""

    @abstractmethod
    def list_tabs(self) -> List[str]:
        """Return the titles of all tabs."""

    @abstractmethod
    def add_tab(self, title: str) -> None:
        """Create an empty tab."""

    @abstractmethod
    def write_header(self, title: str, headers: Sequence[str]) -> None:
        """Write ``headers`` into row 1 of the tab."""

    @abstractmethod
    def style_header(self, title: str, column_count: int) -> None:
        """Apply header styling to row 1 and freeze it."""

    @abstractmethod
    def add_dropdown(self, title: str, rule: DropdownRule) -> None:
        """Attach list validation to a column's data cells."""

    @abstractmethod
    def add_row_highlight(self, title: str, rule: RowHighlightRule, column_count: int) -> None:
        """Attach whole-row conditional formatting."""

    @abstractmethod
    def append_rows(self, title: str, rows: Sequence[Sequence[Any]]) -> None:
        """Append rows after the last non-empty row."""

    @abstractmethod
    def get_values(self, title: str) -> List[List[Any]]:
        """Return every row of the tab with formulas evaluated."""

    @abstractmethod
    def update_row(self, title: str, row_number: int, values: Sequence[Any]) -> None:
        """Overwrite one row (1-based) starting at column A."""
