"""Local .xlsx spreadsheet backend built on openpyxl."""
from __future__ import annotations

import threading
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Any, Callable, Iterator, List, Optional, Sequence

from openpyxl import Workbook, load_workbook
from openpyxl.formatting.rule import FormulaRule
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.datavalidation import DataValidation

from sitetasks.core.exceptions import BackendError, NotFoundError, ValidationError
from sitetasks.sheets.backend import (
    DATA_ROW_LIMIT,
    HEADER_BACKGROUND,
    HEADER_FOREGROUND,
    DropdownRule,
    RowHighlightRule,
    SpreadsheetBackend,
)
from sitetasks.sheets.formulas import DAYS_OLD_FORMULA, evaluate_days_old


class WorkbookBackend(SpreadsheetBackend):
    """Spreadsheet backend persisted to a single workbook file.

    The file is loaded and saved on every operation, so external edits
    (for example in Excel) are picked up between requests. The Days Old
    formula is evaluated on read, as a spreadsheet application would.
    """

    HEADER_FILL = PatternFill(start_color=HEADER_BACKGROUND, end_color=HEADER_BACKGROUND, fill_type="solid")
    HEADER_FONT = Font(color=HEADER_FOREGROUND, bold=True)
    HEADER_ALIGNMENT = Alignment(horizontal="center", vertical="center", wrap_text=True)

    def __init__(self, path: str | Path, *, today: Optional[Callable[[], date]] = None):
        self.path = Path(path)
        self._today = today
        self._lock = threading.RLock()

    def _load(self) -> Workbook:
        if self.path.exists():
            try:
                return load_workbook(self.path)
            except (OSError, KeyError, ValueError) as exc:
                raise BackendError(f"Cannot open workbook {self.path}: {exc}") from exc
        workbook = Workbook()
        workbook.remove(workbook.active)
        return workbook

    @contextmanager
    def _edit(self) -> Iterator[Workbook]:
        with self._lock:
            workbook = self._load()
            yield workbook
            self.path.parent.mkdir(parents=True, exist_ok=True)
            workbook.save(self.path)

    @staticmethod
    def _sheet(workbook: Workbook, title: str):
        if title not in workbook.sheetnames:
            raise NotFoundError(f"Tab '{title}' does not exist")
        return workbook[title]

    @staticmethod
    def _last_row(sheet) -> int:
        row = sheet.max_row
        while row > 1 and all(cell.value in (None, "") for cell in sheet[row]):
            row -= 1
        if row == 1 and all(cell.value in (None, "") for cell in sheet[1]):
            return 0
        return row

    def list_tabs(self) -> List[str]:
        with self._lock:
            if not self.path.exists():
                return []
            return list(self._load().sheetnames)

    def add_tab(self, title: str) -> None:
        with self._edit() as workbook:
            if title.casefold() in {name.casefold() for name in workbook.sheetnames}:
                raise BackendError(f"A tab named '{title}' already exists")
            try:
                workbook.create_sheet(title)
            except ValueError as exc:
                raise ValidationError(f"Invalid tab name '{title}': {exc}") from exc

    def write_header(self, title: str, headers: Sequence[str]) -> None:
        with self._edit() as workbook:
            sheet = self._sheet(workbook, title)
            for col_idx, header in enumerate(headers, start=1):
                sheet.cell(row=1, column=col_idx, value=header)

    def style_header(self, title: str, column_count: int) -> None:
        with self._edit() as workbook:
            sheet = self._sheet(workbook, title)
            for col_idx in range(1, column_count + 1):
                cell = sheet.cell(row=1, column=col_idx)
                cell.fill = self.HEADER_FILL
                cell.font = self.HEADER_FONT
                cell.alignment = self.HEADER_ALIGNMENT
                sheet.column_dimensions[get_column_letter(col_idx)].width = 18
            sheet.freeze_panes = "A2"

    def add_dropdown(self, title: str, rule: DropdownRule) -> None:
        if rule.source_tab:
            column = rule.source_column or "A"
            formula = f"'{rule.source_tab}'!${column}$2:${column}${DATA_ROW_LIMIT}"
        else:
            formula = '"{}"'.format(",".join(rule.values))
        validation = DataValidation(
            type="list",
            formula1=formula,
            allow_blank=True,
            showErrorMessage=rule.strict,
        )
        with self._edit() as workbook:
            sheet = self._sheet(workbook, title)
            sheet.add_data_validation(validation)
            validation.add(f"{rule.column}2:{rule.column}{DATA_ROW_LIMIT}")

    def add_row_highlight(self, title: str, rule: RowHighlightRule, column_count: int) -> None:
        fill = PatternFill(start_color=rule.color, end_color=rule.color, fill_type="solid")
        cell_range = f"A2:{get_column_letter(column_count)}{DATA_ROW_LIMIT}"
        with self._edit() as workbook:
            sheet = self._sheet(workbook, title)
            sheet.conditional_formatting.add(
                cell_range,
                FormulaRule(formula=[f'${rule.column}2="{rule.value}"'], fill=fill),
            )

    def append_rows(self, title: str, rows: Sequence[Sequence[Any]]) -> None:
        with self._edit() as workbook:
            sheet = self._sheet(workbook, title)
            next_row = self._last_row(sheet) + 1
            for offset, values in enumerate(rows):
                for col_idx, value in enumerate(values, start=1):
                    sheet.cell(row=next_row + offset, column=col_idx, value=value)

    def get_values(self, title: str) -> List[List[Any]]:
        with self._lock:
            if not self.path.exists():
                raise NotFoundError(f"Tab '{title}' does not exist")
            sheet = self._sheet(self._load(), title)
            rows: List[List[Any]] = []
            for raw in sheet.iter_rows(values_only=True):
                values = list(raw)
                while values and values[-1] in (None, ""):
                    values.pop()
                rows.append([self._evaluate(value, values) for value in values])
            while rows and not rows[-1]:
                rows.pop()
            return rows

    def update_row(self, title: str, row_number: int, values: Sequence[Any]) -> None:
        if row_number < 1:
            raise BackendError(f"Invalid row number: {row_number}")
        with self._edit() as workbook:
            sheet = self._sheet(workbook, title)
            for col_idx, value in enumerate(values, start=1):
                sheet.cell(row=row_number, column=col_idx, value=value)

    def _evaluate(self, value: Any, row: Sequence[Any]) -> Any:
        if value == DAYS_OLD_FORMULA:
            today = self._today() if self._today else None
            return evaluate_days_old(row[0] if row else None, today)
        return value
