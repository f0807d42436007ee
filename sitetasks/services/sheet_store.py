"""Spreadsheet-backed store for tasks and contractors."""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from sitetasks.core.exceptions import (
    ConflictError,
    NotFoundError,
    PartialWriteError,
    ValidationError,
)
from sitetasks.models.contractor import CONTRACTOR_HEADERS, Contractor, ContractorColumn
from sitetasks.models.task import (
    EDITABLE_FIELDS,
    TASK_HEADERS,
    Task,
    TaskColumn,
    TaskPriority,
    TaskStatus,
    map_header_row,
)
from sitetasks.sheets.backend import DropdownRule, RowHighlightRule, SpreadsheetBackend
from sitetasks.sheets.formulas import DAYS_OLD_FORMULA

logger = logging.getLogger(__name__)

MASTER_TAB = "Master Tasks"
CONTRACTORS_TAB = "Contractors"
RESERVED_TABS = (MASTER_TAB, CONTRACTORS_TAB)

OPEN_ROW_COLOR = "F4CCCC"
CLOSED_ROW_COLOR = "D9EAD3"


class TaskIdClock:
    """Issues creation timestamps that strictly increase within the process.

    Ids are ISO-8601 UTC with millisecond precision; a second id inside the
    same millisecond is pushed forward by one millisecond.
    """

    def __init__(self, now: Optional[Callable[[], datetime]] = None):
        self._now = now or (lambda: datetime.now(timezone.utc))
        self._last: Optional[datetime] = None
        self._lock = threading.Lock()

    def __call__(self) -> str:
        with self._lock:
            current = self._now().astimezone(timezone.utc)
            current = current.replace(microsecond=current.microsecond // 1000 * 1000)
            if self._last is not None and current <= self._last:
                current = self._last + timedelta(milliseconds=1)
            self._last = current
        return current.strftime("%Y-%m-%dT%H:%M:%S.") + f"{current.microsecond // 1000:03d}Z"


@dataclass
class TaskFilters:
    """Read filters; text filters are substring matches, status is exact."""

    project: Optional[str] = None
    trade: Optional[str] = None
    assigned_to: Optional[str] = None
    status: Optional[str] = None

    def matches(self, task: Task) -> bool:
        for wanted, actual in (
            (self.project, task.project),
            (self.trade, task.trade),
            (self.assigned_to, task.assigned_to),
        ):
            if wanted and wanted.strip() and wanted.strip().lower() not in actual.lower():
                return False
        if self.status and self.status.strip():
            if task.status.strip().lower() != _status_key(self.status):
                return False
        return True


def _status_key(value: str) -> str:
    try:
        return TaskStatus.parse(value).value.lower()
    except ValueError:
        return value.strip().lower()


@dataclass
class AddTaskResult:
    """Outcome of a successful dual write."""

    task_id: str
    project: str

    def to_dict(self) -> Dict[str, Any]:
        return {"taskId": self.task_id, "project": self.project}


class SheetStore:
    """Translates tasks and contractors to rows in a spreadsheet backend.

    Every task lives twice: in its project tab and in the master tab. Writes
    go to the master tab first; a failure on the project tab afterwards is
    reported as a partial write instead of being hidden.
    """

    def __init__(self, backend: SpreadsheetBackend, *, clock: Optional[Callable[[], str]] = None):
        self.backend = backend
        self._clock = clock or TaskIdClock()

    # Tab lifecycle

    def _provision_task_tab(self, title: str, tabs: List[str]) -> None:
        logger.info("Provisioning task tab '%s'", title)
        column_count = len(TASK_HEADERS)
        self.backend.add_tab(title)
        self.backend.write_header(title, TASK_HEADERS)
        self.backend.style_header(title, column_count)
        self.backend.add_dropdown(
            title,
            DropdownRule(column=TaskColumn.STATUS.letter, values=[status.value for status in TaskStatus]),
        )
        self.backend.add_dropdown(
            title,
            DropdownRule(column=TaskColumn.PRIORITY.letter, values=[priority.value for priority in TaskPriority]),
        )
        self._ensure_contractors_tab(tabs)
        self.backend.add_dropdown(
            title,
            DropdownRule(
                column=TaskColumn.ASSIGNED_TO.letter,
                source_tab=CONTRACTORS_TAB,
                source_column="A",
                strict=False,
            ),
        )
        for status, color in ((TaskStatus.OPEN, OPEN_ROW_COLOR), (TaskStatus.CLOSED, CLOSED_ROW_COLOR)):
            self.backend.add_row_highlight(
                title,
                RowHighlightRule(column=TaskColumn.STATUS.letter, value=status.value, color=color),
                column_count,
            )

    def _ensure_contractors_tab(self, tabs: Optional[List[str]] = None) -> bool:
        if tabs is None:
            tabs = self.backend.list_tabs()
        if CONTRACTORS_TAB in tabs:
            return False
        logger.info("Provisioning '%s' tab", CONTRACTORS_TAB)
        self.backend.add_tab(CONTRACTORS_TAB)
        self.backend.write_header(CONTRACTORS_TAB, CONTRACTOR_HEADERS)
        self.backend.style_header(CONTRACTORS_TAB, len(CONTRACTOR_HEADERS))
        tabs.append(CONTRACTORS_TAB)
        return True

    def _ensure_task_tabs(self, titles: Sequence[str]) -> Tuple[List[str], List[str]]:
        """Provision missing tabs; returns (actual titles, created titles).

        Tab names match case-insensitively, so "oak street" resolves to an
        existing "Oak Street" tab.
        """
        tabs = self.backend.list_tabs()
        resolved: List[str] = []
        created: List[str] = []
        for title in titles:
            existing = _find_tab(title, tabs)
            if existing is None:
                self._provision_task_tab(title, tabs)
                tabs.append(title)
                created.append(title)
                existing = title
            resolved.append(existing)
        return resolved, created

    def create_project_tab(self, project: str) -> bool:
        """Provision a project tab; returns False if it already existed."""
        _check_project_name(project)
        _, created = self._ensure_task_tabs([project])
        return bool(created)

    def initialize(self) -> List[str]:
        """Provision the master and contractor tabs; returns the tabs created."""
        tabs = self.backend.list_tabs()
        existing = set(tabs)
        if MASTER_TAB not in tabs:
            self._provision_task_tab(MASTER_TAB, tabs)
            tabs.append(MASTER_TAB)
        self._ensure_contractors_tab(tabs)
        return [tab for tab in tabs if tab not in existing]

    # Tasks

    def add_task(self, data: Mapping[str, Any]) -> AddTaskResult:
        """Append a new task to the master tab and its project tab."""
        project = str(data.get("project") or "").strip()
        _check_project_name(project)
        fields = _task_fields(data, project=project)

        titles, _ = self._ensure_task_tabs([MASTER_TAB, project])
        project = titles[1]
        fields["project"] = project
        task = Task(task_id=self._clock(), **fields)
        row = task.to_row(DAYS_OLD_FORMULA)

        self.backend.append_rows(MASTER_TAB, [row])
        try:
            self.backend.append_rows(project, [row])
        except Exception as exc:
            logger.error("Task %s reached '%s' but not '%s': %s", task.task_id, MASTER_TAB, project, exc)
            raise PartialWriteError(task.task_id, written=[MASTER_TAB], failed=[project], cause=exc) from exc

        logger.info("Task %s added to project '%s'", task.task_id, project)
        return AddTaskResult(task_id=task.task_id, project=project)

    def _read_tasks(self, title: str) -> Tuple[List[Any], List[Tuple[int, List[Any], Task]]]:
        """Return the header row and (row_number, raw_row, task) for each data row."""
        rows = self.backend.get_values(title)
        if not rows:
            return [], []
        mapping = map_header_row(rows[0], list(TaskColumn))
        result = []
        for position, row in enumerate(rows[1:], start=2):
            if not any(cell not in (None, "") for cell in row):
                continue
            result.append((position, row, Task.from_row(row, mapping)))
        return rows[0], result

    def get_tasks(self, filters: Optional[TaskFilters] = None) -> List[Task]:
        """Read every task from the master tab and filter them."""
        if MASTER_TAB not in self.backend.list_tabs():
            return []
        filters = filters or TaskFilters()
        _, entries = self._read_tasks(MASTER_TAB)
        return [task for _, _, task in entries if filters.matches(task)]

    def get_subcontractor_tasks(self, assigned_to: str) -> List[Task]:
        return self.get_tasks(TaskFilters(assigned_to=assigned_to, status=TaskStatus.OPEN.value))

    def update_task(self, task_id: str, updates: Mapping[str, Any]) -> Task:
        """Apply editable field updates to a task in both tabs."""
        task_id = str(task_id or "").strip()
        if not task_id:
            raise ValidationError("taskId is required")
        tabs = self.backend.list_tabs()
        if MASTER_TAB not in tabs:
            raise NotFoundError(f"Task {task_id} not found")

        header, entries = self._read_tasks(MASTER_TAB)
        located = next((entry for entry in entries if entry[2].task_id == task_id), None)
        if located is None:
            raise NotFoundError(f"Task {task_id} not found")
        row_number, raw_row, task = located

        for key, value in _editable_updates(updates).items():
            setattr(task, key, value)

        self.backend.update_row(MASTER_TAB, row_number, _layout_row(task, header, raw_row))

        project_tab = _find_tab(task.project, tabs) or task.project
        try:
            project_header, project_entries = self._read_tasks(project_tab)
            project_entry = next((entry for entry in project_entries if entry[2].task_id == task_id), None)
            if project_entry is None:
                raise NotFoundError(f"Task {task_id} has no row in tab '{project_tab}'")
            self.backend.update_row(
                project_tab,
                project_entry[0],
                _layout_row(task, project_header, project_entry[1]),
            )
        except Exception as exc:
            logger.error("Task %s updated in '%s' but not in '%s': %s", task_id, MASTER_TAB, project_tab, exc)
            raise PartialWriteError(task_id, written=[MASTER_TAB], failed=[project_tab], cause=exc) from exc

        logger.info("Task %s updated (%s)", task_id, ", ".join(sorted(updates)) or "no fields")
        return task

    # Contractors

    def list_contractors(self) -> List[Contractor]:
        if CONTRACTORS_TAB not in self.backend.list_tabs():
            return []
        rows = self.backend.get_values(CONTRACTORS_TAB)
        if len(rows) < 2:
            return []
        mapping = map_header_row(rows[0], list(ContractorColumn))
        contractors = [Contractor.from_row(row, mapping) for row in rows[1:]]
        return [contractor for contractor in contractors if contractor.name]

    def add_contractor(self, contractor: Contractor) -> Contractor:
        name = contractor.name.strip()
        if not name:
            raise ValidationError("Contractor name is required")
        self._ensure_contractors_tab()
        if any(existing.name.lower() == name.lower() for existing in self.list_contractors()):
            raise ConflictError(f"Contractor '{name}' already exists")
        contractor = Contractor(
            name=name,
            email=contractor.email.strip(),
            phone=contractor.phone.strip(),
            trade=contractor.trade.strip(),
        )
        self.backend.append_rows(CONTRACTORS_TAB, [contractor.to_row()])
        logger.info("Contractor '%s' added", name)
        return contractor

    def get_contractor_emails(self) -> Dict[str, str]:
        """Map contractor name to email, skipping contractors without one."""
        return {contractor.name: contractor.email for contractor in self.list_contractors() if contractor.email}


def _find_tab(title: str, tabs: Sequence[str]) -> Optional[str]:
    key = title.casefold()
    return next((tab for tab in tabs if tab.casefold() == key), None)


def _check_project_name(project: str) -> None:
    if not project:
        raise ValidationError("Project is required")
    if _find_tab(project, RESERVED_TABS) is not None:
        raise ValidationError(f"'{project}' is reserved and cannot be used as a project name")


def _parse_priority(value: Any) -> str:
    try:
        return TaskPriority.parse(value).value
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc


def _parse_status(value: Any) -> str:
    try:
        return TaskStatus.parse(value).value
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc


def _text(value: Any) -> str:
    return "" if value is None else str(value).strip()


def _task_fields(data: Mapping[str, Any], *, project: str) -> Dict[str, Any]:
    return {
        "project": project,
        "area": _text(data.get("area")),
        "trade": _text(data.get("trade")),
        "task_title": _text(data.get("task_title")),
        "task_details": _text(data.get("task_details")),
        "assigned_to": _text(data.get("assigned_to")),
        "priority": _parse_priority(data.get("priority")),
        "due_date": _text(data.get("due_date")),
        "photo_needed": bool(data.get("photo_needed")),
        "status": TaskStatus.OPEN.value,
        "photo_url": _text(data.get("photo_url")),
        "notes": _text(data.get("notes")),
    }


def _editable_updates(updates: Mapping[str, Any]) -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    for key, value in updates.items():
        if key not in EDITABLE_FIELDS or value is None:
            continue
        if key in ("priority", "status") and not str(value).strip():
            continue
        if key == "priority":
            values[key] = _parse_priority(value)
        elif key == "status":
            values[key] = _parse_status(value)
        elif key == "photo_needed":
            values[key] = bool(value)
        else:
            values[key] = _text(value)
    return values


def _layout_row(task: Task, header: Sequence[Any], existing: Sequence[Any]) -> List[Any]:
    """Place task cells under their headers, keeping cells of unknown columns."""
    mapping = map_header_row(header, list(TaskColumn))
    width = max(len(header), len(existing), max(mapping, default=-1) + 1)
    cells = list(existing) + [""] * (width - len(existing))
    values = dict(zip(TaskColumn, task.to_row(DAYS_OLD_FORMULA)))
    for position, column in mapping.items():
        cells[position] = values[column]
    return [cell if cell is not None else "" for cell in cells]
