"""Task record and the fixed column layout of task tabs."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence


class TaskPriority(str, Enum):
    """Task priority."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    URGENT = "Urgent"

    @classmethod
    def parse(cls, value: Optional[str]) -> "TaskPriority":
        if value is None or not str(value).strip():
            return cls.MEDIUM
        text = str(value).strip().lower()
        for member in cls:
            if member.value.lower() == text:
                return member
        raise ValueError(f"Unknown priority: {value}")


class TaskStatus(str, Enum):
    """Task status. CLOSED is terminal and stands in for deletion."""

    OPEN = "Open"
    IN_PROGRESS = "In Progress"
    CLOSED = "Closed"

    @classmethod
    def parse(cls, value: Optional[str]) -> "TaskStatus":
        if value is None or not str(value).strip():
            return cls.OPEN
        key = " ".join(str(value).replace("-", " ").replace("_", " ").lower().split())
        member = _STATUS_ALIASES.get(key)
        if member is None:
            raise ValueError(f"Unknown status: {value}")
        return member


_STATUS_ALIASES = {
    "open": TaskStatus.OPEN,
    "in progress": TaskStatus.IN_PROGRESS,
    "closed": TaskStatus.CLOSED,
    "completed": TaskStatus.CLOSED,
    "complete": TaskStatus.CLOSED,
    "done": TaskStatus.CLOSED,
}


class TaskColumn(Enum):
    """Columns of a task tab, in sheet order."""

    TIMESTAMP = ("Timestamp", "timestamp")
    DAYS_OLD = ("Days Old", "daysOld")
    PROJECT = ("Project", "project")
    AREA = ("Area", "area")
    TRADE = ("Trade", "trade")
    TASK_TITLE = ("Task Title", "taskTitle")
    TASK_DETAILS = ("Task Details", "taskDetails")
    ASSIGNED_TO = ("Assigned To", "assignedTo")
    PRIORITY = ("Priority", "priority")
    DUE_DATE = ("Due Date", "dueDate")
    PHOTO_NEEDED = ("Photo Needed", "photoNeeded")
    STATUS = ("Status", "status")
    PHOTO_URL = ("Photo URL", "photoURL")
    NOTES = ("Notes", "notes")

    def __init__(self, header: str, field_name: str):
        self.header = header
        self.field_name = field_name

    @property
    def index(self) -> int:
        return _TASK_COLUMN_ORDER.index(self)

    @property
    def letter(self) -> str:
        return chr(ord("A") + self.index)


_TASK_COLUMN_ORDER: List[TaskColumn] = list(TaskColumn)

TASK_HEADERS: List[str] = [column.header for column in TaskColumn]
LAST_TASK_COLUMN = _TASK_COLUMN_ORDER[-1].letter

# Fields a caller may change after creation. The project picks the tab, so it is fixed.
EDITABLE_FIELDS = (
    "area",
    "trade",
    "task_title",
    "task_details",
    "assigned_to",
    "priority",
    "due_date",
    "photo_needed",
    "status",
    "photo_url",
    "notes",
)


def normalize_header(header: Any) -> str:
    """Collapse a header cell to a comparison key ("Task Title" -> "tasktitle")."""
    return "".join(str(header or "").split()).lower()


def cell_text(value: Any) -> str:
    """Render a cell value the way the sheet displays it."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, datetime):
        if value.time() == datetime.min.time():
            return value.date().isoformat()
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def map_header_row(headers: Sequence[Any], columns: Sequence[Enum]) -> Dict[int, Enum]:
    """Match header cells to known columns; unknown headers are dropped."""
    by_key = {normalize_header(column.header): column for column in columns}
    mapping: Dict[int, Enum] = {}
    for position, header in enumerate(headers):
        column = by_key.get(normalize_header(header))
        if column is not None and column not in mapping.values():
            mapping[position] = column
    return mapping


@dataclass
class Task:
    """One unit of remediation work."""

    task_id: str
    project: str
    task_title: str
    area: str = ""
    trade: str = ""
    task_details: str = ""
    assigned_to: str = ""
    priority: str = TaskPriority.MEDIUM.value
    due_date: str = ""
    photo_needed: bool = False
    status: str = TaskStatus.OPEN.value
    photo_url: str = ""
    notes: str = ""
    days_old: Optional[int] = None

    @property
    def is_open(self) -> bool:
        return self.status.strip().lower() == TaskStatus.OPEN.value.lower()

    def to_row(self, days_old_formula: str) -> List[Any]:
        """Serialize to sheet cells in column order."""
        values = {
            TaskColumn.TIMESTAMP: self.task_id,
            TaskColumn.DAYS_OLD: days_old_formula,
            TaskColumn.PROJECT: self.project,
            TaskColumn.AREA: self.area,
            TaskColumn.TRADE: self.trade,
            TaskColumn.TASK_TITLE: self.task_title,
            TaskColumn.TASK_DETAILS: self.task_details,
            TaskColumn.ASSIGNED_TO: self.assigned_to,
            TaskColumn.PRIORITY: self.priority,
            TaskColumn.DUE_DATE: self.due_date,
            TaskColumn.PHOTO_NEEDED: "Yes" if self.photo_needed else "No",
            TaskColumn.STATUS: self.status,
            TaskColumn.PHOTO_URL: self.photo_url,
            TaskColumn.NOTES: self.notes,
        }
        return [values[column] for column in TaskColumn]

    @classmethod
    def from_row(cls, row: Sequence[Any], mapping: Dict[int, TaskColumn]) -> "Task":
        """Build a task from a data row using a header mapping."""
        cells: Dict[TaskColumn, str] = {column: "" for column in TaskColumn}
        for position, column in mapping.items():
            if position < len(row):
                cells[column] = cell_text(row[position])

        days_old_text = cells[TaskColumn.DAYS_OLD].strip()
        try:
            days_old = int(float(days_old_text)) if days_old_text else None
        except ValueError:
            days_old = None

        return cls(
            task_id=cells[TaskColumn.TIMESTAMP],
            days_old=days_old,
            project=cells[TaskColumn.PROJECT],
            area=cells[TaskColumn.AREA],
            trade=cells[TaskColumn.TRADE],
            task_title=cells[TaskColumn.TASK_TITLE],
            task_details=cells[TaskColumn.TASK_DETAILS],
            assigned_to=cells[TaskColumn.ASSIGNED_TO],
            priority=cells[TaskColumn.PRIORITY],
            due_date=cells[TaskColumn.DUE_DATE],
            photo_needed=cells[TaskColumn.PHOTO_NEEDED].strip().lower() in ("yes", "true", "1"),
            status=cells[TaskColumn.STATUS],
            photo_url=cells[TaskColumn.PHOTO_URL],
            notes=cells[TaskColumn.NOTES],
        )

    def to_dict(self) -> Dict[str, Any]:
        """API representation (camelCase keys)."""
        return {
            "taskId": self.task_id,
            "timestamp": self.task_id,
            "daysOld": self.days_old,
            "project": self.project,
            "area": self.area,
            "trade": self.trade,
            "taskTitle": self.task_title,
            "taskDetails": self.task_details,
            "assignedTo": self.assigned_to,
            "priority": self.priority,
            "dueDate": self.due_date,
            "photoNeeded": self.photo_needed,
            "status": self.status,
            "photoURL": self.photo_url,
            "notes": self.notes,
        }
