"""CSV export of a subcontractor's open tasks in the Buildertrend import layout."""
from __future__ import annotations

import csv
import io
from typing import Iterable

from sitetasks.models.task import Task, TaskPriority, TaskStatus
from sitetasks.services.sheet_store import SheetStore

BUILDERTREND_HEADERS = ["Project", "Task Title", "Description", "Assigned To", "Due Date", "Priority", "Status"]


def tasks_to_csv(tasks: Iterable[Task]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(BUILDERTREND_HEADERS)
    for task in tasks:
        writer.writerow(
            [
                task.project,
                task.task_title,
                task.task_details,
                task.assigned_to,
                task.due_date,
                task.priority or TaskPriority.MEDIUM.value,
                task.status or TaskStatus.OPEN.value,
            ]
        )
    return buffer.getvalue()


def export_subcontractor_csv(store: SheetStore, assigned_to: str) -> str:
    """Open tasks for one subcontractor as CSV text."""
    return tasks_to_csv(store.get_subcontractor_tasks(assigned_to))
