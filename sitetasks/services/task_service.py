"""Task orchestration service returning uniform result dictionaries."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from sitetasks.core.exceptions import PartialWriteError, SiteTasksError, ValidationError
from sitetasks.models.contractor import Contractor
from sitetasks.services.sheet_store import TaskFilters, SheetStore

logger = logging.getLogger(__name__)


def failure(exc: BaseException) -> Dict[str, Any]:
    """Convert an exception into the ``{success: False, error}`` shape."""
    if isinstance(exc, SiteTasksError):
        result: Dict[str, Any] = {"success": False, "error": exc.detail, "errorType": exc.error_type}
        if isinstance(exc, PartialWriteError):
            result["partial"] = {"taskId": exc.task_id, "written": exc.written, "failed": exc.failed}
        return result
    return {"success": False, "error": str(exc) or type(exc).__name__, "errorType": "InternalError"}


def validate_task_input(data: Mapping[str, Any]) -> None:
    """Reject task input lacking a project or title before touching the backend."""
    if not str(data.get("project") or "").strip() or not str(data.get("task_title") or "").strip():
        raise ValidationError("Project and taskTitle are required")


class TaskService:
    """Thin layer over SheetStore; every public method returns a result dict."""

    def __init__(self, store: SheetStore):
        self.store = store

    def process_task_input(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        """Create a single task."""
        try:
            validate_task_input(data)
            result = self.store.add_task(data)
            return {"success": True, "task": result.to_dict()}
        except SiteTasksError as exc:
            logger.warning("Task creation failed: %s", exc.detail)
            return failure(exc)
        except Exception as exc:
            logger.error("Error processing task input: %s", exc, exc_info=True)
            return failure(exc)

    def process_multiple_tasks(self, items: Sequence[Mapping[str, Any]]) -> Dict[str, Any]:
        """Create tasks one after another, stopping at the first failure.

        A new project's tab is provisioned by the first task that names it.
        """
        created: List[Dict[str, Any]] = []
        for data in items:
            try:
                validate_task_input(data)
                created.append(self.store.add_task(data).to_dict())
            except Exception as exc:
                if isinstance(exc, SiteTasksError):
                    logger.warning("Bulk task creation stopped after %d task(s): %s", len(created), exc.detail)
                else:
                    logger.error("Error processing multiple tasks: %s", exc, exc_info=True)
                result = failure(exc)
                result.update({"tasksCreated": len(created), "tasks": created})
                return result
        return {"success": True, "tasksCreated": len(created), "tasks": created}

    def get_filtered_tasks(self, filters: Optional[TaskFilters] = None) -> Dict[str, Any]:
        try:
            tasks = self.store.get_tasks(filters)
        except Exception as exc:
            logger.error("Error getting tasks: %s", exc, exc_info=not isinstance(exc, SiteTasksError))
            return failure(exc)
        return {"success": True, "count": len(tasks), "tasks": [task.to_dict() for task in tasks]}

    def get_subcontractor_task_list(self, assigned_to: str) -> Dict[str, Any]:
        try:
            tasks = self.store.get_subcontractor_tasks(assigned_to)
        except Exception as exc:
            logger.error("Error getting subcontractor tasks: %s", exc, exc_info=not isinstance(exc, SiteTasksError))
            return failure(exc)
        return {
            "success": True,
            "subcontractor": assigned_to,
            "count": len(tasks),
            "tasks": [task.to_dict() for task in tasks],
        }

    def update_task(self, task_id: Optional[str], updates: Mapping[str, Any]) -> Dict[str, Any]:
        try:
            task = self.store.update_task(task_id, updates)
        except Exception as exc:
            logger.error("Error updating task %s: %s", task_id, exc, exc_info=not isinstance(exc, SiteTasksError))
            return failure(exc)
        return {"success": True, "task": task.to_dict()}

    def create_new_project_tab(self, project_name: str) -> Dict[str, Any]:
        try:
            created = self.store.create_project_tab(project_name.strip())
        except Exception as exc:
            logger.error("Error creating project tab: %s", exc, exc_info=not isinstance(exc, SiteTasksError))
            return failure(exc)
        if created:
            message = f"Project tab '{project_name}' created successfully"
        else:
            message = f"Project tab '{project_name}' already exists"
        return {"success": True, "created": created, "message": message}

    def add_new_contractor(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        try:
            contractor = self.store.add_contractor(
                Contractor(
                    name=str(data.get("name") or ""),
                    email=str(data.get("email") or ""),
                    phone=str(data.get("phone") or ""),
                    trade=str(data.get("trade") or ""),
                )
            )
        except Exception as exc:
            logger.error("Error adding contractor: %s", exc, exc_info=not isinstance(exc, SiteTasksError))
            return failure(exc)
        return {
            "success": True,
            "message": f"Contractor '{contractor.name}' added successfully",
            "contractor": contractor.to_dict(),
        }

    def list_contractors(self) -> Dict[str, Any]:
        try:
            contractors = self.store.list_contractors()
        except Exception as exc:
            logger.error("Error listing contractors: %s", exc, exc_info=not isinstance(exc, SiteTasksError))
            return failure(exc)
        return {
            "success": True,
            "count": len(contractors),
            "contractors": [contractor.to_dict() for contractor in contractors],
        }

    def initialize(self) -> Dict[str, Any]:
        try:
            created = self.store.initialize()
        except Exception as exc:
            logger.error("Error initializing spreadsheet: %s", exc, exc_info=not isinstance(exc, SiteTasksError))
            return failure(exc)
        if created:
            message = f"Created tabs: {', '.join(created)}"
        else:
            message = "Spreadsheet already initialized"
        return {"success": True, "created": created, "message": message}
