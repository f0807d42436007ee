"""Tasks API endpoints."""
from typing import List, Optional, Union

from fastapi import APIRouter, Body, Depends, Query

from sitetasks.api.responses import respond
from sitetasks.dependencies import get_task_service
from sitetasks.schemas.task import TaskCreate, TaskUpdate
from sitetasks.services.sheet_store import TaskFilters
from sitetasks.services.task_service import TaskService

router = APIRouter()


@router.post("")
def create_tasks(
    payload: Union[List[TaskCreate], TaskCreate] = Body(...),
    service: TaskService = Depends(get_task_service),
):
    """Create one task, or several in order when given an array."""
    if isinstance(payload, list):
        return respond(service.process_multiple_tasks([item.model_dump() for item in payload]))
    return respond(service.process_task_input(payload.model_dump()))


@router.get("")
def list_tasks(
    project: Optional[str] = None,
    trade: Optional[str] = None,
    assigned_to: Optional[str] = Query(None, alias="assignedTo"),
    status: Optional[str] = None,
    service: TaskService = Depends(get_task_service),
):
    """List tasks from the master tab, optionally filtered."""
    filters = TaskFilters(project=project, trade=trade, assigned_to=assigned_to, status=status)
    return respond(service.get_filtered_tasks(filters))


@router.put("")
def update_task(
    payload: TaskUpdate,
    service: TaskService = Depends(get_task_service),
):
    """Update editable fields of a task in its project tab and the master tab."""
    return respond(service.update_task(payload.task_id, payload.changes()))
