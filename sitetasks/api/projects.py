"""Project tab endpoints."""
from fastapi import APIRouter, Depends

from sitetasks.api.responses import respond
from sitetasks.core.exceptions import ValidationError
from sitetasks.dependencies import get_task_service
from sitetasks.schemas.contractor import ProjectCreate
from sitetasks.services.task_service import TaskService, failure

router = APIRouter()


@router.post("")
def create_project(
    payload: ProjectCreate,
    service: TaskService = Depends(get_task_service),
):
    """Create a project tab; an existing tab is reported, not recreated."""
    if not (payload.project_name or "").strip():
        return respond(failure(ValidationError("projectName is required")))
    return respond(service.create_new_project_tab(payload.project_name))
