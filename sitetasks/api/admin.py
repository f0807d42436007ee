"""Spreadsheet provisioning endpoint."""
from fastapi import APIRouter, Depends

from sitetasks.api.responses import respond
from sitetasks.dependencies import get_task_service
from sitetasks.services.task_service import TaskService

router = APIRouter()


@router.post("/initialize")
def initialize(service: TaskService = Depends(get_task_service)):
    """Create the master and contractor tabs when missing."""
    return respond(service.initialize())
