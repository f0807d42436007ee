"""Contractor registry endpoints."""
from fastapi import APIRouter, Depends

from sitetasks.api.responses import respond
from sitetasks.dependencies import get_task_service
from sitetasks.schemas.contractor import ContractorCreate
from sitetasks.services.task_service import TaskService

router = APIRouter()


@router.post("")
def add_contractor(
    payload: ContractorCreate,
    service: TaskService = Depends(get_task_service),
):
    return respond(service.add_new_contractor(payload.model_dump()))


@router.get("")
def list_contractors(service: TaskService = Depends(get_task_service)):
    return respond(service.list_contractors())
