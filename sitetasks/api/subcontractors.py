"""Subcontractor task list and export endpoints."""
import re
from datetime import date

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from sitetasks.api.responses import respond
from sitetasks.dependencies import get_store, get_task_service
from sitetasks.services.export_service import export_subcontractor_csv
from sitetasks.services.sheet_store import SheetStore
from sitetasks.services.task_service import TaskService, failure

router = APIRouter()


@router.get("/{assigned_to}")
def subcontractor_tasks(
    assigned_to: str,
    service: TaskService = Depends(get_task_service),
):
    """Open tasks assigned to a subcontractor."""
    return respond(service.get_subcontractor_task_list(assigned_to))


@router.get("/{assigned_to}/export")
def export_subcontractor_tasks(
    assigned_to: str,
    store: SheetStore = Depends(get_store),
):
    """Open tasks of a subcontractor as a Buildertrend import CSV."""
    try:
        content = export_subcontractor_csv(store, assigned_to)
    except Exception as exc:
        return respond(failure(exc))
    slug = re.sub(r"[^A-Za-z0-9]+", "-", assigned_to).strip("-").lower() or "subcontractor"
    filename = f"{slug}-tasks-{date.today().isoformat()}.csv"
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
