"""Task schemas."""
from typing import Optional

from pydantic import BaseModel, Field


class TaskBase(BaseModel):
    """Fields shared by task creation and update payloads."""

    area: Optional[str] = None
    trade: Optional[str] = None
    task_title: Optional[str] = Field(None, alias="taskTitle")
    task_details: Optional[str] = Field(None, alias="taskDetails")
    assigned_to: Optional[str] = Field(None, alias="assignedTo")
    priority: Optional[str] = None
    due_date: Optional[str] = Field(None, alias="dueDate")
    photo_url: Optional[str] = Field(None, alias="photoURL")
    notes: Optional[str] = None

    class Config:
        populate_by_name = True


class TaskCreate(TaskBase):
    """Task creation schema; project and title presence is checked by the service."""

    project: Optional[str] = None
    photo_needed: bool = Field(False, alias="photoNeeded")


class TaskUpdate(TaskBase):
    """Task update schema; only the fields sent are changed."""

    task_id: Optional[str] = Field(None, alias="taskId")
    status: Optional[str] = None
    photo_needed: Optional[bool] = Field(None, alias="photoNeeded")

    def changes(self) -> dict:
        return self.model_dump(exclude={"task_id"}, exclude_none=True)
