"""Contractor and project schemas."""
from typing import Optional

from pydantic import BaseModel, Field


class ContractorCreate(BaseModel):
    """Contractor creation schema."""

    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    trade: Optional[str] = None


class ProjectCreate(BaseModel):
    """Project tab creation schema."""

    project_name: Optional[str] = Field(None, alias="projectName")

    class Config:
        populate_by_name = True
