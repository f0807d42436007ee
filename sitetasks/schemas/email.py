"""Weekly email schemas."""
from typing import Dict, Optional

from pydantic import BaseModel, Field


class WeeklyEmailConfig(BaseModel):
    """Per-run overrides of the mail settings."""

    smtp_host: Optional[str] = Field(None, alias="smtpHost")
    smtp_port: Optional[int] = Field(None, alias="smtpPort")
    smtp_user: Optional[str] = Field(None, alias="smtpUser")
    smtp_password: Optional[str] = Field(None, alias="smtpPassword")
    from_email: Optional[str] = Field(None, alias="fromEmail")
    from_name: Optional[str] = Field(None, alias="fromName")
    subcontractor_emails: Optional[Dict[str, str]] = Field(None, alias="subcontractorEmails")

    class Config:
        populate_by_name = True


class WeeklyEmailRequest(BaseModel):
    """Weekly email trigger body."""

    config: Optional[WeeklyEmailConfig] = None
