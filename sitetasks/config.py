"""Application configuration from environment variables."""
from typing import Dict, List, Optional

from pydantic import BaseModel
from pydantic_settings import BaseSettings


class EmailSettings(BaseModel):
    """Mail transport and digest settings, overridable per weekly run."""

    smtp_host: Optional[str] = None
    smtp_port: int = 587
    smtp_user: Optional[str] = None
    smtp_password: Optional[str] = None
    from_email: str = "tasks@legendaryhomes.com"
    from_name: str = "Legendary Homes Task Management"
    company_name: str = "Legendary Homes"
    subcontractor_emails: Dict[str, str] = {}

    @property
    def is_configured(self) -> bool:
        return bool(self.smtp_host and self.smtp_user and self.smtp_password)

    def merged(self, overrides: Optional[Dict[str, object]] = None) -> "EmailSettings":
        """Return a copy with non-empty overrides applied."""
        if not overrides:
            return self
        values = {key: value for key, value in overrides.items() if value not in (None, "", {})}
        return self.model_copy(update=values)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Site Tasks"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    API_PREFIX: str = "/api"

    # CORS
    CORS_ORIGINS: List[str] = ["*"]

    # Spreadsheet backend
    SHEETS_BACKEND: str = "workbook"  # workbook or google
    WORKBOOK_PATH: str = "site_tasks.xlsx"
    GOOGLE_SHEET_ID: Optional[str] = None
    GOOGLE_SERVICE_ACCOUNT_KEY: Optional[str] = None  # inline JSON or path to key file
    GOOGLE_SHEETS_API_URL: str = "https://sheets.googleapis.com/v4/spreadsheets"
    SHEETS_TIMEOUT_SECONDS: float = 30.0

    # Mail transport
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 587
    SMTP_USER: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    FROM_EMAIL: str = "tasks@legendaryhomes.com"
    FROM_NAME: str = "Legendary Homes Task Management"
    COMPANY_NAME: str = "Legendary Homes"
    CONTRACTOR_EMAILS: Dict[str, str] = {}  # static fallback, JSON object in env

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"  # json or text

    class Config:
        env_file = ".env"
        case_sensitive = True

    @property
    def email(self) -> EmailSettings:
        return EmailSettings(
            smtp_host=self.SMTP_HOST,
            smtp_port=self.SMTP_PORT,
            smtp_user=self.SMTP_USER,
            smtp_password=self.SMTP_PASSWORD,
            from_email=self.FROM_EMAIL,
            from_name=self.FROM_NAME,
            company_name=self.COMPANY_NAME,
            subcontractor_emails=dict(self.CONTRACTOR_EMAILS),
        )


def get_settings() -> Settings:
    """Build settings from the current environment."""
    return Settings()
