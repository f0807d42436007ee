"""FastAPI dependencies wiring settings, the spreadsheet store and services."""
from functools import lru_cache
from typing import Callable

from fastapi import Depends

from sitetasks.config import EmailSettings, Settings, get_settings as load_settings
from sitetasks.services.mail_transport import MailTransport, SmtpTransport
from sitetasks.services.sheet_store import SheetStore
from sitetasks.services.task_service import TaskService
from sitetasks.sheets.factory import build_backend


@lru_cache
def get_settings() -> Settings:
    return load_settings()


@lru_cache
def get_store() -> SheetStore:
    """Process-wide store; one id clock keeps task ids strictly increasing."""
    return SheetStore(build_backend(get_settings()))


def get_task_service(store: SheetStore = Depends(get_store)) -> TaskService:
    return TaskService(store)


def get_email_settings(settings: Settings = Depends(get_settings)) -> EmailSettings:
    return settings.email


def get_transport_factory() -> Callable[[EmailSettings], MailTransport]:
    return SmtpTransport
