"""Weekly digest email endpoint."""
import logging
from typing import Callable, Optional

from fastapi import APIRouter, Body, Depends

from sitetasks.api.responses import respond
from sitetasks.config import EmailSettings
from sitetasks.dependencies import get_email_settings, get_store, get_transport_factory
from sitetasks.schemas.email import WeeklyEmailRequest
from sitetasks.services.email_service import EmailDigestService, summarize
from sitetasks.services.mail_transport import MailTransport
from sitetasks.services.sheet_store import SheetStore
from sitetasks.services.task_service import failure

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/weekly")
async def send_weekly_emails(
    payload: Optional[WeeklyEmailRequest] = Body(None),
    store: SheetStore = Depends(get_store),
    email_settings: EmailSettings = Depends(get_email_settings),
    transport_factory: Callable[[EmailSettings], MailTransport] = Depends(get_transport_factory),
):
    """Send every contractor a digest of their open tasks.

    Settings sent in ``config`` override the configured ones for this run.
    """
    if payload is not None and payload.config is not None:
        email_settings = email_settings.merged(payload.config.model_dump())
    service = EmailDigestService(store, email_settings, transport_factory=transport_factory)
    try:
        results = await service.send_weekly_emails()
    except Exception as exc:
        logger.error("Error in weekly email job: %s", exc, exc_info=True)
        return respond(failure(exc))
    return respond(summarize(results))
