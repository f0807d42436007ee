"""Weekly digest emails to subcontractors."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Tuple

from sitetasks.config import EmailSettings
from sitetasks.core.exceptions import SiteTasksError
from sitetasks.middleware.metrics import digest_emails_total
from sitetasks.models.task import Task
from sitetasks.services.email_templates import EmailContent, generate_email_content
from sitetasks.services.mail_transport import MailTransport, SmtpTransport, build_message
from sitetasks.services.sheet_store import SheetStore

logger = logging.getLogger(__name__)

NO_RECIPIENTS_MESSAGE = (
    "No contractor email addresses found. Add contractors with an email address "
    "to the Contractors tab (POST /api/contractors) or set CONTRACTOR_EMAILS."
)


@dataclass
class DigestResult:
    """Outcome of one contractor's digest."""

    success: bool
    message: str
    subcontractor: Optional[str] = None
    email_address: Optional[str] = None
    task_count: int = 0
    skipped: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "subcontractor": self.subcontractor,
            "emailAddress": self.email_address,
            "taskCount": self.task_count,
            "skipped": self.skipped,
            "message": self.message,
        }


class EmailDigestService:
    """Renders and sends each contractor a summary of their open tasks."""

    def __init__(
        self,
        store: SheetStore,
        settings: EmailSettings,
        *,
        transport_factory: Callable[[EmailSettings], MailTransport] = SmtpTransport,
        today: Optional[Callable[[], date]] = None,
    ):
        self.store = store
        self.settings = settings
        self._transport_factory = transport_factory
        self._today = today

    def generate_email_content(self, tasks: List[Task], name: str) -> EmailContent:
        return generate_email_content(
            tasks,
            name,
            company=self.settings.company_name,
            today=self._today() if self._today else None,
        )

    def resolve_recipients(self) -> Tuple[Dict[str, str], str]:
        """Return the name -> email map and where it came from.

        The Contractors tab wins; the configured map is used when the tab
        cannot be read or holds no email addresses.
        """
        try:
            live = self.store.get_contractor_emails()
        except Exception as exc:
            logger.warning("Could not read contractor registry, using configured emails: %s", exc)
            live = {}
        if live:
            return live, "registry"
        static = {name: email for name, email in self.settings.subcontractor_emails.items() if email}
        if static:
            return static, "config"
        return {}, "none"

    def send_email(self, to: str, content: EmailContent) -> DigestResult:
        """Deliver one rendered digest; the result carries no contractor yet."""
        if not self.settings.is_configured:
            logger.warning("Email not configured. Skipping email to %s", to)
            return DigestResult(
                success=False,
                skipped=True,
                email_address=to,
                message="Email configuration not set up (SMTP_HOST, SMTP_USER, SMTP_PASSWORD).",
            )
        transport = self._transport_factory(self.settings)
        accepted = transport.send(build_message(self.settings, to, content))
        if not accepted:
            return DigestResult(success=False, email_address=to, message=f"Mail server refused {to}")
        return DigestResult(success=True, email_address=to, message=f"Sent to {', '.join(accepted)}")

    def send_email_to_subcontractor(self, name: str, email: str) -> DigestResult:
        """Fetch, render and send one contractor's digest; never raises."""
        task_count = 0
        try:
            tasks = self.store.get_subcontractor_tasks(name)
            task_count = len(tasks)
            content = self.generate_email_content(tasks, name)
            result = self.send_email(email, content)
        except SiteTasksError as exc:
            logger.error("Error sending email to %s: %s", name, exc.detail)
            result = DigestResult(success=False, email_address=email, message=exc.detail)
        except Exception as exc:
            logger.error("Error sending email to %s: %s", name, exc, exc_info=True)
            result = DigestResult(success=False, email_address=email, message=str(exc))

        result.subcontractor = name
        result.task_count = task_count
        outcome = "sent" if result.success else "skipped" if result.skipped else "failed"
        digest_emails_total.labels(outcome).inc()
        if result.success:
            logger.info("Weekly digest sent to %s <%s> (%d open tasks)", name, email, task_count)
        return result

    async def send_weekly_emails(self) -> List[DigestResult]:
        """Send every contractor their digest concurrently; one result per contractor."""
        recipients, source = self.resolve_recipients()
        if not recipients:
            logger.warning("Weekly emails not sent: no contractor emails available")
            return [DigestResult(success=False, message=NO_RECIPIENTS_MESSAGE)]

        logger.info("Sending weekly digests to %d contractor(s) from %s", len(recipients), source)
        names = list(recipients)
        outcomes = await asyncio.gather(
            *(asyncio.to_thread(self.send_email_to_subcontractor, name, recipients[name]) for name in names),
            return_exceptions=True,
        )
        results: List[DigestResult] = []
        for name, outcome in zip(names, outcomes):
            if isinstance(outcome, BaseException):
                logger.error("Digest worker for %s crashed: %s", name, outcome)
                outcome = DigestResult(
                    success=False,
                    subcontractor=name,
                    email_address=recipients[name],
                    message=str(outcome),
                )
            results.append(outcome)
        return results


def summarize(results: List[DigestResult]) -> Dict[str, Any]:
    """Batch summary in the HTTP response shape."""
    return {
        "success": True,
        "emailsSent": sum(1 for result in results if result.success),
        "results": [result.to_dict() for result in results],
    }
