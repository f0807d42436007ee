"""SMTP mail transport."""
from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from email.utils import formataddr, getaddresses
from typing import List, Protocol

from sitetasks.config import EmailSettings
from sitetasks.core.exceptions import ConfigurationError, DeliveryFailure
from sitetasks.services.email_templates import EmailContent

logger = logging.getLogger(__name__)

# Sender domains that belong to machine identities rather than mailboxes.
SERVICE_IDENTITY_DOMAINS = ("gserviceaccount.com",)


def is_service_identity(address: str) -> bool:
    domain = address.rpartition("@")[2].strip().lower()
    return any(domain == suffix or domain.endswith("." + suffix) for suffix in SERVICE_IDENTITY_DOMAINS)


def resolve_sender(settings: EmailSettings) -> str:
    """Pick the From address, replacing machine identities with the SMTP login."""
    sender = (settings.from_email or "").strip()
    if not sender or is_service_identity(sender):
        if sender:
            logger.warning("Sender %s is a service identity; sending as %s", sender, settings.smtp_user)
        return settings.smtp_user or ""
    return sender


def build_message(settings: EmailSettings, to: str, content: EmailContent) -> EmailMessage:
    message = EmailMessage()
    message["From"] = formataddr((settings.from_name, resolve_sender(settings)))
    message["To"] = to
    message["Subject"] = content.subject
    message.set_content(content.text)
    message.add_alternative(content.html, subtype="html")
    return message


class MailTransport(Protocol):
    def send(self, message: EmailMessage) -> List[str]:
        """Deliver the message and return the accepted recipients."""


class SmtpTransport:
    """Sends mail over SMTP; port 465 uses implicit TLS, other ports STARTTLS."""

    def __init__(self, settings: EmailSettings, *, timeout: float = 30.0):
        self.settings = settings
        self.timeout = timeout

    def send(self, message: EmailMessage) -> List[str]:
        if not self.settings.is_configured:
            raise ConfigurationError("SMTP_HOST, SMTP_USER and SMTP_PASSWORD must be set to send email")

        recipients = [address for _, address in getaddresses(message.get_all("To", []))]
        smtp_class = smtplib.SMTP_SSL if self.settings.smtp_port == 465 else smtplib.SMTP
        try:
            with smtp_class(self.settings.smtp_host, self.settings.smtp_port, timeout=self.timeout) as smtp:
                if smtp_class is smtplib.SMTP:
                    smtp.starttls()
                smtp.login(self.settings.smtp_user, self.settings.smtp_password)
                refused = smtp.send_message(message)
        except smtplib.SMTPRecipientsRefused as exc:
            logger.warning("All recipients refused: %s", ", ".join(exc.recipients))
            return []
        except (smtplib.SMTPException, OSError) as exc:
            raise DeliveryFailure(f"Email send failed: {exc}") from exc

        return [address for address in recipients if address not in refused]
