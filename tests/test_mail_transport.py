"""Tests for the SMTP mail transport."""
import smtplib

import pytest

from sitetasks.config import EmailSettings
from sitetasks.core.exceptions import ConfigurationError, DeliveryFailure
from sitetasks.services.email_templates import EmailContent
from sitetasks.services.mail_transport import SmtpTransport, build_message


class FakeSMTP:
    """Stands in for smtplib.SMTP and SMTP_SSL; records each session."""

    sessions = []
    refused = {}
    error = None
    connect_error = None

    def __init__(self, host, port, timeout=None):
        if self.connect_error is not None:
            raise self.connect_error
        self.host = host
        self.port = port
        self.timeout = timeout
        self.calls = []
        FakeSMTP.sessions.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.calls.append("quit")
        return False

    def starttls(self):
        self.calls.append("starttls")

    def login(self, user, password):
        self.calls.append(("login", user, password))

    def send_message(self, message):
        self.calls.append(("send", message["To"]))
        if self.error is not None:
            raise self.error
        return dict(self.refused)


class FakeSMTPSSL(FakeSMTP):
    pass


@pytest.fixture
def fake_smtp(monkeypatch):
    FakeSMTP.sessions = []
    FakeSMTP.refused = {}
    FakeSMTP.error = None
    FakeSMTP.connect_error = None
    monkeypatch.setattr(smtplib, "SMTP", FakeSMTP)
    monkeypatch.setattr(smtplib, "SMTP_SSL", FakeSMTPSSL)
    return FakeSMTP


def message_for(settings, to="smith@example.com"):
    return build_message(settings, to, EmailContent("Weekly Task Summary", "<p>Hi</p>", "Hi"))


def test_starttls_on_submission_port(fake_smtp, email_settings):
    accepted = SmtpTransport(email_settings, timeout=5).send(message_for(email_settings))

    assert accepted == ["smith@example.com"]
    (session,) = fake_smtp.sessions
    assert type(session) is FakeSMTP
    assert (session.host, session.port, session.timeout) == ("smtp.example.com", 587, 5)
    assert session.calls == [
        "starttls",
        ("login", "tasks@example.com", "app-password"),
        ("send", "smith@example.com"),
        "quit",
    ]


def test_implicit_tls_on_port_465(fake_smtp, email_settings):
    settings = email_settings.model_copy(update={"smtp_port": 465})

    SmtpTransport(settings).send(message_for(settings))

    (session,) = fake_smtp.sessions
    assert type(session) is FakeSMTPSSL
    assert session.port == 465
    assert "starttls" not in session.calls


def test_refused_recipients_are_dropped(fake_smtp, email_settings):
    fake_smtp.refused = {"ace@example.com": (550, b"No such user")}
    message = message_for(email_settings, to="smith@example.com, ace@example.com")

    assert SmtpTransport(email_settings).send(message) == ["smith@example.com"]


def test_all_recipients_refused(fake_smtp, email_settings):
    fake_smtp.error = smtplib.SMTPRecipientsRefused({"smith@example.com": (550, b"No such user")})

    assert SmtpTransport(email_settings).send(message_for(email_settings)) == []


@pytest.mark.parametrize(
    "error",
    [
        smtplib.SMTPServerDisconnected("Connection unexpectedly closed"),
        smtplib.SMTPAuthenticationError(535, b"Bad credentials"),
    ],
)
def test_smtp_errors_become_delivery_failures(fake_smtp, email_settings, error):
    fake_smtp.error = error
    with pytest.raises(DeliveryFailure):
        SmtpTransport(email_settings).send(message_for(email_settings))


def test_connection_errors_become_delivery_failures(fake_smtp, email_settings):
    fake_smtp.connect_error = ConnectionRefusedError(111, "Connection refused")
    with pytest.raises(DeliveryFailure):
        SmtpTransport(email_settings).send(message_for(email_settings))


def test_unconfigured_transport(fake_smtp):
    settings = EmailSettings(smtp_host="smtp.example.com")
    with pytest.raises(ConfigurationError):
        SmtpTransport(settings).send(message_for(settings))
    assert fake_smtp.sessions == []
