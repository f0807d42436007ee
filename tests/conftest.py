"""Pytest configuration and fixtures."""
import os
from datetime import date, datetime, timezone

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("SHEETS_BACKEND", "workbook")
os.environ.setdefault("LOG_FORMAT", "text")

from sitetasks.config import EmailSettings  # noqa: E402
from sitetasks.core.exceptions import BackendError, DeliveryFailure  # noqa: E402
from sitetasks.dependencies import get_email_settings, get_store, get_transport_factory  # noqa: E402
from sitetasks.main import app  # noqa: E402
from sitetasks.services.sheet_store import SheetStore, TaskIdClock  # noqa: E402
from sitetasks.sheets.workbook import WorkbookBackend  # noqa: E402

CREATED_AT = datetime(2026, 3, 9, 14, 30, tzinfo=timezone.utc)
TODAY = date(2026, 3, 16)


class FlakyWorkbookBackend(WorkbookBackend):
    """Workbook backend whose writes to selected tabs fail."""

    def __init__(self, path, *, fail_append=(), fail_update=(), **kwargs):
        super().__init__(path, **kwargs)
        self.fail_append = set(fail_append)
        self.fail_update = set(fail_update)

    def append_rows(self, title, rows):
        if title in self.fail_append:
            raise BackendError(f"Quota exceeded writing to '{title}'")
        super().append_rows(title, rows)

    def update_row(self, title, row_number, values):
        if title in self.fail_update:
            raise BackendError(f"Quota exceeded writing to '{title}'")
        super().update_row(title, row_number, values)


class FakeMailbox:
    """Transport factory and transport in one; records what would be sent."""

    def __init__(self):
        self.messages = []
        self.refused = set()
        self.broken = set()
        self.settings = None

    def __call__(self, settings):
        self.settings = settings
        return self

    def send(self, message):
        to = message["To"]
        if to in self.broken:
            raise DeliveryFailure(f"Email send failed: connection reset while sending to {to}")
        if to in self.refused:
            return []
        self.messages.append(message)
        return [to]

    def sent_to(self):
        return sorted(message["To"] for message in self.messages)


def make_store(backend):
    return SheetStore(backend, clock=TaskIdClock(now=lambda: CREATED_AT))


@pytest.fixture
def workbook_path(tmp_path):
    return tmp_path / "site_tasks.xlsx"


@pytest.fixture
def backend(workbook_path):
    return WorkbookBackend(workbook_path, today=lambda: TODAY)


@pytest.fixture
def store(backend):
    return make_store(backend)


@pytest.fixture
def mailbox():
    return FakeMailbox()


@pytest.fixture
def email_settings():
    return EmailSettings(
        smtp_host="smtp.example.com",
        smtp_port=587,
        smtp_user="tasks@example.com",
        smtp_password="app-password",
        from_email="tasks@legendaryhomes.com",
    )


@pytest.fixture
def sample_task():
    return {
        "project": "Oakwood Lot 12",
        "area": "Kitchen",
        "trade": "Drywall",
        "task_title": "Patch ceiling crack",
        "task_details": "Crack above the island, about 2 ft",
        "assigned_to": "Smith Drywall",
        "priority": "High",
        "due_date": "2026-03-20",
        "photo_needed": True,
        "notes": "Check after paint",
    }


@pytest.fixture
def client(store, mailbox, email_settings):
    """Create a test client overriding the store and mail dependencies."""
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_email_settings] = lambda: email_settings
    app.dependency_overrides[get_transport_factory] = lambda: mailbox
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
