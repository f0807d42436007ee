"""Custom exceptions."""
from typing import Iterable, Optional

from fastapi import status


class SiteTasksError(Exception):
    """Base class for errors surfaced to API callers as failure results."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail: str = "Internal error"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)

    @property
    def error_type(self) -> str:
        return type(self).__name__


class ConfigurationError(SiteTasksError):
    """Backend identifier, credentials or mail settings are missing."""

    default_detail = "Service is not configured"


class BackendNotFound(SiteTasksError):
    """Spreadsheet does not exist or the service account cannot reach it."""

    default_detail = "Spreadsheet not found"

    def __init__(self, sheet_id: Optional[str], original: Optional[str] = None):
        detail = (
            "Google Sheet not found. Check: 1) Sheet ID is correct "
            f"(current: {sheet_id}), 2) Sheet is shared with the service account email, "
            "3) Sheet exists and is accessible."
        )
        if original:
            detail = f"{detail} Original error: {original}"
        super().__init__(detail)


class BackendError(SiteTasksError):
    """Spreadsheet backend rejected a request."""

    default_detail = "Spreadsheet backend error"


class ValidationError(SiteTasksError):
    """Required input is missing or malformed."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Validation error"


class NotFoundError(SiteTasksError):
    """Resource not found."""

    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Resource not found"


class ConflictError(SiteTasksError):
    """Resource already exists."""

    status_code = status.HTTP_409_CONFLICT
    default_detail = "Resource already exists"


class PartialWriteError(SiteTasksError):
    """A row reached some tabs but not others."""

    def __init__(
        self,
        task_id: str,
        *,
        written: Iterable[str],
        failed: Iterable[str],
        cause: Optional[BaseException] = None,
    ):
        self.task_id = task_id
        self.written = list(written)
        self.failed = list(failed)
        detail = (
            f"Task {task_id} was written to {', '.join(self.written) or 'no tabs'} "
            f"but not to {', '.join(self.failed)}"
        )
        if cause is not None:
            detail = f"{detail}: {cause}"
        super().__init__(detail)


class DeliveryFailure(SiteTasksError):
    """Mail transport could not deliver a digest."""

    default_detail = "Email delivery failed"


def status_code_for(error_type: Optional[str]) -> int:
    """HTTP status for a failure result's ``errorType``."""
    for error_class in (ValidationError, NotFoundError, ConflictError):
        if error_class.__name__ == error_type:
            return error_class.status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR
