"""Centralized error definitions for the avalanche report service."""

import logging
from collections.abc import Callable
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any
from typing import TypeVar

import requests

from avalanche_report.error_codes import ErrorCode


logger = logging.getLogger(__name__)

T = TypeVar('T')

@dataclass
class AvalancheReportError(Exception):
    """Base exception for all avalanche report errors."""
    message: str
    code: ErrorCode
    details: dict[str, Any] | None = None

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (Code: {self.code.value}, Details: {self.details})"
        return f"{self.message} (Code: {self.code.value})"

class APIError(AvalancheReportError):
    """Base class for API-related errors."""
    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.REQUEST_FAILED,
        response: requests.Response | None = None,
        details: dict[str, Any] | None = None
    ):
        super().__init__(message, code, details)
        self.response = response

class APITimeoutError(APIError):
    """API timeout error."""
    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, ErrorCode.TIMEOUT, details=details)

class APIResponseError(APIError):
    """API response error."""
    def __init__(
        self,
        message: str,
        response: requests.Response | None = None,
        details: dict[str, Any] | None = None
    ):
        super().__init__(message, ErrorCode.INVALID_RESPONSE, response=response, details=details)

class APIValidationError(APIError):
    """API validation error."""
    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, ErrorCode.VALIDATION_FAILED, details=details)

class GoogleDriveError(APIError):
    """Base class for document store failures."""

class GoogleDriveTransportError(GoogleDriveError):
    """The document store could not be reached."""
    def __init__(self, message: str):
        super().__init__(message, ErrorCode.DRIVE_TRANSPORT_ERROR)

class GoogleDriveResponseError(GoogleDriveError):
    """The document store answered with a non-success status.

    ``envelope`` holds the decoded ``error`` object of the response body
    (``code``, ``message`` and ``errors``) when the body was JSON.
    """
    def __init__(
        self,
        message: str,
        status: int,
        body: str,
        envelope: dict[str, Any] | None = None
    ):
        super().__init__(
            message,
            ErrorCode.DRIVE_RESPONSE_ERROR,
            details={"status": status, "body": body}
        )
        self.status = status
        self.body = body
        self.envelope = envelope

class ConfigError(AvalancheReportError):
    """Configuration error."""
    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, ErrorCode.CONFIG_INVALID, details)

class ValidationError(AvalancheReportError):
    """Validation error."""
    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, ErrorCode.VALIDATION_FAILED, details)

class ForecastNotFoundError(AvalancheReportError):
    """No published forecast file carries the requested name."""
    def __init__(self, file_name: str):
        super().__init__(
            f"Forecast {file_name!r} not found",
            ErrorCode.FORECAST_NOT_FOUND,
            {"file_name": file_name}
        )
        self.file_name = file_name

class UnsupportedMimeTypeError(AvalancheReportError):
    """File has a MIME type that cannot be served in the requested way."""
    def __init__(self, mime_type: str, file_name: str | None = None):
        details: dict[str, Any] = {"mime_type": mime_type}
        if file_name:
            details["file_name"] = file_name
        super().__init__(
            f"Unsupported MIME type {mime_type!r}",
            ErrorCode.UNSUPPORTED_MIME_TYPE,
            details
        )
        self.mime_type = mime_type

class ForecastNameError(AvalancheReportError):
    """Forecast file name does not follow the naming convention."""
    def __init__(self, message: str, file_name: str):
        super().__init__(message, ErrorCode.FORECAST_NAME_INVALID, {"file_name": file_name})
        self.file_name = file_name

class DatabaseError(AvalancheReportError):
    """Database error."""
    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, ErrorCode.DATABASE_ERROR, details)

class MigrationError(AvalancheReportError):
    """A schema migration failed to apply."""
    def __init__(self, message: str, version: int, name: str):
        super().__init__(
            message,
            ErrorCode.MIGRATION_FAILED,
            {"version": version, "name": name}
        )
        self.version = version
        self.name = name

class BackupError(AvalancheReportError):
    """Database backup failed."""
    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, ErrorCode.BACKUP_FAILED, details)

class AnalyticsQueryError(AvalancheReportError):
    """Invalid combination of analytics query parameters."""
    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, ErrorCode.ANALYTICS_QUERY_INVALID, details)

class WeatherError(AvalancheReportError):
    """Weather station error."""
    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, ErrorCode.WEATHER_ERROR, details)

@contextmanager
def handle_errors(
    error_type: type[AvalancheReportError],
    service: str,
    operation: str,
    fallback: Callable[[], T] | None = None
) -> Iterator[None]:
    """Handle errors in a context manager.

    Errors of ``error_type`` are logged and re-raised unless a fallback is
    given, in which case the fallback is called and the error suppressed.
    Unexpected errors are logged with their traceback.

    Args:
        error_type: The error type to catch
        service: The service name
        operation: The operation name
        fallback: Optional fallback function to call if error occurs
    """
    try:
        yield
    except error_type as e:
        logger.error("Error in %s.%s: %s", service, operation, e)
        if fallback:
            fallback()
            return
        raise
    except Exception as e:
        logger.error(
            "Unexpected error in %s.%s: %s", service, operation, e,
            exc_info=True
        )
        if fallback:
            fallback()
            return
        raise
