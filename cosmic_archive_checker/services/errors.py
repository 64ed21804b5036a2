"""Error types and centralized error handling for the Cosmic Archive checker.

Every failure the pipeline can meet has a typed error:

- NetworkError: a request could not be sent, or answered with a non-2xx status
- ParseError: a JSON document, page or digest did not have the expected shape
- ArchiveError: a download is not a readable zip archive
- FileSystemError: a destination directory or file could not be written
- DigestSizeError: a hash of the wrong width, which is a bug in this program

ErrorHandlingService turns raw library exceptions into these types, logs
them at the severity of their kind and counts them for the run summary.
"""

import json
import time
import zipfile
from dataclasses import dataclass
from enum import Enum
from typing import Any

import httpx
import structlog

log = structlog.stdlib.get_logger()

# Longest value quoted in technical details
MAX_VALUE_LENGTH = 100


class ErrorCategory(Enum):
    """What kind of failure an error is."""
    NETWORK = "network"
    PARSE = "parse"
    ARCHIVE = "archive"
    FILE_SYSTEM = "file_system"
    PROGRAMMER = "programmer"
    CONFIGURATION = "configuration"
    UNEXPECTED = "unexpected"


class ErrorSeverity(Enum):
    """Log level an error is reported at."""
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


@dataclass(frozen=True)
class ErrorContext:
    """Where an unexpected error happened."""
    operation: str
    component: str
    details: dict[str, Any]


def describe(error: BaseException) -> str:
    return f"{type(error).__name__}: {error}"


def _technical_details(*lines: tuple[str, Any]) -> str | None:
    """Join the labelled values that are set, one per line."""
    parts = []
    for label, value in lines:
        if value is None or value == "":
            continue
        if isinstance(value, BaseException):
            value = describe(value)
        parts.append(f"{label}: {str(value)[:MAX_VALUE_LENGTH]}")
    return "\n".join(parts) or None


class AppError(Exception):
    """Base class of every error the checker reports."""

    category = ErrorCategory.UNEXPECTED
    severity = ErrorSeverity.ERROR

    def __init__(
        self,
        message: str,
        category: ErrorCategory | None = None,
        severity: ErrorSeverity | None = None,
        technical_details: str | None = None,
        context: ErrorContext | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if category is not None:
            self.category = category
        if severity is not None:
            self.severity = severity
        self.technical_details = technical_details
        self.context = context


class NetworkError(AppError):
    """Request send failure, non-2xx status, or body read failure."""

    category = ErrorCategory.NETWORK

    def __init__(
        self,
        message: str,
        original_error: Exception | None = None,
        url: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(
            message,
            technical_details=_technical_details(
                ("Status", status_code),
                ("URL", url),
                ("Error", original_error),
            ),
        )
        self.original_error = original_error
        self.url = url
        self.status_code = status_code


class ParseError(AppError):
    """JSON shape, page markup or digest hex decoding failure."""

    category = ErrorCategory.PARSE

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(
            message,
            technical_details=_technical_details(
                ("Field", field),
                ("Value", value),
                ("Error", original_error),
            ),
        )
        self.field = field
        self.value = value
        self.original_error = original_error


class ArchiveError(AppError):
    """A download that is not a readable zip archive."""

    category = ErrorCategory.ARCHIVE

    def __init__(
        self,
        message: str,
        download_id: int | None = None,
        entry_name: str | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(
            message,
            technical_details=_technical_details(
                ("Download", download_id),
                ("Entry", entry_name),
                ("Error", original_error),
            ),
        )
        self.download_id = download_id
        self.entry_name = entry_name
        self.original_error = original_error


class FileSystemError(AppError):
    """Directory or file could not be created or written."""

    category = ErrorCategory.FILE_SYSTEM

    def __init__(
        self,
        message: str,
        original_error: Exception | None = None,
        path: str | None = None,
        operation: str | None = None,
    ) -> None:
        super().__init__(
            message,
            technical_details=_technical_details(
                ("Path", path),
                ("Operation", operation),
                ("Error", original_error),
            ),
        )
        self.original_error = original_error
        self.path = path
        self.operation = operation


class DigestSizeError(AppError):
    """A digest buffer of the wrong size: a logic bug, never an I/O problem."""

    category = ErrorCategory.PROGRAMMER
    severity = ErrorSeverity.CRITICAL

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(
            f"Digest buffer size mismatch: expected {expected} bytes, got {actual}",
            technical_details="This is likely a logic bug concerning incorrect byte buffer size",
        )
        self.expected = expected
        self.actual = actual


class ConfigurationError(AppError):
    """The assembled configuration is unusable."""

    category = ErrorCategory.CONFIGURATION

    def __init__(
        self,
        message: str,
        setting: str | None = None,
        current_value: Any = None,
    ) -> None:
        super().__init__(
            message,
            technical_details=_technical_details(("Setting", setting), ("Current", current_value)),
        )
        self.setting = setting
        self.current_value = current_value


def convert_error(
    error: Exception,
    operation: str,
    component: str,
    context: dict[str, Any] | None = None,
) -> AppError:
    """Map a raw exception onto the matching application error."""
    if isinstance(error, AppError):
        return error

    context = context or {}
    if isinstance(error, httpx.HTTPStatusError):
        return NetworkError(
            f"Non-success response status: {error.response.status_code}",
            original_error=error,
            url=str(error.request.url),
            status_code=error.response.status_code,
        )
    if isinstance(error, httpx.TimeoutException):
        return NetworkError("The request timed out", original_error=error, url=context.get("url"))
    if isinstance(error, httpx.HTTPError):
        return NetworkError("Failed to send request", original_error=error, url=context.get("url"))
    if isinstance(error, zipfile.BadZipFile):
        return ArchiveError(
            "Failed to read bytes as zip archive",
            download_id=context.get("download_id"),
            original_error=error,
        )
    if isinstance(error, OSError):
        return FileSystemError(
            f"A file system error occurred: {error}",
            original_error=error,
            path=context.get("path"),
            operation=operation,
        )
    if isinstance(error, json.JSONDecodeError):
        return ParseError("Invalid JSON format", original_error=error)
    if isinstance(error, (ValueError, TypeError, KeyError)):
        return ParseError(str(error), original_error=error)

    return AppError(
        "An unexpected error occurred",
        technical_details=describe(error),
        context=ErrorContext(operation=operation, component=component, details=context),
    )


class ErrorHandlingService:
    """Logs and counts the errors of one run.

    History is bounded; the oldest entries are dropped first.
    """

    def __init__(self, max_history_size: int = 100) -> None:
        self._error_history: list[tuple[float, AppError]] = []
        self._max_history_size = max_history_size

    def handle_error(
        self,
        error: Exception,
        operation: str,
        component: str,
        context: dict[str, Any] | None = None,
    ) -> AppError:
        """Convert, log and record an error.

        Args:
            error: The exception that occurred
            operation: What was being done (e.g. "retrieve")
            component: The class or module that failed
            context: Extra fields logged alongside the error

        Returns:
            The error as an AppError
        """
        app_error = convert_error(error, operation, component, context)

        if app_error.severity == ErrorSeverity.CRITICAL:
            log_method = log.critical
        elif app_error.severity == ErrorSeverity.ERROR:
            log_method = log.error
        else:
            log_method = log.warning
        log_method(
            "Error occurred",
            error_message=app_error.message,
            category=app_error.category.value,
            severity=app_error.severity.value,
            operation=operation,
            component=component,
            technical_details=app_error.technical_details,
            context=context,
        )

        self._error_history.append((time.time(), app_error))
        del self._error_history[:-self._max_history_size]
        return app_error

    def get_recent_errors(self, count: int = 10) -> list[AppError]:
        """Return up to ``count`` most recent errors, oldest first."""
        if count <= 0:
            return []
        return [error for _, error in self._error_history[-count:]]

    def get_error_count_by_category(self) -> dict[ErrorCategory, int]:
        counts: dict[ErrorCategory, int] = {}
        for _, error in self._error_history:
            counts[error.category] = counts.get(error.category, 0) + 1
        return counts


# Shared by main for errors that end the run
_error_service: ErrorHandlingService | None = None


def get_error_service() -> ErrorHandlingService:
    """Get the global error handling service instance."""
    global _error_service
    if _error_service is None:
        _error_service = ErrorHandlingService()
    return _error_service


def handle_error(
    error: Exception,
    operation: str,
    component: str,
    context: dict[str, Any] | None = None,
) -> AppError:
    """Convenience function to handle errors using the global service."""
    return get_error_service().handle_error(error, operation, component, context)
