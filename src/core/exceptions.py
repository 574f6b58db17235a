"""Structured exception hierarchy for consistent error handling.

Key components:
- **ErrorCode enum**: Standardized error identifiers for programmatic handling
- **Severity enum**: Error classification for monitoring and alerting
- **ServiceError**: Base exception with context, cause chaining and fingerprinting
- **IconUnavailableError**: The icon file could not be read from disk

The exception hierarchy enables specific handling where needed and generic
handling at the API boundary, so clients always get the same error shape.
"""

import hashlib
import traceback
from enum import Enum
from typing import Any


class ErrorCode(Enum):
    """Standardized error codes for the favicon service."""

    INTERNAL_ERROR = "INTERNAL_ERROR"
    """An unexpected internal error occurred in the system."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    """Input validation failed due to invalid or malformed data."""

    NOT_FOUND = "NOT_FOUND"
    """The requested resource could not be found."""

    ICON_UNAVAILABLE = "ICON_UNAVAILABLE"
    """The configured icon file is missing or unreadable."""


class Severity(Enum):
    """Severity levels used for logging and alerting decisions."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class ServiceError(Exception):
    """Base exception class for all application exceptions.

    Args:
        error_code: Unique identifier for the error type (string or ErrorCode enum)
        message: Human-readable error message
        severity: Severity level of the error (defaults to MEDIUM)
        context: Additional context information about the error
        cause: The original exception that caused this error
    """

    def __init__(
        self,
        error_code: str | ErrorCode,
        message: str,
        severity: Severity = Severity.MEDIUM,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.error_code = (
            error_code.value if isinstance(error_code, ErrorCode) else error_code
        )
        self.message = message
        self.severity = severity
        self.context = context or {}
        self.cause = cause

        # Capture stack trace at creation time, excluding this frame
        self.stack_trace = traceback.format_stack()[:-1]
        self.fingerprint = self._generate_fingerprint()

        super().__init__(message)
        if cause:
            self.__cause__ = cause

    def _generate_fingerprint(self) -> str:
        """Generate a fingerprint for error grouping.

        Returns:
            str: A hash of the error type and the project frames that raised it.
        """
        max_frames = 5
        fingerprint_data = f"{self.__class__.__name__}:{self.error_code}"

        for frame in self.stack_trace[-max_frames:]:
            if "site-packages" not in frame and "src/" in frame:
                lines = frame.strip().split("\n")
                if lines:
                    fingerprint_data += f":{lines[0]}"

        return hashlib.sha256(fingerprint_data.encode()).hexdigest()[:16]

    @property
    def is_expected(self) -> bool:
        """Whether the error is part of normal operation (LOW or MEDIUM severity)."""
        return self.severity in (Severity.LOW, Severity.MEDIUM)

    @property
    def should_alert(self) -> bool:
        """Whether the error should page someone (HIGH or CRITICAL severity)."""
        return self.severity in (Severity.HIGH, Severity.CRITICAL)

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        class_name = self.__class__.__name__
        context_str = f", context={self.context}" if self.context else ""
        return (
            f"{class_name}(error_code='{self.error_code}', "
            f"message='{self.message}', severity={self.severity.value}{context_str})"
        )


class IconUnavailableError(ServiceError):
    """Exception raised when the icon file cannot be read.

    The icon is part of the deployment, so a missing file is a
    misconfiguration rather than a client error.

    Args:
        icon_path: The file system path that failed to read
        cause: The underlying OSError
    """

    def __init__(self, icon_path: str, cause: Exception | None = None) -> None:
        super().__init__(
            ErrorCode.ICON_UNAVAILABLE,
            f"Icon file could not be read: {icon_path}",
            Severity.HIGH,
            {"icon_path": icon_path},
            cause,
        )
        self.icon_path = icon_path
