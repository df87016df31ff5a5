"""Error definitions for the feed syndication service."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCategory(Enum):
    """Categories of errors that can occur in the system."""

    UPSTREAM_ERROR = "upstream_error"
    PARSE_ERROR = "parse_error"
    NOT_FOUND = "not_found"
    AUTH_MATERIAL_ERROR = "auth_material_error"
    CACHE_ERROR = "cache_error"
    CONFIG_ERROR = "config_error"


class ErrorSeverity(Enum):
    """Severity levels for errors."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class SyndicatorError(Exception):
    """Base error class for all feed syndicator errors.

    ``status_code`` is the HTTP status the API layer answers with when the
    error reaches a request boundary.
    """

    status_code = 500

    def __init__(
        self,
        message: str,
        category: ErrorCategory,
        severity: ErrorSeverity,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Initialize base error.

        Args:
            message: Error message
            category: Error category
            severity: Error severity
            details: Optional error details
        """
        super().__init__(message)
        self.message = message
        self.category = category
        self.severity = severity
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()


class UpstreamError(SyndicatorError):
    """Raised when an upstream API reports an error or cannot be reached."""

    status_code = 400

    def __init__(
        self,
        message: str,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, ErrorCategory.UPSTREAM_ERROR, severity, details)


class ParseError(SyndicatorError):
    """Raised when expected embedded structured data is absent or malformed."""

    status_code = 500

    def __init__(
        self,
        message: str,
        severity: ErrorSeverity = ErrorSeverity.HIGH,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, ErrorCategory.PARSE_ERROR, severity, details)


class SubjectNotFound(SyndicatorError):
    """Raised when a subject identifier is missing or resolves to nothing."""

    status_code = 404

    def __init__(
        self,
        message: str,
        severity: ErrorSeverity = ErrorSeverity.LOW,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, ErrorCategory.NOT_FOUND, severity, details)


class CookieFormatError(SyndicatorError):
    """Raised when a cookie file is not in Netscape format. Fatal at load time."""

    def __init__(
        self,
        message: str,
        severity: ErrorSeverity = ErrorSeverity.CRITICAL,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, ErrorCategory.AUTH_MATERIAL_ERROR, severity, details)


class CacheUnavailable(SyndicatorError):
    """Raised by cache stores when the backend cannot be used.

    The feed cache treats this as a forced miss.
    """

    status_code = 503

    def __init__(
        self,
        message: str,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, ErrorCategory.CACHE_ERROR, severity, details)


class ConfigError(SyndicatorError):
    """Raised when configuration is missing or invalid."""

    def __init__(
        self,
        message: str,
        severity: ErrorSeverity = ErrorSeverity.CRITICAL,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, ErrorCategory.CONFIG_ERROR, severity, details)
