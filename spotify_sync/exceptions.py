"""Custom exceptions for spotify-sync with HTTP status codes where they apply."""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Error codes for structured outcomes and log records."""

    # Generic errors
    SYNC_ERROR = "SYNC_ERROR"

    # Outbound request errors
    NO_ACCOUNT = "NO_ACCOUNT"
    UNAUTHENTICATED = "UNAUTHENTICATED"
    AUTH_EXPIRED = "AUTH_EXPIRED"
    REFRESH_FAILED = "REFRESH_FAILED"
    REMOTE_REQUEST_FAILED = "REMOTE_REQUEST_FAILED"
    TRANSPORT_UNREACHABLE = "TRANSPORT_UNREACHABLE"
    MALFORMED_RESPONSE = "MALFORMED_RESPONSE"

    # Configuration errors
    CONFIG_ERROR = "CONFIG_ERROR"


class SyncException(Exception):
    """Base exception for spotify-sync errors.

    All custom exceptions should inherit from this class so callers can
    catch every failure of this subsystem in one place.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.SYNC_ERROR,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        """Initialize sync exception.

        Args:
            message: Human-readable error message
            code: Error code from ErrorCode enum
            status_code: HTTP status code of the failed response, if any
            details: Additional error context/details
        """
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class NoAccountException(SyncException):
    """No account id was given for an outbound request."""

    def __init__(self, message: str = "No account id provided", details: dict[str, Any] | None = None):
        super().__init__(message, code=ErrorCode.NO_ACCOUNT, details=details)


class NotAuthenticatedException(SyncException):
    """The account has no access (or refresh) token on file."""

    def __init__(self, message: str = "Account has no access token", details: dict[str, Any] | None = None):
        super().__init__(message, code=ErrorCode.UNAUTHENTICATED, status_code=401, details=details)


class TokenRefreshException(SyncException):
    """Refreshing the access token failed, or the retried request was rejected again."""

    def __init__(self, message: str = "Spotify token refresh failed", details: dict[str, Any] | None = None):
        super().__init__(message, code=ErrorCode.REFRESH_FAILED, status_code=401, details=details)


class RemoteRequestException(SyncException):
    """Spotify API answered with a non-2xx, non-401 status."""

    def __init__(self, message: str, status_code: int = 502, details: dict[str, Any] | None = None):
        super().__init__(message, code=ErrorCode.REMOTE_REQUEST_FAILED, status_code=status_code, details=details)


class TransportUnreachableException(SyncException):
    """The remote could not be reached at all."""

    def __init__(self, message: str = "Spotify API unreachable", details: dict[str, Any] | None = None):
        super().__init__(message, code=ErrorCode.TRANSPORT_UNREACHABLE, details=details)


class MalformedResponseException(SyncException):
    """A response body did not have the expected shape."""

    def __init__(self, message: str = "Malformed Spotify response", details: dict[str, Any] | None = None):
        super().__init__(message, code=ErrorCode.MALFORMED_RESPONSE, details=details)


class ConfigurationException(SyncException):
    """Configuration errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, code=ErrorCode.CONFIG_ERROR, details=details)
