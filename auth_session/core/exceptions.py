"""
Custom exceptions for auth-session.

This module provides the exception hierarchy for session lifecycle management.
All exceptions inherit from AuthSessionException and carry an error code for
consistent handling by UI callers and in logs.

Propagation policy:
- begin/refresh/login errors reach the caller as these typed exceptions.
- restore_if_available, end and user_profile never raise; their failures
  are logged.
- No error kind is fatal; all are recoverable by signing in again.
"""

from enum import Enum
from typing import Any, Optional


# =============================================================================
# Error Codes Enum
# =============================================================================


class ErrorCode(str, Enum):
    """Machine-readable error codes for auth-session exceptions."""

    SESSION_ERROR = "SESSION_ERROR"
    INVALID_CREDENTIAL = "INVALID_CREDENTIAL"
    AUTH_ERROR = "AUTH_ERROR"
    REFRESH_FAILED = "REFRESH_FAILED"
    REFRESH_IN_PROGRESS = "REFRESH_IN_PROGRESS"
    STORE_ERROR = "STORE_ERROR"
    PROVIDER_TIMEOUT = "PROVIDER_TIMEOUT"
    VALIDATION_ERROR = "VALIDATION_ERROR"


# =============================================================================
# Base Exception
# =============================================================================


class AuthSessionException(Exception):
    """
    Base exception for all auth-session errors.

    Attributes:
        message: Human-readable error message.
        error_code: Machine-readable error code from ErrorCode enum.
    """

    def __init__(
        self,
        message: str,
        error_code: str = ErrorCode.SESSION_ERROR,
        **kwargs: Any,
    ) -> None:
        """
        Initialize the exception.

        Args:
            message: Human-readable error message.
            error_code: Machine-readable error code.
            **kwargs: Additional attributes to set on the exception.
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code

        for key, value in kwargs.items():
            setattr(self, key, value)


# =============================================================================
# Credential Errors
# =============================================================================


class InvalidCredentialError(AuthSessionException):
    """
    Raised when a credential bundle cannot start a session.

    Covers a missing expiry and an expiry that has already passed.
    """

    def __init__(
        self,
        message: str,
        error_code: str = ErrorCode.INVALID_CREDENTIAL,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code=error_code, **kwargs)


class AuthError(AuthSessionException):
    """
    Raised when the identity provider rejects an authentication exchange.

    Propagated from the IdentityProvider unchanged and never retried
    automatically.

    Attributes:
        provider: Name of the identity provider or connection (if known).
        status_code: Status reported by the provider (if applicable).
    """

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        status_code: Optional[int] = None,
        error_code: str = ErrorCode.AUTH_ERROR,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code=error_code, **kwargs)
        self.provider = provider
        self.status_code = status_code


# =============================================================================
# Refresh Errors
# =============================================================================


class RefreshFailedError(AuthSessionException):
    """
    Raised when a session could not be refreshed.

    The session is no longer usable for protected calls; the caller must
    sign in again.
    """

    def __init__(
        self,
        message: str,
        error_code: str = ErrorCode.REFRESH_FAILED,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code=error_code, **kwargs)


class RefreshInProgressError(AuthSessionException):
    """Raised by refresh(wait=False) while another refresh is in flight."""

    def __init__(
        self,
        message: str = "A session refresh is already in progress",
        error_code: str = ErrorCode.REFRESH_IN_PROGRESS,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code=error_code, **kwargs)


class ProviderTimeoutError(RefreshFailedError, AuthError):
    """
    Raised when an identity provider call exceeds its time bound.

    Is both a RefreshFailedError (during refresh) and an AuthError (during
    login and signup), so callers can handle it through either type.

    Attributes:
        operation: The provider operation that timed out.
        timeout_seconds: The bound that was exceeded.
    """

    def __init__(
        self,
        message: str,
        operation: str,
        timeout_seconds: float,
        error_code: str = ErrorCode.PROVIDER_TIMEOUT,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code=error_code, **kwargs)
        self.operation = operation
        self.timeout_seconds = timeout_seconds


# =============================================================================
# Storage Errors
# =============================================================================


class StoreError(AuthSessionException):
    """
    Raised by a CredentialStore when it cannot persist or read credentials.

    Never fatal: the session manager logs it and carries on.
    """

    def __init__(
        self,
        message: str,
        error_code: str = ErrorCode.STORE_ERROR,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code=error_code, **kwargs)


# =============================================================================
# Form Validation Errors
# =============================================================================


class CredentialValidationError(AuthSessionException):
    """
    Raised when login or signup form input is rejected before any provider call.

    Attributes:
        field: Name of the field that failed validation.
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        error_code: str = ErrorCode.VALIDATION_ERROR,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code=error_code, **kwargs)
        self.field = field
