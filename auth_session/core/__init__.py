"""Core package: settings and exception hierarchy."""

from auth_session.core.config import Settings, get_settings
from auth_session.core.exceptions import (
    AuthError,
    AuthSessionException,
    CredentialValidationError,
    ErrorCode,
    InvalidCredentialError,
    ProviderTimeoutError,
    RefreshFailedError,
    RefreshInProgressError,
    StoreError,
)

__all__ = [
    "Settings",
    "get_settings",
    "AuthError",
    "AuthSessionException",
    "CredentialValidationError",
    "ErrorCode",
    "InvalidCredentialError",
    "ProviderTimeoutError",
    "RefreshFailedError",
    "RefreshInProgressError",
    "StoreError",
]
