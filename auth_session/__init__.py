"""
auth-session: session lifecycle management for apps backed by an external
identity provider.
"""

from auth_session.core.exceptions import (
    AuthError,
    AuthSessionException,
    CredentialValidationError,
    InvalidCredentialError,
    ProviderTimeoutError,
    RefreshFailedError,
    RefreshInProgressError,
    StoreError,
)
from auth_session.models.domain import (
    Credentials,
    ExpiryStatus,
    Session,
    SessionEvent,
    SessionState,
    UserProfile,
)
from auth_session.sessions.manager import SessionManager

__version__ = "1.0.0"

__all__ = [
    "AuthError",
    "AuthSessionException",
    "CredentialValidationError",
    "Credentials",
    "ExpiryStatus",
    "InvalidCredentialError",
    "ProviderTimeoutError",
    "RefreshFailedError",
    "RefreshInProgressError",
    "Session",
    "SessionEvent",
    "SessionManager",
    "SessionState",
    "StoreError",
    "UserProfile",
]
