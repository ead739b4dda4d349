"""Domain models package."""

from auth_session.models.domain import (
    Credentials,
    ExpiryStatus,
    Session,
    SessionEvent,
    SessionState,
    TeardownReport,
    TeardownStep,
    UserProfile,
    check_expiry,
    utcnow,
)

__all__ = [
    "Credentials",
    "ExpiryStatus",
    "Session",
    "SessionEvent",
    "SessionState",
    "TeardownReport",
    "TeardownStep",
    "UserProfile",
    "check_expiry",
    "utcnow",
]
