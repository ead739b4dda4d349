"""
Domain Models - Credentials, Session and lifecycle events

This module contains the value objects shared by the session manager, its
ports and its UI-facing event stream.

Pattern: Domain models as value objects (frozen Pydantic models)
Pattern: Copy-on-write - a Session is never mutated in place; every change
produces a new record via model_copy(update=...), so readers always see a
complete Session.
"""

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator


def utcnow() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# =============================================================================
# State Enums
# =============================================================================


class SessionState(str, Enum):
    """
    Lifecycle state of the session owned by a SessionManager.

    States:
        NO_SESSION: Nobody is signed in (initial state)
        ACTIVE: Signed in, expiry outside the warning window
        EXPIRING_SOON: Signed in, expiry inside the warning window
        REFRESHING: A refresh exchange is in flight
        EXPIRED: Credential no longer usable; only a new begin() leaves it
        LOGGED_OUT: Transient state emitted by end() before NO_SESSION
    """

    NO_SESSION = "no_session"
    ACTIVE = "active"
    EXPIRING_SOON = "expiring_soon"
    REFRESHING = "refreshing"
    EXPIRED = "expired"
    LOGGED_OUT = "logged_out"


class ExpiryStatus(str, Enum):
    """Result of an expiry check against a point in time."""

    ACTIVE = "active"
    EXPIRING_SOON = "expiring_soon"
    EXPIRED = "expired"


def check_expiry(
    expires_at: datetime, now: datetime, warning_window: timedelta
) -> ExpiryStatus:
    """
    Classify how close a session is to expiry.

    Args:
        expires_at: Absolute expiry of the session.
        now: The instant to evaluate at.
        warning_window: Width of the expiring-soon window.

    Returns:
        ACTIVE if more than warning_window remains, EXPIRING_SOON if some
        time remains but no more than warning_window, EXPIRED otherwise.
    """
    remaining = _as_utc(expires_at) - _as_utc(now)
    if remaining <= timedelta(0):
        return ExpiryStatus.EXPIRED
    if remaining <= warning_window:
        return ExpiryStatus.EXPIRING_SOON
    return ExpiryStatus.ACTIVE


# =============================================================================
# Credentials
# =============================================================================


class Credentials(BaseModel):
    """
    Credential bundle issued by the identity provider.

    Opaque to the session manager apart from expires_at and refresh_token.
    Token fields are excluded from repr so they cannot leak into logs.

    Attributes:
        access_token: Bearer token for protected calls.
        token_type: Token scheme, normally "Bearer".
        refresh_token: Token used for the refresh exchange, if issued.
        id_token: OIDC identity token, if issued.
        expires_at: Absolute expiry of the access token.
        scopes: Granted scopes.
    """

    access_token: str = Field(..., min_length=1, repr=False)
    token_type: str = Field(default="Bearer")
    refresh_token: Optional[str] = Field(default=None, repr=False)
    id_token: Optional[str] = Field(default=None, repr=False)
    expires_at: Optional[datetime] = Field(default=None)
    scopes: tuple[str, ...] = Field(default=())

    model_config = {"frozen": True}

    @field_validator("expires_at")
    @classmethod
    def ensure_timezone(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Treat naive expiry timestamps as UTC."""
        return _as_utc(v)

    @property
    def can_refresh(self) -> bool:
        """Whether a refresh exchange is possible with this bundle."""
        return bool(self.refresh_token)


# =============================================================================
# Session
# =============================================================================


class Session(BaseModel):
    """
    One authenticated login.

    Attributes:
        id: Unique session identifier (UUID4).
        credentials: The credential bundle backing this session.
        expires_at: Absolute expiry, taken from the credentials.
        remember_me: Whether the credentials are persisted across restarts.
        state: Lifecycle state at the time this record was produced.
        started_at: When the session began.
        refreshed_at: When the session was last refreshed, if ever.
    """

    id: str = Field(default_factory=lambda: str(uuid4()))
    credentials: Credentials
    expires_at: datetime
    remember_me: bool = False
    state: SessionState = SessionState.ACTIVE
    started_at: datetime = Field(default_factory=utcnow)
    refreshed_at: Optional[datetime] = None

    model_config = {"frozen": True}

    @field_validator("expires_at", "started_at", "refreshed_at")
    @classmethod
    def ensure_timezone(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Treat naive timestamps as UTC."""
        return _as_utc(v)

    def time_remaining(self, now: datetime) -> timedelta:
        """Time left until expiry at `now` (negative once expired)."""
        return self.expires_at - _as_utc(now)

    def with_state(self, state: SessionState) -> "Session":
        """Return a copy of this session in another state."""
        return self.model_copy(update={"state": state})


# =============================================================================
# Lifecycle Events
# =============================================================================


class SessionEvent(BaseModel):
    """
    Notification emitted on every session state change.

    Attributes:
        old_state: State before the transition.
        new_state: State after the transition.
        session: The session after the transition, or None once it is gone.
        occurred_at: When the transition happened.
    """

    old_state: SessionState
    new_state: SessionState
    session: Optional[Session] = None
    occurred_at: datetime = Field(default_factory=utcnow)

    model_config = {"frozen": True}


# =============================================================================
# Logout Teardown Report
# =============================================================================


class TeardownStep(BaseModel):
    """Outcome of one logout sub-step."""

    name: str
    ok: bool
    error: Optional[str] = None


class TeardownReport(BaseModel):
    """
    Structured result of a logout.

    Logout always succeeds locally; failed sub-steps are collected here and
    surfaced to logs and metrics only.
    """

    steps: list[TeardownStep] = Field(default_factory=list)

    def record(self, name: str, error: Optional[BaseException] = None) -> None:
        """Append the outcome of a sub-step."""
        self.steps.append(
            TeardownStep(
                name=name,
                ok=error is None,
                error=None if error is None else f"{type(error).__name__}: {error}",
            )
        )

    @property
    def failures(self) -> list[TeardownStep]:
        """Sub-steps that failed."""
        return [step for step in self.steps if not step.ok]

    @property
    def ok(self) -> bool:
        """True when every sub-step succeeded."""
        return not self.failures


# =============================================================================
# User Profile
# =============================================================================


class UserProfile(BaseModel):
    """Profile of the signed-in user as reported by the identity provider."""

    email: Optional[str] = None
    name: Optional[str] = None
    picture: Optional[str] = None
    email_verified: bool = False
    updated_at: Optional[datetime] = None
