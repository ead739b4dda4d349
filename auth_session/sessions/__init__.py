"""
Sessions Package - session lifecycle management

This package provides the SessionManager state machine together with its
expiry watchdog, event notifications, credential persistence and form
validation.
"""

from auth_session.sessions.events import (
    SessionEventBus,
    SessionEventChannel,
    Subscription,
)
from auth_session.sessions.manager import SessionManager
from auth_session.sessions.store import (
    CredentialStore,
    MemoryCredentialStore,
    RedisCredentialStore,
)
from auth_session.sessions.validation import validate_login_form, validate_signup_form
from auth_session.sessions.watchdog import WatchdogTimer

__all__ = [
    "CredentialStore",
    "MemoryCredentialStore",
    "RedisCredentialStore",
    "SessionEventBus",
    "SessionEventChannel",
    "SessionManager",
    "Subscription",
    "WatchdogTimer",
    "validate_login_form",
    "validate_signup_form",
]
