"""
Bootstrap - builds the session object graph from settings

Factory functions in the style of dependency providers: each takes explicit
overrides and falls back to get_settings() for everything else.
"""

from typing import Optional

from redis.asyncio import Redis

from auth_session.core.config import Settings, get_settings
from auth_session.observability.logging import configure_logging, get_logger
from auth_session.providers.base import BiometricGate, IdentityProvider
from auth_session.sessions.events import SessionEventBus
from auth_session.sessions.manager import SessionManager
from auth_session.sessions.store import CredentialStore, RedisCredentialStore
from auth_session.sessions.watchdog import WatchdogTimer

logger = get_logger(__name__)


def create_credential_store(
    settings: Optional[Settings] = None,
    redis_client: Optional[Redis] = None,
) -> CredentialStore:
    """
    Create the Redis-backed credential store.

    Args:
        settings: Settings to use (default: get_settings()).
        redis_client: Existing client; a new one is built from
            settings.redis_url when omitted.
    """
    settings = settings or get_settings()
    if redis_client is None:
        redis_client = Redis.from_url(settings.redis_url, decode_responses=True)
    return RedisCredentialStore(redis_client=redis_client, key=settings.credential_key)


def create_session_manager(
    identity_provider: IdentityProvider,
    credential_store: Optional[CredentialStore] = None,
    biometric_gate: Optional[BiometricGate] = None,
    event_bus: Optional[SessionEventBus] = None,
    settings: Optional[Settings] = None,
) -> SessionManager:
    """
    Create a SessionManager wired from settings.

    Also configures structured logging at settings.log_level (a no-op if
    logging is already configured).

    Example:
        >>> manager = create_session_manager(FakeIdentityProvider())
        >>> await manager.restore_if_available()
    """
    settings = settings or get_settings()
    configure_logging(level=settings.log_level)

    if credential_store is None:
        credential_store = create_credential_store(settings)

    manager = SessionManager(
        identity_provider=identity_provider,
        credential_store=credential_store,
        watchdog=WatchdogTimer(interval_seconds=settings.watchdog_interval_seconds),
        biometric_gate=biometric_gate,
        event_bus=event_bus,
        warning_window_seconds=settings.warning_window_seconds,
        provider_timeout_seconds=settings.provider_timeout_seconds,
        revoke_on_logout=settings.revoke_on_logout,
        biometric_prompt=settings.biometric_prompt,
    )
    logger.info(
        "session_manager_created",
        service=settings.service_name,
        environment=settings.environment,
        biometric_gate=biometric_gate is not None,
    )
    return manager
