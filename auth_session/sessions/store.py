"""
Credential Store - persistence for the "remember me" credential bundle

This module provides the CredentialStore port and two adapters:
- RedisCredentialStore: JSON bundle under a single Redis key with a TTL
  derived from the bundle's expiry
- MemoryCredentialStore: process-local store for sessions that should not
  survive a restart, and for tests

Contract:
- save() may raise StoreError; the session manager logs it and continues
- load() returns None when nothing (usable) is stored
- clear() must not raise

Pattern: Repository pattern
Pattern: Dependency injection for Redis client
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Optional

from pydantic import ValidationError
from redis.asyncio import Redis

from auth_session.core.config import get_settings
from auth_session.core.exceptions import StoreError
from auth_session.models.domain import Credentials
from auth_session.observability.logging import get_logger

logger = get_logger(__name__)


# =============================================================================
# CredentialStore Port
# =============================================================================


class CredentialStore(ABC):
    """Persists and retrieves one opaque credential bundle."""

    @abstractmethod
    async def save(self, credentials: Credentials) -> None:
        """
        Persist the bundle, replacing any previous one.

        Raises:
            StoreError: If the bundle could not be persisted.
        """
        ...

    @abstractmethod
    async def load(self) -> Optional[Credentials]:
        """Return the stored bundle, or None if there is none."""
        ...

    @abstractmethod
    async def clear(self) -> None:
        """Remove the stored bundle. Must not raise."""
        ...


# =============================================================================
# Redis Adapter
# =============================================================================


class RedisCredentialStore(CredentialStore):
    """
    Redis-based credential storage.

    The bundle is stored as JSON with a TTL computed from expires_at, so a
    bundle that outlives its access token disappears on its own.

    Attributes:
        _redis: The Redis client instance.
        _key: Redis key holding the bundle.
        _default_ttl_seconds: TTL used when the bundle carries no expiry.

    Example:
        >>> import redis.asyncio as redis
        >>> client = redis.from_url("redis://localhost:6379")
        >>> store = RedisCredentialStore(redis_client=client)
        >>> await store.save(credentials)
        >>> restored = await store.load()
    """

    def __init__(
        self,
        redis_client: Redis,
        key: Optional[str] = None,
        default_ttl_seconds: Optional[int] = None,
    ) -> None:
        """
        Initialize RedisCredentialStore with Redis client.

        Args:
            redis_client: Async Redis client instance.
            key: Redis key for the bundle. Defaults to settings.credential_key.
            default_ttl_seconds: TTL when the bundle has no expiry.
                                 Defaults to settings.default_token_lifetime_seconds.
        """
        settings = get_settings()
        self._redis: Redis = redis_client
        self._key: str = key if key is not None else settings.credential_key
        self._default_ttl_seconds: int = (
            default_ttl_seconds
            if default_ttl_seconds is not None
            else settings.default_token_lifetime_seconds
        )

    @property
    def key(self) -> str:
        """Redis key holding the bundle."""
        return self._key

    def _calculate_ttl(self, credentials: Credentials) -> int:
        """
        Calculate TTL for a bundle based on its expires_at.

        Returns:
            TTL in seconds (minimum 1 second).
        """
        if credentials.expires_at is None:
            return self._default_ttl_seconds

        ttl_delta = credentials.expires_at - datetime.now(timezone.utc)
        return max(int(ttl_delta.total_seconds()), 1)

    async def save(self, credentials: Credentials) -> None:
        """
        Save the bundle to Redis.

        Raises:
            StoreError: If the save operation fails.
        """
        try:
            ttl = self._calculate_ttl(credentials)
            await self._redis.setex(self._key, ttl, credentials.model_dump_json())
        except Exception as e:
            raise StoreError(f"Failed to save credentials: {e}") from e

    async def load(self) -> Optional[Credentials]:
        """
        Retrieve the bundle from Redis.

        A bundle that no longer parses is deleted and reported as absent.

        Raises:
            StoreError: If Redis cannot be read.
        """
        try:
            json_data = await self._redis.get(self._key)
        except Exception as e:
            raise StoreError(f"Failed to load credentials: {e}") from e

        if json_data is None:
            return None

        try:
            return Credentials.model_validate_json(json_data)
        except ValidationError as e:
            logger.warning("stored_credentials_unreadable", key=self._key, error=str(e))
            await self.clear()
            return None

    async def clear(self) -> None:
        """Delete the bundle. Failures are logged, never raised."""
        try:
            await self._redis.delete(self._key)
        except Exception as e:
            logger.warning("credential_clear_failed", key=self._key, error=str(e))


# =============================================================================
# In-Memory Adapter
# =============================================================================


class MemoryCredentialStore(CredentialStore):
    """Process-local credential store."""

    def __init__(self) -> None:
        self._credentials: Optional[Credentials] = None
        self.save_calls: int = 0

    async def save(self, credentials: Credentials) -> None:
        self.save_calls += 1
        self._credentials = credentials

    async def load(self) -> Optional[Credentials]:
        return self._credentials

    async def clear(self) -> None:
        self._credentials = None
