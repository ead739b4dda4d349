"""
Tests for the bootstrap factories.
"""

import pytest
import pytest_asyncio


@pytest_asyncio.fixture
async def fake_redis():
    import fakeredis.aioredis

    redis = fakeredis.aioredis.FakeRedis(decode_responses=True)
    yield redis
    await redis.aclose()


@pytest.fixture(autouse=True)
def reset_logging_state():
    from auth_session.observability.logging import reset_logging

    yield
    reset_logging()


class TestCreateCredentialStore:

    @pytest.mark.asyncio
    async def test_uses_given_client_and_key(self, fake_redis, monkeypatch) -> None:
        from auth_session.bootstrap import create_credential_store
        from auth_session.sessions.store import RedisCredentialStore

        monkeypatch.setenv("AUTH_SESSION_CREDENTIAL_KEY", "mobile:creds")

        store = create_credential_store(redis_client=fake_redis)

        assert isinstance(store, RedisCredentialStore)
        assert store.key == "mobile:creds"
        assert store._redis is fake_redis

    def test_builds_client_from_url(self) -> None:
        from auth_session.bootstrap import create_credential_store
        from auth_session.core.config import Settings

        store = create_credential_store(Settings(redis_url="redis://cache:6380/2"))

        kwargs = store._redis.connection_pool.connection_kwargs
        assert kwargs["host"] == "cache"
        assert kwargs["port"] == 6380
        assert kwargs["db"] == 2


class TestCreateSessionManager:

    @pytest.mark.asyncio
    async def test_wires_settings(self, identity_provider, credential_store) -> None:
        from datetime import timedelta

        from auth_session.bootstrap import create_session_manager
        from auth_session.core.config import Settings

        settings = Settings(
            warning_window_seconds=120,
            watchdog_interval_seconds=10,
            provider_timeout_seconds=5,
            revoke_on_logout=False,
        )

        manager = create_session_manager(
            identity_provider, credential_store=credential_store, settings=settings
        )

        assert manager.warning_window == timedelta(seconds=120)
        assert manager.watchdog.interval_seconds == 10
        assert manager._provider_timeout_seconds == 5
        assert manager._revoke_on_logout is False
        assert manager._credential_store is credential_store

    @pytest.mark.asyncio
    async def test_end_to_end_with_redis(self, fake_redis) -> None:
        """Real clock throughout: the manager and Redis TTLs both use wall time."""
        from auth_session.bootstrap import create_credential_store, create_session_manager
        from auth_session.models.domain import SessionState
        from auth_session.providers.fake import FakeIdentityProvider
        from tests.conftest import TEST_EMAIL, TEST_PASSWORD

        identity_provider = FakeIdentityProvider(users={TEST_EMAIL: TEST_PASSWORD})
        manager = create_session_manager(
            identity_provider, credential_store=create_credential_store(redis_client=fake_redis)
        )
        try:
            await manager.login(TEST_EMAIL, TEST_PASSWORD, remember_me=True)

            assert manager.current_state() is SessionState.ACTIVE
            assert await fake_redis.exists("auth_session:credentials") == 1
        finally:
            await manager.end()
