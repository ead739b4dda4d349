"""
Integration test fixtures.

Components are wired together with real timers and a Redis-backed credential
store. Redis is fakeredis unless INTEGRATION_REDIS_URL points at a live
server.
"""

import os

import pytest
import pytest_asyncio


@pytest.fixture(scope="session")
def redis_url():
    """Live Redis URL from the environment, or None to use fakeredis."""
    return os.getenv("INTEGRATION_REDIS_URL")


@pytest_asyncio.fixture
async def redis_client(redis_url):
    """Redis client, flushed of the test key before and after each test."""
    if redis_url:
        import redis.asyncio as aioredis

        client = aioredis.from_url(redis_url, decode_responses=True)
    else:
        import fakeredis.aioredis

        client = fakeredis.aioredis.FakeRedis(decode_responses=True)

    await client.delete("integration:credentials")
    yield client
    await client.delete("integration:credentials")
    await client.aclose()


@pytest.fixture
def redis_store(redis_client):
    from auth_session.sessions.store import RedisCredentialStore

    return RedisCredentialStore(redis_client=redis_client, key="integration:credentials")
