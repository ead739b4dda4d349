"""
Pytest configuration and shared fixtures.

This configuration sets up:
- Test markers for categorization
- A controllable clock so expiry behaviour is deterministic
- Fake identity provider / biometric gate / credential store (FakeRepository
  pattern: real in-process implementations rather than mocks)
- A SessionManager wired to the fakes
"""

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio


def pytest_configure(config):
    """Register custom markers for test categorization."""
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line("markers", "integration: Integration tests for component interactions")


# =============================================================================
# Settings isolation
# =============================================================================


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Make every test read settings from its own environment."""
    from auth_session.core.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# =============================================================================
# Clock
# =============================================================================


class FakeClock:
    """
    Callable clock that only moves when told to.

    Starts at wall time so Redis TTLs derived from expiry stay meaningful.
    """

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime.now(timezone.utc).replace(microsecond=0)
        self.fail = False

    def __call__(self) -> datetime:
        if self.fail:
            raise RuntimeError("clock unavailable")
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now += timedelta(seconds=seconds)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# =============================================================================
# Fakes
# =============================================================================


TEST_EMAIL = "user@example.com"
TEST_PASSWORD = "correct-horse"


@pytest.fixture
def identity_provider(clock):
    """Fake identity provider with one registered user and 30 minute tokens."""
    from auth_session.providers.fake import FakeIdentityProvider

    return FakeIdentityProvider(
        users={TEST_EMAIL: TEST_PASSWORD},
        token_lifetime_seconds=1800,
        clock=clock,
    )


@pytest.fixture
def credential_store():
    from auth_session.sessions.store import MemoryCredentialStore

    return MemoryCredentialStore()


@pytest.fixture
def make_credentials(clock):
    """Factory for credential bundles relative to the fake clock."""
    from auth_session.models.domain import Credentials

    def _make(expires_in: float | None = 1800, refresh_token: str | None = "rt-1", **kwargs):
        expires_at = None if expires_in is None else clock.now + timedelta(seconds=expires_in)
        return Credentials(
            access_token=kwargs.pop("access_token", "at-1"),
            refresh_token=refresh_token,
            expires_at=expires_at,
            **kwargs,
        )

    return _make


@pytest_asyncio.fixture
async def session_manager(identity_provider, credential_store, clock):
    """
    SessionManager wired to the fakes.

    The watchdog interval is long enough that it never fires on its own;
    tests drive expiry through tick(now=...).
    """
    from auth_session.sessions.manager import SessionManager
    from auth_session.sessions.watchdog import WatchdogTimer

    manager = SessionManager(
        identity_provider=identity_provider,
        credential_store=credential_store,
        watchdog=WatchdogTimer(interval_seconds=3600),
        warning_window_seconds=300,
        provider_timeout_seconds=1.0,
        clock=clock,
    )
    yield manager
    manager.close()


@pytest.fixture
def recorded_events(session_manager):
    """List that receives every SessionEvent the manager emits."""
    events = []
    session_manager.subscribe(events.append)
    return events
