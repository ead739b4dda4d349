"""
Tests for WatchdogTimer.
"""

import asyncio

import pytest


class TestWatchdogTimerClass:
    """Tests for construction."""

    def test_interval_from_settings(self, monkeypatch) -> None:
        from auth_session.sessions.watchdog import WatchdogTimer

        monkeypatch.setenv("AUTH_SESSION_WATCHDOG_INTERVAL_SECONDS", "5")

        assert WatchdogTimer().interval_seconds == 5

    @pytest.mark.parametrize("interval", [0, -1])
    def test_rejects_non_positive_interval(self, interval) -> None:
        from auth_session.sessions.watchdog import WatchdogTimer

        with pytest.raises(ValueError):
            WatchdogTimer(interval_seconds=interval)

    def test_not_running_initially(self) -> None:
        from auth_session.sessions.watchdog import WatchdogTimer

        assert not WatchdogTimer(interval_seconds=1).is_running


class TestWatchdogTimerRun:
    """Tests for start() / cancel()."""

    @pytest.mark.asyncio
    async def test_ticks_until_cancelled(self) -> None:
        from auth_session.sessions.watchdog import WatchdogTimer

        ticks = []
        watchdog = WatchdogTimer(interval_seconds=0.01)

        watchdog.start(lambda: ticks.append(1))
        await asyncio.sleep(0.055)
        watchdog.cancel()
        count = len(ticks)
        await asyncio.sleep(0.03)

        assert count >= 2
        assert len(ticks) == count
        assert not watchdog.is_running

    @pytest.mark.asyncio
    async def test_async_callback_is_awaited(self) -> None:
        from auth_session.sessions.watchdog import WatchdogTimer

        ticks = []
        watchdog = WatchdogTimer(interval_seconds=0.01)

        async def callback():
            ticks.append(1)

        watchdog.start(callback)
        await asyncio.sleep(0.035)
        watchdog.cancel()

        assert ticks

    @pytest.mark.asyncio
    async def test_restart_replaces_run(self) -> None:
        """start() while running leaves exactly one run ticking."""
        from auth_session.sessions.watchdog import WatchdogTimer

        first, second = [], []
        watchdog = WatchdogTimer(interval_seconds=0.01)

        watchdog.start(lambda: first.append(1))
        watchdog.start(lambda: second.append(1))
        await asyncio.sleep(0.035)
        watchdog.cancel()

        assert first == []
        assert second

    @pytest.mark.asyncio
    async def test_cancel_from_callback(self) -> None:
        """A callback that cancels its own watchdog ticks only once."""
        from auth_session.sessions.watchdog import WatchdogTimer

        ticks = []
        watchdog = WatchdogTimer(interval_seconds=0.01)

        def callback():
            ticks.append(1)
            watchdog.cancel()

        watchdog.start(callback)
        await asyncio.sleep(0.05)

        assert ticks == [1]
        assert not watchdog.is_running

    @pytest.mark.asyncio
    async def test_failing_callback_keeps_ticking(self) -> None:
        from auth_session.sessions.watchdog import WatchdogTimer

        watchdog = WatchdogTimer(interval_seconds=0.01)

        def callback():
            raise RuntimeError("boom")

        watchdog.start(callback)
        await asyncio.sleep(0.045)
        watchdog.cancel()

        assert watchdog.tick_count >= 2

    @pytest.mark.asyncio
    async def test_cancel_is_idempotent(self) -> None:
        from auth_session.sessions.watchdog import WatchdogTimer

        watchdog = WatchdogTimer(interval_seconds=1)

        watchdog.cancel()
        watchdog.start(lambda: None)
        watchdog.cancel()
        watchdog.cancel()

        assert not watchdog.is_running
