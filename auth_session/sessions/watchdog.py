"""
Watchdog Timer - periodic expiry check for the live session

The watchdog is an owned resource with explicit start/cancel, injected into
the SessionManager. It runs as a task on the owner's event loop, so its
callback never runs concurrently with other session state changes.

States:
    idle: No task; start() launches one
    running: Callback invoked every interval_seconds until cancel()
"""

import asyncio
import inspect
from typing import Awaitable, Callable, Optional, Union

from auth_session.core.config import get_settings
from auth_session.observability.logging import get_logger

logger = get_logger(__name__)

TickCallback = Callable[[], Union[None, Awaitable[None]]]


class WatchdogTimer:
    """
    Periodic timer driving the session expiry check.

    Calling start() while running replaces the current run; cancel() is safe
    to call at any time, including from inside the callback.

    Example:
        >>> watchdog = WatchdogTimer(interval_seconds=60)
        >>> watchdog.start(manager.tick)
        >>> watchdog.cancel()
    """

    def __init__(
        self,
        interval_seconds: Optional[float] = None,
        name: str = "session-watchdog",
    ) -> None:
        """
        Args:
            interval_seconds: Period between ticks. Defaults to
                settings.watchdog_interval_seconds.
            name: Task name, for debugging.
        """
        if interval_seconds is None:
            interval_seconds = get_settings().watchdog_interval_seconds
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")

        self._interval_seconds = interval_seconds
        self._name = name
        self._task: Optional[asyncio.Task[None]] = None
        self._run_id = 0
        self.tick_count = 0

    @property
    def interval_seconds(self) -> float:
        """Seconds between ticks."""
        return self._interval_seconds

    @property
    def is_running(self) -> bool:
        """Whether a run is active."""
        return self._task is not None and not self._task.done()

    def start(self, callback: TickCallback) -> None:
        """
        Start ticking, replacing any current run.

        Must be called from within a running event loop.
        """
        self.cancel()
        self._run_id += 1
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(
            self._run(self._run_id, callback), name=self._name
        )
        logger.debug("watchdog_started", interval_seconds=self._interval_seconds)

    def cancel(self) -> None:
        """Stop ticking. Idempotent."""
        self._run_id += 1
        task, self._task = self._task, None
        if task is None or task.done():
            return

        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        # From inside our own callback the loop exits on the run_id check.
        if task is not current:
            task.cancel()
        logger.debug("watchdog_cancelled")

    async def _run(self, run_id: int, callback: TickCallback) -> None:
        while run_id == self._run_id:
            await asyncio.sleep(self._interval_seconds)
            if run_id != self._run_id:
                break

            self.tick_count += 1
            try:
                result = callback()
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.warning("watchdog_tick_failed", error=str(e), exc_info=True)
