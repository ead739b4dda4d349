"""
Session Events - observer interface and polled channel for state changes

UI collaborators either register a listener (called synchronously, in
subscription order, on every transition) or open a channel and poll it from
their own task. Unsubscription is always explicit.

Pattern: Observer with explicit Subscription handles
Pattern: Queue-backed channel for consumers that prefer to poll
"""

import asyncio
import itertools
from typing import Callable, Optional, Union

from auth_session.models.domain import SessionEvent
from auth_session.observability.logging import get_logger

logger = get_logger(__name__)

SessionListener = Callable[[SessionEvent], None]

# Channels are bounded; a full channel drops its oldest event.
DEFAULT_CHANNEL_SIZE = 100


class Subscription:
    """Handle returned by SessionEventBus.subscribe()."""

    __slots__ = ("id", "listener", "_bus")

    def __init__(self, id: int, listener: SessionListener, bus: "SessionEventBus") -> None:
        self.id = id
        self.listener = listener
        self._bus = bus

    @property
    def active(self) -> bool:
        """Whether the listener is still registered."""
        return self._bus.is_subscribed(self)

    def unsubscribe(self) -> bool:
        """Remove the listener. Returns False if it was already removed."""
        return self._bus.unsubscribe(self)

    def __repr__(self) -> str:
        return f"Subscription(id={self.id}, active={self.active})"


class SessionEventBus:
    """
    Synchronous fan-out of SessionEvent to registered listeners.

    A listener that raises is logged and skipped; the remaining listeners
    still receive the event.
    """

    def __init__(self) -> None:
        self._subscriptions: dict[int, Subscription] = {}
        self._ids = itertools.count(1)

    def __len__(self) -> int:
        return len(self._subscriptions)

    def subscribe(self, listener: SessionListener) -> Subscription:
        """Register a listener and return its handle."""
        subscription = Subscription(next(self._ids), listener, self)
        self._subscriptions[subscription.id] = subscription
        return subscription

    def unsubscribe(self, subscription: Union[Subscription, SessionListener]) -> bool:
        """
        Remove a listener by handle, or by the listener callable itself.

        Returns:
            True if something was removed.
        """
        if isinstance(subscription, Subscription):
            return self._subscriptions.pop(subscription.id, None) is not None

        for sub_id, sub in list(self._subscriptions.items()):
            if sub.listener == subscription:
                del self._subscriptions[sub_id]
                return True
        return False

    def is_subscribed(self, subscription: Subscription) -> bool:
        return self._subscriptions.get(subscription.id) is subscription

    def publish(self, event: SessionEvent) -> None:
        """Deliver an event to every listener registered at call time."""
        for subscription in list(self._subscriptions.values()):
            try:
                subscription.listener(event)
            except Exception as e:
                logger.warning(
                    "session_listener_failed",
                    subscription_id=subscription.id,
                    old_state=event.old_state.value,
                    new_state=event.new_state.value,
                    error=str(e),
                    exc_info=True,
                )

    def open_channel(self, maxsize: int = DEFAULT_CHANNEL_SIZE) -> "SessionEventChannel":
        """Subscribe a queue-backed channel. Close it to unsubscribe."""
        return SessionEventChannel(self, maxsize=maxsize)


class SessionEventChannel:
    """
    Queue of SessionEvent that the owning context polls.

    When a bounded channel is full the oldest event is dropped, so a slow
    consumer always sees the most recent transitions.

    Example:
        >>> with manager.open_channel() as channel:
        ...     event = await channel.get()
    """

    def __init__(self, bus: SessionEventBus, maxsize: int = DEFAULT_CHANNEL_SIZE) -> None:
        self._queue: asyncio.Queue[SessionEvent] = asyncio.Queue(maxsize=maxsize)
        self._subscription: Optional[Subscription] = bus.subscribe(self._enqueue)
        self.dropped = 0

    @property
    def closed(self) -> bool:
        return self._subscription is None

    def _enqueue(self, event: SessionEvent) -> None:
        if self._queue.full():
            self._queue.get_nowait()
            self.dropped += 1
        self._queue.put_nowait(event)

    async def get(self) -> SessionEvent:
        """Wait for the next event."""
        return await self._queue.get()

    def get_nowait(self) -> Optional[SessionEvent]:
        """Return the next event, or None if none is pending."""
        try:
            return self._queue.get_nowait()
        except asyncio.QueueEmpty:
            return None

    def drain(self) -> list[SessionEvent]:
        """Return all pending events in arrival order."""
        events = []
        while not self._queue.empty():
            events.append(self._queue.get_nowait())
        return events

    def close(self) -> None:
        """Stop receiving events. Pending events stay readable."""
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    def __enter__(self) -> "SessionEventChannel":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
