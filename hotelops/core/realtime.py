# --- File: hotelops/core/realtime.py ---
"""
In-process change feed for service request updates.

Route handlers run in the worker thread pool while feed consumers live on
the event loop, so publishing hands each event to the subscriber's own loop.
"""
import asyncio
import json
import threading
from typing import Any, AsyncIterator, Dict, Optional, Set

from .logging import get_logger

logger = get_logger(__name__)

KEEPALIVE_SECONDS = 15.0


def session_channel(session_id: str) -> str:
    return f"session:{session_id}"


def tenant_channel(tenant_id: str) -> str:
    return f"tenant:{tenant_id}"


class Subscription:
    """One consumer's view of a channel."""

    def __init__(self, channel: str, loop: asyncio.AbstractEventLoop, maxsize: int = 256):
        self.channel = channel
        self.loop = loop
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self.closed = False

    def _offer(self, event: Dict[str, Any]) -> None:
        if self.closed:
            return
        try:
            self.queue.put_nowait(event)
        except asyncio.QueueFull:
            # Consumers recover from gaps through their polling fallback
            logger.warning(f"Dropping change event for slow subscriber on {self.channel}")

    async def get(self, timeout: Optional[float] = None) -> Optional[Dict[str, Any]]:
        try:
            return await asyncio.wait_for(self.queue.get(), timeout=timeout)
        except asyncio.TimeoutError:
            return None


class ChangeFeedBroker:
    """
    Publish/subscribe hub keyed by channel name.

    Channels are `session:<id>` for the guest portal and `tenant:<id>` for
    staff dashboards.
    """

    def __init__(self):
        self._subscribers: Dict[str, Set[Subscription]] = {}
        self._lock = threading.Lock()

    def subscribe(self, channel: str) -> Subscription:
        subscription = Subscription(channel, asyncio.get_running_loop())
        with self._lock:
            self._subscribers.setdefault(channel, set()).add(subscription)
        logger.debug(f"Subscribed to {channel}")
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        subscription.closed = True
        with self._lock:
            subscribers = self._subscribers.get(subscription.channel)
            if subscribers is not None:
                subscribers.discard(subscription)
                if not subscribers:
                    del self._subscribers[subscription.channel]
        logger.debug(f"Unsubscribed from {subscription.channel}")

    def subscriber_count(self, channel: str) -> int:
        with self._lock:
            return len(self._subscribers.get(channel, ()))

    def publish(self, channel: str, event: Dict[str, Any]) -> int:
        """Deliver an event to every subscriber of a channel; safe from any thread."""
        with self._lock:
            targets = list(self._subscribers.get(channel, ()))

        for subscription in targets:
            try:
                subscription.loop.call_soon_threadsafe(subscription._offer, event)
            except RuntimeError:
                # Subscriber's loop already closed
                self.unsubscribe(subscription)
        return len(targets)

    async def stream_sse(
        self,
        channel: str,
        keepalive: float = KEEPALIVE_SECONDS,
    ) -> AsyncIterator[str]:
        """Render a channel as a server-sent-event stream."""
        subscription = self.subscribe(channel)
        try:
            yield ": connected\n\n"
            while True:
                event = await subscription.get(timeout=keepalive)
                if event is None:
                    yield ": keepalive\n\n"
                    continue
                yield f"event: {event.get('type', 'message')}\ndata: {json.dumps(event, default=str)}\n\n"
        finally:
            self.unsubscribe(subscription)


change_feed = ChangeFeedBroker()


def get_change_feed() -> ChangeFeedBroker:
    return change_feed
