"""Live push feeds: subscriber registries and the broadcaster that fans events out.

A feed has one ``SubscriberRegistry`` and one ``Broadcaster``. Every open
``/.../notifications`` stream owns a ``Subscriber`` whose frames are
buffered in a bounded queue until the stream writes them to the client.
All registry mutations and broadcasts are synchronous, so on a single
event loop each of them is atomic relative to other handlers.
"""
import asyncio
import itertools
import json
from datetime import date, datetime
from typing import Callable, Dict, List, Optional

import structlog

logger = structlog.get_logger(__name__)


class SubscriberClosed(Exception):
    pass


def _json_default(value):
    if isinstance(value, datetime):
        return value.isoformat().replace("+00:00", "Z")
    if isinstance(value, date):
        return value.isoformat()
    raise TypeError(f"{type(value).__name__} is not JSON serializable")


def encode_event(event: dict) -> str:
    return f"data: {json.dumps(event, default=_json_default, ensure_ascii=False)}\n\n"


class Subscriber:
    def __init__(self, subscriber_id: int, feed: str, max_pending: int = 100):
        self.id = subscriber_id
        self.feed = feed
        self.closed = False
        self._queue: "asyncio.Queue[Optional[str]]" = asyncio.Queue(maxsize=max_pending)

    def write(self, frame: str) -> None:
        if self.closed:
            raise SubscriberClosed(f"subscriber {self.id} is closed")
        self._queue.put_nowait(frame)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        # drop the backlog and wake a reader blocked in receive()
        while not self._queue.empty():
            self._queue.get_nowait()
        self._queue.put_nowait(None)

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    async def receive(self, timeout: Optional[float] = None) -> Optional[str]:
        """Next frame, ``None`` once closed, or ``""`` if ``timeout`` passed idle."""
        if self.closed and self._queue.empty():
            return None
        if not timeout:
            return await self._queue.get()
        try:
            return await asyncio.wait_for(self._queue.get(), timeout)
        except asyncio.TimeoutError:
            return ""

    def __repr__(self) -> str:
        return f"<Subscriber {self.feed}#{self.id}{' closed' if self.closed else ''}>"


class SubscriberRegistry:
    def __init__(self, feed: str, max_pending: int = 100):
        self.feed = feed
        self.max_pending = max_pending
        self._ids = itertools.count(1)
        self._subscribers: Dict[int, Subscriber] = {}

    def register(self) -> Subscriber:
        subscriber = Subscriber(next(self._ids), self.feed, self.max_pending)
        self._subscribers[subscriber.id] = subscriber
        logger.info("subscriber_registered", feed=self.feed, subscriber_id=subscriber.id, total=len(self))
        return subscriber

    def unregister(self, subscriber: Subscriber) -> bool:
        removed = self._subscribers.pop(subscriber.id, None) is not None
        subscriber.close()
        if removed:
            logger.info("subscriber_unregistered", feed=self.feed, subscriber_id=subscriber.id, total=len(self))
        return removed

    def snapshot(self) -> List[Subscriber]:
        return list(self._subscribers.values())

    def for_each(self, fn: Callable[[Subscriber], None]) -> None:
        for subscriber in self.snapshot():
            fn(subscriber)

    def __contains__(self, subscriber: Subscriber) -> bool:
        return self._subscribers.get(subscriber.id) is subscriber

    def __len__(self) -> int:
        return len(self._subscribers)


class Broadcaster:
    def __init__(self, registry: SubscriberRegistry):
        self.registry = registry

    def broadcast(self, event: dict) -> int:
        """Write ``event`` to every subscriber registered right now.

        Returns the number of subscribers that accepted the frame. A
        subscriber that fails its write is unregistered and skipped.
        """
        frame = encode_event(event)
        delivered = 0

        def deliver(subscriber: Subscriber) -> None:
            nonlocal delivered
            try:
                subscriber.write(frame)
            except (SubscriberClosed, asyncio.QueueFull) as e:
                logger.warning(
                    "subscriber_dropped",
                    feed=self.registry.feed,
                    subscriber_id=subscriber.id,
                    reason=type(e).__name__,
                )
                self.registry.unregister(subscriber)
                return
            delivered += 1

        self.registry.for_each(deliver)
        logger.debug("event_broadcast", feed=self.registry.feed, delivered=delivered)
        return delivered
