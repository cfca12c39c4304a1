"""Per-chat topic broadcast to connected viewers."""

import asyncio
from datetime import datetime, timezone
from typing import Protocol

from ..logging_config import get_logger
from ..models import EventType, Notification

logger = get_logger(__name__)


class ISubscriber(Protocol):
    """A connected viewer able to receive notifications."""

    async def send(self, notification: Notification) -> None:
        """Deliver one notification."""
        ...


class INotifier(Protocol):
    """Topic-scoped pub/sub for viewers. Topics are provider chat ids."""

    def connect(self, subscriber: ISubscriber) -> None:
        """Register a viewer connection."""
        ...

    def disconnect(self, subscriber: ISubscriber) -> None:
        """Forget a viewer and remove it from every topic."""
        ...

    def join(self, topic: str, subscriber: ISubscriber) -> None:
        """Subscribe a viewer to a topic."""
        ...

    def leave(self, topic: str, subscriber: ISubscriber) -> None:
        """Unsubscribe a viewer from a topic."""
        ...

    async def broadcast(self, topic: str, event: EventType, data: dict) -> int:
        """Send an event to every subscriber of a topic. Returns deliveries."""
        ...

    async def broadcast_all(self, event: EventType, data: dict) -> int:
        """Send an event to every connected viewer. Returns deliveries."""
        ...


class Notifier:
    """In-memory topic -> subscriber set registry."""

    def __init__(self):
        self._connections: set[ISubscriber] = set()
        self._topics: dict[str, set[ISubscriber]] = {}

    def connect(self, subscriber: ISubscriber) -> None:
        """Register a viewer connection."""
        self._connections.add(subscriber)
        logger.debug("Viewer connected, total=%s", len(self._connections))

    def disconnect(self, subscriber: ISubscriber) -> None:
        """Forget a viewer and remove it from every topic."""
        self._connections.discard(subscriber)
        for topic in list(self._topics):
            self.leave(topic, subscriber)
        logger.debug("Viewer disconnected, total=%s", len(self._connections))

    def join(self, topic: str, subscriber: ISubscriber) -> None:
        """Subscribe a viewer to a topic."""
        self._connections.add(subscriber)
        self._topics.setdefault(topic, set()).add(subscriber)
        logger.info("Viewer joined chat %s", topic)

    def leave(self, topic: str, subscriber: ISubscriber) -> None:
        """Unsubscribe a viewer from a topic."""
        subscribers = self._topics.get(topic)
        if subscribers is None:
            return
        subscribers.discard(subscriber)
        if not subscribers:
            del self._topics[topic]

    def subscribers(self, topic: str) -> set[ISubscriber]:
        """Snapshot of a topic's subscribers."""
        return set(self._topics.get(topic, ()))

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    async def broadcast(self, topic: str, event: EventType, data: dict) -> int:
        """Send an event to every subscriber of a topic. Returns deliveries."""
        notification = Notification(
            event=event,
            data=data,
            timestamp=datetime.now(timezone.utc),
            topic=topic,
        )
        return await self._deliver(list(self._topics.get(topic, ())), notification)

    async def broadcast_all(self, event: EventType, data: dict) -> int:
        """Send an event to every connected viewer. Returns deliveries."""
        notification = Notification(
            event=event,
            data=data,
            timestamp=datetime.now(timezone.utc),
        )
        return await self._deliver(list(self._connections), notification)

    async def _deliver(
        self, subscribers: list[ISubscriber], notification: Notification
    ) -> int:
        if not subscribers:
            logger.debug(
                "No viewers for %s on %s", notification.event.value, notification.topic
            )
            return 0

        results = await asyncio.gather(
            *[subscriber.send(notification) for subscriber in subscribers],
            return_exceptions=True,
        )

        delivered = 0
        for subscriber, result in zip(subscribers, results):
            if isinstance(result, Exception):
                logger.error("Dropping viewer after failed send: %s", result)
                self.disconnect(subscriber)
            else:
                delivered += 1
        return delivered
