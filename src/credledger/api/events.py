"""Event manager for Server-Sent Events (SSE)."""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

HEARTBEAT = "heartbeat"


@dataclass
class Event:
    """An event to be sent via SSE."""

    event_type: str
    data: dict[str, Any]

    def to_sse(self) -> str:
        """Convert to SSE format."""
        return f"event: {self.event_type}\ndata: {json.dumps(self.data, default=str)}\n\n"


def _running_loop() -> asyncio.AbstractEventLoop | None:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


@dataclass
class Subscriber:
    """A subscriber to the event stream."""

    id: str
    queue: asyncio.Queue[Event]
    event_types: frozenset[str] | None = None  # None means all event types
    loop: asyncio.AbstractEventLoop | None = None

    @classmethod
    def create(cls, event_types: set[str] | None = None) -> Subscriber:
        """Create a new subscriber bound to the current event loop, if any."""
        return cls(
            id=str(uuid4()),
            queue=asyncio.Queue(),
            event_types=frozenset(event_types) if event_types else None,
            loop=_running_loop(),
        )

    def wants(self, event: Event) -> bool:
        return self.event_types is None or event.event_type in self.event_types


@dataclass
class EventManager:
    """Manager for SSE events.

    Registry operations run in worker threads, so events are handed to each
    subscriber's event loop with call_soon_threadsafe.
    """

    _subscribers: dict[str, Subscriber] = field(default_factory=dict)
    _heartbeat_interval: int = 30  # seconds

    def subscribe(self, event_types: set[str] | None = None) -> Subscriber:
        """Subscribe a client to events.

        Args:
            event_types: Optional event types to receive. None means all.

        Returns:
            Subscriber instance for receiving events.
        """
        subscriber = Subscriber.create(event_types)
        self._subscribers[subscriber.id] = subscriber
        return subscriber

    def unsubscribe(self, subscriber_id: str) -> None:
        """Unsubscribe a client from events.

        Args:
            subscriber_id: ID of the subscriber to remove.
        """
        self._subscribers.pop(subscriber_id, None)

    async def emit(self, event: Event) -> None:
        """Emit an event to all matching subscribers.

        Args:
            event: Event to emit.
        """
        for subscriber in list(self._subscribers.values()):
            if subscriber.wants(event):
                await subscriber.queue.put(event)

    def emit_sync(self, event: Event) -> None:
        """Emit an event from synchronous code, possibly on another thread.

        Args:
            event: Event to emit.
        """
        current = _running_loop()
        for subscriber in list(self._subscribers.values()):
            if not subscriber.wants(event):
                continue
            loop = subscriber.loop
            if loop is None or loop is current or loop.is_closed():
                subscriber.queue.put_nowait(event)
            else:
                loop.call_soon_threadsafe(subscriber.queue.put_nowait, event)

    def publish(self, event_type: str, payload: dict[str, Any]) -> None:
        """Publish a committed registry event to subscribers."""
        self.emit_sync(Event(event_type=event_type, data=payload))

    @property
    def subscriber_count(self) -> int:
        """Get the number of active subscribers."""
        return len(self._subscribers)

    def create_heartbeat_event(self) -> Event:
        """Create a heartbeat event."""
        return Event(
            event_type=HEARTBEAT,
            data={"timestamp": datetime.now(UTC).isoformat()},
        )
