"""Unit tests for EventManager and events."""

import asyncio
import json
import threading

import pytest

from credledger.api.events import HEARTBEAT, Event, EventManager
from credledger.registry import CredentialRegistry, EventType
from tests.conftest import OWNER, STUDENT


@pytest.fixture
def event_manager():
    """Create an EventManager instance."""
    return EventManager()


@pytest.mark.unit
class TestEventManagerSubscribe:
    """Tests for EventManager.subscribe and unsubscribe."""

    def test_event_manager_subscribe(self, event_manager: EventManager) -> None:
        """Client can subscribe."""
        subscriber = event_manager.subscribe()

        assert subscriber.id is not None
        assert subscriber.event_types is None
        assert event_manager.subscriber_count == 1

    def test_event_manager_subscribe_with_type_filter(self, event_manager: EventManager) -> None:
        subscriber = event_manager.subscribe({EventType.CERTIFICATE_ISSUED.value})

        assert subscriber.event_types == frozenset({"certificate_issued"})

    def test_event_manager_unsubscribe(self, event_manager: EventManager) -> None:
        subscriber = event_manager.subscribe()

        event_manager.unsubscribe(subscriber.id)

        assert event_manager.subscriber_count == 0

    def test_event_manager_unsubscribe_nonexistent(self, event_manager: EventManager) -> None:
        """Unsubscribing nonexistent client doesn't fail."""
        event_manager.unsubscribe("nonexistent-id")

        assert event_manager.subscriber_count == 0


@pytest.mark.unit
class TestEventManagerEmit:
    """Tests for EventManager.emit and emit_sync."""

    @pytest.mark.asyncio
    async def test_event_manager_emit_to_all(self, event_manager: EventManager) -> None:
        """Event reaches all subscribers."""
        sub1 = event_manager.subscribe()
        sub2 = event_manager.subscribe()

        await event_manager.emit(Event(event_type="student_registered", data={"student": "a"}))

        event1 = await asyncio.wait_for(sub1.queue.get(), timeout=1.0)
        event2 = await asyncio.wait_for(sub2.queue.get(), timeout=1.0)
        assert event1.data == {"student": "a"}
        assert event2.data == {"student": "a"}

    @pytest.mark.asyncio
    async def test_event_manager_filter_by_type(self, event_manager: EventManager) -> None:
        """Only matching events are sent to filtered subscribers."""
        sub_all = event_manager.subscribe()
        sub_filtered = event_manager.subscribe({"certificate_issued"})

        await event_manager.emit(Event(event_type="course_created", data={"course_id": 1}))
        await event_manager.emit(Event(event_type="certificate_issued", data={"course_id": 1}))

        assert sub_all.queue.qsize() == 2
        received = await asyncio.wait_for(sub_filtered.queue.get(), timeout=1.0)
        assert received.event_type == "certificate_issued"
        assert sub_filtered.queue.empty()

    def test_event_manager_no_subscribers(self, event_manager: EventManager) -> None:
        """Emit doesn't fail with no subscribers."""
        event_manager.emit_sync(Event(event_type="course_created", data={}))

    @pytest.mark.asyncio
    async def test_publish_from_worker_thread(self, event_manager: EventManager) -> None:
        """Events published on another thread arrive on the subscriber's loop."""
        sub = event_manager.subscribe()
        assert sub.loop is asyncio.get_running_loop()

        worker = threading.Thread(
            target=event_manager.publish, args=("student_registered", {"student": STUDENT})
        )
        worker.start()
        worker.join()

        event = await asyncio.wait_for(sub.queue.get(), timeout=1.0)
        assert event.event_type == "student_registered"
        assert event.data == {"student": STUDENT}

    def test_registry_publishes_to_manager(self, event_manager: EventManager) -> None:
        """EventManager can be used directly as the registry's event publisher."""
        sub = event_manager.subscribe()
        registry = CredentialRegistry(":memory:", owner=OWNER, event_publisher=event_manager)
        try:
            registry.register_student(STUDENT, "Ada")
        finally:
            registry.close()

        event = sub.queue.get_nowait()
        assert event.event_type == EventType.STUDENT_REGISTERED.value
        assert event.data == {"student": STUDENT, "name": "Ada"}


@pytest.mark.unit
class TestEventFormat:
    """Tests for event formatting."""

    def test_event_to_sse(self) -> None:
        event = Event(event_type="student_enrolled", data={"course_id": 3, "amount": 100})

        sse = event.to_sse()

        assert sse.startswith("event: student_enrolled\n")
        assert sse.endswith("\n\n")
        data = json.loads(sse.split("data: ")[1].strip())
        assert data == {"course_id": 3, "amount": 100}

    def test_heartbeat_event(self, event_manager: EventManager) -> None:
        event = event_manager.create_heartbeat_event()

        assert event.event_type == HEARTBEAT
        assert "timestamp" in event.data
