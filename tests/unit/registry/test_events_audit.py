"""Unit tests for the audit trail and post-commit event publishing."""

import pytest

from credledger.registry import (
    AuthorizationError,
    CredentialRegistry,
    EventType,
    InsufficientPaymentError,
)
from tests.conftest import INSTRUCTOR, OUTSIDER, OWNER, STUDENT, FakeClock, RecordingPublisher


class ExplodingPublisher:
    """Publisher that fails on every event."""

    def __init__(self) -> None:
        self.calls = 0

    def publish(self, event_type, payload) -> None:  # type: ignore[no-untyped-def]
        self.calls += 1
        raise RuntimeError("subscriber down")


@pytest.mark.unit
class TestAuditTrail:
    """Tests for list_events."""

    def test_events_in_operation_order(
        self, registry: CredentialRegistry, course_id: int, enrolled_student: str
    ) -> None:
        registry.issue_certificate(INSTRUCTOR, course_id, enrolled_student, "QmHash")

        assert [e.event_type for e in registry.list_events()] == [
            EventType.INSTRUCTOR_AUTHORIZED.value,
            EventType.COURSE_CREATED.value,
            EventType.STUDENT_REGISTERED.value,
            EventType.STUDENT_ENROLLED.value,
            EventType.CERTIFICATE_ISSUED.value,
        ]

    def test_filter_by_type(self, registry: CredentialRegistry, course_id: int) -> None:
        events = registry.list_events(event_type=EventType.COURSE_CREATED)

        assert len(events) == 1
        assert events[0].payload == {
            "course_id": course_id,
            "title": "Algorithms 101",
            "instructor": INSTRUCTOR,
            "price": 100,
        }

    def test_paging(self, registry: CredentialRegistry) -> None:
        for i in range(5):
            registry.register_student(f"0xs{i}", f"Student {i}")

        page = registry.list_events(limit=2, offset=2)

        assert [e.payload["student"] for e in page] == ["0xs2", "0xs3"]

    def test_event_timestamp(self, registry: CredentialRegistry, clock: FakeClock) -> None:
        clock.advance(30)
        registry.register_student(STUDENT, "Ada")

        assert registry.list_events()[0].created_at == clock.now


@pytest.mark.unit
class TestPublishing:
    """Tests for publishing events to the registry's publisher."""

    def test_nothing_published_on_rejection(
        self,
        registry: CredentialRegistry,
        course_id: int,
        funded_student: str,
        publisher: RecordingPublisher,
    ) -> None:
        published = len(publisher.events)

        with pytest.raises(AuthorizationError):
            registry.authorize_instructor(OUTSIDER, STUDENT)
        with pytest.raises(InsufficientPaymentError):
            registry.enroll_in_course(funded_student, course_id, 1)

        assert len(publisher.events) == published

    def test_publisher_failure_keeps_commit(self, clock: FakeClock) -> None:
        """A failing subscriber does not undo or fail the operation."""
        exploding = ExplodingPublisher()
        registry = CredentialRegistry(
            ":memory:", owner=OWNER, clock=clock, event_publisher=exploding
        )
        try:
            registry.register_student(STUDENT, "Ada")

            assert exploding.calls == 1
            assert registry.get_student(STUDENT).is_registered is True
        finally:
            registry.close()

    def test_no_publisher(self, clock: FakeClock) -> None:
        registry = CredentialRegistry(":memory:", owner=OWNER, clock=clock)
        try:
            registry.register_student(STUDENT, "Ada")

            assert len(registry.list_events()) == 1
        finally:
            registry.close()
