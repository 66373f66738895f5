"""Shared pytest fixtures and configuration."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

import pytest

from credledger.registry import CredentialRegistry

OWNER = "0xowner"
INSTRUCTOR = "0xinstructor"
STUDENT = "0xstudent"
OUTSIDER = "0xoutsider"


# Register custom markers
def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for test categorization."""
    config.addinivalue_line("markers", "unit: fast tests with no external dependencies")
    config.addinivalue_line("markers", "integration: component interaction tests")


class FakeClock:
    """Deterministic timestamp source; advances only when told to."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 1, 12, 0, 0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: int = 1) -> None:
        self.now += timedelta(seconds=seconds)


class RecordingPublisher:
    """Collects published events."""

    def __init__(self) -> None:
        self.events: list[tuple[str, dict[str, Any]]] = []

    def publish(self, event_type: str, payload: dict[str, Any]) -> None:
        self.events.append((event_type, payload))

    @property
    def types(self) -> list[str]:
        return [event_type for event_type, _ in self.events]


# Shared fixtures


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def registry(clock: FakeClock, publisher: RecordingPublisher):
    """Create an in-memory registry owned by OWNER."""
    r = CredentialRegistry(":memory:", owner=OWNER, clock=clock, event_publisher=publisher)
    yield r
    r.close()


@pytest.fixture
def course_id(registry: CredentialRegistry) -> int:
    """Authorize INSTRUCTOR and create a course priced at 100."""
    registry.authorize_instructor(OWNER, INSTRUCTOR)
    return registry.create_course(
        INSTRUCTOR,
        title="Algorithms 101",
        description="Sorting, searching and graphs",
        price=100,
        duration=30,
    )


@pytest.fixture
def funded_student(registry: CredentialRegistry) -> str:
    """Register STUDENT and give them a balance of 1000."""
    registry.register_student(STUDENT, "Ada")
    registry.deposit(OWNER, STUDENT, 1000)
    return STUDENT


@pytest.fixture
def enrolled_student(registry: CredentialRegistry, course_id: int, funded_student: str) -> str:
    """STUDENT enrolled in the course, paying exactly the price."""
    registry.enroll_in_course(funded_student, course_id, 100)
    return funded_student
