"""Fixtures for API route tests."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from credledger.api.app import register_exception_handlers
from credledger.api.dependencies import CALLER_HEADER, get_event_manager, get_registry
from credledger.api.events import EventManager
from credledger.api.routes import (
    accounts,
    certificates,
    courses,
    events,
    instructors,
    stats,
    students,
)
from credledger.registry import CredentialRegistry


def as_caller(identity: str) -> dict[str, str]:
    """Request headers identifying the caller."""
    return {CALLER_HEADER: identity}


@pytest.fixture
def event_manager():
    return EventManager()


@pytest.fixture
def app(registry: CredentialRegistry, event_manager: EventManager):
    """Create a test FastAPI app backed by the in-memory registry."""
    app = FastAPI()

    def override_get_registry():
        yield registry

    def override_get_event_manager():
        yield event_manager

    app.dependency_overrides[get_registry] = override_get_registry
    app.dependency_overrides[get_event_manager] = override_get_event_manager

    register_exception_handlers(app)

    for module in (students, instructors, courses, certificates, accounts, stats, events):
        app.include_router(module.router, prefix="/api/v1")

    return app


@pytest.fixture
def client(app: FastAPI):
    """Create a test client."""
    with TestClient(app, raise_server_exceptions=False) as client:
        yield client
