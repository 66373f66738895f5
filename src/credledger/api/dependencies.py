"""FastAPI dependencies for dependency injection."""

from __future__ import annotations

from collections.abc import Generator  # noqa: TC003
from typing import Annotated

from fastapi import Depends, Header

from credledger.api.events import EventManager
from credledger.registry import CredentialRegistry

# Header carrying the caller identity, supplied by the authenticating proxy
CALLER_HEADER = "X-Caller-Identity"


class MissingCallerError(Exception):
    """Request did not carry a caller identity."""


# Global CredentialRegistry instance (initialized on app startup)
_registry: CredentialRegistry | None = None


def init_registry(
    db_path: str = "credledger.db",
    owner: str | None = None,
    event_manager: EventManager | None = None,
) -> CredentialRegistry:
    """Initialize the global CredentialRegistry instance."""
    global _registry  # noqa: PLW0603
    _registry = CredentialRegistry(db_path, owner=owner, event_publisher=event_manager)
    return _registry


def close_registry() -> None:
    """Close the global CredentialRegistry instance."""
    global _registry  # noqa: PLW0603
    if _registry is not None:
        _registry.close()
        _registry = None


def get_registry() -> Generator[CredentialRegistry, None, None]:
    """Dependency that provides the CredentialRegistry instance."""
    if _registry is None:
        raise RuntimeError("CredentialRegistry not initialized. Call init_registry() first.")
    yield _registry


# Type alias for dependency injection
RegistryDep = Annotated[CredentialRegistry, Depends(get_registry)]

# Global EventManager instance
_event_manager: EventManager | None = None


def init_event_manager() -> EventManager:
    """Initialize the global EventManager instance."""
    global _event_manager  # noqa: PLW0603
    _event_manager = EventManager()
    return _event_manager


def close_event_manager() -> None:
    """Drop the global EventManager instance."""
    global _event_manager  # noqa: PLW0603
    _event_manager = None


def get_event_manager() -> Generator[EventManager, None, None]:
    """Dependency that provides the EventManager instance."""
    if _event_manager is None:
        raise RuntimeError("EventManager not initialized. Call init_event_manager() first.")
    yield _event_manager


EventManagerDep = Annotated[EventManager, Depends(get_event_manager)]


def get_caller(
    x_caller_identity: Annotated[str | None, Header(alias=CALLER_HEADER)] = None,
) -> str:
    """Dependency that provides the caller identity from the request header."""
    if x_caller_identity is None or not x_caller_identity.strip():
        raise MissingCallerError(f"Missing {CALLER_HEADER} header")
    return x_caller_identity.strip()


CallerDep = Annotated[str, Depends(get_caller)]
