"""Audit trail and Server-Sent Events (SSE) endpoints."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from fastapi import APIRouter, Query
from fastapi.responses import StreamingResponse

from credledger.api.dependencies import EventManagerDep, RegistryDep
from credledger.api.models import APIResponse, EventResponse, event_to_response
from credledger.registry import EventType

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

router = APIRouter(prefix="/events", tags=["events"])


@router.get("", response_model=APIResponse[list[EventResponse]])
def list_events(
    registry: RegistryDep,
    event_type: EventType | None = Query(default=None, description="Filter by event type"),
    limit: int = Query(default=100, ge=1, le=1000, description="Max results"),
    offset: int = Query(default=0, ge=0, description="Pagination offset"),
) -> APIResponse[list[EventResponse]]:
    """List recorded domain events in the order they happened."""
    events = registry.list_events(event_type=event_type, limit=limit, offset=offset)
    return APIResponse(data=[event_to_response(e) for e in events])


@router.get("/stream")
async def event_stream(
    event_manager: EventManagerDep,
    event_types: list[EventType] | None = Query(
        default=None, alias="type", description="Only stream these event types"
    ),
) -> StreamingResponse:
    """Subscribe to Server-Sent Events stream.

    A heartbeat is sent every 30 seconds to keep the connection alive.
    """
    em = event_manager
    subscriber = em.subscribe({t.value for t in event_types} if event_types else None)

    async def generate() -> AsyncGenerator[str, None]:
        try:
            while True:
                try:
                    event = await asyncio.wait_for(
                        subscriber.queue.get(),
                        timeout=em._heartbeat_interval,
                    )
                    yield event.to_sse()
                except TimeoutError:
                    yield em.create_heartbeat_event().to_sse()
        except asyncio.CancelledError:
            # Client disconnected
            pass
        finally:
            em.unsubscribe(subscriber.id)

    return StreamingResponse(
        generate(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",  # Disable nginx buffering
        },
    )
