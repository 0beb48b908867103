"""Workflow event endpoints."""

import asyncio
import logging

from fastapi import APIRouter, Depends, Request
from sse_starlette.sse import EventSourceResponse

from ballot.config import get_settings
from ballot.lib.models import WorkflowEvent
from ballot.lib.persistence import SessionStore, get_session_store
from ballot.lib.streaming import events_after, parse_last_event_id, to_sse_message

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/events/history", response_model=list[WorkflowEvent])
async def get_event_history(
    after: int | None = None,
    store: SessionStore = Depends(get_session_store),
) -> list[WorkflowEvent]:
    """Recorded events, optionally only those after a sequence number."""
    async with store.transaction(write=False) as workflow:
        return events_after(workflow.session.event_history, after)


@router.get("/events")
async def stream_events(
    request: Request,
    follow: bool = True,
    store: SessionStore = Depends(get_session_store),
) -> EventSourceResponse:
    """
    Stream workflow events via SSE.

    Replays recorded events after Last-Event-ID, then follows new events
    unless ``follow`` is false.
    """
    settings = get_settings()
    from_sequence = parse_last_event_id(request.headers.get("Last-Event-ID"))
    queue: asyncio.Queue[WorkflowEvent] = asyncio.Queue()

    async with store.transaction(write=False) as workflow:
        backlog = events_after(workflow.session.event_history, from_sequence)
        if follow:
            workflow.subscribe(queue.put_nowait)

    async def event_generator():
        """Yield the backlog, then live events until the client leaves."""
        last_sequence = from_sequence if from_sequence is not None else -1
        try:
            for event in backlog:
                last_sequence = event.sequence
                yield to_sse_message(event)

            while follow:
                if await request.is_disconnected():
                    logger.info("Event stream client disconnected")
                    break
                try:
                    event = await asyncio.wait_for(
                        queue.get(), timeout=settings.sse_heartbeat_seconds
                    )
                except asyncio.TimeoutError:
                    continue
                # Skip anything already sent from the backlog
                if event.sequence <= last_sequence:
                    continue
                last_sequence = event.sequence
                yield to_sse_message(event)
        finally:
            if follow:
                store.workflow.unsubscribe(queue.put_nowait)

    return EventSourceResponse(event_generator(), ping=int(settings.sse_heartbeat_seconds))
