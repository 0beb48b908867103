"""Event helpers for the voting workflow.

Builds sequenced workflow events and converts them to Server-Sent Event messages.
"""

import json
import logging
from typing import Any, Iterable

from ballot.lib.models import SessionState, WorkflowEvent, WorkflowPhase, utcnow

logger = logging.getLogger(__name__)


# =============================================================================
# Event Types
# =============================================================================


class EventType:
    """Workflow event type constants."""

    VOTER_REGISTERED = "voter_registered"
    WORKFLOW_STATUS_CHANGE = "workflow_status_change"
    PROPOSAL_REGISTERED = "proposal_registered"
    VOTED = "voted"


# =============================================================================
# Event Builder
# =============================================================================


class EventBuilder:
    """Builder for workflow events with automatic sequencing."""

    def __init__(self, session: SessionState):
        self.session = session

    def build(self, event_type: str, data: dict[str, Any] | None = None) -> WorkflowEvent:
        """Build an event with proper sequencing."""
        return WorkflowEvent(
            sequence=self.session.next_event_sequence(),
            event_type=event_type,
            data=data or {},
            session_id=self.session.session_id,
            timestamp=utcnow(),
        )

    def voter_registered(self, identity: str) -> WorkflowEvent:
        """Build voter registration event."""
        return self.build(EventType.VOTER_REGISTERED, {"identity": identity})

    def workflow_status_change(
        self,
        previous_phase: WorkflowPhase,
        new_phase: WorkflowPhase,
    ) -> WorkflowEvent:
        """Build phase change event."""
        return self.build(
            EventType.WORKFLOW_STATUS_CHANGE,
            {
                "previous_phase": previous_phase.value,
                "new_phase": new_phase.value,
            },
        )

    def proposal_registered(self, proposal_index: int) -> WorkflowEvent:
        """Build proposal registration event."""
        return self.build(EventType.PROPOSAL_REGISTERED, {"proposal_index": proposal_index})

    def voted(self, identity: str, proposal_index: int) -> WorkflowEvent:
        """Build vote cast event."""
        return self.build(
            EventType.VOTED,
            {"identity": identity, "proposal_index": proposal_index},
        )


# =============================================================================
# SSE Messages
# =============================================================================


def to_sse_message(event: WorkflowEvent) -> dict[str, str]:
    """Convert an event into the message dict EventSourceResponse sends.

    The sequence doubles as the SSE id so Last-Event-ID can resume.
    """
    return {
        "id": str(event.sequence),
        "event": event.event_type,
        "data": json.dumps(event.model_dump(mode="json")),
    }


# =============================================================================
# Recovery Support
# =============================================================================


def parse_last_event_id(value: str | None) -> int | None:
    """Parse a Last-Event-ID header; anything unparseable means replay all."""
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Ignoring malformed Last-Event-ID: {value!r}")
        return None


def events_after(
    event_history: Iterable[WorkflowEvent],
    from_sequence: int | None,
) -> list[WorkflowEvent]:
    """
    Events newer than a given sequence number, for SSE reconnection.

    Args:
        event_history: Past events in emission order
        from_sequence: Last received sequence number, or None for everything

    Returns:
        The missed events
    """
    if from_sequence is None:
        return list(event_history)
    return [event for event in event_history if event.sequence > from_sequence]
