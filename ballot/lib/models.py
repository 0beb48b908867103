"""Pydantic models for the voting workflow."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


# =============================================================================
# Enums
# =============================================================================


class WorkflowPhase(str, Enum):
    """Workflow phase, in the only order the session may move through."""

    REGISTERING_VOTERS = "registering_voters"
    PROPOSALS_REGISTRATION_STARTED = "proposals_registration_started"
    PROPOSALS_REGISTRATION_ENDED = "proposals_registration_ended"
    VOTING_SESSION_STARTED = "voting_session_started"
    VOTING_SESSION_ENDED = "voting_session_ended"
    VOTES_TALLIED = "votes_tallied"

    @property
    def rank(self) -> int:
        """Position of this phase in the workflow (0-based)."""
        return _PHASE_ORDER.index(self)

    @property
    def next(self) -> "WorkflowPhase | None":
        """The phase that follows this one, or None for the last phase."""
        rank = self.rank
        if rank + 1 < len(_PHASE_ORDER):
            return _PHASE_ORDER[rank + 1]
        return None

    def at_least(self, other: "WorkflowPhase") -> bool:
        """True if this phase is ``other`` or comes after it."""
        return self.rank >= other.rank


_PHASE_ORDER: list[WorkflowPhase] = list(WorkflowPhase)


# =============================================================================
# Registry Records
# =============================================================================


class Voter(BaseModel):
    """A participant's record in the current session."""

    identity: str = Field(description="Opaque caller identifier")
    is_registered: bool = Field(default=False)
    has_voted: bool = Field(default=False)
    voted_proposal_index: int | None = Field(
        default=None, description="Index of the chosen proposal once voted"
    )


class Proposal(BaseModel):
    """A candidate option, identified by its position in the session."""

    description: str = Field(min_length=1, description="Proposal text")
    vote_count: int = Field(default=0, ge=0)


# =============================================================================
# Events
# =============================================================================


class WorkflowEvent(BaseModel):
    """A notification signal emitted by the workflow."""

    event_id: str = Field(default_factory=lambda: str(uuid4()))
    sequence: int = Field(description="Monotonic counter for replay")
    event_type: str = Field(description="Event type")
    data: dict[str, Any] = Field(default_factory=dict)
    session_id: UUID = Field(description="Session the event belongs to")
    timestamp: datetime = Field(default_factory=utcnow)


# =============================================================================
# Session State
# =============================================================================


class SessionState(BaseModel):
    """Full session state for persistence."""

    session_id: UUID = Field(default_factory=uuid4)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    # Workflow
    phase: WorkflowPhase = Field(default=WorkflowPhase.REGISTERING_VOTERS)
    winning_proposal_index: int = Field(default=0)

    # Registry
    voters: dict[str, Voter] = Field(default_factory=dict)
    registered_identities: list[str] = Field(
        default_factory=list, description="Registration order, used to clear voters"
    )
    proposals: list[Proposal] = Field(default_factory=list)

    # Events (kept across resets)
    event_sequence: int = Field(default=0, description="Next event sequence number")
    event_history: list[WorkflowEvent] = Field(default_factory=list)

    def next_event_sequence(self) -> int:
        """Get and increment the event sequence."""
        seq = self.event_sequence
        self.event_sequence += 1
        return seq

    def is_registered(self, identity: str) -> bool:
        """Check whether an identity is a registered voter."""
        voter = self.voters.get(identity)
        return voter is not None and voter.is_registered

    def touch(self) -> None:
        """Update the updated_at timestamp."""
        self.updated_at = utcnow()


# =============================================================================
# API Request/Response Models
# =============================================================================


class RegisterVoterRequest(BaseModel):
    """Request to register a voter."""

    identity: str = Field(min_length=1, description="Identity to register")


class AddProposalRequest(BaseModel):
    """Request to register a proposal.

    Empty descriptions are accepted here and rejected by the workflow so
    the error kind stays the same on every surface.
    """

    description: str = Field(description="Proposal text")


class AddProposalResponse(BaseModel):
    """Response after registering a proposal."""

    proposal_index: int


class AddVoteRequest(BaseModel):
    """Request to cast a vote."""

    proposal_index: int


class VoteResponse(BaseModel):
    """A voter's recorded choice."""

    identity: str
    proposal_index: int


class ProposalResponse(BaseModel):
    """A proposal's public description."""

    proposal_index: int
    description: str


class PhaseChangeResponse(BaseModel):
    """Response after a phase transition or reset."""

    previous_phase: WorkflowPhase
    new_phase: WorkflowPhase


class SessionStatusResponse(BaseModel):
    """Publicly readable session status."""

    session_id: UUID
    phase: WorkflowPhase
    winning_proposal_index: int
    proposal_count: int


class TransferOwnershipRequest(BaseModel):
    """Request to hand the administrator role to another identity."""

    new_owner: str = Field(min_length=1)


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str = "0.1.0"
