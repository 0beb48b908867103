"""Precondition guards evaluated before any workflow mutation."""

from ballot.lib.exceptions import (
    InvalidPhaseTransitionError,
    NoProposalsError,
    ProposalNotFoundError,
    UnauthorizedError,
)
from ballot.lib.models import SessionState, WorkflowPhase
from ballot.workflow.authority import OwnerAuthority


def require_administrator(authority: OwnerAuthority, caller: str) -> None:
    """Raise UnauthorizedError unless the caller is the administrator."""
    if not authority.is_administrator(caller):
        raise UnauthorizedError(caller, "the administrator")


def require_voter(session: SessionState, caller: str) -> None:
    """Raise UnauthorizedError unless the caller is a registered voter."""
    if not session.is_registered(caller):
        raise UnauthorizedError(caller, "a registered voter")


def require_phase(
    session: SessionState,
    phase: WorkflowPhase,
    error: type[InvalidPhaseTransitionError] = InvalidPhaseTransitionError,
) -> None:
    """Raise ``error`` unless the session is exactly in ``phase``."""
    if session.phase != phase:
        raise error(
            f"Operation requires phase {phase.value}, session is in {session.phase.value}",
            required_phase=phase.value,
            actual_phase=session.phase.value,
        )


def require_phase_at_least(session: SessionState, phase: WorkflowPhase) -> None:
    """Raise InvalidPhaseTransitionError if the session has not reached ``phase``."""
    if not session.phase.at_least(phase):
        raise InvalidPhaseTransitionError(
            f"Operation requires phase {phase.value} or later, session is in {session.phase.value}",
            required_phase=phase.value,
            actual_phase=session.phase.value,
        )


def require_proposals(session: SessionState) -> None:
    """Raise NoProposalsError if the proposal list is empty."""
    if not session.proposals:
        raise NoProposalsError()


def require_proposal_index(session: SessionState, index: int) -> None:
    """Raise ProposalNotFoundError if ``index`` is out of bounds."""
    if index < 0 or index >= len(session.proposals):
        raise ProposalNotFoundError(index, len(session.proposals))
