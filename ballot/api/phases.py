"""Phase transition endpoints."""

from enum import Enum

from fastapi import APIRouter, Depends

from ballot.api.identity import get_caller
from ballot.lib.models import PhaseChangeResponse, WorkflowPhase
from ballot.lib.persistence import SessionStore, get_session_store

router = APIRouter()


class PhaseAction(str, Enum):
    """Administrator actions that advance the workflow one step."""

    START_PROPOSALS_REGISTRATION = "start-proposals-registration"
    STOP_PROPOSALS_REGISTRATION = "stop-proposals-registration"
    START_VOTING_SESSION = "start-voting-session"
    STOP_VOTING_SESSION = "stop-voting-session"
    TALLY_VOTES = "tally-votes"


_OPERATIONS: dict[PhaseAction, str] = {
    PhaseAction.START_PROPOSALS_REGISTRATION: "start_proposals_registration",
    PhaseAction.STOP_PROPOSALS_REGISTRATION: "stop_proposals_registration",
    PhaseAction.START_VOTING_SESSION: "start_voting_session",
    PhaseAction.STOP_VOTING_SESSION: "stop_voting_session",
    PhaseAction.TALLY_VOTES: "tally_votes",
}


@router.post("/phases/{action}", response_model=PhaseChangeResponse)
async def advance_phase(
    action: PhaseAction,
    caller: str = Depends(get_caller),
    store: SessionStore = Depends(get_session_store),
) -> PhaseChangeResponse:
    """Run one administrator phase transition."""
    async with store.transaction() as workflow:
        event = getattr(workflow, _OPERATIONS[action])(caller)

    return PhaseChangeResponse(
        previous_phase=WorkflowPhase(event.data["previous_phase"]),
        new_phase=WorkflowPhase(event.data["new_phase"]),
    )
