"""Session status, reset and administration endpoints."""

from fastapi import APIRouter, Depends

from ballot.api.identity import get_caller
from ballot.lib.models import (
    PhaseChangeResponse,
    SessionStatusResponse,
    TransferOwnershipRequest,
    WorkflowPhase,
)
from ballot.lib.persistence import SessionStore, get_session_store

router = APIRouter()


@router.get("/session", response_model=SessionStatusResponse)
async def get_session_status(
    store: SessionStore = Depends(get_session_store),
) -> SessionStatusResponse:
    """Public session status. No caller identity required."""
    async with store.transaction(write=False) as workflow:
        return SessionStatusResponse(
            session_id=workflow.session.session_id,
            phase=workflow.workflow_phase,
            winning_proposal_index=workflow.winning_proposal_index,
            proposal_count=workflow.proposal_count,
        )


@router.post("/session/reset", response_model=PhaseChangeResponse)
async def reset_session(
    caller: str = Depends(get_caller),
    store: SessionStore = Depends(get_session_store),
) -> PhaseChangeResponse:
    """Start a new session. Administrator only."""
    async with store.transaction() as workflow:
        event = workflow.reset_session(caller)

    return PhaseChangeResponse(
        previous_phase=WorkflowPhase(event.data["previous_phase"]),
        new_phase=WorkflowPhase(event.data["new_phase"]),
    )


@router.post("/session/owner")
async def transfer_ownership(
    request: TransferOwnershipRequest,
    caller: str = Depends(get_caller),
    store: SessionStore = Depends(get_session_store),
) -> dict:
    """
    Hand the administrator role to another identity.

    Ownership is not persisted; a restart falls back to the configured
    administrator.
    """
    async with store.transaction(write=False) as workflow:
        workflow.authority.transfer_ownership(caller, request.new_owner)
        return {"owner": workflow.authority.owner}


@router.get("/winner")
async def get_winner(
    store: SessionStore = Depends(get_session_store),
) -> dict:
    """Winning proposal, readable by anyone once votes are tallied."""
    async with store.transaction(write=False) as workflow:
        description = workflow.get_winner_proposal()
        return {
            "proposal_index": workflow.winning_proposal_index,
            "description": description,
        }
