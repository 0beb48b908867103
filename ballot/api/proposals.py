"""Proposal endpoints."""

from fastapi import APIRouter, Depends

from ballot.api.identity import get_caller
from ballot.lib.models import AddProposalRequest, AddProposalResponse, ProposalResponse
from ballot.lib.persistence import SessionStore, get_session_store

router = APIRouter()


@router.post("/proposals", response_model=AddProposalResponse, status_code=201)
async def add_proposal(
    request: AddProposalRequest,
    caller: str = Depends(get_caller),
    store: SessionStore = Depends(get_session_store),
) -> AddProposalResponse:
    """Register a proposal during proposal registration."""
    async with store.transaction() as workflow:
        index = workflow.add_proposal(caller, request.description)
    return AddProposalResponse(proposal_index=index)


@router.get("/proposals/{index}", response_model=ProposalResponse)
async def get_proposal(
    index: int,
    caller: str = Depends(get_caller),
    store: SessionStore = Depends(get_session_store),
) -> ProposalResponse:
    """Read a proposal's description. Registered voters only."""
    async with store.transaction(write=False) as workflow:
        description = workflow.get_proposal(caller, index)
    return ProposalResponse(proposal_index=index, description=description)
