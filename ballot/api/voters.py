"""Voter registration and voting endpoints."""

from fastapi import APIRouter, Depends

from ballot.api.identity import get_caller
from ballot.lib.models import (
    AddVoteRequest,
    RegisterVoterRequest,
    Voter,
    VoteResponse,
)
from ballot.lib.persistence import SessionStore, get_session_store

router = APIRouter()


@router.post("/voters", response_model=Voter, status_code=201)
async def register_voter(
    request: RegisterVoterRequest,
    caller: str = Depends(get_caller),
    store: SessionStore = Depends(get_session_store),
) -> Voter:
    """Register a voter. Administrator only, during voter registration."""
    async with store.transaction() as workflow:
        workflow.register_voter(caller, request.identity)
        return workflow.session.voters[request.identity].model_copy()


@router.get("/voters/{identity}", response_model=Voter)
async def get_voter(
    identity: str,
    caller: str = Depends(get_caller),
    store: SessionStore = Depends(get_session_store),
) -> Voter:
    """Read a voter record. Registered voters only."""
    async with store.transaction(write=False) as workflow:
        return workflow.get_voter(caller, identity)


@router.get("/voters/{identity}/vote", response_model=VoteResponse)
async def get_vote(
    identity: str,
    caller: str = Depends(get_caller),
    store: SessionStore = Depends(get_session_store),
) -> VoteResponse:
    """
    Read another voter's choice.

    Votes are public to registered voters once voting has started.
    """
    async with store.transaction(write=False) as workflow:
        index = workflow.get_vote(caller, identity)
    return VoteResponse(identity=identity, proposal_index=index)


@router.post("/votes", response_model=VoteResponse, status_code=201)
async def add_vote(
    request: AddVoteRequest,
    caller: str = Depends(get_caller),
    store: SessionStore = Depends(get_session_store),
) -> VoteResponse:
    """Cast the caller's vote."""
    async with store.transaction() as workflow:
        workflow.add_vote(caller, request.proposal_index)
    return VoteResponse(identity=caller, proposal_index=request.proposal_index)
