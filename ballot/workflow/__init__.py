"""Workflow package - voting session state machine."""

from ballot.workflow.authority import OwnerAuthority
from ballot.workflow.session import EventListener, VotingWorkflow
from ballot.workflow.tally import winning_index

__all__ = [
    # Authority
    "OwnerAuthority",
    # Session
    "EventListener",
    "VotingWorkflow",
    # Tally
    "winning_index",
]
