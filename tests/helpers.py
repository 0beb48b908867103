"""Workflow driving helpers shared by the test modules."""

from ballot.workflow import VotingWorkflow

ADMIN = "alice"
BOB = "bob"
CAROL = "carol"
DAVE = "dave"
MALLORY = "mallory"


def open_proposals(workflow: VotingWorkflow, *voters: str) -> None:
    """Register voters and open proposal registration."""
    for voter in voters:
        workflow.register_voter(ADMIN, voter)
    workflow.start_proposals_registration(ADMIN)


def open_voting(workflow: VotingWorkflow, proposals: dict[str, str]) -> None:
    """Register voters, add one proposal per voter, and open voting."""
    open_proposals(workflow, *proposals)
    for voter, description in proposals.items():
        workflow.add_proposal(voter, description)
    workflow.stop_proposals_registration(ADMIN)
    workflow.start_voting_session(ADMIN)
