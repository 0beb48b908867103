"""Winner selection."""

from collections.abc import Sequence

from ballot.lib.exceptions import NoProposalsError
from ballot.lib.models import Proposal


def winning_index(proposals: Sequence[Proposal]) -> int:
    """
    Index of the proposal with the most votes.

    Single pass with a strict ``>`` comparison, so among equal counts the
    lowest index wins.

    Examples:
        >>> winning_index([Proposal(description="a", vote_count=3),
        ...                Proposal(description="b", vote_count=5),
        ...                Proposal(description="c", vote_count=5)])
        1
    """
    if not proposals:
        raise NoProposalsError()

    best = 0
    for index, proposal in enumerate(proposals):
        if proposal.vote_count > proposals[best].vote_count:
            best = index
    return best
