"""Voting session state machine.

Owns the single live SessionState and exposes every workflow operation.
Each operation checks all of its preconditions before touching state, so a
rejected call leaves the session exactly as it was.
"""

import functools
import logging
from typing import Any, Callable, TypeVar
from uuid import uuid4

from ballot.lib.exceptions import (
    AlreadyRegisteredError,
    AlreadyVotedError,
    BallotError,
    DuplicateProposalError,
    EmptyProposalError,
    HasNotVotedError,
    InvalidPhaseTransitionError,
    NotAVoterError,
    SessionNotResettableError,
    TallyNotDoneError,
    VotingClosedError,
)
from ballot.lib.models import (
    Proposal,
    SessionState,
    Voter,
    WorkflowEvent,
    WorkflowPhase,
    utcnow,
)
from ballot.lib.streaming import EventBuilder
from ballot.workflow.authority import OwnerAuthority
from ballot.workflow.guards import (
    require_administrator,
    require_phase,
    require_phase_at_least,
    require_proposal_index,
    require_proposals,
    require_voter,
)
from ballot.workflow.tally import winning_index

logger = logging.getLogger(__name__)

EventListener = Callable[[WorkflowEvent], None]

F = TypeVar("F", bound=Callable[..., Any])


def logs_rejections(method: F) -> F:
    """Log a WARNING when a workflow operation is rejected, then re-raise."""

    @functools.wraps(method)
    def wrapper(self: "VotingWorkflow", *args: Any, **kwargs: Any) -> Any:
        try:
            return method(self, *args, **kwargs)
        except BallotError as e:
            caller = args[0] if args else "<anonymous>"
            logger.warning(f"{method.__name__} rejected for {caller}: {e.message}")
            raise

    return wrapper  # type: ignore[return-value]


class VotingWorkflow:
    """
    Coordinator for one voting session.

    Flow:
    1. Administrator registers voters
    2. Voters register proposals
    3. Voters cast one vote each
    4. Administrator tallies; the first proposal with the most votes wins
    5. Administrator may reset to start a new session
    """

    def __init__(
        self,
        authority: OwnerAuthority,
        session: SessionState | None = None,
        legacy_reset_signal: bool = False,
        event_history_limit: int = 1000,
    ):
        self.authority = authority
        self.session = session or SessionState()
        self.legacy_reset_signal = legacy_reset_signal
        self.event_history_limit = event_history_limit
        self._listeners: list[EventListener] = []
        self._held: list[WorkflowEvent] | None = None

    # =========================================================================
    # Public reads
    # =========================================================================

    @property
    def workflow_phase(self) -> WorkflowPhase:
        return self.session.phase

    @property
    def winning_proposal_index(self) -> int:
        return self.session.winning_proposal_index

    @property
    def proposal_count(self) -> int:
        return len(self.session.proposals)

    # =========================================================================
    # Events
    # =========================================================================

    def subscribe(self, listener: EventListener) -> None:
        """Register a callable to receive every emitted event."""
        self._listeners.append(listener)

    def unsubscribe(self, listener: EventListener) -> None:
        """Remove a previously registered listener."""
        self._listeners.remove(listener)

    def hold_events(self) -> None:
        """Buffer listener delivery until release_events() or drop_held_events()."""
        self._held = []

    def release_events(self) -> None:
        """Deliver buffered events and stop buffering."""
        held, self._held = self._held or [], None
        for event in held:
            self._deliver(event)

    def drop_held_events(self) -> None:
        """Discard buffered events and stop buffering."""
        self._held = None

    def _deliver(self, event: WorkflowEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                # State is already committed at this point
                logger.exception(f"Event listener failed on {event.event_type}")

    def _emit(self, event: WorkflowEvent) -> WorkflowEvent:
        """Record an event and hand it to listeners (or the hold buffer)."""
        history = self.session.event_history
        history.append(event)
        if len(history) > self.event_history_limit:
            del history[: len(history) - self.event_history_limit]
        self.session.touch()

        if self._held is not None:
            self._held.append(event)
        else:
            self._deliver(event)
        return event

    def _advance(self, caller: str, expected: WorkflowPhase) -> WorkflowEvent:
        """Move from ``expected`` to the next phase."""
        require_administrator(self.authority, caller)
        require_phase(self.session, expected)

        previous = self.session.phase
        new_phase = previous.next
        if new_phase is None:
            raise InvalidPhaseTransitionError(
                f"No phase follows {previous.value}",
                actual_phase=previous.value,
            )
        self.session.phase = new_phase
        logger.info(f"Phase changed: {previous.value} -> {new_phase.value}")

        builder = EventBuilder(self.session)
        return self._emit(builder.workflow_status_change(previous, new_phase))

    # =========================================================================
    # Phase transitions
    # =========================================================================

    @logs_rejections
    def start_proposals_registration(self, caller: str) -> WorkflowEvent:
        """Open proposal registration."""
        return self._advance(caller, WorkflowPhase.REGISTERING_VOTERS)

    @logs_rejections
    def stop_proposals_registration(self, caller: str) -> WorkflowEvent:
        """Close proposal registration."""
        return self._advance(caller, WorkflowPhase.PROPOSALS_REGISTRATION_STARTED)

    @logs_rejections
    def start_voting_session(self, caller: str) -> WorkflowEvent:
        """Open voting."""
        return self._advance(caller, WorkflowPhase.PROPOSALS_REGISTRATION_ENDED)

    @logs_rejections
    def stop_voting_session(self, caller: str) -> WorkflowEvent:
        """Close voting."""
        return self._advance(caller, WorkflowPhase.VOTING_SESSION_STARTED)

    @logs_rejections
    def tally_votes(self, caller: str) -> WorkflowEvent:
        """
        Pick the winning proposal and close the session.

        Raises:
            UnauthorizedError: Caller is not the administrator
            NoProposalsError: Nothing to tally
            InvalidPhaseTransitionError: Voting has not just ended
        """
        require_administrator(self.authority, caller)
        require_proposals(self.session)
        require_phase(self.session, WorkflowPhase.VOTING_SESSION_ENDED)

        winner = winning_index(self.session.proposals)
        self.session.winning_proposal_index = winner
        self.session.phase = WorkflowPhase.VOTES_TALLIED
        logger.info(
            f"Votes tallied: proposal {winner} wins with "
            f"{self.session.proposals[winner].vote_count} vote(s)"
        )

        builder = EventBuilder(self.session)
        return self._emit(
            builder.workflow_status_change(
                WorkflowPhase.VOTING_SESSION_ENDED, WorkflowPhase.VOTES_TALLIED
            )
        )

    @logs_rejections
    def reset_session(self, caller: str) -> WorkflowEvent:
        """
        Start a new session, keeping the administrator.

        Allowed once votes are tallied, or from proposal registration end
        onwards when no proposal was ever registered.

        Raises:
            UnauthorizedError: Caller is not the administrator
            SessionNotResettableError: Current phase does not allow a reset
        """
        require_administrator(self.authority, caller)

        session = self.session
        previous = session.phase
        empty_and_stuck = not session.proposals and previous.at_least(
            WorkflowPhase.PROPOSALS_REGISTRATION_ENDED
        )
        if previous != WorkflowPhase.VOTES_TALLIED and not empty_and_stuck:
            raise SessionNotResettableError(previous.value, len(session.proposals))

        for identity in session.registered_identities:
            session.voters.pop(identity, None)
        session.registered_identities.clear()
        session.proposals.clear()
        session.winning_proposal_index = 0
        session.phase = WorkflowPhase.REGISTERING_VOTERS
        session.session_id = uuid4()
        session.created_at = utcnow()
        logger.info(f"Session reset from {previous.value}; new session {session.session_id}")

        reported = WorkflowPhase.VOTES_TALLIED if self.legacy_reset_signal else previous
        builder = EventBuilder(session)
        return self._emit(
            builder.workflow_status_change(reported, WorkflowPhase.REGISTERING_VOTERS)
        )

    # =========================================================================
    # Voters
    # =========================================================================

    @logs_rejections
    def register_voter(self, caller: str, identity: str) -> WorkflowEvent:
        """
        Grant ``identity`` the right to propose and vote.

        Raises:
            UnauthorizedError: Caller is not the administrator
            InvalidPhaseTransitionError: Voter registration is closed
            AlreadyRegisteredError: Identity already registered this session
        """
        require_administrator(self.authority, caller)
        require_phase(self.session, WorkflowPhase.REGISTERING_VOTERS)
        if self.session.is_registered(identity):
            raise AlreadyRegisteredError(identity)

        self.session.voters[identity] = Voter(identity=identity, is_registered=True)
        self.session.registered_identities.append(identity)
        logger.info(f"Voter registered: {identity}")

        builder = EventBuilder(self.session)
        return self._emit(builder.voter_registered(identity))

    @logs_rejections
    def get_voter(self, caller: str, identity: str) -> Voter:
        """Return a copy of the voter record; unknown identities read as empty."""
        require_voter(self.session, caller)
        voter = self.session.voters.get(identity)
        if voter is None:
            return Voter(identity=identity)
        return voter.model_copy()

    # =========================================================================
    # Proposals
    # =========================================================================

    @logs_rejections
    def add_proposal(self, caller: str, description: str) -> int:
        """
        Register a proposal and return its index.

        Raises:
            UnauthorizedError: Caller is not a registered voter
            InvalidPhaseTransitionError: Proposal registration is not open
            EmptyProposalError: Description is empty
            DuplicateProposalError: Same description already registered
        """
        require_voter(self.session, caller)
        require_phase(self.session, WorkflowPhase.PROPOSALS_REGISTRATION_STARTED)
        if len(description) == 0:
            raise EmptyProposalError()
        for proposal in self.session.proposals:
            if proposal.description == description:
                raise DuplicateProposalError(description)

        self.session.proposals.append(Proposal(description=description))
        index = len(self.session.proposals) - 1
        logger.info(f"Proposal {index} registered by {caller}")

        builder = EventBuilder(self.session)
        self._emit(builder.proposal_registered(index))
        return index

    @logs_rejections
    def get_proposal(self, caller: str, index: int) -> str:
        """Return the description of proposal ``index``."""
        require_voter(self.session, caller)
        require_proposals(self.session)
        require_proposal_index(self.session, index)
        return self.session.proposals[index].description

    @logs_rejections
    def get_winner_proposal(self) -> str:
        """Return the winning description. Readable by anyone once tallied."""
        require_proposals(self.session)
        if self.session.phase != WorkflowPhase.VOTES_TALLIED:
            raise TallyNotDoneError(self.session.phase.value)
        return self.session.proposals[self.session.winning_proposal_index].description

    # =========================================================================
    # Votes
    # =========================================================================

    @logs_rejections
    def add_vote(self, caller: str, proposal_index: int) -> WorkflowEvent:
        """
        Cast the caller's single vote.

        Raises:
            UnauthorizedError: Caller is not a registered voter
            NoProposalsError: Nothing to vote on
            ProposalNotFoundError: Index out of bounds
            VotingClosedError: Voting is not open
            AlreadyVotedError: Caller has already voted
        """
        require_voter(self.session, caller)
        require_proposals(self.session)
        require_proposal_index(self.session, proposal_index)
        require_phase(self.session, WorkflowPhase.VOTING_SESSION_STARTED, VotingClosedError)
        voter = self.session.voters[caller]
        if voter.has_voted:
            raise AlreadyVotedError(caller)

        self.session.proposals[proposal_index].vote_count += 1
        voter.has_voted = True
        voter.voted_proposal_index = proposal_index
        logger.info(f"Vote cast by {caller} for proposal {proposal_index}")

        builder = EventBuilder(self.session)
        return self._emit(builder.voted(caller, proposal_index))

    @logs_rejections
    def get_vote(self, caller: str, identity: str) -> int:
        """
        Return the proposal index ``identity`` voted for.

        Votes are visible to every registered voter once voting has started.

        Raises:
            UnauthorizedError: Caller is not a registered voter
            NotAVoterError: Target is not registered
            HasNotVotedError: Target has not voted
            InvalidPhaseTransitionError: Voting has not started
        """
        require_voter(self.session, caller)
        if not self.session.is_registered(identity):
            raise NotAVoterError(identity)
        voter = self.session.voters[identity]
        if not voter.has_voted:
            raise HasNotVotedError(identity)
        require_phase_at_least(self.session, WorkflowPhase.VOTING_SESSION_STARTED)
        return voter.voted_proposal_index

