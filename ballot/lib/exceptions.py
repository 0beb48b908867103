"""Custom exceptions for the voting workflow."""

from typing import Any


class BallotError(Exception):
    """Base exception for all workflow errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


# =============================================================================
# Authorization Errors
# =============================================================================


class UnauthorizedError(BallotError):
    """Raised when the caller lacks the capability an operation requires."""

    def __init__(
        self,
        caller: str,
        required_role: str,
        **kwargs: Any,
    ):
        super().__init__(f"Caller '{caller}' is not {required_role}", **kwargs)
        self.caller = caller
        self.required_role = required_role


# =============================================================================
# Phase Errors
# =============================================================================


class InvalidPhaseTransitionError(BallotError):
    """Raised when the session is in the wrong phase for an operation."""

    def __init__(
        self,
        message: str,
        required_phase: str | None = None,
        actual_phase: str | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.required_phase = required_phase
        self.actual_phase = actual_phase


class VotingClosedError(InvalidPhaseTransitionError):
    """Raised when a vote is cast outside the voting phase."""

    pass


class TallyNotDoneError(BallotError):
    """Raised when the result is requested before votes are tallied."""

    def __init__(self, actual_phase: str, **kwargs: Any):
        super().__init__(f"Votes have not been tallied yet (phase: {actual_phase})", **kwargs)
        self.actual_phase = actual_phase


class SessionNotResettableError(BallotError):
    """Raised when the session cannot be reset from its current state."""

    def __init__(self, actual_phase: str, proposal_count: int, **kwargs: Any):
        super().__init__(
            f"Session cannot be reset from {actual_phase} with {proposal_count} proposal(s)",
            **kwargs,
        )
        self.actual_phase = actual_phase
        self.proposal_count = proposal_count


# =============================================================================
# Registry Errors
# =============================================================================


class AlreadyRegisteredError(BallotError):
    """Raised when registering an identity twice in one session."""

    def __init__(self, identity: str, **kwargs: Any):
        super().__init__(f"Voter already registered: {identity}", **kwargs)
        self.identity = identity


class NotAVoterError(BallotError):
    """Raised when the target identity is not a registered voter."""

    def __init__(self, identity: str, **kwargs: Any):
        super().__init__(f"Not a registered voter: {identity}", **kwargs)
        self.identity = identity


class HasNotVotedError(BallotError):
    """Raised when looking up the vote of someone who has not voted."""

    def __init__(self, identity: str, **kwargs: Any):
        super().__init__(f"Voter has not voted: {identity}", **kwargs)
        self.identity = identity


class AlreadyVotedError(BallotError):
    """Raised when a voter tries to vote a second time."""

    def __init__(self, identity: str, **kwargs: Any):
        super().__init__(f"Voter has already voted: {identity}", **kwargs)
        self.identity = identity


# =============================================================================
# Proposal Errors
# =============================================================================


class EmptyProposalError(BallotError):
    """Raised when a proposal description is empty."""

    def __init__(self, **kwargs: Any):
        super().__init__("Proposal description must not be empty", **kwargs)


class DuplicateProposalError(BallotError):
    """Raised when a proposal description already exists in the session."""

    def __init__(self, description: str, **kwargs: Any):
        super().__init__(f"Proposal already exists: {description!r}", **kwargs)
        self.description = description


class NoProposalsError(BallotError):
    """Raised when an operation needs at least one proposal."""

    def __init__(self, **kwargs: Any):
        super().__init__("No proposals have been registered", **kwargs)


class ProposalNotFoundError(BallotError):
    """Raised when a proposal index is out of bounds."""

    def __init__(self, index: int, proposal_count: int, **kwargs: Any):
        super().__init__(
            f"Proposal not found: {index} (have {proposal_count})", **kwargs
        )
        self.index = index
        self.proposal_count = proposal_count


# =============================================================================
# Session Errors
# =============================================================================


class SessionPersistenceError(BallotError):
    """Raised when unable to persist session state."""

    pass
