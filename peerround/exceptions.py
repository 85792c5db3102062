"""Exceptions raised by peerround.

Only precondition failures are exceptions. Degraded rounds (retry budgets
exhausted) are reported as `RoundWarning` values on the round result.
"""

from typing import Any


class PeerRoundError(Exception):
    """Base exception for all peerround errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ActivityNotFoundError(PeerRoundError):
    """Raised when a store has no record of the requested activity."""

    def __init__(self, activity_id: str, **kwargs: Any):
        super().__init__(f"Activity not found: {activity_id}", **kwargs)
        self.activity_id = activity_id


class InsufficientParticipantsError(PeerRoundError):
    """Raised when an activity has too few participants to form any pair."""

    def __init__(
        self,
        activity_id: str,
        participant_count: int,
        minimum: int,
        **kwargs: Any,
    ):
        super().__init__(
            f"Activity {activity_id} has {participant_count} participant(s); "
            f"at least {minimum} are needed to advance a round",
            **kwargs,
        )
        self.activity_id = activity_id
        self.participant_count = participant_count
        self.minimum = minimum


class RoundInProgressError(PeerRoundError):
    """Raised when a second round advance starts while one is still running."""

    def __init__(self, activity_id: str, **kwargs: Any):
        super().__init__(f"A round advance is already running for activity {activity_id}", **kwargs)
        self.activity_id = activity_id


class InvalidEvaluationError(PeerRoundError):
    """Raised when a store rejects an evaluation outcome."""

    pass


class InvalidActivityIdError(PeerRoundError):
    """Raised when an activity id cannot be used as a storage key."""

    def __init__(self, activity_id: str, **kwargs: Any):
        super().__init__(
            f"Invalid activity id: {activity_id!r} (use letters, digits, '_' and '-')",
            **kwargs,
        )
        self.activity_id = activity_id
