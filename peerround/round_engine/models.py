"""Data models for the round engine."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

# A cluster is an ordered group of participant ids: 3 for a triad, more when
# stragglers were folded in.
Cluster = tuple[str, ...]


class Pairing(BaseModel):
    """Unordered pair of two distinct participants.

    Members are stored sorted, so equality and hashing depend only on
    content: ``Pairing.of("a", "b") == Pairing.of("b", "a")``.
    """
    model_config = ConfigDict(frozen=True)

    first: str
    second: str

    @model_validator(mode="before")
    @classmethod
    def _sort_members(cls, data):
        if isinstance(data, dict) and "first" in data and "second" in data:
            a, b = data["first"], data["second"]
            if a == b:
                raise ValueError(f"a pairing needs two different participants, got {a!r} twice")
            if b < a:
                data = {**data, "first": b, "second": a}
        return data

    @classmethod
    def of(cls, a: str, b: str) -> "Pairing":
        return cls(first=a, second=b)

    @property
    def members(self) -> tuple[str, str]:
        return (self.first, self.second)

    def __contains__(self, participant_id: object) -> bool:
        return participant_id == self.first or participant_id == self.second


class RoundWarning(str, Enum):
    """Degraded outcomes of a round advance. None of them is fatal."""
    DEGENERATE_CLUSTERING = "degenerate_clustering"
    PAIRING_CONFLICT_UNRESOLVED = "pairing_conflict_unresolved"
    ASSIGNMENT_INCOMPLETE = "assignment_incomplete"


class EngineConfig(BaseModel):
    """Configuration for the round engine."""
    # Retry budgets for the two randomized searches
    max_pairing_attempts: int = Field(default=1000, ge=1)
    max_assignment_attempts: int = Field(default=1000, ge=1)

    # Fewer participants than this is a precondition failure
    min_participants: int = Field(default=2, ge=2)

    # Seed for tie-breaking shuffles; None draws from system entropy
    seed: int | None = None

    # Fold recorded evaluations into the seen-papers history each round
    record_outcomes_as_seen: bool = True


class ActivityState(BaseModel):
    """Mutable engine state for one activity.

    Created on the first round advance and cleared on reset. The engine
    builds each round on copies and only writes back once the round is done.
    """
    activity_id: str
    participant_ids: list[str] = Field(default_factory=list)
    scores: dict[str, int] = Field(default_factory=dict)
    pairing_history: set[Pairing] = Field(default_factory=set)
    seen_by_evaluator: dict[str, set[str]] = Field(default_factory=dict)
    rounds_completed: int = 0

    def reset(self) -> None:
        """Forget everything learned about this activity."""
        self.participant_ids = []
        self.scores = {}
        self.pairing_history = set()
        self.seen_by_evaluator = {}
        self.rounds_completed = 0

    def has_seen(self, evaluator_id: str, participant_id: str) -> bool:
        return participant_id in self.seen_by_evaluator.get(evaluator_id, ())


class RoundResult(BaseModel):
    """Everything produced by one round advance."""
    activity_id: str
    round_number: int
    participant_ids: list[str]
    scores: dict[str, int]
    clusters: list[Cluster] = Field(default_factory=list)
    pairings: list[Pairing] = Field(default_factory=list)
    assignment: dict[str, Pairing] = Field(default_factory=dict)
    warnings: list[RoundWarning] = Field(default_factory=list)
    assignment_attempts: int = 0

    @property
    def is_complete(self) -> bool:
        """True when every participant received a pair to judge."""
        return bool(self.participant_ids) and len(self.assignment) == len(self.participant_ids)

    @property
    def unassigned(self) -> list[str]:
        return [pid for pid in self.participant_ids if pid not in self.assignment]

    def assignment_as_lists(self) -> dict[str, list[str]]:
        """Evaluator -> [participant, participant], the shape callers persist."""
        return {
            evaluator: list(pairing.members)
            for evaluator, pairing in self.assignment.items()
        }
