from enum import Enum

from pydantic import BaseModel, model_validator


class ActivityPhase(str, Enum):
    """Lifecycle phase of a peer-review activity."""
    SUBMIT = "submit"      # participants upload their work
    EVALUATE = "evaluate"  # rounds of blind pairwise evaluation
    FINAL = "final"        # rankings are frozen


class Participant(BaseModel):
    """A submitter in an activity, keyed by a stable external id (email)."""
    participant_id: str
    name: str = ""
    # Position in the submission order; the simulation uses it to pick winners
    index: int | None = None


class EvaluationOutcome(BaseModel):
    """One recorded judgement: an evaluator compared two submissions."""
    evaluator_id: str
    left_id: str
    right_id: str
    winner_id: str
    round_number: int | None = None

    @model_validator(mode="after")
    def _check_winner(self) -> "EvaluationOutcome":
        if self.left_id == self.right_id:
            raise ValueError("an evaluation compares two different participants")
        if self.winner_id not in (self.left_id, self.right_id):
            raise ValueError(
                f"winner {self.winner_id!r} is neither {self.left_id!r} nor {self.right_id!r}"
            )
        return self

    @property
    def compared(self) -> tuple[str, str]:
        return (self.left_id, self.right_id)


class Activity(BaseModel):
    """Durable record of an activity as kept by an evaluation store."""
    activity_id: str
    name: str = ""
    phase: ActivityPhase = ActivityPhase.SUBMIT
    current_round: int = 0
