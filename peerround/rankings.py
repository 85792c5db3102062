"""Aggregated standings from evaluation history."""

from collections import Counter
from collections.abc import Iterable

from pydantic import BaseModel

from peerround.models import EvaluationOutcome, Participant


class RankingEntry(BaseModel):
    """One row of the standings."""
    participant_id: str
    name: str = ""
    rank: int
    score: int              # head-to-head wins
    comparisons: int = 0    # times this submission was judged
    evaluations_given: int = 0


def compute_rankings(
    participants: Iterable[Participant],
    outcomes: Iterable[EvaluationOutcome],
    round_number: int | None = None
) -> list[RankingEntry]:
    """Build standings for an activity.

    Every participant appears, including those without a win. Ties share a
    rank and the next rank skips accordingly (1, 2, 2, 4).

    Args:
        participants: Current participants
        outcomes: Recorded evaluations
        round_number: Only count evaluations from this round (all rounds if None)

    Returns:
        Entries sorted by score, highest first
    """
    participants = list(participants)
    if round_number is not None:
        outcomes = [o for o in outcomes if o.round_number == round_number]

    wins: Counter[str] = Counter()
    compared: Counter[str] = Counter()
    given: Counter[str] = Counter()
    for outcome in outcomes:
        wins[outcome.winner_id] += 1
        compared.update(outcome.compared)
        given[outcome.evaluator_id] += 1

    ordered = sorted(
        participants,
        key=lambda p: (-wins[p.participant_id], p.participant_id),
    )

    entries: list[RankingEntry] = []
    previous_score: int | None = None
    rank = 0
    for position, participant in enumerate(ordered, 1):
        score = wins[participant.participant_id]
        if score != previous_score:
            rank = position
            previous_score = score
        entries.append(RankingEntry(
            participant_id=participant.participant_id,
            name=participant.name,
            rank=rank,
            score=score,
            comparisons=compared[participant.participant_id],
            evaluations_given=given[participant.participant_id],
        ))

    return entries
