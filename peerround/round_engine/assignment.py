"""Evaluator assignment: one conflict-free pair per participant."""

import random
from collections.abc import Collection, Mapping, Sequence

from pydantic import BaseModel, Field

from peerround.round_engine.clustering import order_by_score
from peerround.round_engine.models import Pairing


class AssignmentResult(BaseModel):
    """Outcome of the randomized assignment search."""
    assignment: dict[str, Pairing] = Field(default_factory=dict)
    attempts: int = 0
    complete: bool = False


def can_evaluate(
    evaluator_id: str,
    pairing: Pairing,
    seen_by_evaluator: Mapping[str, Collection[str]]
) -> bool:
    """Whether an evaluator may judge a pairing.

    They must not be part of it and must not have judged either member's
    submission before.
    """
    if evaluator_id in pairing:
        return False
    seen = seen_by_evaluator.get(evaluator_id, ())
    return pairing.first not in seen and pairing.second not in seen


def greedy_assignment(
    evaluators: Sequence[str],
    pairings: Sequence[Pairing],
    seen_by_evaluator: Mapping[str, Collection[str]]
) -> dict[str, Pairing]:
    """Walk evaluators in order, giving each the first free pair they may judge."""
    assignment: dict[str, Pairing] = {}
    taken: set[Pairing] = set()

    for evaluator in evaluators:
        for pairing in pairings:
            if pairing in taken:
                continue
            if can_evaluate(evaluator, pairing, seen_by_evaluator):
                assignment[evaluator] = pairing
                taken.add(pairing)
                break

    return assignment


def assign_evaluators(
    participant_ids: Sequence[str],
    pairings: Sequence[Pairing],
    scores: Mapping[str, int],
    seen_by_evaluator: Mapping[str, Collection[str]],
    rng: random.Random,
    max_attempts: int = 1000
) -> AssignmentResult:
    """Search for an assignment that covers every participant.

    Each attempt shuffles the participants and re-sorts them by ascending
    score, so lower-scored participants pick first, then assigns greedily.
    Only an attempt that gives every participant a pair is accepted. If none
    does within `max_attempts`, the last partial attempt is returned with
    `complete=False`.

    Args:
        participant_ids: Everyone who must evaluate this round
        pairings: This round's pairings
        scores: Current win counts
        seen_by_evaluator: Participants each evaluator has already judged
        rng: Source of tie-breaking randomness
        max_attempts: Retry budget

    Returns:
        AssignmentResult with the accepted (or last partial) assignment
    """
    if not pairings or not participant_ids:
        return AssignmentResult()

    assignment: dict[str, Pairing] = {}
    for attempt in range(1, max_attempts + 1):
        evaluators = order_by_score(participant_ids, dict(scores), rng, descending=False)
        assignment = greedy_assignment(evaluators, pairings, seen_by_evaluator)
        if len(assignment) == len(participant_ids):
            return AssignmentResult(assignment=assignment, attempts=attempt, complete=True)

    return AssignmentResult(assignment=assignment, attempts=max_attempts, complete=False)
