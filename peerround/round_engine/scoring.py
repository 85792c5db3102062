"""Pure score calculations from evaluation history."""

from collections.abc import Iterable

from peerround.models import EvaluationOutcome


def compute_scores(
    participant_ids: Iterable[str],
    outcomes: Iterable[EvaluationOutcome]
) -> dict[str, int]:
    """Count head-to-head wins for every participant.

    Scores are rebuilt from the full history on every call, so calling this
    twice with the same outcomes always yields the same mapping.

    Args:
        participant_ids: Current participants (all start at 0)
        outcomes: Every evaluation recorded so far for the activity

    Returns:
        Mapping of participant id to number of wins. Winners that are no
        longer participants are ignored.
    """
    scores = {pid: 0 for pid in participant_ids}
    for outcome in outcomes:
        if outcome.winner_id in scores:
            scores[outcome.winner_id] += 1
    return scores


def seen_papers_from_outcomes(
    outcomes: Iterable[EvaluationOutcome]
) -> dict[str, set[str]]:
    """Collect, per evaluator, the participants whose work they already judged."""
    seen: dict[str, set[str]] = {}
    for outcome in outcomes:
        seen.setdefault(outcome.evaluator_id, set()).update(outcome.compared)
    return seen
