"""Unit tests for score calculations."""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from peerround.models import EvaluationOutcome
from peerround.round_engine.scoring import compute_scores, seen_papers_from_outcomes

pytestmark = pytest.mark.unit

PARTICIPANTS = ["a", "b", "c", "d"]


def outcome(evaluator: str, left: str, right: str, winner: str) -> EvaluationOutcome:
    return EvaluationOutcome(evaluator_id=evaluator, left_id=left, right_id=right, winner_id=winner)


class TestComputeScores:
    """Tests for compute_scores."""

    def test_no_history_gives_zero(self):
        assert compute_scores(PARTICIPANTS, []) == {"a": 0, "b": 0, "c": 0, "d": 0}

    def test_counts_wins(self):
        outcomes = [
            outcome("c", "a", "b", "a"),
            outcome("d", "a", "c", "a"),
            outcome("a", "b", "c", "c"),
        ]
        assert compute_scores(PARTICIPANTS, outcomes) == {"a": 2, "b": 0, "c": 1, "d": 0}

    def test_ignores_winners_who_left(self):
        """Wins by someone no longer participating are dropped."""
        outcomes = [outcome("a", "b", "gone", "gone")]
        assert compute_scores(PARTICIPANTS, outcomes) == {"a": 0, "b": 0, "c": 0, "d": 0}

    def test_recomputing_is_idempotent(self):
        """Calling twice with no new outcomes gives identical scores."""
        outcomes = [outcome("c", "a", "b", "b"), outcome("d", "b", "c", "b")]
        first = compute_scores(PARTICIPANTS, outcomes)
        second = compute_scores(PARTICIPANTS, outcomes)
        assert first == second

    @given(winners=st.lists(st.sampled_from(PARTICIPANTS), max_size=40))
    @settings(max_examples=100)
    def test_total_score_equals_outcome_count(self, winners):
        """Property test: every outcome awards exactly one point."""
        outcomes = [
            outcome("z", w, "b" if w != "b" else "a", w) for w in winners
        ]
        scores = compute_scores(PARTICIPANTS, outcomes)
        assert sum(scores.values()) == len(winners)
        assert all(score >= 0 for score in scores.values())


class TestSeenPapersFromOutcomes:
    """Tests for seen_papers_from_outcomes."""

    def test_collects_both_compared_participants(self):
        outcomes = [outcome("c", "a", "b", "a"), outcome("c", "d", "e", "e")]
        assert seen_papers_from_outcomes(outcomes) == {"c": {"a", "b", "d", "e"}}

    def test_empty_history(self):
        assert seen_papers_from_outcomes([]) == {}
