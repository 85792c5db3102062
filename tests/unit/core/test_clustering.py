"""Unit tests for triad clustering."""

import random

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from peerround.round_engine.clustering import form_clusters, order_by_score
from peerround.round_engine.models import Pairing

pytestmark = pytest.mark.unit


def ids(n: int) -> list[str]:
    return [f"p{i:02d}" for i in range(n)]


class TestOrderByScore:
    """Tests for order_by_score."""

    def test_descending(self):
        scores = {"a": 1, "b": 3, "c": 2}
        assert order_by_score(["a", "b", "c"], scores, random.Random(0)) == ["b", "c", "a"]

    def test_ascending(self):
        scores = {"a": 1, "b": 3, "c": 2}
        ordered = order_by_score(["a", "b", "c"], scores, random.Random(0), descending=False)
        assert ordered == ["a", "c", "b"]

    def test_does_not_mutate_input(self):
        participants = ["a", "b", "c"]
        order_by_score(participants, {}, random.Random(0))
        assert participants == ["a", "b", "c"]

    def test_ties_are_shuffled(self):
        """Equal scores come out in different orders for different seeds."""
        participants = ids(8)
        orders = {
            tuple(order_by_score(participants, {}, random.Random(seed)))
            for seed in range(20)
        }
        assert len(orders) > 1


class TestFormClusters:
    """Tests for form_clusters."""

    def test_six_without_history(self):
        result = form_clusters(ids(6), {}, set(), random.Random(1))

        assert len(result.clusters) == 2
        assert all(len(c) == 3 for c in result.clusters)
        assert sorted(pid for c in result.clusters for pid in c) == ids(6)
        assert result.stragglers == []
        assert not result.degenerate

    def test_groups_by_descending_score(self):
        """Distinct scores give deterministic, score-similar triads."""
        scores = {"a": 5, "b": 4, "c": 3, "d": 2, "e": 1, "f": 0}
        result = form_clusters(list("fedcba"), scores, set(), random.Random(3))
        assert result.clusters == [("a", "b", "c"), ("d", "e", "f")]

    def test_skips_pairs_from_history(self):
        """A triad never contains a pair compared in an earlier round."""
        scores = {"a": 5, "b": 4, "c": 3, "d": 2, "e": 1, "f": 0}
        history = {Pairing.of("a", "b")}
        result = form_clusters(list("abcdef"), scores, history, random.Random(3))
        assert result.clusters == [("a", "c", "d"), ("b", "e", "f")]

    def test_stragglers_fold_into_last_cluster(self):
        scores = {"a": 3, "b": 2, "c": 1, "d": 0}
        result = form_clusters(list("abcd"), scores, set(), random.Random(0))
        assert result.clusters == [("a", "b", "c", "d")]
        assert result.stragglers == ["d"]
        assert not result.degenerate

    def test_degenerate_when_no_triad_possible(self):
        """Three participants who already met each other cannot be clustered."""
        history = {Pairing.of("a", "b"), Pairing.of("a", "c"), Pairing.of("b", "c")}
        result = form_clusters(list("abc"), {}, history, random.Random(0))
        assert result.clusters == []
        assert sorted(result.stragglers) == ["a", "b", "c"]
        assert result.degenerate

    def test_two_participants_are_degenerate(self):
        result = form_clusters(["a", "b"], {}, set(), random.Random(0))
        assert result.clusters == []
        assert result.degenerate

    @given(
        groups=st.integers(min_value=1, max_value=10),
        seed=st.integers(min_value=0, max_value=2**32 - 1),
    )
    @settings(max_examples=50)
    def test_multiple_of_three_forms_exact_triads(self, groups, seed):
        """Property test: 3k participants form k triads covering everyone once."""
        participants = ids(3 * groups)
        rng = random.Random(seed)
        scores = {pid: rng.randint(0, 5) for pid in participants}

        result = form_clusters(participants, scores, set(), rng)

        assert len(result.clusters) == groups
        assert all(len(c) == 3 for c in result.clusters)
        members = [pid for c in result.clusters for pid in c]
        assert sorted(members) == sorted(participants)
