"""Grouping participants into score-similar triads."""

import random
from collections.abc import Collection, Sequence

from pydantic import BaseModel, Field

from peerround.round_engine.models import Cluster, Pairing

TRIAD_SIZE = 3


class ClusteringResult(BaseModel):
    """Clusters for one round plus anyone who could not be placed."""
    clusters: list[Cluster] = Field(default_factory=list)
    # Participants left without a conflict-free triad (already folded into
    # the last cluster when one exists)
    stragglers: list[str] = Field(default_factory=list)

    @property
    def degenerate(self) -> bool:
        """Participants exist but no cluster could be formed for them."""
        return not self.clusters and bool(self.stragglers)


def order_by_score(
    participant_ids: Sequence[str],
    scores: dict[str, int],
    rng: random.Random,
    descending: bool = True
) -> list[str]:
    """Shuffle, then stable-sort by score so ties break uniformly at random."""
    ordered = list(participant_ids)
    rng.shuffle(ordered)
    ordered.sort(key=lambda pid: scores.get(pid, 0), reverse=descending)
    return ordered


def form_clusters(
    participant_ids: Sequence[str],
    scores: dict[str, int],
    pairing_history: Collection[Pairing],
    rng: random.Random
) -> ClusteringResult:
    """Group participants into triads of similar score.

    Participants are scanned from highest to lowest score. Each one still
    ungrouped looks forward for two more ungrouped participants such that
    none of the three pairs was compared in an earlier round. Whoever is
    left at the end is folded into the last triad, giving one oversized
    cluster instead of leaving anyone out.

    Args:
        participant_ids: Participants taking part in this round
        scores: Current win counts
        pairing_history: Every pairing emitted in earlier rounds
        rng: Source of tie-breaking randomness

    Returns:
        ClusteringResult; `degenerate` is set when no triad could be formed
    """
    ordered = order_by_score(participant_ids, scores, rng, descending=True)

    def fresh(a: str, b: str) -> bool:
        return Pairing.of(a, b) not in pairing_history

    clusters: list[list[str]] = []
    grouped: set[str] = set()

    for i, first in enumerate(ordered):
        if first in grouped:
            continue

        triad = _find_triad(ordered, i, grouped, fresh)
        if triad:
            clusters.append(list(triad))
            grouped.update(triad)

    stragglers = [pid for pid in ordered if pid not in grouped]
    if stragglers and clusters:
        clusters[-1].extend(stragglers)

    return ClusteringResult(
        clusters=[tuple(cluster) for cluster in clusters],
        stragglers=stragglers,
    )


def _find_triad(ordered, i, grouped, fresh) -> Cluster | None:
    """Search forward from position i for the first conflict-free triad."""
    first = ordered[i]
    for j in range(i + 1, len(ordered)):
        second = ordered[j]
        if second in grouped or not fresh(first, second):
            continue
        for k in range(j + 1, len(ordered)):
            third = ordered[k]
            if third in grouped:
                continue
            if fresh(first, third) and fresh(second, third):
                return (first, second, third)
    return None
