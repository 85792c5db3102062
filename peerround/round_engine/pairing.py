"""Pairing strategies that turn clusters into head-to-head comparisons."""

import random
from collections.abc import Collection
from typing import Protocol

from pydantic import BaseModel, Field

from peerround.logging import get_logger
from peerround.round_engine.models import Cluster, Pairing

log = get_logger(__name__)


class PairingStrategy(Protocol):
    """Protocol for pairing strategies."""

    def pairs_for(
        self,
        cluster: Cluster,
        pairing_history: Collection[Pairing],
        rng: random.Random
    ) -> tuple[list[Pairing], bool]:
        """Derive the comparisons for one cluster.

        Args:
            cluster: Members of the cluster
            pairing_history: Pairings emitted in earlier rounds
            rng: Source of randomness for reshuffles

        Returns:
            (pairings, clean) where clean is False if a pairing repeats history
        """
        ...


class TriadPairing:
    """Round-robin inside a triad: every member meets the other two once."""

    def pairs_for(
        self,
        cluster: Cluster,
        pairing_history: Collection[Pairing],
        rng: random.Random
    ) -> tuple[list[Pairing], bool]:
        a, b, c = cluster
        pairs = [Pairing.of(a, b), Pairing.of(a, c), Pairing.of(b, c)]
        # Clustering already guarantees these are new
        return pairs, not any(p in pairing_history for p in pairs)


class CyclicPairing:
    """Ring pairing for oversized clusters: member i meets member i + 1.

    The ring is reshuffled until none of its pairings was seen before, up
    to `max_attempts` times. When the budget runs out the last ring is used
    anyway and reported as not clean.
    """

    def __init__(self, max_attempts: int = 1000):
        self.max_attempts = max_attempts

    def pairs_for(
        self,
        cluster: Cluster,
        pairing_history: Collection[Pairing],
        rng: random.Random
    ) -> tuple[list[Pairing], bool]:
        members = list(cluster)
        pairs: list[Pairing] = []

        for _ in range(self.max_attempts):
            rng.shuffle(members)
            pairs = [
                Pairing.of(members[i], members[(i + 1) % len(members)])
                for i in range(len(members))
            ]
            if not any(p in pairing_history for p in pairs):
                return pairs, True

        return pairs, False


class PairingResult(BaseModel):
    """All comparisons derived for a round."""
    pairings: list[Pairing] = Field(default_factory=list)
    # Oversized clusters whose ring repeats an earlier pairing
    unresolved: list[Cluster] = Field(default_factory=list)


def derive_pairings(
    clusters: list[Cluster],
    pairing_history: Collection[Pairing],
    rng: random.Random,
    max_attempts: int = 1000
) -> PairingResult:
    """Derive this round's pairings from its clusters.

    Triads emit their three pairs; larger clusters emit a ring. Clusters
    with fewer than three members cannot occur after clustering and are
    skipped.
    """
    triad = TriadPairing()
    ring = CyclicPairing(max_attempts=max_attempts)
    result = PairingResult()

    for cluster in clusters:
        if len(cluster) < 3:
            continue
        strategy: PairingStrategy = triad if len(cluster) == 3 else ring
        pairs, clean = strategy.pairs_for(cluster, pairing_history, rng)
        result.pairings.extend(pairs)
        if not clean:
            log.warning(
                "pairing_conflict_unresolved",
                cluster_size=len(cluster),
                attempts=max_attempts,
            )
            result.unresolved.append(cluster)

    return result
