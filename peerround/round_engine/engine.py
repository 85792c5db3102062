"""Round engine: per-activity state plus the advance-round pipeline."""

import random

from structlog.contextvars import bound_contextvars

from peerround.events import NullEventHandler, RoundEventHandler
from peerround.exceptions import InsufficientParticipantsError, RoundInProgressError
from peerround.logging import get_logger
from peerround.models import EvaluationOutcome
from peerround.round_engine.assignment import assign_evaluators
from peerround.round_engine.clustering import form_clusters
from peerround.round_engine.models import (
    ActivityState,
    EngineConfig,
    RoundResult,
    RoundWarning,
)
from peerround.round_engine.pairing import derive_pairings
from peerround.round_engine.scoring import compute_scores, seen_papers_from_outcomes
from peerround.store import EvaluationStore

log = get_logger(__name__)


class RoundEngine:
    """Builds evaluation rounds for a single activity.

    Each call to `advance_round` reads the participants and evaluation
    history from the store, then:
    - recomputes scores from scratch
    - groups participants into score-similar triads that avoid repeats
    - derives the round's pairings from the triads
    - gives every participant one pair to judge without conflicts

    The engine owns the activity's history (pairings already compared and
    papers each evaluator has seen). It never writes to the store; the
    caller persists the returned assignment.
    """

    def __init__(
        self,
        activity_id: str,
        store: EvaluationStore,
        config: EngineConfig | None = None,
        event_handler: RoundEventHandler | None = None
    ):
        """Initialize the engine.

        Args:
            activity_id: Activity this engine builds rounds for
            store: Source of participants and evaluation outcomes
            config: Engine configuration (uses defaults if None)
            event_handler: Optional observer for round progress (uses NullEventHandler if None)
        """
        self.activity_id = activity_id
        self.store = store
        self.config = config or EngineConfig()
        self.event_handler = event_handler or NullEventHandler()
        self.rng = random.Random(self.config.seed)
        self.state = ActivityState(activity_id=activity_id)
        self._advancing = False

    async def advance_round(self) -> RoundResult:
        """Build the next round for this activity.

        Returns:
            RoundResult holding the evaluator -> pairing assignment. Degraded
            rounds carry their `warnings` instead of raising.

        Raises:
            ActivityNotFoundError: If the store does not know the activity
            InsufficientParticipantsError: If too few participants exist
            RoundInProgressError: If another advance is still running
        """
        if self._advancing:
            raise RoundInProgressError(self.activity_id)

        self._advancing = True
        try:
            with bound_contextvars(activity_id=self.activity_id):
                participants = await self.store.list_participants(self.activity_id)
                outcomes = await self.store.list_evaluations(self.activity_id)
                participant_ids = list(dict.fromkeys(p.participant_id for p in participants))
                return self.build_round(participant_ids, outcomes)
        finally:
            self._advancing = False

    def build_round(
        self,
        participant_ids: list[str],
        outcomes: list[EvaluationOutcome]
    ) -> RoundResult:
        """Run the synchronous part of a round advance on already-fetched data.

        State is only written back at the end, so an exception part-way
        leaves the activity exactly as it was. Every log line emitted while
        the round is built, including those of the pairing and assignment
        steps, carries the activity id and round number.
        """
        round_number = self.state.rounds_completed + 1
        with bound_contextvars(activity_id=self.activity_id, round_number=round_number):
            return self._run_round(round_number, participant_ids, outcomes)

    def _run_round(
        self,
        round_number: int,
        participant_ids: list[str],
        outcomes: list[EvaluationOutcome]
    ) -> RoundResult:
        if len(participant_ids) < self.config.min_participants:
            raise InsufficientParticipantsError(
                self.activity_id,
                participant_count=len(participant_ids),
                minimum=self.config.min_participants,
            )

        state = self.state
        warnings: list[RoundWarning] = []

        def warn(warning: RoundWarning, message: str, **context) -> None:
            log.warning(warning.value, **context)
            warnings.append(warning)
            self.event_handler.on_warning(warning=warning, message=message, **context)

        log.info("round_started", participants=len(participant_ids), outcomes=len(outcomes))
        self.event_handler.on_round_start(
            activity_id=self.activity_id,
            round_number=round_number,
            participant_count=len(participant_ids),
        )

        scores = compute_scores(participant_ids, outcomes)

        # Work on a copy of the seen-papers history until the round is done
        seen = {pid: set(papers) for pid, papers in state.seen_by_evaluator.items()}
        if self.config.record_outcomes_as_seen:
            for evaluator, papers in seen_papers_from_outcomes(outcomes).items():
                seen.setdefault(evaluator, set()).update(papers)

        clustering = form_clusters(participant_ids, scores, state.pairing_history, self.rng)
        if clustering.degenerate:
            warn(
                RoundWarning.DEGENERATE_CLUSTERING,
                f"No conflict-free cluster could be formed for {len(clustering.stragglers)} participant(s)",
                stragglers=len(clustering.stragglers),
            )
        log.debug(
            "clusters_formed",
            clusters=len(clustering.clusters),
            sizes=[len(c) for c in clustering.clusters],
        )
        self.event_handler.on_clusters_formed(clusters=clustering.clusters)

        pairing_result = derive_pairings(
            clustering.clusters,
            state.pairing_history,
            self.rng,
            max_attempts=self.config.max_pairing_attempts,
        )
        if pairing_result.unresolved:
            warn(
                RoundWarning.PAIRING_CONFLICT_UNRESOLVED,
                "An oversized cluster repeats an earlier pairing",
                clusters=[list(c) for c in pairing_result.unresolved],
            )
        self.event_handler.on_pairings_created(pairings=pairing_result.pairings)

        assignment_result = assign_evaluators(
            participant_ids,
            pairing_result.pairings,
            scores,
            seen,
            self.rng,
            max_attempts=self.config.max_assignment_attempts,
        )
        if assignment_result.complete:
            for evaluator, pairing in assignment_result.assignment.items():
                seen.setdefault(evaluator, set()).update(pairing.members)
        else:
            unassigned = [pid for pid in participant_ids if pid not in assignment_result.assignment]
            warn(
                RoundWarning.ASSIGNMENT_INCOMPLETE,
                f"{len(unassigned)} participant(s) received no pair to judge",
                unassigned=unassigned,
                attempts=assignment_result.attempts,
            )

        result = RoundResult(
            activity_id=self.activity_id,
            round_number=round_number,
            participant_ids=list(participant_ids),
            scores=dict(scores),
            clusters=clustering.clusters,
            pairings=pairing_result.pairings,
            assignment=assignment_result.assignment,
            warnings=warnings,
            assignment_attempts=assignment_result.attempts,
        )
        log.info(
            "round_complete",
            pairings=len(result.pairings),
            assigned=len(result.assignment),
            attempts=result.assignment_attempts,
            warnings=[w.value for w in warnings],
        )
        self.event_handler.on_round_complete(result=result)

        # Commit last, so a failure anywhere above leaves the state untouched
        state.participant_ids = list(participant_ids)
        state.scores = scores
        state.pairing_history = state.pairing_history | set(pairing_result.pairings)
        state.seen_by_evaluator = seen
        state.rounds_completed = round_number
        return result

    def reset(self) -> None:
        """Clear all history so the next advance starts from round 1."""
        self.state.reset()
        log.info("engine_reset", activity_id=self.activity_id)


class EngineRegistry:
    """Keeps one RoundEngine per activity.

    Engines are created on first use and never shared across activities.
    """

    def __init__(
        self,
        store: EvaluationStore,
        config: EngineConfig | None = None,
        event_handler: RoundEventHandler | None = None
    ):
        self.store = store
        self.config = config or EngineConfig()
        self.event_handler = event_handler
        self._engines: dict[str, RoundEngine] = {}

    def __contains__(self, activity_id: object) -> bool:
        return activity_id in self._engines

    def get(self, activity_id: str) -> RoundEngine:
        engine = self._engines.get(activity_id)
        if engine is None:
            engine = RoundEngine(
                activity_id,
                self.store,
                config=self.config,
                event_handler=self.event_handler,
            )
            self._engines[activity_id] = engine
        return engine

    async def advance_round(self, activity_id: str) -> RoundResult:
        """Advance the activity's engine, creating it on first use."""
        return await self.get(activity_id).advance_round()

    def reset(self, activity_id: str) -> None:
        """Clear an activity's history but keep its engine."""
        engine = self._engines.get(activity_id)
        if engine is not None:
            engine.reset()

    def discard(self, activity_id: str) -> None:
        """Drop an activity's engine entirely (activity deleted)."""
        self._engines.pop(activity_id, None)
