"""Multi-round simulation of a peer-review activity.

Creates an activity (in memory unless a store is given) with synthetic
participants, advances the requested number of rounds and records one
evaluation per assignment, where the participant with the lower index
always wins. Useful for checking how the engine behaves over a whole
activity.
"""

import argparse
import asyncio

from pydantic import BaseModel, Field

from peerround.config import load_engine_config
from peerround.display import (
    ConsoleEventHandler,
    console,
    create_assignment_table,
    create_round_panel,
    create_standings_table,
)
from peerround.events import RoundEventHandler
from peerround.logging import configure_logging, get_logger
from peerround.models import ActivityPhase, EvaluationOutcome, Participant
from peerround.rankings import RankingEntry, compute_rankings
from peerround.round_engine import EngineRegistry, Pairing, RoundResult, RoundWarning
from peerround.store import InMemoryEvaluationStore, JsonEvaluationStore

log = get_logger(__name__)


class RoundStats(BaseModel):
    """What happened in one simulated round."""
    round_number: int
    evaluations: int
    unique_evaluators: int
    unique_pairs: int
    # Pairings that were already compared in an earlier round
    repeated_pairs: int
    warnings: list[RoundWarning] = Field(default_factory=list)
    standings: list[RankingEntry] = Field(default_factory=list)


class SimulationReport(BaseModel):
    activity_id: str
    rounds: list[RoundStats] = Field(default_factory=list)
    results: list[RoundResult] = Field(default_factory=list)


def _pick_winner(pairing: Pairing, by_id: dict[str, Participant]) -> str:
    left, right = by_id[pairing.first], by_id[pairing.second]
    return left.participant_id if (left.index or 0) < (right.index or 0) else right.participant_id


async def run_simulation(
    n_participants: int = 10,
    n_rounds: int = 5,
    seed: int | None = None,
    event_handler: RoundEventHandler | None = None,
    store: InMemoryEvaluationStore | JsonEvaluationStore | None = None
) -> SimulationReport:
    """Simulate an activity from submission to final standings.

    Args:
        n_participants: Number of synthetic participants
        n_rounds: Number of rounds to advance
        seed: Seed for the engine's tie-breaking (overrides PEERROUND_SEED)
        event_handler: Optional observer passed to the engine
        store: Store to run against (a fresh in-memory store if None)

    Returns:
        SimulationReport with per-round statistics and raw results
    """
    store = store or InMemoryEvaluationStore()
    activity = await store.create_activity(name="Simulation Test")
    activity_id = activity.activity_id

    for i in range(1, n_participants + 1):
        await store.add_participant(activity_id, Participant(
            participant_id=f"student{i}@test.com",
            name=f"Student {i}",
            index=i,
        ))
    participants = await store.list_participants(activity_id)
    by_id = {p.participant_id: p for p in participants}

    await store.set_phase(activity_id, ActivityPhase.EVALUATE)
    config = load_engine_config()
    if seed is not None:
        config.seed = seed
    registry = EngineRegistry(store, config=config, event_handler=event_handler)

    report = SimulationReport(activity_id=activity_id)
    compared_before: set[Pairing] = set()

    for _ in range(n_rounds):
        result = await registry.advance_round(activity_id)
        await store.save_assignment(activity_id, result)

        for evaluator, pairing in result.assignment.items():
            await store.record_evaluation(activity_id, EvaluationOutcome(
                evaluator_id=evaluator,
                left_id=pairing.first,
                right_id=pairing.second,
                winner_id=_pick_winner(pairing, by_id),
                round_number=result.round_number,
            ))

        assigned_pairs = set(result.assignment.values())
        stats = RoundStats(
            round_number=result.round_number,
            evaluations=len(result.assignment),
            unique_evaluators=len(set(result.assignment)),
            unique_pairs=len(assigned_pairs),
            repeated_pairs=sum(1 for p in result.pairings if p in compared_before),
            warnings=result.warnings,
            standings=compute_rankings(participants, await store.list_evaluations(activity_id)),
        )
        compared_before.update(result.pairings)
        report.rounds.append(stats)
        report.results.append(result)
        log.info(
            "simulated_round",
            round_number=stats.round_number,
            evaluations=stats.evaluations,
            repeated_pairs=stats.repeated_pairs,
        )

    await store.set_phase(activity_id, ActivityPhase.FINAL)
    return report


def main(argv: list[str] | None = None) -> int:
    """Command line entry point: run a simulation and print each round."""
    parser = argparse.ArgumentParser(description="Simulate a multi-round peer-review activity")
    parser.add_argument("--participants", type=int, default=10, help="number of participants")
    parser.add_argument("--rounds", type=int, default=5, help="number of rounds")
    parser.add_argument("--seed", type=int, default=None, help="seed for tie-breaking")
    parser.add_argument("--data-dir", default=None, help="keep the activity as JSON files here")
    parser.add_argument("--log-level", default=None, help="log level (default: $PEERROUND_LOG_LEVEL or INFO)")
    args = parser.parse_args(argv)

    configure_logging(cli_mode=True, log_level=args.log_level)

    report = asyncio.run(run_simulation(
        n_participants=args.participants,
        n_rounds=args.rounds,
        seed=args.seed,
        event_handler=ConsoleEventHandler(),
        store=JsonEvaluationStore(args.data_dir) if args.data_dir else None,
    ))

    for result, stats in zip(report.results, report.rounds):
        console.print(create_round_panel(result))
        console.print(create_assignment_table(result))
        if stats.repeated_pairs:
            console.print(f"[yellow]{stats.repeated_pairs} repeated pairing(s)[/yellow]")

    if report.rounds:
        console.print(create_standings_table(report.rounds[-1].standings, title="Final standings"))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
