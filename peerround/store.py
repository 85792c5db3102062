"""Evaluation stores: where participants, outcomes and assignments live.

The round engine only depends on the `EvaluationStore` protocol. Two
implementations ship with the package:

- `InMemoryEvaluationStore` for tests and simulations
- `JsonEvaluationStore`, which keeps one directory per activity:

    data/
    └── <activity_id>/
        ├── activity.json
        ├── participants.json
        ├── evaluations.json
        └── rounds/
            └── round_<n>.json
"""

import asyncio
import json
import re
import shutil
import uuid
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol

from pydantic import TypeAdapter

from peerround.exceptions import (
    ActivityNotFoundError,
    InvalidActivityIdError,
    InvalidEvaluationError,
)
from peerround.logging import get_logger
from peerround.models import Activity, ActivityPhase, EvaluationOutcome, Participant

if TYPE_CHECKING:
    from peerround.round_engine.models import RoundResult

log = get_logger(__name__)

_participants_adapter = TypeAdapter(list[Participant])
_evaluations_adapter = TypeAdapter(list[EvaluationOutcome])


class EvaluationStore(Protocol):
    """Read/write contract between the round engine and durable storage."""

    async def list_participants(self, activity_id: str) -> list[Participant]:
        """Return the current participants of an activity.

        Raises:
            ActivityNotFoundError: If the activity does not exist
        """
        ...

    async def list_evaluations(self, activity_id: str) -> list[EvaluationOutcome]:
        """Return every evaluation outcome recorded for an activity.

        Raises:
            ActivityNotFoundError: If the activity does not exist
        """
        ...

    async def save_assignment(self, activity_id: str, result: "RoundResult") -> None:
        """Persist a round's assignment so participants can see their pair."""
        ...


def _check_outcome(participants: list[Participant], outcome: EvaluationOutcome) -> None:
    known = {p.participant_id for p in participants}
    unknown = [
        pid for pid in (outcome.evaluator_id, outcome.left_id, outcome.right_id)
        if pid not in known
    ]
    if unknown:
        raise InvalidEvaluationError(
            f"Evaluation references unknown participant(s): {', '.join(unknown)}",
            details={"unknown": unknown},
        )


class InMemoryEvaluationStore:
    """Evaluation store held entirely in memory."""

    def __init__(self) -> None:
        self._activities: dict[str, Activity] = {}
        self._participants: dict[str, list[Participant]] = {}
        self._evaluations: dict[str, list[EvaluationOutcome]] = {}
        self._assignments: dict[str, dict[int, dict[str, list[str]]]] = {}

    def _require(self, activity_id: str) -> Activity:
        activity = self._activities.get(activity_id)
        if activity is None:
            raise ActivityNotFoundError(activity_id)
        return activity

    async def create_activity(self, name: str = "", activity_id: str | None = None) -> Activity:
        activity = Activity(activity_id=activity_id or uuid.uuid4().hex, name=name)
        self._activities[activity.activity_id] = activity
        self._participants[activity.activity_id] = []
        self._evaluations[activity.activity_id] = []
        self._assignments[activity.activity_id] = {}
        return activity

    async def get_activity(self, activity_id: str) -> Activity:
        return self._require(activity_id)

    async def set_phase(self, activity_id: str, phase: ActivityPhase) -> Activity:
        activity = self._require(activity_id)
        activity.phase = phase
        return activity

    async def delete_activity(self, activity_id: str) -> None:
        self._require(activity_id)
        for bucket in (self._activities, self._participants, self._evaluations, self._assignments):
            bucket.pop(activity_id, None)

    async def add_participant(self, activity_id: str, participant: Participant) -> None:
        self._require(activity_id)
        participants = self._participants[activity_id]
        # Resubmitting replaces the earlier entry
        participants[:] = [p for p in participants if p.participant_id != participant.participant_id]
        participants.append(participant)

    async def record_evaluation(self, activity_id: str, outcome: EvaluationOutcome) -> None:
        self._require(activity_id)
        _check_outcome(self._participants[activity_id], outcome)
        self._evaluations[activity_id].append(outcome)

    async def list_participants(self, activity_id: str) -> list[Participant]:
        self._require(activity_id)
        return list(self._participants[activity_id])

    async def list_evaluations(self, activity_id: str) -> list[EvaluationOutcome]:
        self._require(activity_id)
        return list(self._evaluations[activity_id])

    async def save_assignment(self, activity_id: str, result: "RoundResult") -> None:
        activity = self._require(activity_id)
        self._assignments[activity_id][result.round_number] = result.assignment_as_lists()
        activity.current_round = result.round_number
        activity.phase = ActivityPhase.EVALUATE

    async def get_assignment(
        self,
        activity_id: str,
        round_number: int | None = None
    ) -> dict[str, list[str]]:
        """Return a persisted assignment (the current round's by default)."""
        activity = self._require(activity_id)
        round_number = round_number or activity.current_round
        return dict(self._assignments[activity_id].get(round_number, {}))


def _read_json(path: Path, default: Any) -> Any:
    if not path.exists():
        return default
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def _write_json(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)


class JsonEvaluationStore:
    """Evaluation store that keeps each activity in its own directory of JSON files.

    File access runs in worker threads via `asyncio.to_thread`, so the event
    loop is not blocked. Read-modify-write updates are serialised by a lock
    held by this instance; two instances sharing one directory are not
    coordinated.
    """

    def __init__(self, base_dir: Path | str = "data"):
        """Initialize the store.

        Args:
            base_dir: Base directory for activity data (default: "data")
        """
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self._lock = asyncio.Lock()

    def _activity_dir(self, activity_id: str) -> Path:
        # Activity ids become directory names
        if not re.fullmatch(r"[\w-]+", activity_id):
            raise InvalidActivityIdError(activity_id)
        return self.base_dir / activity_id

    async def _require_dir(self, activity_id: str) -> Path:
        activity_dir = self._activity_dir(activity_id)
        if not await asyncio.to_thread((activity_dir / "activity.json").exists):
            raise ActivityNotFoundError(activity_id)
        return activity_dir

    async def _read(self, path: Path, default: Any) -> Any:
        return await asyncio.to_thread(_read_json, path, default)

    async def _write(self, path: Path, data: Any) -> None:
        await asyncio.to_thread(_write_json, path, data)

    async def _load_activity(self, activity_id: str) -> Activity:
        activity_dir = await self._require_dir(activity_id)
        return Activity.model_validate(await self._read(activity_dir / "activity.json", {}))

    async def _save_activity(self, activity: Activity) -> None:
        data = activity.model_dump(mode="json")
        data["last_updated"] = datetime.now().isoformat()
        await self._write(self._activity_dir(activity.activity_id) / "activity.json", data)

    async def create_activity(self, name: str = "", activity_id: str | None = None) -> Activity:
        activity = Activity(activity_id=activity_id or uuid.uuid4().hex, name=name)
        activity_dir = self._activity_dir(activity.activity_id)
        async with self._lock:
            await self._save_activity(activity)
            await self._write(activity_dir / "participants.json", [])
            await self._write(activity_dir / "evaluations.json", [])
        log.debug("activity_created", activity_id=activity.activity_id, path=str(activity_dir))
        return activity

    async def get_activity(self, activity_id: str) -> Activity:
        return await self._load_activity(activity_id)

    async def set_phase(self, activity_id: str, phase: ActivityPhase) -> Activity:
        async with self._lock:
            activity = await self._load_activity(activity_id)
            activity.phase = phase
            await self._save_activity(activity)
        return activity

    async def delete_activity(self, activity_id: str) -> None:
        async with self._lock:
            activity_dir = await self._require_dir(activity_id)
            await asyncio.to_thread(shutil.rmtree, activity_dir)
        log.debug("activity_deleted", activity_id=activity_id)

    async def add_participant(self, activity_id: str, participant: Participant) -> None:
        async with self._lock:
            participants = await self.list_participants(activity_id)
            participants = [p for p in participants if p.participant_id != participant.participant_id]
            participants.append(participant)
            await self._write(
                self._activity_dir(activity_id) / "participants.json",
                _participants_adapter.dump_python(participants, mode="json"),
            )

    async def record_evaluation(self, activity_id: str, outcome: EvaluationOutcome) -> None:
        async with self._lock:
            _check_outcome(await self.list_participants(activity_id), outcome)
            evaluations = await self.list_evaluations(activity_id)
            evaluations.append(outcome)
            await self._write(
                self._activity_dir(activity_id) / "evaluations.json",
                _evaluations_adapter.dump_python(evaluations, mode="json"),
            )

    async def list_participants(self, activity_id: str) -> list[Participant]:
        activity_dir = await self._require_dir(activity_id)
        return _participants_adapter.validate_python(
            await self._read(activity_dir / "participants.json", [])
        )

    async def list_evaluations(self, activity_id: str) -> list[EvaluationOutcome]:
        activity_dir = await self._require_dir(activity_id)
        return _evaluations_adapter.validate_python(
            await self._read(activity_dir / "evaluations.json", [])
        )

    async def save_assignment(self, activity_id: str, result: "RoundResult") -> None:
        async with self._lock:
            activity = await self._load_activity(activity_id)
            await self._write(
                self._activity_dir(activity_id) / "rounds" / f"round_{result.round_number}.json",
                {
                    "round_number": result.round_number,
                    "assignment": result.assignment_as_lists(),
                    "warnings": [w.value for w in result.warnings],
                    "created_at": datetime.now().isoformat(),
                },
            )
            activity.current_round = result.round_number
            activity.phase = ActivityPhase.EVALUATE
            await self._save_activity(activity)

    async def get_assignment(
        self,
        activity_id: str,
        round_number: int | None = None
    ) -> dict[str, list[str]]:
        """Return a persisted assignment (the current round's by default)."""
        activity = await self._load_activity(activity_id)
        round_number = round_number or activity.current_round
        path = self._activity_dir(activity_id) / "rounds" / f"round_{round_number}.json"
        return (await self._read(path, {})).get("assignment", {})
