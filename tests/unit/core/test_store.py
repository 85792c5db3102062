"""Unit tests for the evaluation stores."""

import asyncio
import json

import pytest
from pydantic import ValidationError

from peerround.exceptions import (
    ActivityNotFoundError,
    InvalidActivityIdError,
    InvalidEvaluationError,
)
from peerround.models import ActivityPhase, EvaluationOutcome, Participant
from peerround.round_engine.models import Pairing, RoundResult, RoundWarning
from peerround.store import InMemoryEvaluationStore, JsonEvaluationStore

pytestmark = pytest.mark.unit


@pytest.fixture(params=["memory", "json"])
def store(request, tmp_path):
    if request.param == "memory":
        return InMemoryEvaluationStore()
    return JsonEvaluationStore(tmp_path / "data")


def make_result(activity_id: str, round_number: int = 1) -> RoundResult:
    return RoundResult(
        activity_id=activity_id,
        round_number=round_number,
        participant_ids=["a", "b", "c"],
        scores={"a": 0, "b": 0, "c": 0},
        assignment={"a": Pairing.of("b", "c"), "b": Pairing.of("a", "c")},
        warnings=[RoundWarning.ASSIGNMENT_INCOMPLETE],
    )


async def seeded(store, activity_id: str = "act1"):
    await store.create_activity(name="Essay", activity_id=activity_id)
    for pid in ("a", "b", "c"):
        await store.add_participant(activity_id, Participant(participant_id=pid, name=pid.upper()))
    return store


class TestEvaluationStores:
    """Behaviour shared by every store implementation."""

    async def test_create_activity(self, store):
        activity = await store.create_activity(name="Essay")
        assert activity.activity_id
        assert activity.phase == ActivityPhase.SUBMIT
        assert await store.list_participants(activity.activity_id) == []
        assert await store.list_evaluations(activity.activity_id) == []

    async def test_unknown_activity(self, store):
        with pytest.raises(ActivityNotFoundError):
            await store.list_participants("nope")
        with pytest.raises(ActivityNotFoundError):
            await store.list_evaluations("nope")

    async def test_participants(self, store):
        await seeded(store)
        participants = await store.list_participants("act1")
        assert [p.participant_id for p in participants] == ["a", "b", "c"]

    async def test_resubmission_replaces_participant(self, store):
        await seeded(store)
        await store.add_participant("act1", Participant(participant_id="a", name="Again"))

        participants = await store.list_participants("act1")

        assert len(participants) == 3
        assert [p.name for p in participants if p.participant_id == "a"] == ["Again"]

    async def test_record_evaluation(self, store):
        await seeded(store)
        outcome = EvaluationOutcome(
            evaluator_id="a", left_id="b", right_id="c", winner_id="c", round_number=1
        )

        await store.record_evaluation("act1", outcome)

        assert await store.list_evaluations("act1") == [outcome]

    async def test_rejects_unknown_participants(self, store):
        await seeded(store)
        outcome = EvaluationOutcome(evaluator_id="x", left_id="b", right_id="c", winner_id="b")

        with pytest.raises(InvalidEvaluationError) as exc_info:
            await store.record_evaluation("act1", outcome)

        assert exc_info.value.details == {"unknown": ["x"]}

    async def test_save_and_get_assignment(self, store):
        await seeded(store)

        await store.save_assignment("act1", make_result("act1"))

        assert await store.get_assignment("act1") == {"a": ["b", "c"], "b": ["a", "c"]}
        activity = await store.get_activity("act1")
        assert activity.current_round == 1
        assert activity.phase == ActivityPhase.EVALUATE

    async def test_get_earlier_round(self, store):
        await seeded(store)
        await store.save_assignment("act1", make_result("act1", 1))
        await store.save_assignment("act1", make_result("act1", 2))

        assert await store.get_assignment("act1", round_number=1) == {"a": ["b", "c"], "b": ["a", "c"]}
        assert await store.get_assignment("act1", round_number=5) == {}

    async def test_set_phase(self, store):
        await seeded(store)
        activity = await store.set_phase("act1", ActivityPhase.FINAL)
        assert activity.phase == ActivityPhase.FINAL
        assert (await store.get_activity("act1")).phase == ActivityPhase.FINAL

    async def test_delete_activity(self, store):
        await seeded(store)
        await store.save_assignment("act1", make_result("act1"))

        await store.delete_activity("act1")

        with pytest.raises(ActivityNotFoundError):
            await store.list_participants("act1")


class TestJsonEvaluationStore:
    """Tests specific to the JSON store."""

    async def test_data_survives_new_instance(self, tmp_path):
        first = await seeded(JsonEvaluationStore(tmp_path))
        await first.record_evaluation("act1", EvaluationOutcome(
            evaluator_id="a", left_id="b", right_id="c", winner_id="b"
        ))

        second = JsonEvaluationStore(tmp_path)

        assert len(await second.list_participants("act1")) == 3
        assert (await second.list_evaluations("act1"))[0].winner_id == "b"

    async def test_round_file_layout(self, tmp_path):
        store = await seeded(JsonEvaluationStore(tmp_path))

        await store.save_assignment("act1", make_result("act1"))

        path = tmp_path / "act1" / "rounds" / "round_1.json"
        payload = json.loads(path.read_text(encoding="utf-8"))
        assert payload["round_number"] == 1
        assert payload["warnings"] == ["assignment_incomplete"]

    async def test_rejects_path_like_ids(self, tmp_path):
        store = JsonEvaluationStore(tmp_path)
        with pytest.raises(InvalidActivityIdError):
            await store.list_participants("../elsewhere")

    async def test_create_with_path_like_id(self, tmp_path):
        store = JsonEvaluationStore(tmp_path / "data")

        with pytest.raises(InvalidActivityIdError, match="Invalid activity id"):
            await store.create_activity(activity_id="../x")

        assert not (tmp_path / "x").exists()
        assert list((tmp_path / "data").iterdir()) == []

    async def test_delete_removes_directory(self, tmp_path):
        store = await seeded(JsonEvaluationStore(tmp_path))
        await store.save_assignment("act1", make_result("act1"))

        await store.delete_activity("act1")

        assert not (tmp_path / "act1").exists()

    async def test_concurrent_updates_are_kept(self, tmp_path):
        store = JsonEvaluationStore(tmp_path)
        await store.create_activity(activity_id="act1")

        await asyncio.gather(*(
            store.add_participant("act1", Participant(participant_id=f"p{i}"))
            for i in range(10)
        ))

        participants = await store.list_participants("act1")
        assert sorted(p.participant_id for p in participants) == sorted(f"p{i}" for i in range(10))

    async def test_corrupt_evaluation_fails_validation(self, tmp_path):
        store = await seeded(JsonEvaluationStore(tmp_path))
        bad = [{"evaluator_id": "a", "left_id": "b", "right_id": "c", "winner_id": "a"}]
        (tmp_path / "act1" / "evaluations.json").write_text(json.dumps(bad), encoding="utf-8")

        with pytest.raises(ValidationError):
            await store.list_evaluations("act1")
