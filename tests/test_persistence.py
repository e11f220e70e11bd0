from __future__ import annotations

import json
from dataclasses import replace

import pytest

from raid_sim.domain.actions import RaidOrder
from raid_sim.domain.types import Leader, RaidPhase
from raid_sim.sim.persistence import (
    FORMAT_VERSION,
    PersistenceError,
    engine_to_dict,
    raid_from_dict,
    raid_to_dict,
    restore_engine,
)
from tests.helpers.factories import make_engine, rules
from tests.helpers.invariants import assert_raid_bookkeeping, assert_warrior_ledger


def _campaign_in_progress():
    engine = make_engine(seed=5)
    engine.create_raid(
        RaidOrder(
            raid_class_id="quick_raid",
            target_id="lindisfarne",
            size=30,
            units={"berserker": 10, "viking_warrior": 20},
            leader=Leader("Ubba", combat=6, leadership=3),
        )
    )
    engine.create_raid(RaidOrder(raid_class_id="quick_raid", target_id="kaupang", size=20))
    engine.process_tick(16)
    return engine


def test_saved_engine_is_plain_json():
    engine = _campaign_in_progress()

    data = engine_to_dict(engine)

    assert data["version"] == FORMAT_VERSION
    assert json.loads(json.dumps(data)) == data
    assert data["day"] == 16
    assert data["raid_seq"] == 2


def test_raid_records_survive_a_round_trip():
    engine = _campaign_in_progress()

    for raid in (*engine.active, *engine.history):
        assert raid_from_dict(json.loads(json.dumps(raid_to_dict(raid)))) == raid


def test_finished_raids_keep_their_results():
    engine = _campaign_in_progress()
    assert engine.history

    restored = restore_engine(json.loads(json.dumps(engine_to_dict(engine))), rules(), engine.ports)

    for before, after in zip(engine.history, restored.history):
        assert after.result == before.result
        assert after.combat == before.combat
        assert after.phase_history == before.phase_history


def test_unknown_version_rejected():
    data = engine_to_dict(make_engine())
    data["version"] = FORMAT_VERSION + 1

    with pytest.raises(PersistenceError, match="version"):
        restore_engine(data, rules(), make_engine().ports)


def test_malformed_raid_rejected():
    engine = _campaign_in_progress()
    data = engine_to_dict(engine)
    del data["history"][0]["target"]

    with pytest.raises(PersistenceError, match="Malformed raid"):
        restore_engine(data, rules(), engine.ports)


def test_bad_phase_rejected():
    record = raid_to_dict(_campaign_in_progress().history[0])
    record["phase"] = "feasting"

    with pytest.raises(PersistenceError):
        raid_from_dict(record)


def _without_quick_raids():
    return replace(
        rules(),
        raid_classes={key: value for key, value in rules().raid_classes.items() if key != "quick_raid"},
    )


def _restore_under_retired_class(days_before_save: int):
    engine = make_engine(seed=5)
    starting = engine.ports.population.available
    raid_id = engine.create_raid(RaidOrder(raid_class_id="quick_raid", target_id="lindisfarne", size=20)).raid.id
    engine.process_tick(days_before_save)
    data = json.loads(json.dumps(engine_to_dict(engine)))
    return restore_engine(data, _without_quick_raids(), engine.ports), raid_id, starting


def test_raid_with_retired_class_fails_and_comes_home():
    restored, raid_id, starting = _restore_under_retired_class(2)
    food_at_save = restored.ports.resources.get("food")

    restored.process_tick(200)

    raid = restored.get_raid(raid_id)
    assert raid.phase == RaidPhase.FAILED
    assert raid.phase_history == [RaidPhase.PREPARING, RaidPhase.TRAVELING, RaidPhase.FAILED]
    assert raid.combat is None
    assert "quick_raid" in raid.result.failure_reason
    assert raid.result.fame_awarded == 0
    assert restored.active == []
    assert restored.ports.population.available == starting
    assert restored.ports.resources.get("food") > food_at_save
    assert_raid_bookkeeping(restored)
    assert_warrior_ledger(restored, starting)


def test_retired_class_after_the_fight_keeps_casualties():
    restored, raid_id, starting = _restore_under_retired_class(11)
    assert restored.get_raid(raid_id).phase == RaidPhase.RETURNING

    restored.process_tick(200)

    raid = restored.get_raid(raid_id)
    assert raid.phase == RaidPhase.FAILED
    assert raid.phase_history[-2:] == [RaidPhase.RETURNING, RaidPhase.FAILED]
    assert raid.result.loot.resources.is_empty()
    assert restored.ports.population.fallen == raid.casualties.attacker_total
    assert restored.ports.population.available == starting - raid.casualties.attacker_total
    assert_warrior_ledger(restored, starting)
