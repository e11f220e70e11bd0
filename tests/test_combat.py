"""Combat resolution: strengths, success chance, casualties."""

from __future__ import annotations

import random

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from raid_sim.domain.types import Leader
from raid_sim.systems.combat import (
    defender_strength,
    raid_casualty_counts,
    raider_strength,
    resolve_combat,
    roll_jitter,
    split_casualties,
    strength_ratio,
    success_chance,
)
from tests.helpers.factories import make_raid, make_snapshot, rules
from tests.helpers.strategies import snapshot_strategy


def test_success_chance_worked_example():
    config = rules().combat

    assert success_chance(2.0, 50, None, 0.0, config) == pytest.approx(80.0)


def test_success_chance_modifiers():
    config = rules().combat

    assert success_chance(1.0, 50, None, 0.0, config) == pytest.approx(50.0)
    assert success_chance(0.5, 50, None, 0.0, config) == pytest.approx(30.0)
    assert success_chance(1.0, 70, None, 0.0, config) == pytest.approx(60.0)
    assert success_chance(1.0, 50, Leader("Ivar", combat=10), 0.0, config) == pytest.approx(53.0)
    assert success_chance(1.0, 50, None, 0.5, config) == pytest.approx(45.0)
    assert success_chance(1.0, 50, None, 0.0, config, jitter=-12.5) == pytest.approx(37.5)


def test_success_chance_clamped():
    config = rules().combat

    assert success_chance(50.0, 100, Leader("Ragnar", combat=100), 0.0, config, jitter=40) == 95.0
    assert success_chance(0.0, 0, None, 1.0, config, jitter=-40) == 5.0


@settings(max_examples=200, deadline=None)
@given(
    ratio=st.floats(min_value=0.0, max_value=100.0),
    morale=st.integers(min_value=0, max_value=100),
    fortification=st.floats(min_value=0.0, max_value=1.0),
    combat_skill=st.integers(min_value=0, max_value=50),
    seed=st.integers(min_value=0, max_value=2**32),
)
def test_success_chance_always_within_bounds(ratio, morale, fortification, combat_skill, seed):
    config = rules().combat
    jitter = roll_jitter(random.Random(seed), config)

    chance = success_chance(ratio, morale, Leader("Halfdan", combat=combat_skill), fortification, config, jitter)

    assert config.min_success_chance <= chance <= config.max_success_chance
    assert abs(jitter) <= config.randomness_factor * 100


def test_raider_strength_applies_modifiers():
    config = rules().combat
    standard = rules().raid_class("standard_raid")
    sea = rules().raid_class("sea_raid")

    assert raider_strength(make_raid(size=100), standard, config) == pytest.approx(100.0)
    assert raider_strength(make_raid(size=100, morale=50), standard, config) == pytest.approx(50.0)
    led = make_raid(size=100, leader=Leader("Bjorn", combat=5))
    assert raider_strength(led, standard, config) == pytest.approx(150.0)
    # Ships only count for classes that sail.
    assert raider_strength(make_raid(size=40, ships=2), standard, config) == pytest.approx(40.0)
    shipborne = make_raid(size=40, ships=2, raid_class_id="sea_raid")
    assert raider_strength(shipborne, sea, config) == pytest.approx(40 * 1.2 * 1.1)


def test_defender_strength_components():
    config = rules().combat

    garrison = make_snapshot(warriors=20, defenses=3, ships=4, coastal=False, population=500)
    assert defender_strength(garrison, config) == pytest.approx(26.0)

    harbour = make_snapshot(warriors=20, defenses=3, ships=4, coastal=True, population=500)
    assert defender_strength(harbour, config) == pytest.approx(32.0)

    # Thin garrisons call up the townsfolk.
    levy = make_snapshot(warriors=2, defenses=0, population=300)
    assert defender_strength(levy, config) == pytest.approx(32.0)


def test_strength_ratio_guards_tiny_defenders():
    config = rules().combat

    assert strength_ratio(50.0, 0.0, config) == pytest.approx(50.0)
    assert strength_ratio(50.0, 25.0, config) == pytest.approx(2.0)


def test_split_casualties_favours_sturdy_units():
    losses = split_casualties(5, {"berserker": 10, "huscarl": 10}, rules().unit_types)

    assert losses == {"berserker": 3, "huscarl": 2}


def test_split_casualties_edge_cases():
    unit_types = rules().unit_types

    assert split_casualties(0, {"viking_warrior": 10}, unit_types) == {"viking_warrior": 0}
    assert split_casualties(4, {}, unit_types) == {}
    assert split_casualties(7, {"viking_warrior": 7}, unit_types) == {"viking_warrior": 7}
    assert split_casualties(3, {"mystery": 3, "huscarl": 0}, unit_types) == {"mystery": 3, "huscarl": 0}


@settings(max_examples=200, deadline=None)
@given(
    total=st.integers(min_value=0, max_value=120),
    warriors=st.integers(min_value=0, max_value=60),
    berserkers=st.integers(min_value=0, max_value=60),
    huscarls=st.integers(min_value=0, max_value=60),
)
def test_split_casualties_sums_and_caps(total, warriors, berserkers, huscarls):
    units = {"viking_warrior": warriors, "berserker": berserkers, "huscarl": huscarls}

    losses = split_casualties(total, units, rules().unit_types)

    assert sum(losses.values()) == min(total, sum(units.values()))
    for unit_id, count in units.items():
        assert 0 <= losses[unit_id] <= count


@settings(max_examples=150, deadline=None)
@given(
    target=snapshot_strategy(),
    size=st.integers(min_value=15, max_value=1000),
    ratio=st.floats(min_value=0.0, max_value=20.0),
    success=st.booleans(),
    raid_class_id=st.sampled_from(["quick_raid", "standard_raid", "great_raid", "sea_raid"]),
)
def test_casualty_counts_bounded(target, size, ratio, success, raid_class_id):
    raid_class = rules().raid_class(raid_class_id)
    raid = make_raid(size=size, raid_class_id=raid_class_id, target=target)

    raiders, defenders = raid_casualty_counts(raid, target, raid_class, ratio, success, rules().combat)

    assert 0 <= raiders <= size - 1
    assert 0 <= defenders <= target.warriors


@settings(max_examples=100, deadline=None)
@given(target=snapshot_strategy(), seed=st.integers(min_value=0, max_value=2**32))
def test_resolve_combat_invariants(target, seed):
    raid_class = rules().raid_class("standard_raid")
    raid = make_raid(size=120, units={"viking_warrior": 60, "berserker": 40, "huscarl": 20}, target=target)

    result = resolve_combat(raid, target, raid_class, rules(), random.Random(seed))

    assert 5.0 <= result.success_chance <= 95.0
    assert 0 <= result.raider_casualties < raid.size
    assert sum(result.casualties_by_unit.values()) == result.raider_casualties
    if result.defenses_weakened:
        assert result.success
        assert result.strength_ratio > rules().combat.weakened_ratio


def test_resolve_combat_is_deterministic_for_a_seed():
    raid_class = rules().raid_class("standard_raid")
    target = make_snapshot(warriors=40, defenses=2)
    raid = make_raid(size=80, target=target)

    first = resolve_combat(raid, target, raid_class, rules(), random.Random(42))
    second = resolve_combat(raid, target, raid_class, rules(), random.Random(42))

    assert first == second


def test_overwhelming_raid_usually_wins():
    raid_class = rules().raid_class("great_raid")
    target = make_snapshot(warriors=10, defenses=0)
    raid = make_raid(size=800, raid_class_id="great_raid", target=target)

    wins = sum(resolve_combat(raid, target, raid_class, rules(), random.Random(seed)).success for seed in range(100))

    assert wins >= 80
