from __future__ import annotations

from dataclasses import replace

import pytest

from raid_sim.domain.raid import Casualties, LootBundle, SpecialItem
from raid_sim.domain.types import Faction, Resources, SettlementSnapshot, SettlementType
from raid_sim.sim.stores import ResourceStockpile
from raid_sim.systems.consequences import (
    RaidOutcome,
    apply_consequences,
    compute_diplomacy,
    compute_fame,
    loot_value,
    player_faction_of,
)
from tests.helpers.factories import (
    PLAYER_FACTION,
    make_combat,
    make_engine_with,
    make_raid,
    make_settlement,
    make_snapshot,
    rules,
)

FACTIONS = (
    Faction(id=PLAYER_FACTION, name="Player", culture=SettlementType.VIKING, is_player=True),
    Faction(id="wessex", name="Wessex", culture=SettlementType.ANGLO),
    Faction(id="northumbria", name="Northumbria", culture=SettlementType.ANGLO),
    Faction(id="danes", name="Danes", culture=SettlementType.VIKING),
    Faction(id="west_francia", name="West Francia", culture=SettlementType.FRANKISH),
)


def _looted_raid(raid_class_id: str = "standard_raid", **target_overrides):
    raid = make_raid(raid_class_id=raid_class_id, target=make_snapshot(**target_overrides))
    raid.loot = LootBundle(
        resources=Resources(silver=100, thralls=2),
        special=(SpecialItem("Christian Relic", "A valuable religious item"),),
    )
    return raid


def _diplomacy(raid, outcome, raid_class_id="standard_raid"):
    return compute_diplomacy(
        raid,
        rules().raid_class(raid_class_id),
        outcome,
        FACTIONS,
        rules().diplomacy,
        PLAYER_FACTION,
    )


def test_fame_for_a_successful_raid():
    raid = _looted_raid(importance=3)
    config = rules().fame
    values = rules().targeting.wealth_values

    # 10 + 3*5 + floor(200/10) + 2*3 + 1*10
    assert compute_fame(raid, rules().raid_class("standard_raid"), RaidOutcome.VICTORY, config, values) == 61
    assert compute_fame(raid, rules().raid_class("quick_raid"), RaidOutcome.VICTORY, config, values) == 30


def test_fame_for_other_outcomes():
    raid = _looted_raid(importance=3)
    standard = rules().raid_class("standard_raid")
    config = rules().fame
    values = rules().targeting.wealth_values

    assert compute_fame(raid, standard, RaidOutcome.DEFEAT, config, values) == 2
    assert compute_fame(raid, standard, RaidOutcome.RECALLED, config, values) == 0
    assert compute_fame(raid, standard, RaidOutcome.VANISHED, config, values) == 0


def test_loot_value_uses_wealth_weights():
    values = rules().targeting.wealth_values

    assert loot_value(Resources(silver=10, gold=2, food=30, metal=4, wood=1000), values) == pytest.approx(35.0)


def test_successful_bloody_raid_sours_relations():
    raid = make_raid(target=make_snapshot(faction_id="wessex"))
    raid.combat = make_combat(success=True, ratio=2.0, weakened=True, defender_casualties=6)
    raid.casualties = Casualties(defender_total=6)

    effects = _diplomacy(raid, RaidOutcome.VICTORY)

    assert effects.target_faction_id == "wessex"
    assert effects.target_delta == -65
    assert effects.spillover == {"northumbria": -21}
    assert effects.admirers == {"danes": 5}
    assert effects.all_deltas() == {"wessex": -65, "northumbria": -21, "danes": 5}


def test_failed_raid_on_holy_site_halves_penalty():
    raid = make_raid(target=make_snapshot(religious=True))
    raid.combat = make_combat(success=False, ratio=0.5)

    effects = _diplomacy(raid, RaidOutcome.DEFEAT)

    assert effects.target_delta == -22
    assert effects.spillover == {"northumbria": -7}
    assert effects.admirers == {}


def test_high_value_target_penalty():
    raid = make_raid(target=make_snapshot(importance=4))
    raid.combat = make_combat(success=True, ratio=1.2)

    assert _diplomacy(raid, RaidOutcome.VICTORY).target_delta == -50


def test_viking_target_draws_no_admirers():
    raid = make_raid(target=make_snapshot(type=SettlementType.VIKING, faction_id="danes"))
    raid.combat = make_combat(success=True, ratio=1.2)

    effects = _diplomacy(raid, RaidOutcome.VICTORY)

    assert effects.admirers == {}
    assert "danes" not in effects.spillover
    assert PLAYER_FACTION not in effects.spillover


def test_vanished_target_and_recall():
    raid = make_raid(raid_class_id="great_raid")

    vanished = _diplomacy(raid, RaidOutcome.VANISHED, "great_raid")
    recalled = _diplomacy(raid, RaidOutcome.RECALLED, "great_raid")

    assert vanished.target_delta == -30
    assert vanished.spillover == {} and vanished.admirers == {}
    assert recalled.target_delta == 0
    assert recalled.all_deltas() == {}


class _CountingStockpile(ResourceStockpile):
    def __init__(self, stock: Resources) -> None:
        super().__init__(stock=stock)
        self.add_calls = 0

    def add(self, bundle: Resources) -> None:
        self.add_calls += 1
        super().add(bundle)


def _engine_for_consequences():
    target = make_settlement(
        "target",
        faction_id="wessex",
        warriors=10,
        defenses=2,
        population=100,
        resources=Resources(food=500, silver=300),
    )
    engine = make_engine_with([target], warriors=500, food=1000, factions=FACTIONS[1:])
    engine.ports.resources = _CountingStockpile(Resources(food=1000))
    return engine, target


def test_apply_consequences_commits_everything_once():
    engine, target = _engine_for_consequences()
    ports = engine.ports
    raid = make_raid(size=60, target=SettlementSnapshot.of(target))
    raid.supplies = 120
    raid.loot = LootBundle(resources=Resources(food=40, silver=100, thralls=2))
    raid.combat = make_combat(success=True, ratio=2.0, weakened=True, defender_casualties=6)
    raid.casualties = Casualties(attacker={"viking_warrior": 5}, attacker_total=5, defender_total=6)
    assert ports.population.reserve_warriors(60)

    result = apply_consequences(raid, rules().raid_class("standard_raid"), rules(), ports, RaidOutcome.VICTORY)

    assert result.success is True
    assert ports.resources.add_calls == 1
    assert ports.resources.stock == Resources(food=1160, silver=100, thralls=2)
    assert ports.population.available == 495
    assert ports.population.reserved == 0
    assert ports.population.fallen == 5
    assert ports.fame.total == result.fame_awarded > 0
    assert ports.relations.get_relation(PLAYER_FACTION, "wessex") == -65
    assert ports.relations.get_relation(PLAYER_FACTION, "northumbria") == -21
    assert ports.relations.get_relation(PLAYER_FACTION, "danes") == 5

    settlement = ports.world.get_settlement("target")
    assert settlement.resources.silver == 200
    assert settlement.resources.food == 460
    assert settlement.population == 92
    assert settlement.military.warriors == 4
    assert settlement.military.defenses == 1


def test_apply_consequences_clamps_relations():
    engine, target = _engine_for_consequences()
    ports = engine.ports
    ports.relations.set_relation(PLAYER_FACTION, "wessex", -95)
    raid = make_raid(size=60, target=SettlementSnapshot.of(target))
    raid.combat = make_combat(success=True, ratio=2.0, weakened=True)
    raid.casualties = Casualties(defender_total=6)
    ports.population.reserve_warriors(60)

    apply_consequences(raid, rules().raid_class("standard_raid"), rules(), ports, RaidOutcome.VICTORY)

    assert ports.relations.get_relation(PLAYER_FACTION, "wessex") == -100


def test_recalled_raid_returns_supplies_and_nothing_else():
    engine, target = _engine_for_consequences()
    ports = engine.ports
    raid = make_raid(size=60, target=SettlementSnapshot.of(target))
    raid.supplies = 300
    ports.population.reserve_warriors(60)

    result = apply_consequences(raid, rules().raid_class("standard_raid"), rules(), ports, RaidOutcome.RECALLED)

    assert result.recalled is True
    assert result.success is False
    assert result.loot.is_empty()
    assert result.fame_awarded == 0
    assert ports.resources.stock == Resources(food=1300)
    assert ports.population.available == 500
    assert ports.fame.total == 0
    assert ports.relations.values == {}
    assert ports.world.get_settlement("target").resources == Resources(food=500, silver=300)


def test_damage_skipped_when_target_is_gone():
    engine, target = _engine_for_consequences()
    ports = engine.ports
    raid = make_raid(size=60, target=SettlementSnapshot.of(target))
    raid.combat = make_combat(success=False, ratio=0.5)
    ports.population.reserve_warriors(60)
    ports.world.remove_settlement("target")

    result = apply_consequences(raid, rules().raid_class("standard_raid"), rules(), ports, RaidOutcome.DEFEAT)

    assert result.fame_awarded == 2
    assert ports.world.get_settlement("target") is None


def test_player_faction_falls_back_to_default():
    engine, target = _engine_for_consequences()
    raid = make_raid(target=SettlementSnapshot.of(target))

    assert player_faction_of(raid, engine.ports) == PLAYER_FACTION
    assert player_faction_of(replace(raid, origin_id="nowhere"), engine.ports) == "player"
