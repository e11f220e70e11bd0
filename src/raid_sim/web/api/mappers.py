from __future__ import annotations

from typing import Iterable

from raid_sim.domain import raid as raid_models
from raid_sim.domain.events import RaidNotice
from raid_sim.domain.types import Resources
from raid_sim.sim.state import RaidEngine
from raid_sim.systems.consequences import PLAYER_FACTION_ID
from raid_sim.systems.targets import TargetEvaluation
from raid_sim.systems.travel import travel_days
from raid_sim.web.api import schemas


def build_state_response(engine: RaidEngine) -> schemas.GameStateResponse:
    world = engine.ports.world
    player = world.player_settlement()
    player_faction = player.faction_id or PLAYER_FACTION_ID
    fame = engine.ports.fame.total_fame()
    return schemas.GameStateResponse(
        day=engine.day,
        player_settlement_id=player.id,
        available_warriors=engine.ports.population.get_available_warriors(),
        resources=_resources({name: engine.ports.resources.get(name) for name in Resources.names()}),
        fame=fame,
        settlements=[
            schemas.SettlementSummary(
                id=s.id,
                name=s.name,
                type=s.type.value,
                faction_id=s.faction_id,
                position=schemas.Position(x=s.position.x, y=s.position.y),
                coastal=s.coastal,
                warriors=s.military.warriors,
                defenses=s.military.defenses,
            )
            for s in world.settlements()
        ],
        factions=[
            schemas.FactionStanding(
                id=f.id,
                name=f.name,
                culture=f.culture.value,
                relation=engine.ports.relations.get_relation(player_faction, f.id),
            )
            for f in world.factions()
            if f.id != player_faction
        ],
        active_raids=[raid_response(r) for r in engine.active],
        raid_history=[raid_response(r) for r in engine.history],
    )


def _resources(values: dict[str, int]) -> schemas.ResourceBundle:
    return schemas.ResourceBundle(**values)


def _loot(loot: raid_models.LootBundle) -> schemas.Loot:
    return schemas.Loot(
        resources=_resources(loot.resources.as_dict()),
        special=[schemas.SpecialItem(name=i.name, description=i.description) for i in loot.special],
    )


def _casualties(casualties: raid_models.Casualties) -> schemas.Casualties:
    return schemas.Casualties(
        attacker=dict(casualties.attacker),
        attacker_total=casualties.attacker_total,
        defender_total=casualties.defender_total,
    )


def _result(result: raid_models.RaidResult | None) -> schemas.RaidResult | None:
    if result is None:
        return None
    effects = result.diplomatic_effects
    return schemas.RaidResult(
        success=result.success,
        loot=_loot(result.loot),
        casualties=_casualties(result.casualties),
        fame_awarded=result.fame_awarded,
        diplomatic_effects=schemas.DiplomaticEffects(
            target_faction_id=effects.target_faction_id,
            target_delta=effects.target_delta,
            spillover=dict(effects.spillover),
            admirers=dict(effects.admirers),
        ),
        recalled=result.recalled,
        failure_reason=result.failure_reason,
    )


def raid_response(raid: raid_models.Raid) -> schemas.Raid:
    target = raid.target
    combat = raid.combat
    return schemas.Raid(
        id=raid.id,
        name=raid.name,
        raid_class_id=raid.raid_class_id,
        phase=raid.phase.value,
        phase_history=[p.value for p in raid.phase_history],
        target=schemas.TargetSnapshot(
            settlement_id=target.settlement_id,
            name=target.name,
            type=target.type.value,
            faction_id=target.faction_id,
            coastal=target.coastal,
            religious=target.religious,
            importance=target.importance,
            warriors=target.warriors,
            defenses=target.defenses,
        ),
        size=raid.size,
        units=dict(raid.units),
        ships=raid.ships,
        leader=None
        if raid.leader is None
        else schemas.Leader(name=raid.leader.name, combat=raid.leader.combat, leadership=raid.leader.leadership),
        morale=raid.morale,
        supplies=raid.supplies,
        start_day=raid.start_day,
        travel_days=raid.travel_days,
        days_remaining=raid.days_remaining,
        estimated_return_day=raid.estimated_return_day,
        recalled=raid.recalled,
        loot=_loot(raid.loot),
        casualties=_casualties(raid.casualties),
        combat=None
        if combat is None
        else schemas.CombatSummary(
            success=combat.success,
            raider_strength=combat.raider_strength,
            defender_strength=combat.defender_strength,
            strength_ratio=combat.strength_ratio,
            success_chance=combat.success_chance,
            defenses_weakened=combat.defenses_weakened,
        ),
        events=[schemas.RaidLogEntry(day=e.day, kind=e.kind, message=e.message) for e in raid.events],
        result=_result(raid.result),
    )


def targets_response(
    engine: RaidEngine, raid_class_id: str, evaluations: Iterable[TargetEvaluation]
) -> schemas.TargetsResponse:
    raid_class = engine.rules.raid_class(raid_class_id)
    origin = engine.ports.world.player_settlement()
    options = []
    for evaluation in evaluations:
        settlement = evaluation.settlement
        days = (
            travel_days(origin.position, settlement.position, raid_class, engine.rules.travel.distance_per_day)
            if raid_class is not None
            else 0
        )
        options.append(
            schemas.TargetOption(
                settlement_id=settlement.id,
                name=settlement.name,
                type=settlement.type.value,
                score=round(evaluation.score, 3),
                distance=round(evaluation.distance, 2),
                defense_strength=evaluation.defense_strength,
                wealth_score=round(evaluation.wealth_score, 2),
                relationship=evaluation.relationship,
                coastal=evaluation.coastal,
                travel_days=days,
            )
        )
    return schemas.TargetsResponse(raid_class_id=raid_class_id, targets=options)


def notices(items: Iterable[RaidNotice]) -> list[schemas.Notice]:
    return [schemas.Notice(kind=n.kind, raid_id=n.raid_id, message=n.message) for n in items]
