"""Plain-dict (de)serialisation of raids and the engine counters.

Everything needed to resume mid-raid survives: phase, remaining days, the
target snapshot, loot, casualties, the day log, the result and the id counter.
"""

from __future__ import annotations

from typing import Any

from raid_sim.domain.ports import RaidPorts
from raid_sim.domain.raid import (
    Casualties,
    CombatResult,
    DiplomaticEffects,
    LootBundle,
    Raid,
    RaidLogEntry,
    RaidResult,
    SpecialItem,
)
from raid_sim.domain.types import Leader, Position, RaidPhase, Resources, SettlementSnapshot, SettlementType
from raid_sim.rules.ruleset import Ruleset
from raid_sim.sim.state import RaidEngine

FORMAT_VERSION = 1


class PersistenceError(ValueError):
    pass


def snapshot_to_dict(snapshot: SettlementSnapshot) -> dict[str, Any]:
    return {
        "settlement_id": snapshot.settlement_id,
        "name": snapshot.name,
        "type": snapshot.type.value,
        "faction_id": snapshot.faction_id,
        "position": {"x": snapshot.position.x, "y": snapshot.position.y},
        "coastal": snapshot.coastal,
        "religious": snapshot.religious,
        "importance": snapshot.importance,
        "prosperity": snapshot.prosperity,
        "population": snapshot.population,
        "warriors": snapshot.warriors,
        "defenses": snapshot.defenses,
        "ships": snapshot.ships,
        "fortification_bonus": snapshot.fortification_bonus,
        "resources": snapshot.resources.as_dict(),
    }


def snapshot_from_dict(data: dict[str, Any]) -> SettlementSnapshot:
    position = data["position"]
    return SettlementSnapshot(
        settlement_id=data["settlement_id"],
        name=data["name"],
        type=SettlementType(data["type"]),
        faction_id=data.get("faction_id"),
        position=Position(float(position["x"]), float(position["y"])),
        coastal=bool(data["coastal"]),
        religious=bool(data["religious"]),
        importance=int(data["importance"]),
        prosperity=int(data["prosperity"]),
        population=int(data["population"]),
        warriors=int(data["warriors"]),
        defenses=int(data["defenses"]),
        ships=int(data["ships"]),
        fortification_bonus=float(data["fortification_bonus"]),
        resources=Resources.from_dict(data["resources"]),
    )


def _loot_to_dict(loot: LootBundle) -> dict[str, Any]:
    return {
        "resources": loot.resources.as_dict(),
        "special": [{"name": item.name, "description": item.description} for item in loot.special],
    }


def _loot_from_dict(data: dict[str, Any]) -> LootBundle:
    return LootBundle(
        resources=Resources.from_dict(data.get("resources")),
        special=tuple(SpecialItem(name=i["name"], description=i["description"]) for i in data.get("special", [])),
    )


def _casualties_to_dict(casualties: Casualties) -> dict[str, Any]:
    return {
        "attacker": dict(casualties.attacker),
        "attacker_total": casualties.attacker_total,
        "defender_total": casualties.defender_total,
    }


def _casualties_from_dict(data: dict[str, Any]) -> Casualties:
    return Casualties(
        attacker={k: int(v) for k, v in data.get("attacker", {}).items()},
        attacker_total=int(data.get("attacker_total", 0)),
        defender_total=int(data.get("defender_total", 0)),
    )


def _combat_to_dict(combat: CombatResult | None) -> dict[str, Any] | None:
    if combat is None:
        return None
    return {
        "success": combat.success,
        "raider_strength": combat.raider_strength,
        "defender_strength": combat.defender_strength,
        "strength_ratio": combat.strength_ratio,
        "success_chance": combat.success_chance,
        "raider_casualties": combat.raider_casualties,
        "defender_casualties": combat.defender_casualties,
        "defenses_weakened": combat.defenses_weakened,
        "casualties_by_unit": dict(combat.casualties_by_unit),
    }


def _combat_from_dict(data: dict[str, Any] | None) -> CombatResult | None:
    if data is None:
        return None
    return CombatResult(
        success=bool(data["success"]),
        raider_strength=float(data["raider_strength"]),
        defender_strength=float(data["defender_strength"]),
        strength_ratio=float(data["strength_ratio"]),
        success_chance=float(data["success_chance"]),
        raider_casualties=int(data["raider_casualties"]),
        defender_casualties=int(data["defender_casualties"]),
        defenses_weakened=bool(data["defenses_weakened"]),
        casualties_by_unit={k: int(v) for k, v in data.get("casualties_by_unit", {}).items()},
    )


def _result_to_dict(result: RaidResult | None) -> dict[str, Any] | None:
    if result is None:
        return None
    effects = result.diplomatic_effects
    return {
        "success": result.success,
        "loot": _loot_to_dict(result.loot),
        "casualties": _casualties_to_dict(result.casualties),
        "fame_awarded": result.fame_awarded,
        "diplomatic_effects": {
            "target_faction_id": effects.target_faction_id,
            "target_delta": effects.target_delta,
            "spillover": dict(effects.spillover),
            "admirers": dict(effects.admirers),
        },
        "recalled": result.recalled,
        "failure_reason": result.failure_reason,
    }


def _result_from_dict(data: dict[str, Any] | None) -> RaidResult | None:
    if data is None:
        return None
    effects = data.get("diplomatic_effects", {})
    return RaidResult(
        success=bool(data["success"]),
        loot=_loot_from_dict(data["loot"]),
        casualties=_casualties_from_dict(data["casualties"]),
        fame_awarded=int(data.get("fame_awarded", 0)),
        diplomatic_effects=DiplomaticEffects(
            target_faction_id=effects.get("target_faction_id"),
            target_delta=int(effects.get("target_delta", 0)),
            spillover={k: int(v) for k, v in effects.get("spillover", {}).items()},
            admirers={k: int(v) for k, v in effects.get("admirers", {}).items()},
        ),
        recalled=bool(data.get("recalled", False)),
        failure_reason=data.get("failure_reason"),
    )


def raid_to_dict(raid: Raid) -> dict[str, Any]:
    leader = raid.leader
    return {
        "id": raid.id,
        "seq": raid.seq,
        "name": raid.name,
        "raid_class_id": raid.raid_class_id,
        "origin_id": raid.origin_id,
        "target": snapshot_to_dict(raid.target),
        "size": raid.size,
        "units": dict(raid.units),
        "supplies": raid.supplies,
        "start_day": raid.start_day,
        "travel_days": raid.travel_days,
        "estimated_return_day": raid.estimated_return_day,
        "days_remaining": raid.days_remaining,
        "ships": raid.ships,
        "leader": None
        if leader is None
        else {"name": leader.name, "combat": leader.combat, "leadership": leader.leadership},
        "morale": raid.morale,
        "phase": raid.phase.value,
        "phase_history": [phase.value for phase in raid.phase_history],
        "recalled": raid.recalled,
        "loot": _loot_to_dict(raid.loot),
        "casualties": _casualties_to_dict(raid.casualties),
        "combat": _combat_to_dict(raid.combat),
        "events": [{"day": e.day, "kind": e.kind, "message": e.message} for e in raid.events],
        "result": _result_to_dict(raid.result),
    }


def raid_from_dict(data: dict[str, Any]) -> Raid:
    try:
        leader_data = data.get("leader")
        return Raid(
            id=data["id"],
            seq=int(data["seq"]),
            name=data["name"],
            raid_class_id=data["raid_class_id"],
            origin_id=data["origin_id"],
            target=snapshot_from_dict(data["target"]),
            size=int(data["size"]),
            units={k: int(v) for k, v in data["units"].items()},
            supplies=int(data["supplies"]),
            start_day=int(data["start_day"]),
            travel_days=int(data["travel_days"]),
            estimated_return_day=int(data["estimated_return_day"]),
            days_remaining=int(data["days_remaining"]),
            ships=int(data.get("ships", 0)),
            leader=None
            if leader_data is None
            else Leader(
                name=leader_data["name"],
                combat=int(leader_data.get("combat", 0)),
                leadership=int(leader_data.get("leadership", 0)),
            ),
            morale=int(data.get("morale", 100)),
            phase=RaidPhase(data["phase"]),
            phase_history=[RaidPhase(p) for p in data["phase_history"]],
            recalled=bool(data.get("recalled", False)),
            loot=_loot_from_dict(data.get("loot", {})),
            casualties=_casualties_from_dict(data.get("casualties", {})),
            combat=_combat_from_dict(data.get("combat")),
            events=[RaidLogEntry(day=int(e["day"]), kind=e["kind"], message=e["message"]) for e in data.get("events", [])],
            result=_result_from_dict(data.get("result")),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise PersistenceError(f"Malformed raid record: {exc}") from exc


def engine_to_dict(engine: RaidEngine) -> dict[str, Any]:
    return {
        "version": FORMAT_VERSION,
        "rng_seed": engine.rng_seed,
        "day": engine.day,
        "raid_seq": engine.raid_seq,
        "active": [raid_to_dict(raid) for raid in engine.active],
        "history": [raid_to_dict(raid) for raid in engine.history],
    }


def restore_engine(data: dict[str, Any], rules: Ruleset, ports: RaidPorts) -> RaidEngine:
    """Rebuild an engine around stores the host restored separately."""
    if data.get("version") != FORMAT_VERSION:
        raise PersistenceError(f"Unsupported raid save version: {data.get('version')}")
    try:
        return RaidEngine(
            rules=rules,
            ports=ports,
            rng_seed=int(data["rng_seed"]),
            day=int(data["day"]),
            raid_seq=int(data["raid_seq"]),
            active=[raid_from_dict(raid) for raid in data.get("active", [])],
            history=[raid_from_dict(raid) for raid in data.get("history", [])],
        )
    except (KeyError, TypeError, ValueError) as exc:
        if isinstance(exc, PersistenceError):
            raise
        raise PersistenceError(f"Malformed engine record: {exc}") from exc
