from __future__ import annotations

import copy
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from raid_sim.domain.ports import RaidPorts
from raid_sim.domain.types import Faction, Military, Position, Resources, Settlement, SettlementType
from raid_sim.rules.ruleset import DEFAULT_RULES_DIR, RulesError, Ruleset
from raid_sim.sim.state import RaidEngine
from raid_sim.sim.stores import FameLedger, RelationTable, ResourceStockpile, WarriorPool, WorldMap

DEFAULT_SCENARIO = Path(__file__).resolve().parents[1] / "data" / "scenarios" / "default.json"


@dataclass(frozen=True)
class RelationSeed:
    faction_a: str
    faction_b: str
    value: float


@dataclass(frozen=True)
class ScenarioData:
    seed: int
    start_day: int
    player_settlement_id: str
    warriors: int
    resources: Resources
    factions: tuple[Faction, ...]
    settlements: tuple[Settlement, ...]
    relations: tuple[RelationSeed, ...]


class ScenarioError(ValueError):
    pass


def load_scenario(path: Path) -> ScenarioData:
    return _parse_scenario(_load_json(path))


def build_engine(scenario: ScenarioData, rules: Ruleset) -> RaidEngine:
    """Fresh stores and a fresh engine; the scenario itself is never mutated."""
    world = WorldMap(player_id=scenario.player_settlement_id)
    for settlement in scenario.settlements:
        world.add_settlement(copy.deepcopy(settlement))
    for faction in scenario.factions:
        world.factions_by_id[faction.id] = faction

    relations = RelationTable()
    for seed in scenario.relations:
        relations.set_relation(seed.faction_a, seed.faction_b, seed.value)

    ports = RaidPorts(
        population=WarriorPool(available=scenario.warriors),
        resources=ResourceStockpile(stock=scenario.resources),
        world=world,
        relations=relations,
        fame=FameLedger(),
    )
    return RaidEngine(rules=rules, ports=ports, rng_seed=scenario.seed, day=scenario.start_day)


def load_engine(path: Path = DEFAULT_SCENARIO, rules_dir: Path | None = None) -> RaidEngine:
    scenario = load_scenario(path)
    try:
        rules = Ruleset.load(rules_dir or DEFAULT_RULES_DIR)
    except RulesError as exc:
        raise ScenarioError(str(exc)) from exc
    return build_engine(scenario, rules)


def _load_json(path: Path) -> dict:
    try:
        with path.open("r", encoding="utf-8") as handle:
            return json.load(handle)
    except FileNotFoundError as exc:
        raise ScenarioError(f"Scenario not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise ScenarioError(f"Invalid JSON in scenario: {exc}") from exc


def _parse_scenario(data: Any) -> ScenarioData:
    if not isinstance(data, dict):
        raise ScenarioError("Scenario root must be an object")
    seed = _require_int(data, "seed")
    player_id = data.get("player")
    if not isinstance(player_id, str):
        raise ScenarioError("player must be a settlement id")
    warriors = _require_int(data, "warriors")
    if warriors < 0:
        raise ScenarioError("warriors must be non-negative")
    try:
        resources = Resources.from_dict(_require_dict(data, "resources"))
    except ValueError as exc:
        raise ScenarioError(str(exc)) from exc

    factions = tuple(_parse_faction(item) for item in _require_list(data, "factions"))
    faction_ids = {faction.id for faction in factions}
    if len(faction_ids) != len(factions):
        raise ScenarioError("faction ids must be unique")

    settlements = tuple(_parse_settlement(item, player_id) for item in _require_list(data, "settlements"))
    ids = [settlement.id for settlement in settlements]
    if len(set(ids)) != len(ids):
        raise ScenarioError("settlement ids must be unique")
    if player_id not in ids:
        raise ScenarioError(f"player settlement '{player_id}' is not defined")
    for settlement in settlements:
        if settlement.faction_id is not None and settlement.faction_id not in faction_ids:
            raise ScenarioError(f"{settlement.id}: unknown faction '{settlement.faction_id}'")

    relations = tuple(_parse_relation(item, faction_ids) for item in data.get("relations", []))
    return ScenarioData(
        seed=seed,
        start_day=int(data.get("start_day", 0)),
        player_settlement_id=player_id,
        warriors=warriors,
        resources=resources,
        factions=factions,
        settlements=settlements,
        relations=relations,
    )


def _parse_culture(value: Any, where: str) -> SettlementType:
    try:
        return SettlementType(value)
    except ValueError as exc:
        raise ScenarioError(f"{where}: unknown settlement type '{value}'") from exc


def _parse_faction(item: Any) -> Faction:
    if not isinstance(item, dict) or not isinstance(item.get("id"), str):
        raise ScenarioError("factions entries must be objects with an id")
    return Faction(
        id=item["id"],
        name=str(item.get("name", item["id"])),
        culture=_parse_culture(item.get("culture"), f"faction {item['id']}"),
        is_player=bool(item.get("is_player", False)),
    )


def _parse_settlement(item: Any, player_id: str) -> Settlement:
    if not isinstance(item, dict) or not isinstance(item.get("id"), str):
        raise ScenarioError("settlements entries must be objects with an id")
    settlement_id = item["id"]
    position = _require_dict(item, "position")
    military = item.get("military", {})
    if not isinstance(military, dict):
        raise ScenarioError(f"{settlement_id}.military must be an object")
    try:
        resources = Resources.from_dict(item.get("resources"))
    except ValueError as exc:
        raise ScenarioError(f"{settlement_id}: {exc}") from exc
    fortification = float(item.get("fortification_bonus", 0.0))
    if not 0.0 <= fortification <= 1.0:
        raise ScenarioError(f"{settlement_id}.fortification_bonus must be between 0 and 1")
    return Settlement(
        id=settlement_id,
        name=str(item.get("name", settlement_id)),
        type=_parse_culture(item.get("type"), settlement_id),
        position=Position(_require_number(position, "x"), _require_number(position, "y")),
        faction_id=item.get("faction"),
        is_player=settlement_id == player_id,
        coastal=bool(item.get("coastal", False)),
        religious=bool(item.get("religious", False)),
        importance=max(1, int(item.get("importance", 1))),
        prosperity=max(0, int(item.get("prosperity", 0))),
        population=max(0, int(item.get("population", 0))),
        military=Military(
            warriors=max(0, int(military.get("warriors", 0))),
            defenses=max(0, int(military.get("defenses", 0))),
            ships=max(0, int(military.get("ships", 0))),
        ),
        resources=resources,
        relations={str(k): float(v) for k, v in dict(item.get("relations", {})).items()},
        fortification_bonus=fortification,
    )


def _parse_relation(item: Any, faction_ids: set[str]) -> RelationSeed:
    if not isinstance(item, dict):
        raise ScenarioError("relations entries must be objects")
    a, b = item.get("a"), item.get("b")
    if a not in faction_ids or b not in faction_ids:
        raise ScenarioError(f"relation references unknown faction: {a} / {b}")
    return RelationSeed(faction_a=a, faction_b=b, value=_require_number(item, "value"))


def _require_dict(data: dict, key: str) -> dict:
    value = data.get(key)
    if not isinstance(value, dict):
        raise ScenarioError(f"{key} must be an object")
    return value


def _require_list(data: dict, key: str) -> list:
    value = data.get(key)
    if not isinstance(value, list):
        raise ScenarioError(f"{key} must be a list")
    return value


def _require_int(data: dict, key: str) -> int:
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ScenarioError(f"{key} must be an integer")
    return value


def _require_number(data: dict, key: str) -> float:
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ScenarioError(f"{key} must be a number")
    return float(value)
