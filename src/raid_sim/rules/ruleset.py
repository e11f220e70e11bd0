"""Data-driven balance tables."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from raid_sim.domain.types import Resources, SettlementType

DEFAULT_RULES_DIR = Path(__file__).resolve().parents[1] / "data" / "rules"

TARGET_PREFERENCES = ("coastal", "nearby", "wealthy")


class RulesError(ValueError):
    """Error loading or validating rules."""


@dataclass(frozen=True)
class RaidClass:
    """A raid class definition."""

    id: str
    name: str
    description: str
    min_size: int
    max_size: int
    preparation_days: int
    travel_speed_modifier: float
    combat_strength_modifier: float
    loot_modifier: float
    stealth_modifier: float
    fame_modifier: float
    infamy_modifier: float
    requires_ships: bool
    danger_level: int
    target_preference: str | None = None
    warriors_per_ship: int = 20

    def min_ships(self, size: int) -> int:
        if not self.requires_ships:
            return 0
        return -(-size // self.warriors_per_ship)


@dataclass(frozen=True)
class UnitType:
    """A raider unit type definition."""

    id: str
    name: str
    culture: str
    attack: int
    defense: int


@dataclass(frozen=True)
class LootEntry:
    min: int
    max: int
    chance: float


@dataclass(frozen=True)
class SpecialLoot:
    name: str
    description: str
    chance: float


@dataclass(frozen=True)
class LootTable:
    common: dict[str, LootEntry]
    rare: dict[str, LootEntry]
    special: tuple[SpecialLoot, ...]


@dataclass(frozen=True)
class TravelConfig:
    distance_per_day: float
    raid_days: int
    supplies_per_warrior_per_day: int
    recall_return_factor: float


@dataclass(frozen=True)
class TargetingConfig:
    distance_penalty: float
    defense_weight: float
    wealth_weight: float
    relationship_weight: float
    default_relationship: float
    wealth_values: dict[str, float]
    coastal_bonus: float
    inland_penalty: float
    nearby_distance_divisor: float
    wealthy_wealth_divisor: float


@dataclass(frozen=True)
class CombatConfig:
    raider_strength_weight: float
    defender_strength_weight: float
    base_success_chance: float
    ratio_bonus_scale: float
    ratio_bonus_cap: float
    ratio_penalty_scale: float
    ratio_penalty_cap: float
    morale_factor: float
    leadership_bonus: float
    randomness_factor: float
    fortification_chance_penalty: float
    min_success_chance: float
    max_success_chance: float
    leader_strength_per_skill: float
    ship_bonus_per_ship: float
    warrior_strength: float
    defense_strength: float
    ship_strength: float
    civilian_strength: float
    civilian_levy_threshold: int
    weakened_ratio: float
    min_ratio_for_casualties: float
    default_unit_type: str


@dataclass(frozen=True)
class LootConfig:
    lootable_fraction: float
    failure_food_max: int
    failure_wood_max: int


@dataclass(frozen=True)
class FameConfig:
    base: int
    per_importance: int
    loot_value_divisor: int
    per_thrall: int
    per_special_item: int
    failure_fame: int


@dataclass(frozen=True)
class DiplomacyConfig:
    base_penalty: float
    success_penalty: float
    heavy_casualty_threshold: int
    heavy_casualty_penalty: float
    weakened_penalty: float
    religious_multiplier: float
    high_value_importance: int
    high_value_penalty: float
    spillover_divisor: float
    admiration_bonus: int


@dataclass(frozen=True)
class Ruleset:
    """Loaded and validated ruleset."""

    raid_classes: dict[str, RaidClass]
    unit_types: dict[str, UnitType]
    loot_tables: dict[SettlementType, LootTable]
    travel: TravelConfig
    targeting: TargetingConfig
    combat: CombatConfig
    loot: LootConfig
    fame: FameConfig
    diplomacy: DiplomacyConfig

    @staticmethod
    def load(data_dir: Path) -> "Ruleset":
        """Load ruleset from JSON files in data directory."""
        raid_classes = _load_raid_classes(data_dir / "raid_classes.json")
        unit_types = _load_unit_types(data_dir / "unit_types.json")
        loot_tables = _load_loot_tables(data_dir / "loot_tables.json")
        travel, targeting, combat, loot, fame, diplomacy = _load_globals(data_dir / "globals.json")
        if combat.default_unit_type not in unit_types:
            raise RulesError(f"combat.default_unit_type '{combat.default_unit_type}' is not a unit type")

        return Ruleset(
            raid_classes=raid_classes,
            unit_types=unit_types,
            loot_tables=loot_tables,
            travel=travel,
            targeting=targeting,
            combat=combat,
            loot=loot,
            fame=fame,
            diplomacy=diplomacy,
        )

    @staticmethod
    def default() -> "Ruleset":
        return Ruleset.load(DEFAULT_RULES_DIR)

    def raid_class(self, raid_class_id: str) -> RaidClass | None:
        return self.raid_classes.get(raid_class_id)

    def loot_table(self, settlement_type: SettlementType) -> LootTable:
        return self.loot_tables[settlement_type]


def _load_json(path: Path) -> dict[str, Any]:
    """Load JSON file."""
    try:
        with path.open("r", encoding="utf-8") as handle:
            return json.load(handle)
    except FileNotFoundError as exc:
        raise RulesError(f"Rules file not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise RulesError(f"Invalid JSON in {path}: {exc}") from exc


def _load_raid_classes(path: Path) -> dict[str, RaidClass]:
    """Load raid classes."""
    data = _load_json(path)
    if "classes" not in data:
        raise RulesError(f"{path}: missing 'classes' key")
    classes: dict[str, RaidClass] = {}
    for item in data["classes"]:
        if not isinstance(item, dict):
            raise RulesError(f"{path}: class entry must be object")
        class_id = item.get("id")
        if not isinstance(class_id, str):
            raise RulesError(f"{path}: class.id must be string")
        size = item.get("size", {})
        if not isinstance(size, dict):
            raise RulesError(f"{path}: {class_id}.size must be object")
        preference = item.get("target_preference")
        if preference is not None and preference not in TARGET_PREFERENCES:
            raise RulesError(f"{path}: {class_id}.target_preference must be one of {TARGET_PREFERENCES}")
        raid_class = RaidClass(
            id=class_id,
            name=str(item.get("name", class_id)),
            description=str(item.get("description", "")),
            min_size=int(size.get("min", 1)),
            max_size=int(size.get("max", 1)),
            preparation_days=int(item.get("preparation_days", 1)),
            travel_speed_modifier=float(item.get("travel_speed_modifier", 1.0)),
            combat_strength_modifier=float(item.get("combat_strength_modifier", 1.0)),
            loot_modifier=float(item.get("loot_modifier", 1.0)),
            stealth_modifier=float(item.get("stealth_modifier", 1.0)),
            fame_modifier=float(item.get("fame_modifier", 1.0)),
            infamy_modifier=float(item.get("infamy_modifier", 1.0)),
            requires_ships=bool(item.get("requires_ships", False)),
            danger_level=int(item.get("danger_level", 2)),
            target_preference=preference,
            warriors_per_ship=int(item.get("warriors_per_ship", 20)),
        )
        _validate_raid_class(path, raid_class)
        classes[class_id] = raid_class
    if not classes:
        raise RulesError(f"{path}: no raid classes defined")
    return classes


def _validate_raid_class(path: Path, raid_class: RaidClass) -> None:
    if raid_class.min_size < 1 or raid_class.min_size > raid_class.max_size:
        raise RulesError(f"{path}: {raid_class.id} size range must satisfy 1 <= min <= max")
    if raid_class.preparation_days < 1:
        raise RulesError(f"{path}: {raid_class.id}.preparation_days must be >= 1")
    modifiers = {
        "travel_speed_modifier": raid_class.travel_speed_modifier,
        "combat_strength_modifier": raid_class.combat_strength_modifier,
        "loot_modifier": raid_class.loot_modifier,
        "stealth_modifier": raid_class.stealth_modifier,
        "fame_modifier": raid_class.fame_modifier,
        "infamy_modifier": raid_class.infamy_modifier,
    }
    for name, value in modifiers.items():
        if value <= 0:
            raise RulesError(f"{path}: {raid_class.id}.{name} must be > 0")
    if raid_class.danger_level < 1:
        raise RulesError(f"{path}: {raid_class.id}.danger_level must be >= 1")
    if raid_class.warriors_per_ship < 1:
        raise RulesError(f"{path}: {raid_class.id}.warriors_per_ship must be >= 1")


def _load_unit_types(path: Path) -> dict[str, UnitType]:
    """Load unit types."""
    data = _load_json(path)
    if "units" not in data:
        raise RulesError(f"{path}: missing 'units' key")
    units: dict[str, UnitType] = {}
    for item in data["units"]:
        if not isinstance(item, dict):
            raise RulesError(f"{path}: unit entry must be object")
        unit_id = item.get("id")
        if not isinstance(unit_id, str):
            raise RulesError(f"{path}: unit.id must be string")
        defense = int(item.get("defense", 0))
        if not 0 <= defense < 20:
            raise RulesError(f"{path}: {unit_id}.defense must be in [0, 20)")
        units[unit_id] = UnitType(
            id=unit_id,
            name=str(item.get("name", unit_id)),
            culture=str(item.get("culture", "norse")),
            attack=int(item.get("attack", 1)),
            defense=defense,
        )
    return units


def _load_loot_tables(path: Path) -> dict[SettlementType, LootTable]:
    """Load loot tables; every settlement type must have one."""
    data = _load_json(path)
    raw_tables = data.get("tables")
    if not isinstance(raw_tables, dict):
        raise RulesError(f"{path}: missing 'tables' object")
    tables: dict[SettlementType, LootTable] = {}
    for key, raw in raw_tables.items():
        try:
            settlement_type = SettlementType(key)
        except ValueError as exc:
            raise RulesError(f"{path}: unknown settlement type '{key}'") from exc
        if not isinstance(raw, dict):
            raise RulesError(f"{path}: table '{key}' must be object")
        tables[settlement_type] = LootTable(
            common=_parse_loot_entries(path, key, raw.get("common", {})),
            rare=_parse_loot_entries(path, key, raw.get("rare", {})),
            special=tuple(_parse_special(path, key, raw.get("special", []))),
        )
    missing = [t.value for t in SettlementType if t not in tables]
    if missing:
        raise RulesError(f"{path}: missing loot tables for {missing}")
    return tables


def _parse_loot_entries(path: Path, table: str, value: Any) -> dict[str, LootEntry]:
    if not isinstance(value, dict):
        raise RulesError(f"{path}: {table} loot entries must be object")
    entries: dict[str, LootEntry] = {}
    for resource, entry in value.items():
        if resource not in Resources.names():
            raise RulesError(f"{path}: {table} references unknown resource '{resource}'")
        if not isinstance(entry, dict):
            raise RulesError(f"{path}: {table}.{resource} must be object")
        low = int(entry.get("min", 0))
        high = int(entry.get("max", 0))
        if low < 0 or low > high:
            raise RulesError(f"{path}: {table}.{resource} must satisfy 0 <= min <= max")
        entries[resource] = LootEntry(min=low, max=high, chance=float(entry.get("chance", 0)))
    return entries


def _parse_special(path: Path, table: str, value: Any) -> list[SpecialLoot]:
    if not isinstance(value, list):
        raise RulesError(f"{path}: {table}.special must be array")
    items: list[SpecialLoot] = []
    for entry in value:
        if not isinstance(entry, dict) or not isinstance(entry.get("name"), str):
            raise RulesError(f"{path}: {table}.special entries need a name")
        items.append(
            SpecialLoot(
                name=entry["name"],
                description=str(entry.get("description", "")),
                chance=float(entry.get("chance", 0)),
            )
        )
    return items


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key, {})
    if not isinstance(value, dict):
        raise RulesError(f"globals.{key} must be object")
    return value


def _load_globals(
    path: Path,
) -> tuple[TravelConfig, TargetingConfig, CombatConfig, LootConfig, FameConfig, DiplomacyConfig]:
    data = _load_json(path)
    travel_data = _section(data, "travel")
    targeting_data = _section(data, "targeting")
    combat_data = _section(data, "combat")
    loot_data = _section(data, "loot")
    fame_data = _section(data, "fame")
    diplomacy_data = _section(data, "diplomacy")

    travel = TravelConfig(
        distance_per_day=float(travel_data.get("distance_per_day", 10.0)),
        raid_days=int(travel_data.get("raid_days", 1)),
        supplies_per_warrior_per_day=int(travel_data.get("supplies_per_warrior_per_day", 1)),
        recall_return_factor=float(travel_data.get("recall_return_factor", 1.0)),
    )
    if travel.distance_per_day <= 0 or travel.raid_days < 1:
        raise RulesError(f"{path}: travel.distance_per_day must be > 0 and travel.raid_days >= 1")

    targeting = TargetingConfig(
        distance_penalty=float(targeting_data.get("distance_penalty", -1.0)),
        defense_weight=float(targeting_data.get("defense_weight", -2.0)),
        wealth_weight=float(targeting_data.get("wealth_weight", 2.0)),
        relationship_weight=float(targeting_data.get("relationship_weight", -1.5)),
        default_relationship=float(targeting_data.get("default_relationship", 50.0)),
        wealth_values={
            str(k): float(v)
            for k, v in dict(
                targeting_data.get("wealth_values", {"silver": 2.0, "gold": 5.0, "food": 0.1, "metal": 0.5})
            ).items()
        },
        coastal_bonus=float(targeting_data.get("coastal_bonus", 30.0)),
        inland_penalty=float(targeting_data.get("inland_penalty", -50.0)),
        nearby_distance_divisor=float(targeting_data.get("nearby_distance_divisor", 50.0)),
        wealthy_wealth_divisor=float(targeting_data.get("wealthy_wealth_divisor", 50.0)),
    )
    if targeting.distance_penalty >= 0 or targeting.relationship_weight >= 0 or targeting.wealth_weight <= 0:
        raise RulesError(
            f"{path}: targeting distance/relationship weights must be negative and wealth weight positive"
        )

    combat = CombatConfig(
        raider_strength_weight=float(combat_data.get("raider_strength_weight", 1.0)),
        defender_strength_weight=float(combat_data.get("defender_strength_weight", 1.0)),
        base_success_chance=float(combat_data.get("base_success_chance", 50.0)),
        ratio_bonus_scale=float(combat_data.get("ratio_bonus_scale", 30.0)),
        ratio_bonus_cap=float(combat_data.get("ratio_bonus_cap", 45.0)),
        ratio_penalty_scale=float(combat_data.get("ratio_penalty_scale", 40.0)),
        ratio_penalty_cap=float(combat_data.get("ratio_penalty_cap", 40.0)),
        morale_factor=float(combat_data.get("morale_factor", 0.5)),
        leadership_bonus=float(combat_data.get("leadership_bonus", 0.3)),
        randomness_factor=float(combat_data.get("randomness_factor", 0.4)),
        fortification_chance_penalty=float(combat_data.get("fortification_chance_penalty", 10.0)),
        min_success_chance=float(combat_data.get("min_success_chance", 5.0)),
        max_success_chance=float(combat_data.get("max_success_chance", 95.0)),
        leader_strength_per_skill=float(combat_data.get("leader_strength_per_skill", 0.1)),
        ship_bonus_per_ship=float(combat_data.get("ship_bonus_per_ship", 0.05)),
        warrior_strength=float(combat_data.get("warrior_strength", 1.0)),
        defense_strength=float(combat_data.get("defense_strength", 2.0)),
        ship_strength=float(combat_data.get("ship_strength", 1.5)),
        civilian_strength=float(combat_data.get("civilian_strength", 0.1)),
        civilian_levy_threshold=int(combat_data.get("civilian_levy_threshold", 5)),
        weakened_ratio=float(combat_data.get("weakened_ratio", 1.5)),
        min_ratio_for_casualties=float(combat_data.get("min_ratio_for_casualties", 0.1)),
        default_unit_type=str(combat_data.get("default_unit_type", "viking_warrior")),
    )
    if not 0 <= combat.min_success_chance <= combat.max_success_chance <= 100:
        raise RulesError(f"{path}: combat success chance bounds must satisfy 0 <= min <= max <= 100")

    loot = LootConfig(
        lootable_fraction=float(loot_data.get("lootable_fraction", 0.8)),
        failure_food_max=int(loot_data.get("failure_food_max", 4)),
        failure_wood_max=int(loot_data.get("failure_wood_max", 2)),
    )
    if not 0 <= loot.lootable_fraction <= 1:
        raise RulesError(f"{path}: loot.lootable_fraction must be in [0, 1]")
    if loot.failure_food_max < 1 or loot.failure_wood_max < 1:
        raise RulesError(f"{path}: loot.failure_food_max and failure_wood_max must be at least 1")

    fame = FameConfig(
        base=int(fame_data.get("base", 10)),
        per_importance=int(fame_data.get("per_importance", 5)),
        loot_value_divisor=int(fame_data.get("loot_value_divisor", 10)),
        per_thrall=int(fame_data.get("per_thrall", 3)),
        per_special_item=int(fame_data.get("per_special_item", 10)),
        failure_fame=int(fame_data.get("failure_fame", 2)),
    )

    diplomacy = DiplomacyConfig(
        base_penalty=float(diplomacy_data.get("base_penalty", -30.0)),
        success_penalty=float(diplomacy_data.get("success_penalty", -10.0)),
        heavy_casualty_threshold=int(diplomacy_data.get("heavy_casualty_threshold", 5)),
        heavy_casualty_penalty=float(diplomacy_data.get("heavy_casualty_penalty", -10.0)),
        weakened_penalty=float(diplomacy_data.get("weakened_penalty", -15.0)),
        religious_multiplier=float(diplomacy_data.get("religious_multiplier", 1.5)),
        high_value_importance=int(diplomacy_data.get("high_value_importance", 4)),
        high_value_penalty=float(diplomacy_data.get("high_value_penalty", -10.0)),
        spillover_divisor=float(diplomacy_data.get("spillover_divisor", 3.0)),
        admiration_bonus=int(diplomacy_data.get("admiration_bonus", 5)),
    )
    if diplomacy.spillover_divisor <= 0:
        raise RulesError(f"{path}: diplomacy.spillover_divisor must be > 0")

    return travel, targeting, combat, loot, fame, diplomacy
