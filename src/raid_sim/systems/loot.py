from __future__ import annotations

import math
import random

from raid_sim.domain.raid import CombatResult, LootBundle, Raid, SpecialItem
from raid_sim.domain.types import Resources, SettlementSnapshot
from raid_sim.rules.ruleset import LootConfig, LootEntry, RaidClass, Ruleset


def holding_of(target: SettlementSnapshot, resource: str) -> int:
    # Thralls are taken from the population rather than a stockpile.
    if resource == "thralls":
        return target.population
    return target.resources.get(resource)


def cap_to_holdings(amounts: dict[str, int], target: SettlementSnapshot, config: LootConfig) -> Resources:
    capped: dict[str, int] = {}
    for resource, amount in amounts.items():
        limit = math.floor(holding_of(target, resource) * config.lootable_fraction)
        capped[resource] = max(0, min(amount, limit))
    return Resources.from_dict(capped)


def _roll(rng: random.Random, chance: float) -> bool:
    return rng.random() * 100 < chance


def _roll_amount(rng: random.Random, entry: LootEntry, effectiveness: float) -> int:
    return math.ceil(rng.randint(entry.min, entry.max) * effectiveness)


def determine_loot(
    raid: Raid,
    target: SettlementSnapshot,
    combat: CombatResult,
    raid_class: RaidClass,
    rules: Ruleset,
    rng: random.Random,
) -> LootBundle:
    """Roll loot for a resolved fight. Never takes more than the lootable share of a holding."""
    config = rules.loot
    if not combat.success:
        trickle = {
            "food": rng.randint(1, config.failure_food_max),
            "wood": rng.randint(1, config.failure_wood_max),
        }
        return LootBundle(resources=cap_to_holdings(trickle, target, config))

    table = rules.loot_table(target.type)
    effectiveness = combat.strength_ratio * raid_class.loot_modifier
    amounts: dict[str, int] = {}

    for resource, entry in table.common.items():
        if _roll(rng, entry.chance):
            amounts[resource] = amounts.get(resource, 0) + _roll_amount(rng, entry, effectiveness)

    for resource, entry in table.rare.items():
        if _roll(rng, entry.chance * effectiveness):
            amounts[resource] = amounts.get(resource, 0) + _roll_amount(rng, entry, effectiveness)

    special = tuple(
        SpecialItem(name=item.name, description=item.description)
        for item in table.special
        if _roll(rng, item.chance * effectiveness)
    )

    return LootBundle(resources=cap_to_holdings(amounts, target, config), special=special)
