from __future__ import annotations

import logging
import math
import random

from raid_sim.domain.raid import CombatResult, Raid
from raid_sim.domain.types import Leader, SettlementSnapshot
from raid_sim.rules.ruleset import CombatConfig, RaidClass, Ruleset, UnitType

logger = logging.getLogger(__name__)

# Unit defense at which a unit type would take no losses at all.
DEFENSE_IMMUNITY = 20


def raider_strength(raid: Raid, raid_class: RaidClass, config: CombatConfig) -> float:
    strength = raid.size * raid_class.combat_strength_modifier
    strength *= raid.morale / 100
    if raid.leader is not None:
        strength *= 1 + raid.leader.combat * config.leader_strength_per_skill
    if raid_class.requires_ships and raid.ships > 0:
        strength *= 1 + raid.ships * config.ship_bonus_per_ship
    return strength


def defender_strength(target: SettlementSnapshot, config: CombatConfig) -> float:
    strength = target.warriors * config.warrior_strength
    strength += target.defenses * config.defense_strength
    if target.coastal and target.ships:
        strength += target.ships * config.ship_strength
    # Civilians take up arms when the garrison is thin.
    if target.warriors < config.civilian_levy_threshold:
        strength += target.population * config.civilian_strength
    return strength


def strength_ratio(raider: float, defender: float, config: CombatConfig) -> float:
    return (raider * config.raider_strength_weight) / max(1.0, defender * config.defender_strength_weight)


def success_chance(
    ratio: float,
    morale: int,
    leader: Leader | None,
    fortification_bonus: float,
    config: CombatConfig,
    jitter: float = 0.0,
) -> float:
    """Percent chance of a successful raid, clamped to the configured bounds."""
    chance = config.base_success_chance
    if ratio > 1:
        chance += min(config.ratio_bonus_cap, (ratio - 1) * config.ratio_bonus_scale)
    else:
        chance -= min(config.ratio_penalty_cap, (1 - ratio) * config.ratio_penalty_scale)
    chance += (morale - 50) * config.morale_factor
    if leader is not None and leader.combat:
        chance += leader.combat * config.leadership_bonus
    chance -= fortification_bonus * config.fortification_chance_penalty
    chance += jitter
    return max(config.min_success_chance, min(config.max_success_chance, chance))


def roll_jitter(rng: random.Random, config: CombatConfig) -> float:
    return (rng.random() - 0.5) * 2 * config.randomness_factor * 100


def raid_casualty_counts(
    raid: Raid,
    target: SettlementSnapshot,
    raid_class: RaidClass,
    ratio: float,
    success: bool,
    config: CombatConfig,
) -> tuple[int, int]:
    danger = raid_class.danger_level / 2
    fortification = 1 + target.fortification_bonus
    inverse = 1 / max(ratio, config.min_ratio_for_casualties)

    if success:
        raiders = math.floor(raid.size * (0.05 + inverse * 0.1) * danger * fortification)
        defenders = max(1, math.floor(target.warriors * (0.3 + ratio * 0.2)))
    else:
        raiders = max(1, math.floor(raid.size * (0.15 + inverse * 0.2) * danger * fortification))
        defenders = math.floor(target.warriors * 0.1)

    # At least one raider always makes it home.
    raiders = max(0, min(raiders, raid.size - 1))
    defenders = max(0, min(defenders, target.warriors))
    return raiders, defenders


def split_casualties(total: int, units: dict[str, int], unit_types: dict[str, UnitType]) -> dict[str, int]:
    """Spread losses over unit types, sturdier units losing proportionally fewer."""
    losses = {unit_id: 0 for unit_id in units}
    if total <= 0 or not units:
        return losses

    weights: dict[str, float] = {}
    for unit_id, count in units.items():
        unit = unit_types.get(unit_id)
        defense = unit.defense if unit is not None else 0
        weights[unit_id] = count * (1 - defense / DEFENSE_IMMUNITY)
    weight_sum = sum(weights.values())
    if weight_sum <= 0:
        weights = {unit_id: float(count) for unit_id, count in units.items()}
        weight_sum = sum(weights.values())
    if weight_sum <= 0:
        return losses

    raw = {unit_id: total * weights[unit_id] / weight_sum for unit_id in units}
    for unit_id, count in units.items():
        losses[unit_id] = min(count, math.floor(raw[unit_id]))

    remaining = total - sum(losses.values())
    order = sorted(units, key=lambda unit_id: raw[unit_id] - math.floor(raw[unit_id]), reverse=True)
    while remaining > 0:
        progressed = False
        for unit_id in order:
            if remaining == 0:
                break
            if losses[unit_id] < units[unit_id]:
                losses[unit_id] += 1
                remaining -= 1
                progressed = True
        if not progressed:
            break
    return losses


def resolve_combat(
    raid: Raid,
    target: SettlementSnapshot,
    raid_class: RaidClass,
    rules: Ruleset,
    rng: random.Random,
) -> CombatResult:
    config = rules.combat
    raiders = raider_strength(raid, raid_class, config)
    defenders = defender_strength(target, config)
    ratio = strength_ratio(raiders, defenders, config)

    chance = success_chance(
        ratio,
        raid.morale,
        raid.leader,
        target.fortification_bonus,
        config,
        jitter=roll_jitter(rng, config),
    )
    success = rng.random() * 100 < chance

    raider_losses, defender_losses = raid_casualty_counts(raid, target, raid_class, ratio, success, config)
    by_unit = split_casualties(raider_losses, raid.units, rules.unit_types)

    logger.debug(
        "Combat %s vs %s: ratio=%.2f chance=%.1f success=%s",
        raid.id,
        target.settlement_id,
        ratio,
        chance,
        success,
    )
    return CombatResult(
        success=success,
        raider_strength=raiders,
        defender_strength=defenders,
        strength_ratio=ratio,
        success_chance=chance,
        raider_casualties=raider_losses,
        defender_casualties=defender_losses,
        defenses_weakened=success and ratio > config.weakened_ratio,
        casualties_by_unit=by_unit,
    )
