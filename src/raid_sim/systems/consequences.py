"""Commits a finished raid to the stores it touches.

Runs exactly once per raid, at its terminal transition. Warriors, loot,
leftover supplies, fame and relation changes all flow out from here and
nowhere else.
"""

from __future__ import annotations

import logging
import math
from enum import Enum
from typing import Iterable

from raid_sim.domain.ports import RaidPorts
from raid_sim.domain.raid import DiplomaticEffects, LootBundle, Raid, RaidResult
from raid_sim.domain.types import Faction, Resources, SettlementType
from raid_sim.rules.ruleset import DiplomacyConfig, FameConfig, RaidClass, Ruleset

logger = logging.getLogger(__name__)

PLAYER_FACTION_ID = "player"


class RaidOutcome(str, Enum):
    VICTORY = "victory"
    DEFEAT = "defeat"
    RECALLED = "recalled"
    VANISHED = "vanished"


def loot_value(resources: Resources, values: dict[str, float]) -> float:
    return sum(resources.get(name) * weight for name, weight in values.items())


def compute_fame(
    raid: Raid,
    raid_class: RaidClass | None,
    outcome: RaidOutcome,
    config: FameConfig,
    values: dict[str, float],
) -> int:
    if outcome == RaidOutcome.DEFEAT:
        return config.failure_fame
    if outcome != RaidOutcome.VICTORY:
        return 0
    fame = config.base
    fame += raid.target.importance * config.per_importance
    fame += math.floor(loot_value(raid.loot.resources, values) / config.loot_value_divisor)
    fame += raid.loot.resources.thralls * config.per_thrall
    fame += len(raid.loot.special) * config.per_special_item
    modifier = raid_class.fame_modifier if raid_class is not None else 1.0
    return math.floor(fame * modifier)


def compute_diplomacy(
    raid: Raid,
    raid_class: RaidClass | None,
    outcome: RaidOutcome,
    factions: Iterable[Faction],
    config: DiplomacyConfig,
    player_faction_id: str,
) -> DiplomaticEffects:
    target = raid.target
    if outcome == RaidOutcome.RECALLED:
        return DiplomaticEffects(target_faction_id=target.faction_id)

    base = config.base_penalty * (raid_class.infamy_modifier if raid_class is not None else 1.0)
    if outcome == RaidOutcome.VANISHED:
        return DiplomaticEffects(target_faction_id=target.faction_id, target_delta=math.ceil(base / 2))

    success = outcome == RaidOutcome.VICTORY
    combat = raid.combat
    delta = base
    if success:
        delta += config.success_penalty
        if raid.casualties.defender_total > config.heavy_casualty_threshold:
            delta += config.heavy_casualty_penalty
        if combat is not None and combat.defenses_weakened:
            delta += config.weakened_penalty
    if target.religious:
        delta *= config.religious_multiplier
    if target.importance >= config.high_value_importance:
        delta += config.high_value_penalty
    target_delta = math.ceil(delta if success else delta / 2)

    spillover: dict[str, int] = {}
    admirers: dict[str, int] = {}
    spill = math.ceil(target_delta / config.spillover_divisor)
    for faction in factions:
        if faction.is_player or faction.id in (player_faction_id, target.faction_id):
            continue
        if faction.culture == target.type and spill:
            spillover[faction.id] = spill
        elif success and faction.culture == SettlementType.VIKING and target.type != SettlementType.VIKING:
            admirers[faction.id] = config.admiration_bonus

    return DiplomaticEffects(
        target_faction_id=target.faction_id,
        target_delta=target_delta,
        spillover=spillover,
        admirers=admirers,
    )


def player_faction_of(raid: Raid, ports: RaidPorts) -> str:
    origin = ports.world.get_settlement(raid.origin_id)
    if origin is not None and origin.faction_id:
        return origin.faction_id
    return PLAYER_FACTION_ID


def apply_consequences(
    raid: Raid,
    raid_class: RaidClass | None,
    rules: Ruleset,
    ports: RaidPorts,
    outcome: RaidOutcome,
    failure_reason: str | None = None,
) -> RaidResult:
    survivors = raid.size - raid.casualties.attacker_total
    ports.population.release_warriors(survivors)
    if raid.casualties.attacker_total:
        ports.population.record_casualties(raid.casualties.attacker_total)

    deposit = raid.loot.resources.plus(Resources(food=max(0, raid.supplies)))
    if not deposit.is_empty():
        ports.resources.add(deposit)

    fame = compute_fame(raid, raid_class, outcome, rules.fame, rules.targeting.wealth_values)
    if fame > 0:
        reason = "Successful raid" if outcome == RaidOutcome.VICTORY else "Raid"
        ports.fame.add_fame(fame, f"{reason}: {raid.name}")

    player_faction = player_faction_of(raid, ports)
    effects = compute_diplomacy(raid, raid_class, outcome, ports.world.factions(), rules.diplomacy, player_faction)
    for faction_id, delta in effects.all_deltas().items():
        ports.relations.modify_relation(player_faction, faction_id, delta)

    if outcome in (RaidOutcome.VICTORY, RaidOutcome.DEFEAT):
        settlement_id = raid.target.settlement_id
        if ports.world.get_settlement(settlement_id) is None:
            logger.warning("Raid %s: %s vanished before damage could be applied", raid.id, settlement_id)
        else:
            ports.world.apply_raid_damage(
                settlement_id,
                raid.loot.resources,
                raid.casualties.defender_total,
                raid.combat is not None and raid.combat.defenses_weakened,
            )

    logger.info(
        "Raid %s finished (%s): survivors=%d fame=%d relation=%+d",
        raid.id,
        outcome.value,
        survivors,
        fame,
        effects.target_delta,
    )
    return RaidResult(
        success=outcome == RaidOutcome.VICTORY,
        loot=raid.loot if outcome != RaidOutcome.RECALLED else LootBundle(),
        casualties=raid.casualties,
        fame_awarded=fame,
        diplomatic_effects=effects,
        recalled=outcome == RaidOutcome.RECALLED,
        failure_reason=failure_reason,
    )
