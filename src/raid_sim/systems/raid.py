"""Raid lifecycle: creation, day-by-day advancement and recall."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from random import Random
from typing import Callable

from raid_sim.domain.actions import RaidOrder
from raid_sim.domain.errors import (
    RaidDataIntegrityError,
    RaidResourceError,
    RaidStateError,
    RaidValidationError,
)
from raid_sim.domain.events import COMBAT_RESOLVED, PHASE_CHANGED, RAID_FINISHED, RAID_RECALLED, RaidNotice
from raid_sim.domain.ports import RaidPorts
from raid_sim.domain.raid import Casualties, LootBundle, Raid, RaidResult
from raid_sim.domain.types import RaidPhase, Resources, Settlement, SettlementSnapshot
from raid_sim.rules.ruleset import RaidClass, Ruleset
from raid_sim.systems.combat import resolve_combat
from raid_sim.systems.consequences import RaidOutcome, apply_consequences
from raid_sim.systems.loot import determine_loot
from raid_sim.systems.travel import raid_duration, recall_return_days, supplies_needed, travel_days

logger = logging.getLogger(__name__)

RECALLABLE_PHASES = (RaidPhase.PREPARING, RaidPhase.TRAVELING)

CLASS_NAME_PREFIXES = {
    "quick_raid": "The Swift Strike on",
    "great_raid": "The Great Ravaging of",
    "sea_raid": "The Sea-borne Assault on",
}
GENERIC_NAME_PREFIXES = (
    "The Ravaging of",
    "The Assault on",
    "The Sacking of",
    "The Plunder of",
    "The Storm of",
    "The Conquest of",
)

# (day, raid seq, purpose) -> seeded Random
RaidRngProvider = Callable[[int, int, str], Random]


@dataclass()
class LifecycleContext:
    rules: Ruleset
    ports: RaidPorts
    rng: RaidRngProvider
    notify: Callable[[RaidNotice], None]


def raid_name(raid_class_id: str, target_name: str, rng: Random) -> str:
    prefix = CLASS_NAME_PREFIXES.get(raid_class_id)
    if prefix is None:
        prefix = rng.choice(GENERIC_NAME_PREFIXES)
    return f"{prefix} {target_name}"


def _resolve_units(order: RaidOrder, rules: Ruleset) -> dict[str, int]:
    if not order.units:
        return {rules.combat.default_unit_type: order.size}
    units: dict[str, int] = {}
    for unit_id, count in order.units.items():
        if unit_id not in rules.unit_types:
            raise RaidValidationError(f"Unknown unit type: {unit_id}")
        if count < 0:
            raise RaidValidationError(f"Unit count for {unit_id} must be >= 0")
        if count:
            units[unit_id] = count
    if sum(units.values()) != order.size:
        raise RaidValidationError(
            f"Unit breakdown totals {sum(units.values())}, party size is {order.size}"
        )
    return units


def validate_order(order: RaidOrder, rules: Ruleset, ports: RaidPorts, origin: Settlement) -> tuple[RaidClass, Settlement, dict[str, int]]:
    """Check an order against the rules and the world. Nothing is reserved."""
    raid_class = rules.raid_class(order.raid_class_id)
    if raid_class is None:
        raise RaidValidationError(f"Unknown raid class: {order.raid_class_id}")
    if not raid_class.min_size <= order.size <= raid_class.max_size:
        raise RaidValidationError(
            f"{raid_class.name} needs between {raid_class.min_size} and {raid_class.max_size} warriors"
        )
    if not order.target_id:
        raise RaidValidationError("No target selected")
    target = ports.world.get_settlement(order.target_id)
    if target is None:
        raise RaidValidationError(f"Unknown target: {order.target_id}")
    if target.id == origin.id or target.is_player:
        raise RaidValidationError("Cannot raid your own settlement")
    if order.ships < 0:
        raise RaidValidationError("Ship count must be >= 0")
    if raid_class.requires_ships:
        needed = raid_class.min_ships(order.size)
        if order.ships < needed:
            raise RaidValidationError(f"{raid_class.name} of {order.size} warriors needs at least {needed} ships")
        if not target.coastal:
            raise RaidValidationError(f"{raid_class.name} can only strike coastal settlements")
    return raid_class, target, _resolve_units(order, rules)


def create_raid(
    order: RaidOrder,
    *,
    rules: Ruleset,
    ports: RaidPorts,
    day: int,
    seq: int,
    rng: Random,
) -> Raid:
    """Validate the order, reserve food and warriors, and build the raid.

    Either both reservations hold or neither does.
    """
    origin = ports.world.player_settlement()
    raid_class, target, units = validate_order(order, rules, ports, origin)

    one_way = travel_days(origin.position, target.position, raid_class, rules.travel.distance_per_day)
    duration = raid_duration(raid_class, one_way, rules.travel.raid_days)
    food = supplies_needed(order.size, duration, rules.travel.supplies_per_warrior_per_day)
    provisions = Resources(food=food)

    if not ports.resources.can_afford(provisions) or not ports.resources.subtract(provisions):
        raise RaidResourceError(f"Not enough food: need {food}, have {ports.resources.get('food')}")
    if not ports.population.reserve_warriors(order.size):
        ports.resources.add(provisions)
        raise RaidResourceError(
            f"Not enough warriors: need {order.size}, have {ports.population.get_available_warriors()}"
        )

    raid = Raid(
        id=f"raid-{seq:04d}",
        seq=seq,
        name=raid_name(raid_class.id, target.name, rng),
        raid_class_id=raid_class.id,
        origin_id=origin.id,
        target=SettlementSnapshot.of(target),
        size=order.size,
        units=units,
        supplies=food,
        start_day=day,
        travel_days=one_way,
        estimated_return_day=day + duration,
        days_remaining=raid_class.preparation_days,
        ships=order.ships,
        leader=order.leader,
    )
    raid.log(day, "created", f"{raid.name} begins preparations with {raid.size} warriors.")
    logger.info(
        "Created %s (%s) against %s: size=%d travel=%d food=%d",
        raid.id,
        raid_class.id,
        target.id,
        raid.size,
        one_way,
        food,
    )
    return raid


def _set_phase(raid: Raid, phase: RaidPhase, day: int, ctx: LifecycleContext, days_remaining: int = 0) -> None:
    previous = raid.phase
    raid.phase = phase
    raid.phase_history.append(phase)
    raid.days_remaining = days_remaining
    raid.log(day, "phase", f"{previous.value} -> {phase.value}")
    logger.info("Raid %s: %s -> %s on day %d", raid.id, previous.value, phase.value, day)
    ctx.notify(
        RaidNotice(
            kind=PHASE_CHANGED,
            raid_id=raid.id,
            message=f"{raid.name} is now {phase.value}",
            data={"from": previous.value, "to": phase.value, "day": day},
        )
    )


def _raid_class(raid: Raid, rules: Ruleset) -> RaidClass:
    raid_class = rules.raid_class(raid.raid_class_id)
    if raid_class is None:
        raise RaidDataIntegrityError(f"Raid class {raid.raid_class_id} is no longer defined")
    return raid_class


def _require_target(raid: Raid, ports: RaidPorts) -> Settlement:
    settlement = ports.world.get_settlement(raid.target.settlement_id)
    if settlement is None:
        raise RaidDataIntegrityError(f"Target {raid.target.settlement_id} no longer exists")
    return settlement


def _resolve_raid(raid: Raid, raid_class: RaidClass, day: int, ctx: LifecycleContext) -> None:
    combat = resolve_combat(raid, raid.target, raid_class, ctx.rules, ctx.rng(day, raid.seq, "combat"))
    loot = determine_loot(raid, raid.target, combat, raid_class, ctx.rules, ctx.rng(day, raid.seq, "loot"))

    raid.combat = combat
    raid.loot = loot
    raid.casualties = Casualties(
        attacker=combat.casualties_by_unit,
        attacker_total=combat.raider_casualties,
        defender_total=combat.defender_casualties,
    )
    raid.result = RaidResult(success=combat.success, loot=loot, casualties=raid.casualties)

    verdict = "succeeds" if combat.success else "is repulsed"
    message = (
        f"{raid.name} {verdict}: {combat.raider_casualties} raiders and "
        f"{combat.defender_casualties} defenders fall."
    )
    raid.log(day, "combat", message)
    ctx.notify(
        RaidNotice(
            kind=COMBAT_RESOLVED,
            raid_id=raid.id,
            message=message,
            data={
                "success": combat.success,
                "success_chance": combat.success_chance,
                "strength_ratio": combat.strength_ratio,
            },
        )
    )


def _finish(
    raid: Raid,
    raid_class: RaidClass | None,
    phase: RaidPhase,
    day: int,
    ctx: LifecycleContext,
    outcome: RaidOutcome,
    reason: str | None = None,
) -> None:
    _set_phase(raid, phase, day, ctx)
    raid.result = apply_consequences(raid, raid_class, ctx.rules, ctx.ports, outcome, failure_reason=reason)
    raid.log(day, "finished", f"{raid.name} ends: {outcome.value}.")
    ctx.notify(
        RaidNotice(
            kind=RAID_FINISHED,
            raid_id=raid.id,
            message=f"{raid.name} has ended ({outcome.value})",
            data={"success": raid.result.success, "fame": raid.result.fame_awarded, "phase": phase.value},
        )
    )


def _fail_raid(raid: Raid, day: int, ctx: LifecycleContext, exc: RaidDataIntegrityError) -> None:
    # Losses from a fight already fought stay on the books; nothing is carried home.
    logger.warning("Raid %s failed: %s", raid.id, exc)
    raid.loot = LootBundle()
    if raid.combat is None:
        raid.casualties = Casualties()
    raid_class = ctx.rules.raid_class(raid.raid_class_id)
    _finish(raid, raid_class, RaidPhase.FAILED, day, ctx, RaidOutcome.VANISHED, reason=str(exc))


def _enter_next_phase(raid: Raid, day: int, ctx: LifecycleContext) -> None:
    if raid.phase == RaidPhase.PREPARING:
        raid.log(day, "departed", f"{raid.name} sets out for {raid.target.name}.")
        _set_phase(raid, RaidPhase.TRAVELING, day, ctx, raid.travel_days)
    elif raid.phase == RaidPhase.TRAVELING:
        try:
            raid_class = _raid_class(raid, ctx.rules)
            _require_target(raid, ctx.ports)
        except RaidDataIntegrityError as exc:
            _fail_raid(raid, day, ctx, exc)
            return
        _set_phase(raid, RaidPhase.RAIDING, day, ctx, ctx.rules.travel.raid_days)
        _resolve_raid(raid, raid_class, day, ctx)
    elif raid.phase == RaidPhase.RAIDING:
        _set_phase(raid, RaidPhase.RETURNING, day, ctx, raid.travel_days)
    elif raid.phase == RaidPhase.RETURNING:
        try:
            raid_class = _raid_class(raid, ctx.rules)
        except RaidDataIntegrityError as exc:
            _fail_raid(raid, day, ctx, exc)
            return
        if raid.recalled:
            outcome = RaidOutcome.RECALLED
        elif raid.combat is not None and raid.combat.success:
            outcome = RaidOutcome.VICTORY
        else:
            outcome = RaidOutcome.DEFEAT
        raid.log(day, "returned", f"{raid.survivors} warriors return home.")
        _finish(raid, raid_class, RaidPhase.COMPLETED, day, ctx, outcome)
    else:
        raise RaidStateError(f"Raid {raid.id} has no phase after {raid.phase.value}")


def advance_raid(raid: Raid, day: int, ctx: LifecycleContext) -> bool:
    """Spend one day on a raid. ``day`` is the day being lived through.

    Returns True when the raid reached a terminal phase on this day.
    """
    if raid.is_terminal:
        raise RaidStateError(f"Raid {raid.id} is already {raid.phase.value}")

    burn = raid.size * ctx.rules.travel.supplies_per_warrior_per_day
    raid.supplies = max(0, raid.supplies - burn)
    raid.days_remaining -= 1
    if raid.days_remaining <= 0:
        _enter_next_phase(raid, day, ctx)
    return raid.is_terminal


def recall_raid(raid: Raid, day: int, ctx: LifecycleContext) -> None:
    if raid.phase not in RECALLABLE_PHASES:
        raise RaidStateError(f"Raid {raid.id} cannot be recalled while {raid.phase.value}")

    elapsed = raid.travel_days - raid.days_remaining if raid.phase == RaidPhase.TRAVELING else 0
    return_days = recall_return_days(elapsed, ctx.rules.travel.recall_return_factor)
    raid.recalled = True
    raid.loot = LootBundle()
    raid.casualties = Casualties()
    raid.estimated_return_day = day + return_days
    raid.log(day, "recalled", f"{raid.name} is recalled and turns for home.")
    _set_phase(raid, RaidPhase.RETURNING, day, ctx, return_days)
    ctx.notify(
        RaidNotice(
            kind=RAID_RECALLED,
            raid_id=raid.id,
            message=f"{raid.name} has been recalled",
            data={"return_days": return_days},
        )
    )
