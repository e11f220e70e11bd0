from __future__ import annotations

import math

from raid_sim.domain.types import Position
from raid_sim.rules.ruleset import RaidClass

DEFAULT_DISTANCE_PER_DAY = 10.0


def travel_days(
    origin: Position,
    target: Position,
    raid_class: RaidClass,
    distance_per_day: float = DEFAULT_DISTANCE_PER_DAY,
) -> int:
    """Whole days for one leg of the journey, never less than one."""
    days = origin.distance_to(target) / distance_per_day
    days /= raid_class.travel_speed_modifier
    return max(1, math.ceil(days))


def supplies_needed(warriors: int, duration_days: int, per_warrior_per_day: int = 1) -> int:
    return warriors * duration_days * per_warrior_per_day


def raid_duration(raid_class: RaidClass, one_way_days: int, raid_days: int = 1) -> int:
    """Preparation, outbound leg, raid day(s) and the way home."""
    return raid_class.preparation_days + one_way_days + raid_days + one_way_days


def recall_return_days(elapsed_outbound_days: int, factor: float = 1.0) -> int:
    return max(1, math.ceil(max(0, elapsed_outbound_days) * factor))
