"""Raid target scoring."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from raid_sim.domain.types import Resources, Settlement
from raid_sim.rules.ruleset import RaidClass, TargetingConfig


@dataclass(frozen=True)
class TargetEvaluation:
    settlement: Settlement
    score: float
    distance: float
    defense_strength: int
    wealth_score: float
    relationship: float
    coastal: bool


def wealth_of(resources: Resources, config: TargetingConfig) -> float:
    return sum(resources.get(name) * weight for name, weight in config.wealth_values.items())


def relationship_towards(settlement: Settlement, origin: Settlement, config: TargetingConfig) -> float:
    value = settlement.relations.get(origin.id)
    if value is None:
        return config.default_relationship
    return max(-100.0, min(100.0, float(value)))


def score_target(
    settlement: Settlement,
    origin: Settlement,
    raid_class: RaidClass,
    config: TargetingConfig,
) -> TargetEvaluation:
    distance = origin.position.distance_to(settlement.position)
    defense = settlement.military.defenses
    wealth = wealth_of(settlement.resources, config)
    relationship = relationship_towards(settlement, origin, config)

    score = config.distance_penalty * (distance / 100)
    score += config.defense_weight * defense
    score += config.wealth_weight * (wealth / 100)
    score += config.relationship_weight * (relationship / 100)

    if raid_class.target_preference == "coastal":
        score += config.coastal_bonus if settlement.coastal else config.inland_penalty
    elif raid_class.target_preference == "nearby":
        score -= distance / config.nearby_distance_divisor
    elif raid_class.target_preference == "wealthy":
        score += wealth / config.wealthy_wealth_divisor

    return TargetEvaluation(
        settlement=settlement,
        score=score,
        distance=distance,
        defense_strength=defense,
        wealth_score=wealth,
        relationship=relationship,
        coastal=settlement.coastal,
    )


def evaluate_targets(
    candidates: Iterable[Settlement],
    origin: Settlement,
    raid_class: RaidClass,
    config: TargetingConfig,
) -> list[TargetEvaluation]:
    """Score every candidate except the origin, best first.

    Equal scores keep candidate order. Classes that need ships still score
    inland settlements; rejecting them is left to raid creation.
    """
    evaluated = [
        score_target(settlement, origin, raid_class, config)
        for settlement in candidates
        if settlement.id != origin.id and not settlement.is_player
    ]
    return sorted(evaluated, key=lambda target: target.score, reverse=True)
