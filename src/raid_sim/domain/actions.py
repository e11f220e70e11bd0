"""Action definitions for reducer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypeAlias, Union

from raid_sim.domain.types import Leader


@dataclass(frozen=True)
class RaidOrder:
    raid_class_id: str
    target_id: str | None
    size: int
    ships: int = 0
    units: dict[str, int] | None = None
    leader: Leader | None = None


@dataclass(frozen=True)
class CreateRaid:
    order: RaidOrder


@dataclass(frozen=True)
class AdvanceDays:
    days: int = 1


@dataclass(frozen=True)
class RecallRaid:
    raid_id: str


Action: TypeAlias = Union[
    CreateRaid,
    AdvanceDays,
    RecallRaid,
]
