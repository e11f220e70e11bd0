"""Common types and enums."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum


class SettlementType(str, Enum):
    """Culture of a settlement; selects its loot table and unit roster."""

    VIKING = "viking"
    ANGLO = "anglo"
    FRANKISH = "frankish"
    NEUTRAL = "neutral"


class RaidPhase(str, Enum):
    PREPARING = "preparing"
    TRAVELING = "traveling"
    RAIDING = "raiding"
    RETURNING = "returning"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (RaidPhase.COMPLETED, RaidPhase.FAILED)


PHASE_ORDER: tuple[RaidPhase, ...] = (
    RaidPhase.PREPARING,
    RaidPhase.TRAVELING,
    RaidPhase.RAIDING,
    RaidPhase.RETURNING,
    RaidPhase.COMPLETED,
)


@dataclass(frozen=True)
class Position:
    x: float
    y: float

    def distance_to(self, other: "Position") -> float:
        dx = other.x - self.x
        dy = other.y - self.y
        return (dx * dx + dy * dy) ** 0.5


@dataclass(frozen=True)
class Resources:
    food: int = 0
    wood: int = 0
    stone: int = 0
    metal: int = 0
    silver: int = 0
    gold: int = 0
    thralls: int = 0

    @staticmethod
    def names() -> tuple[str, ...]:
        return tuple(f.name for f in fields(Resources))

    @classmethod
    def from_dict(cls, data: dict | None) -> "Resources":
        if not data:
            return cls()
        unknown = set(data) - set(cls.names())
        if unknown:
            raise ValueError(f"Unknown resource(s): {sorted(unknown)}")
        return cls(**{name: int(value) for name, value in data.items()})

    def as_dict(self) -> dict[str, int]:
        return {name: getattr(self, name) for name in self.names()}

    def get(self, name: str) -> int:
        if name not in self.names():
            raise ValueError(f"Unknown resource: {name}")
        return getattr(self, name)

    def with_amount(self, name: str, amount: int) -> "Resources":
        values = self.as_dict()
        if name not in values:
            raise ValueError(f"Unknown resource: {name}")
        values[name] = amount
        return Resources(**values)

    def plus(self, other: "Resources") -> "Resources":
        return Resources(**{n: getattr(self, n) + getattr(other, n) for n in self.names()})

    def minus(self, other: "Resources") -> "Resources":
        return Resources(**{n: getattr(self, n) - getattr(other, n) for n in self.names()})

    def covers(self, other: "Resources") -> bool:
        return all(getattr(self, n) >= getattr(other, n) for n in self.names())

    def clamp_non_negative(self) -> "Resources":
        return Resources(**{n: max(0, getattr(self, n)) for n in self.names()})

    def is_empty(self) -> bool:
        return all(getattr(self, n) == 0 for n in self.names())


@dataclass(frozen=True)
class Leader:
    name: str
    combat: int = 0
    leadership: int = 0


@dataclass()
class Military:
    warriors: int = 0
    defenses: int = 0
    ships: int = 0


@dataclass()
class Settlement:
    """Live world record, owned by the world registry."""

    id: str
    name: str
    type: SettlementType
    position: Position
    faction_id: str | None = None
    is_player: bool = False
    coastal: bool = False
    religious: bool = False
    importance: int = 1
    prosperity: int = 0
    population: int = 0
    military: Military = field(default_factory=Military)
    resources: Resources = field(default_factory=Resources)
    # Stance of this settlement towards other settlements, -100..100.
    relations: dict[str, float] = field(default_factory=dict)
    # 0..1, walls, terrain and other home-ground advantages.
    fortification_bonus: float = 0.0


@dataclass(frozen=True)
class Faction:
    id: str
    name: str
    culture: SettlementType
    is_player: bool = False


@dataclass(frozen=True)
class SettlementSnapshot:
    """Target state frozen at raid creation; combat and loot read only this."""

    settlement_id: str
    name: str
    type: SettlementType
    faction_id: str | None
    position: Position
    coastal: bool
    religious: bool
    importance: int
    prosperity: int
    population: int
    warriors: int
    defenses: int
    ships: int
    fortification_bonus: float
    resources: Resources

    @classmethod
    def of(cls, settlement: Settlement) -> "SettlementSnapshot":
        return cls(
            settlement_id=settlement.id,
            name=settlement.name,
            type=settlement.type,
            faction_id=settlement.faction_id,
            position=settlement.position,
            coastal=settlement.coastal,
            religious=settlement.religious,
            importance=settlement.importance,
            prosperity=settlement.prosperity,
            population=settlement.population,
            warriors=settlement.military.warriors,
            defenses=settlement.military.defenses,
            ships=settlement.military.ships,
            fortification_bonus=settlement.fortification_bonus,
            resources=settlement.resources,
        )
