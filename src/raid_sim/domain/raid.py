"""Raid records and their outcome models."""

from __future__ import annotations

from dataclasses import dataclass, field

from raid_sim.domain.types import Leader, RaidPhase, Resources, SettlementSnapshot


@dataclass(frozen=True)
class SpecialItem:
    name: str
    description: str


@dataclass(frozen=True)
class LootBundle:
    resources: Resources = field(default_factory=Resources)
    special: tuple[SpecialItem, ...] = ()

    def is_empty(self) -> bool:
        return self.resources.is_empty() and not self.special


@dataclass(frozen=True)
class Casualties:
    attacker: dict[str, int] = field(default_factory=dict)
    attacker_total: int = 0
    defender_total: int = 0


@dataclass(frozen=True)
class DiplomaticEffects:
    target_faction_id: str | None = None
    target_delta: int = 0
    spillover: dict[str, int] = field(default_factory=dict)
    admirers: dict[str, int] = field(default_factory=dict)

    def all_deltas(self) -> dict[str, int]:
        deltas: dict[str, int] = {}
        if self.target_faction_id is not None and self.target_delta:
            deltas[self.target_faction_id] = self.target_delta
        for faction_id, delta in (*self.spillover.items(), *self.admirers.items()):
            deltas[faction_id] = deltas.get(faction_id, 0) + delta
        return deltas


@dataclass(frozen=True)
class CombatResult:
    success: bool
    raider_strength: float
    defender_strength: float
    strength_ratio: float
    success_chance: float
    raider_casualties: int
    defender_casualties: int
    defenses_weakened: bool
    casualties_by_unit: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class RaidResult:
    success: bool
    loot: LootBundle
    casualties: Casualties
    fame_awarded: int = 0
    diplomatic_effects: DiplomaticEffects = field(default_factory=DiplomaticEffects)
    recalled: bool = False
    failure_reason: str | None = None


@dataclass(frozen=True)
class RaidLogEntry:
    day: int
    kind: str
    message: str


@dataclass()
class Raid:
    id: str
    seq: int
    name: str
    raid_class_id: str
    origin_id: str
    target: SettlementSnapshot

    size: int
    units: dict[str, int]
    supplies: int
    start_day: int
    travel_days: int
    estimated_return_day: int
    days_remaining: int

    ships: int = 0
    leader: Leader | None = None
    morale: int = 100

    phase: RaidPhase = RaidPhase.PREPARING
    phase_history: list[RaidPhase] = field(default_factory=lambda: [RaidPhase.PREPARING])
    recalled: bool = False

    loot: LootBundle = field(default_factory=LootBundle)
    casualties: Casualties = field(default_factory=Casualties)
    combat: CombatResult | None = None
    events: list[RaidLogEntry] = field(default_factory=list)
    result: RaidResult | None = None

    @property
    def is_terminal(self) -> bool:
        return self.phase.is_terminal

    @property
    def survivors(self) -> int:
        return self.size - self.casualties.attacker_total

    def log(self, day: int, kind: str, message: str) -> None:
        self.events.append(RaidLogEntry(day=day, kind=kind, message=message))
