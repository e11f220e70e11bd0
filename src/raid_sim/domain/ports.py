"""Interfaces of the stores the raid engine reads and commits to."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Protocol

from raid_sim.domain.types import Faction, Position, Resources, Settlement


class PopulationStore(Protocol):
    def get_available_warriors(self) -> int: ...

    def reserve_warriors(self, count: int) -> bool: ...

    def release_warriors(self, count: int) -> None: ...

    def record_casualties(self, count: int) -> None: ...


class ResourceStore(Protocol):
    def get(self, resource: str) -> int: ...

    def can_afford(self, bundle: Resources) -> bool: ...

    def subtract(self, bundle: Resources) -> bool: ...

    def add(self, bundle: Resources) -> None: ...


class WorldRegistry(Protocol):
    def get_settlement(self, settlement_id: str) -> Settlement | None: ...

    def get_settlement_position(self, settlement_id: str) -> Position | None: ...

    def settlements(self) -> Iterable[Settlement]: ...

    def factions(self) -> Iterable[Faction]: ...

    def player_settlement(self) -> Settlement: ...

    def apply_raid_damage(
        self,
        settlement_id: str,
        loot: Resources,
        defender_casualties: int,
        defenses_weakened: bool,
    ) -> None: ...


class RelationMatrix(Protocol):
    def get_relation(self, faction_a: str, faction_b: str) -> float: ...

    def modify_relation(self, faction_a: str, faction_b: str, delta: float) -> float: ...


class FameTracker(Protocol):
    def add_fame(self, amount: int, reason: str) -> None: ...

    def total_fame(self) -> int: ...


@dataclass()
class RaidPorts:
    """The stores a raid engine is wired to."""

    population: PopulationStore
    resources: ResourceStore
    world: WorldRegistry
    relations: RelationMatrix
    fame: FameTracker
