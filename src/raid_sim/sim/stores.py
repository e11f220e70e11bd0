"""In-memory stores backing a raid engine when no host game supplies its own."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from raid_sim.domain.types import Faction, Position, Resources, Settlement

logger = logging.getLogger(__name__)

RELATION_MIN = -100.0
RELATION_MAX = 100.0


@dataclass()
class WarriorPool:
    available: int
    reserved: int = 0
    fallen: int = 0

    def get_available_warriors(self) -> int:
        return self.available

    def reserve_warriors(self, count: int) -> bool:
        if count <= 0 or count > self.available:
            return False
        self.available -= count
        self.reserved += count
        return True

    def release_warriors(self, count: int) -> None:
        if count > self.reserved:
            logger.warning("Releasing %d warriors but only %d are reserved", count, self.reserved)
            count = self.reserved
        count = max(0, count)
        self.reserved -= count
        self.available += count

    def record_casualties(self, count: int) -> None:
        count = max(0, min(count, self.reserved))
        self.reserved -= count
        self.fallen += count


@dataclass()
class ResourceStockpile:
    stock: Resources = field(default_factory=Resources)

    def get(self, resource: str) -> int:
        return self.stock.get(resource)

    def can_afford(self, bundle: Resources) -> bool:
        return self.stock.covers(bundle)

    def subtract(self, bundle: Resources) -> bool:
        if not self.stock.covers(bundle):
            return False
        self.stock = self.stock.minus(bundle)
        return True

    def add(self, bundle: Resources) -> None:
        self.stock = self.stock.plus(bundle)


@dataclass()
class WorldMap:
    player_id: str
    settlements_by_id: dict[str, Settlement] = field(default_factory=dict)
    factions_by_id: dict[str, Faction] = field(default_factory=dict)

    def get_settlement(self, settlement_id: str) -> Settlement | None:
        return self.settlements_by_id.get(settlement_id)

    def get_settlement_position(self, settlement_id: str) -> Position | None:
        settlement = self.settlements_by_id.get(settlement_id)
        return settlement.position if settlement is not None else None

    def settlements(self) -> list[Settlement]:
        return list(self.settlements_by_id.values())

    def factions(self) -> list[Faction]:
        return list(self.factions_by_id.values())

    def player_settlement(self) -> Settlement:
        return self.settlements_by_id[self.player_id]

    def add_settlement(self, settlement: Settlement) -> None:
        self.settlements_by_id[settlement.id] = settlement

    def remove_settlement(self, settlement_id: str) -> Settlement | None:
        if settlement_id == self.player_id:
            raise ValueError("Cannot remove the player settlement")
        return self.settlements_by_id.pop(settlement_id, None)

    def apply_raid_damage(
        self,
        settlement_id: str,
        loot: Resources,
        defender_casualties: int,
        defenses_weakened: bool,
    ) -> None:
        settlement = self.settlements_by_id.get(settlement_id)
        if settlement is None:
            logger.warning("Raid damage for unknown settlement %s ignored", settlement_id)
            return
        settlement.resources = settlement.resources.minus(loot.with_amount("thralls", 0)).clamp_non_negative()
        settlement.population = max(0, settlement.population - loot.thralls - defender_casualties)
        settlement.military.warriors = max(0, settlement.military.warriors - defender_casualties)
        if defenses_weakened:
            settlement.military.defenses = max(0, settlement.military.defenses - 1)


@dataclass()
class RelationTable:
    """Symmetric faction relations, always within [-100, 100]."""

    values: dict[tuple[str, str], float] = field(default_factory=dict)
    default: float = 0.0

    @staticmethod
    def _key(faction_a: str, faction_b: str) -> tuple[str, str]:
        return (faction_a, faction_b) if faction_a <= faction_b else (faction_b, faction_a)

    def get_relation(self, faction_a: str, faction_b: str) -> float:
        return self.values.get(self._key(faction_a, faction_b), self.default)

    def set_relation(self, faction_a: str, faction_b: str, value: float) -> None:
        self.values[self._key(faction_a, faction_b)] = max(RELATION_MIN, min(RELATION_MAX, value))

    def modify_relation(self, faction_a: str, faction_b: str, delta: float) -> float:
        value = self.get_relation(faction_a, faction_b) + delta
        self.set_relation(faction_a, faction_b, value)
        return self.get_relation(faction_a, faction_b)


@dataclass()
class FameLedger:
    total: int = 0
    entries: list[tuple[int, str]] = field(default_factory=list)

    def add_fame(self, amount: int, reason: str) -> None:
        self.total += amount
        self.entries.append((amount, reason))

    def total_fame(self) -> int:
        return self.total
