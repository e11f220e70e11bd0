from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, validate_by_name=True)


class Position(CamelModel):
    x: float
    y: float


class ResourceBundle(CamelModel):
    food: int = 0
    wood: int = 0
    stone: int = 0
    metal: int = 0
    silver: int = 0
    gold: int = 0
    thralls: int = 0


class Leader(CamelModel):
    name: str
    combat: int = Field(0, ge=0)
    leadership: int = Field(0, ge=0)


class SpecialItem(CamelModel):
    name: str
    description: str


class Loot(CamelModel):
    resources: ResourceBundle
    special: List[SpecialItem]


class Casualties(CamelModel):
    attacker: Dict[str, int]
    attacker_total: int = Field(..., alias="attackerTotal")
    defender_total: int = Field(..., alias="defenderTotal")


class DiplomaticEffects(CamelModel):
    target_faction_id: Optional[str] = Field(None, alias="targetFactionId")
    target_delta: int = Field(..., alias="targetDelta")
    spillover: Dict[str, int]
    admirers: Dict[str, int]


class CombatSummary(CamelModel):
    success: bool
    raider_strength: float = Field(..., alias="raiderStrength")
    defender_strength: float = Field(..., alias="defenderStrength")
    strength_ratio: float = Field(..., alias="strengthRatio")
    success_chance: float = Field(..., alias="successChance")
    defenses_weakened: bool = Field(..., alias="defensesWeakened")


class RaidResult(CamelModel):
    success: bool
    loot: Loot
    casualties: Casualties
    fame_awarded: int = Field(..., alias="fameAwarded")
    diplomatic_effects: DiplomaticEffects = Field(..., alias="diplomaticEffects")
    recalled: bool
    failure_reason: Optional[str] = Field(None, alias="failureReason")


class RaidLogEntry(CamelModel):
    day: int
    kind: str
    message: str


class TargetSnapshot(CamelModel):
    settlement_id: str = Field(..., alias="settlementId")
    name: str
    type: str
    faction_id: Optional[str] = Field(None, alias="factionId")
    coastal: bool
    religious: bool
    importance: int
    warriors: int
    defenses: int


class Raid(CamelModel):
    id: str
    name: str
    raid_class_id: str = Field(..., alias="raidClassId")
    phase: str
    phase_history: List[str] = Field(..., alias="phaseHistory")
    target: TargetSnapshot
    size: int
    units: Dict[str, int]
    ships: int
    leader: Optional[Leader] = None
    morale: int
    supplies: int
    start_day: int = Field(..., alias="startDay")
    travel_days: int = Field(..., alias="travelDays")
    days_remaining: int = Field(..., alias="daysRemaining")
    estimated_return_day: int = Field(..., alias="estimatedReturnDay")
    recalled: bool
    loot: Loot
    casualties: Casualties
    combat: Optional[CombatSummary] = None
    events: List[RaidLogEntry]
    result: Optional[RaidResult] = None


class SettlementSummary(CamelModel):
    id: str
    name: str
    type: str
    faction_id: Optional[str] = Field(None, alias="factionId")
    position: Position
    coastal: bool
    warriors: int
    defenses: int


class FactionStanding(CamelModel):
    id: str
    name: str
    culture: str
    relation: float


class GameStateResponse(CamelModel):
    day: int
    player_settlement_id: str = Field(..., alias="playerSettlementId")
    available_warriors: int = Field(..., alias="availableWarriors")
    resources: ResourceBundle
    fame: int
    settlements: List[SettlementSummary]
    factions: List[FactionStanding]
    active_raids: List[Raid] = Field(..., alias="activeRaids")
    raid_history: List[Raid] = Field(..., alias="raidHistory")


class TargetOption(CamelModel):
    settlement_id: str = Field(..., alias="settlementId")
    name: str
    type: str
    score: float
    distance: float
    defense_strength: int = Field(..., alias="defenseStrength")
    wealth_score: float = Field(..., alias="wealthScore")
    relationship: float
    coastal: bool
    travel_days: int = Field(..., alias="travelDays")


class TargetsResponse(CamelModel):
    raid_class_id: str = Field(..., alias="raidClassId")
    targets: List[TargetOption]


class Notice(CamelModel):
    kind: str
    raid_id: str = Field(..., alias="raidId")
    message: str


class ApiResponse(CamelModel):
    ok: bool
    message: Optional[str] = None
    message_kind: Optional[str] = Field(None, alias="messageKind")
    error_kind: Optional[str] = Field(None, alias="errorKind")
    raid: Optional[Raid] = None
    notices: List[Notice] = Field(default_factory=list)
    state: Optional[GameStateResponse] = None


class RaidRequest(CamelModel):
    raid_class_id: str = Field(..., alias="raidClassId")
    target_id: Optional[str] = Field(None, alias="targetId")
    size: int = Field(..., ge=1)
    ships: int = Field(0, ge=0)
    units: Optional[Dict[str, int]] = None
    leader: Optional[Leader] = None


class AdvanceRequest(CamelModel):
    days: int = Field(1, ge=0, le=365)


class RecallRequest(CamelModel):
    raid_id: str = Field(..., alias="raidId")


class CatalogOption(CamelModel):
    id: str
    label: str
    description: Optional[str] = None


class CatalogRaidClass(CatalogOption):
    summary: str
    min_size: int = Field(..., alias="minSize")
    max_size: int = Field(..., alias="maxSize")
    preparation_days: int = Field(..., alias="preparationDays")
    requires_ships: bool = Field(..., alias="requiresShips")
    warriors_per_ship: Optional[int] = Field(None, alias="warriorsPerShip")
    target_preference: Optional[str] = Field(None, alias="targetPreference")
    danger_level: int = Field(..., alias="dangerLevel")


class CatalogResponse(CamelModel):
    raid_classes: List[CatalogRaidClass] = Field(..., alias="raidClasses")
    unit_types: List[CatalogOption] = Field(..., alias="unitTypes")
    default_unit_type: str = Field(..., alias="defaultUnitType")
