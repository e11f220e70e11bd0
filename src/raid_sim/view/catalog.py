from __future__ import annotations

from raid_sim.rules.ruleset import RaidClass, Ruleset


def build_catalog(rules: Ruleset) -> dict:
    def multiplier_phrase(label: str, value: float) -> str | None:
        if value > 1.0:
            return f"{label} x{value:.1f}"
        if value < 1.0:
            return f"reduced {label} x{value:.1f}"
        return None

    def describe(raid_class: RaidClass) -> str:
        parts = [
            phrase
            for phrase in (
                multiplier_phrase("speed", raid_class.travel_speed_modifier),
                multiplier_phrase("strength", raid_class.combat_strength_modifier),
                multiplier_phrase("loot", raid_class.loot_modifier),
                multiplier_phrase("infamy", raid_class.infamy_modifier),
            )
            if phrase
        ]
        summary = f"{raid_class.min_size}-{raid_class.max_size} warriors, {raid_class.preparation_days}d preparation"
        if parts:
            summary = f"{summary}; {', '.join(parts)}"
        return summary

    raid_classes = [
        {
            "id": raid_class.id,
            "label": raid_class.name,
            "description": raid_class.description,
            "summary": describe(raid_class),
            "minSize": raid_class.min_size,
            "maxSize": raid_class.max_size,
            "preparationDays": raid_class.preparation_days,
            "requiresShips": raid_class.requires_ships,
            "warriorsPerShip": raid_class.warriors_per_ship if raid_class.requires_ships else None,
            "targetPreference": raid_class.target_preference,
            "dangerLevel": raid_class.danger_level,
        }
        for raid_class in rules.raid_classes.values()
    ]
    unit_types = [
        {
            "id": unit.id,
            "label": unit.name,
            "description": f"attack {unit.attack}, defense {unit.defense}",
        }
        for unit in rules.unit_types.values()
    ]

    return {
        "raidClasses": raid_classes,
        "unitTypes": unit_types,
        "defaultUnitType": rules.combat.default_unit_type,
    }
