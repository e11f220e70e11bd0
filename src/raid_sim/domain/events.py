"""Raid notifications for UI subscribers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

RAID_CREATED = "raid_created"
PHASE_CHANGED = "phase_changed"
COMBAT_RESOLVED = "combat_resolved"
RAID_RECALLED = "raid_recalled"
RAID_FINISHED = "raid_finished"


@dataclass(frozen=True)
class RaidNotice:
    kind: str
    raid_id: str
    message: str
    data: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "raid_id": self.raid_id, "message": self.message, "data": self.data}


NoticeListener = Callable[[RaidNotice], None]
