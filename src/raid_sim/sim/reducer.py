from __future__ import annotations

from dataclasses import dataclass

from raid_sim.domain.actions import Action, AdvanceDays, CreateRaid, RecallRaid
from raid_sim.domain.events import RaidNotice
from raid_sim.domain.raid import Raid
from raid_sim.sim.state import RaidEngine


@dataclass()
class ActionResult:
    ok: bool
    message: str | None
    message_kind: str | None
    engine: RaidEngine
    notices: list[RaidNotice]
    raid: Raid | None = None
    error_kind: str | None = None


def apply_action(engine: RaidEngine, action: Action) -> ActionResult:
    notices: list[RaidNotice] = []
    unsubscribe = engine.subscribe(notices.append)

    def ok(message: str | None, kind: str = "info", raid: Raid | None = None) -> ActionResult:
        return ActionResult(
            ok=True,
            message=message,
            message_kind=kind,
            engine=engine,
            notices=list(notices),
            raid=raid,
        )

    def fail(message: str, error_kind: str | None = None) -> ActionResult:
        return ActionResult(
            ok=False,
            message=message,
            message_kind="error",
            engine=engine,
            notices=list(notices),
            error_kind=error_kind,
        )

    try:
        if isinstance(action, CreateRaid):
            result = engine.create_raid(action.order)
            if not result.ok:
                return fail(result.reason or "Raid rejected", result.error_kind)
            return ok(f"{result.raid.name} is being prepared", "accent", result.raid)

        if isinstance(action, AdvanceDays):
            if action.days < 0:
                return fail("Days must be >= 0", "validation")
            finished = engine.process_tick(action.days)
            if finished:
                return ok(f"{len(finished)} raid(s) returned", "accent")
            return ok("Day advanced" if action.days == 1 else f"{action.days} days advanced")

        if isinstance(action, RecallRaid):
            if not engine.recall_raid(action.raid_id):
                return fail(f"Raid {action.raid_id} cannot be recalled", "state")
            return ok("Raid recalled", "info", engine.get_raid(action.raid_id))

        return fail(f"Unsupported action: {type(action).__name__}")
    finally:
        unsubscribe()
