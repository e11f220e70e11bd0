"""Raid engine state container."""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from random import Random
from typing import Callable

from raid_sim.domain.actions import RaidOrder
from raid_sim.domain.errors import RaidResourceError, RaidStateError, RaidValidationError
from raid_sim.domain.events import RAID_CREATED, NoticeListener, RaidNotice
from raid_sim.domain.ports import RaidPorts
from raid_sim.domain.raid import Raid
from raid_sim.rules.ruleset import Ruleset
from raid_sim.sim.rng import raid_rng
from raid_sim.systems import raid as lifecycle
from raid_sim.systems.targets import TargetEvaluation, evaluate_targets

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CreateRaidResult:
    ok: bool
    raid: Raid | None = None
    reason: str | None = None
    error_kind: str | None = None


@dataclass()
class RaidEngine:
    rules: Ruleset
    ports: RaidPorts
    rng_seed: int
    day: int = 0
    raid_seq: int = 0

    active: list[Raid] = field(default_factory=list)
    history: list[Raid] = field(default_factory=list)

    listeners: list[NoticeListener] = field(default_factory=list, repr=False)

    def rng(self, day: int, raid_seq: int, purpose: str) -> Random:
        return raid_rng(self.rng_seed, day, raid_seq, purpose)

    def subscribe(self, listener: NoticeListener) -> Callable[[], None]:
        self.listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self.listeners:
                self.listeners.remove(listener)

        return unsubscribe

    def notify(self, notice: RaidNotice) -> None:
        for listener in list(self.listeners):
            try:
                listener(notice)
            except Exception:
                logger.exception("Raid listener failed on %s for %s", notice.kind, notice.raid_id)

    def lifecycle_context(self) -> lifecycle.LifecycleContext:
        return lifecycle.LifecycleContext(rules=self.rules, ports=self.ports, rng=self.rng, notify=self.notify)

    def evaluate_targets(self, raid_class_id: str) -> list[TargetEvaluation]:
        raid_class = self.rules.raid_class(raid_class_id)
        if raid_class is None:
            return []
        origin = self.ports.world.player_settlement()
        return evaluate_targets(self.ports.world.settlements(), origin, raid_class, self.rules.targeting)

    def create_raid(self, order: RaidOrder) -> CreateRaidResult:
        seq = self.raid_seq + 1
        try:
            raid = lifecycle.create_raid(
                order,
                rules=self.rules,
                ports=self.ports,
                day=self.day,
                seq=seq,
                rng=self.rng(self.day, seq, "name"),
            )
        except (RaidValidationError, RaidResourceError) as exc:
            logger.warning("Raid order rejected (%s): %s", exc.kind, exc)
            return CreateRaidResult(ok=False, reason=str(exc), error_kind=exc.kind)

        self.raid_seq = seq
        self.active.append(raid)
        self.notify(
            RaidNotice(
                kind=RAID_CREATED,
                raid_id=raid.id,
                message=f"{raid.name} is being prepared",
                data={"target": raid.target.settlement_id, "size": raid.size},
            )
        )
        return CreateRaidResult(ok=True, raid=copy.deepcopy(raid))

    def process_tick(self, days_passed: int) -> list[Raid]:
        from raid_sim.sim.day_stepper import process_tick

        return process_tick(self, days_passed)

    def recall_raid(self, raid_id: str) -> bool:
        raid = self._find_active(raid_id)
        if raid is None:
            logger.warning("Recall ignored: %s is not an active raid", raid_id)
            return False
        try:
            lifecycle.recall_raid(raid, self.day, self.lifecycle_context())
        except RaidStateError as exc:
            logger.warning("Recall ignored: %s", exc)
            return False
        return True

    def get_active_raids(self) -> list[Raid]:
        return copy.deepcopy(self.active)

    def get_raid_history(self) -> list[Raid]:
        return copy.deepcopy(self.history)

    def get_raid(self, raid_id: str) -> Raid | None:
        for raid in (*self.active, *self.history):
            if raid.id == raid_id:
                return copy.deepcopy(raid)
        return None

    def _find_active(self, raid_id: str) -> Raid | None:
        for raid in self.active:
            if raid.id == raid_id:
                return raid
        return None
