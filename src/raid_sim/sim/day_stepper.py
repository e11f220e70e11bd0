from __future__ import annotations

import logging

from raid_sim.domain.errors import RaidError
from raid_sim.domain.raid import Raid
from raid_sim.sim.state import RaidEngine
from raid_sim.systems.raid import advance_raid

logger = logging.getLogger(__name__)


def process_tick(engine: RaidEngine, days_passed: int) -> list[Raid]:
    """Advance the clock by ``days_passed`` days, one day at a time.

    Every active raid lives through each day in list order, so a batch of
    n days lands exactly where n single-day ticks would. Returns the raids
    that finished during the batch.
    """
    if days_passed < 0:
        logger.warning("Ignoring tick with negative days_passed=%d", days_passed)
        return []

    finished: list[Raid] = []
    for _ in range(days_passed):
        engine.day += 1
        ctx = engine.lifecycle_context()
        for raid in list(engine.active):
            if raid.is_terminal:
                logger.warning("Skipping terminal raid %s in active list", raid.id)
                continue
            try:
                done = advance_raid(raid, engine.day, ctx)
            except RaidError as exc:
                logger.warning("Raid %s not advanced on day %d: %s", raid.id, engine.day, exc)
                continue
            if done:
                engine.active.remove(raid)
                engine.history.append(raid)
                finished.append(raid)
    return finished
