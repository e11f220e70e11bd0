from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass, field

from raid_sim.rules.scenario import DEFAULT_SCENARIO, load_engine
from raid_sim.sim.state import RaidEngine


@dataclass
class RaidSession:
    engine: RaidEngine
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    def reset(self, engine: RaidEngine) -> None:
        self.engine = engine


_sessions: dict[str, RaidSession] = {}


def _load_initial_engine() -> RaidEngine:
    return load_engine(DEFAULT_SCENARIO)


def reset_session(session: RaidSession) -> None:
    session.reset(_load_initial_engine())


def get_or_create_session(session_id: str | None) -> tuple[str, RaidSession]:
    if session_id and session_id in _sessions:
        return session_id, _sessions[session_id]

    new_id = str(uuid.uuid4())
    session = RaidSession(engine=_load_initial_engine())
    _sessions[new_id] = session
    return new_id, session


def get_session(session_id: str) -> RaidSession | None:
    return _sessions.get(session_id)
