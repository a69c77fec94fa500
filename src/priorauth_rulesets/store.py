"""Session storage.

The engine keeps no session state of its own; every operation loads the
session from a ``SessionStore``, mutates a private copy and writes it back.
``InMemorySessionStore`` is the single-process implementation: it hands out
deep copies so a caller can never mutate stored state behind the engine's
back.

``sweep`` is the reaper hook: it drops sessions whose ``updated_at`` is
older than the given idle age.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone

from priorauth_rulesets.models.session import Session

logger = logging.getLogger(__name__)


class SessionStore(ABC):
    """Interface for session persistence."""

    @abstractmethod
    async def get(self, session_id: str) -> Session | None:
        """Return a copy of the session, or None if unknown."""
        ...

    @abstractmethod
    async def put(self, session: Session) -> None:
        """Insert or replace a session."""
        ...

    @abstractmethod
    async def delete(self, session_id: str) -> bool:
        """Remove a session; return True if it existed."""
        ...

    @abstractmethod
    async def sweep(self, max_idle: timedelta, now: datetime | None = None) -> list[str]:
        """Drop sessions idle longer than *max_idle*; return their ids."""
        ...

    @abstractmethod
    async def list_sessions(self, *, include_ended: bool = False) -> list[Session]:
        """Return copies of stored sessions, most recently updated first."""
        ...


class InMemorySessionStore(SessionStore):
    """Dict-backed store for a single process."""

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    async def get(self, session_id: str) -> Session | None:
        session = self._sessions.get(session_id)
        if session is None:
            return None
        return session.model_copy(deep=True)

    async def put(self, session: Session) -> None:
        self._sessions[session.session_id] = session.model_copy(deep=True)

    async def delete(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    async def sweep(self, max_idle: timedelta, now: datetime | None = None) -> list[str]:
        cutoff = (now or datetime.now(timezone.utc)) - max_idle
        stale = [sid for sid, s in self._sessions.items() if s.updated_at < cutoff]
        for sid in stale:
            del self._sessions[sid]
        if stale:
            logger.info("Swept %d idle sessions (idle > %s)", len(stale), max_idle)
        return stale

    async def list_sessions(self, *, include_ended: bool = False) -> list[Session]:
        sessions = [
            s.model_copy(deep=True)
            for s in self._sessions.values()
            if include_ended or not s.ended
        ]
        sessions.sort(key=lambda s: s.updated_at, reverse=True)
        return sessions
