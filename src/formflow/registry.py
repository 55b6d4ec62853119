"""In-memory registry of fill sessions.

One :class:`FormSession` per respondent, keyed by ``session_id``.  Sessions
share no state with each other, so the registry needs no locking inside a
single event loop.

The registry avoids business logic; navigation and validation belong to
the session itself.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from formflow.session import FormSession

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Read/write operations on the set of live sessions."""

    def __init__(self) -> None:
        self._sessions: dict[str, FormSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def add(self, session: FormSession) -> FormSession:
        """Register a new session.

        Raises:
            ValueError: if a session with the same id is already registered.
        """
        if session.session_id in self._sessions:
            raise ValueError(f"Session already exists: {session.session_id}")
        self._sessions[session.session_id] = session
        return session

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get(self, session_id: str) -> FormSession | None:
        return self._sessions.get(session_id)

    def list_sessions(
        self,
        *,
        form_id: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[FormSession]:
        """List sessions, most recent first, optionally for one form."""
        sessions = [
            s for s in self._sessions.values()
            if form_id is None or s.form.id == form_id
        ]
        sessions.sort(key=lambda s: s.created_at, reverse=True)
        return sessions[offset:offset + limit]

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    def remove(self, session_id: str) -> bool:
        """Drop a session.  Returns False if it was not registered."""
        return self._sessions.pop(session_id, None) is not None

    def purge_idle(self, max_idle: timedelta, *, now: datetime | None = None) -> int:
        """Drop sessions not touched within ``max_idle``; return the count."""
        cutoff = (now or datetime.now(timezone.utc)) - max_idle
        stale = [sid for sid, s in self._sessions.items() if s.updated_at < cutoff]
        for sid in stale:
            del self._sessions[sid]
        if stale:
            logger.info("Purged %d idle session(s) older than %s", len(stale), max_idle)
        return len(stale)
