"""
Ingest Wizard Sessions (in-memory)

Business capability: keep one wizard state per session between requests,
from the first render to finalization or abandonment.

Sessions idle for longer than `INGEST_SESSION_TTL_SECONDS` are evicted on the
next access; an evicted session behaves like one that never existed.
"""

from __future__ import annotations

import time
import uuid
from typing import Callable, Optional

from ingest_api.features.ingest_wizard.wizard_state import WizardState
from ingest_api.platform.env import get_session_ttl_seconds
from ingest_api.platform.observability.smart_logger import SmartLogger


def new_session_id() -> str:
    return str(uuid.uuid4())[:8]


class WizardSessionStore:
    """Session-keyed wizard states; last write wins."""

    def __init__(self, ttl_seconds: int | None = None, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else get_session_ttl_seconds()
        self._clock = clock
        self._states: dict[str, tuple[WizardState, float]] = {}

    def _evict_expired(self) -> None:
        if self.ttl_seconds <= 0:
            return
        cutoff = self._clock() - self.ttl_seconds
        expired = [sid for sid, (_, touched) in self._states.items() if touched < cutoff]
        for sid in expired:
            del self._states[sid]
        if expired:
            SmartLogger.log(
                "INFO",
                "Idle wizard sessions expired.",
                category="ingest_wizard.sessions.expired",
                params={"session_ids": expired, "ttl_seconds": self.ttl_seconds},
            )

    def get(self, session_id: str) -> Optional[WizardState]:
        self._evict_expired()
        entry = self._states.get(session_id)
        if entry is None:
            return None
        state = entry[0]
        self._states[session_id] = (state, self._clock())
        return state

    def put(self, state: WizardState) -> None:
        self._evict_expired()
        self._states[state.session_id] = (state, self._clock())

    def delete(self, session_id: str) -> None:
        self._states.pop(session_id, None)

    def list_active(self) -> list[WizardState]:
        self._evict_expired()
        return [state for state, _ in self._states.values()]

    def __len__(self) -> int:
        self._evict_expired()
        return len(self._states)

    def __contains__(self, session_id: str) -> bool:
        self._evict_expired()
        return session_id in self._states


_store: WizardSessionStore | None = None


def get_session_store() -> WizardSessionStore:
    global _store
    if _store is None:
        _store = WizardSessionStore()
    return _store
