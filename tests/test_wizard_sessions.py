"""
In-memory wizard session store: idle expiry.
"""

from ingest_api.features.ingest_wizard.wizard_contracts import WizardConfiguration
from ingest_api.features.ingest_wizard.wizard_sessions import WizardSessionStore
from ingest_api.features.ingest_wizard.wizard_state import WizardState


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def _state(session_id):
    return WizardState(session_id=session_id, configuration=WizardConfiguration())


def test_idle_session_expires():
    clock = FakeClock()
    store = WizardSessionStore(ttl_seconds=10, clock=clock)
    store.put(_state("a"))

    clock.now = 11

    assert store.get("a") is None
    assert "a" not in store
    assert len(store) == 0


def test_access_refreshes_expiry():
    clock = FakeClock()
    store = WizardSessionStore(ttl_seconds=10, clock=clock)
    store.put(_state("a"))
    store.put(_state("b"))

    clock.now = 8
    assert store.get("a") is not None
    clock.now = 15

    assert [s.session_id for s in store.list_active()] == ["a"]


def test_non_positive_ttl_keeps_sessions(monkeypatch):
    monkeypatch.setenv("INGEST_SESSION_TTL_SECONDS", "0")
    clock = FakeClock()
    store = WizardSessionStore(clock=clock)
    store.put(_state("a"))

    clock.now = 10**9

    assert store.get("a") is not None
