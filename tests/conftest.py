"""
Shared fixtures for the ingest wizard tests.
"""

import pytest

from ingest_api.features.ingest_wizard.object_store import PersistedObject
from ingest_api.features.ingest_wizard.step_registry import StepRegistry
from ingest_api.features.ingest_wizard.steps import register_default_steps
from ingest_api.features.ingest_wizard.steps.upload import BINARY_OBJECT_MODEL
from ingest_api.features.ingest_wizard.wizard_contracts import WizardConfiguration
from ingest_api.features.ingest_wizard.wizard_controller import IngestWizardController
from ingest_api.features.ingest_wizard.wizard_errors import ObjectExistsError, PersistenceError
from ingest_api.features.ingest_wizard.wizard_sessions import WizardSessionStore


class FakeObjectStore:
    """In-memory object store with switchable failures."""

    def __init__(self):
        self.counters = {}
        self.created = []
        self.fail_ids = set()
        self.existing_ids = set()
        self.crash_ids = set()

    def next_identifier(self, namespace):
        self.counters[namespace] = self.counters.get(namespace, 0) + 1
        return f"{namespace}:{self.counters[namespace]}"

    def create(self, draft):
        if draft.id in self.existing_ids:
            raise ObjectExistsError(draft.id)
        if draft.id in self.fail_ids:
            raise PersistenceError("object store rejected the object")
        if draft.id in self.crash_ids:
            raise RuntimeError("connection reset")
        self.created.append(draft)
        return PersistedObject(id=draft.id, label=draft.label, url=f"/objects/{draft.id}")


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    monkeypatch.delenv("INGEST_OBJECT_URL_TEMPLATE", raising=False)
    monkeypatch.delenv("INGEST_DEFAULT_NAMESPACE", raising=False)
    monkeypatch.delenv("INGEST_SESSION_TTL_SECONDS", raising=False)


@pytest.fixture
def object_store():
    return FakeObjectStore()


@pytest.fixture
def sessions():
    return WizardSessionStore()


@pytest.fixture
def registry():
    """Registry with the built-in describe/upload steps."""
    registry = StepRegistry()
    register_default_steps(registry)
    return registry


@pytest.fixture
def controller(registry, object_store, sessions):
    return IngestWizardController(
        registry=registry,
        object_store=object_store,
        sessions=sessions,
        default_namespace="test",
    )


@pytest.fixture
def binary_config():
    return WizardConfiguration(namespace="demo", collections=("demo:collection",), models=(BINARY_OBJECT_MODEL,))
