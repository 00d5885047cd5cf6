"""
Ingest wizard finalization: per-object persistence and partial failure.
"""

import logging

from ingest_api.features.ingest_wizard.wizard_contracts import WizardConfiguration
from ingest_api.features.ingest_wizard.wizard_state import DraftObject


def test_ingest_from_last_step_persists_draft(controller, binary_config, object_store, sessions):
    state = controller.initialize(binary_config)
    controller.submit(state, "next", {"label": "My Book"})

    outcome = controller.submit(state, "ingest", {"content": "hello", "mimetype": "text/plain"})

    assert outcome.step is None
    result = outcome.result
    assert [(o.id, o.status) for o in result.objects] == [("demo:1", "ingested")]
    assert result.redirect == "/objects/demo:1"
    assert result.warnings == []

    created = object_store.created[0]
    assert created.label == "My Book"
    assert created.parent_collections() == ["demo:collection"]
    assert created.datastreams["OBJ"].content == "hello"
    assert created.datastreams["OBJ"].label == "OBJ datastream"
    assert state.session_id not in sessions


def test_ingest_blocked_by_step_validation(controller, binary_config, object_store):
    state = controller.initialize(binary_config)
    controller.submit(state, "next", {"label": "My Book"})

    outcome = controller.submit(state, "ingest", {"mimetype": "text/html"})

    assert outcome.result is None
    assert set(outcome.step.errors) == {"content", "mimetype"}
    assert object_store.created == []


def test_failed_object_does_not_stop_remaining_objects(controller, object_store, caplog):
    state = controller.initialize(WizardConfiguration(namespace="demo", label="First"))
    state.pending_objects.append(DraftObject(id="demo:99", label="Second"))
    object_store.fail_ids.add("demo:1")

    with caplog.at_level(logging.INFO):
        result = controller.finalize(state)

    assert [(o.id, o.status) for o in result.objects] == [("demo:1", "failed"), ("demo:99", "ingested")]
    assert result.redirect == "/objects/demo:99"
    assert result.warnings == ["Failed to ingest object First (demo:1)."]
    assert [o.id for o in result.failed] == ["demo:1"]
    assert [d.id for d in object_store.created] == ["demo:99"]

    failures = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert len(failures) == 1
    assert "demo:1" in failures[0].getMessage()
    assert "First" in failures[0].getMessage()


def test_unexpected_errors_are_also_contained(controller, object_store):
    state = controller.initialize(WizardConfiguration(namespace="demo"))
    state.pending_objects.append(DraftObject(id="demo:2", label="Other"))
    object_store.crash_ids.add("demo:2")

    result = controller.finalize(state)

    assert [o.status for o in result.objects] == ["ingested", "failed"]
    assert result.objects[1].error == "connection reset"
    assert result.redirect == "/objects/demo:1"


def test_last_successful_object_wins_redirect(controller):
    state = controller.initialize(WizardConfiguration(namespace="demo"))
    state.pending_objects.append(DraftObject(id="demo:7", label="Seven"))

    result = controller.finalize(state)

    assert result.redirect == "/objects/demo:7"


def test_existing_object_is_a_soft_warning(controller, object_store):
    state = controller.initialize(WizardConfiguration(id="demo:5", label="Five"))
    object_store.existing_ids.add("demo:5")

    result = controller.finalize(state)

    assert [(o.id, o.status) for o in result.objects] == [("demo:5", "exists")]
    assert result.failed == []
    assert result.warnings == ["Object Five (demo:5) may already exist; please verify it."]
    assert result.redirect is None
    assert result.objects[0].url == "/objects/demo:5"


def test_existing_object_does_not_replace_earlier_redirect(controller, object_store):
    state = controller.initialize(WizardConfiguration(namespace="demo"))
    state.pending_objects.append(DraftObject(id="demo:5", label="Five"))
    object_store.existing_ids.add("demo:5")

    result = controller.finalize(state)

    assert [o.status for o in result.objects] == ["ingested", "exists"]
    assert result.redirect == "/objects/demo:1"


def test_object_url_template_is_configurable(controller, object_store, monkeypatch):
    monkeypatch.setenv("INGEST_OBJECT_URL_TEMPLATE", "/islandora/object/{id}")
    state = controller.initialize(WizardConfiguration(id="demo:5"))
    object_store.existing_ids.add("demo:5")

    result = controller.finalize(state)

    assert result.objects[0].url == "/islandora/object/demo:5"


def test_finalize_discards_session(controller, sessions):
    state = controller.initialize(WizardConfiguration(namespace="demo"), session_id="done")

    controller.finalize(state)

    assert sessions.get("done") is None
