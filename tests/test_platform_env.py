"""
Environment helpers and SmartLogger default implementation.
"""

import logging

from ingest_api.platform import env
from ingest_api.platform.observability.request_logging import summarize_for_log
from ingest_api.platform.observability.smart_logger import SmartLogger


def test_env_int_falls_back_on_bad_values(monkeypatch):
    monkeypatch.setenv("WIZARD_TEST_PORT", "not-a-number")
    monkeypatch.setenv("INGEST_SESSION_TTL_SECONDS", " 60 ")

    assert env.env_int("WIZARD_TEST_PORT", 8000) == 8000
    assert env.get_session_ttl_seconds() == 60


def test_ingest_settings(monkeypatch):
    assert env.get_default_namespace() == "islandora"
    assert env.get_object_url_template() == "/objects/{id}"

    monkeypatch.setenv("INGEST_DEFAULT_NAMESPACE", "  archive ")
    assert env.get_default_namespace() == "archive"


def test_neo4j_database_legacy_key(monkeypatch):
    monkeypatch.delenv("NEO4J_DATABASE", raising=False)
    monkeypatch.setenv("neo4j_database", "repo")

    assert env.get_neo4j_database() == "repo"


def test_smart_logger_writes_to_category_logger(caplog):
    with caplog.at_level(logging.INFO, logger="ingest_wizard.test"):
        SmartLogger.log("INFO", "hello", category="ingest_wizard.test", params={"id": "demo:1"})

    record = caplog.records[-1]
    assert record.name == "ingest_wizard.test"
    assert record.getMessage() == 'hello | {"id": "demo:1"}'


def test_summarize_long_content():
    summary = summarize_for_log({"content": "x" * 1000, "label": "short"})

    assert summary["label"] == "short"
    assert summary["content"]["__len__"] == 1000
