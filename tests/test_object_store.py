"""
Neo4j object store against an in-memory fake graph.
"""

import pytest

from ingest_api.features.ingest_wizard.object_store import Neo4jObjectStore, ObjectStore, edge_type, object_url
from ingest_api.features.ingest_wizard.wizard_contracts import WizardConfiguration
from ingest_api.features.ingest_wizard.wizard_controller import IngestWizardController
from ingest_api.features.ingest_wizard.wizard_errors import ObjectExistsError
from ingest_api.features.ingest_wizard.wizard_state import MEMBER_OF_COLLECTION, Datastream, DraftObject


class FakeResult:
    def __init__(self, record=None):
        self._record = record

    def single(self):
        return self._record

    def consume(self):
        return None


class FakeGraph:
    """Applies the node effects of the store's Cypher statements."""

    def __init__(self):
        self.nodes = {}
        self.edges = []
        self.datastreams = []
        self.counters = {}
        self.constraints = []
        self.queries = []

    def run(self, query, **params):
        self.queries.append((query, params))
        if "CREATE CONSTRAINT" in query:
            self.constraints.append(query)
        elif "IdentifierCounter" in query:
            ns = params["namespace"]
            self.counters[ns] = self.counters.get(ns, 0) + 1
            return FakeResult({"value": self.counters[ns]})
        elif "AS ingested" in query:
            node = self.nodes.setdefault(params["id"], {})
            return FakeResult({"ingested": "createdAt" in node})
        elif "SET o.label" in query:
            self.nodes[params["id"]].update(
                label=params["label"], models=params["models"], createdAt="now"
            )
        elif "MERGE (t:RepositoryObject" in query:
            self.nodes.setdefault(params["target"], {})
            self.edges.append((params["id"], params["target"]))
        elif "HAS_DATASTREAM" in query:
            self.datastreams.append(params)
        return FakeResult()


class FakeSession:
    def __init__(self, graph):
        self.graph = graph
        self.closed = False

    def run(self, query, **params):
        return self.graph.run(query, **params)

    def execute_write(self, fn, *args):
        return fn(self.graph, *args)

    def close(self):
        self.closed = True


@pytest.fixture
def graph():
    return FakeGraph()


@pytest.fixture
def store(graph):
    return Neo4jObjectStore(lambda: FakeSession(graph))


def _draft():
    draft = DraftObject(id="demo:3", label="Book", models=["demo:bookCModel"])
    draft.add_relationship(MEMBER_OF_COLLECTION, "demo:collection")
    draft.datastreams["OBJ"] = Datastream(id="OBJ", label="Scan", content="abc")
    return draft


def test_edge_types():
    assert edge_type(MEMBER_OF_COLLECTION) == "IS_MEMBER_OF_COLLECTION"
    assert edge_type("hasModel") == "HAS_MODEL"
    assert edge_type("isPartOf") == "IS_PART_OF"


def test_object_url_uses_template(monkeypatch):
    assert object_url("demo:1") == "/objects/demo:1"
    monkeypatch.setenv("INGEST_OBJECT_URL_TEMPLATE", "https://repo.example.org/object/{id}")
    assert object_url("demo:1") == "https://repo.example.org/object/demo:1"


def test_neo4j_store_satisfies_protocol(store):
    assert isinstance(store, ObjectStore)


def test_next_identifier_uses_namespace_counter(store, graph):
    graph.counters["demo"] = 4

    assert store.next_identifier("demo") == "demo:5"
    assert store.next_identifier("demo") == "demo:6"


def test_uniqueness_constraints_created_once(store, graph):
    store.next_identifier("demo")
    store.create(_draft())

    assert len(graph.constraints) == 2
    assert any("RepositoryObject" in c and "o.id IS UNIQUE" in c for c in graph.constraints)
    assert any("IdentifierCounter" in c and "c.namespace IS UNIQUE" in c for c in graph.constraints)


def test_create_writes_object_relationships_and_datastreams(store, graph):
    persisted = store.create(_draft())

    assert persisted.id == "demo:3"
    assert persisted.url == "/objects/demo:3"
    assert graph.nodes["demo:3"]["label"] == "Book"
    assert graph.edges == [("demo:3", "demo:collection")]
    assert any(":IS_MEMBER_OF_COLLECTION]" in q for q, _ in graph.queries)
    assert graph.datastreams == [
        {"id": "demo:3", "dsid": "OBJ", "label": "Scan", "mimetype": "text/plain", "content": "abc"}
    ]


def test_create_rejects_ingested_object(store, graph):
    graph.nodes["demo:3"] = {"label": "Book", "createdAt": "then"}

    with pytest.raises(ObjectExistsError):
        store.create(_draft())
    assert graph.datastreams == []


def test_collection_ingested_after_its_member(store, graph, sessions, registry):
    controller = IngestWizardController(registry=registry, object_store=store, sessions=sessions)
    child = controller.initialize(WizardConfiguration(id="demo:child", collections=("demo:coll",)))
    controller.finalize(child)
    assert graph.nodes["demo:coll"] == {}

    collection = controller.initialize(WizardConfiguration(id="demo:coll", label="My Collection"))
    result = controller.finalize(collection)

    assert [(o.id, o.status) for o in result.objects] == [("demo:coll", "ingested")]
    assert result.warnings == []
    assert graph.nodes["demo:coll"]["label"] == "My Collection"
    assert "createdAt" in graph.nodes["demo:coll"]
