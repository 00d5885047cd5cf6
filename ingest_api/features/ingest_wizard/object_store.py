"""
Object Store

Business capability: mint identifiers and persist finished draft objects.

The Neo4j implementation stores each object as a `RepositoryObject` node,
its datastreams as `Datastream` nodes and its relationships as edges to the
target objects (collection membership becomes `IS_MEMBER_OF_COLLECTION`).
"""

from __future__ import annotations

import json
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Protocol, runtime_checkable

from neo4j.exceptions import ConstraintError, Neo4jError

from ingest_api.features.ingest_wizard.wizard_errors import ObjectExistsError, PersistenceError
from ingest_api.features.ingest_wizard.wizard_state import MEMBER_OF_COLLECTION, DraftObject
from ingest_api.platform.env import get_object_url_template
from ingest_api.platform.neo4j import get_session
from ingest_api.platform.observability.smart_logger import SmartLogger

_EDGE_TYPES = {MEMBER_OF_COLLECTION: "IS_MEMBER_OF_COLLECTION"}


@dataclass
class PersistedObject:
    id: str
    label: str
    url: str


@runtime_checkable
class ObjectStore(Protocol):
    def next_identifier(self, namespace: str) -> str: ...

    def create(self, draft: DraftObject) -> PersistedObject: ...


def object_url(object_id: str) -> str:
    return get_object_url_template().format(id=object_id)


def edge_type(predicate: str) -> str:
    """Map an RDF-style predicate to a Neo4j relationship type."""
    if predicate in _EDGE_TYPES:
        return _EDGE_TYPES[predicate]
    out = []
    for ch in predicate:
        if ch.isupper() and out:
            out.append("_")
        out.append(ch.upper() if ch.isalnum() else "_")
    return "".join(out)


class Neo4jObjectStore:
    """
    Object store backed by the shared Neo4j driver.

    Relationship targets that were never ingested exist as placeholder
    `RepositoryObject` nodes without `createdAt`; ingesting such an id fills
    the placeholder in. Only a node with `createdAt` counts as existing.
    """

    SCHEMA = (
        "CREATE CONSTRAINT repository_object_id IF NOT EXISTS "
        "FOR (o:RepositoryObject) REQUIRE o.id IS UNIQUE",
        "CREATE CONSTRAINT identifier_counter_namespace IF NOT EXISTS "
        "FOR (c:IdentifierCounter) REQUIRE c.namespace IS UNIQUE",
    )

    def __init__(self, session_factory: Callable[[], Any] = get_session):
        self._session_factory = session_factory
        self._schema_ready = False

    @contextmanager
    def session(self):
        session = self._session_factory()
        try:
            yield session
        finally:
            session.close()

    def ensure_schema(self) -> None:
        """Create the uniqueness constraints MERGE relies on. Safe to call repeatedly."""
        if self._schema_ready:
            return
        with self.session() as session:
            for statement in self.SCHEMA:
                session.run(statement).consume()
        self._schema_ready = True
        SmartLogger.log(
            "INFO",
            "Object store constraints ensured.",
            category="ingest_wizard.object_store.schema",
            params={"constraints": len(self.SCHEMA)},
        )

    def next_identifier(self, namespace: str) -> str:
        self.ensure_schema()
        query = """
        MERGE (c:IdentifierCounter {namespace: $namespace})
        ON CREATE SET c.value = 0
        SET c.value = c.value + 1
        RETURN c.value as value
        """
        with self.session() as session:
            record = session.run(query, namespace=namespace).single()
            return f"{namespace}:{record['value']}"

    def create(self, draft: DraftObject) -> PersistedObject:
        try:
            self.ensure_schema()
            with self.session() as session:
                return session.execute_write(self._create_tx, draft)
        except ConstraintError as e:
            raise ObjectExistsError(draft.id) from e
        except Neo4jError as e:
            raise PersistenceError(str(e)) from e

    def _create_tx(self, tx, draft: DraftObject) -> PersistedObject:
        # MERGE locks the node for the rest of the transaction, so a double submit waits here.
        record = tx.run(
            """
            MERGE (o:RepositoryObject {id: $id})
            RETURN o.createdAt IS NOT NULL AS ingested
            """,
            id=draft.id,
        ).single()
        if record["ingested"]:
            raise ObjectExistsError(draft.id)

        tx.run(
            """
            MATCH (o:RepositoryObject {id: $id})
            SET o.label = $label,
                o.models = $models,
                o.properties = $properties,
                o.createdAt = datetime()
            """,
            id=draft.id,
            label=draft.label,
            models=list(draft.models),
            properties=json.dumps(draft.properties, ensure_ascii=False, default=str),
        )

        for rel in draft.relationships:
            # Relationship types cannot be parameterized in Cypher.
            tx.run(
                f"""
                MATCH (o:RepositoryObject {{id: $id}})
                MERGE (t:RepositoryObject {{id: $target}})
                MERGE (o)-[:{edge_type(rel.predicate)}]->(t)
                """,
                id=draft.id,
                target=rel.object,
            )

        for ds in draft.datastreams.values():
            tx.run(
                """
                MATCH (o:RepositoryObject {id: $id})
                CREATE (o)-[:HAS_DATASTREAM]->(d:Datastream {dsid: $dsid})
                SET d.label = $label, d.mimetype = $mimetype, d.content = $content, d.size = size($content)
                """,
                id=draft.id,
                dsid=ds.id,
                label=ds.label,
                mimetype=ds.mimetype,
                content=ds.content,
            )

        SmartLogger.log(
            "INFO",
            "Repository object created in Neo4j.",
            category="ingest_wizard.object_store.create",
            params={
                "id": draft.id,
                "relationships": len(draft.relationships),
                "datastreams": sorted(draft.datastreams),
            },
        )
        return PersistedObject(id=draft.id, label=draft.label, url=object_url(draft.id))


_store: ObjectStore | None = None


def get_object_store() -> ObjectStore:
    """Get the singleton object store instance."""
    global _store
    if _store is None:
        _store = Neo4jObjectStore()
    return _store
