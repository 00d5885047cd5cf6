"""
Neo4j connectivity shared across features.

This module centralizes:
- Neo4j connection configuration
- driver lifecycle
- session creation

So the object store can focus on repository objects and Cypher, without
re-implementing connection plumbing.
"""

from __future__ import annotations

import time
from typing import Optional

from neo4j import Driver, GraphDatabase

from ingest_api.platform.env import (
    get_neo4j_database,
    get_neo4j_password,
    get_neo4j_uri,
    get_neo4j_user,
)
from ingest_api.platform.observability.smart_logger import SmartLogger

_driver: Optional[Driver] = None


def init_neo4j_driver(*, log: bool = True) -> Driver:
    """
    Initialize a singleton Neo4j driver if needed.
    Safe to call multiple times.
    """
    global _driver
    if _driver is not None:
        return _driver

    t0 = time.perf_counter()
    uri = get_neo4j_uri()
    user = get_neo4j_user()
    _driver = GraphDatabase.driver(uri, auth=(user, get_neo4j_password()))

    if log:
        SmartLogger.log(
            "INFO",
            "Neo4j driver created.",
            category="platform.neo4j.driver.init",
            params={
                "neo4j_uri": uri,
                "neo4j_user": user,
                "neo4j_database": get_neo4j_database(),
                "duration_ms": int((time.perf_counter() - t0) * 1000),
            },
        )
    return _driver


def close_neo4j_driver(*, log: bool = True) -> None:
    """Close and reset the singleton Neo4j driver."""
    global _driver
    if _driver is None:
        return
    try:
        _driver.close()
    finally:
        _driver = None
        if log:
            SmartLogger.log(
                "INFO",
                "Neo4j driver closed.",
                category="platform.neo4j.driver.close",
                params={"neo4j_uri": get_neo4j_uri()},
            )


def get_driver() -> Driver:
    """Get the singleton Neo4j driver, initializing lazily if needed."""
    return init_neo4j_driver(log=False)


def get_session():
    """Get a Neo4j session (optionally bound to configured database)."""
    database = get_neo4j_database()
    if database:
        return get_driver().session(database=database)
    return get_driver().session()
