"""
Shared environment variable helpers and commonly-used settings.

Goal: centralize env parsing rules (stripping, int parsing, fallbacks) so
feature modules can import consistent behavior instead of duplicating logic.
"""

from __future__ import annotations

import os
from typing import Iterable


def env_str(key: str, default: str | None = None, *, strip: bool = True) -> str | None:
    """Read an environment variable as string with optional stripping."""
    val = os.getenv(key)
    if val is None:
        return default
    if strip:
        val = val.strip()
    return val if val != "" else default


def env_first(keys: Iterable[str], default: str | None = None, *, strip: bool = True) -> str | None:
    """Return the first non-empty environment variable value from keys."""
    for key in keys:
        val = env_str(key, None, strip=strip)
        if val is not None:
            return val
    return default


def env_int(key: str, default: int) -> int:
    """Read an environment variable as int, falling back on parse errors."""
    val = env_str(key, None)
    if val is None:
        return default
    try:
        return int(val)
    except ValueError:
        return default


# =============================================================================
# Neo4j
# =============================================================================

def get_neo4j_uri(default: str = "bolt://localhost:7687") -> str:
    return env_str("NEO4J_URI", default) or default


def get_neo4j_user(default: str = "neo4j") -> str:
    return env_str("NEO4J_USER", default) or default


def get_neo4j_password(default: str = "password") -> str:
    return env_str("NEO4J_PASSWORD", default) or default


def get_neo4j_database() -> str | None:
    """Get target Neo4j database name (supports legacy 'neo4j_database')."""
    db = env_first(["NEO4J_DATABASE", "neo4j_database"], default=None)
    return (db or "").strip() or None


# =============================================================================
# Ingest wizard
# =============================================================================

def get_default_namespace(default: str = "islandora") -> str:
    """Namespace used to mint identifiers when a wizard is started without id/namespace."""
    return env_str("INGEST_DEFAULT_NAMESPACE", default) or default


def get_object_url_template(default: str = "/objects/{id}") -> str:
    """Canonical location of an ingested object; `{id}` is substituted."""
    return env_str("INGEST_OBJECT_URL_TEMPLATE", default) or default


def get_session_ttl_seconds(default: int = 3600) -> int:
    """Idle time after which a wizard session is discarded; 0 or less keeps sessions forever."""
    return env_int("INGEST_SESSION_TTL_SECONDS", default)


# =============================================================================
# HTTP server
# =============================================================================

def get_api_host(default: str = "0.0.0.0") -> str:
    return env_str("API_HOST", default) or default


def get_api_port(default: int = 8000) -> int:
    return env_int("API_PORT", default)
