from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from starlette.requests import Request

from ingest_api.features.ingest_wizard.wizard_sessions import WizardSessionStore, get_session_store
from ingest_api.platform.neo4j import get_session
from ingest_api.platform.observability.request_logging import http_context
from ingest_api.platform.observability.smart_logger import SmartLogger

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    status: str
    neo4j: str
    wizard_sessions: int
    session_ttl_seconds: int
    error: Optional[str] = None


def neo4j_error() -> Optional[str]:
    """Run a trivial query; return the failure message, or None when Neo4j answers."""
    try:
        with get_session() as session:
            session.run("RETURN 1").consume()
    except Exception as e:
        return f"{type(e).__name__}: {e}"
    return None


@router.get("/api/health")
async def health_check(
    request: Request,
    sessions: WizardSessionStore = Depends(get_session_store),
) -> HealthResponse:
    """Report Neo4j reachability and how many ingest wizards are in flight."""
    error = neo4j_error()
    response = HealthResponse(
        status="healthy" if error is None else "unhealthy",
        neo4j="connected" if error is None else "unreachable",
        wizard_sessions=len(sessions),
        session_ttl_seconds=sessions.ttl_seconds,
        error=error,
    )
    SmartLogger.log(
        "INFO" if error is None else "ERROR",
        "Health check completed." if error is None else "Health check failed: Neo4j could not be reached.",
        category="api.health",
        params={**http_context(request), **response.model_dump(exclude_none=True)},
    )
    return response
