"""
FastAPI Backend for the Repository Ingest Wizard

Provides REST APIs for:
- Multi-step ingestion of repository objects (start, render, navigate, ingest, abandon)
- Health checks against the Neo4j object store
"""

from __future__ import annotations

from dotenv import load_dotenv
load_dotenv()

from contextlib import asynccontextmanager

from fastapi import FastAPI
from starlette.requests import Request
from starlette.responses import Response
from fastapi.middleware.cors import CORSMiddleware
from neo4j.exceptions import DriverError, Neo4jError

from ingest_api.features.health.router import router as health_router
from ingest_api.features.ingest_wizard.router import router as ingest_wizard_router
from ingest_api.features.ingest_wizard.object_store import Neo4jObjectStore, get_object_store
from ingest_api.platform.env import get_api_host, get_api_port, get_session_ttl_seconds
from ingest_api.platform.neo4j import close_neo4j_driver, init_neo4j_driver
from ingest_api.platform.observability.request_logging import (
    RequestTimer,
    http_context,
    new_request_id,
    set_request_id,
)
from ingest_api.platform.observability.smart_logger import SmartLogger


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the Neo4j driver and prepare the object store schema; close the driver on shutdown."""
    SmartLogger.log(
        "INFO",
        "Starting ingest wizard API.",
        category="api.lifespan",
        params={
            "logger_impl": getattr(SmartLogger, "impl_source", "unknown"),
            "session_ttl_seconds": get_session_ttl_seconds(),
        },
    )
    init_neo4j_driver(log=True)
    store = get_object_store()
    if isinstance(store, Neo4jObjectStore):
        try:
            store.ensure_schema()
        except (Neo4jError, DriverError) as e:
            # Retried before the first write.
            SmartLogger.log(
                "WARNING",
                "Object store constraints not created at startup.",
                category="api.lifespan.schema",
                params={"error": {"type": type(e).__name__, "message": str(e)}},
            )
    yield
    close_neo4j_driver(log=True)
    SmartLogger.log("INFO", "API stopped", category="api.lifespan")


app = FastAPI(
    title="Repository Ingest Wizard API",
    description="Multi-step ingestion of repository objects",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def _request_id_middleware(request: Request, call_next):
    """
    Assign a request_id to every inbound HTTP request and emit start/end logs.
    """
    rid = request.headers.get("x-request-id") or new_request_id()
    set_request_id(rid)
    timer = RequestTimer()

    SmartLogger.log(
        "INFO",
        "HTTP request received: starting route execution.",
        category="api.http.start",
        params=http_context(request),
    )

    try:
        response: Response = await call_next(request)
        SmartLogger.log(
            "INFO",
            "HTTP request completed.",
            category="api.http.end",
            params={
                **http_context(request),
                "result": {
                    "status_code": response.status_code,
                    "duration_ms": timer.ms(),
                },
            },
        )
        response.headers["X-Request-Id"] = rid
        return response
    except Exception as e:
        SmartLogger.log(
            "ERROR",
            "HTTP request failed: route raised an exception.",
            category="api.http.error",
            params={
                **http_context(request),
                "error": {"type": type(e).__name__, "message": str(e)},
                "duration_ms": timer.ms(),
            },
        )
        raise
    finally:
        # Avoid leaking request_id into unrelated async contexts.
        set_request_id(None)


app.include_router(health_router)
app.include_router(ingest_wizard_router)


if __name__ == "__main__":
    import uvicorn

    HOST = get_api_host()
    PORT = get_api_port()

    SmartLogger.log("INFO", "Starting API", category="api.main", params={"host": HOST, "port": PORT})
    uvicorn.run("ingest_api.main:app", host=HOST, port=PORT, reload=True)
