"""
Ingest Wizard API (feature router)

Business capability:
- Start (or resume) a wizard session for a new repository object
- Render the current step with its navigation controls
- Submit a control (previous / next / ingest) with the step's values
- Abandon a session
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from starlette.requests import Request

from ingest_api.features.ingest_wizard.wizard_contracts import (
    StartWizardRequest,
    SubmitControlRequest,
    WizardResponse,
    WizardSessionSummary,
)
from ingest_api.features.ingest_wizard.wizard_controller import IngestWizardController
from ingest_api.features.ingest_wizard.wizard_errors import (
    ConfigurationError,
    StepResolutionError,
    UnknownControlError,
    WizardError,
)
from ingest_api.features.ingest_wizard.wizard_state import WizardState
from ingest_api.platform.observability.request_logging import http_context, summarize_for_log
from ingest_api.platform.observability.smart_logger import SmartLogger

router = APIRouter(prefix="/api/ingest-wizard", tags=["ingest-wizard"])

_controller: IngestWizardController | None = None


def get_wizard_controller() -> IngestWizardController:
    global _controller
    if _controller is None:
        _controller = IngestWizardController()
    return _controller


def _render_context(request: Request, state: WizardState) -> dict[str, Any]:
    return {"session_id": state.session_id, **http_context(request)}


def _raise_for(error: WizardError, request: Request, session_id: str) -> None:
    if isinstance(error, StepResolutionError):
        status = 409
    elif isinstance(error, UnknownControlError):
        status = 400
    elif isinstance(error, ConfigurationError):
        status = 422
    else:
        status = 500
    SmartLogger.log(
        "WARNING",
        "Ingest wizard request rejected.",
        category="ingest_wizard.api.error",
        params={
            **http_context(request),
            "session_id": session_id,
            "status_code": status,
            "error": {"type": type(error).__name__, "message": str(error)},
        },
    )
    raise HTTPException(status_code=status, detail=str(error)) from error


def _load_state(controller: IngestWizardController, session_id: str, request: Request) -> WizardState:
    state = controller.sessions.get(session_id)
    if state is None:
        SmartLogger.log(
            "WARNING",
            "Ingest wizard session not found: client may be using an expired/invalid session_id.",
            category="ingest_wizard.api.not_found",
            params={
                **http_context(request),
                "inputs": {"session_id": session_id},
                "active_sessions": len(controller.sessions),
            },
        )
        raise HTTPException(status_code=404, detail="Session not found")
    return state


@router.post("/sessions")
async def start_wizard(
    body: StartWizardRequest,
    request: Request,
    controller: IngestWizardController = Depends(get_wizard_controller),
) -> WizardResponse:
    """
    Start an ingest wizard, or resume it when `session_id` names a live session.
    Returns the session id and the current step.
    """
    SmartLogger.log(
        "INFO",
        "Ingest wizard start requested.",
        category="ingest_wizard.api.start",
        params={**http_context(request), "inputs": body.model_dump()},
    )
    try:
        state = controller.initialize(body.to_configuration(), session_id=body.session_id)
        step = controller.execute_current_step(state, _render_context(request, state))
    except WizardError as e:
        _raise_for(e, request, body.session_id or "")
    return WizardResponse(session_id=state.session_id, step=step)


@router.get("/sessions")
async def list_sessions(
    request: Request,
    controller: IngestWizardController = Depends(get_wizard_controller),
) -> list[WizardSessionSummary]:
    """List all active wizard sessions."""
    states = controller.sessions.list_active()
    SmartLogger.log(
        "INFO",
        "List ingest wizard sessions: returning in-memory active sessions.",
        category="ingest_wizard.api.sessions",
        params={**http_context(request), "active": len(states)},
    )
    return [
        WizardSessionSummary(
            id=s.session_id,
            label=s.primary_object().label if s.primary_object() else s.configuration.label,
            step_index=s.current_step_index,
            step_count=s.step_count(),
            pending_objects=len(s.pending_objects),
        )
        for s in states
    ]


@router.get("/sessions/{session_id}")
async def render_current_step(
    session_id: str,
    request: Request,
    controller: IngestWizardController = Depends(get_wizard_controller),
) -> WizardResponse:
    state = _load_state(controller, session_id, request)
    try:
        step = controller.execute_current_step(state, _render_context(request, state))
    except WizardError as e:
        _raise_for(e, request, session_id)
    return WizardResponse(session_id=session_id, step=step)


@router.post("/sessions/{session_id}/controls/{control}")
async def submit_control(
    session_id: str,
    control: str,
    body: SubmitControlRequest,
    request: Request,
    controller: IngestWizardController = Depends(get_wizard_controller),
) -> WizardResponse:
    """
    Submit the current step through one of its controls.
    Returns the next step to render, or the finalization result after `ingest`.
    """
    state = _load_state(controller, session_id, request)
    SmartLogger.log(
        "INFO",
        "Ingest wizard control submitted.",
        category="ingest_wizard.api.submit",
        params={
            **http_context(request),
            "inputs": {
                "session_id": session_id,
                "control": control,
                "step_index": state.current_step_index,
                "values": summarize_for_log(body.values),
            },
        },
    )
    try:
        outcome = controller.submit(state, control, body.values, _render_context(request, state))
    except WizardError as e:
        _raise_for(e, request, session_id)
    return WizardResponse(session_id=session_id, step=outcome.step, result=outcome.result, rebuild=outcome.rebuild)


@router.delete("/sessions/{session_id}")
async def abandon_wizard(
    session_id: str,
    request: Request,
    controller: IngestWizardController = Depends(get_wizard_controller),
) -> dict[str, Any]:
    _load_state(controller, session_id, request)
    controller.abandon(session_id)
    SmartLogger.log(
        "INFO",
        "Ingest wizard session abandoned and removed from memory.",
        category="ingest_wizard.api.abandon",
        params={**http_context(request), "inputs": {"session_id": session_id}},
    )
    return {"session_id": session_id, "abandoned": True}
