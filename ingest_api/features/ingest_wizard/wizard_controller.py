"""
Ingest Wizard Controller

Business capability: drive a multi-page ingest form.

- initialize: seed one draft object and the ordered step list for a session
- execute_current_step / stepify: render the current step with navigation controls
- submit: run a control's validate/submit chain (previous, next, ingest)
- finalize: persist every draft object, tolerating per-object failures
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from ingest_api.features.ingest_wizard.form_engine import (
    SUBMIT_SUFFIX,
    FormEngine,
    submit_handler_name,
    validate_handler_name,
)
from ingest_api.features.ingest_wizard.object_store import ObjectStore, get_object_store, object_url
from ingest_api.features.ingest_wizard.step_registry import StepRegistry, get_step_registry
from ingest_api.features.ingest_wizard.wizard_contracts import (
    ControlName,
    FinalizationResult,
    FormDescription,
    NavigationControl,
    ObjectOutcome,
    StepType,
    WizardConfiguration,
)
from ingest_api.features.ingest_wizard.wizard_errors import (
    ConfigurationError,
    ObjectExistsError,
    StepResolutionError,
    UnknownControlError,
)
from ingest_api.features.ingest_wizard.wizard_sessions import (
    WizardSessionStore,
    get_session_store,
    new_session_id,
)
from ingest_api.features.ingest_wizard.wizard_state import (
    MEMBER_OF_COLLECTION,
    DraftObject,
    Relationship,
    WizardState,
)
from ingest_api.platform.env import get_default_namespace
from ingest_api.platform.observability.smart_logger import SmartLogger

PREVIOUS_HANDLER = "wizard:go_to_previous_step"
NEXT_HANDLER = "wizard:go_to_next_step"
FINALIZE_HANDLER = "wizard:finalize"


@dataclass
class WizardOutcome:
    """Either the step to render next, or the finalization result."""

    step: Optional[FormDescription] = None
    result: Optional[FinalizationResult] = None
    rebuild: bool = False


class IngestWizardController:
    def __init__(
        self,
        registry: StepRegistry | None = None,
        object_store: ObjectStore | None = None,
        sessions: WizardSessionStore | None = None,
        default_namespace: str | None = None,
    ):
        self.registry = registry or get_step_registry()
        self.object_store = object_store or get_object_store()
        self.sessions = sessions if sessions is not None else get_session_store()
        self.default_namespace = default_namespace or get_default_namespace()
        self.forms = FormEngine(self.registry)

    # =========================================================================
    # Initialization
    # =========================================================================

    def initialize(self, configuration: WizardConfiguration, session_id: str | None = None) -> WizardState:
        """Return the session's wizard state, building it on first use."""
        if session_id:
            existing = self.sessions.get(session_id)
            if existing is not None:
                SmartLogger.log(
                    "DEBUG",
                    "Wizard already initialized for session: reusing state.",
                    category="ingest_wizard.controller.initialize.reuse",
                    params={"session_id": session_id, "step_index": existing.current_step_index},
                )
                return existing

        draft = DraftObject(
            id=self.resolve_identifier(configuration),
            label=configuration.label,
            models=list(configuration.models),
        )
        # One relationship per configured entry, repeats included.
        draft.relationships.extend(Relationship(MEMBER_OF_COLLECTION, c) for c in configuration.collections)

        state = WizardState(
            session_id=session_id or new_session_id(),
            configuration=configuration,
            pending_objects=[draft],
        )
        state.steps = self.registry.list_steps(configuration)
        state.current_step_index = 0
        state.form_values = state.get_step_values(0)
        self.sessions.put(state)

        SmartLogger.log(
            "INFO",
            "Wizard initialized: draft object seeded and steps resolved.",
            category="ingest_wizard.controller.initialize",
            params={
                "session_id": state.session_id,
                "object_id": draft.id,
                "collections": list(configuration.collections),
                "models": list(configuration.models),
                "steps": [(s.id, s.weight) for s in state.steps],
            },
        )
        return state

    def resolve_identifier(self, configuration: WizardConfiguration) -> str:
        """
        Explicit id wins, then namespace, then the default namespace.
        A value with a colon is a full identifier; anything else is a namespace
        the object store mints the next identifier in.
        """
        value = configuration.id or configuration.namespace or self.default_namespace
        if ":" in value:
            return value
        return self.object_store.next_identifier(value)

    # =========================================================================
    # Rendering
    # =========================================================================

    def execute_current_step(self, state: WizardState, context: dict[str, Any] | None = None) -> FormDescription:
        state.sort_steps()
        step = state.current_step()
        if step is None:
            SmartLogger.log(
                "ERROR",
                "Wizard step resolution failed: current index matches no step.",
                category="ingest_wizard.controller.step.unresolved",
                params={
                    "session_id": state.session_id,
                    "step_index": state.current_step_index,
                    "step_count": state.step_count(),
                },
            )
            raise StepResolutionError(state.current_step_index, state.step_count())

        if step.type == StepType.BATCH:
            SmartLogger.log(
                "WARNING",
                "Batch steps are not supported: rendering navigation only.",
                category="ingest_wizard.controller.step.batch",
                params={"session_id": state.session_id, "step_id": step.id},
            )
            empty = FormDescription(
                step_id=step.id,
                step_type=StepType.BATCH,
                step_index=state.current_step_index,
                step_count=state.step_count(),
                title=step.title,
            )
            return self.stepify(empty, state)

        form = self.forms.render(step, context or {}, state)
        return self.stepify(form, state)

    def stepify(self, form: FormDescription, state: WizardState) -> FormDescription:
        """Append previous/next/ingest controls for the current step."""
        step = state.current_step()
        if step is None:
            raise StepResolutionError(state.current_step_index, state.step_count())

        controls: list[NavigationControl] = []
        if state.current_step_index > 0:
            controls.append(
                NavigationControl(
                    name=ControlName.PREVIOUS,
                    label="Previous",
                    skip_validation=True,
                    submit_handlers=[PREVIOUS_HANDLER],
                )
            )

        validate = [validate_handler_name(step.renderer_id)] if self.forms.has_validate(step.renderer_id) else []
        submit = [submit_handler_name(step.renderer_id)] if self.forms.has_submit(step.renderer_id) else []
        if state.is_last_step():
            controls.append(
                NavigationControl(
                    name=ControlName.INGEST,
                    label="Ingest",
                    validate_handlers=validate,
                    submit_handlers=submit + [FINALIZE_HANDLER],
                )
            )
        else:
            controls.append(
                NavigationControl(
                    name=ControlName.NEXT,
                    label="Next",
                    validate_handlers=validate,
                    submit_handlers=submit + [NEXT_HANDLER],
                )
            )

        return form.model_copy(update={"controls": list(form.controls) + controls})

    # =========================================================================
    # Submission
    # =========================================================================

    def submit(
        self,
        state: WizardState,
        control: str,
        values: dict[str, Any],
        context: dict[str, Any] | None = None,
    ) -> WizardOutcome:
        """Run the named control's handler chain against the submitted values."""
        form = self.execute_current_step(state, context)
        chosen = form.control(control)
        if chosen is None:
            raise UnknownControlError(control, [c.name.value for c in form.controls])

        step = state.current_step()
        if not chosen.skip_validation and chosen.validate_handlers:
            errors = self.forms.validate(step.renderer_id, values, state)
            if errors:
                state.form_values = dict(values)
                state.errors = errors
                return WizardOutcome(step=self.execute_current_step(state, context))

        result: FinalizationResult | None = None
        for name in chosen.submit_handlers:
            if name == PREVIOUS_HANDLER:
                self.go_to_previous_step(state, values)
            elif name == NEXT_HANDLER:
                self.go_to_next_step(state, values)
            elif name == FINALIZE_HANDLER:
                result = self.finalize(state)
            elif name.endswith(SUBMIT_SUFFIX):
                self.forms.submit(step.renderer_id, values, state)
            else:
                raise ConfigurationError(f"Unknown submit handler '{name}'")

        if result is not None:
            return WizardOutcome(result=result)
        rebuild, state.rebuild = state.rebuild, False
        return WizardOutcome(step=self.execute_current_step(state, context), rebuild=rebuild)

    def go_to_previous_step(self, state: WizardState, values: dict[str, Any]) -> None:
        self._move(state, values, -1)

    def go_to_next_step(self, state: WizardState, values: dict[str, Any]) -> None:
        self._move(state, values, +1)

    def _move(self, state: WizardState, values: dict[str, Any], delta: int) -> None:
        state.set_step_values(state.current_step_index, values)
        last = max(state.step_count() - 1, 0)
        target = min(max(state.current_step_index + delta, 0), last)
        if target == state.current_step_index:
            SmartLogger.log(
                "WARNING",
                "Wizard navigation clamped at step boundary.",
                category="ingest_wizard.controller.navigate.clamped",
                params={"session_id": state.session_id, "step_index": target, "delta": delta},
            )
        state.current_step_index = target
        state.form_values = state.get_step_values(target)
        state.errors = {}
        state.rebuild = True
        self.sessions.put(state)

    # =========================================================================
    # Finalization
    # =========================================================================

    def finalize(self, state: WizardState) -> FinalizationResult:
        """Persist each draft object in order; a failure never stops the loop."""
        result = FinalizationResult()
        for draft in state.pending_objects:
            try:
                persisted = self.object_store.create(draft)
            except ObjectExistsError as e:
                # Recovery hooks may already have materialized the object.
                SmartLogger.log(
                    "WARNING",
                    "Object already exists: not reported as a failure.",
                    category="ingest_wizard.controller.finalize.exists",
                    params={"session_id": state.session_id, "label": draft.label, "id": draft.id, "error": str(e)},
                )
                result.objects.append(
                    ObjectOutcome(id=draft.id, label=draft.label, status="exists", url=object_url(draft.id))
                )
                result.warnings.append(f"Object {draft.label} ({draft.id}) may already exist; please verify it.")
            except Exception as e:
                SmartLogger.log(
                    "ERROR",
                    "Object ingest failed: continuing with remaining objects.",
                    category="ingest_wizard.controller.finalize.failed",
                    params={
                        "session_id": state.session_id,
                        "label": draft.label,
                        "id": draft.id,
                        "error": {"type": type(e).__name__, "message": str(e)},
                    },
                )
                result.objects.append(
                    ObjectOutcome(id=draft.id, label=draft.label, status="failed", error=str(e))
                )
                result.warnings.append(f"Failed to ingest object {draft.label} ({draft.id}).")
            else:
                result.objects.append(
                    ObjectOutcome(id=persisted.id, label=persisted.label, status="ingested", url=persisted.url)
                )
                result.redirect = persisted.url

        self.sessions.delete(state.session_id)
        SmartLogger.log(
            "INFO",
            "Wizard finalized: session discarded.",
            category="ingest_wizard.controller.finalize.done",
            params={
                "session_id": state.session_id,
                "objects": [(o.id, o.status) for o in result.objects],
                "redirect": result.redirect,
            },
        )
        return result

    def abandon(self, session_id: str) -> None:
        self.sessions.delete(session_id)
