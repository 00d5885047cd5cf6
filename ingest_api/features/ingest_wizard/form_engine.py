"""
Form Engine

Business capability: turn a step descriptor into a rendered form and run the
step's own validate/submit handlers.
"""

from __future__ import annotations

import importlib
from typing import Any

from ingest_api.features.ingest_wizard.step_registry import StepRegistry
from ingest_api.features.ingest_wizard.wizard_contracts import FormDescription
from ingest_api.features.ingest_wizard.wizard_errors import ConfigurationError
from ingest_api.features.ingest_wizard.wizard_state import StepDescriptor, StepInclude, WizardState
from ingest_api.platform.observability.smart_logger import SmartLogger

VALIDATE_SUFFIX = ":validate"
SUBMIT_SUFFIX = ":submit"


def validate_handler_name(renderer_id: str) -> str:
    return f"{renderer_id}{VALIDATE_SUFFIX}"


def submit_handler_name(renderer_id: str) -> str:
    return f"{renderer_id}{SUBMIT_SUFFIX}"


def load_include(include: StepInclude) -> None:
    try:
        importlib.import_module(include.dotted_path)
    except ImportError as e:
        raise ConfigurationError(f"Step include '{include.dotted_path}' could not be loaded: {e}") from e


class FormEngine:
    def __init__(self, registry: StepRegistry):
        self.registry = registry

    def render(self, step: StepDescriptor, context: dict[str, Any], state: WizardState) -> FormDescription:
        if step.required_include is not None:
            load_include(step.required_include)

        handlers = self.registry.get_form(step.renderer_id)
        form = handlers.render(context, state, *step.args)

        values = {f.name: f.default_value for f in form.fields if f.default_value is not None}
        values.update(state.form_values)
        return form.model_copy(
            update={
                "step_id": step.id,
                "step_type": step.type,
                "step_index": state.current_step_index,
                "step_count": state.step_count(),
                "title": form.title or step.title,
                "values": values,
                "errors": dict(state.errors),
            }
        )

    def has_validate(self, renderer_id: str) -> bool:
        return self.registry.has_form(renderer_id) and self.registry.get_form(renderer_id).validate is not None

    def has_submit(self, renderer_id: str) -> bool:
        return self.registry.has_form(renderer_id) and self.registry.get_form(renderer_id).submit is not None

    def validate(self, renderer_id: str, values: dict[str, Any], state: WizardState) -> dict[str, str]:
        handlers = self.registry.get_form(renderer_id)
        if handlers.validate is None:
            return {}
        errors = handlers.validate(values, state) or {}
        if errors:
            SmartLogger.log(
                "INFO",
                "Step validation failed: wizard will re-render the step.",
                category="ingest_wizard.form.validate.failed",
                params={"session_id": state.session_id, "renderer_id": renderer_id, "errors": errors},
            )
        return errors

    def submit(self, renderer_id: str, values: dict[str, Any], state: WizardState) -> None:
        handlers = self.registry.get_form(renderer_id)
        if handlers.submit is not None:
            handlers.submit(values, state)
