"""
Describe step: label and description of the object being ingested.
Offered for every configuration.
"""

from __future__ import annotations

from typing import Any

from ingest_api.features.ingest_wizard.step_registry import StepRegistry
from ingest_api.features.ingest_wizard.wizard_contracts import FormDescription, FormField, WizardConfiguration
from ingest_api.features.ingest_wizard.wizard_state import StepDescriptor, WizardState

RENDERER_ID = "describe_object"
MAX_LABEL_LENGTH = 255


def provide_steps(configuration: WizardConfiguration) -> list[StepDescriptor]:
    return [StepDescriptor(id="describe", renderer_id=RENDERER_ID, weight=0, title="Describe the object")]


def render(context: dict[str, Any], state: WizardState) -> FormDescription:
    draft = state.primary_object()
    return FormDescription(
        fields=[
            FormField(
                name="label",
                title="Label",
                required=True,
                default_value=draft.label if draft else None,
            ),
            FormField(name="description", title="Description", type="textarea"),
        ]
    )


def validate(values: dict[str, Any], state: WizardState) -> dict[str, str]:
    label = str(values.get("label") or "").strip()
    if not label:
        return {"label": "Label is required."}
    if len(label) > MAX_LABEL_LENGTH:
        return {"label": f"Label must be at most {MAX_LABEL_LENGTH} characters."}
    return {}


def submit(values: dict[str, Any], state: WizardState) -> None:
    draft = state.primary_object()
    if draft is None:
        return
    draft.label = str(values["label"]).strip()
    description = str(values.get("description") or "").strip()
    if description:
        draft.properties["description"] = description
    else:
        draft.properties.pop("description", None)


def register(registry: StepRegistry) -> None:
    registry.register_provider(provide_steps, name="describe")
    registry.register_form(RENDERER_ID, render, validate=validate, submit=submit)
