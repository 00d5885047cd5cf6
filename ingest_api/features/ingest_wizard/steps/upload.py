"""
Upload step: attach the primary datastream (OBJ) to binary objects.
"""

from __future__ import annotations

from typing import Any

from ingest_api.features.ingest_wizard.step_registry import StepRegistry
from ingest_api.features.ingest_wizard.wizard_contracts import FormDescription, FormField, WizardConfiguration
from ingest_api.features.ingest_wizard.wizard_state import Datastream, StepDescriptor, WizardState

RENDERER_ID = "upload_datastream"
BINARY_OBJECT_MODEL = "islandora:binaryObjectCModel"
DEFAULT_DSID = "OBJ"

_MIMETYPES = {
    "text/plain": "Plain text",
    "application/xml": "XML",
    "application/json": "JSON",
    "application/octet-stream": "Binary",
}


def provide_steps(configuration: WizardConfiguration) -> list[StepDescriptor]:
    return [
        StepDescriptor(
            id="upload",
            renderer_id=RENDERER_ID,
            weight=10,
            title="Upload content",
            args=(DEFAULT_DSID,),
        )
    ]


def render(context: dict[str, Any], state: WizardState, dsid: str) -> FormDescription:
    return FormDescription(
        fields=[
            FormField(name="dsid", type="hidden", title="Datastream ID", default_value=dsid),
            FormField(name="ds_label", title="Datastream label", default_value=f"{dsid} datastream"),
            FormField(
                name="mimetype",
                title="MIME type",
                type="select",
                options=dict(_MIMETYPES),
                default_value="text/plain",
            ),
            FormField(name="content", title="Content", type="textarea", required=True),
        ]
    )


def validate(values: dict[str, Any], state: WizardState) -> dict[str, str]:
    errors: dict[str, str] = {}
    if not values.get("content"):
        errors["content"] = "Content is required."
    mimetype = values.get("mimetype") or "text/plain"
    if mimetype not in _MIMETYPES:
        errors["mimetype"] = f"Unsupported MIME type '{mimetype}'."
    return errors


def submit(values: dict[str, Any], state: WizardState) -> None:
    draft = state.primary_object()
    if draft is None:
        return
    dsid = values.get("dsid") or DEFAULT_DSID
    draft.datastreams[dsid] = Datastream(
        id=dsid,
        label=values.get("ds_label") or f"{dsid} datastream",
        mimetype=values.get("mimetype") or "text/plain",
        content=str(values["content"]),
    )


def register(registry: StepRegistry) -> None:
    registry.register_provider(provide_steps, models=[BINARY_OBJECT_MODEL], name="upload")
    registry.register_form(RENDERER_ID, render, validate=validate, submit=submit)
