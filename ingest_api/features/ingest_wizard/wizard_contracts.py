"""
Ingest Wizard Contracts (DTOs)

Business capability: describe wizard configuration, rendered steps and
finalization outcomes as they cross the HTTP boundary.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class StepType(str, Enum):
    FORM = "form"
    BATCH = "batch"


class ControlName(str, Enum):
    PREVIOUS = "previous"
    NEXT = "next"
    INGEST = "ingest"


class WizardConfiguration(BaseModel):
    """Snapshot of the configuration a wizard session was started with."""

    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    namespace: Optional[str] = None
    label: str = "New Object"
    collections: tuple[str, ...] = ()
    models: tuple[str, ...] = ()


class FormField(BaseModel):
    name: str
    title: str
    type: str = "textfield"  # textfield, textarea, select, hidden
    required: bool = False
    description: Optional[str] = None
    options: Optional[dict[str, str]] = None
    default_value: Any = None


class NavigationControl(BaseModel):
    """A submit button appended to a step, with its validate/submit handler chains."""

    name: ControlName
    label: str
    skip_validation: bool = False
    validate_handlers: list[str] = Field(default_factory=list)
    submit_handlers: list[str] = Field(default_factory=list)


class FormDescription(BaseModel):
    """What the form engine produced for one step."""

    step_id: Optional[str] = None
    step_type: StepType = StepType.FORM
    step_index: int = 0
    step_count: int = 0
    title: str = ""
    fields: list[FormField] = Field(default_factory=list)
    values: dict[str, Any] = Field(default_factory=dict)
    errors: dict[str, str] = Field(default_factory=dict)
    controls: list[NavigationControl] = Field(default_factory=list)

    def control(self, name: ControlName | str) -> Optional[NavigationControl]:
        for control in self.controls:
            if control.name == name:
                return control
        return None


class ObjectOutcome(BaseModel):
    """Per-object result of finalization."""

    id: str
    label: str
    status: str  # ingested, exists, failed
    url: Optional[str] = None
    error: Optional[str] = None


class FinalizationResult(BaseModel):
    objects: list[ObjectOutcome] = Field(default_factory=list)
    redirect: Optional[str] = None
    warnings: list[str] = Field(default_factory=list)

    @property
    def failed(self) -> list[ObjectOutcome]:
        return [o for o in self.objects if o.status == "failed"]


# =============================================================================
# HTTP payloads
# =============================================================================

class StartWizardRequest(BaseModel):
    session_id: Optional[str] = None
    id: Optional[str] = None
    namespace: Optional[str] = None
    label: str = "New Object"
    collections: list[str] = Field(default_factory=list)
    models: list[str] = Field(default_factory=list)

    def to_configuration(self) -> WizardConfiguration:
        return WizardConfiguration(
            id=self.id,
            namespace=self.namespace,
            label=self.label,
            collections=tuple(self.collections),
            models=tuple(self.models),
        )


class SubmitControlRequest(BaseModel):
    values: dict[str, Any] = Field(default_factory=dict)


class WizardResponse(BaseModel):
    session_id: str
    step: Optional[FormDescription] = None
    result: Optional[FinalizationResult] = None
    rebuild: bool = False


class WizardSessionSummary(BaseModel):
    id: str
    label: str
    step_index: int
    step_count: int
    pending_objects: int
