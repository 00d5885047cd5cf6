"""
Ingest Wizard State

Business capability: everything a wizard session carries between requests.
The controller is the only writer; step handlers receive the state and mutate
draft objects or shared storage through it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from ingest_api.features.ingest_wizard.wizard_contracts import StepType, WizardConfiguration

MEMBER_OF_COLLECTION = "isMemberOfCollection"


@dataclass(frozen=True)
class StepInclude:
    """Module to import before a step renders (`package.module`)."""

    package: str
    module: str

    @property
    def dotted_path(self) -> str:
        return f"{self.package}.{self.module}"


@dataclass
class StepDescriptor:
    id: str
    renderer_id: str
    weight: int = 0
    type: StepType = StepType.FORM
    title: str = ""
    args: tuple = ()
    stored_values: Optional[dict[str, Any]] = None
    required_include: Optional[StepInclude] = None


@dataclass(frozen=True)
class Relationship:
    predicate: str
    object: str


@dataclass
class Datastream:
    id: str
    label: str = ""
    mimetype: str = "text/plain"
    content: str = ""


@dataclass
class DraftObject:
    """A repository object under construction; persisted only at finalization."""

    id: str
    label: str
    models: list[str] = field(default_factory=list)
    relationships: list[Relationship] = field(default_factory=list)
    properties: dict[str, Any] = field(default_factory=dict)
    datastreams: dict[str, Datastream] = field(default_factory=dict)

    def add_relationship(self, predicate: str, obj: str) -> None:
        rel = Relationship(predicate, obj)
        if rel not in self.relationships:
            self.relationships.append(rel)

    def parent_collections(self) -> list[str]:
        return [r.object for r in self.relationships if r.predicate == MEMBER_OF_COLLECTION]


@dataclass
class WizardState:
    session_id: str
    configuration: WizardConfiguration
    steps: list[StepDescriptor] = field(default_factory=list)
    current_step_index: int = 0
    pending_objects: list[DraftObject] = field(default_factory=list)
    form_values: dict[str, Any] = field(default_factory=dict)
    errors: dict[str, str] = field(default_factory=dict)
    shared_storage: dict[str, Any] = field(default_factory=dict)
    rebuild: bool = False

    def sort_steps(self) -> None:
        self.steps.sort(key=lambda s: s.weight)

    def step_count(self) -> int:
        return len(self.steps)

    def get_step(self, index: int) -> Optional[StepDescriptor]:
        if 0 <= index < len(self.steps):
            return self.steps[index]
        return None

    def current_step(self) -> Optional[StepDescriptor]:
        return self.get_step(self.current_step_index)

    def add_step(self, step: StepDescriptor) -> None:
        """Append a step; it takes its place by weight the next time the wizard is entered."""
        self.steps.append(step)

    def set_step_values(self, index: int, values: dict[str, Any]) -> None:
        step = self.get_step(index)
        if step is not None:
            step.stored_values = dict(values)

    def get_step_values(self, index: int) -> dict[str, Any]:
        step = self.get_step(index)
        if step is None or step.stored_values is None:
            return {}
        return dict(step.stored_values)

    def is_last_step(self) -> bool:
        return self.current_step_index >= len(self.steps) - 1

    def primary_object(self) -> Optional[DraftObject]:
        return self.pending_objects[0] if self.pending_objects else None
