"""
Ingest Wizard errors.

Validation failures are not exceptions: step validate handlers return field
errors and the wizard re-renders. These classes cover the states a request
cannot recover from on its own, plus per-object persistence failures that
`finalize` catches.
"""

from __future__ import annotations


class WizardError(Exception):
    """Base class for ingest wizard failures."""


class ConfigurationError(WizardError):
    """A step or provider is wired incorrectly (unknown renderer, missing include)."""


class StepResolutionError(WizardError):
    """The current step index does not resolve to a step."""

    def __init__(self, index: int, step_count: int):
        self.index = index
        self.step_count = step_count
        super().__init__(f"No wizard step at index {index} (steps: {step_count})")


class UnknownControlError(WizardError):
    """A submission named a control the current step does not offer."""

    def __init__(self, control: str, available: list[str]):
        self.control = control
        self.available = available
        super().__init__(f"Unknown control '{control}' (available: {', '.join(available) or 'none'})")


class PersistenceError(WizardError):
    """The object store failed to create an object."""


class ObjectExistsError(PersistenceError):
    """The object store already holds an object with this identifier."""

    def __init__(self, object_id: str):
        self.object_id = object_id
        super().__init__(f"Object {object_id} already exists")
