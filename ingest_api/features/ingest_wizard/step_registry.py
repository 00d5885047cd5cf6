"""
Step Registry

Business capability: let solution packs contribute wizard steps.

Providers are registered either globally or against content models, and every
renderer id is registered together with its validate/submit handlers so the
controller never looks up handlers by function name.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional

from ingest_api.features.ingest_wizard.wizard_contracts import FormDescription, WizardConfiguration
from ingest_api.features.ingest_wizard.wizard_errors import ConfigurationError
from ingest_api.features.ingest_wizard.wizard_state import StepDescriptor, WizardState
from ingest_api.platform.observability.smart_logger import SmartLogger

StepProvider = Callable[[WizardConfiguration], Iterable[Optional[StepDescriptor]]]
StepAlter = Callable[[list[StepDescriptor], WizardConfiguration], None]
RenderHandler = Callable[..., FormDescription]
ValidateHandler = Callable[[dict[str, Any], WizardState], Optional[dict[str, str]]]
SubmitHandler = Callable[[dict[str, Any], WizardState], None]


@dataclass
class FormHandlers:
    renderer_id: str
    render: RenderHandler
    validate: Optional[ValidateHandler] = None
    submit: Optional[SubmitHandler] = None


@dataclass
class _ProviderEntry:
    name: str
    provider: StepProvider
    models: frozenset[str] = field(default_factory=frozenset)

    def applies_to(self, models: Iterable[str]) -> bool:
        return not self.models or bool(self.models.intersection(models))


class StepRegistry:
    """Explicit table of step providers, form handlers and step alter hooks."""

    def __init__(self) -> None:
        self._providers: list[_ProviderEntry] = []
        self._forms: dict[str, FormHandlers] = {}
        self._alters: list[StepAlter] = []

    def register_provider(
        self,
        provider: StepProvider,
        *,
        models: Iterable[str] | None = None,
        name: str | None = None,
    ) -> None:
        """Register a step provider; with `models` it only runs for those content models."""
        entry = _ProviderEntry(
            name=name or getattr(provider, "__name__", repr(provider)),
            provider=provider,
            models=frozenset(models or ()),
        )
        self._providers.append(entry)

    def register_form(
        self,
        renderer_id: str,
        render: RenderHandler,
        *,
        validate: ValidateHandler | None = None,
        submit: SubmitHandler | None = None,
    ) -> None:
        if renderer_id in self._forms:
            raise ConfigurationError(f"Renderer '{renderer_id}' is already registered")
        self._forms[renderer_id] = FormHandlers(renderer_id, render, validate, submit)

    def register_alter(self, alter: StepAlter) -> None:
        self._alters.append(alter)

    def get_form(self, renderer_id: str) -> FormHandlers:
        handlers = self._forms.get(renderer_id)
        if handlers is None:
            raise ConfigurationError(f"No form registered for renderer '{renderer_id}'")
        return handlers

    def has_form(self, renderer_id: str) -> bool:
        return renderer_id in self._forms

    def list_steps(self, configuration: WizardConfiguration) -> list[StepDescriptor]:
        """Flatten every applicable provider's steps, drop empty entries, alter, sort by weight."""
        steps: list[StepDescriptor] = []
        for entry in self._providers:
            if not entry.applies_to(configuration.models):
                continue
            contributed = [s for s in (entry.provider(configuration) or []) if s is not None]
            steps.extend(contributed)
            SmartLogger.log(
                "DEBUG",
                "Step provider contributed steps.",
                category="ingest_wizard.registry.provider",
                params={"provider": entry.name, "steps": [s.id for s in contributed]},
            )

        for alter in self._alters:
            alter(steps, configuration)

        steps.sort(key=lambda s: s.weight)
        return steps


_registry: StepRegistry | None = None


def get_step_registry() -> StepRegistry:
    """Get the process-wide registry, with the built-in steps registered."""
    global _registry
    if _registry is None:
        from ingest_api.features.ingest_wizard.steps import register_default_steps

        _registry = StepRegistry()
        register_default_steps(_registry)
    return _registry
