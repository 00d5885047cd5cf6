"""
Built-in wizard steps.

Solution packs contribute steps the same way: register a provider (optionally
bound to content models) and a form for each renderer id it uses.
"""

from __future__ import annotations

from ingest_api.features.ingest_wizard.step_registry import StepRegistry
from ingest_api.features.ingest_wizard.steps import describe, upload


def register_default_steps(registry: StepRegistry) -> None:
    describe.register(registry)
    upload.register(registry)
