"""Steps: the registry mapping action types to implementations, plus the built-ins."""

from typing import Optional

from flowrun.credentials.broker import CredentialBroker
from flowrun.steps.plugin import get_registered_steps, step
from flowrun.steps.registry import NAMESPACED_ACTION_ALIASES, StepRegistry


def build_default_registry(broker: Optional[CredentialBroker] = None) -> StepRegistry:
    """Registry with every @step-decorated built-in, plus integration steps if *broker* is given."""
    import flowrun.steps.builtin  # noqa: F401 (triggers @step registrations)
    from flowrun.steps.builtin.slack import DEFINITION as SLACK_DEFINITION, SendSlackMessageStep

    registry = StepRegistry()
    for name, (definition, implementation) in get_registered_steps().items():
        registry.register(name, implementation, definition)
    if broker is not None:
        registry.register(SLACK_DEFINITION.name, SendSlackMessageStep(broker), SLACK_DEFINITION)
    for alias, target in NAMESPACED_ACTION_ALIASES.items():
        registry.register_alias(alias, target)
    return registry


__all__ = ["StepRegistry", "build_default_registry", "get_registered_steps", "step"]
