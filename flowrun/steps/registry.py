"""Central registry of all available step implementations."""

from typing import Any, Callable, Optional, Union

from flowrun.exceptions import StepNotFound
from flowrun.types import ActionKind, StepDefinition

StepKind = Union[ActionKind, str]
StepImplementation = Callable[[dict[str, Any]], Any]

# Namespaced plugin ids -> the action type names saved workflows use.
NAMESPACED_ACTION_ALIASES: dict[str, str] = {
    "system/log": ActionKind.LOG.value,
    "system/http-request": ActionKind.HTTP_REQUEST.value,
    "system/condition": ActionKind.CONDITION.value,
    "resend/send-email": ActionKind.SEND_EMAIL.value,
    "slack/send-message": ActionKind.SEND_SLACK_MESSAGE.value,
    "linear/create-ticket": ActionKind.CREATE_TICKET.value,
    "ai-gateway/generate-text": ActionKind.GENERATE_TEXT.value,
    "ai-gateway/generate-image": ActionKind.GENERATE_IMAGE.value,
    "database/query": ActionKind.DATABASE_QUERY.value,
}


def step_key(kind: StepKind) -> str:
    return kind.value if isinstance(kind, ActionKind) else str(kind)


class StepRegistry:
    """Central registry of all available steps, keyed by action type."""

    def __init__(self):
        self._steps: dict[str, StepDefinition] = {}
        self._implementations: dict[str, StepImplementation] = {}
        self._aliases: dict[str, str] = {}

    def register(
        self,
        kind: StepKind,
        implementation: StepImplementation,
        definition: Optional[StepDefinition] = None,
    ) -> None:
        """Register a step implementation under an action type.

        Args:
            kind: ``ActionKind`` member or any string (externally contributed steps)
            implementation: Callable taking the resolved config dict; sync or async
            definition: Step metadata; a minimal one is created if omitted
        """
        name = step_key(kind)
        self._steps[name] = definition or StepDefinition(name=name)
        self._implementations[name] = implementation

    def register_alias(self, alias: StepKind, target: StepKind) -> None:
        """Make *alias* resolve to the step registered as *target*."""
        self._aliases[step_key(alias)] = step_key(target)

    def _resolve(self, kind: StepKind) -> Optional[str]:
        name = step_key(kind)
        if name in self._implementations:
            return name
        target = self._aliases.get(name)
        if target is not None and target in self._implementations:
            return target
        return None

    def has(self, kind: StepKind) -> bool:
        return self._resolve(kind) is not None

    def get(self, kind: StepKind) -> tuple[StepDefinition, StepImplementation]:
        """Get step definition and implementation.

        Raises:
            StepNotFound: if no step (or alias) is registered for *kind*
        """
        name = self._resolve(kind)
        if name is None:
            raise StepNotFound(f"Step '{step_key(kind)}' not found in registry", step_name=step_key(kind))
        return self._steps[name], self._implementations[name]

    def list_steps(self) -> list[StepDefinition]:
        """List all registered step definitions."""
        return list(self._steps.values())

    def list_aliases(self) -> dict[str, str]:
        return dict(self._aliases)
