"""@step decorator for registering functions as workflow steps.

Usage:
    @step(ActionKind.LOG, description="Write a message to the workflow log")
    async def log_step(config: dict) -> dict:
        ...

Decorated steps are collected at import time; ``build_default_registry``
copies them into a :class:`StepRegistry`.
"""

import functools
import inspect
from typing import Any, Callable, Optional

from flowrun.steps.registry import StepImplementation, StepKind, step_key
from flowrun.types import IntegrationType, StepDefinition

# Global registry for decorated steps, collected at import time
_registered_steps: dict[str, tuple[StepDefinition, StepImplementation]] = {}


def step(
    kind: StepKind,
    description: str = None,
    category: str = "builtin",
    integration: Optional[IntegrationType] = None,
    config_fields: Optional[list[str]] = None,
):
    """Decorator to register a function as the implementation of an action type.

    Args:
        kind: Action type the step handles
        description: Step description (defaults to the first docstring line)
        category: Grouping shown by ``flowrun steps``
        integration: Integration whose credentials the step fetches, if any
        config_fields: Config keys the step reads, for documentation
    """
    def decorator(func: Callable[..., Any]):
        name = step_key(kind)
        definition = StepDefinition(
            name=name,
            description=description or (func.__doc__ or "").strip().split("\n")[0],
            category=category,
            integration=integration,
            config_fields=config_fields or [],
        )

        if inspect.iscoroutinefunction(func):
            @functools.wraps(func)
            async def wrapper(*args, **kwargs):
                return await func(*args, **kwargs)
        else:
            @functools.wraps(func)
            def wrapper(*args, **kwargs):
                return func(*args, **kwargs)

        wrapper._flowrun_step = definition
        _registered_steps[name] = (definition, wrapper)
        return wrapper

    return decorator


def get_registered_steps() -> dict[str, tuple[StepDefinition, StepImplementation]]:
    """Return all steps registered via @step decorator."""
    return _registered_steps.copy()
