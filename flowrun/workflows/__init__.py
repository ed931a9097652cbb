"""Graph traversal, template resolution, conditions, validation."""

from .conditions import evaluate_condition
from .engine import WorkflowExecutor
from .template import resolve_config, resolve_template
from .validator import WorkflowValidator

__all__ = [
    "WorkflowExecutor",
    "WorkflowValidator",
    "evaluate_condition",
    "resolve_config",
    "resolve_template",
]
