"""flowrun: trigger/action workflow graph execution.

Usage:
    from flowrun import WorkflowExecutor, WorkflowGraph, build_default_registry

    executor = WorkflowExecutor(build_default_registry())
    result = await executor.execute(graph, trigger_input={"orderId": 42}, execution_id="run-1")
"""

from flowrun.types import (
    Node, Edge, WorkflowGraph, NodeKind, ActionKind, ExecutionResult, NodeOutput,
    WorkflowRunResult, ExecutionLogEntry, WorkflowExecutionRecord, ExecutionStatus,
    LogStatus, IntegrationType, StepDefinition,
)
from flowrun.exceptions import (
    FlowrunError, GraphError, GraphValidationError, WorkflowFileError,
    ConfigurationError, ConditionError, StepError, StepNotFound,
    ExternalCallError, LoggingError, CredentialError, CredentialNotFound,
)
from flowrun.steps import build_default_registry, step
from flowrun.workflows.engine import WorkflowExecutor
from flowrun.version import __version__

__all__ = [
    "Node", "Edge", "WorkflowGraph", "NodeKind", "ActionKind", "ExecutionResult", "NodeOutput",
    "WorkflowRunResult", "ExecutionLogEntry", "WorkflowExecutionRecord", "ExecutionStatus",
    "LogStatus", "IntegrationType", "StepDefinition",
    "FlowrunError", "GraphError", "GraphValidationError", "WorkflowFileError",
    "ConfigurationError", "ConditionError", "StepError", "StepNotFound",
    "ExternalCallError", "LoggingError", "CredentialError", "CredentialNotFound",
    "build_default_registry", "step",
    "WorkflowExecutor",
    "__version__",
]
