"""Wire up an in-process runtime: integrations, steps, execution log, executor.

Used by the CLI and the HTTP API; library users can build the pieces
themselves.
"""

from dataclasses import dataclass
from typing import Any, Optional

from flowrun.callbacks.logging import LoggingCallback
from flowrun.config import FlowrunConfig
from flowrun.core.execution_log import ExecutionLogger, InMemoryExecutionLogSink
from flowrun.credentials import CredentialBroker, IntegrationEncryption, IntegrationStore
from flowrun.steps import build_default_registry
from flowrun.steps.registry import StepRegistry
from flowrun.workflows.engine import WorkflowExecutor


@dataclass
class Runtime:
    config: FlowrunConfig
    integrations: IntegrationStore
    broker: CredentialBroker
    registry: StepRegistry
    log_sink: InMemoryExecutionLogSink
    executor: WorkflowExecutor


def build_runtime(cfg: Optional[FlowrunConfig] = None, callbacks: Optional[list[Any]] = None) -> Runtime:
    """Build an in-memory runtime. A LoggingCallback is always attached."""
    cfg = cfg or FlowrunConfig()
    store = IntegrationStore(IntegrationEncryption(cfg.integration_encryption_key))
    broker = CredentialBroker(store)
    registry = build_default_registry(broker)
    sink = InMemoryExecutionLogSink(max_entries=cfg.execution_log_max_entries)

    all_callbacks = [LoggingCallback(), *(callbacks or [])]
    executor = WorkflowExecutor(registry, execution_logger=ExecutionLogger(sink), callbacks=all_callbacks)

    return Runtime(
        config=cfg,
        integrations=store,
        broker=broker,
        registry=registry,
        log_sink=sink,
        executor=executor,
    )
