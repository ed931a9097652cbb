"""Test fixtures: fixed encryption key, in-memory integrations, registry, executor.

All tests should use these fixtures for consistency.
"""

import pytest

from flowrun.core.execution_log import ExecutionLogger, InMemoryExecutionLogSink
from flowrun.credentials import CredentialBroker, IntegrationEncryption, IntegrationStore
from flowrun.steps import build_default_registry
from flowrun.workflows.engine import WorkflowExecutor

# Fixed 32-byte key (64 hex chars) so tests never hit the ephemeral-key path.
TEST_ENCRYPTION_KEY = "0f1e2d3c4b5a69788796a5b4c3d2e1f00f1e2d3c4b5a69788796a5b4c3d2e1f0"


class EventRecorder:
    """Callback that records every ``(event, data)`` pair it receives."""

    def __init__(self):
        self.events: list[tuple[str, dict]] = []

    def __call__(self, event: str, data: dict) -> None:
        self.events.append((event, dict(data)))

    def names(self) -> list[str]:
        return [name for name, _ in self.events]

    def of(self, event: str) -> list[dict]:
        return [data for name, data in self.events if name == event]


@pytest.fixture
def encryption():
    """IntegrationEncryption backed by the fixed test key."""
    return IntegrationEncryption(key=TEST_ENCRYPTION_KEY)


@pytest.fixture
def store(encryption):
    """In-memory IntegrationStore, nothing persisted."""
    return IntegrationStore(encryption=encryption)


@pytest.fixture
def broker(store):
    return CredentialBroker(store)


@pytest.fixture
def registry(broker):
    """Default registry including broker-backed integration steps."""
    return build_default_registry(broker)


@pytest.fixture
def log_sink():
    return InMemoryExecutionLogSink()


@pytest.fixture
def recorder():
    return EventRecorder()


@pytest.fixture
def executor(registry, log_sink, recorder):
    """WorkflowExecutor writing to ``log_sink`` and reporting to ``recorder``."""
    return WorkflowExecutor(
        registry,
        execution_logger=ExecutionLogger(log_sink),
        callbacks=[recorder],
    )
