"""Per-node execution records. Best-effort: a failing sink never fails a run.

Every payload is redacted before it reaches the sink. Entries are created
when a node visit starts and replaced exactly once by a completed copy.

In-memory store is always available. A host application can supply any
object implementing :class:`ExecutionLogSink`, e.g. a database table.
"""

import inspect
import logging
import time
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, NamedTuple, Optional, Protocol, runtime_checkable

from flowrun.core.redact import redact
from flowrun.exceptions import LoggingError
from flowrun.types import (
    ExecutionLogEntry,
    ExecutionStatus,
    LogStatus,
    WorkflowExecutionRecord,
)

logger = logging.getLogger(__name__)

_MAX_MEMORY_ENTRIES = 10_000

FailureHook = Callable[[str, dict], Optional[Awaitable[None]]]


@runtime_checkable
class ExecutionLogSink(Protocol):
    """Where execution records end up."""

    async def write_entry(self, entry: ExecutionLogEntry) -> None:
        ...

    async def write_execution(self, record: WorkflowExecutionRecord) -> None:
        ...


class InMemoryExecutionLogSink:
    """Append-only, capped, process-local sink."""

    def __init__(self, max_entries: int = _MAX_MEMORY_ENTRIES):
        self._max_entries = max_entries
        self._entries: dict[str, ExecutionLogEntry] = {}
        self._executions: dict[str, WorkflowExecutionRecord] = {}

    async def write_entry(self, entry: ExecutionLogEntry) -> None:
        # Finalizing replaces the running entry under the same id.
        self._entries[entry.id] = entry
        if len(self._entries) > self._max_entries:
            for stale in list(self._entries)[: len(self._entries) - self._max_entries]:
                del self._entries[stale]

    async def write_execution(self, record: WorkflowExecutionRecord) -> None:
        self._executions[record.id] = record
        if len(self._executions) > self._max_entries:
            for stale in list(self._executions)[: len(self._executions) - self._max_entries]:
                del self._executions[stale]

    async def get_logs(self, execution_id: str) -> list[ExecutionLogEntry]:
        """All node entries of an execution, ordered by start time."""
        return sorted(
            (e for e in self._entries.values() if e.execution_id == execution_id),
            key=lambda e: e.started_at,
        )

    async def get_execution(self, execution_id: str) -> Optional[WorkflowExecutionRecord]:
        return self._executions.get(execution_id)


class LogHandle(NamedTuple):
    """Returned by :meth:`ExecutionLogger.log_start`; pass it to ``log_complete``."""

    entry: Optional[ExecutionLogEntry]
    started: float                                 # monotonic seconds


class ExecutionLogger:
    """Writes redacted start/complete records for node visits.

    Args:
        sink: Where records go. Defaults to a fresh in-memory sink.
        on_failure: Optional hook ``(event, data)`` called with
            ``"logging_failed"`` whenever the sink raises. Sync or async.
    """

    def __init__(self, sink: Optional[ExecutionLogSink] = None, on_failure: Optional[FailureHook] = None):
        self.sink = sink if sink is not None else InMemoryExecutionLogSink()
        self.on_failure = on_failure

    async def start_execution(self, execution_id: Optional[str], workflow_input: Any = None,
                              workflow_id: Optional[str] = None) -> None:
        """Record that a workflow run has begun."""
        if not execution_id:
            return
        record = WorkflowExecutionRecord(
            id=execution_id,
            workflow_id=workflow_id,
            status=ExecutionStatus.RUNNING,
            input=redact(workflow_input),
        )
        await self._write(self.sink.write_execution, record, execution_id, "start_execution")

    async def log_start(
        self,
        execution_id: Optional[str],
        node_id: str,
        node_name: str,
        node_type: str,
        input: Any,
    ) -> LogHandle:
        started = time.monotonic()
        if not execution_id:
            return LogHandle(None, started)
        entry = ExecutionLogEntry(
            execution_id=execution_id,
            node_id=node_id,
            node_name=node_name,
            node_type=node_type,
            status=LogStatus.RUNNING,
            input=redact(input),
        )
        await self._write(self.sink.write_entry, entry, execution_id, "log_start")
        return LogHandle(entry, started)

    async def log_complete(
        self,
        handle: LogHandle,
        status: LogStatus,
        output: Any = None,
        error: Optional[str] = None,
    ) -> None:
        if handle.entry is None:
            return
        completed = handle.entry.model_copy(update={
            "status": status,
            "output": redact(output),
            "error": error,
            "completed_at": datetime.now(timezone.utc),
            "duration_ms": int((time.monotonic() - handle.started) * 1000),
        })
        await self._write(self.sink.write_entry, completed, completed.execution_id, "log_complete")

    async def log_workflow_complete(
        self,
        execution_id: Optional[str],
        status: ExecutionStatus,
        output: Any = None,
        error: Optional[str] = None,
        started_at: Optional[datetime] = None,
    ) -> None:
        if not execution_id:
            return
        now = datetime.now(timezone.utc)
        existing = await self._read_execution(execution_id)
        base = existing or WorkflowExecutionRecord(id=execution_id, started_at=started_at or now)
        record = base.model_copy(update={
            "status": status,
            "output": redact(output),
            "error": error,
            "completed_at": now,
            "duration_ms": int((now - base.started_at).total_seconds() * 1000),
        })
        await self._write(self.sink.write_execution, record, execution_id, "log_workflow_complete")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _read_execution(self, execution_id: str) -> Optional[WorkflowExecutionRecord]:
        getter = getattr(self.sink, "get_execution", None)
        if getter is None:
            return None
        try:
            return await getter(execution_id)
        except Exception as exc:
            await self._report(LoggingError(f"Execution lookup failed: {exc}", execution_id=execution_id), "read")
            return None

    async def _write(self, method, payload, execution_id: str, operation: str) -> None:
        try:
            await method(payload)
        except Exception as exc:
            await self._report(LoggingError(f"{operation} failed: {exc}", execution_id=execution_id), operation)

    async def _report(self, error: LoggingError, operation: str) -> None:
        logger.warning(f"[ExecutionLog] {error}")
        if self.on_failure is None:
            return
        data = {"execution_id": error.execution_id, "operation": operation, "error": str(error)}
        try:
            result = self.on_failure("logging_failed", data)
            if inspect.isawaitable(result):
                await result
        except Exception as hook_exc:
            logger.warning(f"[ExecutionLog] Failure hook raised: {hook_exc}")
