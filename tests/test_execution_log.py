"""Execution logger: redaction, entry lifecycle, best-effort sinks."""

import asyncio

import pytest

from flowrun.core.execution_log import ExecutionLogger, InMemoryExecutionLogSink
from flowrun.core.redact import REDACTED
from flowrun.types import ExecutionStatus, LogStatus


class FailingSink:
    async def write_entry(self, entry):
        raise RuntimeError("disk full")

    async def write_execution(self, record):
        raise RuntimeError("disk full")


@pytest.mark.asyncio
async def test_start_and_complete_replace_single_entry(log_sink):
    logger = ExecutionLogger(log_sink)
    handle = await logger.log_start("exec-1", "n1", "Fetch", "action", {"endpoint": "https://x"})

    running = await log_sink.get_logs("exec-1")
    assert [e.status for e in running] == [LogStatus.RUNNING]

    await logger.log_complete(handle, LogStatus.SUCCESS, output={"status": 200})
    entries = await log_sink.get_logs("exec-1")
    assert len(entries) == 1
    entry = entries[0]
    assert entry.id == handle.entry.id
    assert entry.status == LogStatus.SUCCESS
    assert entry.output == {"status": 200}
    assert entry.completed_at is not None
    assert entry.duration_ms >= 0


@pytest.mark.asyncio
async def test_payloads_are_redacted(log_sink):
    logger = ExecutionLogger(log_sink)
    handle = await logger.log_start("exec-1", "n1", "Email", "action", {"apiKey": "re_123", "to": "a@b.c"})
    await logger.log_complete(handle, LogStatus.SUCCESS, output={"token": "t", "id": "m1"})

    [entry] = await log_sink.get_logs("exec-1")
    assert entry.input == {"apiKey": REDACTED, "to": "a@b.c"}
    assert entry.output == {"token": REDACTED, "id": "m1"}


@pytest.mark.asyncio
async def test_no_execution_id_is_a_no_op(log_sink):
    logger = ExecutionLogger(log_sink)
    handle = await logger.log_start(None, "n1", "Log", "action", {})
    await logger.log_complete(handle, LogStatus.SUCCESS)
    await logger.start_execution(None)
    await logger.log_workflow_complete(None, ExecutionStatus.SUCCESS)
    assert handle.entry is None
    assert log_sink._entries == {}
    assert log_sink._executions == {}


@pytest.mark.asyncio
async def test_workflow_record_lifecycle(log_sink):
    logger = ExecutionLogger(log_sink)
    await logger.start_execution("exec-2", {"password": "p", "orderId": 7}, workflow_id="wf-1")
    record = await log_sink.get_execution("exec-2")
    assert record.status == ExecutionStatus.RUNNING
    assert record.input == {"password": REDACTED, "orderId": 7}

    await logger.log_workflow_complete("exec-2", ExecutionStatus.ERROR, output={"x": 1}, error="boom")
    record = await log_sink.get_execution("exec-2")
    assert record.status == ExecutionStatus.ERROR
    assert record.workflow_id == "wf-1"
    assert record.error == "boom"
    assert record.input == {"password": REDACTED, "orderId": 7}
    assert record.completed_at is not None


@pytest.mark.asyncio
async def test_failing_sink_never_raises_and_reports():
    reported = []

    async def on_failure(event, data):
        reported.append((event, data))

    logger = ExecutionLogger(FailingSink(), on_failure=on_failure)
    await logger.start_execution("exec-3", {})
    handle = await logger.log_start("exec-3", "n1", "Log", "action", {})
    await logger.log_complete(handle, LogStatus.SUCCESS)

    assert [event for event, _ in reported] == ["logging_failed"] * 3
    assert reported[1][1]["operation"] == "log_start"
    assert reported[1][1]["execution_id"] == "exec-3"
    assert "disk full" in reported[1][1]["error"]


@pytest.mark.asyncio
async def test_raising_failure_hook_is_contained():
    def on_failure(event, data):
        raise ValueError("hook broke")

    logger = ExecutionLogger(FailingSink(), on_failure=on_failure)
    await logger.log_start("exec-4", "n1", "Log", "action", {})


@pytest.mark.asyncio
async def test_logs_ordered_by_start_time(log_sink):
    logger = ExecutionLogger(log_sink)
    await logger.log_start("exec-5", "first", "First", "trigger", {})
    await asyncio.sleep(0.01)
    await logger.log_start("exec-5", "second", "Second", "action", {})
    await logger.log_start("other", "x", "X", "action", {})
    assert [e.node_id for e in await log_sink.get_logs("exec-5")] == ["first", "second"]


@pytest.mark.asyncio
async def test_memory_sink_is_capped():
    sink = InMemoryExecutionLogSink(max_entries=2)
    logger = ExecutionLogger(sink)
    for i in range(4):
        await logger.log_start("exec-6", f"n{i}", "N", "action", {})
    assert [e.node_id for e in await sink.get_logs("exec-6")] == ["n2", "n3"]
