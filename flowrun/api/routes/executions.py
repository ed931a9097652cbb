"""Workflow execution and execution-log API routes."""

import logging
import uuid

from fastapi import APIRouter, HTTPException, Request
from pydantic import ValidationError

from flowrun.api.schemas import ExecuteWorkflowRequest, ExecutionLogsResponse
from flowrun.exceptions import GraphError
from flowrun.types import WorkflowExecutionRecord, WorkflowGraph, WorkflowRunResult

logger = logging.getLogger(__name__)
router = APIRouter(tags=["executions"])


@router.post("/workflows/execute", response_model=WorkflowRunResult)
async def execute_workflow(body: ExecuteWorkflowRequest, request: Request):
    """Run a workflow graph synchronously and return every node result."""
    runtime = request.app.state.runtime
    try:
        graph = WorkflowGraph.model_validate({"nodes": body.nodes, "edges": body.edges})
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=exc.errors(include_url=False, include_context=False))

    execution_id = body.execution_id or str(uuid.uuid4())
    try:
        return await runtime.executor.execute(
            graph,
            trigger_input=body.trigger_input,
            execution_id=execution_id,
            workflow_id=body.workflow_id,
        )
    except GraphError as exc:
        logger.info(f"[api] Rejected workflow {body.workflow_id or '(anonymous)'}: {exc}")
        raise HTTPException(status_code=422, detail={"message": str(exc), **exc.details})


@router.get("/executions/{execution_id}/status", response_model=WorkflowExecutionRecord)
async def get_execution_status(execution_id: str, request: Request):
    """Aggregate status of one execution."""
    record = await request.app.state.runtime.log_sink.get_execution(execution_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Execution not found")
    return record


@router.get("/executions/{execution_id}/logs", response_model=ExecutionLogsResponse)
async def get_execution_logs(execution_id: str, request: Request):
    """Redacted per-node entries of one execution, ordered by start time."""
    sink = request.app.state.runtime.log_sink
    if await sink.get_execution(execution_id) is None:
        raise HTTPException(status_code=404, detail="Execution not found")
    return ExecutionLogsResponse(execution_id=execution_id, logs=await sink.get_logs(execution_id))
