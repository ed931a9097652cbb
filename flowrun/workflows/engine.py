"""
WorkflowExecutor — walks a workflow graph from its triggers and runs every node.

Execution model:

  * every trigger node (kind=trigger, no incoming edge) starts a subgraph;
    subgraphs run concurrently and share one visited set, so each node runs
    at most once per execution even when the graph has cycles
  * a node's config is template-resolved against the outputs of the nodes
    that already ran, then dispatched to its step implementation
  * a failed node stops its own path only; siblings keep running
  * a condition node follows exactly one of its first two outgoing edges
    (true -> first, false -> second)
  * successors of any other successful node run concurrently (join semantics)

All per-run state lives in a ``_RunContext`` passed through the recursion.
Only :class:`GraphError` (no trigger node) escapes :meth:`execute`.
"""

from __future__ import annotations

import asyncio
import inspect
import json
import logging
import time
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from flowrun.core.execution_log import ExecutionLogger
from flowrun.exceptions import GraphError, UnknownActionType
from flowrun.steps.registry import NAMESPACED_ACTION_ALIASES, StepRegistry
from flowrun.types import (
    ActionKind,
    Edge,
    ExecutionResult,
    ExecutionStatus,
    LogStatus,
    Node,
    NodeKind,
    NodeOutput,
    WorkflowGraph,
    WorkflowRunResult,
)
from flowrun.workflows.conditions import check_condition
from flowrun.workflows.dag import edges_by_source, get_trigger_nodes, sanitize_node_id
from flowrun.workflows.template import resolve_config

logger = logging.getLogger(__name__)

Callback = Callable[[str, dict], Any]


class _RunContext:
    """Execution-scoped state. Each key in ``outputs``/``results`` is written once."""

    def __init__(
        self,
        graph: WorkflowGraph,
        trigger_input: Optional[dict[str, Any]],
        execution_id: Optional[str],
    ):
        self.execution_id = execution_id
        self.trigger_input = trigger_input
        self.nodes: dict[str, Node] = {n.id: n for n in graph.nodes}
        self.edges: dict[str, list[Edge]] = edges_by_source(graph.edges)
        self.outputs: dict[str, NodeOutput] = {}
        self.results: dict[str, ExecutionResult] = {}
        self.visited: set[str] = set()


def node_display_name(node: Node) -> str:
    """Label, else the configured action/trigger type, else the node kind."""
    if node.label:
        return node.label
    if node.kind == NodeKind.ACTION:
        return node.action_type or "Action"
    return node.trigger_type or "Trigger"


def _canonical_action_type(node: Node) -> Optional[str]:
    action_type = node.action_type
    return NAMESPACED_ACTION_ALIASES.get(action_type, action_type) if action_type else action_type


def interpret_step_output(output: Any) -> ExecutionResult:
    """A ``{"success": False, ...}`` return is a failure; anything else succeeds."""
    if isinstance(output, Mapping) and output.get("success") is False:
        error = output.get("error") or "Step reported failure"
        return ExecutionResult(success=False, data=dict(output), error=str(error))
    return ExecutionResult(success=True, data=output)


class WorkflowExecutor:
    """Runs workflow graphs against a step registry.

    Args:
        registry: Action type -> step implementation.
        execution_logger: Receives per-node and per-run records. A default
            in-memory logger is created when omitted.
        callbacks: Plain callables ``cb(event, data)``, sync or async, fired on
            lifecycle events. Errors raised by callbacks are logged and ignored.
    """

    def __init__(
        self,
        registry: StepRegistry,
        execution_logger: Optional[ExecutionLogger] = None,
        callbacks: Optional[list[Callback]] = None,
    ):
        self.registry = registry
        self.callbacks = list(callbacks or [])
        self.execution_logger = execution_logger or ExecutionLogger()
        if self.execution_logger.on_failure is None:
            self.execution_logger.on_failure = self._fire_callbacks

    async def execute(
        self,
        graph: WorkflowGraph,
        trigger_input: Optional[dict[str, Any]] = None,
        execution_id: Optional[str] = None,
        workflow_id: Optional[str] = None,
    ) -> WorkflowRunResult:
        """Run *graph* once.

        Raises:
            GraphError: the graph has no trigger node. No partial results.
        """
        triggers = get_trigger_nodes(graph)
        if not triggers:
            raise GraphError(
                "Workflow has no trigger nodes",
                details={"node_count": len(graph.nodes), "edge_count": len(graph.edges)},
            )

        ctx = _RunContext(graph, trigger_input, execution_id)
        started_at = datetime.now(timezone.utc)
        logger.info(
            f"[Executor] Starting execution {execution_id or '(unlogged)'}: "
            f"{len(graph.nodes)} node(s), {len(triggers)} trigger(s)"
        )
        await self.execution_logger.start_execution(execution_id, trigger_input, workflow_id)
        await self._fire_callbacks("workflow_started", {
            "execution_id": execution_id,
            "workflow_id": workflow_id,
            "nodes": len(graph.nodes),
            "triggers": [t.id for t in triggers],
        })

        await self._visit_all([t.id for t in triggers], ctx)

        results = list(ctx.results.values())
        success = all(r.success for r in results)
        first_error = next((r.error for r in results if not r.success), None)
        last_output = results[-1].data if results else None

        await self.execution_logger.log_workflow_complete(
            execution_id,
            ExecutionStatus.SUCCESS if success else ExecutionStatus.ERROR,
            output=last_output,
            error=first_error,
            started_at=started_at,
        )
        duration_ms = int((datetime.now(timezone.utc) - started_at).total_seconds() * 1000)
        logger.info(
            f"[Executor] Execution {execution_id or '(unlogged)'} finished: success={success}, "
            f"{len(results)} node result(s), {duration_ms}ms"
        )
        await self._fire_callbacks("workflow_completed", {
            "execution_id": execution_id,
            "success": success,
            "results": len(results),
            "error": first_error,
            "duration_ms": duration_ms,
        })

        return WorkflowRunResult(
            execution_id=execution_id,
            success=success,
            results=ctx.results,
            outputs=ctx.outputs,
            error=first_error,
        )

    # ── Traversal ────────────────────────────────────────────────────────────

    async def _visit_all(self, node_ids: list[str], ctx: _RunContext) -> None:
        """Visit siblings concurrently and wait for all of them."""
        if not node_ids:
            return
        if len(node_ids) == 1:
            await self._visit(node_ids[0], ctx)
            return
        outcomes = await asyncio.gather(*(self._visit(nid, ctx) for nid in node_ids), return_exceptions=True)
        for nid, outcome in zip(node_ids, outcomes):
            if isinstance(outcome, Exception):
                logger.error(f"[Executor] Unexpected error in branch starting at {nid!r}: {outcome}")

    async def _visit(self, node_id: str, ctx: _RunContext) -> None:
        # Check-and-add with no await in between: safe under asyncio.
        if node_id in ctx.visited:
            logger.debug(f"[Executor] Node {node_id!r} already visited, skipping")
            return
        ctx.visited.add(node_id)

        node = ctx.nodes.get(node_id)
        if node is None:
            logger.warning(f"[Executor] Edge points at unknown node {node_id!r}, skipping")
            return

        output_key = sanitize_node_id(node.id)
        label = node.label or node.id
        successors = [e.target for e in ctx.edges.get(node.id, [])]

        if not node.enabled:
            ctx.outputs[output_key] = NodeOutput(label=label, data=None)
            await self._fire_callbacks("node_skipped", {
                "execution_id": ctx.execution_id,
                "node_id": node.id,
                "reason": "disabled",
            })
            await self._visit_all(successors, ctx)
            return

        node_name = node_display_name(node)
        is_condition = node.kind == NodeKind.ACTION and _canonical_action_type(node) == ActionKind.CONDITION.value

        if node.kind == NodeKind.TRIGGER:
            effective_input = self._trigger_data(node, ctx)
        else:
            effective_input = resolve_config(node.config, ctx.outputs)

        handle = await self.execution_logger.log_start(
            ctx.execution_id, node.id, node_name, node.kind.value, effective_input
        )
        await self._fire_callbacks("node_started", {
            "execution_id": ctx.execution_id,
            "node_id": node.id,
            "node_name": node_name,
            "node_type": node.kind.value,
        })

        try:
            result = await self._dispatch(node, effective_input, ctx)
        except Exception as exc:
            logger.warning(f"[Executor] Node {node.id!r} ({node_name}) failed: {exc}")
            result = ExecutionResult(success=False, error=str(exc) or type(exc).__name__)

        ctx.results[node.id] = result
        ctx.outputs[output_key] = NodeOutput(label=label, data=result.data)

        await self.execution_logger.log_complete(
            handle,
            LogStatus.SUCCESS if result.success else LogStatus.ERROR,
            output=result.data,
            error=result.error,
        )
        await self._fire_callbacks("node_completed", {
            "execution_id": ctx.execution_id,
            "node_id": node.id,
            "node_name": node_name,
            "status": "success" if result.success else "error",
            "error": result.error,
        })

        if not result.success:
            return

        if is_condition:
            outgoing = ctx.edges.get(node.id, [])
            branch_index = 0 if result.data.get("condition") else 1
            if branch_index < len(outgoing):
                await self._visit(outgoing[branch_index].target, ctx)
            return

        await self._visit_all(successors, ctx)

    # ── Dispatch ─────────────────────────────────────────────────────────────

    async def _dispatch(self, node: Node, effective_input: dict[str, Any], ctx: _RunContext) -> ExecutionResult:
        if node.kind == NodeKind.TRIGGER:
            return ExecutionResult(success=True, data=effective_input)

        action_type = _canonical_action_type(node)
        if action_type == ActionKind.CONDITION.value:
            outcome = check_condition(effective_input.get("condition"), ctx.outputs)
            if outcome.error:
                await self._fire_callbacks("condition_rejected", {
                    "execution_id": ctx.execution_id,
                    "node_id": node.id,
                    "error": outcome.error,
                })
            await self._fire_callbacks("condition_evaluated", {
                "execution_id": ctx.execution_id,
                "node_id": node.id,
                "value": outcome.value,
            })
            return ExecutionResult(success=True, data={"condition": outcome.value})

        if not action_type or not self.registry.has(action_type):
            raise UnknownActionType(f"Unknown action type: {action_type}", node_id=node.id, action_type=action_type or "")

        _definition, implementation = self.registry.get(action_type)
        output = implementation(dict(effective_input))
        if inspect.isawaitable(output):
            output = await output
        return interpret_step_output(output)

    def _trigger_data(self, node: Node, ctx: _RunContext) -> dict[str, Any]:
        data: dict[str, Any] = {"triggered": True, "timestamp": int(time.time() * 1000)}
        trigger_input = ctx.trigger_input
        mock = node.config.get("webhookMockRequest")

        if node.trigger_type == "Webhook" and mock and not trigger_input:
            try:
                parsed = json.loads(mock) if isinstance(mock, str) else mock
            except ValueError as exc:
                logger.warning(f"[Executor] Ignoring unparseable webhook mock request on {node.id!r}: {exc}")
                return data
            if isinstance(parsed, Mapping):
                data.update(parsed)
            else:
                logger.warning(f"[Executor] Webhook mock request on {node.id!r} is not an object, ignoring")
        elif isinstance(trigger_input, Mapping):
            data.update(trigger_input)
        elif trigger_input is not None:
            data["payload"] = trigger_input
        return data

    # ── Callbacks ────────────────────────────────────────────────────────────

    async def _fire_callbacks(self, event: str, data: dict) -> None:
        """Invoke all registered callbacks for a lifecycle event."""
        if not self.callbacks:
            return
        for cb in self.callbacks:
            try:
                result = cb(event, data)
                if inspect.isawaitable(result):
                    await result
            except Exception as cb_exc:
                logger.warning(f"[Executor] Callback error on '{event}': {cb_exc}")
