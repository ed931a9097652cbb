"""
WorkflowValidator — structural correctness checker for WorkflowGraph.

Checks are non-destructive reads of the graph. Warnings (soft issues) are
returned with a "WARNING:" prefix so callers can choose to treat them
differently from hard errors. The engine itself tolerates every warning.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from flowrun.exceptions import ConditionError, GraphValidationError
from flowrun.steps.registry import NAMESPACED_ACTION_ALIASES
from flowrun.types import ActionKind, NodeKind, WorkflowGraph
from flowrun.workflows.conditions import pre_validate_expression

from .dag import edges_by_source, find_cycles, get_trigger_nodes, reachable_from

if TYPE_CHECKING:
    from flowrun.steps.registry import StepRegistry


class WorkflowValidator:
    """
    Validates the structural integrity of a WorkflowGraph.

    Usage::

        validator = WorkflowValidator()
        errors = validator.validate(graph, registry=registry)
        hard_errors = [e for e in errors if not e.startswith("WARNING:")]
        if hard_errors:
            raise GraphValidationError("Invalid workflow", violations=hard_errors)

    All checks are run even if earlier ones fail, so callers get the full
    error list in one shot.
    """

    def validate(
        self,
        graph: WorkflowGraph,
        registry: Optional["StepRegistry"] = None,
        max_nodes: int = 200,
    ) -> list[str]:
        """
        Run all structural checks on a WorkflowGraph.

        Args:
            graph:     The workflow to validate.
            registry:  Optional StepRegistry; skips the action type check if None.
            max_nodes: Maximum allowed nodes.

        Returns:
            List of error strings. Empty list means the workflow is valid.
            Items prefixed "WARNING:" are soft warnings, not hard failures.
        """
        errors: list[str] = []
        node_ids: set[str] = set()

        # ── Duplicate ids ─────────────────────────────────────────────────────
        for node in graph.nodes:
            if node.id in node_ids:
                errors.append(f"Duplicate node id {node.id!r}.")
            node_ids.add(node.id)

        if len(graph.nodes) > max_nodes:
            errors.append(f"Workflow has {len(graph.nodes)} nodes; maximum allowed is {max_nodes}.")

        # ── Edge validity ─────────────────────────────────────────────────────
        valid_edges = []
        for edge in graph.edges:
            edge_ok = True
            if edge.source not in node_ids:
                errors.append(f"Edge '{edge.id}': source '{edge.source}' references a node that does not exist.")
                edge_ok = False
            if edge.target not in node_ids:
                errors.append(f"Edge '{edge.id}': target '{edge.target}' references a node that does not exist.")
                edge_ok = False
            if edge_ok:
                valid_edges.append(edge)

        # ── Triggers ──────────────────────────────────────────────────────────
        trigger_ids = {n.id for n in graph.nodes if n.kind == NodeKind.TRIGGER}
        for edge in valid_edges:
            if edge.target in trigger_ids:
                errors.append(
                    f"WARNING: Trigger node {edge.target!r} has an incoming edge from "
                    f"{edge.source!r}; it will not be used as an entry point."
                )
        entry_ids = [n.id for n in get_trigger_nodes(graph)]
        if not entry_ids:
            errors.append("Workflow has no trigger node; nothing can start an execution.")

        # ── Reachability (warning only) ───────────────────────────────────────
        if entry_ids:
            reachable = reachable_from(entry_ids, valid_edges)
            for node in graph.nodes:
                if node.id not in reachable:
                    errors.append(
                        f"WARNING: Node {node.label or node.id!r} (id={node.id!r}) is not reachable "
                        "from any trigger and will never run."
                    )

        # ── Cycles (warning only) ─────────────────────────────────────────────
        for cycle in find_cycles(graph.model_copy(update={"edges": valid_edges})):
            errors.append(
                "WARNING: Cycle " + " -> ".join(cycle) + "; each node still runs at most once per execution."
            )

        # ── Actions ───────────────────────────────────────────────────────────
        outgoing = edges_by_source(valid_edges)
        for node in graph.nodes:
            if node.kind != NodeKind.ACTION:
                continue
            action_type = node.action_type
            if not action_type:
                errors.append(f"Action node {node.id!r} has no actionType configured.")
                continue

            if NAMESPACED_ACTION_ALIASES.get(action_type, action_type) == ActionKind.CONDITION.value:
                branches = outgoing.get(node.id, [])
                if len(branches) > 2:
                    errors.append(
                        f"WARNING: Condition node {node.id!r} has {len(branches)} outgoing edges; "
                        "only the first two (true, false) are followed."
                    )
                condition = node.config.get("condition")
                if isinstance(condition, str):
                    try:
                        pre_validate_expression(condition)
                    except ConditionError as exc:
                        errors.append(
                            f"WARNING: Condition node {node.id!r} will always evaluate to false: {exc}"
                        )
                continue

            if registry is not None and not registry.has(action_type):
                errors.append(f"Action node {node.id!r} uses unknown action type {action_type!r}.")

        return errors

    def validate_or_raise(
        self,
        graph: WorkflowGraph,
        registry: Optional["StepRegistry"] = None,
        max_nodes: int = 200,
    ) -> list[str]:
        """Like :meth:`validate` but raise on hard errors. Returns the warnings."""
        errors = self.validate(graph, registry=registry, max_nodes=max_nodes)
        hard_errors = [e for e in errors if not e.startswith("WARNING:")]
        if hard_errors:
            raise GraphValidationError("Invalid workflow", violations=hard_errors)
        return [e for e in errors if e.startswith("WARNING:")]
