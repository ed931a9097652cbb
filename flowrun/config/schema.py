"""Pydantic models for workflow file validation.

Workflow files are YAML (or JSON) with a compact node syntax:

    nodes:
      - id: t1
        trigger: Manual
        label: Trigger
      - id: c1
        action: Condition
        config:
          condition: "{{@t1:Trigger.value}} > 10"
    edges:
      - [t1, c1]
      - {source: c1, target: a1}

Nodes exported from the editor (``{id, data: {type, label, config}}``) are
accepted as-is.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from flowrun.types import Edge, Node, NodeKind, WorkflowGraph


class NodeYAML(BaseModel):
    """Validated schema for a node entry."""

    id: str
    label: str = ""
    description: str = ""
    enabled: bool = True
    trigger: Optional[str] = None                 # trigger type, e.g. "Manual", "Webhook"
    action: Optional[str] = None                  # action type, e.g. "Log", "HTTP Request"
    kind: Optional[NodeKind] = None
    config: dict[str, Any] = Field(default_factory=dict)

    @field_validator("kind", mode="before")
    @classmethod
    def coerce_kind(cls, v):
        if isinstance(v, str):
            return NodeKind(v.lower())
        return v

    @model_validator(mode="after")
    def _one_kind(self):
        given = [x for x in (self.trigger, self.action) if x]
        if len(given) > 1:
            raise ValueError(f"Node {self.id!r}: set either 'trigger' or 'action', not both")
        if not given and self.kind is None and not (
            self.config.get("actionType") or self.config.get("triggerType")
        ):
            raise ValueError(f"Node {self.id!r}: one of 'trigger', 'action' or 'kind' is required")
        return self

    def to_node(self) -> Node:
        config = dict(self.config)
        kind = self.kind
        if self.trigger:
            kind = NodeKind.TRIGGER
            config.setdefault("triggerType", self.trigger)
        elif self.action:
            kind = NodeKind.ACTION
            config.setdefault("actionType", self.action)
        elif kind is None:
            kind = NodeKind.TRIGGER if config.get("triggerType") else NodeKind.ACTION
        return Node(
            id=self.id,
            kind=kind,
            label=self.label,
            description=self.description,
            enabled=self.enabled,
            config=config,
        )


class EdgeYAML(BaseModel):
    """``[source, target]`` pair or ``{id?, source, target}`` mapping."""

    id: Optional[str] = None
    source: str
    target: str

    @model_validator(mode="before")
    @classmethod
    def _from_pair(cls, raw):
        if isinstance(raw, (list, tuple)):
            if len(raw) != 2:
                raise ValueError(f"Edge pair must have exactly two entries, got {raw!r}")
            return {"source": raw[0], "target": raw[1]}
        return raw

    def to_edge(self, index: int) -> Edge:
        return Edge(id=self.id or f"e{index}-{self.source}-{self.target}", source=self.source, target=self.target)


class WorkflowFile(BaseModel):
    """Root schema for a workflow file."""

    name: str = "workflow"
    description: str = ""
    nodes: list[Any] = Field(default_factory=list)
    edges: list[EdgeYAML] = Field(default_factory=list)
    trigger_input: Optional[dict[str, Any]] = None   # default input for `flowrun run`

    def to_graph(self) -> WorkflowGraph:
        nodes: list[Node] = []
        for raw in self.nodes:
            if isinstance(raw, dict) and "data" in raw:
                if (raw.get("data") or {}).get("type") == "add" or raw.get("type") == "add":
                    continue  # editor placeholder
                nodes.append(Node.model_validate(raw))
            else:
                nodes.append(NodeYAML.model_validate(raw).to_node())
        return WorkflowGraph(nodes=nodes, edges=[e.to_edge(i) for i, e in enumerate(self.edges)])
