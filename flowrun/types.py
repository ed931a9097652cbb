"""All shared types, enums, and type aliases. Everything imports from here."""

from enum import Enum
from typing import Any, Optional
from datetime import datetime, timezone
from pydantic import BaseModel, Field, model_validator
import uuid


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ── Enums ──────────────────────────────────────────────────────────────

class NodeKind(str, Enum):
    TRIGGER = "trigger"
    ACTION = "action"

class ActionKind(str, Enum):
    LOG = "Log"
    HTTP_REQUEST = "HTTP Request"
    CONDITION = "Condition"
    SEND_EMAIL = "Send Email"
    SEND_SLACK_MESSAGE = "Send Slack Message"
    CREATE_TICKET = "Create Ticket"
    GENERATE_TEXT = "Generate Text"
    GENERATE_IMAGE = "Generate Image"
    DATABASE_QUERY = "Database Query"

class LogStatus(str, Enum):
    RUNNING = "running"
    SUCCESS = "success"
    ERROR = "error"

class ExecutionStatus(str, Enum):
    RUNNING = "running"
    SUCCESS = "success"
    ERROR = "error"

class IntegrationType(str, Enum):
    RESEND = "resend"
    LINEAR = "linear"
    SLACK = "slack"
    DATABASE = "database"
    AI_GATEWAY = "ai-gateway"


# ── Graph ──────────────────────────────────────────────────────────────

class Node(BaseModel):
    id: str
    kind: NodeKind
    label: str = ""
    description: str = ""
    enabled: bool = True                           # disabled nodes pass None through
    config: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _flatten_editor_shape(cls, raw: Any) -> Any:
        """Accept the canvas shape ``{id, data: {type, label, config, enabled}}``."""
        if not isinstance(raw, dict) or "data" not in raw:
            return raw
        data = raw.get("data") or {}
        flat = {k: v for k, v in raw.items() if k not in ("data", "type")}
        flat.setdefault("kind", data.get("type") or raw.get("type"))
        flat.setdefault("label", data.get("label") or "")
        flat.setdefault("description", data.get("description") or "")
        flat.setdefault("config", data.get("config") or {})
        enabled = data.get("enabled")
        flat.setdefault("enabled", True if enabled is None else enabled)
        return flat

    @property
    def action_type(self) -> Optional[str]:
        return self.config.get("actionType")

    @property
    def trigger_type(self) -> Optional[str]:
        return self.config.get("triggerType")

class Edge(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    source: str
    target: str

class WorkflowGraph(BaseModel):
    nodes: list[Node] = Field(default_factory=list)
    edges: list[Edge] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _drop_placeholders(cls, raw: Any) -> Any:
        # The editor persists "add" placeholder nodes alongside real ones.
        if not isinstance(raw, dict):
            return raw
        nodes = raw.get("nodes") or []
        kept = [
            n for n in nodes
            if not (isinstance(n, dict) and ((n.get("data") or {}).get("type") == "add" or n.get("type") == "add"))
        ]
        return {**raw, "nodes": kept}

    def get_node(self, node_id: str) -> Optional[Node]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None


# ── Execution ──────────────────────────────────────────────────────────

class ExecutionResult(BaseModel):
    success: bool
    data: Any = None
    error: Optional[str] = None

class NodeOutput(BaseModel):
    label: str
    data: Any = None

# Keyed by sanitized node id.
OutputsMap = dict[str, NodeOutput]

class WorkflowRunResult(BaseModel):
    execution_id: Optional[str] = None
    success: bool
    results: dict[str, ExecutionResult] = Field(default_factory=dict)
    outputs: dict[str, NodeOutput] = Field(default_factory=dict)
    error: Optional[str] = None                    # first error encountered, if any


# ── Execution Log ──────────────────────────────────────────────────────

class ExecutionLogEntry(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    execution_id: str
    node_id: str
    node_name: str
    node_type: str
    status: LogStatus = LogStatus.RUNNING
    input: Any = None                              # redacted before it lands here
    output: Any = None                             # redacted before it lands here
    error: Optional[str] = None
    started_at: datetime = Field(default_factory=_utcnow)
    completed_at: Optional[datetime] = None
    duration_ms: Optional[int] = None

class WorkflowExecutionRecord(BaseModel):
    id: str
    workflow_id: Optional[str] = None
    status: ExecutionStatus = ExecutionStatus.RUNNING
    input: Any = None
    output: Any = None
    error: Optional[str] = None
    started_at: datetime = Field(default_factory=_utcnow)
    completed_at: Optional[datetime] = None
    duration_ms: Optional[int] = None


# ── Integrations ───────────────────────────────────────────────────────

class IntegrationRecord(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    user_id: str
    name: str
    type: IntegrationType
    encrypted_config: str = ""                     # "iv:authTag:ciphertext", hex; blank on reads
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


# ── Steps ──────────────────────────────────────────────────────────────

class StepDefinition(BaseModel):
    name: str
    description: str = ""
    category: str = "builtin"
    integration: Optional[IntegrationType] = None  # integration whose credentials the step fetches
    config_fields: list[str] = Field(default_factory=list)
