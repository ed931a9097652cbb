"""Pydantic models for API request/response. Mirrors types.py for API I/O."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from flowrun.types import ExecutionLogEntry, IntegrationRecord, IntegrationType


# ── Requests ──

class ExecuteWorkflowRequest(BaseModel):
    nodes: list[dict[str, Any]] = Field(default_factory=list)   # editor or flat node shape
    edges: list[dict[str, Any]] = Field(default_factory=list)
    trigger_input: Optional[Any] = None
    execution_id: Optional[str] = None         # generated when omitted
    workflow_id: Optional[str] = None


# ── Responses ──

class HealthResponse(BaseModel):
    status: str
    version: str
    steps: int


class ExecutionLogsResponse(BaseModel):
    execution_id: str
    logs: list[ExecutionLogEntry]


# ── Integrations ──

class IntegrationCreateRequest(BaseModel):
    name: str = Field(min_length=1)
    type: IntegrationType
    config: dict[str, Any]


class IntegrationUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    config: Optional[dict[str, Any]] = None


class IntegrationResponse(BaseModel):
    """Integration metadata. Config is never included."""

    id: str
    name: str
    type: IntegrationType
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_record(cls, record: IntegrationRecord) -> "IntegrationResponse":
        return cls.model_validate(record.model_dump(exclude={"user_id", "encrypted_config"}))


class IntegrationDetailResponse(IntegrationResponse):
    """Single integration with its decrypted config, for editing."""

    config: dict[str, Any]
