"""Structured JSON logging callback for workflow lifecycle events."""

import json
import logging
from datetime import datetime, timezone
from typing import Any

from flowrun.callbacks.base import BaseCallback

logger = logging.getLogger("flowrun.audit")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _clip(v: Any) -> Any:
    return v if isinstance(v, (int, float, bool)) or v is None else str(v)[:200]


class LoggingCallback(BaseCallback):
    """Emits one self-contained JSON log line per lifecycle event.

    Each line carries ``event``, ``ts`` (ISO-8601 UTC) and the event fields.
    Log level: INFO for normal events, WARNING for node errors, rejected
    conditions and logging failures. Logger name: ``flowrun.audit``.

        executor = WorkflowExecutor(registry, callbacks=[LoggingCallback()])
    """

    async def on_workflow_start(self, data: dict, **kwargs: Any) -> None:
        logger.info(json.dumps({
            "event": "workflow_start",
            "ts": _now(),
            "execution_id": data.get("execution_id"),
            "workflow_id": data.get("workflow_id"),
            "nodes": data.get("nodes", 0),
            "triggers": data.get("triggers", []),
        }))

    async def on_workflow_complete(self, data: dict, **kwargs: Any) -> None:
        logger.info(json.dumps({
            "event": "workflow_complete",
            "ts": _now(),
            "execution_id": data.get("execution_id"),
            "success": data.get("success", False),
            "results": data.get("results", 0),
            "error": _clip(data.get("error")),
            "duration_ms": data.get("duration_ms"),
        }))

    async def on_node_start(self, data: dict, **kwargs: Any) -> None:
        logger.info(json.dumps({
            "event": "node_start",
            "ts": _now(),
            "execution_id": data.get("execution_id"),
            "node_id": data.get("node_id", ""),
            "node_name": data.get("node_name", ""),
            "node_type": data.get("node_type", ""),
        }))

    async def on_node_complete(self, data: dict, **kwargs: Any) -> None:
        failed = data.get("status") == "error"
        logger.log(logging.WARNING if failed else logging.INFO, json.dumps({
            "event": "node_complete",
            "ts": _now(),
            "execution_id": data.get("execution_id"),
            "node_id": data.get("node_id", ""),
            "status": data.get("status", ""),
            "error": _clip(data.get("error")),
        }))

    async def on_event(self, event: str, data: dict, **kwargs: Any) -> None:
        level = logging.WARNING if event in ("condition_rejected", "logging_failed") else logging.INFO
        logger.log(level, json.dumps({"event": event, "ts": _now(), **{k: _clip(v) for k, v in data.items()}}))
