"""Log step: writes a message to the workflow log. Useful for debugging flows."""

import logging
from datetime import datetime, timezone

from flowrun.steps.plugin import step
from flowrun.types import ActionKind

logger = logging.getLogger(__name__)

_LEVELS = {"info": logging.INFO, "warn": logging.WARNING, "warning": logging.WARNING, "error": logging.ERROR}


@step(ActionKind.LOG, description="Write a message to the workflow log", config_fields=["logMessage", "logLevel"])
async def log_step(config: dict) -> dict:
    # Accepts both the editor keys (logMessage, logLevel) and the short ones.
    message = config.get("message") or config.get("logMessage") or "Log step executed"
    level = str(config.get("level") or config.get("logLevel") or "info").lower()

    extra = f" data={config['data']!r}" if config.get("data") is not None else ""
    logger.log(_LEVELS.get(level, logging.INFO), f"[Workflow Log] {message}{extra}")

    return {
        "success": True,
        "logged": message,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
