"""Callback/hook system for workflow lifecycle events."""

from flowrun.callbacks.base import BaseCallback, FlowrunCallback
from flowrun.callbacks.logging import LoggingCallback

__all__ = ["BaseCallback", "FlowrunCallback", "LoggingCallback"]
