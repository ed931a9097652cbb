"""Base callback protocol for flowrun lifecycle hooks.

The executor accepts callbacks as plain callables ``cb(event, data)``, sync
or async. Implement this protocol (or subclass :class:`BaseCallback`) to get
named hooks instead of switching on the event string yourself.

Usage:
    class MyCallback(BaseCallback):
        async def on_node_complete(self, data, **kw):
            print(f"{data['node_id']}: {data['status']}")

    executor = WorkflowExecutor(registry, callbacks=[MyCallback()])
"""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class FlowrunCallback(Protocol):
    """Protocol defining hooks for workflow lifecycle events.

    All methods are optional; implement only the hooks you need.
    """

    async def on_workflow_start(self, data: dict, **kwargs: Any) -> None:
        ...

    async def on_workflow_complete(self, data: dict, **kwargs: Any) -> None:
        ...

    async def on_node_start(self, data: dict, **kwargs: Any) -> None:
        ...

    async def on_node_complete(self, data: dict, **kwargs: Any) -> None:
        ...

    async def on_event(self, event: str, data: dict, **kwargs: Any) -> None:
        """Any event without a dedicated hook (node_skipped, condition_*, logging_failed)."""
        ...


_DISPATCH = {
    "workflow_started": "on_workflow_start",
    "workflow_completed": "on_workflow_complete",
    "node_started": "on_node_start",
    "node_completed": "on_node_complete",
}


class BaseCallback:
    """No-op implementation of every hook, callable as ``cb(event, data)``."""

    async def __call__(self, event: str, data: dict) -> None:
        method = _DISPATCH.get(event)
        if method is None:
            await self.on_event(event, data)
        else:
            await getattr(self, method)(data)

    async def on_workflow_start(self, data: dict, **kwargs: Any) -> None:
        pass

    async def on_workflow_complete(self, data: dict, **kwargs: Any) -> None:
        pass

    async def on_node_start(self, data: dict, **kwargs: Any) -> None:
        pass

    async def on_node_complete(self, data: dict, **kwargs: Any) -> None:
        pass

    async def on_event(self, event: str, data: dict, **kwargs: Any) -> None:
        pass
