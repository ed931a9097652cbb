"""flowrun Example: Custom Step Registration.

Shows how to define a step with the @step decorator and run a workflow that
uses it, all in-memory.

Run:
    python examples/custom_step/main.py
"""

import asyncio

from flowrun import WorkflowExecutor, build_default_registry, step
from flowrun.callbacks import LoggingCallback
from flowrun.types import Edge, Node, NodeKind, WorkflowGraph


# ── 1. Define your custom step ───────────────────────────────────────────────

@step("Weather Lookup", description="Look up current weather for a city", config_fields=["city"])
async def weather_lookup(config: dict) -> dict:
    """Stub: returns canned weather data. Replace with a real API call."""
    return {"city": config.get("city"), "temperature": 22, "summary": "partly cloudy"}


# ── 2. Describe the workflow ─────────────────────────────────────────────────

GRAPH = WorkflowGraph(
    nodes=[
        Node(id="t1", kind=NodeKind.TRIGGER, label="Trigger", config={"triggerType": "Manual"}),
        Node(id="w1", kind=NodeKind.ACTION, label="Weather", config={
            "actionType": "Weather Lookup",
            "city": "{{@t1:Trigger.city}}",
        }),
        Node(id="log", kind=NodeKind.ACTION, label="Report", config={
            "actionType": "Log",
            "logMessage": "{{@w1:Weather.city}} is {{@w1:Weather.summary}} at {{@w1:Weather.temperature}}C",
        }),
    ],
    edges=[Edge(source="t1", target="w1"), Edge(source="w1", target="log")],
)


# ── 3. Run it ────────────────────────────────────────────────────────────────

async def main() -> None:
    executor = WorkflowExecutor(build_default_registry(), callbacks=[LoggingCallback()])
    result = await executor.execute(GRAPH, trigger_input={"city": "Lisbon"}, execution_id="example-1")

    print(f"success={result.success}")
    for node_id, node_result in result.results.items():
        print(f"  {node_id}: {node_result.data}")


if __name__ == "__main__":
    asyncio.run(main())
