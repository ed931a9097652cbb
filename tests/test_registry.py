"""Step registry, @step decorator, legacy aliases and the default registry."""

import pytest

from flowrun.exceptions import StepNotFound
from flowrun.steps import build_default_registry, get_registered_steps, step
from flowrun.steps.registry import NAMESPACED_ACTION_ALIASES, StepRegistry
from flowrun.types import ActionKind, IntegrationType, StepDefinition


async def _echo(config: dict) -> dict:
    return {"echo": config}


def test_register_and_get():
    registry = StepRegistry()
    registry.register(ActionKind.LOG, _echo)
    definition, impl = registry.get("Log")
    assert definition.name == "Log"
    assert impl is _echo


def test_register_with_definition():
    registry = StepRegistry()
    definition = StepDefinition(name="Custom", description="custom step", category="plugin")
    registry.register("Custom", _echo, definition)
    assert registry.get("Custom")[0].category == "plugin"


def test_unknown_step_raises():
    with pytest.raises(StepNotFound) as exc_info:
        StepRegistry().get("Nope")
    assert exc_info.value.step_name == "Nope"


def test_alias_resolves_to_target():
    registry = StepRegistry()
    registry.register(ActionKind.LOG, _echo)
    registry.register_alias("system/log", ActionKind.LOG)
    assert registry.has("system/log")
    assert registry.get("system/log")[1] is _echo


def test_alias_to_missing_target_is_unknown():
    registry = StepRegistry()
    registry.register_alias("system/log", ActionKind.LOG)
    assert not registry.has("system/log")


def test_step_decorator_collects_sync_and_async(monkeypatch):
    monkeypatch.setattr("flowrun.steps.plugin._registered_steps", {})

    @step("Shout", description="Uppercase a message", config_fields=["message"])
    def shout(config: dict) -> dict:
        return {"text": config["message"].upper()}

    @step("Whisper", integration=IntegrationType.SLACK)
    async def whisper(config: dict) -> dict:
        """Lowercase a message."""
        return {"text": config["message"].lower()}

    collected = get_registered_steps()
    assert set(collected) == {"Shout", "Whisper"}
    assert collected["Shout"][0].config_fields == ["message"]
    assert collected["Whisper"][0].description == "Lowercase a message."
    assert collected["Whisper"][0].integration == IntegrationType.SLACK
    assert shout._flowrun_step.name == "Shout"
    assert shout({"message": "hi"}) == {"text": "HI"}


@pytest.mark.asyncio
async def test_decorated_async_step_still_awaitable(monkeypatch):
    monkeypatch.setattr("flowrun.steps.plugin._registered_steps", {})

    @step("Whisper")
    async def whisper(config: dict) -> dict:
        return {"text": config["message"].lower()}

    assert await whisper({"message": "HI"}) == {"text": "hi"}


def test_default_registry_has_builtins():
    registry = build_default_registry()
    names = {d.name for d in registry.list_steps()}
    assert {"Log", "HTTP Request"} <= names
    assert "Condition" not in names
    assert "Send Slack Message" not in names


def test_default_registry_with_broker_adds_slack(broker):
    registry = build_default_registry(broker)
    definition, _ = registry.get(ActionKind.SEND_SLACK_MESSAGE)
    assert definition.integration == IntegrationType.SLACK
    assert registry.has("slack/send-message")


def test_default_registry_aliases(registry):
    assert registry.list_aliases() == NAMESPACED_ACTION_ALIASES
    assert registry.get("system/http-request")[0].name == "HTTP Request"
