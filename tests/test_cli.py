"""CLI commands via Typer's CliRunner."""

import re

import pytest
from typer.testing import CliRunner

from flowrun.cli.main import app
from flowrun.version import __version__

runner = CliRunner()

_OK_FLOW = """
name: hello
nodes:
  - id: t1
    trigger: Manual
    label: Trigger
  - id: a1
    action: Log
    config:
      logMessage: "hello {{@t1:Trigger.who}}"
edges:
  - [t1, a1]
trigger_input:
  who: world
"""

_BROKEN_FLOW = """
nodes:
  - id: t1
    trigger: Manual
  - id: a1
    action: Teleport
edges:
  - [t1, a1]
"""

_NO_TRIGGER_FLOW = """
nodes:
  - id: a1
    action: Log
"""

_ISLAND_FLOW = """
nodes:
  - id: t1
    trigger: Manual
  - id: island
    action: Log
"""


@pytest.fixture
def flow_file(tmp_path):
    def _write(text, name="flow.yaml"):
        path = tmp_path / name
        path.write_text(text)
        return str(path)
    return _write


def test_version():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert f"flowrun v{__version__}" in result.output


def test_run_success(flow_file):
    result = runner.invoke(app, ["run", flow_file(_OK_FLOW)])
    assert result.exit_code == 0, result.output
    assert "SUCCESS" in result.output


def test_run_with_input_and_logs(flow_file):
    result = runner.invoke(app, ["run", flow_file(_OK_FLOW), "--input", '{"who": "cli"}', "--logs",
                                 "--execution-id", "exec-cli"])
    assert result.exit_code == 0, result.output
    assert "exec-cli" in result.output
    assert "Execution Log" in result.output


def test_run_failure_exits_nonzero(flow_file):
    result = runner.invoke(app, ["run", flow_file(_BROKEN_FLOW)])
    assert result.exit_code == 1
    assert "ERROR" in result.output


def test_run_without_trigger_exits_nonzero(flow_file):
    result = runner.invoke(app, ["run", flow_file(_NO_TRIGGER_FLOW)])
    assert result.exit_code == 1
    assert "no trigger" in result.output


def test_run_bad_input_json(flow_file):
    result = runner.invoke(app, ["run", flow_file(_OK_FLOW), "--input", "{bad"])
    assert result.exit_code == 2


def test_run_missing_file(tmp_path):
    result = runner.invoke(app, ["run", str(tmp_path / "missing.yaml")])
    assert result.exit_code == 1
    assert "not found" in result.output


def test_validate_ok(flow_file):
    result = runner.invoke(app, ["validate", flow_file(_OK_FLOW)])
    assert result.exit_code == 0, result.output
    assert "✓" in result.output


def test_validate_reports_errors(flow_file):
    result = runner.invoke(app, ["validate", flow_file(_BROKEN_FLOW)])
    assert result.exit_code == 1
    assert "Teleport" in result.output


def test_validate_strict_fails_on_warnings(flow_file):
    path = flow_file(_ISLAND_FLOW)
    assert runner.invoke(app, ["validate", path]).exit_code == 0
    assert runner.invoke(app, ["validate", path, "--strict"]).exit_code == 1


def test_steps_lists_builtins():
    result = runner.invoke(app, ["steps"])
    assert result.exit_code == 0
    assert "Registered Steps" in result.output
    assert "Log" in result.output


def test_keygen_prints_hex_key():
    result = runner.invoke(app, ["keygen"])
    assert result.exit_code == 0
    assert re.fullmatch(r"[0-9a-f]{64}", result.output.strip())


def test_config_masks_key(monkeypatch):
    monkeypatch.setenv("FLOWRUN_INTEGRATION_ENCRYPTION_KEY", "ab" * 32)
    result = runner.invoke(app, ["config"])
    assert result.exit_code == 0
    assert "ab" * 32 not in result.output
