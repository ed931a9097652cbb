"""Application configuration + workflow file loader for flowrun.

All env vars defined here with FLOWRUN_ prefix.
Loaders: load_workflow_file(), load_workflow_graph()
"""

from pydantic_settings import BaseSettings

from flowrun.config.loader import load_workflow_file, load_workflow_graph, parse_workflow
from flowrun.config.schema import EdgeYAML, NodeYAML, WorkflowFile


class FlowrunConfig(BaseSettings):
    # ── App ──
    app_name: str = "flowrun"
    debug: bool = False
    log_level: str = "INFO"

    # ── Credentials ──
    integration_encryption_key: str = ""           # 64 hex chars (32 bytes, AES-256-GCM)

    # ── Execution ──
    execution_log_max_entries: int = 10_000        # in-memory sink cap
    max_workflow_nodes: int = 200

    # ── Server ──
    host: str = "0.0.0.0"
    port: int = 8000

    model_config = {"env_prefix": "FLOWRUN_", "env_file": ".env", "extra": "ignore"}


config = FlowrunConfig()


__all__ = [
    "FlowrunConfig",
    "config",
    "load_workflow_file",
    "load_workflow_graph",
    "parse_workflow",
    "NodeYAML",
    "EdgeYAML",
    "WorkflowFile",
]
