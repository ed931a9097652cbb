"""Load and validate workflow files into WorkflowGraph objects.

YAML and JSON are both accepted (JSON is valid YAML, but ``.json`` files are
parsed with the json module for clearer error messages).
"""

import json
from pathlib import Path
from typing import Union

import yaml
from pydantic import ValidationError

from flowrun.config.schema import WorkflowFile
from flowrun.exceptions import WorkflowFileError
from flowrun.types import WorkflowGraph


def load_workflow_file(path: Union[str, Path]) -> WorkflowFile:
    """Read *path* → validated WorkflowFile.

    Raises:
        WorkflowFileError: missing file, unparseable content, or schema errors.
    """
    p = Path(path)
    if not p.exists():
        raise WorkflowFileError(f"Workflow file not found: {p}", path=str(p))

    text = p.read_text()
    try:
        raw = json.loads(text) if p.suffix.lower() == ".json" else yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise WorkflowFileError(f"Could not parse {p}: {exc}", path=str(p)) from exc

    return parse_workflow(raw or {}, source=str(p))


def parse_workflow(raw: object, source: str = "<memory>") -> WorkflowFile:
    """Validate an already-parsed mapping as a WorkflowFile."""
    if not isinstance(raw, dict):
        raise WorkflowFileError(f"{source}: top level must be a mapping", path=source)
    try:
        workflow = WorkflowFile.model_validate(raw)
        workflow.to_graph()
    except (ValidationError, ValueError) as exc:
        raise WorkflowFileError(f"{source}: invalid workflow: {exc}", path=source) from exc
    return workflow


def load_workflow_graph(path: Union[str, Path]) -> WorkflowGraph:
    """Read *path* → WorkflowGraph ready for execution."""
    return load_workflow_file(path).to_graph()
