"""
Template resolution for node configuration.

String config values may embed references to upstream node outputs:

    {{@nodeId:DisplayName.field.nested}}   canonical, DisplayName is cosmetic
    {{$nodeId.items[0].name}}              legacy id form
    {{Label.field}}                        oldest form, label matched case-insensitively

All functions are pure. Resolution never raises: a reference that cannot be
resolved is left in the string exactly as written.
"""

from __future__ import annotations

import json
import re
from typing import Any, Iterable, Mapping, Optional

from flowrun.types import NodeOutput

TEMPLATE_PATTERN = re.compile(r"\{\{([^}]+)\}\}")
CANONICAL_PATTERN = re.compile(r"\{\{@([^:}]+):([^}]+)\}\}")
_INDEXED_SEGMENT = re.compile(r"^([^\[]*)((?:\[\d+\])+)$")
_INDEX = re.compile(r"\[(\d+)\]")
_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]")


class _Unresolved:
    """Sentinel for a reference that dead-ends. Distinct from a resolved None."""

    _instance: Optional["_Unresolved"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNRESOLVED"


UNRESOLVED = _Unresolved()

# Key lookup miss inside resolve_field_path; never returned to callers.
_ABSENT = object()


def sanitize_node_id(node_id: str) -> str:
    """Outputs Map key for *node_id*: every non-alphanumeric char becomes ``_``."""
    return _NON_ALNUM.sub("_", node_id)


# ── Lookup ────────────────────────────────────────────────────────────────────


def find_output(node_id: str, outputs: Mapping[str, NodeOutput]) -> Optional[NodeOutput]:
    """Look up a node's output by id. Accepts raw or already-sanitized ids."""
    node_id = node_id.strip()
    if node_id in outputs:
        return outputs[node_id]
    return outputs.get(sanitize_node_id(node_id))


def find_output_by_label(label: str, outputs: Mapping[str, NodeOutput]) -> Optional[NodeOutput]:
    """First output whose label matches *label* case-insensitively."""
    wanted = label.strip().lower()
    for output in outputs.values():
        if output.label.strip().lower() == wanted:
            return output
    return None


def _get_field(current: Any, name: str, broadcast: bool) -> Any:
    if isinstance(current, Mapping):
        return current.get(name, _ABSENT)
    if isinstance(current, list):
        if broadcast:
            return [item.get(name) if isinstance(item, Mapping) else None for item in current]
        if name == "length":
            return len(current)
        return UNRESOLVED
    if isinstance(current, str) and name == "length":
        return len(current)
    return UNRESOLVED


def resolve_field_path(data: Any, field_path: str, broadcast: bool = True, missing: Any = UNRESOLVED) -> Any:
    """Walk *field_path* (``a.b[0].c``) into *data*.

    Returns the value found (``None`` for a key that is present and null),
    *missing* when the final key is absent, or ``UNRESOLVED`` when the path
    steps into something that is not a container or indexes past the end of
    a list.

    With ``broadcast`` a field access on a list maps over every element.
    """
    segments = [s.strip() for s in field_path.split(".") if s.strip()]
    current = data
    for position, segment in enumerate(segments):
        if current is None:
            return UNRESOLVED

        m = _INDEXED_SEGMENT.match(segment)
        if m:
            name, indexes = m.group(1).strip(), _INDEX.findall(m.group(2))
            if name:
                current = _get_field(current, name, broadcast=False)
                if current is UNRESOLVED or current is _ABSENT:
                    return UNRESOLVED
            for idx in indexes:
                if not isinstance(current, list):
                    return UNRESOLVED
                i = int(idx)
                if i >= len(current):
                    return UNRESOLVED
                current = current[i]
            continue

        current = _get_field(current, segment, broadcast)
        if current is _ABSENT:
            return missing if position == len(segments) - 1 else UNRESOLVED
        if current is UNRESOLVED:
            return UNRESOLVED
    return current


def _split_reference(expr: str) -> tuple[str, str]:
    """Split ``head.field.path`` / ``head[0].x`` into (head, field_path)."""
    dot = expr.find(".")
    bracket = expr.find("[")
    cuts = [c for c in (dot, bracket) if c != -1]
    if not cuts:
        return expr.strip(), ""
    cut = min(cuts)
    head = expr[:cut].strip()
    rest = expr[cut + 1:] if cut == dot else expr[cut:]
    return head, rest


def resolve_reference(expression: str, outputs: Mapping[str, NodeOutput], broadcast: bool = True) -> Any:
    """Resolve the inside of a ``{{...}}`` marker to a value (or ``UNRESOLVED``)."""
    expr = expression.strip()

    if expr.startswith("@"):
        body = expr[1:]
        if ":" not in body:
            return UNRESOLVED
        node_id, rest = body.split(":", 1)
        output = find_output(node_id, outputs)
        if output is None:
            return UNRESOLVED
        dot = rest.find(".")
        if dot == -1:
            return output.data
        return resolve_field_path(output.data, rest[dot + 1:], broadcast)

    if expr.startswith("$"):
        node_id, path = _split_reference(expr[1:])
        output = find_output(node_id, outputs)
    else:
        label, path = _split_reference(expr)
        output = find_output_by_label(label, outputs)

    if output is None:
        return UNRESOLVED
    if not path:
        return output.data
    return resolve_field_path(output.data, path, broadcast)


# ── Formatting ────────────────────────────────────────────────────────────────


def format_value(value: Any) -> str:
    """Render a resolved value for interpolation into text."""
    if value is None or value is UNRESOLVED:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (str, int, float)):
        return str(value)
    if isinstance(value, (list, tuple)):
        return ", ".join(format_value(v) for v in value)
    if isinstance(value, Mapping):
        for key in ("title", "name", "id", "message"):
            if value.get(key) is not None:
                return format_value(value[key])
        return json.dumps(value, indent=2, default=str)
    return str(value)


# ── Public API ────────────────────────────────────────────────────────────────


def resolve_template(template: Any, outputs: Mapping[str, NodeOutput]) -> Any:
    """Substitute every ``{{...}}`` in *template*. Non-strings pass through."""
    if not isinstance(template, str) or "{{" not in template:
        return template

    def _replace(match: re.Match) -> str:
        value = resolve_reference(match.group(1), outputs)
        if value is UNRESOLVED:
            return match.group(0)
        return format_value(value)

    return TEMPLATE_PATTERN.sub(_replace, template)


def resolve_config(
    config: Mapping[str, Any],
    outputs: Mapping[str, NodeOutput],
    exclude: Iterable[str] = ("condition",),
) -> dict[str, Any]:
    """Resolve templates over string leaves and nested dicts of *config*.

    Keys listed in *exclude* are copied through untouched (top level only).
    Lists pass through unresolved.
    """
    skip = set(exclude)
    resolved: dict[str, Any] = {}
    for key, value in config.items():
        if key in skip:
            resolved[key] = value
        elif isinstance(value, str):
            resolved[key] = resolve_template(value, outputs)
        elif isinstance(value, Mapping):
            resolved[key] = resolve_config(value, outputs, exclude=())
        else:
            resolved[key] = value
    return resolved


def has_template_variables(text: Any) -> bool:
    return isinstance(text, str) and TEMPLATE_PATTERN.search(text) is not None


def extract_template_variables(template: Any) -> list[str]:
    """Return the trimmed inner expression of every ``{{...}}`` in *template*."""
    if not isinstance(template, str):
        return []
    return [m.group(1).strip() for m in TEMPLATE_PATTERN.finditer(template)]


def format_template_for_display(template: Any) -> Any:
    """``{{@nodeId:Name.field}}`` -> ``{{Name.field}}`` for human-facing text."""
    if not isinstance(template, str):
        return template
    return CANONICAL_PATTERN.sub(lambda m: "{{" + m.group(2) + "}}", template)
