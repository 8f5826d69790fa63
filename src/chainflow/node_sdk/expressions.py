"""
Parameter Expressions - Per-item references inside parameter values.

A parameter value that is a string starting with ``=`` is an expression:

    "={{ $json.amount }}"                 -> value of the current item's field
    "={{ $node['fetch'].json.price }}"    -> field of another node's first item
    "=Swap {{ $json.amount }} SOL"        -> text interpolation
    "={{ $item }}"                        -> current item index
    "={{ $parameter.token }}"             -> another raw parameter

Only path lookups are supported; nothing is evaluated.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List

from .errors import ExpressionError


_TEMPLATE = re.compile(r"\{\{\s*(.*?)\s*\}\}")
_NODE_REF = re.compile(r"""^\$node\[\s*(['"])(.+?)\1\s*\]""")
_PATH_TOKEN = re.compile(
    r"""\.([A-Za-z_$][\w$]*)|\[\s*(-?\d+)\s*\]|\[\s*(['"])(.*?)\3\s*\]"""
)


@dataclass
class ExpressionScope:
    """Values an expression may reference for one item."""
    json: Dict[str, Any] = field(default_factory=dict)
    item_index: int = 0
    node_outputs: Dict[str, List[List[Dict[str, Any]]]] = field(default_factory=dict)
    parameters: Dict[str, Any] = field(default_factory=dict)


def is_expression(value: Any) -> bool:
    return isinstance(value, str) and value.startswith("=")


def resolve_value(value: Any, scope: ExpressionScope) -> Any:
    """
    Resolve a parameter value for one item.

    Non-expression values are returned unchanged. Dicts and lists are
    resolved recursively.
    """
    if isinstance(value, dict):
        return {key: resolve_value(inner, scope) for key, inner in value.items()}
    if isinstance(value, list):
        return [resolve_value(inner, scope) for inner in value]
    if not is_expression(value):
        return value

    body = value[1:]
    whole = _TEMPLATE.fullmatch(body.strip())
    if whole:
        return resolve_reference(whole.group(1), scope)

    def _interpolate(match: re.Match) -> str:
        resolved = resolve_reference(match.group(1), scope)
        if isinstance(resolved, (dict, list)):
            return json.dumps(resolved)
        return "" if resolved is None else str(resolved)

    return _TEMPLATE.sub(_interpolate, body)


def resolve_reference(ref: str, scope: ExpressionScope) -> Any:
    """Resolve a single ``$root.path`` reference."""
    ref = ref.strip()

    if ref.startswith("$node"):
        match = _NODE_REF.match(ref)
        if not match:
            raise ExpressionError(f"Invalid node reference: {ref}", ref)
        node_id = match.group(2)
        outputs = scope.node_outputs.get(node_id)
        if not outputs or not outputs[0]:
            raise ExpressionError(f"Node '{node_id}' has no output to reference", ref)
        rest = ref[match.end():]
        if not rest.startswith(".json"):
            raise ExpressionError(f"Node reference must select .json: {ref}", ref)
        return _walk(outputs[0][0].get("json") or {}, rest[len(".json"):], ref)

    if ref == "$item":
        return scope.item_index
    if ref.startswith("$json"):
        return _walk(scope.json, ref[len("$json"):], ref)
    if ref.startswith("$parameter"):
        return _walk(scope.parameters, ref[len("$parameter"):], ref)

    raise ExpressionError(f"Unknown expression root: {ref}", ref)


def _walk(value: Any, path: str, ref: str) -> Any:
    pos = 0
    while pos < len(path):
        match = _PATH_TOKEN.match(path, pos)
        if not match:
            raise ExpressionError(f"Invalid expression path: {ref}", ref)
        pos = match.end()

        if match.group(1) is not None:
            key: Any = match.group(1)
        elif match.group(2) is not None:
            key = int(match.group(2))
        else:
            key = match.group(4)

        try:
            value = value[key]
        except (KeyError, IndexError, TypeError):
            raise ExpressionError(f"Cannot resolve '{key}' in expression: {ref}", ref) from None
    return value


__all__ = [
    "ExpressionScope",
    "is_expression",
    "resolve_value",
    "resolve_reference",
]
