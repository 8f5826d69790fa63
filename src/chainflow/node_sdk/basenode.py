"""
BaseNode - Abstract base class for node implementations.

A node type is a BaseNode subclass registered under a type name. The
executor builds a fresh instance per invocation and calls execute()
with a NodeExecutionContext.

Subclasses implement execute_item() for one input item and optionally
prepare() for per-invocation setup. The item loop (run_items) isolates
failures: an exception while processing item i becomes an error-shaped
item and processing continues with item i+1.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple, Union

from .context import NodeExecutionContext
from .errors import NodeOperationError
from .items import NodeExecutionData, error_item
from .parameters import NodeParameter, build_parameter_schema


logger = logging.getLogger(__name__)


ItemResult = Union[
    None,
    NodeExecutionData,
    List[NodeExecutionData],
    Dict[int, List[NodeExecutionData]],
]


class BaseNode(ABC):
    """
    Abstract base class for all node implementations.

    Nodes define:
    - type: Unique identifier (e.g., "jupiterSwap")
    - version: Node version number
    - description: Node metadata dict (``telegramNotify`` opts the node into
      chat notifications; workflow nodes may override it)
    - properties: Declared parameters

    Example:

        class ScaleNode(BaseNode):
            type = "scale"

            description = {
                "displayName": "Scale",
                "name": "scale",
                "group": ["transform"],
                "inputs": ["main"],
                "outputs": ["main"],
            }

            properties = {
                "parameters": [
                    {"displayName": "Factor", "name": "factor", "type": "number", "required": True},
                ],
            }

            def execute_item(self, context, item_index):
                item = context.get_input_data()[item_index]
                factor = context.get_node_parameter("factor", item_index)
                return {"json": {"value": item["json"]["value"] * factor}}
    """

    # Required class attributes (override in subclasses)
    type: str = "base"
    version: int = 1

    description: Dict[str, Any] = {
        "displayName": "Base Node",
        "name": "base",
        "description": "",
        "group": [],
        "version": 1,
        "inputs": ["main"],
        "outputs": ["main"],
        "telegramNotify": False,
    }

    properties: Dict[str, Any] = {
        "parameters": [],
        "credentials": [],
    }

    def __init__(self) -> None:
        """Initialize node instance."""
        self.logger = logging.getLogger(f"chainflow.node.{self.type}")

    # ==== Contract ====

    def execute(self, context: NodeExecutionContext) -> List[List[NodeExecutionData]]:
        """
        Execute node over all input items.

        Returns:
            One list of items per output port.
        """
        self.prepare(context)
        return run_items(self, context)

    def prepare(self, context: NodeExecutionContext) -> None:
        """Per-invocation setup. Runs once, even when there are no items."""

    @abstractmethod
    def execute_item(self, context: NodeExecutionContext, item_index: int) -> ItemResult:
        """
        Process one input item.

        Returns one of:
        - a single item (appended to output port 0)
        - a list of items (appended to output port 0)
        - a {port: [items]} mapping
        - None (no output for this item)

        Raises:
            NodeOperationError: On operation failure
            NodeApiError: On API call failure
        """
        raise NotImplementedError

    # ==== Metadata ====

    @classmethod
    def output_count(cls) -> int:
        outputs = cls.description.get("outputs", ["main"])
        return max(len(outputs), 1) if isinstance(outputs, list) else 1

    @classmethod
    def get_parameter_schema(cls) -> Dict[str, NodeParameter]:
        return build_parameter_schema(cls.properties.get("parameters", []))

    @classmethod
    def get_definition(cls) -> Dict[str, Any]:
        """Get full node definition for registration."""
        return {
            "type": cls.type,
            "version": cls.version,
            "description": cls.description,
            "properties": cls.properties,
        }


def run_items(node: BaseNode, context: NodeExecutionContext) -> List[List[NodeExecutionData]]:
    """
    Drive execute_item over every input item in ascending index order.

    A failure on one item, including a malformed return value, is
    recorded as an error-shaped item on port 0 and does not stop the
    remaining items. Cancellation is honoured at item boundaries; an
    abandoned item emits nothing. Progress is recorded on the context.
    """
    outputs: List[List[NodeExecutionData]] = [[] for _ in range(node.output_count())]
    items = context.get_input_data(0)
    context.begin_items()

    for item_index in range(len(items)):
        if context.is_cancelled():
            logger.info(
                "Node %s cancelled before item %d of %d",
                context.node_id, item_index, len(items),
            )
            break

        try:
            routed = _route(node.execute_item(context, item_index), item_index)
        except Exception as e:
            logger.warning(
                "Node %s item %d failed: %s", context.node_id, item_index, e,
            )
            outputs[0].append(error_item(e, item_index, context.resolved_parameters(item_index)))
            context.record_item(failed=True)
            continue

        for port, port_items in routed:
            while len(outputs) <= port:
                outputs.append([])
            outputs[port].extend(port_items)
        context.record_item(failed=False)

    return outputs


def _route(result: ItemResult, item_index: int) -> List[Tuple[int, List[NodeExecutionData]]]:
    """Normalize one execute_item result to (port, items) pairs."""
    if result is None:
        return []
    if isinstance(result, list):
        routed = {0: result}
    elif isinstance(result, dict) and result and all(isinstance(key, int) for key in result):
        routed = result
    else:
        routed = {0: [result]}

    normalized = []
    for port, port_items in routed.items():
        if port < 0 or not isinstance(port_items, list):
            raise NodeOperationError(f"Invalid output for port {port}", item_index=item_index)
        copies = []
        for item in port_items:
            if not isinstance(item, dict):
                raise NodeOperationError(
                    f"Node returned an invalid item: {item!r}", item_index=item_index,
                )
            item = dict(item)
            item.setdefault("pairedItem", {"item": item_index})
            copies.append(item)
        normalized.append((port, copies))
    return normalized


__all__ = [
    "BaseNode",
    "ItemResult",
    "run_items",
]
