"""
NodeExecutionContext - Runtime handle passed to a node invocation.

Built by the executor once per node invocation (not per item). Gives
the node its merged input items, typed parameter lookup and the
injected collaborators.
"""

from __future__ import annotations

import logging
import threading
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

from .collaborators import Collaborators
from .errors import MissingRequiredParameter
from .expressions import ExpressionScope, resolve_value
from .items import NodeExecutionData, return_json_array
from .parameters import NodeParameter


logger = logging.getLogger(__name__)

_MISSING: Any = object()


class NodeExecutionContext:
    """
    Runtime context provided to nodes during execution.

    Provides access to:
    - Input items (per input port)
    - Parameters, resolved per item and checked against the node's schema
    - Collaborators (HTTP client, signer, notifier, ...)
    - The run's cancellation state
    """

    def __init__(
        self,
        parameters: Dict[str, Any],
        input_data: List[List[NodeExecutionData]],
        schema: Optional[Dict[str, NodeParameter]] = None,
        collaborators: Optional[Collaborators] = None,
        node_outputs: Optional[Mapping[str, List[List[NodeExecutionData]]]] = None,
        workflow_id: Optional[str] = None,
        execution_id: Optional[str] = None,
        node_id: Optional[str] = None,
        node_name: Optional[str] = None,
        node_type: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> None:
        self._parameters = dict(parameters)
        self._input_data = input_data
        self._schema = schema or {}
        self._collaborators = collaborators or Collaborators()
        self._node_outputs = MappingProxyType(dict(node_outputs or {}))
        self._cancel_event = cancel_event
        self.workflow_id = workflow_id
        self.execution_id = execution_id
        self.node_id = node_id
        self.node_name = node_name or node_id
        self.node_type = node_type
        self.items_processed: Optional[int] = None
        self.item_errors = 0

    # ==== Input ====

    def get_input_data(self, input_index: int = 0) -> List[NodeExecutionData]:
        """Get merged input items for an input port."""
        if input_index < len(self._input_data):
            return self._input_data[input_index]
        return []

    @property
    def input_count(self) -> int:
        return len(self.get_input_data(0))

    # ==== Parameters ====

    def get_node_parameter(
        self,
        name: str,
        item_index: int = 0,
        default: Any = _MISSING,
    ) -> Any:
        """
        Get parameter value for one item.

        Expressions are resolved against the item; constants come back
        unchanged for every index.

        Args:
            name: Parameter name
            item_index: Index of the input item
            default: Returned when the parameter is absent

        Raises:
            MissingRequiredParameter: absent with no default, or a required
                parameter resolved to an empty value
            ParameterTypeMismatch: value does not match the declared type
            ExpressionError: an expression could not be resolved
        """
        declared = self._schema.get(name)

        if name in self._parameters:
            value = resolve_value(self._parameters[name], self._scope(item_index))
            if declared is not None:
                if declared.required and value in (None, ""):
                    raise MissingRequiredParameter(name, item_index=item_index)
                declared.check_value(value, item_index=item_index)
            return value

        if default is not _MISSING:
            return default
        if declared is not None and declared.default is not None and not declared.required:
            return declared.default
        raise MissingRequiredParameter(name, item_index=item_index)

    def resolved_parameters(self, item_index: int) -> Dict[str, Any]:
        """
        Best-effort view of the node's parameters for one item.

        Used to annotate error-shaped items; values that fail to resolve
        are reported raw.
        """
        names = list(self._schema.keys()) + [
            key for key in self._parameters if key not in self._schema
        ]
        resolved: Dict[str, Any] = {}
        for name in names:
            try:
                resolved[name] = self.get_node_parameter(name, item_index)
            except Exception:
                resolved[name] = self._parameters.get(name)
        return resolved

    def _scope(self, item_index: int) -> ExpressionScope:
        items = self.get_input_data(0)
        item = items[item_index] if 0 <= item_index < len(items) else None
        current = item.get("json", {}) if isinstance(item, dict) else {}
        return ExpressionScope(
            json=current,
            item_index=item_index,
            node_outputs=dict(self._node_outputs),
            parameters=self._parameters,
        )

    # ==== Collaborators ====

    def get_collaborator(self, name: str) -> Any:
        """Get an injected collaborator by capability key."""
        return self._collaborators.require(name)

    def has_collaborator(self, name: str) -> bool:
        return name in self._collaborators

    # ==== Run state ====

    def is_cancelled(self) -> bool:
        return self._cancel_event is not None and self._cancel_event.is_set()

    def begin_items(self) -> None:
        """Start counting item progress (called by the item loop)."""
        self.items_processed = 0
        self.item_errors = 0

    def record_item(self, failed: bool) -> None:
        self.items_processed = (self.items_processed or 0) + 1
        if failed:
            self.item_errors += 1

    @property
    def stopped_early(self) -> bool:
        """True if the item loop left input items unprocessed."""
        return self.items_processed is not None and self.items_processed < self.input_count

    def get_node_output(self, node_id: str) -> List[List[NodeExecutionData]]:
        """Read-only access to a completed node's output."""
        return self._node_outputs.get(node_id, [])

    # ==== Helpers ====

    @staticmethod
    def return_json_array(values: List[Dict[str, Any]]) -> List[List[NodeExecutionData]]:
        return return_json_array(values)


__all__ = [
    "NodeExecutionContext",
]
