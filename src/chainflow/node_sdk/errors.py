"""
Node Errors - Item-scoped failures.

These are raised inside a node while it processes one item. The item
loop converts them into error-shaped output items; they never abort
the workflow.
"""

from __future__ import annotations

from typing import Any, Optional


class NodeOperationError(Exception):
    """Error during node operation."""

    def __init__(
        self,
        message: str,
        node: Optional[Any] = None,
        item_index: Optional[int] = None,
    ) -> None:
        self.message = message
        self.node = node
        self.item_index = item_index
        super().__init__(message)


class NodeApiError(NodeOperationError):
    """Error from external API call."""

    def __init__(
        self,
        message: str,
        node: Optional[Any] = None,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
    ) -> None:
        super().__init__(message, node)
        self.status_code = status_code
        self.response_body = response_body


class MissingRequiredParameter(NodeOperationError):
    """Parameter is absent and neither the schema nor the caller gave a default."""

    def __init__(self, name: str, item_index: Optional[int] = None) -> None:
        self.parameter = name
        super().__init__(f"Missing required parameter: {name}", item_index=item_index)


class ParameterTypeMismatch(NodeOperationError):
    """Resolved parameter value does not match its declared type."""

    def __init__(
        self,
        name: str,
        expected: str,
        value: Any,
        item_index: Optional[int] = None,
    ) -> None:
        self.parameter = name
        self.expected = expected
        self.actual = type(value).__name__
        super().__init__(
            f"Parameter '{name}' expects {expected}, got {self.actual}: {value!r}",
            item_index=item_index,
        )


class ExpressionError(NodeOperationError):
    """Parameter expression could not be resolved."""

    def __init__(self, message: str, expression: str = "") -> None:
        self.expression = expression
        super().__init__(message)


__all__ = [
    "NodeOperationError",
    "NodeApiError",
    "MissingRequiredParameter",
    "ParameterTypeMismatch",
    "ExpressionError",
]
