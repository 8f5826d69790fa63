"""
Node SDK - Node contract and execution semantics.

This package provides what node implementations build on:
- BaseNode: Abstract base class (description + execute)
- NodeExecutionContext: Per-invocation runtime handle
- NodeExecutionData / NodeItem: Items flowing between nodes
- NodeParameter: Declared parameter schema
- Collaborators: Injected dependencies (HTTP client, signer, notifier)
- HttpClient: Timeout-bounded HTTP client
"""

from .items import (
    NodeExecutionData,
    NodeItem,
    error_item,
    is_error_item,
    count_error_items,
    return_json_array,
)
from .errors import (
    NodeOperationError,
    NodeApiError,
    MissingRequiredParameter,
    ParameterTypeMismatch,
    ExpressionError,
)
from .parameters import NodeParameter, NodeParameterType
from .collaborators import Collaborators, HTTP_CLIENT, SIGNER, NOTIFIER
from .context import NodeExecutionContext
from .basenode import BaseNode, run_items
from .http import HttpClient, HttpResponse, HttpApiError, NodeTimeoutError

__all__ = [
    # Items
    "NodeExecutionData",
    "NodeItem",
    "error_item",
    "is_error_item",
    "count_error_items",
    "return_json_array",
    # Context
    "NodeExecutionContext",
    "Collaborators",
    "HTTP_CLIENT",
    "SIGNER",
    "NOTIFIER",
    # Base class
    "BaseNode",
    "run_items",
    "NodeParameter",
    "NodeParameterType",
    # Errors
    "NodeOperationError",
    "NodeApiError",
    "MissingRequiredParameter",
    "ParameterTypeMismatch",
    "ExpressionError",
    # HTTP
    "HttpClient",
    "HttpResponse",
    "HttpApiError",
    "NodeTimeoutError",
]
