"""
Core Node Pack - Essential utility nodes.

This pack provides basic nodes for workflow operations:
- ManualTrigger: Start a workflow manually
- Set: Set/modify data fields
- Scale: Multiply a numeric field
- HttpRequest: Timeout-bounded HTTP call (also registered as HttpGet)
- NoOp: Pass-through node (no operation)
"""

from .nodes import (
    ManualTriggerNode,
    SetNode,
    ScaleNode,
    NoOpNode,
    HttpRequestNode,
)
from .manifest import MANIFEST, NODE_CLASSES, register_nodes

__all__ = [
    "ManualTriggerNode",
    "SetNode",
    "ScaleNode",
    "NoOpNode",
    "HttpRequestNode",
    "MANIFEST",
    "NODE_CLASSES",
    "register_nodes",
]
