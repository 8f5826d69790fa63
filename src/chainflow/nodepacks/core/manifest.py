"""
Core Node Pack Manifest - Registration function for entry-points.
"""

from chainflow.node_registry.models import NodePackManifest
from .nodes import (
    ManualTriggerNode,
    SetNode,
    ScaleNode,
    NoOpNode,
    HttpRequestNode,
)


MANIFEST = NodePackManifest(
    name="core",
    version="1.0.0",
    description="Core utility nodes for workflow operations",
    nodes=[
        "manualTrigger",
        "set",
        "scale",
        "noOp",
        "httpRequest",
        "HttpGet",
    ],
    entry_point="chainflow.nodepacks.core",
)


# Node classes by type
NODE_CLASSES = {
    "manualTrigger": ManualTriggerNode,
    "set": SetNode,
    "scale": ScaleNode,
    "noOp": NoOpNode,
    "httpRequest": HttpRequestNode,
    "HttpGet": HttpRequestNode,
}


def register_nodes():
    """
    Entry point function for node pack discovery.

    Returns tuple of (manifest, node_classes).
    """
    return MANIFEST, NODE_CLASSES


__all__ = [
    "MANIFEST",
    "NODE_CLASSES",
    "register_nodes",
]
