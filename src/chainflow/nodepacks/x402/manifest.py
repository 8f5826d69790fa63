"""
x402 Node Pack Manifest - Registration function for entry-points.
"""

from chainflow.node_registry.models import NodePackManifest
from .node import X402Node


MANIFEST = NodePackManifest(
    name="x402",
    version="1.0.0",
    description="Paid-resource access over the x402 payment protocol",
    nodes=["x402Client"],
    entry_point="chainflow.nodepacks.x402",
)


NODE_CLASSES = {
    "x402Client": X402Node,
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
