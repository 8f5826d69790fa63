"""
Node Registry - Registration and resolution of node types.

This package provides:
- NodeRegistry: type name -> factory table
- NodeDefinition: Metadata about a registered node
- NodePackManifest: Package metadata for a node pack

Supports entry-points based discovery for plugin node packs.
"""

from .models import NodeDefinition, NodePackManifest
from .registry import NODE_PACK_ENTRY_POINT, NodeFactory, NodeRegistry

__all__ = [
    "NodeDefinition",
    "NodePackManifest",
    "NodeRegistry",
    "NodeFactory",
    "NODE_PACK_ENTRY_POINT",
]
