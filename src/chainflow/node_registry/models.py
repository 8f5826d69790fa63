"""
Node Registry Models - Metadata structures for nodes and node packs.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, ConfigDict, Field


class NodeDefinition(BaseModel):
    """
    Metadata about a registered node type.
    """
    model_config = ConfigDict(extra="allow")

    # Identity
    node_type: str = Field(..., description="Unique node type identifier")
    version: int = Field(1, description="Node version")

    # Display
    display_name: str = Field(..., description="Human-readable name")
    description: str = Field("", description="Node description")
    group: List[str] = Field(default_factory=list, description="Categories")

    # Technical
    node_class: Optional[str] = Field(None, description="Fully qualified class name")
    node_pack: Optional[str] = Field(None, description="Source node pack")

    # Runtime
    inputs: List[str] = Field(default_factory=lambda: ["main"])
    outputs: List[str] = Field(default_factory=lambda: ["main"])
    parameters: List[Dict[str, Any]] = Field(default_factory=list)

    @classmethod
    def from_node_class(cls, node_class: Type, node_type: Optional[str] = None) -> "NodeDefinition":
        """Create definition from a BaseNode class."""
        node_type = node_type or getattr(node_class, "type", node_class.__name__.lower())
        version = getattr(node_class, "version", 1)
        description = getattr(node_class, "description", {}) or {}
        properties = getattr(node_class, "properties", {}) or {}

        parameters = []
        for param in properties.get("parameters", []):
            if hasattr(param, "model_dump"):
                param = param.model_dump(by_alias=True, exclude_none=True)
            parameters.append(param)

        inputs = description.get("inputs", ["main"])
        outputs = description.get("outputs", ["main"])

        return cls(
            node_type=node_type,
            version=version,
            display_name=description.get("displayName", node_type),
            description=description.get("description", ""),
            group=description.get("group", []),
            node_class=f"{node_class.__module__}.{node_class.__name__}",
            inputs=inputs if isinstance(inputs, list) else ["main"],
            outputs=outputs if isinstance(outputs, list) else ["main"],
            parameters=parameters,
        )


class NodePackManifest(BaseModel):
    """
    Manifest for a node pack (collection of nodes).

    Used for discovery and registration of bundled nodes.
    """
    model_config = ConfigDict(extra="allow")

    name: str = Field(..., description="Pack name (e.g., 'core')")
    version: str = Field("1.0.0", description="Pack version")
    description: str = Field("", description="Pack description")
    nodes: List[str] = Field(
        default_factory=list,
        description="List of node types in this pack",
    )
    entry_point: str = Field(
        "",
        description="Module path for node discovery (e.g., 'chainflow.nodepacks.core')",
    )


__all__ = [
    "NodeDefinition",
    "NodePackManifest",
]
