"""
Node Registry - Maps node type names to node factories.

Supports multiple registration methods:
1. Manual registration of a factory or BaseNode subclass
2. Node packs (manifest + classes)
3. Entry-points (for plugin node packs)
4. Module scanning

The registry is a write-once-then-read-many table: register every type
before any execution starts. It is not thread-safe on its own.
"""

from __future__ import annotations

import importlib
import logging
from importlib.metadata import entry_points
from typing import TYPE_CHECKING, Callable, Dict, Iterator, List, Optional, Type

from ..errors import NodeConstructionError, UnknownNodeTypeError
from .models import NodeDefinition, NodePackManifest


if TYPE_CHECKING:
    from chainflow.node_sdk.basenode import BaseNode


logger = logging.getLogger(__name__)

# Entry point group for node packs
NODE_PACK_ENTRY_POINT = "chainflow.nodepacks"

NodeFactory = Callable[[], "BaseNode"]


class NodeRegistry:
    """
    Central registry for resolving node types to fresh node instances.

    Usage:
        registry = NodeRegistry()
        registry.register("jupiterSwap", SwapNode)
        registry.register("kamino", lambda: KaminoNode(default_market="main"))

        node = registry.resolve("jupiterSwap")
    """

    def __init__(self) -> None:
        """Initialize empty registry."""
        self._factories: Dict[str, NodeFactory] = {}
        self._nodes: Dict[str, NodeDefinition] = {}
        self._packs: Dict[str, NodePackManifest] = {}
        self._discovered = False

    def register(self, node_type: str, factory: NodeFactory) -> None:
        """
        Register a factory for a node type.

        Re-registering a type replaces the previous factory.
        """
        if node_type in self._factories:
            logger.debug(f"Replacing factory for node type: {node_type}")

        self._factories[node_type] = factory
        if isinstance(factory, type):
            self._nodes[node_type] = NodeDefinition.from_node_class(factory, node_type)
        else:
            self._nodes[node_type] = NodeDefinition(node_type=node_type, display_name=node_type)

        logger.debug(f"Registered node: {node_type}")

    def register_node(
        self,
        node_class: Type["BaseNode"],
        node_type: Optional[str] = None,
    ) -> NodeDefinition:
        """
        Register a node class.

        Args:
            node_class: BaseNode subclass
            node_type: Override node type (uses class.type if not provided)

        Returns:
            NodeDefinition for the registered node
        """
        if node_type is None:
            node_type = getattr(node_class, "type", node_class.__name__.lower())

        self.register(node_type, node_class)
        return self._nodes[node_type]

    def register_pack(
        self,
        manifest: NodePackManifest,
        node_classes: Dict[str, Type["BaseNode"]],
    ) -> None:
        """
        Register a node pack with its nodes.

        Args:
            manifest: Pack manifest
            node_classes: Map of node_type -> node class
        """
        self._packs[manifest.name] = manifest

        for node_type, node_class in node_classes.items():
            definition = self.register_node(node_class, node_type)
            definition.node_pack = manifest.name

        logger.info(f"Registered pack '{manifest.name}' with {len(node_classes)} nodes")

    def discover_entry_points(self, force: bool = False) -> int:
        """
        Discover node packs via entry points.

        Entry points are declared in pyproject.toml:

            [project.entry-points."chainflow.nodepacks"]
            mypack = "mypack:register_nodes"

        The entry point should be a function that returns either
        (manifest, node_classes) or just a node_classes dict.

        Returns:
            Number of packs discovered
        """
        if self._discovered and not force:
            return len(self._packs)

        count = 0
        for ep in entry_points(group=NODE_PACK_ENTRY_POINT):
            try:
                result = ep.load()()
            except Exception as e:
                logger.error(f"Failed to load node pack '{ep.name}': {e}")
                continue

            if isinstance(result, tuple):
                manifest, node_classes = result
            else:
                manifest = NodePackManifest(name=ep.name, nodes=list(result.keys()))
                node_classes = result
            self.register_pack(manifest, node_classes)

            count += 1
            logger.info(f"Discovered node pack: {ep.name}")

        self._discovered = True
        return count

    def discover_module(self, module_path: str) -> int:
        """
        Discover nodes from a module.

        Scans module for concrete BaseNode subclasses and registers them.

        Returns:
            Number of nodes discovered
        """
        from chainflow.node_sdk.basenode import BaseNode

        try:
            module = importlib.import_module(module_path)
        except ImportError as e:
            logger.error(f"Failed to import module '{module_path}': {e}")
            return 0

        count = 0
        for name in dir(module):
            obj = getattr(module, name)
            if (
                isinstance(obj, type)
                and issubclass(obj, BaseNode)
                and obj is not BaseNode
                and not getattr(obj, "__abstractmethods__", None)
            ):
                self.register_node(obj)
                count += 1

        return count

    def resolve(self, node_type: str, node_id: Optional[str] = None) -> "BaseNode":
        """
        Create a fresh node instance.

        Raises:
            UnknownNodeTypeError: No factory registered for the type
            NodeConstructionError: The factory raised
        """
        factory = self._factories.get(node_type)
        if factory is None:
            raise UnknownNodeTypeError(node_type, node_id)

        try:
            return factory()
        except Exception as e:
            raise NodeConstructionError(node_type, e, node_id) from e

    def get_node(self, node_type: str) -> Optional[NodeDefinition]:
        """Get node definition by type."""
        return self._nodes.get(node_type)

    def list_nodes(self) -> List[NodeDefinition]:
        """List all registered nodes."""
        return list(self._nodes.values())

    def list_packs(self) -> List[NodePackManifest]:
        """List all registered packs."""
        return list(self._packs.values())

    def list_node_types(self) -> List[str]:
        """List all registered node types."""
        return list(self._factories.keys())

    def has(self, node_type: str) -> bool:
        """Check if node type is registered."""
        return node_type in self._factories

    def __len__(self) -> int:
        return len(self._factories)

    def __iter__(self) -> Iterator[NodeDefinition]:
        return iter(self._nodes.values())

    def __contains__(self, node_type: str) -> bool:
        return self.has(node_type)


__all__ = [
    "NodeRegistry",
    "NodeFactory",
    "NODE_PACK_ENTRY_POINT",
]
