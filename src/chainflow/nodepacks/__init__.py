"""
Bundled node packs.

- core: trigger, set, scale, HTTP request, no-op
- x402: paid-resource access
"""

from chainflow.node_registry import NodeRegistry

from . import core, x402


def default_registry(discover: bool = False) -> NodeRegistry:
    """
    Build a registry holding the bundled packs.

    Args:
        discover: Also load packs advertised under the
            ``chainflow.nodepacks`` entry point group
    """
    registry = NodeRegistry()
    for pack in (core, x402):
        registry.register_pack(*pack.register_nodes())
    if discover:
        registry.discover_entry_points()
    return registry


__all__ = ["default_registry"]
