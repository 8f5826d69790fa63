"""Tests for the node type registry and bundled packs."""

from unittest.mock import Mock, patch

import pytest

from chainflow.errors import NodeConstructionError, UnknownNodeTypeError
from chainflow.node_registry import NODE_PACK_ENTRY_POINT, NodePackManifest, NodeRegistry
from chainflow.nodepacks import default_registry
from chainflow.nodepacks.core import HttpRequestNode, NoOpNode, ScaleNode
from chainflow.nodepacks.x402 import X402Node


class TestNodeRegistry:
    """Registration and resolution."""

    def test_resolve_returns_fresh_instance(self):
        registry = NodeRegistry()
        registry.register("noOp", NoOpNode)

        first = registry.resolve("noOp")
        second = registry.resolve("noOp")

        assert isinstance(first, NoOpNode)
        assert first is not second

    def test_last_registration_wins(self):
        registry = NodeRegistry()
        registry.register("thing", NoOpNode)
        registry.register("thing", ScaleNode)

        assert isinstance(registry.resolve("thing"), ScaleNode)
        assert len(registry) == 1

    def test_unknown_type(self):
        with pytest.raises(UnknownNodeTypeError) as exc_info:
            NodeRegistry().resolve("Bogus", node_id="n1")

        assert exc_info.value.node_type == "Bogus"
        assert exc_info.value.node_id == "n1"

    def test_factory_failure(self):
        registry = NodeRegistry()
        registry.register("broken", Mock(side_effect=RuntimeError("no rpc")))

        with pytest.raises(NodeConstructionError) as exc_info:
            registry.resolve("broken")

        assert exc_info.value.node_type == "broken"
        assert "no rpc" in str(exc_info.value)

    def test_callable_factory(self):
        registry = NodeRegistry()
        registry.register("scale2", lambda: ScaleNode())

        assert isinstance(registry.resolve("scale2"), ScaleNode)
        assert registry.get_node("scale2").display_name == "scale2"

    def test_register_node_builds_definition(self):
        registry = NodeRegistry()
        definition = registry.register_node(ScaleNode)

        assert definition.node_type == "scale"
        assert definition.display_name == "Scale"
        assert definition.node_class.endswith("ScaleNode")
        assert [p["name"] for p in definition.parameters] == ["field", "factor"]
        assert "scale" in registry
        assert registry.has("scale")

    def test_register_pack(self):
        registry = NodeRegistry()
        manifest = NodePackManifest(name="demo", nodes=["noOp"])

        registry.register_pack(manifest, {"noOp": NoOpNode})

        assert registry.get_node("noOp").node_pack == "demo"
        assert registry.list_packs() == [manifest]

    def test_discover_module(self):
        registry = NodeRegistry()

        count = registry.discover_module("chainflow.nodepacks.core.nodes")

        assert count == 5
        assert set(registry.list_node_types()) == {"manualTrigger", "set", "scale", "noOp", "httpRequest"}

    def test_discover_missing_module(self):
        assert NodeRegistry().discover_module("chainflow.nodepacks.nope") == 0

    def test_discover_entry_points(self):
        good = Mock()
        good.name = "extra"
        good.load.return_value = lambda: {"extraNoOp": NoOpNode}
        bad = Mock()
        bad.name = "bad"
        bad.load.side_effect = ImportError("missing dependency")

        registry = NodeRegistry()
        with patch(
            "chainflow.node_registry.registry.entry_points", return_value=[good, bad],
        ) as mock_entry_points:
            count = registry.discover_entry_points()
            again = registry.discover_entry_points()

        mock_entry_points.assert_called_once_with(group=NODE_PACK_ENTRY_POINT)
        assert count == 1
        assert again == 1
        assert registry.get_node("extraNoOp").node_pack == "extra"


class TestDefaultRegistry:
    """Bundled core and x402 packs."""

    def test_bundled_types(self):
        registry = default_registry()

        for node_type in ("manualTrigger", "set", "scale", "noOp", "httpRequest", "HttpGet", "x402Client"):
            assert node_type in registry

        assert isinstance(registry.resolve("HttpGet"), HttpRequestNode)
        assert isinstance(registry.resolve("x402Client"), X402Node)
        assert {pack.name for pack in registry.list_packs()} == {"core", "x402"}

    def test_registries_are_independent(self):
        first = default_registry()
        first.register("custom", NoOpNode)

        assert "custom" not in default_registry()
