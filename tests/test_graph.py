"""Tests for workflow models and graph compilation."""

import pytest
from pydantic import ValidationError

from chainflow.engine import CompiledGraph, WorkflowDefinition, parse_workflow
from chainflow.errors import CyclicWorkflowError, InvalidWorkflowError, NoStartNodeError


def workflow(nodes, edges=()):
    return parse_workflow({
        "id": "wf",
        "name": "Graph Test",
        "nodes": [{"id": node_id, "type": "noOp"} for node_id in nodes],
        "edges": [{"source": s, "destination": d} for s, d in edges],
    })


class TestWorkflowDefinition:
    """Workflow document model."""

    def test_node_name_defaults_to_id(self):
        definition = workflow(["fetch"])

        assert definition.nodes[0].name == "fetch"

    def test_chat_opt_in_alias(self):
        definition = parse_workflow({
            "nodes": [
                {"id": "a", "type": "noOp", "telegramNotify": True},
                {"id": "b", "type": "noOp"},
            ],
        })

        assert definition.nodes[0].telegram_notify is True
        assert definition.nodes[1].telegram_notify is None

    def test_edge_aliases(self):
        definition = WorkflowDefinition.model_validate({
            "nodes": [{"id": "a", "type": "noOp"}, {"id": "b", "type": "noOp"}],
            "edges": [{"source": "a", "sourceOutput": 1, "destination": "b", "destinationInput": 2}],
        })

        assert definition.edges[0].source_output == 1
        assert definition.edges[0].destination_input == 2

    def test_connections_become_edges_in_order(self):
        definition = parse_workflow({
            "nodes": [
                {"name": "A", "type": "noOp"},
                {"name": "B", "type": "noOp"},
                {"name": "C", "type": "noOp"},
            ],
            "connections": {
                "A": {"main": [[{"node": "C", "index": 0}], [{"node": "B", "index": 0}]]},
            },
        })

        assert [(e.source, e.source_output, e.destination) for e in definition.edges] == [
            ("A", 0, "C"),
            ("A", 1, "B"),
        ]

    def test_duplicate_ids_rejected(self):
        with pytest.raises(InvalidWorkflowError):
            parse_workflow({"nodes": [{"id": "a", "type": "x"}, {"id": "a", "type": "y"}]})

    def test_definition_is_immutable(self):
        definition = workflow(["a"])

        with pytest.raises(ValidationError):
            definition.name = "changed"

    def test_graph_helpers(self):
        definition = workflow(["a", "b", "c"], [("a", "b"), ("a", "c")])

        assert definition.node_ids() == ["a", "b", "c"]
        assert [n.id for n in definition.get_start_nodes()] == ["a"]
        assert definition.get_downstream_nodes("a") == ["b", "c"]
        assert definition.get_upstream_nodes("c") == ["a"]


class TestCompiledGraph:
    """Validation and ordering."""

    def test_execution_order_uses_declared_order_for_ties(self):
        graph = CompiledGraph(workflow(["d", "c", "b", "a"], [("d", "a"), ("c", "a")]))

        assert graph.execution_order == ["d", "c", "b", "a"]
        assert graph.start_nodes == ["d", "c", "b"]

    def test_diamond(self):
        graph = CompiledGraph(workflow(
            ["end", "left", "start", "right"],
            [("start", "left"), ("start", "right"), ("left", "end"), ("right", "end")],
        ))

        assert graph.execution_order == ["start", "left", "right", "end"]
        assert graph.is_terminal_node("end")
        assert graph.is_start_node("start")
        assert graph.in_degrees()["end"] == 2

    def test_cycle_detected(self):
        with pytest.raises(CyclicWorkflowError) as exc_info:
            CompiledGraph(workflow(["a", "b", "c"], [("a", "b"), ("b", "c"), ("c", "b")]))

        assert exc_info.value.nodes == ["b", "c"]

    def test_cycle_reported_before_missing_start(self):
        with pytest.raises(CyclicWorkflowError):
            CompiledGraph(workflow(["a", "b"], [("a", "b"), ("b", "a")]))

    def test_no_start_node_error_message(self):
        assert "no start node" in str(NoStartNodeError())

    def test_unknown_edge_endpoint(self):
        with pytest.raises(InvalidWorkflowError) as exc_info:
            CompiledGraph(workflow(["a"], [("a", "missing")]))

        assert exc_info.value.node_id == "missing"

    def test_empty_workflow_compiles(self):
        graph = CompiledGraph(workflow([]))

        assert graph.execution_order == []
        assert graph.start_nodes == []

    def test_input_merge_by_port(self):
        definition = parse_workflow({
            "nodes": [
                {"id": "a", "type": "noOp"},
                {"id": "b", "type": "noOp"},
                {"id": "c", "type": "noOp"},
            ],
            "edges": [
                {"source": "b", "destination": "c", "destinationInput": 1},
                {"source": "a", "destination": "c"},
                {"source": "a", "sourceOutput": 1, "destination": "c", "destinationInput": 1},
            ],
        })
        graph = CompiledGraph(definition)
        results = {
            "a": [[{"json": {"id": "a0"}}], [{"json": {"id": "a1"}}]],
            "b": [[{"json": {"id": "b0"}}]],
        }

        inputs = graph.get_input_data("c", results)

        assert [[item["json"]["id"] for item in port] for port in inputs] == [
            ["a0"],
            ["b0", "a1"],
        ]

    def test_missing_source_port_contributes_nothing(self):
        definition = parse_workflow({
            "nodes": [{"id": "a", "type": "noOp"}, {"id": "b", "type": "noOp"}],
            "edges": [{"source": "a", "sourceOutput": 3, "destination": "b"}],
        })
        graph = CompiledGraph(definition)

        assert graph.get_input_data("b", {"a": [[{"json": {}}]]}) == [[]]

    def test_summary(self):
        summary = CompiledGraph(workflow(["a", "b"], [("a", "b")])).get_summary()

        assert summary["workflow_id"] == "wf"
        assert summary["total_nodes"] == 2
        assert summary["total_edges"] == 1
