"""
Compiled Graph - Validated, executable workflow DAG.

Takes a WorkflowDefinition, checks its edges, rejects cycles and
computes a deterministic topological order for sync execution.
"""

from __future__ import annotations

import heapq
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ..errors import CyclicWorkflowError, InvalidWorkflowError, NoStartNodeError
from .models import WorkflowDefinition, WorkflowEdge, WorkflowNode


logger = logging.getLogger(__name__)


class NodeStatus(str, Enum):
    """Status of a node during execution."""
    PENDING = "pending"
    RUNNING = "running"
    SUCCESS = "success"
    ERROR = "error"  # finished, but at least one item is error-shaped
    CANCELLED = "cancelled"


@dataclass
class NodeRunResult:
    """
    Result of running a single node.
    """
    node_id: str
    node_name: str
    node_type: str
    status: NodeStatus = NodeStatus.PENDING
    output_data: List[List[Dict[str, Any]]] = field(default_factory=list)
    item_count: int = 0
    error_count: int = 0
    error: Optional[str] = None
    started_at: Optional[str] = None
    duration_ms: float = 0

    @property
    def is_success(self) -> bool:
        return self.status == NodeStatus.SUCCESS

    @property
    def is_error(self) -> bool:
        return self.status == NodeStatus.ERROR


class CompiledGraph:
    """
    Compiled workflow ready for execution.

    Contains:
    - Nodes with their inbound and outbound edges
    - Start nodes and a topological order for sync execution
    - The edge merge rule used to build a node's input items
    """

    def __init__(self, workflow: WorkflowDefinition):
        """
        Compile workflow into executable graph.

        Args:
            workflow: Source workflow definition

        Raises:
            InvalidWorkflowError: An edge references an unknown node
            CyclicWorkflowError: The edges contain a cycle
            NoStartNodeError: No node is free of inbound edges
        """
        self.workflow_id = workflow.id or "unnamed"
        self.workflow_name = workflow.name
        self._workflow = workflow

        self._nodes: Dict[str, WorkflowNode] = {node.id: node for node in workflow.nodes}
        self._order_index: Dict[str, int] = {
            node.id: index for index, node in enumerate(workflow.nodes)
        }
        self._incoming: Dict[str, List[WorkflowEdge]] = {node_id: [] for node_id in self._nodes}
        self._outgoing: Dict[str, List[WorkflowEdge]] = {node_id: [] for node_id in self._nodes}

        self._build_edges()

        self._execution_order: List[str] = []
        self._compute_execution_order()

        self._start_nodes = [
            node.id for node in workflow.nodes if not self._incoming[node.id]
        ]
        if self._nodes and not self._start_nodes:
            raise NoStartNodeError()

    def _build_edges(self) -> None:
        """Index edges by endpoint, rejecting dangling references."""
        for edge in self._workflow.edges:
            for endpoint in (edge.source, edge.destination):
                if endpoint not in self._nodes:
                    raise InvalidWorkflowError(
                        f"Edge {edge.source} -> {edge.destination} references "
                        f"unknown node '{endpoint}'",
                        node_id=endpoint,
                    )
            self._outgoing[edge.source].append(edge)
            self._incoming[edge.destination].append(edge)

    def _compute_execution_order(self) -> None:
        """
        Compute topological order for execution.

        Kahn's algorithm over edges; ready nodes are taken in declared
        node order.
        """
        in_degree = self.in_degrees()
        ready = [
            (self._order_index[name], name)
            for name, degree in in_degree.items()
            if degree == 0
        ]
        heapq.heapify(ready)
        order: List[str] = []

        while ready:
            _, node_name = heapq.heappop(ready)
            order.append(node_name)

            for edge in self._outgoing[node_name]:
                in_degree[edge.destination] -= 1
                if in_degree[edge.destination] == 0:
                    heapq.heappush(ready, (self._order_index[edge.destination], edge.destination))

        if len(order) != len(self._nodes):
            # Cycle detected
            done = set(order)
            remaining = [name for name in self._nodes if name not in done]
            raise CyclicWorkflowError(remaining)

        self._execution_order = order

    @property
    def execution_order(self) -> List[str]:
        """Get nodes in execution order."""
        return self._execution_order.copy()

    @property
    def start_nodes(self) -> List[str]:
        """Entry point node ids, in declared order."""
        return self._start_nodes.copy()

    @property
    def node_ids(self) -> List[str]:
        """Get all node ids in declared order."""
        return list(self._nodes.keys())

    def get_node(self, node_id: str) -> Optional[WorkflowNode]:
        """Get node by id."""
        return self._nodes.get(node_id)

    def declared_index(self, node_id: str) -> int:
        """Position of the node in the workflow's node list."""
        return self._order_index[node_id]

    def in_degrees(self) -> Dict[str, int]:
        """Fresh in-degree map (one count per inbound edge)."""
        return {node_id: len(edges) for node_id, edges in self._incoming.items()}

    def incoming_edges(self, node_id: str) -> List[WorkflowEdge]:
        return list(self._incoming.get(node_id, []))

    def outgoing_edges(self, node_id: str) -> List[WorkflowEdge]:
        return list(self._outgoing.get(node_id, []))

    def is_start_node(self, node_id: str) -> bool:
        return not self._incoming.get(node_id)

    def is_terminal_node(self, node_id: str) -> bool:
        return not self._outgoing.get(node_id)

    def get_input_data(
        self,
        node_id: str,
        completed_results: Dict[str, List[List[Dict[str, Any]]]],
    ) -> List[List[Dict[str, Any]]]:
        """
        Get input data for a node from upstream results.

        Items arriving on the same input port are concatenated in edge
        declaration order, then source item order. Returns one list per
        input port up to the highest port any edge feeds.
        """
        edges = self._incoming.get(node_id, [])
        if not edges:
            return []

        port_count = max(edge.destination_input for edge in edges) + 1
        inputs: List[List[Dict[str, Any]]] = [[] for _ in range(port_count)]

        for edge in edges:
            source_output = completed_results.get(edge.source) or []
            if edge.source_output < len(source_output):
                inputs[edge.destination_input].extend(source_output[edge.source_output])

        return inputs

    def get_summary(self) -> Dict[str, Any]:
        """Structural summary of the compiled graph."""
        return {
            "workflow_id": self.workflow_id,
            "workflow_name": self.workflow_name,
            "total_nodes": len(self._nodes),
            "total_edges": sum(len(edges) for edges in self._outgoing.values()),
            "start_nodes": self.start_nodes,
            "execution_order": self.execution_order,
        }


__all__ = [
    "CompiledGraph",
    "NodeRunResult",
    "NodeStatus",
]
