"""
Workflow Models - JSON structures for workflow definitions.

The canonical document is a node list plus an edge list:

    {
        "id": "wf-1",
        "name": "Swap then deposit",
        "nodes": [{"id": "fetch", "type": "httpRequest", "parameters": {...}}],
        "edges": [{"source": "fetch", "destination": "swap"}]
    }

The n8n-style ``connections`` map is accepted as well and converted to
edges on load.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from ..errors import InvalidWorkflowError


class WorkflowEdge(BaseModel):
    """
    Data dependency from one node's output port to another node's input port.

    Example: {"source": "fetch", "sourceOutput": 0, "destination": "swap", "destinationInput": 0}
    """
    model_config = ConfigDict(extra="allow", populate_by_name=True, frozen=True)

    source: str = Field(..., description="Source node id")
    source_output: int = Field(0, alias="sourceOutput", ge=0, description="Source output port")
    destination: str = Field(..., description="Destination node id")
    destination_input: int = Field(
        0, alias="destinationInput", ge=0, description="Destination input port"
    )


class WorkflowNode(BaseModel):
    """
    A node instance in a workflow.

    ``id`` is unique within the workflow; ``name`` is only for display and
    defaults to the id. Documents that carry only ``name`` (n8n export
    format) use it as the id.
    """
    model_config = ConfigDict(extra="allow", populate_by_name=True, frozen=True)

    id: str = Field(..., description="Node id (unique within workflow)")
    name: str = Field("", description="Display name")
    type: str = Field(..., description="Registered node type, e.g. 'jupiterSwap'")
    type_version: int = Field(1, alias="typeVersion", description="Node type version")
    parameters: Dict[str, Any] = Field(default_factory=dict)
    notes: Optional[str] = Field(None, description="Node notes")
    telegram_notify: Optional[bool] = Field(
        None,
        alias="telegramNotify",
        description="Per-node chat notification opt-in (defaults to the node type's setting)",
    )

    @model_validator(mode="before")
    @classmethod
    def _fill_identity(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = dict(data)
            if not data.get("id") and data.get("name"):
                data["id"] = data["name"]
            if not data.get("name") and data.get("id"):
                data["name"] = data["id"]
        return data


class WorkflowSettings(BaseModel):
    """Workflow-level settings."""
    model_config = ConfigDict(extra="allow", populate_by_name=True, frozen=True)

    timezone: str = Field("UTC")
    execution_timeout: int = Field(-1, alias="executionTimeout", description="-1 = no timeout")


class WorkflowDefinition(BaseModel):
    """
    Complete workflow definition.

    Immutable value object: the engine reads it and never writes to it.
    """
    model_config = ConfigDict(extra="allow", populate_by_name=True, frozen=True)

    # Metadata
    id: Optional[str] = Field(None, description="Workflow ID")
    name: str = Field("Unnamed Workflow", description="Workflow name")

    # Structure
    nodes: List[WorkflowNode] = Field(default_factory=list)
    edges: List[WorkflowEdge] = Field(default_factory=list)

    # Settings
    settings: WorkflowSettings = Field(default_factory=WorkflowSettings)
    tags: List[str] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _convert_connections(cls, data: Any) -> Any:
        """Turn an n8n-style connections map into edges, preserving order."""
        if not isinstance(data, dict) or "connections" not in data:
            return data

        data = dict(data)
        connections = data.pop("connections") or {}
        edges = list(data.get("edges") or [])

        for source, outputs in connections.items():
            for output_type, branches in (outputs or {}).items():
                if output_type != "main":
                    continue
                for output_index, branch in enumerate(branches or []):
                    for conn in branch or []:
                        if "node" not in conn:
                            continue
                        edges.append({
                            "source": source,
                            "sourceOutput": output_index,
                            "destination": conn["node"],
                            "destinationInput": conn.get("index", 0),
                        })

        data["edges"] = edges
        return data

    @model_validator(mode="after")
    def _check_unique_ids(self) -> "WorkflowDefinition":
        seen: set[str] = set()
        for node in self.nodes:
            if node.id in seen:
                raise ValueError(f"Duplicate node id: {node.id}")
            seen.add(node.id)
        return self

    def get_node(self, node_id: str) -> Optional[WorkflowNode]:
        """Get node by id."""
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def node_ids(self) -> List[str]:
        """Node ids in declared order."""
        return [node.id for node in self.nodes]

    def get_start_nodes(self) -> List[WorkflowNode]:
        """
        Get nodes that have no incoming edges (entry points), in declared order.
        """
        targets = {edge.destination for edge in self.edges}
        return [node for node in self.nodes if node.id not in targets]

    def get_incoming_edges(self, node_id: str) -> List[WorkflowEdge]:
        """Edges feeding this node, in declaration order."""
        return [edge for edge in self.edges if edge.destination == node_id]

    def get_outgoing_edges(self, node_id: str) -> List[WorkflowEdge]:
        """Edges leaving this node, in declaration order."""
        return [edge for edge in self.edges if edge.source == node_id]

    def get_downstream_nodes(self, node_id: str) -> List[str]:
        """Ids of nodes connected to this node's outputs."""
        return [edge.destination for edge in self.get_outgoing_edges(node_id)]

    def get_upstream_nodes(self, node_id: str) -> List[str]:
        """Ids of nodes that connect to this node."""
        return [edge.source for edge in self.get_incoming_edges(node_id)]


def parse_workflow(data: Dict[str, Any]) -> WorkflowDefinition:
    """Parse workflow JSON into WorkflowDefinition."""
    try:
        return WorkflowDefinition.model_validate(data)
    except ValidationError as e:
        raise InvalidWorkflowError(f"Invalid workflow definition: {e}") from e


__all__ = [
    "WorkflowDefinition",
    "WorkflowNode",
    "WorkflowEdge",
    "WorkflowSettings",
    "parse_workflow",
]
