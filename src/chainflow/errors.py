"""
Workflow Errors - Fatal, run-aborting error tier.

Anything raised from here stops the run, is reported once to the
notification sink and propagates to the caller. Item-scoped failures
live in chainflow.node_sdk and never reach this tier.
"""

from __future__ import annotations

from typing import Iterable, List, Optional


class WorkflowError(Exception):
    """Base class for fatal workflow execution errors."""

    def __init__(self, message: str, node_id: Optional[str] = None) -> None:
        self.message = message
        self.node_id = node_id
        super().__init__(message)


class InvalidWorkflowError(WorkflowError):
    """Workflow document is malformed (unknown edge endpoint, duplicate ids)."""


class CyclicWorkflowError(WorkflowError):
    """Edges form a cycle; a workflow must be a DAG."""

    def __init__(self, nodes: Iterable[str]) -> None:
        self.nodes: List[str] = list(nodes)
        super().__init__(f"Workflow has cycles involving: {', '.join(self.nodes)}")


class NoStartNodeError(WorkflowError):
    """Every node has an inbound edge, so nothing can run first."""

    def __init__(self) -> None:
        super().__init__("Workflow has no start node (every node has an inbound edge)")


class UnknownNodeTypeError(WorkflowError):
    """No factory is registered for a node type."""

    def __init__(self, node_type: str, node_id: Optional[str] = None) -> None:
        self.node_type = node_type
        where = f" (node '{node_id}')" if node_id else ""
        super().__init__(f"Unknown node type: {node_type}{where}", node_id)


class NodeConstructionError(WorkflowError):
    """A registered factory raised while building a node instance."""

    def __init__(
        self,
        node_type: str,
        cause: BaseException,
        node_id: Optional[str] = None,
    ) -> None:
        self.node_type = node_type
        self.cause = cause
        super().__init__(f"Failed to construct node type '{node_type}': {cause}", node_id)


class UnreachableNodeError(WorkflowError):
    """Ready queue drained while nodes were still waiting on predecessors."""

    def __init__(self, nodes: Iterable[str]) -> None:
        self.nodes: List[str] = list(nodes)
        super().__init__(f"Nodes never became ready: {', '.join(self.nodes)}")


class WorkflowAlreadyRunningError(WorkflowError):
    """A bound workflow instance is already executing."""

    def __init__(self, execution_id: Optional[str] = None) -> None:
        self.execution_id = execution_id
        super().__init__("Workflow execution already running")


__all__ = [
    "WorkflowError",
    "InvalidWorkflowError",
    "CyclicWorkflowError",
    "NoStartNodeError",
    "UnknownNodeTypeError",
    "NodeConstructionError",
    "UnreachableNodeError",
    "WorkflowAlreadyRunningError",
]
