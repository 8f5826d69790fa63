"""
Workflow Engine - Compile and execute workflow graphs.

This package provides:
- WorkflowDefinition and friends: the workflow document model
- CompiledGraph: validated DAG with a deterministic order
- WorkflowExecutor: sync executor over a node registry
- WorkflowInstance: single-flight handle around one workflow
"""

from ..errors import (
    CyclicWorkflowError,
    InvalidWorkflowError,
    NoStartNodeError,
    NodeConstructionError,
    UnknownNodeTypeError,
    UnreachableNodeError,
    WorkflowAlreadyRunningError,
    WorkflowError,
)
from .executor import (
    ExecutionResultMap,
    RunState,
    WorkflowExecutor,
    WorkflowInstance,
    WorkflowResult,
    WorkflowRun,
)
from .graph import CompiledGraph, NodeRunResult, NodeStatus
from .models import (
    WorkflowDefinition,
    WorkflowEdge,
    WorkflowNode,
    WorkflowSettings,
    parse_workflow,
)

__all__ = [
    "CompiledGraph",
    "CyclicWorkflowError",
    "ExecutionResultMap",
    "InvalidWorkflowError",
    "NoStartNodeError",
    "NodeConstructionError",
    "NodeRunResult",
    "NodeStatus",
    "RunState",
    "UnknownNodeTypeError",
    "UnreachableNodeError",
    "WorkflowAlreadyRunningError",
    "WorkflowDefinition",
    "WorkflowEdge",
    "WorkflowError",
    "WorkflowExecutor",
    "WorkflowInstance",
    "WorkflowNode",
    "WorkflowResult",
    "WorkflowRun",
    "WorkflowSettings",
    "parse_workflow",
]
