"""
Workflow Executor - Sync DAG execution engine.

Drives a compiled workflow graph node by node:

    pending -> resolving -> running_node -> resolving -> ... -> completed | failed

Ready nodes are taken in declared node order, a node never starts
before all of its predecessors have finished, and each node's items
are processed in ascending index order. Item failures become
error-shaped items; only the fatal errors in chainflow.errors abort a
run.
"""

from __future__ import annotations

import heapq
import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from ..config import Settings, get_settings
from ..errors import (
    InvalidWorkflowError,
    UnknownNodeTypeError,
    UnreachableNodeError,
    WorkflowAlreadyRunningError,
    WorkflowError,
)
from ..node_registry import NodeRegistry
from ..node_sdk.collaborators import HTTP_CLIENT, NOTIFIER, Collaborators
from ..node_sdk.context import NodeExecutionContext
from ..node_sdk.errors import NodeOperationError
from ..node_sdk.http import HttpClient
from ..node_sdk.items import NodeExecutionData, error_item, is_error_item
from ..node_sdk.parameters import build_parameter_schema
from ..notifications.sink import NotificationSink, NullNotifier
from ..observability import with_run_context
from .graph import CompiledGraph, NodeRunResult, NodeStatus
from .models import WorkflowDefinition, WorkflowNode, parse_workflow


logger = logging.getLogger(__name__)

ExecutionResultMap = Dict[str, List[List[NodeExecutionData]]]


class RunState(str, Enum):
    """State of one workflow run."""
    PENDING = "pending"
    RESOLVING = "resolving"
    RUNNING_NODE = "running_node"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class WorkflowResult:
    """
    Result of a workflow run that passed validation.

    ``data`` is the execution result map: node id -> output ports.
    Item failures are inside it as error-shaped items.
    """
    workflow_id: str
    workflow_name: str
    execution_id: str
    status: RunState
    data: ExecutionResultMap = field(default_factory=dict)
    node_results: Dict[str, NodeRunResult] = field(default_factory=dict)
    execution_order: List[str] = field(default_factory=list)
    execution_logs: List[Dict[str, Any]] = field(default_factory=list)
    terminal_nodes: List[str] = field(default_factory=list)
    duration_ms: float = 0

    @property
    def is_success(self) -> bool:
        return self.status == RunState.COMPLETED

    @property
    def is_cancelled(self) -> bool:
        return self.status == RunState.CANCELLED

    @property
    def has_item_errors(self) -> bool:
        return any(result.error_count for result in self.node_results.values())

    @property
    def output_data(self) -> List[NodeExecutionData]:
        """Items produced by terminal nodes (no outgoing edges), all ports flattened."""
        output: List[NodeExecutionData] = []
        for node_id in self.terminal_nodes:
            for port in self.data.get(node_id, []):
                output.extend(port)
        return output

    def get_output(self, node_id: str, port: int = 0) -> List[NodeExecutionData]:
        ports = self.data.get(node_id, [])
        return ports[port] if port < len(ports) else []


class WorkflowRun:
    """
    One execution of one workflow definition.

    Owns the result map and ready queue for the run; node code only
    ever sees read-only views of them.
    """

    def __init__(
        self,
        executor: "WorkflowExecutor",
        workflow: WorkflowDefinition,
        execution_id: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> None:
        self._executor = executor
        self.workflow = workflow
        self.execution_id = execution_id or str(uuid.uuid4())
        self.cancel_event = cancel_event or threading.Event()
        self.state = RunState.PENDING

        self._results: ExecutionResultMap = {}
        self._node_results: Dict[str, NodeRunResult] = {}
        self._order: List[str] = []
        self._logs: List[Dict[str, Any]] = []
        self._log_extra = with_run_context(
            workflow_id=workflow.id, execution_id=self.execution_id,
        )

    def cancel(self) -> None:
        self.cancel_event.set()

    def _set_state(self, state: RunState) -> None:
        logger.debug(f"Run {self.execution_id}: {self.state.value} -> {state.value}", extra=self._log_extra)
        self.state = state

    def _notify(self, method: str, *args: Any) -> None:
        """Call the sink; a failing sink never aborts the run."""
        try:
            getattr(self._executor.notifier, method)(*args)
        except Exception:
            logger.exception(f"Notification sink failed in {method}", extra=self._log_extra)

    # ==== Run ====

    def run(self, input_data: Optional[List[NodeExecutionData]] = None) -> WorkflowResult:
        """
        Execute the workflow.

        Args:
            input_data: Items handed to every start node (default: one empty item)

        Raises:
            WorkflowError: Fatal, run-aborting errors
        """
        if self.state != RunState.PENDING:
            raise WorkflowAlreadyRunningError(self.execution_id)

        start_time = time.perf_counter()
        logger.info(
            f"Starting workflow: {self.workflow.name} ({len(self.workflow.nodes)} nodes)",
            extra=self._log_extra,
        )
        self._notify("on_workflow_start", self.workflow.name, self.execution_id)

        graph: Optional[CompiledGraph] = None
        try:
            self._set_state(RunState.RESOLVING)
            _check_input(input_data)
            graph = CompiledGraph(self.workflow)
            self._check_node_types(graph)
            self._drive(graph, input_data)
        except WorkflowError as e:
            self._set_state(RunState.FAILED)
            node_name = self._node_name(graph, e.node_id)
            logger.error(f"Workflow {self.workflow.name} failed: {e}", extra=self._log_extra)
            self._notify("on_workflow_error", node_name, e)
            raise
        except Exception as e:
            self._set_state(RunState.FAILED)
            logger.exception(f"Workflow {self.workflow.name} crashed: {e}", extra=self._log_extra)
            self._notify("on_workflow_error", None, e)
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000

        if self.cancel_event.is_set():
            self._set_state(RunState.CANCELLED)
            logger.info(
                f"Workflow cancelled after {len(self._results)} nodes", extra=self._log_extra,
            )
            self._notify("on_workflow_error", None, "cancelled")
        else:
            self._set_state(RunState.COMPLETED)
            logger.info(f"Workflow completed in {duration_ms:.0f}ms", extra=self._log_extra)
            self._notify("on_workflow_complete", len(self._results), duration_ms)

        return WorkflowResult(
            workflow_id=graph.workflow_id,
            workflow_name=graph.workflow_name,
            execution_id=self.execution_id,
            status=self.state,
            data=dict(self._results),
            node_results=dict(self._node_results),
            execution_order=list(self._order),
            execution_logs=list(self._logs),
            terminal_nodes=[n for n in graph.node_ids if graph.is_terminal_node(n)],
            duration_ms=duration_ms,
        )

    def _check_node_types(self, graph: CompiledGraph) -> None:
        """Fail before any node runs if a type is not registered."""
        registry = self._executor.registry
        for node_id in graph.node_ids:
            node = graph.get_node(node_id)
            if not registry.has(node.type):
                raise UnknownNodeTypeError(node.type, node_id)

    def _drive(
        self,
        graph: CompiledGraph,
        input_data: Optional[List[NodeExecutionData]],
    ) -> None:
        """Ready-queue loop over the graph."""
        in_degree = graph.in_degrees()
        ready: List[Tuple[int, str]] = [
            (graph.declared_index(node_id), node_id) for node_id in graph.start_nodes
        ]
        heapq.heapify(ready)

        while ready:
            if self.cancel_event.is_set():
                logger.info("Cancellation requested; not starting further nodes", extra=self._log_extra)
                return

            _, node_id = heapq.heappop(ready)

            self._set_state(RunState.RUNNING_NODE)
            output = self._run_node(graph, node_id, input_data)
            self._set_state(RunState.RESOLVING)
            if output is None:
                return

            self._results[node_id] = output
            for edge in graph.outgoing_edges(node_id):
                in_degree[edge.destination] -= 1
                if in_degree[edge.destination] == 0:
                    heapq.heappush(ready, (graph.declared_index(edge.destination), edge.destination))

        unreached = [node_id for node_id in graph.node_ids if node_id not in self._results]
        if unreached:
            raise UnreachableNodeError(unreached)

    def _run_node(
        self,
        graph: CompiledGraph,
        node_id: str,
        start_input: Optional[List[NodeExecutionData]],
    ) -> Optional[List[List[NodeExecutionData]]]:
        """
        Run one node over all of its input items.

        Returns the node's output ports, or None when the run was
        cancelled while the node was in flight.
        """
        workflow_node = graph.get_node(node_id)
        extra = with_run_context(
            workflow_id=self.workflow.id,
            execution_id=self.execution_id,
            node_id=node_id,
            node_type=workflow_node.type,
        )
        run_result = NodeRunResult(
            node_id=node_id,
            node_name=workflow_node.name,
            node_type=workflow_node.type,
            status=NodeStatus.RUNNING,
            started_at=datetime.now(timezone.utc).isoformat(),
        )
        self._node_results[node_id] = run_result
        self._order.append(node_id)

        # Construction failures are fatal
        node = self._executor.registry.resolve(workflow_node.type, node_id)

        if graph.is_start_node(node_id):
            inputs = [list(start_input) if start_input is not None else [{"json": {}}]]
        else:
            inputs = graph.get_input_data(node_id, self._results)

        context = self._build_context(workflow_node, node, inputs)
        items = context.get_input_data(0)
        run_result.item_count = len(items)

        logger.debug(f"Executing node: {workflow_node.name} ({workflow_node.type})", extra=extra)
        start_time = time.perf_counter()

        try:
            output = _normalize_output(node.execute(context), _output_count(node))
        except Exception as e:
            # Whole-node failure (setup, bad return value): fail every item
            logger.warning(f"Node {workflow_node.name} failed: {e}", extra=extra)
            run_result.error = str(e)
            output = [[
                error_item(e, index, context.resolved_parameters(index))
                for index in range(max(len(items), 1))
            ]]
            run_result.error_count = len(output[0])
            context.items_processed = None
        else:
            if context.items_processed is not None:
                run_result.error_count = context.item_errors
            else:
                run_result.error_count = _own_error_count(output, inputs)

        run_result.duration_ms = (time.perf_counter() - start_time) * 1000
        run_result.output_data = output

        # Only a node whose item loop stopped short is abandoned
        if context.stopped_early:
            run_result.status = NodeStatus.CANCELLED
            self._log_step(run_result, items)
            logger.info(f"Node {workflow_node.name} abandoned by cancellation", extra=extra)
            return None

        success = run_result.error_count == 0
        run_result.status = NodeStatus.SUCCESS if success else NodeStatus.ERROR
        if not success and run_result.error is None:
            run_result.error = _first_error_message(output)
        self._log_step(run_result, items)

        logger.debug(
            f"Node {workflow_node.name} completed: {run_result.status.value} "
            f"({run_result.error_count}/{len(items)} item errors)",
            extra=extra,
        )
        self._notify(
            "on_node_result", workflow_node.name, workflow_node.type, output, success,
            _wants_notification(workflow_node, node),
        )
        return output

    def _build_context(
        self,
        workflow_node: WorkflowNode,
        node: Any,
        inputs: List[List[NodeExecutionData]],
    ) -> NodeExecutionContext:
        if hasattr(node, "get_parameter_schema"):
            schema = node.get_parameter_schema()
        else:
            schema = build_parameter_schema(getattr(node, "properties", {}).get("parameters", []))

        return NodeExecutionContext(
            parameters=workflow_node.parameters,
            input_data=inputs,
            schema=schema,
            collaborators=self._executor.collaborators,
            node_outputs=self._results,
            workflow_id=self.workflow.id,
            execution_id=self.execution_id,
            node_id=workflow_node.id,
            node_name=workflow_node.name,
            node_type=workflow_node.type,
            cancel_event=self.cancel_event,
        )

    def _log_step(self, run_result: NodeRunResult, items: List[NodeExecutionData]) -> None:
        first_output = next((port[0] for port in run_result.output_data if port), {})
        step: Dict[str, Any] = {
            "nodeId": run_result.node_id,
            "nodeName": run_result.node_name,
            "nodeType": run_result.node_type,
            "startedAt": run_result.started_at,
            "status": run_result.status.value,
            "durationMs": round(run_result.duration_ms, 3),
            "itemCount": run_result.item_count,
            "errorCount": run_result.error_count,
            "input": items[0].get("json", {}) if items else {},
            "output": first_output.get("json", {}),
        }
        if run_result.error:
            step["error"] = run_result.error
        self._logs.append(step)

    @staticmethod
    def _node_name(graph: Optional[CompiledGraph], node_id: Optional[str]) -> Optional[str]:
        if graph is None or node_id is None:
            return node_id
        node = graph.get_node(node_id)
        return node.name if node else node_id


class WorkflowExecutor:
    """
    Sync workflow executor.

    Executes a workflow DAG, respecting:
    - Node dependencies (topological order, declared-order tie break)
    - Per-item failure isolation
    - Run-level cancellation

    Usage:
        executor = WorkflowExecutor(registry=default_registry(), notifier=LoggingNotifier())
        result = executor.execute(workflow_definition)
    """

    def __init__(
        self,
        registry: Optional[NodeRegistry] = None,
        notifier: Optional[NotificationSink] = None,
        collaborators: Optional[Collaborators] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Initialize executor.

        Args:
            registry: Node type registry (register every type before executing)
            notifier: Lifecycle notification sink
            collaborators: Dependencies handed to nodes; an HTTP client is
                added when none is given
            settings: Application settings
        """
        self.settings = settings or get_settings()
        self.registry = registry if registry is not None else NodeRegistry()
        self.notifier = notifier or NullNotifier()

        collaborators = collaborators if collaborators is not None else Collaborators()
        defaults: Dict[str, Any] = {NOTIFIER: self.notifier}
        if HTTP_CLIENT not in collaborators:
            defaults[HTTP_CLIENT] = HttpClient(timeout=self.settings.http_timeout_s)
        self.collaborators = Collaborators(**defaults).copy(
            **{name: collaborators.get(name) for name in collaborators}
        )

    def execute(
        self,
        workflow: WorkflowDefinition | Dict[str, Any],
        input_data: Optional[List[NodeExecutionData]] = None,
        execution_id: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> WorkflowResult:
        """
        Execute a workflow.

        Args:
            workflow: Workflow definition or JSON dict
            input_data: Optional input items for start nodes
            execution_id: Id for logs and notifications (generated if omitted)
            cancel_event: Set to stop the run at the next item boundary

        Returns:
            WorkflowResult with the full result map

        Raises:
            WorkflowError: Invalid, cyclic or unresolvable workflow
        """
        if isinstance(workflow, dict):
            workflow = parse_workflow(workflow)

        run = WorkflowRun(self, workflow, execution_id=execution_id, cancel_event=cancel_event)
        return run.run(input_data)

    def create_instance(
        self,
        workflow: WorkflowDefinition | Dict[str, Any],
        instance_id: Optional[str] = None,
    ) -> "WorkflowInstance":
        """Bind a workflow to this executor as a single-flight instance."""
        if isinstance(workflow, dict):
            workflow = parse_workflow(workflow)
        return WorkflowInstance(self, workflow, instance_id=instance_id)


class WorkflowInstance:
    """
    A workflow bound to an executor, runnable one run at a time.

    execute() refuses to start while a previous call is in flight;
    stop() cancels the in-flight run. Every execute() gets a fresh
    execution id; ``instance_id`` stays fixed for the handle.
    """

    def __init__(
        self,
        executor: WorkflowExecutor,
        workflow: WorkflowDefinition,
        instance_id: Optional[str] = None,
    ) -> None:
        self._executor = executor
        self.workflow = workflow
        self.instance_id = instance_id or str(uuid.uuid4())
        self._lock = threading.Lock()
        self._run: Optional[WorkflowRun] = None
        self._running = False
        self.last_result: Optional[WorkflowResult] = None

    @property
    def state(self) -> RunState:
        return self._run.state if self._run else RunState.PENDING

    @property
    def execution_id(self) -> Optional[str]:
        """Id of the current or most recent run."""
        return self._run.execution_id if self._run else None

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def execution_logs(self) -> List[Dict[str, Any]]:
        return self.last_result.execution_logs if self.last_result else []

    def execute(self, input_data: Optional[List[NodeExecutionData]] = None) -> WorkflowResult:
        with self._lock:
            if self._running:
                raise WorkflowAlreadyRunningError(self.execution_id)
            self._running = True
            self._run = WorkflowRun(self._executor, self.workflow)

        logger.debug(f"Instance {self.instance_id} starting run {self._run.execution_id}")
        try:
            self.last_result = self._run.run(input_data)
            return self.last_result
        finally:
            with self._lock:
                self._running = False

    def stop(self) -> None:
        """Cancel the in-flight run, if any."""
        logger.info(f"Stopping workflow instance {self.instance_id}")
        if self._run is not None:
            self._run.cancel()


def _check_input(input_data: Optional[List[NodeExecutionData]]) -> None:
    """Start-node input must be a list of ``{"json": {...}}`` items."""
    if input_data is None:
        return
    if not isinstance(input_data, list):
        raise InvalidWorkflowError("Input data must be a list of items")
    for index, item in enumerate(input_data):
        if not isinstance(item, dict) or not isinstance(item.get("json"), dict):
            raise InvalidWorkflowError(
                f"Input item {index} must be an object with a 'json' object, got {item!r}"
            )


def _wants_notification(workflow_node: WorkflowNode, node: Any) -> bool:
    """Per-node chat notification opt-in; the workflow node overrides the type."""
    if workflow_node.telegram_notify is not None:
        return workflow_node.telegram_notify
    return bool(getattr(node, "description", {}).get("telegramNotify", False))


def _own_error_count(
    output: List[List[NodeExecutionData]],
    inputs: List[List[NodeExecutionData]],
) -> int:
    """Error items in ``output`` that were not passed through from ``inputs``."""
    inherited = [item for port in inputs for item in port if is_error_item(item)]
    count = 0
    for port in output:
        for item in port:
            if not is_error_item(item):
                continue
            if item in inherited:
                inherited.remove(item)
            else:
                count += 1
    return count


def _output_count(node: Any) -> int:
    if hasattr(node, "output_count"):
        return node.output_count()
    outputs = getattr(node, "description", {}).get("outputs", ["main"])
    return max(len(outputs), 1) if isinstance(outputs, list) else 1


def _normalize_output(output: Any, port_count: int) -> List[List[NodeExecutionData]]:
    """Validate a node's return value and pad it to its declared ports."""
    if not isinstance(output, list) or not all(isinstance(port, list) for port in output):
        raise NodeOperationError("Node returned invalid output: expected a list of ports")
    for port in output:
        for item in port:
            if not isinstance(item, dict):
                raise NodeOperationError(f"Node returned an invalid item: {item!r}")
    ports = [list(port) for port in output]
    while len(ports) < port_count:
        ports.append([])
    return ports


def _first_error_message(output: List[List[NodeExecutionData]]) -> Optional[str]:
    for port in output:
        for item in port:
            error = item.get("error") if isinstance(item, dict) else None
            if error:
                return error.get("message")
    return None


__all__ = [
    "WorkflowExecutor",
    "WorkflowInstance",
    "WorkflowResult",
    "WorkflowRun",
    "RunState",
    "ExecutionResultMap",
]
