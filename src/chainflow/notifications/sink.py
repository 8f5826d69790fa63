"""
Notification Sink - Lifecycle hooks called by the workflow executor.

The executor calls a sink at run start, after each node, on a fatal
error and at run completion. Calls are best-effort: the executor logs
and swallows anything a sink raises. Sinks shared across concurrent
runs serialize their own side effects.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Optional, Protocol, Union, runtime_checkable


logger = logging.getLogger(__name__)


@runtime_checkable
class NotificationSink(Protocol):
    """Protocol for workflow lifecycle notifications."""

    def on_workflow_start(
        self,
        workflow_name: Optional[str] = None,
        execution_id: Optional[str] = None,
    ) -> None:
        ...

    def on_node_result(
        self,
        node_name: str,
        node_type: str,
        result: Any,
        success: bool,
        notify: bool = True,
    ) -> None:
        """``notify`` is the node's chat notification opt-in."""
        ...

    def on_workflow_complete(self, node_count: int, duration_ms: Optional[float] = None) -> None:
        ...

    def on_workflow_error(
        self,
        node_name: Optional[str],
        error: Union[BaseException, str],
    ) -> None:
        ...


class NullNotifier:
    """Sink that drops every event."""

    def on_workflow_start(self, workflow_name=None, execution_id=None) -> None:
        pass

    def on_node_result(self, node_name, node_type, result, success, notify=True) -> None:
        pass

    def on_workflow_complete(self, node_count, duration_ms=None) -> None:
        pass

    def on_workflow_error(self, node_name, error) -> None:
        pass


class LoggingNotifier:
    """Sink that writes events to a logger."""

    def __init__(self, logger_name: str = "chainflow.notifications") -> None:
        self._logger = logging.getLogger(logger_name)

    def on_workflow_start(self, workflow_name=None, execution_id=None) -> None:
        self._logger.info(
            "Workflow started: %s (execution %s)", workflow_name or "unnamed", execution_id,
        )

    def on_node_result(self, node_name, node_type, result, success, notify=True) -> None:
        level = logging.INFO if success else logging.WARNING
        self._logger.log(
            level, "Node %s (%s) finished: %s", node_name, node_type,
            "success" if success else "with item errors",
        )

    def on_workflow_complete(self, node_count, duration_ms=None) -> None:
        self._logger.info("Workflow completed: %d nodes in %.0fms", node_count, duration_ms or 0)

    def on_workflow_error(self, node_name, error) -> None:
        self._logger.error("Workflow failed at %s: %s", node_name or "<workflow>", error)


class CompositeNotifier:
    """
    Fan events out to several sinks.

    A sink that raises does not stop the others from being called.
    """

    def __init__(self, sinks: Iterable[NotificationSink]) -> None:
        self.sinks: List[NotificationSink] = list(sinks)

    def _dispatch(self, method: str, *args: Any) -> None:
        for sink in self.sinks:
            try:
                getattr(sink, method)(*args)
            except Exception:
                logger.exception("Notification sink %s.%s failed", type(sink).__name__, method)

    def on_workflow_start(self, workflow_name=None, execution_id=None) -> None:
        self._dispatch("on_workflow_start", workflow_name, execution_id)

    def on_node_result(self, node_name, node_type, result, success, notify=True) -> None:
        self._dispatch("on_node_result", node_name, node_type, result, success, notify)

    def on_workflow_complete(self, node_count, duration_ms=None) -> None:
        self._dispatch("on_workflow_complete", node_count, duration_ms)

    def on_workflow_error(self, node_name, error) -> None:
        self._dispatch("on_workflow_error", node_name, error)


__all__ = [
    "NotificationSink",
    "NullNotifier",
    "LoggingNotifier",
    "CompositeNotifier",
]
