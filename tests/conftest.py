"""Pytest configuration and fixtures."""
import json
import logging
import os
import threading
from typing import Any, Dict, Optional

import pytest
import requests
from requests.structures import CaseInsensitiveDict

# Set test environment variables
os.environ["CHAINFLOW_ENV"] = "test"
os.environ["CHAINFLOW_LOG_FORMAT"] = "text"
os.environ["CHAINFLOW_TELEGRAM_NOTIFY_ENABLED"] = "false"

from chainflow.config import reset_settings  # noqa: E402
from chainflow.node_registry import NodeRegistry  # noqa: E402
from chainflow.node_sdk import BaseNode, Collaborators, NodeOperationError  # noqa: E402
from chainflow.nodepacks.core import NoOpNode, ScaleNode, SetNode  # noqa: E402


# ==============================================================================
# Test nodes
# ==============================================================================

class EmitNode(BaseNode):
    """Emits the ``items`` parameter as output items, once per input item."""

    type = "emit"
    description = {"displayName": "Emit", "name": "emit", "inputs": ["main"], "outputs": ["main"]}
    properties = {
        "parameters": [
            {"displayName": "Items", "name": "items", "type": "json", "default": []},
        ],
    }

    def execute_item(self, context, item_index):
        return [{"json": value} for value in context.get_node_parameter("items", item_index)]


class RecordNode(BaseNode):
    """Appends its node id to the ``trace`` collaborator and passes items through."""

    type = "record"
    description = {"displayName": "Record", "name": "record", "inputs": ["main"], "outputs": ["main"]}
    properties = {"parameters": []}

    def prepare(self, context):
        context.get_collaborator("trace").append(context.node_id)

    def execute_item(self, context, item_index):
        return context.get_input_data()[item_index]


class FailOnNode(BaseNode):
    """Fails the item at index ``index``; passes the others through."""

    type = "failOn"
    description = {"displayName": "Fail On", "name": "failOn", "inputs": ["main"], "outputs": ["main"]}
    properties = {
        "parameters": [
            {"displayName": "Index", "name": "index", "type": "number", "required": True},
        ],
    }

    def execute_item(self, context, item_index):
        if item_index == context.get_node_parameter("index", item_index):
            raise NodeOperationError(f"item {item_index} rejected")
        return context.get_input_data()[item_index]


class BrokenPrepareNode(BaseNode):
    """Raises before any item is processed."""

    type = "brokenPrepare"
    description = {"displayName": "Broken", "name": "brokenPrepare", "inputs": ["main"], "outputs": ["main"]}
    properties = {"parameters": []}

    def prepare(self, context):
        raise RuntimeError("setup failed")

    def execute_item(self, context, item_index):
        return context.get_input_data()[item_index]


class CancelAtNode(BaseNode):
    """Sets the ``cancel`` collaborator event while processing item ``at``."""

    type = "cancelAt"
    description = {"displayName": "Cancel At", "name": "cancelAt", "inputs": ["main"], "outputs": ["main"]}
    properties = {
        "parameters": [
            {"displayName": "At", "name": "at", "type": "number", "default": 0},
        ],
    }

    def execute_item(self, context, item_index):
        if item_index == context.get_node_parameter("at", item_index):
            context.get_collaborator("cancel").set()
        return context.get_input_data()[item_index]


class BlockNode(BaseNode):
    """Signals ``entered`` then waits for ``release`` (both collaborator events)."""

    type = "block"
    description = {"displayName": "Block", "name": "block", "inputs": ["main"], "outputs": ["main"]}
    properties = {"parameters": []}

    def execute_item(self, context, item_index):
        context.get_collaborator("entered").set()
        context.get_collaborator("release").wait(timeout=5)
        return context.get_input_data()[item_index]


class RecordingNotifier:
    """Notification sink that keeps every event."""

    def __init__(self):
        self.events = []
        self._lock = threading.Lock()

    def _add(self, *event):
        with self._lock:
            self.events.append(event)

    def on_workflow_start(self, workflow_name=None, execution_id=None):
        self._add("start", workflow_name, execution_id)

    def on_node_result(self, node_name, node_type, result, success, notify=True):
        self._add("node", node_name, node_type, result, success, notify)

    def on_workflow_complete(self, node_count, duration_ms=None):
        self._add("complete", node_count, duration_ms)

    def on_workflow_error(self, node_name, error):
        self._add("error", node_name, error)

    def named(self, kind):
        return [event for event in self.events if event[0] == kind]


def make_response(
    status_code: int,
    body: Any = None,
    headers: Optional[Dict[str, str]] = None,
    url: str = "https://api.example.com/resource",
) -> requests.Response:
    """Build a real requests.Response without touching the network."""
    response = requests.Response()
    response.status_code = status_code
    response.reason = "Payment Required" if status_code == 402 else "OK"
    response.url = url
    response.encoding = "utf-8"
    response.headers = CaseInsensitiveDict(headers or {})
    if body is not None:
        response._content = body.encode() if isinstance(body, str) else json.dumps(body).encode()
    else:
        response._content = b""
    return response


# ==============================================================================
# Fixtures
# ==============================================================================

@pytest.fixture(autouse=True)
def _fresh_settings():
    """Reset cached settings between tests."""
    reset_settings()
    yield
    reset_settings()


@pytest.fixture(autouse=True)
def _restore_root_logger():
    """setup_logging() replaces root handlers; put them back after each test."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def registry():
    """Registry with the test nodes plus a few core nodes."""
    reg = NodeRegistry()
    for node_class in (EmitNode, RecordNode, FailOnNode, BrokenPrepareNode, CancelAtNode, BlockNode):
        reg.register_node(node_class)
    reg.register("set", SetNode)
    reg.register("scale", ScaleNode)
    reg.register("noOp", NoOpNode)
    return reg


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def trace():
    return []


@pytest.fixture
def collaborators(trace):
    return Collaborators(
        trace=trace,
        cancel=threading.Event(),
        entered=threading.Event(),
        release=threading.Event(),
    )
