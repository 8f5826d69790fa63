"""
Core Nodes - Essential utility node implementations.

These nodes provide basic workflow functionality: triggering, shaping
items and plain HTTP access. All are synchronous and process one item
at a time through the BaseNode item loop.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict

from chainflow.node_sdk.basenode import BaseNode, ItemResult
from chainflow.node_sdk.collaborators import HTTP_CLIENT
from chainflow.node_sdk.context import NodeExecutionContext
from chainflow.node_sdk.errors import NodeOperationError


logger = logging.getLogger(__name__)


class ManualTriggerNode(BaseNode):
    """
    Manual Trigger - Start a workflow manually.

    Passes the run's input items through; with no input the engine hands
    it a single empty item.
    """

    type = "manualTrigger"
    version = 1

    description = {
        "displayName": "Manual Trigger",
        "name": "manualTrigger",
        "icon": "fa:play",
        "group": ["trigger"],
        "description": "Starts the workflow when triggered manually",
        "version": 1,
        "inputs": [],  # No inputs - this is a trigger
        "outputs": ["main"],
        "telegramNotify": False,
    }

    properties = {
        "parameters": [],
        "credentials": [],
    }

    def execute_item(self, context: NodeExecutionContext, item_index: int) -> ItemResult:
        item = context.get_input_data()[item_index]
        return {"json": dict(item.get("json", {}))}


class SetNode(BaseNode):
    """
    Set Node - Set or modify data fields.

    Merges the ``values`` object into each item. Values may contain
    expressions, which are resolved per item.
    """

    type = "set"
    version = 1

    description = {
        "displayName": "Set",
        "name": "set",
        "icon": "fa:pen",
        "group": ["transform"],
        "description": "Sets values on items",
        "version": 1,
        "inputs": ["main"],
        "outputs": ["main"],
        "telegramNotify": False,
    }

    properties = {
        "parameters": [
            {
                "displayName": "Values",
                "name": "values",
                "type": "json",
                "default": {},
                "description": "Fields to set on each item",
            },
            {
                "displayName": "Keep Only Set",
                "name": "keepOnlySet",
                "type": "boolean",
                "default": False,
                "description": "If true, only keep the set values, discard others",
            },
        ],
        "credentials": [],
    }

    def execute_item(self, context: NodeExecutionContext, item_index: int) -> ItemResult:
        item_json = context.get_input_data()[item_index].get("json", {})
        new_data = _as_object(context.get_node_parameter("values", item_index), "values")

        if context.get_node_parameter("keepOnlySet", item_index):
            output = dict(new_data)
        else:
            output = {**item_json, **new_data}

        return {"json": output}


class ScaleNode(BaseNode):
    """Scale Node - Multiply a numeric field by a factor."""

    type = "scale"
    version = 1

    description = {
        "displayName": "Scale",
        "name": "scale",
        "icon": "fa:times",
        "group": ["transform"],
        "description": "Multiplies a numeric field by a factor",
        "version": 1,
        "inputs": ["main"],
        "outputs": ["main"],
        "telegramNotify": False,
    }

    properties = {
        "parameters": [
            {
                "displayName": "Field",
                "name": "field",
                "type": "string",
                "default": "value",
            },
            {
                "displayName": "Factor",
                "name": "factor",
                "type": "number",
                "required": True,
            },
        ],
        "credentials": [],
    }

    def execute_item(self, context: NodeExecutionContext, item_index: int) -> ItemResult:
        item_json = context.get_input_data()[item_index].get("json", {})
        field = context.get_node_parameter("field", item_index)
        factor = context.get_node_parameter("factor", item_index)

        value = item_json.get(field)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise NodeOperationError(
                f"Field '{field}' is not numeric: {value!r}", item_index=item_index,
            )

        return {"json": {**item_json, field: value * factor}}


class NoOpNode(BaseNode):
    """
    No Operation Node - Pass-through.

    Passes input items through unchanged. Useful for workflow
    organization and debugging.
    """

    type = "noOp"
    version = 1

    description = {
        "displayName": "No Operation",
        "name": "noOp",
        "icon": "fa:arrow-right",
        "group": ["organization"],
        "description": "No operation - passes data through",
        "version": 1,
        "inputs": ["main"],
        "outputs": ["main"],
        "telegramNotify": False,
    }

    properties = {
        "parameters": [],
        "credentials": [],
    }

    def execute_item(self, context: NodeExecutionContext, item_index: int) -> ItemResult:
        return context.get_input_data()[item_index]


class HttpRequestNode(BaseNode):
    """
    HTTP Request Node - Make HTTP requests.

    Uses the ``http`` collaborator, so every request is timeout-bounded.
    Non-2xx responses fail the item.
    """

    type = "httpRequest"
    version = 1

    description = {
        "displayName": "HTTP Request",
        "name": "httpRequest",
        "icon": "fa:globe",
        "group": ["input", "output"],
        "description": "Make HTTP requests",
        "version": 1,
        "inputs": ["main"],
        "outputs": ["main"],
        "telegramNotify": True,
    }

    properties = {
        "parameters": [
            {
                "displayName": "Method",
                "name": "method",
                "type": "options",
                "default": "GET",
                "options": [
                    {"name": "GET", "value": "GET"},
                    {"name": "POST", "value": "POST"},
                    {"name": "PUT", "value": "PUT"},
                    {"name": "DELETE", "value": "DELETE"},
                    {"name": "PATCH", "value": "PATCH"},
                ],
            },
            {
                "displayName": "URL",
                "name": "url",
                "type": "string",
                "default": "",
                "required": True,
            },
            {
                "displayName": "Query Parameters",
                "name": "query",
                "type": "json",
                "default": {},
            },
            {
                "displayName": "Headers",
                "name": "headers",
                "type": "json",
                "default": {},
            },
            {
                "displayName": "Body",
                "name": "body",
                "type": "json",
                "default": {},
                "displayOptions": {"show": {"method": ["POST", "PUT", "PATCH"]}},
            },
            {
                "displayName": "Full Response",
                "name": "fullResponse",
                "type": "boolean",
                "default": False,
                "description": "Emit status code and headers alongside the body",
            },
            {
                "displayName": "Timeout",
                "name": "timeout",
                "type": "number",
                "description": "Timeout in seconds (defaults to the client timeout)",
            },
        ],
        "credentials": [],
    }

    def execute_item(self, context: NodeExecutionContext, item_index: int) -> ItemResult:
        http = context.get_collaborator(HTTP_CLIENT)

        method = context.get_node_parameter("method", item_index)
        url = context.get_node_parameter("url", item_index)
        query = _as_object(context.get_node_parameter("query", item_index), "query")
        headers = _as_object(context.get_node_parameter("headers", item_index), "headers")
        timeout = context.get_node_parameter("timeout", item_index, None)

        body = None
        if method in ("POST", "PUT", "PATCH"):
            body = context.get_node_parameter("body", item_index)
            if isinstance(body, str):
                body = _as_object(body, "body")

        response = http.request(
            method,
            url,
            params=query or None,
            json=body,
            headers=headers or None,
            timeout=timeout,
        )
        response.raise_for_status()
        body = response.json_or_text()

        if context.get_node_parameter("fullResponse", item_index):
            return {
                "json": {
                    "statusCode": response.status_code,
                    "headers": response.headers,
                    "body": body,
                },
            }
        if isinstance(body, list):
            return [{"json": entry if isinstance(entry, dict) else {"data": entry}} for entry in body]
        return {"json": body if isinstance(body, dict) else {"data": body}}


def _as_object(value: Any, name: str) -> Dict[str, Any]:
    """Accept a dict or a JSON object string."""
    if value is None or value == "":
        return {}
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError as e:
            raise NodeOperationError(f"Parameter '{name}' is not valid JSON: {e}") from e
    if not isinstance(value, dict):
        raise NodeOperationError(f"Parameter '{name}' must be a JSON object")
    return value


# Export all nodes
__all__ = [
    "ManualTriggerNode",
    "SetNode",
    "ScaleNode",
    "NoOpNode",
    "HttpRequestNode",
]
