"""
X402 Client Node - Call x402-protected APIs with automatic payment.

Needs the ``http`` and ``signer`` collaborators. Amount, recipient and
token come from the server's 402 response; the node only states what
it is willing to pay with.
"""

from __future__ import annotations

import json
from typing import Any, Optional

from chainflow.config import get_settings
from chainflow.node_sdk.basenode import BaseNode, ItemResult
from chainflow.node_sdk.collaborators import HTTP_CLIENT, SIGNER
from chainflow.node_sdk.context import NodeExecutionContext
from chainflow.node_sdk.errors import NodeOperationError

from .client import X402Client
from .models import PaymentExpectation


class X402Node(BaseNode):
    """
    X402 Client - fetch a paid resource, settling a 402 once.

    Output item:
        {"success": true, "operation": "x402_fetch", "apiUrl", "network",
         "paid", "payment", "data"}
    """

    type = "x402Client"
    version = 1

    description = {
        "displayName": "X402 Client",
        "name": "x402Client",
        "icon": "fa:credit-card",
        "group": ["payment"],
        "description": "Call x402-protected APIs with automatic payment handling",
        "version": 1,
        "inputs": ["main"],
        "outputs": ["main"],
        "telegramNotify": True,
    }

    properties = {
        "parameters": [
            {
                "displayName": "API URL",
                "name": "apiUrl",
                "type": "string",
                "default": "",
                "required": True,
                "placeholder": "http://localhost:3000/api/x402/premium",
                "description": "URL of the x402-protected API endpoint",
            },
            {
                "displayName": "Method",
                "name": "method",
                "type": "options",
                "default": "GET",
                "options": [
                    {"name": "GET", "value": "GET"},
                    {"name": "POST", "value": "POST"},
                ],
            },
            {
                "displayName": "Request Body",
                "name": "requestBody",
                "type": "json",
                "default": {},
                "displayOptions": {"show": {"method": ["POST"]}},
            },
            {
                "displayName": "Scheme",
                "name": "scheme",
                "type": "string",
                "description": "Accepted payment scheme (defaults to settings)",
            },
            {
                "displayName": "Network",
                "name": "network",
                "type": "string",
                "description": "Accepted settlement network (defaults to settings)",
            },
            {
                "displayName": "Asset",
                "name": "asset",
                "type": "string",
                "description": "Accepted payment asset (defaults to settings)",
            },
            {
                "displayName": "Max Amount",
                "name": "maxAmount",
                "type": "number",
                "description": "Refuse to pay more than this",
            },
        ],
        "credentials": [],
    }

    def prepare(self, context: NodeExecutionContext) -> None:
        self._settings = get_settings()

    def execute_item(self, context: NodeExecutionContext, item_index: int) -> ItemResult:
        settings = self._settings
        api_url = context.get_node_parameter("apiUrl", item_index)
        method = context.get_node_parameter("method", item_index)
        network = context.get_node_parameter("network", item_index, settings.x402_default_network)

        expectation = PaymentExpectation(
            scheme=context.get_node_parameter("scheme", item_index, settings.x402_default_scheme),
            network=network,
            asset=context.get_node_parameter("asset", item_index, settings.x402_default_asset),
            max_amount=context.get_node_parameter("maxAmount", item_index, settings.x402_max_amount),
        )

        body: Optional[Any] = None
        if method == "POST":
            body = context.get_node_parameter("requestBody", item_index)
            if isinstance(body, str):
                try:
                    body = json.loads(body) if body else None
                except json.JSONDecodeError as e:
                    raise NodeOperationError(f"requestBody is not valid JSON: {e}") from e

        client = X402Client(
            context.get_collaborator(HTTP_CLIENT),
            context.get_collaborator(SIGNER),
            expectation,
        )

        self.logger.info(f"Calling paid API {api_url} on {network}")
        result = client.fetch(method, api_url, json=body)

        return {
            "json": {
                "success": True,
                "operation": "x402_fetch",
                "apiUrl": api_url,
                "network": network,
                "paid": result.paid,
                "payment": result.payment_summary(),
                "data": result.data,
            },
        }


__all__ = [
    "X402Node",
]
