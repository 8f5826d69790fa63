"""
Telegram notifier - Posts workflow lifecycle messages to a chat.

Uses the Bot API ``sendMessage`` method over requests. Sends are
serialized with a lock so one notifier can be shared by concurrent
runs. Transport failures are logged and swallowed.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Any, Dict, Optional

import requests

from chainflow.node_sdk.items import is_error_item


logger = logging.getLogger(__name__)


NODE_TYPE_EMOJI = {
    "pythPriceFeed": "📊",
    "jupiterSwap": "🔄",
    "kamino": "🏦",
    "transfer": "💸",
    "getBalance": "💰",
    "x402Client": "💳",
}


class TelegramNotifier:
    """
    Notification sink backed by a Telegram bot.

    Usage:
        notifier = TelegramNotifier(bot_token="123:abc", chat_id="42")
        executor = WorkflowExecutor(registry, notifier=notifier)
    """

    def __init__(
        self,
        bot_token: Optional[str],
        chat_id: Optional[str],
        api_url: str = "https://api.telegram.org",
        enabled: bool = True,
        timeout: float = 10,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._bot_token = bot_token
        self.chat_id = chat_id
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()
        self._lock = threading.Lock()
        self._enabled = bool(enabled and bot_token and chat_id)

        if self._enabled:
            logger.info("Telegram notifier initialized")
        else:
            logger.info("Telegram notifications disabled")

    @property
    def is_enabled(self) -> bool:
        return self._enabled

    # ==== Sink methods ====

    def on_workflow_start(self, workflow_name=None, execution_id=None) -> None:
        lines = ["🚀 *Workflow Started*", ""]
        lines.append(f"Name: {workflow_name or 'Unnamed Workflow'}")
        if execution_id:
            lines.append(f"Execution ID: `{execution_id}`")
        lines.append(f"Time: {_now()}")
        self.send_message("\n".join(lines))

    def on_node_result(self, node_name, node_type, result, success, notify=True) -> None:
        if not notify:
            return
        title = "✅ *Node Completed*" if success else "⚠️ *Node Completed With Errors*"
        message = f"{title}\n\nNode: {node_name}\n"
        message += f"Type: {NODE_TYPE_EMOJI.get(node_type, '⚙️')} {node_type}\n"
        message += format_node_summary(node_type, _first_json(result))
        self.send_message(message.rstrip())

    def on_workflow_complete(self, node_count, duration_ms=None) -> None:
        lines = ["✅ *Workflow Completed*", ""]
        lines.append(f"Nodes: {node_count}")
        if duration_ms is not None:
            lines.append(f"Duration: {duration_ms / 1000:.2f}s")
        lines.append(f"Completed: {_now()}")
        self.send_message("\n".join(lines))

    def on_workflow_error(self, node_name, error) -> None:
        lines = ["❌ *Workflow Failed*", ""]
        if node_name:
            lines.append(f"Node: {node_name}")
        lines.append(f"Failed: {_now()}")
        lines.append("")
        lines.append(f"Error:\n```\n{error}\n```")
        self.send_message("\n".join(lines))

    # ==== Transport ====

    def send_message(self, text: str) -> bool:
        """Send a Markdown message to the configured chat."""
        if not self._enabled:
            return False

        payload = {"chat_id": self.chat_id, "text": text, "parse_mode": "Markdown"}
        url = f"{self.api_url}/bot{self._bot_token}/sendMessage"

        with self._lock:
            try:
                response = self._session.post(url, json=payload, timeout=self.timeout)
                response.raise_for_status()
            except requests.RequestException as e:
                logger.error("Failed to send Telegram notification: %s", e)
                return False

        return True


def format_node_summary(node_type: str, result: Dict[str, Any]) -> str:
    """Type-specific summary lines for a node's first result item."""
    if not result:
        return ""
    if result.get("success") is False and result.get("error"):
        return f"\nError: {result['error']}"

    if node_type == "pythPriceFeed":
        triggered = "✅ Yes" if result.get("triggered") else "❌ No"
        return f"\nPrice: ${result.get('price')}\nTriggered: {triggered}"
    if node_type == "jupiterSwap":
        return (
            f"\nSwap: {result.get('inputAmount')} {result.get('inputToken')} → "
            f"{result.get('outputAmount')} {result.get('outputToken')}\n"
            f"TX: `{result.get('transactionSignature')}`"
        )
    if node_type == "kamino":
        operation = "Deposit" if result.get("operation") == "deposit" else "Withdraw"
        return (
            f"\nOperation: {operation}\nAmount: {result.get('amount')}\n"
            f"TX: `{result.get('transactionSignature')}`"
        )
    if node_type == "transfer":
        return (
            f"\nAmount: {result.get('amount')} {result.get('token')}\n"
            f"To: {result.get('recipient')}\nTX: `{result.get('transactionSignature')}`"
        )
    if node_type == "x402Client":
        return f"\nAPI: {result.get('apiUrl')}\nPaid: {'Yes' if result.get('paid') else 'No'}"
    return ""


def _first_json(result: Any) -> Dict[str, Any]:
    """First error item's json if any failed, else the first item's json."""
    if not isinstance(result, list):
        return {}
    ports = [port for port in result if isinstance(port, list)]
    for port in ports:
        for item in port:
            if is_error_item(item):
                return item.get("json", {})
    for port in ports:
        if port and isinstance(port[0], dict):
            return port[0].get("json", {})
    return {}


def _now() -> str:
    return datetime.now().strftime("%Y-%m-%d %H:%M:%S")


__all__ = [
    "TelegramNotifier",
    "format_node_summary",
]
