"""
Node Items - Data structures flowing through workflows.

An item is ``{"json": {...}}`` plus an optional pairedItem
back-reference. A node's output is a list of ports, each a
list of items.

Failed items carry a top-level ``error`` key; that key is the tag that
separates error-shaped items from ordinary results.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, TypedDict

from pydantic import BaseModel, ConfigDict, Field


class NodeExecutionData(TypedDict, total=False):
    """
    Single item of execution data.

    Format: {"json": {...}, "pairedItem": {"item": 0}, "error": {...}}
    """
    json: Dict[str, Any]
    pairedItem: Optional[Dict[str, int]]
    error: Optional[Dict[str, Any]]


class NodeItem(BaseModel):
    """
    Typed view of a single item.

    Example:
        item = NodeItem(json_data={"inputToken": "SOL", "amount": 1.5})
        data = item.to_execution_data()
    """
    model_config = ConfigDict(extra="forbid")

    json_data: Dict[str, Any] = Field(default_factory=dict, description="JSON data")
    paired_item: Optional[int] = Field(None, description="Index of the source item", ge=0)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NodeItem":
        """Create NodeItem from a simple dict."""
        return cls(json_data=data)

    @classmethod
    def from_list(cls, items: List[Dict[str, Any]]) -> List["NodeItem"]:
        """Create list of NodeItems from list of dicts."""
        return [cls.from_dict(item) for item in items]

    @classmethod
    def from_execution_data(cls, data: NodeExecutionData) -> "NodeItem":
        paired = data.get("pairedItem") or {}
        return cls(json_data=dict(data.get("json") or {}), paired_item=paired.get("item"))

    def to_execution_data(self) -> NodeExecutionData:
        data: NodeExecutionData = {"json": dict(self.json_data)}
        if self.paired_item is not None:
            data["pairedItem"] = {"item": self.paired_item}
        return data

    def get(self, key: str, default: Any = None) -> Any:
        """Get value from JSON data."""
        return self.json_data.get(key, default)

    def __getitem__(self, key: str) -> Any:
        return self.json_data[key]

    def __contains__(self, key: str) -> bool:
        return key in self.json_data


def error_item(
    error: BaseException,
    item_index: int,
    parameters: Optional[Dict[str, Any]] = None,
) -> NodeExecutionData:
    """
    Build the error-shaped item for a failed input item.

    Carries the error message and kind plus the parameters that were
    resolved for that item.
    """
    message = str(error) or type(error).__name__
    kind = type(error).__name__
    return {
        "json": {
            "success": False,
            "error": message,
            "errorType": kind,
            "parameters": dict(parameters or {}),
        },
        "error": {"message": message, "type": kind},
        "pairedItem": {"item": item_index},
    }


def is_error_item(item: Any) -> bool:
    """True if the item is error-shaped."""
    return isinstance(item, dict) and bool(item.get("error"))


def count_error_items(output: List[List[NodeExecutionData]]) -> int:
    return sum(1 for port in output for item in port if is_error_item(item))


def return_json_array(values: List[Dict[str, Any]]) -> List[List[NodeExecutionData]]:
    """Wrap plain dicts as a single output port of items."""
    return [[{"json": value} for value in values]]


__all__ = [
    "NodeExecutionData",
    "NodeItem",
    "error_item",
    "is_error_item",
    "count_error_items",
    "return_json_array",
]
