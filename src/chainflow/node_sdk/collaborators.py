"""
Collaborators - Explicit dependency container handed to nodes.

The owner of the executor builds one of these (HTTP client, payment
signer, notifier, ...) and the engine passes it into every execution
context. Nodes borrow collaborators; they never construct their own.
"""

from __future__ import annotations

from typing import Any, Dict, Iterator, List, Optional

from .errors import NodeOperationError


HTTP_CLIENT = "http"
SIGNER = "signer"
NOTIFIER = "notifier"


class Collaborators:
    """
    Named collaborators looked up by capability key.

    Usage:
        services = Collaborators(http=HttpClient(timeout=10))
        services.register("signer", my_signer)
        client = services.require("http")
    """

    def __init__(self, **collaborators: Any) -> None:
        self._items: Dict[str, Any] = dict(collaborators)

    def register(self, name: str, collaborator: Any) -> None:
        self._items[name] = collaborator

    def get(self, name: str, default: Any = None) -> Any:
        return self._items.get(name, default)

    def require(self, name: str) -> Any:
        """Get a collaborator or fail the current item."""
        if name not in self._items:
            raise NodeOperationError(f"Collaborator '{name}' not available in execution context")
        return self._items[name]

    def names(self) -> List[str]:
        return list(self._items.keys())

    def copy(self, **overrides: Optional[Any]) -> "Collaborators":
        merged = dict(self._items)
        merged.update({key: value for key, value in overrides.items() if value is not None})
        return Collaborators(**merged)

    def __contains__(self, name: str) -> bool:
        return name in self._items

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)


__all__ = [
    "Collaborators",
    "HTTP_CLIENT",
    "SIGNER",
    "NOTIFIER",
]
