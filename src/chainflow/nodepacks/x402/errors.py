"""x402 payment errors. All are item-scoped."""

from __future__ import annotations

from typing import Any, Optional

from chainflow.node_sdk.errors import NodeApiError, NodeOperationError


class InvalidPaymentRequired(NodeOperationError):
    """A 402 response or x402 header could not be parsed."""


class PaymentRequirementMismatch(NodeOperationError):
    """The server asked for a payment the caller is not willing to make."""

    def __init__(self, message: str, requirements: Optional[Any] = None) -> None:
        self.requirements = requirements
        super().__init__(message)


class PaymentRejected(NodeApiError):
    """The server answered 402 again after a payment was attached."""

    def __init__(self, url: str, response_body: Optional[str] = None) -> None:
        self.url = url
        super().__init__(
            f"Payment rejected by {url}",
            status_code=402,
            response_body=response_body,
        )


__all__ = [
    "InvalidPaymentRequired",
    "PaymentRequirementMismatch",
    "PaymentRejected",
]
