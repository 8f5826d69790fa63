"""
Payment signers - Turn payment requirements into a signed proof.

Wallet key handling and transaction signing live outside the engine;
a signer is injected as the ``signer`` collaborator.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List, Protocol, runtime_checkable

from .models import PaymentProof, PaymentRequirements


logger = logging.getLogger(__name__)


@runtime_checkable
class PaymentSigner(Protocol):
    """Builds a payment proof for the given requirements."""

    def create_payment(self, requirements: PaymentRequirements) -> PaymentProof:
        ...


class StaticPaymentSigner:
    """
    Signer that returns a fixed, unsigned proof.

    For development and tests against servers that do not verify
    signatures. Records every requirement it was asked to pay.
    """

    def __init__(self, payer: str = "dev-payer", signature: str = "dev-signature") -> None:
        self.payer = payer
        self.signature = signature
        self.payments: List[PaymentRequirements] = []
        self._lock = threading.Lock()

    def create_payment(self, requirements: PaymentRequirements) -> PaymentProof:
        with self._lock:
            self.payments.append(requirements)

        payload: Dict[str, Any] = {
            "payer": self.payer,
            "signature": self.signature,
            "payTo": requirements.recipient,
            "asset": requirements.asset,
            "amount": requirements.amount,
        }
        if requirements.resource:
            payload["resource"] = requirements.resource

        logger.debug("Created static payment of %s %s", requirements.amount, requirements.asset)
        return PaymentProof(scheme=requirements.scheme, network=requirements.network, payload=payload)


__all__ = [
    "PaymentSigner",
    "StaticPaymentSigner",
]
