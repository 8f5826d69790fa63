"""
x402 Node Pack - Paid-resource access.

- X402Client: fetch with one automatic 402 payment round-trip
- PaymentRequirements / PaymentProof: wire payloads
- PaymentSigner: collaborator protocol for building proofs
- X402Node: the ``x402Client`` node
"""

from .errors import InvalidPaymentRequired, PaymentRejected, PaymentRequirementMismatch
from .models import (
    PaymentExpectation,
    PaymentProof,
    PaymentRequirements,
    decode_header,
    parse_payment_required,
    select_requirements,
)
from .signer import PaymentSigner, StaticPaymentSigner
from .client import PAYMENT_HEADER, PAYMENT_RESPONSE_HEADER, X402Client, X402Response
from .node import X402Node
from .manifest import MANIFEST, NODE_CLASSES, register_nodes

__all__ = [
    "InvalidPaymentRequired",
    "PaymentRejected",
    "PaymentRequirementMismatch",
    "PaymentExpectation",
    "PaymentProof",
    "PaymentRequirements",
    "decode_header",
    "parse_payment_required",
    "select_requirements",
    "PaymentSigner",
    "StaticPaymentSigner",
    "PAYMENT_HEADER",
    "PAYMENT_RESPONSE_HEADER",
    "X402Client",
    "X402Response",
    "X402Node",
    "MANIFEST",
    "NODE_CLASSES",
    "register_nodes",
]
