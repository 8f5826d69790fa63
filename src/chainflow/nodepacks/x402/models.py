"""
x402 Models - Payment requirement and proof payloads.

A 402 response advertises one or more acceptable payment requirements:

    {"x402Version": 1, "accepts": [{"scheme": "exact", "network": "solana-devnet",
                                    "asset": "USDC", "maxAmountRequired": "10000",
                                    "payTo": "...", "resource": "..."}]}

The client answers with a payment proof, sent base64-encoded in the
``X-PAYMENT`` header.
"""

from __future__ import annotations

import base64
import binascii
import json
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from .errors import InvalidPaymentRequired


X402_VERSION = 1

# Cluster names used by the legacy single-requirement format
_LEGACY_NETWORKS = {
    "devnet": "solana-devnet",
    "mainnet": "solana-mainnet",
    "mainnet-beta": "solana-mainnet",
}


class PaymentRequirements(BaseModel):
    """One acceptable way to pay for a resource."""
    model_config = ConfigDict(populate_by_name=True, extra="allow", frozen=True)

    scheme: str = Field(..., description="Payment scheme (e.g. 'exact')")
    network: str = Field(..., description="Settlement network (e.g. 'solana-devnet')")
    asset: str = Field(..., description="Asset symbol or mint address")
    amount: float = Field(
        ...,
        validation_alias=AliasChoices("amount", "maxAmountRequired"),
        description="Amount to pay, in the asset's smallest unit",
    )
    recipient: str = Field(
        ...,
        validation_alias=AliasChoices("recipient", "payTo"),
        description="Address that receives the payment",
    )
    resource: Optional[str] = None
    description: Optional[str] = None
    max_timeout_seconds: Optional[int] = Field(
        None,
        validation_alias=AliasChoices("max_timeout_seconds", "maxTimeoutSeconds"),
    )
    extra: Dict[str, Any] = Field(default_factory=dict)

    def summary(self) -> Dict[str, Any]:
        return {
            "scheme": self.scheme,
            "network": self.network,
            "asset": self.asset,
            "amount": self.amount,
            "recipient": self.recipient,
        }


class PaymentExpectation(BaseModel):
    """What the caller is willing to pay with."""
    model_config = ConfigDict(frozen=True)

    scheme: str = "exact"
    network: str = "solana-devnet"
    asset: str = "USDC"
    max_amount: Optional[float] = None

    def accepts(self, requirements: PaymentRequirements) -> bool:
        """True if scheme, network and asset all match."""
        return self.mismatch(requirements) is None

    def mismatch(self, requirements: PaymentRequirements) -> Optional[str]:
        """Describe the first field that does not match, or None."""
        if requirements.scheme != self.scheme:
            return f"scheme '{requirements.scheme}' (expected '{self.scheme}')"
        if requirements.network != self.network:
            return f"network '{requirements.network}' (expected '{self.network}')"
        if requirements.asset.lower() != self.asset.lower():
            return f"asset '{requirements.asset}' (expected '{self.asset}')"
        return None


class PaymentProof(BaseModel):
    """Signed payment sent back to the resource server."""
    model_config = ConfigDict(populate_by_name=True)

    x402_version: int = Field(X402_VERSION, alias="x402Version")
    scheme: str
    network: str
    payload: Dict[str, Any] = Field(default_factory=dict)

    def encode(self) -> str:
        """Base64 JSON, as carried in the X-PAYMENT header."""
        raw = json.dumps(self.model_dump(by_alias=True), separators=(",", ":"))
        return base64.b64encode(raw.encode("utf-8")).decode("ascii")

    @classmethod
    def decode(cls, header: str) -> "PaymentProof":
        return cls.model_validate(decode_header(header))


def decode_header(header: str) -> Dict[str, Any]:
    """Decode a base64 JSON header value (X-PAYMENT or X-PAYMENT-RESPONSE)."""
    try:
        value = json.loads(base64.b64decode(header).decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise InvalidPaymentRequired(f"Malformed x402 header: {e}") from e
    if not isinstance(value, dict):
        raise InvalidPaymentRequired("Malformed x402 header: expected a JSON object")
    return value


def parse_payment_required(body: Any) -> List[PaymentRequirements]:
    """
    Extract the payment requirements offered by a 402 response body.

    Accepts the standard ``{"x402Version", "accepts": [...]}`` envelope,
    the legacy ``{"payment": {...}}`` shape, or a single requirement at
    the top level.

    Raises:
        InvalidPaymentRequired: body carries no usable requirement
    """
    if not isinstance(body, dict):
        raise InvalidPaymentRequired("402 response body is not a JSON object")

    if "accepts" in body:
        entries = body["accepts"]
        if not isinstance(entries, list):
            raise InvalidPaymentRequired("402 'accepts' must be a list")
    elif isinstance(body.get("payment"), dict):
        entries = [_from_legacy(body["payment"])]
    else:
        entries = [body]

    offers: List[PaymentRequirements] = []
    for entry in entries:
        try:
            offers.append(PaymentRequirements.model_validate(entry))
        except ValidationError as e:
            raise InvalidPaymentRequired(f"Invalid payment requirement: {e}") from e

    if not offers:
        raise InvalidPaymentRequired("402 response offers no payment requirements")
    return offers


def select_requirements(
    offers: List[PaymentRequirements],
    expectation: PaymentExpectation,
) -> Optional[PaymentRequirements]:
    """First offer the expectation accepts, in server order."""
    return next((offer for offer in offers if expectation.accepts(offer)), None)


def _from_legacy(payment: Dict[str, Any]) -> Dict[str, Any]:
    cluster = payment.get("cluster", "devnet")
    return {
        "scheme": "exact",
        "network": _LEGACY_NETWORKS.get(cluster, cluster),
        "asset": payment.get("mint", ""),
        "amount": payment.get("amount"),
        "recipient": payment.get("recipientWallet", payment.get("tokenAccount", "")),
        "extra": {
            key: payment[key] for key in ("tokenAccount", "amountUSDC") if key in payment
        },
    }


__all__ = [
    "X402_VERSION",
    "PaymentRequirements",
    "PaymentExpectation",
    "PaymentProof",
    "decode_header",
    "parse_payment_required",
    "select_requirements",
]
