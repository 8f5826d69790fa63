"""
X402 Client - Fetch a paid resource over HTTP.

Flow:
1. Issue the request. Anything but 402 is returned as-is.
2. On 402, parse the offered payment requirements and pick the first
   one matching the caller's expectation. No match, or an amount above
   the caller's limit, fails before anything is paid.
3. Ask the signer for a proof and re-issue the request with the proof
   in the ``X-PAYMENT`` header.
4. A second 402 means the payment was rejected.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from chainflow.node_sdk.http import HttpClient, HttpResponse

from .errors import PaymentRejected, PaymentRequirementMismatch
from .models import (
    PaymentExpectation,
    PaymentRequirements,
    decode_header,
    parse_payment_required,
    select_requirements,
)
from .signer import PaymentSigner


logger = logging.getLogger(__name__)

PAYMENT_HEADER = "X-PAYMENT"
PAYMENT_RESPONSE_HEADER = "X-PAYMENT-RESPONSE"
PAYMENT_REQUIRED = 402


@dataclass
class X402Response:
    """Final response of a (possibly paid) fetch."""
    response: HttpResponse
    paid: bool = False
    requirements: Optional[PaymentRequirements] = None
    receipt: Optional[Dict[str, Any]] = None

    @property
    def status_code(self) -> int:
        return self.response.status_code

    @property
    def data(self) -> Any:
        return self.response.json_or_text()

    def payment_summary(self) -> Optional[Dict[str, Any]]:
        if not self.paid or self.requirements is None:
            return None
        summary = self.requirements.summary()
        summary["receipt"] = self.receipt
        return summary


class X402Client:
    """
    HTTP client wrapper that settles 402 Payment Required responses.

    Usage:
        client = X402Client(http, signer, PaymentExpectation(asset="USDC", max_amount=10000))
        result = client.fetch("GET", "https://api.example.com/premium")
        result.data
    """

    def __init__(
        self,
        http: HttpClient,
        signer: PaymentSigner,
        expectation: Optional[PaymentExpectation] = None,
    ) -> None:
        self.http = http
        self.signer = signer
        self.expectation = expectation or PaymentExpectation()

    def fetch(self, method: str, url: str, **kwargs: Any) -> X402Response:
        """
        Fetch ``url``, paying once if the server asks for it.

        Raises:
            PaymentRequirementMismatch: offered payment not acceptable
            PaymentRejected: server answered 402 to the paid request
            InvalidPaymentRequired: 402 body could not be parsed
            HttpApiError: any other non-2xx response
        """
        response = self.http.request(method, url, **kwargs)
        if response.status_code != PAYMENT_REQUIRED:
            response.raise_for_status()
            return X402Response(response=response)

        requirements = self._choose(parse_payment_required(response.json_or_text()), url)

        logger.info(
            "Paying %s %s on %s for %s",
            requirements.amount, requirements.asset, requirements.network, url,
        )
        proof = self.signer.create_payment(requirements)

        headers = dict(kwargs.pop("headers", None) or {})
        headers[PAYMENT_HEADER] = proof.encode()
        paid_response = self.http.request(method, url, headers=headers, **kwargs)

        if paid_response.status_code == PAYMENT_REQUIRED:
            raise PaymentRejected(url, response_body=paid_response.text[:1000] or None)
        paid_response.raise_for_status()

        receipt_header = paid_response.header(PAYMENT_RESPONSE_HEADER)
        receipt = decode_header(receipt_header) if receipt_header else None

        return X402Response(
            response=paid_response,
            paid=True,
            requirements=requirements,
            receipt=receipt,
        )

    def _choose(self, offers, url: str) -> PaymentRequirements:
        requirements = select_requirements(offers, self.expectation)
        if requirements is None:
            raise PaymentRequirementMismatch(
                f"{url} requires {self.expectation.mismatch(offers[0])}",
                requirements=offers[0],
            )

        limit = self.expectation.max_amount
        if limit is not None and requirements.amount > limit:
            raise PaymentRequirementMismatch(
                f"{url} requires {requirements.amount} {requirements.asset}, above limit {limit}",
                requirements=requirements,
            )
        return requirements


__all__ = [
    "X402Client",
    "X402Response",
    "PAYMENT_HEADER",
    "PAYMENT_RESPONSE_HEADER",
]
