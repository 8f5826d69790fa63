"""Tests for the x402 paid-resource node pack."""

import base64
import json
from unittest.mock import Mock

import pytest

from chainflow.engine import WorkflowExecutor
from chainflow.node_sdk import Collaborators, HttpApiError, HttpClient, HttpResponse, is_error_item
from chainflow.nodepacks import default_registry
from chainflow.nodepacks.x402 import (
    PAYMENT_HEADER,
    InvalidPaymentRequired,
    PaymentExpectation,
    PaymentProof,
    PaymentRejected,
    PaymentRequirementMismatch,
    PaymentSigner,
    StaticPaymentSigner,
    X402Client,
    decode_header,
    parse_payment_required,
)

from conftest import make_response


RESOURCE_URL = "https://api.example.com/premium"

OFFER = {
    "scheme": "exact",
    "network": "solana-devnet",
    "asset": "USDC",
    "maxAmountRequired": "10000",
    "payTo": "RecipientWallet111",
    "resource": RESOURCE_URL,
}


def payment_required(*offers):
    return make_response(402, {"x402Version": 1, "accepts": list(offers) or [OFFER]}, url=RESOURCE_URL)


def mock_http(*responses):
    http = Mock(spec=HttpClient)
    http.request.side_effect = [HttpResponse(response) for response in responses]
    return http


def encoded(value):
    return base64.b64encode(json.dumps(value).encode()).decode()


class TestParsePaymentRequired:
    """402 body formats."""

    def test_accepts_envelope(self):
        offers = parse_payment_required({"x402Version": 1, "accepts": [OFFER]})

        assert len(offers) == 1
        assert offers[0].amount == 10000
        assert offers[0].recipient == "RecipientWallet111"
        assert offers[0].resource == RESOURCE_URL

    def test_legacy_payment_shape(self):
        offers = parse_payment_required({
            "payment": {
                "cluster": "devnet",
                "mint": "USDC",
                "amount": 500,
                "recipientWallet": "Wallet",
                "tokenAccount": "TokenAcct",
            },
        })

        assert offers[0].network == "solana-devnet"
        assert offers[0].asset == "USDC"
        assert offers[0].recipient == "Wallet"
        assert offers[0].extra == {"tokenAccount": "TokenAcct"}

    def test_top_level_requirement(self):
        offers = parse_payment_required({
            "scheme": "exact", "network": "base", "asset": "USDC", "amount": 1, "recipient": "0xabc",
        })

        assert offers[0].network == "base"

    @pytest.mark.parametrize("body", [
        "not json",
        {"accepts": "nope"},
        {"accepts": []},
        {"accepts": [{"scheme": "exact"}]},
    ])
    def test_invalid_bodies(self, body):
        with pytest.raises(InvalidPaymentRequired):
            parse_payment_required(body)


class TestPaymentProof:
    def test_encode_is_base64_json(self):
        proof = PaymentProof(scheme="exact", network="solana-devnet", payload={"signature": "sig"})

        decoded = json.loads(base64.b64decode(proof.encode()))

        assert decoded == {
            "x402Version": 1,
            "scheme": "exact",
            "network": "solana-devnet",
            "payload": {"signature": "sig"},
        }
        assert PaymentProof.decode(proof.encode()) == proof

    def test_malformed_header(self):
        with pytest.raises(InvalidPaymentRequired):
            decode_header(base64.b64encode(b"not json").decode())

        with pytest.raises(InvalidPaymentRequired):
            decode_header(encoded([1, 2]))


class TestPaymentExpectation:
    def test_mismatch_names_first_differing_field(self):
        offer = parse_payment_required(dict(OFFER, network="solana-mainnet"))[0]

        assert PaymentExpectation().mismatch(offer) == "network 'solana-mainnet' (expected 'solana-devnet')"
        assert not PaymentExpectation().accepts(offer)

    def test_asset_comparison_ignores_case(self):
        offer = parse_payment_required(dict(OFFER, asset="usdc"))[0]

        assert PaymentExpectation().accepts(offer)


class TestStaticPaymentSigner:
    def test_builds_proof_and_records_payment(self):
        signer = StaticPaymentSigner(payer="me", signature="sig")
        offer = parse_payment_required(OFFER)[0]

        proof = signer.create_payment(offer)

        assert isinstance(signer, PaymentSigner)
        assert proof.scheme == "exact"
        assert proof.payload == {
            "payer": "me",
            "signature": "sig",
            "payTo": "RecipientWallet111",
            "asset": "USDC",
            "amount": 10000,
            "resource": RESOURCE_URL,
        }
        assert signer.payments == [offer]


class TestX402Client:
    """Challenge and response flow."""

    def test_free_resource_is_not_paid(self):
        http = mock_http(make_response(200, {"data": "free"}))
        signer = StaticPaymentSigner()

        result = X402Client(http, signer).fetch("GET", RESOURCE_URL)

        assert not result.paid
        assert result.data == {"data": "free"}
        assert result.payment_summary() is None
        assert signer.payments == []

    def test_pays_once_and_resubmits(self):
        receipt = {"success": True, "transaction": "5xyz"}
        http = mock_http(
            payment_required(),
            make_response(200, {"premium": True}, headers={"X-PAYMENT-RESPONSE": encoded(receipt)}),
        )
        signer = StaticPaymentSigner()

        result = X402Client(http, signer).fetch("GET", RESOURCE_URL, headers={"Accept": "application/json"})

        assert result.paid
        assert result.data == {"premium": True}
        assert result.receipt == receipt
        assert result.payment_summary()["receipt"] == receipt

        first, second = http.request.call_args_list
        assert first.kwargs == {"headers": {"Accept": "application/json"}}
        headers = second.kwargs["headers"]
        assert headers["Accept"] == "application/json"
        proof = PaymentProof.decode(headers[PAYMENT_HEADER])
        assert proof.network == "solana-devnet"
        assert proof.payload["payTo"] == "RecipientWallet111"

    def test_picks_first_matching_offer(self):
        other = dict(OFFER, network="base", payTo="Other")
        http = mock_http(payment_required(other, OFFER), make_response(200, {}))
        signer = StaticPaymentSigner()

        X402Client(http, signer).fetch("GET", RESOURCE_URL)

        assert signer.payments[0].recipient == "RecipientWallet111"

    def test_second_402_is_rejected(self):
        http = mock_http(payment_required(), payment_required())

        with pytest.raises(PaymentRejected) as exc_info:
            X402Client(http, StaticPaymentSigner()).fetch("GET", RESOURCE_URL)

        assert exc_info.value.status_code == 402
        assert http.request.call_count == 2

    def test_mismatch_does_not_pay(self):
        http = mock_http(payment_required(dict(OFFER, asset="SOL")))
        signer = StaticPaymentSigner()

        with pytest.raises(PaymentRequirementMismatch) as exc_info:
            X402Client(http, signer).fetch("GET", RESOURCE_URL)

        assert "asset 'SOL'" in str(exc_info.value)
        assert exc_info.value.requirements.asset == "SOL"
        assert signer.payments == []
        assert http.request.call_count == 1

    def test_amount_above_limit_does_not_pay(self):
        http = mock_http(payment_required())
        signer = StaticPaymentSigner()

        with pytest.raises(PaymentRequirementMismatch, match="above limit"):
            X402Client(http, signer, PaymentExpectation(max_amount=100)).fetch("GET", RESOURCE_URL)

        assert signer.payments == []

    def test_other_errors_raise_http_error(self):
        http = mock_http(make_response(500, {"error": "down"}))

        with pytest.raises(HttpApiError):
            X402Client(http, StaticPaymentSigner()).fetch("GET", RESOURCE_URL)


class TestX402Node:
    """x402Client node through the executor."""

    def workflow(self, **parameters):
        return {
            "id": "paid",
            "nodes": [{"id": "premium", "type": "x402Client", "parameters": {"apiUrl": RESOURCE_URL, **parameters}}],
        }

    def run(self, http, signer, **parameters):
        executor = WorkflowExecutor(
            registry=default_registry(),
            collaborators=Collaborators(http=http, signer=signer),
        )
        return executor.execute(self.workflow(**parameters))

    def test_paid_fetch_succeeds(self):
        http = mock_http(payment_required(), make_response(200, {"report": "alpha"}))
        signer = StaticPaymentSigner()

        result = self.run(http, signer)

        assert result.is_success
        item = result.get_output("premium")[0]["json"]
        assert item["success"] is True
        assert item["operation"] == "x402_fetch"
        assert item["paid"] is True
        assert item["network"] == "solana-devnet"
        assert item["data"] == {"report": "alpha"}
        assert item["payment"]["amount"] == 10000
        assert len(signer.payments) == 1

    def test_rejected_payment_is_error_item(self):
        http = mock_http(payment_required(), payment_required())

        result = self.run(http, StaticPaymentSigner())

        assert result.is_success
        assert result.has_item_errors
        item = result.get_output("premium")[0]
        assert is_error_item(item)
        assert item["json"]["errorType"] == "PaymentRejected"
        assert item["json"]["parameters"]["apiUrl"] == RESOURCE_URL

    def test_node_parameters_override_settings(self):
        http = mock_http(payment_required())
        signer = StaticPaymentSigner()

        result = self.run(http, signer, network="solana-mainnet")

        item = result.get_output("premium")[0]
        assert item["json"]["errorType"] == "PaymentRequirementMismatch"
        assert signer.payments == []

    def test_settings_limit_applies(self, monkeypatch):
        monkeypatch.setenv("CHAINFLOW_X402_MAX_AMOUNT", "5")
        http = mock_http(payment_required())

        result = self.run(http, StaticPaymentSigner())

        assert "above limit" in result.get_output("premium")[0]["json"]["error"]

    def test_post_sends_request_body(self):
        http = mock_http(make_response(200, {"ok": True}))

        self.run(http, StaticPaymentSigner(), method="POST", requestBody='{"query": "sol"}')

        args, kwargs = http.request.call_args
        assert args == ("POST", RESOURCE_URL)
        assert kwargs["json"] == {"query": "sol"}

    def test_missing_signer_fails_item(self):
        http = mock_http()
        executor = WorkflowExecutor(registry=default_registry(), collaborators=Collaborators(http=http))

        result = executor.execute(self.workflow())

        assert "signer" in result.get_output("premium")[0]["json"]["error"]
        http.request.assert_not_called()

    def test_opts_into_chat_notifications(self):
        node = default_registry().resolve("x402Client")

        assert node.description["telegramNotify"] is True
