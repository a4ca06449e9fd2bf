"""
tests/payment/test_paystack.py

PaystackClient against an httpx.MockTransport.
"""

import hashlib
import hmac
import json
from decimal import Decimal

import httpx
import pytest
from fastapi import HTTPException

from app.payment.paystack import PaystackClient, PaystackTransaction

SECRET = "sk_test_secret"


def client_for(handler) -> PaystackClient:
    return PaystackClient(
        secret_key=SECRET, base_url="https://paystack.test", transport=httpx.MockTransport(handler)
    )


def success_body(reference: str = "ref_1", amount: int = 350000) -> dict:
    return {
        "status": True,
        "message": "Verification successful",
        "data": {
            "reference": reference,
            "status": "success",
            "amount": amount,
            "currency": "NGN",
            "paid_at": "2026-01-01T12:00:00.000Z",
            "customer": {"email": "customer@example.com"},
        },
    }


@pytest.mark.asyncio
async def test_verify_transaction_success() -> None:
    seen: dict[str, httpx.Request] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["request"] = request
        return httpx.Response(200, json=success_body())

    transaction = await client_for(handler).verify_transaction("ref_1")
    assert transaction.reference == "ref_1"
    assert transaction.amount_major == Decimal("3500")
    assert transaction.customer_email == "customer@example.com"
    assert transaction.paid_at is not None
    assert seen["request"].url.path == "/transaction/verify/ref_1"
    assert seen["request"].headers["Authorization"] == f"Bearer {SECRET}"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(400, json={"status": False, "message": "Transaction reference not found"}),
        httpx.Response(200, text="<html>oops</html>"),
        httpx.Response(200, json={"status": False, "data": {}}),
        httpx.Response(200, json={"status": True, "data": {"status": "abandoned", "amount": 100}}),
    ],
)
async def test_verify_transaction_failures_are_402(response: httpx.Response) -> None:
    with pytest.raises(HTTPException) as exc:
        await client_for(lambda request: response).verify_transaction("ref_1")
    assert exc.value.status_code == 402
    assert exc.value.detail == "Payment verification failed"


@pytest.mark.asyncio
async def test_verify_transaction_network_error_is_502() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(HTTPException) as exc:
        await client_for(handler).verify_transaction("ref_1")
    assert exc.value.status_code == 502


@pytest.mark.asyncio
async def test_verify_transaction_without_secret_is_503() -> None:
    client = PaystackClient(secret_key="", transport=httpx.MockTransport(lambda r: httpx.Response(200)))
    with pytest.raises(HTTPException) as exc:
        await client.verify_transaction("ref_1")
    assert exc.value.status_code == 503


def test_from_api_handles_missing_fields() -> None:
    transaction = PaystackTransaction.from_api({"reference": "r", "status": "success"})
    assert transaction.amount == 0
    assert transaction.currency == "NGN"
    assert transaction.paid_at is None
    assert transaction.customer_email is None


def test_verify_signature() -> None:
    body = json.dumps({"event": "charge.success", "data": {"reference": "ref_1"}}).encode()
    signature = hmac.new(SECRET.encode(), body, hashlib.sha512).hexdigest()
    client = PaystackClient(secret_key=SECRET)
    assert client.verify_signature(body, signature) is True
    assert client.verify_signature(body + b" ", signature) is False
    assert client.verify_signature(body, None) is False
    assert PaystackClient(secret_key="").verify_signature(body, signature) is False


@pytest.mark.asyncio
@pytest.mark.parametrize("reference", ["REAL_REF?replay=1", "OTHER/../REAL_REF"])
async def test_verify_transaction_encodes_reference_as_one_segment(reference: str) -> None:
    seen: dict[str, httpx.Request] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["request"] = request
        return httpx.Response(200, json=success_body(reference="REAL_REF"))

    transaction = await client_for(handler).verify_transaction(reference)
    request = seen["request"]
    assert request.url.path == f"/transaction/verify/{reference}"
    assert request.url.query == b""
    assert transaction.reference == "REAL_REF"
