"""
tests/payment/test_payment_routes.py

Route tests for /paystack/verify and /paystack/webhook.
"""

import hashlib
import hmac
import json
from collections.abc import Generator
from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest
from fastapi import HTTPException, status
from httpx import AsyncClient

from app.core.schemas import MessageResponse
from app.database.models import User
from app.order.models import OrderStatus
from app.payment import services as payment_services
from app.payment.paystack import PaystackClient, get_paystack_client
from app.payment.schemas import PaystackVerifyResponse
from main import app

SECRET = "sk_test_webhook"


@pytest.fixture
def override_paystack() -> Generator[PaystackClient, None, None]:
    client = PaystackClient(secret_key=SECRET)
    app.dependency_overrides[get_paystack_client] = lambda: client
    yield client
    app.dependency_overrides.pop(get_paystack_client, None)


def verify_body() -> dict:
    return {
        "reference": "ref_123",
        "items": [{"menu_item_id": str(uuid4()), "quantity": 2}],
        "delivery_address": "12 Allen Avenue, Ikeja",
        "delivery_latitude": 6.6018,
        "delivery_longitude": 3.3515,
    }


@pytest.mark.asyncio
@patch.object(payment_services.PaymentService, "verify_and_place_order", new_callable=AsyncMock)
async def test_verify_places_order(
    mock_verify: AsyncMock,
    async_client: AsyncClient,
    override_get_db: AsyncMock,
    override_paystack: PaystackClient,
    mock_current_customer_user: User,
) -> None:
    order_id = uuid4()
    mock_verify.return_value = PaystackVerifyResponse(order_id=order_id, status=OrderStatus.ASSIGNED)
    response = await async_client.post("/paystack/verify", json=verify_body())
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"success": True, "order_id": str(order_id), "status": "ASSIGNED"}
    user, payload = mock_verify.await_args.args
    assert user is mock_current_customer_user
    assert payload.reference == "ref_123"


@pytest.mark.asyncio
@patch.object(payment_services.PaymentService, "verify_and_place_order", new_callable=AsyncMock)
async def test_verify_requires_drop_off(
    mock_verify: AsyncMock,
    async_client: AsyncClient,
    override_get_db: AsyncMock,
    override_paystack: PaystackClient,
    mock_current_customer_user: User,
) -> None:
    body = verify_body()
    del body["delivery_address"]
    response = await async_client.post("/paystack/verify", json=body)
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    mock_verify.assert_not_awaited()


@pytest.mark.asyncio
@patch.object(payment_services.PaymentService, "verify_and_place_order", new_callable=AsyncMock)
async def test_verify_payment_failed(
    mock_verify: AsyncMock,
    async_client: AsyncClient,
    override_get_db: AsyncMock,
    override_paystack: PaystackClient,
    mock_current_customer_user: User,
) -> None:
    mock_verify.side_effect = HTTPException(
        status_code=status.HTTP_402_PAYMENT_REQUIRED, detail="Payment verification failed"
    )
    response = await async_client.post("/paystack/verify", json=verify_body())
    assert response.status_code == status.HTTP_402_PAYMENT_REQUIRED


@pytest.mark.asyncio
async def test_verify_forbidden_for_vendor(
    async_client: AsyncClient,
    override_get_db: AsyncMock,
    override_paystack: PaystackClient,
    mock_current_vendor_user: User,
) -> None:
    response = await async_client.post("/paystack/verify", json=verify_body())
    assert response.status_code == status.HTTP_403_FORBIDDEN


def _signed(body: dict) -> tuple[bytes, str]:
    raw = json.dumps(body).encode()
    return raw, hmac.new(SECRET.encode(), raw, hashlib.sha512).hexdigest()


@pytest.mark.asyncio
@patch.object(payment_services.PaymentService, "handle_webhook_event", new_callable=AsyncMock)
async def test_webhook_valid_signature(
    mock_handle: AsyncMock,
    async_client: AsyncClient,
    override_get_db: AsyncMock,
    override_paystack: PaystackClient,
) -> None:
    mock_handle.return_value = MessageResponse(detail="Event processed.")
    raw, signature = _signed({"event": "charge.success", "data": {"reference": "ref_123"}})
    response = await async_client.post(
        "/paystack/webhook",
        content=raw,
        headers={"x-paystack-signature": signature, "Content-Type": "application/json"},
    )
    assert response.status_code == status.HTTP_200_OK
    event = mock_handle.await_args.args[0]
    assert event.event == "charge.success"
    assert event.data["reference"] == "ref_123"


@pytest.mark.asyncio
@patch.object(payment_services.PaymentService, "handle_webhook_event", new_callable=AsyncMock)
async def test_webhook_invalid_signature(
    mock_handle: AsyncMock,
    async_client: AsyncClient,
    override_get_db: AsyncMock,
    override_paystack: PaystackClient,
) -> None:
    raw, _ = _signed({"event": "charge.success", "data": {}})
    response = await async_client.post(
        "/paystack/webhook", content=raw, headers={"x-paystack-signature": "deadbeef"}
    )
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    mock_handle.assert_not_awaited()


@pytest.mark.asyncio
@patch.object(payment_services.PaymentService, "handle_webhook_event", new_callable=AsyncMock)
async def test_webhook_malformed_body(
    mock_handle: AsyncMock,
    async_client: AsyncClient,
    override_get_db: AsyncMock,
    override_paystack: PaystackClient,
) -> None:
    raw = b"not json"
    signature = hmac.new(SECRET.encode(), raw, hashlib.sha512).hexdigest()
    response = await async_client.post(
        "/paystack/webhook", content=raw, headers={"x-paystack-signature": signature}
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    mock_handle.assert_not_awaited()
