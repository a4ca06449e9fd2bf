"""
tests/payment/test_payment_services.py

PaymentService: idempotent verification and webhook reconciliation.
"""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest
from fastapi import HTTPException
from pydantic import ValidationError

from app.database.models import User
from app.order.models import Order, OrderStatus, PaymentStatus
from app.order.schemas import OrderRead
from app.payment import services as payment_services
from app.payment.paystack import PaystackClient, PaystackTransaction
from app.payment.schemas import PaystackVerifyRequest, PaystackWebhookEvent


def verify_request(reference: str = "ref_123") -> PaystackVerifyRequest:
    return PaystackVerifyRequest(
        reference=reference,
        items=[{"menu_item_id": uuid4(), "quantity": 1}],
        delivery_address="12 Allen Avenue",
    )


def stored_order(user_id, payment_status: PaymentStatus = PaymentStatus.PAID) -> Order:
    return Order(
        id=uuid4(),
        user_id=user_id,
        vendor_id=uuid4(),
        status=OrderStatus.ASSIGNED,
        payment_status=payment_status,
        payment_method="paystack",
        payment_reference="ref_123",
        subtotal=Decimal("3000"),
        delivery_fee=Decimal("250"),
        total_amount=Decimal("3250"),
        delivery_address="12 Allen Avenue",
    )


@pytest.fixture
def paystack() -> MagicMock:
    client = MagicMock(spec=PaystackClient)
    client.verify_transaction = AsyncMock(
        return_value=PaystackTransaction(
            reference="ref_123", status="success", amount=325000, currency="NGN"
        )
    )
    return client


@pytest.mark.asyncio
async def test_verify_blank_reference(paystack: MagicMock, fake_customer_user: User) -> None:
    service = payment_services.PaymentService(AsyncMock(), paystack)
    payload = verify_request().model_copy(update={"reference": "   "})
    with pytest.raises(HTTPException) as exc:
        await service.verify_and_place_order(fake_customer_user, payload)
    assert exc.value.status_code == 400
    paystack.verify_transaction.assert_not_awaited()


@pytest.mark.parametrize(
    "reference", ["   ", "REAL_REF?replay=1", "OTHER/../REAL_REF", "ref 123", "r" * 101]
)
def test_checkout_rejects_malformed_reference(reference: str) -> None:
    with pytest.raises(ValidationError):
        verify_request(reference)


@pytest.mark.asyncio
async def test_verify_rejects_mismatched_transaction_reference(
    paystack: MagicMock, fake_customer_user: User
) -> None:
    paystack.verify_transaction.return_value = PaystackTransaction(
        reference="REAL_REF", status="success", amount=325000, currency="NGN"
    )
    service = payment_services.PaymentService(AsyncMock(), paystack)
    with (
        patch.object(service.orders, "get_by_reference", new_callable=AsyncMock, return_value=None),
        patch.object(service.orders, "place_order", new_callable=AsyncMock) as mock_place,
    ):
        with pytest.raises(HTTPException) as exc:
            await service.verify_and_place_order(fake_customer_user, verify_request("REAL_REF.2"))
    assert exc.value.status_code == 402
    assert exc.value.detail == "Payment verification failed"
    mock_place.assert_not_awaited()


@pytest.mark.asyncio
async def test_verify_existing_reference_skips_paystack(
    paystack: MagicMock, fake_customer_user: User
) -> None:
    service = payment_services.PaymentService(AsyncMock(), paystack)
    existing = stored_order(fake_customer_user.id)
    with patch.object(
        service.orders, "get_by_reference", new_callable=AsyncMock, return_value=existing
    ):
        result = await service.verify_and_place_order(fake_customer_user, verify_request())
    assert result.order_id == existing.id
    assert result.status == OrderStatus.ASSIGNED
    paystack.verify_transaction.assert_not_awaited()


@pytest.mark.asyncio
async def test_verify_places_order_with_paid_amount(
    paystack: MagicMock, fake_customer_user: User, fake_order_read: OrderRead
) -> None:
    service = payment_services.PaymentService(AsyncMock(), paystack)
    payload = verify_request(" ref_123 ")
    with (
        patch.object(service.orders, "get_by_reference", new_callable=AsyncMock, return_value=None),
        patch.object(
            service.orders, "place_order", new_callable=AsyncMock, return_value=fake_order_read
        ) as mock_place,
        patch.object(payment_services, "send_order_receipt", new_callable=AsyncMock) as mock_receipt,
    ):
        result = await service.verify_and_place_order(fake_customer_user, payload)

    assert result.order_id == fake_order_read.id
    paystack.verify_transaction.assert_awaited_once_with("ref_123")
    mock_place.assert_awaited_once_with(fake_customer_user, payload, amount_paid=Decimal("3250"))
    assert payload.reference == "ref_123"
    mock_receipt.assert_awaited_once()


@pytest.mark.asyncio
async def test_receipt_failure_does_not_fail_checkout(
    paystack: MagicMock, fake_customer_user: User, fake_order_read: OrderRead
) -> None:
    service = payment_services.PaymentService(AsyncMock(), paystack)
    with (
        patch.object(service.orders, "get_by_reference", new_callable=AsyncMock, return_value=None),
        patch.object(
            service.orders, "place_order", new_callable=AsyncMock, return_value=fake_order_read
        ),
        patch.object(
            payment_services,
            "send_order_receipt",
            new_callable=AsyncMock,
            side_effect=RuntimeError("sendgrid down"),
        ),
    ):
        result = await service.verify_and_place_order(fake_customer_user, verify_request())
    assert result.success is True


@pytest.mark.asyncio
async def test_webhook_marks_order_paid(paystack: MagicMock, fake_customer_user: User) -> None:
    db = AsyncMock()
    service = payment_services.PaymentService(db, paystack)
    order = stored_order(fake_customer_user.id, payment_status=PaymentStatus.PENDING)
    event = PaystackWebhookEvent(event="charge.success", data={"reference": "ref_123"})
    with patch.object(service.orders, "get_by_reference", new_callable=AsyncMock, return_value=order):
        result = await service.handle_webhook_event(event)
    assert result.detail == "Event processed."
    assert order.payment_status == PaymentStatus.PAID
    db.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_webhook_unknown_reference_acknowledged(paystack: MagicMock) -> None:
    db = AsyncMock()
    service = payment_services.PaymentService(db, paystack)
    event = PaystackWebhookEvent(event="charge.success", data={"reference": "nope"})
    with patch.object(service.orders, "get_by_reference", new_callable=AsyncMock, return_value=None):
        result = await service.handle_webhook_event(event)
    assert result.detail == "Event acknowledged."
    db.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_webhook_other_events_ignored(paystack: MagicMock) -> None:
    service = payment_services.PaymentService(AsyncMock(), paystack)
    result = await service.handle_webhook_event(PaystackWebhookEvent(event="transfer.success"))
    assert result.detail == "Event ignored."
