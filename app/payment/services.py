"""
app/payment/services.py

Payment Service Layer

- verify_and_place_order: Paystack verification followed by order placement
- handle_webhook_event: reconciles payment status from Paystack events
"""

import logging

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.email import send_order_receipt
from app.core.schemas import MessageResponse
from app.database.models import User
from app.order.models import PaymentStatus
from app.order.schemas import OrderRead
from app.order.services import OrderService
from app.payment import schemas
from app.payment.paystack import PaystackClient

logger = logging.getLogger(__name__)


class PaymentService:
    def __init__(self, db: AsyncSession, paystack: PaystackClient):
        self.db = db
        self.paystack = paystack
        self.orders = OrderService(db)

    async def _send_receipt(self, user: User, order: OrderRead) -> None:
        try:
            await send_order_receipt(
                user.email,
                user.first_name,
                order.id,
                [
                    {"name": i.name, "quantity": i.quantity, "line_total": i.line_total}
                    for i in order.items
                ],
                order.subtotal,
                order.delivery_fee,
                order.total_amount,
                order.delivery_address,
            )
        except Exception as e:
            logger.error(f"[PAYSTACK] Failed to send receipt for order {order.id}: {e}")

    async def verify_and_place_order(
        self, user: User, payload: schemas.PaystackVerifyRequest
    ) -> schemas.PaystackVerifyResponse:
        """
        Verify the Paystack reference and place the order it pays for.
        A reference that already produced an order is answered from the
        database without calling Paystack again.
        """
        reference = payload.reference.strip()
        if not reference:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail="Payment reference is required."
            )
        payload.reference = reference

        existing = await self.orders.get_by_reference(reference)
        if existing:
            order = self.orders.resolve_existing(existing, user.id)
            return schemas.PaystackVerifyResponse(order_id=order.id, status=order.status)

        transaction = await self.paystack.verify_transaction(reference)
        if transaction.reference != reference:
            logger.warning(
                f"[PAYSTACK] Reference mismatch: submitted {reference!r}, "
                f"verified {transaction.reference!r}"
            )
            raise HTTPException(
                status_code=status.HTTP_402_PAYMENT_REQUIRED, detail="Payment verification failed"
            )
        order =await self.orders.place_order(user, payload, amount_paid=transaction.amount_major)
        await self._send_receipt(user, order)

        logger.info(f"[PAYSTACK] Reference {reference} settled as order {order.id}")
        return schemas.PaystackVerifyResponse(order_id=order.id, status=order.status)

    async def handle_webhook_event(self, event: schemas.PaystackWebhookEvent) -> MessageResponse:
        if event.event != "charge.success":
            logger.info(f"[PAYSTACK] Ignoring webhook event '{event.event}'")
            return MessageResponse(detail="Event ignored.")

        reference = str(event.data.get("reference") or "")
        order = await self.orders.get_by_reference(reference) if reference else None
        if order is None:
            logger.warning(f"[PAYSTACK] charge.success for unknown reference '{reference}'")
            return MessageResponse(detail="Event acknowledged.")

        if order.payment_status != PaymentStatus.PAID:
            order.payment_status = PaymentStatus.PAID
            try:
                await self.db.commit()
            except Exception as e:
                await self.db.rollback()
                logger.error(f"[PAYSTACK] Failed to reconcile {reference}: {e}", exc_info=True)
                raise HTTPException(
                    status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                    detail="Failed to update payment status.",
                )
            logger.info(f"[PAYSTACK] Order {order.id} marked PAID from webhook")
        return MessageResponse(detail="Event processed.")
