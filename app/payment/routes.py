"""
app/payment/routes.py

Paystack endpoints:
- POST /paystack/verify: verify a payment reference and place the order
- POST /paystack/webhook: signed Paystack event callback
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from pydantic import ValidationError

from app.core.dependencies import AuthenticatedUserDep, DBDep
from app.core.limiter import limiter
from app.core.schemas import MessageResponse
from app.payment import schemas
from app.payment.paystack import PaystackClient, get_paystack_client
from app.payment.services import PaymentService

router = APIRouter(prefix="/paystack", tags=["Payments"])
logger = logging.getLogger(__name__)

PaystackDep = Annotated[PaystackClient, Depends(get_paystack_client)]


@router.post(
    "/verify",
    response_model=schemas.PaystackVerifyResponse,
    status_code=status.HTTP_200_OK,
    summary="Verify Payment and Place Order",
    description="Verifies a Paystack reference and places the order it pays for. Safe to retry.",
)
@limiter.limit("10/minute")
async def verify_payment(
    request: Request,
    payload: schemas.PaystackVerifyRequest,
    db: DBDep,
    current_user: AuthenticatedUserDep,
    paystack: PaystackDep,
) -> schemas.PaystackVerifyResponse:
    return await PaymentService(db, paystack).verify_and_place_order(current_user, payload)


@router.post(
    "/webhook",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Paystack Webhook",
    include_in_schema=False,
)
async def paystack_webhook(
    request: Request,
    db: DBDep,
    paystack: PaystackDep,
    x_paystack_signature: str | None = Header(None),
) -> MessageResponse:
    raw_body = await request.body()
    if not paystack.verify_signature(raw_body, x_paystack_signature):
        logger.warning("[PAYSTACK] Webhook rejected: invalid signature")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid signature")

    try:
        event = schemas.PaystackWebhookEvent.model_validate_json(raw_body)
    except ValidationError as e:
        logger.warning(f"[PAYSTACK] Malformed webhook body: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Malformed event")

    return await PaymentService(db, paystack).handle_webhook_event(event)
