"""
app/payment/paystack.py

Thin async client for the Paystack transaction API.
- verify_transaction: confirms a charge by reference
- verify_signature: checks webhook HMAC-SHA512 signatures
"""

import hashlib
import hmac
import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any
from urllib.parse import quote

import httpx
from fastapi import HTTPException, status

from app.core.config import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaystackTransaction:
    reference: str
    status: str
    amount: int
    currency: str
    paid_at: datetime | None = None
    customer_email: str | None = None

    @property
    def amount_major(self) -> Decimal:
        """Amount in naira; Paystack reports kobo."""
        return Decimal(self.amount) / Decimal(100)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "PaystackTransaction":
        paid_at_raw = data.get("paid_at") or data.get("paidAt")
        paid_at = None
        if paid_at_raw:
            try:
                paid_at = datetime.fromisoformat(str(paid_at_raw).replace("Z", "+00:00"))
            except ValueError:
                logger.warning(f"[PAYSTACK] Unparseable paid_at value: {paid_at_raw!r}")
        customer = data.get("customer") or {}
        return cls(
            reference=str(data.get("reference", "")),
            status=str(data.get("status", "")),
            amount=int(data.get("amount") or 0),
            currency=str(data.get("currency") or "NGN"),
            paid_at=paid_at,
            customer_email=customer.get("email"),
        )


class PaystackClient:
    def __init__(
        self,
        secret_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.secret_key = settings.PAYSTACK_SECRET_KEY if secret_key is None else secret_key
        self.base_url = (base_url or settings.PAYSTACK_BASE_URL).rstrip("/")
        self.timeout = timeout or settings.PAYSTACK_TIMEOUT_SECONDS
        self._transport = transport

    def _require_secret(self) -> str:
        if not self.secret_key:
            logger.error("[PAYSTACK] PAYSTACK_SECRET_KEY is not configured.")
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Payment provider is not configured.",
            )
        return self.secret_key

    async def verify_transaction(self, reference: str) -> PaystackTransaction:
        """
        Verify a transaction by reference.

        Raises:
            HTTPException 503: No secret key configured.
            HTTPException 502: Paystack could not be reached.
            HTTPException 402: The transaction is not a successful charge.
        """
        secret = self._require_secret()
        url = f"{self.base_url}/transaction/verify/{quote(reference, safe='')}"
        failed = HTTPException(
            status_code=status.HTTP_402_PAYMENT_REQUIRED, detail="Payment verification failed"
        )

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(url, headers={"Authorization": f"Bearer {secret}"})
        except httpx.HTTPError as e:
            logger.error(f"[PAYSTACK] Could not reach Paystack verifying {reference}: {e}")
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail="Could not reach payment provider.",
            )

        if not response.is_success:
            logger.warning(
                f"[PAYSTACK] Verify {reference} returned HTTP {response.status_code}: {response.text[:200]}"
            )
            raise failed

        try:
            body = response.json()
        except ValueError:
            logger.error(f"[PAYSTACK] Non-JSON verify response for {reference}")
            raise failed

        data = body.get("data") or {}
        if not body.get("status") or data.get("status") != "success":
            logger.warning(
                f"[PAYSTACK] Transaction {reference} not successful: "
                f"status={body.get('status')} data.status={data.get('status')}"
            )
            raise failed

        transaction = PaystackTransaction.from_api(data)
        logger.info(
            f"[PAYSTACK] Verified {reference}: {transaction.amount_major} {transaction.currency}"
        )
        return transaction

    def verify_signature(self, raw_body: bytes, signature: str | None) -> bool:
        """True when `signature` is the HMAC-SHA512 of the raw body under the secret key."""
        if not signature or not self.secret_key:
            return False
        expected = hmac.new(self.secret_key.encode(), raw_body, hashlib.sha512).hexdigest()
        return hmac.compare_digest(expected, signature)


def get_paystack_client() -> PaystackClient:
    return PaystackClient()
