"""
app/order/pricing.py

Distance-based delivery pricing.

Rates come from the `platform_settings` table when an admin has set them,
otherwise from application settings.
"""

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.admin.models import PlatformSetting
from app.core.config import settings

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")

PRICE_PER_KM_LOW_KEY = "price_per_km_low"
PRICE_PER_KM_HIGH_KEY = "price_per_km_high"
DISTANCE_THRESHOLD_KEY = "distance_threshold_km"
FLAT_FEE_KEY = "flat_delivery_fee"

PRICING_KEYS = (PRICE_PER_KM_LOW_KEY, PRICE_PER_KM_HIGH_KEY, DISTANCE_THRESHOLD_KEY, FLAT_FEE_KEY)


@dataclass(frozen=True)
class DeliveryPricing:
    price_per_km_low: Decimal
    price_per_km_high: Decimal
    distance_threshold_km: Decimal
    flat_fee: Decimal

    def rate_for(self, distance_km: float) -> Decimal:
        """Per-km rate: the high rate applies strictly beyond the threshold."""
        if Decimal(str(distance_km)) > self.distance_threshold_km:
            return self.price_per_km_high
        return self.price_per_km_low

    def fee_for(self, distance_km: float | None) -> Decimal:
        """Delivery fee for a trip; the flat fee when the distance is unknown."""
        if distance_km is None:
            return self.flat_fee.quantize(CENT, rounding=ROUND_HALF_UP)
        fee = Decimal(str(distance_km)) * self.rate_for(distance_km)
        return fee.quantize(CENT, rounding=ROUND_HALF_UP)


def default_delivery_pricing() -> DeliveryPricing:
    return DeliveryPricing(
        price_per_km_low=Decimal(str(settings.DELIVERY_PRICE_PER_KM_LOW)),
        price_per_km_high=Decimal(str(settings.DELIVERY_PRICE_PER_KM_HIGH)),
        distance_threshold_km=Decimal(str(settings.DELIVERY_DISTANCE_THRESHOLD_KM)),
        flat_fee=Decimal(str(settings.FLAT_DELIVERY_FEE)),
    )


def _parse(raw: str | None, key: str, fallback: Decimal) -> Decimal:
    if raw is None:
        return fallback
    try:
        value = Decimal(raw.strip())
    except (InvalidOperation, AttributeError):
        logger.warning(f"[PRICING] Unparseable value {raw!r} for '{key}', using {fallback}")
        return fallback
    if not value.is_finite():
        logger.warning(f"[PRICING] Non-finite value {raw!r} for '{key}', using {fallback}")
        return fallback
    return value


async def load_delivery_pricing(db: AsyncSession) -> DeliveryPricing:
    """Current pricing, with stored platform settings overriding the defaults key by key."""
    defaults = default_delivery_pricing()
    result = await db.execute(
        select(PlatformSetting).filter(PlatformSetting.key.in_(PRICING_KEYS))
    )
    stored = {row.key: row.value for row in result.scalars().all()}

    return DeliveryPricing(
        price_per_km_low=_parse(
            stored.get(PRICE_PER_KM_LOW_KEY), PRICE_PER_KM_LOW_KEY, defaults.price_per_km_low
        ),
        price_per_km_high=_parse(
            stored.get(PRICE_PER_KM_HIGH_KEY), PRICE_PER_KM_HIGH_KEY, defaults.price_per_km_high
        ),
        distance_threshold_km=_parse(
            stored.get(DISTANCE_THRESHOLD_KEY), DISTANCE_THRESHOLD_KEY, defaults.distance_threshold_km
        ),
        flat_fee=_parse(stored.get(FLAT_FEE_KEY), FLAT_FEE_KEY, defaults.flat_fee),
    )
