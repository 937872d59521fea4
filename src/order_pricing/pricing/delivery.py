"""Delivery fees from distance tiers, plus the external-provider contract."""

from __future__ import annotations

import math
from typing import List, Optional, Protocol, Sequence

from ..utils.logging import get_logger
from .models import (
    DISTANCE_UNITS,
    KILOMETERS,
    MILES,
    DeliveryEstimate,
    DeliveryFeeResult,
    DeliveryPricingTier,
    DistanceCheck,
    GeoLocation,
    ValidationResult,
)
from .money import Number, round_cents, to_cents, to_decimal, to_dollars
from .trace import PricingTrace, record

logger = get_logger(__name__)

STAGE = "delivery"

EARTH_RADIUS = {
    KILOMETERS: 6371.0,
    MILES: 3959.0,
}


class DeliveryProvider(Protocol):
    """Third-party delivery service, resolved by the caller and injected."""

    async def get_estimate(self, pickup_address: GeoLocation, delivery_address: GeoLocation) -> DeliveryEstimate:
        ...

    def get_provider_name(self) -> str:
        ...


class Geocoder(Protocol):
    """Turns a free-form address into coordinates."""

    async def geocode(self, address: str) -> GeoLocation:
        ...


def haversine_distance(origin: GeoLocation, destination: GeoLocation, unit: str = KILOMETERS) -> float:
    """Great-circle distance between two points, rounded to 3 decimals."""
    radius = EARTH_RADIUS[MILES] if unit == MILES else EARTH_RADIUS[KILOMETERS]

    d_lat = math.radians(destination.lat - origin.lat)
    d_lng = math.radians(destination.lng - origin.lng)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(origin.lat)) * math.cos(math.radians(destination.lat)) * math.sin(d_lng / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return round(radius * c, 3)


def check_delivery_distance(
    origin: GeoLocation,
    destination: GeoLocation,
    max_radius: float,
    unit: str = KILOMETERS,
) -> DistanceCheck:
    distance = haversine_distance(origin, destination, unit)
    return DistanceCheck(distance=distance, within_radius=distance <= max_radius, unit=unit)


def select_tier(distance: float, tiers: Sequence[DeliveryPricingTier]) -> Optional[DeliveryPricingTier]:
    """
    Pick the pricing tier for a distance.

    Tiers are scanned in ascending ``distance_covered`` order and the first
    one that covers the distance wins. Past the last bound, the tier flagged
    ``is_default`` is used, else the tier with the largest bound.
    """
    if not tiers:
        return None

    ordered = sorted(tiers, key=lambda t: t.distance_covered)
    default_tier: Optional[DeliveryPricingTier] = None
    for tier in ordered:
        if tier.is_default and default_tier is None:
            default_tier = tier
        if distance <= tier.distance_covered:
            return tier

    return default_tier or ordered[-1]


def calculate_delivery_fee(
    distance: Number,
    tiers: Sequence[DeliveryPricingTier],
    unit: str = KILOMETERS,
    trace: Optional[PricingTrace] = None,
) -> DeliveryFeeResult:
    """
    Map a distance through the restaurant's delivery tiers.

    Args:
        distance: Delivery distance in ``unit``
        tiers: Delivery pricing tiers, any order
        unit: Distance unit the tiers are expressed in
        trace: Optional trace receiving the tier decision

    Returns:
        DeliveryFeeResult; zero fee and no tier when no tiers are configured
    """
    distance_value = to_decimal(distance)
    tier = select_tier(float(distance_value), tiers)
    if tier is None:
        record(trace, STAGE, "no_tiers", distance=float(distance_value), unit=unit)
        return DeliveryFeeResult(base_fee_cents=0, distance_fee_cents=0, distance=float(distance_value), unit=unit)

    excess = max(distance_value - to_decimal(tier.distance_covered), to_decimal(0))
    distance_fee_cents = round_cents(excess * to_cents(tier.additional_fee_per_unit))

    result = DeliveryFeeResult(
        base_fee_cents=to_cents(tier.base_fee),
        distance_fee_cents=distance_fee_cents,
        distance=float(distance_value),
        unit=unit,
        tier_used=tier.name,
    )
    record(trace, STAGE, "tier_matched", tier=tier.name, distance=result.distance, unit=unit,
           base_fee_cents=result.base_fee_cents, distance_fee_cents=distance_fee_cents)
    return result


async def request_provider_estimate(
    provider: DeliveryProvider,
    pickup_address: GeoLocation,
    delivery_address: GeoLocation,
    trace: Optional[PricingTrace] = None,
) -> Optional[DeliveryEstimate]:
    """
    Ask the delivery provider for a fee estimate.

    A provider failure never fails the order: it is logged and ``None`` is
    returned so the caller falls back to tier pricing. An estimate whose fee
    is missing, non-numeric or negative counts as a failure. No timeout is applied
    here; callers that need a deadline wrap the provider.
    """
    try:
        estimate = await provider.get_estimate(pickup_address, delivery_address)
        fee_cents = to_cents(estimate.fee)
        if fee_cents < 0:
            raise ValueError(f"negative fee {estimate.fee!r}")
    except Exception as e:
        logger.warning(f"Delivery provider estimate failed, using tier pricing: {e!r}")
        record(trace, STAGE, "provider_failed", error=str(e) or type(e).__name__)
        return None

    estimate = DeliveryEstimate(fee=to_dollars(fee_cents), provider=estimate.provider, distance=estimate.distance)
    record(trace, STAGE, "provider_estimate", provider=estimate.provider,
           fee=estimate.fee, distance=estimate.distance)
    return estimate


def validate_delivery_settings(
    distance_unit: str,
    maximum_radius: float,
    tiers: Sequence[DeliveryPricingTier],
) -> ValidationResult:
    errors: List[str] = []

    if distance_unit not in DISTANCE_UNITS:
        errors.append('Invalid distance unit (must be "miles" or "km")')

    if maximum_radius <= 0:
        errors.append("Maximum radius must be greater than 0")

    if not tiers:
        errors.append("At least one pricing tier is required for local delivery")

    for index, tier in enumerate(tiers, start=1):
        if tier.base_fee < 0:
            errors.append(f"Tier {index}: Base fee cannot be negative")
        if tier.distance_covered <= 0:
            errors.append(f"Tier {index}: Distance covered must be greater than 0")
        if tier.additional_fee_per_unit < 0:
            errors.append(f"Tier {index}: Additional fee per unit cannot be negative")

    return ValidationResult.from_errors(errors)
