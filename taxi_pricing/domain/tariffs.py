from __future__ import annotations

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from taxi_pricing.domain.models import KmRates, RideExtras, TariffConfig, TariffTier

DEFAULT_TARIFF_CONFIG = TariffConfig(
    base_charge_cents=280,
    km_cents=KmRates(A=98, B=123, C=196, D=246),
    wait_per_hour_cents=2940,
    baggage_fee_cents=200,
    fifth_passenger_cents=250,
)

NIGHT_START_HOUR = 19
NIGHT_END_HOUR = 7

_CENT = Decimal("0.01")


def _round_cents(amount: float) -> Decimal:
    return Decimal(str(amount)).quantize(_CENT, rounding=ROUND_HALF_UP)


def price(
    distance_km: float,
    tier: TariffTier,
    extras: RideExtras,
    config: TariffConfig,
) -> float:
    """
    Price of a ride in euros, rounded half-up to the cent and never negative.

    Pure function of its inputs: the same distance, extras and config snapshot
    always yield the same price. ``distance_km`` must already be clamped to 0.
    """
    tier = TariffTier(tier)
    per_km = getattr(config.km_cents, tier.value) / 100

    total = (
        config.base_charge_cents / 100
        + distance_km * per_km
        + (extras.wait_minutes / 60) * (config.wait_per_hour_cents / 100)
        + extras.baggage_count * (config.baggage_fee_cents / 100)
        + (config.fifth_passenger_cents / 100 if extras.fifth_passenger else 0)
    )
    return max(0.0, float(_round_cents(total)))


def to_cents(euros: float) -> int:
    return int((Decimal(str(euros)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def select_tier(when: datetime) -> TariffTier:
    """Night and weekend rides use tier B, everything else tier A."""
    if when.hour < NIGHT_END_HOUR or when.hour >= NIGHT_START_HOUR:
        return TariffTier.B
    if when.weekday() >= 5:
        return TariffTier.B
    return TariffTier.A
