from __future__ import annotations

import datetime
import threading
from typing import List, Optional

from taxi_pricing.domain.models import KmRates, TariffConfig, TariffValues
from taxi_pricing.domain.tariffs import DEFAULT_TARIFF_CONFIG, to_cents


def config_from_values(values: TariffValues, version: int) -> TariffConfig:
    return TariffConfig(
        base_charge_cents=to_cents(values.base_charge),
        km_cents=KmRates(
            A=to_cents(values.km_a),
            B=to_cents(values.km_b),
            C=to_cents(values.km_c),
            D=to_cents(values.km_d),
        ),
        wait_per_hour_cents=to_cents(values.wait_per_hour),
        baggage_fee_cents=to_cents(values.baggage_fee),
        fifth_passenger_cents=to_cents(values.fifth_passenger),
        version=version,
        updated_at=datetime.datetime.now(datetime.timezone.utc),
    )


def values_from_config(config: TariffConfig) -> dict:
    return {
        "base_charge": config.base_charge_cents / 100,
        "km_a": config.km_cents.A / 100,
        "km_b": config.km_cents.B / 100,
        "km_c": config.km_cents.C / 100,
        "km_d": config.km_cents.D / 100,
        "wait_per_hour": config.wait_per_hour_cents / 100,
        "baggage_fee": config.baggage_fee_cents / 100,
        "fifth_passenger": config.fifth_passenger_cents / 100,
        "version": config.version,
        "updated_at": config.updated_at,
    }


class TariffConfigStore:
    """
    Versioned tariff snapshots. Every save creates a new immutable version;
    readers keep whatever snapshot they fetched.
    """

    def __init__(self, initial: Optional[TariffConfig] = None):
        self._lock = threading.Lock()
        self._history: List[TariffConfig] = [initial] if initial else []

    def latest(self) -> TariffConfig:
        with self._lock:
            return self._history[-1] if self._history else DEFAULT_TARIFF_CONFIG

    def save(self, values: TariffValues) -> TariffConfig:
        with self._lock:
            version = (self._history[-1].version if self._history else DEFAULT_TARIFF_CONFIG.version) + 1
            config = config_from_values(values, version)
            self._history.append(config)
            return config
