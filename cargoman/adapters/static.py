"""
Static Tariff Backend — in-memory tiers and rates for development and testing.

Usage in settings.py:
    CARGOMAN = {
        "TARIFF_BACKEND": "cargoman.adapters.static.StaticTariffBackend",
        "STATIC_TARIFF": {
            "tiers": [
                {"city": "Dubai", "volume_min": "0", "volume_max": "10",
                 "base_price": "500.00", "warehouse_ops_rate": "20.00"},
            ],
            "rates": [
                {"city": "Dubai", "trip_type": "ROUND_TRIP",
                 "vehicle_type": "STANDARD", "rate": "200.00"},
            ],
        },
    }

WARNING: Rates live in settings and are not audited. Use the database
backend in production.
"""

from __future__ import annotations

from decimal import Decimal

from cargoman.conf import cargoman_settings
from cargoman.protocols.tariff import RateMatch, TierMatch


def _dec(value) -> Decimal | None:
    return None if value is None else Decimal(str(value))


class StaticTariffBackend:
    """
    Tariff lookup over plain dicts.

    Matching follows DatabaseTariffBackend: case-insensitive city,
    company-specific entries first, narrowest band first.
    """

    def __init__(self, tiers: list[dict] | None = None, rates: list[dict] | None = None):
        if tiers is None and rates is None:
            config = cargoman_settings.STATIC_TARIFF
            tiers = config.get('tiers', [])
            rates = config.get('rates', [])
        self.tiers = list(tiers or [])
        self.rates = list(rates or [])

    def find_tier(self, company_id: str, country: str, city: str, volume: Decimal) -> TierMatch | None:
        matches = []
        for index, tier in enumerate(self.tiers):
            if not tier.get('is_active', True):
                continue
            if tier['city'].lower() != city.lower():
                continue
            if tier.get('company_id', '') not in ('', company_id):
                continue
            tier_country = tier.get('country', '')
            if country and tier_country and tier_country.lower() != country.lower():
                continue
            low = _dec(tier.get('volume_min', 0))
            high = _dec(tier.get('volume_max'))
            if volume < low or (high is not None and volume >= high):
                continue
            matches.append((tier.get('company_id', '') == '', -low, index, tier))

        if not matches:
            return None

        _, _, index, tier = min(matches, key=lambda m: m[:3])
        return TierMatch(
            tier_id=str(tier.get('id', f"static:{index}")),
            base_price=_dec(tier['base_price']),
            warehouse_ops_rate=_dec(tier.get('warehouse_ops_rate', 0)),
            volume_min=_dec(tier.get('volume_min', 0)),
            volume_max=_dec(tier.get('volume_max')),
        )

    def find_transport_rate(
        self, company_id: str, city: str, trip_type: str, vehicle_type: str,
    ) -> RateMatch | None:
        matches = [
            (rate.get('company_id', '') == '', index, rate)
            for index, rate in enumerate(self.rates)
            if rate.get('is_active', True)
            and rate['city'].lower() == city.lower()
            and rate['trip_type'] == trip_type
            and rate['vehicle_type'].lower() == vehicle_type.lower()
            and rate.get('company_id', '') in ('', company_id)
        ]
        if not matches:
            return None

        _, index, rate = min(matches, key=lambda m: m[:2])
        return RateMatch(rate_id=str(rate.get('id', f"static:{index}")), rate=_dec(rate['rate']))
