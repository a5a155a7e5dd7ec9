"""
Tariff Backend Protocol.

Defines how the pricing engine looks up tier and transport rates. The
default implementation reads the PricingTier and TransportRate tables;
any other source (a rate-card service, a fixture) can be plugged in via
settings.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol, runtime_checkable


# ══════════════════════════════════════════════════════════════
# DATA TYPES
# ══════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class TierMatch:
    """Pricing tier covering a volume band."""

    tier_id: str
    base_price: Decimal
    warehouse_ops_rate: Decimal
    volume_min: Decimal
    volume_max: Decimal | None = None


@dataclass(frozen=True)
class RateMatch:
    """Transport rate for one trip."""

    rate_id: str
    rate: Decimal


# ══════════════════════════════════════════════════════════════
# PROTOCOL
# ══════════════════════════════════════════════════════════════


@runtime_checkable
class TariffBackend(Protocol):
    """
    Protocol for tariff lookup.

    Both lookups return None when nothing is configured; the pricing
    engine turns that into a configuration-gap result.
    """

    def find_tier(
        self,
        company_id: str,
        country: str,
        city: str,
        volume: Decimal,
    ) -> TierMatch | None:
        """
        Find the tier whose band covers `volume` (min inclusive, max exclusive).

        A company-specific tier wins over the platform default.
        """
        ...

    def find_transport_rate(
        self,
        company_id: str,
        city: str,
        trip_type: str,
        vehicle_type: str,
    ) -> RateMatch | None:
        """Find the flat rate for one trip."""
        ...
