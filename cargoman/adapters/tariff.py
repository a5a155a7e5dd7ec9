"""
Database Tariff Backend — tier and transport rate lookup from the tariff tables.

Usage:
    from cargoman.adapters import get_tariff_backend

    tariff = get_tariff_backend()
    tier = tariff.find_tier("co-1", "UAE", "Dubai", Decimal("5.000"))

Settings:
    CARGOMAN = {
        "TARIFF_BACKEND": "cargoman.adapters.tariff.DatabaseTariffBackend",
    }
"""

from __future__ import annotations

import logging
import threading
from decimal import Decimal

from django.core.exceptions import ImproperlyConfigured
from django.db.models import Q
from django.utils.module_loading import import_string

from cargoman.conf import cargoman_settings
from cargoman.protocols.tariff import RateMatch, TariffBackend, TierMatch

logger = logging.getLogger(__name__)


class DatabaseTariffBackend:
    """
    Reads PricingTier and TransportRate rows.

    Company-specific rows win over platform defaults (empty company_id).
    Among tiers of the same scope the narrowest band wins.
    """

    def find_tier(self, company_id: str, country: str, city: str, volume: Decimal) -> TierMatch | None:
        from cargoman.models import PricingTier

        qs = (
            PricingTier.objects.active()
            .covering(volume)
            .filter(city__iexact=city)
            .filter(Q(company_id=company_id) | Q(company_id=''))
        )
        if country:
            qs = qs.filter(Q(country='') | Q(country__iexact=country))

        candidates = sorted(qs, key=lambda t: (t.company_id == '', -t.volume_min, t.pk))
        if not candidates:
            return None

        tier = candidates[0]
        return TierMatch(
            tier_id=str(tier.pk),
            base_price=tier.base_price,
            warehouse_ops_rate=tier.warehouse_ops_rate,
            volume_min=tier.volume_min,
            volume_max=tier.volume_max,
        )

    def find_transport_rate(
        self, company_id: str, city: str, trip_type: str, vehicle_type: str,
    ) -> RateMatch | None:
        from cargoman.models import TransportRate

        qs = TransportRate.objects.filter(
            is_active=True,
            city__iexact=city,
            trip_type=trip_type,
            vehicle_type__iexact=vehicle_type,
        ).filter(Q(company_id=company_id) | Q(company_id=''))

        candidates = sorted(qs, key=lambda r: (r.company_id == '', r.pk))
        if not candidates:
            return None
        return RateMatch(rate_id=str(candidates[0].pk), rate=candidates[0].rate)


# Cached backend instance
_lock = threading.Lock()
_tariff_backend: TariffBackend | None = None


def get_tariff_backend() -> TariffBackend:
    """
    Return the configured tariff backend.

    Raises:
        ImproperlyConfigured: If TARIFF_BACKEND cannot be imported
    """
    global _tariff_backend

    if _tariff_backend is None:
        with _lock:
            if _tariff_backend is None:  # double-checked
                backend_path = cargoman_settings.TARIFF_BACKEND
                try:
                    _tariff_backend = import_string(backend_path)()
                    logger.debug("Loaded tariff backend: %s", backend_path)
                except ImportError as e:
                    raise ImproperlyConfigured(
                        f"Failed to import tariff backend '{backend_path}': {e}"
                    ) from e

    return _tariff_backend


def reset_tariff_backend() -> None:
    """Reset the cached backend. Useful for testing."""
    global _tariff_backend
    _tariff_backend = None
