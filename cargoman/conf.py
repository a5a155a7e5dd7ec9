"""
Cargoman configuration.

Usage in settings.py:
    CARGOMAN = {
        "DEFAULT_MARGIN_PERCENT": "25.00",
        "REQUIRE_TRUCK_PHOTOS_TO_CLOSE": True,
        "TARIFF_BACKEND": "cargoman.adapters.tariff.DatabaseTariffBackend",
        "AUTHORIZER": "cargoman.adapters.authorization.CapabilityAuthorizer",
        "NOTIFIER": "cargoman.adapters.notifications.LoggingNotifier",
    }
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from django.conf import settings


@dataclass
class CargomanSettings:
    """Cargoman configuration settings."""

    # Margin applied when an order has no explicit percent or override
    DEFAULT_MARGIN_PERCENT: Decimal = Decimal('25.00')

    # Orders cannot reach CLOSED without at least one truck photo
    REQUIRE_TRUCK_PHOTOS_TO_CLOSE: bool = False

    # Collaborator backends (dotted paths)
    TARIFF_BACKEND: str = "cargoman.adapters.tariff.DatabaseTariffBackend"
    AUTHORIZER: str = "cargoman.adapters.authorization.CapabilityAuthorizer"
    NOTIFIER: str = "cargoman.adapters.notifications.LoggingNotifier"

    # Write an availability checkpoint every N ledger entries per asset (0 = never)
    CHECKPOINT_INTERVAL: int = 500

    CURRENCY: str = "AED"

    # Tiers and rates served by adapters.static.StaticTariffBackend
    STATIC_TARIFF: dict = field(default_factory=dict)

    def __post_init__(self):
        self.DEFAULT_MARGIN_PERCENT = Decimal(str(self.DEFAULT_MARGIN_PERCENT))


def get_cargoman_settings() -> CargomanSettings:
    """Load settings from Django settings."""
    user_settings: dict[str, Any] = getattr(settings, "CARGOMAN", {})
    return CargomanSettings(**{
        k: v for k, v in user_settings.items()
        if k in CargomanSettings.__dataclass_fields__
    })


class _LazySettings:
    """Lazy proxy that re-reads settings on every attribute access."""

    def __getattr__(self, name):
        return getattr(get_cargoman_settings(), name)


cargoman_settings = _LazySettings()
