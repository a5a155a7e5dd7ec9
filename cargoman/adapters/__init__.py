"""
Cargoman Adapters.

Implementations of protocols for external collaborators.
"""

from cargoman.adapters.authorization import (
    CapabilityAuthorizer,
    get_authorizer,
    require,
    reset_authorizer,
)
from cargoman.adapters.notifications import (
    LoggingNotifier,
    dispatch,
    get_notifier,
    reset_notifier,
)
from cargoman.adapters.static import StaticTariffBackend
from cargoman.adapters.tariff import (
    DatabaseTariffBackend,
    get_tariff_backend,
    reset_tariff_backend,
)

__all__ = [
    "CapabilityAuthorizer",
    "get_authorizer",
    "require",
    "reset_authorizer",
    "LoggingNotifier",
    "dispatch",
    "get_notifier",
    "reset_notifier",
    "StaticTariffBackend",
    "DatabaseTariffBackend",
    "get_tariff_backend",
    "reset_tariff_backend",
]
