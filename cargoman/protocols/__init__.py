"""
Cargoman Protocols.

Defines interfaces for external collaborators.
"""

from cargoman.protocols.authorization import Authorizer
from cargoman.protocols.notifications import Notifier, StatusChanged
from cargoman.protocols.tariff import RateMatch, TariffBackend, TierMatch

__all__ = [
    "Authorizer",
    "Notifier",
    "StatusChanged",
    "RateMatch",
    "TariffBackend",
    "TierMatch",
]
