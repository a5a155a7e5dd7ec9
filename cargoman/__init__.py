"""
Django Cargoman — event asset fulfillment engine.

Availability ledger, order and inbound lifecycles, pricing and scanning.

Usage:
    from cargoman import cargo, CargoError, Actor

    cargo.reserve(6, asset, order, actor)
    cargo.snapshot(asset).available  # 4
"""


def __getattr__(name):
    """Lazy import to avoid circular imports during app loading."""
    if name == 'cargo':
        from cargoman.service import Cargo
        return Cargo
    elif name == 'CargoError':
        from cargoman.exceptions import CargoError
        return CargoError
    elif name == 'Actor':
        from cargoman.capabilities import Actor
        return Actor
    elif name == 'Capability':
        from cargoman.capabilities import Capability
        return Capability
    elif name == 'Asset':
        from cargoman.models.asset import Asset
        return Asset
    elif name == 'Reservation':
        from cargoman.models.reservation import Reservation
        return Reservation
    elif name == 'LedgerEntry':
        from cargoman.models.ledger import LedgerEntry
        return LedgerEntry
    elif name == 'Order':
        from cargoman.models.order import Order
        return Order
    elif name == 'InboundRequest':
        from cargoman.models.inbound import InboundRequest
        return InboundRequest
    elif name == 'OrderStatus':
        from cargoman.models.enums import OrderStatus
        return OrderStatus
    elif name == 'InboundRequestStatus':
        from cargoman.models.enums import InboundRequestStatus
        return InboundRequestStatus
    elif name == 'ScanDirection':
        from cargoman.models.enums import ScanDirection
        return ScanDirection
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    'cargo',
    'CargoError',
    'Actor',
    'Capability',
    'Asset',
    'Reservation',
    'LedgerEntry',
    'Order',
    'InboundRequest',
    'OrderStatus',
    'InboundRequestStatus',
    'ScanDirection',
]

__version__ = '0.1.0'
