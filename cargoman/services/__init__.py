"""
Cargo services — one class per area of the fulfillment engine.

    from cargoman.services import CargoLedger, CargoOrders, CargoScanning

The facade in cargoman.service delegates to these.
"""

from cargoman.services.assets import CargoAssets
from cargoman.services.inbound import CargoInbound
from cargoman.services.ledger import CargoLedger
from cargoman.services.line_items import CargoLineItemRequests
from cargoman.services.orders import CargoOrders
from cargoman.services.pricing import CargoPricing
from cargoman.services.reskins import CargoReskins
from cargoman.services.scanning import CargoScanning

__all__ = [
    'CargoAssets',
    'CargoInbound',
    'CargoLedger',
    'CargoLineItemRequests',
    'CargoOrders',
    'CargoPricing',
    'CargoReskins',
    'CargoScanning',
]
