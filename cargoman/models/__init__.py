"""
Cargoman Models.

Core models for asset fulfillment:
- Asset: Trackable item with availability caches
- LedgerEntry: Immutable ledger of availability changes
- AvailabilityCheckpoint: Folded counters for fast replay
- Reservation: Quantity held for an order
- Order / InboundRequest: Lifecycle-managed requests
- PricingTier / TransportRate / ServiceType: Tariff tables
- LineItem / TransportTrip: Pricing inputs
- LineItemRequest: Staff-proposed charge awaiting admin review
- ScanSession / ScanEvent: Physical fulfillment progress
- StatusHistory: Append-only transition log
- ReskinRequest: Fabrication work
"""

from cargoman.models.asset import Asset
from cargoman.models.enums import (
    AssetStatus,
    BillingMode,
    Condition,
    DiscrepancyReason,
    FinancialStatus,
    InboundRequestStatus,
    LedgerKind,
    LineItemRequestStatus,
    LineItemType,
    OrderStatus,
    ReservationStatus,
    ReskinStatus,
    ScanDirection,
    ScanStatus,
    ServiceCategory,
    TrackingMethod,
    TripLeg,
    TripType,
)
from cargoman.models.history import StatusHistory
from cargoman.models.inbound import InboundRequest, InboundRequestItem
from cargoman.models.ledger import AvailabilityCheckpoint, LedgerEntry
from cargoman.models.order import Order, OrderItem
from cargoman.models.pricing import (
    LineItem,
    LineItemRequest,
    PricingTier,
    ServiceType,
    TransportRate,
    TransportTrip,
)
from cargoman.models.reservation import Reservation
from cargoman.models.reskin import ReskinRequest
from cargoman.models.scan import ScanEvent, ScanSession

__all__ = [
    'AssetStatus',
    'BillingMode',
    'Condition',
    'DiscrepancyReason',
    'FinancialStatus',
    'InboundRequestStatus',
    'LedgerKind',
    'LineItemRequestStatus',
    'LineItemType',
    'OrderStatus',
    'ReservationStatus',
    'ReskinStatus',
    'ScanDirection',
    'ScanStatus',
    'ServiceCategory',
    'TrackingMethod',
    'TripLeg',
    'TripType',
    'Asset',
    'LedgerEntry',
    'AvailabilityCheckpoint',
    'Reservation',
    'Order',
    'OrderItem',
    'InboundRequest',
    'InboundRequestItem',
    'PricingTier',
    'TransportRate',
    'ServiceType',
    'LineItem',
    'LineItemRequest',
    'TransportTrip',
    'ScanSession',
    'ScanEvent',
    'StatusHistory',
    'ReskinRequest',
]
