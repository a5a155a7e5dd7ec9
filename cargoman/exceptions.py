"""
Exceptions for Cargoman.

All errors are CargoError with a structured code for programmatic handling.
The subclasses group codes by how a caller is expected to react:

- ValidationFailed: bad input shape, nothing was touched
- RuleViolation: the request conflicts with a business rule
- AvailabilityExhausted: not enough free quantity to reserve
- ConfigurationGap: tariff configuration is missing, order stays pending
- IntegrityViolation: the write would corrupt derived state (always logged)
"""

import logging
from decimal import Decimal
from typing import Any

logger = logging.getLogger('cargoman')


class BaseError(Exception):
    """
    Exception carrying a stable code, a human-readable message and context.

    Subclasses provide `_default_messages` keyed by code; an explicit
    message always wins.
    """

    _default_messages: dict[str, str] = {}

    def __init__(self, code: str, message: str | None = None, **data: Any):
        self.code = code
        self.message = message or self._default_messages.get(code, code)
        self.data = data
        super().__init__(f"[{code}] {self.message}")

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, data={self.data!r})"


class CargoError(BaseError):
    """
    Structured exception for fulfillment operations.

    Usage:
        try:
            cargo.reserve(6, asset, order, actor)
        except CargoError as e:
            if e.code == 'INSUFFICIENT_AVAILABILITY':
                print(f"Only {e.available} left")

    Attributes:
        code: Error code for programmatic handling
        message: Human-readable message
        data: Additional context data
    """

    kind = 'error'

    _default_messages = {
        # Validation
        'INVALID_QUANTITY': 'Quantity must be a positive integer',
        'EMPTY_ORDER': 'An order needs at least one item before submission',
        'REASON_REQUIRED': 'A reason is required',
        'NOTE_REQUIRED': 'A note is required for this transition',
        'JUSTIFICATION_REQUIRED': 'Custom line items require a justification',
        'INDIVIDUAL_SCAN_QUANTITY': 'Individually tracked assets are scanned one unit at a time',
        'NOT_FOUND': 'Record not found',
        'LOCATION_REQUIRED': 'Warehouse and zone are required',
        'INVALID_AMOUNT': 'Amount is not a valid number or is out of range',
        'UNKNOWN_FIELD': 'Unknown field',
        'FIELD_REQUIRED': 'A required field is missing',
        # Business rules
        'ITEMS_LOCKED': 'Items can no longer be changed at this stage',
        'CANNOT_CANCEL_AT_CURRENT_STAGE': 'Cancellation is not allowed at the current stage',
        'INVALID_TRANSITION': 'Status transition is not allowed',
        'OVER_SCAN': 'Scanned quantity exceeds the expected quantity',
        'ASSET_TRANSFORMED': 'Asset was transformed, use its successor',
        'ASSET_RETIRED': 'Asset is retired',
        'ASSET_IN_USE': 'Asset has units booked, out or in maintenance',
        'ASSET_NOT_ON_ORDER': 'Asset is not part of this order',
        'SCAN_NOT_ALLOWED': 'Scanning is not allowed at the current stage',
        'SCAN_INCOMPLETE': 'Scanning is not complete',
        'TRUCK_PHOTOS_REQUIRED': 'Truck photos are required before closing',
        'FABRICATION_PENDING': 'Reskin requests are still pending',
        'UNITS_OUT': 'Units of this reservation are still out of the warehouse',
        'RESERVATION_NOT_ACTIVE': 'Reservation is no longer active',
        'ORDER_NOT_ACTIVE': 'Order is closed, cancelled or declined',
        'STALE_PRICING': 'Pricing changed since it was reviewed',
        'PERMISSION_DENIED': 'Actor lacks the required capability',
        # Resources
        'INSUFFICIENT_AVAILABILITY': 'Requested quantity is not available',
        # Configuration
        'PRICING_INCOMPLETE': 'Pricing could not be calculated, tariff configuration is missing',
        # Integrity
        'STALE_PRICING_WRITE': 'Refusing to overwrite newer pricing',
        'NEGATIVE_AVAILABILITY': 'Operation would drive a counter negative',
        'IMMUTABLE_RECORD': 'Record is append-only',
    }

    @property
    def available(self) -> int:
        """Shortcut for data['available']."""
        return self.data.get('available', 0)

    @property
    def requested(self) -> int:
        """Shortcut for data['requested']."""
        return self.data.get('requested', 0)

    def as_dict(self) -> dict[str, Any]:
        """Serialize to dict (useful for APIs)."""
        return {
            'kind': self.kind,
            'code': self.code,
            'message': self.message,
            'data': {
                k: str(v) if isinstance(v, Decimal) else v
                for k, v in self.data.items()
            }
        }


class ValidationFailed(CargoError):
    kind = 'validation'


class RuleViolation(CargoError):
    kind = 'conflict'


class AvailabilityExhausted(CargoError):
    kind = 'exhausted'


class ConfigurationGap(CargoError):
    kind = 'configuration'


class IntegrityViolation(CargoError):
    """Raised for writes that would corrupt derived state. Logged on creation."""

    kind = 'integrity'

    def __init__(self, code: str, message: str | None = None, **data: Any):
        super().__init__(code, message, **data)
        logger.error(
            "cargo.integrity.violation",
            extra={"code": code, "context": {k: str(v) for k, v in data.items()}},
        )
