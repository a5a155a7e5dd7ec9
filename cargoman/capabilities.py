"""
Capabilities and actors.

Permissions are enumerated tags of the form "resource:action". A grant of
"resource:*" covers every capability of that resource. Wildcards are
expanded once per check against the enumeration, so unknown strings never
match anything.

Usage:
    actor = Actor.from_template('u-1', 'LOGISTICS_STAFF')
    get_authorizer().is_allowed(actor, Capability.SCAN_OUT)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Capability(str, Enum):
    # Orders
    ORDERS_CREATE = "orders:create"
    ORDERS_READ = "orders:read"
    ORDERS_UPDATE = "orders:update"
    ORDERS_CANCEL = "orders:cancel"

    # Pricing & quotes
    PRICING_REVIEW = "pricing:review"
    PRICING_ADJUST = "pricing:adjust"
    PRICING_ADJUST_MARGIN = "pricing:adjust_margin"
    PRICING_APPROVE = "pricing:pmg_approve"
    PRICING_REQUEST_LINE_ITEM = "pricing:request_line_item"
    QUOTES_APPROVE = "quotes:approve"
    QUOTES_DECLINE = "quotes:decline"

    # Lifecycle
    LIFECYCLE_PROGRESS = "lifecycle:progress_status"

    # Scanning
    SCAN_OUT = "scanning:scan_out"
    SCAN_IN = "scanning:scan_in"
    CAPTURE_TRUCK_PHOTOS = "scanning:capture_truck_photos"
    VIEW_SCAN_PROGRESS = "scanning:view_progress"

    # Assets & inventory
    ASSETS_CREATE = "assets:create"
    ASSETS_UPDATE = "assets:update"
    ASSETS_DELETE = "assets:delete"
    INVENTORY_RESERVE = "inventory:reserve_assets"
    INVENTORY_RELEASE = "inventory:release_assets"
    CONDITIONS_UPDATE = "conditions:update"
    CONDITIONS_COMPLETE_MAINTENANCE = "conditions:complete_maintenance"

    @property
    def resource(self) -> str:
        return self.value.split(':', 1)[0]

    def __str__(self) -> str:
        return self.value


TEMPLATES: dict[str, tuple[str, ...]] = {
    'PLATFORM_ADMIN': (
        'orders:*',
        'pricing:*',
        'quotes:*',
        'lifecycle:*',
        'scanning:*',
        'assets:*',
        'inventory:*',
        'conditions:*',
    ),
    'LOGISTICS_STAFF': (
        'assets:*',
        'orders:read',
        'orders:update',
        'pricing:review',
        'pricing:adjust',
        'pricing:request_line_item',
        'lifecycle:progress_status',
        'scanning:*',
        'inventory:*',
        'conditions:*',
    ),
    'CLIENT_USER': (
        'assets:read',
        'orders:create',
        'orders:read',
        'orders:update',
        'quotes:approve',
        'quotes:decline',
    ),
}


def expand(permissions) -> frozenset[Capability]:
    """Resolve permission strings (with wildcards) to the capabilities they grant."""
    granted = set()
    for permission in permissions:
        if permission.endswith(':*'):
            resource = permission[:-2]
            granted.update(cap for cap in Capability if cap.resource == resource)
            continue
        try:
            granted.add(Capability(permission))
        except ValueError:
            continue
    return frozenset(granted)


@dataclass(frozen=True)
class Actor:
    """Who is performing an operation. Passed explicitly to every call."""

    id: str
    permissions: frozenset[str] = field(default_factory=frozenset)
    company_id: str | None = None
    is_super_admin: bool = False
    is_active: bool = True

    @classmethod
    def from_template(cls, id: str, template: str, **kwargs) -> Actor:
        return cls(id=id, permissions=frozenset(TEMPLATES[template]), **kwargs)

    def __str__(self) -> str:
        return self.id
