"""
Scanning — outbound/inbound scan sessions per order.

Per order and direction:

    NOT_STARTED ──first scan──► IN_PROGRESS ──all lines scanned──► COMPLETE

Completion advances the order exactly once, while the session row is
locked:
- OUTBOUND: IN_PREPARATION → READY_FOR_DELIVERY → IN_TRANSIT
- INBOUND:  AWAITING_RETURN → RETURN_IN_TRANSIT → CLOSED
  (stops at RETURN_IN_TRANSIT while required truck photos are missing)
"""

import logging
from dataclasses import dataclass

from django.db import transaction
from django.db.models import Sum
from django.utils import timezone

from cargoman.adapters.authorization import require
from cargoman.capabilities import Actor, Capability
from cargoman.conf import cargoman_settings
from cargoman.exceptions import RuleViolation, ValidationFailed
from cargoman.models.asset import Asset
from cargoman.models.enums import (
    AssetStatus,
    OrderStatus,
    ReservationStatus,
    ScanDirection,
    ScanStatus,
)
from cargoman.models.order import Order
from cargoman.models.reservation import Reservation
from cargoman.models.scan import ScanEvent, ScanSession
from cargoman.services.ledger import CargoLedger
from cargoman.services.lifecycle import lock

logger = logging.getLogger('cargoman')

SCANNABLE = {
    ScanDirection.OUTBOUND: frozenset({OrderStatus.IN_PREPARATION, OrderStatus.READY_FOR_DELIVERY}),
    ScanDirection.INBOUND: frozenset({OrderStatus.AWAITING_RETURN, OrderStatus.RETURN_IN_TRANSIT}),
}

PHOTO_STATUSES = {
    ScanDirection.OUTBOUND: SCANNABLE[ScanDirection.OUTBOUND] | {OrderStatus.IN_TRANSIT},
    ScanDirection.INBOUND: SCANNABLE[ScanDirection.INBOUND],
}

CAPABILITY = {
    ScanDirection.OUTBOUND: Capability.SCAN_OUT,
    ScanDirection.INBOUND: Capability.SCAN_IN,
}


@dataclass(frozen=True)
class LineProgress:
    asset_id: int
    asset_name: str
    expected: int
    scanned: int

    @property
    def remaining(self) -> int:
        return self.expected - self.scanned

    @property
    def is_complete(self) -> bool:
        return self.scanned >= self.expected


@dataclass(frozen=True)
class ScanProgress:
    order_id: int
    direction: str
    status: str
    lines: tuple[LineProgress, ...]
    truck_photos: tuple[str, ...] = ()

    @property
    def total_expected(self) -> int:
        return sum(line.expected for line in self.lines)

    @property
    def total_scanned(self) -> int:
        return sum(line.scanned for line in self.lines)

    @property
    def percent(self) -> int:
        if not self.total_expected:
            return 0
        return round(self.total_scanned * 100 / self.total_expected)

    @property
    def is_complete(self) -> bool:
        return self.status == ScanStatus.COMPLETE


def expected_quantities(order: Order, direction: str) -> dict[int, int]:
    """
    Expected quantity per asset.

    OUTBOUND: the order items. INBOUND: what actually went out.
    """
    if direction == ScanDirection.OUTBOUND:
        return {item.asset_id: item.quantity for item in order.items.all()}

    rows = (
        Reservation.objects.for_order(order)
        .exclude(status=ReservationStatus.RELEASED)
        .filter(scanned_out__gt=0)
        .values('asset_id')
        .annotate(out=Sum('scanned_out'))
    )
    return {row['asset_id']: row['out'] for row in rows}


def scanned_quantities(order: Order, direction: str) -> dict[int, int]:
    rows = (
        ScanEvent.objects.filter(order=order, direction=direction)
        .values('asset_id')
        .annotate(scanned=Sum('quantity'))
    )
    return {row['asset_id']: row['scanned'] for row in rows}


def is_scan_complete(order: Order, direction: str) -> bool:
    return ScanSession.objects.filter(
        order=order, direction=direction, status=ScanStatus.COMPLETE,
    ).exists()


def _lock_session(order: Order, direction: str) -> ScanSession:
    ScanSession.objects.get_or_create(order=order, direction=direction)
    return ScanSession.objects.select_for_update().get(order=order, direction=direction)


def _photos_ok(order: Order) -> bool:
    return not cargoman_settings.REQUIRE_TRUCK_PHOTOS_TO_CLOSE or bool(order.truck_photos)


class CargoScanning:
    """Scan recording, progress and completion."""

    @classmethod
    def record_scan(cls, order: Order, asset, direction: str, quantity: int, actor: Actor,
                    condition: str = '', notes: str = '', discrepancy_reason: str = '') -> ScanEvent:
        """
        Record a scanned quantity of one asset.

        Checks, in order: capability, positive quantity, scannable order
        status, asset not transformed, asset on the order, one unit for
        individually tracked assets, no over-scan. Then the ledger is
        updated and the event appended, all in one transaction.

        Raises:
            CargoError('ASSET_TRANSFORMED'): data['successor_id'] is the asset to scan instead
            CargoError('SCAN_NOT_ALLOWED' | 'ASSET_NOT_ON_ORDER' | 'OVER_SCAN'
                       | 'INDIVIDUAL_SCAN_QUANTITY' | 'INVALID_QUANTITY')
        """
        require(actor, CAPABILITY[direction])
        if not isinstance(quantity, int) or quantity <= 0:
            raise ValidationFailed('INVALID_QUANTITY', requested=quantity)

        with transaction.atomic():
            locked = lock(order)
            if locked.status not in SCANNABLE[direction]:
                raise RuleViolation(
                    'SCAN_NOT_ALLOWED',
                    reference=locked.reference,
                    status=locked.status,
                    direction=direction,
                )

            session = _lock_session(locked, direction)

            try:
                asset = Asset.objects.get(pk=getattr(asset, 'pk', asset))
            except Asset.DoesNotExist:
                raise ValidationFailed('NOT_FOUND', model='Asset', pk=getattr(asset, 'pk', asset)) from None
            if asset.status == AssetStatus.TRANSFORMED:
                raise RuleViolation(
                    'ASSET_TRANSFORMED',
                    asset_id=asset.pk,
                    successor_id=asset.successor().pk,
                )

            expected = expected_quantities(locked, direction)
            if asset.pk not in expected:
                raise RuleViolation('ASSET_NOT_ON_ORDER', asset_id=asset.pk, reference=locked.reference)
            if asset.is_individual and quantity != 1:
                raise ValidationFailed('INDIVIDUAL_SCAN_QUANTITY', asset_id=asset.pk, requested=quantity)

            scanned = scanned_quantities(locked, direction).get(asset.pk, 0)
            if scanned + quantity > expected[asset.pk]:
                raise RuleViolation(
                    'OVER_SCAN',
                    asset_id=asset.pk,
                    expected=expected[asset.pk],
                    scanned=scanned,
                    requested=quantity,
                )

            if direction == ScanDirection.OUTBOUND:
                CargoLedger.record_scan_out(quantity, asset, locked, actor)
            else:
                CargoLedger.record_scan_in(quantity, asset, locked, actor, condition=condition or None)

            event = ScanEvent.objects.create(
                order=locked,
                asset=asset,
                direction=direction,
                quantity=quantity,
                condition=condition,
                notes=notes,
                discrepancy_reason=discrepancy_reason,
                scanned_by=str(actor),
            )

            fields = []
            if session.status == ScanStatus.NOT_STARTED:
                session.status = ScanStatus.IN_PROGRESS
                session.started_at = timezone.now()
                fields += ['status', 'started_at']

            done = scanned_quantities(locked, direction)
            just_completed = (
                session.status != ScanStatus.COMPLETE
                and all(done.get(pk, 0) >= qty for pk, qty in expected.items())
            )
            if just_completed:
                session.status = ScanStatus.COMPLETE
                session.completed_at = timezone.now()
                fields += ['status', 'completed_at']

            if fields:
                session.save(update_fields=list(dict.fromkeys(fields)))

            logger.info(
                "cargo.scan.recorded",
                extra={
                    "reference": locked.reference,
                    "asset_id": asset.pk,
                    "direction": direction,
                    "qty": quantity,
                    "actor_id": str(actor),
                },
            )

            if just_completed:
                cls._on_complete(locked, direction, actor)

        return event

    @classmethod
    def _on_complete(cls, order: Order, direction: str, actor: Actor) -> Order:
        """Advance the order after a session completes. Runs once per session."""
        from cargoman.services.orders import ORDER_WORKFLOW

        logger.info(
            "cargo.scan.completed",
            extra={"reference": order.reference, "direction": direction},
        )

        if direction == ScanDirection.OUTBOUND:
            if order.status == OrderStatus.IN_PREPARATION:
                order = ORDER_WORKFLOW.run(order, OrderStatus.READY_FOR_DELIVERY, actor, automatic=True)
            return ORDER_WORKFLOW.run(order, OrderStatus.IN_TRANSIT, actor, automatic=True)

        if order.status == OrderStatus.AWAITING_RETURN:
            order = ORDER_WORKFLOW.run(order, OrderStatus.RETURN_IN_TRANSIT, actor, automatic=True)
        return cls._close_if_ready(order, actor)

    @classmethod
    def _close_if_ready(cls, order: Order, actor: Actor) -> Order:
        from cargoman.services.orders import ORDER_WORKFLOW

        if order.status != OrderStatus.RETURN_IN_TRANSIT or not is_scan_complete(order, ScanDirection.INBOUND):
            return order
        if not _photos_ok(order):
            logger.info(
                "cargo.scan.close_blocked",
                extra={"reference": order.reference, "missing": "truck_photos"},
            )
            return order
        return ORDER_WORKFLOW.run(order, OrderStatus.CLOSED, actor, automatic=True)

    @classmethod
    def upload_truck_photos(cls, order: Order, direction: str, photos: list[str], actor: Actor) -> ScanSession:
        """
        Attach truck photo references to a scan session.

        Never blocks scanning. An order held at RETURN_IN_TRANSIT for
        missing photos closes once they arrive.
        """
        require(actor, Capability.CAPTURE_TRUCK_PHOTOS)
        photos = [p for p in photos if p]
        if not photos:
            raise ValidationFailed('INVALID_QUANTITY', field='photos', requested=0)

        with transaction.atomic():
            locked = lock(order)
            if locked.status not in PHOTO_STATUSES[direction]:
                raise RuleViolation(
                    'SCAN_NOT_ALLOWED',
                    reference=locked.reference,
                    status=locked.status,
                    direction=direction,
                )
            session = _lock_session(locked, direction)
            session.truck_photos = [*session.truck_photos, *photos]
            session.save(update_fields=['truck_photos'])

            logger.info(
                "cargo.scan.truck_photos",
                extra={"reference": locked.reference, "direction": direction, "count": len(photos)},
            )

            if direction == ScanDirection.INBOUND:
                cls._close_if_ready(locked, actor)

        return session

    @classmethod
    def progress(cls, order: Order, direction: str, actor: Actor) -> ScanProgress:
        """Per-asset expected, scanned and remaining quantities."""
        require(actor, Capability.VIEW_SCAN_PROGRESS)
        session = ScanSession.objects.filter(order=order, direction=direction).first()
        expected = expected_quantities(order, direction)
        scanned = scanned_quantities(order, direction)
        names = dict(Asset.objects.filter(pk__in=expected).values_list('pk', 'name'))

        return ScanProgress(
            order_id=order.pk,
            direction=direction,
            status=session.status if session else ScanStatus.NOT_STARTED,
            lines=tuple(
                LineProgress(
                    asset_id=pk,
                    asset_name=names.get(pk, ''),
                    expected=qty,
                    scanned=scanned.get(pk, 0),
                )
                for pk, qty in sorted(expected.items())
            ),
            truck_photos=tuple(session.truck_photos) if session else (),
        )
