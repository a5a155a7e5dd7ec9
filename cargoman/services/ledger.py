"""
Availability ledger — reservations, scans and maintenance as ledger entries.

Every mutation locks the asset row, validates against the current
counters, then appends a LedgerEntry. The entries are the source of
truth; Asset caches and AvailabilityCheckpoint rows are derived from
their fold.
"""

import logging
from collections.abc import Iterable
from dataclasses import asdict, dataclass

from django.db import transaction
from django.utils import timezone

from cargoman.adapters.authorization import require
from cargoman.capabilities import Actor, Capability
from cargoman.conf import cargoman_settings
from cargoman.exceptions import (
    AvailabilityExhausted,
    IntegrityViolation,
    RuleViolation,
    ValidationFailed,
)
from cargoman.models.asset import Asset
from cargoman.models.enums import AssetStatus, Condition, LedgerKind, ReservationStatus
from cargoman.models.ledger import AvailabilityCheckpoint, LedgerEntry
from cargoman.models.order import Order
from cargoman.models.reservation import Reservation

logger = logging.getLogger('cargoman')

COUNTERS = ('total', 'booked', 'out', 'in_maintenance')

DEFAULT_REASONS = {
    LedgerKind.INTAKE: 'Intake',
    LedgerKind.RETIRE: 'Retired',
    LedgerKind.RESERVE: 'Reserved for order',
    LedgerKind.RELEASE: 'Reservation released',
    LedgerKind.SCAN_OUT: 'Scanned out',
    LedgerKind.SCAN_IN: 'Scanned in',
    LedgerKind.MAINTENANCE_IN: 'Sent to maintenance',
    LedgerKind.MAINTENANCE_OUT: 'Back from maintenance',
}


@dataclass(frozen=True)
class AvailabilitySnapshot:
    """Quantity breakdown of one asset."""

    asset_id: int
    total: int
    booked: int
    out: int
    in_maintenance: int

    @property
    def available(self) -> int:
        return self.total - self.booked - self.out - self.in_maintenance

    def as_dict(self) -> dict:
        return {**asdict(self), 'available': self.available}


def fold(entries: Iterable[LedgerEntry], start: dict[str, int] | None = None) -> dict[str, int]:
    """Apply entries in order to `start` (zeros by default)."""
    counters = dict.fromkeys(COUNTERS, 0)
    if start:
        counters.update(start)
    for entry in entries:
        for name, change in entry.effects().items():
            counters[name] += change
    return counters


def _asset_pk(asset) -> int:
    return getattr(asset, 'pk', asset)


def _lock_asset(asset) -> Asset:
    try:
        return Asset.objects.select_for_update().get(pk=_asset_pk(asset))
    except Asset.DoesNotExist:
        raise ValidationFailed('NOT_FOUND', model='Asset', pk=_asset_pk(asset)) from None


def _lock_order(order) -> Order:
    try:
        return Order.objects.select_for_update().get(pk=getattr(order, 'pk', order))
    except Order.DoesNotExist:
        raise ValidationFailed('NOT_FOUND', model='Order', pk=getattr(order, 'pk', order)) from None


def _check_positive(quantity) -> None:
    if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity <= 0:
        raise ValidationFailed('INVALID_QUANTITY', requested=quantity)


def check_usable(asset: Asset) -> None:
    """Reject transformed and retired assets, pointing at the successor."""
    if asset.status == AssetStatus.TRANSFORMED:
        raise RuleViolation(
            'ASSET_TRANSFORMED',
            asset_id=asset.pk,
            successor_id=asset.successor().pk,
        )
    if asset.status == AssetStatus.RETIRED:
        raise RuleViolation('ASSET_RETIRED', asset_id=asset.pk)


def _parse_reservation_id(reservation_id) -> int:
    """Accept a Reservation, its pk, or "reservation:{pk}"."""
    if isinstance(reservation_id, Reservation):
        return reservation_id.pk
    if isinstance(reservation_id, int):
        return reservation_id
    if reservation_id and str(reservation_id).startswith('reservation:'):
        try:
            return int(str(reservation_id).split(':')[1])
        except (IndexError, ValueError):
            pass
    raise ValidationFailed('NOT_FOUND', model='Reservation', pk=reservation_id)


def append(asset: Asset, kind: str, quantity: int, *, order=None, reservation=None,
           actor=None, reason: str = '', **metadata) -> LedgerEntry:
    """
    Append a ledger entry to a locked asset.

    The caller holds the asset row lock. In-memory counters of `asset` are
    advanced to match the database.

    Raises:
        IntegrityViolation('NEGATIVE_AVAILABILITY'): If the entry would drive
            any counter, or availability, below zero
    """
    entry = LedgerEntry(
        asset=asset,
        kind=kind,
        delta=quantity,
        order=order,
        reservation=reservation,
        actor=str(actor or ''),
        reason=reason or DEFAULT_REASONS[kind],
        metadata=metadata,
    )

    after = asset.counters()
    for name, change in entry.effects().items():
        after[name] += change
    if min(after.values()) < 0 or after['total'] < after['booked'] + after['out'] + after['in_maintenance']:
        raise IntegrityViolation(
            'NEGATIVE_AVAILABILITY',
            asset_id=asset.pk,
            kind=kind,
            delta=quantity,
            before=asset.counters(),
        )

    entry.save()
    for name, value in after.items():
        setattr(asset, f'_{name}', value)

    _maybe_checkpoint(asset)
    return entry


def _maybe_checkpoint(asset: Asset) -> None:
    interval = cargoman_settings.CHECKPOINT_INTERVAL
    if not interval:
        return
    last = asset.checkpoints.values_list('last_entry_id', flat=True).first() or 0
    if asset.ledger_entries.filter(pk__gt=last).count() >= interval:
        CargoLedger.checkpoint(asset)


class CargoLedger:
    """Availability ledger methods."""

    # ══════════════════════════════════════════════════════════════
    # QUERIES
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def snapshot(cls, asset) -> AvailabilitySnapshot:
        """
        Current quantity breakdown from the counter caches.

        O(1): reads one row. Use replay() for the ledger's answer.
        """
        try:
            row = Asset.objects.get(pk=_asset_pk(asset))
        except Asset.DoesNotExist:
            raise ValidationFailed('NOT_FOUND', model='Asset', pk=_asset_pk(asset)) from None
        return AvailabilitySnapshot(asset_id=row.pk, **row.counters())

    @classmethod
    def replay(cls, asset) -> dict[str, int]:
        """Fold ledger entries from the latest checkpoint."""
        pk = _asset_pk(asset)
        checkpoint = AvailabilityCheckpoint.objects.filter(asset_id=pk).first()
        entries = LedgerEntry.objects.filter(asset_id=pk).order_by('pk')
        if checkpoint is None:
            return fold(entries)
        return fold(entries.filter(pk__gt=checkpoint.last_entry_id), start=checkpoint.counters())

    # ══════════════════════════════════════════════════════════════
    # RESERVATIONS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def reserve(cls, quantity: int, asset, order, actor=None, **metadata) -> Reservation:
        """
        Hold `quantity` of `asset` for `order`.

        No authorization: callers check. The public entry point is
        reserve_for_order().

        Concurrency:
            The order row is locked first, then the asset row. The
            availability check and the RESERVE entry happen under the asset
            lock, so concurrent callers cannot jointly overcommit, and a
            concurrent cancel cannot miss the new reservation.

        Raises:
            CargoError('INSUFFICIENT_AVAILABILITY'): quantity > available
            CargoError('ASSET_TRANSFORMED' | 'ASSET_RETIRED')
            CargoError('ORDER_NOT_ACTIVE'): order is closed, cancelled or declined
        """
        _check_positive(quantity)

        with transaction.atomic():
            owner = _lock_order(order)
            if owner.is_terminal:
                raise RuleViolation(
                    'ORDER_NOT_ACTIVE',
                    reference=owner.reference,
                    status=owner.status,
                )
            locked = _lock_asset(asset)
            check_usable(locked)

            available = locked.available_quantity
            if quantity > available:
                raise AvailabilityExhausted(
                    'INSUFFICIENT_AVAILABILITY',
                    asset_id=locked.pk,
                    available=available,
                    requested=quantity,
                )

            reservation = Reservation.objects.create(
                asset=locked,
                order=order,
                quantity=quantity,
                actor=str(actor or ''),
                metadata=metadata,
            )
            append(locked, LedgerKind.RESERVE, quantity, order=order,
                   reservation=reservation, actor=actor)

        logger.info(
            "cargo.ledger.reserved",
            extra={
                "asset_id": locked.pk,
                "order_id": order.pk,
                "qty": quantity,
                "reservation_id": reservation.reservation_id,
            },
        )
        return reservation

    @classmethod
    def release(cls, reservation_id, actor=None, reason: str = 'Released') -> Reservation:
        """
        Release an active reservation, freeing its booked remainder.

        Transition: ACTIVE -> RELEASED

        Raises:
            CargoError('RESERVATION_NOT_ACTIVE')
            CargoError('UNITS_OUT'): scanned-out units have not come back
        """
        pk = _parse_reservation_id(reservation_id)

        with transaction.atomic():
            try:
                asset_id = Reservation.objects.values_list('asset_id', flat=True).get(pk=pk)
            except Reservation.DoesNotExist:
                raise ValidationFailed('NOT_FOUND', model='Reservation', pk=pk) from None

            # Asset before reservation, same order as every other writer
            locked = _lock_asset(asset_id)
            reservation = Reservation.objects.select_for_update().get(pk=pk)

            if reservation.status != ReservationStatus.ACTIVE:
                raise RuleViolation(
                    'RESERVATION_NOT_ACTIVE',
                    reservation_id=reservation.reservation_id,
                    current=reservation.status,
                )
            if reservation.on_site > 0:
                raise RuleViolation(
                    'UNITS_OUT',
                    reservation_id=reservation.reservation_id,
                    on_site=reservation.on_site,
                )

            if reservation.booked_remainder > 0:
                append(locked, LedgerKind.RELEASE, reservation.booked_remainder,
                       order=reservation.order, reservation=reservation,
                       actor=actor, reason=reason)

            reservation.status = ReservationStatus.RELEASED
            reservation.resolved_at = timezone.now()
            reservation.metadata['release_reason'] = reason
            reservation.save(update_fields=['status', 'resolved_at', 'metadata'])

        logger.info(
            "cargo.ledger.released",
            extra={"reservation_id": reservation.reservation_id, "reason": reason},
        )
        return reservation

    @classmethod
    def reserve_for_order(cls, quantity: int, asset, order, actor: Actor, **metadata) -> Reservation:
        """
        Reserve on behalf of `actor`.

        Raises:
            CargoError('PERMISSION_DENIED'): actor lacks inventory:reserve_assets
            Everything reserve() raises
        """
        require(actor, Capability.INVENTORY_RESERVE)
        return cls.reserve(quantity, asset, order, actor, **metadata)

    @classmethod
    def release_reservation(cls, reservation_id, actor: Actor, reason: str = 'Released') -> Reservation:
        """
        Release on behalf of `actor`.

        Raises:
            CargoError('PERMISSION_DENIED'): actor lacks inventory:release_assets
            Everything release() raises
        """
        require(actor, Capability.INVENTORY_RELEASE)
        return cls.release(reservation_id, actor=actor, reason=reason)

    @classmethod
    def release_for_order(cls, order, actor=None, reason: str = 'Order cancelled') -> int:
        """Release every active reservation of `order`. Returns how many."""
        with transaction.atomic():
            pks = list(
                Reservation.objects.active().for_order(order)
                .order_by('asset_id', 'pk')
                .values_list('pk', flat=True)
            )
            for pk in pks:
                cls.release(pk, actor=actor, reason=reason)
        return len(pks)

    @classmethod
    def fulfill(cls, order, actor=None) -> int:
        """
        Close the reservations of a finished order.

        Any booked remainder (reserved but never scanned out) is released.
        Transition: ACTIVE -> FULFILLED

        Returns:
            Number of fulfilled reservations
        """
        with transaction.atomic():
            reservations = list(
                Reservation.objects.active().for_order(order).order_by('asset_id', 'pk')
            )
            for reservation in reservations:
                locked = _lock_asset(reservation.asset_id)
                reservation = Reservation.objects.select_for_update().get(pk=reservation.pk)

                if reservation.on_site > 0:
                    raise RuleViolation(
                        'UNITS_OUT',
                        reservation_id=reservation.reservation_id,
                        on_site=reservation.on_site,
                    )
                if reservation.booked_remainder > 0:
                    append(locked, LedgerKind.RELEASE, reservation.booked_remainder,
                           order=order, reservation=reservation, actor=actor,
                           reason='Not shipped, released on close')

                reservation.status = ReservationStatus.FULFILLED
                reservation.resolved_at = timezone.now()
                reservation.save(update_fields=['status', 'resolved_at'])

        logger.info(
            "cargo.ledger.fulfilled",
            extra={"order_id": order.pk, "count": len(reservations)},
        )
        return len(reservations)

    # ══════════════════════════════════════════════════════════════
    # SCANS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def record_scan_out(cls, quantity: int, asset, order, actor=None) -> list[LedgerEntry]:
        """
        Move `quantity` from booked to out for `order`.

        The order's reservations on the asset stay ACTIVE; their
        `scanned_out` grows.

        Raises:
            CargoError('ASSET_NOT_ON_ORDER'): no active reservation
            CargoError('OVER_SCAN'): more than the booked remainder
        """
        _check_positive(quantity)

        with transaction.atomic():
            locked = _lock_asset(asset)
            check_usable(locked)

            reservations = list(
                Reservation.objects.select_for_update()
                .active().for_order(order).filter(asset=locked).order_by('pk')
            )
            if not reservations:
                raise RuleViolation('ASSET_NOT_ON_ORDER', asset_id=locked.pk, order_id=order.pk)

            remaining = sum(r.booked_remainder for r in reservations)
            if quantity > remaining:
                raise RuleViolation(
                    'OVER_SCAN',
                    asset_id=locked.pk,
                    expected=sum(r.quantity for r in reservations),
                    scanned=sum(r.scanned_out for r in reservations),
                    requested=quantity,
                )

            entries = []
            left = quantity
            for reservation in reservations:
                take = min(left, reservation.booked_remainder)
                if take <= 0:
                    continue
                reservation.scanned_out += take
                reservation.save(update_fields=['scanned_out'])
                entries.append(append(locked, LedgerKind.SCAN_OUT, take, order=order,
                                      reservation=reservation, actor=actor))
                left -= take

        logger.info(
            "cargo.ledger.scanned_out",
            extra={"asset_id": locked.pk, "order_id": order.pk, "qty": quantity},
        )
        return entries

    @classmethod
    def record_scan_in(cls, quantity: int, asset, order, actor=None,
                       condition: str | None = None) -> list[LedgerEntry]:
        """
        Bring `quantity` back for `order`, decreasing out.

        A RED condition moves the returned units into maintenance.

        Raises:
            CargoError('ASSET_NOT_ON_ORDER'): nothing of this asset went out
            CargoError('OVER_SCAN'): more than is out for the order
        """
        _check_positive(quantity)

        with transaction.atomic():
            locked = _lock_asset(asset)

            reservations = list(
                Reservation.objects.select_for_update()
                .active().for_order(order).filter(asset=locked, scanned_out__gt=0).order_by('pk')
            )
            if not reservations:
                raise RuleViolation('ASSET_NOT_ON_ORDER', asset_id=locked.pk, order_id=order.pk)

            on_site = sum(r.on_site for r in reservations)
            if quantity > on_site:
                raise RuleViolation(
                    'OVER_SCAN',
                    asset_id=locked.pk,
                    expected=sum(r.scanned_out for r in reservations),
                    scanned=sum(r.scanned_in for r in reservations),
                    requested=quantity,
                )

            entries = []
            left = quantity
            for reservation in reservations:
                take = min(left, reservation.on_site)
                if take <= 0:
                    continue
                reservation.scanned_in += take
                reservation.save(update_fields=['scanned_in'])
                entries.append(append(locked, LedgerKind.SCAN_IN, take, order=order,
                                      reservation=reservation, actor=actor))
                left -= take

            if condition == Condition.RED:
                entries.append(append(locked, LedgerKind.MAINTENANCE_IN, quantity, order=order,
                                      actor=actor, reason='Returned damaged'))
            if condition:
                locked.condition = condition
                locked.save(update_fields=['condition', 'updated_at'])

        logger.info(
            "cargo.ledger.scanned_in",
            extra={
                "asset_id": locked.pk,
                "order_id": order.pk,
                "qty": quantity,
                "condition": condition or '',
            },
        )
        return entries

    # ══════════════════════════════════════════════════════════════
    # MAINTENANCE
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def send_to_maintenance(cls, quantity: int, asset, actor=None,
                            reason: str = '', condition: str = Condition.RED) -> LedgerEntry:
        """
        Take available units out of circulation for repair.

        Raises:
            CargoError('INSUFFICIENT_AVAILABILITY'): quantity > available
        """
        _check_positive(quantity)

        with transaction.atomic():
            locked = _lock_asset(asset)
            available = locked.available_quantity
            if quantity > available:
                raise AvailabilityExhausted(
                    'INSUFFICIENT_AVAILABILITY',
                    asset_id=locked.pk,
                    available=available,
                    requested=quantity,
                )
            entry = append(locked, LedgerKind.MAINTENANCE_IN, quantity, actor=actor, reason=reason)
            locked.condition = condition
            locked.save(update_fields=['condition', 'updated_at'])

        logger.info(
            "cargo.ledger.maintenance_in",
            extra={"asset_id": locked.pk, "qty": quantity},
        )
        return entry

    @classmethod
    def return_from_maintenance(cls, quantity: int, asset, actor=None, reason: str = '') -> LedgerEntry:
        """
        Put repaired units back into circulation.

        The asset turns GREEN once nothing is left in maintenance.
        """
        _check_positive(quantity)

        with transaction.atomic():
            locked = _lock_asset(asset)
            if quantity > locked.in_maintenance_quantity:
                raise ValidationFailed(
                    'INVALID_QUANTITY',
                    asset_id=locked.pk,
                    available=locked.in_maintenance_quantity,
                    requested=quantity,
                )
            entry = append(locked, LedgerKind.MAINTENANCE_OUT, quantity, actor=actor, reason=reason)
            if locked.in_maintenance_quantity == 0:
                locked.condition = Condition.GREEN
                locked.save(update_fields=['condition', 'updated_at'])

        logger.info(
            "cargo.ledger.maintenance_out",
            extra={"asset_id": locked.pk, "qty": quantity},
        )
        return entry

    # ══════════════════════════════════════════════════════════════
    # AUDIT
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def checkpoint(cls, asset) -> AvailabilityCheckpoint | None:
        """
        Store the folded counters as of the latest entry.

        Returns None for an asset without entries.
        """
        pk = _asset_pk(asset)
        with transaction.atomic():
            _lock_asset(pk)
            last_id = (
                LedgerEntry.objects.filter(asset_id=pk)
                .order_by('-pk').values_list('pk', flat=True).first()
            )
            if last_id is None:
                return None

            counters = cls.replay(pk)
            checkpoint, _ = AvailabilityCheckpoint.objects.get_or_create(
                asset_id=pk,
                last_entry_id=last_id,
                defaults=counters,
            )

        logger.debug(
            "cargo.ledger.checkpoint",
            extra={"asset_id": pk, "last_entry_id": last_id},
        )
        return checkpoint

    @classmethod
    def reconcile(cls, asset, fix: bool = False) -> dict:
        """
        Compare the counter caches with the ledger replay.

        Args:
            asset: Asset or pk
            fix: Overwrite the caches with the replayed values on drift

        Returns:
            {"asset_id", "cached", "replayed", "drift", "fixed"}
        """
        pk = _asset_pk(asset)
        with transaction.atomic():
            locked = _lock_asset(pk)
            cached = locked.counters()
            replayed = cls.replay(pk)
            drift = cached != replayed

            if drift:
                logger.warning(
                    "cargo.ledger.drift",
                    extra={"asset_id": pk, "cached": cached, "replayed": replayed},
                )
                if fix:
                    Asset.objects.filter(pk=pk).update(
                        updated_at=timezone.now(),
                        **{f'_{name}': value for name, value in replayed.items()},
                    )

        return {
            'asset_id': pk,
            'cached': cached,
            'replayed': replayed,
            'drift': drift,
            'fixed': drift and fix,
        }
