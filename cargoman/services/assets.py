"""
Asset registry — create, top up, retire and transform assets.

Quantities only ever change through ledger entries: creation is an INTAKE,
retirement a RETIRE. Assets are never deleted.
"""

import logging
import uuid

from django.db import transaction

from cargoman.adapters.authorization import require
from cargoman.capabilities import Actor, Capability
from cargoman.exceptions import AvailabilityExhausted, RuleViolation, ValidationFailed
from cargoman.models.asset import Asset
from cargoman.models.enums import AssetStatus, Condition, LedgerKind, TrackingMethod
from cargoman.services.ledger import CargoLedger, _lock_asset, append, check_usable

logger = logging.getLogger('cargoman')


def generate_qr_code(company_id: str) -> str:
    return f"{company_id}-{uuid.uuid4().hex[:12]}".upper()


def mint(company_id: str, name: str, quantity: int, actor, reason: str = 'Intake', **fields) -> Asset:
    """
    Create an asset and its INTAKE entry. No authorization; callers check.

    Must run inside transaction.atomic().
    """
    if not isinstance(quantity, int) or quantity <= 0:
        raise ValidationFailed('INVALID_QUANTITY', requested=quantity)
    fields.setdefault('qr_code', generate_qr_code(company_id))

    asset = Asset.objects.create(company_id=company_id, name=name, **fields)
    locked = _lock_asset(asset)
    append(locked, LedgerKind.INTAKE, quantity, actor=actor, reason=reason)
    return locked


class CargoAssets:
    """Asset registry methods."""

    @classmethod
    def create_asset(cls, company_id: str, name: str, actor: Actor, quantity: int = 1,
                     tracking_method: str = TrackingMethod.INDIVIDUAL, **fields) -> Asset:
        """
        Register a new asset with `quantity` units.

        Args:
            **fields: qr_code (generated when omitted), category,
                volume_per_unit, weight_per_unit, warehouse_id, zone_id,
                handling_tags, refurb_days_estimate, metadata
        """
        require(actor, Capability.ASSETS_CREATE)

        with transaction.atomic():
            asset = mint(company_id, name, quantity, actor, tracking_method=tracking_method, **fields)

        logger.info(
            "cargo.asset.created",
            extra={"asset_id": asset.pk, "qr_code": asset.qr_code, "qty": quantity},
        )
        return asset

    @classmethod
    def add_stock(cls, quantity: int, asset, actor: Actor, reason: str = 'Stock added') -> Asset:
        """Increase the total of an existing asset (e.g. more units of a batch)."""
        require(actor, Capability.ASSETS_UPDATE)
        if not isinstance(quantity, int) or quantity <= 0:
            raise ValidationFailed('INVALID_QUANTITY', requested=quantity)

        with transaction.atomic():
            locked = _lock_asset(asset)
            check_usable(locked)
            append(locked, LedgerKind.INTAKE, quantity, actor=actor, reason=reason)
        return locked

    @classmethod
    def retire(cls, asset, actor: Actor, reason: str, quantity: int | None = None) -> Asset:
        """
        Take units out of the inventory for good.

        quantity=None retires the whole asset, which requires nothing booked,
        out or in maintenance. A partial retire takes available units only.

        Raises:
            CargoError('ASSET_IN_USE' | 'INSUFFICIENT_AVAILABILITY' | 'REASON_REQUIRED')
        """
        require(actor, Capability.ASSETS_DELETE)
        if not (reason or '').strip():
            raise ValidationFailed('REASON_REQUIRED')

        with transaction.atomic():
            locked = _lock_asset(asset)
            check_usable(locked)

            if quantity is None:
                if locked.available_quantity != locked.total_quantity:
                    raise RuleViolation('ASSET_IN_USE', asset_id=locked.pk, **locked.counters())
                if locked.total_quantity:
                    append(locked, LedgerKind.RETIRE, locked.total_quantity, actor=actor, reason=reason)
                locked.status = AssetStatus.RETIRED
                locked.save(update_fields=['status', 'updated_at'])
            else:
                if quantity > locked.available_quantity:
                    raise AvailabilityExhausted(
                        'INSUFFICIENT_AVAILABILITY',
                        asset_id=locked.pk,
                        available=locked.available_quantity,
                        requested=quantity,
                    )
                append(locked, LedgerKind.RETIRE, quantity, actor=actor, reason=reason)

        logger.info(
            "cargo.asset.retired",
            extra={"asset_id": locked.pk, "qty": quantity, "reason": reason},
        )
        return locked

    @classmethod
    def transform(cls, asset, actor: Actor, name: str | None = None, qr_code: str | None = None,
                  reason: str = '', **metadata) -> Asset:
        """
        Replace `asset` with a successor carrying the same units.

        The original is RETIRED to zero, marked TRANSFORMED and pointed at
        the successor; it accepts no new bookings or scans afterwards.

        Raises:
            CargoError('ASSET_IN_USE'): units are booked, out or in maintenance
        """
        require(actor, Capability.ASSETS_UPDATE)
        with transaction.atomic():
            return cls._transform(asset, actor, name=name, qr_code=qr_code, reason=reason, **metadata)

    @classmethod
    def _transform(cls, asset, actor, name=None, qr_code=None, reason='', **metadata) -> Asset:
        original = _lock_asset(asset)
        check_usable(original)
        if original.available_quantity != original.total_quantity:
            raise RuleViolation('ASSET_IN_USE', asset_id=original.pk, **original.counters())

        units = original.total_quantity
        successor = mint(
            original.company_id,
            name or original.name,
            units,
            actor,
            reason=f"Transformed from {original.qr_code}",
            qr_code=qr_code or generate_qr_code(original.company_id),
            category=original.category,
            tracking_method=original.tracking_method,
            condition=Condition.GREEN,
            refurb_days_estimate=original.refurb_days_estimate,
            volume_per_unit=original.volume_per_unit,
            weight_per_unit=original.weight_per_unit,
            handling_tags=list(original.handling_tags),
            warehouse_id=original.warehouse_id,
            zone_id=original.zone_id,
            metadata={**metadata, 'transformed_from': original.pk},
        )

        append(original, LedgerKind.RETIRE, units, actor=actor,
               reason=reason or f"Transformed into {successor.qr_code}")
        original.status = AssetStatus.TRANSFORMED
        original.transformed_to = successor
        original.save(update_fields=['status', 'transformed_to', 'updated_at'])

        logger.info(
            "cargo.asset.transformed",
            extra={"asset_id": original.pk, "successor_id": successor.pk, "qty": units},
        )
        return successor

    # ══════════════════════════════════════════════════════════════
    # MAINTENANCE
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def send_to_maintenance(cls, quantity: int, asset, actor: Actor, reason: str,
                            condition: str = Condition.RED):
        require(actor, Capability.CONDITIONS_UPDATE)
        return CargoLedger.send_to_maintenance(quantity, asset, actor, reason=reason, condition=condition)

    @classmethod
    def complete_maintenance(cls, quantity: int, asset, actor: Actor, reason: str = 'Repaired'):
        require(actor, Capability.CONDITIONS_COMPLETE_MAINTENANCE)
        return CargoLedger.return_from_maintenance(quantity, asset, actor, reason=reason)
