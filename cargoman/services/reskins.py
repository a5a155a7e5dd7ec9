"""
Reskin requests — fabrication that turns an ordered asset into a new one.

Requests are opened when an order is confirmed (one per item flagged
requires_reskin). Completing a request:

    1. Releases the order's hold on the original asset
    2. Transforms the original into a successor with the same units
    3. Points the order item at the successor and books it again
    4. Moves AWAITING_FABRICATION → IN_PREPARATION when nothing is pending
"""

import logging

from django.db import transaction
from django.utils import timezone

from cargoman.adapters.authorization import require
from cargoman.capabilities import Actor, Capability
from cargoman.exceptions import RuleViolation, ValidationFailed
from cargoman.models.enums import OrderStatus, ReskinStatus
from cargoman.models.order import OrderItem
from cargoman.models.reservation import Reservation
from cargoman.models.reskin import ReskinRequest
from cargoman.services.assets import CargoAssets
from cargoman.services.ledger import CargoLedger
from cargoman.services.lifecycle import lock

logger = logging.getLogger('cargoman')

FABRICATION_STATUSES = frozenset({OrderStatus.CONFIRMED, OrderStatus.AWAITING_FABRICATION})


def _lock_pending(reskin: ReskinRequest):
    """Lock the order, then the request. Request must still be PENDING."""
    order = lock(reskin.order)
    reskin = ReskinRequest.objects.select_for_update().get(pk=reskin.pk)
    if not reskin.is_pending:
        raise RuleViolation(
            'INVALID_TRANSITION',
            model='ReskinRequest',
            current=reskin.status,
            reskin_id=reskin.pk,
        )
    if order.status not in FABRICATION_STATUSES:
        raise RuleViolation(
            'INVALID_TRANSITION',
            reference=order.reference,
            current=order.status,
            reskin_id=reskin.pk,
        )
    return order, reskin


def _advance_if_done(order, actor):
    from cargoman.services.orders import ORDER_WORKFLOW

    if order.status == OrderStatus.AWAITING_FABRICATION and not order.reskin_requests.pending().exists():
        return ORDER_WORKFLOW.run(order, OrderStatus.IN_PREPARATION, actor, automatic=True)
    return order


class CargoReskins:
    """Reskin completion and cancellation."""

    @classmethod
    def complete_reskin(cls, reskin: ReskinRequest, actor: Actor, new_name: str | None = None,
                        new_qr_code: str | None = None, completion_notes: str = '') -> ReskinRequest:
        """
        Finish fabrication and swap the order item to the new asset.

        Raises:
            CargoError('INVALID_TRANSITION'): request not pending or order past fabrication
            CargoError('ASSET_IN_USE'): the original is booked by another order
            CargoError('INSUFFICIENT_AVAILABILITY'): successor could not be booked
        """
        require(actor, Capability.ASSETS_UPDATE)

        with transaction.atomic():
            order, reskin = _lock_pending(reskin)
            item = OrderItem.objects.select_for_update().get(pk=reskin.order_item_id)

            holds = (
                Reservation.objects.active().for_order(order)
                .filter(asset_id=reskin.original_asset_id)
                .values_list('pk', flat=True)
            )
            for pk in list(holds):
                CargoLedger.release(pk, actor=actor, reason=f"Reskin {reskin.pk}")

            successor = CargoAssets._transform(
                reskin.original_asset,
                actor,
                name=new_name,
                qr_code=new_qr_code,
                reason=f"Reskinned for {reskin.target_brand or order.reference}",
                reskin_id=reskin.pk,
                target_brand=reskin.target_brand,
            )

            item.asset = successor
            item.save(update_fields=['asset'])
            CargoLedger.reserve(item.quantity, successor, order, actor, reskin_id=reskin.pk)

            reskin.status = ReskinStatus.COMPLETE
            reskin.new_asset = successor
            reskin.completion_notes = completion_notes
            reskin.completed_by = str(actor)
            reskin.completed_at = timezone.now()
            reskin.save(update_fields=[
                'status', 'new_asset', 'completion_notes', 'completed_by', 'completed_at',
            ])

            logger.info(
                "cargo.reskin.completed",
                extra={
                    "reskin_id": reskin.pk,
                    "reference": order.reference,
                    "asset_id": reskin.original_asset_id,
                    "successor_id": successor.pk,
                },
            )

            _advance_if_done(order, actor)

        return reskin

    @classmethod
    def cancel_reskin(cls, reskin: ReskinRequest, actor: Actor, reason: str) -> ReskinRequest:
        """
        Drop a reskin; the order ships the original asset.

        Raises:
            CargoError('REASON_REQUIRED' | 'INVALID_TRANSITION')
        """
        require(actor, Capability.ORDERS_UPDATE)
        if not (reason or '').strip():
            raise ValidationFailed('REASON_REQUIRED')

        with transaction.atomic():
            order, reskin = _lock_pending(reskin)
            reskin.status = ReskinStatus.CANCELLED
            reskin.cancellation_reason = reason
            reskin.cancelled_by = str(actor)
            reskin.cancelled_at = timezone.now()
            reskin.save(update_fields=['status', 'cancellation_reason', 'cancelled_by', 'cancelled_at'])

            logger.info(
                "cargo.reskin.cancelled",
                extra={"reskin_id": reskin.pk, "reference": order.reference, "reason": reason},
            )

            _advance_if_done(order, actor)

        return reskin
