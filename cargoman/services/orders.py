"""
Order lifecycle — creation, item edits and the order transition table.

    DRAFT ─► SUBMITTED ─► PRICING_REVIEW ⇄ PENDING_APPROVAL ⇄ QUOTED ─► CONFIRMED
                                                              │            │
                                                          DECLINED         ├─► AWAITING_FABRICATION ─┐
                                                                           ▼                          │
                                                                      IN_PREPARATION ◄────────────────┘
                                                                           │
    CLOSED ◄─ RETURN_IN_TRANSIT ◄─ AWAITING_RETURN ◄─ IN_USE ◄─ DELIVERED ◄─ IN_TRANSIT ◄─ READY_FOR_DELIVERY

    CANCELLED: from DRAFT through IN_PREPARATION
"""

import logging

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from cargoman.adapters.authorization import require
from cargoman.capabilities import Actor, Capability
from cargoman.conf import cargoman_settings
from cargoman.exceptions import ConfigurationGap, RuleViolation, ValidationFailed
from cargoman.models.asset import Asset
from cargoman.models.enums import (
    FinancialStatus,
    OrderStatus,
    ReskinStatus,
    ScanDirection,
    TripType,
)
from cargoman.models.order import Order, OrderItem
from cargoman.models.reservation import Reservation
from cargoman.models.reskin import ReskinRequest
from cargoman.services.ledger import CargoLedger, check_usable
from cargoman.services.lifecycle import (
    Transition,
    Workflow,
    assign_reference,
    bump_revision,
    lock_for_edit,
)
from cargoman.services.pricing import CargoPricing

logger = logging.getLogger('cargoman')


# ══════════════════════════════════════════════════════════════
# HOOKS (price, ensure_priced, reject_stale, fresh_pricing shared with inbound)
# ══════════════════════════════════════════════════════════════


def price(owner, ctx):
    """Effect: compute and store pricing. Configuration gaps are kept, not raised."""
    CargoPricing.recalculate(owner, ctx.actor)


def ensure_priced(owner, ctx):
    """
    Precheck: recompute stale or failed pricing; require a successful result.

    A stored configuration gap is retried, so adding the missing tariff
    rows is enough to move on.
    """
    owner.refresh_from_db()
    result = owner.pricing_result
    if owner.is_pricing_stale or not result.ok:
        result = CargoPricing.recalculate(owner, ctx.actor)
    if not result.ok:
        raise ConfigurationGap(
            'PRICING_INCOMPLETE',
            reference=owner.reference,
            error_code=result.error.code,
            detail=result.error.message,
        )


def reject_stale(owner, ctx):
    """
    Precheck: an approval must see the current pricing.

    Stale pricing is recomputed and stored, then the approval is rejected so
    the approver reviews the new figures.
    """
    owner.refresh_from_db()
    if owner.is_pricing_stale:
        stored_revision = (owner.pricing or {}).get('revision')
        CargoPricing.recalculate(owner, ctx.actor)
        raise RuleViolation(
            'STALE_PRICING',
            reference=owner.reference,
            priced_revision=stored_revision,
            revision=owner.revision,
        )
    if not owner.pricing_result.ok:
        raise ConfigurationGap('PRICING_INCOMPLETE', reference=owner.reference)


def fresh_pricing(owner, ctx):
    """Guard: stored pricing matches the current revision and succeeded."""
    if owner.is_pricing_stale:
        raise RuleViolation('STALE_PRICING', reference=owner.reference, revision=owner.revision)
    if not owner.pricing_result.ok:
        raise ConfigurationGap('PRICING_INCOMPLETE', reference=owner.reference)


def _require_items(order, ctx):
    if not order.items.exists():
        raise ValidationFailed('EMPTY_ORDER', reference=order.reference)


def _require_usable_assets(order, ctx):
    for item in order.items.select_related('asset'):
        check_usable(item.asset)


def _reserve_all(order, ctx):
    """All-or-nothing: any failure rolls back the confirmation."""
    for item in order.items.order_by('asset_id'):
        CargoLedger.reserve(item.quantity, item.asset_id, order, ctx.actor)


def _open_reskin_requests(order, ctx):
    for item in order.items.filter(requires_reskin=True).select_related('asset'):
        ReskinRequest.objects.create(
            order=order,
            order_item=item,
            original_asset=item.asset,
            target_brand=item.reskin_target_brand,
            client_notes=item.reskin_notes,
        )


def _no_pending_reskins(order, ctx):
    pending = order.reskin_requests.pending().count()
    if pending:
        raise RuleViolation('FABRICATION_PENDING', reference=order.reference, pending=pending)


def _nothing_out(order, ctx):
    out = Reservation.objects.active().for_order(order).filter(scanned_out__gt=F('scanned_in'))
    if out.exists():
        raise RuleViolation(
            'CANNOT_CANCEL_AT_CURRENT_STAGE',
            current=order.status,
            reason='units already scanned out',
        )


def _release_reservations(order, ctx):
    CargoLedger.release_for_order(order, ctx.actor, reason=ctx.note or 'Order cancelled')


def _cancel_reskins(order, ctx):
    order.reskin_requests.pending().update(
        status=ReskinStatus.CANCELLED,
        cancellation_reason=ctx.note,
        cancelled_by=str(ctx.actor),
        cancelled_at=timezone.now(),
    )


def _scan_complete(direction):
    def guard(order, ctx):
        from cargoman.services.scanning import is_scan_complete
        if not is_scan_complete(order, direction):
            raise RuleViolation('SCAN_INCOMPLETE', reference=order.reference, direction=direction)
    guard.__name__ = f'scan_complete_{direction.lower()}'
    return guard


def _truck_photos(order, ctx):
    if cargoman_settings.REQUIRE_TRUCK_PHOTOS_TO_CLOSE and not order.truck_photos:
        raise RuleViolation('TRUCK_PHOTOS_REQUIRED', reference=order.reference)


def _fulfill(order, ctx):
    CargoLedger.fulfill(order, ctx.actor)


# ══════════════════════════════════════════════════════════════
# TRANSITION TABLE
# ══════════════════════════════════════════════════════════════

S = OrderStatus
C = Capability

CANCELLABLE = (
    S.DRAFT,
    S.SUBMITTED,
    S.PRICING_REVIEW,
    S.PENDING_APPROVAL,
    S.QUOTED,
    S.CONFIRMED,
    S.AWAITING_FABRICATION,
    S.IN_PREPARATION,
)

OUTBOUND_SCANNABLE = frozenset({S.IN_PREPARATION, S.READY_FOR_DELIVERY})
INBOUND_SCANNABLE = frozenset({S.AWAITING_RETURN, S.RETURN_IN_TRANSIT})

ORDER_WORKFLOW = Workflow(
    purpose='order',
    terminal=Order.TERMINAL_STATUSES,
    cancel_target=S.CANCELLED,
    transitions=[
        # Commercial
        Transition(S.DRAFT, S.SUBMITTED, C.ORDERS_CREATE,
                   guards=(_require_items, _require_usable_assets)),
        Transition(S.SUBMITTED, S.PRICING_REVIEW, C.PRICING_REVIEW,
                   effects=(price,)),
        Transition(S.PRICING_REVIEW, S.PENDING_APPROVAL, C.PRICING_REVIEW,
                   prechecks=(ensure_priced,), guards=(fresh_pricing,)),
        Transition(S.PENDING_APPROVAL, S.PRICING_REVIEW, C.PRICING_APPROVE,
                   note_required=True),
        Transition(S.PENDING_APPROVAL, S.QUOTED, C.PRICING_APPROVE,
                   prechecks=(reject_stale,), guards=(fresh_pricing,),
                   financial_status=FinancialStatus.QUOTE_SENT),
        Transition(S.QUOTED, S.PENDING_APPROVAL, C.PRICING_ADJUST,
                   financial_status=FinancialStatus.QUOTE_REVISED),
        Transition(S.QUOTED, S.DECLINED, C.QUOTES_DECLINE,
                   note_required=True, financial_status=FinancialStatus.CANCELLED),
        Transition(S.QUOTED, S.CONFIRMED, C.QUOTES_APPROVE,
                   guards=(fresh_pricing, _require_usable_assets),
                   effects=(_reserve_all, _open_reskin_requests),
                   financial_status=FinancialStatus.QUOTE_ACCEPTED),
        # Preparation
        Transition(S.CONFIRMED, S.AWAITING_FABRICATION, C.LIFECYCLE_PROGRESS),
        Transition(S.CONFIRMED, S.IN_PREPARATION, C.LIFECYCLE_PROGRESS,
                   guards=(_no_pending_reskins,)),
        Transition(S.AWAITING_FABRICATION, S.IN_PREPARATION, C.LIFECYCLE_PROGRESS,
                   guards=(_no_pending_reskins,)),
        Transition(S.IN_PREPARATION, S.READY_FOR_DELIVERY, C.LIFECYCLE_PROGRESS),
        # Physical
        Transition(S.READY_FOR_DELIVERY, S.IN_TRANSIT, C.LIFECYCLE_PROGRESS,
                   guards=(_scan_complete(ScanDirection.OUTBOUND),)),
        Transition(S.IN_TRANSIT, S.DELIVERED, C.LIFECYCLE_PROGRESS),
        Transition(S.DELIVERED, S.IN_USE, C.LIFECYCLE_PROGRESS),
        Transition(S.IN_USE, S.AWAITING_RETURN, C.LIFECYCLE_PROGRESS),
        Transition(S.AWAITING_RETURN, S.RETURN_IN_TRANSIT, C.LIFECYCLE_PROGRESS),
        Transition(S.RETURN_IN_TRANSIT, S.CLOSED, C.LIFECYCLE_PROGRESS,
                   guards=(_scan_complete(ScanDirection.INBOUND), _truck_photos),
                   effects=(_fulfill,),
                   financial_status=FinancialStatus.PENDING_INVOICE),
        # Cancellation
        *[
            Transition(source, S.CANCELLED, C.ORDERS_CANCEL,
                       note_required=True,
                       guards=(_nothing_out,),
                       effects=(_release_reservations, _cancel_reskins),
                       financial_status=FinancialStatus.CANCELLED)
            for source in CANCELLABLE
        ],
    ],
)


class CargoOrders:
    """Order creation, item edits and transitions."""

    @classmethod
    def create_order(cls, company_id: str, actor: Actor, venue_city: str,
                     venue_country: str = '', trip_type: str = TripType.ROUND_TRIP,
                     requester_id: str | None = None, **details) -> Order:
        """
        Create a DRAFT order.

        Args:
            company_id: Owning company
            actor: Creator (default requester)
            venue_city: City used for tariff lookup
            **details: venue_name, event dates, special_instructions, note
        """
        require(actor, Capability.ORDERS_CREATE)

        with transaction.atomic():
            order = Order.objects.create(
                company_id=company_id,
                requester_id=requester_id or actor.id,
                venue_city=venue_city,
                venue_country=venue_country,
                trip_type=trip_type,
                **details,
            )
            assign_reference(order, 'ORD')
            ORDER_WORKFLOW.record_initial(order, actor)

        logger.info(
            "cargo.order.created",
            extra={"reference": order.reference, "company_id": company_id, "actor_id": actor.id},
        )
        return order

    # ══════════════════════════════════════════════════════════════
    # ITEMS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def add_item(cls, order: Order, asset: Asset, quantity: int, actor: Actor,
                 requires_reskin: bool = False, reskin_target_brand: str = '',
                 reskin_notes: str = '') -> OrderItem:
        """
        Add an asset line, or grow the existing line for the same asset.

        Volume and weight are copied from the asset.

        Raises:
            CargoError('ITEMS_LOCKED' | 'ASSET_TRANSFORMED' | 'ASSET_RETIRED')
        """
        if not isinstance(quantity, int) or quantity <= 0:
            raise ValidationFailed('INVALID_QUANTITY', requested=quantity)
        asset.refresh_from_db()
        check_usable(asset)

        with transaction.atomic():
            locked = lock_for_edit(order, actor, Capability.ORDERS_UPDATE)
            item, created = OrderItem.objects.select_for_update().get_or_create(
                order=locked,
                asset=asset,
                defaults={
                    'quantity': quantity,
                    'volume_per_unit': asset.volume_per_unit,
                    'weight_per_unit': asset.weight_per_unit,
                    'requires_reskin': requires_reskin,
                    'reskin_target_brand': reskin_target_brand,
                    'reskin_notes': reskin_notes,
                },
            )
            if not created:
                item.quantity += quantity
                item.save(update_fields=['quantity'])
            bump_revision(locked)

        logger.info(
            "cargo.order.item_added",
            extra={"reference": locked.reference, "asset_id": asset.pk, "qty": quantity},
        )
        return item

    @classmethod
    def update_item(cls, item: OrderItem, quantity: int, actor: Actor) -> OrderItem:
        if not isinstance(quantity, int) or quantity <= 0:
            raise ValidationFailed('INVALID_QUANTITY', requested=quantity)

        with transaction.atomic():
            locked = lock_for_edit(item.order, actor, Capability.ORDERS_UPDATE)
            item = OrderItem.objects.select_for_update().get(pk=item.pk)
            item.quantity = quantity
            item.save(update_fields=['quantity'])
            bump_revision(locked)
        return item

    @classmethod
    def remove_item(cls, item: OrderItem, actor: Actor) -> None:
        with transaction.atomic():
            locked = lock_for_edit(item.order, actor, Capability.ORDERS_UPDATE)
            OrderItem.objects.filter(pk=item.pk).delete()
            bump_revision(locked)

    # ══════════════════════════════════════════════════════════════
    # TRANSITIONS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def submit_order(cls, order: Order, actor: Actor, note: str = '') -> Order:
        """
        Submit a draft and send it straight to pricing review.

        DRAFT → SUBMITTED → PRICING_REVIEW. Pricing is computed on the way;
        a configuration gap leaves the order in PRICING_REVIEW with the
        failed result stored.
        """
        with transaction.atomic():
            order = ORDER_WORKFLOW.run(order, S.SUBMITTED, actor, note)
            order = ORDER_WORKFLOW.run(order, S.PRICING_REVIEW, actor, automatic=True)
        return order

    @classmethod
    def transition_status(cls, order: Order, target: str, actor: Actor, note: str = '') -> Order:
        """Move `order` to `target` through the transition table."""
        return ORDER_WORKFLOW.run(order, target, actor, note)

    @classmethod
    def cancel_order(cls, order: Order, actor: Actor, note: str) -> Order:
        """
        Cancel an order before it leaves the warehouse.

        Releases every reservation in the same transaction.

        Raises:
            CargoError('CANNOT_CANCEL_AT_CURRENT_STAGE' | 'NOTE_REQUIRED')
        """
        return ORDER_WORKFLOW.run(order, S.CANCELLED, actor, note)

    @classmethod
    def decline_quote(cls, order: Order, actor: Actor, note: str) -> Order:
        return ORDER_WORKFLOW.run(order, S.DECLINED, actor, note)

    @classmethod
    def allowed_transitions(cls, order: Order, actor: Actor | None = None) -> list[str]:
        """
        Targets reachable from the current status.

        With `actor`, only those the actor may trigger; the actor needs
        orders:read.
        """
        targets = ORDER_WORKFLOW.allowed_targets(order.status)
        if actor is None:
            return targets
        require(actor, Capability.ORDERS_READ)
        from cargoman.adapters.authorization import get_authorizer
        authorizer = get_authorizer()
        return [
            target for target in targets
            if authorizer.is_allowed(actor, ORDER_WORKFLOW.get(order.status, target).capability)
        ]
