"""
Inbound requests — new goods quoted, received and minted as assets.

    PRICING_REVIEW ⇄ PENDING_APPROVAL ⇄ QUOTED ─► CONFIRMED ─► IN_PROGRESS ─► COMPLETED
                                          │
                                       DECLINED

    CANCELLED: from PRICING_REVIEW through CONFIRMED
"""

import logging

from django.db import transaction

from cargoman.adapters.authorization import require
from cargoman.capabilities import Actor, Capability
from cargoman.exceptions import ValidationFailed
from cargoman.models.enums import FinancialStatus, InboundRequestStatus, TrackingMethod
from cargoman.models.inbound import InboundRequest, InboundRequestItem
from cargoman.services.assets import mint
from cargoman.services.lifecycle import (
    Transition,
    Workflow,
    assign_reference,
    bump_revision,
    lock_for_edit,
)
from cargoman.services.orders import ensure_priced, fresh_pricing, reject_stale
from cargoman.services.pricing import CargoPricing, to_decimal

logger = logging.getLogger('cargoman')

ITEM_FIELDS = (
    'name',
    'description',
    'category',
    'tracking_method',
    'quantity',
    'weight_per_unit',
    'volume_per_unit',
    'dimensions',
    'handling_tags',
)


def _clean_item(data: dict) -> dict:
    unknown = set(data) - set(ITEM_FIELDS)
    if unknown:
        raise ValidationFailed('UNKNOWN_FIELD', field='items', unknown=sorted(unknown))
    if not (data.get('name') or '').strip():
        raise ValidationFailed('FIELD_REQUIRED', field='name')
    quantity = data.get('quantity')
    if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity <= 0:
        raise ValidationFailed('INVALID_QUANTITY', requested=quantity)
    cleaned = dict(data)
    for key in ('weight_per_unit', 'volume_per_unit'):
        if key in cleaned:
            cleaned[key] = to_decimal(cleaned[key], 'INVALID_AMOUNT', key)
    return cleaned


# ══════════════════════════════════════════════════════════════
# HOOKS
# ══════════════════════════════════════════════════════════════


def _require_location(request, ctx):
    warehouse_id = ctx.extra.get('warehouse_id') or ''
    zone_id = ctx.extra.get('zone_id') or ''
    if not (warehouse_id and zone_id):
        raise ValidationFailed('LOCATION_REQUIRED', reference=request.reference)


def _mint_assets(request, ctx):
    """One asset per item, with the item's quantity as its first INTAKE."""
    request.warehouse_id = ctx.extra['warehouse_id']
    request.zone_id = ctx.extra['zone_id']
    request.save(update_fields=['warehouse_id', 'zone_id', 'updated_at'])

    for item in request.items.select_for_update().filter(created_asset__isnull=True):
        asset = mint(
            request.company_id,
            item.name,
            item.quantity,
            ctx.actor,
            reason=f"Inbound {request.reference}",
            category=item.category,
            tracking_method=item.tracking_method,
            volume_per_unit=item.volume_per_unit,
            weight_per_unit=item.weight_per_unit,
            handling_tags=list(item.handling_tags),
            warehouse_id=request.warehouse_id,
            zone_id=request.zone_id,
            metadata={
                'inbound_request': request.reference,
                'description': item.description,
                'dimensions': item.dimensions,
            },
        )
        item.created_asset = asset
        item.save(update_fields=['created_asset'])

        logger.info(
            "cargo.inbound.asset_created",
            extra={"reference": request.reference, "item_id": item.pk, "asset_id": asset.pk},
        )


# ══════════════════════════════════════════════════════════════
# TRANSITION TABLE
# ══════════════════════════════════════════════════════════════

S = InboundRequestStatus
C = Capability

CANCELLABLE = (S.PRICING_REVIEW, S.PENDING_APPROVAL, S.QUOTED, S.CONFIRMED)

INBOUND_WORKFLOW = Workflow(
    purpose='inbound_request',
    terminal=InboundRequest.TERMINAL_STATUSES,
    cancel_target=S.CANCELLED,
    transitions=[
        Transition(S.PRICING_REVIEW, S.PENDING_APPROVAL, C.PRICING_REVIEW,
                   prechecks=(ensure_priced,), guards=(fresh_pricing,)),
        Transition(S.PENDING_APPROVAL, S.PRICING_REVIEW, C.PRICING_APPROVE,
                   note_required=True),
        Transition(S.PENDING_APPROVAL, S.QUOTED, C.PRICING_APPROVE,
                   prechecks=(reject_stale,), guards=(fresh_pricing,),
                   financial_status=FinancialStatus.QUOTE_SENT),
        Transition(S.QUOTED, S.PENDING_APPROVAL, C.PRICING_ADJUST,
                   financial_status=FinancialStatus.QUOTE_REVISED),
        Transition(S.QUOTED, S.CONFIRMED, C.QUOTES_APPROVE,
                   guards=(fresh_pricing,),
                   financial_status=FinancialStatus.QUOTE_ACCEPTED),
        Transition(S.QUOTED, S.DECLINED, C.QUOTES_DECLINE,
                   note_required=True, financial_status=FinancialStatus.CANCELLED),
        Transition(S.CONFIRMED, S.IN_PROGRESS, C.LIFECYCLE_PROGRESS),
        Transition(S.IN_PROGRESS, S.COMPLETED, C.ASSETS_CREATE,
                   guards=(_require_location,),
                   effects=(_mint_assets,),
                   financial_status=FinancialStatus.PENDING_INVOICE),
        *[
            Transition(source, S.CANCELLED, C.ORDERS_CANCEL,
                       note_required=True, financial_status=FinancialStatus.CANCELLED)
            for source in CANCELLABLE
        ],
    ],
)


class CargoInbound:
    """Inbound request creation, item edits, transitions and completion."""

    @classmethod
    def create_inbound_request(cls, company_id: str, actor: Actor, venue_city: str, items: list[dict],
                               venue_country: str = '', incoming_at=None, note: str = '',
                               requester_id: str | None = None) -> InboundRequest:
        """
        Create a request in PRICING_REVIEW and price it.

        Args:
            items: Dicts with name, quantity and optionally description,
                category, tracking_method, weight_per_unit, volume_per_unit,
                dimensions, handling_tags

        Raises:
            CargoError('EMPTY_ORDER' | 'INVALID_QUANTITY' | 'UNKNOWN_FIELD'
                       | 'FIELD_REQUIRED' | 'INVALID_AMOUNT')
        """
        require(actor, Capability.ORDERS_CREATE)
        if not items:
            raise ValidationFailed('EMPTY_ORDER')
        cleaned = [_clean_item(item) for item in items]

        with transaction.atomic():
            request = InboundRequest.objects.create(
                company_id=company_id,
                requester_id=requester_id or actor.id,
                venue_city=venue_city,
                venue_country=venue_country,
                incoming_at=incoming_at,
                note=note,
            )
            InboundRequestItem.objects.bulk_create(
                InboundRequestItem(request=request, **data) for data in cleaned
            )
            assign_reference(request, 'IR')
            INBOUND_WORKFLOW.record_initial(request, actor, note)
            CargoPricing.recalculate(request, actor)

        logger.info(
            "cargo.inbound.created",
            extra={"reference": request.reference, "company_id": company_id, "items": len(cleaned)},
        )
        return request

    # ══════════════════════════════════════════════════════════════
    # ITEMS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def add_item(cls, request: InboundRequest, actor: Actor, name: str, quantity: int,
                 tracking_method: str = TrackingMethod.INDIVIDUAL, **fields) -> InboundRequestItem:
        data = _clean_item({'name': name, 'quantity': quantity, 'tracking_method': tracking_method, **fields})
        with transaction.atomic():
            locked = lock_for_edit(request, actor, Capability.ORDERS_UPDATE)
            item = InboundRequestItem.objects.create(request=locked, **data)
            bump_revision(locked)
        return item

    @classmethod
    def update_item(cls, item: InboundRequestItem, actor: Actor, **changes) -> InboundRequestItem:
        """Change item fields. Quantity and volume changes mark pricing stale."""
        with transaction.atomic():
            locked = lock_for_edit(item.request, actor, Capability.ORDERS_UPDATE)
            item = InboundRequestItem.objects.select_for_update().get(pk=item.pk)
            current = {name: getattr(item, name) for name in ITEM_FIELDS}
            data = _clean_item({**current, **changes})
            for name, value in data.items():
                setattr(item, name, value)
            item.save()
            bump_revision(locked)
        return item

    @classmethod
    def remove_item(cls, item: InboundRequestItem, actor: Actor) -> None:
        with transaction.atomic():
            locked = lock_for_edit(item.request, actor, Capability.ORDERS_UPDATE)
            if locked.items.count() <= 1:
                raise ValidationFailed('EMPTY_ORDER', reference=locked.reference)
            InboundRequestItem.objects.filter(pk=item.pk).delete()
            bump_revision(locked)

    # ══════════════════════════════════════════════════════════════
    # TRANSITIONS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def transition_status(cls, request: InboundRequest, target: str, actor: Actor,
                          note: str = '') -> InboundRequest:
        return INBOUND_WORKFLOW.run(request, target, actor, note)

    @classmethod
    def cancel_request(cls, request: InboundRequest, actor: Actor, note: str) -> InboundRequest:
        return INBOUND_WORKFLOW.run(request, S.CANCELLED, actor, note)

    @classmethod
    def decline_quote(cls, request: InboundRequest, actor: Actor, note: str) -> InboundRequest:
        return INBOUND_WORKFLOW.run(request, S.DECLINED, actor, note)

    @classmethod
    def complete_inbound_request(cls, request: InboundRequest, warehouse_id: str, zone_id: str,
                                 actor: Actor) -> InboundRequest:
        """
        Receive the goods: mint one asset per item at the given location.

        A CONFIRMED request passes through IN_PROGRESS on the way.

        Raises:
            CargoError('LOCATION_REQUIRED' | 'INVALID_TRANSITION' | 'PERMISSION_DENIED')
        """
        require(actor, Capability.ASSETS_CREATE)
        if not (warehouse_id and zone_id):
            raise ValidationFailed('LOCATION_REQUIRED', reference=request.reference)

        with transaction.atomic():
            if request.status == S.CONFIRMED:
                request = INBOUND_WORKFLOW.run(request, S.IN_PROGRESS, actor, automatic=True)
            request = INBOUND_WORKFLOW.run(
                request, S.COMPLETED, actor, automatic=True,
                warehouse_id=warehouse_id, zone_id=zone_id,
            )

        logger.info(
            "cargo.inbound.completed",
            extra={
                "reference": request.reference,
                "warehouse_id": warehouse_id,
                "zone_id": zone_id,
                "assets": request.items.count(),
            },
        )
        return request
