"""
Line item requests — charges proposed by staff, applied by an admin.

A request carries no price weight: pricing only moves once an admin
approves it and the matching LineItem exists. Rejected requests stay
for audit with the admin's note.
"""

import logging

from django.db import transaction
from django.utils import timezone

from cargoman.adapters.authorization import require
from cargoman.capabilities import Actor, Capability
from cargoman.exceptions import RuleViolation, ValidationFailed
from cargoman.models.enums import BillingMode, LineItemRequestStatus, ServiceCategory
from cargoman.models.pricing import LineItemRequest, ServiceType
from cargoman.services.lifecycle import lock, lock_for_edit
from cargoman.services.pricing import CargoPricing, money, to_decimal

logger = logging.getLogger('cargoman')

OVERRIDABLE = frozenset({'description', 'quantity', 'unit_rate', 'category', 'notes'})


def _clean_amounts(quantity, unit_rate):
    quantity = to_decimal(quantity, 'INVALID_QUANTITY', 'quantity')
    if quantity <= 0:
        raise ValidationFailed('INVALID_QUANTITY', requested=quantity)
    unit_rate = to_decimal(unit_rate, 'INVALID_AMOUNT', 'unit_rate')
    if unit_rate < 0:
        raise ValidationFailed('INVALID_AMOUNT', field='unit_rate', requested=unit_rate)
    return quantity, money(unit_rate)


def _lock_pending(request: LineItemRequest):
    """Lock the owner, then the request. Request must still be REQUESTED."""
    owner = lock(request.purpose)
    request = LineItemRequest.objects.select_for_update().get(pk=request.pk)
    if not request.is_pending:
        raise RuleViolation(
            'INVALID_TRANSITION',
            model='LineItemRequest',
            current=request.status,
            request_id=request.pk,
        )
    return owner, request


class CargoLineItemRequests:
    """Request, approve and reject proposed line items."""

    @classmethod
    def request_line_item(cls, owner, description: str, quantity, unit_rate, actor: Actor,
                          category: str = ServiceCategory.OTHER, unit: str = 'service',
                          notes: str = '', service_type: ServiceType | None = None) -> LineItemRequest:
        """
        Propose a charge on an order or inbound request.

        With a service type, unit_rate may be None to use its default rate.

        Raises:
            CargoError('PERMISSION_DENIED' | 'ITEMS_LOCKED')
            CargoError('FIELD_REQUIRED' | 'INVALID_QUANTITY' | 'INVALID_AMOUNT')
        """
        if service_type is not None:
            description = description or service_type.name
            category = service_type.category
            unit = service_type.unit
            if unit_rate is None:
                unit_rate = service_type.default_rate
        if not (description or '').strip():
            raise ValidationFailed('FIELD_REQUIRED', field='description')
        if unit_rate is None:
            raise ValidationFailed('FIELD_REQUIRED', field='unit_rate')
        quantity, unit_rate = _clean_amounts(quantity, unit_rate)

        with transaction.atomic():
            locked = lock_for_edit(owner, actor, Capability.PRICING_REQUEST_LINE_ITEM)
            request = LineItemRequest.objects.create(
                purpose=locked,
                service_type=service_type,
                description=description.strip(),
                category=category,
                quantity=quantity,
                unit=unit,
                unit_rate=unit_rate,
                notes=notes,
                requested_by=str(actor),
            )

        logger.info(
            "cargo.line_item_request.created",
            extra={"reference": locked.reference, "request_id": request.pk, "requested_by": str(actor)},
        )
        return request

    @classmethod
    def approve(cls, request: LineItemRequest, actor: Actor, billing_mode: str = BillingMode.BILLABLE,
                admin_note: str = '', **overrides) -> LineItemRequest:
        """
        Turn a pending request into a LineItem and mark pricing stale.

        `overrides` may change description, quantity, unit_rate, category
        or notes before the item is created.

        Raises:
            CargoError('PERMISSION_DENIED' | 'ITEMS_LOCKED' | 'INVALID_TRANSITION')
            CargoError('UNKNOWN_FIELD' | 'INVALID_QUANTITY' | 'INVALID_AMOUNT')
        """
        require(actor, Capability.PRICING_APPROVE)
        unknown = set(overrides) - OVERRIDABLE
        if unknown:
            raise ValidationFailed('UNKNOWN_FIELD', fields=sorted(unknown))

        with transaction.atomic():
            owner, request = _lock_pending(request)
            for name, value in overrides.items():
                setattr(request, name, value)
            quantity, unit_rate = _clean_amounts(request.quantity, request.unit_rate)

            if request.service_type_id:
                line_item = CargoPricing.add_catalog_line_item(
                    owner, request.service_type, quantity, actor,
                    unit_rate=unit_rate, billing_mode=billing_mode, notes=request.notes,
                )
            else:
                line_item = CargoPricing.add_custom_line_item(
                    owner,
                    request.description,
                    money(quantity * unit_rate),
                    f"Line item request {request.pk} from {request.requested_by}",
                    actor,
                    category=request.category,
                    billing_mode=billing_mode,
                    notes=request.notes,
                )

            request.quantity = quantity
            request.unit_rate = unit_rate
            request.status = LineItemRequestStatus.APPROVED
            request.line_item = line_item
            request.admin_note = admin_note
            request.resolved_by = str(actor)
            request.resolved_at = timezone.now()
            request.save()

        logger.info(
            "cargo.line_item_request.approved",
            extra={"reference": owner.reference, "request_id": request.pk, "line_item_id": line_item.pk},
        )
        return request

    @classmethod
    def reject(cls, request: LineItemRequest, actor: Actor, admin_note: str) -> LineItemRequest:
        """
        Decline a pending request. Pricing is untouched.

        Raises:
            CargoError('PERMISSION_DENIED' | 'NOTE_REQUIRED' | 'INVALID_TRANSITION')
        """
        require(actor, Capability.PRICING_APPROVE)
        if not (admin_note or '').strip():
            raise ValidationFailed('NOTE_REQUIRED')

        with transaction.atomic():
            owner, request = _lock_pending(request)
            request.status = LineItemRequestStatus.REJECTED
            request.admin_note = admin_note
            request.resolved_by = str(actor)
            request.resolved_at = timezone.now()
            request.save(update_fields=['status', 'admin_note', 'resolved_by', 'resolved_at'])

        logger.info(
            "cargo.line_item_request.rejected",
            extra={"reference": owner.reference, "request_id": request.pk},
        )
        return request
