"""
Pricing engine — base operations, transport, line items and margin.

calculate() is a pure function of a PricingSnapshot and a TariffBackend:
no database access, no locks, no exceptions for missing configuration.
A configuration gap comes back as a PricingResult with `error` set and
zero totals.

Only CargoPricing.store() writes `pricing` on an order or inbound
request, under the owner's row lock.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from django.contrib.contenttypes.models import ContentType
from django.db import transaction
from django.utils import timezone
from django.utils.dateparse import parse_datetime

from cargoman.capabilities import Actor, Capability
from cargoman.conf import cargoman_settings
from cargoman.exceptions import IntegrityViolation, ValidationFailed
from cargoman.models.enums import BillingMode, LineItemType
from cargoman.models.pricing import LineItem, ServiceType, TransportTrip
from cargoman.protocols.tariff import TariffBackend
from cargoman.services.lifecycle import bump_revision, lock, lock_for_edit

logger = logging.getLogger('cargoman')

CENT = Decimal('0.01')
ZERO = Decimal('0.00')


def money(value) -> Decimal:
    """Quantize to cents, half up."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def to_decimal(value, code: str, field: str) -> Decimal:
    """Parse caller input. Junk, NaN and infinities raise ValidationFailed(code)."""
    try:
        parsed = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationFailed(code, field=field, requested=str(value)) from None
    if not parsed.is_finite():
        raise ValidationFailed(code, field=field, requested=str(value))
    return parsed


# ══════════════════════════════════════════════════════════════
# INPUT
# ══════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class ItemInput:
    quantity: int
    volume_per_unit: Decimal


@dataclass(frozen=True)
class TripInput:
    trip_id: str
    trip_type: str
    vehicle_type: str
    city: str
    leg: str = ''


@dataclass(frozen=True)
class LineItemInput:
    line_item_type: str
    billing_mode: str = BillingMode.BILLABLE
    is_voided: bool = False
    quantity: Decimal | None = None
    unit_rate: Decimal | None = None
    amount: Decimal = ZERO


@dataclass(frozen=True)
class PricingSnapshot:
    """Everything calculate() needs, detached from the database."""

    company_id: str
    country: str
    city: str
    revision: int
    items: tuple[ItemInput, ...] = ()
    trips: tuple[TripInput, ...] = ()
    line_items: tuple[LineItemInput, ...] = ()
    margin_percent: Decimal = Decimal('0')
    margin_override_amount: Decimal | None = None
    margin_override_reason: str = ''

    @property
    def volume(self) -> Decimal:
        return sum((i.volume_per_unit * i.quantity for i in self.items), Decimal('0'))


def build_snapshot(owner) -> PricingSnapshot:
    """Read the pricing inputs of an order or inbound request."""
    ct = ContentType.objects.get_for_model(owner)

    trips = tuple(
        TripInput(
            trip_id=str(trip.pk),
            trip_type=trip.trip_type,
            vehicle_type=trip.vehicle_type,
            city=trip.city or owner.venue_city,
            leg=trip.leg,
        )
        for trip in TransportTrip.objects.filter(purpose_type=ct, purpose_id=owner.pk)
    )
    line_items = tuple(
        LineItemInput(
            line_item_type=li.line_item_type,
            billing_mode=li.billing_mode,
            is_voided=li.is_voided,
            quantity=li.quantity,
            unit_rate=li.unit_rate,
            amount=li.amount,
        )
        for li in LineItem.objects.filter(purpose_type=ct, purpose_id=owner.pk)
    )
    percent = owner.margin_percent
    if percent is None:
        percent = cargoman_settings.DEFAULT_MARGIN_PERCENT

    return PricingSnapshot(
        company_id=owner.company_id,
        country=owner.venue_country,
        city=owner.venue_city,
        revision=owner.revision,
        items=tuple(
            ItemInput(quantity=item.quantity, volume_per_unit=item.volume_per_unit)
            for item in owner.items.all()
        ),
        trips=trips,
        line_items=line_items,
        margin_percent=Decimal(percent),
        margin_override_amount=owner.margin_override_amount,
        margin_override_reason=owner.margin_override_reason,
    )


# ══════════════════════════════════════════════════════════════
# RESULT
# ══════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class TripCharge:
    trip_id: str
    city: str
    trip_type: str
    vehicle_type: str
    rate: Decimal


@dataclass(frozen=True)
class Transport:
    final_rate: Decimal = ZERO
    trips: tuple[TripCharge, ...] = ()


@dataclass(frozen=True)
class LineItemTotals:
    catalog_total: Decimal = ZERO
    custom_total: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        return self.catalog_total + self.custom_total


@dataclass(frozen=True)
class Margin:
    amount: Decimal = ZERO
    percent: Decimal = ZERO
    is_override: bool = False
    override_reason: str = ''


@dataclass(frozen=True)
class PricingError:
    code: str
    message: str


@dataclass(frozen=True)
class PricingResult:
    """
    Outcome of one pricing calculation.

    final_total == logistics_sub_total + margin.amount and
    logistics_sub_total == base_ops_total + transport.final_rate
    + line_items.catalog_total + line_items.custom_total, always.
    """

    base_ops_total: Decimal
    transport: Transport
    line_items: LineItemTotals
    margin: Margin
    logistics_sub_total: Decimal
    final_total: Decimal
    calculated_by: str
    calculated_at: datetime
    revision: int
    volume: Decimal = Decimal('0')
    tier_id: str | None = None
    currency: str = 'AED'
    error: PricingError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failed(cls, snapshot: PricingSnapshot, code: str, message: str,
               calculated_by: str, calculated_at: datetime, currency: str) -> 'PricingResult':
        return cls(
            base_ops_total=ZERO,
            transport=Transport(),
            line_items=LineItemTotals(),
            margin=Margin(),
            logistics_sub_total=ZERO,
            final_total=ZERO,
            calculated_by=calculated_by,
            calculated_at=calculated_at,
            revision=snapshot.revision,
            volume=snapshot.volume,
            currency=currency,
            error=PricingError(code=code, message=message),
        )

    def as_dict(self) -> dict[str, Any]:
        """JSON-safe representation (Decimals as strings)."""
        return {
            'base_ops_total': str(self.base_ops_total),
            'transport': {
                'final_rate': str(self.transport.final_rate),
                'trips': [
                    {
                        'trip_id': t.trip_id,
                        'city': t.city,
                        'trip_type': t.trip_type,
                        'vehicle_type': t.vehicle_type,
                        'rate': str(t.rate),
                    }
                    for t in self.transport.trips
                ],
            },
            'line_items': {
                'catalog_total': str(self.line_items.catalog_total),
                'custom_total': str(self.line_items.custom_total),
            },
            'margin': {
                'amount': str(self.margin.amount),
                'percent': str(self.margin.percent),
                'is_override': self.margin.is_override,
                'override_reason': self.margin.override_reason,
            },
            'logistics_sub_total': str(self.logistics_sub_total),
            'final_total': str(self.final_total),
            'calculated_by': self.calculated_by,
            'calculated_at': self.calculated_at.isoformat(),
            'revision': self.revision,
            'volume': str(self.volume),
            'tier_id': self.tier_id,
            'currency': self.currency,
            'error': None if self.error is None else {'code': self.error.code, 'message': self.error.message},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'PricingResult':
        error = data.get('error')
        return cls(
            base_ops_total=Decimal(data['base_ops_total']),
            transport=Transport(
                final_rate=Decimal(data['transport']['final_rate']),
                trips=tuple(
                    TripCharge(
                        trip_id=t['trip_id'],
                        city=t['city'],
                        trip_type=t['trip_type'],
                        vehicle_type=t['vehicle_type'],
                        rate=Decimal(t['rate']),
                    )
                    for t in data['transport'].get('trips', [])
                ),
            ),
            line_items=LineItemTotals(
                catalog_total=Decimal(data['line_items']['catalog_total']),
                custom_total=Decimal(data['line_items']['custom_total']),
            ),
            margin=Margin(
                amount=Decimal(data['margin']['amount']),
                percent=Decimal(data['margin']['percent']),
                is_override=data['margin']['is_override'],
                override_reason=data['margin']['override_reason'],
            ),
            logistics_sub_total=Decimal(data['logistics_sub_total']),
            final_total=Decimal(data['final_total']),
            calculated_by=data['calculated_by'],
            calculated_at=parse_datetime(data['calculated_at']),
            revision=data['revision'],
            volume=Decimal(data.get('volume', '0')),
            tier_id=data.get('tier_id'),
            currency=data.get('currency', 'AED'),
            error=PricingError(**error) if error else None,
        )


# ══════════════════════════════════════════════════════════════
# CALCULATION
# ══════════════════════════════════════════════════════════════


def calculate(snapshot: PricingSnapshot, tariff: TariffBackend, calculated_by: str = 'system',
              calculated_at: datetime | None = None, currency: str = 'AED') -> PricingResult:
    """
    Price a snapshot.

    1. base_ops_total = tier.base_price + volume × tier.warehouse_ops_rate
    2. transport = Σ rate(city, trip_type, vehicle_type) over trips
    3. line items = Σ qty × unit_rate (catalog) + Σ amount (custom),
       billable and not voided only
    4. margin = override amount, or percent × logistics_sub_total
    5. final_total = logistics_sub_total + margin

    Returns:
        PricingResult; on a configuration gap, `error` is set
        (NO_PRICING_TIER_MATCH, NO_TRANSPORT_RATE_CONFIGURED) and all
        totals are zero
    """
    at = calculated_at or timezone.now()
    volume = snapshot.volume

    tier = tariff.find_tier(snapshot.company_id, snapshot.country, snapshot.city, volume)
    if tier is None:
        return PricingResult.failed(
            snapshot, 'NO_PRICING_TIER_MATCH',
            f"No pricing tier covers {volume} m³ in {snapshot.city or 'an unknown city'}",
            calculated_by, at, currency,
        )
    base_ops_total = money(tier.base_price + volume * tier.warehouse_ops_rate)

    charges = []
    for trip in snapshot.trips:
        rate = tariff.find_transport_rate(snapshot.company_id, trip.city, trip.trip_type, trip.vehicle_type)
        if rate is None:
            return PricingResult.failed(
                snapshot, 'NO_TRANSPORT_RATE_CONFIGURED',
                f"No transport rate for {trip.trip_type} {trip.vehicle_type} in {trip.city}",
                calculated_by, at, currency,
            )
        charges.append(TripCharge(
            trip_id=trip.trip_id,
            city=trip.city,
            trip_type=trip.trip_type,
            vehicle_type=trip.vehicle_type,
            rate=money(rate.rate),
        ))
    transport = Transport(final_rate=money(sum((c.rate for c in charges), ZERO)), trips=tuple(charges))

    catalog_total = ZERO
    custom_total = ZERO
    for li in snapshot.line_items:
        if li.is_voided or li.billing_mode != BillingMode.BILLABLE:
            continue
        if li.line_item_type == LineItemType.CATALOG:
            catalog_total += (li.quantity or 0) * (li.unit_rate or 0)
        else:
            custom_total += li.amount
    line_items = LineItemTotals(catalog_total=money(catalog_total), custom_total=money(custom_total))

    logistics_sub_total = base_ops_total + transport.final_rate + line_items.total

    if snapshot.margin_override_amount is not None:
        margin = Margin(
            amount=money(snapshot.margin_override_amount),
            percent=snapshot.margin_percent,
            is_override=True,
            override_reason=snapshot.margin_override_reason,
        )
    else:
        margin = Margin(
            amount=money(logistics_sub_total * snapshot.margin_percent / 100),
            percent=snapshot.margin_percent,
        )

    return PricingResult(
        base_ops_total=base_ops_total,
        transport=transport,
        line_items=line_items,
        margin=margin,
        logistics_sub_total=logistics_sub_total,
        final_total=logistics_sub_total + margin.amount,
        calculated_by=calculated_by,
        calculated_at=at,
        revision=snapshot.revision,
        volume=volume,
        tier_id=tier.tier_id,
        currency=currency,
    )


# ══════════════════════════════════════════════════════════════
# SERVICE
# ══════════════════════════════════════════════════════════════


class CargoPricing:
    """Pricing write-back and pricing-input mutations."""

    @classmethod
    def reprice(cls, owner, actor: Actor) -> PricingResult:
        """
        Recalculate on request of `actor` while the quote is still open.

        Raises:
            CargoError('PERMISSION_DENIED'): actor lacks pricing:review
            CargoError('ITEMS_LOCKED'): owner is past the quote stage
        """
        with transaction.atomic():
            lock_for_edit(owner, actor, Capability.PRICING_REVIEW)
            return cls.recalculate(owner, actor)

    @classmethod
    def recalculate(cls, owner, actor: Actor | None = None) -> PricingResult:
        """
        Calculate from the current inputs and store the result.

        Configuration gaps are logged and stored like any other result.
        No authorization and no status check; used by lifecycle hooks.
        """
        from cargoman.adapters.tariff import get_tariff_backend

        owner.refresh_from_db()
        result = calculate(
            build_snapshot(owner),
            get_tariff_backend(),
            calculated_by=str(actor or 'system'),
            currency=cargoman_settings.CURRENCY,
        )
        if not result.ok:
            logger.warning(
                "cargo.pricing.config_gap",
                extra={
                    "purpose_id": owner.pk,
                    "reference": owner.reference,
                    "code": result.error.code,
                },
            )
        cls.store(owner, result)
        return result

    @classmethod
    def store(cls, owner, result: PricingResult):
        """
        Write `result` to `owner.pricing` under the owner's row lock.

        Raises:
            IntegrityViolation('STALE_PRICING_WRITE'): result predates the
                stored pricing, or was computed from an older revision
        """
        with transaction.atomic():
            locked = lock(owner)

            if result.revision < locked.revision:
                raise IntegrityViolation(
                    'STALE_PRICING_WRITE',
                    reference=locked.reference,
                    revision=result.revision,
                    current_revision=locked.revision,
                )
            stored = locked.pricing
            if stored:
                stored_at = parse_datetime(stored['calculated_at'])
                if result.revision < stored['revision'] or result.calculated_at < stored_at:
                    raise IntegrityViolation(
                        'STALE_PRICING_WRITE',
                        reference=locked.reference,
                        calculated_at=result.calculated_at.isoformat(),
                        stored_at=stored['calculated_at'],
                    )

            locked.pricing = result.as_dict()
            locked.pricing_calculated_at = result.calculated_at
            locked.save(update_fields=['pricing', 'pricing_calculated_at', 'updated_at'])

        owner.pricing = locked.pricing
        owner.pricing_calculated_at = locked.pricing_calculated_at

        logger.info(
            "cargo.pricing.stored",
            extra={
                "purpose_id": locked.pk,
                "reference": locked.reference,
                "revision": result.revision,
                "final_total": str(result.final_total),
                "ok": result.ok,
            },
        )
        return locked

    # ══════════════════════════════════════════════════════════════
    # LINE ITEMS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def add_catalog_line_item(cls, owner, service_type: ServiceType, quantity, actor: Actor,
                              unit_rate=None, billing_mode: str = BillingMode.BILLABLE,
                              notes: str = '') -> LineItem:
        """
        Add a catalog-priced service (quantity × unit rate).

        unit_rate defaults to the service type's default rate.
        """
        quantity = to_decimal(quantity, 'INVALID_QUANTITY', 'quantity')
        if quantity <= 0:
            raise ValidationFailed('INVALID_QUANTITY', requested=quantity)
        rate = unit_rate if unit_rate is not None else service_type.default_rate
        if rate is None:
            raise ValidationFailed('FIELD_REQUIRED', field='unit_rate', service_type=service_type.name)
        rate = to_decimal(rate, 'INVALID_AMOUNT', 'unit_rate')
        if rate < 0:
            raise ValidationFailed('INVALID_AMOUNT', field='unit_rate', requested=rate)
        rate = money(rate)

        with transaction.atomic():
            locked = lock_for_edit(owner, actor, Capability.PRICING_ADJUST)
            line_item = LineItem.objects.create(
                purpose=locked,
                line_item_type=LineItemType.CATALOG,
                service_type=service_type,
                category=service_type.category,
                description=service_type.name,
                quantity=quantity,
                unit=service_type.unit,
                unit_rate=rate,
                amount=money(quantity * rate),
                billing_mode=billing_mode,
                notes=notes,
                added_by=str(actor),
            )
            bump_revision(locked)

        logger.info(
            "cargo.pricing.line_item_added",
            extra={"reference": locked.reference, "line_item_id": line_item.pk, "type": 'CATALOG'},
        )
        return line_item

    @classmethod
    def add_custom_line_item(cls, owner, description: str, amount, justification: str, actor: Actor,
                             category: str = 'OTHER', billing_mode: str = BillingMode.BILLABLE,
                             notes: str = '') -> LineItem:
        """
        Add a free-form charge.

        Raises:
            CargoError('JUSTIFICATION_REQUIRED')
        """
        if not (justification or '').strip():
            raise ValidationFailed('JUSTIFICATION_REQUIRED')
        amount = money(to_decimal(amount, 'INVALID_AMOUNT', 'amount'))

        with transaction.atomic():
            locked = lock_for_edit(owner, actor, Capability.PRICING_ADJUST)
            line_item = LineItem.objects.create(
                purpose=locked,
                line_item_type=LineItemType.CUSTOM,
                category=category,
                description=description,
                amount=amount,
                billing_mode=billing_mode,
                justification=justification,
                notes=notes,
                added_by=str(actor),
            )
            bump_revision(locked)

        logger.info(
            "cargo.pricing.line_item_added",
            extra={"reference": locked.reference, "line_item_id": line_item.pk, "type": 'CUSTOM'},
        )
        return line_item

    @classmethod
    def void_line_item(cls, line_item: LineItem, reason: str, actor: Actor) -> LineItem:
        """Void a line item. It stays for audit; pricing ignores it."""
        if not (reason or '').strip():
            raise ValidationFailed('REASON_REQUIRED')

        with transaction.atomic():
            locked = lock_for_edit(line_item.purpose, actor, Capability.PRICING_ADJUST)
            line_item = LineItem.objects.select_for_update().get(pk=line_item.pk)
            if not line_item.is_voided:
                line_item.is_voided = True
                line_item.void_reason = reason
                line_item.voided_by = str(actor)
                line_item.voided_at = timezone.now()
                line_item.save(update_fields=['is_voided', 'void_reason', 'voided_by', 'voided_at'])
                bump_revision(locked)

        return line_item

    # ══════════════════════════════════════════════════════════════
    # TRIPS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def add_trip(cls, owner, vehicle_type: str, actor: Actor, trip_type: str | None = None,
                 leg: str = 'DELIVERY', city: str = '', **details) -> TransportTrip:
        """
        Attach a transport trip.

        trip_type defaults to the owner's trip type (orders) or ONE_WAY.
        """
        with transaction.atomic():
            locked = lock_for_edit(owner, actor, Capability.PRICING_ADJUST)
            sequence_no = TransportTrip.objects.filter(
                purpose_type=ContentType.objects.get_for_model(locked),
                purpose_id=locked.pk,
            ).count() + 1
            trip = TransportTrip.objects.create(
                purpose=locked,
                trip_type=trip_type or getattr(locked, 'trip_type', 'ONE_WAY'),
                vehicle_type=vehicle_type,
                leg=leg,
                city=city,
                sequence_no=sequence_no,
                **details,
            )
            bump_revision(locked)

        logger.info(
            "cargo.pricing.trip_added",
            extra={"reference": locked.reference, "trip_id": trip.pk, "vehicle_type": vehicle_type},
        )
        return trip

    @classmethod
    def update_trip(cls, trip: TransportTrip, actor: Actor, **changes) -> TransportTrip:
        """Change trip fields. Any change to the priced fields marks pricing stale."""
        with transaction.atomic():
            locked = lock_for_edit(trip.purpose, actor, Capability.PRICING_ADJUST)
            trip = TransportTrip.objects.select_for_update().get(pk=trip.pk)
            for name, value in changes.items():
                setattr(trip, name, value)
            trip.save()
            if {'trip_type', 'vehicle_type', 'city'} & changes.keys():
                bump_revision(locked)
        return trip

    @classmethod
    def remove_trip(cls, trip: TransportTrip, actor: Actor) -> None:
        with transaction.atomic():
            locked = lock_for_edit(trip.purpose, actor, Capability.PRICING_ADJUST)
            TransportTrip.objects.filter(pk=trip.pk).delete()
            bump_revision(locked)

    # ══════════════════════════════════════════════════════════════
    # MARGIN
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def set_margin_percent(cls, owner, percent, actor: Actor):
        """Set the margin percent (None = configured default)."""
        if percent is not None:
            percent = to_decimal(percent, 'INVALID_AMOUNT', 'margin_percent')
            if percent < 0:
                raise ValidationFailed('INVALID_AMOUNT', field='margin_percent', requested=percent)

        with transaction.atomic():
            locked = lock_for_edit(owner, actor, Capability.PRICING_ADJUST_MARGIN)
            locked.margin_percent = percent
            locked.save(update_fields=['margin_percent', 'updated_at'])
            bump_revision(locked)
        return locked

    @classmethod
    def override_margin(cls, owner, amount, reason: str, actor: Actor):
        """
        Replace the computed margin with a fixed amount.

        Pass amount=None to go back to the percent margin.

        Raises:
            CargoError('REASON_REQUIRED'): amount given without a reason
        """
        if amount is not None and not (reason or '').strip():
            raise ValidationFailed('REASON_REQUIRED', field='margin_override_reason')
        if amount is not None:
            amount = to_decimal(amount, 'INVALID_AMOUNT', 'margin_override_amount')

        with transaction.atomic():
            locked = lock_for_edit(owner, actor, Capability.PRICING_ADJUST_MARGIN)
            locked.margin_override_amount = None if amount is None else money(amount)
            locked.margin_override_reason = '' if amount is None else reason
            locked.save(update_fields=['margin_override_amount', 'margin_override_reason', 'updated_at'])
            bump_revision(locked)

        logger.info(
            "cargo.pricing.margin_override",
            extra={"reference": locked.reference, "amount": str(amount), "reason": reason},
        )
        return locked
