"""
Pricing models — tariff tables and per-order pricing inputs.
"""

from decimal import Decimal

from django.contrib.contenttypes.fields import GenericForeignKey
from django.contrib.contenttypes.models import ContentType
from django.db import models
from django.db.models import Q
from django.utils.translation import gettext_lazy as _

from cargoman.models.enums import (
    BillingMode,
    LineItemRequestStatus,
    LineItemType,
    ServiceCategory,
    TripLeg,
    TripType,
)


# ══════════════════════════════════════════════════════════════
# TARIFF
# ══════════════════════════════════════════════════════════════


class PricingTierQuerySet(models.QuerySet):

    def active(self):
        return self.filter(is_active=True)

    def covering(self, volume):
        """Tiers whose band contains `volume` (min inclusive, max exclusive)."""
        return self.filter(volume_min__lte=volume).filter(
            Q(volume_max__isnull=True) | Q(volume_max__gt=volume)
        )


class PricingTier(models.Model):
    """
    Base operations price for a volume band in a city.

    company_id empty = platform default; a company-specific tier wins.
    volume_max empty = open-ended band.
    """

    company_id = models.CharField(max_length=64, blank=True, default='', db_index=True)
    country = models.CharField(max_length=64, blank=True, default='')
    city = models.CharField(max_length=64, verbose_name=_('City'))
    volume_min = models.DecimalField(max_digits=10, decimal_places=3, default=0)
    volume_max = models.DecimalField(max_digits=10, decimal_places=3, null=True, blank=True)
    base_price = models.DecimalField(max_digits=12, decimal_places=2, verbose_name=_('Base price'))
    warehouse_ops_rate = models.DecimalField(
        max_digits=12, decimal_places=2, default=0,
        verbose_name=_('Warehouse ops rate per m³'),
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = PricingTierQuerySet.as_manager()

    class Meta:
        verbose_name = _('Pricing tier')
        verbose_name_plural = _('Pricing tiers')
        ordering = ['city', 'volume_min']

    def __str__(self) -> str:
        upper = self.volume_max if self.volume_max is not None else '∞'
        return f"{self.city} [{self.volume_min}, {upper}) m³"


class TransportRate(models.Model):
    """Flat rate per trip for a city, trip type and vehicle."""

    company_id = models.CharField(max_length=64, blank=True, default='', db_index=True)
    city = models.CharField(max_length=64)
    trip_type = models.CharField(max_length=12, choices=TripType.choices)
    vehicle_type = models.CharField(max_length=32)
    rate = models.DecimalField(max_digits=12, decimal_places=2)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _('Transport rate')
        verbose_name_plural = _('Transport rates')
        ordering = ['city', 'trip_type', 'vehicle_type']

    def __str__(self) -> str:
        return f"{self.city} {self.trip_type} {self.vehicle_type}: {self.rate}"


class ServiceType(models.Model):
    """Catalog entry for a billable service (assembly, handling, ...)."""

    name = models.CharField(max_length=100)
    category = models.CharField(max_length=20, choices=ServiceCategory.choices, default=ServiceCategory.OTHER)
    unit = models.CharField(max_length=20, default='unit')
    default_rate = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    description = models.TextField(blank=True, default='')
    is_active = models.BooleanField(default=True)

    class Meta:
        verbose_name = _('Service type')
        verbose_name_plural = _('Service types')
        ordering = ['category', 'name']

    def __str__(self) -> str:
        return self.name


# ══════════════════════════════════════════════════════════════
# PER-ORDER INPUTS
# ══════════════════════════════════════════════════════════════


class LineItemQuerySet(models.QuerySet):

    def billable(self):
        return self.filter(is_voided=False, billing_mode=BillingMode.BILLABLE)


class LineItem(models.Model):
    """
    Service charge on an order or inbound request.

    CATALOG items are quantity × unit_rate; CUSTOM items carry a free-form
    amount and a justification. Voided items stay for audit and are ignored
    by pricing.
    """

    purpose_type = models.ForeignKey(ContentType, on_delete=models.PROTECT, related_name='+')
    purpose_id = models.PositiveIntegerField()
    purpose = GenericForeignKey('purpose_type', 'purpose_id')

    line_item_type = models.CharField(max_length=10, choices=LineItemType.choices)
    service_type = models.ForeignKey(
        ServiceType, on_delete=models.PROTECT, null=True, blank=True, related_name='line_items',
    )
    category = models.CharField(max_length=20, choices=ServiceCategory.choices, default=ServiceCategory.OTHER)
    description = models.CharField(max_length=255)

    quantity = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    unit = models.CharField(max_length=20, blank=True, default='')
    unit_rate = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)

    billing_mode = models.CharField(max_length=16, choices=BillingMode.choices, default=BillingMode.BILLABLE)
    justification = models.TextField(blank=True, default='')
    notes = models.TextField(blank=True, default='')

    is_voided = models.BooleanField(default=False)
    void_reason = models.TextField(blank=True, default='')
    voided_by = models.CharField(max_length=64, blank=True, default='')
    voided_at = models.DateTimeField(null=True, blank=True)

    added_by = models.CharField(max_length=64, blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)

    objects = LineItemQuerySet.as_manager()

    class Meta:
        verbose_name = _('Line item')
        verbose_name_plural = _('Line items')
        ordering = ['pk']
        indexes = [
            models.Index(fields=['purpose_type', 'purpose_id'], name='cargo_lineitem_purpose'),
        ]

    @property
    def total(self) -> Decimal:
        if self.line_item_type == LineItemType.CATALOG:
            return (self.quantity or Decimal('0')) * (self.unit_rate or Decimal('0'))
        return self.amount

    def __str__(self) -> str:
        return f"{self.description} ({self.line_item_type})"


class TransportTrip(models.Model):
    """One truck movement priced into the transport component."""

    purpose_type = models.ForeignKey(ContentType, on_delete=models.PROTECT, related_name='+')
    purpose_id = models.PositiveIntegerField()
    purpose = GenericForeignKey('purpose_type', 'purpose_id')

    trip_type = models.CharField(max_length=12, choices=TripType.choices, default=TripType.ROUND_TRIP)
    vehicle_type = models.CharField(max_length=32)
    leg = models.CharField(max_length=12, choices=TripLeg.choices, default=TripLeg.DELIVERY)
    city = models.CharField(
        max_length=64, blank=True, default='',
        help_text=_('Empty = venue city of the order'),
    )
    sequence_no = models.PositiveIntegerField(default=0)

    truck_plate = models.CharField(max_length=32, blank=True, default='')
    driver_name = models.CharField(max_length=100, blank=True, default='')
    driver_contact = models.CharField(max_length=32, blank=True, default='')
    notes = models.TextField(blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _('Transport trip')
        verbose_name_plural = _('Transport trips')
        ordering = ['sequence_no', 'pk']
        indexes = [
            models.Index(fields=['purpose_type', 'purpose_id'], name='cargo_trip_purpose'),
        ]

    def __str__(self) -> str:
        return f"{self.leg} {self.trip_type} {self.vehicle_type}"


class LineItemRequestQuerySet(models.QuerySet):

    def pending(self):
        return self.filter(status=LineItemRequestStatus.REQUESTED)

    def for_purpose(self, owner):
        return self.filter(
            purpose_type=ContentType.objects.get_for_model(owner),
            purpose_id=owner.pk,
        )


class LineItemRequest(models.Model):
    """
    Charge proposed by warehouse staff, waiting for an admin.

    Approval turns it into a LineItem (catalog when a service type is set,
    custom otherwise); rejection keeps it for audit with the admin's note.
    Pricing only changes once the LineItem exists.
    """

    purpose_type = models.ForeignKey(ContentType, on_delete=models.PROTECT, related_name='+')
    purpose_id = models.PositiveIntegerField()
    purpose = GenericForeignKey('purpose_type', 'purpose_id')

    status = models.CharField(
        max_length=10,
        choices=LineItemRequestStatus.choices,
        default=LineItemRequestStatus.REQUESTED,
        db_index=True,
    )
    service_type = models.ForeignKey(
        ServiceType, on_delete=models.PROTECT, null=True, blank=True, related_name='+',
    )
    description = models.CharField(max_length=255)
    category = models.CharField(max_length=20, choices=ServiceCategory.choices, default=ServiceCategory.OTHER)
    quantity = models.DecimalField(max_digits=10, decimal_places=2)
    unit = models.CharField(max_length=20, default='service')
    unit_rate = models.DecimalField(max_digits=12, decimal_places=2)
    notes = models.TextField(blank=True, default='')

    line_item = models.OneToOneField(
        LineItem, on_delete=models.PROTECT, null=True, blank=True, related_name='request',
    )
    admin_note = models.TextField(blank=True, default='')
    requested_by = models.CharField(max_length=64)
    resolved_by = models.CharField(max_length=64, blank=True, default='')
    resolved_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = LineItemRequestQuerySet.as_manager()

    class Meta:
        verbose_name = _('Line item request')
        verbose_name_plural = _('Line item requests')
        ordering = ['pk']
        indexes = [
            models.Index(fields=['purpose_type', 'purpose_id'], name='cargo_lirequest_purpose'),
        ]

    @property
    def is_pending(self) -> bool:
        return self.status == LineItemRequestStatus.REQUESTED

    def __str__(self) -> str:
        return f"{self.description} ({self.status})"
