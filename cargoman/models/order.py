"""
Order models — assets booked out to an event and brought back.
"""

from decimal import Decimal

from django.contrib.contenttypes.fields import GenericRelation
from django.db import models
from django.utils.translation import gettext_lazy as _

from cargoman.models.enums import FinancialStatus, OrderStatus, TripType


class Fulfillable(models.Model):
    """
    Fields shared by orders and inbound requests.

    - status / status_history: written only by the lifecycle
    - pricing: written only by the pricing write-back
    - revision: bumped on every change to pricing inputs
      (items, trips, line items, margin); a stored PricingResult with a
      different revision is stale
    """

    reference = models.CharField(max_length=32, blank=True, default='', db_index=True)
    financial_status = models.CharField(
        max_length=20,
        choices=FinancialStatus.choices,
        default=FinancialStatus.PENDING_QUOTE,
        verbose_name=_('Financial status'),
    )
    company_id = models.CharField(max_length=64, db_index=True, verbose_name=_('Company'))
    requester_id = models.CharField(max_length=64, verbose_name=_('Requester'))

    venue_country = models.CharField(max_length=64, blank=True, default='')
    venue_city = models.CharField(
        max_length=64,
        blank=True,
        default='',
        help_text=_('City or emirate used for tier and transport rate lookup'),
    )

    # Pricing inputs
    revision = models.PositiveIntegerField(default=0)
    margin_percent = models.DecimalField(
        max_digits=5, decimal_places=2, null=True, blank=True,
        help_text=_('Empty = configured default'),
    )
    margin_override_amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    margin_override_reason = models.TextField(blank=True, default='')

    # Last PricingResult (see services.pricing)
    pricing = models.JSONField(null=True, blank=True)
    pricing_calculated_at = models.DateTimeField(null=True, blank=True)

    note = models.TextField(blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    line_items = GenericRelation(
        'cargoman.LineItem',
        content_type_field='purpose_type',
        object_id_field='purpose_id',
    )
    line_item_requests = GenericRelation(
        'cargoman.LineItemRequest',
        content_type_field='purpose_type',
        object_id_field='purpose_id',
    )
    transport_trips = GenericRelation(
        'cargoman.TransportTrip',
        content_type_field='purpose_type',
        object_id_field='purpose_id',
    )
    status_history = GenericRelation(
        'cargoman.StatusHistory',
        content_type_field='purpose_type',
        object_id_field='purpose_id',
    )

    # Statuses in which items, trips, line items and margin may change
    EDITABLE_STATUSES: frozenset[str] = frozenset()
    TERMINAL_STATUSES: frozenset[str] = frozenset()

    class Meta:
        abstract = True

    @property
    def is_editable(self) -> bool:
        return self.status in self.EDITABLE_STATUSES

    @property
    def is_terminal(self) -> bool:
        return self.status in self.TERMINAL_STATUSES

    @property
    def pricing_result(self):
        """Stored PricingResult, or None if never priced."""
        if not self.pricing:
            return None
        from cargoman.services.pricing import PricingResult
        return PricingResult.from_dict(self.pricing)

    @property
    def is_pricing_stale(self) -> bool:
        """True when there is no pricing or it predates the current revision."""
        if not self.pricing:
            return True
        return self.pricing.get('revision') != self.revision

    def total_volume(self) -> Decimal:
        return sum((item.total_volume for item in self.items.all()), Decimal('0'))

    def total_weight(self) -> Decimal:
        return sum((item.total_weight for item in self.items.all()), Decimal('0'))


class Order(Fulfillable):
    """
    Request to take existing assets out to an event.

    See services.orders for the transition table.
    """

    status = models.CharField(
        max_length=24,
        choices=OrderStatus.choices,
        default=OrderStatus.DRAFT,
        db_index=True,
        verbose_name=_('Status'),
    )
    trip_type = models.CharField(max_length=12, choices=TripType.choices, default=TripType.ROUND_TRIP)

    venue_name = models.CharField(max_length=200, blank=True, default='')
    event_start_date = models.DateField(null=True, blank=True)
    event_end_date = models.DateField(null=True, blank=True)
    special_instructions = models.TextField(blank=True, default='')

    EDITABLE_STATUSES = frozenset({
        OrderStatus.DRAFT,
        OrderStatus.SUBMITTED,
        OrderStatus.PRICING_REVIEW,
        OrderStatus.PENDING_APPROVAL,
        OrderStatus.QUOTED,
    })
    TERMINAL_STATUSES = frozenset({OrderStatus.CLOSED, OrderStatus.CANCELLED, OrderStatus.DECLINED})

    class Meta:
        verbose_name = _('Order')
        verbose_name_plural = _('Orders')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['company_id', 'status'], name='cargo_order_company_status'),
        ]

    @property
    def truck_photos(self) -> list[str]:
        """Photos attached to any scan session of this order."""
        return [photo for session in self.scan_sessions.all() for photo in session.truck_photos]

    def __str__(self) -> str:
        return self.reference or f"order:{self.pk}"


class OrderItem(models.Model):
    """
    One asset line on an order.

    Volume and weight are copied from the asset when the line is added so
    that later asset edits do not move an agreed price.
    """

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='items')
    asset = models.ForeignKey('cargoman.Asset', on_delete=models.PROTECT, related_name='order_items')
    quantity = models.PositiveIntegerField(verbose_name=_('Quantity'))
    volume_per_unit = models.DecimalField(max_digits=10, decimal_places=3, default=0)
    weight_per_unit = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    requires_reskin = models.BooleanField(default=False)
    reskin_target_brand = models.CharField(max_length=100, blank=True, default='')
    reskin_notes = models.TextField(blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _('Order item')
        verbose_name_plural = _('Order items')
        ordering = ['pk']
        constraints = [
            models.UniqueConstraint(fields=['order', 'asset'], name='unique_asset_per_order'),
        ]

    @property
    def total_volume(self) -> Decimal:
        return self.volume_per_unit * self.quantity

    @property
    def total_weight(self) -> Decimal:
        return self.weight_per_unit * self.quantity

    def __str__(self) -> str:
        return f"{self.quantity}x {self.asset}"
