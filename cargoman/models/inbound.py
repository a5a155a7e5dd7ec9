"""
Inbound request models — new goods arriving to become assets.
"""

from decimal import Decimal

from django.db import models
from django.utils.translation import gettext_lazy as _

from cargoman.models.enums import InboundRequestStatus, TrackingMethod
from cargoman.models.order import Fulfillable


class InboundRequest(Fulfillable):
    """
    Request to receive goods into a warehouse.

    Priced on creation, approved like an order, and on completion every
    item is minted as a new Asset.
    """

    status = models.CharField(
        max_length=24,
        choices=InboundRequestStatus.choices,
        default=InboundRequestStatus.PRICING_REVIEW,
        db_index=True,
        verbose_name=_('Status'),
    )
    incoming_at = models.DateTimeField(null=True, blank=True, verbose_name=_('Incoming at'))

    # Set on completion
    warehouse_id = models.CharField(max_length=64, blank=True, default='')
    zone_id = models.CharField(max_length=64, blank=True, default='')

    EDITABLE_STATUSES = frozenset({
        InboundRequestStatus.PRICING_REVIEW,
        InboundRequestStatus.PENDING_APPROVAL,
        InboundRequestStatus.QUOTED,
    })
    TERMINAL_STATUSES = frozenset({
        InboundRequestStatus.COMPLETED,
        InboundRequestStatus.CANCELLED,
        InboundRequestStatus.DECLINED,
    })

    class Meta:
        verbose_name = _('Inbound request')
        verbose_name_plural = _('Inbound requests')
        ordering = ['-created_at']

    def __str__(self) -> str:
        return self.reference or f"inbound:{self.pk}"


class InboundRequestItem(models.Model):
    request = models.ForeignKey(InboundRequest, on_delete=models.CASCADE, related_name='items')
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True, default='')
    category = models.CharField(max_length=50, blank=True, default='')
    tracking_method = models.CharField(
        max_length=20, choices=TrackingMethod.choices, default=TrackingMethod.INDIVIDUAL,
    )
    quantity = models.PositiveIntegerField()
    weight_per_unit = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    volume_per_unit = models.DecimalField(max_digits=10, decimal_places=3, default=0)
    dimensions = models.JSONField(default=dict, blank=True, help_text=_('{"length", "width", "height"} in cm'))
    handling_tags = models.JSONField(default=list, blank=True)

    created_asset = models.OneToOneField(
        'cargoman.Asset',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='inbound_item',
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _('Inbound request item')
        verbose_name_plural = _('Inbound request items')
        ordering = ['pk']

    @property
    def total_volume(self) -> Decimal:
        return self.volume_per_unit * self.quantity

    @property
    def total_weight(self) -> Decimal:
        return self.weight_per_unit * self.quantity

    def __str__(self) -> str:
        return f"{self.quantity}x {self.name}"
