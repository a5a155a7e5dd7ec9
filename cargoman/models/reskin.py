"""
ReskinRequest model — fabrication work that replaces an asset.
"""

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from cargoman.models.enums import ReskinStatus


class ReskinRequestQuerySet(models.QuerySet):

    def pending(self):
        return self.filter(status=ReskinStatus.PENDING)


class ReskinRequest(models.Model):
    """
    Rebrand of an ordered asset.

    On completion the original asset is TRANSFORMED into `new_asset` and the
    order item points at the successor. While any request of an order is
    PENDING the order cannot leave AWAITING_FABRICATION.
    """

    order = models.ForeignKey('cargoman.Order', on_delete=models.CASCADE, related_name='reskin_requests')
    order_item = models.ForeignKey('cargoman.OrderItem', on_delete=models.CASCADE, related_name='reskin_requests')
    original_asset = models.ForeignKey(
        'cargoman.Asset', on_delete=models.PROTECT, related_name='reskin_requests',
    )
    target_brand = models.CharField(max_length=100, blank=True, default='')
    client_notes = models.TextField(blank=True, default='')

    status = models.CharField(
        max_length=10, choices=ReskinStatus.choices, default=ReskinStatus.PENDING, db_index=True,
    )
    new_asset = models.OneToOneField(
        'cargoman.Asset', on_delete=models.PROTECT, null=True, blank=True, related_name='reskin_origin',
    )
    completion_notes = models.TextField(blank=True, default='')
    completed_by = models.CharField(max_length=64, blank=True, default='')
    completed_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.TextField(blank=True, default='')
    cancelled_by = models.CharField(max_length=64, blank=True, default='')
    cancelled_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)

    objects = ReskinRequestQuerySet.as_manager()

    class Meta:
        verbose_name = _('Reskin request')
        verbose_name_plural = _('Reskin requests')
        ordering = ['pk']

    @property
    def is_pending(self) -> bool:
        return self.status == ReskinStatus.PENDING

    def __str__(self) -> str:
        return f"reskin:{self.pk} {self.original_asset_id} → {self.target_brand or '?'}"
