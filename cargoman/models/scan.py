"""
Scan models — per-direction scan session and immutable scan events.
"""

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from cargoman.exceptions import IntegrityViolation
from cargoman.models.enums import Condition, DiscrepancyReason, ScanDirection, ScanStatus


class ScanSession(models.Model):
    """
    Scan progress of one order in one direction.

    NOT_STARTED → IN_PROGRESS on the first accepted scan,
    IN_PROGRESS → COMPLETE when every line reaches its expected quantity.
    The status row is locked while scanning so completion is observed once.
    """

    order = models.ForeignKey('cargoman.Order', on_delete=models.CASCADE, related_name='scan_sessions')
    direction = models.CharField(max_length=10, choices=ScanDirection.choices)
    status = models.CharField(max_length=12, choices=ScanStatus.choices, default=ScanStatus.NOT_STARTED)
    started_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    truck_photos = models.JSONField(default=list, blank=True)

    class Meta:
        verbose_name = _('Scan session')
        verbose_name_plural = _('Scan sessions')
        constraints = [
            models.UniqueConstraint(fields=['order', 'direction'], name='unique_scan_session_per_direction'),
        ]

    @property
    def is_complete(self) -> bool:
        return self.status == ScanStatus.COMPLETE

    def __str__(self) -> str:
        return f"{self.order_id} {self.direction} {self.status}"


class ScanEvent(models.Model):
    """Immutable record of a scanned quantity. Append-only."""

    order = models.ForeignKey('cargoman.Order', on_delete=models.PROTECT, related_name='scan_events')
    asset = models.ForeignKey('cargoman.Asset', on_delete=models.PROTECT, related_name='scan_events')
    direction = models.CharField(max_length=10, choices=ScanDirection.choices)
    quantity = models.PositiveIntegerField()
    condition = models.CharField(max_length=10, choices=Condition.choices, blank=True, default='')
    notes = models.TextField(blank=True, default='')
    discrepancy_reason = models.CharField(
        max_length=10, choices=DiscrepancyReason.choices, blank=True, default='',
    )
    scanned_by = models.CharField(max_length=64)
    scanned_at = models.DateTimeField(default=timezone.now)

    class Meta:
        verbose_name = _('Scan event')
        verbose_name_plural = _('Scan events')
        ordering = ['pk']
        indexes = [
            models.Index(fields=['order', 'direction', 'asset'], name='cargo_scan_order_dir_asset'),
        ]

    def save(self, *args, **kwargs):
        if self.pk:
            raise IntegrityViolation('IMMUTABLE_RECORD', model='ScanEvent', pk=self.pk)
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise IntegrityViolation('IMMUTABLE_RECORD', model='ScanEvent', pk=self.pk)

    def __str__(self) -> str:
        return f"{self.direction} {self.quantity}x {self.asset_id}"
