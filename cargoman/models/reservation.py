"""
Reservation model — Quantity of an asset held for an order.
"""

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from cargoman.models.enums import ReservationStatus


class ReservationQuerySet(models.QuerySet):

    def active(self):
        return self.filter(status=ReservationStatus.ACTIVE)

    def for_order(self, order):
        return self.filter(order=order)


class Reservation(models.Model):
    """
    Quantity held against an asset for an order.

    LIFECYCLE:

    ┌──────────────────────────────────────────────────────────┐
    │                                                          │
    │   ┌────────┐        fulfill() (order closed)             │
    │   │ ACTIVE │ ─────────────────────────────► FULFILLED    │
    │   └────────┘                                             │
    │        │                                                 │
    │        │ release() (order cancelled)                     │
    │        ▼                                                 │
    │    RELEASED                                              │
    │                                                          │
    └──────────────────────────────────────────────────────────┘

    While ACTIVE, `quantity - scanned_out` is counted as booked on the
    asset; scanned-out units move to the asset's `out` counter. The
    reservation stays ACTIVE through delivery and return until the order
    closes.
    """

    asset = models.ForeignKey(
        'cargoman.Asset',
        on_delete=models.PROTECT,
        related_name='reservations',
        verbose_name=_('Asset'),
    )
    order = models.ForeignKey(
        'cargoman.Order',
        on_delete=models.PROTECT,
        related_name='reservations',
        verbose_name=_('Order'),
    )
    quantity = models.PositiveIntegerField(verbose_name=_('Quantity'))
    scanned_out = models.PositiveIntegerField(default=0, verbose_name=_('Scanned out'))
    scanned_in = models.PositiveIntegerField(default=0, verbose_name=_('Scanned in'))

    status = models.CharField(
        max_length=20,
        choices=ReservationStatus.choices,
        default=ReservationStatus.ACTIVE,
        db_index=True,
        verbose_name=_('Status'),
    )
    actor = models.CharField(max_length=64, blank=True, default='')
    created_at = models.DateTimeField(default=timezone.now)
    resolved_at = models.DateTimeField(null=True, blank=True, verbose_name=_('Resolved at'))
    metadata = models.JSONField(default=dict, blank=True)

    objects = ReservationQuerySet.as_manager()

    class Meta:
        verbose_name = _('Reservation')
        verbose_name_plural = _('Reservations')
        indexes = [
            models.Index(fields=['asset', 'status'], name='cargo_resv_asset_status'),
            models.Index(fields=['order', 'status'], name='cargo_resv_order_status'),
        ]

    @property
    def is_active(self) -> bool:
        return self.status == ReservationStatus.ACTIVE

    @property
    def booked_remainder(self) -> int:
        """Units still counted as booked (reserved but not yet scanned out)."""
        return self.quantity - self.scanned_out

    @property
    def on_site(self) -> int:
        """Units that left the warehouse and have not come back."""
        return self.scanned_out - self.scanned_in

    @property
    def reservation_id(self) -> str:
        """Return reservation identifier in standard format."""
        return f"reservation:{self.pk}"

    def __str__(self) -> str:
        return f"{self.reservation_id} {self.quantity}x {self.asset_id} ({self.status})"
