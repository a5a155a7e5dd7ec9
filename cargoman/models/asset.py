"""
Asset model — a trackable physical item (or batch of identical items).
"""

import logging

from django.db import models
from django.db.models import F, Q
from django.utils.translation import gettext_lazy as _

from cargoman.models.enums import AssetStatus, Condition, TrackingMethod

logger = logging.getLogger('cargoman')


class AssetQuerySet(models.QuerySet):
    """Custom QuerySet for Asset with convenience filters."""

    def active(self):
        return self.filter(status=AssetStatus.ACTIVE)

    def for_company(self, company_id):
        return self.filter(company_id=company_id)

    def with_available(self, quantity=1):
        """Assets with at least `quantity` units free for booking."""
        return self.active().annotate(
            _available=F('_total') - F('_booked') - F('_out') - F('_in_maintenance')
        ).filter(_available__gte=quantity)


class Asset(models.Model):
    """
    Physical asset tracked by QR code.

    Availability:
    - _total, _booked, _out, _in_maintenance are caches updated
      atomically by LedgerEntry.save(), never written directly
    - available = total - booked - out - in_maintenance
    - Use recalculate() for audit/correction against the ledger fold

    Transformation:
    - A reskin replaces this asset with a successor (transformed_to)
    - A TRANSFORMED asset accepts no new bookings or scans
    """

    company_id = models.CharField(max_length=64, db_index=True, verbose_name=_('Company'))
    name = models.CharField(max_length=200, verbose_name=_('Name'))
    qr_code = models.CharField(max_length=100, unique=True, verbose_name=_('QR code'))
    category = models.CharField(max_length=50, blank=True, default='', verbose_name=_('Category'))
    tracking_method = models.CharField(
        max_length=20,
        choices=TrackingMethod.choices,
        default=TrackingMethod.INDIVIDUAL,
        verbose_name=_('Tracking method'),
    )
    status = models.CharField(
        max_length=20,
        choices=AssetStatus.choices,
        default=AssetStatus.ACTIVE,
        db_index=True,
        verbose_name=_('Status'),
    )
    transformed_to = models.OneToOneField(
        'self',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='transformed_from',
        verbose_name=_('Transformed to'),
        help_text=_('Successor asset after a reskin. Set exactly once.'),
    )
    condition = models.CharField(
        max_length=10,
        choices=Condition.choices,
        default=Condition.GREEN,
        verbose_name=_('Condition'),
    )
    refurb_days_estimate = models.PositiveIntegerField(null=True, blank=True)

    volume_per_unit = models.DecimalField(
        max_digits=10, decimal_places=3, default=0, verbose_name=_('Volume per unit (m³)'),
    )
    weight_per_unit = models.DecimalField(
        max_digits=10, decimal_places=2, default=0, verbose_name=_('Weight per unit (kg)'),
    )
    handling_tags = models.JSONField(default=list, blank=True)

    warehouse_id = models.CharField(max_length=64, blank=True, default='')
    zone_id = models.CharField(max_length=64, blank=True, default='')

    # Quantity caches (updated atomically by LedgerEntry)
    _total = models.PositiveIntegerField(default=0, verbose_name=_('Total'))
    _booked = models.PositiveIntegerField(default=0, verbose_name=_('Booked'))
    _out = models.PositiveIntegerField(default=0, verbose_name=_('Out'))
    _in_maintenance = models.PositiveIntegerField(default=0, verbose_name=_('In maintenance'))

    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = AssetQuerySet.as_manager()

    class Meta:
        verbose_name = _('Asset')
        verbose_name_plural = _('Assets')
        ordering = ['name']
        constraints = [
            models.CheckConstraint(
                condition=Q(_total__gte=F('_booked') + F('_out') + F('_in_maintenance')),
                name='asset_available_non_negative',
            ),
        ]
        indexes = [
            models.Index(fields=['company_id', 'status'], name='cargo_asset_company_status'),
        ]

    # ══════════════════════════════════════════════════════════════
    # PROPERTIES
    # ══════════════════════════════════════════════════════════════

    @property
    def total_quantity(self) -> int:
        return self._total

    @property
    def booked_quantity(self) -> int:
        return self._booked

    @property
    def out_quantity(self) -> int:
        return self._out

    @property
    def in_maintenance_quantity(self) -> int:
        return self._in_maintenance

    @property
    def available_quantity(self) -> int:
        """Free for new reservations. Reads the cached counters, no query."""
        return self._total - self._booked - self._out - self._in_maintenance

    @property
    def is_transformed(self) -> bool:
        return self.status == AssetStatus.TRANSFORMED

    @property
    def is_individual(self) -> bool:
        return self.tracking_method == TrackingMethod.INDIVIDUAL

    def successor(self) -> 'Asset':
        """Follow the transformation chain to the current asset."""
        current = self
        while current.transformed_to_id is not None:
            current = current.transformed_to
        return current

    # ══════════════════════════════════════════════════════════════
    # METHODS
    # ══════════════════════════════════════════════════════════════

    def recalculate(self) -> dict[str, int]:
        """
        Recalculate the quantity caches from the full ledger.

        Use for:
        - Integrity audit
        - Correction after detected inconsistency

        Returns:
            Counters from the fold
        """
        from cargoman.services.ledger import fold

        counters = fold(self.ledger_entries.order_by('pk'))
        current = self.counters()

        if counters != current:
            for name, value in counters.items():
                setattr(self, f'_{name}', value)
            self.save(update_fields=['_total', '_booked', '_out', '_in_maintenance', 'updated_at'])
            logger.warning(
                "cargo.asset.recalculated",
                extra={"asset_id": self.pk, "before": current, "after": counters},
            )

        return counters

    def counters(self) -> dict[str, int]:
        return {
            'total': self._total,
            'booked': self._booked,
            'out': self._out,
            'in_maintenance': self._in_maintenance,
        }

    def __str__(self) -> str:
        return f"{self.name} [{self.qr_code}]"
