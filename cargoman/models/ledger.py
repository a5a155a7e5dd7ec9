"""
LedgerEntry model — Immutable ledger of availability changes.
"""

from django.db import models, transaction
from django.db.models import F
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from cargoman.exceptions import IntegrityViolation, ValidationFailed
from cargoman.models.enums import LedgerKind


# Sign applied to `delta` for each counter touched by a kind.
EFFECTS: dict[str, dict[str, int]] = {
    LedgerKind.INTAKE: {'total': 1},
    LedgerKind.RETIRE: {'total': -1},
    LedgerKind.RESERVE: {'booked': 1},
    LedgerKind.RELEASE: {'booked': -1},
    LedgerKind.SCAN_OUT: {'booked': -1, 'out': 1},
    LedgerKind.SCAN_IN: {'out': -1},
    LedgerKind.MAINTENANCE_IN: {'in_maintenance': 1},
    LedgerKind.MAINTENANCE_OUT: {'in_maintenance': -1},
}


class LedgerEntry(models.Model):
    """
    Immutable record of an availability change.

    Rules:
    - NEVER update() or delete()
    - Corrections are new entries of the inverse kind
    - Updates the Asset counter caches atomically on save()

    This is the ONLY model that changes asset quantities.
    """

    asset = models.ForeignKey(
        'cargoman.Asset',
        on_delete=models.PROTECT,
        related_name='ledger_entries',
        verbose_name=_('Asset'),
    )
    kind = models.CharField(max_length=20, choices=LedgerKind.choices, verbose_name=_('Kind'))
    delta = models.PositiveIntegerField(
        verbose_name=_('Quantity'),
        help_text=_('Always positive; the kind decides which counters move and how.'),
    )

    order = models.ForeignKey(
        'cargoman.Order',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='ledger_entries',
    )
    reservation = models.ForeignKey(
        'cargoman.Reservation',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='ledger_entries',
    )

    actor = models.CharField(max_length=64, blank=True, default='', verbose_name=_('Actor'))
    reason = models.CharField(max_length=255, verbose_name=_('Reason'))
    metadata = models.JSONField(default=dict, blank=True)
    timestamp = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        verbose_name = _('Ledger entry')
        verbose_name_plural = _('Ledger entries')
        ordering = ['pk']
        indexes = [
            models.Index(fields=['asset', 'id'], name='cargo_ledger_asset'),
            models.Index(fields=['order', 'asset'], name='cargo_ledger_order_asset'),
        ]

    def effects(self) -> dict[str, int]:
        """Signed change per counter."""
        return {name: sign * self.delta for name, sign in EFFECTS[self.kind].items()}

    def save(self, *args, **kwargs):
        """Save entry and update asset counters atomically."""
        if self.pk:
            raise IntegrityViolation('IMMUTABLE_RECORD', model='LedgerEntry', pk=self.pk)

        if not self.delta or self.delta <= 0:
            raise ValidationFailed('INVALID_QUANTITY', requested=self.delta)
        if not self.reason:
            raise ValidationFailed('REASON_REQUIRED')

        with transaction.atomic():
            super().save(*args, **kwargs)

            from cargoman.models.asset import Asset

            Asset.objects.filter(pk=self.asset_id).update(
                updated_at=timezone.now(),
                **{f'_{name}': F(f'_{name}') + change for name, change in self.effects().items()},
            )

    def delete(self, *args, **kwargs):
        raise IntegrityViolation('IMMUTABLE_RECORD', model='LedgerEntry', pk=self.pk)

    def __str__(self) -> str:
        return f"{self.kind} {self.delta} | {self.reason}"


class AvailabilityCheckpoint(models.Model):
    """
    Counters of an asset folded up to (and including) `last_entry_id`.

    Replay starts from the latest checkpoint instead of the first entry.
    """

    asset = models.ForeignKey(
        'cargoman.Asset',
        on_delete=models.CASCADE,
        related_name='checkpoints',
    )
    last_entry_id = models.BigIntegerField()
    total = models.IntegerField(default=0)
    booked = models.IntegerField(default=0)
    out = models.IntegerField(default=0)
    in_maintenance = models.IntegerField(default=0)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        verbose_name = _('Availability checkpoint')
        verbose_name_plural = _('Availability checkpoints')
        ordering = ['-last_entry_id']
        constraints = [
            models.UniqueConstraint(fields=['asset', 'last_entry_id'], name='unique_checkpoint_per_entry'),
        ]

    def counters(self) -> dict[str, int]:
        return {
            'total': self.total,
            'booked': self.booked,
            'out': self.out,
            'in_maintenance': self.in_maintenance,
        }
