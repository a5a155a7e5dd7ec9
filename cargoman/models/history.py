"""
StatusHistory model — append-only record of lifecycle transitions.
"""

from django.contrib.contenttypes.fields import GenericForeignKey
from django.contrib.contenttypes.models import ContentType
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from cargoman.exceptions import IntegrityViolation


class StatusHistory(models.Model):
    """
    One status transition of an order or inbound request.

    Rules:
    - Written only by the lifecycle, inside the transition's transaction
    - NEVER update() or delete()
    - Ordered by id; replaying to_status gives the current status
    """

    purpose_type = models.ForeignKey(
        ContentType,
        on_delete=models.PROTECT,
        related_name='+',
    )
    purpose_id = models.PositiveIntegerField()
    purpose = GenericForeignKey('purpose_type', 'purpose_id')

    from_status = models.CharField(max_length=24, blank=True, default='', verbose_name=_('From'))
    to_status = models.CharField(max_length=24, verbose_name=_('To'))
    actor = models.CharField(max_length=64, verbose_name=_('Actor'))
    note = models.TextField(blank=True, default='')
    timestamp = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        verbose_name = _('Status history')
        verbose_name_plural = _('Status history')
        ordering = ['pk']
        indexes = [
            models.Index(fields=['purpose_type', 'purpose_id', 'id'], name='cargo_history_purpose'),
        ]

    def save(self, *args, **kwargs):
        if self.pk:
            raise IntegrityViolation('IMMUTABLE_RECORD', model='StatusHistory', pk=self.pk)
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise IntegrityViolation('IMMUTABLE_RECORD', model='StatusHistory', pk=self.pk)

    def __str__(self) -> str:
        return f"{self.from_status or '∅'} → {self.to_status} by {self.actor}"
