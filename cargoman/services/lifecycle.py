"""
Lifecycle plumbing shared by orders and inbound requests.

A Workflow is an explicit transition table: (source, target) pairs, each
with the capability that unlocks it, guards that must hold under the
owner's row lock, and effects applied in the same transaction. Anything
not in the table is INVALID_TRANSITION.

Transition order:

    1. Look up the transition for the current status
    2. Authorize (skipped for automatic transitions)
    3. Prechecks, outside the transition's transaction
    4. Lock the owner, look up again, run guards
    5. Write status, financial status and StatusHistory
    6. Run effects
    7. Publish StatusChanged after commit
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from cargoman.adapters.authorization import require
from cargoman.adapters.notifications import dispatch
from cargoman.capabilities import Actor, Capability
from cargoman.exceptions import RuleViolation, ValidationFailed
from cargoman.models.history import StatusHistory
from cargoman.protocols.notifications import StatusChanged

logger = logging.getLogger('cargoman')


# ══════════════════════════════════════════════════════════════
# ROW HELPERS
# ══════════════════════════════════════════════════════════════


def lock(owner):
    """Re-read `owner` with a row lock. Must run inside transaction.atomic()."""
    model = type(owner)
    try:
        return model.objects.select_for_update().get(pk=owner.pk)
    except model.DoesNotExist:
        raise ValidationFailed('NOT_FOUND', model=model.__name__, pk=owner.pk) from None


def lock_for_edit(owner, actor: Actor, capability: Capability):
    """
    Authorize and lock an owner whose pricing inputs are about to change.

    Raises:
        CargoError('PERMISSION_DENIED')
        CargoError('ITEMS_LOCKED'): status no longer allows edits
    """
    require(actor, capability)
    locked = lock(owner)
    if not locked.is_editable:
        raise RuleViolation('ITEMS_LOCKED', status=locked.status, reference=locked.reference)
    return locked


def bump_revision(locked) -> int:
    """Mark stored pricing stale. Returns the new revision."""
    type(locked).objects.filter(pk=locked.pk).update(revision=F('revision') + 1, updated_at=timezone.now())
    locked.refresh_from_db(fields=['revision', 'updated_at'])
    return locked.revision


def assign_reference(owner, prefix: str) -> str:
    """Set "{prefix}-YYYYMMDD-NNNN" from the creation date and pk."""
    owner.reference = f"{prefix}-{owner.created_at:%Y%m%d}-{owner.pk:04d}"
    type(owner).objects.filter(pk=owner.pk).update(reference=owner.reference)
    return owner.reference


# ══════════════════════════════════════════════════════════════
# TRANSITIONS
# ══════════════════════════════════════════════════════════════


@dataclass
class TransitionContext:
    """What a guard or effect knows about the transition in progress."""

    actor: Actor
    note: str = ''
    automatic: bool = False
    source: str = ''
    target: str = ''
    extra: dict[str, Any] = field(default_factory=dict)


Hook = Callable[[Any, TransitionContext], None]


@dataclass(frozen=True)
class Transition:
    source: str
    target: str
    capability: Capability
    prechecks: tuple[Hook, ...] = ()
    guards: tuple[Hook, ...] = ()
    effects: tuple[Hook, ...] = ()
    financial_status: str | None = None
    note_required: bool = False


class Workflow:
    """
    Transition table for one owner model.

    Args:
        purpose: Name used in events ("order", "inbound_request")
        transitions: Every allowed move
        terminal: Statuses with no way out
        cancel_target: Status whose missing transitions raise
            CANNOT_CANCEL_AT_CURRENT_STAGE instead of INVALID_TRANSITION
    """

    def __init__(self, purpose: str, transitions: list[Transition],
                 terminal: frozenset[str], cancel_target: str | None = None):
        self.purpose = purpose
        self.terminal = terminal
        self.cancel_target = cancel_target
        self.table: dict[tuple[str, str], Transition] = {}
        for t in transitions:
            if t.source in terminal:
                raise ValueError(f"{purpose}: transition out of terminal status {t.source}")
            self.table[(t.source, t.target)] = t

    def allowed_targets(self, status: str) -> list[str]:
        return [target for (source, target) in self.table if source == status]

    def can_reach(self, status: str, target: str) -> bool:
        return (status, target) in self.table

    def get(self, status: str, target: str) -> Transition:
        try:
            return self.table[(status, target)]
        except KeyError:
            if target == self.cancel_target:
                raise RuleViolation(
                    'CANNOT_CANCEL_AT_CURRENT_STAGE', current=status,
                ) from None
            raise RuleViolation(
                'INVALID_TRANSITION',
                current=status,
                target=target,
                allowed=self.allowed_targets(status),
            ) from None

    def record_initial(self, owner, actor: Actor, note: str = '') -> StatusHistory:
        """History row for a freshly created owner."""
        return StatusHistory.objects.create(
            purpose=owner,
            from_status='',
            to_status=owner.status,
            actor=str(actor),
            note=note,
        )

    def run(self, owner, target: str, actor: Actor, note: str = '',
            automatic: bool = False, **extra):
        """
        Move `owner` to `target`.

        Args:
            owner: Order or InboundRequest
            target: Desired status
            actor: Who is asking (recorded in history)
            note: Free text; mandatory for some transitions
            automatic: Triggered by the system as a consequence of another
                operation; skips the capability check
            **extra: Passed to hooks as context.extra

        Returns:
            The locked, updated owner

        Raises:
            CargoError('INVALID_TRANSITION' | 'CANNOT_CANCEL_AT_CURRENT_STAGE')
            CargoError('PERMISSION_DENIED' | 'NOTE_REQUIRED')
            Any CargoError raised by prechecks, guards or effects
        """
        transition = self.get(owner.status, target)
        if not automatic:
            require(actor, transition.capability)
        if transition.note_required and not (note or '').strip():
            raise ValidationFailed('NOTE_REQUIRED', target=target)

        context = TransitionContext(
            actor=actor, note=note or '', automatic=automatic,
            source=owner.status, target=target, extra=extra,
        )
        for check in transition.prechecks:
            check(owner, context)

        with transaction.atomic():
            locked = lock(owner)
            # Status may have moved while the lock was pending
            transition = self.get(locked.status, target)
            context.source = locked.status

            for guard in transition.guards:
                guard(locked, context)

            fields = ['status', 'updated_at']
            locked.status = target
            if transition.financial_status:
                locked.financial_status = transition.financial_status
                fields.append('financial_status')
            locked.save(update_fields=fields)

            StatusHistory.objects.create(
                purpose=locked,
                from_status=context.source,
                to_status=target,
                actor=str(actor),
                note=context.note,
            )

            for effect in transition.effects:
                effect(locked, context)

            dispatch(StatusChanged(
                purpose=self.purpose,
                purpose_id=locked.pk,
                reference=locked.reference,
                from_status=context.source,
                to_status=target,
                actor_id=str(actor),
                occurred_at=timezone.now(),
                note=context.note,
                metadata={'automatic': automatic},
            ))

        logger.info(
            "cargo.lifecycle.transition",
            extra={
                "purpose": self.purpose,
                "purpose_id": locked.pk,
                "from_status": context.source,
                "to_status": target,
                "actor_id": str(actor),
                "automatic": automatic,
            },
        )
        return locked
