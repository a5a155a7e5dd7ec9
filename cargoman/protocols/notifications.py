"""
Notification Protocol.

Status changes are published after commit. Delivery is fire-and-forget:
a failing notifier is logged and never undoes the transition.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol, runtime_checkable


@dataclass(frozen=True)
class StatusChanged:
    """An order or inbound request changed status."""

    purpose: str                # "order" | "inbound_request"
    purpose_id: int
    reference: str
    from_status: str
    to_status: str
    actor_id: str
    occurred_at: datetime
    note: str = ''
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def event_name(self) -> str:
        return f"{self.purpose}.{self.to_status.lower()}"


@runtime_checkable
class Notifier(Protocol):

    def notify(self, event: StatusChanged) -> None:
        """Deliver the event (email, toast, webhook...)."""
        ...
