"""
Notification dispatch.

Events are handed to the configured Notifier after the surrounding
transaction commits. A failing notifier is logged; the transition that
produced the event stays committed.

Settings:
    CARGOMAN = {
        "NOTIFIER": "cargoman.adapters.notifications.LoggingNotifier",
    }
"""

from __future__ import annotations

import logging
import threading

from django.core.exceptions import ImproperlyConfigured
from django.db import transaction
from django.utils.module_loading import import_string

from cargoman.conf import cargoman_settings
from cargoman.protocols.notifications import Notifier, StatusChanged

logger = logging.getLogger(__name__)


class LoggingNotifier:
    """Writes every event to the log. Default when nothing else is configured."""

    def notify(self, event: StatusChanged) -> None:
        logger.info(
            "cargo.notify.%s",
            event.event_name,
            extra={
                "purpose": event.purpose,
                "purpose_id": event.purpose_id,
                "reference": event.reference,
                "from_status": event.from_status,
                "to_status": event.to_status,
                "actor_id": event.actor_id,
            },
        )


# Cached notifier instance
_lock = threading.Lock()
_notifier: Notifier | None = None


def get_notifier() -> Notifier:
    """
    Return the configured notifier.

    Raises:
        ImproperlyConfigured: If NOTIFIER cannot be imported
    """
    global _notifier

    if _notifier is None:
        with _lock:
            if _notifier is None:  # double-checked
                notifier_path = cargoman_settings.NOTIFIER
                try:
                    _notifier = import_string(notifier_path)()
                    logger.debug("Loaded notifier: %s", notifier_path)
                except ImportError as e:
                    raise ImproperlyConfigured(
                        f"Failed to import notifier '{notifier_path}': {e}"
                    ) from e

    return _notifier


def reset_notifier() -> None:
    """Reset the cached notifier. Useful for testing."""
    global _notifier
    _notifier = None


def _deliver(event: StatusChanged) -> None:
    try:
        get_notifier().notify(event)
    except Exception:
        logger.exception(
            "cargo.notify.failed",
            extra={"purpose": event.purpose, "purpose_id": event.purpose_id, "to_status": event.to_status},
        )


def dispatch(event: StatusChanged) -> None:
    """Deliver `event` once the current transaction commits."""
    transaction.on_commit(lambda: _deliver(event))
