"""
Capability Authorizer — default Authorizer over Actor.permissions.

Settings:
    CARGOMAN = {
        "AUTHORIZER": "cargoman.adapters.authorization.CapabilityAuthorizer",
    }
"""

from __future__ import annotations

import logging
import threading

from django.core.exceptions import ImproperlyConfigured
from django.utils.module_loading import import_string

from cargoman.capabilities import Actor, Capability, expand
from cargoman.conf import cargoman_settings
from cargoman.exceptions import RuleViolation
from cargoman.protocols.authorization import Authorizer

logger = logging.getLogger(__name__)


class CapabilityAuthorizer:
    """
    Set-membership check against the actor's expanded permissions.

    - Inactive actors are denied everything
    - Super admins are allowed everything
    """

    def is_allowed(self, actor: Actor, capability: Capability | str) -> bool:
        if not actor.is_active:
            return False
        if actor.is_super_admin:
            return True
        return Capability(capability) in expand(actor.permissions)


# Cached authorizer instance
_lock = threading.Lock()
_authorizer: Authorizer | None = None


def get_authorizer() -> Authorizer:
    """
    Return the configured authorizer.

    Raises:
        ImproperlyConfigured: If AUTHORIZER cannot be imported
    """
    global _authorizer

    if _authorizer is None:
        with _lock:
            if _authorizer is None:  # double-checked
                authorizer_path = cargoman_settings.AUTHORIZER
                try:
                    _authorizer = import_string(authorizer_path)()
                    logger.debug("Loaded authorizer: %s", authorizer_path)
                except ImportError as e:
                    raise ImproperlyConfigured(
                        f"Failed to import authorizer '{authorizer_path}': {e}"
                    ) from e

    return _authorizer


def reset_authorizer() -> None:
    """Reset the cached authorizer. Useful for testing."""
    global _authorizer
    _authorizer = None


def require(actor: Actor, capability: Capability) -> None:
    """Raise PERMISSION_DENIED unless `actor` holds `capability`."""
    if not get_authorizer().is_allowed(actor, capability):
        logger.info(
            "cargo.auth.denied",
            extra={"actor_id": actor.id, "capability": str(capability)},
        )
        raise RuleViolation('PERMISSION_DENIED', actor=actor.id, capability=str(capability))
