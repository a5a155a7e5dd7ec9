"""
Authorization Protocol.

Every lifecycle transition and scan is checked against the acting
party's capabilities before anything is touched.
"""

from typing import Protocol, runtime_checkable

from cargoman.capabilities import Actor, Capability


@runtime_checkable
class Authorizer(Protocol):

    def is_allowed(self, actor: Actor, capability: Capability | str) -> bool:
        """Return True if `actor` may exercise `capability`."""
        ...
