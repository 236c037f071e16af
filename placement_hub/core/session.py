"""
Session context - the acting identity passed explicitly to every component
that needs one, with a single subscription point for session-change events.
"""

import logging
from typing import Optional

from placement_hub.schemas.schemas import Identity, UserRole

logger = logging.getLogger(__name__)

SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"


class SessionContext:
    """
    Holds the identity of one session plus the data client scoped to it.

    The resolved role is cached here and dropped when the identity signs out
    or signs in again; resolving_role is set while it is being looked up.
    close() tears the subscription down.
    """

    def __init__(self, identity: Identity, remote):
        self.identity = identity
        self.client = remote.for_user(identity.user_id)
        self.role: Optional[UserRole] = None
        self.resolving_role = False
        self.signed_out = False
        self.closed = False
        self._subscription = remote.on_session_change(self._on_session_change)

    @property
    def user_id(self) -> str:
        return self.identity.user_id

    @property
    def active(self) -> bool:
        return not (self.closed or self.signed_out)

    def _on_session_change(self, event: str, identity: Identity) -> None:
        if identity.user_id != self.user_id:
            return
        logger.debug(f"[SESSION] {event} for {self.user_id}")
        self.role = None
        if event == SIGNED_OUT:
            self.signed_out = True

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._subscription.unsubscribe()
