"""Explicit session context handed to the request layer.

Lifecycle::

    ABSENT --issue(token)--> ISSUED --attach()--> ATTACHED
    ISSUED/ATTACHED --revoke()--> REVOKED   (HTTP 401 or explicit logout)
    REVOKED --issue(token)--> ISSUED        (login again)

A revoked or absent session has no token, so requests built from it
carry no ``Authorization`` header.
"""

import enum
import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)


class SessionPhase(str, enum.Enum):
    ABSENT = "absent"
    ISSUED = "issued"
    ATTACHED = "attached"
    REVOKED = "revoked"


class SessionContext:
    """Holds the current session token and notifies on revocation.

    Args:
        token: Token restored from storage (e.g. the browser cookie).
        on_revoke: Called with the revocation reason, e.g. to delete the
            stored cookie.
    """

    def __init__(
        self,
        token: str | None = None,
        on_revoke: Callable[[str], None] | None = None,
    ) -> None:
        self._token: str | None = None
        self.phase = SessionPhase.ABSENT
        self._on_revoke = on_revoke
        if token:
            self.issue(token)

    @property
    def token(self) -> str | None:
        return self._token

    @property
    def active(self) -> bool:
        return self.phase in (SessionPhase.ISSUED, SessionPhase.ATTACHED)

    def issue(self, token: str) -> None:
        if not token:
            raise ValueError("token must be non-empty")
        self._token = token
        self.phase = SessionPhase.ISSUED

    def attach(self) -> dict[str, str]:
        """Authorization headers for an outgoing request (empty when inactive)."""
        if not self.active or self._token is None:
            return {}
        self.phase = SessionPhase.ATTACHED
        return {"Authorization": f"Bearer {self._token}"}

    def revoke(self, reason: str = "logout") -> None:
        """Discard the token.  Idempotent; ``on_revoke`` only fires once."""
        if self.phase in (SessionPhase.ABSENT, SessionPhase.REVOKED):
            self._token = None
            return
        self._token = None
        self.phase = SessionPhase.REVOKED
        logger.info("session revoked (%s)", reason)
        if self._on_revoke is not None:
            self._on_revoke(reason)
