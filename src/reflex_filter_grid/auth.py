"""Credential check and signed session tokens (HS256 JWT via authlib).

Tokens carry ``sub`` (user id), ``username``, ``iat`` and ``exp``.  The
user table is a plain in-memory list: this service is a demo collaborator
of the grid, not an identity provider.
"""

import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from authlib.jose import JsonWebToken
from authlib.jose.errors import JoseError

from reflex_filter_grid.config import TokenSettings
from reflex_filter_grid.exceptions import AuthenticationError, SessionError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class User:
    id: int
    username: str
    password: str


DEMO_USERS: tuple[User, ...] = (User(id=1, username="test", password="test123"),)


class TokenIssuer:
    """Validates credentials and issues / verifies session tokens.

    Args:
        settings: Token settings (secret, algorithm, lifetime).
        users: Known users; defaults to the single demo user.
    """

    def __init__(
        self,
        settings: TokenSettings | None = None,
        users: Sequence[User] = DEMO_USERS,
    ) -> None:
        self.settings = settings or TokenSettings()
        self._users = {u.username: u for u in users}
        self._jwt = JsonWebToken([self.settings.algorithm])

    def authenticate(self, username: str, password: str) -> User:
        """Return the matching user.

        Raises:
            AuthenticationError: Unknown user or wrong password.
        """
        user = self._users.get(username)
        if user is None or user.password != password:
            logger.warning("login rejected for username=%r", username)
            raise AuthenticationError("Invalid credentials", username=username)
        logger.info("login accepted for username=%r", username)
        return user

    def issue(self, user: User, now: float | None = None) -> str:
        """Sign a token for *user* valid for ``settings.ttl_seconds``."""
        issued_at = int(now if now is not None else time.time())
        payload = {
            "sub": str(user.id),
            "username": user.username,
            "iat": issued_at,
            "exp": issued_at + self.settings.ttl_seconds,
        }
        token = self._jwt.encode({"alg": self.settings.algorithm}, payload, self.settings.secret)
        return token.decode("ascii") if isinstance(token, bytes) else token

    def login(self, username: str, password: str) -> str:
        """Authenticate and issue a token in one step."""
        return self.issue(self.authenticate(username, password))

    def verify(self, token: str, now: float | None = None) -> dict[str, Any]:
        """Decode and validate *token*; returns its claims.

        Raises:
            SessionError: Bad signature, malformed token, or expired.
        """
        try:
            claims = self._jwt.decode(token, self.settings.secret)
            claims.validate(now=int(now if now is not None else time.time()), leeway=0)
        except JoseError as exc:
            raise SessionError("Invalid token", reason=exc.error) from exc
        except ValueError as exc:
            raise SessionError("Invalid token", reason=str(exc)) from exc
        return dict(claims)
