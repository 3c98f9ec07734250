"""Async HTTP client for the auth / listing / column-metadata API.

Every call after login carries ``Authorization: Bearer <token>`` from the
:class:`~reflex_filter_grid.session.SessionContext`.  An HTTP 401 on an
authenticated call revokes the session and raises
:class:`~reflex_filter_grid.exceptions.SessionExpiredError`; it is never
retried.

Example::

    session = SessionContext()
    async with ApiClient(session=session) as client:
        await client.login("test", "test123")
        result = await client.list_rows({"department": "개발팀"})
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import httpx

from reflex_filter_grid.config import ApiSettings
from reflex_filter_grid.exceptions import (
    AuthenticationError,
    ListingError,
    SessionExpiredError,
)
from reflex_filter_grid.filter_state import to_query_params
from reflex_filter_grid.models import ColumnDescriptor, FilterValue, parse_columns
from reflex_filter_grid.session import SessionContext

logger = logging.getLogger(__name__)

LOGIN_PATH: str = "/auth/login"
TABLE_DATA_PATH: str = "/tasks/table-data"
COLUMN_INFO_PATH: str = "/tasks/column-info"


@dataclass(frozen=True)
class ListingResult:
    rows: list[dict[str, Any]]
    total: int


def _error_message(response: httpx.Response, default: str) -> str:
    """Best-effort message from a JSON error body (``detail`` or ``message``)."""
    try:
        body = response.json()
    except ValueError:
        return default
    if isinstance(body, dict):
        message = body.get("detail") or body.get("message")
        if isinstance(message, str) and message:
            return message
    return default


class ApiClient:
    """Client for the listing API bound to one session.

    Args:
        settings: API base URL and timeout.
        session: Session context supplying the bearer token.
        transport: Optional httpx transport (tests use ``httpx.MockTransport``,
            the CLI an ``httpx.ASGITransport``).
    """

    def __init__(
        self,
        settings: ApiSettings | None = None,
        session: SessionContext | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings or ApiSettings()
        self.session = session or SessionContext()
        self._client = httpx.AsyncClient(
            base_url=self.settings.base_url,
            timeout=self.settings.timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def login(self, username: str, password: str) -> str:
        """Exchange credentials for a token and store it in the session.

        Raises:
            AuthenticationError: Credentials rejected (HTTP 401).
            ListingError: Network failure or any other non-2xx response.
        """
        try:
            response = await self._client.post(
                LOGIN_PATH,
                json={"username": username, "password": password},
            )
        except httpx.HTTPError as exc:
            raise ListingError("Login request failed", reason=str(exc)) from exc

        if response.status_code == 401:
            raise AuthenticationError(
                _error_message(response, "Invalid credentials"),
                username=username,
            )
        if response.is_error:
            raise ListingError(
                _error_message(response, "Login failed"),
                status_code=response.status_code,
            )

        token = response.json().get("access_token")
        if not token:
            raise ListingError("Login response carried no token", status_code=response.status_code)
        self.session.issue(token)
        return token

    def logout(self) -> None:
        self.session.revoke("logout")

    async def _authorized_get(self, path: str, params: Any = None) -> Any:
        try:
            response = await self._client.get(path, params=params, headers=self.session.attach())
        except httpx.HTTPError as exc:
            logger.warning("GET %s failed: %s", path, exc)
            raise ListingError("Listing service unreachable", path=path, reason=str(exc)) from exc

        if response.status_code == 401:
            self.session.revoke("unauthorized")
            raise SessionExpiredError(_error_message(response, "Session expired"), path=path)
        if response.is_error:
            logger.warning("GET %s returned HTTP %d", path, response.status_code)
            raise ListingError(
                _error_message(response, "Listing service error"),
                status_code=response.status_code,
                path=path,
            )
        return response.json()

    async def list_rows(self, filters: Mapping[str, FilterValue]) -> ListingResult:
        """Query ``/tasks/table-data`` with the active *filters*."""
        body = await self._authorized_get(TABLE_DATA_PATH, params=to_query_params(filters))
        rows = body.get("data", [])
        return ListingResult(rows=rows, total=int(body.get("total", len(rows))))

    async def column_info(self) -> list[ColumnDescriptor]:
        """Fetch the column descriptors from ``/tasks/column-info``."""
        body = await self._authorized_get(COLUMN_INFO_PATH)
        return parse_columns(body)
