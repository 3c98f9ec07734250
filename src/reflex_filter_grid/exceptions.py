"""Exception hierarchy for reflex-filter-grid.

Every error raised by this package inherits from :class:`FilterGridError`,
so callers can catch the whole family at once or pick a specific type.
Extra keyword arguments are kept on ``context`` and shown in ``str()``.
"""

from typing import Any


class FilterGridError(Exception):
    """Base exception for all reflex-filter-grid errors."""

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        if self.context:
            ctx = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({ctx})"
        return self.message


class ColumnConfigError(FilterGridError):
    """Column descriptors are inconsistent (e.g. duplicate column keys)."""


class AuthenticationError(FilterGridError):
    """The authentication service rejected the supplied credentials.

    Not retried: the user has to submit the login form again.
    """

    def __init__(self, message: str, username: str | None = None, **context: Any) -> None:
        super().__init__(message, username=username, **context)
        self.username = username


class SessionError(FilterGridError):
    """Session token is missing, malformed, or no longer accepted."""


class SessionExpiredError(SessionError):
    """An authenticated call was answered with HTTP 401.

    Fatal for the session: the stored token is discarded and the user is
    sent back to the login view.
    """


class ListingError(FilterGridError):
    """The listing or column-metadata service failed.

    Raised for network failures and non-2xx responses other than 401.
    """

    def __init__(self, message: str, status_code: int | None = None, **context: Any) -> None:
        super().__init__(message, status_code=status_code, **context)
        self.status_code = status_code
