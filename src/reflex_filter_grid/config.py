"""Configuration for reflex-filter-grid using pydantic-settings.

Each concern has its own settings section with its own environment
prefix; :class:`GridAppSettings` aggregates them and also accepts nested
variables under ``FILTER_GRID__`` with ``__`` as the delimiter.

Examples::

    FILTER_GRID_API__BASE_URL=http://api.internal:8000
    FILTER_GRID_TOKEN__SECRET=...
    FILTER_GRID_GRID__FILTER_DEBOUNCE_MS=500
    FILTER_GRID__LOG__LEVEL=DEBUG
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ApiSettings(BaseSettings):
    """Where the listing/auth API lives and how long to wait for it.

    Environment prefix: FILTER_GRID_API__
    """

    model_config = SettingsConfigDict(
        env_prefix="FILTER_GRID_API__",
        extra="ignore",
    )

    base_url: str = "http://localhost:8000"
    timeout: float = Field(default=10.0, gt=0, description="Request timeout in seconds")


class TokenSettings(BaseSettings):
    """Signed session token settings.

    Environment prefix: FILTER_GRID_TOKEN__
    """

    model_config = SettingsConfigDict(
        env_prefix="FILTER_GRID_TOKEN__",
        extra="ignore",
    )

    secret: str = Field(default="supersecret", description="HMAC key used to sign tokens")
    algorithm: Literal["HS256", "HS384", "HS512"] = "HS256"
    ttl_seconds: int = Field(default=3600, ge=1, description="Token lifetime in seconds")
    cookie_name: str = "access_token"


class CookieSettings(BaseSettings):
    """Browser cookie attributes for the stored session token.

    Environment prefix: FILTER_GRID_COOKIE__
    """

    model_config = SettingsConfigDict(
        env_prefix="FILTER_GRID_COOKIE__",
        extra="ignore",
    )

    expires_days: int = Field(default=7, ge=1)
    secure: bool = False
    same_site: Literal["strict", "lax", "none"] = "strict"
    path: str = "/"

    @property
    def max_age(self) -> int:
        """Cookie lifetime in seconds."""
        return self.expires_days * 24 * 60 * 60


class GridSettings(BaseSettings):
    """Filter dispatch timing and grid display texts.

    Environment prefix: FILTER_GRID_GRID__
    """

    model_config = SettingsConfigDict(
        env_prefix="FILTER_GRID_GRID__",
        extra="ignore",
    )

    filter_debounce_ms: int = Field(default=300, ge=0, description="Quiet period for remote filtering")
    blur_grace_ms: int = Field(default=150, ge=0, description="Delay before a blur is committed")
    local_filtering: bool = False
    max_runtimes: int = Field(default=1000, ge=1, description="Per-client grid runtimes kept in memory")
    empty_text: str = "No data."
    filtered_empty_text: str = "No rows match the current filters."
    loading_text: str = "Loading data..."
    updating_text: str = "Updating data from the server..."
    all_label: str = "All"


class LogSettings(BaseSettings):
    """Logging settings.

    Environment prefix: FILTER_GRID_LOG__
    """

    model_config = SettingsConfigDict(
        env_prefix="FILTER_GRID_LOG__",
        extra="ignore",
    )

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"
    format: str = "%(asctime)s %(name)s - %(levelname)s - %(message)s"


class GridAppSettings(BaseSettings):
    """All configuration sections.

    Environment prefix: FILTER_GRID__ (nested delimiter ``__``).
    """

    model_config = SettingsConfigDict(
        env_prefix="FILTER_GRID__",
        env_nested_delimiter="__",
        extra="ignore",
    )

    api: ApiSettings = Field(default_factory=ApiSettings)
    token: TokenSettings = Field(default_factory=TokenSettings)
    cookie: CookieSettings = Field(default_factory=CookieSettings)
    grid: GridSettings = Field(default_factory=GridSettings)
    log: LogSettings = Field(default_factory=LogSettings)

    @property
    def session_cookie_max_age(self) -> int:
        """Lifetime of the session cookie; never longer than the token it holds."""
        return min(self.cookie.max_age, self.token.ttl_seconds)


@lru_cache(maxsize=1)
def get_settings() -> GridAppSettings:
    """Return the process-wide settings (cached; see :func:`clear_settings`)."""
    return GridAppSettings()


def clear_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    get_settings.cache_clear()
