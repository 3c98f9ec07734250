"""Tests for settings loading."""

from reflex_filter_grid.config import (
    CookieSettings,
    GridAppSettings,
    GridSettings,
    TokenSettings,
    get_settings,
)
from reflex_filter_grid.grid import GridTexts


class TestSettings:
    """Tests for defaults and environment overrides."""

    def test_defaults(self):
        """Defaults match the documented timings."""
        settings = GridAppSettings()
        assert settings.grid.filter_debounce_ms == 300
        assert settings.grid.blur_grace_ms == 150
        assert settings.token.algorithm == "HS256"
        assert settings.token.cookie_name == "access_token"
        assert settings.api.base_url == "http://localhost:8000"

    def test_section_env_prefix(self, monkeypatch):
        """Each section reads its own prefix."""
        monkeypatch.setenv("FILTER_GRID_GRID__FILTER_DEBOUNCE_MS", "500")
        monkeypatch.setenv("FILTER_GRID_GRID__LOCAL_FILTERING", "true")
        grid = GridSettings()
        assert grid.filter_debounce_ms == 500
        assert grid.local_filtering is True

    def test_get_settings_is_cached(self, monkeypatch):
        """get_settings() is cached until cleared."""
        first = get_settings()
        monkeypatch.setenv("FILTER_GRID_API__BASE_URL", "http://other:9000")
        assert get_settings() is first

    def test_cookie_max_age(self):
        """The cookie lifetime is expressed in days."""
        assert CookieSettings(expires_days=7).max_age == 7 * 24 * 60 * 60

    def test_session_cookie_never_outlives_token(self):
        """The session cookie expires with the token it carries."""
        settings = GridAppSettings(token=TokenSettings(ttl_seconds=3600), cookie=CookieSettings(expires_days=7))
        assert settings.session_cookie_max_age == 3600
        short = GridAppSettings(token=TokenSettings(ttl_seconds=30 * 24 * 3600), cookie=CookieSettings(expires_days=1))
        assert short.session_cookie_max_age == 24 * 60 * 60

    def test_grid_texts_from_settings(self):
        """Display texts come from the grid settings."""
        texts = GridTexts.from_settings(GridSettings(all_label="전체", empty_text="없음"))
        assert texts.all_label == "전체"
        assert texts.empty == "없음"
