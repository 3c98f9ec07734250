"""Pytest configuration and fixtures."""

import pytest

from reflex_filter_grid.auth import TokenIssuer
from reflex_filter_grid.config import TokenSettings, clear_settings
from reflex_filter_grid.repository import EmployeeRepository


@pytest.fixture(autouse=True)
def _fresh_settings():
    """Re-read settings from the environment for every test."""
    clear_settings()
    yield
    clear_settings()


@pytest.fixture()
def repository() -> EmployeeRepository:
    """The eight-row sample employee directory."""
    return EmployeeRepository()


@pytest.fixture()
def token_settings() -> TokenSettings:
    return TokenSettings(secret="test-secret", ttl_seconds=60)


@pytest.fixture()
def issuer(token_settings: TokenSettings) -> TokenIssuer:
    return TokenIssuer(token_settings)
