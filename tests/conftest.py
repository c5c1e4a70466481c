"""
tests/conftest.py

Shared fixtures for the listing scrape test suite.
"""

from __future__ import annotations

import pytest

from app.scraping.config import get_listing_scrape_settings, get_session_provider_settings


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    """Settings getters are cached; reset them around every test."""
    get_listing_scrape_settings.cache_clear()
    get_session_provider_settings.cache_clear()
    yield
    get_listing_scrape_settings.cache_clear()
    get_session_provider_settings.cache_clear()
