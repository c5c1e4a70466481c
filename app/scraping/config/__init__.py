"""
Config helpers for listing scraping.
"""

from app.scraping.config.loader import (
    build_listing_scrape_settings,
    build_session_provider_settings,
    get_listing_scrape_settings,
    get_session_provider_settings,
)
from app.scraping.config.models import ListingScrapeSettings, SessionProviderSettings

__all__ = [
    "ListingScrapeSettings",
    "SessionProviderSettings",
    "build_listing_scrape_settings",
    "build_session_provider_settings",
    "get_listing_scrape_settings",
    "get_session_provider_settings",
]
