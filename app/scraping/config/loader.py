"""
Environment config loader for listing scraping.
"""

from __future__ import annotations

import os
from functools import lru_cache

from app.config import get_str_env, load_env_files
from app.scraping.config.models import ListingScrapeSettings, SessionProviderSettings


def _get_bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _get_optional_str_env(name: str) -> str | None:
    raw = os.getenv(name)
    if raw is None:
        return None
    stripped = raw.strip()
    return stripped or None


def build_listing_scrape_settings() -> ListingScrapeSettings:
    """
    Build scraper tunables from `LISTING_SCRAPE_*` environment variables.
    """

    load_env_files()
    return ListingScrapeSettings(
        max_listings=max(1, _get_int_env("LISTING_SCRAPE_MAX_LISTINGS", 100)),
        batch_concurrency=max(1, _get_int_env("LISTING_SCRAPE_BATCH_CONCURRENCY", 5)),
        navigation_timeout_seconds=max(
            1.0,
            _get_float_env("LISTING_SCRAPE_NAVIGATION_TIMEOUT_SECONDS", 60.0),
        ),
        navigation_grace_seconds=max(
            0.0,
            _get_float_env("LISTING_SCRAPE_NAVIGATION_GRACE_SECONDS", 5.0),
        ),
        settle_delay_seconds=max(
            0.0,
            _get_float_env("LISTING_SCRAPE_SETTLE_DELAY_SECONDS", 3.0),
        ),
        listing_scroll_steps=max(0, _get_int_env("LISTING_SCRAPE_LISTING_SCROLL_STEPS", 8)),
        listing_scroll_step_px=max(1, _get_int_env("LISTING_SCRAPE_LISTING_SCROLL_STEP_PX", 1000)),
        listing_scroll_delay_seconds=max(
            0.0,
            _get_float_env("LISTING_SCRAPE_LISTING_SCROLL_DELAY_SECONDS", 0.4),
        ),
        results_scroll_steps=max(0, _get_int_env("LISTING_SCRAPE_RESULTS_SCROLL_STEPS", 5)),
        results_scroll_step_px=max(1, _get_int_env("LISTING_SCRAPE_RESULTS_SCROLL_STEP_PX", 800)),
        results_scroll_delay_seconds=max(
            0.0,
            _get_float_env("LISTING_SCRAPE_RESULTS_SCROLL_DELAY_SECONDS", 0.6),
        ),
        post_scroll_delay_seconds=max(
            0.0,
            _get_float_env("LISTING_SCRAPE_POST_SCROLL_DELAY_SECONDS", 2.0),
        ),
        expand_click_delay_seconds=max(
            0.0,
            _get_float_env("LISTING_SCRAPE_EXPAND_CLICK_DELAY_SECONDS", 0.5),
        ),
        post_expand_delay_seconds=max(
            0.0,
            _get_float_env("LISTING_SCRAPE_POST_EXPAND_DELAY_SECONDS", 1.0),
        ),
        site_base_url=get_str_env(
            "LISTING_SCRAPE_SITE_BASE_URL",
            "https://www.zillow.com",
        ).rstrip("/"),
        log_buffer_size=max(10, _get_int_env("LISTING_SCRAPE_LOG_BUFFER_SIZE", 2000)),
    )


def build_session_provider_settings() -> SessionProviderSettings:
    """
    Build remote browser provider settings from `SESSION_PROVIDER_*` variables.
    """

    load_env_files()
    return SessionProviderSettings(
        api_url=get_str_env("SESSION_PROVIDER_API_URL", "https://api.steel.dev").rstrip("/"),
        connect_url=get_str_env("SESSION_PROVIDER_CONNECT_URL", "wss://connect.steel.dev"),
        api_key=_get_optional_str_env("SESSION_PROVIDER_API_KEY"),
        api_key_header=get_str_env("SESSION_PROVIDER_API_KEY_HEADER", "steel-api-key"),
        session_timeout_ms=max(
            10_000,
            _get_int_env("SESSION_PROVIDER_SESSION_TIMEOUT_MS", 300_000),
        ),
        use_proxy=_get_bool_env("SESSION_PROVIDER_USE_PROXY", True),
        solve_captcha=_get_bool_env("SESSION_PROVIDER_SOLVE_CAPTCHA", True),
        request_timeout_seconds=max(
            1.0,
            _get_float_env("SESSION_PROVIDER_REQUEST_TIMEOUT_SECONDS", 30.0),
        ),
    )


@lru_cache(maxsize=1)
def get_listing_scrape_settings() -> ListingScrapeSettings:
    """
    Return cached scraper settings from environment variables.
    """

    return build_listing_scrape_settings()


@lru_cache(maxsize=1)
def get_session_provider_settings() -> SessionProviderSettings:
    """
    Return cached session provider settings from environment variables.
    """

    return build_session_provider_settings()
