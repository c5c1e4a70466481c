"""
Scraping configuration models.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ListingScrapeSettings:
    """
    Runtime tunables for one listing scrape job.
    """

    max_listings: int = 100
    batch_concurrency: int = 5
    navigation_timeout_seconds: float = 60.0
    navigation_grace_seconds: float = 5.0
    settle_delay_seconds: float = 3.0
    listing_scroll_steps: int = 8
    listing_scroll_step_px: int = 1000
    listing_scroll_delay_seconds: float = 0.4
    results_scroll_steps: int = 5
    results_scroll_step_px: int = 800
    results_scroll_delay_seconds: float = 0.6
    post_scroll_delay_seconds: float = 2.0
    expand_click_delay_seconds: float = 0.5
    post_expand_delay_seconds: float = 1.0
    site_base_url: str = "https://www.zillow.com"
    log_buffer_size: int = 2000

    @property
    def navigation_timeout_ms(self) -> int:
        return int(self.navigation_timeout_seconds * 1000)


@dataclass(frozen=True)
class SessionProviderSettings:
    """
    Connection settings for the remote browser-session provider.
    """

    api_url: str = "https://api.steel.dev"
    connect_url: str = "wss://connect.steel.dev"
    api_key: str | None = None
    api_key_header: str = "steel-api-key"
    session_timeout_ms: int = 300_000
    use_proxy: bool = True
    solve_captcha: bool = True
    request_timeout_seconds: float = 30.0
