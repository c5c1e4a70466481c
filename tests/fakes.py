"""
tests/fakes.py

In-memory pages, sites and session providers for async scraping tests.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field, replace
from typing import Any

from playwright.async_api import Error as PlaywrightError

from app.scraping.browser import page_actions
from app.scraping.browser.session import BrowserSession
from app.scraping.config.models import ListingScrapeSettings

SITE = "https://www.zillow.com"
SEARCH_URL = f"{SITE}/homes/for_sale/"


def fast_settings(**overrides: Any) -> ListingScrapeSettings:
    """Settings with every delay zeroed and short navigation bounds."""
    base = ListingScrapeSettings(
        navigation_timeout_seconds=1.0,
        navigation_grace_seconds=0.5,
        settle_delay_seconds=0.0,
        listing_scroll_steps=2,
        listing_scroll_delay_seconds=0.0,
        results_scroll_steps=2,
        results_scroll_delay_seconds=0.0,
        post_scroll_delay_seconds=0.0,
        expand_click_delay_seconds=0.0,
        post_expand_delay_seconds=0.0,
        site_base_url=SITE,
    )
    return replace(base, **overrides)


@dataclass
class PageContent:
    next_data: str | None = None
    html: str = ""
    body_text: str = ""
    title: str = ""


def listing_url(zpid: int) -> str:
    return f"{SITE}/homedetails/{zpid}-Main-St-Springfield-IL-62701/{zpid}_zpid/"


def search_page(zpids: list[int]) -> PageContent:
    anchors = "".join(
        f'<a href="/homedetails/{zpid}-Main-St-Springfield-IL-62701/{zpid}_zpid/">home</a>'
        for zpid in zpids
    )
    return PageContent(html=f"<html><body><div id='search-page-list'>{anchors}</div></body></html>")


def listing_page(zpid: int, **prop_fields: Any) -> PageContent:
    prop = {
        "address": {
            "streetAddress": f"{zpid} Main St",
            "city": "Springfield",
            "state": "IL",
            "zipcode": "62701",
        },
        "price": 250000,
        **prop_fields,
    }
    payload = {"props": {"pageProps": {"initialData": {"property": prop}}}}
    return PageContent(next_data=json.dumps(payload), title=f"{zpid} Main St")


class FakeButton:
    def __init__(self, text: str, *, fail: bool = False) -> None:
        self.text = text
        self.fail = fail
        self.clicks = 0

    async def inner_text(self) -> str:
        return self.text

    async def click(self) -> None:
        if self.fail:
            raise PlaywrightError("element detached")
        self.clicks += 1


@dataclass
class FakeSite:
    """
    URL -> content routing shared by every page a fake provider hands out.

    `after_reload` replaces a URL's content once the page has been reloaded.
    `unreadable_payload_urls` raise on the first payload read of each visit.
    """

    pages: dict[str, PageContent] = field(default_factory=dict)
    after_reload: dict[str, PageContent] = field(default_factory=dict)
    failing_urls: set[str] = field(default_factory=set)
    slow_urls: set[str] = field(default_factory=set)
    buttons: list[FakeButton] = field(default_factory=list)
    unreadable_payload_urls: set[str] = field(default_factory=set)
    button_query_fails: bool = False
    visits: list[str] = field(default_factory=list)


class FakePage:
    def __init__(self, site: FakeSite) -> None:
        self._site = site
        self._url = "about:blank"
        self._reloaded = False
        self.scroll_calls = 0
        self.reload_calls = 0
        self.button_queries = 0
        self.content_calls = 0
        self._payload_reads = 0

    @property
    def url(self) -> str:
        return self._url

    async def goto(self, url: str, *, wait_until: str = "load", timeout: float = 0) -> None:
        self._site.visits.append(url)
        if url in self._site.slow_urls:
            await asyncio.sleep(30)
        if url in self._site.failing_urls:
            raise RuntimeError(f"net::ERR_CONNECTION_RESET at {url}")
        self._url = url
        self._reloaded = False
        self._payload_reads = 0
        await asyncio.sleep(0)

    async def reload(self, *, wait_until: str = "load", timeout: float = 0) -> None:
        self.reload_calls += 1
        self._reloaded = True
        await asyncio.sleep(0)

    def _current(self) -> PageContent:
        if self._reloaded and self._url in self._site.after_reload:
            return self._site.after_reload[self._url]
        return self._site.pages.get(self._url, PageContent())

    async def evaluate(self, expression: str, arg: Any = None) -> Any:
        if expression == page_actions.NEXT_DATA_SCRIPT:
            self._payload_reads += 1
            if self._url in self._site.unreadable_payload_urls and self._payload_reads == 1:
                raise PlaywrightError("Execution context was destroyed, most likely because of a navigation")
            return self._current().next_data
        if expression == page_actions.BODY_TEXT_SCRIPT:
            return self._current().body_text
        self.scroll_calls += 1
        return None

    async def query_selector_all(self, selector: str) -> list[Any]:
        self.button_queries += 1
        if self._site.button_query_fails:
            raise PlaywrightError("Target page, context or browser has been closed")
        return list(self._site.buttons) if selector == "button" else []

    async def content(self) -> str:
        self.content_calls += 1
        return self._current().html

    async def title(self) -> str:
        return self._current().title


class FakeProvider:
    """
    Session provider that tracks every acquire and release by session id.

    `fail_acquires` holds 1-based acquire numbers that raise.
    """

    def __init__(self, site: FakeSite | None = None, *, fail_acquires: set[int] | None = None) -> None:
        self.site = site or FakeSite()
        self.fail_acquires = fail_acquires or set()
        self.acquire_calls = 0
        self.acquired: list[str] = []
        self.pages: list[FakePage] = []
        self.releases: dict[str, int] = {}

    async def acquire(self) -> BrowserSession:
        self.acquire_calls += 1
        number = self.acquire_calls
        await asyncio.sleep(0)
        if number in self.fail_acquires:
            raise RuntimeError("provider quota exceeded")
        session_id = f"session-{number}"
        self.acquired.append(session_id)
        page = FakePage(self.site)
        self.pages.append(page)
        return BrowserSession(session_id=session_id, page=page)

    async def release(self, session: BrowserSession) -> None:
        self.releases[session.session_id] = self.releases.get(session.session_id, 0) + 1
        await asyncio.sleep(0)

    @property
    def outstanding(self) -> list[str]:
        return [session_id for session_id in self.acquired if session_id not in self.releases]
