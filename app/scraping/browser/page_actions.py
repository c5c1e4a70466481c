"""
Navigation, scrolling and snapshot primitives over a navigable page.
"""

from __future__ import annotations

import asyncio
import logging
import re

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from app.scraping.browser.session import NavigablePage
from app.scraping.config.models import ListingScrapeSettings
from app.scraping.errors import NavigationTimeout
from app.scraping.logging_utils import log_event
from app.scraping.types import PageSnapshot, describe

logger = logging.getLogger(__name__)

NEXT_DATA_SCRIPT = """() => {
  const script = document.querySelector('script#__NEXT_DATA__');
  return script && script.textContent ? script.textContent : null;
}"""
BODY_TEXT_SCRIPT = "() => (document.body ? document.body.innerText : '')"
WINDOW_SCROLL_SCRIPT = "(px) => window.scrollBy(0, px)"
WINDOW_SCROLL_RESET_SCRIPT = "() => window.scrollTo(0, 0)"
RESULTS_SCROLL_SCRIPT = """(px) => {
  const list = document.querySelector('[id*="search-page-list"]') || document.documentElement;
  list.scrollBy(0, px);
}"""
RESULTS_SCROLL_RESET_SCRIPT = """() => {
  const list = document.querySelector('[id*="search-page-list"]') || document.documentElement;
  list.scrollTop = 0;
}"""

EXPAND_BUTTON_REGEX = re.compile(r"see (more|all|complete)|show more|see full", flags=re.IGNORECASE)


async def pause(seconds: float) -> None:
    if seconds > 0:
        await asyncio.sleep(seconds)


async def navigate(
    page: NavigablePage,
    url: str,
    *,
    settings: ListingScrapeSettings,
    wait_until: str = "domcontentloaded",
) -> None:
    """
    Navigate with a bounded timeout; a timeout surfaces as `NavigationTimeout`.
    """

    try:
        await asyncio.wait_for(
            page.goto(url, wait_until=wait_until, timeout=settings.navigation_timeout_ms),
            timeout=settings.navigation_timeout_seconds + settings.navigation_grace_seconds,
        )
    except (asyncio.TimeoutError, PlaywrightTimeoutError) as exc:
        raise NavigationTimeout(url, settings.navigation_timeout_seconds) from exc


async def reload(
    page: NavigablePage,
    *,
    settings: ListingScrapeSettings,
    wait_until: str = "networkidle",
) -> None:
    try:
        await asyncio.wait_for(
            page.reload(wait_until=wait_until, timeout=settings.navigation_timeout_ms),
            timeout=settings.navigation_timeout_seconds + settings.navigation_grace_seconds,
        )
    except (asyncio.TimeoutError, PlaywrightTimeoutError) as exc:
        raise NavigationTimeout(page.url, settings.navigation_timeout_seconds) from exc


async def scroll(
    page: NavigablePage,
    *,
    steps: int,
    step_px: int,
    delay_seconds: float,
    step_script: str = WINDOW_SCROLL_SCRIPT,
    reset_script: str = WINDOW_SCROLL_RESET_SCRIPT,
) -> None:
    """
    Scroll in fixed increments to trigger lazy-loaded content, then return to top.
    """

    for _ in range(steps):
        await page.evaluate(step_script, step_px)
        await pause(delay_seconds)
    await page.evaluate(reset_script)


async def expand_disclosures(page: NavigablePage, *, click_delay_seconds: float) -> int:
    """
    Click every "see more / show more / see full" button. Returns clicks made.
    """

    try:
        buttons = await page.query_selector_all("button")
    except (PlaywrightError, asyncio.TimeoutError) as exc:
        log_event(
            logger,
            logging.WARNING,
            "disclosure_query_failed",
            url=page.url,
            error=describe(exc),
        )
        return 0

    clicked = 0
    for button in buttons:
        try:
            text = (await button.inner_text() or "").strip()
            if not EXPAND_BUTTON_REGEX.search(text):
                continue
            await button.click()
            clicked += 1
            await pause(click_delay_seconds)
        except (PlaywrightError, asyncio.TimeoutError) as exc:
            log_event(
                logger,
                logging.DEBUG,
                "disclosure_click_failed",
                url=page.url,
                error=describe(exc),
            )
    return clicked


async def capture_snapshot(page: NavigablePage, *, include_dom: bool = True) -> PageSnapshot:
    """
    Capture the structured payload and, optionally, the rendered DOM and text.
    """

    next_data = await page.evaluate(NEXT_DATA_SCRIPT)
    if not include_dom:
        return PageSnapshot(url=page.url, next_data=next_data)
    html = await page.content()
    body_text = await page.evaluate(BODY_TEXT_SCRIPT)
    return PageSnapshot(
        url=page.url,
        next_data=next_data,
        html=html or "",
        body_text=body_text or "",
    )
