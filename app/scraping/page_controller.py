"""
Search-results page navigation and listing discovery.
"""

from __future__ import annotations

import logging
import re

from app.scraping.browser import page_actions
from app.scraping.browser.session import NavigablePage
from app.scraping.config.models import ListingScrapeSettings
from app.scraping.errors import PageExhausted
from app.scraping.logging_utils import JobLogger, log_event
from app.scraping.parsing import extract_references
from app.scraping.types import ItemReference, describe

logger = logging.getLogger(__name__)

PAGE_SEGMENT_REGEX = re.compile(r"(?<=/)\d+_p/")
TRAILING_SLASH_REGEX = re.compile(r"/$")


def build_next_page_url(current_url: str, page_number: int) -> str:
    """
    Replace any `<n>_p/` segment with `<page_number>_p/` at the end of the path.

    A query string, if present, is carried over unchanged.
    """

    path, separator, query = current_url.partition("?")
    without_page = PAGE_SEGMENT_REGEX.sub("", path, count=1)
    if not TRAILING_SLASH_REGEX.search(without_page):
        without_page = f"{without_page}/"
    return f"{without_page}{page_number}_p/{separator}{query}"


class PageController:
    """
    Drives the navigation session across search-results pages.
    """

    def __init__(self, *, settings: ListingScrapeSettings, job_logger: JobLogger) -> None:
        self._settings = settings
        self._job_logger = job_logger

    async def extract_references(self, page: NavigablePage) -> list[ItemReference]:
        """
        Scroll the results list, then discover listing references on the page.
        """

        settings = self._settings
        await page_actions.scroll(
            page,
            steps=settings.results_scroll_steps,
            step_px=settings.results_scroll_step_px,
            delay_seconds=settings.results_scroll_delay_seconds,
            step_script=page_actions.RESULTS_SCROLL_SCRIPT,
            reset_script=page_actions.RESULTS_SCROLL_RESET_SCRIPT,
        )
        await page_actions.pause(settings.post_scroll_delay_seconds)

        snapshot = await page_actions.capture_snapshot(page)
        references = extract_references(snapshot, settings.site_base_url)
        log_event(
            logger,
            logging.INFO,
            "listing_references_discovered",
            page_url=snapshot.url,
            count=len(references),
        )
        return references

    async def advance_to_page(self, page: NavigablePage, target_url: str) -> bool:
        """
        Load `target_url` and report whether it holds any listings.

        An empty first load gets exactly one reload before the page is
        considered exhausted.
        """

        settings = self._settings
        try:
            self._job_logger.info(f"Navigating to next page: {target_url}")
            await page_actions.navigate(page, target_url, settings=settings)
            await page_actions.pause(settings.settle_delay_seconds)

            references = await self.extract_references(page)
            if references:
                self._job_logger.info(f"Page loaded successfully with {len(references)} listings.")
                return True

            title = await page.title()
            self._job_logger.warn(f'No listings found. Page title: "{title}", URL: {page.url}')
            self._job_logger.info("Reloading page as final attempt...")
            await page_actions.reload(page, settings=settings)
            await page_actions.pause(settings.settle_delay_seconds)

            references = await self.extract_references(page)
            if not references:
                raise PageExhausted(f"No listings at {target_url} after reload.")
            self._job_logger.info(f"After reload, found {len(references)} listings.")
            return True
        except PageExhausted:
            self._job_logger.info("Next page has no listings - end of results.")
            return False
        except Exception as exc:  # noqa: BLE001
            self._job_logger.warn(f"Failed to navigate to next page: {describe(exc)}")
            return False
