"""
Single-listing scraper: one URL, one browser session, one record.
"""

from __future__ import annotations

import asyncio
import logging

from playwright.async_api import Error as PlaywrightError

from app.scraping.browser import page_actions
from app.scraping.browser.session import NavigablePage, SessionManager
from app.scraping.config.models import ListingScrapeSettings
from app.scraping.errors import ListingExtractionError
from app.scraping.logging_utils import JobLogger, log_event
from app.scraping.parsing import extract_heuristic, extract_structured
from app.scraping.types import ListingRecord, Outcome, StrategyRun, describe

logger = logging.getLogger(__name__)


class ListingWorker:
    """
    Scrapes one listing page, preferring the embedded payload over the DOM.
    """

    def __init__(
        self,
        *,
        sessions: SessionManager,
        settings: ListingScrapeSettings,
        job_logger: JobLogger | None = None,
    ) -> None:
        self._sessions = sessions
        self._settings = settings
        self._job_logger = job_logger

    async def scrape_one(self, url: str) -> ListingRecord:
        """
        Return the listing record for `url`.

        Raises `ProvisioningError`, `NavigationTimeout` or
        `ListingExtractionError`; the session is released on every path.
        """

        settings = self._settings
        async with self._sessions.session() as session:
            page = session.page
            self._info(f"Navigating to listing: {url}")
            await page_actions.navigate(page, url, settings=settings)
            await page_actions.pause(settings.settle_delay_seconds)

            structured = await self._structured(page, url)
            if structured.ok and structured.value is not None:
                record = structured.value
                self._info(f"Extracted data from __NEXT_DATA__ for: {record['address']}")
                record["link"] = url
                return record

            self._info("__NEXT_DATA__ extraction failed, falling back to DOM scraping...")
            await page_actions.scroll(
                page,
                steps=settings.listing_scroll_steps,
                step_px=settings.listing_scroll_step_px,
                delay_seconds=settings.listing_scroll_delay_seconds,
            )
            await page_actions.pause(settings.post_scroll_delay_seconds)
            clicked = await page_actions.expand_disclosures(
                page,
                click_delay_seconds=settings.expand_click_delay_seconds,
            )
            await page_actions.pause(settings.post_expand_delay_seconds)

            expanded = await page_actions.capture_snapshot(page)
            heuristic = extract_heuristic(expanded)
            if not heuristic.ok or heuristic.value is None:
                raise ListingExtractionError(url, structured.attempts + heuristic.attempts)

            record = heuristic.value
            record["link"] = url
            log_event(
                logger,
                logging.INFO,
                "listing_extracted_from_dom",
                url=url,
                disclosures_clicked=clicked,
                fields=len(record),
            )
            return record

    async def _structured(self, page: NavigablePage, url: str) -> StrategyRun[ListingRecord]:
        try:
            snapshot = await page_actions.capture_snapshot(page, include_dom=False)
        except (PlaywrightError, asyncio.TimeoutError) as exc:
            reason = f"payload unreadable: {describe(exc)}"
            log_event(logger, logging.WARNING, "structured_payload_unreadable", url=url, error=describe(exc))
            return StrategyRun(outcome=Outcome.skip(reason), attempts=[f"next_data: {reason}"])
        return extract_structured(snapshot)

    def _info(self, message: str) -> None:
        if self._job_logger is not None:
            self._job_logger.info(message)
