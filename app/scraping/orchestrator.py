"""
Listing scrape orchestrator: paginate search results and fan out workers.
"""

from __future__ import annotations

import logging

from app.domain.listing_scrape import ScrapeJob
from app.scraping.batch import BatchScheduler, CapCounter, ScrapeFn
from app.scraping.browser import page_actions
from app.scraping.browser.session import BrowserSession, SessionManager
from app.scraping.config.models import ListingScrapeSettings
from app.scraping.errors import OrchestratorFatal, ProvisioningError
from app.scraping.listing_worker import ListingWorker
from app.scraping.logging_utils import log_event
from app.scraping.page_controller import PageController, build_next_page_url
from app.scraping.types import BatchResult, describe

logger = logging.getLogger(__name__)


class ListingScrapeOrchestrator:
    """
    Runs one scrape job from the first search-results page to completion.

    The navigation session and the listing workers' sessions are independent;
    the navigation session is swapped for a fresh one before every new page.
    """

    def __init__(
        self,
        *,
        sessions: SessionManager,
        settings: ListingScrapeSettings,
        scrape: ScrapeFn | None = None,
    ) -> None:
        self._sessions = sessions
        self._settings = settings
        self._scrape = scrape

    async def run(self, job: ScrapeJob) -> ScrapeJob:
        """
        Drive `job` to a terminal status. Never raises for scrape failures.
        """

        log_event(logger, logging.INFO, "scrape_job_started", job_id=job.job_id, url=job.search_url)
        try:
            await self._run(job)
        except OrchestratorFatal as exc:
            message = describe(exc)
            job.logger.error(f"Error: {message}")
            job.mark_failed(message)
        except Exception as exc:  # noqa: BLE001
            message = describe(exc)
            job.logger.error(f"Unexpected error: {message}")
            job.mark_failed(message)
        else:
            job.mark_completed()

        log_event(
            logger,
            logging.INFO if job.error is None else logging.ERROR,
            "scrape_job_finished",
            job_id=job.job_id,
            status=job.status.value,
            scraped=job.scraped_count,
            pages=job.pages_visited,
            cancelled=job.cancelled,
            error=job.error,
        )
        return job

    async def _run(self, job: ScrapeJob) -> None:
        settings = self._settings
        job_logger = job.logger
        cap = settings.max_listings
        controller = PageController(settings=settings, job_logger=job_logger)
        scheduler = BatchScheduler(
            scrape=self._scrape or ListingWorker(
                sessions=self._sessions,
                settings=settings,
                job_logger=job_logger,
            ).scrape_one,
            concurrency=settings.batch_concurrency,
            job_logger=job_logger,
        )
        counter = CapCounter(job.scraped_count)

        job_logger.info("Creating browser session...")
        try:
            session: BrowserSession | None = await self._sessions.acquire()
        except ProvisioningError as exc:
            raise OrchestratorFatal(f"Could not create navigation session: {describe(exc)}") from exc

        try:
            job_logger.info(f"Navigating to {job.search_url}")
            try:
                await page_actions.navigate(session.page, job.search_url, settings=settings)
            except Exception as exc:
                raise OrchestratorFatal(f"Could not load search page: {describe(exc)}") from exc
            await page_actions.pause(settings.settle_delay_seconds)

            page_number = 1
            job.pages_visited = 1
            while job.scraped_count < cap:
                if job.cancel_event.is_set():
                    job_logger.warn("Cancellation requested - stopping.")
                    break

                job_logger.info(f"--- Page {page_number} ---")
                try:
                    references = await controller.extract_references(session.page)
                except Exception as exc:
                    if page_number == 1:
                        raise OrchestratorFatal(f"Could not read search page: {describe(exc)}") from exc
                    job_logger.warn(f"Could not read listings on page {page_number}: {describe(exc)}")
                    break
                job_logger.info(f"Found {len(references)} listings on page {page_number}")
                if not references:
                    job_logger.info("No listings found on this page. Stopping.")
                    break

                remaining = cap - job.scraped_count
                urls = [reference.url for reference in references[:remaining]]
                results = await scheduler.run_batch(
                    urls,
                    counter=counter,
                    cap=cap,
                    cancel_event=job.cancel_event,
                )
                self._accept(job, results, cap)

                if job.scraped_count >= cap:
                    job_logger.success(f"Reached {cap} listing limit")
                    break
                if job.cancel_event.is_set():
                    job_logger.warn("Cancellation requested - stopping.")
                    break

                job_logger.info("Creating fresh session for next page...")
                await self._sessions.release(session)
                session = None
                try:
                    session = await self._sessions.acquire()
                except ProvisioningError as exc:
                    job_logger.error(f"Could not create session for next page: {describe(exc)}")
                    break

                next_url = build_next_page_url(job.search_url, page_number + 1)
                if not await controller.advance_to_page(session.page, next_url):
                    job_logger.info("No more pages available.")
                    break
                page_number += 1
                job.pages_visited = page_number
        finally:
            if session is not None:
                await self._sessions.release(session)

        suffix = " (cancelled)" if job.cancel_event.is_set() else ""
        job_logger.success(f"Completed! Scraped {job.scraped_count} listings{suffix}")

    @staticmethod
    def _accept(job: ScrapeJob, results: list[BatchResult], cap: int) -> None:
        job_logger = job.logger
        for result in results:
            if result.success and result.record is not None:
                if job.scraped_count >= cap:
                    break
                job.sink.add_row(result.record)
                job.scraped_count += 1
                job_logger.scraped = job.scraped_count
                job_logger.success(f"[{job.scraped_count}/{cap}] Scraped: {result.record.get('address')}")
            elif result.skipped:
                job_logger.info(f"{result.error}: {result.url}")
            else:
                job_logger.error(f"Failed: {result.url} ({result.error})")
