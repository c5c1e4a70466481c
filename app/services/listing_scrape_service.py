"""
app/services/listing_scrape_service.py

Lifecycle management for background listing scrape jobs.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Awaitable, Callable, Sequence

from app.domain.listing_scrape import JobStatus, ScrapeJob
from app.scraping.browser import RemoteBrowserSessionProvider, SessionManager
from app.scraping.config import get_listing_scrape_settings, get_session_provider_settings
from app.scraping.config.models import ListingScrapeSettings
from app.scraping.logging_utils import JobLogger, log_event
from app.scraping.orchestrator import ListingScrapeOrchestrator
from app.scraping.types import describe

logger = logging.getLogger(__name__)

Closer = Callable[[], Awaitable[None]]


class DuplicateJobError(ValueError):
    """
    A job with the requested id is already registered.
    """


class ScrapeJobManager:
    """
    Starts scrape jobs as asyncio tasks and keeps them queryable by id.
    """

    def __init__(
        self,
        *,
        orchestrator: ListingScrapeOrchestrator,
        settings: ListingScrapeSettings,
        closers: Sequence[Closer] = (),
    ) -> None:
        self._orchestrator = orchestrator
        self._settings = settings
        self._closers = list(closers)
        self._jobs: dict[str, ScrapeJob] = {}

    def start(self, search_url: str, job_id: str | None = None) -> ScrapeJob:
        """
        Register a job and schedule it on the running loop; returns immediately.
        """

        job_id = job_id or uuid.uuid4().hex
        if job_id in self._jobs:
            raise DuplicateJobError(f"Job {job_id} already exists.")

        job = ScrapeJob(
            job_id=job_id,
            search_url=search_url,
            logger=JobLogger(job_id=job_id, max_entries=self._settings.log_buffer_size),
        )
        self._jobs[job_id] = job
        job.task = asyncio.create_task(self._run_job(job), name=f"scrape-job-{job_id}")
        log_event(logger, logging.INFO, "scrape_job_scheduled", job_id=job_id, url=search_url)
        return job

    def get(self, job_id: str) -> ScrapeJob | None:
        return self._jobs.get(job_id)

    def list_jobs(self) -> list[ScrapeJob]:
        return sorted(self._jobs.values(), key=lambda job: job.created_at, reverse=True)

    def cancel(self, job_id: str) -> bool:
        """
        Request cooperative cancellation; False for unknown or finished jobs.
        """

        job = self._jobs.get(job_id)
        if job is None or not job.request_cancel():
            return False
        job.logger.warn("Cancellation requested.")
        log_event(logger, logging.INFO, "scrape_job_cancel_requested", job_id=job_id)
        return True

    async def wait(self, job_id: str) -> ScrapeJob:
        job = self._jobs.get(job_id)
        if job is None:
            raise KeyError(job_id)
        if job.task is not None:
            await asyncio.shield(job.task)
        return job

    async def shutdown(self) -> None:
        """
        Stop every running job, then close shared resources.
        """

        running = [job for job in self._jobs.values() if job.status is JobStatus.RUNNING]
        for job in running:
            job.request_cancel()
            if job.task is not None:
                job.task.cancel()
        tasks = [job.task for job in running if job.task is not None]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

        for closer in self._closers:
            try:
                await closer()
            except Exception as exc:  # noqa: BLE001
                log_event(logger, logging.WARNING, "job_manager_close_failed", error=describe(exc))
        log_event(logger, logging.INFO, "job_manager_shutdown", stopped_jobs=len(running))

    async def _run_job(self, job: ScrapeJob) -> None:
        try:
            await self._orchestrator.run(job)
        except asyncio.CancelledError:
            job.mark_failed("Job interrupted by shutdown.")
            raise


def build_job_manager() -> ScrapeJobManager:
    """
    Build a job manager backed by the remote browser-session provider.
    """

    settings = get_listing_scrape_settings()
    provider = RemoteBrowserSessionProvider(settings=get_session_provider_settings())
    orchestrator = ListingScrapeOrchestrator(
        sessions=SessionManager(provider),
        settings=settings,
    )
    return ScrapeJobManager(orchestrator=orchestrator, settings=settings, closers=[provider.close])
