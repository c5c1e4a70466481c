from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI

from app.config import get_app_settings
from app.domain.listing_scrape import JobStatus
from app.schemas.listing_scrape import HealthResponse
from app.services.listing_scrape_service import ScrapeJobManager, build_job_manager


def _configure_logging() -> None:
    """
    Configure root logging once for the API process.
    """

    logging.basicConfig(
        level=getattr(logging, get_app_settings().log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Create the job manager on boot unless one was injected; stop its jobs on exit."""
    if application.state.job_manager is None:
        application.state.job_manager = build_job_manager()
        logging.getLogger(__name__).info("Job manager created")
    try:
        yield
    finally:
        await application.state.job_manager.shutdown()
        logging.getLogger(__name__).info("Job manager shut down")


def create_app(job_manager: ScrapeJobManager | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.
    """

    _configure_logging()

    application = FastAPI(
        title=get_app_settings().api_title,
        version="1.0.0",
        lifespan=_lifespan,
    )
    application.state.job_manager = job_manager

    from app.api.routers import listing_scrape_router

    application.include_router(listing_scrape_router)

    @application.get("/health", response_model=HealthResponse)
    def healthcheck() -> HealthResponse:
        manager: ScrapeJobManager | None = application.state.job_manager
        running = 0
        if manager is not None:
            running = sum(1 for job in manager.list_jobs() if job.status is JobStatus.RUNNING)
        return HealthResponse(status="ok", running_jobs=running)

    return application


app = create_app()
