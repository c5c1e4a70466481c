"""
Run one listing scrape from CLI and write the results as CSV.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import uuid
from dataclasses import replace

from app.config import get_app_settings
from app.domain.listing_scrape import ScrapeJob
from app.scraping.browser import RemoteBrowserSessionProvider, SessionManager
from app.scraping.config import get_listing_scrape_settings, get_session_provider_settings
from app.scraping.config.models import ListingScrapeSettings
from app.scraping.logging_utils import JobLogger
from app.scraping.orchestrator import ListingScrapeOrchestrator


def _build_settings(args: argparse.Namespace) -> ListingScrapeSettings:
    settings = get_listing_scrape_settings()
    if args.max_listings is not None:
        settings = replace(settings, max_listings=max(1, args.max_listings))
    if args.concurrency is not None:
        settings = replace(settings, batch_concurrency=max(1, args.concurrency))
    return settings


async def _run(search_url: str, settings: ListingScrapeSettings) -> ScrapeJob:
    provider = RemoteBrowserSessionProvider(settings=get_session_provider_settings())
    orchestrator = ListingScrapeOrchestrator(
        sessions=SessionManager(provider),
        settings=settings,
    )
    job_id = uuid.uuid4().hex
    job = ScrapeJob(
        job_id=job_id,
        search_url=search_url,
        logger=JobLogger(job_id=job_id, max_entries=settings.log_buffer_size),
    )
    try:
        return await orchestrator.run(job)
    finally:
        await provider.close()


def main() -> int:
    parser = argparse.ArgumentParser(description="Scrape listings from a search-results URL.")
    parser.add_argument("search_url", help="Search-results URL to paginate.")
    parser.add_argument(
        "--output",
        dest="output",
        default="listings.csv",
        help="CSV file to write (default: listings.csv).",
    )
    parser.add_argument("--max-listings", dest="max_listings", type=int, default=None)
    parser.add_argument("--concurrency", dest="concurrency", type=int, default=None)
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, get_app_settings().log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    job = asyncio.run(_run(args.search_url, _build_settings(args)))
    rows = job.sink.save_csv(args.output)

    payload = {
        "job_id": job.job_id,
        "status": job.status.value,
        "scraped": job.scraped_count,
        "pages_visited": job.pages_visited,
        "rows_written": rows,
        "output": args.output,
        "error": job.error,
    }
    print(json.dumps(payload, indent=2))
    return 0 if job.error is None else 1


if __name__ == "__main__":
    raise SystemExit(main())
