"""
app/domain/listing_scrape.py

Domain models for listing scrape jobs.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from app.scraping.logging_utils import JobLogger
from app.scraping.storage import DynamicSchema


class JobStatus(str, Enum):
    RUNNING = "running"
    COMPLETED = "completed"
    ERROR = "error"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(eq=False)
class ScrapeJob:
    """
    One scrape run over a search URL, owned by the job manager.

    Status only moves forward: once a job is completed or errored further
    transitions are ignored.
    """

    job_id: str
    search_url: str
    logger: JobLogger
    sink: DynamicSchema = field(default_factory=DynamicSchema)
    status: JobStatus = JobStatus.RUNNING
    scraped_count: int = 0
    pages_visited: int = 0
    cancelled: bool = False
    error: str | None = None
    created_at: datetime = field(default_factory=_utcnow)
    finished_at: datetime | None = None
    cancel_event: asyncio.Event = field(default_factory=asyncio.Event)
    task: asyncio.Task[None] | None = field(default=None, repr=False)

    @property
    def is_terminal(self) -> bool:
        return self.status is not JobStatus.RUNNING

    def request_cancel(self) -> bool:
        if self.is_terminal:
            return False
        self.cancel_event.set()
        return True

    def mark_completed(self) -> None:
        if self.is_terminal:
            return
        self.status = JobStatus.COMPLETED
        self.cancelled = self.cancel_event.is_set()
        self.finished_at = _utcnow()

    def mark_failed(self, message: str) -> None:
        if self.is_terminal:
            return
        self.status = JobStatus.ERROR
        self.error = message
        self.finished_at = _utcnow()
