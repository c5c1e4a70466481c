"""
Schemas for listing scrape job endpoints.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class ScrapeJobCreateRequest(BaseModel):
    search_url: str = Field(min_length=1, description="Search-results URL to paginate")
    job_id: str | None = Field(default=None, description="Optional caller-chosen job id")


class ScrapeJobStatusResponse(BaseModel):
    job_id: str
    search_url: str
    status: str
    scraped: int
    pages_visited: int
    cancelled: bool
    error: str | None = None
    created_at: datetime
    finished_at: datetime | None = None


class ScrapeJobListResponse(BaseModel):
    jobs: list[ScrapeJobStatusResponse] = Field(default_factory=list)


class ScrapeJobCancelResponse(BaseModel):
    job_id: str
    cancel_requested: bool


class JobLogEntryResponse(BaseModel):
    index: int
    level: str
    message: str
    timestamp: datetime


class ScrapeJobLogsResponse(BaseModel):
    job_id: str
    scraped: int
    next_index: int
    entries: list[JobLogEntryResponse] = Field(default_factory=list)


class HealthResponse(BaseModel):
    status: str
    running_jobs: int
