"""
app/schemas package marker.
"""

from app.schemas.listing_scrape import (
    HealthResponse,
    JobLogEntryResponse,
    ScrapeJobCancelResponse,
    ScrapeJobCreateRequest,
    ScrapeJobListResponse,
    ScrapeJobLogsResponse,
    ScrapeJobStatusResponse,
)

__all__ = [
    "HealthResponse",
    "JobLogEntryResponse",
    "ScrapeJobCancelResponse",
    "ScrapeJobCreateRequest",
    "ScrapeJobListResponse",
    "ScrapeJobLogsResponse",
    "ScrapeJobStatusResponse",
]
