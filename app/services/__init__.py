"""
app/services package marker.
"""

from app.services.listing_scrape_service import (
    DuplicateJobError,
    ScrapeJobManager,
    build_job_manager,
)

__all__ = [
    "DuplicateJobError",
    "ScrapeJobManager",
    "build_job_manager",
]
