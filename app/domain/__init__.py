"""
app/domain package marker.
"""

from app.domain.listing_scrape import JobStatus, ScrapeJob

__all__ = ["JobStatus", "ScrapeJob"]
