"""
app/api/routers package marker.
"""

from app.api.routers.listing_scrape import router as listing_scrape_router

__all__ = ["listing_scrape_router"]
