"""
Extraction strategy exports.
"""

from app.scraping.parsing.html_parsers import ListingHTMLParser, extract_dom_record
from app.scraping.parsing.listing_record import (
    extract_heuristic,
    extract_record,
    extract_structured,
)
from app.scraping.parsing.listing_urls import ReferenceSet, extract_references, reference_key
from app.scraping.parsing.next_data import build_listing_record, extract_structured_record
from app.scraping.parsing.strategies import run_strategies

__all__ = [
    "ListingHTMLParser",
    "ReferenceSet",
    "build_listing_record",
    "extract_dom_record",
    "extract_heuristic",
    "extract_record",
    "extract_references",
    "extract_structured",
    "extract_structured_record",
    "reference_key",
    "run_strategies",
]
