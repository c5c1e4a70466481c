"""
Tiered listing-record extraction.
"""

from __future__ import annotations

from app.scraping.parsing.html_parsers import extract_dom_record
from app.scraping.parsing.next_data import extract_structured_record
from app.scraping.parsing.strategies import Strategy, run_strategies
from app.scraping.types import ListingRecord, PageSnapshot, StrategyRun

STRUCTURED_RECORD_STRATEGIES: tuple[Strategy[ListingRecord], ...] = (
    ("next_data", extract_structured_record),
)
DOM_RECORD_STRATEGIES: tuple[Strategy[ListingRecord], ...] = (
    ("dom_heuristics", extract_dom_record),
)
RECORD_STRATEGIES = STRUCTURED_RECORD_STRATEGIES + DOM_RECORD_STRATEGIES


def extract_record(snapshot: PageSnapshot) -> StrategyRun[ListingRecord]:
    """
    Run both tiers in priority order against one snapshot.
    """

    return run_strategies(RECORD_STRATEGIES, snapshot)


def extract_structured(snapshot: PageSnapshot) -> StrategyRun[ListingRecord]:
    return run_strategies(STRUCTURED_RECORD_STRATEGIES, snapshot)


def extract_heuristic(snapshot: PageSnapshot) -> StrategyRun[ListingRecord]:
    return run_strategies(DOM_RECORD_STRATEGIES, snapshot)
