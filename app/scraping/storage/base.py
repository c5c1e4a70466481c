"""
Accumulator interfaces for scraped listing records.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from app.scraping.types import ListingRecord


class RecordSink(ABC):
    """
    Receives accepted listing records, one at a time, in acceptance order.
    """

    @abstractmethod
    def add_row(self, record: ListingRecord) -> None:
        """
        Accept one listing record.
        """
