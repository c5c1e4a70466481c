"""
Storage layer exports.
"""

from app.scraping.storage.base import RecordSink
from app.scraping.storage.dynamic_schema import DynamicSchema

__all__ = ["DynamicSchema", "RecordSink"]
