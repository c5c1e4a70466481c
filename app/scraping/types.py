"""
Shared scraping runtime data models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar, Union

T = TypeVar("T")

HistoryRow = tuple[Union[str, None], ...]
FieldValue = Union[str, list[HistoryRow], None]
ListingRecord = dict[str, FieldValue]


@dataclass(frozen=True)
class PageSnapshot:
    """
    Immutable capture of one rendered page, the input of every extractor.
    """

    url: str = ""
    next_data: str | None = None
    html: str = ""
    body_text: str = ""


@dataclass(frozen=True)
class ItemReference:
    """
    One discovered listing: canonical URL plus its de-duplication key.
    """

    url: str
    key: str


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """
    Result of one extraction strategy: either a value or a reason to move on.
    """

    value: T | None = None
    reason: str | None = None

    @classmethod
    def found(cls, value: T) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def skip(cls, reason: str) -> "Outcome[T]":
        return cls(reason=reason)

    @property
    def ok(self) -> bool:
        return self.value is not None


@dataclass(frozen=True)
class StrategyRun(Generic[T]):
    """
    Outcome of a strategy dispatch, with the name of the winning strategy.
    """

    outcome: Outcome[T]
    strategy: str | None = None
    attempts: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.outcome.ok

    @property
    def value(self) -> T | None:
        return self.outcome.value


class BatchOutcome(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class BatchResult:
    """
    Per-URL outcome of one dispatched (or skipped) listing worker.
    """

    url: str
    outcome: BatchOutcome
    record: ListingRecord | None = None
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.outcome is BatchOutcome.SUCCESS and self.record is not None

    @property
    def skipped(self) -> bool:
        return self.outcome is BatchOutcome.SKIPPED


def describe(value: Any) -> str:
    """
    Short printable form of an exception or arbitrary value for log fields.
    """

    if isinstance(value, BaseException):
        text = str(value)
        return text if text else value.__class__.__name__
    return str(value)
