"""
Error taxonomy for listing scrape jobs.

Per-listing and per-page errors are contained by the batch scheduler and the
page controller; only `OrchestratorFatal` ends a job with `error` status.
"""

from __future__ import annotations


class ScrapeError(Exception):
    """
    Base class for all listing scrape failures.
    """


class ProvisioningError(ScrapeError):
    """
    A remote browser session could not be acquired.
    """


class NavigationTimeout(ScrapeError):
    """
    A page navigation exceeded its time bound.
    """

    def __init__(self, url: str, timeout_seconds: float) -> None:
        super().__init__(f"Navigation to {url} timed out after {timeout_seconds:g}s")
        self.url = url
        self.timeout_seconds = timeout_seconds


class ExtractionMismatch(ScrapeError):
    """
    A strategy found no usable entity; the next strategy is tried.
    """


class PageExhausted(ScrapeError):
    """
    A results page produced no item references after one reload.
    """


class WorkerError(ScrapeError):
    """
    Base class for failures of one listing worker.
    """


class ListingExtractionError(WorkerError):
    """
    No extraction strategy produced a record with an address.
    """

    def __init__(self, url: str, reasons: list[str] | None = None) -> None:
        detail = "; ".join(reasons or []) or "no strategy matched"
        super().__init__(f"Could not extract listing {url}: {detail}")
        self.url = url
        self.reasons = list(reasons or [])


class OrchestratorFatal(ScrapeError):
    """
    Unrecoverable failure outside the per-worker and per-page boundaries.
    """
