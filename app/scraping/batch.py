"""
Concurrency-bounded batch dispatch of listing workers.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence

from app.scraping.logging_utils import JobLogger
from app.scraping.types import BatchOutcome, BatchResult, ListingRecord, describe

ScrapeFn = Callable[[str], Awaitable[ListingRecord]]

SKIP_LIMIT_REACHED = "Skipped - limit reached"
SKIP_CANCELLED = "Skipped - job cancelled"


class CapCounter:
    """
    Shared success counter with slot reservations.

    A worker reserves a slot before it is dispatched and settles it when it
    finishes, so `value + pending` never exceeds the cap.
    """

    def __init__(self, initial: int = 0) -> None:
        self._value = max(0, initial)
        self._pending = 0
        self._lock = asyncio.Lock()

    @property
    def value(self) -> int:
        return self._value

    @property
    def pending(self) -> int:
        return self._pending

    async def try_reserve(self, cap: int) -> bool:
        async with self._lock:
            if self._value + self._pending >= cap:
                return False
            self._pending += 1
            return True

    async def settle(self, *, success: bool) -> int:
        async with self._lock:
            self._pending = max(0, self._pending - 1)
            if success:
                self._value += 1
            return self._value


class BatchScheduler:
    """
    Runs listing workers in fixed-size chunks; a chunk fully settles before
    the next one starts.
    """

    def __init__(
        self,
        *,
        scrape: ScrapeFn,
        concurrency: int,
        job_logger: JobLogger,
    ) -> None:
        self._scrape = scrape
        self._concurrency = max(1, concurrency)
        self._job_logger = job_logger

    async def run_batch(
        self,
        urls: Sequence[str],
        *,
        counter: CapCounter,
        cap: int,
        cancel_event: asyncio.Event | None = None,
    ) -> list[BatchResult]:
        """
        Scrape `urls` and return one result per URL, in input order.
        """

        results: list[BatchResult] = []
        total = len(urls)

        for start in range(0, total, self._concurrency):
            chunk = urls[start : start + self._concurrency]
            slots: list[BatchResult | None] = []
            dispatched: list[Awaitable[BatchResult]] = []

            for offset, url in enumerate(chunk):
                if cancel_event is not None and cancel_event.is_set():
                    slots.append(BatchResult(url=url, outcome=BatchOutcome.SKIPPED, error=SKIP_CANCELLED))
                elif not await counter.try_reserve(cap):
                    slots.append(
                        BatchResult(url=url, outcome=BatchOutcome.SKIPPED, error=SKIP_LIMIT_REACHED)
                    )
                else:
                    slots.append(None)
                    dispatched.append(self._run_worker(url, start + offset + 1, total, counter))

            if dispatched:
                self._job_logger.info(
                    f"Processing batch {start // self._concurrency + 1} ({len(dispatched)} workers)..."
                )
            settled = await asyncio.gather(*dispatched, return_exceptions=True)

            outcomes = iter(settled)
            for url, slot in zip(chunk, slots):
                if slot is not None:
                    results.append(slot)
                    continue
                outcome = next(outcomes)
                if isinstance(outcome, BaseException):
                    results.append(
                        BatchResult(url=url, outcome=BatchOutcome.FAILED, error=describe(outcome))
                    )
                else:
                    results.append(outcome)

        return results

    async def _run_worker(
        self,
        url: str,
        worker_number: int,
        total: int,
        counter: CapCounter,
    ) -> BatchResult:
        self._job_logger.info(f"[Worker {worker_number}/{total}] Starting: {url}")
        success = False
        try:
            record = await self._scrape(url)
            success = True
            return BatchResult(url=url, outcome=BatchOutcome.SUCCESS, record=record)
        except Exception as exc:  # noqa: BLE001
            message = describe(exc)
            self._job_logger.error(f"[Worker {worker_number}] Error scraping {url}: {message}")
            return BatchResult(url=url, outcome=BatchOutcome.FAILED, error=message)
        finally:
            await counter.settle(success=success)
