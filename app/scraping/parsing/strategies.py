"""
Ordered strategy dispatch for tiered extraction.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import TypeVar

from app.scraping.logging_utils import log_event
from app.scraping.types import Outcome, PageSnapshot, StrategyRun, describe

logger = logging.getLogger(__name__)

T = TypeVar("T")

Strategy = tuple[str, Callable[[PageSnapshot], Outcome[T]]]


def run_strategies(
    strategies: Sequence[Strategy[T]],
    snapshot: PageSnapshot,
) -> StrategyRun[T]:
    """
    Try each strategy in order and stop at the first one that finds a value.

    An exception raised inside a strategy only demotes it; it never escapes.
    """

    attempts: list[str] = []
    for name, strategy in strategies:
        try:
            outcome = strategy(snapshot)
        except Exception as exc:  # noqa: BLE001
            log_event(
                logger,
                logging.DEBUG,
                "strategy_raised",
                strategy=name,
                url=snapshot.url,
                error=describe(exc),
            )
            outcome = Outcome.skip(describe(exc))

        if outcome.ok:
            return StrategyRun(outcome=outcome, strategy=name, attempts=attempts)
        attempts.append(f"{name}: {outcome.reason or 'nothing found'}")

    reason = "; ".join(attempts) if attempts else "no strategies configured"
    return StrategyRun(outcome=Outcome.skip(reason), strategy=None, attempts=attempts)
