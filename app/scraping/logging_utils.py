"""
Structured logging helpers for scraping workflows.
"""

from __future__ import annotations

import json
import logging
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

logger = logging.getLogger(__name__)

_LEVEL_MAP = {
    "info": logging.INFO,
    "success": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


def log_event(
    logger: logging.Logger,
    level: int,
    event: str,
    **fields: Any,
) -> None:
    """
    Emit one structured log line as compact JSON.
    """

    payload = {"event": event, **fields}
    logger.log(level, json.dumps(payload, default=str, sort_keys=True))


@dataclass(frozen=True)
class JobLogEntry:
    """
    One progress message shown to job observers.
    """

    index: int
    level: str
    message: str
    timestamp: datetime


class JobLogger:
    """
    Per-job progress log with a bounded buffer and a scraped-count field.

    Every entry is mirrored to the module logger as a `job_log` event so the
    process log carries the same history as the API.
    """

    def __init__(self, *, job_id: str, max_entries: int = 2000) -> None:
        self.job_id = job_id
        self.scraped = 0
        self._entries: deque[JobLogEntry] = deque(maxlen=max(1, max_entries))
        self._next_index = 0

    def info(self, message: str) -> None:
        self._append("info", message)

    def warn(self, message: str) -> None:
        self._append("warn", message)

    def error(self, message: str) -> None:
        self._append("error", message)

    def success(self, message: str) -> None:
        self._append("success", message)

    @property
    def entries(self) -> list[JobLogEntry]:
        return list(self._entries)

    def entries_since(self, index: int) -> list[JobLogEntry]:
        """
        Return buffered entries whose index is at least `index`.
        """

        return [entry for entry in self._entries if entry.index >= index]

    def _append(self, level: str, message: str) -> None:
        entry = JobLogEntry(
            index=self._next_index,
            level=level,
            message=message,
            timestamp=datetime.now(timezone.utc),
        )
        self._next_index += 1
        self._entries.append(entry)
        log_event(
            logger,
            _LEVEL_MAP[level],
            "job_log",
            job_id=self.job_id,
            job_level=level,
            message=message,
            scraped=self.scraped,
        )
