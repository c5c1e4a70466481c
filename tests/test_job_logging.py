"""
tests/test_job_logging.py

Per-job progress log and structured log lines.
"""

from __future__ import annotations

import json
import logging

from app.scraping.logging_utils import JobLogger, log_event


def test_log_event_emits_compact_json(caplog) -> None:
    logger = logging.getLogger("tests.log_event")

    with caplog.at_level(logging.INFO, logger="tests.log_event"):
        log_event(logger, logging.INFO, "listing_extracted", url="u", fields=3)

    assert json.loads(caplog.records[-1].getMessage()) == {
        "event": "listing_extracted",
        "fields": 3,
        "url": "u",
    }


def test_entries_are_indexed_and_bounded() -> None:
    job_logger = JobLogger(job_id="j", max_entries=3)

    for number in range(5):
        job_logger.info(f"message {number}")

    assert [entry.index for entry in job_logger.entries] == [2, 3, 4]
    assert [entry.message for entry in job_logger.entries_since(4)] == ["message 4"]
    assert job_logger.entries_since(0)[0].index == 2


def test_levels_and_scraped_counter(caplog) -> None:
    job_logger = JobLogger(job_id="j")
    job_logger.scraped = 7

    with caplog.at_level(logging.INFO, logger="app.scraping.logging_utils"):
        job_logger.warn("slow page")
        job_logger.success("done")

    assert [entry.level for entry in job_logger.entries] == ["warn", "success"]
    payload = json.loads(caplog.records[0].getMessage())
    assert payload["event"] == "job_log"
    assert payload["scraped"] == 7
    assert payload["job_level"] == "warn"
    assert payload["message"] == "slow page"
    assert caplog.records[0].levelno == logging.WARNING
    assert json.loads(caplog.records[1].getMessage())["job_level"] == "success"
