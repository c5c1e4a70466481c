"""
In-memory accumulator with a first-seen ordered column union.
"""

from __future__ import annotations

import csv
import json
from collections.abc import Iterable
from pathlib import Path
from typing import IO

from app.scraping.storage.base import RecordSink
from app.scraping.types import FieldValue, ListingRecord


def _flatten(value: FieldValue) -> str | None:
    if isinstance(value, list):
        return json.dumps([list(row) for row in value])
    return value


class DynamicSchema(RecordSink):
    """
    Keeps every accepted record and the union of their field names.

    Columns are ordered by first appearance across records, so listings with
    extra facts add columns without reordering earlier ones.
    """

    def __init__(self) -> None:
        self._rows: list[ListingRecord] = []
        self._columns: dict[str, None] = {}

    def add_row(self, record: ListingRecord) -> None:
        self._rows.append(dict(record))
        for key in record:
            self._columns.setdefault(key, None)

    def extend(self, records: Iterable[ListingRecord]) -> None:
        for record in records:
            self.add_row(record)

    @property
    def columns(self) -> list[str]:
        return list(self._columns)

    @property
    def records(self) -> list[ListingRecord]:
        return [dict(row) for row in self._rows]

    def __len__(self) -> int:
        return len(self._rows)

    def to_rows(self) -> list[dict[str, str | None]]:
        """
        Return flat rows keyed by every column; history tables become JSON text.
        """

        columns = self.columns
        return [{column: _flatten(row.get(column)) for column in columns} for row in self._rows]

    def write_csv(self, stream: IO[str]) -> int:
        """
        Write all rows as CSV with a header; return the number of data rows.
        """

        writer = csv.DictWriter(
            stream,
            fieldnames=self.columns,
            extrasaction="ignore",
            restval="",
            lineterminator="\r\n",
        )
        writer.writeheader()
        rows = self.to_rows()
        for row in rows:
            writer.writerow({key: "" if value is None else value for key, value in row.items()})
        return len(rows)

    def save_csv(self, path: str | Path) -> int:
        with Path(path).open("w", encoding="utf-8", newline="") as handle:
            return self.write_csv(handle)
