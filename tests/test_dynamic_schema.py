"""
tests/test_dynamic_schema.py

Record accumulation and flat export.
"""

from __future__ import annotations

import csv
import io

from app.scraping.storage import DynamicSchema, RecordSink


def _schema() -> DynamicSchema:
    schema = DynamicSchema()
    schema.add_row({"address": "1 A St", "price": "$1", "price_history": [("2020", "Sold", "$1", None)]})
    schema.add_row({"address": "2 B St", "fact_pool": "Yes", "price": None})
    return schema


def test_is_a_record_sink() -> None:
    assert isinstance(DynamicSchema(), RecordSink)


def test_columns_follow_first_appearance() -> None:
    assert _schema().columns == ["address", "price", "price_history", "fact_pool"]


def test_rows_are_flat_with_every_column() -> None:
    rows = _schema().to_rows()

    assert rows[0] == {
        "address": "1 A St",
        "price": "$1",
        "price_history": '[["2020", "Sold", "$1", null]]',
        "fact_pool": None,
    }
    assert rows[1]["price_history"] is None
    assert rows[1]["fact_pool"] == "Yes"


def test_write_csv_blanks_missing_values() -> None:
    buffer = io.StringIO()

    written = _schema().write_csv(buffer)

    assert written == 2
    assert buffer.getvalue().startswith("address,price,price_history,fact_pool\r\n")
    rows = list(csv.DictReader(io.StringIO(buffer.getvalue())))
    assert rows[1] == {"address": "2 B St", "price": "", "price_history": "", "fact_pool": "Yes"}


def test_save_csv_writes_file(tmp_path) -> None:
    path = tmp_path / "listings.csv"

    assert _schema().save_csv(path) == 2
    assert path.read_text(encoding="utf-8").count("\n") == 3


def test_added_records_are_copied() -> None:
    record = {"address": "1 A St"}
    schema = DynamicSchema()
    schema.add_row(record)
    record["address"] = "changed"

    assert schema.records == [{"address": "1 A St"}]
    assert len(schema) == 1
