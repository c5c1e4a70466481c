"""
Structured (`__NEXT_DATA__`) listing extraction.

The detail page embeds its property entity in a Next.js payload. Depending on
the page variant the entity sits in a GraphQL client cache (a JSON string or an
object whose values are JSON strings) or directly under `initialData`.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from app.scraping.errors import ExtractionMismatch
from app.scraping.parsing.formatting import (
    format_estimate_range,
    format_money,
    js_string,
    js_truthy,
    slugify_label,
)
from app.scraping.types import HistoryRow, ListingRecord, Outcome, PageSnapshot

# Source key -> output fact name (prefixed with `fact_`).
RESO_FACT_MAPPINGS: tuple[tuple[str, str], ...] = (
    ("bedrooms", "bedrooms"),
    ("bathrooms", "bathrooms"),
    ("bathroomsFull", "bathrooms_full"),
    ("bathroomsHalf", "bathrooms_half"),
    ("livingArea", "living_area"),
    ("stories", "stories"),
    ("homeType", "type"),
    ("yearBuilt", "year_built"),
    ("heating", "heating"),
    ("cooling", "cooling"),
    ("parking", "parking"),
    ("parkingCapacity", "parking_capacity"),
    ("garageSpaces", "garage_spaces"),
    ("hasGarage", "has_garage"),
    ("laundryFeatures", "laundry"),
    ("appliances", "appliances"),
    ("flooring", "flooring"),
    ("basement", "basement"),
    ("roofType", "roof"),
    ("exteriorFeatures", "exterior_features"),
    ("constructionMaterials", "construction"),
    ("foundationDetails", "foundation"),
    ("sewer", "sewer"),
    ("waterSource", "water_source"),
    ("architecturalStyle", "architectural_style"),
    ("communityFeatures", "community_features"),
    ("associationFee", "hoa_fee"),
    ("associationFeeFrequency", "hoa_frequency"),
)

_SKIPPED_FACT_VALUES = {"", "None"}
_NO_DATA = "No Data"


def parse_next_data(raw: str | None) -> dict[str, Any] | None:
    """
    Decode the raw `__NEXT_DATA__` script text.
    """

    if not raw or not raw.strip():
        return None
    try:
        payload = json.loads(raw)
    except ValueError as exc:
        raise ExtractionMismatch(f"__NEXT_DATA__ is not valid JSON: {exc}") from exc
    return payload if isinstance(payload, dict) else None


def find_property(next_data: Mapping[str, Any]) -> dict[str, Any] | None:
    """
    Locate the property entity at one of the known nesting paths.
    """

    props = _as_mapping(next_data.get("props"))
    page_props = _as_mapping(props.get("pageProps")) if props else None
    if not page_props:
        return None
    component_props = _as_mapping(page_props.get("componentProps"))

    if component_props and component_props.get("gdpClientCache"):
        cache = _as_mapping(component_props["gdpClientCache"])
        found = _property_in_cache(cache) if cache else None
        if found is not None:
            return found

    if page_props.get("gdpClientCache"):
        cache = _as_mapping(page_props["gdpClientCache"])
        found = _property_in_cache(cache) if cache else None
        if found is not None:
            return found

    initial_data = _as_mapping(page_props.get("initialData"))
    if initial_data and isinstance(initial_data.get("property"), dict) and initial_data["property"]:
        return initial_data["property"]
    return None


def build_listing_record(prop: Mapping[str, Any]) -> ListingRecord:
    """
    Derive every output field from one property entity.
    """

    record: ListingRecord = {}

    address = prop.get("address")
    if isinstance(address, Mapping):
        parts = [
            js_string(address.get(key))
            for key in ("streetAddress", "city", "state", "zipcode")
            if js_truthy(address.get(key))
        ]
        record["address"] = ", ".join(parts) or None
    else:
        record["address"] = None

    record["price"] = format_money(prop.get("price"))
    record["zestimate"] = format_money(prop.get("zestimate"))
    record["rent_zestimate"] = format_money(prop.get("rentZestimate"))
    record["estimated_sales_range"] = (
        format_estimate_range(
            prop.get("zestimate"),
            prop.get("zestimateLowPercent"),
            prop.get("zestimateHighPercent"),
        )
        if prop.get("zestimateLowPercent") is not None
        and prop.get("zestimateHighPercent") is not None
        else None
    )

    _apply_basic_facts(record, prop)

    reso_facts = prop.get("resoFacts")
    if isinstance(reso_facts, Mapping):
        _apply_reso_facts(record, reso_facts)
        _apply_at_a_glance_facts(record, reso_facts.get("atAGlanceFacts"))

    record["price_history"] = _history_rows(
        prop.get("priceHistory"),
        lambda entry: (
            _text_or_none(entry.get("date")),
            _text_or_none(entry.get("event")),
            format_money(entry.get("price")),
            _text_or_none(entry.get("source")),
        ),
    )
    record["public_tax_history"] = _history_rows(
        prop.get("taxHistory"),
        lambda entry: (
            _text_or_none(entry.get("time")),
            format_money(entry.get("taxPaid")),
            format_money(entry.get("value")),
        ),
    )
    return record


def extract_structured_record(snapshot: PageSnapshot) -> Outcome[ListingRecord]:
    """
    Tier 1: build a record from the embedded payload, if it names an address.
    """

    payload = parse_next_data(snapshot.next_data)
    if payload is None:
        return Outcome.skip("no __NEXT_DATA__ payload")

    prop = find_property(payload)
    if prop is None:
        return Outcome.skip("no property entity in __NEXT_DATA__")

    record = build_listing_record(prop)
    if not record.get("address"):
        return Outcome.skip("property entity has no address")
    return Outcome.found(record)


def _apply_basic_facts(record: ListingRecord, prop: Mapping[str, Any]) -> None:
    if prop.get("bedrooms") is not None:
        record["fact_bedrooms"] = js_string(prop["bedrooms"])
    if prop.get("bathrooms") is not None:
        record["fact_bathrooms"] = js_string(prop["bathrooms"])
    if prop.get("livingArea") is not None:
        record["fact_living_area"] = f"{js_string(prop['livingArea'])} sqft"
    if prop.get("lotAreaValue") is not None and prop.get("lotAreaUnits") is not None:
        record["fact_lot_size"] = (
            f"{js_string(prop['lotAreaValue'])} {js_string(prop['lotAreaUnits'])}"
        )
    elif prop.get("lotSize") is not None:
        record["fact_lot_size"] = f"{js_string(prop['lotSize'])} sqft"
    if prop.get("yearBuilt") is not None:
        record["fact_year_built"] = js_string(prop["yearBuilt"])
    if js_truthy(prop.get("homeType")):
        record["fact_type"] = js_string(prop["homeType"])
    if js_truthy(prop.get("homeStatus")):
        record["fact_status"] = js_string(prop["homeStatus"])
    if prop.get("parkingCapacity") is not None:
        record["fact_parking"] = js_string(prop["parkingCapacity"])
    if js_truthy(prop.get("heatingSystem")):
        record["fact_heating"] = js_string(prop["heatingSystem"])
    if js_truthy(prop.get("coolingSystem")):
        record["fact_cooling"] = js_string(prop["coolingSystem"])


def _apply_reso_facts(record: ListingRecord, reso_facts: Mapping[str, Any]) -> None:
    for source_key, fact_name in RESO_FACT_MAPPINGS:
        value = reso_facts.get(source_key)
        if value is None or (isinstance(value, str) and value in _SKIPPED_FACT_VALUES):
            continue
        _set_once(record, f"fact_{fact_name}", js_string(value))


def _apply_at_a_glance_facts(record: ListingRecord, facts: Any) -> None:
    if not isinstance(facts, list):
        return
    for fact in facts:
        if not isinstance(fact, Mapping):
            continue
        label = fact.get("factLabel")
        value = fact.get("factValue")
        if not js_truthy(label) or not js_truthy(value) or value == _NO_DATA:
            continue
        _set_once(record, f"fact_{slugify_label(js_string(label))}", js_string(value))


def _set_once(record: ListingRecord, key: str, value: str) -> None:
    # first writer wins; an empty value never blocks a later one
    if not record.get(key):
        record[key] = value


def _history_rows(entries: Any, to_row: Any) -> list[HistoryRow] | None:
    if not isinstance(entries, list) or not entries:
        return None
    rows = [to_row(entry) for entry in entries if isinstance(entry, Mapping)]
    return rows or None


def _text_or_none(value: Any) -> str | None:
    return js_string(value) if js_truthy(value) else None


def _as_mapping(raw: Any) -> dict[str, Any] | None:
    if not raw:
        return None
    if isinstance(raw, str):
        try:
            decoded = json.loads(raw)
        except ValueError:
            return None
        return decoded if isinstance(decoded, dict) else None
    if isinstance(raw, dict):
        return raw
    return None


def _property_in_cache(cache: Mapping[str, Any]) -> dict[str, Any] | None:
    for value in cache.values():
        entry = _as_mapping(value)
        if entry is None:
            continue
        prop = entry.get("property")
        if isinstance(prop, dict):
            return prop
    return None
