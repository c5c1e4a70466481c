"""
BeautifulSoup-based heuristic parsing layer for rendered listing pages.
"""

from __future__ import annotations

import re

from bs4 import BeautifulSoup, Tag

from app.scraping.parsing.formatting import clean_text, slugify_label
from app.scraping.types import HistoryRow, ListingRecord, Outcome, PageSnapshot

ADDRESS_SELECTORS = ("h1", '[data-testid="bdp-property-address"]')
PRICE_SELECTOR = '[data-testid="price"], span[class*="StyledPrice" i]'
FACT_SELECTORS = (
    '[class*="fact" i] li',
    '[data-testid*="fact"] li',
    ".data-view-container li",
)
FACT_SECTION_KEYWORDS = (
    "bedrooms",
    "bathrooms",
    "parking",
    "type",
    "style",
    "condition",
    "interior",
    "exterior",
    "heating",
    "cooling",
    "appliances",
    "flooring",
    "property",
    "lot",
    "construction",
    "utilities",
    "community",
    "hoa",
    "financial",
    "other",
)
MAX_FACT_LABEL_LENGTH = 60

ADDRESS_TEXT_REGEX = re.compile(
    r"\b\d{1,6}\s+[A-Za-z0-9 .'#-]{2,60},\s*[A-Za-z .'-]{2,40},\s*[A-Z]{2}\s+\d{5}(?:-\d{4})?\b"
)
PRICE_TEXT_REGEX = re.compile(r"\$[\d,]+(?:,\d{3})+")
ZESTIMATE_REGEX = re.compile(r"\$([\d,]+)\s*Zestimate", flags=re.IGNORECASE)
SALES_RANGE_REGEX = re.compile(
    r"Estimated\s+sale(?:s)?\s+range[:\s]*(\$[\d,]+\s*[-–]\s*\$[\d,]+)",
    flags=re.IGNORECASE,
)
RENT_ZESTIMATE_REGEX = re.compile(r"Rent\s+Zestimate[®:\s]*\$([\d,]+)", flags=re.IGNORECASE)
PRICE_HISTORY_HEADER_REGEX = re.compile(r"price\s*history", flags=re.IGNORECASE)
TAX_HISTORY_HEADER_REGEX = re.compile(r"tax\s*history", flags=re.IGNORECASE)


class ListingHTMLParser:
    """
    Deterministic selector and text heuristics over a rendered detail page.
    """

    @classmethod
    def parse(cls, snapshot: PageSnapshot) -> ListingRecord:
        soup = BeautifulSoup(snapshot.html or "", "html.parser")
        body_text = snapshot.body_text or soup.get_text("\n")

        record: ListingRecord = {
            "address": cls.extract_address(soup, body_text),
            "price": cls.extract_price(soup, body_text),
            "zestimate": cls._match_money(ZESTIMATE_REGEX, body_text),
            "estimated_sales_range": cls._match_text(SALES_RANGE_REGEX, body_text),
            "rent_zestimate": cls._match_money(RENT_ZESTIMATE_REGEX, body_text),
        }
        record.update(cls.extract_facts(soup))
        record["price_history"] = cls.extract_history(soup, PRICE_HISTORY_HEADER_REGEX)
        record["public_tax_history"] = cls.extract_history(soup, TAX_HISTORY_HEADER_REGEX)
        return record

    @staticmethod
    def extract_address(soup: BeautifulSoup, body_text: str = "") -> str | None:
        for selector in ADDRESS_SELECTORS:
            node = soup.select_one(selector)
            if node is None:
                continue
            text = clean_text(node.get_text())
            if text:
                return text
        match = ADDRESS_TEXT_REGEX.search(body_text)
        return clean_text(match.group(0)) if match else None

    @staticmethod
    def extract_price(soup: BeautifulSoup, body_text: str) -> str | None:
        node = soup.select_one(PRICE_SELECTOR)
        if node is not None:
            return clean_text(node.get_text()) or None
        match = PRICE_TEXT_REGEX.search(body_text)
        return match.group(0) if match else None

    @classmethod
    def extract_facts(cls, soup: BeautifulSoup) -> dict[str, str]:
        facts: dict[str, str] = {}
        seen: set[str] = set()

        for selector in FACT_SELECTORS:
            for item in soup.select(selector):
                cls._apply_fact(facts, seen, item)

        for header in soup.find_all(["h4", "h5", "h6"]):
            title = clean_text(header.get_text()).lower()
            if not any(keyword in title for keyword in FACT_SECTION_KEYWORDS):
                continue
            sibling = header.find_next_sibling()
            if sibling is None:
                continue
            for item in sibling.select("li"):
                cls._apply_fact(facts, seen, item)
        return facts

    @classmethod
    def extract_history(
        cls,
        soup: BeautifulSoup,
        header_regex: re.Pattern[str],
    ) -> list[HistoryRow] | None:
        rows: list[HistoryRow] = []
        for table in soup.find_all("table"):
            section = table.find_parent(["section", "div"])
            header = section.select_one("h2, h3, h4, h5") if section is not None else None
            if header is None or not header_regex.search(header.get_text()):
                continue
            for row in table.select("tbody tr"):
                cells = row.select("td")
                if len(cells) >= 3:
                    rows.append(tuple(clean_text(cell.get_text()) for cell in cells[:3]))
        return rows or None

    @staticmethod
    def _apply_fact(facts: dict[str, str], seen: set[str], item: Tag) -> None:
        text = item.get_text().strip()
        if ":" not in text or text in seen:
            return
        seen.add(text)
        raw_key, _, raw_value = text.partition(":")
        label = raw_key.strip()
        value = clean_text(raw_value)
        if not label or not value or len(label) >= MAX_FACT_LABEL_LENGTH:
            return
        key = slugify_label(label)
        if key:
            facts[f"fact_{key}"] = value

    @staticmethod
    def _match_money(pattern: re.Pattern[str], text: str) -> str | None:
        match = pattern.search(text)
        return f"${match.group(1)}" if match else None

    @staticmethod
    def _match_text(pattern: re.Pattern[str], text: str) -> str | None:
        match = pattern.search(text)
        return match.group(1).strip() if match else None


def extract_dom_record(snapshot: PageSnapshot) -> Outcome[ListingRecord]:
    """
    Tier 2: heuristic DOM/text extraction; a miss unless an address is found.
    """

    if not snapshot.html and not snapshot.body_text:
        return Outcome.skip("no rendered DOM captured")
    record = ListingHTMLParser.parse(snapshot)
    if not record.get("address"):
        return Outcome.skip("no address found in rendered page")
    return Outcome.found(record)
