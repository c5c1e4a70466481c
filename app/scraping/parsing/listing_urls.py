"""
Listing URL discovery for search-results pages.
"""

from __future__ import annotations

import json
import re
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from app.scraping.parsing.next_data import parse_next_data
from app.scraping.parsing.strategies import Strategy, run_strategies
from app.scraping.types import ItemReference, Outcome, PageSnapshot

DEFAULT_SITE_BASE_URL = "https://www.zillow.com"

ITEM_PATH_REGEX = re.compile(r'/homedetails/[^"?]+_zpid/')
SCRIPT_ITEM_PATH_REGEX = re.compile(r"/homedetails/[^\"'\\?]+_zpid/")
ITEM_ID_REGEX = re.compile(r"(\d+)_zpid")
ITEM_ANCHOR_SELECTOR = 'a[href*="/homedetails/"]'


def reference_key(url: str) -> str:
    """
    Stable numeric listing id when the URL carries one, else the URL itself.
    """

    match = ITEM_ID_REGEX.search(url)
    return match.group(1) if match else url


class ReferenceSet:
    """
    Ordered, key-deduplicated collection of item references. First seen wins.
    """

    def __init__(self) -> None:
        self._seen: set[str] = set()
        self._references: list[ItemReference] = []

    def add(self, url: str) -> bool:
        key = reference_key(url)
        if key in self._seen:
            return False
        self._seen.add(key)
        self._references.append(ItemReference(url=url.split("?")[0], key=key))
        return True

    @property
    def references(self) -> list[ItemReference]:
        return list(self._references)

    def __len__(self) -> int:
        return len(self._references)


def next_data_item_paths(snapshot: PageSnapshot) -> Outcome[list[str]]:
    payload = parse_next_data(snapshot.next_data)
    if payload is None:
        return Outcome.skip("no __NEXT_DATA__ payload")
    serialized = json.dumps(payload, ensure_ascii=False)
    paths = _unique_paths(ITEM_PATH_REGEX.findall(serialized))
    if not paths:
        return Outcome.skip("no listing paths in __NEXT_DATA__")
    return Outcome.found(paths)


def script_item_paths(snapshot: PageSnapshot) -> Outcome[list[str]]:
    soup = BeautifulSoup(snapshot.html or "", "html.parser")
    matches: list[str] = []
    for script in soup.find_all("script"):
        text = script.string or script.get_text() or ""
        if "/homedetails/" in text and "_zpid" in text:
            matches.extend(SCRIPT_ITEM_PATH_REGEX.findall(text))
    paths = _unique_paths(matches)
    if not paths:
        return Outcome.skip("no listing paths in inline scripts")
    return Outcome.found(paths)


STRUCTURED_PATH_STRATEGIES: tuple[Strategy[list[str]], ...] = (
    ("next_data", next_data_item_paths),
    ("inline_scripts", script_item_paths),
)


def anchor_urls(snapshot: PageSnapshot, base_url: str) -> list[str]:
    soup = BeautifulSoup(snapshot.html or "", "html.parser")
    page_url = snapshot.url or f"{base_url}/"
    urls: list[str] = []
    for anchor in soup.select(ITEM_ANCHOR_SELECTOR):
        href = anchor.get("href")
        if isinstance(href, str) and href.strip():
            urls.append(urljoin(page_url, href.strip()))
    return urls


def extract_references(
    snapshot: PageSnapshot,
    base_url: str = DEFAULT_SITE_BASE_URL,
) -> list[ItemReference]:
    """
    Discover listing references: structured payload first, then DOM anchors.
    """

    base = base_url.rstrip("/")
    references = ReferenceSet()

    run = run_strategies(STRUCTURED_PATH_STRATEGIES, snapshot)
    for path in run.value or []:
        references.add(f"{base}{path}")

    for url in anchor_urls(snapshot, base):
        references.add(url)
    return references.references


def _unique_paths(paths: list[str]) -> list[str]:
    seen: set[str] = set()
    unique: list[str] = []
    for path in paths:
        key = reference_key(path)
        if key in seen:
            continue
        seen.add(key)
        unique.append(path)
    return unique
