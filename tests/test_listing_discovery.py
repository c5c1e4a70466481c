"""
tests/test_listing_discovery.py

Listing reference discovery and search-results pagination.
"""

from __future__ import annotations

import asyncio
import json

import pytest

from app.scraping.logging_utils import JobLogger
from app.scraping.page_controller import PageController, build_next_page_url
from app.scraping.parsing import ReferenceSet, extract_references, reference_key
from app.scraping.types import PageSnapshot
from tests.fakes import SITE, FakePage, FakeSite, PageContent, fast_settings, search_page

SEARCH_PAYLOAD = {
    "props": {
        "pageProps": {
            "searchPageState": {
                "cat1": {
                    "searchResults": {
                        "listResults": [
                            {"detailUrl": f"{SITE}/homedetails/1-A-St-Springfield-IL/111_zpid/"},
                            {"detailUrl": "/homedetails/2-B-St-Springfield-IL/222_zpid/"},
                        ]
                    }
                }
            }
        }
    }
}

SEARCH_HTML = f"""
<html><body>
  <a href="/homedetails/2-B-St-Springfield-IL/222_zpid/?src=card">dup</a>
  <a href="{SITE}/homedetails/3-C-St-Springfield-IL/333_zpid/?rtoken=abc">three</a>
  <a href="/homes/for_rent/">not a listing</a>
</body></html>
"""


# ---------------------------------------------------------------------------
# Reference discovery
# ---------------------------------------------------------------------------


class TestExtractReferences:
    def test_structured_paths_come_before_anchors(self) -> None:
        snapshot = PageSnapshot(
            url=f"{SITE}/homes/for_sale/",
            next_data=json.dumps(SEARCH_PAYLOAD),
            html=SEARCH_HTML,
        )

        references = extract_references(snapshot, SITE)

        assert [reference.key for reference in references] == ["111", "222", "333"]
        assert references[0].url == f"{SITE}/homedetails/1-A-St-Springfield-IL/111_zpid/"
        assert references[2].url == f"{SITE}/homedetails/3-C-St-Springfield-IL/333_zpid/"

    def test_discovery_is_idempotent(self) -> None:
        snapshot = PageSnapshot(
            url=f"{SITE}/homes/for_sale/",
            next_data=json.dumps(SEARCH_PAYLOAD),
            html=SEARCH_HTML,
        )
        assert extract_references(snapshot, SITE) == extract_references(snapshot, SITE)

    def test_inline_script_paths_used_without_payload(self) -> None:
        html = (
            "<html><head><script>window.data = "
            '{"url":"/homedetails/4-D-St-Springfield-IL/444_zpid/"};</script></head></html>'
        )

        references = extract_references(PageSnapshot(url=f"{SITE}/homes/", html=html), SITE)

        assert [reference.url for reference in references] == [
            f"{SITE}/homedetails/4-D-St-Springfield-IL/444_zpid/"
        ]

    def test_relative_anchors_resolve_against_page_url(self) -> None:
        content = search_page([7, 8])
        references = extract_references(PageSnapshot(url=f"{SITE}/homes/2_p/", html=content.html), SITE)
        assert [reference.key for reference in references] == ["7", "8"]
        assert all(reference.url.startswith(f"{SITE}/homedetails/") for reference in references)

    def test_empty_page_has_no_references(self) -> None:
        assert extract_references(PageSnapshot(url=SITE), SITE) == []


class TestReferenceSet:
    def test_first_seen_wins_and_query_is_dropped(self) -> None:
        references = ReferenceSet()

        assert references.add(f"{SITE}/homedetails/x/9_zpid/?a=1")
        assert not references.add(f"{SITE}/homedetails/y/9_zpid/")

        assert len(references) == 1
        assert references.references[0].url == f"{SITE}/homedetails/x/9_zpid/"

    def test_key_falls_back_to_url(self) -> None:
        assert reference_key("https://example.com/listing/abc") == "https://example.com/listing/abc"


# ---------------------------------------------------------------------------
# Next-page URL transform
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("current", "page_number", "expected"),
    [
        (f"{SITE}/homes/for_sale/", 2, f"{SITE}/homes/for_sale/2_p/"),
        (f"{SITE}/homes/for_sale/3_p/", 4, f"{SITE}/homes/for_sale/4_p/"),
        (f"{SITE}/homes/for_sale", 2, f"{SITE}/homes/for_sale/2_p/"),
        (
            f"{SITE}/homes/for_sale/?searchQueryState=%7B%7D",
            2,
            f"{SITE}/homes/for_sale/2_p/?searchQueryState=%7B%7D",
        ),
    ],
)
def test_build_next_page_url(current: str, page_number: int, expected: str) -> None:
    assert build_next_page_url(current, page_number) == expected


# ---------------------------------------------------------------------------
# Page advance
# ---------------------------------------------------------------------------


TARGET = f"{SITE}/homes/for_sale/2_p/"


def _advance(site: FakeSite) -> tuple[bool, FakePage, JobLogger]:
    job_logger = JobLogger(job_id="advance")
    controller = PageController(settings=fast_settings(), job_logger=job_logger)
    page = FakePage(site)
    result = asyncio.run(controller.advance_to_page(page, TARGET))
    return result, page, job_logger


class TestAdvanceToPage:
    def test_listings_on_first_load(self) -> None:
        result, page, _ = _advance(FakeSite(pages={TARGET: search_page([1, 2])}))
        assert result is True
        assert page.reload_calls == 0

    def test_empty_first_load_succeeds_after_one_reload(self) -> None:
        site = FakeSite(
            pages={TARGET: PageContent(title="Loading")},
            after_reload={TARGET: search_page([1, 2, 3])},
        )

        result, page, job_logger = _advance(site)

        assert result is True
        assert page.reload_calls == 1
        assert any("After reload, found 3 listings." in entry.message for entry in job_logger.entries)

    def test_second_empty_result_means_exhausted(self) -> None:
        result, page, _ = _advance(FakeSite(pages={TARGET: PageContent(title="No results")}))
        assert result is False
        assert page.reload_calls == 1

    def test_navigation_error_is_contained(self) -> None:
        result, page, job_logger = _advance(FakeSite(failing_urls={TARGET}))
        assert result is False
        assert page.reload_calls == 0
        assert any(entry.level == "warn" for entry in job_logger.entries)
