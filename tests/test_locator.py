import asyncio

import pytest

from scraper.errors import ElementNotFoundError
from scraper.locator import ElementLocator
from tests.fakes import FakeElement, FakePage


def _locator(**kwargs) -> ElementLocator:
    kwargs.setdefault("selectors", ["#csv"])
    kwargs.setdefault("xpaths", ["xpath=//a"])
    kwargs.setdefault("retry_delay", 0)
    return ElementLocator("CSV", **kwargs)


def test_structural_selector_wins():
    button = FakeElement("button")
    page = FakePage(queries={"#csv": [button], "xpath=//a": [FakeElement("link")]})

    assert asyncio.run(_locator().locate(page)) is button
    assert page.asked == ["#csv"]
    assert page.scan_keywords == []


def test_hidden_structural_match_falls_through_to_xpath():
    link = FakeElement("link")
    page = FakePage(queries={"#csv": [FakeElement("hidden", visible=False)], "xpath=//a": [link]})

    assert asyncio.run(_locator().locate(page)) is link


def test_first_visible_candidate_of_a_query_is_chosen():
    visible = FakeElement("visible")
    page = FakePage(queries={"#csv": [FakeElement("hidden", visible=False), visible]})

    assert asyncio.run(_locator().locate(page)) is visible


def test_dom_scan_is_last_resort():
    scanned = FakeElement("scanned")
    page = FakePage(scan_result=scanned)

    assert asyncio.run(_locator().locate(page)) is scanned
    assert page.scan_keywords == ["CSV"]
    assert page.scrolls == 0


def test_invisible_dom_scan_result_is_rejected():
    page = FakePage(scan_result=FakeElement("hidden", visible=False))

    with pytest.raises(ElementNotFoundError):
        asyncio.run(_locator(max_retries=1).locate(page))


def test_not_found_after_all_passes_scrolls_between_them():
    page = FakePage()

    with pytest.raises(ElementNotFoundError) as excinfo:
        asyncio.run(_locator(max_retries=3).locate(page))

    assert excinfo.value.attempts == 3
    assert "CSV" in str(excinfo.value)
    assert page.scrolls == 2
    assert len(page.scan_keywords) == 3


def test_lazy_content_found_after_scroll():
    button = FakeElement("button")

    def reveal(page):
        page.queries["#csv"] = [button]

    page = FakePage(on_scroll=reveal)

    assert asyncio.run(_locator(max_retries=3).locate(page)) is button
    assert page.scrolls == 1


def test_invalid_query_is_skipped():
    button = FakeElement("button")
    page = FakePage(queries={"#csv": [button]}, broken_queries={"div[[bad"})
    locator = _locator(selectors=["div[[bad", "#csv"])

    assert asyncio.run(locator.locate(page)) is button


def test_default_queries_derive_from_keyword():
    locator = ElementLocator("CSV")

    assert 'input[value="CSV"]' in locator.selectors
    assert locator.xpaths
    assert all(query.startswith("xpath=") for query in locator.xpaths)


def test_rejects_zero_retries():
    with pytest.raises(ValueError):
        ElementLocator("CSV", max_retries=0)


def test_rejected_dom_scan_handle_is_disposed():
    page = FakePage(scan_result=FakeElement("hidden", visible=False))

    assert asyncio.run(_locator().find_by_dom_scan(page)) is None
    assert [handle.disposed for handle in page.handles] == [True]
