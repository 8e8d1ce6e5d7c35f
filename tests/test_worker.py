from unittest.mock import MagicMock

import pytest

from webcrawler.extract import LinkExtractor
from webcrawler.frontier import CrawlItem, Frontier
from webcrawler.worker import crawl_page

from conftest import StubFetcher, make_page

ROOT = "https://example.com"


@pytest.fixture
def frontier():
    f = Frontier(ROOT, stay_in_domain=True)
    f.admit(ROOT, 0)
    f.take_next()
    return f


def run(item, frontier, fetcher, sink, max_depth=3, extractor=None):
    return crawl_page(item, max_depth, frontier, fetcher, extractor or LinkExtractor(), sink)


def test_saves_page_and_admits_links(frontier, sink):
    fetcher = StubFetcher({ROOT: make_page("Home", ("/a", "/b", "https://other.org/"))})

    outcome = run(CrawlItem(ROOT, 0), frontier, fetcher, sink)

    assert outcome.saved and outcome.error is None
    assert outcome.title == "Home"
    assert outcome.links_found == 3
    assert outcome.links_admitted == 2
    assert frontier.crawled_count == 1
    assert sink.saved == [(ROOT, 0, "Home")]
    assert sorted((i.url, i.depth) for i in iter(frontier.take_next, None)) == [
        (f"{ROOT}/a", 1),
        (f"{ROOT}/b", 1),
    ]


def test_duplicate_links_admit_once(frontier, sink):
    fetcher = StubFetcher({ROOT: make_page(links=("/a", "/a", "/A/", "/a#x"))})

    outcome = run(CrawlItem(ROOT, 0), frontier, fetcher, sink)

    assert outcome.links_admitted == 1
    assert frontier.pending_count == 1


def test_no_link_extraction_at_max_depth(frontier, sink):
    fetcher = StubFetcher({f"{ROOT}/deep": make_page("Deep", ("/more",))})
    extractor = MagicMock(wraps=LinkExtractor())

    outcome = run(CrawlItem(f"{ROOT}/deep", 2), frontier, fetcher, sink, max_depth=2, extractor=extractor)

    assert outcome.saved
    extractor.extract_links.assert_not_called()
    assert not frontier.has_pending()


def test_fetch_failure_has_no_side_effects(frontier, sink):
    outcome = run(CrawlItem(f"{ROOT}/missing", 1), frontier, StubFetcher({}), sink)

    assert outcome.error == "404"
    assert not outcome.saved
    assert frontier.crawled_count == 0
    assert sink.saved == []


def test_empty_content(frontier, sink):
    outcome = run(CrawlItem(ROOT, 0), frontier, StubFetcher({ROOT: ""}), sink)

    assert outcome.error == "empty"
    assert frontier.crawled_count == 0


def test_save_failure_not_counted_but_links_followed(frontier):
    fetcher = StubFetcher({ROOT: make_page("Home", ("/a",))})
    failing_sink = MagicMock()
    failing_sink.save.return_value = False

    outcome = run(CrawlItem(ROOT, 0), frontier, fetcher, failing_sink)

    assert outcome.error == "save_failed"
    assert frontier.crawled_count == 0
    assert outcome.links_admitted == 1
    assert frontier.take_next() == CrawlItem(f"{ROOT}/a", 1)


def test_unexpected_error_is_contained(frontier, sink):
    fetcher = StubFetcher({ROOT: make_page("Home", ("/a",))})
    extractor = MagicMock()
    extractor.extract_title.return_value = "Home"
    extractor.extract_links.side_effect = RuntimeError("boom")

    outcome = run(CrawlItem(ROOT, 0), frontier, fetcher, sink, extractor=extractor)

    assert outcome.error == "unexpected"
    # The page itself was saved before link extraction blew up
    assert frontier.crawled_count == 1


def test_closed_frontier_cancels_unit(frontier, sink):
    fetcher = StubFetcher({ROOT: make_page("Home", ("/a",))})
    frontier.close()

    outcome = run(CrawlItem(ROOT, 0), frontier, fetcher, sink)

    assert outcome.cancelled
    assert not outcome.saved
    assert sink.saved == []
    assert frontier.crawled_count == 0
