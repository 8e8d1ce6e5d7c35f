"""
The unit of work run on a pool thread: fetch one page, save it, admit its links.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from webcrawler.extract import LinkExtractor
from webcrawler.fetch import FetchError, Fetcher
from webcrawler.frontier import CrawlItem, Frontier
from webcrawler.storage import ContentSaver

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class PageOutcome:
    """What a single unit of work achieved."""
    url: str
    depth: int
    saved: bool = False
    title: str = ""
    links_found: int = 0
    links_admitted: int = 0
    error: Optional[str] = None
    cancelled: bool = False


def crawl_page(
    item: CrawlItem,
    max_depth: int,
    frontier: Frontier,
    fetcher: Fetcher,
    extractor: LinkExtractor,
    sink: ContentSaver,
) -> PageOutcome:
    """
    Fetch, save and expand one frontier item.

    Never raises: fetch failures and unexpected errors are logged and
    reported through the returned outcome.
    """
    url, depth = item.url, item.depth
    outcome = PageOutcome(url=url, depth=depth)

    try:
        logger.info("Crawling (depth %d): %s", depth, url)

        try:
            content = fetcher.fetch(url)
        except FetchError as e:
            logger.warning("Failed to fetch %s (%s)", url, e.category)
            outcome.error = e.category
            return outcome

        if not content:
            logger.warning("No content retrieved from: %s", url)
            outcome.error = "empty"
            return outcome

        if frontier.closed:
            outcome.cancelled = True
            return outcome

        outcome.title = extractor.extract_title(content)

        if not sink.save(url, content, depth, outcome.title):
            # Not counted as crawled, but its links are still followed
            outcome.error = "save_failed"
        elif not frontier.record_completion():
            # Cancelled while saving; the page no longer counts
            outcome.cancelled = True
            return outcome
        else:
            outcome.saved = True
            logger.info(
                "Progress: %d pages crawled, %d URLs discovered",
                frontier.crawled_count, frontier.discovered_count,
            )

        if depth >= max_depth:
            logger.debug("Max depth reached, not extracting links from: %s", url)
            return outcome

        links = extractor.extract_links(content, url)
        outcome.links_found = len(links)
        logger.debug("Found %d links on: %s", len(links), url)

        for link in links:
            if frontier.admit(link, depth + 1):
                outcome.links_admitted += 1

        if outcome.links_admitted:
            logger.debug("Added %d new URLs to queue from: %s", outcome.links_admitted, url)

    except Exception as e:
        logger.exception("Error crawling %s: %s", url, e)
        outcome.error = "unexpected"

    return outcome
