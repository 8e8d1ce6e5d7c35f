"""
HTML link and title extraction.
"""
from __future__ import annotations

import logging
from typing import Set
from urllib.parse import urldefrag, urljoin, urlparse

from bs4 import BeautifulSoup, SoupStrainer

logger = logging.getLogger(__name__)

# Non-page file extensions (frozen set for O(1) lookup)
SKIP_EXTENSIONS: frozenset[str] = frozenset((
    ".jpg", ".jpeg", ".png", ".gif", ".webp", ".svg", ".ico",
    ".pdf", ".zip", ".rar", ".7z", ".exe", ".dmg",
    ".mp4", ".mp3", ".wav", ".webm",
    ".css", ".js", ".map",
    ".woff", ".woff2", ".ttf", ".eot",
))

# SoupStrainer to parse only <a> tags (faster link extraction)
LINK_STRAINER = SoupStrainer("a", href=True)


def is_crawlable(url: str) -> bool:
    """True for absolute http/https URLs that don't point at a media/asset file."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return False

    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return False

    path_lower = (parsed.path or "").lower()
    return not any(path_lower.endswith(ext) for ext in SKIP_EXTENSIONS)


def extract_links(html: str, base_url: str) -> Set[str]:
    """Return the set of absolute, crawlable URLs linked from `html`."""
    links: Set[str] = set()
    try:
        soup = BeautifulSoup(html, "lxml", parse_only=LINK_STRAINER)
    except Exception as e:
        logger.warning("Failed to parse HTML from %s: %s", base_url, e)
        return links

    for a in soup.find_all("a", href=True):
        href = (a.get("href") or "").strip()
        if not href:
            continue
        try:
            absolute, _ = urldefrag(urljoin(base_url, href))
        except ValueError as e:
            logger.debug("Skipping bad link %r on %s: %s", href, base_url, e)
            continue
        if is_crawlable(absolute):
            links.add(absolute)

    return links


def extract_title(html: str) -> str:
    """Return the stripped <title> text, or "" when there is none."""
    try:
        soup = BeautifulSoup(html, "lxml")
    except Exception as e:
        logger.debug("Failed to extract title: %s", e)
        return ""

    if soup.title and soup.title.string:
        return soup.title.string.strip()
    return ""


class LinkExtractor:
    """Extractor handed to each unit of work; stateless and shareable across threads."""

    def extract_links(self, html: str, base_url: str) -> Set[str]:
        return extract_links(html, base_url)

    def extract_title(self, html: str) -> str:
        return extract_title(html)
