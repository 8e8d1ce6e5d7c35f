"""
Crawl frontier: visited-URL membership plus the FIFO queue of pending work.
"""
from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Optional, Set
from urllib.parse import urlsplit

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CrawlItem:
    """One admitted URL waiting for (or being handled by) a worker."""
    url: str
    depth: int


def normalize_url(url: str) -> str:
    """
    Normalize URL for deduplication.

    - Drops the fragment (#...)
    - Drops trailing slashes (a bare "/" is kept)
    - Lower-cases the whole URL

    Applying it twice gives the same result as applying it once.
    """
    url, _, _ = url.strip().partition("#")
    if len(url) > 1:
        url = url.rstrip("/") or "/"
    return url.lower()


def extract_domain(url: str) -> str:
    """Return the lower-cased host of `url`, or "" when it has none."""
    try:
        hostname = urlsplit(url.strip()).hostname
    except ValueError:
        return ""
    return (hostname or "").lower()


class Frontier:
    """
    Thread-safe record of every URL seen during a run.

    `admit()` checks membership, marks the URL visited and enqueues it in a
    single critical section, so concurrent producers can never create two
    items for the same normalized URL.
    """

    def __init__(
        self,
        root_url: str,
        stay_in_domain: bool,
        on_admit: Optional[Callable[[], None]] = None,
    ) -> None:
        self.stay_in_domain = stay_in_domain
        self.root_domain = extract_domain(root_url)
        self._on_admit = on_admit

        self._lock = threading.Lock()
        self._visited: Set[str] = set()
        self._pending: Deque[CrawlItem] = deque()
        self._crawled = 0
        self._closed = False

    def admit(self, url: str, depth: int) -> bool:
        """Admit `url` at `depth` unless it was seen before or is out of scope."""
        if not url:
            return False

        url = normalize_url(url)
        if not url:
            return False

        if self.stay_in_domain and extract_domain(url) != self.root_domain:
            return False

        with self._lock:
            if self._closed or url in self._visited:
                return False
            self._visited.add(url)
            self._pending.append(CrawlItem(url=url, depth=depth))

        if self._on_admit is not None:
            self._on_admit()
        return True

    def take_next(self) -> Optional[CrawlItem]:
        """Pop the oldest pending item, or None when nothing is pending."""
        with self._lock:
            if not self._pending:
                return None
            return self._pending.popleft()

    def has_pending(self) -> bool:
        with self._lock:
            return bool(self._pending)

    def record_completion(self) -> bool:
        """Count one saved page. Refused once the frontier is closed."""
        with self._lock:
            if self._closed:
                return False
            self._crawled += 1
            return True

    def close(self) -> None:
        """Seal the frontier: later admissions and completions are ignored."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            dropped = len(self._pending)
            self._pending.clear()
        logger.debug("Frontier closed, %d pending items dropped", dropped)

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    @property
    def crawled_count(self) -> int:
        with self._lock:
            return self._crawled

    @property
    def discovered_count(self) -> int:
        with self._lock:
            return len(self._visited)

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)
