"""
Crawl scheduler: owns the worker pool, the dispatch loop and shutdown.
"""
from __future__ import annotations

import logging
import threading
import time
from collections import defaultdict
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Set

from webcrawler.config import CrawlConfig
from webcrawler.extract import LinkExtractor
from webcrawler.fetch import Fetcher
from webcrawler.frontier import CrawlItem, Frontier
from webcrawler.storage import ContentSaver
from webcrawler.worker import PageOutcome, crawl_page

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class CrawlStats:
    """Statistics collected from finished units of work."""
    pages_failed: int = 0
    pages_cancelled: int = 0
    pages_without_title: int = 0
    links_found: int = 0
    error_counts: Dict[str, int] = field(default_factory=lambda: defaultdict(int))

    def record(self, outcome: PageOutcome) -> None:
        """Fold one unit's outcome into the totals."""
        if outcome.cancelled:
            self.pages_cancelled += 1
            return
        self.links_found += outcome.links_found
        if outcome.error is not None:
            self.pages_failed += 1
            self.error_counts[outcome.error] += 1
            return
        if outcome.saved and not outcome.title:
            self.pages_without_title += 1


@dataclass(slots=True)
class CrawlSummary:
    """Final report of a run; produced once, after the pool has drained."""
    root_url: str
    pages_crawled: int
    urls_discovered: int
    duration_s: float
    started_at: datetime
    finished_at: datetime
    output_dir: str
    stats: CrawlStats = field(default_factory=CrawlStats)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "root_url": self.root_url,
            "pages_crawled": self.pages_crawled,
            "urls_discovered": self.urls_discovered,
            "duration_s": round(self.duration_s, 3),
            "started_at": self.started_at.isoformat(timespec="seconds"),
            "finished_at": self.finished_at.isoformat(timespec="seconds"),
            "output_dir": self.output_dir,
            "pages_failed": self.stats.pages_failed,
            "pages_cancelled": self.stats.pages_cancelled,
            "pages_without_title": self.stats.pages_without_title,
            "links_found": self.stats.links_found,
            "errors": dict(sorted(self.stats.error_counts.items())),
        }


class CrawlScheduler:
    """
    Drives a single crawl run.

    The dispatch loop runs on the calling thread and hands frontier items to a
    fixed-size thread pool. It sleeps on a condition variable that is notified
    whenever a URL is admitted or a unit finishes, so it reacts to new work
    and to completion without fixed-interval polling; `idle_backoff_s` only
    bounds how long a single wait may last.

    Instances are single-use: call `run()` once.
    """

    def __init__(
        self,
        config: CrawlConfig,
        fetcher: Optional[Fetcher] = None,
        extractor: Optional[LinkExtractor] = None,
        sink: Optional[ContentSaver] = None,
    ) -> None:
        self.config = config
        self.fetcher = fetcher or Fetcher(config.timeout_s, config.user_agent)
        self.extractor = extractor or LinkExtractor()
        self.sink = sink or ContentSaver(config.output_dir)
        self.stats = CrawlStats()

        # Guards _in_flight, _futures and stats; RLock so done-callbacks
        # that fire inline during submit() can re-enter.
        self._cond = threading.Condition(threading.RLock())
        self._in_flight = 0
        self._futures: Set[Future] = set()
        self._started = False
        self._stop_requested = False

        self.frontier = Frontier(config.root_url, config.stay_in_domain, on_admit=self._wake)

    def stop(self) -> None:
        """Ask a running crawl to stop dispatching and drain. Safe from any thread."""
        with self._cond:
            self._stop_requested = True
            self._cond.notify_all()

    @property
    def in_flight(self) -> int:
        with self._cond:
            return self._in_flight

    def run(self) -> CrawlSummary:
        """Crawl until the frontier is exhausted or the page budget is spent."""
        if self._started:
            raise RuntimeError("CrawlScheduler.run() can only be called once")
        self._started = True

        config = self.config
        self._log_banner()

        started_at = datetime.now()
        start = time.monotonic()

        if not self.frontier.admit(config.root_url, 0):
            logger.warning("Root URL was not admitted: %s", config.root_url)

        executor = ThreadPoolExecutor(max_workers=config.workers, thread_name_prefix="crawler")
        try:
            self._dispatch_loop(executor)
        finally:
            self._drain(executor)
            self.frontier.close()

        duration_s = time.monotonic() - start
        with self._cond:
            stats = CrawlStats(
                pages_failed=self.stats.pages_failed,
                pages_cancelled=self.stats.pages_cancelled,
                pages_without_title=self.stats.pages_without_title,
                links_found=self.stats.links_found,
                error_counts=defaultdict(int, self.stats.error_counts),
            )

        summary = CrawlSummary(
            root_url=config.root_url,
            pages_crawled=self.frontier.crawled_count,
            urls_discovered=self.frontier.discovered_count,
            duration_s=duration_s,
            started_at=started_at,
            finished_at=datetime.now(),
            output_dir=str(self.sink.output_dir),
            stats=stats,
        )
        self.sink.write_summary(summary)
        self._log_statistics(summary)
        return summary

    def _dispatch_loop(self, executor: ThreadPoolExecutor) -> None:
        max_pages = self.config.max_pages

        with self._cond:
            while True:
                if self._stop_requested:
                    logger.info("Stop requested")
                    return

                crawled = self.frontier.crawled_count
                if crawled >= max_pages:
                    logger.info("Max pages limit (%d) reached", max_pages)
                    return

                # Each in-flight unit may still complete one page
                if crawled + self._in_flight < max_pages:
                    item = self.frontier.take_next()
                    if item is not None:
                        self._dispatch(executor, item)
                        continue

                if self._in_flight == 0 and not self.frontier.has_pending():
                    logger.info("No more URLs to crawl and no active workers")
                    return

                self._cond.wait(timeout=self.config.idle_backoff_s)

    def _dispatch(self, executor: ThreadPoolExecutor, item: CrawlItem) -> None:
        # Caller holds self._cond
        self._in_flight += 1
        future = executor.submit(
            crawl_page,
            item,
            self.config.max_depth,
            self.frontier,
            self.fetcher,
            self.extractor,
            self.sink,
        )
        self._futures.add(future)
        future.add_done_callback(self._on_done)

    def _on_done(self, future: Future) -> None:
        outcome: Optional[PageOutcome] = None
        if not future.cancelled():
            exc = future.exception()
            if exc is None:
                outcome = future.result()
            else:
                logger.error("Unit of work raised: %s", exc)

        with self._cond:
            self._in_flight -= 1
            self._futures.discard(future)
            if outcome is not None:
                self.stats.record(outcome)
            elif future.cancelled():
                self.stats.pages_cancelled += 1
            else:
                self.stats.pages_failed += 1
                self.stats.error_counts["unexpected"] += 1
            self._cond.notify_all()

    def _wake(self) -> None:
        with self._cond:
            self._cond.notify_all()

    def _drain(self, executor: ThreadPoolExecutor) -> None:
        """Let running units finish, then force-cancel whatever is left."""
        logger.info("Shutting down crawler...")

        # Units queued but not yet started are dropped outright
        executor.shutdown(wait=False, cancel_futures=True)

        with self._cond:
            running = set(self._futures)
        if not running:
            return

        _, not_done = wait(running, timeout=self.config.drain_timeout_s)
        if not not_done:
            return

        logger.warning(
            "%d units did not finish within %.1fs, forcing shutdown",
            len(not_done), self.config.drain_timeout_s,
        )
        # Running threads can't be interrupted; closing the frontier stops
        # them from counting pages or admitting links from here on.
        self.frontier.close()

        _, not_done = wait(not_done, timeout=self.config.force_timeout_s)
        if not_done:
            logger.error("%d units did not terminate; abandoning them", len(not_done))

    def _log_banner(self) -> None:
        config = self.config
        logger.info("=" * 50)
        logger.info("Starting Web Crawler")
        logger.info("=" * 50)
        logger.info("Root URL: %s", config.root_url)
        logger.info("Max Depth: %d", config.max_depth)
        logger.info("Max Pages: %d", config.max_pages)
        logger.info("Workers: %d", config.workers)
        logger.info("Stay in Domain: %s", config.stay_in_domain)
        logger.info("Output Path: %s", config.output_dir)
        logger.info("=" * 50)

    def _log_statistics(self, summary: CrawlSummary) -> None:
        logger.info("=" * 50)
        logger.info("Crawling Completed!")
        logger.info("=" * 50)
        logger.info("Total Pages Crawled: %d", summary.pages_crawled)
        logger.info("Total URLs Discovered: %d", summary.urls_discovered)
        logger.info("Duration: %.2f seconds", summary.duration_s)
        logger.info("=" * 50)


def crawl(
    config: CrawlConfig,
    fetcher: Optional[Fetcher] = None,
    extractor: Optional[LinkExtractor] = None,
    sink: Optional[ContentSaver] = None,
) -> CrawlSummary:
    """Run one crawl with `config` and return its summary."""
    return CrawlScheduler(config, fetcher=fetcher, extractor=extractor, sink=sink).run()
