"""
Writing crawled pages and the run summary to disk.
"""
from __future__ import annotations

import hashlib
import html
import logging
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Union

if TYPE_CHECKING:
    from webcrawler.scheduler import CrawlSummary

logger = logging.getLogger(__name__)

SUMMARY_FILENAME = "crawl_summary.txt"
TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def filename_for(url: str) -> str:
    """Stable, filesystem-safe filename for a URL: md5 hex digest + .html"""
    return hashlib.md5(url.encode("utf-8"), usedforsecurity=False).hexdigest() + ".html"


class ContentSaver:
    """Content sink: one HTML file per crawled page in `output_dir`."""

    def __init__(self, output_dir: Union[str, Path]) -> None:
        self.output_dir = Path(output_dir)
        try:
            if not self.output_dir.exists():
                self.output_dir.mkdir(parents=True, exist_ok=True)
                logger.info("Created output directory: %s", self.output_dir.resolve())
        except OSError as e:
            logger.error("Failed to create output directory %s: %s", self.output_dir, e)

    def save(self, url: str, content: str, depth: int, title: str) -> bool:
        """Write `content` with a metadata header. Returns False on I/O failure."""
        filename = filename_for(url)
        path = self.output_dir / filename
        header = (
            f"<!-- Crawled URL: {url} -->\n"
            f"<!-- Crawl Time: {datetime.now().strftime(TIME_FORMAT)} -->\n"
            f"<!-- Depth Level: {depth} -->\n"
            f"<!-- Page Title: {html.escape(title or '')} -->\n"
            "<!-- ================================================ -->\n\n"
        )
        try:
            path.write_text(header + content, encoding="utf-8")
        except OSError as e:
            logger.error("Failed to save content from %s: %s", url, e)
            return False

        logger.info("Saved: %s (depth: %d) -> %s", url, depth, filename)
        return True

    def write_summary(self, summary: "CrawlSummary") -> Optional[Path]:
        """Write the human-readable run summary. Returns its path, or None on failure."""
        path = self.output_dir / SUMMARY_FILENAME
        lines = [
            "Web Crawler Summary",
            "===================",
            "",
            f"Crawl Time: {summary.finished_at.strftime(TIME_FORMAT)}",
            f"Root URL: {summary.root_url}",
            f"Total Pages Crawled: {summary.pages_crawled}",
            f"Total URLs Discovered: {summary.urls_discovered}",
            f"Total Links Found: {summary.stats.links_found}",
            f"Duration: {summary.duration_s:.2f} seconds",
            f"Output Directory: {self.output_dir.resolve()}",
        ]
        if summary.stats.error_counts:
            lines.append("")
            lines.append("Errors by type:")
            for error_type, count in sorted(summary.stats.error_counts.items()):
                lines.append(f"  {error_type}: {count}")

        try:
            path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        except OSError as e:
            logger.error("Failed to create summary file: %s", e)
            return None

        logger.info("Created crawl summary: %s", path.resolve())
        return path
