"""Shared stubs: an in-memory site instead of the network, a recording sink."""
from __future__ import annotations

import threading
from collections import Counter
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pytest

from webcrawler.fetch import FetchError
from webcrawler.storage import ContentSaver


def make_page(title: str = "", links: Tuple[str, ...] = ()) -> str:
    anchors = "\n".join(f'<a href="{href}">{href}</a>' for href in links)
    head = f"<title>{title}</title>" if title else ""
    return f"<html><head>{head}</head><body>{anchors}</body></html>"


class StubFetcher:
    """Serves pages from a dict keyed by normalized URL; unknown URLs 404."""

    def __init__(self, pages: Dict[str, str], gate: Optional[threading.Event] = None) -> None:
        self.pages = pages
        self.gate = gate
        self.started = threading.Event()
        self.calls: Counter = Counter()
        self._lock = threading.Lock()

    def fetch(self, url: str) -> str:
        with self._lock:
            self.calls[url] += 1
        self.started.set()
        if self.gate is not None:
            self.gate.wait(timeout=5)
        if url not in self.pages:
            raise FetchError(url, "http_error", status_code=404)
        return self.pages[url]


class RecordingSink(ContentSaver):
    """ContentSaver that also remembers what it saved."""

    def __init__(self, output_dir: Path) -> None:
        super().__init__(output_dir)
        self.saved: List[Tuple[str, int, str]] = []
        self.summaries: list = []
        self._lock = threading.Lock()

    def save(self, url: str, content: str, depth: int, title: str) -> bool:
        ok = super().save(url, content, depth, title)
        with self._lock:
            self.saved.append((url, depth, title))
        return ok

    def write_summary(self, summary):
        self.summaries.append(summary)
        return super().write_summary(summary)


@pytest.fixture
def sink(tmp_path: Path) -> RecordingSink:
    return RecordingSink(tmp_path / "out")
