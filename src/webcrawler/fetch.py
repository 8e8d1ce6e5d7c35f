"""
HTTP fetching of HTML pages.
"""
from __future__ import annotations

import logging
import threading
from typing import Optional

import requests

from webcrawler.config import DEFAULT_TIMEOUT_S, DEFAULT_USER_AGENT

logger = logging.getLogger(__name__)


class FetchError(Exception):
    """A URL could not be turned into HTML content."""

    def __init__(self, url: str, reason: str, status_code: Optional[int] = None) -> None:
        super().__init__(f"{reason}: {url}")
        self.url = url
        self.reason = reason
        self.status_code = status_code

    @property
    def category(self) -> str:
        """Error bucket used in crawl statistics."""
        if self.status_code is not None:
            return str(self.status_code)
        return self.reason


class Fetcher:
    """
    Fetches pages with a bounded timeout.

    Each worker thread gets its own `requests.Session`, so connection pools
    are never shared between threads.
    """

    def __init__(
        self,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self.timeout_s = timeout_s
        self.user_agent = user_agent
        self._local = threading.local()

    def _session(self) -> requests.Session:
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            session.headers["User-Agent"] = self.user_agent
            self._local.session = session
        return session

    def fetch(self, url: str) -> str:
        """
        Return the HTML body of `url`.

        Raises:
            FetchError: on connection errors and timeouts, non-200 responses
                and non-HTML content.
        """
        try:
            resp = self._session().get(url, timeout=self.timeout_s, allow_redirects=True)
        except requests.RequestException as e:
            raise FetchError(url, "connection_error") from e

        if resp.status_code != 200:
            raise FetchError(url, "http_error", status_code=resp.status_code)

        content_type = (resp.headers.get("content-type") or "").lower()
        if content_type and "text/html" not in content_type:
            logger.debug("Skipping non-HTML content: %s (%s)", url, content_type)
            raise FetchError(url, "non_html")

        return resp.text
