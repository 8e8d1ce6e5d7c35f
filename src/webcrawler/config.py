"""
Run configuration for a crawl.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from urllib.parse import urlparse

from webcrawler.frontier import extract_domain

DEFAULT_MAX_DEPTH = 3
DEFAULT_MAX_PAGES = 100
DEFAULT_WORKERS = 10
DEFAULT_OUTPUT_DIR = "crawled_data"
DEFAULT_TIMEOUT_S = 5.0
DEFAULT_USER_AGENT = "Mozilla/5.0 (WebCrawler/1.0)"

# Dispatch loop and shutdown timing
DEFAULT_IDLE_BACKOFF_S = 0.1
DEFAULT_DRAIN_TIMEOUT_S = 60.0
DEFAULT_FORCE_TIMEOUT_S = 30.0


class ConfigError(ValueError):
    """Raised for an invalid crawl configuration, before any work starts."""


@dataclass(frozen=True, slots=True)
class CrawlConfig:
    """Immutable settings for a single crawl run."""
    root_url: str
    max_depth: int = DEFAULT_MAX_DEPTH
    max_pages: int = DEFAULT_MAX_PAGES
    workers: int = DEFAULT_WORKERS
    stay_in_domain: bool = True
    output_dir: str = DEFAULT_OUTPUT_DIR
    timeout_s: float = DEFAULT_TIMEOUT_S
    user_agent: str = DEFAULT_USER_AGENT
    idle_backoff_s: float = DEFAULT_IDLE_BACKOFF_S
    drain_timeout_s: float = DEFAULT_DRAIN_TIMEOUT_S
    force_timeout_s: float = DEFAULT_FORCE_TIMEOUT_S
    root_domain: str = field(init=False)

    def __post_init__(self) -> None:
        if not self.root_url or not self.root_url.strip():
            raise ConfigError("Root URL must be specified")

        parsed = urlparse(self.root_url.strip())
        if parsed.scheme not in ("http", "https") or not parsed.hostname:
            raise ConfigError(f"Invalid root URL: {self.root_url}")

        if self.max_depth < 0:
            raise ConfigError(f"max_depth must be >= 0, got {self.max_depth}")
        if self.max_pages < 1:
            raise ConfigError(f"max_pages must be >= 1, got {self.max_pages}")
        if self.workers < 1:
            raise ConfigError(f"workers must be >= 1, got {self.workers}")

        for name in ("timeout_s", "idle_backoff_s", "drain_timeout_s", "force_timeout_s"):
            if getattr(self, name) <= 0:
                raise ConfigError(f"{name} must be positive")

        # Frozen dataclass: derived fields go through object.__setattr__
        object.__setattr__(self, "root_url", self.root_url.strip())
        object.__setattr__(self, "root_domain", extract_domain(self.root_url))
