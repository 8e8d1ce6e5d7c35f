"""
Multi-threaded web crawler that saves pages breadth-first from a root URL,
bounded by link depth and a page budget.
"""
from webcrawler.config import ConfigError, CrawlConfig
from webcrawler.frontier import CrawlItem, Frontier, normalize_url
from webcrawler.scheduler import CrawlScheduler, CrawlStats, CrawlSummary, crawl

__version__ = "1.0.0"
__all__ = [
    "crawl",
    "ConfigError",
    "CrawlConfig",
    "CrawlItem",
    "CrawlScheduler",
    "CrawlStats",
    "CrawlSummary",
    "Frontier",
    "normalize_url",
]
