"""Retrieval components."""

from .dates import normalize
from .digest import format_digest
from .dispatcher import DispatchConfig, RetrievalDispatcher, RetrievalRule
from .ranking import rank, window_start_for
from .scrape import NewsPageScraper, NewsSource, ScrapeConfig
from .search import SearchBackend, SearchConfig, SerperSearchClient

__all__ = [
    "DispatchConfig",
    "NewsPageScraper",
    "NewsSource",
    "RetrievalDispatcher",
    "RetrievalRule",
    "ScrapeConfig",
    "SearchBackend",
    "SearchConfig",
    "SerperSearchClient",
    "format_digest",
    "normalize",
    "rank",
    "window_start_for",
]
