"""Scraper for the fixed institution news page."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence

import httpx
from bs4 import BeautifulSoup

from mapgpt.errors import UpstreamError
from mapgpt.metrics.observability import get_logger
from mapgpt.models import SearchResult


@dataclass(frozen=True)
class ScrapeConfig:
    """Configuration for the news page scraper."""

    url: str = "https://www.myschoolgist.com/ng/tag/www-mapoly-edu-ng/"
    user_agent: str = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
    timeout_seconds: float = 15.0


class NewsSource(Protocol):
    """Protocol for news listing sources."""

    async def fetch(self) -> Sequence[SearchResult]:
        """Return the articles currently listed by the source."""


def _text(element) -> str:
    return " ".join(element.get_text().split())


def parse_articles(html: str, base_url: str) -> list[SearchResult]:
    """Extract one record per ``<article>`` container."""

    soup = BeautifulSoup(html, "html.parser")
    articles: list[SearchResult] = []
    for element in soup.select("article"):
        heading = element.find("h2")
        title = _text(heading) if heading else ""
        paragraph = element.find("p")
        summary = _text(paragraph) if paragraph else ""
        anchor = element.select_one("a[href]")
        link = str(anchor["href"]) if anchor else base_url
        stamp = element.find("time")
        published = None
        if stamp:
            published = str(stamp.get("datetime") or _text(stamp)) or None
        articles.append(
            SearchResult(
                title=title or "No title",
                link=link or base_url,
                snippet=summary or "No summary",
                published_at=published,
            ),
        )
    return articles


class NewsPageScraper:
    """Fetches and parses the news listing page."""

    def __init__(self, config: ScrapeConfig | None = None, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._config = config or ScrapeConfig()
        self._transport = transport
        self._logger = get_logger("scrape")

    async def fetch(self) -> list[SearchResult]:
        headers = {"User-Agent": self._config.user_agent}
        try:
            async with httpx.AsyncClient(
                timeout=self._config.timeout_seconds,
                transport=self._transport,
                follow_redirects=True,
            ) as client:
                response = await client.get(self._config.url, headers=headers)
        except httpx.HTTPError as exc:
            self._logger.error("scrape.transport_error", url=self._config.url, detail=str(exc))
            raise UpstreamError(f"Failed to fetch news page: {exc}") from exc
        if not response.is_success:
            self._logger.error("scrape.failed", url=self._config.url, status=response.status_code)
            raise UpstreamError(
                f"News page request failed with status {response.status_code}",
                upstream_status=response.status_code,
                body=response.text,
            )
        articles = parse_articles(response.text, self._config.url)
        self._logger.info("scrape.complete", url=self._config.url, article_count=len(articles))
        return articles
