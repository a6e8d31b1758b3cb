from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from mapgpt.errors import FormatError, UpstreamError
from mapgpt.retrieval.ranking import rank
from mapgpt.retrieval.scrape import NewsPageScraper, ScrapeConfig, parse_articles
from mapgpt.retrieval.search import SerperSearchClient, parse_results

NEWS_URL = "https://news.example/tag/mapoly/"

NEWS_PAGE = """
<html><body>
  <article>
    <h2><a href="https://news.example/exams">First semester exams begin</a></h2>
    <time datetime="2025-10-05">October 5, 2025</time>
    <p>Students are advised to check the timetable.</p>
  </article>
  <article>
    <div>No heading here</div>
  </article>
</body></html>
"""


def _search_client(handler) -> SerperSearchClient:
    return SerperSearchClient(api_key_provider=lambda: "search-key", transport=httpx.MockTransport(handler))


def test_search_posts_query_and_reads_organic_results() -> None:
    seen: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["key"] = request.headers["X-API-KEY"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={"organic": [{"title": "Admission portal", "link": "https://mapoly.example/admission", "snippet": "Apply"}]},
        )

    results = asyncio.run(_search_client(handler).search("mapoly admission"))

    assert seen["key"] == "search-key"
    assert seen["body"] == {"q": "mapoly admission", "gl": "ng", "hl": "en"}
    assert [(r.title, r.link, r.snippet, r.published_at) for r in results] == [
        ("Admission portal", "https://mapoly.example/admission", "Apply", None),
    ]


def test_news_search_sets_type_and_reads_dates() -> None:
    bodies: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"news": [{"title": "Strike called off", "link": "https://n.example/1", "date": "3 hours ago"}]})

    results = asyncio.run(_search_client(handler).search("latest strike", news=True))
    assert bodies[0]["type"] == "news"
    assert results[0].published_at == "3 hours ago"


def test_search_failure_status_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, text="bad key")

    with pytest.raises(UpstreamError, match="status 403: bad key"):
        asyncio.run(_search_client(handler).search("anything"))


def test_search_non_object_payload_raises_format_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=["unexpected"])

    with pytest.raises(FormatError):
        asyncio.run(_search_client(handler).search("anything"))


def test_parse_results_skips_malformed_records() -> None:
    assert parse_results(None) == []
    results = parse_results(["junk", {"link": "https://e.example"}])
    assert len(results) == 1
    assert results[0].title == "Untitled"


def test_parse_articles_extracts_fields_and_placeholders() -> None:
    articles = parse_articles(NEWS_PAGE, NEWS_URL)
    assert len(articles) == 2
    first, second = articles
    assert first.title == "First semester exams begin"
    assert first.link == "https://news.example/exams"
    assert first.snippet == "Students are advised to check the timetable."
    assert first.published_at == "2025-10-05"
    assert second.title == "No title"
    assert second.snippet == "No summary"
    assert second.link == NEWS_URL
    assert second.published_at is None


def test_scraper_sends_user_agent_and_parses_page() -> None:
    agents: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        agents.append(request.headers["User-Agent"])
        return httpx.Response(200, text=NEWS_PAGE, headers={"content-type": "text/html"})

    scraper = NewsPageScraper(ScrapeConfig(url=NEWS_URL, user_agent="MapGPT-test"), transport=httpx.MockTransport(handler))
    articles = asyncio.run(scraper.fetch())
    assert agents == ["MapGPT-test"]
    assert [a.title for a in articles] == ["First semester exams begin", "No title"]


def test_scraper_failure_raises_upstream_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="unavailable")

    scraper = NewsPageScraper(ScrapeConfig(url=NEWS_URL), transport=httpx.MockTransport(handler))
    with pytest.raises(UpstreamError) as excinfo:
        asyncio.run(scraper.fetch())
    assert excinfo.value.upstream_status == 503


def test_parse_articles_keeps_spacing_around_inline_markup() -> None:
    html = (
        "<article><h2>Exams <em>begin</em>\n   Monday</h2>"
        "<p>See the <a href='/t'>timetable</a> now.</p></article>"
    )
    [article] = parse_articles(html, NEWS_URL)
    assert article.title == "Exams begin Monday"
    assert article.snippet == "See the timetable now."


def test_non_string_dates_fall_back_to_epoch() -> None:
    [result] = parse_results([{"title": "t", "link": "l", "date": 1696500000, "snippet": 42}])
    assert result.published_at == "1696500000"
    assert result.snippet == "42"
    [ranked] = rank([result])
    assert ranked.sort_timestamp == 0.0
