"""Client for the hosted web-search collaborator (Serper-compatible API)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Protocol, Sequence

import httpx

from mapgpt.errors import FormatError, UpstreamError
from mapgpt.metrics.observability import get_logger
from mapgpt.models import SearchResult


@dataclass(frozen=True)
class SearchConfig:
    """Configuration for the search collaborator."""

    url: str = "https://google.serper.dev/search"
    gl: str = "ng"
    hl: str = "en"
    timeout_seconds: float = 15.0


class SearchBackend(Protocol):
    """Protocol describing search behaviour."""

    async def search(self, query: str, *, news: bool = False) -> Sequence[SearchResult]:
        """Return result records for the query."""


def _optional_text(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def parse_results(records: Any) -> list[SearchResult]:
    if not isinstance(records, list):
        return []
    results: list[SearchResult] = []
    for record in records:
        if not isinstance(record, dict):
            continue
        results.append(
            SearchResult(
                title=str(record.get("title") or "Untitled"),
                link=str(record.get("link") or ""),
                snippet=_optional_text(record.get("snippet")),
                published_at=_optional_text(record.get("date")),
            ),
        )
    return results


class SerperSearchClient:
    """Search backend issuing one POST per query."""

    def __init__(
        self,
        config: SearchConfig | None = None,
        *,
        api_key_provider: Callable[[], str],
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config or SearchConfig()
        self._api_key_provider = api_key_provider
        self._transport = transport
        self._logger = get_logger("search")

    async def search(self, query: str, *, news: bool = False) -> list[SearchResult]:
        api_key = self._api_key_provider()
        payload: dict[str, str] = {"q": query, "gl": self._config.gl, "hl": self._config.hl}
        if news:
            payload["type"] = "news"
        headers = {"X-API-KEY": api_key, "Content-Type": "application/json"}
        try:
            async with httpx.AsyncClient(timeout=self._config.timeout_seconds, transport=self._transport) as client:
                response = await client.post(self._config.url, json=payload, headers=headers)
        except httpx.HTTPError as exc:
            self._logger.error("search.transport_error", query=query, detail=str(exc))
            raise UpstreamError(f"Search request failed: {exc}") from exc

        if not response.is_success:
            self._logger.error("search.failed", query=query, status=response.status_code)
            raise UpstreamError(
                f"Search request failed with status {response.status_code}: {response.text}",
                upstream_status=response.status_code,
                body=response.text,
            )
        try:
            data = response.json()
        except ValueError as exc:
            raise FormatError(f"Search response was not JSON: {response.text[:200]}") from exc
        if not isinstance(data, dict):
            raise FormatError("Search response was not a JSON object")

        results = parse_results(data.get("news" if news else "organic"))
        self._logger.info("search.complete", query=query, news=news, result_count=len(results))
        return results
