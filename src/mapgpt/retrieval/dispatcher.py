"""Ordered routing of prompts to a retrieval strategy."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Sequence

from mapgpt.knowledge import KnowledgeBase, match
from mapgpt.metrics.observability import PipelineMetrics, get_logger
from mapgpt.models import Intent, Retrieval
from mapgpt.retrieval.digest import NO_NEWS, NO_RESULTS, format_digest
from mapgpt.retrieval.ranking import rank, window_start_for
from mapgpt.retrieval.scrape import NewsSource
from mapgpt.retrieval.search import SearchBackend

Predicate = Callable[[str], bool]
Handler = Callable[[str], Awaitable[str]]


@dataclass(frozen=True)
class DispatchConfig:
    """Limits and switches for the retrieval stage."""

    search_limit: int = 5
    news_limit: int = 10
    recency_window_days: int = 30
    web_search_fallback: bool = True


@dataclass(frozen=True)
class RetrievalRule:
    """One (predicate, handler) pair; rules are evaluated in list order."""

    intent: Intent
    matches: Predicate
    handler: Handler


def contains_any(prompt_lower: str, terms: Sequence[str]) -> bool:
    return any(term in prompt_lower for term in terms)


class RetrievalDispatcher:
    """Chooses between news scrape, recency search, topic context and web search.

    Precedence is the rule order: institution news, recent events, topic
    keywords, general web search, then plain pass-through. Topic context and
    network retrieval never both apply to one prompt.
    """

    def __init__(
        self,
        *,
        knowledge: KnowledgeBase,
        search: SearchBackend,
        news: NewsSource,
        config: DispatchConfig | None = None,
    ) -> None:
        self._knowledge = knowledge
        self._search = search
        self._news = news
        self._config = config or DispatchConfig()
        self._logger = get_logger("retrieval")
        self._rules = self._build_rules()

    @property
    def rules(self) -> tuple[RetrievalRule, ...]:
        return self._rules

    def _build_rules(self) -> tuple[RetrievalRule, ...]:
        kb = self._knowledge
        rules = [
            RetrievalRule(
                Intent.INSTITUTION_NEWS,
                lambda p: contains_any(p, kb.institution_tokens) and contains_any(p, kb.news_terms),
                self._institution_news,
            ),
            RetrievalRule(Intent.RECENT_EVENTS, lambda p: contains_any(p, kb.recency_terms), self._recent_events),
            RetrievalRule(Intent.TOPIC, lambda p: contains_any(p, kb.topic_keywords), self._topic_context),
        ]
        if self._config.web_search_fallback:
            rules.append(RetrievalRule(Intent.WEB_SEARCH, lambda p: True, self._web_search))
        return tuple(rules)

    def classify(self, prompt: str) -> Intent:
        """Return the intent of the first matching rule without any network call."""

        rule = self._select(prompt.lower())
        return rule.intent if rule else Intent.PASS_THROUGH

    def _select(self, prompt_lower: str) -> RetrievalRule | None:
        for rule in self._rules:
            if rule.matches(prompt_lower):
                return rule
        return None

    async def retrieve(self, prompt: str) -> Retrieval:
        rule = self._select(prompt.lower())
        if rule is None:
            return Retrieval(intent=Intent.PASS_THROUGH)
        start = time.perf_counter()
        text = await rule.handler(prompt)
        duration = time.perf_counter() - start
        PipelineMetrics.observe_retrieval(rule.intent.value, duration)
        self._logger.info(
            "retrieval.complete",
            intent=rule.intent.value,
            duration_seconds=duration,
            context_chars=len(text),
        )
        return Retrieval(intent=rule.intent, text=text)

    async def _institution_news(self, prompt: str) -> str:
        articles = await self._news.fetch()
        ranked = rank(articles, limit=self._config.news_limit)
        PipelineMetrics.observe_results(len(ranked))
        return format_digest(ranked, empty_message=NO_NEWS)

    async def _recent_events(self, prompt: str) -> str:
        now = time.time()
        results = await self._search.search(prompt, news=True)
        ranked = rank(
            results,
            window_start=window_start_for(self._config.recency_window_days, now=now),
            limit=self._config.search_limit,
            now=now,
        )
        PipelineMetrics.observe_results(len(ranked))
        return format_digest(ranked, empty_message=NO_RESULTS)

    async def _topic_context(self, prompt: str) -> str:
        return match(prompt.lower(), self._knowledge.topics)

    async def _web_search(self, prompt: str) -> str:
        results = await self._search.search(prompt)
        ranked = rank(results, limit=self._config.search_limit)
        PipelineMetrics.observe_results(len(ranked))
        return format_digest(ranked, empty_message=NO_RESULTS)
