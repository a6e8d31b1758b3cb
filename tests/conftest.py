from __future__ import annotations

from typing import Sequence

import pytest

from mapgpt.knowledge import KnowledgeBase, get_knowledge_base
from mapgpt.models import ChatMessage, SearchResult


class RecordingSearch:
    def __init__(self) -> None:
        self.results: list[SearchResult] = []
        self.error: Exception | None = None
        self.calls: list[tuple[str, bool]] = []

    async def search(self, query: str, *, news: bool = False) -> Sequence[SearchResult]:
        self.calls.append((query, news))
        if self.error:
            raise self.error
        return list(self.results)


class RecordingNews:
    def __init__(self) -> None:
        self.articles: list[SearchResult] = []
        self.error: Exception | None = None
        self.calls = 0

    async def fetch(self) -> Sequence[SearchResult]:
        self.calls += 1
        if self.error:
            raise self.error
        return list(self.articles)


class RecordingCompleter:
    def __init__(self, reply: str = "stub answer") -> None:
        self.reply = reply
        self.calls: list[Sequence[ChatMessage]] = []

    async def complete(self, messages: Sequence[ChatMessage]) -> str:
        self.calls.append(messages)
        return self.reply


@pytest.fixture
def knowledge() -> KnowledgeBase:
    return get_knowledge_base()


@pytest.fixture
def search() -> RecordingSearch:
    return RecordingSearch()


@pytest.fixture
def news() -> RecordingNews:
    return RecordingNews()


@pytest.fixture
def completer() -> RecordingCompleter:
    return RecordingCompleter()
