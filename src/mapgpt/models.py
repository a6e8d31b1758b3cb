"""Shared value records used across the MapGPT pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal, Sequence

Role = Literal["system", "user", "assistant"]


class Intent(str, Enum):
    """Routing decision taken for one prompt."""

    HELP = "help"
    OUT_OF_DOMAIN = "out_of_domain"
    INSTITUTION_NEWS = "institution_news"
    RECENT_EVENTS = "recent_events"
    TOPIC = "topic"
    WEB_SEARCH = "web_search"
    PASS_THROUGH = "pass_through"


DIGEST_INTENTS = frozenset({Intent.INSTITUTION_NEWS, Intent.RECENT_EVENTS, Intent.WEB_SEARCH})


@dataclass(frozen=True)
class ChatMessage:
    """One role/content message sent to the completion collaborator."""

    role: Role
    content: str

    def as_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class SearchResult:
    """Result record returned by the search or scrape collaborators."""

    title: str
    link: str
    snippet: str | None = None
    published_at: str | None = None


@dataclass(frozen=True)
class RankedResult:
    """Search result with its normalized POSIX timestamp (0.0 when unknown)."""

    result: SearchResult
    sort_timestamp: float = 0.0


@dataclass(frozen=True)
class TopicEntry:
    """Named knowledge block triggered by keyword containment."""

    name: str
    keywords: tuple[str, ...]
    text: str


@dataclass(frozen=True)
class Retrieval:
    """Outcome of the retrieval stage for one request."""

    intent: Intent
    text: str = ""

    @property
    def is_digest(self) -> bool:
        return self.intent in DIGEST_INTENTS


@dataclass(frozen=True)
class ComposedPrompt:
    """Either a canned reply or the messages for the completion collaborator."""

    intent: Intent
    messages: tuple[ChatMessage, ...] = ()
    canned: str | None = None

    def __post_init__(self) -> None:
        if (self.canned is None) == (not self.messages):
            raise ValueError("ComposedPrompt needs exactly one of canned text or messages")

    @property
    def is_canned(self) -> bool:
        return self.canned is not None


@dataclass(frozen=True)
class ChatAnswer:
    """Answer returned by the chat pipeline."""

    text: str
    intent: Intent
    latency_ms: float
    request_id: str


def message_payload(messages: Sequence[ChatMessage]) -> list[dict[str, str]]:
    return [message.as_dict() for message in messages]
