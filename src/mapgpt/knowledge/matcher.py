"""Keyword containment matching against the topic table."""

from __future__ import annotations

from typing import Sequence

from mapgpt.models import TopicEntry


def matched_topics(prompt_lower: str, topics: Sequence[TopicEntry]) -> list[TopicEntry]:
    """Return every topic with a keyword contained in the prompt, in table order.

    Containment is plain substring search with no word boundaries, so short
    aliases like ``cs`` also fire inside longer words such as ``physics``.
    """

    return [topic for topic in topics if any(keyword in prompt_lower for keyword in topic.keywords)]


def match(prompt_lower: str, topics: Sequence[TopicEntry]) -> str:
    """Concatenate the text of all matching topics; empty string when none match."""

    return " ".join(topic.text for topic in matched_topics(prompt_lower, topics))
