"""Embedded institution facts and the department topic table."""

from __future__ import annotations

import json
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping, Sequence

from mapgpt.models import TopicEntry

DATA_DIR = Path(__file__).resolve().parent / "data"


@dataclass(frozen=True)
class KnowledgeBase:
    """Process-wide read-only knowledge loaded once at startup."""

    school_name: str
    short_name: str
    location: str
    vision: str
    recent_updates: tuple[str, ...]
    institution_tokens: tuple[str, ...]
    news_terms: tuple[str, ...]
    recency_terms: tuple[str, ...]
    domain_keywords: tuple[str, ...]
    help_commands: tuple[str, ...]
    help_text: str
    refusal_text: str
    system_instruction: str
    topics: tuple[TopicEntry, ...]

    @property
    def topic_keywords(self) -> tuple[str, ...]:
        return tuple(keyword for topic in self.topics for keyword in topic.keywords)

    def render_system_instruction(self) -> str:
        updates = "\n".join(f"{index}. {item}" for index, item in enumerate(self.recent_updates, start=1))
        return self.system_instruction.format(
            school_name=self.school_name,
            location=self.location,
            vision=self.vision,
            recent_updates=updates or "None",
        )


def _numbered(items: Sequence[str]) -> str:
    return "\n".join(f"{index}. {item}" for index, item in enumerate(items, start=1))


def render_department(record: Mapping[str, Any]) -> str:
    """Flatten a department record into the labelled block spliced into prompts."""

    lines = [f"Department: {record['name']}"]
    for label, value in record.get("facts", {}).items():
        lines.append(f"{label}: {value}")
    if record.get("past_events"):
        lines.append("Past Events:")
        lines.append(_numbered(record["past_events"]))
    if record.get("future_events"):
        lines.append("Future Events:")
        lines.append(_numbered(record["future_events"]))
    return "\n".join(lines)


def _lowered(values: Sequence[str]) -> tuple[str, ...]:
    return tuple(value.lower() for value in values)


def build_topics(records: Sequence[Mapping[str, Any]]) -> tuple[TopicEntry, ...]:
    return tuple(
        TopicEntry(
            name=record["name"],
            keywords=_lowered(record["keywords"]),
            text=render_department(record),
        )
        for record in records
    )


def load_knowledge_base(data_dir: Path | None = None) -> KnowledgeBase:
    directory = data_dir or DATA_DIR
    institution = json.loads((directory / "institution.json").read_text(encoding="utf-8"))
    departments = json.loads((directory / "departments.json").read_text(encoding="utf-8"))
    return KnowledgeBase(
        school_name=institution["school_name"],
        short_name=institution["short_name"],
        location=institution["location"],
        vision=institution["vision"],
        recent_updates=tuple(institution.get("recent_updates", ())),
        institution_tokens=_lowered(institution["institution_tokens"]),
        news_terms=_lowered(institution["news_terms"]),
        recency_terms=_lowered(institution["recency_terms"]),
        domain_keywords=_lowered(institution["domain_keywords"]),
        help_commands=_lowered(institution["help_commands"]),
        help_text=institution["help_text"],
        refusal_text=institution["refusal_text"],
        system_instruction=institution["system_instruction"],
        topics=build_topics(departments),
    )


@lru_cache(maxsize=1)
def get_knowledge_base() -> KnowledgeBase:
    return load_knowledge_base()
