"""Embedded knowledge and topic matching."""

from .base import KnowledgeBase, get_knowledge_base, load_knowledge_base
from .matcher import match, matched_topics

__all__ = ["KnowledgeBase", "get_knowledge_base", "load_knowledge_base", "match", "matched_topics"]
