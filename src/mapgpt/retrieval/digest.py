"""Numbered markdown digests of ranked results."""

from __future__ import annotations

from typing import Sequence

from mapgpt.models import RankedResult

NO_RESULTS = "No results found for your query."
NO_NEWS = "No recent news found on the MAPOLY news page."


def format_entry(index: int, item: RankedResult) -> str:
    result = item.result
    lines = [f"{index}. **{result.title}**"]
    if result.published_at:
        lines.append(f"🗓 {result.published_at}")
    if result.snippet:
        lines.append(result.snippet)
    lines.append(f"[Read more]({result.link})")
    return "\n".join(lines)


def format_digest(results: Sequence[RankedResult], empty_message: str = NO_RESULTS) -> str:
    """Render results as numbered blocks separated by blank lines, never empty."""

    if not results:
        return empty_message
    return "\n\n".join(format_entry(index, item) for index, item in enumerate(results, start=1))
