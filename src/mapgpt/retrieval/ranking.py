"""Recency ranking for time-stamped search results."""

from __future__ import annotations

import time
from typing import Sequence

from mapgpt.models import RankedResult, SearchResult
from mapgpt.retrieval.dates import UNIT_SECONDS, normalize

DEFAULT_LIMIT = 5


def window_start_for(days: int, now: float | None = None) -> float:
    reference = time.time() if now is None else now
    return reference - days * UNIT_SECONDS["day"]


def rank(
    results: Sequence[SearchResult],
    window_start: float | None = None,
    limit: int = DEFAULT_LIMIT,
    now: float | None = None,
) -> list[RankedResult]:
    """Attach timestamps, then filter by window and/or sort newest first.

    When a window is given but nothing falls inside it, the first ``limit``
    items of the unfiltered input are returned in source order.
    """

    reference = time.time() if now is None else now
    ranked = [RankedResult(result=item, sort_timestamp=normalize(item.published_at, now=reference)) for item in results]
    if window_start is not None:
        recent = [item for item in ranked if item.sort_timestamp >= window_start]
        if not recent:
            return ranked[:limit]
        ranked = recent
    # sorted() is stable, so equal timestamps keep their source order
    return sorted(ranked, key=lambda item: item.sort_timestamp, reverse=True)[:limit]
