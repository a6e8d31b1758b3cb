"""Normalization of heterogeneous date strings into POSIX timestamps."""

from __future__ import annotations

import re
import time
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime

EPOCH = 0.0

UNIT_SECONDS: dict[str, int] = {
    "minute": 60,
    "hour": 3600,
    "day": 86400,
    "week": 604800,
}

_RELATIVE_RE = re.compile(r"^\s*(\d+)\s+(minute|hour|day|week)s?\s+ago\s*$", re.IGNORECASE)

DATE_FORMATS = (
    "%Y-%m-%dT%H:%M:%S%z",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d %H:%M:%S%z",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d",
    "%d %b %Y %H:%M:%S",
    "%d %b %Y",
    "%d %B %Y",
    "%b %d, %Y",
    "%B %d, %Y",
    "%d/%m/%Y %H:%M:%S",
    "%d/%m/%Y",
    "%Y/%m/%d",
)


def _as_timestamp(value: datetime) -> float:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.timestamp()


def _parse_calendar(text: str) -> float | None:
    for fmt in DATE_FORMATS:
        try:
            return _as_timestamp(datetime.strptime(text, fmt))
        except ValueError:
            continue
    try:
        return _as_timestamp(datetime.fromisoformat(text.replace("Z", "+00:00")))
    except ValueError:
        pass
    try:
        return _as_timestamp(parsedate_to_datetime(text))
    except (TypeError, ValueError, IndexError):
        return None


def normalize(date_text: str | None, now: float | None = None) -> float:
    """Convert an absolute or ``N units ago`` date string into a timestamp.

    Missing, blank or unparseable input returns ``EPOCH`` so that such items
    rank as the oldest possible. ``now`` is used for relative expressions and
    captured once per call when not supplied.
    """

    if not isinstance(date_text, str) or not date_text.strip():
        return EPOCH
    text = date_text.strip()
    relative = _RELATIVE_RE.match(text)
    if relative:
        reference = time.time() if now is None else now
        amount, unit = int(relative.group(1)), relative.group(2).lower()
        return reference - amount * UNIT_SECONDS[unit]
    parsed = _parse_calendar(text)
    return EPOCH if parsed is None else parsed
