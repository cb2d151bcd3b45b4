"""Timestamp normalisation helpers."""

from __future__ import annotations

from datetime import date, datetime

import pandas as pd

# pandas resolves these against the wall clock, which would move a row between
# buckets from one run to the next.
_RELATIVE_KEYWORDS = frozenset({"now", "today"})


def to_utc_naive(raw: str) -> datetime:
    """Parse ``raw`` into a tz-naive UTC datetime.

    Offset-aware inputs are converted to UTC; naive inputs are taken to be UTC
    already, so every timestamp lands on a single clock before bucketing.
    """
    if not raw or not raw.strip():
        raise ValueError("Timestamp is blank.")
    text = raw.strip()
    if text.lower() in _RELATIVE_KEYWORDS:
        raise ValueError(f"Relative timestamp {raw!r} is not a fixed point in time.")
    parsed = pd.to_datetime(text, utc=True, errors="raise")
    if pd.isna(parsed):
        raise ValueError(f"Unable to parse timestamp {raw!r}.")
    return parsed.tz_localize(None).to_pydatetime()


def date_and_hour(timestamp: datetime) -> tuple[date, int]:
    """Split a timestamp into its calendar date and hour of day."""
    return timestamp.date(), timestamp.hour
