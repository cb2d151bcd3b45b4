"""Bucketing utilities for partitioning a calendar day into fixed-width hours."""

from __future__ import annotations

from datetime import time
from typing import Any

from metricsagg.contracts import ConfigurationError

MIN_BUCKET_HOURS = 1
MAX_BUCKET_HOURS = 24


def validate_bucket_duration(value: Any) -> int:
    """Coerce ``value`` to an hour count in ``[1, 24]`` or raise ``ConfigurationError``."""
    if isinstance(value, bool):
        raise ConfigurationError(f"Bucket duration must be an integer, got {value!r}.")
    if isinstance(value, str):
        value = value.strip()
        if not value:
            raise ConfigurationError("Bucket duration must not be blank.")
    try:
        hours = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Bucket duration must be an integer, got {value!r}.") from exc
    if isinstance(value, float) and hours != value:
        raise ConfigurationError(f"Bucket duration must be a whole number of hours, got {value!r}.")

    if hours < MIN_BUCKET_HOURS or hours > MAX_BUCKET_HOURS:
        raise ConfigurationError(
            f"Bucket duration must be between 1 and 24 (both inclusive), got {hours}."
        )
    return hours


def assign_bucket(hour_of_day: int, bucket_duration_hours: int) -> int:
    """Return the zero-based bucket index an hour falls into.

    Flooring keeps each hour inside the bucket that started at or before it,
    so a duration of 24 collapses the whole day into bucket 0.
    """
    return hour_of_day // bucket_duration_hours


def bucket_count(bucket_duration_hours: int) -> int:
    """Return how many buckets a day is split into."""
    return assign_bucket(23, bucket_duration_hours) + 1


def bucket_time_range(bucket: int, bucket_duration_hours: int) -> tuple[time, time]:
    """Return the first and last second of ``bucket`` on the clock.

    The final bucket is clipped at ``23:59:59`` when the duration does not
    divide the day evenly.
    """
    if bucket < 0 or bucket >= bucket_count(bucket_duration_hours):
        raise ValueError(
            f"Bucket {bucket} out of range for a {bucket_duration_hours}h duration."
        )
    start_hour = bucket * bucket_duration_hours
    end_hour = min(start_hour + bucket_duration_hours, 24) - 1
    return time(start_hour, 0, 0), time(end_hour, 59, 59)


def bucket_table(bucket_duration_hours: int) -> list[tuple[int, time, time]]:
    """List every bucket of a day with its clock range."""
    return [
        (bucket, *bucket_time_range(bucket, bucket_duration_hours))
        for bucket in range(bucket_count(bucket_duration_hours))
    ]
