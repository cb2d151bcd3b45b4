"""Parse raw delimited rows into typed time-series records."""

from __future__ import annotations

import math
import re
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from metricsagg.contracts import REQUIRED_COLUMNS, ConfigurationError, MalformedRowError
from metricsagg.timealign.calendar import to_utc_naive


@dataclass(frozen=True)
class TimeSeriesRecord:
    metric: str
    timestamp: datetime
    value: float


@dataclass(frozen=True)
class HeaderIndex:
    """Positions of the required columns, resolved once per run."""

    metric: int
    timestamp: int
    value: int
    width: int

    @classmethod
    def from_header(cls, header: Sequence[str]) -> HeaderIndex:
        names = [name.strip() for name in header]
        missing = [column for column in REQUIRED_COLUMNS if column not in names]
        if missing:
            raise ConfigurationError(
                f"Input header missing required columns: {missing} (found {names})"
            )
        return cls(
            metric=names.index("Metric"),
            timestamp=names.index("Timestamp"),
            value=names.index("Value"),
            width=len(names),
        )


_PLAIN_NUMBER = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)


def _parse_value(raw: str) -> float:
    if not _PLAIN_NUMBER.fullmatch(raw):
        raise ValueError(f"Value {raw!r} is not a plain decimal number.")
    value = float(raw)
    if not math.isfinite(value):
        raise ValueError(f"Value {raw!r} is not finite.")
    return value


def parse_row(
    index: HeaderIndex,
    row: Sequence[str],
    line_number: int | None = None,
) -> TimeSeriesRecord:
    """Build a record from one data row or raise ``MalformedRowError``."""
    if len(row) != index.width:
        raise MalformedRowError(
            f"expected {index.width} fields, got {len(row)}", line_number=line_number
        )

    metric = row[index.metric].strip()
    if not metric:
        raise MalformedRowError("blank Metric field", line_number=line_number)

    raw_timestamp = row[index.timestamp]
    try:
        timestamp = to_utc_naive(raw_timestamp)
    except (TypeError, ValueError, OverflowError) as exc:
        raise MalformedRowError(
            f"unparseable Timestamp {raw_timestamp!r}", line_number=line_number
        ) from exc

    raw_value = row[index.value].strip()
    try:
        value = _parse_value(raw_value)
    except ValueError as exc:
        raise MalformedRowError(
            f"non-numeric Value {raw_value!r}", line_number=line_number
        ) from exc

    return TimeSeriesRecord(metric=metric, timestamp=timestamp, value=value)
