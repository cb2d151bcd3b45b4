"""Deterministic ordering of summary records."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from metricsagg.aggregate.engine import SummaryRecord


def order_summaries(summaries: Iterable[SummaryRecord]) -> list[SummaryRecord]:
    """Sort by metric, then date, then bucket, all ascending."""
    return sorted(summaries, key=lambda summary: (summary.metric, summary.date, summary.bucket))
