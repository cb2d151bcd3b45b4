"""Streaming aggregation of bucketed time-series records."""

from .engine import (
    Accumulator,
    AggregationEngine,
    GroupKey,
    SummaryRecord,
    aggregate,
    aggregate_sharded,
)
from .order import order_summaries

__all__ = [
    "Accumulator",
    "AggregationEngine",
    "GroupKey",
    "SummaryRecord",
    "aggregate",
    "aggregate_sharded",
    "order_summaries",
]
