"""Keyed streaming aggregation of time-series records.

The engine keeps one running ``Accumulator`` per (metric, date, bucket) key and
never holds raw rows. Averages are resolved once, at finalize time, as
``sum / count`` so no rounding error compounds across updates.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date

from metricsagg.aggregate.order import order_summaries
from metricsagg.ingest.records import TimeSeriesRecord
from metricsagg.timealign.bucket import assign_bucket, validate_bucket_duration
from metricsagg.timealign.calendar import date_and_hour


@dataclass(frozen=True, order=True)
class GroupKey:
    metric: str
    date: date
    bucket: int


@dataclass
class Accumulator:
    """Running count, sum, min and max for one group."""

    count: int
    total: float
    minimum: float
    maximum: float

    @classmethod
    def start(cls, value: float) -> Accumulator:
        return cls(count=1, total=value, minimum=value, maximum=value)

    def update(self, value: float) -> None:
        self.count += 1
        self.total += value
        if value < self.minimum:
            self.minimum = value
        if value > self.maximum:
            self.maximum = value

    def combine(self, other: Accumulator) -> Accumulator:
        """Merge two partial accumulators; associative and commutative."""
        return Accumulator(
            count=self.count + other.count,
            total=self.total + other.total,
            minimum=min(self.minimum, other.minimum),
            maximum=max(self.maximum, other.maximum),
        )

    @property
    def average(self) -> float:
        # Rounding in the running sum can push the mean just past an extreme.
        return min(max(self.total / self.count, self.minimum), self.maximum)


@dataclass(frozen=True)
class SummaryRecord:
    metric: str
    date: date
    bucket: int
    average: float
    minimum: float
    maximum: float
    count: int

    @property
    def key(self) -> GroupKey:
        return GroupKey(self.metric, self.date, self.bucket)


class AggregationEngine:
    """Accumulate records per group key, then resolve summaries once.

    Usage::

        engine = AggregationEngine(bucket_duration_hours=4)
        for record in records:
            engine.ingest(record)
        summaries = engine.finalize()
    """

    def __init__(self, bucket_duration_hours: int) -> None:
        self.bucket_duration_hours = validate_bucket_duration(bucket_duration_hours)
        self._groups: dict[GroupKey, Accumulator] = {}
        self._finalized: list[SummaryRecord] | None = None
        self.records_ingested = 0

    def key_for(self, record: TimeSeriesRecord) -> GroupKey:
        day, hour = date_and_hour(record.timestamp)
        return GroupKey(record.metric, day, assign_bucket(hour, self.bucket_duration_hours))

    def ingest(self, record: TimeSeriesRecord) -> None:
        if self._finalized is not None:
            raise RuntimeError("Cannot ingest records after finalize().")
        key = self.key_for(record)
        accumulator = self._groups.get(key)
        if accumulator is None:
            self._groups[key] = Accumulator.start(record.value)
        else:
            accumulator.update(record.value)
        self.records_ingested += 1

    def ingest_many(self, records: Iterable[TimeSeriesRecord]) -> None:
        for record in records:
            self.ingest(record)

    def merge(self, other: AggregationEngine) -> None:
        """Fold another engine's partial groups into this one."""
        if self._finalized is not None:
            raise RuntimeError("Cannot merge into a finalized engine.")
        if other.bucket_duration_hours != self.bucket_duration_hours:
            raise ValueError(
                "Cannot merge engines with different bucket durations: "
                f"{self.bucket_duration_hours}h vs {other.bucket_duration_hours}h"
            )
        for key, partial in other._groups.items():
            existing = self._groups.get(key)
            self._groups[key] = (
                Accumulator(partial.count, partial.total, partial.minimum, partial.maximum)
                if existing is None
                else existing.combine(partial)
            )
        self.records_ingested += other.records_ingested

    def accumulators(self) -> dict[GroupKey, Accumulator]:
        """Return a snapshot of the running state keyed by group."""
        return {
            key: Accumulator(acc.count, acc.total, acc.minimum, acc.maximum)
            for key, acc in self._groups.items()
        }

    def __len__(self) -> int:
        return len(self._groups)

    def finalize(self) -> list[SummaryRecord]:
        """Resolve every group into an ordered summary.

        Repeated calls return the same summaries without recomputing.
        """
        if self._finalized is None:
            self._finalized = order_summaries(
                SummaryRecord(
                    metric=key.metric,
                    date=key.date,
                    bucket=key.bucket,
                    average=acc.average,
                    minimum=acc.minimum,
                    maximum=acc.maximum,
                    count=acc.count,
                )
                for key, acc in self._groups.items()
            )
        return list(self._finalized)


def aggregate(
    records: Iterable[TimeSeriesRecord],
    bucket_duration_hours: int,
) -> list[SummaryRecord]:
    """Aggregate ``records`` in a single pass and return ordered summaries."""
    engine = AggregationEngine(bucket_duration_hours)
    engine.ingest_many(records)
    return engine.finalize()


def aggregate_sharded(
    records: Iterable[TimeSeriesRecord],
    bucket_duration_hours: int,
    shards: int,
) -> list[SummaryRecord]:
    """Aggregate round-robin shards separately and merge the partial results."""
    if shards < 1:
        raise ValueError(f"shards must be positive, got {shards}")
    partials = [AggregationEngine(bucket_duration_hours) for _ in range(shards)]
    for position, record in enumerate(records):
        partials[position % shards].ingest(record)

    merged = partials[0]
    for partial in partials[1:]:
        merged.merge(partial)
    return merged.finalize()
