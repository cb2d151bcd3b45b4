"""Batch job driver: read one input, aggregate, write one output.

Each run is a stateless full recompute. Settings are validated before the
input is opened, the header is validated before any data row is parsed, and
the output is only written once every row has been consumed.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from metricsagg.aggregate.engine import AggregationEngine, SummaryRecord
from metricsagg.contracts import ConfigurationError, MalformedRowError
from metricsagg.ingest.records import HeaderIndex, TimeSeriesRecord, parse_row
from metricsagg.io.fs import (
    OutputFormat,
    iter_rows,
    resolve_output_format,
    summaries_to_frame,
    write_summaries,
)
from metricsagg.timealign.bucket import validate_bucket_duration

logger = logging.getLogger(__name__)

_DELIMITER_ALIASES = {"\\t": "\t", "tab": "\t"}
# The csv reader reserves the quote character and cannot split on line breaks.
_RESERVED_DELIMITERS = frozenset({'"', "\n", "\r"})


def _require_text(value: Any, name: str) -> str:
    if value is None:
        raise ConfigurationError(f"Missing required argument '{name}'.")
    text = str(value).strip()
    if not text:
        raise ConfigurationError(f"Argument '{name}' must not be blank.")
    return text


def _resolve_delimiter(value: Any) -> str:
    if value is None or value == "":
        raise ConfigurationError("Missing required argument 'delimiter'.")
    raw = str(value)
    delimiter = _DELIMITER_ALIASES.get(raw.lower(), raw)
    if len(delimiter) != 1:
        raise ConfigurationError(
            f"Argument 'delimiter' must be a single character, got {raw!r}."
        )
    if delimiter in _RESERVED_DELIMITERS:
        raise ConfigurationError(
            f"Argument 'delimiter' cannot be a quote or line break, got {raw!r}."
        )
    return delimiter


def _require_flag(value: Any, name: str) -> bool:
    if value is None:
        return False
    if not isinstance(value, bool):
        raise ConfigurationError(f"Setting '{name}' must be true or false, got {value!r}.")
    return value


@dataclass(frozen=True)
class JobConfig:
    app_name: str
    input_path: Path
    delimiter: str
    bucket_duration_hours: int
    output_path: Path
    output_format: OutputFormat = "csv"
    include_count: bool = False
    include_ranges: bool = False

    @classmethod
    def from_settings(
        cls,
        app_name: Any,
        input_path: Any,
        delimiter: Any,
        bucket_duration_hours: Any,
        output_path: Any,
        *,
        output_format: str | None = None,
        include_count: Any = False,
        include_ranges: Any = False,
    ) -> JobConfig:
        """Validate raw settings, raising ``ConfigurationError`` on the first bad one."""
        name = _require_text(app_name, "app_name")
        source = Path(_require_text(input_path, "input_path")).expanduser()
        sep = _resolve_delimiter(delimiter)
        duration_text = _require_text(bucket_duration_hours, "bucket_duration_hours")
        hours = validate_bucket_duration(duration_text)
        target = Path(_require_text(output_path, "output_path")).expanduser()
        try:
            fmt = resolve_output_format(target, output_format)
        except ValueError as exc:
            raise ConfigurationError(str(exc)) from exc

        return cls(
            app_name=name,
            input_path=source,
            delimiter=sep,
            bucket_duration_hours=hours,
            output_path=target,
            output_format=fmt,
            include_count=_require_flag(include_count, "include_count"),
            include_ranges=_require_flag(include_ranges, "include_ranges"),
        )


@dataclass
class JobResult:
    summaries: list[SummaryRecord]
    rows_read: int = 0
    rows_skipped: int = 0
    output_path: Path | None = None
    skipped_lines: list[int] = field(default_factory=list)

    @property
    def groups(self) -> int:
        return len(self.summaries)


def parse_records(
    rows: Iterable[tuple[int, list[str]]],
    result: JobResult,
) -> Iterable[TimeSeriesRecord]:
    """Turn numbered rows into records, skipping and counting malformed ones.

    The first row must be the header; a missing or incomplete header raises
    ``ConfigurationError`` before any data row is looked at.
    """
    iterator = iter(rows)
    first = next(iterator, None)
    if first is None:
        raise ConfigurationError("Input is empty; expected a header with Metric, Timestamp, Value.")
    index = HeaderIndex.from_header(first[1])

    for line_number, fields in iterator:
        result.rows_read += 1
        try:
            record = parse_row(index, fields, line_number=line_number)
        except MalformedRowError as exc:
            result.rows_skipped += 1
            result.skipped_lines.append(line_number)
            logger.debug("Skipping malformed row %s", exc)
            continue
        yield record


def aggregate_rows(
    rows: Iterable[tuple[int, list[str]]],
    bucket_duration_hours: int,
) -> JobResult:
    """Aggregate numbered raw rows (header first) without touching the filesystem."""
    result = JobResult(summaries=[])
    engine = AggregationEngine(bucket_duration_hours)
    engine.ingest_many(parse_records(rows, result))
    result.summaries = engine.finalize()
    return result


def collect(config: JobConfig) -> JobResult:
    """Read and aggregate the configured input."""
    if not config.input_path.exists():
        raise FileNotFoundError(f"Input file not found: {config.input_path}")
    return aggregate_rows(
        iter_rows(config.input_path, config.delimiter),
        config.bucket_duration_hours,
    )


def run_job(config: JobConfig) -> JobResult:
    """Run the full job and overwrite the configured output."""
    logger.info(
        "Starting job '%s' with input file '%s', delimiter %r, bucket duration '%s hours' "
        "and output file '%s'",
        config.app_name,
        config.input_path,
        config.delimiter,
        config.bucket_duration_hours,
        config.output_path,
    )

    result = collect(config)
    if result.rows_skipped:
        logger.info(
            "Skipped %d malformed row(s) out of %d", result.rows_skipped, result.rows_read
        )

    frame = summaries_to_frame(
        result.summaries,
        bucket_duration_hours=config.bucket_duration_hours,
        include_count=config.include_count,
        include_ranges=config.include_ranges,
    )
    result.output_path = write_summaries(
        frame,
        config.output_path,
        output_format=config.output_format,
        delimiter=config.delimiter,
    )

    logger.info(
        "Job '%s' completed: %d group(s) written to %s",
        config.app_name,
        result.groups,
        result.output_path,
    )
    return result
