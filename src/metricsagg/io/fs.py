"""Local filesystem helpers for delimited input and summary output."""

from __future__ import annotations

import csv
from collections.abc import Iterator, Sequence
from pathlib import Path
from typing import Any, Literal

import pandas as pd

from metricsagg.aggregate.engine import SummaryRecord
from metricsagg.contracts import SUMMARY_COLUMNS, ensure_summary_contract
from metricsagg.timealign.bucket import bucket_time_range

OutputFormat = Literal["csv", "parquet"]
OUTPUT_FORMATS: tuple[str, ...] = ("csv", "parquet")


def iter_rows(path: str | Path, delimiter: str) -> Iterator[tuple[int, list[str]]]:
    """Yield ``(line_number, fields)`` for every non-empty line, header included."""
    file_path = Path(path).expanduser().resolve()
    with file_path.open("r", encoding="utf-8", newline="") as handle:
        reader = csv.reader(handle, delimiter=delimiter)
        for fields in reader:
            if not fields or all(not field.strip() for field in fields):
                continue
            yield reader.line_num, fields


def summaries_to_frame(
    summaries: Sequence[SummaryRecord],
    *,
    bucket_duration_hours: int | None = None,
    include_count: bool = False,
    include_ranges: bool = False,
) -> pd.DataFrame:
    """Lay summaries out as the output table, preserving their order."""
    if include_ranges and bucket_duration_hours is None:
        raise ValueError("bucket_duration_hours is required to include bucket ranges.")

    rows: list[dict[str, Any]] = []
    for summary in summaries:
        row: dict[str, Any] = {
            "Metric": summary.metric,
            "Date": summary.date.isoformat(),
            "Bucket": summary.bucket,
            "Average": summary.average,
            "Min": summary.minimum,
            "Max": summary.maximum,
        }
        if include_count:
            row["Count"] = summary.count
        if include_ranges:
            start, end = bucket_time_range(summary.bucket, bucket_duration_hours)
            row["BucketStart"] = start.isoformat()
            row["BucketEnd"] = end.isoformat()
        rows.append(row)

    columns = list(SUMMARY_COLUMNS)
    if include_count:
        columns.append("Count")
    if include_ranges:
        columns.extend(["BucketStart", "BucketEnd"])
    return ensure_summary_contract(pd.DataFrame(rows, columns=columns))


def resolve_output_format(path: str | Path, output_format: str | None = None) -> OutputFormat:
    """Pick the output format from an explicit choice or the file suffix."""
    if output_format:
        resolved = output_format.strip().lower()
    else:
        resolved = "parquet" if Path(path).suffix.lower() == ".parquet" else "csv"
    if resolved not in OUTPUT_FORMATS:
        raise ValueError(
            f"Unsupported output format '{resolved}'. Expected one of: {', '.join(OUTPUT_FORMATS)}."
        )
    return resolved  # type: ignore[return-value]


def write_summaries(
    frame: pd.DataFrame,
    path: str | Path,
    *,
    output_format: OutputFormat = "csv",
    delimiter: str = ",",
) -> Path:
    """Persist the summary table, replacing anything already at ``path``."""
    target_path = Path(path).expanduser().resolve()
    target_path.parent.mkdir(parents=True, exist_ok=True)

    if output_format == "parquet":
        frame.to_parquet(target_path, engine="pyarrow", index=False)
    else:
        frame.to_csv(target_path, sep=delimiter, index=False, mode="w", lineterminator="\n")
    return target_path


def read_summaries(path: str | Path, *, delimiter: str = ",") -> pd.DataFrame:
    """Load a previously written summary table."""
    file_path = Path(path).expanduser().resolve()
    if resolve_output_format(file_path) == "parquet":
        frame = pd.read_parquet(file_path, engine="pyarrow")
    else:
        frame = pd.read_csv(
            file_path,
            sep=delimiter,
            dtype={"Metric": "string", "Date": "string"},
            keep_default_na=False,
        )
    return ensure_summary_contract(frame)
