"""Error types and data contract validators for the aggregation job."""

from __future__ import annotations

import pandas as pd

REQUIRED_COLUMNS: tuple[str, ...] = ("Metric", "Timestamp", "Value")
SUMMARY_COLUMNS: list[str] = ["Metric", "Date", "Bucket", "Average", "Min", "Max"]


class ContractError(ValueError):
    """Raised when input or output data violates its declared contract."""


class ConfigurationError(ContractError):
    """Raised when the job cannot start because of bad settings or a bad header."""


class MalformedRowError(ContractError):
    """Raised for a single data row that cannot be parsed."""

    def __init__(self, reason: str, line_number: int | None = None) -> None:
        self.reason = reason
        self.line_number = line_number
        where = f"line {line_number}: " if line_number is not None else ""
        super().__init__(f"{where}{reason}")


def ensure_summary_contract(frame: pd.DataFrame) -> pd.DataFrame:
    """Validate and normalize the summary frame before it is written."""
    missing = set(SUMMARY_COLUMNS) - set(frame.columns)
    if missing:
        raise ContractError(f"Summary frame missing columns: {sorted(missing)}")

    validated = frame.copy()
    validated["Metric"] = validated["Metric"].astype("string")
    validated["Date"] = validated["Date"].astype("string")
    validated["Bucket"] = validated["Bucket"].astype("int64")
    for col in ["Average", "Min", "Max"]:
        validated[col] = validated[col].astype("float64")

    optional = [col for col in ("Count", "BucketStart", "BucketEnd") if col in validated.columns]
    if "Count" in optional:
        validated["Count"] = validated["Count"].astype("int64")
    for col in ("BucketStart", "BucketEnd"):
        if col in optional:
            validated[col] = validated[col].astype("string")
    return validated[[*SUMMARY_COLUMNS, *optional]]
