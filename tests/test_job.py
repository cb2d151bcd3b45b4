from __future__ import annotations

import logging
from datetime import date
from pathlib import Path

import pytest

from metricsagg.contracts import ConfigurationError
from metricsagg.job import JobConfig, aggregate_rows, collect, run_job

SAMPLE = (
    "Metric,Timestamp,Value\n"
    "CPU,2024-01-01T02:00:00,10\n"
    "CPU,2024-01-01T03:00:00,20\n"
    "MEM,2024-01-01T09:30:00,512\n"
    "CPU,2024-01-01T04:00:00,not-a-number\n"
    "CPU,2024-01-02T23:59:59,5\n"
)


def _write(tmp_path: Path, content: str, name: str = "input.csv") -> Path:
    path = tmp_path / name
    path.write_text(content, encoding="utf-8")
    return path


def _config(tmp_path: Path, source: Path, **overrides: object) -> JobConfig:
    settings: dict[str, object] = {
        "app_name": "test-job",
        "input_path": str(source),
        "delimiter": ",",
        "bucket_duration_hours": "4",
        "output_path": str(tmp_path / "out" / "summary.csv"),
    }
    settings.update(overrides)
    return JobConfig.from_settings(**settings)  # type: ignore[arg-type]


def test_from_settings_trims_and_converts(tmp_path: Path) -> None:
    config = JobConfig.from_settings(
        " job ", f" {tmp_path / 'in.csv'} ", "\\t", " 6 ", str(tmp_path / "o.parquet")
    )

    assert config.app_name == "job"
    assert config.input_path == tmp_path / "in.csv"
    assert config.delimiter == "\t"
    assert config.bucket_duration_hours == 6
    assert config.output_format == "parquet"


@pytest.mark.parametrize(
    ("field", "value", "message"),
    [
        ("app_name", None, "app_name"),
        ("app_name", "   ", "app_name"),
        ("input_path", "", "input_path"),
        ("delimiter", None, "delimiter"),
        ("delimiter", ",,", "delimiter"),
        ("bucket_duration_hours", " ", "bucket_duration_hours"),
        ("bucket_duration_hours", "0", "between 1 and 24"),
        ("bucket_duration_hours", "25", "between 1 and 24"),
        ("output_path", None, "output_path"),
        ("delimiter", '"', "delimiter"),
        ("delimiter", "\n", "delimiter"),
        ("delimiter", "\r", "delimiter"),
        ("include_count", "false", "include_count"),
        ("include_ranges", 1, "include_ranges"),
    ],
)
def test_from_settings_rejects_bad_arguments(
    tmp_path: Path, field: str, value: object, message: str
) -> None:
    with pytest.raises(ConfigurationError, match=message):
        _config(tmp_path, tmp_path / "input.csv", **{field: value})


def test_out_of_range_duration_fails_before_input_is_read(tmp_path: Path) -> None:
    # The input does not exist; the duration check must win.
    with pytest.raises(ConfigurationError):
        _config(tmp_path, tmp_path / "missing.csv", bucket_duration_hours=25)


def test_collect_skips_and_counts_malformed_rows(tmp_path: Path) -> None:
    result = collect(_config(tmp_path, _write(tmp_path, SAMPLE)))

    assert result.rows_read == 5
    assert result.rows_skipped == 1
    assert result.skipped_lines == [5]
    assert [(s.metric, s.date, s.bucket) for s in result.summaries] == [
        ("CPU", date(2024, 1, 1), 0),
        ("CPU", date(2024, 1, 2), 5),
        ("MEM", date(2024, 1, 1), 2),
    ]
    first = result.summaries[0]
    assert (first.average, first.minimum, first.maximum) == (15.0, 10.0, 20.0)


def test_header_only_input_gives_empty_output(tmp_path: Path) -> None:
    config = _config(tmp_path, _write(tmp_path, "Metric,Timestamp,Value\n"))

    result = run_job(config)

    assert result.summaries == []
    assert result.rows_read == 0
    assert config.output_path.read_text(encoding="utf-8") == (
        "Metric,Date,Bucket,Average,Min,Max\n"
    )


@pytest.mark.parametrize("content", ["", "Metric,Time,Value\nCPU,2024-01-01T00:00:00,1\n"])
def test_bad_header_is_fatal_and_writes_nothing(tmp_path: Path, content: str) -> None:
    config = _config(tmp_path, _write(tmp_path, content))

    with pytest.raises(ConfigurationError):
        run_job(config)

    assert not config.output_path.exists()


def test_missing_input_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        collect(_config(tmp_path, tmp_path / "missing.csv"))


def test_run_job_is_idempotent(tmp_path: Path) -> None:
    config = _config(tmp_path, _write(tmp_path, SAMPLE), include_count=True)

    run_job(config)
    first = config.output_path.read_bytes()
    run_job(config)
    second = config.output_path.read_bytes()

    assert first == second
    assert first.decode("utf-8").splitlines() == [
        "Metric,Date,Bucket,Average,Min,Max,Count",
        "CPU,2024-01-01,0,15.0,10.0,20.0,2",
        "CPU,2024-01-02,5,5.0,5.0,5.0,1",
        "MEM,2024-01-01,2,512.0,512.0,512.0,1",
    ]


def test_run_job_uses_delimiter_for_output(tmp_path: Path) -> None:
    source = _write(tmp_path, SAMPLE.replace(",", ";"))
    config = _config(tmp_path, source, delimiter=";", bucket_duration_hours=24)

    run_job(config)

    lines = config.output_path.read_text(encoding="utf-8").splitlines()
    assert lines[0] == "Metric;Date;Bucket;Average;Min;Max"
    assert lines[1] == "CPU;2024-01-01;0;15.0;10.0;20.0"


def test_run_job_logs_skip_count_once(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    config = _config(tmp_path, _write(tmp_path, SAMPLE))

    with caplog.at_level(logging.INFO, logger="metricsagg"):
        run_job(config)

    skip_messages = [r.getMessage() for r in caplog.records if "Skipped" in r.getMessage()]
    assert skip_messages == ["Skipped 1 malformed row(s) out of 5"]
    assert any("Starting job 'test-job'" in r.getMessage() for r in caplog.records)


def test_aggregate_rows_without_filesystem() -> None:
    rows = [
        (1, ["Timestamp", "Value", "Metric"]),
        (2, ["2024-01-01T00:00:00", "1", "A"]),
        (3, ["2024-01-01T23:00:00", "3", "A"]),
        (4, ["2024-01-01T23:00:00", "3"]),
    ]

    result = aggregate_rows(rows, bucket_duration_hours=24)

    assert result.rows_skipped == 1
    assert len(result.summaries) == 1
    assert result.summaries[0].average == 2.0
