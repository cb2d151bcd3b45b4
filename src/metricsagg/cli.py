"""metricsagg command line interface."""

from __future__ import annotations

import logging
from pathlib import Path

import click

from metricsagg import __version__
from metricsagg.config.loader import get_setting, set_runtime_config
from metricsagg.contracts import ConfigurationError
from metricsagg.io.fs import OUTPUT_FORMATS
from metricsagg.job import JobConfig, run_job
from metricsagg.timealign.bucket import bucket_table, validate_bucket_duration

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _configure_logging(level: str) -> None:
    numeric = logging.getLevelName(level.strip().upper())
    if not isinstance(numeric, int):
        raise click.BadParameter(f"Unknown log level: {level}", param_hint="--log-level")
    logging.basicConfig(level=numeric, format=LOG_FORMAT)
    logging.getLogger("metricsagg").setLevel(numeric)


@click.group(name="metricsagg", invoke_without_command=True)
@click.option(
    "--config",
    type=click.Path(exists=False, dir_okay=False, file_okay=True, path_type=Path),
    default=None,
    help="Path to configuration file (overrides METRICSAGG_CONFIG).",
)
@click.option("--log-level", default=None, help="Logging level (defaults to config log_level).")
@click.option("--version", is_flag=True, help="Show version and exit.")
@click.pass_context
def cli(ctx: click.Context, config: Path | None, log_level: str | None, version: bool) -> None:
    set_runtime_config(config)
    _configure_logging(str(get_setting("log_level", log_level) or "WARNING"))
    if version:
        click.echo(__version__)
        ctx.exit()
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        ctx.exit()


@cli.command("run")
@click.argument("input_path", required=False)
@click.argument("output_path", required=False)
@click.option("--app-name", default=None, help="Job name used in logs (defaults to config).")
@click.option("--delimiter", default=None, help="Single-character field delimiter.")
@click.option(
    "--bucket-duration",
    default=None,
    help="Bucket width in hours, 1 to 24 (defaults to config).",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(OUTPUT_FORMATS, case_sensitive=False),
    default=None,
    help="Output format (defaults to config, or the output suffix).",
)
@click.option(
    "--with-count/--without-count",
    "include_count",
    default=None,
    help="Add a Count column with the rows behind each group.",
)
@click.option(
    "--with-ranges/--without-ranges",
    "include_ranges",
    default=None,
    help="Add BucketStart/BucketEnd columns with each bucket's clock range.",
)
def run(
    input_path: str | None,
    output_path: str | None,
    app_name: str | None,
    delimiter: str | None,
    bucket_duration: str | None,
    output_format: str | None,
    include_count: bool | None,
    include_ranges: bool | None,
) -> None:
    """Aggregate INPUT_PATH into per-bucket average/min/max at OUTPUT_PATH."""
    try:
        job_config = JobConfig.from_settings(
            get_setting("app_name", app_name),
            input_path,
            get_setting("delimiter", delimiter),
            get_setting("bucket_duration_hours", bucket_duration),
            output_path,
            output_format=get_setting("output_format", output_format),
            include_count=get_setting("include_count", include_count),
            include_ranges=get_setting("include_ranges", include_ranges),
        )
        result = run_job(job_config)
    except ConfigurationError as exc:
        raise click.ClickException(f"{exc} Aborting program.") from exc
    except FileNotFoundError as exc:
        raise click.ClickException(str(exc)) from exc

    click.echo(
        f"Job {job_config.app_name} completed successfully: "
        f"{result.groups} groups from {result.rows_read} rows written to {result.output_path}"
    )
    if result.rows_skipped:
        click.echo(f"Skipped {result.rows_skipped} malformed rows.")


@cli.command("buckets")
@click.option("--duration", default=None, help="Bucket duration in hours (defaults to config).")
def buckets(duration: str | None) -> None:
    """Print the clock range covered by each bucket of a day."""
    try:
        hours = validate_bucket_duration(get_setting("bucket_duration_hours", duration))
    except ConfigurationError as exc:
        raise click.BadParameter(str(exc), param_hint="--duration") from exc

    click.echo(f"{len(bucket_table(hours))} buckets of {hours} hours")
    for bucket, start, end in bucket_table(hours):
        click.echo(f"  Bucket {bucket}: {start.isoformat()} - {end.isoformat()}")


def main() -> None:
    """Entry point used by tests and scripts."""
    cli.main(standalone_mode=False)


if __name__ == "__main__":
    cli()
