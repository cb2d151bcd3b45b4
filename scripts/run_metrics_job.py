#!/usr/bin/env python
"""Run one metrics aggregation job from five positional arguments.

Logs to ``logs/metricsagg.log`` as well as stdout, which suits scheduled
runs where the console output is not kept.

Usage::

    poetry run python scripts/run_metrics_job.py APP_NAME INPUT DELIMITER HOURS OUTPUT
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

# Allow running directly without installation.
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from metricsagg.contracts import ConfigurationError
from metricsagg.job import JobConfig, run_job

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

_LOG_DIR = Path("logs")
_LOG_DIR.mkdir(parents=True, exist_ok=True)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[
        logging.FileHandler(_LOG_DIR / "metricsagg.log"),
        logging.StreamHandler(sys.stdout),
    ],
)
logger = logging.getLogger(__name__)

_ARGUMENTS = ("app_name", "input_path", "delimiter", "bucket_duration_hours", "output_path")


def main(argv: list[str]) -> int:
    if len(argv) < len(_ARGUMENTS):
        missing = ", ".join(_ARGUMENTS[len(argv):])
        logger.error("Insufficient arguments provided (missing: %s). Aborting program.", missing)
        return 1

    try:
        config = JobConfig.from_settings(*argv[: len(_ARGUMENTS)])
        result = run_job(config)
    except ConfigurationError as exc:
        logger.error("%s Aborting program.", exc)
        return 1

    logger.info(
        "Job %s completed successfully (%d rows read, %d skipped)",
        config.app_name,
        result.rows_read,
        result.rows_skipped,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
