"""Layered job settings: packaged defaults, then a user YAML file, then the command line."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).with_name("default.yaml")
ENV_CONFIG = "METRICSAGG_CONFIG"

_ACTIVE_CONFIG: dict[str, Any] | None = None


def _read_mapping(config_path: Path) -> dict[str, Any]:
    with config_path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected mapping at root of config {config_path}")
    return data


def load_config(path: str | Path | None = None) -> dict[str, Any]:
    """Return the packaged defaults overlaid with the selected YAML file.

    The file is ``path`` when given, else ``$METRICSAGG_CONFIG`` when set. A
    user file only needs to name the settings it changes.
    """
    settings = _read_mapping(DEFAULT_CONFIG_PATH)

    chosen = path if path is not None else os.environ.get(ENV_CONFIG) or None
    if chosen is None:
        return settings

    config_path = Path(chosen).expanduser().resolve()
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")
    overrides = _read_mapping(config_path)
    logger.debug("Loaded %d setting(s) from %s", len(overrides), config_path)
    return {**settings, **overrides}


def set_runtime_config(path: str | Path | None = None) -> dict[str, Any]:
    """Load settings and make them the active ones for this process."""
    global _ACTIVE_CONFIG
    _ACTIVE_CONFIG = load_config(path)
    return dict(_ACTIVE_CONFIG)


def get_runtime_config() -> dict[str, Any]:
    """Return a copy of the active settings, loading defaults if necessary."""
    if _ACTIVE_CONFIG is None:
        set_runtime_config()
    return dict(_ACTIVE_CONFIG or {})


def get_setting(key: str, override: Any | None = None) -> Any:
    """Return ``override`` when given, otherwise the active value for ``key``."""
    if override is not None:
        return override
    return get_runtime_config().get(key)
