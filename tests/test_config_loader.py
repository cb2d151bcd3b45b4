from pathlib import Path

import pytest

from metricsagg.config.loader import (
    DEFAULT_CONFIG_PATH,
    get_runtime_config,
    get_setting,
    load_config,
    set_runtime_config,
)


def test_load_default_config() -> None:
    root = Path(__file__).resolve().parents[1]
    config_path = root / "src" / "metricsagg" / "config" / "default.yaml"

    config = load_config(config_path)

    assert config["delimiter"] == ","
    assert config["bucket_duration_hours"] == 4
    assert config["output_format"] == "csv"
    assert config["include_ranges"] is False


def test_user_config_overrides_defaults(tmp_path: Path) -> None:
    custom = tmp_path / "custom.yaml"
    custom.write_text("bucket_duration_hours: 6\n", encoding="utf-8")

    config = load_config(custom)

    assert config["bucket_duration_hours"] == 6
    assert config["delimiter"] == ","


def test_env_var_selects_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    custom = tmp_path / "env.yaml"
    custom.write_text('app_name: "nightly"\n', encoding="utf-8")
    monkeypatch.setenv("METRICSAGG_CONFIG", str(custom))

    assert load_config()["app_name"] == "nightly"


def test_runtime_config_is_copied(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("METRICSAGG_CONFIG", raising=False)
    set_runtime_config(DEFAULT_CONFIG_PATH)

    config = get_runtime_config()
    config["delimiter"] = "|"

    assert get_runtime_config()["delimiter"] == ","


def test_missing_config_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "absent.yaml")


def test_non_mapping_config_raises(tmp_path: Path) -> None:
    broken = tmp_path / "broken.yaml"
    broken.write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ValueError):
        load_config(broken)


def test_get_setting_prefers_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("METRICSAGG_CONFIG", raising=False)
    set_runtime_config()

    assert get_setting("bucket_duration_hours") == 4
    assert get_setting("bucket_duration_hours", "6") == "6"
    assert get_setting("not_a_setting") is None
