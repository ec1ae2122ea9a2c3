from __future__ import annotations

import pytest
from pydantic import ValidationError

from smooth_cli.exceptions import ConfigurationError
from smooth_cli.models.config import DownloadConfig
from smooth_cli.models.segment import StreamKey
from smooth_cli.storage.config_manager import ConfigManager
from smooth_cli.utils.path import DEFAULT_OUTPUT_TEMPLATE


def test_download_config_defaults() -> None:
    config = DownloadConfig(output_template="{chunk_index}.{ext}", config_path=".")

    assert config.output_dir == "."
    assert config.max_workers == 8
    assert config.max_attempts == 3
    assert config.base_delay == 1.5
    assert not config.allow_incomplete
    assert not config.dry_run
    assert config.stream_keys == []


@pytest.mark.parametrize(
    "template",
    ["", "../{chunk_index}", "/abs/{chunk_index}", "{stream_name}/{bitrate}.ismv"],
)
def test_download_config_rejects_bad_templates(template: str) -> None:
    with pytest.raises(ValidationError):
        DownloadConfig(output_template=template, config_path=".")


@pytest.mark.parametrize(
    "field, value",
    [("max_workers", 0), ("max_workers", 33), ("max_attempts", 0), ("base_delay", -1)],
)
def test_download_config_rejects_bad_numbers(field: str, value) -> None:
    with pytest.raises(ValidationError):
        DownloadConfig(
            output_template=DEFAULT_OUTPUT_TEMPLATE, config_path=".", **{field: value}
        )


def test_ini_keys_exclude_runtime_fields() -> None:
    assert DownloadConfig.get_ini_keys() == {
        "output_dir",
        "output_template",
        "max_workers",
        "max_attempts",
        "base_delay",
        "allow_incomplete",
    }


def test_missing_file_falls_back_to_defaults(tmp_path) -> None:
    config = ConfigManager(tmp_path / "config.ini").load_config()

    assert config.output_template == DEFAULT_OUTPUT_TEMPLATE
    assert config.config_path == str(tmp_path)


def test_missing_file_when_required(tmp_path) -> None:
    with pytest.raises(ConfigurationError, match="smooth-cli init"):
        ConfigManager(tmp_path / "config.ini").load_config(require_file=True)


def test_save_and_load_with_cli_overrides(tmp_path) -> None:
    config_file = tmp_path / "smooth-cli" / "config.ini"
    manager = ConfigManager(config_file)
    manager.save_new_config({"max_attempts": 5, "allow_incomplete": True})

    config = ConfigManager(config_file).load_config(
        {"max_workers": 4, "stream_keys": [StreamKey(1, 0)], "dry_run": True}
    )

    assert config_file.is_file()
    assert config.max_attempts == 5
    assert config.allow_incomplete
    assert config.max_workers == 4
    assert config.stream_keys == [StreamKey(1, 0)]
    assert config.dry_run


def test_percent_signs_survive_round_trip(tmp_path) -> None:
    config_file = tmp_path / "config.ini"
    ConfigManager(config_file).save_new_config(
        {"output_template": "100%/{chunk_index}.{ext}"}
    )

    config = ConfigManager(config_file).load_config()

    assert config.output_template == "100%/{chunk_index}.{ext}"


def test_missing_keys_are_migrated(tmp_path) -> None:
    config_file = tmp_path / "config.ini"
    config_file.write_text("[DEFAULT]\nmax_workers = 2\n", encoding="utf-8")

    config = ConfigManager(config_file).load_config()

    assert config.max_workers == 2
    contents = config_file.read_text(encoding="utf-8")
    assert "max_attempts = 3" in contents
    assert "allow_incomplete = false" in contents


def test_invalid_values_raise_configuration_error(tmp_path) -> None:
    config_file = tmp_path / "config.ini"
    config_file.write_text("[DEFAULT]\nmax_workers = many\n", encoding="utf-8")

    with pytest.raises(ConfigurationError):
        ConfigManager(config_file).load_config()


def test_out_of_range_override_raises_configuration_error(tmp_path) -> None:
    with pytest.raises(ConfigurationError, match="validation failed"):
        ConfigManager(tmp_path / "config.ini").load_config({"max_workers": 100})
