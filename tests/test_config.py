from __future__ import annotations

import textwrap

import pytest

from src.config import AppConfig, load_config


VALID_YAML = """
device:
  base_url: "http://192.168.1.50"
  timeout_seconds: 10

metadata:
  api_base: "https://tt.horner.tj"
  geocoder_url: "https://nominatim.openstreetmap.org/search"

save:
  auto_save: false
  debounce_seconds: 1.5
  settle_seconds: 0.25

logging:
  level: "INFO"
  log_dir: "logs/"
"""


def _write_yaml(tmp_path, contents: str) -> str:
    path = tmp_path / "config.yaml"
    path.write_text(textwrap.dedent(contents))
    return str(path)


def test_load_config_valid(tmp_path, monkeypatch) -> None:
    path = _write_yaml(tmp_path, VALID_YAML)

    monkeypatch.delenv("TRANSIT_DEVICE_URL", raising=False)
    config = load_config(path)

    assert isinstance(config, AppConfig)
    assert config.device.base_url == "http://192.168.1.50"
    assert config.device.timeout_seconds == 10
    assert config.metadata.api_base == "https://tt.horner.tj"
    assert config.save.auto_save is False
    assert config.save.debounce_seconds == 1.5
    assert config.save.settle_seconds == 0.25
    assert config.log.level == "INFO"


def test_load_config_env_overrides_device_url(tmp_path, monkeypatch) -> None:
    path = _write_yaml(tmp_path, VALID_YAML)

    monkeypatch.setenv("TRANSIT_DEVICE_URL", "http://tracker.lan")
    config = load_config(path)

    assert config.device.base_url == "http://tracker.lan"


def test_load_config_save_section_optional(tmp_path, monkeypatch) -> None:
    yaml_text = """
    device:
      base_url: "http://192.168.1.50"
      timeout_seconds: 5
    metadata:
      api_base: "https://tt.horner.tj"
      geocoder_url: "https://nominatim.openstreetmap.org/search"
    logging:
      level: "DEBUG"
      log_dir: "logs/"
    """
    path = _write_yaml(tmp_path, yaml_text)

    monkeypatch.delenv("TRANSIT_DEVICE_URL", raising=False)
    config = load_config(path)

    assert config.save.auto_save is True
    assert config.save.debounce_seconds == 0.3
    assert config.save.settle_seconds == 0.5


def test_load_config_missing_file(tmp_path) -> None:
    missing_path = tmp_path / "does_not_exist.yaml"

    with pytest.raises(ValueError):
        load_config(str(missing_path))


def test_load_config_missing_device_section(tmp_path) -> None:
    yaml_text = """
    metadata:
      api_base: "https://tt.horner.tj"
      geocoder_url: "https://nominatim.openstreetmap.org/search"
    logging:
      level: "INFO"
      log_dir: "logs/"
    """
    path = _write_yaml(tmp_path, yaml_text)

    with pytest.raises(ValueError):
        load_config(path)


def test_load_config_missing_timeout(tmp_path) -> None:
    yaml_text = """
    device:
      base_url: "http://192.168.1.50"
    metadata:
      api_base: "https://tt.horner.tj"
      geocoder_url: "https://nominatim.openstreetmap.org/search"
    logging:
      level: "INFO"
      log_dir: "logs/"
    """
    path = _write_yaml(tmp_path, yaml_text)

    with pytest.raises(ValueError):
        load_config(path)


def test_load_config_section_must_be_mapping(tmp_path) -> None:
    yaml_text = """
    device: "http://192.168.1.50"
    metadata:
      api_base: "https://tt.horner.tj"
      geocoder_url: "https://nominatim.openstreetmap.org/search"
    logging:
      level: "INFO"
      log_dir: "logs/"
    """
    path = _write_yaml(tmp_path, yaml_text)

    with pytest.raises(ValueError):
        load_config(path)
