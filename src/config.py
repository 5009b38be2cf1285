"""Configuration loader for the transit display configuration tool."""

from __future__ import annotations

from dataclasses import dataclass
import os
from typing import Any

from dotenv import load_dotenv
import yaml

DEFAULT_DEBOUNCE_SECONDS = 0.3
DEFAULT_SETTLE_SECONDS = 0.5


@dataclass(frozen=True)
class DeviceConfig:
    """Remote entity store (the display device) configuration."""

    base_url: str
    timeout_seconds: int


@dataclass(frozen=True)
class MetadataConfig:
    """Transit metadata and geocoding service configuration."""

    api_base: str
    geocoder_url: str


@dataclass(frozen=True)
class SaveConfig:
    """Save orchestration timing."""

    auto_save: bool
    debounce_seconds: float
    settle_seconds: float


@dataclass(frozen=True)
class LoggingConfig:
    """Logging configuration."""

    level: str
    log_dir: str


@dataclass(frozen=True)
class AppConfig:
    """Top-level application configuration."""

    device: DeviceConfig
    metadata: MetadataConfig
    save: SaveConfig
    log: LoggingConfig


def _require_key(mapping: dict[str, Any], key: str, context: str) -> Any:
    if key not in mapping:
        raise ValueError(f"Missing required key '{key}' in {context} config")
    return mapping[key]


def _require_section(data: dict[str, Any], name: str) -> dict[str, Any]:
    section = _require_key(data, name, name)
    if not isinstance(section, dict):
        raise ValueError(f"'{name}' config must be a mapping")
    return section


def load_config(path: str = "config/config.yaml") -> AppConfig:
    """Load application configuration from a YAML file."""
    load_dotenv()
    try:
        with open(path, "r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except FileNotFoundError as exc:
        raise ValueError(f"Config file not found: {path}") from exc

    if not isinstance(data, dict):
        raise ValueError("Config file must contain a mapping at the top level")

    device_section = _require_section(data, "device")
    metadata_section = _require_section(data, "metadata")
    logging_section = _require_section(data, "logging")
    save_section = data.get("save") or {}
    if not isinstance(save_section, dict):
        raise ValueError("'save' config must be a mapping")

    device_url = os.environ.get("TRANSIT_DEVICE_URL", "").strip()
    device = DeviceConfig(
        base_url=device_url or _require_key(device_section, "base_url", "device"),
        timeout_seconds=_require_key(device_section, "timeout_seconds", "device"),
    )

    metadata = MetadataConfig(
        api_base=_require_key(metadata_section, "api_base", "metadata"),
        geocoder_url=_require_key(metadata_section, "geocoder_url", "metadata"),
    )

    save = SaveConfig(
        auto_save=bool(save_section.get("auto_save", True)),
        debounce_seconds=float(save_section.get("debounce_seconds", DEFAULT_DEBOUNCE_SECONDS)),
        settle_seconds=float(save_section.get("settle_seconds", DEFAULT_SETTLE_SECONDS)),
    )

    logging = LoggingConfig(
        level=_require_key(logging_section, "level", "logging"),
        log_dir=_require_key(logging_section, "log_dir", "logging"),
    )

    return AppConfig(device=device, metadata=metadata, save=save, log=logging)
