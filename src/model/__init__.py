"""Configuration model: value types and the mutable session."""

from src.model.entities import (
    Abbreviation,
    ConfigSnapshot,
    DisplaySettings,
    LocalizationStrings,
    RouteBinding,
    RouteStyle,
    composite_key,
)
from src.model.session import ConfigSession

__all__ = [
    "Abbreviation",
    "ConfigSession",
    "ConfigSnapshot",
    "DisplaySettings",
    "LocalizationStrings",
    "RouteBinding",
    "RouteStyle",
    "composite_key",
]
