"""Data structures for the device's transit display configuration."""

from __future__ import annotations

from dataclasses import dataclass, field

KEY_SEPARATOR = "|"

TIME_DISPLAY_VALUES = ("arrival", "departure")
TIME_UNITS_VALUES = ("long", "short", "none")
LIST_MODE_VALUES = ("sequential", "nextPerRoute")

DEFAULT_BASE_URL = "wss://tt.horner.tj/"
DEFAULT_TIME_DISPLAY = "arrival"
DEFAULT_TIME_UNITS = "short"
DEFAULT_LIST_MODE = "nextPerRoute"
DEFAULT_STYLE_COLOR = "#ffffff"


def composite_key(route_id: str, stop_id: str) -> str:
    """Return the display-order key for a route/stop pair."""
    return f"{route_id}{KEY_SEPARATOR}{stop_id}"


@dataclass(frozen=True)
class RouteBinding:
    """One route shown at one stop, with a time offset in minutes."""

    route_id: str
    stop_id: str
    offset: str = "0"
    route_name: str = ""
    headsign: str = ""
    route_color: str | None = None
    stop_name: str | None = None

    @property
    def key(self) -> str:
        return composite_key(self.route_id, self.stop_id)


@dataclass(frozen=True)
class Abbreviation:
    """Substring replacement applied to headsigns; empty `to` deletes."""

    from_: str
    to: str = ""


@dataclass(frozen=True)
class RouteStyle:
    """Display name and color override for a route. `color` is '#RRGGBB'."""

    route_id: str = ""
    display_name: str = ""
    color: str = DEFAULT_STYLE_COLOR

    @property
    def is_complete(self) -> bool:
        return bool(self.route_id) and bool(self.display_name)


@dataclass(frozen=True)
class LocalizationStrings:
    """Labels the display uses for relative times."""

    now: str = "Now"
    hours_short: str = "h"
    min_long: str = "min"
    min_short: str = "m"


@dataclass(frozen=True)
class DisplaySettings:
    """Switch and select entities plus the tracker API base URL."""

    show_line_icons: bool = False
    scroll_headsigns: bool = False
    flip_display: bool = False
    time_display: str = DEFAULT_TIME_DISPLAY
    time_units: str = DEFAULT_TIME_UNITS
    list_mode: str = DEFAULT_LIST_MODE
    base_url: str = DEFAULT_BASE_URL


@dataclass(frozen=True)
class StopInfo:
    """Cached metadata for a stop: its name (if known) and its routes."""

    name: str | None
    routes: tuple[dict, ...] = ()


@dataclass(frozen=True)
class ConfigSnapshot:
    """Immutable view of the whole configuration at one point in time."""

    settings: DisplaySettings = field(default_factory=DisplaySettings)
    localization: LocalizationStrings = field(default_factory=LocalizationStrings)
    bindings: tuple[RouteBinding, ...] = ()
    order: tuple[str, ...] = ()
    abbreviations: tuple[Abbreviation, ...] = ()
    styles: tuple[RouteStyle, ...] = ()


__all__ = [
    "KEY_SEPARATOR",
    "TIME_DISPLAY_VALUES",
    "TIME_UNITS_VALUES",
    "LIST_MODE_VALUES",
    "DEFAULT_BASE_URL",
    "DEFAULT_TIME_DISPLAY",
    "DEFAULT_TIME_UNITS",
    "DEFAULT_LIST_MODE",
    "DEFAULT_STYLE_COLOR",
    "composite_key",
    "RouteBinding",
    "Abbreviation",
    "RouteStyle",
    "LocalizationStrings",
    "DisplaySettings",
    "StopInfo",
    "ConfigSnapshot",
]
