"""Interchange document: projection from the parse tree and generation.

Document shape::

    color:
      - id: "c_28813F"
        hex: "28813F"
    transit_tracker:
      base_url: "wss://tt.horner.tj/"
      time_display: "arrival"
      show_units: "short"
      list_mode: "nextPerRoute"
      stops:
        - stop_id: "st:1_12345"
          routes:
            - "st:1_100"
      styles:
        - route_id: "st:1_100"
          name: "100"
          color: "c_28813F"
      abbreviations:
        - from: "Street"
          to: "St"
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Any

from src.interchange.grammar import parse_tree
from src.logic.ordering import add_binding, apply_order
from src.model.entities import (
    DEFAULT_BASE_URL,
    DEFAULT_LIST_MODE,
    DEFAULT_TIME_DISPLAY,
    DEFAULT_TIME_UNITS,
    LIST_MODE_VALUES,
    TIME_DISPLAY_VALUES,
    TIME_UNITS_VALUES,
    Abbreviation,
    ConfigSnapshot,
    DisplaySettings,
    RouteBinding,
    RouteStyle,
)

logger = logging.getLogger(__name__)

COLOR_ID_PREFIX = "c_"
DEFAULT_IMPORT_COLOR = "028e51"


@dataclass(frozen=True)
class InterchangeStop:
    stop_id: str
    routes: tuple[str, ...] = ()


@dataclass(frozen=True)
class InterchangeStyle:
    """A style entry; `color` is a palette id or a direct hex value."""

    route_id: str
    name: str = ""
    color: str = ""


@dataclass(frozen=True)
class InterchangeConfig:
    """Configuration as carried by an interchange document.

    Empty scalar strings mean the document did not set that value.
    """

    colors: dict[str, str] = field(default_factory=dict)
    base_url: str = ""
    time_display: str = ""
    show_units: str = ""
    list_mode: str = ""
    stops: tuple[InterchangeStop, ...] = ()
    styles: tuple[InterchangeStyle, ...] = ()
    abbreviations: tuple[Abbreviation, ...] = ()

    @property
    def has_content(self) -> bool:
        """True when at least one usable section or setting was found."""
        return bool(
            any(stop.routes for stop in self.stops)
            or self.styles
            or self.abbreviations
            or self.base_url
            or self.time_display
            or self.show_units
            or self.list_mode
        )

    def resolve_color(self, color: str) -> str | None:
        """Return bare hex for a palette reference or a direct color."""
        if not color:
            return None
        if color in self.colors:
            return self.colors[color].lstrip("#") or None
        value = color.lstrip("#")
        if value.startswith(COLOR_ID_PREFIX):
            value = value[len(COLOR_ID_PREFIX) :]
        return value or None


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _choice(value: Any, allowed: tuple[str, ...], name: str) -> str:
    text = _text(value)
    if text and text not in allowed:
        logger.warning("Ignoring %s %r; expected one of %s", name, text, ", ".join(allowed))
        return ""
    return text


def project(tree: dict[str, Any]) -> InterchangeConfig:
    """Map a parse tree onto InterchangeConfig, ignoring misshapen parts."""
    colors: dict[str, str] = {}
    for item in _as_list(tree.get("color")):
        entry = _as_dict(item)
        color_id = _text(entry.get("id"))
        if color_id:
            colors[color_id] = _text(entry.get("hex"))

    tracker = _as_dict(tree.get("transit_tracker"))

    stops = []
    for item in _as_list(tracker.get("stops")):
        entry = _as_dict(item)
        stop_id = _text(entry.get("stop_id"))
        if not stop_id:
            continue
        routes = tuple(route for route in map(_text, _as_list(entry.get("routes"))) if route)
        stops.append(InterchangeStop(stop_id=stop_id, routes=routes))

    styles = []
    for item in _as_list(tracker.get("styles")):
        entry = _as_dict(item)
        route_id = _text(entry.get("route_id"))
        if not route_id:
            continue
        styles.append(
            InterchangeStyle(route_id=route_id, name=_text(entry.get("name")), color=_text(entry.get("color")))
        )

    abbreviations = []
    for item in _as_list(tracker.get("abbreviations")):
        entry = _as_dict(item)
        from_ = _text(entry.get("from"))
        if not from_.strip():
            continue
        abbreviations.append(Abbreviation(from_=from_, to=_text(entry.get("to"))))

    return InterchangeConfig(
        colors=colors,
        base_url=_text(tracker.get("base_url")),
        time_display=_choice(tracker.get("time_display"), TIME_DISPLAY_VALUES, "time_display"),
        show_units=_choice(tracker.get("show_units"), TIME_UNITS_VALUES, "show_units"),
        list_mode=_choice(tracker.get("list_mode"), LIST_MODE_VALUES, "list_mode"),
        stops=tuple(stops),
        styles=tuple(styles),
        abbreviations=tuple(abbreviations),
    )


def parse_document(text: str | bytes) -> InterchangeConfig:
    return project(parse_tree(text))


def _quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
    return f'"{escaped}"'


def render_document(config: InterchangeConfig) -> str:
    """Generate the interchange text for a configuration."""
    styles = [style for style in config.styles if style.route_id]
    style_colors: list[str | None] = []
    palette: list[str] = []
    for style in styles:
        hex_value = config.resolve_color(style.color)
        hex_value = hex_value.upper() if hex_value else None
        style_colors.append(hex_value)
        if hex_value and hex_value not in palette:
            palette.append(hex_value)

    lines: list[str] = []
    if palette:
        lines.append("color:")
        for hex_value in palette:
            lines.append(f"  - id: {_quote(COLOR_ID_PREFIX + hex_value)}")
            lines.append(f"    hex: {_quote(hex_value)}")
        lines.append("")

    lines.append("transit_tracker:")
    lines.append(f"  base_url: {_quote(config.base_url or DEFAULT_BASE_URL)}")
    lines.append(f"  time_display: {_quote(config.time_display or DEFAULT_TIME_DISPLAY)}")
    lines.append(f"  show_units: {_quote(config.show_units or DEFAULT_TIME_UNITS)}")
    lines.append(f"  list_mode: {_quote(config.list_mode or DEFAULT_LIST_MODE)}")

    stops = [stop for stop in config.stops if stop.routes]
    if stops:
        lines.append("  stops:")
        for stop in stops:
            lines.append(f"    - stop_id: {_quote(stop.stop_id)}")
            lines.append("      routes:")
            for route_id in stop.routes:
                lines.append(f"        - {_quote(route_id)}")

    if styles:
        lines.append("  styles:")
        for style, hex_value in zip(styles, style_colors):
            lines.append(f"    - route_id: {_quote(style.route_id)}")
            if style.name:
                lines.append(f"      name: {_quote(style.name)}")
            if hex_value:
                lines.append(f"      color: {_quote(COLOR_ID_PREFIX + hex_value)}")

    if config.abbreviations:
        lines.append("  abbreviations:")
        for abbreviation in config.abbreviations:
            lines.append(f"    - from: {_quote(abbreviation.from_)}")
            lines.append(f"      to: {_quote(abbreviation.to)}")

    return "\n".join(lines) + "\n"


def from_snapshot(snapshot: ConfigSnapshot) -> InterchangeConfig:
    """Build the exportable configuration; stops follow display order."""
    grouped: dict[str, list[str]] = {}
    for binding in apply_order(snapshot.bindings, snapshot.order):
        grouped.setdefault(binding.stop_id, []).append(binding.route_id)

    colors: dict[str, str] = {}
    styles = []
    for style in snapshot.styles:
        if not style.route_id:
            continue
        hex_value = style.color.lstrip("#").upper()
        if hex_value:
            colors[COLOR_ID_PREFIX + hex_value] = hex_value
        styles.append(InterchangeStyle(route_id=style.route_id, name=style.display_name, color=hex_value))

    settings = snapshot.settings
    return InterchangeConfig(
        colors=colors,
        base_url=settings.base_url,
        time_display=settings.time_display,
        show_units=settings.time_units,
        list_mode=settings.list_mode,
        stops=tuple(InterchangeStop(stop_id, tuple(routes)) for stop_id, routes in grouped.items()),
        styles=tuple(styles),
        abbreviations=tuple(
            abbreviation for abbreviation in snapshot.abbreviations if abbreviation.from_.strip()
        ),
    )


def merge_abbreviations(abbreviations: tuple[Abbreviation, ...]) -> tuple[Abbreviation, ...]:
    """One entry per `from`, keeping the first position and the last `to`."""
    merged: dict[str, str] = {}
    for abbreviation in abbreviations:
        merged[abbreviation.from_] = abbreviation.to
    return tuple(Abbreviation(from_=from_, to=to) for from_, to in merged.items())


def to_snapshot(config: InterchangeConfig) -> ConfigSnapshot:
    """Convert a parsed document into a configuration snapshot."""
    bindings: tuple[RouteBinding, ...] = ()
    order: tuple[str, ...] = ()
    for stop in config.stops:
        for route_id in stop.routes:
            bindings, order = add_binding(bindings, order, RouteBinding(route_id=route_id, stop_id=stop.stop_id))

    styles = tuple(
        RouteStyle(
            route_id=style.route_id,
            display_name=style.name or style.route_id,
            color="#" + (config.resolve_color(style.color) or DEFAULT_IMPORT_COLOR),
        )
        for style in config.styles
    )

    settings = DisplaySettings(
        time_display=config.time_display or DEFAULT_TIME_DISPLAY,
        time_units=config.show_units or DEFAULT_TIME_UNITS,
        list_mode=config.list_mode or DEFAULT_LIST_MODE,
        base_url=config.base_url or DEFAULT_BASE_URL,
    )
    return ConfigSnapshot(
        settings=settings,
        bindings=bindings,
        order=order,
        abbreviations=merge_abbreviations(config.abbreviations),
        styles=styles,
    )


def export_document(snapshot: ConfigSnapshot) -> str:
    return render_document(from_snapshot(snapshot))


__all__ = [
    "COLOR_ID_PREFIX",
    "DEFAULT_IMPORT_COLOR",
    "InterchangeConfig",
    "InterchangeStop",
    "InterchangeStyle",
    "export_document",
    "from_snapshot",
    "merge_abbreviations",
    "parse_document",
    "project",
    "render_document",
    "to_snapshot",
]
