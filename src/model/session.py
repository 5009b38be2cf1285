"""Mutable configuration session owned by the panel for its lifetime."""

from __future__ import annotations

from dataclasses import replace
import threading
from typing import Any, Sequence

from src.logic import ordering
from src.model.entities import (
    DEFAULT_STYLE_COLOR,
    Abbreviation,
    ConfigSnapshot,
    DisplaySettings,
    LocalizationStrings,
    RouteBinding,
    RouteStyle,
    StopInfo,
)


class ConfigSession:
    """Local cache of the device configuration plus the dirty flag.

    Created from a snapshot on load and reset wholesale on reload or import.
    All mutations go through this object; `snapshot()` hands out an
    immutable view for encoding and saving.
    """

    def __init__(self, snapshot: ConfigSnapshot | None = None) -> None:
        self._lock = threading.RLock()
        self._stop_cache: dict[str, StopInfo] = {}
        self._dirty = False
        self._load(snapshot or ConfigSnapshot())

    def _load(self, snapshot: ConfigSnapshot) -> None:
        self._settings = snapshot.settings
        self._localization = snapshot.localization
        self._bindings = tuple(snapshot.bindings)
        self._order = tuple(snapshot.order)
        self._abbreviations = list(snapshot.abbreviations)
        self._styles = list(snapshot.styles)

    def reset(self, snapshot: ConfigSnapshot) -> None:
        """Replace all configuration state; the stop cache survives."""
        with self._lock:
            self._load(snapshot)
            self._dirty = False

    def snapshot(self) -> ConfigSnapshot:
        with self._lock:
            return ConfigSnapshot(
                settings=self._settings,
                localization=self._localization,
                bindings=self._bindings,
                order=self._order,
                abbreviations=tuple(self._abbreviations),
                styles=tuple(self._styles),
            )

    # Dirty flag

    @property
    def dirty(self) -> bool:
        with self._lock:
            return self._dirty

    def mark_dirty(self) -> None:
        with self._lock:
            self._dirty = True

    def mark_clean(self) -> None:
        with self._lock:
            self._dirty = False

    # Bindings and order

    @property
    def bindings(self) -> tuple[RouteBinding, ...]:
        with self._lock:
            return self._bindings

    @property
    def order(self) -> tuple[str, ...]:
        with self._lock:
            return self._order

    def ordered_bindings(self) -> tuple[RouteBinding, ...]:
        with self._lock:
            return ordering.apply_order(self._bindings, self._order)

    def add_binding(self, binding: RouteBinding) -> bool:
        """Add a binding; returns False if its key already exists."""
        with self._lock:
            if binding.stop_name is None:
                binding = replace(binding, stop_name=self.stop_name(binding.stop_id) or binding.stop_id)
            bindings, order = ordering.add_binding(self._bindings, self._order, binding)
            if len(bindings) == len(self._bindings):
                return False
            self._bindings, self._order = bindings, order
            self._dirty = True
            return True

    def remove_binding(self, route_id: str, stop_id: str) -> bool:
        with self._lock:
            bindings, order = ordering.remove_binding(self._bindings, self._order, route_id, stop_id)
            removed = len(bindings) != len(self._bindings)
            self._bindings, self._order = bindings, order
            self._dirty = True
            return removed

    def reorder(self, keys: Sequence[str]) -> None:
        with self._lock:
            self._bindings, self._order = ordering.reorder(self._bindings, keys)
            self._dirty = True

    def move(self, dragged_key: str, target_key: str, above: bool) -> None:
        with self._lock:
            self._order = ordering.move_key(self._order, dragged_key, target_key, above)
            self._dirty = True

    def clear_routes(self) -> None:
        with self._lock:
            self._bindings = ()
            self._order = ()
            self._dirty = True

    # Abbreviations

    @property
    def abbreviations(self) -> tuple[Abbreviation, ...]:
        with self._lock:
            return tuple(self._abbreviations)

    def add_abbreviation(self, from_: str = "", to: str = "") -> int:
        with self._lock:
            self._abbreviations.append(Abbreviation(from_=from_, to=to))
            self._dirty = True
            return len(self._abbreviations) - 1

    def update_abbreviation(self, index: int, **changes: str) -> Abbreviation:
        with self._lock:
            updated = replace(self._abbreviations[index], **changes)
            self._abbreviations[index] = updated
            self._dirty = True
            return updated

    def remove_abbreviation(self, index: int) -> None:
        with self._lock:
            del self._abbreviations[index]
            self._dirty = True

    # Route styles

    @property
    def styles(self) -> tuple[RouteStyle, ...]:
        with self._lock:
            return tuple(self._styles)

    def add_style(self, route_id: str = "", display_name: str = "", color: str = DEFAULT_STYLE_COLOR) -> int:
        with self._lock:
            self._styles.append(RouteStyle(route_id=route_id, display_name=display_name, color=color))
            self._dirty = True
            return len(self._styles) - 1

    def update_style(self, index: int, **changes: str) -> RouteStyle:
        with self._lock:
            updated = replace(self._styles[index], **changes)
            self._styles[index] = updated
            self._dirty = True
            return updated

    def select_style_route(self, index: int, route_id: str) -> RouteStyle:
        """Point a style at a route, filling an empty name and the route color."""
        with self._lock:
            style = self._styles[index]
            changes: dict[str, str] = {"route_id": route_id}
            if route_id:
                option = next((opt for opt in self.route_options() if opt["route_id"] == route_id), None)
                if option is not None:
                    if not style.display_name:
                        changes["display_name"] = option["display_name"]
                    if option["color"]:
                        changes["color"] = "#" + option["color"].lstrip("#")
            return self.update_style(index, **changes)

    def remove_style(self, index: int) -> None:
        with self._lock:
            del self._styles[index]
            self._dirty = True

    # Settings and localization

    @property
    def settings(self) -> DisplaySettings:
        with self._lock:
            return self._settings

    def update_settings(self, **changes: Any) -> DisplaySettings:
        """Apply settings changes; these are written immediately, never dirty."""
        with self._lock:
            self._settings = replace(self._settings, **changes)
            return self._settings

    @property
    def localization(self) -> LocalizationStrings:
        with self._lock:
            return self._localization

    def update_localization(self, **changes: str) -> LocalizationStrings:
        with self._lock:
            self._localization = replace(self._localization, **changes)
            self._dirty = True
            return self._localization

    # Stop metadata cache

    def cached_stop(self, stop_id: str) -> StopInfo | None:
        with self._lock:
            return self._stop_cache.get(stop_id)

    def cache_stop(self, stop_id: str, name: str | None, routes: Sequence[dict]) -> None:
        with self._lock:
            previous = self._stop_cache.get(stop_id)
            if name is None and previous is not None:
                name = previous.name
            self._stop_cache[stop_id] = StopInfo(name=name, routes=tuple(routes))

    def apply_stop_routes(self, stop_id: str, routes: Sequence[dict]) -> None:
        """Fill display metadata of bindings at `stop_id` from its route list."""
        by_route = {route.get("routeId"): route for route in routes}
        with self._lock:
            updated = []
            for binding in self._bindings:
                info = by_route.get(binding.route_id) if binding.stop_id == stop_id else None
                if info is not None:
                    headsigns = info.get("headsigns") or []
                    binding = replace(
                        binding,
                        route_name=info.get("name") or binding.route_id,
                        route_color=info.get("color") or None,
                        headsign=headsigns[0] if headsigns else "",
                    )
                updated.append(binding)
            self._bindings = tuple(updated)

    def stop_name(self, stop_id: str) -> str | None:
        info = self.cached_stop(stop_id)
        return info.name if info else None

    def route_name(self, route_id: str) -> str:
        with self._lock:
            for info in self._stop_cache.values():
                for route in info.routes:
                    if route.get("routeId") == route_id:
                        return route.get("name") or route_id
        return route_id

    def route_color(self, route_id: str) -> str | None:
        with self._lock:
            for info in self._stop_cache.values():
                for route in info.routes:
                    if route.get("routeId") == route_id and route.get("color"):
                        return route["color"]
        return None

    def route_options(self) -> list[dict[str, Any]]:
        """Distinct routes of the current bindings with display name and color."""
        with self._lock:
            options = []
            seen: set[str] = set()
            for binding in self._bindings:
                if binding.route_id in seen:
                    continue
                seen.add(binding.route_id)
                options.append(
                    {
                        "route_id": binding.route_id,
                        "display_name": binding.route_name or self.route_name(binding.route_id),
                        "color": binding.route_color or self.route_color(binding.route_id),
                    }
                )
            return options

    def routes_summary(self) -> str:
        with self._lock:
            count = len(self._bindings)
            stops = len({binding.stop_id for binding in self._bindings})
        if count == 0:
            return "No routes configured."
        route_label = "route" if count == 1 else "routes"
        stop_label = "stop" if stops == 1 else "stops"
        return f"Displaying {count} {route_label} at {stops} {stop_label}."


__all__ = ["ConfigSession"]
