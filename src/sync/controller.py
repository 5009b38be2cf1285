"""Panel-facing facade over the session, device and metadata services."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, Callable, Iterable, Sequence

from src.config import AppConfig
from src.data import entities
from src.data.entity_gateway import EntityGateway
from src.data.event_stream import EventSubscriber
from src.data.geocoder import Geocoder
from src.data.metadata_client import MetadataClient, MetadataClientError, RouteInfo, Stop
from src.interchange.document import export_document, parse_document
from src.model.entities import (
    LIST_MODE_VALUES,
    TIME_DISPLAY_VALUES,
    TIME_UNITS_VALUES,
    RouteBinding,
    composite_key,
)
from src.model.session import ConfigSession
from src.sync.importer import ImportPlan, build_import_plan
from src.sync.loader import load_session
from src.sync.orchestrator import SaveOrchestrator, SaveResult, StatusCallback

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_RADIUS_MILES = 0.25


@dataclass(frozen=True)
class FoundRoute:
    """A route serving a searched stop, offered for adding."""

    route_id: str
    stop_id: str
    route_name: str
    stop_name: str
    route_color: str | None = None
    headsigns: tuple[str, ...] = ()

    @property
    def key(self) -> str:
        return composite_key(self.route_id, self.stop_id)


class PanelController:
    """Operations a configuration panel (or CLI) performs.

    Route list edits queue a debounced save when auto-save is on and only
    mark the session dirty otherwise. Abbreviation, style and label edits
    always wait for an explicit save. Switches and selects are written to
    the device immediately.
    """

    def __init__(
        self,
        gateway: EntityGateway,
        metadata: MetadataClient,
        geocoder: Geocoder | None = None,
        session: ConfigSession | None = None,
        orchestrator: SaveOrchestrator | None = None,
        auto_save: bool = True,
        on_status: StatusCallback | None = None,
    ) -> None:
        self.session = session or ConfigSession()
        self.gateway = gateway
        self.metadata = metadata
        self.geocoder = geocoder or Geocoder()
        self.orchestrator = orchestrator or SaveOrchestrator(self.session, gateway, on_status=on_status)
        self.auto_save = auto_save

    @classmethod
    def from_config(cls, config: AppConfig, on_status: StatusCallback | None = None) -> "PanelController":
        session = ConfigSession()
        gateway = EntityGateway(config.device.base_url, timeout_seconds=config.device.timeout_seconds)
        orchestrator = SaveOrchestrator(
            session,
            gateway,
            debounce_seconds=config.save.debounce_seconds,
            settle_seconds=config.save.settle_seconds,
            on_status=on_status,
        )
        return cls(
            gateway=gateway,
            metadata=MetadataClient(config.metadata.api_base),
            geocoder=Geocoder(config.metadata.geocoder_url),
            session=session,
            orchestrator=orchestrator,
            auto_save=config.save.auto_save,
        )

    # Lifecycle

    def load(self) -> ConfigSession:
        """Replace local state with the device's configuration."""
        return load_session(self.session, self.gateway, self.metadata)

    def _route_list_changed(self) -> None:
        if self.auto_save:
            self.orchestrator.request_save()

    # Route bindings

    def add_route(
        self,
        route_id: str,
        stop_id: str,
        route_name: str = "",
        headsign: str = "",
        route_color: str | None = None,
        stop_name: str | None = None,
    ) -> bool:
        binding = RouteBinding(
            route_id=route_id,
            stop_id=stop_id,
            route_name=route_name,
            headsign=headsign,
            route_color=route_color,
            stop_name=stop_name,
        )
        added = self.session.add_binding(binding)
        if added:
            logger.info("Added route %s at stop %s", route_id, stop_id)
            self._route_list_changed()
        return added

    def add_found_routes(self, routes: Iterable[FoundRoute]) -> int:
        added = 0
        for route in routes:
            headsign = route.headsigns[0] if route.headsigns else ""
            if self.session.add_binding(
                RouteBinding(
                    route_id=route.route_id,
                    stop_id=route.stop_id,
                    route_name=route.route_name,
                    headsign=headsign,
                    route_color=route.route_color,
                    stop_name=route.stop_name,
                )
            ):
                added += 1
        if added:
            self._route_list_changed()
        return added

    def remove_route(self, route_id: str, stop_id: str) -> bool:
        removed = self.session.remove_binding(route_id, stop_id)
        logger.info("Removed route %s at stop %s", route_id, stop_id)
        self._route_list_changed()
        return removed

    def reorder_routes(self, keys: Sequence[str]) -> None:
        self.session.reorder(keys)
        self._route_list_changed()

    def move_route(self, dragged_key: str, target_key: str, above: bool) -> None:
        self.session.move(dragged_key, target_key, above)
        self._route_list_changed()

    # Text edits saved on demand

    def add_abbreviation(self, from_: str = "", to: str = "") -> int:
        return self.session.add_abbreviation(from_, to)

    def update_abbreviation(self, index: int, **changes: str) -> None:
        self.session.update_abbreviation(index, **changes)

    def remove_abbreviation(self, index: int) -> None:
        self.session.remove_abbreviation(index)

    def add_route_style(self) -> int:
        return self.session.add_style()

    def select_style_route(self, index: int, route_id: str) -> None:
        self.session.select_style_route(index, route_id)

    def update_route_style(self, index: int, **changes: str) -> None:
        self.session.update_style(index, **changes)

    def remove_route_style(self, index: int) -> None:
        self.session.remove_style(index)

    def set_labels(self, **changes: str) -> None:
        self.session.update_localization(**changes)

    def save(self) -> SaveResult | None:
        return self.orchestrator.save_now()

    # Immediate settings

    def set_show_line_icons(self, enabled: bool) -> None:
        self.gateway.set_switch(entities.SHOW_LINE_ICONS, enabled)
        self.session.update_settings(show_line_icons=enabled)

    def set_scroll_headsigns(self, enabled: bool) -> None:
        self.gateway.set_switch(entities.SCROLL_HEADSIGNS, enabled)
        self.session.update_settings(scroll_headsigns=enabled)

    def set_flip_display(self, enabled: bool) -> None:
        self.gateway.set_switch(entities.FLIP_DISPLAY, enabled)
        self.session.update_settings(flip_display=enabled)

    def set_time_display(self, value: str) -> None:
        _check_choice(value, TIME_DISPLAY_VALUES, "time display")
        self.gateway.set_select(entities.TIME_DISPLAY, value)
        self.session.update_settings(time_display=value)

    def set_time_units(self, value: str) -> None:
        _check_choice(value, TIME_UNITS_VALUES, "time units")
        self.gateway.set_select(entities.TIME_UNITS, value)
        self.session.update_settings(time_units=value)

    def set_list_mode(self, value: str) -> None:
        """Change list mode; the tracker only applies it after a reload."""
        _check_choice(value, LIST_MODE_VALUES, "list mode")
        self.gateway.set_select(entities.LIST_MODE, value)
        self.session.update_settings(list_mode=value)
        self.gateway.press_reload()

    def set_base_url(self, url: str) -> bool:
        """Point the tracker at another API server.

        Routes belong to a server, so a changed URL clears them. Returns
        True if the routes were cleared.
        """
        url = url.strip()
        if not url:
            raise ValueError("Please enter a valid URL")
        cleared = False
        if url != self.session.settings.base_url:
            self.session.clear_routes()
            cleared = True
        self.gateway.set_text(entities.BASE_URL, url)
        self.session.update_settings(base_url=url)
        if cleared:
            self._route_list_changed()
        return cleared

    def subscribe_events(
        self, on_change: Callable[[dict[str, Any]], None] | None = None, reconnect_seconds: float = 5.0
    ) -> EventSubscriber:
        """Start applying the device's switch state events to the session."""
        subscriber = EventSubscriber(
            self.gateway, self.session, reconnect_seconds=reconnect_seconds, on_change=on_change
        )
        subscriber.start()
        return subscriber

    # Import / export

    def export_yaml(self) -> str:
        return export_document(self.session.snapshot())

    def import_yaml(self, text: str) -> SaveResult:
        """Import a document: one batch write, reload signal, full reload.

        A save that is running finishes first and a queued save is dropped,
        so the reloaded session matches the imported document. Raises
        InterchangeParseError or ImportRejectedError before anything is
        written; local state is then left untouched.
        """
        plan: ImportPlan = build_import_plan(parse_document(text))
        logger.info("Importing %d entities", len(plan.entity_ids))
        return self.orchestrator.import_batch(plan.texts, plan.selects, after=self.load)

    # Discovery

    def search_stops(self, query: str, radius_miles: float = DEFAULT_SEARCH_RADIUS_MILES) -> list[Stop]:
        lat, lng = self.geocoder.locate(query)
        return self.metadata.get_stops_near(lat, lng, radius_miles)

    def find_routes(self, stops: Iterable[Stop]) -> list[FoundRoute]:
        """List routes at the given stops and remember the stops' names."""
        found = []
        for stop in stops:
            try:
                routes = self.metadata.get_stop_routes(stop.stop_id)
            except MetadataClientError as exc:
                logger.warning("Could not fetch routes for stop %s: %s", stop.stop_id, exc)
                continue
            self.session.cache_stop(stop.stop_id, stop.name, routes)
            for info in map(RouteInfo.from_json, routes):
                if not info.route_id:
                    continue
                found.append(
                    FoundRoute(
                        route_id=info.route_id,
                        stop_id=stop.stop_id,
                        route_name=info.name,
                        stop_name=stop.name,
                        route_color=info.color,
                        headsigns=info.headsigns,
                    )
                )
        return found


def filter_routes(routes: Iterable[FoundRoute], text: str) -> list[FoundRoute]:
    """Case-insensitive match on route name, headsigns or stop name."""
    needle = text.lower()
    return [
        route
        for route in routes
        if needle in route.route_name.lower()
        or needle in route.stop_name.lower()
        or any(needle in headsign.lower() for headsign in route.headsigns)
    ]


def _check_choice(value: str, allowed: tuple[str, ...], name: str) -> None:
    if value not in allowed:
        raise ValueError(f"Invalid {name} {value!r}; expected one of {', '.join(allowed)}")


__all__ = ["FoundRoute", "PanelController", "filter_routes"]
