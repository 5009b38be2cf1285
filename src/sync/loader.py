"""Loading the configuration from the device and backfilling route metadata."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
import logging

from src.codec.fields import (
    decode_abbreviations,
    decode_route_styles,
    decode_schedule,
    decode_sort_order,
)
from src.data import entities
from src.data.entity_gateway import EntityGateway
from src.data.metadata_client import MetadataClient, MetadataClientError
from src.model.entities import (
    DEFAULT_BASE_URL,
    ConfigSnapshot,
    DisplaySettings,
    LocalizationStrings,
)
from src.model.session import ConfigSession

logger = logging.getLogger(__name__)


def read_snapshot(gateway: EntityGateway) -> ConfigSnapshot:
    """Read every entity concurrently and decode them into a snapshot.

    Unreadable entities fall back to defaults; this never raises for device
    errors.
    """
    with ThreadPoolExecutor(max_workers=len(entities.SWITCHES + entities.SELECTS + entities.TEXTS)) as pool:
        switches = {entity_id: pool.submit(gateway.get_switch, entity_id) for entity_id in entities.SWITCHES}
        selects = {entity_id: pool.submit(gateway.get_select, entity_id) for entity_id in entities.SELECTS}
        texts = {entity_id: pool.submit(gateway.get_text, entity_id) for entity_id in entities.TEXTS}
    switch = {entity_id: future.result() for entity_id, future in switches.items()}
    select = {entity_id: future.result() for entity_id, future in selects.items()}
    text = {entity_id: future.result() for entity_id, future in texts.items()}

    defaults = DisplaySettings()
    settings = DisplaySettings(
        show_line_icons=switch[entities.SHOW_LINE_ICONS],
        scroll_headsigns=switch[entities.SCROLL_HEADSIGNS],
        flip_display=switch[entities.FLIP_DISPLAY],
        time_display=select[entities.TIME_DISPLAY] or defaults.time_display,
        time_units=select[entities.TIME_UNITS] or defaults.time_units,
        list_mode=select[entities.LIST_MODE] or defaults.list_mode,
        base_url=text[entities.BASE_URL] or DEFAULT_BASE_URL,
    )

    default_labels = LocalizationStrings()
    localization = LocalizationStrings(
        now=text[entities.NOW_STR] or default_labels.now,
        hours_short=text[entities.HOURS_SHORT_STR] or default_labels.hours_short,
        min_long=text[entities.MIN_LONG_STR] or default_labels.min_long,
        min_short=text[entities.MIN_SHORT_STR] or default_labels.min_short,
    )

    bindings = decode_schedule(text[entities.SCHEDULE])
    logger.info("Loaded %d route bindings from %s", len(bindings), gateway.base_url)
    return ConfigSnapshot(
        settings=settings,
        localization=localization,
        bindings=tuple(bindings),
        order=tuple(decode_sort_order(text[entities.SORT_ORDER])),
        abbreviations=tuple(decode_abbreviations(text[entities.ABBREVIATIONS])),
        styles=tuple(decode_route_styles(text[entities.ROUTE_STYLES])),
    )


def refresh_route_metadata(session: ConfigSession, client: MetadataClient) -> int:
    """Fetch route lists for uncached stops and fill binding display fields.

    Returns the number of stops fetched. Failed stops are skipped.
    """
    fetched = 0
    stop_ids = list(dict.fromkeys(binding.stop_id for binding in session.bindings))
    for stop_id in stop_ids:
        cached = session.cached_stop(stop_id)
        if cached is not None:
            session.apply_stop_routes(stop_id, cached.routes)
            continue
        try:
            routes = client.get_stop_routes(stop_id)
        except MetadataClientError as exc:
            logger.warning("Could not fetch routes for stop %s: %s", stop_id, exc)
            continue
        session.cache_stop(stop_id, None, routes)
        session.apply_stop_routes(stop_id, routes)
        fetched += 1
    return fetched


def load_session(
    session: ConfigSession, gateway: EntityGateway, client: MetadataClient | None = None
) -> ConfigSession:
    """Reset `session` from the device and backfill display metadata."""
    session.reset(read_snapshot(gateway))
    if client is not None:
        refresh_route_metadata(session, client)
    return session


__all__ = ["load_session", "read_snapshot", "refresh_route_metadata"]
