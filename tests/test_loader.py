from __future__ import annotations

from unittest.mock import MagicMock

from src.data import entities
from src.data.metadata_client import MetadataClientError
from src.model.entities import DEFAULT_BASE_URL, RouteBinding
from src.model.session import ConfigSession
from src.sync.loader import load_session, read_snapshot, refresh_route_metadata


def _gateway(texts=None, selects=None, switches=None) -> MagicMock:
    texts = texts or {}
    selects = selects or {}
    switches = switches or {}
    gateway = MagicMock()
    gateway.base_url = "http://panel.local"
    gateway.get_text.side_effect = lambda entity_id: texts.get(entity_id, "")
    gateway.get_select.side_effect = lambda entity_id: selects.get(entity_id)
    gateway.get_switch.side_effect = lambda entity_id: switches.get(entity_id, False)
    return gateway


def test_read_snapshot_decodes_all_fields() -> None:
    gateway = _gateway(
        texts={
            entities.SCHEDULE: "r1,s1,2;r2,s1",
            entities.SORT_ORDER: "r2|s1;r1|s1",
            entities.ABBREVIATIONS: "Street;St",
            entities.ROUTE_STYLES: "r1;One;112233",
            entities.BASE_URL: "wss://custom/",
            entities.NOW_STR: "Jetzt",
        },
        selects={entities.LIST_MODE: "sequential"},
        switches={entities.FLIP_DISPLAY: True},
    )

    snapshot = read_snapshot(gateway)

    assert [b.key for b in snapshot.bindings] == ["r1|s1", "r2|s1"]
    assert snapshot.order == ("r2|s1", "r1|s1")
    assert snapshot.abbreviations[0].to == "St"
    assert snapshot.styles[0].color == "#112233"
    assert snapshot.settings.base_url == "wss://custom/"
    assert snapshot.settings.list_mode == "sequential"
    assert snapshot.settings.time_units == "short"
    assert snapshot.settings.flip_display is True
    assert snapshot.localization.now == "Jetzt"
    assert snapshot.localization.min_long == "min"


def test_read_snapshot_with_unreachable_device_uses_defaults() -> None:
    snapshot = read_snapshot(_gateway())

    assert snapshot.bindings == ()
    assert snapshot.settings.base_url == DEFAULT_BASE_URL
    assert snapshot.localization.now == "Now"


def test_refresh_route_metadata_fetches_each_stop_once_and_skips_failures() -> None:
    session = ConfigSession()
    for binding in (RouteBinding("r1", "s1"), RouteBinding("r2", "s1"), RouteBinding("r3", "s2")):
        session.add_binding(binding)
    client = MagicMock()

    def get_stop_routes(stop_id):
        if stop_id == "s2":
            raise MetadataClientError("Status 500")
        return [{"routeId": "r1", "name": "One", "color": "abcdef", "headsigns": ["North"]}]

    client.get_stop_routes.side_effect = get_stop_routes

    assert refresh_route_metadata(session, client) == 1
    assert client.get_stop_routes.call_count == 2
    assert session.bindings[0].route_name == "One"
    assert session.bindings[2].route_name == ""

    assert refresh_route_metadata(session, client) == 0
    assert client.get_stop_routes.call_count == 3


def test_load_session_resets_and_uses_cached_metadata() -> None:
    session = ConfigSession()
    session.cache_stop("s1", "Pine St", [{"routeId": "r1", "name": "One"}])
    session.mark_dirty()
    client = MagicMock()

    load_session(session, _gateway(texts={entities.SCHEDULE: "r1,s1,0"}), client)

    assert session.dirty is False
    assert session.bindings[0].route_name == "One"
    client.get_stop_routes.assert_not_called()
