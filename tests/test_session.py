from __future__ import annotations

from src.model.entities import ConfigSnapshot, RouteBinding, RouteStyle
from src.model.session import ConfigSession

ROUTES = [
    {"routeId": "r1", "name": "Route 1", "color": "112233", "headsigns": ["North"]},
    {"routeId": "r2", "name": "Route 2", "color": None, "headsigns": []},
]


def test_new_session_is_clean() -> None:
    session = ConfigSession()

    assert session.dirty is False
    assert session.routes_summary() == "No routes configured."


def test_add_binding_fills_stop_name_and_rejects_duplicates() -> None:
    session = ConfigSession()
    session.cache_stop("s1", "Pine St", ROUTES)

    assert session.add_binding(RouteBinding("r1", "s1")) is True
    assert session.add_binding(RouteBinding("r1", "s1", offset="4")) is False
    assert session.add_binding(RouteBinding("r2", "s2")) is True

    assert [b.stop_name for b in session.bindings] == ["Pine St", "s2"]
    assert session.order == ("r1|s1", "r2|s2")
    assert session.dirty is True
    assert session.routes_summary() == "Displaying 2 routes at 2 stops."


def test_reset_clears_dirty_but_keeps_stop_cache() -> None:
    session = ConfigSession()
    session.cache_stop("s1", "Pine St", ROUTES)
    session.add_binding(RouteBinding("r1", "s1"))

    session.reset(ConfigSnapshot(bindings=(RouteBinding("r2", "s1"),)))

    assert session.dirty is False
    assert session.bindings == (RouteBinding("r2", "s1"),)
    assert session.stop_name("s1") == "Pine St"
    assert session.routes_summary() == "Displaying 1 route at 1 stop."


def test_move_and_ordered_bindings() -> None:
    session = ConfigSession(
        ConfigSnapshot(
            bindings=(RouteBinding("a", "1"), RouteBinding("b", "1"), RouteBinding("c", "1")),
            order=("a|1", "b|1", "c|1"),
        )
    )

    session.move("c|1", "a|1", above=True)

    assert [b.key for b in session.ordered_bindings()] == ["c|1", "a|1", "b|1"]
    assert session.dirty is True


def test_settings_updates_do_not_dirty_but_labels_do() -> None:
    session = ConfigSession()

    session.update_settings(flip_display=True, list_mode="sequential")
    assert session.settings.flip_display is True
    assert session.dirty is False

    session.update_localization(now="Jetzt")
    assert session.localization.now == "Jetzt"
    assert session.dirty is True


def test_abbreviation_edits() -> None:
    session = ConfigSession()

    index = session.add_abbreviation("Street", "St")
    session.update_abbreviation(index, to="St.")
    session.add_abbreviation("Avenue")
    session.remove_abbreviation(1)

    assert [(a.from_, a.to) for a in session.abbreviations] == [("Street", "St.")]


def test_apply_stop_routes_fills_binding_metadata() -> None:
    session = ConfigSession(ConfigSnapshot(bindings=(RouteBinding("r1", "s1"), RouteBinding("r1", "s2"))))

    session.apply_stop_routes("s1", ROUTES)

    first, second = session.bindings
    assert (first.route_name, first.route_color, first.headsign) == ("Route 1", "112233", "North")
    assert second.route_name == ""


def test_select_style_route_fills_name_and_color() -> None:
    session = ConfigSession()
    session.cache_stop("s1", "Pine St", ROUTES)
    session.add_binding(RouteBinding("r1", "s1"))
    session.add_binding(RouteBinding("r2", "s1"))
    index = session.add_style()
    named = session.add_style(display_name="Keep me")

    assert session.select_style_route(index, "r1") == RouteStyle("r1", "Route 1", "#112233")
    assert session.select_style_route(named, "r2") == RouteStyle("r2", "Keep me", "#ffffff")


def test_route_options_are_distinct_by_route() -> None:
    session = ConfigSession()
    session.cache_stop("s1", "Pine St", ROUTES)
    session.add_binding(RouteBinding("r1", "s1"))
    session.add_binding(RouteBinding("r1", "s2"))
    session.add_binding(RouteBinding("r9", "s2"))

    assert session.route_options() == [
        {"route_id": "r1", "display_name": "Route 1", "color": "112233"},
        {"route_id": "r9", "display_name": "r9", "color": None},
    ]


def test_clear_routes() -> None:
    session = ConfigSession(ConfigSnapshot(bindings=(RouteBinding("r1", "s1"),), order=("r1|s1",)))

    session.clear_routes()

    assert session.bindings == ()
    assert session.order == ()
    assert session.dirty is True
