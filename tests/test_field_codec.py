from __future__ import annotations

from src.codec.fields import (
    decode_abbreviations,
    decode_route_styles,
    decode_schedule,
    decode_sort_order,
    encode_abbreviations,
    encode_fields,
    encode_route_styles,
    encode_schedule,
    encode_sort_order,
)
from src.data import entities
from src.model.entities import (
    Abbreviation,
    ConfigSnapshot,
    LocalizationStrings,
    RouteBinding,
    RouteStyle,
)


def test_decode_schedule_defaults_offset_and_drops_short_records() -> None:
    bindings = decode_schedule("st:1_100,st:1_12345,2;st:1_200,st:1_12345;garbage;;")

    assert [(b.route_id, b.stop_id, b.offset) for b in bindings] == [
        ("st:1_100", "st:1_12345", "2"),
        ("st:1_200", "st:1_12345", "0"),
    ]


def test_decode_schedule_keeps_first_duplicate_key() -> None:
    bindings = decode_schedule("r1,s1,5;r1,s1,9")

    assert len(bindings) == 1
    assert bindings[0].offset == "5"


def test_decode_schedule_empty_inputs() -> None:
    assert decode_schedule("") == []
    assert decode_schedule("   ") == []
    assert decode_schedule(None) == []


def test_schedule_round_trip_substitutes_default_offset() -> None:
    original = [
        RouteBinding("r1", "s1", "3"),
        RouteBinding("r2", "s1", ""),
        RouteBinding("r3", "s2"),
    ]

    decoded = decode_schedule(encode_schedule(original))

    assert [(b.route_id, b.stop_id, b.offset) for b in decoded] == [
        ("r1", "s1", "3"),
        ("r2", "s1", "0"),
        ("r3", "s2", "0"),
    ]


def test_encode_schedule_skips_ids_with_delimiters() -> None:
    encoded = encode_schedule([RouteBinding("r,1", "s1"), RouteBinding("r2", "s;2"), RouteBinding("r3", "s3")])

    assert encoded == "r3,s3,0"


def test_sort_order_discards_blank_entries() -> None:
    assert decode_sort_order("a|1;; ;b|2;") == ["a|1", "b|2"]
    assert encode_sort_order(["a|1", "", "b|2"]) == "a|1;b|2"


def test_decode_abbreviations() -> None:
    abbreviations = decode_abbreviations("Street;St\nAvenue\n  ;ignored\n;also ignored")

    assert abbreviations == [Abbreviation("Street", "St"), Abbreviation("Avenue", "")]


def test_abbreviations_round_trip_drops_blank_from_and_is_idempotent() -> None:
    original = [Abbreviation("Street", "St"), Abbreviation("   ", "x"), Abbreviation("Station", "")]

    once = decode_abbreviations(encode_abbreviations(original))
    twice = decode_abbreviations(encode_abbreviations(once))

    assert once == [Abbreviation("Street", "St"), Abbreviation("Station", "")]
    assert twice == once
    assert encode_abbreviations(once) == "Street;St\nStation"


def test_route_styles_convert_color_marker() -> None:
    styles = decode_route_styles("st:1_100;Express;28813F\nbad;line")

    assert styles == [RouteStyle("st:1_100", "Express", "#28813F")]
    assert encode_route_styles(styles) == "st:1_100;Express;28813F"


def test_encode_route_styles_skips_incomplete_entries() -> None:
    styles = [
        RouteStyle("", "No route", "#ffffff"),
        RouteStyle("r1", "", "#ffffff"),
        RouteStyle("r2", "Two", "#00ff00"),
    ]

    assert encode_route_styles(styles) == "r2;Two;00ff00"


def test_decode_never_raises_on_junk() -> None:
    junk = ";;,,\n\n;\x00|||"

    decode_schedule(junk)
    decode_sort_order(junk)
    decode_abbreviations(junk)
    decode_route_styles(junk)


def test_encode_fields_writes_eight_entities_in_display_order() -> None:
    snapshot = ConfigSnapshot(
        localization=LocalizationStrings(now="Jetzt", hours_short="Std", min_long="Min", min_short="m"),
        bindings=(RouteBinding("r1", "s1"), RouteBinding("r2", "s1")),
        order=("r2|s1", "r1|s1"),
        abbreviations=(Abbreviation("Street", "St"),),
        styles=(RouteStyle("r1", "One", "#112233"),),
    )

    fields = encode_fields(snapshot)

    assert list(fields) == [
        entities.SCHEDULE,
        entities.SORT_ORDER,
        entities.ABBREVIATIONS,
        entities.ROUTE_STYLES,
        entities.NOW_STR,
        entities.MIN_LONG_STR,
        entities.MIN_SHORT_STR,
        entities.HOURS_SHORT_STR,
    ]
    assert fields[entities.SCHEDULE] == "r2,s1,0;r1,s1,0"
    assert fields[entities.SORT_ORDER] == "r2|s1;r1|s1"
    assert fields[entities.ROUTE_STYLES] == "r1;One;112233"
    assert fields[entities.NOW_STR] == "Jetzt"
    assert fields[entities.HOURS_SHORT_STR] == "Std"
