"""Flat-text encodings for the device's configuration text entities.

Four fields carry the structured configuration:

* schedule:      ``route,stop,offset`` records joined by ``;``
* sort order:    ``route|stop`` keys joined by ``;``
* abbreviations: ``from[;to]`` records joined by newlines
* route styles:  ``route;name;RRGGBB`` records joined by newlines

Decoding never raises; malformed records are dropped. The firmware reading
these fields has no escape syntax, so encoding skips records whose values
contain a delimiter of their field instead of writing a record that would
be split differently on the device.
"""

from __future__ import annotations

import logging
from typing import Iterable

from src.data import entities
from src.logic.ordering import apply_order
from src.model.entities import (
    KEY_SEPARATOR,
    Abbreviation,
    ConfigSnapshot,
    RouteBinding,
    RouteStyle,
)

logger = logging.getLogger(__name__)

RECORD_SEPARATOR = ";"
FIELD_SEPARATOR = ","
LINE_SEPARATOR = "\n"
DEFAULT_OFFSET = "0"

_SCHEDULE_RESERVED = (RECORD_SEPARATOR, FIELD_SEPARATOR, KEY_SEPARATOR, LINE_SEPARATOR)
_LINE_RESERVED = (RECORD_SEPARATOR, LINE_SEPARATOR)


def _has_reserved(values: Iterable[str], reserved: Iterable[str]) -> bool:
    return any(mark in value for value in values for mark in reserved)


def _lines(config: str) -> list[str]:
    return [line.rstrip("\r") for line in config.split(LINE_SEPARATOR)]


def decode_schedule(config: str | None) -> list[RouteBinding]:
    """Decode ``route,stop[,offset]`` records; duplicate keys keep the first."""
    if not config or not config.strip():
        return []

    bindings: list[RouteBinding] = []
    seen: set[str] = set()
    for record in config.split(RECORD_SEPARATOR):
        parts = record.strip().split(FIELD_SEPARATOR)
        if len(parts) < 2:
            continue
        route_id, stop_id = parts[0].strip(), parts[1].strip()
        if not route_id or not stop_id:
            continue
        offset = parts[2].strip() if len(parts) > 2 else ""
        binding = RouteBinding(route_id=route_id, stop_id=stop_id, offset=offset or DEFAULT_OFFSET)
        if binding.key in seen:
            continue
        seen.add(binding.key)
        bindings.append(binding)
    return bindings


def encode_schedule(bindings: Iterable[RouteBinding]) -> str:
    records = []
    for binding in bindings:
        offset = binding.offset or DEFAULT_OFFSET
        values = (binding.route_id, binding.stop_id, offset)
        if not binding.route_id or not binding.stop_id:
            continue
        if _has_reserved(values, _SCHEDULE_RESERVED):
            logger.warning("Skipping schedule record with reserved characters: %r", values)
            continue
        records.append(FIELD_SEPARATOR.join(values))
    return RECORD_SEPARATOR.join(records)


def decode_sort_order(config: str | None) -> list[str]:
    if not config or not config.strip():
        return []
    return [key.strip() for key in config.split(RECORD_SEPARATOR) if key.strip()]


def encode_sort_order(order: Iterable[str]) -> str:
    keys = []
    for key in order:
        if not key or not key.strip():
            continue
        if _has_reserved((key,), _LINE_RESERVED):
            logger.warning("Skipping sort order key with reserved characters: %r", key)
            continue
        keys.append(key)
    return RECORD_SEPARATOR.join(keys)


def decode_abbreviations(config: str | None) -> list[Abbreviation]:
    if not config or not config.strip():
        return []

    abbreviations = []
    for line in _lines(config):
        parts = line.split(RECORD_SEPARATOR)
        if not parts[0].strip():
            continue
        abbreviations.append(Abbreviation(from_=parts[0], to=parts[1] if len(parts) > 1 else ""))
    return abbreviations


def encode_abbreviations(abbreviations: Iterable[Abbreviation]) -> str:
    lines = []
    for abbreviation in abbreviations:
        if not abbreviation.from_.strip():
            continue
        if _has_reserved((abbreviation.from_, abbreviation.to), _LINE_RESERVED):
            logger.warning("Skipping abbreviation with reserved characters: %r", abbreviation)
            continue
        if abbreviation.to:
            lines.append(f"{abbreviation.from_}{RECORD_SEPARATOR}{abbreviation.to}")
        else:
            lines.append(abbreviation.from_)
    return LINE_SEPARATOR.join(lines)


def normalize_hex(color: str | None) -> str:
    """Strip a leading '#' from a color; the wire form carries bare hex."""
    return (color or "").strip().lstrip("#")


def decode_route_styles(config: str | None) -> list[RouteStyle]:
    if not config or not config.strip():
        return []

    styles = []
    for line in _lines(config):
        parts = line.split(RECORD_SEPARATOR)
        if len(parts) < 3:
            continue
        styles.append(RouteStyle(route_id=parts[0], display_name=parts[1], color="#" + normalize_hex(parts[2])))
    return styles


def encode_route_styles(styles: Iterable[RouteStyle]) -> str:
    lines = []
    for style in styles:
        if not style.is_complete:
            continue
        hex_value = normalize_hex(style.color)
        if _has_reserved((style.route_id, style.display_name, hex_value), _LINE_RESERVED):
            logger.warning("Skipping route style with reserved characters: %r", style)
            continue
        lines.append(RECORD_SEPARATOR.join((style.route_id, style.display_name, hex_value)))
    return LINE_SEPARATOR.join(lines)


def encode_fields(snapshot: ConfigSnapshot) -> dict[str, str]:
    """Encode a snapshot into the eight text entity values written on save.

    The schedule is written in display order.
    """
    localization = snapshot.localization
    return {
        entities.SCHEDULE: encode_schedule(apply_order(snapshot.bindings, snapshot.order)),
        entities.SORT_ORDER: encode_sort_order(snapshot.order),
        entities.ABBREVIATIONS: encode_abbreviations(snapshot.abbreviations),
        entities.ROUTE_STYLES: encode_route_styles(snapshot.styles),
        entities.NOW_STR: localization.now,
        entities.MIN_LONG_STR: localization.min_long,
        entities.MIN_SHORT_STR: localization.min_short,
        entities.HOURS_SHORT_STR: localization.hours_short,
    }


__all__ = [
    "decode_schedule",
    "encode_schedule",
    "decode_sort_order",
    "encode_sort_order",
    "decode_abbreviations",
    "encode_abbreviations",
    "decode_route_styles",
    "encode_route_styles",
    "normalize_hex",
    "encode_fields",
]
