"""Turning a parsed interchange document into device writes."""

from __future__ import annotations

from dataclasses import dataclass, field

from src.codec.fields import (
    encode_abbreviations,
    encode_route_styles,
    encode_schedule,
    encode_sort_order,
)
from src.data import entities
from src.interchange.document import InterchangeConfig, to_snapshot


class ImportRejectedError(ValueError):
    """Raised when a document yields nothing that can be imported."""


@dataclass(frozen=True)
class ImportPlan:
    """Entity values an import writes, in one batch."""

    texts: dict[str, str] = field(default_factory=dict)
    selects: dict[str, str] = field(default_factory=dict)

    @property
    def entity_ids(self) -> tuple[str, ...]:
        return tuple(self.texts) + tuple(self.selects)


def build_import_plan(config: InterchangeConfig) -> ImportPlan:
    """Convert a document into writes; only sections it defines are written."""
    if not config.has_content:
        raise ImportRejectedError("Document contains no stops, styles, abbreviations or settings")

    snapshot = to_snapshot(config)
    texts: dict[str, str] = {}
    if snapshot.bindings:
        texts[entities.SCHEDULE] = encode_schedule(snapshot.bindings)
        texts[entities.SORT_ORDER] = encode_sort_order(snapshot.order)
    if snapshot.styles:
        texts[entities.ROUTE_STYLES] = encode_route_styles(snapshot.styles)
    if snapshot.abbreviations:
        texts[entities.ABBREVIATIONS] = encode_abbreviations(snapshot.abbreviations)
    if config.base_url:
        texts[entities.BASE_URL] = config.base_url

    selects: dict[str, str] = {}
    if config.time_display:
        selects[entities.TIME_DISPLAY] = config.time_display
    if config.show_units:
        selects[entities.TIME_UNITS] = config.show_units
    if config.list_mode:
        selects[entities.LIST_MODE] = config.list_mode
    return ImportPlan(texts=texts, selects=selects)


__all__ = ["ImportPlan", "ImportRejectedError", "build_import_plan"]
