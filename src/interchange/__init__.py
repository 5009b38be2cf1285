"""Import/export of the configuration as a restricted YAML dialect."""

from src.interchange.document import (
    InterchangeConfig,
    InterchangeStop,
    InterchangeStyle,
    export_document,
    from_snapshot,
    parse_document,
    render_document,
    to_snapshot,
)
from src.interchange.grammar import InterchangeParseError, parse_tree

__all__ = [
    "InterchangeConfig",
    "InterchangeParseError",
    "InterchangeStop",
    "InterchangeStyle",
    "export_document",
    "from_snapshot",
    "parse_document",
    "parse_tree",
    "render_document",
    "to_snapshot",
]
