"""Block-structured YAML subset: tokenizer and recursive-descent parser.

The dialect covers what configuration sharing needs: nested block mappings
and block sequences with space indentation, and single-line scalars (plain,
single-quoted or double-quoted). Flow collections, anchors, tags and
multi-line scalars are not supported.

Parsing yields a tree of plain ``dict`` / ``list`` / ``str`` / ``None``
nodes. Lines that do not fit the surrounding block structure are skipped
rather than rejected.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import re
from typing import Any

logger = logging.getLogger(__name__)

ITEM = "item"
ENTRY = "entry"
SCALAR = "scalar"

_ENTRY = re.compile(r"^([A-Za-z_][A-Za-z0-9_\-]*)\s*:(?:\s+(.*)|([\"'].*))?$")
_ESCAPES = {'"': '"', "\\": "\\", "n": "\n", "t": "\t", "/": "/"}


class InterchangeParseError(ValueError):
    """Raised for input that cannot be read as the interchange dialect at all."""


@dataclass(frozen=True)
class Token:
    """One structural element of a line, at its column."""

    kind: str
    indent: int
    line: int
    key: str | None = None
    value: str | None = None


def parse_scalar(raw: str) -> str:
    """Decode a single-line scalar, dropping any trailing comment."""
    text = raw.strip()
    if text.startswith('"'):
        out = []
        index = 1
        while index < len(text):
            char = text[index]
            if char == "\\" and index + 1 < len(text):
                out.append(_ESCAPES.get(text[index + 1], text[index + 1]))
                index += 2
                continue
            if char == '"':
                return "".join(out)
            out.append(char)
            index += 1
        return "".join(out)
    if text.startswith("'"):
        out = []
        index = 1
        while index < len(text):
            char = text[index]
            if char == "'":
                if text[index + 1 : index + 2] == "'":
                    out.append("'")
                    index += 2
                    continue
                return "".join(out)
            out.append(char)
            index += 1
        return "".join(out)
    comment = text.find(" #")
    if comment >= 0:
        text = text[:comment]
    return text.strip()


def tokenize(text: str | bytes) -> list[Token]:
    if isinstance(text, bytes):
        try:
            text = text.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise InterchangeParseError("Document is not valid UTF-8 text") from exc
    if not isinstance(text, str):
        raise InterchangeParseError(f"Document must be text, not {type(text).__name__}")

    tokens: list[Token] = []
    for number, line in enumerate(text.splitlines(), start=1):
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        content = line.lstrip(" ")
        if content[:1] == "\t":
            raise InterchangeParseError(f"Line {number}: tabs are not allowed in indentation")
        indent = len(line) - len(content)
        content = content.rstrip()

        while content == "-" or content.startswith("- "):
            tokens.append(Token(ITEM, indent, number))
            rest = content[1:]
            remainder = rest.lstrip(" ")
            indent += 1 + len(rest) - len(remainder)
            content = remainder
        if not content or content.startswith("#"):
            continue

        match = _ENTRY.match(content)
        if match:
            value = match.group(2) if match.group(2) is not None else match.group(3)
            if value is not None and (not value.strip() or value.strip().startswith("#")):
                value = None
            tokens.append(Token(ENTRY, indent, number, key=match.group(1), value=value))
        else:
            tokens.append(Token(SCALAR, indent, number, value=content))
    return tokens


class _Parser:
    def __init__(self, tokens: list[Token]) -> None:
        self._tokens = tokens
        self._pos = 0

    def _peek(self) -> Token | None:
        if self._pos < len(self._tokens):
            return self._tokens[self._pos]
        return None

    def _skip(self, reason: str) -> None:
        token = self._tokens[self._pos]
        logger.warning("Skipping line %d (%s)", token.line, reason)
        self._pos += 1

    def parse_document(self) -> dict[str, Any]:
        root: dict[str, Any] = {}
        while self._peek() is not None:
            token = self._peek()
            if token.kind == ENTRY:
                root.update(self._parse_mapping(token.indent))
            else:
                self._skip("not a top-level key")
        return root

    def _parse_block(self, indent: int) -> Any:
        token = self._peek()
        if token.kind == ITEM:
            return self._parse_sequence(indent)
        if token.kind == ENTRY:
            return self._parse_mapping(indent)
        self._pos += 1
        return parse_scalar(token.value or "")

    def _parse_sequence(self, indent: int) -> list[Any]:
        items: list[Any] = []
        while True:
            token = self._peek()
            if token is None or token.indent < indent:
                break
            if token.indent > indent:
                self._skip("unexpected indentation in sequence")
                continue
            if token.kind != ITEM:
                break
            self._pos += 1
            child = self._peek()
            if child is None or child.indent <= indent:
                items.append(None)
                continue
            items.append(self._parse_block(child.indent))
        return items

    def _parse_mapping(self, indent: int) -> dict[str, Any]:
        mapping: dict[str, Any] = {}
        while True:
            token = self._peek()
            if token is None or token.indent < indent:
                break
            if token.indent > indent:
                self._skip("unexpected indentation in mapping")
                continue
            if token.kind != ENTRY:
                self._skip("not a key in mapping")
                continue
            self._pos += 1
            if token.value is not None:
                mapping[token.key] = parse_scalar(token.value)
                continue
            child = self._peek()
            if child is not None and (
                child.indent > indent or (child.indent == indent and child.kind == ITEM)
            ):
                mapping[token.key] = self._parse_block(child.indent)
            else:
                mapping[token.key] = None
        return mapping


def parse_tree(text: str | bytes) -> dict[str, Any]:
    """Parse a document into a tree of dicts, lists, strings and None."""
    return _Parser(tokenize(text)).parse_document()


__all__ = ["InterchangeParseError", "Token", "parse_scalar", "parse_tree", "tokenize"]
