"""Character cursor and lexical scanners.

The cursor is a plain integer offset into the source text. Scanners advance it
strictly forward; literal keywords are detected by slicing the text at the
current offset (:meth:`Cursor.matches`) rather than by pushing characters back.

Input must already be decoded into ``str``; offsets are character offsets.

Typical usage::

    cursor = Cursor('<xs:element name="Foo" minOccurs="0"/>')
    assert cursor.advance() == "<"
    tag = scan_tag(cursor)
    tag.name                # 'xs:element'
    tag.attributes          # {'name': 'Foo', 'minOccurs': '0'}
    tag.self_closing        # True
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from .errors import (
    SchemaParseError,
    UnexpectedCharacterError,
    UnexpectedEndOfInputError,
)

NAME_TERMINATORS = frozenset(">/")
QUOTES = frozenset("\"'")


class Cursor:
    """Forward-only reader over an in-memory document."""

    def __init__(self, text: str) -> None:
        self.text = text
        self.position = 0

    @property
    def exhausted(self) -> bool:
        return self.position >= len(self.text)

    def advance(self) -> Optional[str]:
        """Return the next character, or ``None`` once the text is consumed."""
        if self.exhausted:
            return None
        char = self.text[self.position]
        self.position += 1
        return char

    def peek(self, offset: int = 0) -> Optional[str]:
        index = self.position + offset
        if index < len(self.text):
            return self.text[index]
        return None

    def matches(self, literal: str, start: Optional[int] = None) -> bool:
        """Test whether ``literal`` appears verbatim at ``start`` (default: here)."""
        begin = self.position if start is None else start
        return self.text[begin : begin + len(literal)] == literal

    def skip_whitespace(self) -> None:
        while not self.exhausted and self.text[self.position].isspace():
            self.position += 1

    def skip_past(self, literal: str) -> None:
        """Move just beyond the next occurrence of ``literal``."""
        index = self.text.find(literal, self.position)
        if index == -1:
            raise self.error(
                UnexpectedEndOfInputError, f"Unexpected end of input, expected '{literal}'"
            )
        self.position = index + len(literal)

    def location(self, position: Optional[int] = None) -> Tuple[int, int]:
        """Return the 1-based (line, column) of ``position``."""
        offset = self.position if position is None else min(position, len(self.text))
        line = self.text.count("\n", 0, offset) + 1
        column = offset - (self.text.rfind("\n", 0, offset) + 1) + 1
        return line, column

    def error(
        self,
        error_class: type,
        message: str,
        position: Optional[int] = None,
    ) -> SchemaParseError:
        """Build ``error_class`` annotated with the location of ``position``."""
        offset = self.position if position is None else position
        line, column = self.location(offset)
        return error_class(message, position=offset, line=line, column=column)


@dataclass
class Tag:
    """An opening, self-closing or closing tag as seen by the scanners."""

    name: str
    position: int
    attributes: Dict[str, str] = field(default_factory=dict)
    self_closing: bool = False
    closing: bool = False

    @property
    def local_name(self) -> str:
        return local_name(self.name) or ""

    @property
    def prefix(self) -> Optional[str]:
        if ":" in self.name:
            return self.name.split(":", 1)[0]
        return None

    def __str__(self) -> str:
        return f"</{self.name}>" if self.closing else f"<{self.name}>"


def local_name(value: Optional[str]) -> Optional[str]:
    """Strip a namespace prefix (``xs:integer`` -> ``integer``)."""
    if value is None:
        return None
    if ":" in value:
        return value.split(":", 1)[1]
    return value


def scan_tag_name(cursor: Cursor) -> str:
    """Read a tag name, including any ``prefix:``.

    Stops at whitespace, ``>`` or ``/`` without consuming the terminator, so the
    cursor is left at the start of the attribute list (or the tag end).
    """
    start = cursor.position
    while True:
        char = cursor.peek()
        if char is None:
            raise cursor.error(UnexpectedEndOfInputError, "Unexpected end of input in tag name")
        if char.isspace() or char in NAME_TERMINATORS:
            break
        cursor.advance()
    return cursor.text[start : cursor.position]


def scan_quoted_value(cursor: Cursor) -> Optional[str]:
    """Return the next double-quoted value inside the current tag.

    Scans forward until ``>``, whitespace, or ``"``. On ``"`` everything up to
    the matching ``"`` is returned. The attribute key in front of the value is
    not checked, so successive calls only line up with the intended attributes
    when the document declares them in the same order. The closing ``>`` of the
    tag is never consumed. Returns ``None`` when no quote was found or the
    value is empty.
    """
    while True:
        char = cursor.peek()
        if char is None or char == ">":
            return None
        cursor.advance()
        if char.isspace():
            return None
        if char == '"':
            start = cursor.position
            cursor.skip_past('"')
            value = cursor.text[start : cursor.position - 1]
            return value or None


def scan_attributes(cursor: Cursor) -> Tuple[Dict[str, str], bool]:
    """Read the attribute list of an opening tag keyed by attribute name.

    Consumes through the terminating ``>`` (or ``/>``).

    Returns:
        ``(attributes, self_closing)``.

    Raises:
        UnexpectedCharacterError: Malformed ``key="value"`` syntax.
        UnexpectedEndOfInputError: The tag is not terminated.
    """
    attributes: Dict[str, str] = {}
    while True:
        cursor.skip_whitespace()
        char = cursor.peek()
        if char is None:
            raise cursor.error(UnexpectedEndOfInputError, "Unexpected end of input in tag")
        if char == ">":
            cursor.advance()
            return attributes, False
        if char == "/":
            if not cursor.matches("/>"):
                raise cursor.error(UnexpectedCharacterError, "Unexpected character: /")
            cursor.position += 2
            return attributes, True

        key = _scan_attribute_key(cursor)
        cursor.skip_whitespace()
        if cursor.peek() != "=":
            raise _unexpected(cursor, f"expected '=' after attribute '{key}'")
        cursor.advance()
        cursor.skip_whitespace()
        quote = cursor.peek()
        if quote not in QUOTES:
            raise _unexpected(cursor, f"expected quoted value for attribute '{key}'")
        cursor.advance()
        start = cursor.position
        cursor.skip_past(quote)
        attributes[key] = cursor.text[start : cursor.position - 1]


def scan_tag(cursor: Cursor) -> Tag:
    """Scan a tag whose ``<`` has just been consumed."""
    position = cursor.position - 1
    if cursor.peek() == "/":
        cursor.advance()
        name = scan_tag_name(cursor)
        cursor.skip_whitespace()
        if cursor.peek() != ">":
            raise _unexpected(cursor, f"expected '>' to close </{name}>")
        cursor.advance()
        return Tag(name=name, position=position, closing=True)

    name = scan_tag_name(cursor)
    attributes, self_closing = scan_attributes(cursor)
    return Tag(name=name, position=position, attributes=attributes, self_closing=self_closing)


def skip_tag_end(cursor: Cursor) -> bool:
    """Consume the rest of a tag through its ``>`` without reading attributes.

    Quoted values are stepped over, so a ``>`` inside one does not end the tag.
    Returns True when the tag ended with ``/>``.
    """
    while True:
        char = cursor.advance()
        if char is None:
            raise cursor.error(UnexpectedEndOfInputError, "Unexpected end of input in tag")
        if char in QUOTES:
            cursor.skip_past(char)
        elif char == ">":
            return cursor.text[cursor.position - 2] == "/"


def _scan_attribute_key(cursor: Cursor) -> str:
    start = cursor.position
    while True:
        char = cursor.peek()
        if char is None:
            raise cursor.error(UnexpectedEndOfInputError, "Unexpected end of input in tag")
        if char.isspace() or char == "=":
            break
        if char in NAME_TERMINATORS or char in QUOTES:
            raise _unexpected(cursor, "malformed attribute")
        cursor.advance()
    return cursor.text[start : cursor.position]


def _unexpected(cursor: Cursor, reason: str) -> SchemaParseError:
    char = cursor.peek()
    if char is None:
        return cursor.error(UnexpectedEndOfInputError, f"Unexpected end of input, {reason}")
    return cursor.error(UnexpectedCharacterError, f"Unexpected character: {char!r} ({reason})")
