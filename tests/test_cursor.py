"""Tests for the character cursor and lexical scanners."""

import pytest

from xsdscan.cursor import (
    Cursor,
    local_name,
    scan_attributes,
    scan_quoted_value,
    scan_tag,
    scan_tag_name,
    skip_tag_end,
)
from xsdscan.errors import UnexpectedCharacterError, UnexpectedEndOfInputError


def test_advance_and_peek():
    cursor = Cursor("ab")
    assert cursor.peek() == "a"
    assert cursor.peek(1) == "b"
    assert cursor.peek(2) is None

    assert cursor.advance() == "a"
    assert cursor.advance() == "b"
    assert cursor.advance() is None
    assert cursor.exhausted
    assert cursor.position == 2


def test_matches_does_not_move_cursor():
    cursor = Cursor("<!-- note -->")
    cursor.advance()
    assert cursor.matches("!--")
    assert not cursor.matches("?")
    assert cursor.matches("note", start=5)
    assert cursor.position == 1


def test_skip_past_and_missing_literal():
    cursor = Cursor("<!-- note --><xs:element/>")
    cursor.skip_past("-->")
    assert cursor.peek() == "<"

    with pytest.raises(UnexpectedEndOfInputError):
        cursor.skip_past("-->")


def test_location_is_one_based():
    cursor = Cursor("a\nbc")
    assert cursor.location(0) == (1, 1)
    assert cursor.location(3) == (2, 2)
    # Offsets past the end clamp to the end of text
    assert cursor.location(100) == (2, 3)


def test_error_carries_location():
    cursor = Cursor("<xs:schema>\n  oops")
    error = cursor.error(UnexpectedCharacterError, "Unexpected character: 'o'", 14)
    assert isinstance(error, UnexpectedCharacterError)
    assert error.position == 14
    assert (error.line, error.column) == (2, 3)
    assert str(error).endswith("at line 2, column 3")


def test_local_name():
    assert local_name("xs:integer") == "integer"
    assert local_name("integer") == "integer"
    assert local_name(None) is None


def test_scan_tag_name_stops_before_terminator():
    cursor = Cursor('xs:element name="a">')
    assert scan_tag_name(cursor) == "xs:element"
    assert cursor.peek() == " "

    cursor = Cursor("xs:all/>")
    assert scan_tag_name(cursor) == "xs:all"
    assert cursor.peek() == "/"


def test_scan_tag_name_at_end_of_input():
    with pytest.raises(UnexpectedEndOfInputError):
        scan_tag_name(Cursor("xs:elem"))


def test_scan_quoted_value_reads_sequentially():
    cursor = Cursor('targetNamespace="urn:a" elementFormDefault="qualified">')
    assert scan_quoted_value(cursor) == "urn:a"
    cursor.skip_whitespace()
    assert scan_quoted_value(cursor) == "qualified"
    cursor.skip_whitespace()
    assert scan_quoted_value(cursor) is None
    # The tag terminator is left for the caller
    assert cursor.peek() == ">"


def test_scan_quoted_value_ignores_attribute_key():
    """Whatever quoted value comes next is returned, whatever its key."""
    cursor = Cursor('attributeFormDefault="unqualified">')
    assert scan_quoted_value(cursor) == "unqualified"


def test_scan_quoted_value_empty_and_whitespace():
    assert scan_quoted_value(Cursor('a="">')) is None
    assert scan_quoted_value(Cursor(' a="x">')) is None
    assert scan_quoted_value(Cursor("")) is None


def test_scan_attributes_keyed():
    cursor = Cursor(" name=\"Foo\"\n    type='xs:string' />")
    attributes, self_closing = scan_attributes(cursor)
    assert attributes == {"name": "Foo", "type": "xs:string"}
    assert self_closing is True
    assert cursor.exhausted


def test_scan_attributes_open_tag():
    cursor = Cursor(' name = "Foo">rest')
    attributes, self_closing = scan_attributes(cursor)
    assert attributes == {"name": "Foo"}
    assert self_closing is False
    assert cursor.peek() == "r"


@pytest.mark.parametrize(
    "text",
    [
        " name=Foo>",
        ' name"Foo">',
        " / >",
    ],
)
def test_scan_attributes_malformed(text):
    with pytest.raises(UnexpectedCharacterError):
        scan_attributes(Cursor(text))


@pytest.mark.parametrize("text", [' name="Foo"', ' name="Foo', " name"])
def test_scan_attributes_unterminated(text):
    with pytest.raises(UnexpectedEndOfInputError):
        scan_attributes(Cursor(text))


def test_scan_tag_opening_and_closing():
    cursor = Cursor('<xs:element name="Foo"></xs:element>')
    assert cursor.advance() == "<"
    tag = scan_tag(cursor)
    assert tag.name == "xs:element"
    assert tag.local_name == "element"
    assert tag.prefix == "xs"
    assert tag.position == 0
    assert tag.attributes == {"name": "Foo"}
    assert not tag.closing
    assert str(tag) == "<xs:element>"

    assert cursor.advance() == "<"
    closing = scan_tag(cursor)
    assert closing.closing
    assert closing.name == "xs:element"
    assert closing.position == 23
    assert str(closing) == "</xs:element>"
    assert cursor.exhausted


def test_scan_tag_unprefixed_self_closing():
    cursor = Cursor("<all/>")
    cursor.advance()
    tag = scan_tag(cursor)
    assert tag.prefix is None
    assert tag.local_name == "all"
    assert tag.self_closing


def test_skip_tag_end_ignores_attribute_syntax():
    cursor = Cursor(' name=bad note="a > b"/><next>')
    assert skip_tag_end(cursor) is True
    assert cursor.peek() == "<"

    cursor = Cursor(" anything at all><next>")
    assert skip_tag_end(cursor) is False
    assert cursor.matches("<next>")


def test_skip_tag_end_unterminated():
    with pytest.raises(UnexpectedEndOfInputError):
        skip_tag_end(Cursor(' name="x"'))
    with pytest.raises(UnexpectedEndOfInputError):
        skip_tag_end(Cursor(' name="x>'))
