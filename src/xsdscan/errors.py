"""Exceptions raised while scanning a schema document.

Every failure aborts the whole parse; there is no recovery or partial result.
Errors carry the absolute character offset at which they were detected and the
equivalent 1-based line/column so callers can point users at the problem.

Example:
    >>> from xsdscan import parse_schema
    >>> from xsdscan.errors import UnexpectedTagError
    >>> try:
    ...     parse_schema('<xs:schema><xs:import namespace="urn:x"/></xs:schema>')
    ... except UnexpectedTagError as exc:
    ...     print(exc.line, exc.column)
    1 12
"""

from __future__ import annotations

from typing import Optional


class SchemaParseError(ValueError):
    """Base class for all parse failures.

    Attributes:
        message: Human-readable description without position info.
        position: Character offset into the source text (if known).
        line: 1-based line of ``position``.
        column: 1-based column of ``position``.
    """

    kind = "parse_error"

    def __init__(
        self,
        message: str,
        position: Optional[int] = None,
        line: Optional[int] = None,
        column: Optional[int] = None,
    ) -> None:
        self.message = message
        self.position = position
        self.line = line
        self.column = column
        if line is not None and column is not None:
            message = f"{message} at line {line}, column {column}"
        super().__init__(message)

    def to_dict(self) -> dict:
        return {
            "error": self.kind,
            "detail": self.message,
            "position": self.position,
            "line": self.line,
            "column": self.column,
        }


class UnexpectedTagError(SchemaParseError):
    """A tag appeared where the grammar does not allow it."""

    kind = "unexpected_tag"


class UnexpectedCharacterError(SchemaParseError):
    """Non-tag text (or a malformed attribute) where only markup is valid."""

    kind = "unexpected_character"


class UnsupportedDatatypeError(SchemaParseError):
    """A ``type``/``base`` value is not one of the built-in scalar kinds."""

    kind = "unsupported_datatype"


class UnexpectedEndOfInputError(SchemaParseError):
    """The text ended before a required terminator."""

    kind = "unexpected_end_of_input"


class MissingAttributeError(SchemaParseError):
    """A construct lacks an attribute it cannot be interpreted without."""

    kind = "missing_attribute"
