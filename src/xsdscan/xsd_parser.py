"""Recursive-descent parser for a constrained subset of XML Schema.

This module turns schema text into the :mod:`xsdscan.models` object graph in a
single left-to-right pass. The assembler (:meth:`XSDParser.parse`) scans the
document for root-level tags and dispatches on the tag's local name; each node
parser consumes exactly the span of its construct, including its closing tag,
and hands control back to its caller.

Supported vocabulary:
    ``schema``, ``element``, ``attribute``, ``simpleType``, ``complexType``,
    ``simpleContent``, ``complexContent``, ``sequence``, ``choice``, ``all``
    (plus the ``restriction``/``extension``/``mixedContent`` children they
    need). Anything else at a parseable position is an error; the XML
    declaration, processing instructions and comments are skipped.

Content models:
    A complex type records a flat :class:`~xsdscan.models.ComplexContent`
    label. By default the bodies of ``sequence``/``choice``/``all`` are
    skipped. With ``ParserConfig(build_particle_tree=True)`` the particle-list
    parsers are wired in and the child declarations are kept in
    ``ComplexType.particles``.

Attribute scanning:
    Attributes are read keyed by name. ``ParserConfig(attribute_scan=
    "positional")`` reads the three ``xs:schema`` root attributes by position
    instead, which only works when they are declared in the order
    targetNamespace, elementFormDefault, attributeFormDefault.

Typical usage:
        from xsdscan.xsd_parser import ParserConfig, parse_schema

        schema = parse_schema(text)
        for node in schema.nodes:
                print(node.kind, node.name)

        tree = parse_schema(text, config=ParserConfig(build_particle_tree=True))

Notes:
* Type references are kept as bare names; nothing is resolved.
* Input must be a decoded ``str``; entity references are not expanded.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Dict, Iterator, List, Optional, Tuple, Union

from .cursor import (
    Cursor,
    Tag,
    local_name,
    scan_quoted_value,
    scan_tag,
    scan_tag_name,
    skip_tag_end,
)
from .errors import (
    MissingAttributeError,
    UnexpectedCharacterError,
    UnexpectedEndOfInputError,
    UnexpectedTagError,
    UnsupportedDatatypeError,
)
from .models import (
    Attribute,
    ComplexContent,
    ComplexContentExtension,
    ComplexContentRestriction,
    ComplexType,
    ComplexTypeRef,
    Datatype,
    Element,
    Node,
    Schema,
    SimpleContent,
    SimpleDatatype,
    SimpleType,
    SimpleTypeRef,
    UseOption,
)

logger = logging.getLogger(__name__)

XSD_PREFIXES = ("xs", "xsd")
ATTRIBUTE_SCAN_MODES = ("keyed", "positional")
BUILTIN_NAMES = frozenset(datatype.value for datatype in SimpleDatatype)

PARTICLE_CONTENT = {
    "sequence": ComplexContent.SEQUENCE,
    "choice": ComplexContent.CHOICE,
    "all": ComplexContent.ALL,
}


@dataclass
class ParserConfig:
    """Configuration for schema parsing behavior.

    Args:
        build_particle_tree: When True, ``sequence``/``choice``/``all`` bodies
            are parsed into ``ComplexType.particles``; otherwise only the flat
            content label is recorded and the bodies are skipped.
        attribute_scan: ``"keyed"`` (match attributes by name) or
            ``"positional"`` (read the ``xs:schema`` root attributes in
            declaration order).
    """

    build_particle_tree: bool = False
    attribute_scan: str = "keyed"

    def __post_init__(self) -> None:
        if self.attribute_scan not in ATTRIBUTE_SCAN_MODES:
            raise ValueError(
                f"attribute_scan must be one of {ATTRIBUTE_SCAN_MODES}, got {self.attribute_scan!r}"
            )

    def to_dict(self) -> dict:
        return asdict(self)


class XSDParser:
    """Parse schema text into a :class:`~xsdscan.models.Schema`.

    A parser instance owns its cursor and is meant for a single call to
    :meth:`parse`.

    Example:
        parser = XSDParser('<xs:schema><xs:element name="Foo"/></xs:schema>')
        schema = parser.parse()
        assert schema.nodes[0].name == "Foo"
    """

    def __init__(self, text: str, config: Optional[ParserConfig] = None) -> None:
        self.cursor = Cursor(text)
        self.config = config or ParserConfig()
        self.xsd_prefix: Optional[str] = None

    def parse(self) -> Schema:
        """Run the assembler over the whole document.

        Returns:
            The parsed :class:`Schema`.

        Raises:
            SchemaParseError: On the first malformed or unsupported construct.
        """
        target_namespace = None
        element_form_default = None
        attribute_form_default = None
        nodes: List[Node] = []

        while True:
            tag = self._next_tag(strict=False, positional_schema=True)
            if tag is None:
                break
            name = tag.local_name
            if tag.closing:
                if name == "schema":
                    continue
                raise self._unexpected_tag(tag)
            logger.debug(f"Dispatching root-level {tag} at offset {tag.position}")
            if name == "schema":
                self.xsd_prefix = tag.prefix
                target_namespace = tag.attributes.get("targetNamespace")
                element_form_default = tag.attributes.get("elementFormDefault")
                attribute_form_default = tag.attributes.get("attributeFormDefault")
            elif name == "element":
                nodes.append(self.parse_element(tag))
            elif name == "attribute":
                nodes.append(self.parse_attribute(tag))
            elif name == "simpleType":
                nodes.append(self.parse_simple_type(tag))
            elif name == "complexType":
                nodes.append(self.parse_complex_type(tag))
            else:
                raise self._unexpected_tag(tag)

        logger.info(f"Parsed schema with {len(nodes)} top-level declarations")
        return Schema(
            target_namespace=target_namespace,
            element_form_default=element_form_default,
            attribute_form_default=attribute_form_default,
            nodes=tuple(nodes),
        )

    # ---------------- Leaf declarations ---------------- #

    def parse_element(self, tag: Tag) -> Element:
        """Parse an ``element`` declaration and its optional inline type."""
        attrs = tag.attributes
        ref = local_name(attrs.get("ref"))
        name = attrs.get("name") or ref or ""
        inline_type: Optional[Union[SimpleType, ComplexType]] = None

        for child in self._children(tag):
            if child.local_name == "simpleType" and inline_type is None:
                inline_type = self.parse_simple_type(child)
            elif child.local_name == "complexType" and inline_type is None:
                inline_type = self.parse_complex_type(child)
            else:
                raise self._unexpected_tag(child)

        return Element(
            name=name,
            datatype=self._element_datatype(attrs.get("type")),
            min_occurs=self._parse_occurs(tag, "minOccurs"),
            max_occurs=self._parse_occurs(tag, "maxOccurs", allow_unbounded=True),
            ref=ref,
            inline_type=inline_type,
        )

    def parse_attribute(self, tag: Tag) -> Attribute:
        """Parse an ``attribute`` declaration."""
        attrs = tag.attributes
        inline_type: Optional[SimpleType] = None
        for child in self._children(tag):
            if child.local_name != "simpleType" or inline_type is not None:
                raise self._unexpected_tag(child)
            inline_type = self.parse_simple_type(child)

        raw_use = attrs.get("use", "optional")
        try:
            use = UseOption(raw_use)
        except ValueError:
            raise self.cursor.error(
                UnexpectedCharacterError,
                f"Unexpected character: invalid use value {raw_use!r}",
                tag.position,
            ) from None

        return Attribute(
            name=attrs.get("name") or local_name(attrs.get("ref")) or "",
            datatype=SimpleTypeRef(local_name(attrs.get("type")) or ""),
            default_value=attrs.get("default"),
            fixed_value=attrs.get("fixed"),
            use=use,
            inline_type=inline_type,
        )

    # ---------------- Type declarations ---------------- #

    def parse_simple_type(self, tag: Tag) -> SimpleType:
        """Parse a ``simpleType`` into one of the six scalar kinds.

        The datatype comes from the first child's ``type`` attribute, falling
        back to ``base`` (``<xs:restriction base="xs:integer">``). Facets inside
        the restriction are skipped. No child means ``string``.
        """
        datatype = SimpleDatatype.STRING
        seen_derivation = False
        for child in self._children(tag):
            if child.local_name not in ("restriction", "extension") or seen_derivation:
                raise self._unexpected_tag(child)
            seen_derivation = True
            datatype = self._scalar_datatype(child)
            self._skip_body(child)
        return SimpleType(name=tag.attributes.get("name", ""), datatype=datatype)

    def parse_simple_content(
        self, tag: Tag, attributes: Dict[str, Attribute]
    ) -> Tuple[SimpleContent, Optional[str]]:
        """Parse ``simpleContent``.

        Attribute declarations found inside the extension/restriction are added
        to ``attributes`` (the owning complex type's mapping).

        Returns:
            ``(simple_content, base_type_name)``.
        """
        content = SimpleContent()
        base_type = None
        seen_derivation = False
        for child in self._children(tag):
            if child.local_name not in ("restriction", "extension") or seen_derivation:
                raise self._unexpected_tag(child)
            seen_derivation = True
            content = SimpleContent(datatype=self._scalar_datatype(child))
            base_type = local_name(child.attributes.get("base") or child.attributes.get("type"))
            for grandchild in self._children(child):
                if grandchild.local_name == "attribute":
                    attribute = self.parse_attribute(grandchild)
                    attributes[attribute.name] = attribute
                elif child.local_name == "restriction":
                    self._skip_body(grandchild)
                else:
                    raise self._unexpected_tag(grandchild)
        return content, base_type

    def parse_complex_content(
        self, tag: Tag
    ) -> Tuple[ComplexContentExtension, Tuple[Node, ...]]:
        """Parse ``complexContent`` and its ``extension``/``restriction`` child.

        Returns:
            ``(derivation, particles)`` where ``particles`` is only populated
            when building particle trees.
        """
        derivation: Optional[ComplexContentExtension] = None
        particles: Tuple[Node, ...] = ()

        for child in self._children(tag):
            if child.local_name not in ("extension", "restriction") or derivation is not None:
                raise self._unexpected_tag(child)
            base = child.attributes.get("base")
            if not base:
                raise self.cursor.error(
                    MissingAttributeError,
                    f"{child} requires a base attribute",
                    child.position,
                )
            attributes: Dict[str, Attribute] = {}
            for grandchild in self._children(child):
                name = grandchild.local_name
                if name == "attribute":
                    attribute = self.parse_attribute(grandchild)
                    attributes[attribute.name] = attribute
                elif name in PARTICLE_CONTENT:
                    particles = self._particles_or_skip(grandchild)
                else:
                    raise self._unexpected_tag(grandchild)
            record = (
                ComplexContentRestriction
                if child.local_name == "restriction"
                else ComplexContentExtension
            )
            derivation = record(base_type=local_name(base) or "", attributes=attributes)

        if derivation is None:
            raise self.cursor.error(
                UnexpectedTagError,
                f"{tag} requires an extension or restriction child",
                tag.position,
            )
        return derivation, particles

    def parse_complex_type(self, tag: Tag) -> ComplexType:
        """Parse a ``complexType``, recording a flat content-model label.

        ``mixed="true"`` (on the tag itself, on a nested ``complexType``, or a
        ``mixedContent`` child) marks the type MixedContent and the rest of the
        body is skipped without further structural checks.
        """
        name = tag.attributes.get("name", "")
        if tag.attributes.get("mixed") == "true":
            self._skip_body(tag)
            return ComplexType(name=name, content=ComplexContent.MIXED_CONTENT, mixed_content="true")

        content = ComplexContent.EMPTY
        mixed_content = None
        base_type = None
        attributes: Dict[str, Attribute] = {}
        simple_content = None
        derivation = None
        particles: Tuple[Node, ...] = ()

        for child in self._children(tag):
            child_name = child.local_name
            if child_name == "simpleContent":
                content = ComplexContent.SIMPLE_CONTENT
                simple_content, base_type = self.parse_simple_content(child, attributes)
            elif child_name == "complexContent":
                content = ComplexContent.COMPLEX_CONTENT_EXTENSION
                derivation, particles = self.parse_complex_content(child)
                base_type = derivation.base_type
            elif child_name in PARTICLE_CONTENT:
                content = PARTICLE_CONTENT[child_name]
                particles = self._particles_or_skip(child)
            elif child_name == "attribute":
                attribute = self.parse_attribute(child)
                attributes[attribute.name] = attribute
            elif child_name == "mixedContent" or (
                child_name == "complexType" and child.attributes.get("mixed") == "true"
            ):
                content = ComplexContent.MIXED_CONTENT
                mixed_content = "true"
                self._skip_body(child)
                self._skip_rest(tag)
                break
            else:
                raise self._unexpected_tag(child)

        return ComplexType(
            name=name,
            base_type=base_type,
            attributes=attributes,
            content=content,
            mixed_content=mixed_content,
            simple_content=simple_content,
            derivation=derivation,
            particles=particles,
        )

    # ---------------- Particle lists ---------------- #

    def parse_sequence(self, tag: Tag) -> Tuple[Node, ...]:
        """Parse the children of a ``sequence`` in order."""
        return self._parse_particles(tag)

    def parse_choice(self, tag: Tag) -> Tuple[Node, ...]:
        """Parse the alternatives of a ``choice`` in order."""
        return self._parse_particles(tag)

    def parse_all(self, tag: Tag) -> Tuple[Node, ...]:
        """Parse the members of an ``all`` group in order."""
        return self._parse_particles(tag)

    def _parse_particles(self, tag: Tag) -> Tuple[Node, ...]:
        nodes: List[Node] = []
        for child in self._children(tag):
            name = child.local_name
            if name == "element":
                nodes.append(self.parse_element(child))
            elif name == "complexType":
                nodes.append(self.parse_complex_type(child))
            elif name == "simpleType":
                nodes.append(self.parse_simple_type(child))
            else:
                raise self._unexpected_tag(child)
        return tuple(nodes)

    def _particles_or_skip(self, tag: Tag) -> Tuple[Node, ...]:
        if not self.config.build_particle_tree:
            self._skip_body(tag)
            return ()
        name = tag.local_name
        if name == "sequence":
            return self.parse_sequence(tag)
        if name == "choice":
            return self.parse_choice(tag)
        return self.parse_all(tag)

    # ---------------- Internal helpers ---------------- #

    def _next_tag(self, strict: bool, positional_schema: bool = False) -> Optional[Tag]:
        """Advance to the next tag, skipping declarations and comments.

        With ``strict`` any non-whitespace text raises UnexpectedCharacterError;
        otherwise text is ignored. Returns ``None`` at end of input.
        """
        cursor = self.cursor
        while True:
            char = cursor.advance()
            if char is None:
                return None
            if char == "<":
                if cursor.matches("!--"):
                    cursor.skip_past("-->")
                    continue
                if cursor.matches("?"):
                    cursor.skip_past("?>")
                    continue
                if cursor.matches("!"):
                    cursor.skip_past(">")
                    continue
                if positional_schema and self.config.attribute_scan == "positional":
                    tag = self._scan_positional_schema_tag()
                    if tag is not None:
                        return tag
                return scan_tag(cursor)
            if char.isspace() or not strict:
                continue
            raise cursor.error(
                UnexpectedCharacterError,
                f"Unexpected character: {char!r}",
                cursor.position - 1,
            )

    def _scan_positional_schema_tag(self) -> Optional[Tag]:
        """Read an ``xs:schema`` tag by three sequential quoted-value scans.

        Returns ``None`` (with the cursor rewound) for any other tag.
        """
        cursor = self.cursor
        start = cursor.position
        name = scan_tag_name(cursor)
        if local_name(name) != "schema":
            cursor.position = start
            return None

        attributes: Dict[str, str] = {}
        for key in ("targetNamespace", "elementFormDefault", "attributeFormDefault"):
            cursor.skip_whitespace()
            value = scan_quoted_value(cursor)
            if value is not None:
                attributes[key] = value
        cursor.skip_past(">")
        return Tag(
            name=name,
            position=start - 1,
            attributes=attributes,
            self_closing=cursor.text[cursor.position - 2] == "/",
        )

    def _children(self, parent: Tag) -> Iterator[Tag]:
        """Yield the child tags of ``parent`` up to its matching closing tag."""
        if parent.self_closing:
            return
        while True:
            tag = self._next_tag(strict=True)
            if tag is None:
                raise self.cursor.error(
                    UnexpectedEndOfInputError,
                    f"Unexpected end of input, expected </{parent.name}>",
                )
            if tag.closing:
                if tag.name != parent.name:
                    raise self._unexpected_tag(tag)
                return
            yield tag

    def _skip_body(self, tag: Tag) -> None:
        """Consume everything up to and including the closing tag of ``tag``."""
        if tag.self_closing:
            return
        self._skip_rest(tag)

    def _skip_rest(self, tag: Tag) -> None:
        """Consume up to the closing tag of ``tag`` without parsing the body.

        Inner tags are matched by name only; their attributes are stepped over
        unread, so malformed markup inside a skipped body is tolerated.
        """
        cursor = self.cursor
        depth = 1
        while depth:
            index = cursor.text.find("<", cursor.position)
            if index == -1:
                cursor.position = len(cursor.text)
                raise cursor.error(
                    UnexpectedEndOfInputError,
                    f"Unexpected end of input, expected </{tag.name}>",
                )
            cursor.position = index + 1
            if cursor.matches("!--"):
                cursor.skip_past("-->")
                continue
            if cursor.matches("?"):
                cursor.skip_past("?>")
                continue
            if cursor.matches("!"):
                cursor.skip_past(">")
                continue
            closing = cursor.matches("/")
            if closing:
                cursor.advance()
            name = scan_tag_name(cursor)
            self_closing = skip_tag_end(cursor)
            if name != tag.name:
                continue
            if closing:
                depth -= 1
            elif not self_closing:
                depth += 1

    def _scalar_datatype(self, tag: Tag) -> SimpleDatatype:
        raw = tag.attributes.get("type") or tag.attributes.get("base")
        if raw is None:
            return SimpleDatatype.STRING
        try:
            return SimpleDatatype.from_name(raw)
        except ValueError:
            raise self.cursor.error(
                UnsupportedDatatypeError,
                f"Unsupported datatype: {raw}",
                tag.position,
            ) from None

    def _element_datatype(self, raw: Optional[str]) -> Datatype:
        """Classify an element's ``type`` without resolving it.

        Names in the XSD namespace are simple types; anything else is assumed
        to name a complex type declared in the document.
        """
        if not raw:
            return SimpleTypeRef("")
        prefix, _, name = raw.rpartition(":")
        if prefix:
            builtin = prefix in ((self.xsd_prefix,) if self.xsd_prefix else XSD_PREFIXES)
        else:
            builtin = self.xsd_prefix is None and name in BUILTIN_NAMES
        if builtin:
            return SimpleTypeRef(name)
        return ComplexTypeRef(name)

    def _parse_occurs(self, tag: Tag, key: str, allow_unbounded: bool = False) -> Optional[int]:
        value = tag.attributes.get(key)
        if value is None:
            return 1
        if allow_unbounded and value == "unbounded":
            return None
        # isdigit() alone also accepts superscripts and other non-ASCII digits
        if value.isascii() and value.isdigit():
            return int(value)
        raise self.cursor.error(
            UnexpectedCharacterError,
            f"Unexpected character: invalid {key} value {value!r}",
            tag.position,
        )

    def _unexpected_tag(self, tag: Tag) -> UnexpectedTagError:
        return self.cursor.error(UnexpectedTagError, f"Unexpected tag: {tag}", tag.position)


def parse_schema(text: str, config: Optional[ParserConfig] = None) -> Schema:
    """Parse schema text and return the object graph.

    Convenience wrapper around :class:`XSDParser` for callers that do not need
    the parser instance.

    Args:
        text: The whole document, already decoded.
        config: Optional :class:`ParserConfig`.

    Returns:
        Parsed :class:`~xsdscan.models.Schema`.

    Example:
        from xsdscan.xsd_parser import parse_schema

        schema = parse_schema(open("orders.xsd", encoding="utf-8").read())
        print(schema.target_namespace, len(schema.nodes))
    """
    return XSDParser(text, config=config).parse()
