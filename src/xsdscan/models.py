"""Object graph produced by the schema parser.

A :class:`Schema` owns an ordered tuple of top-level nodes. Each node is one
of four declaration kinds (:class:`Attribute`, :class:`ComplexType`,
:class:`Element`, :class:`SimpleType`) and owns its nested collections
outright; nothing in the graph points back at a parent or sideways at
another declaration.

Type references are *unresolved*: an element declared with ``type="Address"``
carries ``ComplexTypeRef("Address")``, a bare name, not the ``ComplexType``
declared elsewhere in the document. Consumers that need links build their own
index from :meth:`Schema.iter_nodes`.

All classes are frozen dataclasses and attribute mappings are read-only views,
so a parsed schema can be shared (e.g. from :mod:`xsdscan.cache`) without
defensive copies. Nodes are hashable.

Example::

        from xsdscan import parse_schema
        from xsdscan.models import Element, SimpleDatatype

        schema = parse_schema('''
            <xs:schema xmlns:xs="http://www.w3.org/2001/XMLSchema">
              <xs:element name="Price" type="xs:decimal" minOccurs="0"/>
            </xs:schema>
        ''')
        price = schema.nodes[0]
        assert isinstance(price, Element)
        assert price.datatype.name == "decimal"
        payload = schema.to_dict()   # JSON-serializable
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union


class SimpleDatatype(Enum):
    """The six built-in scalar kinds understood by the parser."""

    BOOLEAN = "boolean"
    DECIMAL = "decimal"
    DOUBLE = "double"
    FLOAT = "float"
    INTEGER = "integer"
    STRING = "string"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_name(cls, name: str) -> "SimpleDatatype":
        """Map ``integer`` or ``xs:integer`` onto its member.

        Raises:
            ValueError: ``name`` is not one of the six canonical names.
        """
        local = name.split(":", 1)[1] if ":" in name else name
        return cls(local)


class UseOption(Enum):
    """``use`` attribute of an attribute declaration."""

    REQUIRED = "required"
    OPTIONAL = "optional"
    PROHIBITED = "prohibited"

    def __str__(self) -> str:
        return self.value


class ComplexContent(Enum):
    """Content-model label recorded on a :class:`ComplexType`."""

    ALL = "All"
    CHOICE = "Choice"
    EMPTY = "Empty"
    ELEMENT = "Element"
    GROUP = "Group"
    SEQUENCE = "Sequence"
    SIMPLE_CONTENT = "SimpleContent"
    UNION = "Union"
    MIXED_CONTENT = "MixedContent"
    COMPLEX_CONTENT_EXTENSION = "ComplexContentExtension"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class SimpleTypeRef:
    """Unresolved reference to a simple (scalar) type by name."""

    name: str = ""

    def to_dict(self) -> dict:
        return {"kind": "simple_type", "name": self.name}


@dataclass(frozen=True)
class ComplexTypeRef:
    """Unresolved reference to a complex type by name."""

    name: str = ""

    def to_dict(self) -> dict:
        return {"kind": "complex_type", "name": self.name}


Datatype = Union[SimpleTypeRef, ComplexTypeRef]


def _frozen_mapping(mapping: Mapping[str, Any]) -> Mapping[str, Any]:
    # Copy first so the caller's dict cannot change the node afterwards
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class SimpleType:
    """A named (or anonymous inline) scalar type declaration."""

    name: str
    datatype: SimpleDatatype = SimpleDatatype.STRING

    kind = "simple_type"

    def to_dict(self) -> dict:
        return {"kind": self.kind, "name": self.name, "datatype": str(self.datatype)}


@dataclass(frozen=True)
class SimpleContent:
    """Textual content of a complex type, constrained to a scalar kind."""

    datatype: SimpleDatatype = SimpleDatatype.STRING

    def to_dict(self) -> dict:
        return {"datatype": str(self.datatype)}


@dataclass(frozen=True)
class Attribute:
    """An attribute declaration.

    ``default_value`` and ``fixed_value`` may both be set; the parser does not
    pick a winner.
    """

    name: str
    datatype: Datatype = field(default_factory=SimpleTypeRef)
    default_value: Optional[str] = None
    fixed_value: Optional[str] = None
    use: UseOption = UseOption.OPTIONAL
    inline_type: Optional[SimpleType] = None

    kind = "attribute"

    @property
    def required(self) -> bool:
        return self.use is UseOption.REQUIRED

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "name": self.name,
            "datatype": self.datatype.to_dict(),
            "default_value": self.default_value,
            "fixed_value": self.fixed_value,
            "use": str(self.use),
            "inline_type": self.inline_type.to_dict() if self.inline_type else None,
        }


@dataclass(frozen=True)
class ComplexContentExtension:
    """Derivation of a complex type by extending ``base_type``."""

    base_type: str
    attributes: Mapping[str, Attribute] = field(default_factory=dict)

    derivation = "extension"

    def __post_init__(self) -> None:
        object.__setattr__(self, "attributes", _frozen_mapping(self.attributes))

    def __hash__(self) -> int:
        return hash((self.derivation, self.base_type, frozenset(self.attributes.items())))

    def to_dict(self) -> dict:
        return {
            "derivation": self.derivation,
            "base_type": self.base_type,
            "attributes": {name: attr.to_dict() for name, attr in self.attributes.items()},
        }


@dataclass(frozen=True)
class ComplexContentRestriction(ComplexContentExtension):
    """Derivation of a complex type by restricting ``base_type``."""

    derivation = "restriction"

    __hash__ = ComplexContentExtension.__hash__


@dataclass(frozen=True)
class Element:
    """An element declaration.

    ``max_occurs`` is ``None`` for ``maxOccurs="unbounded"``. Bounds are
    never cross-checked (``min_occurs`` may exceed ``max_occurs``).
    """

    name: str
    datatype: Datatype = field(default_factory=SimpleTypeRef)
    min_occurs: int = 1
    max_occurs: Optional[int] = 1
    ref: Optional[str] = None
    inline_type: Optional[Union["SimpleType", "ComplexType"]] = None

    kind = "element"

    @property
    def repeatable(self) -> bool:
        return self.max_occurs is None or self.max_occurs > 1

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "name": self.name,
            "datatype": self.datatype.to_dict(),
            "min_occurs": self.min_occurs,
            "max_occurs": "unbounded" if self.max_occurs is None else self.max_occurs,
            "ref": self.ref,
            "inline_type": self.inline_type.to_dict() if self.inline_type else None,
        }


@dataclass(frozen=True)
class ComplexType:
    """A structured type declaration.

    Attributes:
        name: Declared name ("" when anonymous).
        base_type: Base type name when derived via simple/complex content.
        attributes: Read-only mapping of attribute declarations keyed by name
            (directly declared or declared inside ``simpleContent``).
        content: Flat content-model label.
        mixed_content: ``"true"`` when the type was declared mixed.
        simple_content: Scalar kind of the text when ``content`` is SimpleContent.
        derivation: Extension/restriction record for ``complexContent``.
        particles: Child declarations of the sequence/choice/all; only filled
            when the parser runs with ``build_particle_tree=True``.
    """

    name: str
    base_type: Optional[str] = None
    attributes: Mapping[str, Attribute] = field(default_factory=dict)
    content: ComplexContent = ComplexContent.EMPTY
    mixed_content: Optional[str] = None
    simple_content: Optional[SimpleContent] = None
    derivation: Optional[ComplexContentExtension] = None
    particles: Tuple["Node", ...] = ()

    kind = "complex_type"

    def __post_init__(self) -> None:
        object.__setattr__(self, "attributes", _frozen_mapping(self.attributes))

    def __hash__(self) -> int:
        return hash(
            (
                self.name,
                self.base_type,
                frozenset(self.attributes.items()),
                self.content,
                self.mixed_content,
                self.simple_content,
                self.derivation,
                self.particles,
            )
        )

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "name": self.name,
            "base_type": self.base_type,
            "attributes": {name: attr.to_dict() for name, attr in self.attributes.items()},
            "content": str(self.content),
            "mixed_content": self.mixed_content,
            "simple_content": self.simple_content.to_dict() if self.simple_content else None,
            "derivation": self.derivation.to_dict() if self.derivation else None,
            "particles": [node.to_dict() for node in self.particles],
        }


Node = Union[Attribute, ComplexType, Element, SimpleType]


@dataclass(frozen=True)
class Schema:
    """Root of a parsed document."""

    target_namespace: Optional[str] = None
    element_form_default: Optional[str] = None
    attribute_form_default: Optional[str] = None
    nodes: Tuple[Node, ...] = ()

    def iter_nodes(self) -> List[Node]:
        """Return every declaration, depth-first in document order.

        Walks top-level nodes, inline anonymous types, attribute mappings and
        particle lists.

        Example:
            >>> schema = Schema(nodes=(Element("A"), SimpleType("B")))
            >>> [n.name for n in schema.iter_nodes()]
            ['A', 'B']
        """
        found: List[Node] = []
        for node in self.nodes:
            _collect(node, found)
        return found

    def find(self, name: str, kind: Optional[str] = None) -> List[Node]:
        """Return top-level declarations called ``name`` (optionally of one ``kind``)."""
        return [
            node
            for node in self.nodes
            if node.name == name and (kind is None or node.kind == kind)
        ]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target_namespace": self.target_namespace,
            "element_form_default": self.element_form_default,
            "attribute_form_default": self.attribute_form_default,
            "nodes": [node.to_dict() for node in self.nodes],
        }


def _collect(node: Node, found: List[Node]) -> None:
    found.append(node)
    if isinstance(node, Element):
        if node.inline_type is not None:
            _collect(node.inline_type, found)
    elif isinstance(node, Attribute):
        if node.inline_type is not None:
            found.append(node.inline_type)
    elif isinstance(node, ComplexType):
        for attribute in node.attributes.values():
            _collect(attribute, found)
        if node.derivation is not None:
            for attribute in node.derivation.attributes.values():
                _collect(attribute, found)
        for child in node.particles:
            _collect(child, found)
