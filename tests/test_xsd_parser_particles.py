"""Tests for particle-tree construction (``build_particle_tree=True``)."""

from pathlib import Path

import pytest

from xsdscan.cursor import scan_tag
from xsdscan.errors import UnexpectedTagError
from xsdscan.models import (
    ComplexContent,
    ComplexType,
    ComplexTypeRef,
    Element,
    SimpleDatatype,
    SimpleType,
    SimpleTypeRef,
)
from xsdscan.xsd_parser import ParserConfig, XSDParser, parse_schema

FIXTURE = Path(__file__).resolve().parent / "fixtures" / "schema" / "sample_orders.xsd"

TREE = ParserConfig(build_particle_tree=True)


def _parse_fixture():
    return parse_schema(FIXTURE.read_text(encoding="utf-8"), config=TREE)


def _parser_at_first_tag(text: str) -> tuple:
    parser = XSDParser(text, config=TREE)
    assert parser.cursor.advance() == "<"
    return parser, scan_tag(parser.cursor)


def test_sequence_particles_in_order():
    address = _parse_fixture().find("Address")[0]
    assert address.content is ComplexContent.SEQUENCE
    assert [p.name for p in address.particles] == ["Street", "City", "Zip"]
    zip_code = address.particles[2]
    assert zip_code.datatype == SimpleTypeRef("decimal")
    assert zip_code.min_occurs == 0


def test_extension_particles():
    shipping = _parse_fixture().find("ShippingAddress")[0]
    assert [p.name for p in shipping.particles] == ["Carrier"]
    assert "signature" in shipping.derivation.attributes


def test_choice_with_nested_all():
    item = _parse_fixture().find("Item")[0]
    sku, description = item.particles
    assert sku.datatype == ComplexTypeRef("Sku")
    inline = description.inline_type
    assert isinstance(inline, ComplexType)
    assert inline.content is ComplexContent.ALL
    assert [p.name for p in inline.particles] == ["Text"]


def test_inline_element_type_particles():
    order = _parse_fixture().find("PurchaseOrder")[0]
    ship_to, item = order.inline_type.particles
    assert ship_to.datatype == ComplexTypeRef("ShippingAddress")
    assert item.max_occurs is None


def test_mixed_type_still_skips_body():
    note = _parse_fixture().find("Note")[0]
    assert note.content is ComplexContent.MIXED_CONTENT
    assert note.particles == ()


def test_top_level_node_list_is_unchanged():
    flat = parse_schema(FIXTURE.read_text(encoding="utf-8"))
    tree = _parse_fixture()
    assert [n.name for n in flat.nodes] == [n.name for n in tree.nodes]


def test_iter_nodes_reaches_nested_declarations():
    flat_names = {n.name for n in parse_schema(FIXTURE.read_text(encoding="utf-8")).iter_nodes()}
    tree_names = {n.name for n in _parse_fixture().iter_nodes()}
    assert "Text" in tree_names and "Carrier" in tree_names
    assert "Text" not in flat_names and "Carrier" not in flat_names


def test_parse_sequence_directly():
    parser, tag = _parser_at_first_tag(
        '<xs:sequence><xs:element name="a"/>'
        '<xs:simpleType name="s"><xs:restriction base="xs:boolean"/></xs:simpleType>'
        "</xs:sequence>"
    )
    particles = parser.parse_sequence(tag)
    assert particles == (
        Element(name="a"),
        SimpleType(name="s", datatype=SimpleDatatype.BOOLEAN),
    )
    assert parser.cursor.exhausted


def test_parse_choice_and_all_directly():
    parser, tag = _parser_at_first_tag('<xs:choice><xs:complexType name="c"/></xs:choice>')
    assert parser.parse_choice(tag) == (ComplexType(name="c"),)

    parser, tag = _parser_at_first_tag("<xs:all/>")
    assert parser.parse_all(tag) == ()


@pytest.mark.parametrize("child", ["<xs:any/>", "<xs:sequence/>", '<xs:attribute name="a"/>'])
def test_unsupported_particle_children(child):
    text = (
        '<xs:schema><xs:complexType name="C"><xs:sequence>'
        f"{child}</xs:sequence></xs:complexType></xs:schema>"
    )
    with pytest.raises(UnexpectedTagError):
        parse_schema(text, config=TREE)
    # Without particle trees the body is not inspected
    assert parse_schema(text).nodes[0].content is ComplexContent.SEQUENCE
