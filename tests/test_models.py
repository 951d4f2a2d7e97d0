import json

import pytest

from xsdscan.models import (
    Attribute,
    ComplexContent,
    ComplexContentExtension,
    ComplexContentRestriction,
    ComplexType,
    ComplexTypeRef,
    Element,
    Schema,
    SimpleContent,
    SimpleDatatype,
    SimpleType,
    SimpleTypeRef,
    UseOption,
)


def test_simple_datatype_from_name():
    assert SimpleDatatype.from_name("xs:integer") is SimpleDatatype.INTEGER
    assert SimpleDatatype.from_name("double") is SimpleDatatype.DOUBLE
    with pytest.raises(ValueError):
        SimpleDatatype.from_name("xs:date")


@pytest.mark.parametrize("datatype", list(SimpleDatatype))
def test_simple_datatype_str_round_trip(datatype):
    assert SimpleDatatype.from_name(str(datatype)) is datatype


def test_element_to_dict():
    element = Element(name="Items", datatype=ComplexTypeRef("Item"), min_occurs=0, max_occurs=None)
    assert element.to_dict() == {
        "kind": "element",
        "name": "Items",
        "datatype": {"kind": "complex_type", "name": "Item"},
        "min_occurs": 0,
        "max_occurs": "unbounded",
        "ref": None,
        "inline_type": None,
    }
    assert element.repeatable
    assert not Element(name="One").repeatable


def test_complex_type_to_dict():
    complex_type = ComplexType(
        name="Price",
        base_type="decimal",
        attributes={"currency": Attribute(name="currency", use=UseOption.REQUIRED)},
        content=ComplexContent.SIMPLE_CONTENT,
        simple_content=SimpleContent(SimpleDatatype.DECIMAL),
    )
    data = complex_type.to_dict()
    assert data["content"] == "SimpleContent"
    assert data["simple_content"] == {"datatype": "decimal"}
    assert data["attributes"]["currency"]["use"] == "required"
    assert data["derivation"] is None
    assert data["particles"] == []


def test_models_are_immutable():
    element = Element(name="A")
    with pytest.raises(AttributeError):
        element.name = "B"


def _sample_schema() -> Schema:
    extension = ComplexContentExtension(
        base_type="Base", attributes={"extra": Attribute(name="extra")}
    )
    derived = ComplexType(
        name="Derived",
        base_type="Base",
        attributes={"own": Attribute(name="own")},
        content=ComplexContent.COMPLEX_CONTENT_EXTENSION,
        derivation=extension,
        particles=(Element(name="Child", datatype=SimpleTypeRef("string")),),
    )
    wrapper = Element(name="Wrapper", inline_type=SimpleType(name="", datatype=SimpleDatatype.FLOAT))
    return Schema(target_namespace="urn:a", nodes=(derived, wrapper, SimpleType(name="Derived")))


def test_iter_nodes_depth_first():
    names = [(node.kind, node.name) for node in _sample_schema().iter_nodes()]
    assert names == [
        ("complex_type", "Derived"),
        ("attribute", "own"),
        ("attribute", "extra"),
        ("element", "Child"),
        ("element", "Wrapper"),
        ("simple_type", ""),
        ("simple_type", "Derived"),
    ]


def test_find_by_name_and_kind():
    schema = _sample_schema()
    assert len(schema.find("Derived")) == 2
    assert [n.kind for n in schema.find("Derived", kind="simple_type")] == ["simple_type"]
    assert schema.find("Missing") == []


def test_schema_to_dict_is_json_serializable():
    data = _sample_schema().to_dict()
    assert data["target_namespace"] == "urn:a"
    assert data["nodes"][0]["derivation"]["derivation"] == "extension"
    assert data["nodes"][1]["inline_type"]["datatype"] == "float"
    json.dumps(data)


def test_attribute_mappings_are_read_only_copies():
    source = {"a": Attribute(name="a")}
    complex_type = ComplexType(name="C", attributes=source)
    extension = ComplexContentExtension(base_type="B", attributes=source)
    source["b"] = Attribute(name="b")

    assert list(complex_type.attributes) == ["a"]
    assert list(extension.attributes) == ["a"]
    with pytest.raises(TypeError):
        complex_type.attributes["b"] = Attribute(name="b")
    with pytest.raises(TypeError):
        del extension.attributes["a"]


def test_models_are_hashable():
    schema = _sample_schema()
    assert hash(schema) == hash(_sample_schema())
    assert len({schema, _sample_schema()}) == 1

    restriction = ComplexContentRestriction(base_type="B", attributes={"a": Attribute(name="a")})
    assert hash(restriction) == hash(
        ComplexContentRestriction(base_type="B", attributes={"a": Attribute(name="a")})
    )
    assert restriction != ComplexContentExtension(base_type="B", attributes={"a": Attribute(name="a")})


def test_hash_ignores_attribute_order():
    one = ComplexType(name="C", attributes={"a": Attribute(name="a"), "b": Attribute(name="b")})
    two = ComplexType(name="C", attributes={"b": Attribute(name="b"), "a": Attribute(name="a")})
    assert one == two
    assert hash(one) == hash(two)
