"""xsdscan
=======

Small recursive-descent reader for a constrained subset of **XML Schema**
(XSD), producing a queryable object graph of element, attribute, simple-type
and complex-type declarations for code generators, validators and
documentation tools.

Key capabilities
----------------
- Parse schema text into a :class:`~xsdscan.models.Schema` with
  :func:`~xsdscan.xsd_parser.parse_schema`.
- Map ``type``/``base`` values onto six built-in scalar kinds
  (:class:`~xsdscan.models.SimpleDatatype`).
- Optional nested content models (``ParserConfig(build_particle_tree=True)``).
- In-process memoization of parse results (:mod:`xsdscan.cache`).
- ``xsdscan`` command line tool and a small FastAPI service.

Design principles
-----------------
1. **Deterministic parsing** - one forward pass over an in-memory string,
   configured explicitly via :class:`~xsdscan.xsd_parser.ParserConfig`.
2. **All or nothing** - the first malformed construct raises a
   :class:`~xsdscan.errors.SchemaParseError` carrying line/column; no partial
   schema is returned.
3. **No I/O in the core** - loading text from disk or the network is the job
   of the CLI, the cache helpers, or the caller.

Minimal quick start
-------------------
>>> from xsdscan import parse_schema
>>> schema = parse_schema('<xs:schema><xs:element name="Foo"/></xs:schema>')
>>> [node.name for node in schema.nodes]
['Foo']

Public surface
--------------
Only a curated subset is exported at the package level; the service and CLI
modules can be imported explicitly.
"""

__version__ = "0.1.0"

from .errors import (
    MissingAttributeError,
    SchemaParseError,
    UnexpectedCharacterError,
    UnexpectedEndOfInputError,
    UnexpectedTagError,
    UnsupportedDatatypeError,
)
from .models import (
    Attribute,
    ComplexContent,
    ComplexType,
    ComplexTypeRef,
    Element,
    Schema,
    SimpleDatatype,
    SimpleType,
    SimpleTypeRef,
    UseOption,
)
from .xsd_parser import ParserConfig, XSDParser, parse_schema

__all__ = [
    "Attribute",
    "ComplexContent",
    "ComplexType",
    "ComplexTypeRef",
    "Element",
    "MissingAttributeError",
    "ParserConfig",
    "Schema",
    "SchemaParseError",
    "SimpleDatatype",
    "SimpleType",
    "SimpleTypeRef",
    "UnexpectedCharacterError",
    "UnexpectedEndOfInputError",
    "UnexpectedTagError",
    "UnsupportedDatatypeError",
    "UseOption",
    "XSDParser",
    "parse_schema",
]
