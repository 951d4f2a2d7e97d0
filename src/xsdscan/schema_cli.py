"""
CLI commands for inspecting schema documents.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from .cache import get_cached_parser
from .errors import SchemaParseError
from .models import ComplexType, Element


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


def _load(args):
    parser = get_cached_parser(args.config)
    return parser.parse_file(Path(args.path))


def cmd_parse(args):
    """Parse a schema and print it as JSON."""
    setup_logging(args.verbose)

    try:
        schema = _load(args)
    except (OSError, SchemaParseError, ValueError) as e:
        print(f"✗ Failed to parse {args.path}: {e}")
        return 1
    print(json.dumps(schema.to_dict(), indent=args.indent))
    return 0


def cmd_summary(args):
    """Print one line per top-level declaration."""
    setup_logging(args.verbose)

    try:
        schema = _load(args)
    except (OSError, SchemaParseError, ValueError) as e:
        print(f"✗ Failed to parse {args.path}: {e}")
        return 1

    print(f"Schema: {args.path}")
    if schema.target_namespace:
        print(f"  targetNamespace: {schema.target_namespace}")
    for node in schema.nodes:
        detail = ""
        if isinstance(node, Element):
            upper = "unbounded" if node.max_occurs is None else node.max_occurs
            detail = f" [{node.min_occurs}..{upper}]"
        elif isinstance(node, ComplexType):
            detail = f" ({node.content})"
        elif node.kind == "simple_type":
            detail = f" ({node.datatype})"
        print(f"  {node.kind:<13} {node.name}{detail}")
    print(f"✓ {len(schema.nodes)} top-level declarations")
    return 0


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Schema inspection CLI",
        prog="xsdscan"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging"
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Parser configuration as key=value pairs (e.g. build_particle_tree=true)"
    )

    subparsers = parser.add_subparsers(
        dest="command",
        help="Available commands"
    )

    # Parse command
    parse_parser = subparsers.add_parser(
        "parse",
        help="Parse a schema document and print JSON"
    )
    parse_parser.add_argument("path", help="Path to the schema document")
    parse_parser.add_argument(
        "--indent",
        type=int,
        default=2,
        help="JSON indentation (default: 2)"
    )
    parse_parser.set_defaults(func=cmd_parse)

    # Summary command
    summary_parser = subparsers.add_parser(
        "summary",
        help="List top-level declarations"
    )
    summary_parser.add_argument("path", help="Path to the schema document")
    summary_parser.set_defaults(func=cmd_summary)

    args = parser.parse_args(argv)

    if not hasattr(args, 'func'):
        parser.print_help()
        return 1

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
