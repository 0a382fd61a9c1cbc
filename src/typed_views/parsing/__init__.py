"""Parsing module for the schema DSL."""

from typed_views.parsing.schema_parser import SchemaParser, parse_schema

__all__ = [
    "SchemaParser",
    "parse_schema",
]
