"""Parser for the schema definition DSL.

Example::

    enum Color { red, green, blue }
    fixed Digest(16)
    Node {
        value: long,
        tags: string[],
        attrs: {string: int},
        next: Node?,
    }

``T?`` is shorthand for ``union { null, T }``. A reference to a record that
has not been completely declared yet (the record itself, or one declared
further down) becomes a link to that record.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Union

import ply.yacc as yacc

from typed_views.parsing.schema_lexer import SchemaLexer
from typed_views.schema import (
    ArraySchema,
    Category,
    EnumSchema,
    FixedSchema,
    LinkSchema,
    MapSchema,
    RecordSchema,
    Schema,
    SchemaCatalog,
    UnionSchema,
)

log = logging.getLogger(__name__)


@dataclass
class TypeRef:
    """Reference to a type by name."""

    name: str


@dataclass
class ArrayRef:
    """Array of a referenced type."""

    items: AnyRef


@dataclass
class MapRef:
    """Map from a key type to a referenced type."""

    key: str
    values: AnyRef


@dataclass
class UnionRef:
    """Union of referenced types."""

    branches: list[AnyRef] = field(default_factory=list)


AnyRef = Union[TypeRef, ArrayRef, MapRef, UnionRef]


@dataclass
class FieldSpec:
    """Specification for a record field before resolution."""

    name: str
    type_ref: AnyRef


@dataclass
class RecordSpec:
    """Specification for a record before resolution."""

    name: str
    fields: list[FieldSpec]


@dataclass
class EnumSpec:
    """Specification for an enum."""

    name: str
    symbols: list[str]


@dataclass
class FixedSpec:
    """Specification for a fixed-size byte string."""

    name: str
    size: int


class SchemaParser:
    """Parser for the schema definition DSL."""

    tokens = SchemaLexer.tokens

    def __init__(self) -> None:
        self.lexer = SchemaLexer()
        self.lexer.build()
        self.parser: yacc.LRParser = None  # type: ignore
        self.catalog: SchemaCatalog = SchemaCatalog()
        self._specs: list[RecordSpec | EnumSpec | FixedSpec] = []

    def p_schema(self, p: yacc.YaccProduction) -> None:
        """schema : statement_list"""
        p[0] = p[1]

    def p_schema_empty(self, p: yacc.YaccProduction) -> None:
        """schema :"""
        p[0] = []

    def p_statement_list_single(self, p: yacc.YaccProduction) -> None:
        """statement_list : statement"""
        p[0] = [p[1]]

    def p_statement_list_multiple(self, p: yacc.YaccProduction) -> None:
        """statement_list : statement_list statement"""
        p[0] = p[1]
        p[0].append(p[2])

    def p_statement(self, p: yacc.YaccProduction) -> None:
        """statement : record_def
                     | enum_def
                     | fixed_def"""
        p[0] = p[1]

    def p_record_def(self, p: yacc.YaccProduction) -> None:
        """record_def : IDENTIFIER LBRACE field_list RBRACE
                      | IDENTIFIER LBRACE field_list COMMA RBRACE"""
        p[0] = RecordSpec(name=p[1], fields=p[3])

    def p_record_def_empty(self, p: yacc.YaccProduction) -> None:
        """record_def : IDENTIFIER LBRACE RBRACE"""
        p[0] = RecordSpec(name=p[1], fields=[])

    def p_field_list_single(self, p: yacc.YaccProduction) -> None:
        """field_list : field"""
        p[0] = [p[1]]

    def p_field_list_multiple(self, p: yacc.YaccProduction) -> None:
        """field_list : field_list COMMA field"""
        p[0] = p[1] + [p[3]]

    def p_field(self, p: yacc.YaccProduction) -> None:
        """field : IDENTIFIER COLON type_ref"""
        p[0] = FieldSpec(name=p[1], type_ref=p[3])

    def p_enum_def(self, p: yacc.YaccProduction) -> None:
        """enum_def : ENUM IDENTIFIER LBRACE symbol_list RBRACE
                    | ENUM IDENTIFIER LBRACE symbol_list COMMA RBRACE"""
        p[0] = EnumSpec(name=p[2], symbols=p[4])

    def p_symbol_list_single(self, p: yacc.YaccProduction) -> None:
        """symbol_list : IDENTIFIER"""
        p[0] = [p[1]]

    def p_symbol_list_multiple(self, p: yacc.YaccProduction) -> None:
        """symbol_list : symbol_list COMMA IDENTIFIER"""
        p[0] = p[1] + [p[3]]

    def p_fixed_def(self, p: yacc.YaccProduction) -> None:
        """fixed_def : FIXED IDENTIFIER LPAREN INTEGER RPAREN"""
        p[0] = FixedSpec(name=p[2], size=p[4])

    def p_type_ref_simple(self, p: yacc.YaccProduction) -> None:
        """type_ref : IDENTIFIER"""
        p[0] = TypeRef(name=p[1])

    def p_type_ref_array(self, p: yacc.YaccProduction) -> None:
        """type_ref : type_ref LBRACKET RBRACKET"""
        p[0] = ArrayRef(items=p[1])

    def p_type_ref_optional(self, p: yacc.YaccProduction) -> None:
        """type_ref : type_ref QUESTION"""
        p[0] = UnionRef(branches=[TypeRef(name="null"), p[1]])

    def p_type_ref_map(self, p: yacc.YaccProduction) -> None:
        """type_ref : LBRACE IDENTIFIER COLON type_ref RBRACE"""
        p[0] = MapRef(key=p[2], values=p[4])

    def p_type_ref_union(self, p: yacc.YaccProduction) -> None:
        """type_ref : UNION LBRACE type_list RBRACE
                    | UNION LBRACE type_list COMMA RBRACE"""
        p[0] = UnionRef(branches=p[3])

    def p_type_list_single(self, p: yacc.YaccProduction) -> None:
        """type_list : type_ref"""
        p[0] = [p[1]]

    def p_type_list_multiple(self, p: yacc.YaccProduction) -> None:
        """type_list : type_list COMMA type_ref"""
        p[0] = p[1] + [p[3]]

    def p_error(self, p: yacc.YaccProduction) -> None:
        if p:
            raise SyntaxError(f"Syntax error at '{p.value}' (line {p.lineno})")
        else:
            raise SyntaxError("Syntax error at end of input")

    def build(self, **kwargs: Any) -> None:
        """Build the parser."""
        self.parser = yacc.yacc(module=self, **kwargs)

    def parse(self, data: str) -> SchemaCatalog:
        """Parse schema definitions and return a populated SchemaCatalog."""
        if self.parser is None:
            self.build(debug=False, write_tables=False)

        self.catalog = SchemaCatalog()
        self.lexer.lexer.lineno = 1

        specs = self.parser.parse(data, lexer=self.lexer.lexer)
        self._specs = specs or []

        self._resolve_specs()
        log.debug("Parsed %d schema definitions", len(self._specs))

        return self.catalog

    def _resolve_specs(self) -> None:
        """Resolve all specs into schemas using two-phase resolution.

        Phase 1: Register enums and fixeds, and pre-register empty records so
        that self-referential and mutually referential records can resolve.
        Phase 2: Populate the records in declaration order.
        """
        records: list[tuple[RecordSpec, RecordSchema]] = []
        for spec in self._specs:
            if spec.name in self.catalog:
                raise ValueError(f"Type '{spec.name}' is already defined")
            if isinstance(spec, RecordSpec):
                records.append((spec, self.catalog.register_stub(spec.name)))
            elif isinstance(spec, EnumSpec):
                self.catalog.register(EnumSchema(spec.name, spec.symbols))
            elif isinstance(spec, FixedSpec):
                self.catalog.register(FixedSchema(spec.name, spec.size))

        declared: set[str] = set()
        for spec, stub in records:
            fields = [
                (field_spec.name, self._resolve_ref(field_spec.type_ref, declared))
                for field_spec in spec.fields
            ]
            stub.set_fields(fields)
            declared.add(spec.name)

    def _resolve_ref(self, ref: AnyRef, declared: set[str]) -> Schema:
        """Resolve a type reference to a schema."""
        if isinstance(ref, TypeRef):
            schema = self.catalog.get(ref.name)
            if schema is None:
                raise ValueError(f"Unknown type '{ref.name}'")
            if isinstance(schema, RecordSchema) and ref.name not in declared:
                return LinkSchema(schema)
            return schema
        if isinstance(ref, ArrayRef):
            return ArraySchema(self._resolve_ref(ref.items, declared))
        if isinstance(ref, MapRef):
            if ref.key != "string":
                raise ValueError(f"Map keys must be 'string', not '{ref.key}'")
            return MapSchema(self._resolve_ref(ref.values, declared))
        branches = [self._resolve_ref(branch, declared) for branch in ref.branches]
        if any(branch.category() is Category.UNION for branch in branches):
            raise ValueError("A union cannot directly contain another union")
        return UnionSchema(branches)


def parse_schema(data: str, name: str) -> Schema:
    """Parse schema definitions and return the one called name."""
    return SchemaParser().parse(data).get_or_raise(name)
