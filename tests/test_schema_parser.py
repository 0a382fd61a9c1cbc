"""Tests for the schema DSL lexer and parser."""

import pytest

from typed_views.parsing import SchemaParser, parse_schema
from typed_views.parsing.schema_lexer import SchemaLexer
from typed_views.schema import (
    PRIMITIVES,
    ArraySchema,
    Category,
    EnumSchema,
    FixedSchema,
    LinkSchema,
    MapSchema,
    RecordSchema,
    UnionSchema,
)


@pytest.fixture
def parser():
    return SchemaParser()


class TestSchemaLexer:
    """Tests for SchemaLexer."""

    def test_tokenize(self):
        """Keywords, identifiers and punctuation are recognized."""
        lexer = SchemaLexer()
        lexer.build()
        tokens = lexer.tokenize("Node { next: union { null, Node }, tags: int[]? } # done")
        assert [t.type for t in tokens] == [
            "IDENTIFIER", "LBRACE",
            "IDENTIFIER", "COLON", "UNION", "LBRACE", "IDENTIFIER", "COMMA", "IDENTIFIER", "RBRACE",
            "COMMA",
            "IDENTIFIER", "COLON", "IDENTIFIER", "LBRACKET", "RBRACKET", "QUESTION",
            "RBRACE",
        ]

    def test_integer(self):
        """Integers are converted to int."""
        lexer = SchemaLexer()
        lexer.build()
        tokens = lexer.tokenize("fixed Digest(16)")
        assert tokens[0].type == "FIXED"
        assert tokens[3].value == 16

    def test_line_numbers_restart(self):
        """Each tokenize call counts lines from 1."""
        lexer = SchemaLexer()
        lexer.build()
        tokens = lexer.tokenize("Node {\n  # comment\n  x: int\n}")
        assert [t.lineno for t in tokens] == [1, 1, 3, 3, 3, 4]
        assert lexer.tokenize("Other")[0].lineno == 1

    def test_illegal_character(self):
        """Illegal characters raise SyntaxError."""
        lexer = SchemaLexer()
        lexer.build()
        with pytest.raises(SyntaxError, match="Illegal character"):
            lexer.tokenize("Node @ {}")


class TestSchemaParser:
    """Tests for SchemaParser."""

    def test_simple_record(self, parser):
        """A record with primitive fields."""
        catalog = parser.parse("Point { x: int, y: int }")
        point = catalog["Point"]
        assert isinstance(point, RecordSchema)
        assert point.fields() == [("x", PRIMITIVES["int"]), ("y", PRIMITIVES["int"])]

    def test_trailing_comma_and_comments(self, parser):
        """Trailing commas and comments are accepted."""
        catalog = parser.parse(
            """
            # A point in the plane
            Point {
                x: double,  # horizontal
                y: double,
            }
            """
        )
        assert [name for name, _ in catalog["Point"].fields()] == ["x", "y"]

    def test_empty_record(self, parser):
        """A record may have no fields."""
        catalog = parser.parse("Empty {}")
        assert catalog["Empty"].fields() == []

    def test_empty_input(self, parser):
        """Empty input yields only the primitives."""
        catalog = parser.parse("")
        assert sorted(catalog.list_names()) == sorted(PRIMITIVES)

    def test_array_and_map(self, parser):
        """Array and map type references."""
        catalog = parser.parse("Bag { items: string[], counts: {string: long}, grid: int[][] }")
        fields = dict(catalog["Bag"].fields())
        assert isinstance(fields["items"], ArraySchema)
        assert fields["items"].item_schema() is PRIMITIVES["string"]
        assert isinstance(fields["counts"], MapSchema)
        assert fields["counts"].value_schema() is PRIMITIVES["long"]
        assert fields["grid"].item_schema().category() is Category.ARRAY

    def test_map_key_must_be_string(self, parser):
        """Only string map keys are allowed."""
        with pytest.raises(ValueError, match="Map keys"):
            parser.parse("Bag { counts: {int: long} }")

    def test_union_and_optional(self, parser):
        """Explicit unions and the optional shorthand."""
        catalog = parser.parse("Item { payload: union { null, int, string }, label: string? }")
        fields = dict(catalog["Item"].fields())
        assert isinstance(fields["payload"], UnionSchema)
        assert [name for name, _ in fields["payload"].branches()] == ["null", "int", "string"]
        assert [name for name, _ in fields["label"].branches()] == ["null", "string"]

    def test_nested_union_rejected(self, parser):
        """A union directly inside a union is rejected."""
        with pytest.raises(ValueError, match="union"):
            parser.parse("Item { payload: union { int, string? } }")

    def test_self_reference_becomes_link(self, parser):
        """A record referring to itself gets a link."""
        catalog = parser.parse("Node { value: long, next: Node? }")
        node = catalog["Node"]
        next_schema = dict(node.fields())["next"]
        _, branch = next_schema.branches()[1]
        assert isinstance(branch, LinkSchema)
        assert branch.link_target() is node

    def test_forward_reference_becomes_link(self, parser):
        """A record referring to a later record gets a link."""
        catalog = parser.parse("Tree { root: Leaf }  Leaf { value: int }")
        root = dict(catalog["Tree"].fields())["root"]
        assert isinstance(root, LinkSchema)
        assert root.link_target() is catalog["Leaf"]

    def test_earlier_record_referenced_directly(self, parser):
        """A record declared earlier is referenced without a link."""
        catalog = parser.parse("Point { x: int, y: int }  Line { a: Point, b: Point }")
        fields = dict(catalog["Line"].fields())
        assert fields["a"] is catalog["Point"]
        assert fields["b"] is catalog["Point"]

    def test_enum_and_fixed(self, parser):
        """Enums and fixeds are registered by name."""
        catalog = parser.parse("enum Color { red, green, blue, }  fixed Digest(16)  Tag { c: Color, d: Digest }")
        assert isinstance(catalog["Color"], EnumSchema)
        assert catalog["Color"].symbols == ("red", "green", "blue")
        assert isinstance(catalog["Digest"], FixedSchema)
        assert catalog["Digest"].size == 16
        assert dict(catalog["Tag"].fields())["c"] is catalog["Color"]

    def test_unknown_type(self, parser):
        """Referring to an undefined type raises."""
        with pytest.raises(ValueError, match="Unknown type 'Missing'"):
            parser.parse("Item { thing: Missing }")

    def test_duplicate_definition(self, parser):
        """Defining a name twice raises."""
        with pytest.raises(ValueError, match="already defined"):
            parser.parse("Item { a: int }  Item { b: int }")

    def test_redefining_primitive(self, parser):
        """Primitive names cannot be redefined."""
        with pytest.raises(ValueError, match="already defined"):
            parser.parse("int { a: long }")

    def test_syntax_error(self, parser):
        """Malformed input raises SyntaxError."""
        with pytest.raises(SyntaxError):
            parser.parse("Item { a int }")
        with pytest.raises(SyntaxError, match="end of input"):
            parser.parse("Item { a: int")

    def test_parser_is_reusable(self, parser):
        """Each parse starts from a fresh catalog."""
        parser.parse("Item { a: int }")
        catalog = parser.parse("Other { b: int }")
        assert "Item" not in catalog
        assert "Other" in catalog

    def test_parse_schema_helper(self):
        """parse_schema returns one named schema."""
        point = parse_schema("Point { x: int, y: int }", "Point")
        assert point.name() == "Point"
