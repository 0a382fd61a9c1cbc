"""Tests for the schema model."""

import pytest

from typed_views.schema import (
    PRIMITIVES,
    ArraySchema,
    Category,
    EnumSchema,
    FixedSchema,
    LinkSchema,
    MapSchema,
    RecordSchema,
    SchemaCatalog,
    UnionSchema,
    branch_name_of,
    resolve_link,
)


class TestCategory:
    """Tests for the Category enum."""

    def test_scalar_categories(self):
        """Scalar kinds are scalar, structural kinds are not."""
        for name in ("boolean", "bytes", "double", "float", "int", "long", "null", "string"):
            assert Category(name).is_scalar is True
        assert Category.ENUM.is_scalar is True
        assert Category.FIXED.is_scalar is True
        assert Category.ARRAY.is_scalar is False
        assert Category.MAP.is_scalar is False
        assert Category.RECORD.is_scalar is False
        assert Category.UNION.is_scalar is False
        assert Category.LINK.is_scalar is False

    def test_named_categories(self):
        """Only records, enums and fixeds are named."""
        assert Category.RECORD.is_named is True
        assert Category.ENUM.is_named is True
        assert Category.FIXED.is_named is True
        assert Category.INT.is_named is False
        assert Category.UNION.is_named is False


class TestPrimitiveSchema:
    """Tests for the primitive schema nodes."""

    def test_primitives_are_anonymous(self):
        """Primitive schemas have no name."""
        int_schema = PRIMITIVES["int"]
        assert int_schema.category() is Category.INT
        assert int_schema.name() is None
        assert int_schema.type_name() == "int"

    def test_primitive_identity_is_stable(self):
        """The same primitive node always has the same identity."""
        assert PRIMITIVES["long"].identity() == PRIMITIVES["long"].identity()
        assert PRIMITIVES["long"].identity() != PRIMITIVES["int"].identity()

    def test_structural_accessors_raise(self):
        """Primitives have no children."""
        with pytest.raises(TypeError):
            PRIMITIVES["int"].item_schema()
        with pytest.raises(TypeError):
            PRIMITIVES["int"].fields()
        with pytest.raises(TypeError):
            PRIMITIVES["int"].link_target()


class TestCompoundSchemas:
    """Tests for array, map, record, union and link nodes."""

    def test_array(self):
        """Array schemas expose their item schema."""
        array = ArraySchema(PRIMITIVES["int"])
        assert array.category() is Category.ARRAY
        assert array.item_schema() is PRIMITIVES["int"]
        assert array.name() is None
        assert array.type_name() == "int[]"

    def test_equal_structure_distinct_identity(self):
        """Two separately built nodes never share an identity."""
        first = ArraySchema(PRIMITIVES["int"])
        second = ArraySchema(PRIMITIVES["int"])
        assert first.identity() != second.identity()

    def test_map(self):
        """Map schemas expose their value schema."""
        mapping = MapSchema(PRIMITIVES["string"])
        assert mapping.category() is Category.MAP
        assert mapping.value_schema() is PRIMITIVES["string"]

    def test_record_fields_in_order(self):
        """Record fields keep their declared order."""
        record = RecordSchema("Point", [("x", PRIMITIVES["int"]), ("y", PRIMITIVES["int"])])
        assert record.name() == "Point"
        assert [name for name, _ in record.fields()] == ["x", "y"]
        assert record.field_position("y") == 1
        assert record.field_position("z") is None

    def test_record_duplicate_field(self):
        """Duplicate field names are rejected."""
        with pytest.raises(ValueError, match="duplicate field"):
            RecordSchema("Bad", [("x", PRIMITIVES["int"]), ("x", PRIMITIVES["long"])])

    def test_record_populated_later(self):
        """A record can be created empty and populated afterwards."""
        node = RecordSchema("Node")
        assert node.fields() == []
        node.set_fields([("next", LinkSchema(node))])
        (field_name, field_schema), = node.fields()
        assert field_name == "next"
        assert field_schema.link_target() is node

    def test_union_branch_names(self):
        """Union branches are named after the schema name or category."""
        point = RecordSchema("Point", [("x", PRIMITIVES["int"])])
        union = UnionSchema([PRIMITIVES["null"], PRIMITIVES["int"], point, ArraySchema(PRIMITIVES["int"])])
        assert [name for name, _ in union.branches()] == ["null", "int", "Point", "array"]
        assert union.branch_position("Point") == 2

    def test_union_duplicate_branch(self):
        """Two branches with the same name are rejected."""
        with pytest.raises(ValueError, match="duplicate branch"):
            UnionSchema([PRIMITIVES["int"], PRIMITIVES["int"]])

    def test_union_link_branch_uses_target_name(self):
        """A link branch is named after the record it points to."""
        node = RecordSchema("Node")
        union = UnionSchema([PRIMITIVES["null"], LinkSchema(node)])
        assert [name for name, _ in union.branches()] == ["null", "Node"]

    def test_resolve_link(self):
        """resolve_link follows chains of links."""
        node = RecordSchema("Node")
        link = LinkSchema(LinkSchema(node))
        assert resolve_link(link) is node
        assert resolve_link(node) is node
        assert branch_name_of(link) == "Node"

    def test_enum_and_fixed(self):
        """Enums and fixeds are named scalars."""
        color = EnumSchema("Color", ["red", "green"])
        digest = FixedSchema("Digest", 4)
        assert color.category() is Category.ENUM
        assert color.symbols == ("red", "green")
        assert digest.category() is Category.FIXED
        assert digest.size == 4

    def test_enum_needs_symbols(self):
        """An enum without symbols is rejected."""
        with pytest.raises(ValueError):
            EnumSchema("Empty", [])


class TestSchemaCatalog:
    """Tests for SchemaCatalog."""

    def test_primitives_registered(self):
        """Primitive names are always present."""
        catalog = SchemaCatalog()
        assert "int" in catalog
        assert catalog.get("string") is PRIMITIVES["string"]

    def test_register_and_get(self):
        """Named schemas can be registered and looked up."""
        catalog = SchemaCatalog()
        color = EnumSchema("Color", ["red"])
        catalog.register(color)
        assert catalog["Color"] is color
        assert "Color" in catalog.list_names()

    def test_register_duplicate(self):
        """Registering an existing name raises."""
        catalog = SchemaCatalog()
        catalog.register(EnumSchema("Color", ["red"]))
        with pytest.raises(ValueError, match="already defined"):
            catalog.register(EnumSchema("Color", ["blue"]))

    def test_register_anonymous(self):
        """Anonymous schemas cannot be registered."""
        with pytest.raises(ValueError):
            SchemaCatalog().register(ArraySchema(PRIMITIVES["int"]))

    def test_register_stub_is_idempotent(self):
        """An empty stub can be requested repeatedly."""
        catalog = SchemaCatalog()
        stub = catalog.register_stub("Node")
        assert catalog.register_stub("Node") is stub

    def test_register_stub_over_other_type(self):
        """A stub cannot replace a non-record schema."""
        catalog = SchemaCatalog()
        with pytest.raises(ValueError):
            catalog.register_stub("int")

    def test_get_or_raise(self):
        """Unknown names raise KeyError."""
        with pytest.raises(KeyError):
            SchemaCatalog().get_or_raise("Missing")
