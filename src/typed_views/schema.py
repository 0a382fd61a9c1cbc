"""Schema model for the typed_views library."""

from __future__ import annotations

import itertools
from enum import Enum
from typing import Protocol, Sequence


class Category(Enum):
    """Structural category of a schema node."""

    BOOLEAN = "boolean"
    BYTES = "bytes"
    DOUBLE = "double"
    FLOAT = "float"
    INT = "int"
    LONG = "long"
    NULL = "null"
    STRING = "string"
    ENUM = "enum"
    FIXED = "fixed"
    ARRAY = "array"
    MAP = "map"
    RECORD = "record"
    UNION = "union"
    LINK = "link"

    @property
    def is_scalar(self) -> bool:
        """Return whether values of this category hold a single Python value."""
        return self in SCALAR_CATEGORIES

    @property
    def is_named(self) -> bool:
        """Return whether schemas of this category carry a name."""
        return self in NAMED_CATEGORIES


SCALAR_CATEGORIES = frozenset(
    {
        Category.BOOLEAN,
        Category.BYTES,
        Category.DOUBLE,
        Category.FLOAT,
        Category.INT,
        Category.LONG,
        Category.NULL,
        Category.STRING,
        Category.ENUM,
        Category.FIXED,
    }
)

NAMED_CATEGORIES = frozenset({Category.ENUM, Category.FIXED, Category.RECORD})

# Primitive type names, in the order they are registered
PRIMITIVE_CATEGORIES: dict[str, Category] = {
    c.value: c
    for c in (
        Category.BOOLEAN,
        Category.BYTES,
        Category.DOUBLE,
        Category.FLOAT,
        Category.INT,
        Category.LONG,
        Category.NULL,
        Category.STRING,
    )
}


class SchemaView(Protocol):
    """Read-only view of a schema node, as consumed by the accessor registry."""

    def category(self) -> Category: ...

    def identity(self) -> int: ...

    def name(self) -> str | None: ...

    def item_schema(self) -> SchemaView: ...

    def value_schema(self) -> SchemaView: ...

    def fields(self) -> list[tuple[str, SchemaView]]: ...

    def branches(self) -> list[tuple[str, SchemaView]]: ...

    def link_target(self) -> SchemaView: ...


_identities = itertools.count(1)


class Schema:
    """Base class for all schema nodes.

    Each node draws a fresh identity from a process-wide counter, so two
    references to the same node always share an identity while two
    structurally equal nodes never do.
    """

    def __init__(self, category: Category, name: str | None = None) -> None:
        self._category = category
        self._name = name
        self._identity = next(_identities)

    def category(self) -> Category:
        return self._category

    def identity(self) -> int:
        return self._identity

    def name(self) -> str | None:
        return self._name

    def type_name(self) -> str:
        """Return the name, or the category name for anonymous schemas."""
        return self._name if self._name is not None else self._category.value

    def item_schema(self) -> Schema:
        raise TypeError(f"Schema '{self.type_name()}' has no item schema")

    def value_schema(self) -> Schema:
        raise TypeError(f"Schema '{self.type_name()}' has no value schema")

    def fields(self) -> list[tuple[str, Schema]]:
        raise TypeError(f"Schema '{self.type_name()}' has no fields")

    def branches(self) -> list[tuple[str, Schema]]:
        raise TypeError(f"Schema '{self.type_name()}' has no branches")

    def link_target(self) -> Schema:
        raise TypeError(f"Schema '{self.type_name()}' is not a link")

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.type_name()} #{self._identity}>"


class PrimitiveSchema(Schema):
    """Schema for one of the anonymous primitive kinds."""

    def __init__(self, category: Category) -> None:
        if category.value not in PRIMITIVE_CATEGORIES:
            raise ValueError(f"'{category.value}' is not a primitive category")
        super().__init__(category)


class EnumSchema(Schema):
    """Named schema for a fixed set of symbols."""

    def __init__(self, name: str, symbols: Sequence[str]) -> None:
        super().__init__(Category.ENUM, name)
        if not symbols:
            raise ValueError(f"Enum '{name}' must have at least one symbol")
        if len(set(symbols)) != len(symbols):
            raise ValueError(f"Enum '{name}' has duplicate symbols")
        self.symbols: tuple[str, ...] = tuple(symbols)


class FixedSchema(Schema):
    """Named schema for byte strings of an exact size."""

    def __init__(self, name: str, size: int) -> None:
        super().__init__(Category.FIXED, name)
        if size < 0:
            raise ValueError(f"Fixed '{name}' must have a non-negative size")
        self.size = size


class ArraySchema(Schema):
    """Schema for a sequence of items of one schema."""

    def __init__(self, items: Schema) -> None:
        super().__init__(Category.ARRAY)
        self._items = items

    def item_schema(self) -> Schema:
        return self._items

    def type_name(self) -> str:
        return f"{self._items.type_name()}[]"


class MapSchema(Schema):
    """Schema for string-keyed values of one schema."""

    def __init__(self, values: Schema) -> None:
        super().__init__(Category.MAP)
        self._values = values

    def value_schema(self) -> Schema:
        return self._values

    def type_name(self) -> str:
        return f"{{string: {self._values.type_name()}}}"


class RecordSchema(Schema):
    """Named schema for an ordered list of fields.

    A record may be created empty and populated later with set_fields(),
    which lets fields refer back to the record through a LinkSchema.
    """

    def __init__(self, name: str, fields: Sequence[tuple[str, Schema]] | None = None) -> None:
        super().__init__(Category.RECORD, name)
        self._fields: list[tuple[str, Schema]] = []
        self._positions: dict[str, int] = {}
        if fields:
            self.set_fields(fields)

    def set_fields(self, fields: Sequence[tuple[str, Schema]]) -> None:
        """Set the record's fields, replacing any existing ones."""
        positions: dict[str, int] = {}
        for position, (field_name, _) in enumerate(fields):
            if field_name in positions:
                raise ValueError(f"Record '{self._name}' has duplicate field '{field_name}'")
            positions[field_name] = position
        self._fields = list(fields)
        self._positions = positions

    def fields(self) -> list[tuple[str, Schema]]:
        return list(self._fields)

    def field_position(self, name: str) -> int | None:
        """Get the position of a field by name."""
        return self._positions.get(name)


class UnionSchema(Schema):
    """Schema for a value that holds exactly one of several branches.

    Branches are named after the branch schema's name, or its category for
    anonymous schemas (so ``union { null, int, string[] }`` has branches
    ``null``, ``int`` and ``array``).
    """

    def __init__(self, branches: Sequence[Schema]) -> None:
        super().__init__(Category.UNION)
        if not branches:
            raise ValueError("Union must have at least one branch")
        self._branches: list[tuple[str, Schema]] = []
        self._positions: dict[str, int] = {}
        for position, branch in enumerate(branches):
            branch_name = branch_name_of(branch)
            if branch_name in self._positions:
                raise ValueError(f"Union has duplicate branch '{branch_name}'")
            self._positions[branch_name] = position
            self._branches.append((branch_name, branch))

    def branches(self) -> list[tuple[str, Schema]]:
        return list(self._branches)

    def branch_position(self, name: str) -> int | None:
        """Get the position of a branch by name."""
        return self._positions.get(name)

    def type_name(self) -> str:
        return "union { " + ", ".join(name for name, _ in self._branches) + " }"


class LinkSchema(Schema):
    """Indirection to another named schema, used for recursive structures."""

    def __init__(self, target: Schema) -> None:
        super().__init__(Category.LINK)
        self._target = target

    def link_target(self) -> Schema:
        return self._target

    def type_name(self) -> str:
        return self._target.type_name()


def resolve_link(schema: SchemaView) -> SchemaView:
    """Follow links until reaching a non-link schema."""
    while schema.category() is Category.LINK:
        schema = schema.link_target()
    return schema


def branch_name_of(schema: SchemaView) -> str:
    """Return the union branch name for a schema."""
    schema = resolve_link(schema)
    name = schema.name()
    return name if name is not None else schema.category().value


# One node per primitive kind
PRIMITIVES: dict[str, PrimitiveSchema] = {
    name: PrimitiveSchema(category) for name, category in PRIMITIVE_CATEGORIES.items()
}


class SchemaCatalog:
    """Catalog of named schemas, with the primitives pre-registered."""

    def __init__(self) -> None:
        self._schemas: dict[str, Schema] = dict(PRIMITIVES)

    def register(self, schema: Schema) -> None:
        """Register a named schema."""
        name = schema.name()
        if name is None:
            raise ValueError(f"Cannot register anonymous schema {schema!r}")
        if name in self._schemas:
            raise ValueError(f"Type '{name}' is already defined")
        self._schemas[name] = schema

    def register_stub(self, name: str) -> RecordSchema:
        """Pre-register an empty record for forward/self-references.

        Idempotent: returns the existing stub if name is already an empty record.
        Raises ValueError if name is registered with another schema.
        """
        existing = self._schemas.get(name)
        if existing is not None:
            if isinstance(existing, RecordSchema) and not existing.fields():
                return existing
            raise ValueError(f"Type '{name}' is already defined")
        stub = RecordSchema(name)
        self._schemas[name] = stub
        return stub

    def get(self, name: str) -> Schema | None:
        """Get a schema by name."""
        return self._schemas.get(name)

    def get_or_raise(self, name: str) -> Schema:
        """Get a schema by name, raising if not found."""
        schema = self._schemas.get(name)
        if schema is None:
            raise KeyError(f"Type '{name}' not found")
        return schema

    def list_names(self) -> list[str]:
        """List all registered schema names, primitives included."""
        return list(self._schemas.keys())

    def __contains__(self, name: str) -> bool:
        return name in self._schemas

    def __getitem__(self, name: str) -> Schema:
        return self.get_or_raise(name)
