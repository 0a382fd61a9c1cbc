"""In-memory raw value engine.

A RawValue holds one concrete value conforming to a schema. It is the
storage layer the accessor definitions delegate to: scalars hold a Python
value, arrays and records hold lists of child RawValues, maps hold a dict of
child RawValues (in insertion order), and unions hold the active branch
position together with its child.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any, Iterator

from typed_views.errors import IndexOutOfRange, RawValueError
from typed_views.schema import Category, SchemaView, resolve_link

INT32_MIN, INT32_MAX = -(1 << 31), (1 << 31) - 1
INT64_MIN, INT64_MAX = -(1 << 63), (1 << 63) - 1


def _default_datum(schema: SchemaView, building: frozenset[int] = frozenset()) -> Any:
    """Return the default datum for a (non-link) schema.

    building holds the identities of the records being defaulted further up,
    so a record reached again through its own fields is a cycle.
    """
    category = schema.category()
    if category is Category.NULL:
        return None
    if category is Category.BOOLEAN:
        return False
    if category in (Category.INT, Category.LONG):
        return 0
    if category in (Category.FLOAT, Category.DOUBLE):
        return 0.0
    if category is Category.STRING:
        return ""
    if category is Category.BYTES:
        return b""
    if category is Category.ENUM:
        return _symbols(schema)[0]
    if category is Category.FIXED:
        return b"\x00" * _fixed_size(schema)
    if category is Category.ARRAY:
        return []
    if category is Category.MAP:
        return {}
    if category is Category.RECORD:
        if schema.identity() in building:
            raise RawValueError(f"Record '{schema.name()}' has no finite default value")
        building = building | {schema.identity()}
        return [_new_value(field_schema, building) for _, field_schema in schema.fields()]
    if category is Category.UNION:
        # First branch whose default does not lead back into an enclosing record
        for position, (_, branch_schema) in enumerate(schema.branches()):
            try:
                return (position, _new_value(branch_schema, building))
            except RawValueError:
                continue
        raise RawValueError(f"No branch of {_describe(schema)} has a finite default value")
    raise RawValueError(f"Cannot create a value for schema category {category!r}")


def _new_value(schema: SchemaView, building: frozenset[int]) -> RawValue:
    value = RawValue.__new__(RawValue)
    value._schema = resolve_link(schema)
    value._released = False
    value._datum = _default_datum(value._schema, building)
    return value


def _symbols(schema: SchemaView) -> tuple[str, ...]:
    return tuple(schema.symbols)  # type: ignore[attr-defined]


def _fixed_size(schema: SchemaView) -> int:
    return schema.size  # type: ignore[attr-defined]


def _describe(schema: SchemaView) -> str:
    name = schema.name()
    return name if name is not None else schema.category().value


def _check_scalar(schema: SchemaView, value: Any) -> Any:
    """Validate a scalar value for a schema and return the value to store."""
    category = schema.category()
    if category is Category.NULL:
        if value is not None:
            raise RawValueError(f"null value must be None, got {value!r}")
        return None
    if category is Category.BOOLEAN:
        if not isinstance(value, bool):
            raise RawValueError(f"boolean value must be a bool, got {value!r}")
        return value
    if category in (Category.INT, Category.LONG):
        if isinstance(value, bool) or not isinstance(value, int):
            raise RawValueError(f"{category.value} value must be an integer, got {value!r}")
        low, high = (INT32_MIN, INT32_MAX) if category is Category.INT else (INT64_MIN, INT64_MAX)
        if not low <= value <= high:
            raise RawValueError(f"{value} is out of range for {category.value}")
        return value
    if category in (Category.FLOAT, Category.DOUBLE):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise RawValueError(f"{category.value} value must be a number, got {value!r}")
        return float(value)
    if category is Category.STRING:
        if not isinstance(value, str):
            raise RawValueError(f"string value must be a str, got {value!r}")
        return value
    if category is Category.BYTES:
        if not isinstance(value, (bytes, bytearray)):
            raise RawValueError(f"bytes value must be bytes, got {value!r}")
        return bytes(value)
    if category is Category.ENUM:
        symbols = _symbols(schema)
        if isinstance(value, int) and not isinstance(value, bool):
            if not 0 <= value < len(symbols):
                raise RawValueError(f"Enum '{schema.name()}' has no symbol at position {value}")
            return symbols[value]
        if value not in symbols:
            raise RawValueError(f"Enum '{schema.name()}' has no symbol {value!r}")
        return value
    if category is Category.FIXED:
        size = _fixed_size(schema)
        if not isinstance(value, (bytes, bytearray)) or len(value) != size:
            raise RawValueError(f"Fixed '{schema.name()}' value must be {size} bytes, got {value!r}")
        return bytes(value)
    raise RawValueError(f"Schema category {category.value} is not a scalar")


def _compare_values(left: Any, right: Any) -> int:
    return (left > right) - (left < right)


class RawValue:
    """A concrete value conforming to a schema.

    Links in the schema are followed at construction, so schema() never
    returns a link.
    """

    __slots__ = ("_schema", "_datum", "_released")

    def __init__(self, schema: SchemaView) -> None:
        self._schema = resolve_link(schema)
        self._released = False
        self._datum = _default_datum(self._schema)

    # ------------------------------------------------------------------
    # Introspection

    def schema(self) -> SchemaView:
        return self._schema

    def category(self) -> Category:
        return self._schema.category()

    def _check_live(self) -> None:
        if self._released:
            raise RawValueError("Value has been released")

    def _check_category(self, *categories: Category) -> Category:
        self._check_live()
        category = self._schema.category()
        if category not in categories:
            expected = "/".join(c.value for c in categories)
            raise RawValueError(f"Operation needs a {expected} value, not {category.value}")
        return category

    # ------------------------------------------------------------------
    # Child access

    def _position(self, key: Any) -> int:
        """Resolve a record field or union branch key to a position."""
        schema = self._schema
        children = schema.fields() if schema.category() is Category.RECORD else schema.branches()
        if isinstance(key, int) and not isinstance(key, bool):
            if 0 <= key < len(children):
                return key
        else:
            for position, (child_name, _) in enumerate(children):
                if child_name == key:
                    return position
        raise IndexOutOfRange(f"'{_describe(schema)}' has no slot {key!r}")

    def _select(self, position: int) -> RawValue:
        """Make a union branch active and return its child."""
        index, child = self._datum
        if index != position:
            _, branch_schema = self._schema.branches()[position]
            child = RawValue(branch_schema)
            self._datum = (position, child)
        return child

    def get(self, key: Any = None) -> Any:
        """Return a scalar's value, or the child slot for key.

        For unions, no key returns the active branch's child and a key makes
        that branch active (resetting it if it was not) and returns its child.
        """
        self._check_live()
        category = self._schema.category()
        if category.is_scalar:
            if key is not None:
                raise RawValueError(f"Scalar {category.value} value has no children")
            return self._datum
        if category is Category.ARRAY:
            if isinstance(key, int) and not isinstance(key, bool) and 0 <= key < len(self._datum):
                return self._datum[key]
            raise IndexOutOfRange(f"Array index {key!r} out of range (size {len(self._datum)})")
        if category is Category.MAP:
            try:
                return self._datum[key]
            except (KeyError, TypeError):
                raise IndexOutOfRange(f"Map has no key {key!r}") from None
        if category is Category.RECORD:
            return self._datum[self._position(key)]
        if key is None:
            return self._datum[1]
        return self._select(self._position(key))

    def set(self, key_or_value: Any = None) -> Any:
        """Store a scalar value, or return the child slot for key.

        For unions this activates the given branch and returns its child.
        """
        self._check_live()
        category = self._schema.category()
        if category.is_scalar:
            self._datum = _check_scalar(self._schema, key_or_value)
            return None
        if category is Category.MAP:
            return self.add(key_or_value)
        return self.get(key_or_value)

    def append(self) -> RawValue:
        """Grow an array by one default element and return it."""
        self._check_category(Category.ARRAY)
        child = RawValue(self._schema.item_schema())
        self._datum.append(child)
        return child

    def add(self, key: str) -> RawValue:
        """Return the map slot for key, creating it if needed."""
        self._check_category(Category.MAP)
        if not isinstance(key, str):
            raise RawValueError(f"Map keys must be strings, got {key!r}")
        child = self._datum.get(key)
        if child is None:
            child = self._datum[key] = RawValue(self._schema.value_schema())
        return child

    def size(self) -> int:
        """Return the number of elements, entries or fields."""
        self._check_category(Category.ARRAY, Category.MAP, Category.RECORD)
        return len(self._datum)

    def iterate(self) -> Iterator[tuple[Any, RawValue]]:
        """Return a one-shot iterator of (index or key, child) pairs."""
        category = self._check_category(Category.ARRAY, Category.MAP, Category.RECORD)
        if category is Category.MAP:
            return iter(list(self._datum.items()))
        return iter(list(enumerate(self._datum)))

    def discriminant_index(self) -> int:
        """Return the position of the active union branch."""
        self._check_category(Category.UNION)
        return self._datum[0]

    def discriminant_name(self) -> str:
        """Return the name of the active union branch."""
        self._check_category(Category.UNION)
        name, _ = self._schema.branches()[self._datum[0]]
        return name

    # ------------------------------------------------------------------
    # Whole-value operations

    def _check_compatible(self, other: RawValue) -> None:
        self._check_live()
        other._check_live()
        if self._schema.identity() != other._schema.identity():
            raise RawValueError(
                f"Incompatible schemas: {self._schema!r} and {other._schema!r}"
            )

    def copy_from(self, other: RawValue) -> None:
        """Replace this value's contents with a deep copy of other's."""
        self._check_compatible(other)
        if other is not self:
            self._datum = other._copy_datum()

    def _copy_datum(self) -> Any:
        category = self._schema.category()
        if category.is_scalar:
            return self._datum
        if category is Category.MAP:
            return {key: child._copy() for key, child in self._datum.items()}
        if category is Category.UNION:
            index, child = self._datum
            return (index, child._copy())
        return [child._copy() for child in self._datum]

    def _copy(self) -> RawValue:
        clone = RawValue.__new__(RawValue)
        clone._schema = self._schema
        clone._released = False
        clone._datum = self._copy_datum()
        return clone

    def cmp(self, other: RawValue) -> int:
        """Compare with another value of the same schema; return -1, 0 or 1."""
        self._check_compatible(other)
        return self._cmp(other)

    def _cmp(self, other: RawValue) -> int:
        category = self._schema.category()
        left, right = self._datum, other._datum
        if category is Category.NULL:
            return 0
        if category is Category.ENUM:
            symbols = _symbols(self._schema)
            return _compare_values(symbols.index(left), symbols.index(right))
        if category.is_scalar:
            return _compare_values(left, right)
        if category is Category.UNION:
            if left[0] != right[0]:
                return _compare_values(left[0], right[0])
            return left[1]._cmp(right[1])
        if category is Category.MAP:
            left_keys, right_keys = sorted(left), sorted(right)
            if left_keys != right_keys:
                return _compare_values(left_keys, right_keys)
            for key in left_keys:
                result = left[key]._cmp(right[key])
                if result:
                    return result
            return 0
        for left_child, right_child in zip(left, right):
            result = left_child._cmp(right_child)
            if result:
                return result
        return _compare_values(len(left), len(right))

    def _frozen(self) -> Any:
        category = self._schema.category()
        if category.is_scalar:
            return self._datum
        if category is Category.MAP:
            return tuple((key, self._datum[key]._frozen()) for key in sorted(self._datum))
        if category is Category.UNION:
            return (self._datum[0], self._datum[1]._frozen())
        return tuple(child._frozen() for child in self._datum)

    def hash(self) -> int:
        """Return a hash consistent with cmp()."""
        self._check_live()
        return hash((self._schema.identity(), self._frozen()))

    def reset(self) -> None:
        """Reset to the schema's default value."""
        self._check_live()
        self._datum = _default_datum(self._schema)

    def release(self) -> None:
        """Release the value; any later operation raises RawValueError."""
        self._check_live()
        self._released = True
        self._datum = None

    # ------------------------------------------------------------------
    # Plain data conversion

    def set_from_ast(self, ast: Any) -> None:
        """Assign from plain Python data.

        Arrays take sequences, maps take mappings, records take mappings of
        field name to value or sequences in field order, unions take None for
        the null branch, a one-item mapping naming a branch, or any value the
        first suitable branch accepts. On error the value is left unchanged.
        """
        self._check_live()
        scratch = RawValue(self._schema)
        scratch._assign(ast)
        self._datum = scratch._datum

    def _assign(self, ast: Any) -> None:
        schema = self._schema
        category = schema.category()

        if isinstance(ast, RawValue):
            self._check_compatible(ast)
            self._datum = ast._copy_datum()
        elif category.is_scalar:
            self._datum = _check_scalar(schema, ast)
        elif category is Category.ARRAY:
            if isinstance(ast, (str, bytes, Mapping)) or not hasattr(ast, "__iter__"):
                raise RawValueError(f"Array value must be a sequence, got {ast!r}")
            elements = []
            for item in ast:
                child = RawValue(schema.item_schema())
                child._assign(item)
                elements.append(child)
            self._datum = elements
        elif category is Category.MAP:
            if not isinstance(ast, Mapping):
                raise RawValueError(f"Map value must be a mapping, got {ast!r}")
            entries = {}
            for key, item in ast.items():
                if not isinstance(key, str):
                    raise RawValueError(f"Map keys must be strings, got {key!r}")
                child = RawValue(schema.value_schema())
                child._assign(item)
                entries[key] = child
            self._datum = entries
        elif category is Category.RECORD:
            self._assign_record(ast)
        elif category is Category.UNION:
            self._assign_union(ast)
        else:
            raise RawValueError(f"Cannot assign to schema category {category!r}")

    def _assign_record(self, ast: Any) -> None:
        fields = self._schema.fields()
        children = [RawValue(field_schema) for _, field_schema in fields]
        if isinstance(ast, Mapping):
            names = [field_name for field_name, _ in fields]
            unknown = [key for key in ast if key not in names]
            if unknown:
                raise RawValueError(f"Record '{self._schema.name()}' has no fields {unknown}")
            for position, field_name in enumerate(names):
                if field_name in ast:
                    children[position]._assign(ast[field_name])
        elif isinstance(ast, (list, tuple)):
            if len(ast) != len(fields):
                raise RawValueError(
                    f"Record '{self._schema.name()}' needs {len(fields)} values, got {len(ast)}"
                )
            for child, item in zip(children, ast):
                child._assign(item)
        else:
            raise RawValueError(f"Record value must be a mapping or sequence, got {ast!r}")
        self._datum = children

    def _assign_union(self, ast: Any) -> None:
        branches = self._schema.branches()
        names = [branch_name for branch_name, _ in branches]

        if isinstance(ast, Mapping) and len(ast) == 1:
            (key, item), = ast.items()
            if key in names:
                position = names.index(key)
                child = RawValue(branches[position][1])
                try:
                    child._assign(item)
                except RawValueError:
                    pass  # may still be the content of a map or record branch
                else:
                    self._datum = (position, child)
                    return

        for position, (_, branch_schema) in enumerate(branches):
            is_null = resolve_link(branch_schema).category() is Category.NULL
            if is_null != (ast is None):
                continue
            child = RawValue(branch_schema)
            try:
                child._assign(ast)
            except RawValueError:
                continue
            self._datum = (position, child)
            return
        raise RawValueError(f"No branch of {_describe(self._schema)} accepts {ast!r}")

    def to_python(self) -> Any:
        """Return the value as plain Python data, in JSON-compatible shape."""
        self._check_live()
        return self._jsonable()

    def _jsonable(self) -> Any:
        category = self._schema.category()
        if category in (Category.BYTES, Category.FIXED):
            return self._datum.decode("latin-1")
        if category.is_scalar:
            return self._datum
        if category is Category.ARRAY:
            return [child._jsonable() for child in self._datum]
        if category is Category.MAP:
            return {key: child._jsonable() for key, child in self._datum.items()}
        if category is Category.RECORD:
            return {
                field_name: child._jsonable()
                for (field_name, _), child in zip(self._schema.fields(), self._datum)
            }
        index, child = self._datum
        if child.category() is Category.NULL:
            return None
        name, _ = self._schema.branches()[index]
        return {name: child._jsonable()}

    def to_json(self) -> str:
        """Return the value as JSON text."""
        return json.dumps(self.to_python())

    # ------------------------------------------------------------------
    # Python protocol

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RawValue):
            return NotImplemented
        if self._schema.identity() != other._schema.identity():
            return False
        return self.cmp(other) == 0

    def __lt__(self, other: RawValue) -> bool:
        return self.cmp(other) < 0

    def __le__(self, other: RawValue) -> bool:
        return self.cmp(other) <= 0

    def __gt__(self, other: RawValue) -> bool:
        return self.cmp(other) > 0

    def __ge__(self, other: RawValue) -> bool:
        return self.cmp(other) >= 0

    def __hash__(self) -> int:
        return self.hash()

    def __repr__(self) -> str:
        if self._released:
            return "<RawValue released>"
        return f"<RawValue {_describe(self._schema)}: {self.to_json()}>"
