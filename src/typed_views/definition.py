"""Accessor definitions: how values of a schema are wrapped, written and rendered.

An accessor definition is shared by every value of its schema. Scalar
definitions wrap a raw value into a plain Python value. Compound definitions
(arrays, maps, records, unions) wrap a raw value into a CompoundInstance,
which caches one child wrapper per child position and re-binds it to the
current raw child on every access.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Callable, ClassVar

from typed_views.errors import RawValueError, ReservedNameError, UnboundInstanceError
from typed_views.raw import RawValue

if TYPE_CHECKING:
    from typed_views.schema import Category, SchemaView


class _Missing:
    """Marker for an argument that was not supplied."""

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()

# Escape sequences used when rendering quoted text
_ESCAPES = {
    '"': '\\"',
    "\\": "\\\\",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\0": "\\0",
}


def quote_text(value: str | bytes) -> str:
    """Render a string or byte string as a double-quoted literal."""
    # Bytes above 0x7e are escaped too; text keeps non-ASCII characters
    is_bytes = isinstance(value, (bytes, bytearray))
    chars = map(chr, value) if is_bytes else value
    parts = []
    for char in chars:
        code = ord(char)
        if char in _ESCAPES:
            parts.append(_ESCAPES[char])
        elif code < 0x20 or code == 0x7F or (is_bytes and code > 0x7F):
            parts.append(f"\\x{code:02x}")
        else:
            parts.append(char)
    return '"' + "".join(parts) + '"'


class AccessorDefinition(ABC):
    """How to handle the values of one schema.

    Subclasses (including custom definitions registered for a named schema)
    override:

      instantiate()
        Return a new, empty wrapper, not yet bound to any raw value.

      wrap(instance, raw)
        Bind instance (or a fresh wrapper if instance is None) to raw and
        return the wrapped value. The result does not have to be instance.

      fill_from(raw, value)
        Write value into raw. value may be a wrapper produced by this
        definition or arbitrary Python data.

      render(wrapped)
        Return a human-readable description of a wrapped value.
    """

    def __init__(self, name: str | None = None) -> None:
        self.name = name

    @abstractmethod
    def instantiate(self) -> Any:
        """Return a new, unbound wrapper."""

    @abstractmethod
    def wrap(self, instance: Any, raw: RawValue) -> Any:
        """Bind a wrapper to a raw value and return the wrapped value."""

    @abstractmethod
    def fill_from(self, raw: RawValue, value: Any) -> None:
        """Write value into a raw value."""

    def render(self, wrapped: Any) -> str:
        """Return a human-readable description of a wrapped value."""
        return str(wrapped)

    def __repr__(self) -> str:
        label = f" {self.name}" if self.name is not None else ""
        return f"<{type(self).__name__}{label}>"


# ----------------------------------------------------------------------
# Scalars


class ScalarDefinition(AccessorDefinition):
    """Scalar values: the wrapper is the Python value itself."""

    def instantiate(self) -> Any:
        return None

    def wrap(self, instance: Any, raw: RawValue) -> Any:
        return raw.get()

    def fill_from(self, raw: RawValue, value: Any) -> None:
        raw.set(value)

    def render(self, wrapped: Any) -> str:
        if wrapped is None:
            return "null"
        if isinstance(wrapped, bool):
            return "true" if wrapped else "false"
        return str(wrapped)


class BytesDefinition(ScalarDefinition):
    """Strings, bytes and fixed values, rendered as quoted text."""

    def render(self, wrapped: Any) -> str:
        return quote_text(wrapped)


class Integer64Definition(ScalarDefinition):
    """64-bit integers, rendered as plain decimal digits."""

    def render(self, wrapped: Any) -> str:
        return f"{int(wrapped):d}"


# ----------------------------------------------------------------------
# Compound values


class CompoundDefinition(AccessorDefinition):
    """Base class for the definitions of arrays, maps, records and unions.

    A compound definition is created empty, memoized, and only then
    populated with its children's definitions, so a child that links back to
    an ancestor finds the ancestor's definition already in place.
    """

    instance_class: ClassVar[type[CompoundInstance]]

    def instantiate(self) -> CompoundInstance:
        return self.instance_class(self)

    def wrap(self, instance: Any, raw: RawValue) -> CompoundInstance:
        if instance is None:
            instance = self.instantiate()
        return instance.wrap(raw)

    def fill_from(self, raw: RawValue, value: Any) -> None:
        if isinstance(value, CompoundInstance):
            if value.raw is not raw:
                raw.copy_from(value.raw)
        else:
            raw.set_from_ast(value)

    @abstractmethod
    def populate(self, schema: SchemaView, resolve: Callable[[SchemaView], AccessorDefinition]) -> None:
        """Resolve the definitions of the schema's children."""

    @abstractmethod
    def render(self, wrapped: Any) -> str:
        """Return a human-readable description of a bound instance."""


class CompoundInstance:
    """A compound definition bound to a raw value.

    Child wrappers are created on first access to a child position and kept
    while that position exists in the raw value. Every access re-binds the
    cached child to the raw child the engine hands back, since the engine may
    return a different physical slot for the same position after the value
    changes.
    """

    __slots__ = ("_definition", "_raw", "_children")

    # Public names of the class; writes through these via item or attribute
    # syntax are rejected. Recomputed for every subclass.
    reserved_names: ClassVar[frozenset[str]] = frozenset()

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls.reserved_names = frozenset(name for name in dir(cls) if not name.startswith("_"))

    def __init__(self, definition: CompoundDefinition) -> None:
        object.__setattr__(self, "_definition", definition)
        object.__setattr__(self, "_raw", None)
        object.__setattr__(self, "_children", {})

    def __setattr__(self, name: str, value: Any) -> None:
        if name in CompoundInstance.__slots__:
            object.__setattr__(self, name, value)
        else:
            self._set_attribute(name, value)

    def _set_attribute(self, name: str, value: Any) -> None:
        raise AttributeError(f"Cannot set attribute {name!r} on {type(self).__name__}")

    @property
    def definition(self) -> CompoundDefinition:
        return self._definition

    @property
    def raw(self) -> RawValue:
        """The bound raw value."""
        if self._raw is None:
            raise UnboundInstanceError(f"{type(self).__name__} is not bound to a raw value")
        return self._raw

    @property
    def is_bound(self) -> bool:
        return self._raw is not None

    def schema(self) -> SchemaView:
        return self.raw.schema()

    def wrap(self, raw: RawValue) -> CompoundInstance:
        """Bind to a raw value and return self."""
        self._raw = raw
        return self

    def fill_from(self, value: Any) -> None:
        """Write value (a wrapper or plain data) into the bound raw value."""
        self._definition.fill_from(self.raw, value)
        self._drop_stale_children()

    # ------------------------------------------------------------------
    # Child cache

    def _child_slot(self, key: Any, definition: AccessorDefinition) -> Any:
        try:
            return self._children[key]
        except KeyError:
            slot = self._children[key] = definition.instantiate()
            return slot

    def _bind_child(self, key: Any, definition: AccessorDefinition, raw_child: RawValue) -> Any:
        return definition.wrap(self._child_slot(key, definition), raw_child)

    def _drop_stale_children(self) -> None:
        """Forget cached children whose position no longer exists."""

    def _stage(self, definition: AccessorDefinition, schema: SchemaView, value: Any) -> RawValue:
        """Write value into a detached raw value of schema.

        Committing the result with copy_from() leaves the bound value
        untouched when value is rejected.
        """
        staged = RawValue(schema)
        definition.fill_from(staged, value)
        return staged

    def _check_writable(self, key: Any) -> None:
        if isinstance(key, str) and key in type(self).reserved_names:
            raise ReservedNameError(
                f"Cannot set {key!r} with item or attribute syntax: it names an operation"
            )

    # ------------------------------------------------------------------
    # Whole-value operations, delegated to the raw value

    def cmp(self, other: CompoundInstance) -> int:
        return self.raw.cmp(other.raw)

    def copy_from(self, other: CompoundInstance) -> None:
        self.raw.copy_from(other.raw)
        self._drop_stale_children()

    def hash(self) -> int:
        return self.raw.hash()

    def release(self) -> None:
        self.raw.release()
        self._children.clear()

    def reset(self) -> None:
        self.raw.reset()
        self._children.clear()

    def set_from_ast(self, ast: Any) -> None:
        self.raw.set_from_ast(ast)
        self._drop_stale_children()

    def to_json(self) -> str:
        return self.raw.to_json()

    def to_python(self) -> Any:
        return self.raw.to_python()

    def category(self) -> Category:
        return self.raw.category()

    # ------------------------------------------------------------------
    # Python protocol

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CompoundInstance):
            return NotImplemented
        return self.raw == other.raw

    def __lt__(self, other: CompoundInstance) -> bool:
        return self.raw < other.raw

    def __le__(self, other: CompoundInstance) -> bool:
        return self.raw <= other.raw

    def __gt__(self, other: CompoundInstance) -> bool:
        return self.raw > other.raw

    def __ge__(self, other: CompoundInstance) -> bool:
        return self.raw >= other.raw

    def __hash__(self) -> int:
        return self.raw.hash()

    def __str__(self) -> str:
        return self._definition.render(self)

    def __repr__(self) -> str:
        if self._raw is None:
            return f"<{type(self).__name__} unbound>"
        try:
            return f"<{type(self).__name__} {self}>"
        except RawValueError:
            return f"<{type(self).__name__} released>"
