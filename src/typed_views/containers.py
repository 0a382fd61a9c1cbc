"""Accessor definitions for arrays and maps."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Iterator

from typed_views.definition import (
    MISSING,
    AccessorDefinition,
    CompoundDefinition,
    CompoundInstance,
    quote_text,
)
from typed_views.errors import IndexOutOfRange

if TYPE_CHECKING:
    from typed_views.raw import RawValue
    from typed_views.schema import SchemaView


class _ContainerDefinition(CompoundDefinition):
    """Shared state of array and map definitions: one child definition."""

    def __init__(self, name: str | None = None) -> None:
        super().__init__(name)
        self.child_definition: AccessorDefinition | None = None

    def _child_schema(self, schema: SchemaView) -> SchemaView:
        raise NotImplementedError

    def populate(self, schema: SchemaView, resolve: Callable[[SchemaView], AccessorDefinition]) -> None:
        self.child_definition = resolve(self._child_schema(schema))


class _ContainerInstance(CompoundInstance):
    """Operations shared by array and map instances."""

    __slots__ = ()

    def _child_definition(self) -> AccessorDefinition:
        return self._definition.child_definition  # type: ignore[attr-defined]

    def get(self, key: Any) -> Any:
        """Return the wrapped child at key."""
        raw_child = self.raw.get(key)
        return self._bind_child(key, self._child_definition(), raw_child)

    def iterate(self, raw: bool = False) -> Iterator[tuple[Any, Any]]:
        """Iterate over (key, child) pairs.

        The iterator is lazy and one-shot. With raw=True it yields the raw
        children without wrapping them.
        """
        if raw:
            return self.raw.iterate()
        return self._iterate_wrapped(self.raw.iterate())

    def _iterate_wrapped(self, pairs: Iterator[tuple[Any, RawValue]]) -> Iterator[tuple[Any, Any]]:
        definition = self._child_definition()
        for key, raw_child in pairs:
            yield key, self._bind_child(key, definition, raw_child)

    def wrap(self, raw: RawValue) -> _ContainerInstance:
        super().wrap(raw)
        # The raw value may have shrunk or changed keys since the last bind
        if self._children and len(self._children) > raw.size():
            self._drop_stale_children()
        return self

    def _drop_stale_children(self) -> None:
        children = self._children
        if not children:
            return
        live = {key for key, _ in self.raw.iterate()}
        for key in [key for key in children if key not in live]:
            del children[key]

    def __len__(self) -> int:
        return self.raw.size()

    def __getitem__(self, key: Any) -> Any:
        return self.get(key)


# ----------------------------------------------------------------------
# Array


class ArrayInstance(_ContainerInstance):
    """An array value: children are addressed by zero-based index."""

    __slots__ = ()

    def append(self, value: Any = MISSING) -> Any:
        """Append a new element.

        With a value, the value is written into the new element and nothing
        is returned. Without one, the wrapped new element is returned for
        the caller to fill in.
        """
        definition = self._child_definition()
        staged = None
        if value is not MISSING:
            staged = self._stage(definition, self.raw.schema().item_schema(), value)
        raw_child = self.raw.append()
        wrapped = self._bind_child(self.raw.size() - 1, definition, raw_child)
        if staged is None:
            return wrapped
        raw_child.copy_from(staged)
        return None

    def set(self, index: int, value: Any) -> None:
        """Write value into the existing element at index."""
        raw_child = self.raw.get(index)
        definition = self._child_definition()
        self._bind_child(index, definition, raw_child)
        definition.fill_from(raw_child, value)

    def __setitem__(self, index: Any, value: Any) -> None:
        self._check_writable(index)
        self.set(index, value)

    def __iter__(self) -> Iterator[Any]:
        for _, child in self.iterate():
            yield child


class ArrayDefinition(_ContainerDefinition):
    """Definition for array schemas."""

    instance_class = ArrayInstance

    def _child_schema(self, schema: SchemaView) -> SchemaView:
        return schema.item_schema()

    def render(self, wrapped: Any) -> str:
        definition = self.child_definition
        elements = [definition.render(child) for _, child in wrapped.iterate()]  # type: ignore[union-attr]
        return "[" + ", ".join(elements) + "]"


# ----------------------------------------------------------------------
# Map


class MapInstance(_ContainerInstance):
    """A map value: children are addressed by string key."""

    __slots__ = ()

    def add(self, key: str, value: Any = MISSING) -> Any:
        """Create or update the entry for key.

        An existing key is updated in place. With a value, the value is
        written into the entry and nothing is returned. Without one, the
        wrapped entry is returned for the caller to fill in.
        """
        definition = self._child_definition()
        staged = None
        if value is not MISSING:
            staged = self._stage(definition, self.raw.schema().value_schema(), value)
        raw_child = self.raw.add(key)
        wrapped = self._bind_child(key, definition, raw_child)
        if staged is None:
            return wrapped
        raw_child.copy_from(staged)
        return None

    set = add

    def __setitem__(self, key: Any, value: Any) -> None:
        self._check_writable(key)
        self.add(key, value)

    def __contains__(self, key: object) -> bool:
        try:
            self.raw.get(key)
        except IndexOutOfRange:
            return False
        return True

    def __iter__(self) -> Iterator[str]:
        for key, _ in self.raw.iterate():
            yield key


class MapDefinition(_ContainerDefinition):
    """Definition for map schemas."""

    instance_class = MapInstance

    def _child_schema(self, schema: SchemaView) -> SchemaView:
        return schema.value_schema()

    def render(self, wrapped: Any) -> str:
        definition = self.child_definition
        entries = [
            f"{quote_text(key)}: {definition.render(child)}"  # type: ignore[union-attr]
            for key, child in wrapped.iterate()
        ]
        return "{" + ", ".join(entries) + "}"
