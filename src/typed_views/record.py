"""Accessor definitions for records and unions.

Both keep an ordered list of (name, child definition) pairs and a lookup
table from both the zero-based position and the name to the position.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable

from typed_views.definition import (
    MISSING,
    AccessorDefinition,
    CompoundDefinition,
    CompoundInstance,
)
from typed_views.errors import NoSuchBranchError, NoSuchFieldError
from typed_views.schema import Category, resolve_link

if TYPE_CHECKING:
    from typed_views.schema import SchemaView

# Pseudo-field naming the active branch of a union
ACTIVE_BRANCH = "_"


class _StructDefinition(CompoundDefinition):
    """Shared state of record and union definitions."""

    def __init__(self, name: str | None = None) -> None:
        super().__init__(name)
        self.children: list[tuple[str, AccessorDefinition]] = []
        self.positions: dict[int | str, int] = {}

    def _child_schemas(self, schema: SchemaView) -> list[tuple[str, SchemaView]]:
        raise NotImplementedError

    def populate(self, schema: SchemaView, resolve: Callable[[SchemaView], AccessorDefinition]) -> None:
        for position, (child_name, child_schema) in enumerate(self._child_schemas(schema)):
            self.children.append((child_name, resolve(child_schema)))
            self.positions[position] = position
            self.positions[child_name] = position


class _StructInstance(CompoundInstance):
    """Name and position lookup shared by record and union instances."""

    __slots__ = ()

    _missing_error: type[KeyError] = KeyError
    _child_kind = "child"

    def _position(self, key: Any) -> int:
        position = None
        if not isinstance(key, bool):
            try:
                position = self._definition.positions.get(key)  # type: ignore[attr-defined]
            except TypeError:
                pass
        if position is None:
            owner = self._definition.name or "union"
            raise self._missing_error(f"No {self._child_kind} {key!r} in {owner}")
        return position

    def __getattr__(self, name: str) -> Any:
        if name.startswith("__") or name in CompoundInstance.__slots__:
            raise AttributeError(name)
        try:
            return self[name]
        except (NoSuchFieldError, NoSuchBranchError) as exc:
            raise AttributeError(name) from exc

    def _set_attribute(self, name: str, value: Any) -> None:
        try:
            self[name] = value
        except (NoSuchFieldError, NoSuchBranchError) as exc:
            raise AttributeError(name) from exc


# ----------------------------------------------------------------------
# Record


class RecordInstance(_StructInstance):
    """A record value: fields are addressed by name or position.

    ``record.x``, ``record["x"]`` and ``record[0]`` (for a first field x)
    all read the same field.
    """

    __slots__ = ()

    _missing_error = NoSuchFieldError
    _child_kind = "field"

    def get(self, key: int | str) -> Any:
        """Return the wrapped field for a name or position."""
        position = self._position(key)
        raw_child = self.raw.get(position)
        _, definition = self._definition.children[position]  # type: ignore[attr-defined]
        return self._bind_child(position, definition, raw_child)

    def set(self, key: int | str, value: Any) -> None:
        """Write value into the field for a name or position."""
        position = self._position(key)
        raw_child = self.raw.get(position)
        _, definition = self._definition.children[position]  # type: ignore[attr-defined]
        self._bind_child(position, definition, raw_child)
        definition.fill_from(raw_child, value)

    def __getitem__(self, key: int | str) -> Any:
        return self.get(key)

    def __setitem__(self, key: int | str, value: Any) -> None:
        self._check_writable(key)
        self.set(key, value)


class RecordDefinition(_StructDefinition):
    """Definition for record schemas."""

    instance_class = RecordInstance

    def _child_schemas(self, schema: SchemaView) -> list[tuple[str, SchemaView]]:
        return schema.fields()

    @property
    def fields(self) -> list[tuple[str, AccessorDefinition]]:
        return self.children

    def render(self, wrapped: Any) -> str:
        entries = [
            f"{field_name}: {definition.render(wrapped.get(position))}"
            for position, (field_name, definition) in enumerate(self.children)
        ]
        return "{" + ", ".join(entries) + "}"


# ----------------------------------------------------------------------
# Union


class UnionInstance(_StructInstance):
    """A union value: exactly one branch is active at a time.

    Fetching or writing a branch that is not active makes it the active
    one. ``union._`` reads and writes the active branch without naming it.
    """

    __slots__ = ()

    _missing_error = NoSuchBranchError
    _child_kind = "branch"

    def discriminant_index(self) -> int:
        """Return the position of the active branch."""
        return self.raw.discriminant_index()

    def discriminant_name(self) -> str:
        """Return the name of the active branch."""
        return self.raw.discriminant_name()

    def _branch(self, branch: int | str | None, for_write: bool) -> tuple[int, AccessorDefinition, Any]:
        if branch is None:
            position = self.raw.discriminant_index()
            raw_child = self.raw.get()
        else:
            position = self._position(branch)
            raw_child = self.raw.set(position) if for_write else self.raw.get(position)
        _, definition = self._definition.children[position]  # type: ignore[attr-defined]
        return position, definition, raw_child

    def get(self, branch: int | str | None = None) -> Any:
        """Return the wrapped child of a branch, or of the active branch."""
        position, definition, raw_child = self._branch(branch, for_write=False)
        return self._bind_child(position, definition, raw_child)

    def set(self, branch: int | str | None = None, value: Any = MISSING) -> Any:
        """Activate a branch (or keep the active one) and write into it.

        With a value, the value is written and nothing is returned. Without
        one, the wrapped child is returned for the caller to fill in.
        """
        staged = None
        if value is not MISSING:
            position = self.raw.discriminant_index() if branch is None else self._position(branch)
            _, definition = self._definition.children[position]  # type: ignore[attr-defined]
            _, branch_schema = self.raw.schema().branches()[position]
            staged = self._stage(definition, branch_schema, value)
        position, definition, raw_child = self._branch(branch, for_write=True)
        wrapped = self._bind_child(position, definition, raw_child)
        if staged is None:
            return wrapped
        raw_child.copy_from(staged)
        return None

    def __getitem__(self, key: int | str) -> Any:
        if key == ACTIVE_BRANCH:
            return self.get()
        return self.get(key)

    def __setitem__(self, key: int | str, value: Any) -> None:
        self._check_writable(key)
        if key == ACTIVE_BRANCH:
            self.set(None, value)
        else:
            self.set(key, value)


class UnionDefinition(_StructDefinition):
    """Definition for union schemas."""

    instance_class = UnionInstance

    def __init__(self, name: str | None = None) -> None:
        super().__init__(name)
        self.null_branches: set[int] = set()

    def _child_schemas(self, schema: SchemaView) -> list[tuple[str, SchemaView]]:
        return schema.branches()

    def populate(self, schema: SchemaView, resolve: Callable[[SchemaView], AccessorDefinition]) -> None:
        super().populate(schema, resolve)
        for position, (_, branch_schema) in enumerate(schema.branches()):
            if resolve_link(branch_schema).category() is Category.NULL:
                self.null_branches.add(position)

    @property
    def branches(self) -> list[tuple[str, AccessorDefinition]]:
        return self.children

    def render(self, wrapped: Any) -> str:
        position = wrapped.discriminant_index()
        branch_name = wrapped.discriminant_name()
        if position in self.null_branches:
            return branch_name
        _, definition = self.children[position]
        return f"<{branch_name}> {definition.render(wrapped.get())}"
