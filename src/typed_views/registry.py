"""Registry resolving schemas to accessor definitions."""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any, Mapping

from typed_views.containers import ArrayDefinition, MapDefinition
from typed_views.definition import (
    AccessorDefinition,
    BytesDefinition,
    CompoundDefinition,
    Integer64Definition,
    ScalarDefinition,
)
from typed_views.errors import UnresolvableSchemaCategory
from typed_views.record import RecordDefinition, UnionDefinition
from typed_views.schema import Category

if TYPE_CHECKING:
    from typed_views.raw import RawValue
    from typed_views.schema import SchemaView

log = logging.getLogger(__name__)

# Built-in definition class for each scalar category
SCALAR_DEFINITIONS: dict[Category, type[ScalarDefinition]] = {
    Category.BOOLEAN: ScalarDefinition,
    Category.BYTES: BytesDefinition,
    Category.DOUBLE: ScalarDefinition,
    Category.FLOAT: ScalarDefinition,
    Category.INT: ScalarDefinition,
    Category.LONG: Integer64Definition,
    Category.NULL: ScalarDefinition,
    Category.STRING: BytesDefinition,
    Category.ENUM: ScalarDefinition,
    Category.FIXED: BytesDefinition,
}

# Derived definition class for each compound category
COMPOUND_DEFINITIONS: dict[Category, type[CompoundDefinition]] = {
    Category.ARRAY: ArrayDefinition,
    Category.MAP: MapDefinition,
    Category.RECORD: RecordDefinition,
    Category.UNION: UnionDefinition,
}


class AccessorRegistry:
    """Resolves schemas to the accessor definitions that handle their values.

    The registry owns two tables: custom definitions registered by schema
    name, which take precedence over everything else, and derived compound
    definitions memoized by schema identity. Each scalar category has one
    built-in definition per registry.

    Resolution is guarded by a re-entrant lock, so a registry may be shared
    between threads. The instances it produces may not.
    """

    def __init__(self, overrides: Mapping[str, AccessorDefinition] | None = None) -> None:
        """Initialize a registry.

        Args:
            overrides: Custom definitions to install, keyed by schema name.
        """
        self._overrides: dict[str, AccessorDefinition] = dict(overrides or {})
        self._memoized: dict[int, CompoundDefinition] = {}
        self._scalars: dict[Category, ScalarDefinition] = {
            category: definition_class(category.value)
            for category, definition_class in SCALAR_DEFINITIONS.items()
        }
        self._lock = threading.RLock()
        # Identities memoized during the current top-level derivation
        self._pending: list[int] = []
        self._depth = 0

    def register_override(self, name: str, definition: AccessorDefinition) -> None:
        """Install a custom definition for every schema named name.

        Replaces any earlier override for the same name. Memoized compound
        definitions captured their children when they were derived, so they
        are dropped and derived again on next use.
        """
        with self._lock:
            replaced = self._overrides.get(name)
            self._overrides[name] = definition
            if self._memoized:
                log.debug("Dropping %d memoized definitions", len(self._memoized))
                self._memoized.clear()
        if replaced is not None:
            log.debug("Replaced override for %s: %r -> %r", name, replaced, definition)
        else:
            log.debug("Registered override for %s: %r", name, definition)

    def override(self, name: str) -> AccessorDefinition | None:
        """Get the custom definition registered for a schema name."""
        with self._lock:
            return self._overrides.get(name)

    def resolve(self, schema: SchemaView) -> AccessorDefinition:
        """Return the accessor definition for a schema.

        Links resolve to their target. A custom definition registered under
        the schema's name wins; scalar categories get the built-in
        definition; compound categories get a definition derived once per
        schema identity.

        Raises:
            UnresolvableSchemaCategory: If the schema's category is unknown.
        """
        with self._lock:
            category = schema.category()
            while category is Category.LINK:
                schema = schema.link_target()
                category = schema.category()

            name = schema.name()
            if name is not None:
                definition = self._overrides.get(name)
                if definition is not None:
                    return definition

            scalar = self._scalars.get(category)
            if scalar is not None:
                return scalar

            memoized = self._memoized.get(schema.identity())
            if memoized is not None:
                return memoized

            definition_class = COMPOUND_DEFINITIONS.get(category)
            if definition_class is None:
                raise UnresolvableSchemaCategory(
                    f"No accessor definition for schema category {category!r}"
                )
            return self._derive(schema, definition_class)

    def _derive(self, schema: SchemaView, definition_class: type[CompoundDefinition]) -> CompoundDefinition:
        """Create, memoize, then populate a compound definition.

        The definition is memoized before its children are resolved, so a
        child linking back to this schema resolves to this definition. If
        derivation fails, everything memoized since the outermost derive
        call is dropped again.
        """
        identity = schema.identity()
        definition = definition_class(schema.name())
        self._memoized[identity] = definition
        self._pending.append(identity)
        self._depth += 1
        try:
            definition.populate(schema, self.resolve)
        except Exception:
            for pending in self._pending:
                self._memoized.pop(pending, None)
            self._pending.clear()
            raise
        finally:
            self._depth -= 1
            if self._depth == 0:
                self._pending.clear()
        log.debug("Derived %r for schema #%d", definition, identity)
        return definition

    def wrap(self, raw: RawValue, instance: Any = None) -> Any:
        """Wrap a raw value with the definition for its schema.

        Args:
            raw: The raw value to wrap.
            instance: A wrapper from an earlier wrap() of the same schema
                to re-bind instead of creating a new one.

        Returns:
            The wrapped value: a CompoundInstance for compound schemas, a
            plain Python value for scalars, or whatever a custom definition
            produces.
        """
        definition = self.resolve(raw.schema())
        if instance is None:
            instance = definition.instantiate()
        return definition.wrap(instance, raw)

    def clear(self) -> None:
        """Drop all memoized definitions and overrides."""
        with self._lock:
            self._memoized.clear()
            self._overrides.clear()

    def __contains__(self, name: str) -> bool:
        with self._lock:
            return name in self._overrides


_default_registry = AccessorRegistry()


def default_registry() -> AccessorRegistry:
    """Return the registry used by the module-level helpers."""
    return _default_registry


def resolve(schema: SchemaView) -> AccessorDefinition:
    """Resolve a schema with the default registry."""
    return _default_registry.resolve(schema)


def register_override(name: str, definition: AccessorDefinition) -> None:
    """Register a custom definition with the default registry."""
    _default_registry.register_override(name, definition)


def wrap(raw: RawValue, instance: Any = None) -> Any:
    """Wrap a raw value with the default registry."""
    return _default_registry.wrap(raw, instance)
