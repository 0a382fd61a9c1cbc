"""Typed Views - typed, schema-driven wrappers over generic data values."""

from typed_views.containers import ArrayDefinition, ArrayInstance, MapDefinition, MapInstance
from typed_views.definition import (
    MISSING,
    AccessorDefinition,
    BytesDefinition,
    CompoundDefinition,
    CompoundInstance,
    Integer64Definition,
    ScalarDefinition,
)
from typed_views.errors import (
    IndexOutOfRange,
    NoSuchBranchError,
    NoSuchFieldError,
    RawValueError,
    ReservedNameError,
    UnboundInstanceError,
    UnresolvableSchemaCategory,
    WrapperError,
)
from typed_views.parsing import SchemaParser, parse_schema
from typed_views.raw import RawValue
from typed_views.record import (
    ACTIVE_BRANCH,
    RecordDefinition,
    RecordInstance,
    UnionDefinition,
    UnionInstance,
)
from typed_views.registry import (
    AccessorRegistry,
    default_registry,
    register_override,
    resolve,
    wrap,
)
from typed_views.schema import (
    PRIMITIVES,
    ArraySchema,
    Category,
    EnumSchema,
    FixedSchema,
    LinkSchema,
    MapSchema,
    PrimitiveSchema,
    RecordSchema,
    Schema,
    SchemaCatalog,
    SchemaView,
    UnionSchema,
)

__all__ = [
    # Main API
    "AccessorRegistry",
    "RawValue",
    "SchemaParser",
    "parse_schema",
    "default_registry",
    "register_override",
    "resolve",
    "wrap",
    # Definitions and instances
    "MISSING",
    "ACTIVE_BRANCH",
    "AccessorDefinition",
    "ScalarDefinition",
    "BytesDefinition",
    "Integer64Definition",
    "CompoundDefinition",
    "CompoundInstance",
    "ArrayDefinition",
    "ArrayInstance",
    "MapDefinition",
    "MapInstance",
    "RecordDefinition",
    "RecordInstance",
    "UnionDefinition",
    "UnionInstance",
    # Schemas
    "Category",
    "SchemaView",
    "Schema",
    "PrimitiveSchema",
    "EnumSchema",
    "FixedSchema",
    "ArraySchema",
    "MapSchema",
    "RecordSchema",
    "UnionSchema",
    "LinkSchema",
    "PRIMITIVES",
    "SchemaCatalog",
    # Errors
    "WrapperError",
    "NoSuchFieldError",
    "NoSuchBranchError",
    "IndexOutOfRange",
    "ReservedNameError",
    "UnresolvableSchemaCategory",
    "UnboundInstanceError",
    "RawValueError",
]

__version__ = "0.1.0"
