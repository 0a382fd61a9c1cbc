"""Exceptions raised by the typed_views library.

Every exception derives from :class:`WrapperError` and from the builtin
exception that best describes it, so callers can catch either.
"""

from __future__ import annotations


class WrapperError(Exception):
    """Base class for all typed_views errors."""


class NoSuchFieldError(WrapperError, KeyError):
    """A record field name or position does not exist."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class NoSuchBranchError(WrapperError, KeyError):
    """A union branch name or position does not exist."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class IndexOutOfRange(WrapperError, IndexError, KeyError):
    """An array index or map key has no slot in the raw value."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class ReservedNameError(WrapperError, AttributeError):
    """A write went through a name that is also an operation name."""


class UnresolvableSchemaCategory(WrapperError, TypeError):
    """A schema has a category no accessor definition exists for."""


class UnboundInstanceError(WrapperError, RuntimeError):
    """An accessor instance was used before being bound to a raw value."""


class RawValueError(WrapperError, ValueError):
    """The raw value engine rejected an operation."""
