"""Exception hierarchy shared by the conversion core."""

from __future__ import annotations


class BlockDocError(Exception):
    """Base class for every error raised by blockdoc."""


class StructuralError(BlockDocError, ValueError):
    """Raised when content does not match the shape declared by the schema.

    Covers malformed container/content/group nesting as well as blocks whose
    content or props contradict their block type. Never raised for unknown
    external markup, which degrades instead.
    """


class SchemaError(BlockDocError):
    """Raised for registry misuse such as unknown or duplicate block types."""


class DependencyInitError(BlockDocError, RuntimeError):
    """Raised when an optional formatting dependency fails to initialize."""


__all__ = ["BlockDocError", "DependencyInitError", "SchemaError", "StructuralError"]
