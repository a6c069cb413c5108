# File: schemagraph/errors.py
"""
SchemaGraph - Exception Taxonomy
==================================
Every failure surfaced by the engine derives from ``SchemaGraphError`` and
carries the offending entity / relation / field (when known), so callers can
print a single descriptive message and exit non-zero.

Hierarchy::

    SchemaGraphError
    ├── SchemaParseError          (ValueError)
    ├── UnsupportedSourceError    (ValueError)
    ├── UnknownScalarTypeError    (ValueError)
    ├── ConfigFrozenError         (RuntimeError)
    └── GraphValidationError      (ValueError)
        ├── StructuralError
        │   └── RelationDefinitionError
        └── ReferentialError
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class SchemaGraphError(Exception):
    """Base class for all SchemaGraph errors."""

    code: str = "SCHEMAGRAPH_ERROR"

    def __init__(
        self,
        message: str,
        *,
        entity: Optional[str] = None,
        relation: Optional[str] = None,
        field: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message: str = message
        self.entity: Optional[str] = entity
        self.relation: Optional[str] = relation
        self.field: Optional[str] = field

    @property
    def context(self) -> Dict[str, str]:
        ctx: Dict[str, str] = {}
        if self.entity is not None:
            ctx["entity"] = self.entity
        if self.relation is not None:
            ctx["relation"] = self.relation
        if self.field is not None:
            ctx["field"] = self.field
        return ctx

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }

    def __str__(self) -> str:
        return self.message


class SchemaParseError(SchemaGraphError, ValueError):
    """Raw input could not be parsed into declarations."""

    code = "PARSE_ERROR"


class UnsupportedSourceError(SchemaGraphError, ValueError):
    """The requested source kind is not one the assembler understands."""

    code = "UNSUPPORTED_SOURCE"


class UnknownScalarTypeError(SchemaGraphError, ValueError):
    """Strict scalar extraction was asked for a token outside the catalogue."""

    code = "UNKNOWN_SCALAR"


class ConfigFrozenError(SchemaGraphError, RuntimeError):
    """The entity list was modified after ``Config.init()``."""

    code = "CONFIG_FROZEN"


class GraphValidationError(SchemaGraphError, ValueError):
    """Base class for graph validation failures."""

    code = "VALIDATION_ERROR"


class StructuralError(GraphValidationError):
    """Entity/field/relation is missing a mandatory piece (name, type, fields)."""

    code = "STRUCTURAL_ERROR"


class RelationDefinitionError(StructuralError):
    """A relation cannot be assembled from the pieces it was given."""

    code = "RELATION_DEFINITION_ERROR"


class ReferentialError(GraphValidationError):
    """A relation points at something that does not exist or lacks its inverse."""

    code = "REFERENTIAL_ERROR"


__all__ = [
    "SchemaGraphError",
    "SchemaParseError",
    "UnsupportedSourceError",
    "UnknownScalarTypeError",
    "ConfigFrozenError",
    "GraphValidationError",
    "StructuralError",
    "RelationDefinitionError",
    "ReferentialError",
]
