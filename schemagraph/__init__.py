# File: schemagraph/__init__.py
"""
SchemaGraph — Schema Resolution & Relation Graph Engine
=========================================================

Reads a declarative data model (SDL, JSON or YAML), normalizes every field
type into a canonical catalogue, assembles entities and relations into an
in-memory graph, infers missing inverse relations, resolves foreign keys and
pivot tables, and validates the whole graph before any code generator runs.

Architecture overview::

    ┌──────────────┐     ┌───────────────┐     ┌────────────────┐
    │ SDL / JSON / │────▶│ ConfigBuilder │────▶│ GraphValidator │──▶ Config
    │     YAML     │     │ (assembler.py)│     │ (validators.py)│
    └──────────────┘     └───────┬───────┘     └────────────────┘
                                 │
                    ┌────────────┼────────────┐
                    ▼            ▼            ▼
             ┌──────────┐ ┌────────────┐ ┌───────────┐
             │  reader  │ │ normalizer │ │ builders  │
             │  (.py)   │ │   (.py)    │ │  (.py)    │
             └──────────┘ └────────────┘ └───────────┘

Usage::

    from schemagraph import load_config

    config = load_config(sdl_text, "sdl")
    for entity in config.entities:
        for relation in entity.relations:
            print(relation.describe())

Public API:
    - load_config      — Build + validate in one call
    - ConfigBuilder    — Source → Config assembly
    - GraphValidator   — Fail-fast validation with inverse inference
    - SchemaReader     — SDL reader
    - TypeNormalizer   — Raw type → FieldType mapping
    - RelationBuilder  — Fluent relation construction with naming inference
"""

from __future__ import annotations

__version__: str = "1.0.0"
__author__: str = "NexaFlow Team"
__license__: str = "MIT"

from schemagraph.assembler import ConfigBuilder, SourceKind, load_config
from schemagraph.builders import RelationBuilder
from schemagraph.errors import (
    ConfigFrozenError,
    GraphValidationError,
    ReferentialError,
    RelationDefinitionError,
    SchemaGraphError,
    SchemaParseError,
    StructuralError,
    UnknownScalarTypeError,
    UnsupportedSourceError,
)
from schemagraph.models import (
    App,
    Config,
    Entity,
    EntitySettings,
    EnumDefinition,
    Field,
    FieldType,
    GraphOptions,
    Relation,
    RelationType,
    ScalarToken,
)
from schemagraph.normalizer import DEFAULT_SCALAR_MAP, TypeNormalizer
from schemagraph.reader import SchemaReader
from schemagraph.utils import Timer
from schemagraph.validators import GraphValidator, validate_config

# ---------------------------------------------------------------------------
# Public API surface
# ---------------------------------------------------------------------------

__all__: list[str] = [
    # Version info
    "__version__",
    "__author__",
    "__license__",
    # Pipeline
    "load_config",
    "ConfigBuilder",
    "SourceKind",
    "SchemaReader",
    "TypeNormalizer",
    "DEFAULT_SCALAR_MAP",
    "RelationBuilder",
    "GraphValidator",
    "validate_config",
    # Models
    "App",
    "Config",
    "Entity",
    "EntitySettings",
    "EnumDefinition",
    "Field",
    "FieldType",
    "GraphOptions",
    "Relation",
    "RelationType",
    "ScalarToken",
    # Errors
    "SchemaGraphError",
    "SchemaParseError",
    "UnsupportedSourceError",
    "UnknownScalarTypeError",
    "ConfigFrozenError",
    "GraphValidationError",
    "StructuralError",
    "RelationDefinitionError",
    "ReferentialError",
    # Utilities
    "Timer",
]
