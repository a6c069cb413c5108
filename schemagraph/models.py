# File: schemagraph/models.py
"""
SchemaGraph - Core Data Models
================================
Pydantic V2 models representing the application data model (entities,
fields, relations, enums) and the options that steer graph resolution.
These models form the single source of truth for the entire pipeline:
Reading → Assembly → Graph Validation → hand-off to generators.

Ownership: a ``Config`` owns its entities, each ``Entity`` owns its fields
and relations.  A ``Relation`` names its owning entity and its target entity
by *name*; the target is looked up against the ``Config`` on demand, so the
graph never holds a back-pointer cycle.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import (
    BaseModel,
    ConfigDict,
    PrivateAttr,
    computed_field,
    field_validator,
)
from pydantic import Field as PydanticField

from schemagraph.errors import ConfigFrozenError
from schemagraph.utils import (
    to_kebab_case,
    to_plural,
    to_snake_case,
    to_title_human,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemagraph.models")

# ---------------------------------------------------------------------------
# Enums — fixed sets used across the entire project
# ---------------------------------------------------------------------------


class FieldType(str, Enum):
    """Canonical field types (scalar storage types plus relation placeholders)."""

    # Identity
    ID = "id"
    UUID = "uuid"
    BIG_INCREMENTS = "bigIncrements"
    FOREIGN_ID = "foreignId"

    # String
    STRING = "string"
    TEXT = "text"
    MEDIUM_TEXT = "mediumText"
    LONG_TEXT = "longText"
    CHAR = "char"
    EMAIL = "email"
    PASSWORD = "password"
    URL = "url"
    SECRET = "secret"
    TOKEN = "token"
    PHONE = "phone"
    USERNAME = "username"
    SLUG = "slug"
    IP_ADDRESS = "ipAddress"

    # Numeric
    BOOLEAN = "boolean"
    INTEGER = "integer"
    SMALL_INTEGER = "smallInteger"
    TINY_INTEGER = "tinyInteger"
    BIG_INTEGER = "bigInteger"
    UNSIGNED_INTEGER = "unsignedInteger"
    UNSIGNED_SMALL_INTEGER = "unsignedSmallInteger"
    UNSIGNED_TINY_INTEGER = "unsignedTinyInteger"
    UNSIGNED_BIG_INTEGER = "unsignedBigInteger"
    FLOAT = "float"
    DOUBLE = "double"
    DECIMAL = "decimal"

    # Date / Time
    DATE = "date"
    DATETIME = "dateTime"
    TIME = "time"
    TIMESTAMP = "timestamp"
    YEAR = "year"

    # Structured / binary
    JSON = "json"
    JSONB = "jsonb"
    BINARY = "binary"
    FILE = "file"
    IMAGE = "image"
    ENUM = "enum"

    # Relation placeholders
    BELONGS_TO = "belongsTo"
    HAS_ONE = "hasOne"
    HAS_MANY = "hasMany"
    BELONGS_TO_MANY = "belongsToMany"

    @property
    def is_relation(self) -> bool:
        return self in _RELATION_PLACEHOLDERS

    @property
    def is_temporal(self) -> bool:
        return self in (
            FieldType.DATE,
            FieldType.DATETIME,
            FieldType.TIME,
            FieldType.TIMESTAMP,
            FieldType.YEAR,
        )


class ScalarToken(str, Enum):
    """Scalar type tokens accepted in SDL field declarations."""

    ID = "ID"
    STRING = "String"
    BOOLEAN = "Boolean"
    INTEGER = "Int"
    FLOAT = "Float"
    DECIMAL = "Decimal"
    DATE = "Date"
    DATETIME = "DateTime"
    JSON = "JSON"
    PASSWORD = "Password"
    EMAIL = "Email"
    UUID = "UUID"
    TEXT = "Text"
    LONG_TEXT = "LongText"
    URL = "URL"
    TIME = "Time"
    YEAR = "Year"
    SECRET = "Secret"
    TOKEN = "Token"
    PHONE = "Phone"
    USERNAME = "Username"
    SLUG = "Slug"
    FILE = "File"
    IMAGE = "Image"
    IP_ADDRESS = "IpAddress"
    CHAR = "Char"
    SMALL_INTEGER = "SmallInt"
    TINY_INTEGER = "TinyInt"
    UNSIGNED_INTEGER = "UnsignedInt"
    UNSIGNED_SMALL_INTEGER = "UnsignedSmallInt"
    UNSIGNED_TINY_INTEGER = "UnsignedTinyInt"
    BIG_INTEGER = "BigInt"
    UNSIGNED_BIG_INTEGER = "UnsignedBigInt"
    BIG_INCREMENTS = "BigIncrements"
    FOREIGN_ID = "ForeignId"
    DOUBLE = "Double"
    MEDIUM_TEXT = "MediumText"
    BINARY = "Binary"
    TIMESTAMP = "Timestamp"
    ENUM = "Enum"


class RelationType(str, Enum):
    """Relation kinds between two entities."""

    BELONGS_TO = "belongsTo"
    HAS_ONE = "hasOne"
    HAS_MANY = "hasMany"
    BELONGS_TO_MANY = "belongsToMany"

    # Polymorphic
    MORPH_ONE = "morphOne"
    MORPH_MANY = "morphMany"
    MORPH_TO = "morphTo"
    MORPH_TO_MANY = "morphToMany"
    MORPHED_BY_MANY = "morphedByMany"

    @property
    def is_polymorphic(self) -> bool:
        return self in (
            RelationType.MORPH_ONE,
            RelationType.MORPH_MANY,
            RelationType.MORPH_TO,
            RelationType.MORPH_TO_MANY,
            RelationType.MORPHED_BY_MANY,
        )

    @property
    def requires_pivot_table(self) -> bool:
        return self in (
            RelationType.BELONGS_TO_MANY,
            RelationType.MORPH_TO_MANY,
            RelationType.MORPHED_BY_MANY,
        )

    @property
    def requires_related_entity_name(self) -> bool:
        # morphTo targets are decided at runtime by the discriminator column
        return self is not RelationType.MORPH_TO

    @property
    def is_to_many(self) -> bool:
        return self in (
            RelationType.HAS_MANY,
            RelationType.BELONGS_TO_MANY,
            RelationType.MORPH_MANY,
            RelationType.MORPH_TO_MANY,
            RelationType.MORPHED_BY_MANY,
        )


_RELATION_PLACEHOLDERS: Dict[FieldType, RelationType] = {
    FieldType.BELONGS_TO: RelationType.BELONGS_TO,
    FieldType.HAS_ONE: RelationType.HAS_ONE,
    FieldType.HAS_MANY: RelationType.HAS_MANY,
    FieldType.BELONGS_TO_MANY: RelationType.BELONGS_TO_MANY,
}


def relation_type_for(field_type: FieldType) -> Optional[RelationType]:
    """Map a relation placeholder field type to its relation kind."""
    return _RELATION_PLACEHOLDERS.get(field_type)


# ---------------------------------------------------------------------------
# Mixin: shared model configuration
# ---------------------------------------------------------------------------

_SHARED_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    validate_assignment=True,
    use_enum_values=False,
    frozen=False,
    extra="forbid",
)


# ---------------------------------------------------------------------------
# Application metadata
# ---------------------------------------------------------------------------


class App(BaseModel):
    """Application-level metadata, read from the ``app`` object or the SDL config block."""

    model_config = _SHARED_CONFIG

    name: str = PydanticField(default="", description="Application name.")
    description: Optional[str] = PydanticField(
        default=None, description="Human readable description of the module."
    )
    capabilities: List[str] = PydanticField(
        default_factory=list, description="Capabilities advertised by the module."
    )
    seed_enabled: bool = PydanticField(
        default=False, description="Seed the database with initial data."
    )
    seed_count: int = PydanticField(
        default=20, ge=0, description="Records to seed per entity."
    )
    faker_mappings: Optional[Dict[str, Any]] = PydanticField(
        default=None, description="Per-field sample data overrides."
    )
    strong_passwords: bool = PydanticField(
        default=False, description="Hash seeded passwords with a strong cost."
    )
    dev_mode: bool = PydanticField(default=False, description="Dev mode flag.")


# ---------------------------------------------------------------------------
# Enum definitions
# ---------------------------------------------------------------------------


class EnumDefinition(BaseModel):
    """A named set of string values available to fields of enumerated type."""

    model_config = _SHARED_CONFIG

    name: str = PydanticField(..., min_length=1, description="Enum type name.")
    values: List[str] = PydanticField(
        ..., min_length=1, description="Allowed values for this enum."
    )

    @field_validator("values")
    @classmethod
    def _unique_values(cls, v: List[str]) -> List[str]:
        if len(v) != len(set(v)):
            dupes: List[str] = [x for x in v if v.count(x) > 1]
            raise ValueError(f"Duplicate enum values detected: {sorted(set(dupes))}")
        return v

    def __repr__(self) -> str:
        return f"<Enum {self.name} ({len(self.values)} values)>"


# ---------------------------------------------------------------------------
# Field
# ---------------------------------------------------------------------------


class Field(BaseModel):
    """
    A single attribute of an entity.

    ``name`` and ``type`` may be empty at construction time (raw JSON input is
    deserialized as-is); the graph validator rejects such fields.
    """

    model_config = _SHARED_CONFIG

    name: str = PydanticField(default="", description="Field name.")
    type: Optional[FieldType] = PydanticField(
        default=None, description="Canonical field type."
    )
    nullable: bool = PydanticField(default=False, description="Allows NULL.")
    required: bool = PydanticField(default=False, description="Required on create.")
    sometimes: bool = PydanticField(
        default=False, description="Validated only when present in the payload."
    )
    sortable: bool = PydanticField(default=False, description="Sortable in listings.")
    searchable: bool = PydanticField(default=False, description="Searchable in listings.")
    unique: bool = PydanticField(default=False, description="Unique constraint.")
    hidden: bool = PydanticField(default=False, description="Hidden from serialization.")
    default: Any = PydanticField(default=None, description="Default value.")
    min: Optional[int] = PydanticField(default=None, description="Minimum constraint.")
    max: Optional[int] = PydanticField(default=None, description="Maximum constraint.")
    values: List[str] = PydanticField(
        default_factory=list, description="Enum values (only when type == 'enum')."
    )
    length: Optional[int] = PydanticField(default=None, ge=1, description="Max length.")
    precision: Optional[int] = PydanticField(default=None, ge=0, description="Precision.")
    scale: Optional[int] = PydanticField(default=None, ge=0, description="Scale.")
    comment: Optional[str] = PydanticField(default=None, description="Column comment.")
    belongs_to: Optional[str] = PydanticField(
        default=None,
        description="Entity this field is a foreign key to, when known.",
    )

    @property
    def title(self) -> str:
        """Human readable title, e.g. ``created_at`` → ``Created At``."""
        return to_title_human(self.name)

    @property
    def is_enum(self) -> bool:
        return self.type == FieldType.ENUM

    @property
    def is_temporal(self) -> bool:
        return self.type is not None and self.type.is_temporal

    @property
    def is_foreign_key(self) -> bool:
        return self.type == FieldType.FOREIGN_ID or self.belongs_to is not None

    def __repr__(self) -> str:
        type_str: str = self.type.value if self.type is not None else "?"
        null_flag: str = " NULL" if self.nullable else " NOT NULL"
        return f"<Field {self.name} {type_str}{null_flag}>"


# ---------------------------------------------------------------------------
# Relation
# ---------------------------------------------------------------------------


class Relation(BaseModel):
    """
    A relation declared on (or inferred for) an entity.

    Instances are normally produced by ``Relation.make(...)``, which returns a
    ``RelationBuilder`` that fills in conventional names and keys.
    """

    model_config = _SHARED_CONFIG

    type: Optional[RelationType] = PydanticField(
        default=None, description="Relation kind."
    )
    local_entity: str = PydanticField(
        default="", description="Name of the entity owning this relation."
    )
    related_entity_name: Optional[str] = PydanticField(
        default=None, description="Target entity name (None for morphTo)."
    )
    foreign_key: Optional[str] = PydanticField(default=None, description="Foreign key.")
    local_key: Optional[str] = PydanticField(default=None, description="Local key.")
    related_key: Optional[str] = PydanticField(
        default=None, description="Key pointing at the related entity in the pivot."
    )
    relation_name: str = PydanticField(default="", description="Accessor name.")
    morph_name: Optional[str] = PydanticField(
        default=None, description="Morph discriminator prefix, e.g. 'imageable'."
    )
    pivot_table: Optional[str] = PydanticField(
        default=None, description="Junction table for many-to-many relations."
    )
    cascade: bool = PydanticField(default=False, description="Cascade deletes.")
    inferred: bool = PydanticField(
        default=False, description="True when created by graph auto-repair."
    )

    @classmethod
    def make(cls, type: RelationType, local_entity: Any) -> "RelationBuilder":
        """Start a fluent builder for a relation owned by *local_entity*."""
        from schemagraph.builders import RelationBuilder

        return RelationBuilder().type(type).local_entity(local_entity)

    # -- Derived helpers ----------------------------------------------------

    @property
    def is_polymorphic(self) -> bool:
        return self.type is not None and self.type.is_polymorphic

    @property
    def requires_pivot_table(self) -> bool:
        return self.type is not None and self.type.requires_pivot_table

    @property
    def requires_related_entity_name(self) -> bool:
        return self.type is None or self.type.requires_related_entity_name

    @property
    def morph_type_key(self) -> Optional[str]:
        return f"{self.morph_name}_type" if self.morph_name else None

    @property
    def morph_id_key(self) -> Optional[str]:
        return f"{self.morph_name}_id" if self.morph_name else None

    @property
    def has_route(self) -> bool:
        return self.type in (
            RelationType.HAS_MANY,
            RelationType.BELONGS_TO_MANY,
            RelationType.MORPH_MANY,
        )

    @property
    def api_path(self) -> str:
        """URL segment for the relation, e.g. ``blogPosts`` → ``blog-posts``."""
        return to_kebab_case(to_plural(self.relation_name))

    def points_to(self, entity_name: str) -> bool:
        return self.related_entity_name == entity_name

    def inverse_in(self, config: "Config") -> Optional["Relation"]:
        """
        Find the complementary relation on the related entity, if any.

        E.g. for ``User hasMany Post`` this returns the relation on ``Post``
        whose target is ``User``.
        """
        related: Optional[Entity] = config.resolve_related(self)
        if related is None:
            return None
        for relation in related.relations:
            if relation.points_to(self.local_entity):
                return relation
        return None

    def describe(self) -> str:
        """One-line summary: ``User → hasMany(posts) → Post [FK: user_id, LK: id]``."""
        type_str: str = self.type.value if self.type is not None else "?"
        target: str = self.related_entity_name or "N/A"
        parts: List[str] = []
        if self.foreign_key:
            parts.append(f"FK: {self.foreign_key}")
        if self.local_key:
            parts.append(f"LK: {self.local_key}")
        if self.related_key:
            parts.append(f"RK: {self.related_key}")
        if self.pivot_table:
            parts.append(f"PIVOT: {self.pivot_table}")
        return (
            f"{self.local_entity} → {type_str}({self.relation_name}) → "
            f"{target} [{', '.join(parts)}]"
        )

    def __repr__(self) -> str:
        return f"<Relation {self.describe()}>"


# ---------------------------------------------------------------------------
# Entity
# ---------------------------------------------------------------------------


class EntitySettings(BaseModel):
    """Entity-level presentation settings."""

    model_config = _SHARED_CONFIG

    has_avatar: bool = PydanticField(
        default=False, description="Show an avatar next to the entity name."
    )
    is_searchable: bool = PydanticField(
        default=True, description="Searchable in the admin panel."
    )
    has_images: bool = PydanticField(
        default=False, description="Entity carries attached images."
    )

    def get(self, key: str, default: Any = None) -> Any:
        if key in type(self).model_fields:
            return getattr(self, key)
        return default


_NON_FILLABLE_FIELDS: Tuple[str, ...] = ("id", "created_at", "updated_at")
_HIDDEN_FIELD_NAMES: Tuple[str, ...] = ("password", "remember_token")


class Entity(BaseModel):
    """
    A single entity of the application data model.

    Created by the assembler; the graph validator may append fields and
    relations while inferring missing inverse sides.
    """

    model_config = _SHARED_CONFIG

    name: str = PydanticField(default="", description="Entity name (PascalCase).")
    table: Optional[str] = PydanticField(
        default=None, description="Explicit table name (derived when omitted)."
    )
    fields: List[Field] = PydanticField(
        default_factory=list, description="Ordered fields."
    )
    relations: List[Relation] = PydanticField(
        default_factory=list, description="Ordered relations."
    )
    settings: EntitySettings = PydanticField(
        default_factory=EntitySettings, description="Entity-level settings."
    )

    # -- Computed helpers ---------------------------------------------------

    @computed_field  # type: ignore[misc]
    @property
    def table_name(self) -> str:
        """Backing table: explicit ``table`` or snake_case plural of the name."""
        if self.table:
            return self.table
        return to_snake_case(to_plural(self.name))

    @property
    def plural_name(self) -> str:
        return to_plural(self.name)

    @property
    def foreign_key(self) -> str:
        """Conventional foreign key pointing at this entity, e.g. ``user_id``."""
        return f"{to_snake_case(self.name)}_id"

    @property
    def field_names(self) -> List[str]:
        return [f.name for f in self.fields]

    # -- Fields -------------------------------------------------------------

    def has_field(self, name: str) -> bool:
        return any(f.name == name for f in self.fields)

    def get_field(self, name: str) -> Optional[Field]:
        for f in self.fields:
            if f.name == name:
                return f
        return None

    def add_field(self, field: Field) -> None:
        self.fields.append(field)

    @property
    def fillable_fields(self) -> List[Field]:
        return [f for f in self.fields if f.name not in _NON_FILLABLE_FIELDS]

    @property
    def hidden_fields(self) -> List[Field]:
        return [f for f in self.fields if f.hidden or f.name in _HIDDEN_FIELD_NAMES]

    @property
    def searchable_fields(self) -> List[Field]:
        return [f for f in self.fields if f.searchable]

    @property
    def sortable_fields(self) -> List[Field]:
        return [f for f in self.fields if f.sortable]

    # -- Relations ----------------------------------------------------------

    def add_relation(self, relation: Relation) -> None:
        self.relations.append(relation)

    def get_relation(self, relation_name: str) -> Optional[Relation]:
        for relation in self.relations:
            if relation.relation_name == relation_name:
                return relation
        return None

    def relations_of_type(self, *types: RelationType) -> List[Relation]:
        return [r for r in self.relations if r.type in types]

    def __repr__(self) -> str:
        return (
            f"<Entity {self.name} "
            f"({len(self.fields)} fields, {len(self.relations)} relations)>"
        )


# ---------------------------------------------------------------------------
# Graph options — explicit, immutable configuration for one pipeline run
# ---------------------------------------------------------------------------


class GraphOptions(BaseModel):
    """
    Options threaded through assembly and validation.

    Replaces process-wide defaults: a run's namespace and its per-entity
    metadata registry are passed in explicitly.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    namespace: str = PydanticField(
        default="app", min_length=1, description="Namespace for qualified names."
    )
    default_local_key: str = PydanticField(
        default="id", min_length=1, description="Primary key column name."
    )
    foreign_key_nullable: bool = PydanticField(
        default=True, description="Nullability of foreign-id fields created by auto-repair."
    )
    entity_meta: Dict[str, Dict[str, Any]] = PydanticField(
        default_factory=dict,
        description="Caller-supplied metadata registry keyed by entity name.",
    )


# ---------------------------------------------------------------------------
# Config — top-level container
# ---------------------------------------------------------------------------


class Config(BaseModel):
    """
    The root model: one application, its entities and its enums.

    Invariant: after ``init()`` the entity list shape is frozen and the
    name index is built; only the graph validator mutates entities further.
    """

    model_config = _SHARED_CONFIG

    app: App = PydanticField(default_factory=App, description="Application metadata.")
    entities: List[Entity] = PydanticField(
        default_factory=list, description="Entities in declaration order."
    )
    enums: List[EnumDefinition] = PydanticField(
        default_factory=list, description="Enum definitions."
    )
    options: GraphOptions = PydanticField(
        default_factory=GraphOptions, description="Resolution options for this run."
    )

    _entity_map: Dict[str, Entity] = PrivateAttr(default_factory=dict)
    _initialized: bool = PrivateAttr(default=False)

    # -- Lifecycle ----------------------------------------------------------

    def init(self) -> "Config":
        """Freeze the entity list and build the name index (idempotent)."""
        if self._initialized:
            return self
        entity_map: Dict[str, Entity] = {}
        for entity in self.entities:
            entity_map.setdefault(entity.name, entity)
        self._entity_map = entity_map
        self._initialized = True
        logger.debug(
            "Config initialised: %d entities, %d enums.",
            len(self.entities),
            len(self.enums),
        )
        return self

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def add_entity(self, entity: Entity) -> None:
        if self._initialized:
            raise ConfigFrozenError(
                f"Cannot add entity '{entity.name}': the configuration is "
                f"already initialised.",
                entity=entity.name,
            )
        self.entities.append(entity)

    # -- Lookup -------------------------------------------------------------

    def get_entity(self, name: Optional[str]) -> Optional[Entity]:
        if not name:
            return None
        if self._initialized:
            return self._entity_map.get(name)
        for entity in self.entities:
            if entity.name == name:
                return entity
        return None

    def resolve_related(self, relation: Relation) -> Optional[Entity]:
        """Non-owning lookup of the relation's target entity."""
        return self.get_entity(relation.related_entity_name)

    def get_enum(self, name: str) -> Optional[EnumDefinition]:
        for enum_def in self.enums:
            if enum_def.name == name:
                return enum_def
        return None

    @property
    def entity_names(self) -> List[str]:
        return [e.name for e in self.entities]

    def meta_for(self, entity_name: str) -> Dict[str, Any]:
        """Metadata supplied by the caller for *entity_name* (empty if none)."""
        return self.options.entity_meta.get(entity_name, {})

    def qualified_name(self, entity: Entity) -> str:
        return f"{self.options.namespace}.{entity.name}"

    # -- Serialization ------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude={"options"})

    def to_json(self, indent: int = 2) -> str:
        return self.model_dump_json(indent=indent, exclude={"options"})

    def __repr__(self) -> str:
        return (
            f"<Config {self.app.name!r} {len(self.entities)} entities, "
            f"{len(self.enums)} enums>"
        )


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "FieldType",
    "ScalarToken",
    "RelationType",
    "relation_type_for",
    "App",
    "EnumDefinition",
    "Field",
    "Relation",
    "EntitySettings",
    "Entity",
    "GraphOptions",
    "Config",
]

logger.debug("schemagraph.models loaded — %d public symbols.", len(__all__))
