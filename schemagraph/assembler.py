# File: schemagraph/assembler.py
"""
SchemaGraph - Config Assembler
================================
Turns a raw source (SDL text, a JSON document or a YAML document) into an
initialised ``Config``.

    config = ConfigBuilder().build(sdl_text, SourceKind.SDL)
    config = ConfigBuilder().with_json(json_text).build()
    config = load_config(yaml_text, "yaml")      # build + validate

``ConfigBuilder.build`` does not validate the graph; ``load_config`` runs the
graph validator on top and returns the repaired ``Config``.

Expected JSON / YAML shape::

    app:
      name: Blog
    entities:
      - name: User
        fields:
          - { name: id, type: id }
          - { name: email, type: email, unique: true }
        relations:
          - { type: hasMany, entity: Post }
    enums:
      - { name: Status, values: [DRAFT, PUBLISHED] }
"""

from __future__ import annotations

import json
import logging
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

import yaml
from pydantic import ValidationError

from schemagraph.builders import RelationBuilder
from schemagraph.errors import (
    SchemaParseError,
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
)
from schemagraph.normalizer import TypeNormalizer
from schemagraph.reader import SchemaReader
from schemagraph.utils import Timer, to_snake_case
from schemagraph.validators import validate_config

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemagraph.assembler")


class SourceKind(str, Enum):
    """Source formats understood by ``ConfigBuilder``."""

    SDL = "sdl"
    GRAPHQL = "graphql"
    JSON = "json"
    YAML = "yaml"

    @property
    def is_sdl(self) -> bool:
        return self in (SourceKind.SDL, SourceKind.GRAPHQL)


Source = Union[str, bytes, Mapping[str, Any]]

_FIELD_KEYS: Tuple[str, ...] = (
    "sometimes",
    "sortable",
    "searchable",
    "unique",
    "hidden",
    "default",
    "min",
    "max",
    "values",
    "length",
    "precision",
    "scale",
    "comment",
    "belongs_to",
)


def coerce_source_kind(kind: Union[SourceKind, str]) -> SourceKind:
    try:
        return SourceKind(kind.lower() if isinstance(kind, str) else kind)
    except ValueError:
        supported: str = ", ".join(k.value for k in SourceKind)
        raise UnsupportedSourceError(
            f"Unsupported source kind '{kind}'. Supported: {supported}."
        ) from None


# ---------------------------------------------------------------------------
# Document loaders
# ---------------------------------------------------------------------------


def _load_json(text: Union[str, bytes]) -> Any:
    try:
        return json.loads(text)
    except UnicodeDecodeError as exc:
        raise SchemaParseError(f"JSON source is not valid UTF-8: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise SchemaParseError(f"Invalid JSON: {exc}") from exc


def _load_yaml(text: Union[str, bytes]) -> Any:
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise SchemaParseError(f"Invalid YAML: {exc}") from exc


def _mapping_section(data: Any, context: str) -> Dict[str, Any]:
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise SchemaParseError(
            f"Expected a mapping for {context}, got {type(data).__name__}."
        )
    return dict(data)


def _snake_keys(data: Mapping[str, Any], allowed: Mapping[str, Any], context: str) -> Dict[str, Any]:
    """Map camelCase keys onto model attributes, dropping unknown ones."""
    result: Dict[str, Any] = {}
    for key, value in data.items():
        attr: str = to_snake_case(str(key))
        if attr not in allowed:
            logger.debug("Ignoring unknown %s key '%s'.", context, key)
            continue
        result[attr] = value
    return result


# ---------------------------------------------------------------------------
# ConfigBuilder
# ---------------------------------------------------------------------------


class ConfigBuilder:
    """
    Assembles a ``Config`` from one source document.

    Args:
        options: Resolution options carried by the resulting ``Config``.
        reader:  SDL reader; a default one is created when omitted.
    """

    def __init__(
        self,
        options: Optional[GraphOptions] = None,
        reader: Optional[SchemaReader] = None,
    ) -> None:
        self.options: GraphOptions = options or GraphOptions()
        self.reader: SchemaReader = reader or SchemaReader(
            default_local_key=self.options.default_local_key
        )
        self.normalizer: TypeNormalizer = self.reader.normalizer
        self._source: Optional[Source] = None
        self._source_kind: Optional[SourceKind] = None

    # ------------------------------------------------------------------
    # Fluent API
    # ------------------------------------------------------------------

    def with_sdl(self, text: str) -> "ConfigBuilder":
        self._source, self._source_kind = text, SourceKind.SDL
        return self

    def with_json(self, source: Union[str, bytes, Mapping[str, Any]]) -> "ConfigBuilder":
        self._source, self._source_kind = source, SourceKind.JSON
        return self

    def with_yaml(self, source: Union[str, bytes, Mapping[str, Any]]) -> "ConfigBuilder":
        self._source, self._source_kind = source, SourceKind.YAML
        return self

    # ------------------------------------------------------------------
    # Build
    # ------------------------------------------------------------------

    def build(
        self,
        source: Optional[Source] = None,
        source_kind: Optional[Union[SourceKind, str]] = None,
    ) -> Config:
        kind: Optional[SourceKind] = (
            coerce_source_kind(source_kind) if source_kind is not None else None
        )
        if source is None:
            source = self._source
            kind = kind or self._source_kind
        else:
            kind = kind or SourceKind.SDL
        if source is None or kind is None:
            raise SchemaParseError(
                "No source to build from: pass one to build() or call "
                "with_sdl()/with_json()/with_yaml() first."
            )

        with Timer(f"assemble {kind.value}"):
            if kind.is_sdl:
                config = self._from_sdl(source)
            else:
                if isinstance(source, Mapping):
                    data: Any = source
                elif kind is SourceKind.JSON:
                    data = _load_json(source)
                else:
                    data = _load_yaml(source)
                config = self._from_mapping(data)

        config.init()
        logger.info(
            "Assembled config '%s' from %s: %d entities.",
            config.app.name,
            kind.value,
            len(config.entities),
        )
        return config

    def _from_sdl(self, source: Source) -> Config:
        if isinstance(source, Mapping):
            raise SchemaParseError("SDL source must be text, got a mapping.")
        if isinstance(source, bytes):
            try:
                text: str = source.decode("utf-8")
            except UnicodeDecodeError as exc:
                raise SchemaParseError(f"SDL source is not valid UTF-8: {exc}") from exc
        else:
            text = source
        app, entities, enums = self.reader.load(text)
        return Config(app=app, entities=entities, enums=enums, options=self.options)

    # ------------------------------------------------------------------
    # JSON / YAML documents
    # ------------------------------------------------------------------

    def _from_mapping(self, data: Any) -> Config:
        if not isinstance(data, Mapping):
            raise SchemaParseError(
                f"Expected a mapping at top level, got {type(data).__name__}."
            )
        if not isinstance(data.get("app"), Mapping):
            raise SchemaParseError('The configuration must include an "app" object.')
        if not isinstance(data.get("entities"), list):
            raise SchemaParseError(
                'The configuration must include an "entities" array.'
            )

        app: App = self._app_from_mapping(data["app"])
        enums: List[EnumDefinition] = [
            self._enum_from_mapping(item) for item in data.get("enums") or []
        ]
        enum_map: Dict[str, EnumDefinition] = {e.name: e for e in enums}
        entities: List[Entity] = [
            self._entity_from_mapping(item, enum_map) for item in data["entities"]
        ]
        return Config(app=app, entities=entities, enums=enums, options=self.options)

    def _app_from_mapping(self, data: Mapping[str, Any]) -> App:
        try:
            return App(**_snake_keys(data, App.model_fields, "app"))
        except ValidationError as exc:
            raise SchemaParseError(f"Invalid app object: {exc}") from exc

    def _enum_from_mapping(self, data: Any) -> EnumDefinition:
        item: Dict[str, Any] = _mapping_section(data, "enum")
        try:
            return EnumDefinition(
                name=str(item.get("name") or "").strip(),
                values=[str(v) for v in item.get("values") or []],
            )
        except ValidationError as exc:
            raise SchemaParseError(f"Invalid enum '{item.get('name')}': {exc}") from exc

    def _entity_from_mapping(
        self, data: Any, enum_map: Dict[str, EnumDefinition]
    ) -> Entity:
        item: Dict[str, Any] = _mapping_section(data, "entity")
        name: str = str(item.get("name") or "").strip()
        settings_data: Dict[str, Any] = _mapping_section(
            item.get("settings"), f"settings of entity '{name}'"
        )
        try:
            entity: Entity = Entity(
                name=name,
                table=item.get("table") or None,
                settings=EntitySettings(
                    **_snake_keys(settings_data, EntitySettings.model_fields, "settings")
                ),
            )
        except ValidationError as exc:
            raise SchemaParseError(
                f"Invalid entity '{name}': {exc}", entity=name
            ) from exc

        for field_data in item.get("fields") or []:
            entity.add_field(self._field_from_mapping(entity, field_data, enum_map))
        for relation_data in item.get("relations") or []:
            entity.add_relation(self._relation_from_mapping(entity, relation_data))
        return entity

    def _field_type(
        self, entity: Entity, field_name: str, raw: Any, enum_map: Dict[str, EnumDefinition]
    ) -> Optional[FieldType]:
        if raw is None or raw == "":
            return None
        token: str = str(raw).strip()
        try:
            return FieldType(token)
        except ValueError:
            pass
        scalar = self.normalizer.try_scalar_token(token)
        if scalar is not None:
            return self.normalizer.to_field_type(scalar)
        if self.normalizer.base_token(token) in enum_map:
            return FieldType.ENUM
        raise SchemaParseError(
            f"Unknown type '{token}' for field '{entity.name}.{field_name}'.",
            entity=entity.name,
            field=field_name,
        )

    def _field_from_mapping(
        self, entity: Entity, data: Any, enum_map: Dict[str, EnumDefinition]
    ) -> Field:
        item: Dict[str, Any] = _mapping_section(data, f"field of entity '{entity.name}'")
        name: str = str(item.get("name") or "").strip()
        raw_type: Any = item.get("type")
        field_type: Optional[FieldType] = self._field_type(entity, name, raw_type, enum_map)

        nullable: bool = bool(item.get("nullable", False))
        kwargs: Dict[str, Any] = {
            "name": name,
            "type": field_type,
            "nullable": nullable,
            "required": bool(item.get("required", not nullable)),
        }
        for key in _FIELD_KEYS:
            if key in item:
                kwargs[key] = item[key]

        enum_def: Optional[EnumDefinition] = (
            enum_map.get(self.normalizer.base_token(str(raw_type)))
            if field_type == FieldType.ENUM and raw_type
            else None
        )
        if enum_def is not None and not kwargs.get("values"):
            kwargs["values"] = list(enum_def.values)

        try:
            return Field(**kwargs)
        except ValidationError as exc:
            raise SchemaParseError(
                f"Invalid field '{entity.name}.{name}': {exc}",
                entity=entity.name,
                field=name,
            ) from exc

    def _relation_from_mapping(self, entity: Entity, data: Any) -> Relation:
        item: Dict[str, Any] = _mapping_section(
            data, f"relation of entity '{entity.name}'"
        )
        raw_type: Any = item.get("type")
        related: Optional[str] = str(item.get("entity") or "").strip() or None
        relation_type: Optional[RelationType] = None
        if raw_type:
            try:
                relation_type = RelationType(str(raw_type).strip())
            except ValueError:
                raise SchemaParseError(
                    f"Unknown relation type '{raw_type}' in entity '{entity.name}'.",
                    entity=entity.name,
                ) from None

        pivot: Optional[str] = item.get("pivot") or item.get("pivot_table")

        if relation_type is None or (
            relation_type.requires_related_entity_name and related is None
        ):
            # Incomplete relation: kept as declared, the graph validator reports it
            return Relation(
                type=relation_type,
                local_entity=entity.name,
                related_entity_name=related,
                relation_name=item.get("name") or "",
                foreign_key=item.get("foreign_key"),
                pivot_table=pivot,
            )

        return (
            RelationBuilder(self.options.default_local_key)
            .type(relation_type)
            .local_entity(entity.name)
            .related_entity_name(related)
            .foreign_key(item.get("foreign_key"))
            .local_key(item.get("local_key"))
            .related_key(item.get("related_key"))
            .relation_name(item.get("name"))
            .morph_name(item.get("morph_name"))
            .pivot_table(pivot)
            .cascade(bool(item.get("cascade", False)))
            .build()
        )

    def __repr__(self) -> str:
        kind: str = self._source_kind.value if self._source_kind else "none"
        return f"<ConfigBuilder source={kind} namespace={self.options.namespace!r}>"


# ---------------------------------------------------------------------------
# Convenience entry point
# ---------------------------------------------------------------------------


def load_config(
    source: Source,
    source_kind: Union[SourceKind, str] = SourceKind.SDL,
    options: Optional[GraphOptions] = None,
) -> Config:
    """
    Build and validate a ``Config`` in one call.

    Raises:
        SchemaParseError: The source could not be read.
        UnsupportedSourceError: Unknown ``source_kind``.
        GraphValidationError: The graph failed validation.
    """
    config: Config = ConfigBuilder(options=options).build(source, source_kind)
    return validate_config(config)


__all__: List[str] = [
    "SourceKind",
    "ConfigBuilder",
    "coerce_source_kind",
    "load_config",
]
