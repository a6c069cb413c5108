# File: schemagraph/validators.py
"""
SchemaGraph - Graph Validator
===============================
Checks an assembled ``Config`` for structural and referential integrity and
repairs what can be inferred, *in place*.

Validation is fail-fast: entities are visited in declaration order and the
first problem raises.  Checks performed per entity:

    1. Name present                                  → StructuralError
    2. Name unique                                   → StructuralError
    3. At least one field                            → StructuralError
    4. Every field has a name and a type             → StructuralError
    5. Every relation has a type                     → StructuralError
    6. Every relation target is named and exists     → RelationDefinitionError / ReferentialError
    7. Per relation type:
       - belongsTo      FK required; FK field created on the owner;
                        the target must declare hasOne/hasMany back
       - hasOne/hasMany FK required; FK field created on the target;
                        inverse belongsTo created on the target
       - belongsToMany  pivot required; inverse belongsToMany created
                        on the target with the same pivot, keys swapped
       - morph*         accepted as declared (not checked)

Auto-repair is idempotent: validating the same graph twice yields the same
fields and relations.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Set

from schemagraph.builders import RelationBuilder
from schemagraph.errors import (
    ReferentialError,
    RelationDefinitionError,
    StructuralError,
)
from schemagraph.models import (
    Config,
    Entity,
    Field,
    FieldType,
    GraphOptions,
    Relation,
    RelationType,
)
from schemagraph.utils import Timer

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemagraph.validators")


def _relation_label(relation: Relation, position: int) -> str:
    return relation.relation_name or f"#{position + 1}"


class GraphValidator:
    """Fail-fast validator and inverse-relation repairer for one ``Config``."""

    def __init__(self, config: Config) -> None:
        self.config: Config = config
        self.options: GraphOptions = config.options

    def validate(self) -> Config:
        config: Config = self.config.init()
        seen: Set[str] = set()
        with Timer("validate graph"):
            for position, entity in enumerate(config.entities):
                self._check_entity_structure(entity, position, seen)
                for index, relation in enumerate(list(entity.relations)):
                    self._check_relation(entity, relation, index)
        logger.info("Graph validated: %d entities.", len(config.entities))
        return config

    # ------------------------------------------------------------------
    # Structure
    # ------------------------------------------------------------------

    def _check_entity_structure(self, entity: Entity, position: int, seen: Set[str]) -> None:
        if not entity.name:
            raise StructuralError(f"Entity name is required (entity #{position + 1}).")
        if entity.name in seen:
            raise StructuralError(
                f"Duplicate entity name '{entity.name}'.", entity=entity.name
            )
        seen.add(entity.name)

        if not entity.fields:
            raise StructuralError(
                f"Entity '{entity.name}' must have at least one field.",
                entity=entity.name,
            )
        for index, field in enumerate(entity.fields):
            if not field.name:
                raise StructuralError(
                    f"Field #{index + 1} of entity '{entity.name}' has no name.",
                    entity=entity.name,
                )
            if field.type is None:
                raise StructuralError(
                    f"Field '{field.name}' of entity '{entity.name}' has no type.",
                    entity=entity.name,
                    field=field.name,
                )
        for index, relation in enumerate(entity.relations):
            if relation.type is None:
                label: str = _relation_label(relation, index)
                raise StructuralError(
                    f"Relation '{label}' of entity '{entity.name}' has no type.",
                    entity=entity.name,
                    relation=label,
                )

    # ------------------------------------------------------------------
    # Relations
    # ------------------------------------------------------------------

    def _check_relation(self, entity: Entity, relation: Relation, index: int) -> None:
        label: str = _relation_label(relation, index)
        related: Optional[Entity] = None

        if relation.requires_related_entity_name:
            if not relation.related_entity_name:
                raise RelationDefinitionError(
                    f"Entity name is not set for relation of type "
                    f"{relation.type.value} in entity {entity.name}",
                    entity=entity.name,
                    relation=label,
                )
            related = self.config.resolve_related(relation)
            if related is None:
                raise ReferentialError(
                    f"Relation '{label}' of entity '{entity.name}' refers to "
                    f"unknown entity '{relation.related_entity_name}'.",
                    entity=entity.name,
                    relation=label,
                )

        if relation.type is RelationType.BELONGS_TO:
            self._check_belongs_to(entity, relation, related, label)
        elif relation.type in (RelationType.HAS_ONE, RelationType.HAS_MANY):
            self._check_has_one_or_many(entity, relation, related, label)
        elif relation.type is RelationType.BELONGS_TO_MANY:
            self._check_belongs_to_many(entity, relation, related, label)
        else:
            # TODO: morph relations need the morph columns and pivot checked
            logger.debug(
                "Polymorphic relation %s accepted without checks.", relation.describe()
            )

    def _require_foreign_key(self, entity: Entity, relation: Relation, label: str) -> str:
        if not relation.foreign_key:
            raise ReferentialError(
                f"Foreign key is required for {relation.type.value} relation "
                f"'{label}' in entity '{entity.name}'.",
                entity=entity.name,
                relation=label,
            )
        return relation.foreign_key

    def _ensure_foreign_key_field(self, owner: Entity, key: str, target: str) -> None:
        existing: Optional[Field] = owner.get_field(key)
        if existing is not None:
            if existing.belongs_to is None:
                existing.belongs_to = target
            return
        nullable: bool = self.options.foreign_key_nullable
        owner.add_field(
            Field(
                name=key,
                type=FieldType.FOREIGN_ID,
                nullable=nullable,
                required=not nullable,
                belongs_to=target,
            )
        )
        logger.info("Added foreign key field '%s.%s' → %s.", owner.name, key, target)

    def _check_belongs_to(
        self, entity: Entity, relation: Relation, related: Entity, label: str
    ) -> None:
        key: str = self._require_foreign_key(entity, relation, label)

        inverse: List[Relation] = [
            r
            for r in related.relations_of_type(RelationType.HAS_ONE, RelationType.HAS_MANY)
            if r.points_to(entity.name)
        ]
        if not inverse:
            raise ReferentialError(
                f"Entity '{related.name}' must declare a hasOne or hasMany relation "
                f"to '{entity.name}' as the inverse of '{entity.name}.{label}' (belongsTo).",
                entity=entity.name,
                relation=label,
            )
        self._ensure_foreign_key_field(entity, key, related.name)

    def _check_has_one_or_many(
        self, entity: Entity, relation: Relation, related: Entity, label: str
    ) -> None:
        key: str = self._require_foreign_key(entity, relation, label)
        self._ensure_foreign_key_field(related, key, entity.name)

        for candidate in related.relations_of_type(RelationType.BELONGS_TO):
            if candidate.points_to(entity.name):
                return

        inverse: Relation = (
            RelationBuilder(self.options.default_local_key)
            .type(RelationType.BELONGS_TO)
            .local_entity(related.name)
            .related_entity_name(entity.name)
            .foreign_key(key)
            .local_key(relation.local_key)
            .inferred()
            .build()
        )
        related.add_relation(inverse)
        logger.info("Inferred inverse relation %s", inverse.describe())

    def _check_belongs_to_many(
        self, entity: Entity, relation: Relation, related: Entity, label: str
    ) -> None:
        pivot: Optional[str] = relation.pivot_table
        if not pivot:
            raise ReferentialError(
                f"Pivot table is required for belongsToMany relation '{label}' "
                f"in entity '{entity.name}'.",
                entity=entity.name,
                relation=label,
            )

        for candidate in related.relations_of_type(RelationType.BELONGS_TO_MANY):
            if candidate.pivot_table == pivot and candidate.points_to(entity.name):
                return

        inverse: Relation = (
            RelationBuilder(self.options.default_local_key)
            .type(RelationType.BELONGS_TO_MANY)
            .local_entity(related.name)
            .related_entity_name(entity.name)
            .pivot_table(pivot)
            .foreign_key(relation.related_key)
            .related_key(relation.foreign_key)
            .local_key(relation.local_key)
            .inferred()
            .build()
        )
        related.add_relation(inverse)
        logger.info("Inferred inverse relation %s", inverse.describe())

    def __repr__(self) -> str:
        return f"<GraphValidator {len(self.config.entities)} entities>"


def validate_config(config: Config) -> Config:
    """Validate *config* in place and return it."""
    return GraphValidator(config).validate()


__all__: List[str] = ["GraphValidator", "validate_config"]
