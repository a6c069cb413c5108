# File: schemagraph/builders.py
"""
SchemaGraph - Relation Builder
================================
Fluent construction of ``Relation`` objects with Laravel-style naming
inference for every piece the caller leaves out.

    relation = (
        Relation.make(RelationType.BELONGS_TO_MANY, "User")
        .related_entity_name("Role")
        .build()
    )
    relation.relation_name  # "roles"
    relation.pivot_table    # "role_user"
    relation.foreign_key    # "user_id"
    relation.related_key    # "role_id"

Only the two entity *names* are consulted: no cross-entity lookup happens
here, that is the graph validator's job.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Union

from schemagraph.errors import RelationDefinitionError
from schemagraph.models import Entity, Relation, RelationType
from schemagraph.utils import to_camel_case, to_plural, to_snake_case

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemagraph.builders")

EntityRef = Union[str, Entity]


def _entity_name(entity: Optional[EntityRef]) -> Optional[str]:
    if entity is None:
        return None
    if isinstance(entity, Entity):
        return entity.name
    return entity.strip()


class RelationBuilder:
    """Collects relation pieces and infers the missing ones in ``build()``."""

    def __init__(self, default_local_key: str = "id") -> None:
        self._default_local_key: str = default_local_key
        self._type: Optional[RelationType] = None
        self._local_entity: Optional[str] = None
        self._related_entity_name: Optional[str] = None
        self._foreign_key: Optional[str] = None
        self._local_key: Optional[str] = None
        self._related_key: Optional[str] = None
        self._relation_name: Optional[str] = None
        self._morph_name: Optional[str] = None
        self._pivot_table: Optional[str] = None
        self._cascade: bool = False
        self._inferred: bool = False

    # ------------------------------------------------------------------
    # Fluent setters
    # ------------------------------------------------------------------

    def type(self, relation_type: Union[RelationType, str]) -> "RelationBuilder":
        self._type = RelationType(relation_type)
        return self

    def local_entity(self, entity: EntityRef) -> "RelationBuilder":
        self._local_entity = _entity_name(entity)
        return self

    def related_entity_name(self, name: Optional[str]) -> "RelationBuilder":
        self._related_entity_name = _entity_name(name) or None
        return self

    def related_entity(self, entity: Entity) -> "RelationBuilder":
        self._related_entity_name = entity.name
        return self

    def foreign_key(self, key: Optional[str]) -> "RelationBuilder":
        self._foreign_key = key or None
        return self

    def local_key(self, key: Optional[str]) -> "RelationBuilder":
        self._local_key = key or None
        return self

    def related_key(self, key: Optional[str]) -> "RelationBuilder":
        self._related_key = key or None
        return self

    def relation_name(self, name: Optional[str]) -> "RelationBuilder":
        self._relation_name = name or None
        return self

    def morph_name(self, name: Optional[str]) -> "RelationBuilder":
        self._morph_name = name or None
        return self

    def pivot_table(self, table: Optional[str]) -> "RelationBuilder":
        self._pivot_table = table or None
        return self

    def cascade(self, cascade: bool = True) -> "RelationBuilder":
        self._cascade = bool(cascade)
        return self

    def inferred(self, inferred: bool = True) -> "RelationBuilder":
        self._inferred = bool(inferred)
        return self

    # ------------------------------------------------------------------
    # Inference
    # ------------------------------------------------------------------

    def _infer_morph_name(self, rtype: RelationType, local: str, related: str) -> Optional[str]:
        if rtype is RelationType.MORPH_TO:
            return f"{to_snake_case(local)}able"
        if rtype.is_polymorphic:
            return f"{to_snake_case(related)}able"
        return None

    def _infer_relation_name(self, rtype: RelationType, local: str, related: str) -> str:
        if rtype is RelationType.MORPH_TO:
            return to_snake_case(local)
        if rtype.is_to_many:
            return to_plural(to_camel_case(related))
        return to_camel_case(related)

    def _infer_foreign_key(
        self, rtype: RelationType, local: str, related: str, morph: Optional[str]
    ) -> Optional[str]:
        if rtype.is_polymorphic:
            return f"{morph}_id" if morph else None
        if rtype is RelationType.BELONGS_TO:
            return f"{to_snake_case(related)}_id"
        return f"{to_snake_case(local)}_id"

    def _infer_pivot_table(
        self, rtype: RelationType, local: str, related: str, morph: Optional[str]
    ) -> Optional[str]:
        if not rtype.requires_pivot_table:
            return None
        if rtype.is_polymorphic:
            return to_plural(morph) if morph else None
        names: List[str] = sorted([to_snake_case(local), to_snake_case(related)])
        return "_".join(names)

    def build(self) -> Relation:
        rtype: Optional[RelationType] = self._type
        local: Optional[str] = self._local_entity
        if rtype is None:
            raise RelationDefinitionError(
                f"Relation type is not set for relation in entity {local}",
                entity=local,
            )
        if not local:
            raise RelationDefinitionError(
                f"Local entity is not set for relation of type {rtype.value}"
            )
        related: str = self._related_entity_name or ""
        if rtype.requires_related_entity_name and not related:
            raise RelationDefinitionError(
                f"Entity name is not set for relation of type {rtype.value} "
                f"in entity {local}",
                entity=local,
                relation=self._relation_name,
            )

        morph: Optional[str] = self._morph_name or self._infer_morph_name(
            rtype, local, related
        )
        data: Dict[str, Any] = {
            "type": rtype,
            "local_entity": local,
            "related_entity_name": related or None,
            "morph_name": morph,
            "relation_name": self._relation_name
            or self._infer_relation_name(rtype, local, related),
            "foreign_key": self._foreign_key
            or self._infer_foreign_key(rtype, local, related, morph),
            "local_key": self._local_key or self._default_local_key,
            "pivot_table": self._pivot_table
            or self._infer_pivot_table(rtype, local, related, morph),
            "related_key": self._related_key,
            "cascade": self._cascade,
            "inferred": self._inferred,
        }
        if data["related_key"] is None and rtype is RelationType.BELONGS_TO_MANY:
            data["related_key"] = f"{to_snake_case(related)}_id"

        relation: Relation = Relation(**data)
        logger.debug("Built relation %s", relation.describe())
        return relation

    def __repr__(self) -> str:
        type_str: str = self._type.value if self._type is not None else "?"
        return f"<RelationBuilder {self._local_entity} {type_str} {self._related_entity_name}>"


__all__: List[str] = ["RelationBuilder"]
