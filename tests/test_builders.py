"""
tests/test_builders.py
Unit tests for schemagraph.builders.RelationBuilder and Relation.make().

Tests cover:
- Naming inference for every relation type
- Explicit values overriding inference
- Missing related entity name errors
"""

from __future__ import annotations

import pytest

from schemagraph.builders import RelationBuilder
from schemagraph.errors import RelationDefinitionError, StructuralError
from schemagraph.models import Entity, Field, FieldType, Relation, RelationType


def _make(relation_type: RelationType, local: str, related: str | None = None) -> Relation:
    return Relation.make(relation_type, local).related_entity_name(related).build()


class TestInference:
    def test_has_many(self) -> None:
        relation = _make(RelationType.HAS_MANY, "User", "Post")
        assert relation.relation_name == "posts"
        assert relation.foreign_key == "user_id"
        assert relation.local_key == "id"
        assert relation.pivot_table is None
        assert relation.morph_name is None

    def test_has_one(self) -> None:
        relation = _make(RelationType.HAS_ONE, "User", "Profile")
        assert relation.relation_name == "profile"
        assert relation.foreign_key == "user_id"

    def test_belongs_to(self) -> None:
        relation = _make(RelationType.BELONGS_TO, "Post", "User")
        assert relation.relation_name == "user"
        assert relation.foreign_key == "user_id"
        assert relation.local_key == "id"

    def test_belongs_to_many(self) -> None:
        relation = _make(RelationType.BELONGS_TO_MANY, "User", "Role")
        assert relation.relation_name == "roles"
        assert relation.foreign_key == "user_id"
        assert relation.related_key == "role_id"
        assert relation.pivot_table == "role_user"

    def test_pivot_name_is_order_independent(self) -> None:
        forward = _make(RelationType.BELONGS_TO_MANY, "User", "Role")
        backward = _make(RelationType.BELONGS_TO_MANY, "Role", "User")
        assert forward.pivot_table == backward.pivot_table == "role_user"

    def test_compound_names(self) -> None:
        relation = _make(RelationType.HAS_MANY, "BlogAuthor", "BlogPost")
        assert relation.relation_name == "blogPosts"
        assert relation.foreign_key == "blog_author_id"
        assert relation.api_path == "blog-posts"

    def test_morph_to(self) -> None:
        relation = _make(RelationType.MORPH_TO, "Image")
        assert relation.relation_name == "image"
        assert relation.morph_name == "imageable"
        assert relation.foreign_key == "imageable_id"
        assert relation.morph_type_key == "imageable_type"
        assert relation.morph_id_key == "imageable_id"
        assert relation.related_entity_name is None

    def test_morph_many(self) -> None:
        relation = _make(RelationType.MORPH_MANY, "Post", "Image")
        assert relation.relation_name == "images"
        assert relation.morph_name == "imageable"
        assert relation.foreign_key == "imageable_id"
        assert relation.pivot_table is None

    def test_morph_one(self) -> None:
        relation = _make(RelationType.MORPH_ONE, "User", "Image")
        assert relation.relation_name == "image"
        assert relation.morph_name == "imageable"

    def test_morph_to_many(self) -> None:
        relation = _make(RelationType.MORPH_TO_MANY, "Post", "Tag")
        assert relation.relation_name == "tags"
        assert relation.morph_name == "tagable"
        assert relation.pivot_table == "tagables"

    def test_explicit_values_win(self) -> None:
        relation = (
            Relation.make(RelationType.BELONGS_TO_MANY, "User")
            .related_entity_name("Role")
            .relation_name("permissions")
            .foreign_key("member_id")
            .related_key("group_id")
            .local_key("uuid")
            .pivot_table("memberships")
            .cascade()
            .build()
        )
        assert relation.relation_name == "permissions"
        assert relation.foreign_key == "member_id"
        assert relation.related_key == "group_id"
        assert relation.local_key == "uuid"
        assert relation.pivot_table == "memberships"
        assert relation.cascade is True
        assert relation.inferred is False

    def test_accepts_entity_objects(self) -> None:
        user = Entity(name="User", fields=[Field(name="id", type=FieldType.ID)])
        post = Entity(name="Post", fields=[Field(name="id", type=FieldType.ID)])
        relation = Relation.make(RelationType.HAS_MANY, user).related_entity(post).build()
        assert relation.local_entity == "User"
        assert relation.related_entity_name == "Post"

    def test_custom_default_local_key(self) -> None:
        relation = (
            RelationBuilder("uuid")
            .type(RelationType.HAS_ONE)
            .local_entity("User")
            .related_entity_name("Profile")
            .build()
        )
        assert relation.local_key == "uuid"


class TestErrors:
    def test_missing_related_name(self) -> None:
        with pytest.raises(RelationDefinitionError) as exc_info:
            Relation.make(RelationType.BELONGS_TO_MANY, "User").build()
        assert str(exc_info.value) == (
            "Entity name is not set for relation of type belongsToMany in entity User"
        )
        assert exc_info.value.entity == "User"
        assert isinstance(exc_info.value, StructuralError)

    def test_missing_type(self) -> None:
        with pytest.raises(RelationDefinitionError):
            RelationBuilder().local_entity("User").related_entity_name("Post").build()

    def test_unknown_type_string(self) -> None:
        with pytest.raises(ValueError):
            RelationBuilder().type("hasSome")


class TestDescribe:
    def test_describe_has_many(self) -> None:
        relation = _make(RelationType.HAS_MANY, "User", "Post")
        assert relation.describe() == "User → hasMany(posts) → Post [FK: user_id, LK: id]"

    def test_derived_flags(self) -> None:
        relation = _make(RelationType.BELONGS_TO_MANY, "User", "Role")
        assert relation.requires_pivot_table
        assert relation.requires_related_entity_name
        assert not relation.is_polymorphic
        assert relation.has_route

        morph = _make(RelationType.MORPH_TO, "Comment")
        assert morph.is_polymorphic
        assert not morph.requires_related_entity_name
        assert not morph.has_route
