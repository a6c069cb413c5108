"""
tests/test_models.py
Unit tests for schemagraph.models.

Tests cover:
- Entity derived values and field helpers
- Config lifecycle (init, freeze, lookup)
- GraphOptions immutability and metadata registry
- Relation.inverse_in()
"""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from schemagraph.errors import ConfigFrozenError
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


def _entity(name: str, *field_names: str, table: str | None = None) -> Entity:
    fields = [Field(name="id", type=FieldType.ID)]
    fields.extend(Field(name=n, type=FieldType.STRING) for n in field_names)
    return Entity(name=name, table=table, fields=fields)


class TestEntity:
    def test_table_name_is_derived(self) -> None:
        assert _entity("BlogPost").table_name == "blog_posts"
        assert _entity("Category").table_name == "categories"

    def test_explicit_table_wins(self) -> None:
        assert _entity("Post", table="articles").table_name == "articles"

    def test_plural_and_foreign_key(self) -> None:
        entity = _entity("BlogPost")
        assert entity.plural_name == "BlogPosts"
        assert entity.foreign_key == "blog_post_id"

    def test_field_helpers(self) -> None:
        entity = _entity("User", "name")
        assert entity.has_field("name")
        assert not entity.has_field("email")
        assert entity.get_field("name").type == FieldType.STRING
        assert entity.get_field("missing") is None
        entity.add_field(Field(name="email", type=FieldType.EMAIL))
        assert entity.field_names == ["id", "name", "email"]

    def test_field_groups(self) -> None:
        entity = Entity(
            name="User",
            fields=[
                Field(name="id", type=FieldType.ID),
                Field(name="name", type=FieldType.STRING, searchable=True, sortable=True),
                Field(name="password", type=FieldType.PASSWORD),
                Field(name="api_key", type=FieldType.SECRET, hidden=True),
                Field(name="created_at", type=FieldType.TIMESTAMP),
            ],
        )
        assert [f.name for f in entity.fillable_fields] == ["name", "password", "api_key"]
        assert [f.name for f in entity.hidden_fields] == ["password", "api_key"]
        assert [f.name for f in entity.searchable_fields] == ["name"]
        assert [f.name for f in entity.sortable_fields] == ["name"]

    def test_relations_of_type(self) -> None:
        entity = _entity("User")
        entity.add_relation(
            Relation.make(RelationType.HAS_MANY, "User").related_entity_name("Post").build()
        )
        entity.add_relation(
            Relation.make(RelationType.HAS_ONE, "User").related_entity_name("Profile").build()
        )
        assert len(entity.relations_of_type(RelationType.HAS_MANY)) == 1
        assert len(entity.relations_of_type(RelationType.HAS_MANY, RelationType.HAS_ONE)) == 2
        assert entity.get_relation("profile") is not None

    def test_settings_defaults(self) -> None:
        settings = EntitySettings()
        assert settings.has_avatar is False
        assert settings.is_searchable is True
        assert settings.has_images is False
        assert settings.get("has_images") is False
        assert settings.get("unknown", "fallback") == "fallback"


class TestField:
    def test_derived_values(self) -> None:
        field = Field(name="created_at", type=FieldType.DATETIME)
        assert field.title == "Created At"
        assert field.is_temporal
        assert not field.is_enum
        assert not field.is_foreign_key

    def test_foreign_key_detection(self) -> None:
        assert Field(name="user_id", type=FieldType.FOREIGN_ID).is_foreign_key
        assert Field(name="owner", type=FieldType.INTEGER, belongs_to="User").is_foreign_key

    def test_unknown_attribute_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Field(name="x", type=FieldType.STRING, colour="red")


class TestEnumDefinition:
    def test_duplicate_values_rejected(self) -> None:
        with pytest.raises(ValidationError):
            EnumDefinition(name="Status", values=["A", "A"])


class TestConfig:
    def test_lookup_before_and_after_init(self) -> None:
        config = Config(entities=[_entity("User"), _entity("Post")])
        assert config.get_entity("Post").name == "Post"
        config.init()
        assert config.is_initialized
        assert config.get_entity("User").name == "User"
        assert config.get_entity("Nope") is None
        assert config.get_entity(None) is None

    def test_add_entity_before_init(self) -> None:
        config = Config()
        config.add_entity(_entity("User"))
        assert config.entity_names == ["User"]

    def test_add_entity_after_init_raises(self) -> None:
        config = Config(entities=[_entity("User")]).init()
        with pytest.raises(ConfigFrozenError) as exc_info:
            config.add_entity(_entity("Post"))
        assert exc_info.value.entity == "Post"
        assert config.entity_names == ["User"]

    def test_init_is_idempotent(self) -> None:
        config = Config(entities=[_entity("User")])
        assert config.init() is config
        assert config.init() is config
        assert config.get_entity("User") is config.entities[0]

    def test_resolve_related_and_inverse(self) -> None:
        user = _entity("User")
        post = _entity("Post")
        has_many = Relation.make(RelationType.HAS_MANY, "User").related_entity_name("Post").build()
        belongs_to = Relation.make(RelationType.BELONGS_TO, "Post").related_entity_name("User").build()
        user.add_relation(has_many)
        post.add_relation(belongs_to)
        config = Config(entities=[user, post]).init()

        assert config.resolve_related(has_many) is post
        assert has_many.inverse_in(config) is belongs_to
        assert belongs_to.inverse_in(config) is has_many

    def test_get_enum(self) -> None:
        config = Config(enums=[EnumDefinition(name="Status", values=["A", "B"])])
        assert config.get_enum("Status").values == ["A", "B"]
        assert config.get_enum("Other") is None

    def test_options_and_metadata_registry(self) -> None:
        options = GraphOptions(namespace="shop", entity_meta={"User": {"icon": "person"}})
        user = _entity("User")
        config = Config(entities=[user], options=options).init()
        assert config.qualified_name(user) == "shop.User"
        assert config.meta_for("User") == {"icon": "person"}
        assert config.meta_for("Post") == {}

    def test_options_are_frozen(self) -> None:
        options = GraphOptions()
        assert options.namespace == "app"
        assert options.default_local_key == "id"
        assert options.foreign_key_nullable is True
        with pytest.raises(ValidationError):
            options.namespace = "other"

    def test_serialization(self) -> None:
        config = Config(app=App(name="Blog"), entities=[_entity("BlogPost", "title")]).init()
        data = config.to_dict()
        assert data["app"]["name"] == "Blog"
        assert data["app"]["seed_count"] == 20
        assert data["entities"][0]["table_name"] == "blog_posts"
        assert data["entities"][0]["fields"][1]["type"] == "string"
        assert "options" not in data
        assert json.loads(config.to_json()) == data
