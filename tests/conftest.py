"""
tests/conftest.py
Shared fixtures for the schemagraph test suite.

The blog schema is provided twice: as SDL text and as the equivalent
JSON/YAML document, so both assembly paths can be compared.
No external mocking libraries are used.
"""

from __future__ import annotations

import copy
import json
import textwrap
from typing import Any, Dict

import pytest
import yaml


# ---------------------------------------------------------------------------
# Blog schema — SDL
# ---------------------------------------------------------------------------

_BLOG_SDL: str = textwrap.dedent(
    """
    type App @config {
        name: String @default("Blog")
        seedEnabled: Boolean @default(true)
        seedCount: Int @default(5)
    }

    enum Status {
        DRAFT, PUBLISHED
        ARCHIVED
    }

    # Comment is declared before the Post it refers to
    type Comment {
        id: ID!
        body: Text!
        post: Post
    }

    type User @hasAvatar {
        id: ID!
        name: String! @search @sort
        email: Email! @unique
        password: Password! @hidden
        posts: [Post] @hasMany @foreignKey(author_id)
        roles: [Role] @belongsToMany
    }

    type Post @table(blog_posts) @hasImages {
        id: ID!
        title: String! @search @sort @min(3) @max(120)
        status: Status @default(DRAFT)
        views: Int @default(0)
        author: User @belongsTo @foreignKey(author_id)
        comments: [Comment] @hasMany
        images: [Image] @morphMany
    }

    type Role {
        id: ID!
        name: String!
    }

    type Image {
        id: ID!
        url: URL!
        imageable: @morphTo
    }
    """
)


# ---------------------------------------------------------------------------
# Blog schema — equivalent document
# ---------------------------------------------------------------------------

_BLOG_DOCUMENT: Dict[str, Any] = {
    "app": {"name": "Blog", "seedEnabled": True, "seedCount": 5},
    "enums": [{"name": "Status", "values": ["DRAFT", "PUBLISHED", "ARCHIVED"]}],
    "entities": [
        {
            "name": "Comment",
            "fields": [
                {"name": "id", "type": "id"},
                {"name": "body", "type": "text"},
            ],
            "relations": [{"type": "belongsTo", "entity": "Post", "name": "post"}],
        },
        {
            "name": "User",
            "settings": {"has_avatar": True},
            "fields": [
                {"name": "id", "type": "id"},
                {"name": "name", "type": "string", "searchable": True, "sortable": True},
                {"name": "email", "type": "email", "unique": True},
                {"name": "password", "type": "password", "hidden": True},
            ],
            "relations": [
                {
                    "type": "hasMany",
                    "entity": "Post",
                    "name": "posts",
                    "foreign_key": "author_id",
                },
                {"type": "belongsToMany", "entity": "Role", "name": "roles"},
            ],
        },
        {
            "name": "Post",
            "table": "blog_posts",
            "settings": {"hasImages": True},
            "fields": [
                {"name": "id", "type": "id"},
                {
                    "name": "title",
                    "type": "string",
                    "searchable": True,
                    "sortable": True,
                    "min": 3,
                    "max": 120,
                },
                {"name": "status", "type": "Status", "nullable": True, "default": "DRAFT"},
                {"name": "views", "type": "Int", "nullable": True, "default": 0},
            ],
            "relations": [
                {
                    "type": "belongsTo",
                    "entity": "User",
                    "name": "author",
                    "foreign_key": "author_id",
                },
                {"type": "hasMany", "entity": "Comment", "name": "comments"},
                {"type": "morphMany", "entity": "Image", "name": "images"},
            ],
        },
        {
            "name": "Role",
            "fields": [
                {"name": "id", "type": "id"},
                {"name": "name", "type": "string"},
            ],
        },
        {
            "name": "Image",
            "fields": [
                {"name": "id", "type": "id"},
                {"name": "url", "type": "url"},
            ],
            "relations": [{"type": "morphTo", "name": "imageable"}],
        },
    ],
}


@pytest.fixture()
def blog_sdl() -> str:
    return _BLOG_SDL


@pytest.fixture()
def blog_document() -> Dict[str, Any]:
    """Return a deep copy so each test can mutate freely."""
    return copy.deepcopy(_BLOG_DOCUMENT)


@pytest.fixture()
def blog_json(blog_document: Dict[str, Any]) -> str:
    return json.dumps(blog_document, indent=2)


@pytest.fixture()
def blog_yaml(blog_document: Dict[str, Any]) -> str:
    return yaml.dump(blog_document, default_flow_style=False, allow_unicode=True)


# ---------------------------------------------------------------------------
# Minimal / edge-case documents
# ---------------------------------------------------------------------------


@pytest.fixture()
def author_book_document() -> Dict[str, Any]:
    """Author hasMany Book; Book declares neither the key nor the inverse."""
    return {
        "app": {"name": "Library"},
        "entities": [
            {
                "name": "Author",
                "fields": [
                    {"name": "id", "type": "id"},
                    {"name": "name", "type": "string"},
                ],
                "relations": [
                    {"type": "hasMany", "entity": "Book", "foreign_key": "author_id"}
                ],
            },
            {
                "name": "Book",
                "fields": [
                    {"name": "id", "type": "id"},
                    {"name": "title", "type": "string"},
                ],
            },
        ],
    }


@pytest.fixture()
def orphan_belongs_to_document() -> Dict[str, Any]:
    """Book belongsTo Author, but Author declares nothing back."""
    return {
        "app": {"name": "Library"},
        "entities": [
            {
                "name": "Book",
                "fields": [
                    {"name": "id", "type": "id"},
                    {"name": "title", "type": "string"},
                ],
                "relations": [
                    {"type": "belongsTo", "entity": "Author", "foreign_key": "author_id"}
                ],
            },
            {
                "name": "Author",
                "fields": [{"name": "id", "type": "id"}],
            },
        ],
    }


@pytest.fixture()
def user_role_document() -> Dict[str, Any]:
    """User belongsToMany Role via role_user; Role has no relation back."""
    return {
        "app": {"name": "Acl"},
        "entities": [
            {
                "name": "User",
                "fields": [{"name": "id", "type": "id"}],
                "relations": [
                    {"type": "belongsToMany", "entity": "Role", "pivot": "role_user"}
                ],
            },
            {
                "name": "Role",
                "fields": [{"name": "id", "type": "id"}],
            },
        ],
    }
