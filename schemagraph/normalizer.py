# File: schemagraph/normalizer.py
"""
SchemaGraph - Type Normalizer
===============================
Maps raw SDL type strings (``String!``, ``[Post]``, ``Int``) onto the
canonical ``FieldType`` catalogue.

Anything that is not a known scalar is assumed to name another entity and
becomes a relation placeholder, steered by the field's directives::

    normalize("[Post]!", {"hasMany": True})  →  FieldType.HAS_MANY
    normalize("Author")                      →  FieldType.BELONGS_TO
    normalize("Email!")                      →  FieldType.EMAIL

The scalar table is an immutable mapping handed to each ``TypeNormalizer``;
nothing here is process-wide mutable state.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any, List, Mapping, Optional, Union

from schemagraph.errors import UnknownScalarTypeError
from schemagraph.models import FieldType, ScalarToken

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemagraph.normalizer")

# ---------------------------------------------------------------------------
# Scalar table
# ---------------------------------------------------------------------------

DEFAULT_SCALAR_MAP: Mapping[ScalarToken, FieldType] = MappingProxyType(
    {
        ScalarToken.ID: FieldType.ID,
        ScalarToken.STRING: FieldType.STRING,
        ScalarToken.BOOLEAN: FieldType.BOOLEAN,
        ScalarToken.INTEGER: FieldType.INTEGER,
        ScalarToken.FLOAT: FieldType.FLOAT,
        ScalarToken.DECIMAL: FieldType.DECIMAL,
        ScalarToken.DATE: FieldType.DATE,
        ScalarToken.DATETIME: FieldType.DATETIME,
        ScalarToken.JSON: FieldType.JSON,
        ScalarToken.PASSWORD: FieldType.PASSWORD,
        ScalarToken.EMAIL: FieldType.EMAIL,
        ScalarToken.UUID: FieldType.UUID,
        ScalarToken.TEXT: FieldType.TEXT,
        ScalarToken.LONG_TEXT: FieldType.LONG_TEXT,
        ScalarToken.URL: FieldType.URL,
        ScalarToken.TIME: FieldType.TIME,
        ScalarToken.YEAR: FieldType.YEAR,
        ScalarToken.SECRET: FieldType.SECRET,
        ScalarToken.TOKEN: FieldType.TOKEN,
        ScalarToken.PHONE: FieldType.PHONE,
        ScalarToken.USERNAME: FieldType.USERNAME,
        ScalarToken.SLUG: FieldType.SLUG,
        ScalarToken.FILE: FieldType.FILE,
        ScalarToken.IMAGE: FieldType.IMAGE,
        ScalarToken.IP_ADDRESS: FieldType.IP_ADDRESS,
        ScalarToken.CHAR: FieldType.CHAR,
        ScalarToken.SMALL_INTEGER: FieldType.SMALL_INTEGER,
        ScalarToken.TINY_INTEGER: FieldType.TINY_INTEGER,
        ScalarToken.UNSIGNED_INTEGER: FieldType.UNSIGNED_INTEGER,
        ScalarToken.UNSIGNED_SMALL_INTEGER: FieldType.UNSIGNED_SMALL_INTEGER,
        ScalarToken.UNSIGNED_TINY_INTEGER: FieldType.UNSIGNED_TINY_INTEGER,
        ScalarToken.BIG_INTEGER: FieldType.BIG_INTEGER,
        ScalarToken.UNSIGNED_BIG_INTEGER: FieldType.UNSIGNED_BIG_INTEGER,
        ScalarToken.BIG_INCREMENTS: FieldType.BIG_INCREMENTS,
        ScalarToken.FOREIGN_ID: FieldType.FOREIGN_ID,
        ScalarToken.DOUBLE: FieldType.DOUBLE,
        ScalarToken.MEDIUM_TEXT: FieldType.MEDIUM_TEXT,
        ScalarToken.BINARY: FieldType.BINARY,
        ScalarToken.TIMESTAMP: FieldType.TIMESTAMP,
        ScalarToken.ENUM: FieldType.ENUM,
    }
)

_WRAPPER_CHARS: str = "[]!"


def _directive_set(directives: Optional[Mapping[str, Any]], key: str) -> bool:
    # @hasMany(false) switches the hint off
    return directives is not None and key in directives and directives[key] is not False


class TypeNormalizer:
    """
    Maps raw type strings to ``FieldType``.

    Usage:
        normalizer = TypeNormalizer()
        normalizer.normalize("String!")  # FieldType.STRING
    """

    __slots__ = ("_scalar_map",)

    def __init__(
        self, scalar_map: Mapping[ScalarToken, FieldType] = DEFAULT_SCALAR_MAP
    ) -> None:
        self._scalar_map: Mapping[ScalarToken, FieldType] = scalar_map

    @property
    def scalar_map(self) -> Mapping[ScalarToken, FieldType]:
        return self._scalar_map

    # ------------------------------------------------------------------
    # Token helpers
    # ------------------------------------------------------------------

    @staticmethod
    def base_token(raw: str) -> str:
        """``"[Post!]!"`` → ``"Post"``."""
        return raw.strip().strip(_WRAPPER_CHARS).strip()

    def try_scalar_token(self, raw: Union[str, ScalarToken]) -> Optional[ScalarToken]:
        if isinstance(raw, ScalarToken):
            return raw
        token: str = self.base_token(raw)
        try:
            scalar: ScalarToken = ScalarToken(token)
        except ValueError:
            return None
        if scalar not in self._scalar_map:
            return None
        return scalar

    def extract_scalar_token(self, raw: Union[str, ScalarToken]) -> ScalarToken:
        """Strict lookup: raise ``UnknownScalarTypeError`` outside the catalogue."""
        scalar: Optional[ScalarToken] = self.try_scalar_token(raw)
        if scalar is None:
            raise UnknownScalarTypeError(f"Unknown scalar type '{raw}'.")
        return scalar

    def to_field_type(self, token: ScalarToken) -> FieldType:
        return self._scalar_map[token]

    # ------------------------------------------------------------------
    # Normalisation
    # ------------------------------------------------------------------

    def normalize(
        self,
        raw: Union[str, ScalarToken],
        directives: Optional[Mapping[str, Any]] = None,
    ) -> FieldType:
        """
        Resolve *raw* to a ``FieldType``; never raises.

        Known scalars map through the scalar table.  Everything else is taken
        as an entity reference: ``@hasMany`` / ``@hasOne`` / ``@belongsToMany``
        pick the placeholder, otherwise ``BELONGS_TO``.
        """
        scalar: Optional[ScalarToken] = self.try_scalar_token(raw)
        if scalar is not None:
            return self._scalar_map[scalar]

        result: FieldType = self.relation_placeholder(directives)
        logger.debug("Type '%s' is not a scalar; treated as %s.", raw, result.value)
        return result

    @staticmethod
    def relation_placeholder(directives: Optional[Mapping[str, Any]] = None) -> FieldType:
        """Relation placeholder picked by the directive hints alone."""
        if _directive_set(directives, "hasMany"):
            return FieldType.HAS_MANY
        if _directive_set(directives, "hasOne"):
            return FieldType.HAS_ONE
        if _directive_set(directives, "belongsToMany"):
            return FieldType.BELONGS_TO_MANY
        return FieldType.BELONGS_TO

    @staticmethod
    def is_nullable(raw: str) -> bool:
        return not raw.strip().endswith("!")

    @staticmethod
    def is_list(raw: str) -> bool:
        token: str = raw.strip()
        return token.startswith("[") and token.endswith("]")

    def __repr__(self) -> str:
        return f"<TypeNormalizer {len(self._scalar_map)} scalars>"


# ---------------------------------------------------------------------------
# Module-level convenience API
# ---------------------------------------------------------------------------

_default_normalizer: TypeNormalizer = TypeNormalizer()


def normalize(
    raw: Union[str, ScalarToken], directives: Optional[Mapping[str, Any]] = None
) -> FieldType:
    return _default_normalizer.normalize(raw, directives)


def is_nullable(raw: str) -> bool:
    return _default_normalizer.is_nullable(raw)


def is_list(raw: str) -> bool:
    return _default_normalizer.is_list(raw)


__all__: List[str] = [
    "DEFAULT_SCALAR_MAP",
    "TypeNormalizer",
    "normalize",
    "is_nullable",
    "is_list",
]
