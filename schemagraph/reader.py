# File: schemagraph/reader.py
"""
SchemaGraph - SDL Schema Reader
=================================
Reads the GraphQL-flavoured schema language into ``App``, ``Entity`` and
``EnumDefinition`` objects::

    type App @config {
        name: String @default("Blog")
        seedEnabled: Boolean @default(true)
    }

    enum Status { DRAFT PUBLISHED }

    type Post @table(blog_posts) @hasImages {
        title: String! @search @sort
        status: Status @default(DRAFT)
        author: User @belongsTo @foreignKey(author_id)
        comments: [Comment] @hasMany
    }

The text is tokenized **once** into a list of ``SchemaBlock`` objects; the
reader then makes four passes over that list:

    1. the ``@config`` block       → ``App``
    2. ``enum`` blocks             → ``EnumDefinition``
    3. ``type`` blocks             → ``Entity`` shells with scalar/enum fields
    4. ``type`` blocks again       → relations

Relations are only built after every entity shell exists, so a type may
refer to another type declared further down the document.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional, Set, Tuple

from pydantic import ValidationError

from schemagraph.builders import RelationBuilder
from schemagraph.errors import SchemaParseError
from schemagraph.models import (
    App,
    Entity,
    EntitySettings,
    EnumDefinition,
    Field,
    FieldType,
    Relation,
    RelationType,
    relation_type_for,
)
from schemagraph.normalizer import TypeNormalizer
from schemagraph.utils import cast_literal, strip_quotes, to_snake_case

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemagraph.reader")

# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

_BLOCK_HEADER_RE: re.Pattern[str] = re.compile(
    r"^[ \t]*(type|enum)[ \t]+(\w+)([^{}\n]*?)\s*\{", re.MULTILINE
)
_BARE_HEADER_RE: re.Pattern[str] = re.compile(
    r"^[ \t]*(type|enum)[ \t]+(\w+)", re.MULTILINE
)
_DIRECTIVE_RE: re.Pattern[str] = re.compile(r"@(\w+)(?:\(([^)]*)\))?")
_FIELD_TYPE_RE: re.Pattern[str] = re.compile(r"^([^\s@]+)?\s*(.*)$")
_ENUM_VALUE_SPLIT_RE: re.Pattern[str] = re.compile(r"[\s,]+")

# Explicit relation directives, checked in this order
_RELATION_DIRECTIVES: Tuple[Tuple[str, RelationType], ...] = (
    ("morphOne", RelationType.MORPH_ONE),
    ("morphMany", RelationType.MORPH_MANY),
    ("morphToMany", RelationType.MORPH_TO_MANY),
    ("morphedByMany", RelationType.MORPHED_BY_MANY),
    ("morphTo", RelationType.MORPH_TO),
    ("belongsTo", RelationType.BELONGS_TO),
)

# Any of these on a line makes it a relation, whatever its type token
_RELATION_HINTS: FrozenSet[str] = frozenset(
    ("hasMany", "hasOne", "belongsToMany")
) | frozenset(directive for directive, _ in _RELATION_DIRECTIVES)

_FLAG_DIRECTIVES: Tuple[Tuple[str, str], ...] = (
    ("sort", "sortable"),
    ("search", "searchable"),
    ("unique", "unique"),
    ("hidden", "hidden"),
    ("sometimes", "sometimes"),
)


# ---------------------------------------------------------------------------
# Intermediate representation
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FieldDeclaration:
    """One ``name: RawType @directive(args) ...`` line of a block body."""

    name: str
    raw_type: str
    directives: Dict[str, Optional[str]]
    line: int

    def has(self, directive: str) -> bool:
        return directive in self.directives

    def arg(self, directive: str) -> Optional[str]:
        value: Optional[str] = self.directives.get(directive)
        if value is None:
            return None
        return strip_quotes(value) or None

    @property
    def hints(self) -> Dict[str, Any]:
        """Directives in the shape the type normalizer expects."""
        return {
            key: True if value is None else cast_literal(value)
            for key, value in self.directives.items()
        }


@dataclass(frozen=True, slots=True)
class SchemaBlock:
    """A ``type`` or ``enum`` block as found by the tokenizer."""

    kind: str
    name: str
    directives: Dict[str, Optional[str]]
    lines: List[Tuple[int, str]] = field(default_factory=list)

    @property
    def is_config(self) -> bool:
        return self.kind == "type" and "config" in self.directives

    @property
    def is_enum(self) -> bool:
        return self.kind == "enum"

    def content_lines(self) -> List[Tuple[int, str]]:
        """Body lines with blank lines and ``#`` comments removed."""
        result: List[Tuple[int, str]] = []
        for lineno, raw in self.lines:
            text: str = raw.strip()
            if not text or text.startswith("#"):
                continue
            result.append((lineno, text))
        return result


def parse_directives(text: str) -> Dict[str, Optional[str]]:
    """``"@sort @default(5)"`` → ``{"sort": None, "default": "5"}``."""
    return {m.group(1): m.group(2) for m in _DIRECTIVE_RE.finditer(text)}


def _warn_headless_blocks(
    text: str, header_starts: Set[int], spans: List[Tuple[int, int]]
) -> None:
    """Warn about ``type`` / ``enum`` headers that never open a body."""
    for match in _BARE_HEADER_RE.finditer(text):
        offset: int = match.start()
        if offset in header_starts:
            continue
        if any(begin <= offset < end for begin, end in spans):
            continue
        logger.warning(
            "Skipping %s block '%s' at line %d: no opening brace.",
            match.group(1),
            match.group(2),
            text.count("\n", 0, offset) + 1,
        )


def tokenize(text: str) -> List[SchemaBlock]:
    """
    Split *text* into blocks in a single scan.

    A block whose braces never balance is skipped with a warning; scanning
    resumes right after its header so later blocks are still found.  The
    opening brace may sit on a line of its own.
    """
    blocks: List[SchemaBlock] = []
    pos: int = 0
    length: int = len(text)
    header_starts: Set[int] = set()
    spans: List[Tuple[int, int]] = []

    while True:
        match: Optional[re.Match[str]] = _BLOCK_HEADER_RE.search(text, pos)
        if match is None:
            break
        kind, name, header = match.group(1), match.group(2), match.group(3)
        start: int = match.end()
        header_line: int = text.count("\n", 0, match.start()) + 1
        header_starts.add(match.start())

        depth: int = 1
        i: int = start
        while i < length and depth:
            char: str = text[i]
            if char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
            i += 1

        if depth:
            logger.warning(
                "Skipping %s block '%s' at line %d: unbalanced braces.",
                kind,
                name,
                header_line,
            )
            pos = start
            continue

        body: str = text[start : i - 1]
        body_line: int = header_line + text.count("\n", match.start(), start)
        lines: List[Tuple[int, str]] = [
            (body_line + offset, line) for offset, line in enumerate(body.split("\n"))
        ]
        blocks.append(
            SchemaBlock(
                kind=kind,
                name=name,
                directives=parse_directives(header),
                lines=lines,
            )
        )
        pos = i
        spans.append((match.start(), i))

    _warn_headless_blocks(text, header_starts, spans)
    logger.debug("Tokenized %d blocks.", len(blocks))
    return blocks


def parse_field_line(line: str, lineno: int, block: str) -> FieldDeclaration:
    name, sep, rest = line.partition(":")
    name = name.strip()
    if not sep or not name:
        raise SchemaParseError(
            f"Cannot parse field line {lineno} in '{block}': {line!r}",
            entity=block,
        )
    match: Optional[re.Match[str]] = _FIELD_TYPE_RE.match(rest.strip())
    raw_type: str = (match.group(1) or "") if match else ""
    directive_text: str = match.group(2) if match else ""
    return FieldDeclaration(
        name=name,
        raw_type=raw_type,
        directives=parse_directives(directive_text),
        line=lineno,
    )


# ---------------------------------------------------------------------------
# Reader
# ---------------------------------------------------------------------------


class SchemaReader:
    """
    Four-pass SDL reader.

    Usage:
        app, entities, enums = SchemaReader().load(sdl_text)
    """

    def __init__(
        self,
        normalizer: Optional[TypeNormalizer] = None,
        default_local_key: str = "id",
    ) -> None:
        self.normalizer: TypeNormalizer = normalizer or TypeNormalizer()
        self.default_local_key: str = default_local_key

    def load(self, text: str) -> Tuple[App, List[Entity], List[EnumDefinition]]:
        blocks: List[SchemaBlock] = tokenize(text)

        app: App = self._read_config(blocks)
        enums: List[EnumDefinition] = self._read_enums(blocks)

        type_blocks: List[SchemaBlock] = [
            b for b in blocks if b.kind == "type" and not b.is_config
        ]
        enum_map: Dict[str, EnumDefinition] = {e.name: e for e in enums}
        entity_map: Dict[str, Entity] = {}
        deferred: Dict[str, List[FieldDeclaration]] = {}
        for block in type_blocks:
            entity, pending = self._read_entity_shell(block, enum_map)
            if entity.name in entity_map:
                raise SchemaParseError(
                    f"Duplicate entity '{entity.name}' in schema.",
                    entity=entity.name,
                )
            entity_map[entity.name] = entity
            deferred[entity.name] = pending

        for name, entity in entity_map.items():
            for decl in deferred[name]:
                self._read_relation(entity, decl, entity_map)

        logger.info(
            "Schema read: %d entities, %d enums.", len(entity_map), len(enums)
        )
        return app, list(entity_map.values()), enums

    # ------------------------------------------------------------------
    # Pass 1: @config block
    # ------------------------------------------------------------------

    def _read_config(self, blocks: List[SchemaBlock]) -> App:
        config_blocks: List[SchemaBlock] = [b for b in blocks if b.is_config]
        if not config_blocks:
            return App()
        if len(config_blocks) > 1:
            names: str = ", ".join(b.name for b in config_blocks)
            raise SchemaParseError(
                f"Only one @config block is allowed, found {len(config_blocks)}: {names}."
            )

        block: SchemaBlock = config_blocks[0]
        data: Dict[str, Any] = {}
        for lineno, line in block.content_lines():
            decl: FieldDeclaration = parse_field_line(line, lineno, block.name)
            attr: str = to_snake_case(decl.name)
            if attr not in App.model_fields:
                logger.debug("Ignoring unknown config entry '%s'.", decl.name)
                continue
            raw: Optional[str] = decl.directives.get("default")
            value: Any = cast_literal(raw) if raw is not None else None
            if attr == "capabilities" and isinstance(value, str):
                value = [v for v in _ENUM_VALUE_SPLIT_RE.split(value) if v]
            if value is None:
                continue
            data[attr] = value

        try:
            return App(**data)
        except ValidationError as exc:
            raise SchemaParseError(
                f"Invalid @config block '{block.name}': {exc}"
            ) from exc

    # ------------------------------------------------------------------
    # Pass 2: enums
    # ------------------------------------------------------------------

    def _read_enums(self, blocks: List[SchemaBlock]) -> List[EnumDefinition]:
        enums: List[EnumDefinition] = []
        seen: set = set()
        for block in blocks:
            if not block.is_enum:
                continue
            if block.name in seen:
                raise SchemaParseError(f"Duplicate enum '{block.name}' in schema.")
            seen.add(block.name)
            values: List[str] = []
            for _lineno, line in block.content_lines():
                values.extend(v for v in _ENUM_VALUE_SPLIT_RE.split(line) if v)
            try:
                enums.append(EnumDefinition(name=block.name, values=values))
            except ValidationError as exc:
                raise SchemaParseError(f"Invalid enum '{block.name}': {exc}") from exc
        return enums

    # ------------------------------------------------------------------
    # Pass 3: entity shells
    # ------------------------------------------------------------------

    def _read_settings(self, block: SchemaBlock) -> EntitySettings:
        settings: EntitySettings = EntitySettings()
        for directive, attr in (
            ("hasImages", "has_images"),
            ("hasAvatar", "has_avatar"),
            ("searchable", "is_searchable"),
        ):
            if directive not in block.directives:
                continue
            raw: Optional[str] = block.directives[directive]
            setattr(settings, attr, True if raw is None else cast_literal(raw) is True)
        return settings

    def _is_relation_line(self, decl: FieldDeclaration) -> bool:
        # "[Image]!" is a list of Image entities, never the image scalar
        if self.normalizer.is_list(decl.raw_type.strip().rstrip("!")):
            return True
        hints: Dict[str, Any] = decl.hints
        return any(
            hints.get(directive, False) is not False for directive in _RELATION_HINTS
        )

    def _read_entity_shell(
        self, block: SchemaBlock, enum_map: Dict[str, EnumDefinition]
    ) -> Tuple[Entity, List[FieldDeclaration]]:
        table_arg: Optional[str] = block.directives.get("table")
        entity: Entity = Entity(
            name=block.name,
            table=strip_quotes(table_arg) if table_arg else None,
            settings=self._read_settings(block),
        )
        pending: List[FieldDeclaration] = []

        for lineno, line in block.content_lines():
            decl: FieldDeclaration = parse_field_line(line, lineno, block.name)
            base: str = self.normalizer.base_token(decl.raw_type)

            if self._is_relation_line(decl):
                pending.append(decl)
            elif self.normalizer.try_scalar_token(base) is not None:
                entity.add_field(self._build_field(entity, decl))
            elif base in enum_map:
                entity.add_field(
                    self._build_field(entity, decl, enum_def=enum_map[base])
                )
            else:
                pending.append(decl)

        logger.debug(
            "Entity shell '%s': %d fields, %d deferred relation lines.",
            entity.name,
            len(entity.fields),
            len(pending),
        )
        return entity, pending

    def _int_arg(self, entity: Entity, decl: FieldDeclaration, directive: str) -> Optional[int]:
        raw: Optional[str] = decl.directives.get(directive)
        if raw is None:
            return None
        value: Any = cast_literal(raw)
        if isinstance(value, bool) or not isinstance(value, int):
            raise SchemaParseError(
                f"@{directive} on '{entity.name}.{decl.name}' (line {decl.line}) "
                f"expects an integer, got {raw!r}.",
                entity=entity.name,
                field=decl.name,
            )
        return value

    def _build_field(
        self,
        entity: Entity,
        decl: FieldDeclaration,
        enum_def: Optional[EnumDefinition] = None,
    ) -> Field:
        field_type: FieldType = (
            FieldType.ENUM
            if enum_def is not None
            else self.normalizer.normalize(decl.raw_type, decl.hints)
        )
        nullable: bool = self.normalizer.is_nullable(decl.raw_type)

        values: List[str] = list(enum_def.values) if enum_def is not None else []
        values_arg: Optional[str] = decl.directives.get("values")
        if values_arg:
            values = [
                strip_quotes(v) for v in _ENUM_VALUE_SPLIT_RE.split(values_arg) if v
            ]

        default_arg: Optional[str] = decl.directives.get("default")
        kwargs: Dict[str, Any] = {
            "name": decl.name,
            "type": field_type,
            "nullable": nullable,
            "required": not nullable,
            "default": cast_literal(default_arg) if default_arg is not None else None,
            "min": self._int_arg(entity, decl, "min"),
            "max": self._int_arg(entity, decl, "max"),
            "values": values,
        }
        for directive, attr in _FLAG_DIRECTIVES:
            kwargs[attr] = decl.has(directive)

        try:
            return Field(**kwargs)
        except ValidationError as exc:
            raise SchemaParseError(
                f"Invalid field '{entity.name}.{decl.name}' (line {decl.line}): {exc}",
                entity=entity.name,
                field=decl.name,
            ) from exc

    # ------------------------------------------------------------------
    # Pass 4: relations
    # ------------------------------------------------------------------

    def _relation_type(self, decl: FieldDeclaration) -> RelationType:
        for directive, relation_type in _RELATION_DIRECTIVES:
            if decl.has(directive):
                return relation_type
        placeholder: FieldType = self.normalizer.relation_placeholder(decl.hints)
        return relation_type_for(placeholder) or RelationType.BELONGS_TO

    def _read_relation(
        self, entity: Entity, decl: FieldDeclaration, entity_map: Dict[str, Entity]
    ) -> None:
        relation_type: RelationType = self._relation_type(decl)
        related: Optional[str] = None
        if relation_type.requires_related_entity_name:
            related = self.normalizer.base_token(decl.raw_type) or None

        relation: Relation = (
            RelationBuilder(self.default_local_key)
            .type(relation_type)
            .local_entity(entity.name)
            .related_entity_name(related)
            .relation_name(decl.arg("name") or decl.name)
            .foreign_key(decl.arg("foreignKey"))
            .local_key(decl.arg("localKey"))
            .related_key(decl.arg("relatedKey") or decl.arg("relatedForeignKey"))
            .pivot_table(decl.arg("pivot"))
            .morph_name(decl.arg("morphName"))
            .cascade(decl.has("cascade"))
            .build()
        )

        if related is not None and related not in entity_map:
            logger.warning(
                "Relation '%s.%s' (line %d) targets unknown entity '%s'.",
                entity.name,
                relation.relation_name,
                decl.line,
                related,
            )
        entity.add_relation(relation)


__all__: List[str] = [
    "FieldDeclaration",
    "SchemaBlock",
    "SchemaReader",
    "parse_directives",
    "parse_field_line",
    "tokenize",
]
