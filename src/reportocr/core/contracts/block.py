"""
Block Graph contracts.

The OCR service answers one document with a *flat* list of blocks (pages,
lines, words, tables, cells and key/value entities) connected by typed
relationship edges. This module models that response:

- :class:`Block`        : one recognized unit, loaded from the raw Textract
                          dict via field aliases (``Id``, ``BlockType``, ...).
- :class:`Relationship` : a typed edge list (``CHILD`` or ``VALUE``).
- :class:`BlockGraph`   : an immutable id -> Block map plus the blocks in
                          response order.

Blocks are never given back-pointers or mutated; traversal goes through the
stateless helpers in :mod:`reportocr.core.graph`.

Block types outside :class:`BlockType` (``SELECTION_ELEMENT``, ``MERGED_CELL``,
``TITLE``...) are kept with their raw string so that a graph always loads. The
assemblers simply never ask for them.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from enum import StrEnum
from types import MappingProxyType
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field


class BlockType(StrEnum):
    """Block types the assemblers understand."""

    PAGE = "PAGE"
    LINE = "LINE"
    WORD = "WORD"
    TABLE = "TABLE"
    CELL = "CELL"
    KEY_VALUE_SET = "KEY_VALUE_SET"


class RelationshipType(StrEnum):
    """Edge types followed by the resolver."""

    CHILD = "CHILD"
    VALUE = "VALUE"


class EntityType(StrEnum):
    """Semantic role of a KEY_VALUE_SET block."""

    KEY = "KEY"
    VALUE = "VALUE"


class Relationship(BaseModel):
    """An ordered list of target block ids sharing one edge type."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    type: str = Field(..., alias="Type", description="CHILD, VALUE or another Textract type.")
    ids: tuple[str, ...] = Field(default=(), alias="Ids")


class Block(BaseModel):
    """A single recognized element of one OCR response."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str = Field(..., alias="Id", description="Opaque id, unique within one response.")
    block_type: str = Field(..., alias="BlockType")
    text: str | None = Field(default=None, alias="Text")
    confidence: Annotated[float, Field(ge=0.0, le=100.0)] = Field(
        default=0.0, alias="Confidence"
    )
    row_index: int | None = Field(default=None, ge=1, alias="RowIndex")
    column_index: int | None = Field(default=None, ge=1, alias="ColumnIndex")
    entity_types: tuple[str, ...] = Field(default=(), alias="EntityTypes")
    relationships: tuple[Relationship, ...] = Field(default=(), alias="Relationships")
    page: int | None = Field(default=None, alias="Page")

    @property
    def is_key(self) -> bool:
        """Return True for a KEY_VALUE_SET block in the KEY role."""
        return self.block_type == BlockType.KEY_VALUE_SET and EntityType.KEY in self.entity_types


@dataclass(frozen=True, slots=True)
class BlockGraph:
    """
    Immutable view over the blocks of one OCR response.

    Attributes
    ----------
    blocks : tuple[Block, ...]
        Every block in response order (duplicates included).
    index : Mapping[str, Block]
        Read-only id -> Block lookup. If an id repeats, the later block wins.
    """

    blocks: tuple[Block, ...]
    index: Mapping[str, Block]

    @classmethod
    def from_blocks(cls, blocks: Iterable[Block]) -> BlockGraph:
        """Build a graph from already-parsed blocks."""
        ordered = tuple(blocks)
        return cls(blocks=ordered, index=MappingProxyType({b.id: b for b in ordered}))

    @classmethod
    def from_textract(cls, response: Mapping[str, Any]) -> BlockGraph:
        """Build a graph from a raw ``AnalyzeDocument`` response dict."""
        raw = response.get("Blocks") or []
        return cls.from_blocks(Block.model_validate(b) for b in raw)

    def get(self, block_id: str) -> Block | None:
        """Return the block with ``block_id``, or None when it is not present."""
        return self.index.get(block_id)

    def of_type(self, block_type: str) -> list[Block]:
        """Return all blocks of ``block_type`` in response order."""
        return [b for b in self.blocks if b.block_type == block_type]

    def __iter__(self) -> Iterator[Block]:
        return iter(self.blocks)

    def __len__(self) -> int:
        return len(self.blocks)


__all__ = [
    "Block",
    "BlockGraph",
    "BlockType",
    "EntityType",
    "Relationship",
    "RelationshipType",
]
