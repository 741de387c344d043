"""Core value types for block documents."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

KnownBlockType = Literal[
    "text",
    "heading1",
    "heading2",
    "heading3",
    "todo",
    "quote",
    "bulleted-list",
    "numbered-list",
    "image",
]

BlockType = str  # KnownBlockType or a plugin-provided type

NUMBERED_LIST = "numbered-list"
BULLETED_LIST = "bulleted-list"
LIST_TYPES = frozenset({NUMBERED_LIST, BULLETED_LIST})
DEFAULT_BLOCK_TYPE = "text"


def is_list_type(block_type: str) -> bool:
    return block_type in LIST_TYPES


@dataclass(frozen=True)
class ListMetadata:
    """Derived numbering for a list block."""

    index: int = 0
    depth: int = 0


@dataclass(frozen=True)
class Block:
    """One unit of document content.

    ``content`` is the opaque payload managed by the block type's
    ``ContentAdapter``. ``metadata`` is derived and only set on list blocks.
    ``extras`` carries stored record keys the engine does not know about.
    """

    id: str
    type: BlockType
    content: Any
    indent: int = 0
    metadata: ListMetadata | None = None
    extras: dict[str, Any] = field(default_factory=dict)


Document = tuple[Block, ...]


@dataclass(frozen=True)
class FocusRequest:
    """Which block should receive focus next, and at which flat text offset."""

    block_id: str
    offset: int = 0


@dataclass(frozen=True)
class Change:
    """Outcome of one BlockStore operation."""

    document: Document
    focus: FocusRequest | None = None


def index_of(document: Document, block_id: str) -> int:
    """Position of ``block_id`` in the document, or -1."""
    for i, block in enumerate(document):
        if block.id == block_id:
            return i
    return -1
