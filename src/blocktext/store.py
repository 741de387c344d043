"""Ordered block collection and its pure mutation operations.

Every operation consumes one document tuple and returns a ``Change`` holding
the next one. Structural operations finish with a list metadata pass so the
returned document is always consistent.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any
from uuid import uuid4

from blocktext.errors import NotFoundError, OutOfRangeError
from blocktext.lists import apply_metadata
from blocktext.plugins import PluginRegistry, default_registry
from blocktext.settings import EditorSettings
from blocktext.types import Block, Change, Document, FocusRequest, index_of, is_list_type

logger = logging.getLogger(__name__)


def _generate_id(existing: set[str]) -> str:
    """Generate a short collision-checked ID."""
    for _ in range(100):
        candidate = uuid4().hex[:8]
        if candidate not in existing:
            return candidate
    return uuid4().hex


class BlockStore:
    """Block operations, parameterised by the plugin registry that owns the payloads."""

    def __init__(
        self,
        registry: PluginRegistry | None = None,
        settings: EditorSettings | None = None,
    ) -> None:
        self.registry = registry or default_registry()
        self.settings = settings or EditorSettings()

    # --- Construction ---

    def create_block(self, block_type: str | None = None, existing: set[str] | None = None) -> Block:
        """New empty block of ``block_type`` (the default type when omitted)."""
        block_type = block_type or self.settings.default_block_type
        adapter = self.registry.adapter_for(block_type)
        return Block(id=_generate_id(existing or set()), type=block_type, content=adapter.create_empty())

    def empty_document(self) -> Document:
        return (self.create_block(self.settings.default_block_type),)

    # --- Lookup ---

    def _require(self, document: Document, block_id: str) -> int:
        index = index_of(document, block_id)
        if index < 0:
            raise NotFoundError(block_id)
        return index

    def get(self, document: Document, block_id: str) -> Block:
        return document[self._require(document, block_id)]

    def text_of(self, block: Block) -> str:
        return self.registry.adapter_for(block.type).get_text(block.content)

    def length_of(self, block: Block) -> int:
        return self.registry.adapter_for(block.type).get_length(block.content)

    # --- Structural operations ---

    def insert_after(self, document: Document, anchor_id: str, block_type: str | None = None) -> Change:
        """Insert an empty block right after ``anchor_id`` and focus it."""
        index = self._require(document, anchor_id)
        block = self.create_block(block_type, {b.id for b in document})
        blocks = list(document)
        blocks.insert(index + 1, block)
        logger.debug("Inserted %s block %s after %s", block.type, block.id, anchor_id)
        return Change(apply_metadata(tuple(blocks)), FocusRequest(block.id, 0))

    def delete(self, document: Document, block_id: str) -> Change:
        """Remove a block. The sole block is replaced by a fresh empty one."""
        index = self._require(document, block_id)
        if len(document) == 1:
            block = self.create_block(self.settings.default_block_type, {block_id})
            logger.debug("Deleted last block %s, replaced with %s", block_id, block.id)
            return Change((block,), FocusRequest(block.id, 0))

        blocks = list(document)
        del blocks[index]
        target = blocks[max(index - 1, 0)]
        offset = self.length_of(target) if index > 0 else 0
        logger.debug("Deleted block %s", block_id)
        return Change(apply_metadata(tuple(blocks)), FocusRequest(target.id, offset))

    def move(self, document: Document, from_index: int, to_index: int) -> Change:
        """Relocate the block at ``from_index`` so it ends up at ``to_index``."""
        for value in (from_index, to_index):
            if not 0 <= value < len(document):
                raise OutOfRangeError(value, len(document))
        if from_index == to_index:
            return Change(document)
        blocks = list(document)
        block = blocks.pop(from_index)
        blocks.insert(to_index, block)
        logger.debug("Moved block %s from %d to %d", block.id, from_index, to_index)
        return Change(apply_metadata(tuple(blocks)))

    def split_at(self, document: Document, block_id: str, offset: int) -> Change:
        """Split a block's content at ``offset``; the tail becomes a new block after it."""
        index = self._require(document, block_id)
        block = document[index]
        adapter = self.registry.adapter_for(block.type)
        existing = {b.id for b in document}

        if not adapter.textual:
            new_block = self.create_block(self.settings.default_block_type, existing)
        else:
            length = adapter.get_length(block.content)
            if not 0 <= offset <= length:
                raise OutOfRangeError(offset, length + 1, what="offset")
            head, tail = adapter.split_at(block.content, offset)
            block = replace(block, content=head, metadata=None)
            new_block = Block(
                id=_generate_id(existing),
                type=block.type,
                content=tail,
                indent=block.indent,
            )

        blocks = list(document)
        blocks[index] = block
        blocks.insert(index + 1, new_block)
        logger.debug("Split block %s at %d into %s", block_id, offset, new_block.id)
        return Change(apply_metadata(tuple(blocks)), FocusRequest(new_block.id, 0))

    def merge_with_previous(self, document: Document, block_id: str) -> Change:
        """Append a block's content to its predecessor and remove it."""
        index = self._require(document, block_id)
        if index == 0:
            return Change(document)

        previous = document[index - 1]
        block = document[index]
        prev_adapter = self.registry.adapter_for(previous.type)
        adapter = self.registry.adapter_for(block.type)
        if not (prev_adapter.textual and adapter.textual):
            return Change(document)

        merge_point = prev_adapter.get_length(previous.content)
        merged = replace(previous, content=prev_adapter.concat(previous.content, block.content))
        blocks = list(document)
        blocks[index - 1] = merged
        del blocks[index]
        logger.debug("Merged block %s into %s", block_id, previous.id)
        return Change(apply_metadata(tuple(blocks)), FocusRequest(previous.id, merge_point))

    def set_content(self, document: Document, block_id: str, content: Any) -> Change:
        """Replace a block's payload verbatim."""
        index = self._require(document, block_id)
        blocks = list(document)
        blocks[index] = replace(document[index], content=content)
        return Change(tuple(blocks))

    def set_type(self, document: Document, block_id: str, block_type: str) -> Change:
        """Change a block's type and recompute list metadata."""
        index = self._require(document, block_id)
        block = document[index]
        adapter = self.registry.adapter_for(block_type)
        content = block.content if adapter.accepts(block.content) else adapter.create_empty()
        indent = block.indent if is_list_type(block_type) else 0
        blocks = list(document)
        blocks[index] = replace(block, type=block_type, content=content, indent=indent, metadata=None)
        logger.debug("Changed block %s type %s -> %s", block_id, block.type, block_type)
        return Change(apply_metadata(tuple(blocks)))

    def set_indent(self, document: Document, block_id: str, indent: int) -> Change:
        """Set list nesting. Non-list blocks stay at indent 0."""
        index = self._require(document, block_id)
        block = document[index]
        if not is_list_type(block.type):
            return Change(document)
        indent = max(0, min(indent, self.settings.max_indent))
        blocks = list(document)
        blocks[index] = replace(block, indent=indent)
        return Change(apply_metadata(tuple(blocks)))

    def duplicate(self, document: Document, block_id: str) -> Change:
        """Insert a copy of a block, with a fresh id, right after it."""
        index = self._require(document, block_id)
        block = document[index]
        copy = replace(block, id=_generate_id({b.id for b in document}), metadata=None)
        blocks = list(document)
        blocks.insert(index + 1, copy)
        logger.debug("Duplicated block %s as %s", block_id, copy.id)
        return Change(apply_metadata(tuple(blocks)), FocusRequest(copy.id, 0))
