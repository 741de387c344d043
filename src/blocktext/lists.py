"""List numbering and depth derivation.

A list run is a maximal stretch of same-type list blocks. Numbering restarts
whenever the type changes or a non-list block interrupts the run. Depth follows
indentation relative to the nearest same-type predecessor.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Sequence

from blocktext.types import BULLETED_LIST, NUMBERED_LIST, Block, Document, ListMetadata, is_list_type


def find_previous_list_item(blocks: Sequence[Block], index: int) -> Block | None:
    """Nearest same-type predecessor at the same or a shallower indent.

    Scanning stops at the first block of a different type. Deeper same-type
    blocks are nested items of an earlier sibling and are skipped.
    """
    item = blocks[index]
    for i in range(index - 1, -1, -1):
        candidate = blocks[i]
        if candidate.type != item.type:
            return None
        if candidate.indent <= item.indent:
            return candidate
    return None


def _nesting_parent(blocks: Sequence[Block], index: int) -> Block | None:
    """Immediately previous list block when ``blocks[index]`` nests under it."""
    if index == 0:
        return None
    previous = blocks[index - 1]
    if not is_list_type(previous.type) or previous.metadata is None:
        return None
    if previous.indent >= blocks[index].indent:
        return None
    return previous


def _list_metadata(blocks: Sequence[Block], index: int) -> Block:
    item = blocks[index]
    numbered = item.type == NUMBERED_LIST
    predecessor = find_previous_list_item(blocks, index)

    # A predecessor without metadata counts as no predecessor.
    if predecessor is not None and predecessor.metadata is not None:
        meta = predecessor.metadata
        if predecessor.indent < item.indent:
            return replace(item, metadata=ListMetadata(index=0, depth=meta.depth + 1))
        return replace(
            item,
            metadata=ListMetadata(index=meta.index + 1 if numbered else 0, depth=meta.depth),
        )

    # Only numbered items nest under a different list type.
    parent = _nesting_parent(blocks, index) if numbered else None
    if parent is not None:
        return replace(item, metadata=ListMetadata(index=0, depth=parent.metadata.depth + 1))

    return replace(item, indent=0, metadata=ListMetadata(index=0, depth=0))


def apply_metadata(document: Document) -> Document:
    """Recompute list metadata for every block, in one left-to-right pass.

    Each block reads the already-recomputed values of the blocks before it,
    so running the pass twice gives the same result.
    """
    blocks = list(document)
    changed = False
    for i, block in enumerate(blocks):
        if block.type in (NUMBERED_LIST, BULLETED_LIST):
            updated = _list_metadata(blocks, i)
        elif block.metadata is not None:
            updated = replace(block, metadata=None)
        else:
            continue
        if updated != block:
            blocks[i] = updated
            changed = True
    return tuple(blocks) if changed else tuple(document)
