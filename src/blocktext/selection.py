"""Cross-block text selection.

The host reports a selection as one flat string plus the block it started in.
Block and line boundaries in the host surface do not line up with plain-text
offsets, so the string is matched back onto block content greedily instead of
trusting structural offsets.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Literal

from blocktext.content import SEGMENT_SEPARATOR, delete_range, segment_offsets
from blocktext.errors import NotFoundError, UnresolvableError
from blocktext.lists import apply_metadata
from blocktext.types import Block, Change, Document, FocusRequest, index_of

if TYPE_CHECKING:
    from blocktext.plugins import PluginRegistry
    from blocktext.store import BlockStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SelectionSpan:
    """One finalized selection as reported by the host."""

    anchor_block_id: str
    anchor_offset: int
    selected_text: str


@dataclass(frozen=True)
class ResolvedRange:
    """The part of one block covered by a selection.

    ``start``/``end`` are flat offsets in the block text. ``text`` is the
    matching slice of the selected text, without line separators.
    ``whole_block`` marks a non-textual or empty block crossed by the span.
    """

    block_id: str
    start: int
    end: int
    text: str
    whole_block: bool = False


@dataclass(frozen=True)
class SelectionResolution:
    span: SelectionSpan
    ranges: tuple[ResolvedRange, ...]

    @property
    def block_ids(self) -> list[str]:
        return [r.block_id for r in self.ranges]

    @property
    def text(self) -> str:
        return "".join(r.text for r in self.ranges)


# --- Resolution ---


def _locate_segment(segments: list[tuple[int, str]], offset: int) -> tuple[int, int]:
    """Index of the segment holding a flat offset, and the offset inside it."""
    seg_index = 0
    for i, (start, _) in enumerate(segments):
        if start <= offset:
            seg_index = i
    start, text = segments[seg_index]
    return seg_index, max(0, min(offset - start, len(text)))


def _longest_suffix_prefix(segment: str, remaining: str, lo: int) -> int:
    """Smallest ``i >= lo`` such that ``segment[i:]`` is a prefix of ``remaining``."""
    for i in range(lo, len(segment)):
        if remaining.startswith(segment[i:]):
            return i
    return len(segment)


def resolve_selection(
    document: Document,
    span: SelectionSpan,
    registry: PluginRegistry,
) -> SelectionResolution:
    """Partition ``span.selected_text`` into per-block ranges.

    Raises ``NotFoundError`` for an unknown anchor block and
    ``UnresolvableError`` when the text cannot be reassembled from the
    document, which means the host and the engine disagree on content.
    """
    if not span.selected_text:
        return SelectionResolution(span, ())

    start_index = index_of(document, span.anchor_block_id)
    if start_index < 0:
        raise NotFoundError(span.anchor_block_id)

    remaining = span.selected_text
    ranges: list[ResolvedRange] = []
    # Blocks crossed without contributing text; emitted only if text follows them.
    crossed: list[ResolvedRange] = []
    started = False

    for block_index in range(start_index, len(document)):
        block = document[block_index]
        adapter = registry.adapter_for(block.type)
        is_anchor = block_index == start_index

        segments = segment_offsets(adapter, block.content) if adapter.textual else []
        if not segments:
            if not is_anchor:
                crossed.append(ResolvedRange(block.id, 0, 0, "", whole_block=True))
            continue

        seg_index, local = _locate_segment(segments, span.anchor_offset) if is_anchor else (0, 0)
        pieces: list[str] = []
        block_start = -1
        block_end = 0

        for position, (seg_start, seg_text) in enumerate(segments[seg_index:]):
            anchor_segment = is_anchor and position == 0
            if started and not anchor_segment and remaining.startswith(SEGMENT_SEPARATOR):
                remaining = remaining[len(SEGMENT_SEPARATOR):]
                if not remaining:
                    break

            lo = local if anchor_segment else 0
            match_start: int | None = None
            match_length = 0

            if len(seg_text) - lo >= len(remaining):
                # Long enough to hold everything left: this is the last segment.
                if anchor_segment:
                    found = seg_text.find(remaining, lo)
                else:
                    found = 0 if seg_text.startswith(remaining) else -1
                if found >= 0:
                    match_start, match_length = found, len(remaining)

            if match_start is None:
                # Otherwise the segment's tail must be a prefix of what is left.
                if anchor_segment:
                    i = _longest_suffix_prefix(seg_text, remaining, lo)
                elif remaining.startswith(seg_text):
                    i = 0
                else:
                    raise UnresolvableError(
                        f"Selection does not continue into block {block.id}",
                        remaining=remaining,
                    )
                match_start, match_length = i, len(seg_text) - i

            if match_length:
                if block_start < 0:
                    block_start = seg_start + match_start
                block_end = seg_start + match_start + match_length
                pieces.append(remaining[:match_length])
                remaining = remaining[match_length:]
                started = True

            if not remaining:
                break

        if pieces:
            ranges.extend(crossed)
            crossed.clear()
            ranges.append(ResolvedRange(block.id, block_start, block_end, "".join(pieces)))
        elif started:
            crossed.append(ResolvedRange(block.id, 0, 0, "", whole_block=True))

        if not remaining:
            break

    if remaining:
        raise UnresolvableError(
            f"{len(remaining)} selected characters could not be matched",
            remaining=remaining,
        )

    logger.debug("Resolved selection over %d blocks", len(ranges))
    return SelectionResolution(span, tuple(ranges))


# --- Consumers ---


def _resolved_indexes(document: Document, resolution: SelectionResolution) -> list[int]:
    indexes = [index_of(document, block_id) for block_id in resolution.block_ids]
    if any(i < 0 for i in indexes) or indexes != sorted(indexes):
        raise UnresolvableError("Selection refers to blocks that are no longer in the document")
    return indexes


def copy_selection(document: Document, resolution: SelectionResolution, registry: PluginRegistry) -> Document:
    """Document fragment holding only the selected content of each block."""
    fragment: list[Block] = []
    for index, selected in zip(_resolved_indexes(document, resolution), resolution.ranges):
        block = document[index]
        if selected.whole_block:
            fragment.append(replace(block, metadata=None))
            continue
        adapter = registry.adapter_for(block.type)
        content = adapter.substring(block.content, selected.start, selected.end)
        fragment.append(replace(block, content=content, metadata=None))
    return apply_metadata(tuple(fragment))


def cut_selection(document: Document, resolution: SelectionResolution, store: BlockStore) -> Change:
    """Delete the selected text; the last block's remainder joins the first block."""
    if not resolution.ranges:
        return Change(document)

    indexes = _resolved_indexes(document, resolution)
    registry = store.registry
    blocks = list(document)
    removed: set[int] = set()

    for index, selected in zip(indexes, resolution.ranges):
        block = blocks[index]
        if selected.whole_block:
            removed.add(index)
            continue
        adapter = registry.adapter_for(block.type)
        if selected.end > adapter.get_length(block.content):
            raise UnresolvableError(f"Block {block.id} changed since the selection was resolved")
        blocks[index] = replace(block, content=delete_range(adapter, block.content, selected.start, selected.end))

    first_index, last_index = indexes[0], indexes[-1]
    removed.update(indexes[1:-1])
    first, last = resolution.ranges[0], resolution.ranges[-1]
    focus: FocusRequest | None = None

    if len(indexes) > 1 and not first.whole_block and not last.whole_block:
        head, tail = blocks[first_index], blocks[last_index]
        adapter = registry.adapter_for(head.type)
        if registry.adapter_for(tail.type).textual:
            blocks[first_index] = replace(head, content=adapter.concat(head.content, tail.content))
            removed.add(last_index)
    if not first.whole_block:
        focus = FocusRequest(blocks[first_index].id, first.start)

    result = tuple(b for i, b in enumerate(blocks) if i not in removed)
    if not result:
        result = store.empty_document()
        focus = FocusRequest(result[0].id, 0)
    elif focus is None:
        target = result[min(first_index, len(result) - 1)]
        focus = FocusRequest(target.id, 0)

    logger.debug("Cut selection spanning %d blocks", len(indexes))
    return Change(apply_metadata(result), focus)


# --- Pointer-driven selection state ---

SelectionPhase = Literal["not_selecting", "selecting", "finalized"]


class SelectionTracker:
    """Tracks pointer events until a cross-block selection is finalized.

    ``not_selecting -> selecting`` when the pointer moves while pressed,
    ``selecting -> finalized`` on release with a non-empty host selection.
    """

    def __init__(self) -> None:
        self._phase: SelectionPhase = "not_selecting"
        self._pointer_down = False
        self._span: SelectionSpan | None = None

    @property
    def phase(self) -> SelectionPhase:
        return self._phase

    @property
    def span(self) -> SelectionSpan | None:
        return self._span

    @property
    def is_selecting(self) -> bool:
        return self._phase == "selecting"

    def pointer_down(self) -> None:
        if self._phase == "finalized":
            self.reset()
        self._pointer_down = True

    def pointer_move(self) -> None:
        if self._pointer_down and self._phase == "not_selecting":
            self._phase = "selecting"

    def pointer_up(
        self,
        anchor_block_id: str | None = None,
        anchor_offset: int = 0,
        selected_text: str = "",
    ) -> SelectionSpan | None:
        """Finish a gesture. Returns the span when a selection was finalized."""
        self._pointer_down = False
        if self._phase != "selecting" or not anchor_block_id or not selected_text:
            self._phase = "not_selecting"
            return None
        self._span = SelectionSpan(anchor_block_id, anchor_offset, selected_text)
        self._phase = "finalized"
        return self._span

    def abort(self) -> None:
        """Host abandoned the gesture."""
        self.reset()

    def reset(self) -> None:
        self._phase = "not_selecting"
        self._pointer_down = False
        self._span = None
