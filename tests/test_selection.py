"""Tests for cross-block selection resolution, copy and cut."""

from __future__ import annotations

from dataclasses import fields

import pytest

from blocktext.errors import NotFoundError, UnresolvableError
from blocktext.selection import (
    ResolvedRange,
    SelectionSpan,
    SelectionTracker,
    copy_selection,
    cut_selection,
    resolve_selection,
)


def _ranges(resolution) -> list[tuple]:
    return [(r.block_id, r.start, r.end, r.text) for r in resolution.ranges]


class TestResolveSelection:
    def test_spans_two_blocks(self, registry, make_block) -> None:
        doc = (make_block("b0", "Hello "), make_block("b1", "World"))
        resolution = resolve_selection(doc, SelectionSpan("b0", 3, "lo Wor"), registry)
        assert _ranges(resolution) == [("b0", 3, 6, "lo "), ("b1", 0, 3, "Wor")]
        assert resolution.text == "lo Wor"

    def test_within_one_block(self, registry, make_block) -> None:
        doc = (make_block("a", "Hello World"), make_block("b", "World"))
        resolution = resolve_selection(doc, SelectionSpan("a", 6, "World"), registry)
        assert _ranges(resolution) == [("a", 6, 11, "World")]

    def test_spans_three_blocks(self, registry, make_block) -> None:
        doc = (make_block("a", "abc"), make_block("d", "def"), make_block("g", "ghi"))
        resolution = resolve_selection(doc, SelectionSpan("a", 1, "bcdefg"), registry)
        assert _ranges(resolution) == [("a", 1, 3, "bc"), ("d", 0, 3, "def"), ("g", 0, 1, "g")]

    def test_no_empty_trailing_range(self, registry, make_block) -> None:
        doc = (make_block("a", "abc"), make_block("d", "def"), make_block("g", "ghi"))
        resolution = resolve_selection(doc, SelectionSpan("a", 1, "bcdef"), registry)
        assert resolution.block_ids == ["a", "d"]

    def test_newline_between_blocks(self, registry, make_block) -> None:
        doc = (make_block("a", "abc"), make_block("d", "def"))
        resolution = resolve_selection(doc, SelectionSpan("a", 1, "bc\nde"), registry)
        assert _ranges(resolution) == [("a", 1, 3, "bc"), ("d", 0, 2, "de")]

    def test_multi_line_block(self, registry, make_block) -> None:
        doc = (make_block("a", "ab\ncd"),)
        resolution = resolve_selection(doc, SelectionSpan("a", 1, "b\ncd"), registry)
        assert _ranges(resolution) == [("a", 1, 5, "bcd")]

    def test_crossed_image_is_whole_block(self, registry, make_block) -> None:
        doc = (make_block("t1", "abc"), make_block("img", block_type="image"), make_block("t2", "def"))
        resolution = resolve_selection(doc, SelectionSpan("t1", 1, "bcde"), registry)
        assert resolution.ranges[1] == ResolvedRange("img", 0, 0, "", whole_block=True)
        assert resolution.block_ids == ["t1", "img", "t2"]

    def test_trailing_image_not_included(self, registry, make_block) -> None:
        doc = (make_block("t1", "abc"), make_block("img", block_type="image"))
        resolution = resolve_selection(doc, SelectionSpan("t1", 1, "bc"), registry)
        assert resolution.block_ids == ["t1"]

    def test_mismatched_text(self, registry, make_block) -> None:
        doc = (make_block("b0", "Hello "), make_block("b1", "World"))
        with pytest.raises(UnresolvableError):
            resolve_selection(doc, SelectionSpan("b0", 3, "lo Xor"), registry)

    def test_text_past_document_end(self, registry, make_block) -> None:
        with pytest.raises(UnresolvableError) as exc_info:
            resolve_selection((make_block("a", "abc"),), SelectionSpan("a", 1, "bcdef"), registry)
        assert exc_info.value.remaining == "def"

    def test_unknown_anchor(self, registry, make_block) -> None:
        with pytest.raises(NotFoundError):
            resolve_selection((make_block("a", "abc"),), SelectionSpan("zz", 0, "a"), registry)

    def test_empty_text(self, registry, make_block) -> None:
        resolution = resolve_selection((make_block("a", "abc"),), SelectionSpan("a", 0, ""), registry)
        assert resolution.ranges == ()


class TestCopySelection:
    def test_fragment_holds_selected_text(self, registry, make_block) -> None:
        doc = (make_block("b0", "Hello "), make_block("b1", "World"))
        resolution = resolve_selection(doc, SelectionSpan("b0", 3, "lo Wor"), registry)
        fragment = copy_selection(doc, resolution, registry)
        assert [(b.id, b.content.text) for b in fragment] == [("b0", "lo "), ("b1", "Wor")]
        assert [b.content.text for b in doc] == ["Hello ", "World"]


class TestCutSelection:
    def test_joins_remainders(self, store, registry, make_block) -> None:
        doc = (make_block("b0", "Hello "), make_block("b1", "World"))
        resolution = resolve_selection(doc, SelectionSpan("b0", 3, "lo Wor"), registry)
        change = cut_selection(doc, resolution, store)
        assert [(b.id, b.content.text) for b in change.document] == [("b0", "Helld")]
        assert (change.focus.block_id, change.focus.offset) == ("b0", 3)

    def test_removes_middle_blocks(self, store, registry, make_block) -> None:
        doc = (make_block("a", "abc"), make_block("d", "def"), make_block("g", "ghi"), make_block("z", "end"))
        resolution = resolve_selection(doc, SelectionSpan("a", 1, "bcdefg"), registry)
        change = cut_selection(doc, resolution, store)
        assert [(b.id, b.content.text) for b in change.document] == [("a", "ahi"), ("z", "end")]

    def test_removes_crossed_image(self, store, registry, make_block) -> None:
        doc = (make_block("t1", "abc"), make_block("img", block_type="image"), make_block("t2", "def"))
        resolution = resolve_selection(doc, SelectionSpan("t1", 1, "bcde"), registry)
        change = cut_selection(doc, resolution, store)
        assert [(b.id, b.content.text) for b in change.document] == [("t1", "af")]

    def test_within_one_block(self, store, registry, make_block) -> None:
        doc = (make_block("a", "Hello World"),)
        resolution = resolve_selection(doc, SelectionSpan("a", 5, " World"), registry)
        change = cut_selection(doc, resolution, store)
        assert change.document[0].content.text == "Hello"
        assert change.focus.offset == 5

    def test_stale_resolution(self, store, registry, make_block) -> None:
        doc = (make_block("b0", "Hello "), make_block("b1", "World"))
        resolution = resolve_selection(doc, SelectionSpan("b0", 3, "lo Wor"), registry)
        changed = store.delete(doc, "b1").document
        with pytest.raises(UnresolvableError):
            cut_selection(changed, resolution, store)


class TestSelectionTracker:
    def test_span_holds_only_what_the_host_reports(self) -> None:
        assert [f.name for f in fields(SelectionSpan)] == ["anchor_block_id", "anchor_offset", "selected_text"]

    def test_drag_then_release_finalizes(self) -> None:
        tracker = SelectionTracker()
        tracker.pointer_down()
        tracker.pointer_move()
        assert tracker.phase == "selecting"
        assert tracker.is_selecting
        span = tracker.pointer_up("b0", 3, "lo Wor")
        assert span == SelectionSpan("b0", 3, "lo Wor")
        assert tracker.phase == "finalized"
        assert tracker.span == span

    def test_click_without_move(self) -> None:
        tracker = SelectionTracker()
        tracker.pointer_down()
        assert tracker.pointer_up("b0", 0, "x") is None
        assert tracker.phase == "not_selecting"

    def test_move_without_press(self) -> None:
        tracker = SelectionTracker()
        tracker.pointer_move()
        assert tracker.phase == "not_selecting"

    def test_empty_host_selection(self) -> None:
        tracker = SelectionTracker()
        tracker.pointer_down()
        tracker.pointer_move()
        assert tracker.pointer_up("b0", 0, "") is None
        assert tracker.phase == "not_selecting"

    def test_abort(self) -> None:
        tracker = SelectionTracker()
        tracker.pointer_down()
        tracker.pointer_move()
        tracker.abort()
        assert tracker.phase == "not_selecting"
        assert tracker.span is None

    def test_new_press_clears_finalized(self) -> None:
        tracker = SelectionTracker()
        tracker.pointer_down()
        tracker.pointer_move()
        tracker.pointer_up("b0", 0, "x")
        tracker.pointer_down()
        assert tracker.phase == "not_selecting"
        assert tracker.span is None
