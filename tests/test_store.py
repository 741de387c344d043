"""Tests for BlockStore mutation operations."""

from __future__ import annotations

import pytest

from blocktext.content import RichText
from blocktext.errors import NotFoundError, OutOfRangeError
from blocktext.settings import EditorSettings
from blocktext.store import BlockStore
from blocktext.types import ListMetadata

N = "numbered-list"


def _texts(document) -> list[str]:
    return [b.content.text for b in document]


class TestInsertAfter:
    def test_inserts_empty_block_and_focuses_it(self, store, make_block) -> None:
        doc = (make_block("a", "one"), make_block("b", "two"))
        change = store.insert_after(doc, "a")
        assert len(change.document) == 3
        new = change.document[1]
        assert new.id not in {"a", "b"}
        assert new.type == "text"
        assert new.content == RichText()
        assert change.focus.block_id == new.id
        assert change.focus.offset == 0

    def test_explicit_type(self, store, make_block) -> None:
        doc = (make_block("a", block_type=N),)
        change = store.insert_after(doc, "a", N)
        assert change.document[1].type == N
        assert change.document[1].metadata == ListMetadata(1, 0)

    def test_unknown_anchor(self, store, make_block) -> None:
        with pytest.raises(NotFoundError):
            store.insert_after((make_block("a"),), "missing")

    def test_ids_stay_unique(self, store, make_block) -> None:
        doc = (make_block("a"),)
        for _ in range(20):
            doc = store.insert_after(doc, doc[0].id).document
        assert len({b.id for b in doc}) == 21


class TestDelete:
    def test_focuses_predecessor_at_end(self, store, make_block) -> None:
        doc = (make_block("a", "Hello"), make_block("b"), make_block("c"))
        change = store.delete(doc, "b")
        assert [b.id for b in change.document] == ["a", "c"]
        assert change.focus.block_id == "a"
        assert change.focus.offset == 5

    def test_deleting_first_focuses_new_first(self, store, make_block) -> None:
        doc = (make_block("a"), make_block("b", "x"))
        change = store.delete(doc, "a")
        assert change.focus.block_id == "b"
        assert change.focus.offset == 0

    def test_document_never_becomes_empty(self, store, make_block) -> None:
        doc = (make_block("a", "x"), make_block("b", "y", N), make_block("c", "z"))
        seen = {"a", "b", "c"}
        for _ in range(5):
            doc = store.delete(doc, doc[0].id).document
            assert len(doc) >= 1
        assert len(doc) == 1
        assert doc[0].type == "text"
        assert doc[0].content == RichText()
        assert doc[0].id not in seen

    def test_unknown_block(self, store, make_block) -> None:
        with pytest.raises(NotFoundError):
            store.delete((make_block("a"),), "zzz")

    def test_renumbers_following_items(self, store, make_block) -> None:
        doc = store.set_type(tuple(make_block(i, block_type=N) for i in "abc"), "a", N).document
        change = store.delete(doc, "a")
        assert [b.metadata.index for b in change.document] == [0, 1]


class TestMove:
    def test_same_index_is_identity(self, store, make_block) -> None:
        doc = (make_block("a"), make_block("b"), make_block("c"))
        for i in range(len(doc)):
            assert store.move(doc, i, i).document is doc

    @pytest.mark.parametrize("from_index,to_index", [(-1, 0), (0, 3), (3, 0), (0, -1)])
    def test_out_of_range(self, store, make_block, from_index: int, to_index: int) -> None:
        doc = (make_block("a"), make_block("b"), make_block("c"))
        with pytest.raises(OutOfRangeError):
            store.move(doc, from_index, to_index)

    def test_reorder_recomputes_numbering(self, store, make_block) -> None:
        doc = store.set_type(tuple(make_block(i, block_type=N) for i in "abc"), "a", N).document
        moved = store.move(doc, 0, 2).document
        assert [b.id for b in moved] == ["b", "c", "a"]
        assert [b.metadata.index for b in moved] == [0, 1, 2]


class TestSplitAndMerge:
    def test_split(self, store, make_block) -> None:
        doc = (make_block("a", "Hello World"),)
        change = store.split_at(doc, "a", 5)
        assert _texts(change.document) == ["Hello", " World"]
        assert change.document[1].type == "text"
        assert change.focus.block_id == change.document[1].id
        assert change.focus.offset == 0

    @pytest.mark.parametrize("offset", [-1, 12])
    def test_split_out_of_range(self, store, make_block, offset: int) -> None:
        with pytest.raises(OutOfRangeError):
            store.split_at((make_block("a", "Hello World"),), "a", offset)

    @pytest.mark.parametrize("text,offset", [("Hello World", 5), ("ab\ncd", 3), ("abc", 0), ("abc", 3)])
    def test_split_then_merge_restores_content(self, store, make_block, text: str, offset: int) -> None:
        doc = (make_block("a", text),)
        split = store.split_at(doc, "a", offset)
        merged = store.merge_with_previous(split.document, split.focus.block_id)
        assert len(merged.document) == 1
        assert merged.document[0].content == RichText.from_text(text)
        assert merged.focus.offset == offset

    def test_split_list_item_continues_numbering(self, store, make_block) -> None:
        doc = store.set_type((make_block("a", "onetwo"),), "a", N).document
        change = store.split_at(doc, "a", 3)
        assert [b.type for b in change.document] == [N, N]
        assert [b.metadata.index for b in change.document] == [0, 1]

    def test_split_image_inserts_text_block(self, store, make_block) -> None:
        image = make_block("img", block_type="image")
        doc = (image,)
        change = store.split_at(doc, "img", 0)
        assert change.document[0] == image
        assert change.document[1].type == "text"

    def test_merge_first_block_is_noop(self, store, make_block) -> None:
        doc = (make_block("a", "x"), make_block("b", "y"))
        change = store.merge_with_previous(doc, "a")
        assert change.document is doc
        assert change.focus is None

    def test_merge_focuses_merge_point(self, store, make_block) -> None:
        doc = (make_block("a", "Hello"), make_block("b", "World"))
        change = store.merge_with_previous(doc, "b")
        assert _texts(change.document) == ["HelloWorld"]
        assert change.focus.block_id == "a"
        assert change.focus.offset == 5

    def test_merge_into_image_is_noop(self, store, make_block) -> None:
        doc = (make_block("img", block_type="image"), make_block("b", "x"))
        assert store.merge_with_previous(doc, "b").document is doc


class TestSetters:
    def test_set_content(self, store, make_block) -> None:
        doc = (make_block("a", "old"),)
        change = store.set_content(doc, "a", RichText.from_text("new"))
        assert change.document[0].content.text == "new"

    def test_set_type_to_list(self, store, make_block) -> None:
        change = store.set_type((make_block("a", "x"),), "a", N)
        assert change.document[0].metadata == ListMetadata(0, 0)
        assert change.document[0].content.text == "x"

    def test_set_type_from_list_clears_metadata_and_indent(self, store, make_block) -> None:
        doc = (make_block("a", block_type=N), make_block("b", block_type=N, indent=1))
        doc = store.set_indent(doc, "b", 1).document
        change = store.set_type(doc, "b", "quote")
        assert change.document[1].metadata is None
        assert change.document[1].indent == 0

    def test_set_type_replaces_incompatible_content(self, store, make_block) -> None:
        change = store.set_type((make_block("a", "x"),), "a", "image")
        assert change.document[0].content is None

    def test_set_indent(self, store, make_block) -> None:
        doc = (make_block("a", block_type=N), make_block("b", block_type=N))
        change = store.set_indent(doc, "b", 1)
        assert change.document[1].indent == 1
        assert change.document[1].metadata == ListMetadata(0, 1)

    def test_set_indent_on_first_item_is_normalised(self, store, make_block) -> None:
        doc = (make_block("a", block_type=N),)
        assert store.set_indent(doc, "a", 2).document[0].indent == 0

    def test_set_indent_ignores_non_list(self, store, make_block) -> None:
        doc = (make_block("a"),)
        assert store.set_indent(doc, "a", 1).document is doc

    def test_set_indent_clamped(self, make_block) -> None:
        store = BlockStore(settings=EditorSettings(max_indent=1))
        doc = (make_block("a", block_type=N), make_block("b", block_type=N))
        assert store.set_indent(doc, "b", 5).document[1].indent == 1


class TestDuplicate:
    def test_copy_inserted_after(self, store, make_block) -> None:
        doc = (make_block("a", "Hello", N), make_block("b"))
        change = store.duplicate(doc, "a")
        copy = change.document[1]
        assert copy.id != "a"
        assert copy.content == doc[0].content
        assert copy.type == N
        assert copy.metadata == ListMetadata(1, 0)
        assert change.focus.block_id == copy.id
