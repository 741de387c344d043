"""Host-facing editor.

``BlockEditor`` holds the current document value together with the
transient state of one document instance. Every host event goes through one
method, which returns an ``EditResult``. Expected failures are reported in the
result rather than raised, and leave the document untouched.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from blocktext.commands import CommandMenuOpen, CommandRouter, RouteResult
from blocktext.errors import (
    BlockTextError,
    InvalidDocumentError,
    OutOfRangeError,
    ReadOnlyError,
    SessionClosedError,
)
from blocktext.lists import apply_metadata
from blocktext.menu import MenuItem
from blocktext.plugins import PluginRegistry, default_registry
from blocktext.selection import (
    SelectionResolution,
    SelectionSpan,
    SelectionTracker,
    copy_selection,
    cut_selection,
    resolve_selection,
)
from blocktext.serialization import load_document, save_document
from blocktext.session import EditorSession
from blocktext.settings import EditorSettings
from blocktext.store import BlockStore
from blocktext.types import Change, Document, FocusRequest, ListMetadata

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EditResult:
    document: Document
    focus: FocusRequest | None = None
    error: BlockTextError | None = None
    handled: bool = True

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class SelectionResult:
    resolution: SelectionResolution | None = None
    fragment: Document | None = None
    error: BlockTextError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class BlockView:
    id: str
    type: str
    indent: int
    metadata: ListMetadata | None
    content: Any
    focused: bool = False
    hovered: bool = False
    read_only: bool = False


@dataclass(frozen=True)
class MenuView:
    block_id: str
    query: str
    items: tuple[MenuItem, ...]


@dataclass(frozen=True)
class EditorView:
    blocks: tuple[BlockView, ...]
    focused_block_id: str | None = None
    hovered_block_id: str | None = None
    menu: MenuView | None = None
    read_only: bool = False
    selecting: bool = False


class BlockEditor:
    def __init__(
        self,
        document: Document | None = None,
        *,
        registry: PluginRegistry | None = None,
        settings: EditorSettings | None = None,
        session: EditorSession | None = None,
    ) -> None:
        self.settings = settings or EditorSettings()
        self.registry = registry or default_registry()
        self.store = BlockStore(self.registry, self.settings)
        self.session = session or EditorSession()
        self.router = CommandRouter(self.store)
        self.selection = SelectionTracker()

        document = tuple(document or ())
        if not document and not self.settings.read_only:
            document = self.store.empty_document()
        # Stored metadata may be stale or missing.
        self._document: Document = apply_metadata(document)

    @classmethod
    def load(
        cls,
        records: Any,
        *,
        registry: PluginRegistry | None = None,
        settings: EditorSettings | None = None,
        session: EditorSession | None = None,
    ) -> tuple[BlockEditor | None, InvalidDocumentError | None]:
        """Build an editor from stored records, or report why they are invalid."""
        registry = registry or default_registry()
        try:
            document = load_document(records, registry)
        except InvalidDocumentError as e:
            logger.warning("Document load failed: %s", e)
            return None, e
        return cls(document, registry=registry, settings=settings, session=session), None

    @property
    def document(self) -> Document:
        return self._document

    def save(self) -> list[dict[str, Any]]:
        return save_document(self._document, self.registry)

    # --- Plumbing ---

    def _closed(self, what: str) -> SessionClosedError | None:
        """The error to report when the session was torn down, else None."""
        if not self.session.closed:
            return None
        error = SessionClosedError(self.session.instance_id)
        logger.warning("%s rejected: %s", what, error)
        return error

    def _apply(self, operation: Callable[[], Change | RouteResult], what: str) -> EditResult:
        closed = self._closed(what)
        if closed is not None:
            return EditResult(self._document, error=closed, handled=False)
        if self.settings.read_only:
            return EditResult(self._document, error=ReadOnlyError(), handled=False)
        try:
            outcome = operation()
        except BlockTextError as e:
            logger.warning("%s rejected: %s", what, e)
            return EditResult(self._document, error=e, handled=False)

        handled = outcome.handled if isinstance(outcome, RouteResult) else True
        self._document = outcome.document
        self.session.prune(self._document)
        if outcome.focus is not None:
            self.session.request_focus(outcome.focus.block_id, outcome.focus.offset)
        logger.debug("%s applied", what)
        return EditResult(self._document, outcome.focus, handled=handled)

    # --- Block operations ---

    def add_block(self, anchor_id: str, block_type: str | None = None) -> EditResult:
        result = self._apply(lambda: self.store.insert_after(self._document, anchor_id, block_type), "add_block")
        if result.ok:
            self.session.set_hovered(None)
        return result

    def delete_block(self, block_id: str) -> EditResult:
        return self._apply(lambda: self.store.delete(self._document, block_id), "delete_block")

    def move_block(self, from_index: int, to_index: int) -> EditResult:
        return self._apply(lambda: self.store.move(self._document, from_index, to_index), "move_block")

    def split_block(self, block_id: str, offset: int) -> EditResult:
        return self._apply(lambda: self.store.split_at(self._document, block_id, offset), "split_block")

    def merge_block(self, block_id: str) -> EditResult:
        return self._apply(lambda: self.store.merge_with_previous(self._document, block_id), "merge_block")

    def set_content(self, block_id: str, content: Any) -> EditResult:
        return self._apply(lambda: self.store.set_content(self._document, block_id, content), "set_content")

    def set_type(self, block_id: str, block_type: str) -> EditResult:
        return self._apply(lambda: self.store.set_type(self._document, block_id, block_type), "set_type")

    def set_indent(self, block_id: str, indent: int) -> EditResult:
        return self._apply(lambda: self.store.set_indent(self._document, block_id, indent), "set_indent")

    def duplicate_block(self, block_id: str) -> EditResult:
        return self._apply(lambda: self.store.duplicate(self._document, block_id), "duplicate_block")

    # --- Focus and hover ---

    def focus(self, block_id: str) -> None:
        if self._closed("focus") is not None:
            return
        self.session.set_focused(block_id)
        self.router.edit(block_id)

    def blur(self, block_id: str) -> None:
        if self._closed("blur") is not None:
            return
        self.session.blur(block_id)
        self.router.blur(block_id)

    def hover(self, block_id: str) -> None:
        if self._closed("hover") is not None:
            return
        self.session.set_hovered(block_id)

    def leave(self, block_id: str) -> None:
        if self._closed("leave") is not None:
            return
        self.session.leave(block_id)

    # --- Editing signals ---

    def change_content(self, block_id: str, content: Any, cursor: int) -> EditResult:
        return self._apply(
            lambda: self.router.content_changed(self._document, block_id, content, cursor),
            "change_content",
        )

    def press_enter(self, cursor: int, *, shift: bool = False) -> EditResult:
        return self._apply(lambda: self.router.enter(self._document, cursor, shift=shift), "enter")

    def press_up(self, column: int, *, at_first_line: bool = True) -> EditResult:
        return self._apply(
            lambda: self.router.arrow_up(self._document, column, at_first_line=at_first_line),
            "arrow_up",
        )

    def press_down(self, column: int, *, at_last_line: bool = True) -> EditResult:
        return self._apply(
            lambda: self.router.arrow_down(self._document, column, at_last_line=at_last_line),
            "arrow_down",
        )

    def press_backspace_at_start(self) -> EditResult:
        return self._apply(lambda: self.router.backspace_at_start(self._document), "backspace")

    def press_tab(self, *, shift: bool = False) -> EditResult:
        return self._apply(lambda: self.router.tab(self._document, shift=shift), "tab")

    def select_command(self, block_type: str) -> EditResult:
        return self._apply(lambda: self.router.select(self._document, block_type), "select_command")

    def close_menu(self) -> None:
        self.router.close_menu()

    # --- Drag reorder ---

    def begin_drag(self, index: int) -> EditResult:
        closed = self._closed("begin_drag")
        if closed is not None:
            return EditResult(self._document, error=closed, handled=False)
        if self.settings.read_only:
            return EditResult(self._document, error=ReadOnlyError(), handled=False)
        if not 0 <= index < len(self._document):
            return EditResult(self._document, error=OutOfRangeError(index, len(self._document)), handled=False)
        self.session.begin_drag(self._document, index)
        return EditResult(self._document)

    def drag_over(self, hover_index: int) -> EditResult:
        return self._apply(
            lambda: Change(self.session.drag_over(self.store, self._document, hover_index)),
            "drag_over",
        )

    def end_drag(self) -> EditResult:
        closed = self._closed("end_drag")
        if closed is not None:
            return EditResult(self._document, error=closed, handled=False)
        self.session.drop()
        return EditResult(self._document)

    def abort_drag(self) -> EditResult:
        closed = self._closed("abort_drag")
        if closed is not None:
            return EditResult(self._document, error=closed, handled=False)
        snapshot = self.session.abort_drag()
        if snapshot is not None:
            self._document = snapshot
            logger.debug("Drag aborted, document restored")
        return EditResult(self._document)

    # --- Cross-block selection ---

    def pointer_down(self) -> None:
        self.selection.pointer_down()

    def pointer_move(self) -> None:
        self.selection.pointer_move()

    def pointer_up(
        self,
        anchor_block_id: str | None = None,
        anchor_offset: int = 0,
        selected_text: str = "",
    ) -> SelectionResult | None:
        """Finish a pointer gesture; resolves the selection when one was made."""
        span = self.selection.pointer_up(anchor_block_id, anchor_offset, selected_text)
        if span is None:
            return None
        return self.resolve(span)

    def abort_selection(self) -> None:
        self.selection.abort()

    def resolve(self, span: SelectionSpan) -> SelectionResult:
        try:
            resolution = resolve_selection(self._document, span, self.registry)
        except BlockTextError as e:
            logger.warning("Selection could not be resolved: %s", e)
            return SelectionResult(error=e)
        return SelectionResult(resolution=resolution)

    def copy_selection(self, resolution: SelectionResolution) -> SelectionResult:
        try:
            fragment = copy_selection(self._document, resolution, self.registry)
        except BlockTextError as e:
            logger.warning("Copy rejected: %s", e)
            return SelectionResult(resolution=resolution, error=e)
        return SelectionResult(resolution=resolution, fragment=fragment)

    def cut_selection(self, resolution: SelectionResolution) -> EditResult:
        result = self._apply(lambda: cut_selection(self._document, resolution, self.store), "cut_selection")
        if result.ok:
            self.selection.reset()
        return result

    # --- Rendering ---

    def render(self) -> EditorView:
        focused = self.session.focused_block_id
        hovered = self.session.hovered_block_id
        dragging = self.session.is_dragging
        locked = self.settings.read_only or self.selection.is_selecting
        blocks = tuple(
            BlockView(
                id=block.id,
                type=block.type,
                indent=block.indent,
                metadata=block.metadata,
                content=block.content,
                focused=not dragging and block.id == focused,
                hovered=not dragging and block.id == hovered,
                read_only=locked,
            )
            for block in self._document
        )

        menu = None
        state = self.router.state
        if isinstance(state, CommandMenuOpen):
            items = self.router.menu_items()[: self.settings.menu_max_visible]
            menu = MenuView(state.block_id, state.query, tuple(items))

        return EditorView(
            blocks=blocks,
            focused_block_id=focused,
            hovered_block_id=hovered,
            menu=menu,
            read_only=self.settings.read_only,
            selecting=self.selection.is_selecting,
        )

    # --- Teardown ---

    def close(self) -> None:
        """Release all transient state held for this document instance."""
        self.router.reset()
        self.selection.reset()
        self.session.close()
