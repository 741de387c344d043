"""In-block command routing.

Translates editing signals reported by the host (content changes, Enter,
arrows at the block edge, Backspace at the start, menu selection) into
BlockStore operations and focus transfers.

States::

    Idle --edit--> Editing(b) --"/" typed--> CommandMenuOpen(b, query)
    CommandMenuOpen --select(type) / close / token broken--> Editing(b)
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Union

from blocktext.content import segment_offsets
from blocktext.menu import MenuItem, filter_menu_items, menu_items
from blocktext.store import BlockStore
from blocktext.types import Change, Document, FocusRequest, index_of, is_list_type

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s")


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Editing:
    block_id: str


@dataclass(frozen=True)
class CommandMenuOpen:
    block_id: str
    query: str = ""
    # Flat offset of the trigger character that opened the menu.
    trigger_offset: int = 0


RouterState = Union[Idle, Editing, CommandMenuOpen]


@dataclass(frozen=True)
class RouteResult:
    """Outcome of one routed signal.

    ``handled`` False means the host should apply its default behaviour
    (move the caret inside the block, insert a soft line break, ...).
    """

    document: Document
    focus: FocusRequest | None = None
    handled: bool = True


def last_token(text: str) -> str:
    """Last whitespace-delimited token of ``text`` ("" if it ends in whitespace)."""
    return _WHITESPACE_RE.split(text)[-1]


class CommandRouter:
    def __init__(self, store: BlockStore) -> None:
        self.store = store
        self._state: RouterState = Idle()
        self._cursor = 0

    @property
    def state(self) -> RouterState:
        return self._state

    @property
    def active_block_id(self) -> str | None:
        return None if isinstance(self._state, Idle) else self._state.block_id

    @property
    def menu_open(self) -> bool:
        return isinstance(self._state, CommandMenuOpen)

    def reset(self) -> None:
        self._state = Idle()
        self._cursor = 0

    # --- Focus ---

    def edit(self, block_id: str) -> None:
        if self.active_block_id != block_id:
            self._state = Editing(block_id)

    def blur(self, block_id: str) -> None:
        if self.active_block_id == block_id:
            self._state = Idle()

    # --- Content and the command menu ---

    def content_changed(self, document: Document, block_id: str, content: Any, cursor: int) -> RouteResult:
        """Store new content and open, update or dismiss the command menu."""
        change = self.store.set_content(document, block_id, content)
        self.edit(block_id)
        self._cursor = cursor

        block = self.store.get(change.document, block_id)
        before = self.store.text_of(block)[:cursor]
        token = last_token(before)
        trigger = self.store.settings.trigger_character

        if isinstance(self._state, Editing):
            if token == trigger:
                self._state = CommandMenuOpen(block_id, "", cursor - 1)
                logger.debug("Command menu opened on block %s", block_id)
        elif isinstance(self._state, CommandMenuOpen):
            position = token.rfind(trigger)
            if position < 0:
                self._state = Editing(block_id)
                logger.debug("Command menu dismissed on block %s", block_id)
            else:
                self._state = CommandMenuOpen(
                    block_id,
                    token[position + 1 :],
                    cursor - len(token) + position,
                )
        return RouteResult(change.document)

    def close_menu(self) -> None:
        if isinstance(self._state, CommandMenuOpen):
            self._state = Editing(self._state.block_id)

    def menu_items(self) -> list[MenuItem]:
        """Block types matching the current query, best first."""
        if not isinstance(self._state, CommandMenuOpen):
            return []
        return filter_menu_items(menu_items(self.store.registry), self._state.query)

    def select(self, document: Document, block_type: str) -> RouteResult:
        """Apply a menu choice: drop the typed command and change the block type."""
        state = self._state
        if not isinstance(state, CommandMenuOpen):
            return RouteResult(document, handled=False)

        block = self.store.get(document, state.block_id)
        adapter = self.store.registry.adapter_for(block.type)
        text = adapter.get_text(block.content)
        trigger = self.store.settings.trigger_character
        cursor = min(self._cursor, len(text))
        start = state.trigger_offset
        if not (0 <= start < cursor and text[start] == trigger):
            start = text.rfind(trigger, 0, cursor)

        change = Change(document)
        if start >= 0:
            head, rest = adapter.split_at(block.content, start)
            _, tail = adapter.split_at(rest, cursor - start)
            change = self.store.set_content(document, block.id, adapter.concat(head, tail))
            cursor = start
        if block.type != block_type:
            change = self.store.set_type(change.document, block.id, block_type)

        self._state = Editing(block.id)
        self._cursor = cursor
        logger.debug("Block %s set to %s from command menu", block.id, block_type)
        return RouteResult(change.document, FocusRequest(block.id, cursor))

    # --- Keys ---

    def enter(self, document: Document, cursor: int, *, shift: bool = False) -> RouteResult:
        """Split the block at the cursor. Swallowed while the menu is open."""
        if isinstance(self._state, CommandMenuOpen):
            return RouteResult(document)
        if not isinstance(self._state, Editing) or shift:
            return RouteResult(document, handled=False)
        change = self.store.split_at(document, self._state.block_id, cursor)
        if change.focus is not None:
            self._state = Editing(change.focus.block_id)
            self._cursor = 0
        return RouteResult(change.document, change.focus)

    def arrow_up(self, document: Document, column: int, *, at_first_line: bool = True) -> RouteResult:
        return self._arrow(document, column, -1, at_first_line)

    def arrow_down(self, document: Document, column: int, *, at_last_line: bool = True) -> RouteResult:
        return self._arrow(document, column, 1, at_last_line)

    def _arrow(self, document: Document, column: int, direction: int, at_edge: bool) -> RouteResult:
        if isinstance(self._state, CommandMenuOpen):
            return RouteResult(document)
        if not isinstance(self._state, Editing) or not at_edge:
            return RouteResult(document, handled=False)

        index = index_of(document, self._state.block_id)
        target_index = index + direction
        if index < 0 or not 0 <= target_index < len(document):
            return RouteResult(document, handled=False)

        target = document[target_index]
        adapter = self.store.registry.adapter_for(target.type)
        segments = segment_offsets(adapter, target.content)
        offset = 0
        if segments:
            # Entering from below lands on the last line, from above on the first.
            seg_start, seg_text = segments[-1] if direction < 0 else segments[0]
            offset = seg_start + max(0, min(column, len(seg_text)))

        self._state = Editing(target.id)
        self._cursor = offset
        return RouteResult(document, FocusRequest(target.id, offset))

    def backspace_at_start(self, document: Document) -> RouteResult:
        """Merge the current block into the previous one."""
        if not isinstance(self._state, Editing):
            return RouteResult(document, handled=False)
        index = index_of(document, self._state.block_id)
        if index <= 0:
            return RouteResult(document, handled=False)

        change = self.store.merge_with_previous(document, self._state.block_id)
        if change.focus is None:
            return RouteResult(document, handled=False)
        self._state = Editing(change.focus.block_id)
        self._cursor = change.focus.offset
        return RouteResult(change.document, change.focus)

    def tab(self, document: Document, *, shift: bool = False) -> RouteResult:
        """Indent (or outdent with shift) the current list block."""
        if isinstance(self._state, CommandMenuOpen):
            return RouteResult(document)
        if not isinstance(self._state, Editing):
            return RouteResult(document, handled=False)
        block = self.store.get(document, self._state.block_id)
        if not is_list_type(block.type):
            return RouteResult(document, handled=False)
        change = self.store.set_indent(document, block.id, block.indent + (-1 if shift else 1))
        return RouteResult(change.document)
