"""Transient per-document UI state.

A session lives exactly as long as one document instance in the host: the
focused and hovered block, an in-progress drag, and the handles the host
registers so the engine can request focus imperatively. Sessions are owned
by the host and must be closed when the document instance is torn down.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol, runtime_checkable
from uuid import uuid4

from blocktext.errors import SessionClosedError
from blocktext.store import BlockStore
from blocktext.types import Document

logger = logging.getLogger(__name__)


@runtime_checkable
class FocusHandle(Protocol):
    """Host object able to put the caret into one rendered block."""

    def focus(self, offset: int) -> None: ...


@dataclass
class DragState:
    """A reorder gesture in progress."""

    # Document before the gesture started; restored on abort.
    snapshot: Document
    index: int


class EditorSession:
    def __init__(self, instance_id: str | None = None) -> None:
        self.instance_id = instance_id or uuid4().hex
        self._closed = False
        self._focused_block_id: str | None = None
        self._hovered_block_id: str | None = None
        self._drag: DragState | None = None
        self._handles: dict[str, FocusHandle] = {}

    def _check_open(self) -> None:
        if self._closed:
            raise SessionClosedError(self.instance_id)

    @property
    def closed(self) -> bool:
        return self._closed

    # --- Focus and hover ---

    @property
    def focused_block_id(self) -> str | None:
        return self._focused_block_id

    @property
    def hovered_block_id(self) -> str | None:
        return self._hovered_block_id

    def set_focused(self, block_id: str | None) -> None:
        self._check_open()
        self._focused_block_id = block_id

    def blur(self, block_id: str) -> None:
        self._check_open()
        if self._focused_block_id == block_id:
            self._focused_block_id = None

    def set_hovered(self, block_id: str | None) -> None:
        self._check_open()
        self._hovered_block_id = None if self.is_dragging else block_id

    def leave(self, block_id: str) -> None:
        self._check_open()
        if self._hovered_block_id == block_id:
            self._hovered_block_id = None

    # --- Focus handles ---

    def register_handle(self, block_id: str, handle: FocusHandle | None) -> None:
        """Register (or, with None, drop) the host handle for a rendered block."""
        self._check_open()
        if handle is None:
            self._handles.pop(block_id, None)
        else:
            self._handles[block_id] = handle

    def unregister_handle(self, block_id: str) -> None:
        self._check_open()
        self._handles.pop(block_id, None)

    def has_handle(self, block_id: str) -> bool:
        return block_id in self._handles

    def request_focus(self, block_id: str, offset: int = 0) -> bool:
        """Focus a block through its handle. False when no handle is registered."""
        self._check_open()
        self._focused_block_id = block_id
        handle = self._handles.get(block_id)
        if handle is None:
            return False
        handle.focus(offset)
        return True

    def prune(self, document: Document) -> None:
        """Drop state that refers to blocks no longer in the document."""
        self._check_open()
        ids = {b.id for b in document}
        for block_id in [k for k in self._handles if k not in ids]:
            del self._handles[block_id]
        if self._focused_block_id not in ids:
            self._focused_block_id = None
        if self._hovered_block_id not in ids:
            self._hovered_block_id = None

    # --- Drag reorder ---

    @property
    def is_dragging(self) -> bool:
        return self._drag is not None

    def begin_drag(self, document: Document, index: int) -> None:
        self._check_open()
        self._drag = DragState(snapshot=document, index=index)
        self._focused_block_id = None
        self._hovered_block_id = None

    def drag_over(self, store: BlockStore, document: Document, hover_index: int) -> Document:
        """Live-reorder the dragged block to ``hover_index``."""
        self._check_open()
        if self._drag is None:
            return document
        change = store.move(document, self._drag.index, hover_index)
        self._drag.index = hover_index
        return change.document

    def drop(self) -> None:
        self._check_open()
        self._drag = None

    def abort_drag(self) -> Document | None:
        """Cancel the gesture; returns the document as it was before it started."""
        self._check_open()
        if self._drag is None:
            return None
        snapshot = self._drag.snapshot
        self._drag = None
        return snapshot

    # --- Teardown ---

    def close(self) -> None:
        self._handles.clear()
        self._drag = None
        self._focused_block_id = None
        self._hovered_block_id = None
        self._closed = True
        logger.debug("Session %s closed", self.instance_id)


class SessionRegistry:
    """Host-owned map of document instance id -> session."""

    def __init__(self) -> None:
        self._sessions: dict[str, EditorSession] = {}

    def open(self, instance_id: str | None = None) -> EditorSession:
        session = EditorSession(instance_id)
        if session.instance_id in self._sessions:
            self._sessions[session.instance_id].close()
        self._sessions[session.instance_id] = session
        return session

    def get(self, instance_id: str) -> EditorSession | None:
        return self._sessions.get(instance_id)

    def close(self, instance_id: str) -> None:
        session = self._sessions.pop(instance_id, None)
        if session is not None:
            session.close()

    def close_all(self) -> None:
        for session in self._sessions.values():
            session.close()
        self._sessions.clear()

    def __len__(self) -> int:
        return len(self._sessions)
