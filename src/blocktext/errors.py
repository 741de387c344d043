"""Error kinds raised by the document engine.

The store and the selection resolver raise these. ``BlockEditor`` catches
them and reports them back to the host in its ``EditResult``.
"""

from __future__ import annotations


class BlockTextError(Exception):
    """Base class for expected engine failures."""

    kind: str = "error"


class NotFoundError(BlockTextError):
    """A referenced block id is not in the document."""

    kind = "not_found"

    def __init__(self, block_id: str) -> None:
        super().__init__(f"Block not found: {block_id}")
        self.block_id = block_id


class OutOfRangeError(BlockTextError):
    """An index or offset lies outside the document or block bounds."""

    kind = "out_of_range"

    def __init__(self, value: int, upper: int, what: str = "index") -> None:
        super().__init__(f"{what} {value} out of range [0, {upper})")
        self.value = value
        self.upper = upper


class UnresolvableError(BlockTextError):
    """The selected text cannot be matched against block content."""

    kind = "unresolvable"

    def __init__(self, message: str, *, remaining: str = "") -> None:
        super().__init__(message)
        self.remaining = remaining


class InvalidDocumentError(BlockTextError):
    """A loaded document is malformed (not a list, bad record, duplicate id)."""

    kind = "invalid_document"


class ReadOnlyError(BlockTextError):
    """A mutation was requested on a read-only editor."""

    kind = "read_only"

    def __init__(self) -> None:
        super().__init__("Editor is read-only")


class SessionClosedError(BlockTextError):
    """A torn-down session was used."""

    kind = "session_closed"

    def __init__(self, instance_id: str) -> None:
        super().__init__(f"Session {instance_id} is closed")
        self.instance_id = instance_id
