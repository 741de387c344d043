"""Content adapters: the minimal operation set the engine needs from a payload.

The engine never inspects a block's content directly. Every read or edit
goes through the ``ContentAdapter`` registered for the block's type.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from typing import Any, Protocol, runtime_checkable

SEGMENT_SEPARATOR = "\n"


@runtime_checkable
class ContentAdapter(Protocol):
    """Interface a block type supplies for its content payload."""

    # Non-textual payloads (images, embeds) cannot be split or merged.
    textual: bool

    def create_empty(self) -> Any:
        """Create an empty payload."""
        ...

    def get_text(self, content: Any) -> str:
        """Flat text of the payload, segments joined by a newline."""
        ...

    def get_length(self, content: Any) -> int:
        """Length of the flat text."""
        ...

    def get_segments(self, content: Any) -> list[str]:
        """Text of each line/segment inside the payload, in order."""
        ...

    def substring(self, content: Any, start: int, end: int) -> Any:
        """Payload restricted to the flat range ``[start, end)``."""
        ...

    def split_at(self, content: Any, offset: int) -> tuple[Any, Any]:
        """Split the payload at a flat offset."""
        ...

    def concat(self, first: Any, second: Any) -> Any:
        """Append ``second`` to ``first``."""
        ...

    def accepts(self, content: Any) -> bool:
        """Whether ``content`` is a payload this adapter understands."""
        ...

    def load(self, data: Any) -> Any:
        """Build a payload from its serialized form."""
        ...

    def dump(self, content: Any) -> Any:
        """Serialize a payload."""
        ...


# --- Rich text ---

_RANGE_KEYS = ("text", "inlineStyleRanges", "entityRanges")


@dataclass(frozen=True)
class InlineRange:
    """A style name or entity applied to the flat range ``[start, end)``."""

    start: int
    end: int
    value: Any

    def clip(self, start: int, end: int) -> InlineRange | None:
        """This range cut to ``[start, end)``, re-based on ``start``. None if nothing is left."""
        lo, hi = max(self.start, start), min(self.end, end)
        if lo >= hi:
            return None
        return InlineRange(lo - start, hi - start, self.value)

    def shift(self, delta: int) -> InlineRange:
        return InlineRange(self.start + delta, self.end + delta, self.value)


def _clip_all(ranges: tuple[InlineRange, ...], start: int, end: int) -> tuple[InlineRange, ...]:
    clipped = (r.clip(start, end) for r in ranges)
    return tuple(r for r in clipped if r is not None)


def _coalesce(ranges: list[InlineRange]) -> tuple[InlineRange, ...]:
    """Join touching ranges that carry the same value."""
    result: list[InlineRange] = []
    for r in ranges:
        for i, existing in enumerate(result):
            if existing.value == r.value and existing.end == r.start:
                result[i] = InlineRange(existing.start, r.end, r.value)
                break
        else:
            result.append(r)
    return tuple(result)


@dataclass(frozen=True)
class RichText:
    """Text payload made of one or more line segments.

    ``styles`` and ``entities`` are inline ranges over the flat text.
    ``lines`` holds the stored attributes of each line (key, type, depth,
    data); it is empty for plain text or parallel to ``segments``. Content
    loaded from the full Draft raw shape has ``raw`` set and is written back
    in that shape.
    """

    segments: tuple[str, ...] = ("",)
    styles: tuple[InlineRange, ...] = ()
    entities: tuple[InlineRange, ...] = ()
    lines: tuple[dict[str, Any], ...] = ()
    raw: bool = False
    # Serialized form this payload was loaded from. Edits produce new values without it.
    source: Any = field(default=None, compare=False, repr=False)

    @classmethod
    def from_text(cls, text: str) -> RichText:
        return cls(tuple(text.split(SEGMENT_SEPARATOR)))

    @property
    def text(self) -> str:
        return SEGMENT_SEPARATOR.join(self.segments)

    def __len__(self) -> int:
        return len(self.text)

    def line_attrs(self) -> tuple[dict[str, Any], ...]:
        return self.lines or tuple({} for _ in self.segments)

    def slice(self, start: int, end: int) -> RichText:
        """The flat range ``[start, end)``, keeping the styles and line attributes inside it."""
        text = self.text
        start = _clamp(start, len(text))
        end = max(start, _clamp(end, len(text)))
        segments = tuple(text[start:end].split(SEGMENT_SEPARATOR))
        lines: tuple[dict[str, Any], ...] = ()
        if self.lines:
            first = text.count(SEGMENT_SEPARATOR, 0, start)
            lines = self.lines[first : first + len(segments)]
        return RichText(
            segments,
            _clip_all(self.styles, start, end),
            _clip_all(self.entities, start, end),
            lines,
            self.raw,
        )

    def joined(self, other: RichText) -> RichText:
        """``other`` appended; the touching lines become one, keeping this line's attributes."""
        offset = len(self.text)
        segments = self.segments[:-1] + (self.segments[-1] + other.segments[0],) + other.segments[1:]
        lines: tuple[dict[str, Any], ...] = ()
        if self.lines or other.lines:
            lines = self.line_attrs() + other.line_attrs()[1:]
        return RichText(
            segments,
            _coalesce([*self.styles, *(r.shift(offset) for r in other.styles)]),
            _coalesce([*self.entities, *(r.shift(offset) for r in other.entities)]),
            lines,
            self.raw or other.raw,
        )


def _clamp(offset: int, length: int) -> int:
    return max(0, min(offset, length))


def _read_ranges(
    block: dict[str, Any],
    key: str,
    base: int,
    value_of: Callable[[dict[str, Any]], Any],
) -> list[InlineRange]:
    ranges = []
    for item in block.get(key) or []:
        if not isinstance(item, dict):
            continue
        start = base + int(item.get("offset", 0))
        ranges.append(InlineRange(start, start + int(item.get("length", 0)), value_of(item)))
    return ranges


def _read_raw(data: dict[str, Any], source: Any) -> RichText:
    """Parse the Draft raw shape ``{"blocks": [...], "entityMap": {...}}``."""
    entity_map = data.get("entityMap") or {}
    blocks = [b for b in data.get("blocks") or [] if isinstance(b, dict)]
    segments: list[str] = []
    styles: list[InlineRange] = []
    entities: list[InlineRange] = []
    lines: list[dict[str, Any]] = []
    base = 0
    for block in blocks:
        text = str(block.get("text", ""))
        styles += _read_ranges(block, "inlineStyleRanges", base, lambda r: r.get("style"))
        entities += _read_ranges(block, "entityRanges", base, lambda r: entity_map.get(str(r.get("key"))))
        lines.append({k: v for k, v in block.items() if k not in _RANGE_KEYS})
        segments.append(text)
        base += len(text) + len(SEGMENT_SEPARATOR)

    has_attrs = any(lines)
    return RichText(
        tuple(segments) or ("",),
        tuple(styles),
        tuple(entities),
        tuple(lines) if has_attrs else (),
        raw="entityMap" in data or has_attrs or bool(styles or entities),
        source=source,
    )


def _write_raw(content: RichText) -> dict[str, Any]:
    entity_values: list[Any] = []

    def entity_key(value: Any) -> int:
        if value not in entity_values:
            entity_values.append(value)
        return entity_values.index(value)

    blocks = []
    base = 0
    for text, attrs in zip(content.segments, content.line_attrs()):
        end = base + len(text)
        block: dict[str, Any] = {}
        if "key" in attrs:
            block["key"] = attrs["key"]
        block["text"] = text
        block.update((k, v) for k, v in attrs.items() if k not in ("key", "data"))
        block["inlineStyleRanges"] = [
            {"offset": r.start, "length": r.end - r.start, "style": r.value}
            for r in _clip_all(content.styles, base, end)
        ]
        block["entityRanges"] = [
            {"offset": r.start, "length": r.end - r.start, "key": entity_key(r.value)}
            for r in _clip_all(content.entities, base, end)
        ]
        if "data" in attrs:
            block["data"] = attrs["data"]
        blocks.append(block)
        base = end + len(SEGMENT_SEPARATOR)
    return {"blocks": blocks, "entityMap": {str(i): v for i, v in enumerate(entity_values)}}


class TextAdapter:
    """Adapter for ``RichText`` payloads, shared by all text-like block types."""

    textual = True

    def create_empty(self) -> RichText:
        return RichText()

    def get_text(self, content: RichText) -> str:
        return content.text

    def get_length(self, content: RichText) -> int:
        return len(content.text)

    def get_segments(self, content: RichText) -> list[str]:
        return list(content.segments)

    def substring(self, content: RichText, start: int, end: int) -> RichText:
        return content.slice(start, end)

    def split_at(self, content: RichText, offset: int) -> tuple[RichText, RichText]:
        offset = _clamp(offset, len(content.text))
        return content.slice(0, offset), content.slice(offset, len(content.text))

    def concat(self, first: RichText, second: RichText) -> RichText:
        return first.joined(second)

    def accepts(self, content: Any) -> bool:
        return isinstance(content, RichText)

    def load(self, data: Any) -> RichText:
        """Accept the Draft raw JSON string written by ``dump``, an equivalent dict, or plain text."""
        if data is None:
            return RichText()
        source = data
        if isinstance(data, str):
            try:
                parsed = json.loads(data)
            except json.JSONDecodeError:
                return replace(RichText.from_text(data), source=source)
            if not isinstance(parsed, dict):
                return replace(RichText.from_text(data), source=source)
            data = parsed
        if isinstance(data, dict):
            return _read_raw(data, source)
        raise TypeError(f"Cannot load rich text from {type(data).__name__}")

    def dump(self, content: RichText) -> Any:
        """Unedited content is written back exactly as it was loaded."""
        if content.source is not None:
            return content.source
        if not content.raw:
            return json.dumps({"blocks": [{"text": s} for s in content.segments]})
        return json.dumps(_write_raw(content))


# --- Non-textual payloads ---


class OpaqueAdapter:
    """Pass-through adapter for payloads the engine does not understand.

    Used for block types no plugin registered. Data survives a load/save
    round trip untouched.
    """

    textual = False

    def create_empty(self) -> Any:
        return None

    def get_text(self, content: Any) -> str:
        return ""

    def get_length(self, content: Any) -> int:
        return 0

    def get_segments(self, content: Any) -> list[str]:
        return []

    def substring(self, content: Any, start: int, end: int) -> Any:
        return content

    def split_at(self, content: Any, offset: int) -> tuple[Any, Any]:
        return content, self.create_empty()

    def concat(self, first: Any, second: Any) -> Any:
        return first

    def accepts(self, content: Any) -> bool:
        return True

    def load(self, data: Any) -> Any:
        return data

    def dump(self, content: Any) -> Any:
        return content


class ImageAdapter(OpaqueAdapter):
    """Image payload: a dict such as ``{"src": ..., "width": ...}``, or None before upload."""

    def create_empty(self) -> dict[str, Any] | None:
        return None

    def accepts(self, content: Any) -> bool:
        return content is None or isinstance(content, dict)

    def load(self, data: Any) -> dict[str, Any] | None:
        if isinstance(data, str):
            try:
                data = json.loads(data)
            except json.JSONDecodeError:
                return {"src": data}
        return data if isinstance(data, dict) else None

    def dump(self, content: Any) -> Any:
        return content


# --- Helpers built on the interface ---


def delete_range(adapter: ContentAdapter, content: Any, start: int, end: int) -> Any:
    """Remove the flat range ``[start, end)`` from a payload."""
    if not adapter.textual or start >= end:
        return content
    head, rest = adapter.split_at(content, start)
    _, tail = adapter.split_at(rest, end - start)
    return adapter.concat(head, tail)


def segment_offsets(adapter: ContentAdapter, content: Any) -> list[tuple[int, str]]:
    """Pair each segment with its starting flat offset."""
    result: list[tuple[int, str]] = []
    offset = 0
    for segment in adapter.get_segments(content):
        result.append((offset, segment))
        offset += len(segment) + len(SEGMENT_SEPARATOR)
    return result
