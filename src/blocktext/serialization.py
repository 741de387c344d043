"""Persisted document format.

A document is stored as an ordered array of records::

    {"id": "a1b2c3d4", "type": "numbered-list", "indent": 0,
     "data": "<serialized content>", "metadata": {"index": 0, "depth": 0}}

``data`` is produced and consumed by the block type's ``ContentAdapter``.
Unknown types and unknown record keys are passed through untouched.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from blocktext.errors import InvalidDocumentError
from blocktext.types import Block, Document, ListMetadata

if TYPE_CHECKING:
    from blocktext.plugins import PluginRegistry

logger = logging.getLogger(__name__)


class ListMetadataRecord(BaseModel):
    index: int = Field(ge=0)
    depth: int = Field(ge=0)


class BlockRecord(BaseModel):
    """One stored block."""

    model_config = ConfigDict(extra="allow")

    id: str = Field(min_length=1)
    type: str = Field(min_length=1)
    indent: int = Field(default=0, ge=0)
    data: Any = None
    metadata: ListMetadataRecord | None = None

    @field_validator("metadata", mode="before")
    @classmethod
    def _tolerate_bad_metadata(cls, value: Any) -> Any:
        # Stale or hand-edited metadata is recomputed later, never rejected.
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except json.JSONDecodeError:
                return None
        if not isinstance(value, dict):
            return None
        try:
            return ListMetadataRecord.model_validate(value)
        except ValidationError:
            return None


def load_document(records: Any, registry: PluginRegistry) -> Document:
    """Validate stored records and build a document.

    Raises ``InvalidDocumentError`` when ``records`` is not a list, a record
    is malformed, or an id repeats. Nothing is returned on failure.
    """
    if not isinstance(records, list):
        raise InvalidDocumentError(f"Document must be a list, got {type(records).__name__}")

    blocks: list[Block] = []
    seen: set[str] = set()
    for position, raw in enumerate(records):
        try:
            record = BlockRecord.model_validate(raw)
        except ValidationError as e:
            raise InvalidDocumentError(f"Invalid block at position {position}: {e}") from e
        if record.id in seen:
            raise InvalidDocumentError(f"Duplicate block id: {record.id}")
        seen.add(record.id)

        adapter = registry.adapter_for(record.type)
        if not registry.is_known(record.type):
            logger.debug("Passing through unknown block type %r", record.type)
        try:
            content = adapter.load(record.data)
        except (TypeError, ValueError) as e:
            raise InvalidDocumentError(f"Invalid data for block {record.id}: {e}") from e

        metadata = None
        if record.metadata is not None:
            metadata = ListMetadata(index=record.metadata.index, depth=record.metadata.depth)
        blocks.append(
            Block(
                id=record.id,
                type=record.type,
                content=content,
                indent=record.indent,
                metadata=metadata,
                extras=dict(record.model_extra or {}),
            )
        )
    return tuple(blocks)


def save_document(document: Document, registry: PluginRegistry) -> list[dict[str, Any]]:
    """Serialize a document to its stored record array."""
    records: list[dict[str, Any]] = []
    for block in document:
        adapter = registry.adapter_for(block.type)
        record: dict[str, Any] = {
            "id": block.id,
            "type": block.type,
            "indent": block.indent,
            "data": adapter.dump(block.content),
        }
        if block.metadata is not None:
            record["metadata"] = {"index": block.metadata.index, "depth": block.metadata.depth}
        for key, value in block.extras.items():
            record.setdefault(key, value)
        records.append(record)
    return records


def loads_document(text: str, registry: PluginRegistry) -> Document:
    try:
        records = json.loads(text)
    except json.JSONDecodeError as e:
        raise InvalidDocumentError(f"Document is not valid JSON: {e}") from e
    return load_document(records, registry)


def dumps_document(document: Document, registry: PluginRegistry) -> str:
    return json.dumps(save_document(document, registry))
