"""Shared fixtures for blocktext tests."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from blocktext.content import RichText
from blocktext.plugins import PluginRegistry, default_registry
from blocktext.store import BlockStore
from blocktext.types import Block, ListMetadata

BlockFactory = Callable[..., Block]


def _make_block(
    block_id: str,
    text: str = "",
    block_type: str = "text",
    indent: int = 0,
    metadata: ListMetadata | None = None,
) -> Block:
    return Block(
        id=block_id,
        type=block_type,
        content=RichText.from_text(text),
        indent=indent,
        metadata=metadata,
    )


@pytest.fixture
def make_block() -> BlockFactory:
    """Factory for text-like blocks: ``make_block("a", "Hello", "numbered-list", indent=1)``."""
    return _make_block


@pytest.fixture
def registry() -> PluginRegistry:
    return default_registry()


@pytest.fixture
def store(registry: PluginRegistry) -> BlockStore:
    return BlockStore(registry)
