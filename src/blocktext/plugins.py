"""Block type registry.

A plugin ties a block ``type`` to the ``ContentAdapter`` for its payload and
to the label/icon pair shown in the command menu. Adapters are resolved once
when the plugin is registered. Unknown types fall back to ``OpaqueAdapter``.
"""

from __future__ import annotations

from dataclasses import dataclass

from blocktext.content import ContentAdapter, ImageAdapter, OpaqueAdapter, TextAdapter


@dataclass(frozen=True)
class BlockPlugin:
    """A registered block type."""

    type: str
    adapter: ContentAdapter
    label: str
    icon: str = ""
    description: str = ""


@dataclass
class _RegisteredPlugin:
    plugin: BlockPlugin
    source_id: str | None = None


class PluginRegistry:
    """Maps block types to their plugins. Owned by the editor, not global."""

    def __init__(self) -> None:
        self._plugins: dict[str, _RegisteredPlugin] = {}
        self._fallback: ContentAdapter = OpaqueAdapter()

    def register(self, plugin: BlockPlugin, source_id: str | None = None) -> None:
        """Register a plugin. A later registration for the same type replaces the earlier one."""
        self._plugins[plugin.type] = _RegisteredPlugin(plugin=plugin, source_id=source_id)

    def register_all(self, plugins: list[BlockPlugin], source_id: str | None = None) -> None:
        for plugin in plugins:
            self.register(plugin, source_id)

    def get(self, block_type: str) -> BlockPlugin | None:
        entry = self._plugins.get(block_type)
        return entry.plugin if entry else None

    def adapter_for(self, block_type: str) -> ContentAdapter:
        """Adapter for a block type, or the pass-through adapter when unknown."""
        entry = self._plugins.get(block_type)
        return entry.plugin.adapter if entry else self._fallback

    def is_known(self, block_type: str) -> bool:
        return block_type in self._plugins

    @property
    def plugins(self) -> list[BlockPlugin]:
        return [entry.plugin for entry in self._plugins.values()]

    @property
    def types(self) -> list[str]:
        return list(self._plugins)

    def unregister_source(self, source_id: str) -> None:
        """Remove all plugins registered with a given source ID."""
        to_remove = [t for t, entry in self._plugins.items() if entry.source_id == source_id]
        for block_type in to_remove:
            del self._plugins[block_type]

    def clear(self) -> None:
        self._plugins.clear()


# --- Built-in plugins ---

_TEXT = TextAdapter()


def text_plugin() -> list[BlockPlugin]:
    return [BlockPlugin("text", _TEXT, "Text", "Aa", "Just start writing with plain text.")]


def header_plugin() -> list[BlockPlugin]:
    return [
        BlockPlugin("heading1", _TEXT, "Heading 1", "H1", "Big section heading."),
        BlockPlugin("heading2", _TEXT, "Heading 2", "H2", "Medium section heading."),
        BlockPlugin("heading3", _TEXT, "Heading 3", "H3", "Small section heading."),
    ]


def list_plugin() -> list[BlockPlugin]:
    return [
        BlockPlugin("bulleted-list", _TEXT, "Bulleted list", "•", "Create a simple bulleted list."),
        BlockPlugin("numbered-list", _TEXT, "Numbered list", "1.", "Create a list with numbering."),
    ]


def quote_plugin() -> list[BlockPlugin]:
    return [BlockPlugin("quote", _TEXT, "Quote", "“", "Capture a quote.")]


def todo_plugin() -> list[BlockPlugin]:
    return [BlockPlugin("todo", _TEXT, "To-do list", "[]", "Track tasks with a to-do list.")]


def image_plugin() -> list[BlockPlugin]:
    return [BlockPlugin("image", ImageAdapter(), "Image", "img", "Upload or embed with a link.")]


def default_registry() -> PluginRegistry:
    """Registry with every built-in block type."""
    registry = PluginRegistry()
    for factory in (text_plugin, header_plugin, list_plugin, quote_plugin, todo_plugin, image_plugin):
        registry.register_all(factory(), source_id="builtin")
    return registry
