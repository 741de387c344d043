"""blocktext: block-structured rich-text document engine."""

# Content adapters
from blocktext.content import (
    ContentAdapter,
    ImageAdapter,
    InlineRange,
    OpaqueAdapter,
    RichText,
    TextAdapter,
    delete_range,
)

# Command routing
from blocktext.commands import CommandMenuOpen, CommandRouter, Editing, Idle, RouteResult

# Editor facade
from blocktext.editor import BlockEditor, BlockView, EditorView, EditResult, MenuView, SelectionResult

# Errors
from blocktext.errors import (
    BlockTextError,
    InvalidDocumentError,
    NotFoundError,
    OutOfRangeError,
    ReadOnlyError,
    SessionClosedError,
    UnresolvableError,
)

# List metadata
from blocktext.lists import apply_metadata

# Command menu
from blocktext.menu import MenuItem, filter_menu_items, menu_items

# Plugins
from blocktext.plugins import (
    BlockPlugin,
    PluginRegistry,
    default_registry,
    header_plugin,
    image_plugin,
    list_plugin,
    quote_plugin,
    text_plugin,
    todo_plugin,
)

# Selection
from blocktext.selection import (
    ResolvedRange,
    SelectionResolution,
    SelectionSpan,
    SelectionTracker,
    copy_selection,
    cut_selection,
    resolve_selection,
)

# Persistence
from blocktext.serialization import BlockRecord, dumps_document, load_document, loads_document, save_document

# Session state
from blocktext.session import EditorSession, SessionRegistry

# Settings
from blocktext.settings import EditorSettings, load_settings

# Block store
from blocktext.store import BlockStore

# Core types
from blocktext.types import Block, Change, Document, FocusRequest, ListMetadata

__all__ = [
    "Block",
    "BlockEditor",
    "BlockPlugin",
    "BlockRecord",
    "BlockStore",
    "BlockTextError",
    "BlockView",
    "Change",
    "CommandMenuOpen",
    "CommandRouter",
    "ContentAdapter",
    "Document",
    "EditResult",
    "Editing",
    "EditorSession",
    "EditorSettings",
    "EditorView",
    "FocusRequest",
    "Idle",
    "ImageAdapter",
    "InlineRange",
    "InvalidDocumentError",
    "ListMetadata",
    "MenuItem",
    "MenuView",
    "NotFoundError",
    "OpaqueAdapter",
    "OutOfRangeError",
    "PluginRegistry",
    "ReadOnlyError",
    "ResolvedRange",
    "RichText",
    "RouteResult",
    "SelectionResolution",
    "SelectionResult",
    "SelectionSpan",
    "SelectionTracker",
    "SessionClosedError",
    "SessionRegistry",
    "TextAdapter",
    "UnresolvableError",
    "apply_metadata",
    "copy_selection",
    "cut_selection",
    "default_registry",
    "delete_range",
    "dumps_document",
    "filter_menu_items",
    "header_plugin",
    "image_plugin",
    "list_plugin",
    "load_document",
    "load_settings",
    "loads_document",
    "menu_items",
    "quote_plugin",
    "resolve_selection",
    "save_document",
    "text_plugin",
    "todo_plugin",
]
