"""Command menu items and query filtering.

Entries are ranked in tiers: whole label, label prefix, word prefix, then
letters in order. Lower score = better match.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from blocktext.plugins import PluginRegistry

_WORD_SPLIT_RE = re.compile(r"[\s\-_]+")


@dataclass(frozen=True)
class MenuItem:
    type: str
    label: str
    icon: str = ""
    description: str = ""


def menu_items(registry: PluginRegistry) -> list[MenuItem]:
    """One item per registered block type, in registration order."""
    return [MenuItem(p.type, p.label, p.icon, p.description) for p in registry.plugins]


def _spread(query: str, text: str) -> int | None:
    """Characters skipped while finding ``query`` in order inside ``text``."""
    position = text.find(query[0])
    if position < 0:
        return None
    first = position
    for char in query[1:]:
        position = text.find(char, position + 1)
        if position < 0:
            return None
    return position - first + 1 - len(query) + first


def menu_match(query: str, text: str) -> float | None:
    """Score ``text`` against ``query``, or None when it does not match."""
    query = query.strip().lower()
    text = text.lower()
    if not query or text == query:
        return 0.0
    if text.startswith(query):
        return 1.0 + min(len(text) - len(query), 9) * 0.1
    for position, word in enumerate(w for w in _WORD_SPLIT_RE.split(text) if w):
        if word.startswith(query):
            return 2.0 + min(position, 9) * 0.1
    skipped = _spread(query, text)
    if skipped is None:
        return None
    return 3.0 + skipped


def filter_menu_items(items: list[MenuItem], query: str) -> list[MenuItem]:
    """Items matching ``query``, best first. An empty query keeps the given order."""
    query = query.strip()
    if not query:
        return list(items)

    scored: list[tuple[float, int, MenuItem]] = []
    for position, item in enumerate(items):
        scores = [s for s in (menu_match(query, item.label), menu_match(query, item.type)) if s is not None]
        if scores:
            scored.append((min(scores), position, item))
    scored.sort(key=lambda entry: (entry[0], entry[1]))
    return [item for _, _, item in scored]
