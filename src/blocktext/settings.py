"""Editor settings with JSON file layering.

Precedence: overrides > project settings > global settings > defaults.
Files use camelCase keys, e.g. ``{"triggerCharacter": "/", "maxIndent": 6}``.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

CONFIG_DIR_NAME = ".blocktext"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EditorSettings:
    """Engine behaviour that hosts may tune."""

    trigger_character: str = "/"
    default_block_type: str = "text"
    read_only: bool = False
    max_indent: int = 8
    menu_max_visible: int = 10

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EditorSettings:
        defaults = cls()
        trigger = data.get("triggerCharacter", defaults.trigger_character)
        if not isinstance(trigger, str) or len(trigger) != 1 or trigger.isspace():
            logger.warning("Ignoring invalid triggerCharacter %r", trigger)
            trigger = defaults.trigger_character
        return cls(
            trigger_character=trigger,
            default_block_type=str(data.get("defaultBlockType", defaults.default_block_type)),
            read_only=bool(data.get("readOnly", defaults.read_only)),
            max_indent=max(0, int(data.get("maxIndent", defaults.max_indent))),
            menu_max_visible=max(1, int(data.get("menuMaxVisible", defaults.menu_max_visible))),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "triggerCharacter": self.trigger_character,
            "defaultBlockType": self.default_block_type,
            "readOnly": self.read_only,
            "maxIndent": self.max_indent,
            "menuMaxVisible": self.menu_max_visible,
        }


def deep_merge_settings(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge overrides into base settings.

    For nested dicts, merge recursively. For primitives and arrays,
    override value wins completely. None never overrides.
    """
    result = dict(base)
    for key, value in overrides.items():
        if value is None:
            continue
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge_settings(result[key], value)
        else:
            result[key] = value
    return result


def _load_from_file(path: str) -> dict[str, Any]:
    if not os.path.exists(path):
        return {}
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Could not read settings from %s: %s", path, e)
        return {}
    if not isinstance(data, dict):
        logger.warning("Settings file %s does not hold an object", path)
        return {}
    return data


def _default_config_dir() -> str:
    return os.path.join(os.path.expanduser("~"), CONFIG_DIR_NAME)


def load_settings(
    cwd: str | None = None,
    *,
    config_dir: str | None = None,
    overrides: dict[str, Any] | None = None,
) -> EditorSettings:
    """Load global and project settings files and apply overrides."""
    merged = _load_from_file(os.path.join(config_dir or _default_config_dir(), "settings.json"))
    if cwd is not None:
        project = _load_from_file(os.path.join(cwd, CONFIG_DIR_NAME, "settings.json"))
        merged = deep_merge_settings(merged, project)
    if overrides:
        merged = deep_merge_settings(merged, overrides)
    return EditorSettings.from_dict(merged)
