"""Configuration files (YAML) and the manager that reads them.

``ConfigManager`` reads the default files from this folder and merges them
with user overrides.
"""

from .manager import ConfigManager, EditorSettings, get_editor_config

__all__ = [
    "ConfigManager",
    "EditorSettings",
    "get_editor_config",
]
