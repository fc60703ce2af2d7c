from __future__ import annotations

"""Configuration loading and access helpers.

Declarative settings (list numbering, code indentation, clipboard MIME type,
logging) live in YAML files packaged with *structmd*. They are optionally
merged with user overrides found in:

On Windows: ``%LOCALAPPDATA%\\StructMD\\config\\*.yml``
On Unix: ``~/.structmd/*.yml``

``STRUCTMD_CONFIG_DIR`` replaces the per-user directory when set.
"""

from dataclasses import dataclass, field
import importlib.resources as pkg_resources
import logging
import os
from pathlib import Path
from typing import Any, Dict, List

import yaml

logger = logging.getLogger(__name__)

__all__ = ["ConfigManager", "EditorSettings", "get_editor_config"]


def _get_user_config_dir() -> Path:
    """Get the user configuration directory."""
    override = os.environ.get("STRUCTMD_CONFIG_DIR")
    if override:
        return Path(override)
    if os.name == "nt":  # Windows
        local_appdata = os.environ.get("LOCALAPPDATA")
        if local_appdata:
            return Path(local_appdata) / "StructMD" / "config"
        return Path.home() / "AppData" / "Local" / "StructMD" / "config"
    return Path.home() / ".structmd"


@dataclass(frozen=True)
class EditorSettings:
    """Typed view of the ``editor`` configuration section."""

    ordered_numbering: str = "sequential"
    code_indent: int = 4
    default_code_language: str = "plaintext"
    markdown_mime: str = "text/x-any-md"
    url_schemes: List[str] = field(default_factory=lambda: ["http", "https"])
    input_rules: bool = True

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> "EditorSettings":
        defaults = cls()
        numbering = str(data.get("ordered_numbering", defaults.ordered_numbering)).lower()
        if numbering not in {"sequential", "one"}:
            logger.warning("Unknown ordered_numbering %r, using 'sequential'", numbering)
            numbering = "sequential"
        try:
            indent = int(data.get("code_indent", defaults.code_indent))
        except (TypeError, ValueError):
            logger.warning("Invalid code_indent %r, using %d", data.get("code_indent"), defaults.code_indent)
            indent = defaults.code_indent
        schemes = data.get("url_schemes") or defaults.url_schemes
        return cls(
            ordered_numbering=numbering,
            code_indent=max(1, indent),
            default_code_language=str(data.get("default_code_language") or defaults.default_code_language),
            markdown_mime=str(data.get("markdown_mime") or defaults.markdown_mime),
            url_schemes=[str(scheme).lower() for scheme in schemes],
            input_rules=bool(data.get("input_rules", defaults.input_rules)),
        )


class _Singleton(type):
    _instance: "ConfigManager" | None = None

    def __call__(cls, *args, **kwargs):  # type: ignore[no-self-use]
        if cls._instance is None:
            cls._instance = super().__call__(*args, **kwargs)
        return cls._instance


class ConfigManager(metaclass=_Singleton):
    """Lazy-loads and exposes configuration sections as dictionaries."""

    _DEFAULT_FILENAMES = {
        "editor": "editor.yml",
        "logging": "logging.yml",
    }

    def __init__(self) -> None:
        self._data: Dict[str, Dict[str, Any]] = {}
        self._ensure_loaded()

    # ------------------------------------------------------------------
    # Public helpers
    # ------------------------------------------------------------------
    def get_editor_config(self) -> Dict[str, Any]:
        return self._data.get("editor", {})

    def get_editor_settings(self) -> EditorSettings:
        return EditorSettings.from_mapping(self.get_editor_config())

    def get_logging_config(self) -> Dict[str, Any]:
        return self._data.get("logging", {})

    def reload(self) -> None:
        """Re-read packaged defaults and user overrides."""
        self._data = {}
        self._ensure_loaded()

    @classmethod
    def reset(cls) -> None:
        """Forget the shared instance; the next call builds a fresh one."""
        cls._instance = None

    # ------------------------------------------------------------------
    # Internal loading logic
    # ------------------------------------------------------------------
    def _ensure_loaded(self) -> None:
        if self._data:
            return  # already loaded

        startup_summary = []
        user_config_dir = _get_user_config_dir()
        defaults = self._builtin_defaults()

        for key, filename in self._DEFAULT_FILENAMES.items():
            merged_cfg: Dict[str, Any] = dict(defaults[key])
            status = "missing"

            # 1. load packaged default
            try:
                packaged = pkg_resources.files(__package__).joinpath(filename)
                packaged_data = yaml.safe_load(packaged.read_text(encoding="utf-8")) or {}
                if not isinstance(packaged_data, dict):
                    raise ValueError("top level must be a mapping")
                merged_cfg.update(packaged_data)
                status = "loaded"
            except (FileNotFoundError, OSError):
                logger.error("Missing packaged config for %s (%s)", key, filename)
            except Exception as exc:
                logger.error("Invalid packaged config for %s (%s): %s", key, filename, exc)
                status = "invalid"

            # 2. load user overrides
            user_path = user_config_dir / filename
            if user_path.exists():
                try:
                    user_data = yaml.safe_load(user_path.read_text(encoding="utf-8")) or {}
                    if not isinstance(user_data, dict):
                        raise ValueError("top level must be a mapping")
                    merged_cfg.update(user_data)
                    if status == "loaded":
                        status = "loaded+overrides"
                except Exception as exc:
                    logger.error("Could not parse user config %s: %s", user_path, exc)

            self._data[key] = merged_cfg
            startup_summary.append(f"{key}: {status}")

        logger.info("Config startup: %s", " | ".join(startup_summary))

    @staticmethod
    def _builtin_defaults() -> Dict[str, Dict[str, Any]]:
        """Editor defaults; logging stays empty so the minimal fallback applies."""
        return {
            "editor": {
                "ordered_numbering": "sequential",
                "code_indent": 4,
                "default_code_language": "plaintext",
                "markdown_mime": "text/x-any-md",
                "url_schemes": ["http", "https"],
                "input_rules": True,
            },
            "logging": {},
        }


def get_editor_config() -> EditorSettings:
    """Shortcut for ``ConfigManager().get_editor_settings()``."""
    return ConfigManager().get_editor_settings()
