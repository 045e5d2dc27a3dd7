"""Runtime configuration for ccm.

Precedence (lowest to highest):
1. Built-in defaults (in code)
2. <config-root>/config.toml
3. Environment variables (CCM_*, EDITOR, VISUAL)
4. CLI flags (applied by the caller)

Locations (config root, Claude settings path) are not configurable from
the TOML file; see ``ccm.paths``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
import os
from pathlib import Path
import tomllib
from typing import Any

from ccm.core import DEFAULT_CLAUDE_COMMAND
from ccm.errors import ConfigError


@dataclass
class LaunchConfig:
    """How `ccm run` starts Claude Code."""

    command: str = DEFAULT_CLAUDE_COMMAND


@dataclass
class EditorConfig:
    # None means: detect from EDITOR / VISUAL / PATH at edit time
    command: str | None = None


@dataclass
class LoggingConfig:
    level: str = "WARNING"
    file: str | None = None


@dataclass
class CcmSettings:
    """Root configuration."""

    launch: LaunchConfig = field(default_factory=LaunchConfig)
    editor: EditorConfig = field(default_factory=EditorConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def load(
        cls, config_file: Path | None = None, environ: Mapping[str, str] | None = None
    ) -> CcmSettings:
        """Load configuration with precedence."""
        settings = cls()
        if config_file is not None and config_file.exists():
            settings = _merge_config(settings, _load_toml(config_file), config_file)
        return _apply_env_overrides(settings, os.environ if environ is None else environ)


def _load_toml(path: Path) -> dict[str, Any]:
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(path, str(e)) from e
    except OSError as e:
        raise ConfigError(path, e.strerror or str(e)) from e


def _section(data: dict[str, Any], name: str, path: Path) -> dict[str, Any]:
    section = data.get(name, {})
    if not isinstance(section, dict):
        raise ConfigError(path, f"[{name}] must be a table, got {type(section).__name__}")
    return section


def _merge_config(settings: CcmSettings, data: dict[str, Any], path: Path) -> CcmSettings:
    """Merge TOML data into settings."""

    launch_data = _section(data, "launch", path)
    if "command" in launch_data:
        settings.launch.command = str(launch_data["command"])

    editor_data = _section(data, "editor", path)
    if "command" in editor_data:
        settings.editor.command = str(editor_data["command"])

    logging_data = _section(data, "logging", path)
    if "level" in logging_data:
        settings.logging.level = str(logging_data["level"])
    if "file" in logging_data:
        settings.logging.file = str(logging_data["file"])

    return settings


def _apply_env_overrides(settings: CcmSettings, environ: Mapping[str, str]) -> CcmSettings:
    env_map = {
        "CCM_CLAUDE_COMMAND": ("launch", "command"),
        "CCM_LOG_LEVEL": ("logging", "level"),
        "CCM_LOG_FILE": ("logging", "file"),
        # VISUAL first so that EDITOR wins when both are set
        "VISUAL": ("editor", "command"),
        "EDITOR": ("editor", "command"),
    }

    for env_var, (section, key) in env_map.items():
        value = environ.get(env_var)
        if value:
            setattr(getattr(settings, section), key, value)

    return settings
