"""
Filesystem locations used by ccm.

All locations derive from a ``CcmPaths`` value built once from the
environment and then passed explicitly to every component, so tests can point
the whole tool at a temporary directory with two environment variables:

    CCM_CONFIG_DIR        - config root (profiles/, projects/, current)
    CLAUDE_SETTINGS_PATH  - the live Claude settings file
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
import hashlib
import os
from pathlib import Path
import sys

from ccm.errors import IoFailure

PROFILE_SUFFIX = ".json"
OVERLAY_RELATIVE_PATH = Path(".claude") / "settings.local.json"


def default_config_dir(environ: Mapping[str, str], platform: str | None = None) -> Path:
    """OS-conventional per-user config directory."""
    platform = platform or sys.platform
    home = environ.get("HOME")
    if platform == "win32":
        appdata = environ.get("APPDATA")
        if appdata:
            return Path(appdata)
    elif platform == "darwin":
        if home:
            return Path(home) / "Library" / "Application Support"
    else:
        xdg = environ.get("XDG_CONFIG_HOME")
        if xdg:
            return Path(xdg)
        if home:
            return Path(home) / ".config"
    return Path(".")


def project_key(project_dir: Path) -> str:
    """Stable filename stem for a project directory (sha256 of its absolute path)."""
    return hashlib.sha256(str(project_dir).encode("utf-8")).hexdigest()


def project_overlay_path(project_dir: Path) -> Path:
    """Project-local settings overlay written by project-scoped switches."""
    return Path(project_dir) / OVERLAY_RELATIVE_PATH


def ensure_dir(path: Path) -> Path:
    """Create ``path`` (and parents) if missing. Safe to call repeatedly."""
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise IoFailure("creating directory", path, e) from e
    return path


@dataclass(frozen=True)
class CcmPaths:
    root: Path
    settings_path: Path

    @classmethod
    def from_env(
        cls, environ: Mapping[str, str] | None = None, platform: str | None = None
    ) -> CcmPaths:
        env = os.environ if environ is None else environ

        custom_root = env.get("CCM_CONFIG_DIR")
        if custom_root:
            root = Path(custom_root)
        else:
            root = default_config_dir(env, platform) / "ccm"

        custom_settings = env.get("CLAUDE_SETTINGS_PATH")
        if custom_settings:
            settings = Path(custom_settings)
        elif env.get("HOME"):
            settings = Path(env["HOME"]) / ".claude" / "settings.json"
        else:
            settings = Path("./settings.json")

        return cls(root=root, settings_path=settings)

    @property
    def profiles_dir(self) -> Path:
        return self.root / "profiles"

    @property
    def projects_dir(self) -> Path:
        return self.root / "projects"

    @property
    def current_marker(self) -> Path:
        return self.root / "current"

    @property
    def config_file(self) -> Path:
        return self.root / "config.toml"

    def profile_path(self, name: str) -> Path:
        # No validation here; names are checked by the store on create/rename.
        return self.profiles_dir / f"{name}{PROFILE_SUFFIX}"

    def project_mapping_path(self, project_dir: Path) -> Path:
        return self.projects_dir / f"{project_key(Path(project_dir))}.json"

    def ensure_root(self) -> Path:
        return ensure_dir(self.root)

    def ensure_profiles_dir(self) -> Path:
        return ensure_dir(self.profiles_dir)

    def ensure_projects_dir(self) -> Path:
        return ensure_dir(self.projects_dir)
