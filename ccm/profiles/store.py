"""
Profile store: CRUD over ``profiles/<name>.json``.

The store does not own the "active" state. It asks the current-profile
marker and the project registry when it needs to annotate a listing or
refuse a removal.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
from pathlib import Path
from typing import Any

from ccm.errors import CcmError, InvalidProfileName, IoFailure, ProfileExists, ProfileNotFound
from ccm.paths import CcmPaths, PROFILE_SUFFIX
from ccm.profiles.jsonio import (
    dumps_pretty,
    load_json_object,
    parse_json_object,
    read_text,
    remove_file,
    write_text_atomic,
)
from ccm.profiles.marker import CurrentMarker
from ccm.profiles.projects import ProjectRegistry

logger = logging.getLogger(__name__)


class RemoveOutcome(Enum):
    REMOVED = "removed"
    NOT_FOUND = "not_found"
    IN_USE_GLOBAL = "in_use_global"
    IN_USE_PROJECT = "in_use_project"


@dataclass(frozen=True)
class ProfileEntry:
    name: str
    is_current: bool = False
    is_project_current: bool = False

    @property
    def label(self) -> str:
        """Display label as used by `ccm list`."""
        # Global wins when both point at the same profile.
        if self.is_current:
            return f"{self.name} (current)"
        if self.is_project_current:
            return f"{self.name} (current project)"
        return self.name


def validate_profile_name(name: str) -> str:
    """Reject names that would not map onto a single file in profiles/."""
    if not name or not name.strip():
        raise InvalidProfileName(name, "name is empty")
    if name != name.strip():
        raise InvalidProfileName(name, "leading or trailing whitespace")
    if "/" in name or "\\" in name:
        raise InvalidProfileName(name, "path separators are not allowed")
    if name.startswith("."):
        raise InvalidProfileName(name, "hidden names (starting with '.') are not allowed")
    if name.endswith(PROFILE_SUFFIX):
        raise InvalidProfileName(name, f"leave out the '{PROFILE_SUFFIX}' extension")
    if "\x00" in name:
        raise InvalidProfileName(name, "contains a null byte")
    return name


class ProfileStore:
    def __init__(
        self,
        paths: CcmPaths,
        marker: CurrentMarker | None = None,
        projects: ProjectRegistry | None = None,
    ):
        self.paths = paths
        self.marker = marker or CurrentMarker(paths)
        self.projects = projects or ProjectRegistry(paths)

    def path(self, name: str) -> Path:
        return self.paths.profile_path(name)

    def exists(self, name: str) -> bool:
        return self.path(name).is_file()

    def read_text(self, name: str) -> str:
        """Stored document exactly as it is on disk."""
        p = self.path(name)
        if not p.is_file():
            raise ProfileNotFound(name, p)
        return read_text(p)

    def read(self, name: str) -> dict[str, Any]:
        p = self.path(name)
        if not p.is_file():
            raise ProfileNotFound(name, p)
        return load_json_object(p)

    def save(self, name: str, document: dict[str, Any]) -> Path:
        """Write ``document`` as profile ``name``, replacing any existing one."""
        return self.save_text(name, dumps_pretty(document))

    def save_text(self, name: str, content: str, *, exclusive: bool = False) -> Path:
        """
        Store raw JSON text as profile ``name``.

        The text is kept byte-for-byte (so formatting survives a round trip
        through the settings file) but must parse as a JSON object.
        """
        validate_profile_name(name)
        p = self.path(name)
        parse_json_object(content, p)
        if exclusive and p.exists():
            raise ProfileExists(name, p)
        self.paths.ensure_profiles_dir()
        write_text_atomic(p, content)
        logger.info("saved profile %s at %s", name, p)
        return p

    def create(self, name: str, document: dict[str, Any]) -> Path:
        """Like ``save`` but fails with ``ProfileExists`` instead of overwriting."""
        return self.save_text(name, dumps_pretty(document), exclusive=True)

    def names(self) -> list[str]:
        """Profile names, lexicographically sorted."""
        d = self.paths.ensure_profiles_dir()
        names = []
        for entry in d.iterdir():
            if entry.name.startswith("."):
                continue
            if entry.suffix != PROFILE_SUFFIX or not entry.is_file():
                continue
            names.append(entry.stem)
        return sorted(names)

    def list(self, project_dir: Path | None = None) -> list[ProfileEntry]:
        """Profiles annotated with global / project "current" flags."""
        global_current = self.marker.get()
        project_current = self.projects.current_profile(project_dir) if project_dir else None
        return [
            ProfileEntry(
                name=name,
                is_current=name == global_current,
                is_project_current=name == project_current,
            )
            for name in self.names()
        ]

    def remove(self, name: str, project_dir: Path | None = None) -> RemoveOutcome:
        """
        Delete a profile unless it is active.

        Being in use is an expected outcome, not an error, so callers can
        report it and still exit successfully.
        """
        if self.marker.get() == name:
            return RemoveOutcome.IN_USE_GLOBAL
        if project_dir is not None and self.projects.current_profile(project_dir) == name:
            return RemoveOutcome.IN_USE_PROJECT

        p = self.path(name)
        if not p.is_file():
            return RemoveOutcome.NOT_FOUND
        remove_file(p)
        logger.info("removed profile %s", name)
        return RemoveOutcome.REMOVED

    def rename(self, origin: str, new: str) -> Path:
        """
        Rename ``origin`` to ``new`` and carry the global marker along.

        The file rename and the marker update are two steps. If the marker
        cannot be written the rename is rolled back before the error
        propagates. Project mappings are repointed afterwards on a
        best-effort basis.
        """
        validate_profile_name(new)
        origin_path = self.path(origin)
        new_path = self.path(new)
        if not origin_path.is_file():
            raise ProfileNotFound(origin, origin_path)
        if new_path.exists():
            raise ProfileExists(new, new_path)

        was_current = self.marker.get() == origin

        try:
            origin_path.rename(new_path)
        except OSError as e:
            raise IoFailure(f"renaming profile {origin_path} to", new_path, e) from e

        if was_current:
            try:
                self.marker.set(new)
            except CcmError as e:
                logger.error("marker update failed, restoring %s", origin_path)
                try:
                    new_path.rename(origin_path)
                except OSError as restore_error:
                    raise IoFailure(
                        f"restoring profile {new_path} to", origin_path, restore_error
                    ) from e
                raise

        try:
            moved = self.projects.repoint(origin, new)
        except CcmError as e:
            logger.warning("profile renamed but project mappings still reference '%s': %s", origin, e)
        else:
            for mapping in moved:
                logger.info("project %s now uses '%s'", mapping.project_dir, new)

        return new_path
