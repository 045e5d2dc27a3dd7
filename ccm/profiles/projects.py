"""
Project directory -> profile mappings.

One record per project, stored at ``projects/<sha256-of-path>.json`` as
``{"profile": <name>, "path": <absolute project path>}``. The referenced
profile is not checked on write; a mapping may outlive its profile and is
then reported as corrupted by the reconciler.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path

from ccm.errors import CcmError, CorruptJSON
from ccm.paths import CcmPaths, PROFILE_SUFFIX
from ccm.profiles.jsonio import load_json_object, remove_file, write_json

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProjectMapping:
    profile: str
    project_dir: Path
    record_path: Path


class ProjectRegistry:
    def __init__(self, paths: CcmPaths):
        self.paths = paths

    def _load(self, record_path: Path) -> ProjectMapping:
        data = load_json_object(record_path)
        profile = data.get("profile")
        stored_path = data.get("path")
        if not isinstance(profile, str) or not profile:
            raise CorruptJSON(record_path, "missing 'profile' name")
        if not isinstance(stored_path, str) or not stored_path:
            raise CorruptJSON(record_path, "missing project 'path'")
        return ProjectMapping(profile=profile, project_dir=Path(stored_path), record_path=record_path)

    def get(self, project_dir: Path) -> ProjectMapping | None:
        """Mapping for ``project_dir`` (absolute, resolved), if any."""
        record_path = self.paths.project_mapping_path(project_dir)
        if not record_path.exists():
            return None
        mapping = self._load(record_path)
        if mapping.project_dir != Path(project_dir):
            logger.warning(
                "ignoring %s: recorded for %s, not %s",
                record_path,
                mapping.project_dir,
                project_dir,
            )
            return None
        return mapping

    def current_profile(self, project_dir: Path) -> str | None:
        mapping = self.get(project_dir)
        return mapping.profile if mapping else None

    def set(self, project_dir: Path, name: str) -> ProjectMapping:
        self.paths.ensure_projects_dir()
        record_path = self.paths.project_mapping_path(project_dir)
        write_json(record_path, {"profile": name, "path": str(project_dir)})
        logger.debug("project %s -> %s (%s)", project_dir, name, record_path)
        return ProjectMapping(profile=name, project_dir=Path(project_dir), record_path=record_path)

    def remove(self, project_dir: Path) -> bool:
        record_path = self.paths.project_mapping_path(project_dir)
        if not record_path.exists():
            return False
        remove_file(record_path)
        return True

    def all(self) -> list[ProjectMapping]:
        """Every readable mapping, sorted by project path. Unreadable records are skipped."""
        if not self.paths.projects_dir.is_dir():
            return []
        mappings = []
        for record_path in sorted(self.paths.projects_dir.glob(f"*{PROFILE_SUFFIX}")):
            try:
                mappings.append(self._load(record_path))
            except CcmError as e:
                logger.warning("skipping project mapping %s: %s", record_path, e)
        return sorted(mappings, key=lambda m: str(m.project_dir))

    def repoint(self, old_name: str, new_name: str) -> list[ProjectMapping]:
        """Rewrite every mapping that references ``old_name``."""
        updated = []
        for mapping in self.all():
            if mapping.profile == old_name:
                updated.append(self.set(mapping.project_dir, new_name))
        return updated
