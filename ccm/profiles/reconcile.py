"""
Reconciliation between stored profiles and the live Claude settings.

Global switch
    The active profile's stored document is compared with the live settings
    file. If they differ, a caller-supplied resolver decides whether to
    proceed anyway, absorb the live settings into the active profile first,
    or cancel. Only then is the target profile copied over the settings file
    and the current marker moved.

Project switch
    The target profile is merged into ``<project>/.claude/settings.local.json``
    (or copied verbatim when that file does not exist) and the project
    mapping is recorded. No mismatch check takes place.

Clearing a project override subtracts the profile's keys from the overlay,
deletes the overlay if nothing is left and always drops the mapping.

Nothing here locks files; a concurrent writer can race the read-compare-write
sequence. Every write replaces the target in one step, so a file is never
left half written.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
import logging
from pathlib import Path
from typing import Any

from ccm.errors import NoActiveProfile, ProfileNotFound, SettingsNotFound
from ccm.paths import CcmPaths, project_overlay_path
from ccm.profiles.jsonio import (
    load_json_object,
    parse_json_object,
    read_text,
    remove_file,
    write_json,
    write_text_atomic,
)
from ccm.profiles.merge import json_equal, merge, subtract_keys
from ccm.profiles.store import ProfileStore, validate_profile_name

logger = logging.getLogger(__name__)


class Scope(Enum):
    GLOBAL = "global"
    PROJECT = "project"


class SwitchAction(Enum):
    PROCEED = 1
    ABSORB = 2
    CANCEL = 3


class SwitchOutcome(Enum):
    SWITCHED = "switched"
    PROFILE_UPDATED = "profile_updated"  # absorbed live settings, then switched
    CANCELLED = "cancelled"


class ClearOutcome(Enum):
    NO_MAPPING = "no_mapping"
    CORRUPTED = "corrupted"
    OVERLAY_REMOVED = "overlay_removed"
    OVERLAY_REDUCED = "overlay_reduced"
    OVERLAY_ABSENT = "overlay_absent"


class SyncOutcome(Enum):
    IN_SYNC = "in_sync"
    UPDATED = "updated"


@dataclass(frozen=True)
class Mismatch:
    """The active profile and the live settings disagree."""

    profile_name: str
    profile_path: Path
    profile_document: dict[str, Any]
    settings_path: Path
    settings_document: dict[str, Any]
    settings_text: str


@dataclass(frozen=True)
class SwitchResult:
    outcome: SwitchOutcome
    profile: str
    scope: Scope
    written: Path | None = None
    absorbed_into: str | None = None
    project_dir: Path | None = None


@dataclass(frozen=True)
class ClearResult:
    outcome: ClearOutcome
    project_dir: Path
    overlay_path: Path
    profile: str | None = None


@dataclass(frozen=True)
class SyncResult:
    outcome: SyncOutcome
    profile: str
    profile_path: Path
    settings_path: Path


MismatchResolver = Callable[[Mismatch], SwitchAction]


def always_proceed(mismatch: Mismatch) -> SwitchAction:
    return SwitchAction.PROCEED


class Reconciler:
    def __init__(self, paths: CcmPaths, store: ProfileStore | None = None):
        self.paths = paths
        self.store = store or ProfileStore(paths)
        self.marker = self.store.marker
        self.projects = self.store.projects

    @property
    def settings_path(self) -> Path:
        return self.paths.settings_path

    def effective_profile(self, project_dir: Path | None = None) -> str | None:
        """Profile in force for ``project_dir``: its mapping if any, else the global one."""
        if project_dir is not None:
            project_profile = self.projects.current_profile(project_dir)
            if project_profile:
                return project_profile
        return self.marker.get()

    def detect_mismatch(self) -> Mismatch | None:
        """
        Compare the active profile with the live settings file.

        Returns None when there is nothing to reconcile: no active profile,
        no settings file, the active profile's file is gone, or both
        documents are structurally equal.
        """
        current = self.marker.get()
        if current is None:
            return None
        if not self.settings_path.exists():
            return None
        profile_path = self.store.path(current)
        if not profile_path.is_file():
            logger.debug("active profile %s has no file at %s", current, profile_path)
            return None

        settings_text = read_text(self.settings_path)
        settings_document = parse_json_object(settings_text, self.settings_path)
        profile_document = load_json_object(profile_path)

        if json_equal(settings_document, profile_document):
            return None

        logger.info("profile %s differs from %s", current, self.settings_path)
        return Mismatch(
            profile_name=current,
            profile_path=profile_path,
            profile_document=profile_document,
            settings_path=self.settings_path,
            settings_document=settings_document,
            settings_text=settings_text,
        )

    def switch(
        self,
        name: str,
        resolve: MismatchResolver = always_proceed,
        project_dir: Path | None = None,
    ) -> SwitchResult:
        """Switch to ``name`` globally, or for ``project_dir`` when given."""
        if project_dir is not None:
            return self.switch_project(name, project_dir)
        return self.switch_global(name, resolve)

    def _load_target(self, name: str) -> tuple[str, dict[str, Any]]:
        text = self.store.read_text(name)
        return text, parse_json_object(text, self.store.path(name))

    def switch_global(self, name: str, resolve: MismatchResolver = always_proceed) -> SwitchResult:
        profile_text, _ = self._load_target(name)

        absorbed_into = None
        mismatch = self.detect_mismatch()
        if mismatch is not None:
            action = resolve(mismatch)
            logger.info("mismatch on %s resolved as %s", mismatch.profile_name, action.name)
            if action is SwitchAction.CANCEL:
                return SwitchResult(SwitchOutcome.CANCELLED, name, Scope.GLOBAL)
            if action is SwitchAction.ABSORB:
                self.store.save_text(mismatch.profile_name, mismatch.settings_text)
                absorbed_into = mismatch.profile_name
                if absorbed_into == name:
                    profile_text = mismatch.settings_text

        write_text_atomic(self.settings_path, profile_text)
        self.marker.set(name)
        logger.info("switched %s to profile %s", self.settings_path, name)

        outcome = SwitchOutcome.PROFILE_UPDATED if absorbed_into else SwitchOutcome.SWITCHED
        return SwitchResult(
            outcome, name, Scope.GLOBAL, written=self.settings_path, absorbed_into=absorbed_into
        )

    def switch_project(self, name: str, project_dir: Path) -> SwitchResult:
        profile_text, profile_document = self._load_target(name)
        overlay = project_overlay_path(project_dir)

        if overlay.exists():
            existing = load_json_object(overlay)
            write_json(overlay, merge(existing, profile_document))
            logger.info("merged profile %s into %s", name, overlay)
        else:
            write_text_atomic(overlay, profile_text)
            logger.info("created %s from profile %s", overlay, name)

        self.projects.set(project_dir, name)
        return SwitchResult(
            SwitchOutcome.SWITCHED, name, Scope.PROJECT, written=overlay, project_dir=project_dir
        )

    def clear_project_override(self, project_dir: Path) -> ClearResult:
        overlay = project_overlay_path(project_dir)
        mapping = self.projects.get(project_dir)
        if mapping is None:
            return ClearResult(ClearOutcome.NO_MAPPING, project_dir, overlay)

        name = mapping.profile
        if not self.store.exists(name):
            logger.warning("project %s maps to missing profile %s", project_dir, name)
            self.projects.remove(project_dir)
            return ClearResult(ClearOutcome.CORRUPTED, project_dir, overlay, name)

        if overlay.exists():
            profile_document = self.store.read(name)
            reduced = subtract_keys(load_json_object(overlay), profile_document)
            if reduced:
                write_json(overlay, reduced)
                outcome = ClearOutcome.OVERLAY_REDUCED
            else:
                remove_file(overlay)
                outcome = ClearOutcome.OVERLAY_REMOVED
        else:
            outcome = ClearOutcome.OVERLAY_ABSENT

        self.projects.remove(project_dir)
        return ClearResult(outcome, project_dir, overlay, name)

    def sync(self) -> SyncResult:
        """Make the active profile match the live settings unconditionally."""
        current = self.marker.get()
        if current is None:
            raise NoActiveProfile()
        if not self.settings_path.exists():
            raise SettingsNotFound(self.settings_path)
        profile_path = self.store.path(current)
        if not profile_path.is_file():
            raise ProfileNotFound(current, profile_path)

        settings_text = read_text(self.settings_path)
        settings_document = parse_json_object(settings_text, self.settings_path)
        if json_equal(settings_document, load_json_object(profile_path)):
            return SyncResult(SyncOutcome.IN_SYNC, current, profile_path, self.settings_path)

        self.store.save_text(current, settings_text)
        return SyncResult(SyncOutcome.UPDATED, current, profile_path, self.settings_path)

    def import_current(self, name: str) -> Path:
        """Save the live settings as new profile ``name`` and make it current."""
        validate_profile_name(name)
        if not self.settings_path.exists():
            raise SettingsNotFound(self.settings_path)
        path = self.store.save_text(name, read_text(self.settings_path), exclusive=True)
        self.marker.set(name)
        return path
