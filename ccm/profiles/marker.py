"""The global "current profile" marker: a plain-text file holding one name."""

from __future__ import annotations

import logging
from pathlib import Path

from ccm.paths import CcmPaths
from ccm.profiles.jsonio import read_text, write_text_atomic

logger = logging.getLogger(__name__)


class CurrentMarker:
    def __init__(self, paths: CcmPaths):
        self.paths = paths

    @property
    def path(self) -> Path:
        return self.paths.current_marker

    def get(self) -> str | None:
        """Name of the globally active profile, or None when nothing is active."""
        if not self.path.exists():
            return None
        name = read_text(self.path).strip()
        return name or None

    def set(self, name: str) -> None:
        self.paths.ensure_root()
        write_text_atomic(self.path, name)
        logger.debug("current profile -> %s", name)
