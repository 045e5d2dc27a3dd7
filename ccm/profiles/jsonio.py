"""
JSON file helpers shared by the profile store and the reconciler.

Writes go to a sibling temp file which then replaces the target, so a failed
write never leaves a truncated document behind.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
import shutil
import tempfile
from typing import Any

from ccm.errors import CorruptJSON, IoFailure
from ccm.paths import ensure_dir

logger = logging.getLogger(__name__)

JSONObject = dict[str, Any]


def read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        raise IoFailure("reading", path, e) from e


def parse_json_object(text: str, path: Path) -> JSONObject:
    """Parse ``text`` (read from ``path``) and require a top-level object."""
    try:
        value = json.loads(text)
    except json.JSONDecodeError as e:
        raise CorruptJSON(path, str(e)) from e
    if not isinstance(value, dict):
        raise CorruptJSON(path, f"top-level value must be an object, got {type(value).__name__}")
    return value


def load_json_object(path: Path) -> JSONObject:
    return parse_json_object(read_text(path), path)


def dumps_pretty(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False)


def write_text_atomic(path: Path, content: str) -> None:
    """
    Write ``content`` to ``path`` via temp file + replace.

    A symlinked ``path`` is written through: the link target is replaced and
    the link itself stays. An existing file keeps its permission bits.
    """
    target = path.resolve()
    ensure_dir(target.parent)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=target.parent)
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        if target.exists():
            shutil.copymode(target, tmp_path)
        tmp_path.replace(target)
    except OSError as e:
        if tmp_path.exists():
            tmp_path.unlink()
        raise IoFailure("writing", path, e) from e
    logger.debug("wrote %s (%d bytes)", path, len(content))


def write_json(path: Path, value: Any) -> None:
    write_text_atomic(path, dumps_pretty(value))


def remove_file(path: Path) -> None:
    try:
        path.unlink()
    except OSError as e:
        raise IoFailure("removing", path, e) from e
    logger.debug("removed %s", path)
