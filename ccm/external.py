"""
Subprocess shims: launching Claude Code and the user's editor.

Both block until the child exits and inherit the terminal.
"""

from __future__ import annotations

from collections.abc import Sequence
import logging
from pathlib import Path
import shlex
import shutil
import subprocess

from ccm.errors import EditorFailed, LaunchFailed

logger = logging.getLogger(__name__)

FALLBACK_EDITORS = ("vim", "nano", "vi")


def run_program(command: str, args: Sequence[str] = ()) -> int:
    """
    Run ``command`` (which may carry its own arguments) plus ``args``.

    Returns the child's exit status; raises ``LaunchFailed`` if it could
    not be started at all.
    """
    argv = [*shlex.split(command), *args]
    if not argv:
        raise LaunchFailed(command, "empty command")
    logger.debug("running %s", argv)
    try:
        completed = subprocess.run(argv, check=False)
    except FileNotFoundError as e:
        raise LaunchFailed(command, f"make sure '{argv[0]}' is available in PATH") from e
    except OSError as e:
        raise LaunchFailed(command, e.strerror or str(e)) from e
    logger.debug("%s exited with %s", argv[0], completed.returncode)
    return completed.returncode


def detect_editor(configured: str | None = None) -> str:
    """Configured editor, else the first common editor found on PATH."""
    if configured:
        return configured
    for candidate in FALLBACK_EDITORS:
        if shutil.which(candidate):
            return candidate
    return "vi"


def open_in_editor(path: Path, editor: str) -> None:
    exit_code = run_program(editor, [str(path)])
    if exit_code != 0:
        raise EditorFailed(editor, exit_code)
