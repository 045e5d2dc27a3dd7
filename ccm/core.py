from pathlib import Path

CCM_VERSION = "0.6.0"

# Name of the executable that `ccm run` launches unless configured otherwise.
DEFAULT_CLAUDE_COMMAND = "claude"


def current_project_dir(start: Path | None = None) -> Path:
    """
    Return the absolute, resolved project directory.

    Project-scoped profiles are keyed by this path, so it must be stable for a
    given directory no matter how it was reached (symlinks, relative paths).
    """
    if start is None:
        start = Path.cwd()
    return Path(start).expanduser().resolve()
