"""
Error hierarchy for ccm.

Every error carries enough context (profile name, path) to act on without
re-running with verbose output. The CLI catches ``CcmError`` at the command
boundary and turns it into ``Error: <message>`` on stderr.
"""

from __future__ import annotations

from pathlib import Path


class CcmError(Exception):
    """Base class for all ccm failures."""


class NotFoundError(CcmError):
    """A profile or file that the operation needs does not exist."""


class ProfileNotFound(NotFoundError):
    def __init__(self, name: str, path: Path | None = None):
        self.name = name
        self.path = path
        msg = f"Profile '{name}' does not exist"
        if path is not None:
            msg += f" (expected at {path})"
        super().__init__(msg)


class SettingsNotFound(NotFoundError):
    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"No Claude settings found at {path}")


class ProfileExists(CcmError):
    def __init__(self, name: str, path: Path | None = None):
        self.name = name
        self.path = path
        msg = f"Profile '{name}' already exists"
        if path is not None:
            msg += f" at {path}"
        super().__init__(msg)


class CorruptJSON(CcmError):
    """File content is not a valid JSON document of the required shape."""

    def __init__(self, path: Path, detail: str):
        self.path = path
        self.detail = detail
        super().__init__(f"Invalid JSON in {path}: {detail}")


class LaunchFailed(CcmError):
    def __init__(self, command: str, detail: str):
        self.command = command
        self.detail = detail
        super().__init__(f"Failed to launch '{command}': {detail}")


class EditorFailed(CcmError):
    def __init__(self, editor: str, exit_code: int | None):
        self.editor = editor
        self.exit_code = exit_code
        super().__init__(f"Editor '{editor}' exited with error code: {exit_code}")


class IoFailure(CcmError):
    """Wraps an ``OSError`` with the operation and offending path."""

    def __init__(self, operation: str, path: Path, cause: OSError | None = None):
        self.operation = operation
        self.path = path
        self.cause = cause
        msg = f"{operation} {path}"
        if cause is not None:
            msg += f": {cause.strerror or cause}"
        super().__init__(msg)


class InvalidProfileName(CcmError):
    def __init__(self, name: str, reason: str):
        self.name = name
        self.reason = reason
        super().__init__(f"Invalid profile name '{name}': {reason}")


class NoActiveProfile(CcmError):
    def __init__(self, hint: str = "ccm switch <profile_name>"):
        super().__init__(
            "No profile is currently active.\n"
            f"Please switch to a profile first using: {hint}"
        )


class ConfigError(CcmError):
    def __init__(self, path: Path, detail: str):
        self.path = path
        super().__init__(f"Invalid ccm config {path}: {detail}")
