import logging
from pathlib import Path

import pytest

from ccm.logging_utils import owned_handlers
from ccm.paths import CcmPaths
from ccm.profiles.reconcile import Reconciler
from ccm.profiles.store import ProfileStore


@pytest.fixture(autouse=True)
def hermetic_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """
    Autouse: each test runs in its own tmp cwd, and every location ccm
    touches (config root, Claude settings, HOME, XDG dirs) stays inside tmp.
    """
    project = tmp_path / "project"
    project.mkdir()
    monkeypatch.chdir(project)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / ".config"))
    monkeypatch.setenv("CCM_CONFIG_DIR", str(tmp_path / "ccm"))
    monkeypatch.setenv("CLAUDE_SETTINGS_PATH", str(tmp_path / "claude" / "settings.json"))
    for var in ("EDITOR", "VISUAL", "CCM_CLAUDE_COMMAND", "CCM_LOG_LEVEL", "CCM_LOG_FILE"):
        monkeypatch.delenv(var, raising=False)
    return tmp_path


@pytest.fixture(autouse=True)
def _reset_ccm_logger():
    """Handlers bound to a CliRunner's captured stderr must not leak into the next test."""
    yield
    logger = logging.getLogger("ccm")
    for handler in owned_handlers(logger):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True


@pytest.fixture
def paths(hermetic_env: Path) -> CcmPaths:
    return CcmPaths.from_env()


@pytest.fixture
def store(paths: CcmPaths) -> ProfileStore:
    return ProfileStore(paths)


@pytest.fixture
def reconciler(paths: CcmPaths, store: ProfileStore) -> Reconciler:
    return Reconciler(paths, store)


@pytest.fixture
def project_dir(hermetic_env: Path) -> Path:
    return (hermetic_env / "project").resolve()


@pytest.fixture
def write_settings(paths: CcmPaths):
    """Write the live Claude settings file."""

    def _write(text: str) -> Path:
        paths.settings_path.parent.mkdir(parents=True, exist_ok=True)
        paths.settings_path.write_text(text, encoding="utf-8")
        return paths.settings_path

    return _write
