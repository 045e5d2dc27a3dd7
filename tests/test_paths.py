from pathlib import Path

import pytest

from ccm.core import current_project_dir
from ccm.errors import IoFailure
from ccm.paths import (
    CcmPaths,
    default_config_dir,
    ensure_dir,
    project_key,
    project_overlay_path,
)


def test_from_env_uses_overrides(tmp_path: Path):
    paths = CcmPaths.from_env(
        {"CCM_CONFIG_DIR": str(tmp_path / "root"), "CLAUDE_SETTINGS_PATH": str(tmp_path / "s.json")}
    )
    assert paths.root == tmp_path / "root"
    assert paths.settings_path == tmp_path / "s.json"
    assert paths.profiles_dir == tmp_path / "root" / "profiles"
    assert paths.projects_dir == tmp_path / "root" / "projects"
    assert paths.current_marker == tmp_path / "root" / "current"
    assert paths.config_file == tmp_path / "root" / "config.toml"


def test_from_env_defaults_on_linux():
    paths = CcmPaths.from_env({"HOME": "/home/u"}, platform="linux")
    assert paths.root == Path("/home/u/.config/ccm")
    assert paths.settings_path == Path("/home/u/.claude/settings.json")


def test_from_env_prefers_xdg_config_home():
    paths = CcmPaths.from_env({"HOME": "/home/u", "XDG_CONFIG_HOME": "/xdg"}, platform="linux")
    assert paths.root == Path("/xdg/ccm")


def test_from_env_without_home_falls_back_to_cwd():
    paths = CcmPaths.from_env({}, platform="linux")
    assert paths.root == Path("./ccm")
    assert paths.settings_path == Path("./settings.json")


def test_empty_override_is_ignored():
    paths = CcmPaths.from_env({"HOME": "/h", "CCM_CONFIG_DIR": ""}, platform="linux")
    assert paths.root == Path("/h/.config/ccm")


@pytest.mark.parametrize(
    "platform, environ, expected",
    [
        ("darwin", {"HOME": "/Users/u"}, Path("/Users/u/Library/Application Support")),
        ("win32", {"APPDATA": "C:/Users/u/AppData/Roaming"}, Path("C:/Users/u/AppData/Roaming")),
        ("win32", {}, Path(".")),
    ],
)
def test_default_config_dir_per_platform(platform, environ, expected):
    assert default_config_dir(environ, platform) == expected


def test_profile_path_appends_suffix(tmp_path: Path):
    paths = CcmPaths(root=tmp_path, settings_path=tmp_path / "settings.json")
    assert paths.profile_path("work") == tmp_path / "profiles" / "work.json"


def test_project_key_is_stable_and_distinct():
    a = project_key(Path("/repo/a"))
    assert a == project_key(Path("/repo/a"))
    assert a != project_key(Path("/repo/b"))
    assert len(a) == 64


def test_project_mapping_path_lives_in_projects_dir(tmp_path: Path):
    paths = CcmPaths(root=tmp_path, settings_path=tmp_path / "settings.json")
    record = paths.project_mapping_path(Path("/repo/a"))
    assert record.parent == tmp_path / "projects"
    assert record.suffix == ".json"


def test_project_overlay_path():
    assert project_overlay_path(Path("/repo")) == Path("/repo/.claude/settings.local.json")


def test_ensure_dir_is_idempotent(tmp_path: Path):
    target = tmp_path / "a" / "b"
    assert ensure_dir(target) == target
    assert ensure_dir(target) == target
    assert target.is_dir()


def test_ensure_dir_over_a_file_raises_io_failure(tmp_path: Path):
    blocker = tmp_path / "file"
    blocker.write_text("x")
    with pytest.raises(IoFailure) as exc:
        ensure_dir(blocker / "child")
    assert exc.value.path == blocker / "child"


def test_current_project_dir_resolves(tmp_path: Path):
    (tmp_path / "real").mkdir()
    link = tmp_path / "link"
    link.symlink_to(tmp_path / "real")
    assert current_project_dir(link) == (tmp_path / "real").resolve()
    assert current_project_dir() == Path.cwd().resolve()
