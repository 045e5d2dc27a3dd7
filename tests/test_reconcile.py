import json
import stat

import pytest

from ccm.errors import (
    CorruptJSON,
    InvalidProfileName,
    NoActiveProfile,
    ProfileExists,
    ProfileNotFound,
    SettingsNotFound,
)
from ccm.paths import project_overlay_path
from ccm.profiles.reconcile import (
    ClearOutcome,
    Scope,
    SwitchAction,
    SwitchOutcome,
    SyncOutcome,
)


def _resolver(action, seen=None):
    def resolve(mismatch):
        if seen is not None:
            seen.append(mismatch)
        return action

    return resolve


# ---------------------------------------------------------------------------
# Global switch
# ---------------------------------------------------------------------------


def test_switch_without_settings_copies_profile_verbatim(reconciler, store, paths):
    text = '{"env": {"ANTHROPIC_BASE_URL": "https://x"}}\n'
    store.save_text("work", text)

    result = reconciler.switch("work")

    assert result.outcome is SwitchOutcome.SWITCHED
    assert result.scope is Scope.GLOBAL
    assert result.written == paths.settings_path
    assert paths.settings_path.read_text() == text
    assert store.marker.get() == "work"


def test_switch_missing_profile_writes_nothing(reconciler, paths):
    with pytest.raises(ProfileNotFound):
        reconciler.switch("ghost")
    assert not paths.settings_path.exists()
    assert reconciler.marker.get() is None


def test_switch_corrupt_profile_writes_nothing(reconciler, store, paths, write_settings):
    store.paths.ensure_profiles_dir()
    store.path("broken").write_text("{oops")
    write_settings('{"keep": true}')

    with pytest.raises(CorruptJSON):
        reconciler.switch("broken")
    assert paths.settings_path.read_text() == '{"keep": true}'


def test_switch_in_sync_does_not_consult_resolver(reconciler, store, write_settings):
    store.save_text("work", '{"env": {"A": "1"}}')
    store.save_text("play", '{"env": {"A": "2"}}')
    store.marker.set("work")
    write_settings('{\n  "env": {"A": "1"}\n}')

    seen = []
    result = reconciler.switch("play", _resolver(SwitchAction.CANCEL, seen))

    assert seen == []
    assert result.outcome is SwitchOutcome.SWITCHED
    assert store.marker.get() == "play"


def test_mismatch_absorb_updates_active_profile_then_switches(
    reconciler, store, paths, write_settings
):
    store.save("work", {"env": {"FOO": "2"}})
    store.save("play", {"env": {"BAR": "x"}})
    store.marker.set("work")
    write_settings('{"env":{"FOO":"1"}}')

    seen = []
    result = reconciler.switch("play", _resolver(SwitchAction.ABSORB, seen))

    assert len(seen) == 1
    assert seen[0].profile_name == "work"
    assert seen[0].profile_document == {"env": {"FOO": "2"}}
    assert seen[0].settings_document == {"env": {"FOO": "1"}}

    assert result.outcome is SwitchOutcome.PROFILE_UPDATED
    assert result.absorbed_into == "work"
    assert store.read("work") == {"env": {"FOO": "1"}}
    assert json.loads(paths.settings_path.read_text()) == {"env": {"BAR": "x"}}
    assert store.marker.get() == "play"


def test_mismatch_proceed_leaves_active_profile_untouched(reconciler, store, paths, write_settings):
    store.save("work", {"env": {"FOO": "2"}})
    store.save("play", {"env": {"BAR": "x"}})
    store.marker.set("work")
    write_settings('{"env":{"FOO":"1"}}')

    result = reconciler.switch("play", _resolver(SwitchAction.PROCEED))

    assert result.outcome is SwitchOutcome.SWITCHED
    assert store.read("work") == {"env": {"FOO": "2"}}
    assert json.loads(paths.settings_path.read_text()) == {"env": {"BAR": "x"}}


def test_mismatch_cancel_changes_nothing(reconciler, store, paths, write_settings):
    store.save("work", {"env": {"FOO": "2"}})
    store.save("play", {"env": {"BAR": "x"}})
    store.marker.set("work")
    write_settings('{"env":{"FOO":"1"}}')

    result = reconciler.switch("play", _resolver(SwitchAction.CANCEL))

    assert result.outcome is SwitchOutcome.CANCELLED
    assert store.read("work") == {"env": {"FOO": "2"}}
    assert paths.settings_path.read_text() == '{"env":{"FOO":"1"}}'
    assert store.marker.get() == "work"


def test_absorb_into_target_switches_to_absorbed_content(reconciler, store, paths, write_settings):
    store.save("work", {"env": {"FOO": "2"}})
    store.marker.set("work")
    write_settings('{"env":{"FOO":"1"}}')

    reconciler.switch("work", _resolver(SwitchAction.ABSORB))

    assert store.read("work") == {"env": {"FOO": "1"}}
    assert paths.settings_path.read_text() == '{"env":{"FOO":"1"}}'


def test_type_difference_is_a_mismatch(reconciler, store, write_settings):
    store.save("work", {"env": {"FLAG": 1}})
    store.marker.set("work")
    write_settings('{"env": {"FLAG": true}}')

    assert reconciler.detect_mismatch() is not None


@pytest.mark.parametrize("setup", ["no_marker", "no_settings", "no_profile_file"])
def test_detect_mismatch_none_when_nothing_to_compare(reconciler, store, write_settings, setup):
    store.save("work", {"a": 1})
    if setup != "no_marker":
        store.marker.set("work" if setup != "no_profile_file" else "deleted")
    if setup != "no_settings":
        write_settings('{"a": 2}')

    assert reconciler.detect_mismatch() is None


def test_corrupt_settings_aborts_switch(reconciler, store, write_settings):
    store.save("work", {"a": 1})
    store.save("play", {"b": 1})
    store.marker.set("work")
    write_settings("not json")

    with pytest.raises(CorruptJSON):
        reconciler.switch("play")
    assert store.marker.get() == "work"


# ---------------------------------------------------------------------------
# Project scope
# ---------------------------------------------------------------------------


def test_project_switch_creates_overlay(reconciler, store, project_dir, paths):
    text = '{"env": {"A": "1"}}'
    store.save_text("work", text)

    result = reconciler.switch("work", project_dir=project_dir)

    overlay = project_overlay_path(project_dir)
    assert result.scope is Scope.PROJECT
    assert result.written == overlay
    assert overlay.read_text() == text
    assert store.projects.current_profile(project_dir) == "work"
    assert not paths.settings_path.exists()
    assert store.marker.get() is None


def test_project_switch_merges_into_existing_overlay(reconciler, store, project_dir):
    overlay = project_overlay_path(project_dir)
    overlay.parent.mkdir()
    overlay.write_text(json.dumps({"permissions": {"allow": ["Bash"]}, "env": {"KEEP": "k"}}))
    store.save("work", {"env": {"A": "1"}})

    reconciler.switch("work", project_dir=project_dir)

    assert json.loads(overlay.read_text()) == {
        "permissions": {"allow": ["Bash"]},
        "env": {"KEEP": "k", "A": "1"},
    }


def test_project_switch_skips_mismatch_check(reconciler, store, project_dir, write_settings):
    store.save("work", {"a": 1})
    store.marker.set("work")
    write_settings('{"a": 2}')

    seen = []
    reconciler.switch("work", _resolver(SwitchAction.CANCEL, seen), project_dir=project_dir)
    assert seen == []


def test_effective_profile_prefers_project(reconciler, store, project_dir):
    assert reconciler.effective_profile(project_dir) is None
    store.marker.set("global")
    assert reconciler.effective_profile(project_dir) == "global"
    store.projects.set(project_dir, "local")
    assert reconciler.effective_profile(project_dir) == "local"
    assert reconciler.effective_profile() == "global"


def test_clear_without_mapping_creates_nothing(reconciler, project_dir, hermetic_env):
    before = sorted(hermetic_env.rglob("*"))

    result = reconciler.clear_project_override(project_dir)

    assert result.outcome is ClearOutcome.NO_MAPPING
    assert sorted(hermetic_env.rglob("*")) == before
    assert not reconciler.paths.projects_dir.exists()
    assert not project_overlay_path(project_dir).parent.exists()


def test_clear_removes_overlay_created_by_switch(reconciler, store, project_dir):
    store.save("work", {"env": {"A": "1"}})
    reconciler.switch("work", project_dir=project_dir)

    result = reconciler.clear_project_override(project_dir)

    assert result.outcome is ClearOutcome.OVERLAY_REMOVED
    assert result.profile == "work"
    assert not project_overlay_path(project_dir).exists()
    assert store.projects.get(project_dir) is None


def test_clear_keeps_unrelated_overlay_keys(reconciler, store, project_dir):
    overlay = project_overlay_path(project_dir)
    overlay.parent.mkdir()
    overlay.write_text(json.dumps({"permissions": {"allow": ["Bash"]}}))
    store.save("work", {"env": {"A": "1"}})
    reconciler.switch("work", project_dir=project_dir)

    result = reconciler.clear_project_override(project_dir)

    assert result.outcome is ClearOutcome.OVERLAY_REDUCED
    assert json.loads(overlay.read_text()) == {"permissions": {"allow": ["Bash"]}}


def test_clear_when_overlay_already_gone(reconciler, store, project_dir):
    store.save("work", {"a": 1})
    reconciler.switch("work", project_dir=project_dir)
    project_overlay_path(project_dir).unlink()

    result = reconciler.clear_project_override(project_dir)

    assert result.outcome is ClearOutcome.OVERLAY_ABSENT
    assert store.projects.get(project_dir) is None


def test_clear_with_deleted_profile_reports_corruption(reconciler, store, project_dir):
    store.save("work", {"a": 1})
    reconciler.switch("work", project_dir=project_dir)
    store.path("work").unlink()

    result = reconciler.clear_project_override(project_dir)

    assert result.outcome is ClearOutcome.CORRUPTED
    assert result.profile == "work"
    assert project_overlay_path(project_dir).exists()
    assert store.projects.get(project_dir) is None


# ---------------------------------------------------------------------------
# Sync and import
# ---------------------------------------------------------------------------


def test_sync_updates_profile_from_settings(reconciler, store, write_settings):
    store.save("work", {"a": 1})
    store.marker.set("work")
    write_settings('{"a": 2}')

    result = reconciler.sync()

    assert result.outcome is SyncOutcome.UPDATED
    assert store.read_text("work") == '{"a": 2}'


def test_sync_in_sync(reconciler, store, write_settings):
    store.save("work", {"a": 1})
    store.marker.set("work")
    write_settings('{"a": 1}')

    assert reconciler.sync().outcome is SyncOutcome.IN_SYNC


def test_sync_errors(reconciler, store, write_settings):
    with pytest.raises(NoActiveProfile):
        reconciler.sync()

    store.marker.set("work")
    with pytest.raises(SettingsNotFound):
        reconciler.sync()

    write_settings("{}")
    with pytest.raises(ProfileNotFound):
        reconciler.sync()


def test_import_current(reconciler, store, write_settings):
    write_settings('{"env": {"A": "1"}}')

    path = reconciler.import_current("imported")

    assert path == store.path("imported")
    assert store.read_text("imported") == '{"env": {"A": "1"}}'
    assert store.marker.get() == "imported"


def test_import_current_errors(reconciler, store, write_settings):
    with pytest.raises(SettingsNotFound):
        reconciler.import_current("x")

    write_settings("{}")
    store.save("taken", {})
    with pytest.raises(ProfileExists):
        reconciler.import_current("taken")
    with pytest.raises(InvalidProfileName):
        reconciler.import_current("a/b")
    assert store.marker.get() is None


def test_switch_writes_through_symlinked_settings(reconciler, store, paths, tmp_path):
    store.save_text("play", '{"a": 1}')
    dotfile = tmp_path / "dotfiles" / "settings.json"
    dotfile.parent.mkdir()
    dotfile.write_text('{"a": 0}')
    dotfile.chmod(0o644)
    paths.settings_path.parent.mkdir(parents=True)
    paths.settings_path.symlink_to(dotfile)

    reconciler.switch("play")

    assert paths.settings_path.is_symlink()
    assert dotfile.read_text() == '{"a": 1}'
    assert stat.S_IMODE(dotfile.stat().st_mode) == 0o644
