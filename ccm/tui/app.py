"""
ccm TUI - full-screen profile manager.

Launch with: ccm tui

Navigation:
    ↑/↓, k/j  - move through profiles
    Enter     - switch to the selected profile
    s         - show the profile (tokens masked)
    a / d / r - add / delete / rename
    i         - import current Claude settings as a new profile
    l         - launch Claude Code
    q         - quit
"""

from __future__ import annotations

import logging
from pathlib import Path
import sys

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, VerticalScroll
from textual.widgets import Footer, Header, Label, ListItem, ListView, Static

from ccm.errors import CcmError
from ccm.external import run_program
from ccm.profiles.builder import build_profile
from ccm.profiles.reconcile import Reconciler, SwitchAction, SwitchOutcome
from ccm.profiles.store import ProfileEntry, RemoveOutcome
from ccm.settings import CcmSettings
from ccm.tui.demo import masked_profile_text
from ccm.tui.render import render_json
from ccm.tui.screens import (
    AddProfileScreen,
    ConfirmScreen,
    MismatchScreen,
    ShowProfileScreen,
    TextInputScreen,
)

logger = logging.getLogger(__name__)

# Seconds between re-reads of the profile directory, to pick up changes
# made by the CLI in another terminal.
POLL_INTERVAL = 1.0


class ProfileItem(ListItem):
    def __init__(self, entry: ProfileEntry) -> None:
        super().__init__(Label(entry.label))
        self.entry = entry


class CcmTUI(App):
    """Main TUI application."""

    TITLE = "Claude Config Manager"
    SUB_TITLE = "Profiles for Claude Code"

    CSS = """
    #main {
        height: 1fr;
    }

    #profiles {
        width: 1fr;
        border: round $primary;
    }

    #details-pane {
        width: 2fr;
        border: round $secondary;
        padding: 0 1;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("j", "cursor_down", "Down", show=False),
        Binding("k", "cursor_up", "Up", show=False),
        Binding("s", "show", "Show"),
        Binding("a", "add", "Add"),
        Binding("d", "delete", "Delete"),
        Binding("r", "rename", "Rename"),
        Binding("i", "import_current", "Import"),
        Binding("l", "launch", "Launch"),
    ]

    def __init__(self, reconciler: Reconciler, settings: CcmSettings, project_dir: Path) -> None:
        super().__init__()
        self.reconciler = reconciler
        self.store = reconciler.store
        self.settings = settings
        self.project_dir = project_dir
        self._entries: list[ProfileEntry] = []

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="main"):
            yield ListView(id="profiles")
            with VerticalScroll(id="details-pane"):
                yield Static(id="details")
        yield Footer()

    async def on_mount(self) -> None:
        await self.refresh_profiles()
        self.set_interval(POLL_INTERVAL, self.refresh_profiles)
        self.query_one("#profiles", ListView).focus()

    # -- state -----------------------------------------------------------

    @property
    def profile_list(self) -> ListView:
        return self.query_one("#profiles", ListView)

    def selected_name(self) -> str | None:
        item = self.profile_list.highlighted_child
        if isinstance(item, ProfileItem):
            return item.entry.name
        return None

    async def refresh_profiles(self) -> None:
        try:
            entries = self.store.list(self.project_dir)
        except CcmError as e:
            self.notify(str(e), severity="error")
            return
        if entries == self._entries:
            return

        selected = self.selected_name()
        self._entries = entries
        view = self.profile_list
        await view.clear()
        await view.extend(ProfileItem(entry) for entry in entries)

        names = [entry.name for entry in entries]
        if names:
            view.index = names.index(selected) if selected in names else 0
        self.update_details()

    def update_details(self) -> None:
        details = self.query_one("#details", Static)
        name = self.selected_name()
        if name is None:
            details.update("No profiles yet. Press 'a' to add one or 'i' to import.")
            return
        try:
            details.update(render_json(masked_profile_text(self.store, name)))
        except CcmError as e:
            details.update(f"[red]{e}[/red]")

    def on_list_view_highlighted(self, event: ListView.Highlighted) -> None:
        self.update_details()

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        self.action_switch()

    # -- actions ---------------------------------------------------------

    def action_cursor_down(self) -> None:
        self.profile_list.action_cursor_down()

    def action_cursor_up(self) -> None:
        self.profile_list.action_cursor_up()

    def action_switch(self) -> None:
        name = self.selected_name()
        if name is None:
            return
        if name == self.store.marker.get():
            self.notify(f"Already using profile '{name}'")
            return

        def confirmed(answer: bool | None) -> None:
            if answer:
                self._switch_checked(name)

        self.push_screen(ConfirmScreen("Confirm Switch", f"Switch to profile '{name}'?"), confirmed)

    def _switch_checked(self, name: str) -> None:
        try:
            mismatch = self.reconciler.detect_mismatch()
        except CcmError as e:
            self.notify(f"Failed to switch profile: {e}", severity="error")
            return
        if mismatch is None:
            self._switch(name, SwitchAction.PROCEED)
            return

        def chosen(action: SwitchAction | None) -> None:
            self._switch(name, action or SwitchAction.CANCEL)

        self.push_screen(MismatchScreen(mismatch, name), chosen)

    def _switch(self, name: str, action: SwitchAction) -> None:
        try:
            result = self.reconciler.switch_global(name, resolve=lambda _: action)
        except CcmError as e:
            self.notify(f"Failed to switch profile: {e}", severity="error")
            return
        if result.outcome is SwitchOutcome.CANCELLED:
            self.notify("Switch operation cancelled.")
        elif result.outcome is SwitchOutcome.PROFILE_UPDATED:
            self.notify(f"Updated profile '{result.absorbed_into}', switched to '{name}'")
        else:
            self.notify(f"Switched to profile '{name}'")
        self.call_later(self.refresh_profiles)

    def action_show(self) -> None:
        name = self.selected_name()
        if name is None:
            return
        try:
            text = masked_profile_text(self.store, name)
        except CcmError as e:
            self.notify(str(e), severity="error")
            return
        self.push_screen(ShowProfileScreen(name, text))

    def action_add(self) -> None:
        def added(result: tuple[str, dict[str, str]] | None) -> None:
            if result is None:
                return
            name, answers = result
            document, warnings = build_profile(answers)
            for warning in warnings:
                self.notify(f"Warning: {warning}", severity="warning")
            try:
                self.store.save(name, document)
            except CcmError as e:
                self.notify(f"Failed to add profile: {e}", severity="error")
                return
            self.notify(f"Profile '{name}' added successfully")
            self.call_later(self.refresh_profiles)

        self.push_screen(AddProfileScreen(), added)

    def action_delete(self) -> None:
        name = self.selected_name()
        if name is None:
            return

        def confirmed(answer: bool | None) -> None:
            if not answer:
                return
            try:
                outcome = self.store.remove(name, self.project_dir)
            except CcmError as e:
                self.notify(f"Failed to delete profile: {e}", severity="error")
                return
            messages = {
                RemoveOutcome.REMOVED: f"Profile '{name}' deleted",
                RemoveOutcome.NOT_FOUND: f"Profile '{name}' does not exist",
                RemoveOutcome.IN_USE_GLOBAL: f"Cannot delete '{name}': it is the active profile",
                RemoveOutcome.IN_USE_PROJECT: f"Cannot delete '{name}': it is active for this project",
            }
            severity = "information" if outcome is RemoveOutcome.REMOVED else "warning"
            self.notify(messages[outcome], severity=severity)
            self.call_later(self.refresh_profiles)

        self.push_screen(ConfirmScreen("Confirm Delete", f"Delete profile '{name}'? (y/n)"), confirmed)

    def action_rename(self) -> None:
        name = self.selected_name()
        if name is None:
            return

        def renamed(new_name: str | None) -> None:
            if not new_name:
                return
            try:
                self.store.rename(name, new_name)
            except CcmError as e:
                self.notify(f"Failed to rename profile: {e}", severity="error")
                return
            self.notify(f"Profile renamed to '{new_name}'")
            self.call_later(self.refresh_profiles)

        self.push_screen(TextInputScreen("Rename Profile", f"New name for '{name}':", name), renamed)

    def action_import_current(self) -> None:
        def imported(new_name: str | None) -> None:
            if not new_name:
                return
            try:
                self.reconciler.import_current(new_name)
            except CcmError as e:
                self.notify(f"Failed to import settings: {e}", severity="error")
                return
            self.notify(f"Imported current settings as '{new_name}'")
            self.call_later(self.refresh_profiles)

        self.push_screen(
            TextInputScreen("Import Current Settings", "Name for the new profile:"), imported
        )

    def action_launch(self) -> None:
        if self.reconciler.effective_profile(self.project_dir) is None:
            self.notify("No profile is currently active", severity="error")
            return
        try:
            with self.suspend():
                exit_code = run_program(self.settings.launch.command)
        except CcmError as e:
            self.notify(f"Failed to launch Claude Code: {e}", severity="error")
            return
        self.notify(f"Claude Code exited with: {exit_code}")


def run_tui(reconciler: Reconciler, settings: CcmSettings, project_dir: Path) -> None:
    """Launch the TUI. Requires an interactive terminal."""
    if not (sys.stdin.isatty() and sys.stdout.isatty()):
        raise CcmError(
            "TUI mode requires a terminal. Run it in a real terminal, "
            "or use 'ccm tui --demo' to preview it."
        )
    CcmTUI(reconciler, settings, project_dir).run()
