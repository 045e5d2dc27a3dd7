"""Modal dialogs for the ccm TUI."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, Static

from ccm.profiles.builder import ENV_FIELDS
from ccm.profiles.jsonio import dumps_pretty
from ccm.profiles.reconcile import Mismatch, SwitchAction
from ccm.tui.render import mask_tokens, render_json

MODAL_CSS = """
ModalScreen {
    align: center middle;
}

.dialog {
    width: 70%;
    height: auto;
    max-height: 90%;
    border: round $warning;
    background: $surface;
    padding: 1 2;
}

.dialog-title {
    text-style: bold;
    padding-bottom: 1;
}

.buttons {
    height: auto;
    align: center middle;
    padding-top: 1;
}

.buttons Button {
    margin: 0 2;
}

.json-view {
    height: auto;
    max-height: 20;
    border: solid $primary;
}
"""


class ConfirmScreen(ModalScreen[bool]):
    """Yes/No question. y/n or the buttons answer; Esc means no."""

    DEFAULT_CSS = MODAL_CSS

    BINDINGS = [
        Binding("y", "answer(True)", "Yes"),
        Binding("n", "answer(False)", "No"),
        Binding("escape", "answer(False)", "Cancel", show=False),
        Binding("left", "focus_previous", show=False),
        Binding("right", "focus_next", show=False),
    ]

    def __init__(self, title: str, question: str) -> None:
        super().__init__()
        self.title_text = title
        self.question = question

    def compose(self) -> ComposeResult:
        with Vertical(classes="dialog"):
            yield Label(self.title_text, classes="dialog-title")
            yield Static(self.question)
            with Horizontal(classes="buttons"):
                yield Button("Yes", id="yes", variant="primary")
                yield Button("No", id="no")

    def on_mount(self) -> None:
        self.query_one("#yes", Button).focus()

    def action_answer(self, answer: bool) -> None:
        self.dismiss(answer)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(event.button.id == "yes")


class MismatchScreen(ModalScreen[SwitchAction]):
    """Three-way choice shown when the active profile differs from settings.json."""

    DEFAULT_CSS = MODAL_CSS

    BINDINGS = [
        Binding("1", "choose(1)", "Switch anyway"),
        Binding("2", "choose(2)", "Update profile"),
        Binding("3,escape", "choose(3)", "Cancel"),
    ]

    def __init__(self, mismatch: Mismatch, target: str) -> None:
        super().__init__()
        self.mismatch = mismatch
        self.target = target

    def compose(self) -> ComposeResult:
        name = self.mismatch.profile_name
        with Vertical(classes="dialog"):
            yield Label("⚠️  Configuration mismatch detected!", classes="dialog-title")
            yield Static(
                f"Current profile '{name}' differs from settings.json. "
                f"Switching to '{self.target}' will overwrite settings.json."
            )
            yield Label(f"Profile '{name}':")
            with VerticalScroll(classes="json-view"):
                yield Static(render_json(dumps_pretty(mask_tokens(self.mismatch.profile_document))))
            yield Label("settings.json:")
            with VerticalScroll(classes="json-view"):
                yield Static(render_json(dumps_pretty(mask_tokens(self.mismatch.settings_document))))
            with Horizontal(classes="buttons"):
                yield Button("1: Switch anyway", id="action-1", variant="warning")
                yield Button("2: Update profile, then switch", id="action-2", variant="primary")
                yield Button("3: Cancel", id="action-3")

    def action_choose(self, value: int) -> None:
        self.dismiss(SwitchAction(value))

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(SwitchAction(int(event.button.id.removeprefix("action-"))))


class TextInputScreen(ModalScreen[str | None]):
    """Single-line input. Enter submits, Esc cancels (None)."""

    DEFAULT_CSS = MODAL_CSS

    BINDINGS = [Binding("escape", "cancel", "Cancel")]

    def __init__(self, title: str, prompt: str, value: str = "") -> None:
        super().__init__()
        self.title_text = title
        self.prompt = prompt
        self.initial = value

    def compose(self) -> ComposeResult:
        with Vertical(classes="dialog"):
            yield Label(self.title_text, classes="dialog-title")
            yield Label(self.prompt)
            yield Input(value=self.initial, id="value")

    def on_input_submitted(self, event: Input.Submitted) -> None:
        value = event.value.strip()
        if value:
            self.dismiss(value)

    def action_cancel(self) -> None:
        self.dismiss(None)


class AddProfileScreen(ModalScreen[tuple[str, dict[str, str]] | None]):
    """Name plus the standard environment fields; secret fields are masked."""

    DEFAULT_CSS = MODAL_CSS

    BINDINGS = [Binding("escape", "cancel", "Cancel")]

    def compose(self) -> ComposeResult:
        with VerticalScroll(classes="dialog"):
            yield Label("Add Profile", classes="dialog-title")
            yield Label("Profile name")
            yield Input(id="name")
            for field in ENV_FIELDS:
                yield Label(field.prompt)
                yield Input(id=f"env-{field.key}", password=field.secret)
            with Horizontal(classes="buttons"):
                yield Button("Save", id="save", variant="primary")
                yield Button("Cancel", id="cancel")

    def _collect(self) -> tuple[str, dict[str, str]] | None:
        name = self.query_one("#name", Input).value.strip()
        if not name:
            self.notify("Profile name is required", severity="error")
            return None
        answers = {
            field.key: self.query_one(f"#env-{field.key}", Input).value
            for field in ENV_FIELDS
        }
        return name, answers

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "cancel":
            self.dismiss(None)
            return
        result = self._collect()
        if result is not None:
            self.dismiss(result)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        result = self._collect()
        if result is not None:
            self.dismiss(result)

    def action_cancel(self) -> None:
        self.dismiss(None)


class ShowProfileScreen(ModalScreen[None]):
    DEFAULT_CSS = MODAL_CSS

    BINDINGS = [
        Binding("escape", "close", "Close"),
        Binding("enter", "close", "Close", show=False),
    ]

    def __init__(self, name: str, json_text: str) -> None:
        super().__init__()
        self.profile_name = name
        self.json_text = json_text

    def compose(self) -> ComposeResult:
        with Vertical(classes="dialog"):
            yield Label(f"Profile: {self.profile_name}", classes="dialog-title")
            with VerticalScroll(classes="json-view"):
                yield Static(render_json(self.json_text))

    def action_close(self) -> None:
        self.dismiss(None)
