"""
Interactive prompts for the CLI.

All prompts block until the user answers and return trimmed strings.
"""

from __future__ import annotations

from rich.console import Console, Group
from rich.json import JSON
from rich.panel import Panel
from rich.prompt import Prompt
from rich.text import Text

from ccm.profiles.reconcile import Mismatch, MismatchResolver, SwitchAction

console = Console()


def prompt_input(label: str) -> str:
    return Prompt.ask(label, default="", show_default=False, console=console).strip()


def prompt_password(label: str) -> str:
    return Prompt.ask(
        label, default="", show_default=False, password=True, console=console
    ).strip()


def show_mismatch(mismatch: Mismatch, out: Console | None = None) -> None:
    """Render both documents side by side in one panel."""
    out = out or console
    body = Group(
        Text(f"Current profile '{mismatch.profile_name}' differs from settings.json\n"),
        Text(f"Profile '{mismatch.profile_name}' content:", style="bold cyan"),
        JSON.from_data(mismatch.profile_document, indent=2),
        Text(f"\nsettings.json content ({mismatch.settings_path}):", style="bold cyan"),
        JSON.from_data(mismatch.settings_document, indent=2),
    )
    out.print(Panel(body, title="⚠️  Configuration mismatch detected!", border_style="yellow"))


def prompt_switch_action(out: Console | None = None) -> SwitchAction:
    """Ask how to resolve a mismatch. Anything but 1, 2 or 3 cancels."""
    out = out or console
    out.print("What would you like to do?")
    out.print("  1: Switch directly (ignore the difference)")
    out.print("  2: Update current profile with settings.json, then switch")
    out.print("  3: Cancel switch operation")
    answer = Prompt.ask("\nYour choice [1-3]", default="", show_default=False, console=out)
    try:
        return SwitchAction(int(answer.strip()))
    except ValueError:
        out.print("Invalid choice. Operation cancelled.")
        return SwitchAction.CANCEL


def interactive_resolver(out: Console | None = None) -> MismatchResolver:
    out = out or console

    def resolve(mismatch: Mismatch) -> SwitchAction:
        show_mismatch(mismatch, out)
        action = prompt_switch_action(out)
        if action is SwitchAction.PROCEED:
            out.print("Proceeding with switch...")
        elif action is SwitchAction.ABSORB:
            out.print(
                f"Updating profile '{mismatch.profile_name}' with current settings.json..."
            )
        return action

    return resolve
