"""
Non-terminal fallbacks for the TUI.

``render_demo`` prints a static tour of what the full-screen UI shows;
``run_self_test`` exercises the UI helpers against the real profile store
and reports what it found.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.panel import Panel

from ccm.errors import CcmError
from ccm.profiles.jsonio import dumps_pretty
from ccm.profiles.store import ProfileStore
from ccm.tui.render import highlight_json, mask_tokens, render_json

logger = logging.getLogger(__name__)

KEY_HELP = (
    ("↑/↓ or k/j", "Navigate profiles"),
    ("Enter", "Switch profile (with confirmation)"),
    ("s", "Show profile details (tokens masked)"),
    ("a", "Add profile"),
    ("d", "Delete profile"),
    ("r", "Rename profile"),
    ("i", "Import current Claude settings"),
    ("l", "Launch Claude Code"),
    ("q", "Quit"),
)


def masked_profile_text(store: ProfileStore, name: str) -> str:
    return dumps_pretty(mask_tokens(store.read(name)))


def render_demo(store: ProfileStore, console: Console) -> None:
    console.print(Panel.fit("[bold]Claude Config Manager - TUI Demo[/bold]"))
    names = store.names()
    current = store.marker.get()

    console.print(f"📋 Profiles Found: {len(names)}")
    if current:
        console.print(f"📍 Current Profile: {current}")
    console.print()

    if names:
        sample = names[0]
        console.print(f"📄 Sample Profile: {sample}")
        console.print("─" * 60)
        try:
            console.print(render_json(masked_profile_text(store, sample)))
        except CcmError as e:
            console.print(f"[red]Could not render {sample}: {e}[/red]")
        console.print()

    console.print("🎮 TUI Controls:")
    for keys, description in KEY_HELP:
        console.print(f"   {keys}: {description}")
    console.print()
    console.print("💡 To use the full TUI mode, run in a real terminal: ccm tui")


def run_self_test(store: ProfileStore, console: Console) -> bool:
    """Returns True when every check passed."""
    console.print("=== Testing TUI Components ===")
    ok = True

    console.print("1. Loading profiles...")
    names = store.names()
    console.print(f"   ✓ Found {len(names)} profiles")
    console.print(f"   ✓ Current profile: {store.marker.get()}")

    if names:
        name = names[0]
        console.print(f"2. Testing JSON highlighting for profile: {name}")
        try:
            lines = highlight_json(masked_profile_text(store, name))
        except CcmError as e:
            logger.debug("self-test failed on %s", name, exc_info=True)
            console.print(f"   ✗ {e}")
            ok = False
        else:
            console.print(f"   ✓ Generated {len(lines)} lines of highlighted JSON")
            for i, line in enumerate(lines[:3]):
                console.print(f"   Line {i}: ", line)

    console.print("=== All TUI Components Working ===" if ok else "=== TUI Self-Test Failed ===")
    return ok
