"""Token masking and JSON colouring shared by the TUI, demo mode and `ccm show --mask`."""

from __future__ import annotations

import copy
from typing import Any

from rich.json import JSON
from rich.text import Text

MASK = "••••••••••••••••"
MASK_STYLE = "dim red"


def mask_tokens(document: dict[str, Any]) -> dict[str, Any]:
    """Copy of ``document`` with every ``env`` value whose key mentions TOKEN hidden."""
    display = copy.deepcopy(document)
    env = display.get("env")
    if isinstance(env, dict):
        for key in env:
            if "TOKEN" in key:
                env[key] = MASK
    return display


def render_json(json_str: str) -> Text:
    """Highlighted, two-space indented rendering of a JSON document."""
    text = JSON(json_str, indent=2, ensure_ascii=False).text
    text.highlight_words([MASK], style=MASK_STYLE)
    return text


def highlight_json(json_str: str) -> list[Text]:
    """``render_json`` split into one ``Text`` per line."""
    return list(render_json(json_str).split("\n"))
