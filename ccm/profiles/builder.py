"""Build a profile document from prompted answers and --env KEY=VALUE pairs."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class EnvField:
    key: str
    prompt: str
    secret: bool = False
    integer: bool = False


ENV_FIELDS: tuple[EnvField, ...] = (
    EnvField("ANTHROPIC_BASE_URL", "ANTHROPIC_BASE_URL"),
    EnvField("ANTHROPIC_AUTH_TOKEN", "ANTHROPIC_AUTH_TOKEN", secret=True),
    EnvField("ANTHROPIC_MODEL", "ANTHROPIC_MODEL (optional, press Enter to skip)"),
    EnvField(
        "ANTHROPIC_SMALL_FAST_MODEL",
        "ANTHROPIC_SMALL_FAST_MODEL (optional, press Enter to skip)",
    ),
    EnvField("API_TIMEOUT_MS", "API_TIMEOUT_MS (optional, press Enter to skip)"),
    EnvField(
        "CLAUDE_CODE_DISABLE_NONESSENTIAL_TRAFFIC",
        "CLAUDE_CODE_DISABLE_NONESSENTIAL_TRAFFIC (optional int, e.g., 1; press Enter to skip)",
        integer=True,
    ),
)


def parse_env_pairs(pairs: Iterable[str]) -> tuple[dict[str, str], list[str]]:
    """Split KEY=VALUE strings. Returns (parsed, rejected)."""
    parsed: dict[str, str] = {}
    rejected: list[str] = []
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            rejected.append(pair)
            continue
        parsed[key.strip()] = value.strip()
    return parsed, rejected


def build_profile(
    answers: Mapping[str, str], extra_env: Iterable[str] = ()
) -> tuple[dict[str, Any], list[str]]:
    """
    Assemble ``{"env": {...}}`` from answers keyed by variable name.

    Empty answers are skipped. Returns the document and a list of warnings
    for the caller to show.
    """
    warnings: list[str] = []
    env: dict[str, Any] = {}

    for field in ENV_FIELDS:
        value = (answers.get(field.key) or "").strip()
        if not value:
            continue
        if field.integer:
            try:
                env[field.key] = int(value)
            except ValueError:
                warnings.append(
                    f"invalid integer for {field.key}; storing as string."
                )
                env[field.key] = value
        else:
            env[field.key] = value

    parsed, rejected = parse_env_pairs(extra_env)
    for pair in rejected:
        warnings.append(f"ignoring invalid env format '{pair}' (expected KEY=VALUE)")
    env.update(parsed)

    document: dict[str, Any] = {}
    if env:
        document["env"] = env
    return document, warnings
