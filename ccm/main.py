#!/usr/bin/env python3
"""ccm - Claude config manager.

Manage multiple Claude Code configurations (profiles), switch between them
globally or per project, and launch Claude Code with the active one.

Commands:
    add, list (ls), show, remove (rm), rename, edit
    switch (swc) [--project]    - activate a profile
    sync                        - copy live settings back into the active profile
    import (import-current)     - save live settings as a new profile
    clear-project-override      - undo a project-scoped switch
    projects                    - list project-scoped profiles
    run                         - launch Claude Code
    tui (ui)                    - full-screen interface
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
import logging

from rich.console import Console
from rich.markup import escape
import typer

from ccm.core import CCM_VERSION, current_project_dir
from ccm.errors import CcmError, CorruptJSON, NoActiveProfile, ProfileNotFound
from ccm.external import detect_editor, open_in_editor, run_program
from ccm.logging_utils import setup_logging
from ccm.paths import CcmPaths
from ccm import prompts
from ccm.profiles.builder import ENV_FIELDS, build_profile
from ccm.profiles.jsonio import dumps_pretty
from ccm.profiles.reconcile import (
    ClearOutcome,
    MismatchResolver,
    Reconciler,
    Scope,
    SwitchAction,
    SwitchOutcome,
    SyncOutcome,
)
from ccm.profiles.store import ProfileStore, RemoveOutcome, validate_profile_name
from ccm.settings import CcmSettings

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="ccm",
    help="Manage multiple Claude Code configurations (profiles) and switch/launch.",
    add_completion=False,
    no_args_is_help=True,
)
console = Console(soft_wrap=True, highlight=False)


@dataclass
class AppState:
    paths: CcmPaths
    settings: CcmSettings
    store: ProfileStore
    reconciler: Reconciler


@contextmanager
def _cli_errors() -> Iterator[None]:
    """Turn ccm errors into `Error: ...` on stderr and exit status 1."""
    try:
        yield
    except CcmError as e:
        logger.debug("command failed", exc_info=True)
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


def _state(ctx: typer.Context) -> AppState:
    return ctx.obj


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"ccm {CCM_VERSION}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Debug logging to stderr"),
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show version"
    ),
) -> None:
    paths = CcmPaths.from_env()
    with _cli_errors():
        settings = CcmSettings.load(paths.config_file)
    setup_logging("DEBUG" if verbose else settings.logging.level, settings.logging.file)
    store = ProfileStore(paths)
    ctx.obj = AppState(
        paths=paths, settings=settings, store=store, reconciler=Reconciler(paths, store)
    )


# ============================================================================
# Profile CRUD
# ============================================================================


@app.command("add")
def add(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Profile name"),
    env: list[str] = typer.Option(
        [], "--env", help="Additional environment variable KEY=VALUE (repeatable)"
    ),
    base_url: str = typer.Option(None, "--base-url", help="ANTHROPIC_BASE_URL"),
    auth_token: str = typer.Option(None, "--auth-token", help="ANTHROPIC_AUTH_TOKEN"),
    model: str = typer.Option(None, "--model", help="ANTHROPIC_MODEL"),
    small_fast_model: str = typer.Option(
        None, "--small-fast-model", help="ANTHROPIC_SMALL_FAST_MODEL"
    ),
    timeout_ms: str = typer.Option(None, "--timeout-ms", help="API_TIMEOUT_MS"),
    disable_nonessential_traffic: str = typer.Option(
        None,
        "--disable-nonessential-traffic",
        help="CLAUDE_CODE_DISABLE_NONESSENTIAL_TRAFFIC (integer, e.g. 1)",
    ),
    no_input: bool = typer.Option(
        False, "--no-input", help="Do not prompt for values not given as options"
    ),
) -> None:
    """
    Add a profile, prompting for the common ANTHROPIC_* variables.

    The auth token is read without echo. Optional values are skipped on
    empty input. Use --env for any other environment variables.
    """
    state = _state(ctx)
    given = {
        "ANTHROPIC_BASE_URL": base_url,
        "ANTHROPIC_AUTH_TOKEN": auth_token,
        "ANTHROPIC_MODEL": model,
        "ANTHROPIC_SMALL_FAST_MODEL": small_fast_model,
        "API_TIMEOUT_MS": timeout_ms,
        "CLAUDE_CODE_DISABLE_NONESSENTIAL_TRAFFIC": disable_nonessential_traffic,
    }

    with _cli_errors():
        validate_profile_name(name)
        if state.store.exists(name):
            console.print(f"Profile '{escape(name)}' exists and will be overwritten.")

        answers: dict[str, str] = {}
        missing = [field for field in ENV_FIELDS if given[field.key] is None]
        if missing and not no_input:
            console.print(
                f"Adding profile '{escape(name)}' - please answer the following questions:"
            )
        for field in ENV_FIELDS:
            if given[field.key] is not None:
                answers[field.key] = given[field.key]
            elif not no_input:
                ask = prompts.prompt_password if field.secret else prompts.prompt_input
                answers[field.key] = ask(field.prompt)

        document, warnings = build_profile(answers, env)
        for warning in warnings:
            console.print(f"[yellow]Warning:[/yellow] {escape(warning)}")

        path = state.store.save(name, document)
    console.print(f"✓ Profile '{escape(name)}' created successfully at {path}")


@app.command("list")
def list_profiles(ctx: typer.Context) -> None:
    """List saved profiles (marks the current global and project profile)."""
    state = _state(ctx)
    with _cli_errors():
        entries = state.store.list(current_project_dir())
    console.print(f"Profiles in {state.paths.profiles_dir}:")
    for entry in entries:
        console.print(f" - {escape(entry.label)}")


@app.command("show")
def show(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Profile name"),
    mask: bool = typer.Option(False, "--mask", help="Hide token values"),
) -> None:
    """Show profile content."""
    from ccm.tui.render import mask_tokens

    state = _state(ctx)
    with _cli_errors():
        if mask:
            typer.echo(dumps_pretty(mask_tokens(state.store.read(name))))
        else:
            typer.echo(state.store.read_text(name))


@app.command("remove")
def remove(ctx: typer.Context, name: str = typer.Argument(..., help="Profile name")) -> None:
    """Remove a profile (refused while it is active)."""
    state = _state(ctx)
    with _cli_errors():
        outcome = state.store.remove(name, current_project_dir())

    if outcome is RemoveOutcome.IN_USE_GLOBAL:
        console.print(
            f"Cannot remove profile '{escape(name)}' because it is currently active (global)."
        )
        console.print("Please switch to a different profile first using: ccm switch <profile_name>")
    elif outcome is RemoveOutcome.IN_USE_PROJECT:
        console.print(
            f"Cannot remove profile '{escape(name)}' because it is currently active for this project."
        )
        console.print(
            "Please switch to a different profile first using: ccm switch -p <profile_name>"
        )
    elif outcome is RemoveOutcome.NOT_FOUND:
        console.print(f"Profile '{escape(name)}' does not exist")
    else:
        console.print(f"Removed profile '{escape(name)}'")


@app.command("rename")
def rename(
    ctx: typer.Context,
    origin: str = typer.Argument(..., help="Current profile name"),
    new: str = typer.Argument(..., help="New profile name"),
) -> None:
    """Rename a profile (the current marker follows it)."""
    state = _state(ctx)
    with _cli_errors():
        state.store.rename(origin, new)
    console.print(f"✓ Profile '{escape(origin)}' renamed to '{escape(new)}' successfully")


@app.command("edit")
def edit(ctx: typer.Context, name: str = typer.Argument(..., help="Profile name")) -> None:
    """Edit a profile with $EDITOR (falls back to vim, nano, vi)."""
    state = _state(ctx)
    with _cli_errors():
        path = state.store.path(name)
        if not path.is_file():
            raise ProfileNotFound(name, path)
        editor = detect_editor(state.settings.editor.command)
        console.print(f"Opening profile '{escape(name)}' with editor: {escape(editor)}")
        open_in_editor(path, editor)

        try:
            state.store.read(name)
        except CorruptJSON as e:
            console.print(f"[yellow]Warning:[/yellow] {escape(str(e))}")
            console.print("The profile will fail to switch until it is fixed.")
            return
    console.print(f"✓ Profile '{escape(name)}' edited successfully")


# ============================================================================
# Switching and reconciliation
# ============================================================================


def _fixed_resolver(action: SwitchAction) -> MismatchResolver:
    def resolve(mismatch) -> SwitchAction:
        console.print(
            f"Profile '{escape(mismatch.profile_name)}' differs from {mismatch.settings_path}; "
            f"resolving as: {action.name.lower()}"
        )
        return action

    return resolve


@app.command("switch")
def switch(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Profile name"),
    project: bool = typer.Option(
        False, "-p", "--project", help="Apply to this project's .claude/settings.local.json"
    ),
    yes: bool = typer.Option(
        False, "-y", "--yes", help="On mismatch, switch without updating the current profile"
    ),
    absorb: bool = typer.Option(
        False, "--absorb", help="On mismatch, save settings.json into the current profile first"
    ),
) -> None:
    """Switch Claude settings to a profile, globally or for this project."""
    state = _state(ctx)
    if yes and absorb:
        raise typer.BadParameter("Choose either --yes or --absorb, not both")

    if yes:
        resolver = _fixed_resolver(SwitchAction.PROCEED)
    elif absorb:
        resolver = _fixed_resolver(SwitchAction.ABSORB)
    else:
        resolver = prompts.interactive_resolver(console)

    with _cli_errors():
        project_dir = current_project_dir() if project else None
        result = state.reconciler.switch(name, resolver, project_dir=project_dir)

    if result.outcome is SwitchOutcome.CANCELLED:
        console.print("Switch operation cancelled.")
        return
    if result.outcome is SwitchOutcome.PROFILE_UPDATED:
        console.print(f"✓ Profile '{escape(result.absorbed_into)}' updated successfully")
    if result.scope is Scope.PROJECT:
        console.print(
            f"✓ Switched to profile '{escape(name)}' for project {result.project_dir} "
            f"(wrote to {result.written})"
        )
    else:
        console.print(
            f"✓ Switched Claude settings to profile '{escape(name)}' (wrote to {result.written})"
        )


@app.command("sync")
def sync(ctx: typer.Context) -> None:
    """Update the current profile to match the live Claude settings."""
    state = _state(ctx)
    with _cli_errors():
        result = state.reconciler.sync()
    if result.outcome is SyncOutcome.IN_SYNC:
        console.print(
            f"✓ Claude settings and current profile '{escape(result.profile)}' are already in sync"
        )
    else:
        console.print(
            f"✓ Synced current profile '{escape(result.profile)}' with Claude settings "
            f"(updated {result.profile_path})"
        )


@app.command("import")
def import_current(
    ctx: typer.Context, name: str = typer.Argument(..., help="Name for the new profile")
) -> None:
    """Import current Claude settings as a new profile and make it current."""
    state = _state(ctx)
    with _cli_errors():
        path = state.reconciler.import_current(name)
    console.print(f"✓ Imported current settings to profile '{escape(name)}' at {path}")


@app.command("clear-project-override")
def clear_project_override(ctx: typer.Context) -> None:
    """Remove this project's profile override (revert to the global profile)."""
    state = _state(ctx)
    with _cli_errors():
        result = state.reconciler.clear_project_override(current_project_dir())

    if result.outcome is ClearOutcome.NO_MAPPING:
        console.print(f"No project-specific profile is set for {result.project_dir}")
        return
    if result.outcome is ClearOutcome.CORRUPTED:
        console.print(
            f"⚠️  Profile '{escape(result.profile)}' not found. "
            "The project mapping may be corrupted."
        )
        console.print(f"Please manually delete {result.overlay_path} if needed.")
        return
    if result.outcome is ClearOutcome.OVERLAY_REMOVED:
        console.print(f"✓ Removed {result.overlay_path} (no remaining settings)")
    elif result.outcome is ClearOutcome.OVERLAY_REDUCED:
        console.print(
            f"✓ Removed profile '{escape(result.profile)}' fields from {result.overlay_path}"
        )
    console.print(
        f"✓ Cleared project-specific profile for {result.project_dir}. Will now use global profile."
    )


@app.command("projects")
def projects(ctx: typer.Context) -> None:
    """List project directories that have a profile override."""
    state = _state(ctx)
    with _cli_errors():
        mappings = state.store.projects.all()
        if not mappings:
            console.print("No project-specific profiles.")
            return
        for mapping in mappings:
            flag = "" if state.store.exists(mapping.profile) else " (missing profile)"
            console.print(f" - {mapping.project_dir} -> {escape(mapping.profile)}{flag}")


# ============================================================================
# Launching
# ============================================================================


@app.command(
    "run",
    context_settings={"allow_extra_args": True, "ignore_unknown_options": True},
)
def run(ctx: typer.Context) -> None:
    """
    Run Claude Code with the current profile.

    Extra arguments are passed through, e.g. `ccm run -- --resume`.
    """
    state = _state(ctx)
    with _cli_errors():
        profile = state.reconciler.effective_profile(current_project_dir())
        if profile is None:
            raise NoActiveProfile(
                "ccm switch <name> (add one first with 'ccm add <name>')"
            )
        console.print(f"Launching Claude Code with profile '{escape(profile)}'...")
        exit_code = run_program(state.settings.launch.command, ctx.args)
    console.print(f"Claude Code exited with: {exit_code}")
    raise typer.Exit(exit_code)


@app.command("tui")
def tui(
    ctx: typer.Context,
    demo: bool = typer.Option(False, "--demo", help="Print a static preview instead"),
    self_test: bool = typer.Option(False, "--self-test", help="Check the TUI components"),
) -> None:
    """Launch the interactive full-screen interface."""
    from ccm.tui.demo import render_demo, run_self_test

    state = _state(ctx)
    with _cli_errors():
        if self_test:
            if not run_self_test(state.store, console):
                raise typer.Exit(1)
            return
        if demo:
            render_demo(state.store, console)
            return

        try:
            from ccm.tui.app import run_tui
        except ImportError as e:
            typer.echo("Error: Missing required dependency for TUI", err=True)
            typer.echo(f"  {e}", err=True)
            typer.echo("\nInstall with: pip install textual", err=True)
            raise typer.Exit(1)

        try:
            run_tui(state.reconciler, state.settings, current_project_dir())
        except KeyboardInterrupt:
            typer.echo("\nInterrupted by user", err=True)
            raise typer.Exit(130)


# Short aliases, hidden from --help.
app.command("ls", hidden=True)(list_profiles)
app.command("rm", hidden=True)(remove)
app.command("swc", hidden=True)(switch)
app.command("import-current", hidden=True)(import_current)
app.command("clear", hidden=True)(clear_project_override)
app.command("ui", hidden=True)(tui)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
