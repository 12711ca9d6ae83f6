"""Prompt preset commands for cc-switch."""

from pathlib import Path

import typer
from rich.markdown import Markdown
from rich.panel import Panel

from ..exceptions import CCSwitchError
from ..models.app import AppType
from ..models.prompt import Prompt, sort_prompts
from ..services import PromptService
from ..utils import (
    check_mark,
    confirm,
    console,
    create_table,
    format_timestamp,
    ordered_group,
    pick_entry,
    print_cancelled,
    print_error,
    print_info,
    print_success,
    print_warning,
    truncate,
)
from ._shared import get_context

app = typer.Typer(
    help="Manage prompt presets (CLAUDE.md, AGENTS.md, GEMINI.md)",
    no_args_is_help=True,
    cls=ordered_group(["list", "show", "add", "delete", "enable", "disable"]),
)


def _pick_prompt(service: PromptService, target: AppType, title: str, enabled: bool | None = None) -> str | None:
    entries = [
        (pid, f"{p.name}  [{pid}]")
        for pid, p in sort_prompts(service.get_prompts(target))
        if enabled is None or p.enabled == enabled
    ]
    if not entries:
        print_info("No matching prompts.")
        return None
    choice = pick_entry(entries, title)
    if choice is None:
        print_cancelled()
    return choice


# ── prompts list ─────────────────────────────────────────────────────────


@app.command("list")
def list_prompts(ctx: typer.Context) -> None:
    """List prompt presets for the selected application."""
    cli = get_context(ctx)

    try:
        service = PromptService(cli.state())
        prompts = service.get_prompts(cli.app)
        if not prompts:
            print_info(f"No prompts for {cli.app.value}.")
            print_info("Use 'cc-switch prompts add' to create one.")
            return

        table = create_table(
            columns=[("Active", ""), ("ID", "cyan"), ("Name", ""), ("Description", "dim"), ("Updated", "dim")]
        )
        for pid, p in sort_prompts(prompts):
            table.add_row(check_mark(p.enabled), pid, p.name, truncate(p.description), format_timestamp(p.updated_at))
        console.print(table)
        console.print(f"\n[cyan]ℹ[/cyan] Prompt file: {cli.state().projector(cli.app).prompt_file}")

    except CCSwitchError as e:
        print_error(str(e))
        raise typer.Exit(1)


# ── prompts show ─────────────────────────────────────────────────────────


@app.command("show")
def show_prompt(
    ctx: typer.Context,
    prompt_id: str = typer.Argument(..., help="Prompt ID"),
    raw: bool = typer.Option(False, "--raw", is_flag=True, help="Print the content without formatting"),
) -> None:
    """Show a prompt preset."""
    cli = get_context(ctx)

    try:
        p = PromptService(cli.state()).get_prompt(cli.app, prompt_id)
        if raw:
            console.print(p.content, markup=False, highlight=False, end="")
            return
        subtitle = "[green]active[/green]" if p.enabled else None
        console.print(Panel(Markdown(p.content or "_empty_"), title=f"Prompt: {p.name}", subtitle=subtitle, border_style="blue"))

    except CCSwitchError as e:
        print_error(str(e))
        raise typer.Exit(1)


# ── prompts add ──────────────────────────────────────────────────────────


@app.command("add")
def add_prompt(
    ctx: typer.Context,
    prompt_id: str = typer.Argument(..., help="Prompt ID"),
    name: str = typer.Option(None, "--name", "-n", help="Display name (defaults to the ID)"),
    file: Path = typer.Option(None, "--file", "-f", help="Read the content from a file"),
    content: str = typer.Option(None, "--content", help="Prompt content"),
    from_live: bool = typer.Option(False, "--from-live", is_flag=True, help="Capture the current live prompt file"),
    description: str = typer.Option(None, "--description", "-d", help="Short description"),
    enable: bool = typer.Option(False, "--enable", is_flag=True, help="Activate the prompt after saving"),
) -> None:
    """Add or replace a prompt preset."""
    cli = get_context(ctx)

    try:
        service = PromptService(cli.state())
        if file is not None:
            try:
                text = file.read_text(encoding="utf-8")
            except OSError as e:
                raise typer.BadParameter(f"cannot read {file}: {e.strerror or e}")
        elif content is not None:
            text = content
        elif from_live:
            text = cli.state().projector(cli.app).read_prompt()
            if text is None:
                print_error(f"No live prompt file for {cli.app.value}")
                raise typer.Exit(1)
        else:
            text = typer.edit("", extension=".md")
            if text is None:
                print_cancelled()
                return

        is_new = service.upsert(cli.app, Prompt(id=prompt_id, name=name or prompt_id, content=text, description=description))
        print_success(f"Prompt '{prompt_id}' {'added' if is_new else 'updated'}")
        if enable:
            service.enable_prompt(cli.app, prompt_id)
            print_success(f"Activated prompt '{prompt_id}'")

    except CCSwitchError as e:
        print_error(str(e))
        raise typer.Exit(1)


# ── prompts delete ───────────────────────────────────────────────────────


@app.command("delete")
def delete_prompt(
    ctx: typer.Context,
    prompt_id: str = typer.Argument(None, help="Prompt ID to delete"),
    yes: bool = typer.Option(False, "--yes", "-y", is_flag=True, help="Skip confirmation"),
) -> None:
    """Delete a prompt preset (the active prompt cannot be deleted)."""
    cli = get_context(ctx)

    try:
        service = PromptService(cli.state())
        if not prompt_id:
            prompt_id = _pick_prompt(service, cli.app, "  Select prompt to delete:", enabled=False)
            if prompt_id is None:
                return

        if service.get_prompt(cli.app, prompt_id).enabled:
            print_error("Cannot delete the active prompt. Disable it first.")
            raise typer.Exit(1)

        if not yes and not confirm(f"Are you sure you want to delete prompt '{prompt_id}'?", default=False):
            print_cancelled()
            return

        service.delete(cli.app, prompt_id)
        print_success(f"Deleted prompt '{prompt_id}'")

    except CCSwitchError as e:
        print_error(str(e))
        raise typer.Exit(1)


# ── prompts enable / disable ─────────────────────────────────────────────


@app.command("enable")
def enable_prompt(
    ctx: typer.Context,
    prompt_id: str = typer.Argument(None, help="Prompt ID to activate"),
) -> None:
    """Activate a prompt and write it to the live prompt file."""
    cli = get_context(ctx)

    try:
        service = PromptService(cli.state())
        if not prompt_id:
            prompt_id = _pick_prompt(service, cli.app, "  Select prompt to activate:")
            if prompt_id is None:
                return

        service.enable_prompt(cli.app, prompt_id)
        print_success(f"Activated prompt '{prompt_id}'")
        print_info(f"  Written to {cli.state().projector(cli.app).prompt_file}")

    except CCSwitchError as e:
        print_error(str(e))
        raise typer.Exit(1)


@app.command("disable")
def disable_prompt(
    ctx: typer.Context,
    prompt_id: str = typer.Argument(None, help="Prompt ID to deactivate"),
) -> None:
    """Deactivate a prompt and empty the live prompt file."""
    cli = get_context(ctx)

    try:
        service = PromptService(cli.state())
        if not prompt_id:
            prompt_id = _pick_prompt(service, cli.app, "  Select prompt to deactivate:", enabled=True)
            if prompt_id is None:
                return

        if not service.get_prompt(cli.app, prompt_id).enabled:
            print_warning(f"Prompt '{prompt_id}' is not active")
            return

        service.disable_prompt(cli.app, prompt_id)
        print_success(f"Deactivated prompt '{prompt_id}'")

    except CCSwitchError as e:
        print_error(str(e))
        raise typer.Exit(1)
