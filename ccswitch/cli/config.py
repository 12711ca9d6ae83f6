"""Store management commands for cc-switch."""

from pathlib import Path

import typer
from rich.syntax import Syntax

from ..exceptions import CCSwitchError
from ..utils import confirm, console, ordered_group, print_cancelled, print_error, print_info, print_success
from ._shared import get_context

app = typer.Typer(
    help="Manage the cc-switch store",
    no_args_is_help=True,
    cls=ordered_group(["path", "show", "export", "import"]),
)


@app.command("path")
def show_path(ctx: typer.Context) -> None:
    """Show where the store and the live config files live."""
    cli = get_context(ctx)

    try:
        state = cli.state()
        console.print(f"[bold]Store:[/bold]  {state.config_manager.config_file}")
        projector = state.projector(cli.app)
        console.print(f"[bold]{cli.app.display_name}:[/bold]")
        for path in projector.live_files():
            marker = "[green]✓[/green]" if path.exists() else "[dim]-[/dim]"
            console.print(f"  {marker} {path}")

    except CCSwitchError as e:
        print_error(str(e))
        raise typer.Exit(1)


@app.command("show")
def show_config(ctx: typer.Context) -> None:
    """Print the store as YAML."""
    cli = get_context(ctx)

    try:
        state = cli.state()
        with state.read() as config:
            text = state.config_manager.dump(config)
        console.print(Syntax(text, "yaml", theme="ansi_dark", background_color="default"))

    except CCSwitchError as e:
        print_error(str(e))
        raise typer.Exit(1)


@app.command("export")
def export_config(
    ctx: typer.Context,
    path: Path = typer.Argument(..., help="Destination file"),
    force: bool = typer.Option(False, "--force", is_flag=True, help="Overwrite an existing file"),
) -> None:
    """Export the store to a file."""
    cli = get_context(ctx)

    try:
        if path.exists() and not force and not confirm(f"{path} exists. Overwrite?", default=False):
            print_cancelled()
            return
        state = cli.state()
        with state.read() as config:
            state.config_manager.export_to(config, path)
        print_success(f"Exported store to {path}")

    except CCSwitchError as e:
        print_error(str(e))
        raise typer.Exit(1)


@app.command("import")
def import_config(
    ctx: typer.Context,
    path: Path = typer.Argument(..., help="File written by 'cc-switch config export'"),
    yes: bool = typer.Option(False, "--yes", "-y", is_flag=True, help="Skip confirmation"),
) -> None:
    """Replace the store with an exported one (the old store is backed up)."""
    cli = get_context(ctx)

    try:
        state = cli.state()
        imported = state.config_manager.import_from(path)

        if not yes and not confirm("Replace the current store with the imported one?", default=False):
            print_cancelled()
            return

        backup = state.config_manager.backup()
        if backup is not None:
            print_info(f"Previous store backed up to {backup}")
        state.replace(imported)
        print_success(f"Imported store from {path}")
        print_info("Run 'cc-switch provider switch' and 'cc-switch mcp sync' to refresh live files.")

    except CCSwitchError as e:
        print_error(str(e))
        raise typer.Exit(1)
