"""Environment variable commands for cc-switch."""

import typer

from ..exceptions import CCSwitchError, NotFoundError
from ..models.app import AppType
from ..services import ProviderService
from ..services.env import check_env_conflicts, list_env_vars, mask_value
from ..utils import console, create_table, print_error, print_info, print_success, print_warning
from ._shared import get_context

app = typer.Typer(help="Inspect environment variables that override providers", no_args_is_help=True)


@app.command("check")
def check_env(
    ctx: typer.Context,
    show_values: bool = typer.Option(False, "--show-values", is_flag=True, help="Do not mask secrets"),
) -> None:
    """Report environment variables that shadow the current provider."""
    cli = get_context(ctx)

    try:
        service = ProviderService(cli.state())
        try:
            settings = service.get(cli.app, service.current(cli.app)).settings_config
        except NotFoundError:
            settings = None
            print_info(f"No current {cli.app.value} provider; listing variables only.")

        conflicts = check_env_conflicts(cli.app, settings)
        if not conflicts:
            print_success(f"No conflicting environment variables for {cli.app.value}")
            return

        table = create_table(columns=[("Variable", "yellow"), ("Environment", ""), ("Provider", "")])
        for var in conflicts:
            value = var.value if show_values else mask_value(var.name, var.value)
            expected = var.expected or ""
            if not show_values:
                expected = mask_value(var.name, expected)
            table.add_row(var.name, value, expected)
        console.print(table)
        print_warning(f"{len(conflicts)} variable(s) override the provider settings. Unset them in your shell.")
        raise typer.Exit(1)

    except CCSwitchError as e:
        print_error(str(e))
        raise typer.Exit(1)


@app.command("list")
def list_env(
    ctx: typer.Context,
    show_values: bool = typer.Option(False, "--show-values", is_flag=True, help="Do not mask secrets"),
    all_apps: bool = typer.Option(False, "--all", is_flag=True, help="Include every application"),
) -> None:
    """List environment variables relevant to the selected application."""
    cli = get_context(ctx)
    targets = list(AppType) if all_apps else [cli.app]

    table = create_table(columns=[("App", "cyan"), ("Variable", ""), ("Value", "")])
    count = 0
    for target in targets:
        for var in list_env_vars(target):
            table.add_row(target.value, var.name, var.value if show_values else mask_value(var.name, var.value))
            count += 1
    if not count:
        print_info("No relevant environment variables set.")
        return
    console.print(table)
