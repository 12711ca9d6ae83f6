"""Application overview commands for cc-switch."""

import typer

from ..exceptions import CCSwitchError
from ..models.app import AppType
from ..models.prompt import active_prompt
from ..utils import console, create_table, print_error
from ._shared import get_context

app = typer.Typer(help="Show managed applications", no_args_is_help=True)


@app.command("list")
def list_apps(ctx: typer.Context) -> None:
    """Show each application with its current provider, prompt and MCP servers."""
    cli = get_context(ctx)

    try:
        state = cli.state()
        table = create_table(
            columns=[("App", "cyan"), ("Provider", ""), ("Providers", ""), ("Prompt", ""), ("MCP", ""), ("Config dir", "dim")]
        )
        with state.read() as config:
            for target in AppType:
                manager = config.manager(target)
                prompt = active_prompt(config.prompts_for(target))
                mcp_count = sum(1 for s in config.mcp_servers.values() if s.apps.is_enabled_for(target))
                name = f"[bold]{target.display_name}[/bold]" if target == cli.app else target.display_name
                table.add_row(
                    name,
                    manager.current or "-",
                    str(len(manager.providers)),
                    prompt.id if prompt else "-",
                    str(mcp_count),
                    str(state.projector(target).prompt_file.parent),
                )
        console.print(table)

    except CCSwitchError as e:
        print_error(str(e))
        raise typer.Exit(1)
