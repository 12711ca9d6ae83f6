"""Main CLI application."""

from pathlib import Path

import typer
from rich.console import Console

from .. import __version__
from ..config import CONFIG_DIR_ENV
from ..models.app import AppType
from ..utils.log import setup_logging
from . import apps, config, env, mcp, prompts, provider
from ._shared import CliContext
from .interactive import interactive

console = Console()

app = typer.Typer(
    name="cc-switch",
    help="Switch providers, MCP servers and prompts for Claude Code, Codex and Gemini CLI",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)

app.add_typer(provider.app, name="provider")
app.add_typer(mcp.app, name="mcp")
app.add_typer(prompts.app, name="prompts")
app.add_typer(config.app, name="config")
app.add_typer(env.app, name="env")
app.add_typer(apps.app, name="app")
app.command("interactive")(interactive)


def version_callback(value: bool) -> None:
    """Print version and exit.

    Args:
        value: Whether version flag was set
    """
    if value:
        console.print(f"cc-switch version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
    target: AppType = typer.Option(
        AppType.CLAUDE,
        "--app",
        "-a",
        envvar="CC_SWITCH_APP",
        help="Target application",
        case_sensitive=False,
    ),
    config_dir: Path = typer.Option(
        None,
        "--config-dir",
        envvar=CONFIG_DIR_ENV,
        help="cc-switch store directory (default: ~/.cc-switch)",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", is_flag=True, help="Enable debug logging"),
) -> None:
    """cc-switch - one store for Claude Code, Codex and Gemini CLI.

    Keep providers, MCP servers and prompt presets in one place and write
    them into each tool's own config files.

    Get started:
        cc-switch provider add              # Add your first provider
        cc-switch -a codex provider list    # Work with another application
        cc-switch interactive               # Menu-driven mode
    """
    setup_logging(verbose)
    ctx.obj = CliContext(app=target, config_dir=config_dir)


if __name__ == "__main__":
    app()
