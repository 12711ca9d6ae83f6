"""MCP server commands for cc-switch."""

from pathlib import Path

import typer

from ..exceptions import CCSwitchError
from ..models.app import AppType
from ..models.mcp import McpApps, McpServer
from ..services import McpService
from ..utils import (
    check_mark,
    confirm,
    console,
    create_table,
    multi_select_menu,
    ordered_group,
    pick_entry,
    print_cancelled,
    print_error,
    print_info,
    print_success,
    truncate,
)
from ._shared import get_context, load_mapping_file, parse_kv_pairs

app = typer.Typer(
    help="Manage MCP servers shared across applications",
    no_args_is_help=True,
    cls=ordered_group(["list", "add", "delete", "enable", "disable", "sync"]),
)


def _describe(server: McpServer) -> str:
    spec = server.server
    if spec.get("url"):
        return f"{spec.get('type', 'http')} {spec['url']}"
    args = " ".join(str(a) for a in spec.get("args") or [])
    return f"{spec.get('command', '')} {args}".strip()


def _sync(service: McpService, sync: bool) -> None:
    if not sync:
        print_info("Run 'cc-switch mcp sync' to apply the change.")
        return
    service.sync_all_enabled()
    print_info("Live config files synced.")


def _pick_server(service: McpService, title: str) -> str | None:
    entries = [(sid, f"{s.name}  [{sid}]") for sid, s in sorted(service.get_all_servers().items())]
    if not entries:
        print_info("No MCP servers configured.")
        return None
    choice = pick_entry(entries, title)
    if choice is None:
        print_cancelled()
    return choice


# ── mcp list ─────────────────────────────────────────────────────────────


@app.command("list")
def list_servers(ctx: typer.Context) -> None:
    """List MCP servers and where they are enabled."""
    cli = get_context(ctx)

    try:
        servers = McpService(cli.state()).get_all_servers()
        if not servers:
            print_info("No MCP servers configured.")
            print_info("Use 'cc-switch mcp add' to add one.")
            return

        table = create_table(
            columns=[("ID", "cyan"), ("Name", ""), ("Server", "dim")]
            + [(a.display_name, "") for a in AppType]
        )
        for sid, server in sorted(servers.items()):
            table.add_row(
                sid,
                server.name,
                truncate(_describe(server)),
                *(check_mark(server.apps.is_enabled_for(a)) for a in AppType),
            )
        console.print(table)

    except CCSwitchError as e:
        print_error(str(e))
        raise typer.Exit(1)


# ── mcp add ──────────────────────────────────────────────────────────────


@app.command("add")
def add_server(
    ctx: typer.Context,
    server_id: str = typer.Argument(..., help="Server ID"),
    name: str = typer.Option(None, "--name", "-n", help="Display name (defaults to the ID)"),
    command: str = typer.Option(None, "--command", help="Executable for a stdio server"),
    args: list[str] = typer.Option(None, "--arg", help="Argument for the command (repeatable)"),
    env: list[str] = typer.Option(None, "--env", "-e", help="KEY=VALUE environment entry (repeatable)"),
    url: str = typer.Option(None, "--url", help="Endpoint of an http/sse server"),
    transport: str = typer.Option(None, "--type", help="stdio, http or sse"),
    headers: list[str] = typer.Option(None, "--header", "-H", help="KEY=VALUE HTTP header (repeatable)"),
    spec_file: Path = typer.Option(None, "--from-file", "-f", help="JSON/YAML file with the server definition"),
    apps: list[AppType] = typer.Option(None, "--app", help="Enable for this application (repeatable)"),
    description: str = typer.Option(None, "--description", "-d", help="Free-form description"),
    sync: bool = typer.Option(True, "--sync/--no-sync", help="Sync live files afterwards"),
) -> None:
    """Add or replace an MCP server."""
    cli = get_context(ctx)

    try:
        if spec_file is not None:
            spec = load_mapping_file(spec_file)
        elif url:
            spec = {"type": transport or "http", "url": url}
            if headers:
                spec["headers"] = parse_kv_pairs(headers, "--header")
        elif command:
            spec = {"type": transport or "stdio", "command": command}
            if args:
                spec["args"] = list(args)
            if env:
                spec["env"] = parse_kv_pairs(env, "--env")
        else:
            raise typer.BadParameter("give --command, --url or --from-file")

        enabled = McpApps()
        for target in apps or [cli.app]:
            enabled.set_enabled(target, True)

        service = McpService(cli.state())
        server = McpServer(id=server_id, name=name or server_id, server=spec, apps=enabled, description=description)
        is_new = service.upsert(server)
        print_success(f"MCP server '{server_id}' {'added' if is_new else 'updated'}")
        _sync(service, sync)

    except CCSwitchError as e:
        print_error(str(e))
        raise typer.Exit(1)


# ── mcp delete ───────────────────────────────────────────────────────────


@app.command("delete")
def delete_server(
    ctx: typer.Context,
    server_id: str = typer.Argument(None, help="Server ID to delete"),
    yes: bool = typer.Option(False, "--yes", "-y", is_flag=True, help="Skip confirmation"),
    sync: bool = typer.Option(True, "--sync/--no-sync", help="Sync live files afterwards"),
) -> None:
    """Delete an MCP server."""
    cli = get_context(ctx)

    try:
        service = McpService(cli.state())
        if not server_id:
            server_id = _pick_server(service, "  Select MCP server to delete:")
            if server_id is None:
                return
        service.get_server(server_id)

        if not yes and not confirm(f"Are you sure you want to delete MCP server '{server_id}'?", default=False):
            print_cancelled()
            return

        service.delete(server_id)
        print_success(f"Deleted MCP server '{server_id}'")
        _sync(service, sync)

    except CCSwitchError as e:
        print_error(str(e))
        raise typer.Exit(1)


# ── mcp enable / disable ─────────────────────────────────────────────────


def _toggle(ctx: typer.Context, server_id: str | None, apps: list[AppType] | None, enabled: bool, sync: bool) -> None:
    cli = get_context(ctx)
    verb = "Enabled" if enabled else "Disabled"

    try:
        service = McpService(cli.state())
        if not server_id:
            server_id = _pick_server(service, f"  Select MCP server to {verb.lower()[:-1]}:")
            if server_id is None:
                return
            if apps is None:
                all_apps = list(AppType)
                chosen = multi_select_menu(
                    [a.display_name for a in all_apps],
                    "  Applications:",
                    preselected=[all_apps.index(cli.app)],
                )
                if chosen is None:
                    print_cancelled()
                    return
                apps = [all_apps[i] for i in chosen]

        for target in apps or [cli.app]:
            service.set_enabled(server_id, target, enabled)
            print_success(f"{verb} MCP server '{server_id}' for {target.value}")
        _sync(service, sync)

    except CCSwitchError as e:
        print_error(str(e))
        raise typer.Exit(1)


@app.command("enable")
def enable_server(
    ctx: typer.Context,
    server_id: str = typer.Argument(None, help="Server ID"),
    apps: list[AppType] = typer.Option(None, "--app", help="Application (repeatable, default: --app of the root command)"),
    sync: bool = typer.Option(True, "--sync/--no-sync", help="Sync live files afterwards"),
) -> None:
    """Enable an MCP server for one or more applications."""
    _toggle(ctx, server_id, apps or None, True, sync)


@app.command("disable")
def disable_server(
    ctx: typer.Context,
    server_id: str = typer.Argument(None, help="Server ID"),
    apps: list[AppType] = typer.Option(None, "--app", help="Application (repeatable, default: --app of the root command)"),
    sync: bool = typer.Option(True, "--sync/--no-sync", help="Sync live files afterwards"),
) -> None:
    """Disable an MCP server for one or more applications."""
    _toggle(ctx, server_id, apps or None, False, sync)


# ── mcp sync ─────────────────────────────────────────────────────────────


@app.command("sync")
def sync_servers(
    ctx: typer.Context,
    only_current: bool = typer.Option(False, "--current", help="Only sync the application selected with --app"),
) -> None:
    """Write the enabled MCP servers into each application's live config."""
    cli = get_context(ctx)

    try:
        service = McpService(cli.state())
        if only_current:
            service.sync_app(cli.app)
            print_success(f"Synced MCP servers to {cli.app.value}")
        else:
            service.sync_all_enabled()
            print_success("Synced MCP servers to all applications")

    except CCSwitchError as e:
        print_error(str(e))
        raise typer.Exit(1)
