"""Provider commands for cc-switch."""

from pathlib import Path

import typer
from rich.panel import Panel

from ..exceptions import CCSwitchError, NotFoundError
from ..models.app import AppType
from ..models.provider import Provider, sort_providers
from ..services import ProviderService
from ..services.speedtest import speedtest
from ..services.templates import CATEGORIES, default_settings
from ..utils import (
    async_to_sync,
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
    prompt,
    select_menu,
)
from ._shared import edit_mapping, get_context, load_mapping_file, parse_json_mapping

app = typer.Typer(
    help="Manage providers",
    no_args_is_help=True,
    cls=ordered_group(["list", "current", "switch", "add", "edit", "delete", "duplicate", "speedtest"]),
)


# ── Shared helpers ───────────────────────────────────────────────────────


def current_or_none(service: ProviderService, target: AppType) -> str | None:
    """Current provider id, or None when nothing is selected."""
    try:
        return service.current(target)
    except NotFoundError:
        return None


def provider_table(providers: dict[str, Provider], current_id: str | None, show_created: bool = True):
    """Table of providers in display order with the current one marked."""
    columns = [("", "green"), ("ID", "cyan"), ("Name", ""), ("Category", "")]
    if show_created:
        columns.append(("Created", "dim"))
    table = create_table(columns=columns)
    for pid, provider in sort_providers(providers):
        is_current = pid == current_id
        row = [
            "✓" if is_current else "",
            f"[bold]{pid}[/bold]" if is_current else pid,
            f"[bold]{provider.name}[/bold]" if is_current else provider.name,
            provider.category or "unknown",
        ]
        if show_created:
            row.append(format_timestamp(provider.created_at))
        table.add_row(*row)
    return table


def render_provider_panel(target: AppType, provider: Provider, is_current: bool = False) -> Panel:
    """Build a Rich Panel for a provider."""
    lines = [
        f"[bold]ID:[/bold]        {provider.id}",
        f"[bold]Name:[/bold]      {provider.name}",
        f"[bold]Category:[/bold]  {provider.category or 'unknown'}",
        f"[bold]App:[/bold]       {target.value}",
        f"[bold]Created:[/bold]   {format_timestamp(provider.created_at, with_seconds=True)}",
    ]
    if provider.website_url:
        lines.append(f"[bold]Website:[/bold]   {provider.website_url}")
    if provider.sort_index is not None:
        lines.append(f"[bold]Order:[/bold]     {provider.sort_index}")
    if provider.notes:
        lines.append("")
        lines.append(provider.notes)
    if is_current:
        lines.append("")
        lines.append("[green]Current provider[/green]")
    return Panel("\n".join(lines), title=f"Provider: {provider.name}", border_style="blue")


def _pick_provider(service: ProviderService, target: AppType, title: str, exclude: str | None = None) -> str | None:
    entries = [
        (pid, f"{p.name}  [{pid}]")
        for pid, p in sort_providers(service.list(target))
        if pid != exclude
    ]
    if not entries:
        print_info("No other providers available.")
        return None
    choice = pick_entry(entries, title)
    if choice is None:
        print_cancelled()
    return choice


# ── provider list ────────────────────────────────────────────────────────


@app.command("list")
def list_providers(ctx: typer.Context) -> None:
    """List all providers."""
    cli = get_context(ctx)

    try:
        service = ProviderService(cli.state())
        providers = service.list(cli.app)
        if not providers:
            print_info("No providers found.")
            print_info("Use 'cc-switch provider add' to create a new provider.")
            return

        current_id = current_or_none(service, cli.app)
        console.print(provider_table(providers, current_id))
        console.print(f"\n[cyan]ℹ[/cyan] Application: {cli.app.value}")
        console.print(f"[cyan]→[/cyan] Current: [bold blue]{current_id or '-'}[/bold blue]")

    except CCSwitchError as e:
        print_error(str(e))
        raise typer.Exit(1)


# ── provider current ─────────────────────────────────────────────────────


@app.command("current")
def show_current(ctx: typer.Context) -> None:
    """Show the current provider."""
    cli = get_context(ctx)

    try:
        service = ProviderService(cli.state())
        current_id = service.current(cli.app)
        console.print(render_provider_panel(cli.app, service.get(cli.app, current_id), is_current=True))

    except CCSwitchError as e:
        print_error(str(e))
        raise typer.Exit(1)


# ── provider switch ──────────────────────────────────────────────────────


@app.command("switch")
def switch_provider(
    ctx: typer.Context,
    provider_id: str = typer.Argument(None, help="Provider ID to switch to"),
) -> None:
    """Switch to a provider and write it to the live config."""
    cli = get_context(ctx)

    try:
        service = ProviderService(cli.state())
        if not provider_id:
            provider_id = _pick_provider(
                service, cli.app, "  Select provider to switch to:", exclude=current_or_none(service, cli.app)
            )
            if provider_id is None:
                return

        service.switch(cli.app, provider_id)
        print_success(f"Switched to provider '{provider_id}'")
        print_info(f"  Application: {cli.app.value}")
        print_info("Note: Restart your CLI client to apply the changes.")

    except CCSwitchError as e:
        print_error(str(e))
        raise typer.Exit(1)


# ── provider add ─────────────────────────────────────────────────────────


@app.command("add")
def add_provider(
    ctx: typer.Context,
    provider_id: str = typer.Option(None, "--id", help="Provider ID (defaults to a slug of the name)"),
    name: str = typer.Option(None, "--name", "-n", help="Display name"),
    category: str = typer.Option(None, "--category", "-c", help="Category tag"),
    api_key: str = typer.Option(None, "--api-key", "-k", help="API key / auth token"),
    base_url: str = typer.Option(None, "--base-url", "-u", help="Custom endpoint"),
    model: str = typer.Option(None, "--model", "-m", help="Default model"),
    settings_file: Path = typer.Option(None, "--settings-file", "-f", help="JSON/YAML file with the full settings payload"),
    settings_json: str = typer.Option(None, "--settings", help="Full settings payload as a JSON object"),
    website: str = typer.Option(None, "--website", help="Provider website"),
    notes: str = typer.Option(None, "--notes", help="Free-form notes"),
    yes: bool = typer.Option(False, "--yes", "-y", is_flag=True, help="Skip confirmation"),
) -> None:
    """Add a new provider."""
    cli = get_context(ctx)

    try:
        service = ProviderService(cli.state())

        if name is None:
            console.print("\n[bold cyan]═══ Add New Provider ═══[/bold cyan]\n")
            while not (val := prompt("Provider name")):
                print_error("Name is required")
            name = val

        if provider_id is None:
            provider_id = _slugify(name)

        if category is None:
            idx = select_menu(CATEGORIES, "  Category:")
            if idx is None:
                print_cancelled()
                return
            category = CATEGORIES[idx]

        if settings_file is not None:
            settings = load_mapping_file(settings_file)
        elif settings_json is not None:
            settings = parse_json_mapping(settings_json, "--settings")
        else:
            if api_key is None:
                while not (val := prompt("API key")):
                    print_error("API key is required")
                api_key = val
            settings = default_settings(cli.app, api_key, base_url, model)

        provider = Provider(
            id=provider_id,
            name=name,
            category=category,
            settings_config=settings,
            website_url=website,
            notes=notes,
        )
        console.print()
        console.print(render_provider_panel(cli.app, provider))

        if not yes and not confirm("Save this provider?", default=True):
            print_cancelled()
            return

        if service.add(cli.app, provider):
            print_success(f"Provider '{provider_id}' added (set as current)")
        else:
            print_success(f"Provider '{provider_id}' added")

    except KeyboardInterrupt:
        console.print()
        print_cancelled()
    except CCSwitchError as e:
        print_error(str(e))
        raise typer.Exit(1)


# ── provider edit ────────────────────────────────────────────────────────


@app.command("edit")
def edit_provider(
    ctx: typer.Context,
    provider_id: str = typer.Argument(None, help="Provider ID to edit"),
    name: str = typer.Option(None, "--name", "-n", help="New display name"),
    category: str = typer.Option(None, "--category", "-c", help="New category"),
    sort_index: int = typer.Option(None, "--sort-index", "-s", help="Explicit display order"),
    settings_file: Path = typer.Option(None, "--settings-file", "-f", help="Replace the settings payload from a file"),
    website: str = typer.Option(None, "--website", help="Provider website"),
    notes: str = typer.Option(None, "--notes", help="Free-form notes"),
) -> None:
    """Edit a provider (options, or interactively when none are given)."""
    cli = get_context(ctx)

    try:
        service = ProviderService(cli.state())
        if not provider_id:
            provider_id = _pick_provider(service, cli.app, "  Select provider to edit:")
            if provider_id is None:
                return

        current = service.get(cli.app, provider_id)
        changes: dict = {}
        if name is not None:
            changes["name"] = name
        if category is not None:
            changes["category"] = category
        if sort_index is not None:
            changes["sort_index"] = sort_index
        if website is not None:
            changes["website_url"] = website
        if notes is not None:
            changes["notes"] = notes
        if settings_file is not None:
            changes["settings_config"] = load_mapping_file(settings_file)

        if not changes:
            changes = _edit_interactively(current)
            if changes is None:
                print_cancelled()
                return

        if not changes:
            print_info("No changes")
            return

        service.update(cli.app, current.model_copy(update=changes))
        print_success(f"Provider '{provider_id}' updated")

    except KeyboardInterrupt:
        console.print()
        print_cancelled()
    except CCSwitchError as e:
        print_error(str(e))
        raise typer.Exit(1)


def _edit_interactively(current: Provider) -> dict | None:
    """Field menu in the style of 'config edit'. Returns changes or None if cancelled."""
    fields = [
        ("name", "Name"),
        ("category", "Category"),
        ("website_url", "Website"),
        ("notes", "Notes"),
        ("sort_index", "Sort index"),
        ("settings_config", "Settings"),
    ]
    changes: dict = {}
    max_label = max(len(label) for _, label in fields)

    while True:
        options = []
        for key, label in fields:
            value = changes.get(key, getattr(current, key))
            if key == "settings_config":
                display = "(edit in $EDITOR)"
            else:
                display = "" if value is None else str(value)
            prefix = "* " if key in changes else "  "
            options.append(f"{prefix}{label.ljust(max_label)}  {display}")
        options.append("  " + "─" * (max_label + 20))
        options.append(f"  Apply {len(changes)} change(s)" if changes else "  (no changes)")
        apply_idx = len(options) - 1
        options.append("  Cancel")

        selected = select_menu(options, f"\n  Provider: {current.id}")
        if selected is None or selected == len(options) - 1:
            return None
        if selected == apply_idx:
            return changes
        if selected >= len(fields):
            continue

        key, label = fields[selected]
        original = getattr(current, key)
        if key == "settings_config":
            edited = edit_mapping(changes.get(key, original))
            new_val = original if edited is None else edited
        elif key == "category":
            idx = select_menu(CATEGORIES, f"  {label}:")
            new_val = original if idx is None else CATEGORIES[idx]
        elif key == "sort_index":
            raw = prompt(f"  {label} (empty to clear)", default=str(changes.get(key, original) or ""))
            try:
                new_val = int(raw) if raw.strip() else None
            except ValueError:
                print_error("Invalid number")
                continue
        else:
            raw = prompt(f"  {label}", default=str(changes.get(key, original) or ""))
            new_val = raw or (None if key != "name" else original)

        if new_val != original:
            changes[key] = new_val
        else:
            changes.pop(key, None)


# ── provider delete ──────────────────────────────────────────────────────


@app.command("delete")
def delete_provider(
    ctx: typer.Context,
    provider_id: str = typer.Argument(None, help="Provider ID to delete"),
    yes: bool = typer.Option(False, "--yes", "-y", is_flag=True, help="Skip confirmation"),
) -> None:
    """Delete a provider (the current provider cannot be deleted)."""
    cli = get_context(ctx)

    try:
        service = ProviderService(cli.state())
        if not provider_id:
            provider_id = _pick_provider(
                service, cli.app, "  Select provider to delete:", exclude=current_or_none(service, cli.app)
            )
            if provider_id is None:
                return

        if not yes and not confirm(f"Are you sure you want to delete provider '{provider_id}'?", default=False):
            print_cancelled()
            return

        service.delete(cli.app, provider_id)
        print_success(f"Deleted provider '{provider_id}'")

    except CCSwitchError as e:
        print_error(str(e))
        raise typer.Exit(1)


# ── provider duplicate ───────────────────────────────────────────────────


@app.command("duplicate")
def duplicate_provider(
    ctx: typer.Context,
    provider_id: str = typer.Argument(..., help="Provider ID to duplicate"),
    new_id: str = typer.Option(None, "--new-id", help="ID for the copy"),
) -> None:
    """Duplicate a provider."""
    cli = get_context(ctx)

    try:
        copy = ProviderService(cli.state()).duplicate(cli.app, provider_id, new_id)
        print_success(f"Duplicated '{provider_id}' as '{copy.id}'")

    except CCSwitchError as e:
        print_error(str(e))
        raise typer.Exit(1)


# ── provider speedtest ───────────────────────────────────────────────────


@app.command("speedtest")
@async_to_sync
async def speedtest_providers(
    ctx: typer.Context,
    provider_id: str = typer.Argument(None, help="Provider ID to test (default: all)"),
    timeout: float = typer.Option(10.0, "--timeout", "-t", help="Request timeout in seconds"),
) -> None:
    """Test provider endpoint latency."""
    cli = get_context(ctx)

    try:
        service = ProviderService(cli.state())
        if provider_id:
            providers = {provider_id: service.get(cli.app, provider_id)}
        else:
            providers = service.list(cli.app)
        if not providers:
            print_info("No providers found.")
            return

        print_info(f"Testing {len(providers)} endpoint(s)...")
        results = await speedtest(cli.app, providers, timeout=timeout)

        table = create_table(columns=[("ID", "cyan"), ("Endpoint", ""), ("Latency", ""), ("Status", "")])
        for result in results:
            if result.ok:
                ms = result.latency_ms or 0.0
                color = "green" if ms < 500 else "yellow" if ms < 1500 else "red"
                table.add_row(result.provider_id, result.url, f"[{color}]{ms:.0f} ms[/{color}]", str(result.status_code))
            else:
                table.add_row(result.provider_id, result.url, "-", f"[red]{result.error}[/red]")
        console.print(table)

    except CCSwitchError as e:
        print_error(str(e))
        raise typer.Exit(1)


def _slugify(name: str) -> str:
    slug = "".join(c if c.isalnum() else "-" for c in name.lower()).strip("-")
    while "--" in slug:
        slug = slug.replace("--", "-")
    return slug or "provider"
