"""Menu-driven session over one loaded store."""

import typer
from rich.panel import Panel

from ..config import AppState
from ..exceptions import CCSwitchError
from ..models.app import AppType
from ..models.prompt import active_prompt, sort_prompts
from ..models.provider import sort_providers
from ..services import McpService, PromptService, ProviderService
from ..utils import (
    confirm,
    console,
    multi_select_menu,
    pick_entry,
    print_cancelled,
    print_error,
    print_info,
    print_success,
    select_menu,
)
from ._shared import get_context
from .provider import current_or_none, provider_table, render_provider_panel


class InteractiveSession:
    """Menu loop sharing one state handle across every action."""

    def __init__(self, state: AppState, target: AppType) -> None:
        self.state = state
        self.app = target
        self.providers = ProviderService(state)
        self.mcp = McpService(state)
        self.prompts = PromptService(state)

    def run(self) -> None:
        actions = [
            ("Switch provider", self.switch_provider),
            ("List providers", self.list_providers),
            ("View current provider", self.view_current_provider),
            ("Delete provider", self.delete_provider),
            ("Toggle MCP servers", self.toggle_mcp),
            ("Sync all MCP servers", self.sync_mcp),
            ("Activate prompt", self.activate_prompt),
            ("View current configuration", self.view_config),
            ("Change application", self.change_app),
        ]
        while True:
            labels = [label for label, _ in actions] + ["Exit"]
            idx = select_menu(labels, f"\n  cc-switch · {self.app.display_name}")
            if idx is None or idx == len(actions):
                return
            try:
                actions[idx][1]()
            except CCSwitchError as e:
                print_error(str(e))

    def list_providers(self) -> None:
        providers = self.providers.list(self.app)
        if not providers:
            print_info("No providers found.")
            return
        current_id = current_or_none(self.providers, self.app)
        console.print(provider_table(providers, current_id, show_created=False))

    def switch_provider(self) -> None:
        providers = self.providers.list(self.app)
        current_id = current_or_none(self.providers, self.app)
        entries = [
            (pid, f"{'✓' if pid == current_id else ' '} {p.name}  [{pid}]")
            for pid, p in sort_providers(providers)
        ]
        if not entries:
            print_info("No providers found. Use 'cc-switch provider add' first.")
            return
        choice = pick_entry(entries, "  Select provider:")
        if choice is None or choice == current_id:
            return
        self.providers.switch(self.app, choice)
        print_success(f"Switched to provider '{choice}'")

    def view_current_provider(self) -> None:
        current_id = self.providers.current(self.app)
        provider = self.providers.get(self.app, current_id)
        console.print(render_provider_panel(self.app, provider, is_current=True))

    def delete_provider(self) -> None:
        current_id = current_or_none(self.providers, self.app)
        entries = [
            (pid, f"{p.name}  [{pid}]")
            for pid, p in sort_providers(self.providers.list(self.app))
            if pid != current_id
        ]
        if not entries:
            print_info("No other providers to delete.")
            return
        choice = pick_entry(entries, "  Select provider to delete:")
        if choice is None:
            return
        if not confirm(f"Are you sure you want to delete provider '{choice}'?", default=False):
            print_cancelled()
            return
        self.providers.delete(self.app, choice)
        print_success(f"Deleted provider '{choice}'")

    def toggle_mcp(self) -> None:
        servers = sorted(self.mcp.get_all_servers().items())
        if not servers:
            print_info("No MCP servers configured.")
            return
        chosen = multi_select_menu(
            [f"{s.name}  [{sid}]" for sid, s in servers],
            f"  MCP servers for {self.app.display_name}:",
            preselected=[i for i, (_, s) in enumerate(servers) if s.apps.is_enabled_for(self.app)],
        )
        if chosen is None:
            return
        for i, (sid, _) in enumerate(servers):
            self.mcp.set_enabled(sid, self.app, i in chosen)
        self.mcp.sync_app(self.app)
        print_success(f"Synced MCP servers to {self.app.value}")

    def sync_mcp(self) -> None:
        self.mcp.sync_all_enabled()
        print_success("All MCP servers synced")

    def activate_prompt(self) -> None:
        entries = [
            (pid, f"{'✓' if p.enabled else ' '} {p.name}  [{pid}]")
            for pid, p in sort_prompts(self.prompts.get_prompts(self.app))
        ]
        if not entries:
            print_info("No prompts. Use 'cc-switch prompts add' first.")
            return
        choice = pick_entry(entries, "  Select prompt:")
        if choice is None:
            return
        self.prompts.enable_prompt(self.app, choice)
        print_success(f"Activated prompt '{choice}'")

    def view_config(self) -> None:
        current_id = current_or_none(self.providers, self.app)
        provider = self.providers.list(self.app).get(current_id) if current_id else None
        servers = self.mcp.get_all_servers()
        enabled = sum(1 for s in servers.values() if s.apps.is_enabled_for(self.app))
        prompts = self.prompts.get_prompts(self.app)
        active = active_prompt(prompts)

        lines = ["[bold]Provider:[/bold]"]
        if provider:
            lines.append(f"  Name:     {provider.name} ({provider.id})")
            lines.append(f"  Category: {provider.category or 'unknown'}")
        else:
            lines.append("  None selected")
        lines += [
            "",
            "[bold]MCP servers:[/bold]",
            f"  Total:    {len(servers)}",
            f"  Enabled:  {enabled}",
            "",
            "[bold]Prompts:[/bold]",
            f"  Total:    {len(prompts)}",
            f"  Active:   {active.name if active else 'None'}",
        ]
        console.print(Panel("\n".join(lines), title=f"{self.app.display_name} configuration", border_style="blue"))

    def change_app(self) -> None:
        apps = list(AppType)
        idx = select_menu([a.display_name for a in apps], "  Application:")
        if idx is not None:
            self.app = apps[idx]


def interactive(ctx: typer.Context) -> None:
    """Browse and switch providers, MCP servers and prompts from a menu."""
    cli = get_context(ctx)

    try:
        session = InteractiveSession(cli.state(), cli.app)
        session.run()
    except KeyboardInterrupt:
        console.print()
    except CCSwitchError as e:
        print_error(str(e))
        raise typer.Exit(1)
