"""Claude Code live files: settings.json, ~/.claude.json and CLAUDE.md."""

from collections.abc import Mapping
from pathlib import Path
from typing import Any

from ..models.app import AppType
from .base import LiveProjector, merge_owned_keys

_CLAUDE_MCP_FIELDS = ("type", "command", "args", "env", "cwd", "url", "headers")


class ClaudeProjector(LiveProjector):
    """Projects into Claude Code's config directory."""

    app = AppType.CLAUDE

    @property
    def settings_file(self) -> Path:
        return self.paths.claude_dir / "settings.json"

    @property
    def mcp_file(self) -> Path:
        # With CLAUDE_CONFIG_DIR set, Claude Code keeps .claude.json inside it.
        if self.paths.claude_dir != self.paths.home / ".claude":
            return self.paths.claude_dir / ".claude.json"
        return self.paths.home / ".claude.json"

    @property
    def prompt_file(self) -> Path:
        return self.paths.claude_dir / "CLAUDE.md"

    def live_files(self) -> list[Path]:
        return [self.settings_file, self.mcp_file, self.prompt_file]

    def write_provider(self, settings: Mapping[str, Any], previous: Mapping[str, Any] | None = None) -> None:
        settings = self.require_mapping(settings, "Claude provider settings")
        original = self.read_json_object(self.settings_file)
        merged = merge_owned_keys(original or {}, settings, previous)
        self.write_json_object(self.settings_file, merged, original)

    def write_mcp_servers(self, servers: Mapping[str, Mapping[str, Any]]) -> None:
        entries = {}
        for server_id, spec in servers.items():
            transport, spec = self.normalize_server(server_id, spec)
            entry = {k: spec[k] for k in _CLAUDE_MCP_FIELDS if k in spec}
            entry["type"] = transport
            entries[server_id] = entry

        original = self.read_json_object(self.mcp_file)
        data = dict(original or {})
        if entries:
            data["mcpServers"] = entries
        else:
            data.pop("mcpServers", None)
        self.write_json_object(self.mcp_file, data, original)
