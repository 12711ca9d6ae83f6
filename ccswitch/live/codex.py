"""Codex live files: auth.json, config.toml and AGENTS.md."""

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import tomlkit
from tomlkit.exceptions import TOMLKitError

from ..models.app import AppType
from ..utils.files import atomic_write_text, read_text_or_none
from .base import LiveProjector, merge_owned_keys

logger = logging.getLogger(__name__)

MCP_TABLE = "mcp_servers"


def parse_codex_config(config: Any) -> dict[str, Any]:
    """Plain mapping for a provider's ``config`` payload (TOML text or mapping).

    Raises:
        TOMLKitError: If TOML text cannot be parsed
        TypeError: If the payload is neither text nor a mapping
    """
    if config is None:
        return {}
    if isinstance(config, str):
        return tomlkit.parse(config).unwrap()
    if isinstance(config, Mapping):
        return dict(config)
    raise TypeError(f"expected TOML text or a mapping, got {type(config).__name__}")


class CodexProjector(LiveProjector):
    """Projects into the Codex home directory."""

    app = AppType.CODEX

    @property
    def auth_file(self) -> Path:
        return self.paths.codex_dir / "auth.json"

    @property
    def config_file(self) -> Path:
        return self.paths.codex_dir / "config.toml"

    @property
    def prompt_file(self) -> Path:
        return self.paths.codex_dir / "AGENTS.md"

    def live_files(self) -> list[Path]:
        return [self.auth_file, self.config_file, self.prompt_file]

    def write_provider(self, settings: Mapping[str, Any], previous: Mapping[str, Any] | None = None) -> None:
        settings = self.require_mapping(settings, "Codex provider settings")
        auth = self.require_mapping(settings.get("auth") or {}, "Codex 'auth'")
        try:
            config = parse_codex_config(settings.get("config"))
        except (TOMLKitError, TypeError) as e:
            raise self.fail(f"Codex 'config' is not valid TOML: {e}") from e
        if MCP_TABLE in config:
            logger.warning("Ignoring '%s' in Codex provider config; MCP servers are synced separately", MCP_TABLE)

        prev_auth: Mapping[str, Any] = {}
        prev_config: Mapping[str, Any] = {}
        if previous:
            prev_auth = previous.get("auth") or {}
            try:
                prev_config = parse_codex_config(previous.get("config"))
            except (TOMLKitError, TypeError):
                logger.warning("Previous Codex provider config is unreadable; keeping its keys")

        # Parse both files before writing either.
        doc, original_text = self._load_config()
        for key in prev_config:
            if key not in config and key != MCP_TABLE and key in doc:
                del doc[key]
        for key, value in config.items():
            if key != MCP_TABLE:
                doc[key] = value

        original_auth = self.read_json_object(self.auth_file)
        merged_auth = merge_owned_keys(original_auth or {}, auth, prev_auth)

        with self.restore_on_failure(self.auth_file):
            self.write_json_object(self.auth_file, merged_auth, original_auth)
            self._save_config(doc, original_text)

    def write_mcp_servers(self, servers: Mapping[str, Mapping[str, Any]]) -> None:
        entries = {}
        for server_id, spec in servers.items():
            transport, spec = self.normalize_server(server_id, spec)
            entries[server_id] = self._codex_entry(transport, spec)

        doc, original_text = self._load_config()
        current = doc.get(MCP_TABLE)
        current_plain = current.unwrap() if current is not None else None
        if (current_plain or {}) == entries and (current is not None or not entries):
            return

        if MCP_TABLE in doc:
            del doc[MCP_TABLE]
        if entries:
            table = tomlkit.table(is_super_table=True)
            for server_id, entry in entries.items():
                table[server_id] = entry
            doc[MCP_TABLE] = table
        self._save_config(doc, original_text)

    @staticmethod
    def _codex_entry(transport: str, spec: Mapping[str, Any]) -> dict[str, Any]:
        if transport == "stdio":
            entry: dict[str, Any] = {"command": spec["command"]}
            for key in ("args", "env", "cwd"):
                if spec.get(key):
                    entry[key] = spec[key]
            return entry
        entry = {"url": spec["url"]}
        if spec.get("headers"):
            entry["http_headers"] = dict(spec["headers"])
        return entry

    def _load_config(self) -> tuple[tomlkit.TOMLDocument, str | None]:
        with self.guard(self.config_file):
            text = read_text_or_none(self.config_file)
        if text is None:
            return tomlkit.document(), None
        try:
            return tomlkit.parse(text), text
        except TOMLKitError as e:
            raise self.fail(f"{self.config_file} is not valid TOML: {e}") from e

    def _save_config(self, doc: tomlkit.TOMLDocument, original_text: str | None) -> None:
        text = tomlkit.dumps(doc)
        if text == original_text or (original_text is None and not text.strip()):
            return
        with self.guard(self.config_file):
            atomic_write_text(self.config_file, text)
        logger.debug("Projected %s for codex", self.config_file)
