"""Gemini CLI live files: .env, settings.json and GEMINI.md."""

import io
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from dotenv.parser import parse_stream

from ..models.app import AppType
from ..utils.files import atomic_write_text, read_text_or_none
from .base import LiveProjector, merge_owned_keys

_PLAIN_VALUE = re.compile(r"^[A-Za-z0-9_./:@+,=-]*$")


def format_env_value(value: str) -> str:
    """Quote a .env value when it contains anything beyond plain characters."""
    if _PLAIN_VALUE.match(value):
        return value
    escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
    return f'"{escaped}"'


def update_env_text(text: str, values: Mapping[str, str], owned: set[str]) -> str:
    """Drop ``owned`` assignments from a .env text and append ``values``.

    Comments, blank lines and assignments of other keys are kept byte for byte.
    """
    kept = [
        binding.original.string
        for binding in parse_stream(io.StringIO(text))
        if binding.key is None or binding.key not in owned
    ]
    body = "".join(kept)
    if body and not body.endswith("\n"):
        body += "\n"
    for key, value in values.items():
        body += f"{key}={format_env_value(value)}\n"
    return body


class GeminiProjector(LiveProjector):
    """Projects into Gemini CLI's config directory."""

    app = AppType.GEMINI

    @property
    def env_file(self) -> Path:
        return self.paths.gemini_dir / ".env"

    @property
    def settings_file(self) -> Path:
        return self.paths.gemini_dir / "settings.json"

    @property
    def prompt_file(self) -> Path:
        return self.paths.gemini_dir / "GEMINI.md"

    def live_files(self) -> list[Path]:
        return [self.env_file, self.settings_file, self.prompt_file]

    def write_provider(self, settings: Mapping[str, Any], previous: Mapping[str, Any] | None = None) -> None:
        settings = self.require_mapping(settings, "Gemini provider settings")
        env = self._env_values(settings.get("env") or {})
        config = self.require_mapping(settings.get("config") or {}, "Gemini 'config'")
        prev_env: Mapping[str, Any] = {}
        prev_config: Mapping[str, Any] = {}
        if previous:
            prev_env = previous.get("env") or {}
            prev_config = previous.get("config") or {}

        original = self.read_json_object(self.settings_file)
        merged = merge_owned_keys(original or {}, config, prev_config, reserved=("mcpServers",))

        with self.guard(self.env_file):
            env_text = read_text_or_none(self.env_file)
        owned = set(env) | set(prev_env)
        new_env_text = update_env_text(env_text or "", env, owned)

        with self.restore_on_failure(self.env_file):
            if new_env_text != (env_text or ""):
                with self.guard(self.env_file):
                    atomic_write_text(self.env_file, new_env_text, mode=0o600)
            self.write_json_object(self.settings_file, merged, original)

    def write_mcp_servers(self, servers: Mapping[str, Mapping[str, Any]]) -> None:
        entries = {}
        for server_id, spec in servers.items():
            transport, spec = self.normalize_server(server_id, spec)
            entries[server_id] = self._gemini_entry(transport, spec)

        original = self.read_json_object(self.settings_file)
        data = dict(original or {})
        if entries:
            data["mcpServers"] = entries
        else:
            data.pop("mcpServers", None)
        self.write_json_object(self.settings_file, data, original)

    def _env_values(self, env: Any) -> dict[str, str]:
        env = self.require_mapping(env, "Gemini 'env'")
        values = {}
        for key, value in env.items():
            if isinstance(value, bool):
                values[key] = "true" if value else "false"
            elif isinstance(value, (str, int, float)):
                values[key] = str(value)
            else:
                raise self.fail(f"Gemini env '{key}' must be a scalar value")
        return values

    @staticmethod
    def _gemini_entry(transport: str, spec: Mapping[str, Any]) -> dict[str, Any]:
        if transport == "stdio":
            entry: dict[str, Any] = {"command": spec["command"]}
            for key in ("args", "env", "cwd"):
                if spec.get(key):
                    entry[key] = spec[key]
            return entry
        entry = {"httpUrl" if transport == "http" else "url": spec["url"]}
        if spec.get("headers"):
            entry["headers"] = dict(spec["headers"])
        return entry
