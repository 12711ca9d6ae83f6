"""Unified store and path models."""

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from .app import AppType
from .mcp import McpServer
from .prompt import Prompt
from .provider import ProviderManager


def _per_app(factory):
    return lambda: {app: factory() for app in AppType}


def _check_keys(entries: dict, what: str) -> None:
    for key, entry in entries.items():
        if key != entry.id:
            raise ValueError(f"{what} stored under '{key}' has id '{entry.id}'")


class MultiAppConfig(BaseModel):
    """Everything cc-switch persists: providers, prompts and MCP servers."""

    version: int = 1
    apps: dict[AppType, ProviderManager] = Field(default_factory=_per_app(ProviderManager))
    prompts: dict[AppType, dict[str, Prompt]] = Field(default_factory=_per_app(dict))
    mcp_servers: dict[str, McpServer] = Field(default_factory=dict)

    @field_validator("apps", "prompts")
    @classmethod
    def fill_missing_apps(cls, v: dict, info: Any) -> dict:
        """Ensure every known application has an entry.

        Args:
            v: Field value
            info: Validation info

        Returns:
            Mapping with one entry per application
        """
        factory = ProviderManager if info.field_name == "apps" else dict
        for app in AppType:
            v.setdefault(app, factory())
        return v

    @model_validator(mode="after")
    def check_invariants(self) -> "MultiAppConfig":
        """Reject stores whose map keys or pointers are inconsistent."""
        for app in AppType:
            manager = self.apps[app]
            _check_keys(manager.providers, f"{app.value} provider")
            if manager.current and manager.current not in manager.providers:
                raise ValueError(f"current {app.value} provider '{manager.current}' does not exist")
            prompts = self.prompts[app]
            _check_keys(prompts, f"{app.value} prompt")
            enabled = [pid for pid, prompt in prompts.items() if prompt.enabled]
            if len(enabled) > 1:
                raise ValueError(f"{app.value} has more than one enabled prompt: {', '.join(enabled)}")
        _check_keys(self.mcp_servers, "MCP server")
        return self

    def manager(self, app: AppType) -> ProviderManager:
        return self.apps[app]

    def prompts_for(self, app: AppType) -> dict[str, Prompt]:
        return self.prompts[app]


class LivePaths(BaseModel):
    """Config directories of the target applications."""

    home: Path
    claude_dir: Path
    codex_dir: Path
    gemini_dir: Path

    @classmethod
    def from_env(cls, home: Path | None = None) -> "LivePaths":
        """Resolve directories from the environment.

        Args:
            home: Home directory (defaults to the user's home)

        Returns:
            Resolved paths honouring CLAUDE_CONFIG_DIR, CODEX_HOME and GEMINI_CONFIG_DIR
        """
        if home is None:
            home = Path.home()

        def resolve(var: str, default: Path) -> Path:
            value = os.environ.get(var)
            return Path(value).expanduser() if value else default

        return cls(
            home=home,
            claude_dir=resolve("CLAUDE_CONFIG_DIR", home / ".claude"),
            codex_dir=resolve("CODEX_HOME", home / ".codex"),
            gemini_dir=resolve("GEMINI_CONFIG_DIR", home / ".gemini"),
        )
