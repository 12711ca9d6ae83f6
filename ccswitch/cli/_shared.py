"""Shared helpers for cc-switch commands."""

import json
from pathlib import Path
from typing import Any

import typer
import yaml

from ..config import AppState, ConfigManager
from ..models.app import AppType


class CliContext:
    """Options given to the top-level command, plus the lazily loaded state."""

    def __init__(self, app: AppType = AppType.CLAUDE, config_dir: Path | None = None) -> None:
        """Initialize CLI context.

        Args:
            app: Target application selected with --app
            config_dir: Store directory override
        """
        self.app = app
        self.config_dir = config_dir
        self._state: AppState | None = None

    def state(self) -> AppState:
        """Load the store once per invocation.

        Raises:
            ConfigLoadError: If the store is unreadable or invalid
        """
        if self._state is None:
            self._state = AppState.load(ConfigManager(self.config_dir))
        return self._state


def get_context(ctx: typer.Context) -> CliContext:
    """CLI context stored by the root callback."""
    if not isinstance(ctx.obj, CliContext):
        ctx.obj = CliContext()
    return ctx.obj


def parse_kv_pairs(pairs: list[str] | None, label: str) -> dict[str, str]:
    """Parse repeated ``KEY=VALUE`` options into a dict."""
    result: dict[str, str] = {}
    for pair in pairs or []:
        if "=" not in pair:
            raise typer.BadParameter(f"expected KEY=VALUE, got '{pair}'", param_hint=label)
        key, value = pair.split("=", 1)
        result[key.strip()] = value
    return result


def load_mapping_file(path: Path) -> dict[str, Any]:
    """Read a JSON or YAML file that must contain a mapping."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise typer.BadParameter(f"cannot read {path}: {e.strerror or e}")
    try:
        data = json.loads(text) if path.suffix == ".json" else yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise typer.BadParameter(f"{path} is not valid: {e}")
    if not isinstance(data, dict):
        raise typer.BadParameter(f"{path} must contain a mapping")
    return data


def parse_json_mapping(text: str, label: str) -> dict[str, Any]:
    """Parse a JSON object given on the command line."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise typer.BadParameter(f"invalid JSON: {e}", param_hint=label)
    if not isinstance(data, dict):
        raise typer.BadParameter("must be a JSON object", param_hint=label)
    return data


def edit_mapping(data: dict[str, Any]) -> dict[str, Any] | None:
    """Open ``data`` as JSON in $EDITOR. Returns None when nothing was saved."""
    edited = typer.edit(json.dumps(data, indent=2, ensure_ascii=False) + "\n", extension=".json")
    if edited is None:
        return None
    return parse_json_mapping(edited, "editor")
