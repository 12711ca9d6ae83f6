"""Detect shell environment variables that override projected settings."""

import os
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

from ..models.app import AppType

ENV_PREFIXES = {
    AppType.CLAUDE: ("ANTHROPIC_", "CLAUDE_CODE_"),
    AppType.CODEX: ("OPENAI_",),
    AppType.GEMINI: ("GEMINI_", "GOOGLE_"),
}

_SECRET_MARKERS = ("KEY", "TOKEN", "SECRET", "PASSWORD")


class EnvVar(BaseModel):
    """A relevant variable found in the process environment."""

    name: str
    value: str
    expected: str | None = None

    @property
    def conflict(self) -> bool:
        return self.expected is not None and self.expected != self.value


def mask_value(name: str, value: str) -> str:
    """Hide most of a secret-looking value."""
    if any(marker in name.upper() for marker in _SECRET_MARKERS) and len(value) > 8:
        return f"{value[:4]}…{value[-4:]}"
    return value


def provider_env(app: AppType, settings: Mapping[str, Any]) -> dict[str, str]:
    """Environment-style keys a provider payload sets for ``app``."""
    source = settings.get("auth") if app == AppType.CODEX else settings.get("env")
    if not isinstance(source, Mapping):
        return {}
    return {k: str(v) for k, v in source.items() if isinstance(v, (str, int, float))}


def list_env_vars(app: AppType, environ: Mapping[str, str] | None = None) -> list[EnvVar]:
    """Variables in the environment with ``app``'s prefixes, sorted by name."""
    environ = os.environ if environ is None else environ
    prefixes = ENV_PREFIXES[app]
    return [
        EnvVar(name=name, value=value)
        for name, value in sorted(environ.items())
        if name.startswith(prefixes)
    ]


def check_env_conflicts(
    app: AppType,
    settings: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
) -> list[EnvVar]:
    """Variables that shadow the current provider with a different value.

    Args:
        app: Target application
        settings: Current provider payload (None when no provider is selected)
        environ: Environment to inspect (defaults to os.environ)

    Returns:
        Conflicting variables with ``expected`` set to the provider's value
    """
    expected = provider_env(app, settings or {})
    found = []
    for var in list_env_vars(app, environ):
        if var.name in expected:
            var.expected = expected[var.name]
            if var.conflict:
                found.append(var)
    return found
