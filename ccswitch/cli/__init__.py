"""CLI commands."""

from . import apps, config, env, interactive, main, mcp, prompts, provider

__all__ = ["apps", "config", "env", "interactive", "main", "mcp", "prompts", "provider"]
