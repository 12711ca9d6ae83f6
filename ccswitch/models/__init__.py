"""Data models."""

from .app import AppType
from .config import LivePaths, MultiAppConfig
from .mcp import McpApps, McpServer
from .prompt import Prompt, active_prompt, sort_prompts
from .provider import Provider, ProviderManager, sort_providers

__all__ = [
    "AppType",
    "LivePaths",
    "McpApps",
    "McpServer",
    "MultiAppConfig",
    "Prompt",
    "Provider",
    "ProviderManager",
    "active_prompt",
    "sort_prompts",
    "sort_providers",
]
