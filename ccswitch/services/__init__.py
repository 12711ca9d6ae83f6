"""Services operating on the shared store."""

from .mcp import McpService
from .prompt import PromptService
from .provider import ProviderService

__all__ = ["McpService", "PromptService", "ProviderService"]
