"""MCP server models."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .app import AppType


class McpApps(BaseModel):
    """Per-application enablement flags. Unknown applications are rejected."""

    model_config = ConfigDict(extra="forbid")

    claude: bool = False
    codex: bool = False
    gemini: bool = False

    def is_enabled_for(self, app: AppType) -> bool:
        return getattr(self, app.value)

    def set_enabled(self, app: AppType, enabled: bool) -> None:
        setattr(self, app.value, enabled)

    def enabled_apps(self) -> list[AppType]:
        return [app for app in AppType if self.is_enabled_for(app)]


class McpServer(BaseModel):
    """A Model Context Protocol server shared across target applications."""

    id: str = Field(..., min_length=1)
    name: str
    server: dict[str, Any] = Field(default_factory=dict)
    apps: McpApps = Field(default_factory=McpApps)
    description: str | None = None
