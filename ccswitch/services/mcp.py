"""Shared MCP server definitions and their fan-out to live files."""

import logging

from ..config.state import AppState
from ..exceptions import NotFoundError, ProjectionError
from ..models.app import AppType
from ..models.config import MultiAppConfig
from ..models.mcp import McpServer

logger = logging.getLogger(__name__)


class McpService:
    """Manage MCP servers and sync the enabled ones into each application.

    Create, update, delete and enable/disable only touch the store; nothing
    reaches the live files until ``sync_all_enabled`` or ``sync_app`` runs,
    so several edits can be staged and applied together.
    """

    def __init__(self, state: AppState) -> None:
        """Initialize MCP service.

        Args:
            state: Shared state handle
        """
        self.state = state

    def get_all_servers(self) -> dict[str, McpServer]:
        """All server definitions (copies)."""
        with self.state.read() as config:
            return {sid: s.model_copy(deep=True) for sid, s in config.mcp_servers.items()}

    def get_server(self, server_id: str) -> McpServer:
        """A single server definition.

        Raises:
            NotFoundError: If the server does not exist
        """
        with self.state.read() as config:
            server = config.mcp_servers.get(server_id)
            if server is None:
                raise NotFoundError("MCP server", server_id)
            return server.model_copy(deep=True)

    def enabled_servers(self, app: AppType) -> dict[str, McpServer]:
        """Servers enabled for ``app`` (copies)."""
        with self.state.read() as config:
            return {
                sid: s.model_copy(deep=True)
                for sid, s in config.mcp_servers.items()
                if s.apps.is_enabled_for(app)
            }

    def upsert(self, server: McpServer) -> bool:
        """Create or replace a server definition.

        Returns:
            True if the server is new
        """
        with self.state.write() as config:
            old = config.mcp_servers.get(server.id)
            config.mcp_servers[server.id] = server.model_copy(deep=True)
            try:
                self.state.persist()
            except Exception:
                if old is None:
                    del config.mcp_servers[server.id]
                else:
                    config.mcp_servers[server.id] = old
                raise
        logger.info("%s MCP server '%s'", "Added" if old is None else "Updated", server.id)
        return old is None

    def delete(self, server_id: str) -> None:
        """Remove a server definition.

        Raises:
            NotFoundError: If the server does not exist
        """
        with self.state.write() as config:
            removed = config.mcp_servers.pop(server_id, None)
            if removed is None:
                raise NotFoundError("MCP server", server_id)
            try:
                self.state.persist()
            except Exception:
                config.mcp_servers[server_id] = removed
                raise
        logger.info("Deleted MCP server '%s'", server_id)

    def set_enabled(self, server_id: str, app: AppType, enabled: bool) -> None:
        """Toggle a server for one application.

        Raises:
            NotFoundError: If the server does not exist
        """
        with self.state.write() as config:
            server = config.mcp_servers.get(server_id)
            if server is None:
                raise NotFoundError("MCP server", server_id)
            was_enabled = server.apps.is_enabled_for(app)
            if was_enabled == enabled:
                return
            server.apps.set_enabled(app, enabled)
            try:
                self.state.persist()
            except Exception:
                server.apps.set_enabled(app, was_enabled)
                raise
        logger.info("%s MCP server '%s' for %s", "Enabled" if enabled else "Disabled", server_id, app.value)

    def sync_app(self, app: AppType) -> None:
        """Re-project the enabled servers of one application.

        Raises:
            ProjectionError: If the live file cannot be written
        """
        with self.state.write() as config:
            self._project(config, app)

    def sync_all_enabled(self) -> None:
        """Re-project the enabled servers of every application.

        Every application is attempted; failures are reported together.

        Raises:
            ProjectionError: Naming each application whose live file is stale
        """
        failures: list[ProjectionError] = []
        with self.state.write() as config:
            for app in AppType:
                try:
                    self._project(config, app)
                except ProjectionError as e:
                    logger.warning("MCP sync failed for %s: %s", app.value, e.detail)
                    failures.append(e)
        if failures:
            if len(failures) == 1:
                raise failures[0]
            raise ProjectionError(
                [app for e in failures for app in e.apps],
                "; ".join(f"{e.app}: {e.detail}" for e in failures),
            )

    def _project(self, config: MultiAppConfig, app: AppType) -> None:
        servers = {
            sid: server.server
            for sid, server in sorted(config.mcp_servers.items())
            if server.apps.is_enabled_for(app)
        }
        self.state.projector(app).write_mcp_servers(servers)
        logger.debug("Synced %d MCP server(s) to %s", len(servers), app.value)
