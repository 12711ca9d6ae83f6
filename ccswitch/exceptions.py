"""Custom exceptions for cc-switch."""

from collections.abc import Iterable


class CCSwitchError(Exception):
    """Base exception for cc-switch."""

    pass


class ConfigError(CCSwitchError):
    """Unified store related errors."""

    pass


class ConfigLoadError(ConfigError):
    """Store unreadable, malformed or invalid at startup."""

    pass


class ConfigSaveError(ConfigError):
    """Store could not be written back to disk."""

    pass


class NotFoundError(CCSwitchError):
    """Referenced identifier does not exist."""

    def __init__(self, kind: str, identifier: str, detail: str | None = None) -> None:
        """Initialize not found error.

        Args:
            kind: Type of entity (provider, prompt, MCP server)
            identifier: Entity identifier
            detail: Optional extra context appended to the message
        """
        message = f"{kind} '{identifier}' not found"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
        self.kind = kind
        self.identifier = identifier


class InvalidOperationError(CCSwitchError):
    """Operation would violate a store invariant."""

    pass


class ProjectionError(CCSwitchError):
    """A target application's live config file could not be written."""

    def __init__(
        self,
        apps: str | Iterable[str],
        detail: str,
        rolled_back: bool = False,
        stale_files: Iterable[str] = (),
    ) -> None:
        """Initialize projection error.

        Args:
            apps: Target application(s) whose live files were not updated
            detail: What went wrong
            rolled_back: The store change was undone as well
            stale_files: Files already rewritten that could not be restored
        """
        self.apps = [apps] if isinstance(apps, str) else list(apps)
        self.detail = detail
        self.rolled_back = rolled_back
        self.stale_files = list(stale_files)
        names = ", ".join(self.apps)
        if rolled_back and self.stale_files:
            hint = (
                "The store change was rolled back, but "
                f"{', '.join(self.stale_files)} could not be restored and holds the new settings; "
                "re-run the command to repair it."
            )
        elif rolled_back:
            hint = "The change was rolled back; the live files still hold the previous settings."
        else:
            hint = (
                "The cc-switch store is saved but the live file is stale; "
                "re-run 'cc-switch mcp sync' or the same command to retry."
            )
        super().__init__(f"Failed to update live config for {names}: {detail}. {hint}")

    @property
    def app(self) -> str:
        """First failing application."""
        return self.apps[0]
