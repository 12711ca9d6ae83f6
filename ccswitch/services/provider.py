"""Provider CRUD and the atomic current-provider switch."""

import logging

from ..config.state import AppState
from ..exceptions import ConfigSaveError, InvalidOperationError, NotFoundError, ProjectionError
from ..models.app import AppType
from ..models.config import MultiAppConfig
from ..models.provider import Provider
from ..utils.helpers import now_ts

logger = logging.getLogger(__name__)


class ProviderService:
    """Manage the providers of each target application."""

    def __init__(self, state: AppState) -> None:
        """Initialize provider service.

        Args:
            state: Shared state handle
        """
        self.state = state

    def list(self, app: AppType) -> dict[str, Provider]:
        """All providers for ``app`` (copies; never mutates)."""
        with self.state.read() as config:
            return {pid: p.model_copy(deep=True) for pid, p in config.manager(app).providers.items()}

    def get(self, app: AppType, provider_id: str) -> Provider:
        """A single provider.

        Raises:
            NotFoundError: If the provider does not exist
        """
        with self.state.read() as config:
            provider = config.manager(app).providers.get(provider_id)
            if provider is None:
                raise NotFoundError("Provider", provider_id)
            return provider.model_copy(deep=True)

    def current(self, app: AppType) -> str:
        """Identifier of the current provider.

        Raises:
            NotFoundError: If no provider is current or the pointer is dangling
        """
        with self.state.read() as config:
            manager = config.manager(app)
            if not manager.current:
                raise NotFoundError("Current provider", app.value, "no provider selected")
            if manager.current not in manager.providers:
                logger.error("Store is inconsistent: current %s provider '%s' is missing", app.value, manager.current)
                raise NotFoundError("Current provider", manager.current, "store is inconsistent")
            return manager.current

    def switch(self, app: AppType, provider_id: str) -> None:
        """Make ``provider_id`` current, persist and project it.

        All or nothing: on a persistence or projection failure the previous
        pointer is restored (and saved again) before the error propagates.

        Raises:
            NotFoundError: If the provider does not exist
            ConfigSaveError: If the store cannot be saved
            ProjectionError: If the live files cannot be written
        """
        with self.state.write() as config:
            manager = config.manager(app)
            provider = manager.providers.get(provider_id)
            if provider is None:
                raise NotFoundError("Provider", provider_id)

            previous_id = manager.current
            previous = manager.providers.get(previous_id)
            manager.current = provider_id
            try:
                self.state.persist()
                self.state.projector(app).write_provider(
                    provider.settings_config,
                    previous.settings_config if previous and previous_id != provider_id else None,
                )
            except ProjectionError as e:
                self._restore_current(config, app, previous_id)
                raise ProjectionError(e.apps, e.detail, rolled_back=True, stale_files=e.stale_files) from e
            except Exception:
                self._restore_current(config, app, previous_id)
                raise
        logger.info("Switched %s provider to '%s'", app.value, provider_id)

    def add(self, app: AppType, provider: Provider) -> bool:
        """Add a provider. The first provider of an app becomes current.

        Returns:
            True if the provider became current

        Raises:
            InvalidOperationError: If the id is already taken
            ProjectionError: If it became current and its live files cannot be written
        """
        with self.state.write() as config:
            manager = config.manager(app)
            if provider.id in manager.providers:
                raise InvalidOperationError(f"Provider '{provider.id}' already exists")
            provider = provider.model_copy(deep=True)
            if provider.created_at is None:
                provider.created_at = now_ts()
            manager.providers[provider.id] = provider
            becomes_current = not manager.current or manager.current not in manager.providers
            if becomes_current:
                manager.current = provider.id
            try:
                self.state.persist()
            except Exception:
                del manager.providers[provider.id]
                if becomes_current:
                    manager.current = ""
                raise
            logger.info("Added %s provider '%s'", app.value, provider.id)
            if becomes_current:
                self.state.projector(app).write_provider(provider.settings_config)
        return becomes_current

    def update(self, app: AppType, provider: Provider) -> None:
        """Replace an existing provider; re-project it when it is current.

        Raises:
            NotFoundError: If the provider does not exist
            ProjectionError: If it is current and its live files cannot be written
        """
        with self.state.write() as config:
            manager = config.manager(app)
            old = manager.providers.get(provider.id)
            if old is None:
                raise NotFoundError("Provider", provider.id)
            provider = provider.model_copy(deep=True)
            if provider.created_at is None:
                provider.created_at = old.created_at
            manager.providers[provider.id] = provider
            try:
                self.state.persist()
            except Exception:
                manager.providers[provider.id] = old
                raise
            logger.info("Updated %s provider '%s'", app.value, provider.id)
            if manager.current == provider.id:
                self.state.projector(app).write_provider(provider.settings_config, old.settings_config)

    def duplicate(self, app: AppType, provider_id: str, new_id: str | None = None) -> Provider:
        """Copy a provider under a fresh id.

        Raises:
            NotFoundError: If the source provider does not exist
            InvalidOperationError: If ``new_id`` is already taken
        """
        with self.state.read() as config:
            providers = config.manager(app).providers
            source = providers.get(provider_id)
            if source is None:
                raise NotFoundError("Provider", provider_id)
            if new_id is None:
                new_id = _free_id(f"{provider_id}-copy", providers)
            copy = source.model_copy(
                deep=True,
                update={"id": new_id, "name": f"{source.name} (copy)", "created_at": None, "sort_index": None},
            )
        self.add(app, copy)
        return self.get(app, copy.id)

    def delete(self, app: AppType, provider_id: str) -> None:
        """Remove a provider that is not current.

        Raises:
            InvalidOperationError: If the provider is current
            NotFoundError: If the provider does not exist
        """
        with self.state.write() as config:
            manager = config.manager(app)
            if provider_id == manager.current:
                raise InvalidOperationError(
                    f"Cannot delete the current {app.value} provider '{provider_id}'. "
                    "Switch to another provider first."
                )
            removed = manager.providers.pop(provider_id, None)
            if removed is None:
                raise NotFoundError("Provider", provider_id)
            try:
                self.state.persist()
            except Exception:
                manager.providers[provider_id] = removed
                raise
        logger.info("Deleted %s provider '%s'", app.value, provider_id)

    def _restore_current(self, config: MultiAppConfig, app: AppType, previous_id: str) -> None:
        """Undo a switch in memory and on disk. Call while holding ``write()``.

        A failure to save the restored pointer is logged, not raised, so the
        error that caused the rollback is the one reported.
        """
        config.manager(app).current = previous_id
        try:
            self.state.persist()
        except ConfigSaveError as e:
            logger.error("Could not save the rolled-back %s provider '%s': %s", app.value, previous_id, e)


def _free_id(base: str, taken: dict) -> str:
    if base not in taken:
        return base
    n = 2
    while f"{base}-{n}" in taken:
        n += 1
    return f"{base}-{n}"
