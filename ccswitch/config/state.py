"""Process-wide handle around one loaded store."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from ..live import LiveProjector, get_projector
from ..models.app import AppType
from ..models.config import LivePaths, MultiAppConfig
from ..utils.locks import ReadWriteLock
from .manager import ConfigManager

logger = logging.getLogger(__name__)


class AppState:
    """Lock-guarded owner of the store shared by all services.

    Construct one per CLI invocation (or per interactive session) and pass it
    to each service. Hold ``read()`` for observations and ``write()`` for a
    whole mutation including persistence and projection.
    """

    def __init__(
        self,
        config: MultiAppConfig,
        config_manager: ConfigManager,
        paths: LivePaths,
        projectors: dict[AppType, LiveProjector] | None = None,
    ) -> None:
        """Initialize state handle.

        Args:
            config: Loaded store
            config_manager: Persistence backend
            paths: Live config directories of the target applications
            projectors: Projector overrides per application
        """
        self._config = config
        self._lock = ReadWriteLock()
        self.config_manager = config_manager
        self.paths = paths
        self._projectors: dict[AppType, LiveProjector] = {app: get_projector(app, paths) for app in AppType}
        self._projectors.update(projectors or {})

    @classmethod
    def load(
        cls,
        config_manager: ConfigManager | None = None,
        paths: LivePaths | None = None,
    ) -> "AppState":
        """Read persisted storage into a fresh handle.

        Raises:
            ConfigLoadError: If the store is unreadable or invalid
        """
        config_manager = config_manager or ConfigManager()
        config = config_manager.load()
        return cls(config, config_manager, paths or LivePaths.from_env())

    @contextmanager
    def read(self) -> Iterator[MultiAppConfig]:
        """Shared access. Callers must not mutate the yielded store."""
        with self._lock.read_locked():
            yield self._config

    @contextmanager
    def write(self) -> Iterator[MultiAppConfig]:
        """Exclusive access for one logical mutation."""
        with self._lock.write_locked():
            yield self._config

    def persist(self) -> None:
        """Flush the store to disk. Call while holding ``write()``.

        Raises:
            ConfigSaveError: If the write fails
        """
        self.config_manager.save(self._config)

    def replace(self, config: MultiAppConfig) -> None:
        """Swap in a whole new store and persist it."""
        with self.write():
            previous = self._config
            self._config = config
            try:
                self.persist()
            except Exception:
                self._config = previous
                raise
        logger.info("Replaced store from import")

    def projector(self, app: AppType) -> LiveProjector:
        """Projector writing ``app``'s live config files."""
        return self._projectors[app]
