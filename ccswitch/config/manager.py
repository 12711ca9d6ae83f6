"""Persisted storage for the cc-switch store."""

import logging
import os
import shutil
from pathlib import Path

import yaml
from pydantic import ValidationError

from ..exceptions import ConfigLoadError, ConfigSaveError
from ..models.config import MultiAppConfig
from ..utils.files import atomic_write_text

logger = logging.getLogger(__name__)

CONFIG_DIR_ENV = "CC_SWITCH_CONFIG_DIR"


class ConfigManager:
    """Load and save the unified cc-switch store."""

    def __init__(self, config_dir: Path | None = None) -> None:
        """Initialize config manager.

        Args:
            config_dir: Custom config directory (defaults to $CC_SWITCH_CONFIG_DIR or ~/.cc-switch)
        """
        if config_dir is None:
            env_dir = os.environ.get(CONFIG_DIR_ENV)
            config_dir = Path(env_dir).expanduser() if env_dir else Path.home() / ".cc-switch"
        self.config_dir = config_dir
        self.config_file = self.config_dir / "config.yaml"
        self.backup_file = self.config_dir / "config.yaml.bak"

    def _ensure_config_dir(self) -> None:
        """Create config directory if it doesn't exist."""
        self.config_dir.mkdir(parents=True, exist_ok=True)
        os.chmod(self.config_dir, 0o700)

    def exists(self) -> bool:
        """Check if config file exists.

        Returns:
            True if config file exists
        """
        return self.config_file.exists()

    def load(self) -> MultiAppConfig:
        """Load the store from file.

        A missing file yields an empty store; it is written on the first mutation.

        Returns:
            Loaded store

        Raises:
            ConfigLoadError: If the file is unreadable, malformed or invalid
        """
        if not self.exists():
            logger.info("No store at %s, starting empty", self.config_file)
            return MultiAppConfig()
        return self._read(self.config_file)

    def save(self, config: MultiAppConfig) -> None:
        """Save the whole store to file.

        Args:
            config: Store to save

        Raises:
            ConfigSaveError: If the write fails
        """
        try:
            self._ensure_config_dir()
            atomic_write_text(self.config_file, self.dump(config), mode=0o600)
        except OSError as e:
            raise ConfigSaveError(f"Failed to save config to {self.config_file}: {e}") from e
        logger.debug("Saved store to %s", self.config_file)

    @staticmethod
    def dump(config: MultiAppConfig) -> str:
        """Serialize a store to YAML text."""
        data = config.model_dump(mode="json", exclude_none=True)
        return yaml.safe_dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True)

    def export_to(self, config: MultiAppConfig, path: Path) -> None:
        """Write a copy of the store to another file.

        Raises:
            ConfigSaveError: If the write fails
        """
        try:
            atomic_write_text(path, self.dump(config), mode=0o600)
        except OSError as e:
            raise ConfigSaveError(f"Failed to export config to {path}: {e}") from e

    def import_from(self, path: Path) -> MultiAppConfig:
        """Read and validate a store exported earlier.

        Raises:
            ConfigLoadError: If the file is missing, malformed or invalid
        """
        if not path.exists():
            raise ConfigLoadError(f"Import file not found: {path}")
        return self._read(path)

    def backup(self) -> Path | None:
        """Copy the current store next to itself. Returns the backup path, if any."""
        if not self.exists():
            return None
        try:
            shutil.copy2(self.config_file, self.backup_file)
        except OSError as e:
            raise ConfigSaveError(f"Failed to back up config: {e}") from e
        return self.backup_file

    @staticmethod
    def _read(path: Path) -> MultiAppConfig:
        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigLoadError(f"Invalid YAML in config file {path}: {e}") from e
        except OSError as e:
            raise ConfigLoadError(f"Failed to read config file {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigLoadError(f"Config file {path} must contain a mapping")

        try:
            return MultiAppConfig.model_validate(data)
        except ValidationError as e:
            raise ConfigLoadError(f"Invalid config file {path}: {e}") from e
