"""Store persistence and the shared state handle."""

from .manager import CONFIG_DIR_ENV, ConfigManager
from .state import AppState

__all__ = ["AppState", "CONFIG_DIR_ENV", "ConfigManager"]
