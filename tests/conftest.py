"""Shared fixtures: an isolated home, store directory and state handle."""

import pytest

from ccswitch.config import AppState, ConfigManager
from ccswitch.models import LivePaths, MultiAppConfig, Provider


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for var in ("CLAUDE_CONFIG_DIR", "CODEX_HOME", "GEMINI_CONFIG_DIR", "CC_SWITCH_CONFIG_DIR", "CC_SWITCH_APP"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def home(tmp_path):
    path = tmp_path / "home"
    path.mkdir()
    return path


@pytest.fixture
def paths(home):
    return LivePaths(
        home=home,
        claude_dir=home / ".claude",
        codex_dir=home / ".codex",
        gemini_dir=home / ".gemini",
    )


@pytest.fixture
def config_manager(tmp_path):
    return ConfigManager(tmp_path / "store")


@pytest.fixture
def state(config_manager, paths):
    return AppState(MultiAppConfig(), config_manager, paths)


def _claude_provider(pid: str, token: str = "tok", **kwargs) -> Provider:
    return Provider(
        id=pid,
        name=kwargs.pop("name", pid.title()),
        settings_config={"env": {"ANTHROPIC_AUTH_TOKEN": token}, **kwargs.pop("extra", {})},
        **kwargs,
    )


@pytest.fixture
def make_provider():
    """Factory for Claude providers whose payload carries one auth token."""
    return _claude_provider
