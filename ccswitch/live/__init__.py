"""Live-file projectors, one per target application."""

from ..models.app import AppType
from ..models.config import LivePaths
from .base import LiveProjector, merge_owned_keys
from .claude import ClaudeProjector
from .codex import CodexProjector
from .gemini import GeminiProjector

_PROJECTORS: dict[AppType, type[LiveProjector]] = {
    AppType.CLAUDE: ClaudeProjector,
    AppType.CODEX: CodexProjector,
    AppType.GEMINI: GeminiProjector,
}


def get_projector(app: AppType, paths: LivePaths) -> LiveProjector:
    """Create the projector for ``app``."""
    return _PROJECTORS[app](paths)


__all__ = [
    "ClaudeProjector",
    "CodexProjector",
    "GeminiProjector",
    "LiveProjector",
    "get_projector",
    "merge_owned_keys",
]
