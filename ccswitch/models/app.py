"""Target application models."""

from enum import Enum


class AppType(str, Enum):
    """AI command-line clients whose live config files cc-switch manages."""

    CLAUDE = "claude"
    CODEX = "codex"
    GEMINI = "gemini"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]


_DISPLAY_NAMES = {
    AppType.CLAUDE: "Claude Code",
    AppType.CODEX: "Codex",
    AppType.GEMINI: "Gemini CLI",
}
