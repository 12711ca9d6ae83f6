"""cc-switch - manage providers, MCP servers and prompts for AI coding CLIs."""

__version__ = "0.3.0"
