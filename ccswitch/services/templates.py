"""Starter provider payloads for each target application."""

from typing import Any

import tomlkit

from ..models.app import AppType

CATEGORIES = ["official", "custom", "third_party", "aggregator", "other"]


def default_settings(
    app: AppType,
    api_key: str,
    base_url: str | None = None,
    model: str | None = None,
) -> dict[str, Any]:
    """Build a provider ``settings_config`` from the usual three inputs.

    Args:
        app: Target application
        api_key: API key or auth token
        base_url: Custom endpoint (omit for the vendor default)
        model: Default model name

    Returns:
        Payload in the shape the application's projector expects
    """
    if app == AppType.CLAUDE:
        env = {"ANTHROPIC_AUTH_TOKEN": api_key}
        if base_url:
            env["ANTHROPIC_BASE_URL"] = base_url
        if model:
            env["ANTHROPIC_MODEL"] = model
        return {"env": env}

    if app == AppType.CODEX:
        doc = tomlkit.document()
        if model:
            doc["model"] = model
        if base_url:
            doc["model_provider"] = "custom"
            custom = tomlkit.table()
            custom["name"] = "custom"
            custom["base_url"] = base_url
            custom["wire_api"] = "responses"
            custom["requires_openai_auth"] = True
            providers = tomlkit.table(is_super_table=True)
            providers["custom"] = custom
            doc["model_providers"] = providers
        return {"auth": {"OPENAI_API_KEY": api_key}, "config": tomlkit.dumps(doc)}

    env = {"GEMINI_API_KEY": api_key}
    if base_url:
        env["GOOGLE_GEMINI_BASE_URL"] = base_url
    if model:
        env["GEMINI_MODEL"] = model
    return {"env": env}
