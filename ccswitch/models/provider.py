"""Provider models."""

from typing import Any

from pydantic import BaseModel, Field


class Provider(BaseModel):
    """One backend endpoint profile for a target application."""

    id: str = Field(..., min_length=1)
    name: str
    settings_config: dict[str, Any] = Field(default_factory=dict)
    category: str | None = None
    website_url: str | None = None
    notes: str | None = None
    created_at: int | None = None
    sort_index: int | None = None


class ProviderManager(BaseModel):
    """Provider map plus the current-provider pointer for one application."""

    providers: dict[str, Provider] = Field(default_factory=dict)
    current: str = ""


def sort_providers(providers: dict[str, Provider]) -> list[tuple[str, Provider]]:
    """Order providers for display.

    Explicit ``sort_index`` ascending first (providers with an index come
    before those without), then ``created_at`` ascending with missing
    timestamps first, then id.
    """

    def key(item: tuple[str, Provider]) -> tuple:
        pid, provider = item
        has_index = provider.sort_index is not None
        return (
            not has_index,
            provider.sort_index if has_index else 0,
            provider.created_at if provider.created_at is not None else -1,
            pid,
        )

    return sorted(providers.items(), key=key)
