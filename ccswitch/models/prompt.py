"""Prompt preset models."""

from pydantic import BaseModel, Field


class Prompt(BaseModel):
    """A reusable system-prompt preset for one target application."""

    id: str = Field(..., min_length=1)
    name: str
    content: str = ""
    description: str | None = None
    enabled: bool = False
    created_at: int | None = None
    updated_at: int | None = None


def sort_prompts(prompts: dict[str, Prompt]) -> list[tuple[str, Prompt]]:
    """Order prompts most-recently-updated first; missing timestamps sort as oldest."""
    ordered = sorted(prompts.items(), key=lambda item: item[0])
    return sorted(ordered, key=lambda item: item[1].updated_at or 0, reverse=True)


def active_prompt(prompts: dict[str, Prompt]) -> Prompt | None:
    """Return the enabled prompt, if any."""
    return next((p for p in prompts.values() if p.enabled), None)
