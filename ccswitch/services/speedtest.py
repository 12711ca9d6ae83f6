"""Endpoint latency checks for providers."""

import asyncio
import logging
import time
from collections.abc import Mapping
from typing import Any

import httpx
from pydantic import BaseModel
from tomlkit.exceptions import TOMLKitError

from ..live.codex import parse_codex_config
from ..models.app import AppType
from ..models.provider import Provider

logger = logging.getLogger(__name__)

DEFAULT_BASE_URLS = {
    AppType.CLAUDE: "https://api.anthropic.com",
    AppType.CODEX: "https://api.openai.com/v1",
    AppType.GEMINI: "https://generativelanguage.googleapis.com",
}


class SpeedtestResult(BaseModel):
    """Outcome of one endpoint probe."""

    provider_id: str
    url: str
    latency_ms: float | None = None
    status_code: int | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def provider_base_url(app: AppType, settings: Mapping[str, Any]) -> str:
    """Endpoint a provider payload points at, falling back to the vendor default."""
    url: Any = None
    if app == AppType.CLAUDE:
        url = (settings.get("env") or {}).get("ANTHROPIC_BASE_URL")
    elif app == AppType.GEMINI:
        url = (settings.get("env") or {}).get("GOOGLE_GEMINI_BASE_URL")
    elif app == AppType.CODEX:
        try:
            config = parse_codex_config(settings.get("config"))
        except (TOMLKitError, TypeError):
            config = {}
        model_provider = config.get("model_provider")
        providers = config.get("model_providers") or {}
        if model_provider and isinstance(providers.get(model_provider), Mapping):
            url = providers[model_provider].get("base_url")
        url = url or config.get("base_url")
    if not isinstance(url, str) or not url:
        return DEFAULT_BASE_URLS[app]
    return url.rstrip("/")


async def _probe(client: httpx.AsyncClient, provider_id: str, url: str) -> SpeedtestResult:
    start = time.perf_counter()
    try:
        response = await client.get(url)
    except httpx.TimeoutException:
        return SpeedtestResult(provider_id=provider_id, url=url, error="timed out")
    except httpx.HTTPError as e:
        return SpeedtestResult(provider_id=provider_id, url=url, error=str(e) or type(e).__name__)
    latency = (time.perf_counter() - start) * 1000
    logger.debug("Probe %s -> %s in %.0f ms", url, response.status_code, latency)
    return SpeedtestResult(
        provider_id=provider_id,
        url=url,
        latency_ms=latency,
        status_code=response.status_code,
    )


async def speedtest(
    app: AppType,
    providers: Mapping[str, Provider],
    timeout: float = 10.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[SpeedtestResult]:
    """Probe every provider's endpoint concurrently.

    Any HTTP response counts as reachable; network errors are reported in
    the result instead of being raised.

    Args:
        app: Target application the providers belong to
        providers: Providers keyed by id
        timeout: Per-request timeout in seconds
        transport: Optional httpx transport (used by tests)

    Returns:
        Results ordered fastest first, unreachable endpoints last
    """
    async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
        results = await asyncio.gather(
            *(
                _probe(client, pid, provider_base_url(app, p.settings_config))
                for pid, p in providers.items()
            )
        )
    return sorted(results, key=lambda r: (not r.ok, r.latency_ms or 0.0, r.provider_id))
