"""Tests for endpoint resolution and latency probes."""

import asyncio

import httpx

from ccswitch.models import AppType, Provider
from ccswitch.services.speedtest import DEFAULT_BASE_URLS, provider_base_url, speedtest
from ccswitch.services.templates import default_settings


class TestProviderBaseUrl:
    def test_claude(self):
        settings = {"env": {"ANTHROPIC_BASE_URL": "https://relay.test/"}}
        assert provider_base_url(AppType.CLAUDE, settings) == "https://relay.test"

    def test_claude_default(self):
        assert provider_base_url(AppType.CLAUDE, {}) == DEFAULT_BASE_URLS[AppType.CLAUDE]

    def test_codex_from_template(self):
        settings = default_settings(AppType.CODEX, "sk", base_url="https://codex.test/v1", model="gpt-5")
        assert provider_base_url(AppType.CODEX, settings) == "https://codex.test/v1"

    def test_codex_invalid_toml_falls_back(self):
        assert provider_base_url(AppType.CODEX, {"config": "x = ["}) == DEFAULT_BASE_URLS[AppType.CODEX]

    def test_gemini(self):
        settings = default_settings(AppType.GEMINI, "k", base_url="https://g.test")
        assert provider_base_url(AppType.GEMINI, settings) == "https://g.test"


class TestSpeedtest:
    def test_results_sorted_and_errors_reported(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "down.test":
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(401)

        providers = {
            "down": Provider(id="down", name="Down", settings_config={"env": {"ANTHROPIC_BASE_URL": "https://down.test"}}),
            "up": Provider(id="up", name="Up", settings_config={"env": {"ANTHROPIC_BASE_URL": "https://up.test"}}),
        }
        results = asyncio.run(speedtest(AppType.CLAUDE, providers, transport=httpx.MockTransport(handler)))

        assert [r.provider_id for r in results] == ["up", "down"]
        assert results[0].ok
        assert results[0].status_code == 401
        assert results[0].latency_ms is not None
        assert not results[1].ok
        assert "refused" in results[1].error

    def test_empty(self):
        assert asyncio.run(speedtest(AppType.GEMINI, {})) == []


class TestTemplates:
    def test_claude(self):
        assert default_settings(AppType.CLAUDE, "t", model="m") == {
            "env": {"ANTHROPIC_AUTH_TOKEN": "t", "ANTHROPIC_MODEL": "m"}
        }

    def test_codex_without_base_url(self):
        settings = default_settings(AppType.CODEX, "sk")
        assert settings["auth"] == {"OPENAI_API_KEY": "sk"}
        assert settings["config"] == ""
