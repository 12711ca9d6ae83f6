"""Tests for the per-application live-file projectors."""

import errno
import json
import os
import stat

import pytest
import tomlkit

from ccswitch.exceptions import ProjectionError
from ccswitch.live import ClaudeProjector, CodexProjector, GeminiProjector, get_projector, merge_owned_keys
from ccswitch.live.gemini import format_env_value, update_env_text
from ccswitch.models import AppType, LivePaths
from ccswitch.utils.files import atomic_write_text


def _toml(path):
    return tomlkit.parse(path.read_text()).unwrap()


class TestMergeOwnedKeys:
    def test_replaces_and_keeps(self):
        result = merge_owned_keys({"a": 1, "keep": True}, {"a": 2, "b": 3})
        assert result == {"a": 2, "b": 3, "keep": True}

    def test_removes_previous_only_keys(self):
        result = merge_owned_keys({"a": 1, "old": 1, "keep": 1}, {"a": 2}, previous={"a": 1, "old": 1})
        assert result == {"a": 2, "keep": 1}

    def test_reserved_untouched(self):
        result = merge_owned_keys({"mcpServers": {"x": {}}}, {"mcpServers": {}}, previous={"mcpServers": 1}, reserved=("mcpServers",))
        assert result == {"mcpServers": {"x": {}}}


class TestGetProjector:
    @pytest.mark.parametrize(
        "app,cls",
        [(AppType.CLAUDE, ClaudeProjector), (AppType.CODEX, CodexProjector), (AppType.GEMINI, GeminiProjector)],
    )
    def test_mapping(self, paths, app, cls):
        projector = get_projector(app, paths)
        assert isinstance(projector, cls)
        assert projector.app == app


class TestClaudeProjector:
    def test_provider_creates_settings(self, paths):
        ClaudeProjector(paths).write_provider({"env": {"ANTHROPIC_AUTH_TOKEN": "t"}})
        data = json.loads((paths.claude_dir / "settings.json").read_text())
        assert data == {"env": {"ANTHROPIC_AUTH_TOKEN": "t"}}

    def test_invalid_json_is_projection_error(self, paths):
        paths.claude_dir.mkdir(parents=True)
        (paths.claude_dir / "settings.json").write_text("{not json")
        with pytest.raises(ProjectionError) as exc_info:
            ClaudeProjector(paths).write_provider({"env": {}})
        assert exc_info.value.apps == ["claude"]
        assert (paths.claude_dir / "settings.json").read_text() == "{not json"

    def test_payload_must_be_mapping(self, paths):
        with pytest.raises(ProjectionError):
            ClaudeProjector(paths).write_provider(["nope"])

    def test_mcp_keeps_other_keys(self, paths):
        mcp_file = paths.home / ".claude.json"
        mcp_file.write_text(json.dumps({"numStartups": 7, "projects": {"/x": {}}}))
        ClaudeProjector(paths).write_mcp_servers({"fs": {"command": "npx", "args": ["fs"], "extra": 1}})
        data = json.loads(mcp_file.read_text())
        assert data["numStartups"] == 7
        assert data["projects"] == {"/x": {}}
        assert data["mcpServers"] == {"fs": {"type": "stdio", "command": "npx", "args": ["fs"]}}

    def test_mcp_file_inside_custom_config_dir(self, tmp_path):
        paths = LivePaths(
            home=tmp_path, claude_dir=tmp_path / "cfg", codex_dir=tmp_path / ".codex", gemini_dir=tmp_path / ".gemini"
        )
        assert ClaudeProjector(paths).mcp_file == tmp_path / "cfg" / ".claude.json"

    def test_empty_mcp_never_creates_file(self, paths):
        ClaudeProjector(paths).write_mcp_servers({})
        assert not (paths.home / ".claude.json").exists()

    def test_prompt(self, paths):
        projector = ClaudeProjector(paths)
        projector.write_prompt("hello")
        assert projector.read_prompt() == "hello"
        assert projector.prompt_file == paths.claude_dir / "CLAUDE.md"

    def test_write_leaves_no_temp_files(self, paths):
        ClaudeProjector(paths).write_provider({"env": {"A": "1"}})
        assert [p.name for p in paths.claude_dir.iterdir()] == ["settings.json"]


class TestCodexProjector:
    def test_provider_writes_auth_and_config(self, paths):
        CodexProjector(paths).write_provider(
            {"auth": {"OPENAI_API_KEY": "sk"}, "config": 'model = "gpt-5"\nmodel_provider = "custom"\n'}
        )
        assert json.loads((paths.codex_dir / "auth.json").read_text()) == {"OPENAI_API_KEY": "sk"}
        assert _toml(paths.codex_dir / "config.toml") == {"model": "gpt-5", "model_provider": "custom"}

    def test_preserves_comments_and_foreign_tables(self, paths):
        paths.codex_dir.mkdir(parents=True)
        original = '# my notes\nmodel = "old"\n\n[history]\npersistence = "none"\n'
        (paths.codex_dir / "config.toml").write_text(original)
        CodexProjector(paths).write_provider({"auth": {}, "config": {"model": "new"}})
        text = (paths.codex_dir / "config.toml").read_text()
        assert "# my notes" in text
        assert _toml(paths.codex_dir / "config.toml") == {"model": "new", "history": {"persistence": "none"}}

    def test_ignores_mcp_servers_in_provider_config(self, paths):
        projector = CodexProjector(paths)
        projector.write_mcp_servers({"fs": {"command": "npx"}})
        projector.write_provider({"config": {"model": "m", "mcp_servers": {"evil": {"command": "x"}}}})
        assert _toml(paths.codex_dir / "config.toml")["mcp_servers"] == {"fs": {"command": "npx"}}

    def test_previous_keys_removed(self, paths):
        projector = CodexProjector(paths)
        projector.write_provider({"config": {"model": "a", "model_reasoning_effort": "high"}})
        projector.write_provider({"config": {"model": "b"}}, previous={"config": {"model": "a", "model_reasoning_effort": "high"}})
        assert _toml(paths.codex_dir / "config.toml") == {"model": "b"}

    def test_invalid_provider_toml(self, paths):
        with pytest.raises(ProjectionError, match="not valid TOML"):
            CodexProjector(paths).write_provider({"config": "model = ["})
        assert not (paths.codex_dir / "config.toml").exists()

    def test_mcp_http_headers(self, paths):
        CodexProjector(paths).write_mcp_servers(
            {"web": {"type": "http", "url": "https://x.test/mcp", "headers": {"Authorization": "Bearer t"}}}
        )
        entry = _toml(paths.codex_dir / "config.toml")["mcp_servers"]["web"]
        assert entry == {"url": "https://x.test/mcp", "http_headers": {"Authorization": "Bearer t"}}

    def test_mcp_replaces_previous_section(self, paths):
        projector = CodexProjector(paths)
        projector.write_mcp_servers({"a": {"command": "x"}, "b": {"command": "y"}})
        projector.write_mcp_servers({"b": {"command": "y"}})
        assert set(_toml(paths.codex_dir / "config.toml")["mcp_servers"]) == {"b"}
        projector.write_mcp_servers({})
        assert "mcp_servers" not in _toml(paths.codex_dir / "config.toml")


class TestGeminiProjector:
    def test_env_file(self, paths):
        GeminiProjector(paths).write_provider({"env": {"GEMINI_API_KEY": "k", "GEMINI_MODEL": "gemini-2.5-pro"}})
        env_file = paths.gemini_dir / ".env"
        assert env_file.read_text() == "GEMINI_API_KEY=k\nGEMINI_MODEL=gemini-2.5-pro\n"
        assert stat.S_IMODE(os.stat(env_file).st_mode) == 0o600

    def test_env_keeps_foreign_lines(self, paths):
        paths.gemini_dir.mkdir(parents=True)
        (paths.gemini_dir / ".env").write_text("# mine\nOTHER='x y'\nGEMINI_API_KEY=old\n")
        GeminiProjector(paths).write_provider({"env": {"GEMINI_API_KEY": "new"}})
        assert (paths.gemini_dir / ".env").read_text() == "# mine\nOTHER='x y'\nGEMINI_API_KEY=new\n"

    def test_switch_drops_previous_env(self, paths):
        projector = GeminiProjector(paths)
        projector.write_provider({"env": {"GEMINI_API_KEY": "a", "GOOGLE_GEMINI_BASE_URL": "https://a.test"}})
        projector.write_provider(
            {"env": {"GEMINI_API_KEY": "b"}},
            previous={"env": {"GEMINI_API_KEY": "a", "GOOGLE_GEMINI_BASE_URL": "https://a.test"}},
        )
        assert (paths.gemini_dir / ".env").read_text() == "GEMINI_API_KEY=b\n"

    def test_settings_config_keeps_mcp(self, paths):
        projector = GeminiProjector(paths)
        projector.write_mcp_servers({"fs": {"command": "npx"}})
        projector.write_provider({"env": {}, "config": {"theme": "dark", "mcpServers": {}}})
        data = json.loads((paths.gemini_dir / "settings.json").read_text())
        assert data == {"mcpServers": {"fs": {"command": "npx"}}, "theme": "dark"}

    def test_mcp_transports(self, paths):
        GeminiProjector(paths).write_mcp_servers(
            {
                "h": {"type": "http", "url": "https://h.test"},
                "s": {"type": "sse", "url": "https://s.test", "headers": {"X": "1"}},
            }
        )
        servers = json.loads((paths.gemini_dir / "settings.json").read_text())["mcpServers"]
        assert servers == {"h": {"httpUrl": "https://h.test"}, "s": {"url": "https://s.test", "headers": {"X": "1"}}}

    def test_non_scalar_env_rejected(self, paths):
        with pytest.raises(ProjectionError, match="scalar"):
            GeminiProjector(paths).write_provider({"env": {"A": ["x"]}})


class TestEnvText:
    def test_quotes_when_needed(self):
        assert format_env_value("plain-value_1") == "plain-value_1"
        assert format_env_value('a "b"') == '"a \\"b\\""'

    def test_adds_trailing_newline(self):
        assert update_env_text("A=1", {"B": "2"}, {"B"}) == "A=1\nB=2\n"

    def test_removes_owned(self):
        assert update_env_text("A=1\nB=2\n", {}, {"A"}) == "B=2\n"


def _no_space(*args, **kwargs):
    raise OSError(errno.ENOSPC, "No space left on device")


class FailingSettingsGeminiProjector(GeminiProjector):
    """Gemini projector that cannot write settings.json."""

    def write_json_object(self, path, data, original):
        if path == self.settings_file:
            raise self.fail("settings.json is read-only")
        super().write_json_object(path, data, original)


class TestMultiFileRollback:
    def test_codex_restores_auth_when_config_write_fails(self, paths, monkeypatch):
        projector = CodexProjector(paths)
        provider_a = {"auth": {"OPENAI_API_KEY": "key-a"}, "config": {"model": "a"}}
        projector.write_provider(provider_a)

        monkeypatch.setattr("ccswitch.live.codex.atomic_write_text", _no_space)
        with pytest.raises(ProjectionError) as exc_info:
            projector.write_provider({"auth": {"OPENAI_API_KEY": "key-b"}, "config": {"model": "b"}}, previous=provider_a)

        assert exc_info.value.stale_files == []
        assert json.loads((paths.codex_dir / "auth.json").read_text()) == {"OPENAI_API_KEY": "key-a"}
        assert _toml(paths.codex_dir / "config.toml") == {"model": "a"}

    def test_codex_removes_auth_it_created(self, paths, monkeypatch):
        monkeypatch.setattr("ccswitch.live.codex.atomic_write_text", _no_space)
        with pytest.raises(ProjectionError):
            CodexProjector(paths).write_provider({"auth": {"OPENAI_API_KEY": "key-b"}, "config": {"model": "b"}})
        assert not (paths.codex_dir / "auth.json").exists()

    def test_gemini_restores_env_when_settings_write_fails(self, paths):
        GeminiProjector(paths).write_provider({"env": {"GEMINI_API_KEY": "a"}})
        with pytest.raises(ProjectionError, match="read-only"):
            FailingSettingsGeminiProjector(paths).write_provider(
                {"env": {"GEMINI_API_KEY": "b"}, "config": {"theme": "dark"}},
                previous={"env": {"GEMINI_API_KEY": "a"}},
            )
        assert (paths.gemini_dir / ".env").read_text() == "GEMINI_API_KEY=a\n"
        assert not (paths.gemini_dir / "settings.json").exists()

    def test_unrestorable_file_is_reported(self, paths, monkeypatch):
        projector = CodexProjector(paths)
        provider_a = {"auth": {"OPENAI_API_KEY": "key-a"}, "config": {"model": "a"}}
        projector.write_provider(provider_a)

        calls = []

        def write_once(path, text, mode=None):
            calls.append(path)
            if len(calls) > 1:
                _no_space()
            atomic_write_text(path, text, mode)

        monkeypatch.setattr("ccswitch.live.codex.atomic_write_text", _no_space)
        monkeypatch.setattr("ccswitch.live.base.atomic_write_text", write_once)
        with pytest.raises(ProjectionError) as exc_info:
            projector.write_provider({"auth": {"OPENAI_API_KEY": "key-b"}, "config": {"model": "b"}}, previous=provider_a)

        auth_file = paths.codex_dir / "auth.json"
        assert exc_info.value.stale_files == [str(auth_file)]
        assert json.loads(auth_file.read_text()) == {"OPENAI_API_KEY": "key-b"}

    def test_rolled_back_message_names_stale_files(self):
        clean = ProjectionError("codex", "disk full", rolled_back=True)
        assert "still hold the previous settings" in str(clean)
        stale = ProjectionError("codex", "disk full", rolled_back=True, stale_files=["/h/.codex/auth.json"])
        assert "/h/.codex/auth.json could not be restored" in str(stale)
        assert "previous settings" not in str(stale)
