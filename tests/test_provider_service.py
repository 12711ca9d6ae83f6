"""Tests for ProviderService: CRUD, the current pointer and switch rollback."""

import errno
import json
import threading

import pytest

from ccswitch.config import AppState
from ccswitch.exceptions import ConfigSaveError, InvalidOperationError, NotFoundError, ProjectionError
from ccswitch.live import ClaudeProjector
from ccswitch.models import AppType, MultiAppConfig, Provider
from ccswitch.services import ProviderService

CLAUDE = AppType.CLAUDE
CODEX = AppType.CODEX


class BrokenClaudeProjector(ClaudeProjector):
    """Claude projector whose provider writes always fail."""

    def write_provider(self, settings, previous=None):
        raise self.fail("settings.json is locked")


class BlockingClaudeProjector(ClaudeProjector):
    """Claude projector whose provider writes wait for ``release``."""

    def __init__(self, paths):
        super().__init__(paths)
        self.entered = threading.Event()
        self.release = threading.Event()

    def write_provider(self, settings, previous=None):
        self.entered.set()
        self.release.wait(5)
        super().write_provider(settings, previous)


@pytest.fixture
def service(state):
    return ProviderService(state)


@pytest.fixture
def seeded(service, make_provider):
    """Providers {a: current, b} for claude."""
    service.add(CLAUDE, make_provider("a", token="tok-a"))
    service.add(CLAUDE, make_provider("b", token="tok-b"))
    return service


def _codex_provider(pid):
    return Provider(
        id=pid,
        name=pid.title(),
        settings_config={"auth": {"OPENAI_API_KEY": f"key-{pid}"}, "config": f'model = "{pid}"\n'},
    )


def _settings(paths):
    return json.loads((paths.claude_dir / "settings.json").read_text())


class TestAdd:
    def test_first_provider_becomes_current(self, service, make_provider, paths):
        assert service.add(CLAUDE, make_provider("a", token="tok-a")) is True
        assert service.current(CLAUDE) == "a"
        assert _settings(paths)["env"]["ANTHROPIC_AUTH_TOKEN"] == "tok-a"

    def test_second_provider_not_current(self, seeded):
        assert seeded.current(CLAUDE) == "a"
        assert set(seeded.list(CLAUDE)) == {"a", "b"}

    def test_stamps_created_at(self, seeded):
        assert seeded.get(CLAUDE, "b").created_at is not None

    def test_duplicate_id_rejected(self, seeded, make_provider):
        with pytest.raises(InvalidOperationError):
            seeded.add(CLAUDE, make_provider("a"))

    def test_persists(self, seeded, config_manager):
        stored = config_manager.load().manager(CLAUDE)
        assert set(stored.providers) == {"a", "b"}
        assert stored.current == "a"

    def test_apps_are_independent(self, seeded):
        assert seeded.list(AppType.CODEX) == {}


class TestCurrent:
    def test_none_selected(self, service):
        with pytest.raises(NotFoundError):
            service.current(CLAUDE)

    def test_dangling_pointer(self, config_manager, paths):
        config = MultiAppConfig()
        config.manager(CLAUDE).current = "ghost"
        service = ProviderService(AppState(config, config_manager, paths))
        with pytest.raises(NotFoundError, match="inconsistent"):
            service.current(CLAUDE)


class TestSwitch:
    def test_switch_updates_pointer_and_live_file(self, seeded, paths):
        seeded.switch(CLAUDE, "b")
        assert seeded.current(CLAUDE) == "b"
        assert "b" in seeded.list(CLAUDE)
        assert _settings(paths)["env"]["ANTHROPIC_AUTH_TOKEN"] == "tok-b"

    def test_switch_persists(self, seeded, config_manager):
        seeded.switch(CLAUDE, "b")
        assert config_manager.load().manager(CLAUDE).current == "b"

    def test_unknown_id(self, seeded):
        with pytest.raises(NotFoundError):
            seeded.switch(CLAUDE, "zzz")
        assert seeded.current(CLAUDE) == "a"

    def test_keeps_foreign_settings(self, seeded, paths):
        path = paths.claude_dir / "settings.json"
        data = _settings(paths)
        data["permissions"] = {"allow": ["Bash"]}
        path.write_text(json.dumps(data))
        seeded.switch(CLAUDE, "b")
        assert _settings(paths)["permissions"] == {"allow": ["Bash"]}

    def test_drops_keys_owned_by_previous_provider(self, service, make_provider, paths):
        service.add(CLAUDE, make_provider("a", extra={"model": "opus"}))
        service.add(CLAUDE, make_provider("b"))
        assert _settings(paths)["model"] == "opus"
        service.switch(CLAUDE, "b")
        assert "model" not in _settings(paths)

    def test_projection_failure_rolls_back(self, config_manager, paths, make_provider):
        state = AppState(MultiAppConfig(), config_manager, paths)
        service = ProviderService(state)
        service.add(CLAUDE, make_provider("a"))
        service.add(CLAUDE, make_provider("b"))

        broken = AppState(
            config_manager.load(), config_manager, paths, projectors={CLAUDE: BrokenClaudeProjector(paths)}
        )
        broken_service = ProviderService(broken)
        with pytest.raises(ProjectionError) as exc_info:
            broken_service.switch(CLAUDE, "b")
        assert exc_info.value.rolled_back
        assert exc_info.value.app == "claude"
        assert "rolled back" in str(exc_info.value)
        assert broken_service.current(CLAUDE) == "a"
        assert config_manager.load().manager(CLAUDE).current == "a"

    def test_save_failure_rolls_back(self, seeded, monkeypatch):
        def fail(config):
            raise ConfigSaveError("disk full")

        monkeypatch.setattr(seeded.state.config_manager, "save", fail)
        with pytest.raises(ConfigSaveError):
            seeded.switch(CLAUDE, "b")
        assert seeded.current(CLAUDE) == "a"

    def test_failed_rollback_save_keeps_original_error(self, seeded, monkeypatch):
        errors = iter([ConfigSaveError("disk full"), ConfigSaveError("still full")])

        def fail(config):
            raise next(errors)

        monkeypatch.setattr(seeded.state.config_manager, "save", fail)
        with pytest.raises(ConfigSaveError, match="disk full"):
            seeded.switch(CLAUDE, "b")
        assert seeded.current(CLAUDE) == "a"

    def test_failed_rollback_save_after_projection_error(self, seeded, config_manager, paths, monkeypatch):
        broken = ProviderService(
            AppState(config_manager.load(), config_manager, paths, projectors={CLAUDE: BrokenClaudeProjector(paths)})
        )
        real_save = config_manager.save
        saves = []

        def save_once(config):
            saves.append(config)
            if len(saves) > 1:
                raise ConfigSaveError("disk full")
            real_save(config)

        monkeypatch.setattr(config_manager, "save", save_once)
        with pytest.raises(ProjectionError, match="locked"):
            broken.switch(CLAUDE, "b")
        assert broken.current(CLAUDE) == "a"

    def test_codex_partial_projection_is_undone(self, service, paths, monkeypatch):
        service.add(CODEX, _codex_provider("a"))
        service.add(CODEX, _codex_provider("b"))

        def no_space(*args, **kwargs):
            raise OSError(errno.ENOSPC, "No space left on device")

        monkeypatch.setattr("ccswitch.live.codex.atomic_write_text", no_space)
        with pytest.raises(ProjectionError) as exc_info:
            service.switch(CODEX, "b")

        error = exc_info.value
        assert error.rolled_back
        assert error.stale_files == []
        assert "previous settings" in str(error)
        assert json.loads((paths.codex_dir / "auth.json").read_text()) == {"OPENAI_API_KEY": "key-a"}
        assert 'model = "a"' in (paths.codex_dir / "config.toml").read_text()
        assert service.current(CODEX) == "a"


class TestDelete:
    def test_scenario_switch_then_delete(self, seeded):
        seeded.switch(CLAUDE, "b")
        assert seeded.current(CLAUDE) == "b"
        seeded.delete(CLAUDE, "a")
        assert set(seeded.list(CLAUDE)) == {"b"}
        with pytest.raises(InvalidOperationError):
            seeded.delete(CLAUDE, "b")

    def test_current_is_protected(self, seeded):
        with pytest.raises(InvalidOperationError):
            seeded.delete(CLAUDE, seeded.current(CLAUDE))
        assert seeded.current(CLAUDE) == "a"
        assert set(seeded.list(CLAUDE)) == {"a", "b"}

    def test_unknown(self, seeded):
        with pytest.raises(NotFoundError):
            seeded.delete(CLAUDE, "zzz")

    def test_persists(self, seeded, config_manager):
        seeded.delete(CLAUDE, "b")
        assert set(config_manager.load().manager(CLAUDE).providers) == {"a"}


class TestUpdateAndDuplicate:
    def test_update_current_reprojects(self, seeded, paths):
        provider = seeded.get(CLAUDE, "a")
        provider.settings_config = {"env": {"ANTHROPIC_AUTH_TOKEN": "rotated"}}
        seeded.update(CLAUDE, provider)
        assert _settings(paths)["env"]["ANTHROPIC_AUTH_TOKEN"] == "rotated"

    def test_update_keeps_created_at(self, seeded):
        created = seeded.get(CLAUDE, "b").created_at
        provider = seeded.get(CLAUDE, "b").model_copy(update={"name": "Renamed", "created_at": None})
        seeded.update(CLAUDE, provider)
        assert seeded.get(CLAUDE, "b").name == "Renamed"
        assert seeded.get(CLAUDE, "b").created_at == created

    def test_update_unknown(self, seeded, make_provider):
        with pytest.raises(NotFoundError):
            seeded.update(CLAUDE, make_provider("zzz"))

    def test_duplicate(self, seeded):
        copy = seeded.duplicate(CLAUDE, "a")
        assert copy.id == "a-copy"
        assert copy.name == "A (copy)"
        assert copy.settings_config == seeded.get(CLAUDE, "a").settings_config
        assert copy.created_at is not None
        assert seeded.duplicate(CLAUDE, "a").id == "a-copy-2"
        assert seeded.current(CLAUDE) == "a"

    def test_duplicate_explicit_id_taken(self, seeded):
        with pytest.raises(InvalidOperationError):
            seeded.duplicate(CLAUDE, "a", new_id="b")

    def test_list_returns_copies(self, seeded):
        seeded.list(CLAUDE)["a"].name = "mutated"
        assert seeded.get(CLAUDE, "a").name == "A"


class TestConcurrentReaders:
    def test_reader_waits_for_switch_to_finish(self, seeded, config_manager, paths):
        projector = BlockingClaudeProjector(paths)
        service = ProviderService(AppState(config_manager.load(), config_manager, paths, projectors={CLAUDE: projector}))

        writer = threading.Thread(target=service.switch, args=(CLAUDE, "b"))
        writer.start()
        assert projector.entered.wait(1)

        seen = []
        reader = threading.Thread(target=lambda: seen.append(service.current(CLAUDE)))
        reader.start()
        reader.join(0.1)
        assert reader.is_alive()
        assert seen == []

        projector.release.set()
        writer.join(1)
        reader.join(1)
        assert seen == ["b"]
        assert _settings(paths)["env"]["ANTHROPIC_AUTH_TOKEN"] == "tok-b"
