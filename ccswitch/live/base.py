"""Shared projector machinery: owned-section merges and atomic writes."""

import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from ..exceptions import ProjectionError
from ..models.app import AppType
from ..models.config import LivePaths
from ..utils.files import atomic_write_text, read_text_or_none

logger = logging.getLogger(__name__)

MCP_TRANSPORTS = ("stdio", "http", "sse")


class LiveProjector(ABC):
    """Writes the engine-owned sections of one application's live files.

    Only the provider keys named by the new (and previous) payload, the MCP
    server section and the prompt file are touched. Files whose content would
    not change are left alone.
    """

    app: AppType

    def __init__(self, paths: LivePaths) -> None:
        """Initialize projector.

        Args:
            paths: Live config directories of the target applications
        """
        self.paths = paths

    @property
    @abstractmethod
    def prompt_file(self) -> Path:
        """Memory file holding the active prompt."""

    @abstractmethod
    def live_files(self) -> list[Path]:
        """Every file this projector may write."""

    @abstractmethod
    def write_provider(self, settings: Mapping[str, Any], previous: Mapping[str, Any] | None = None) -> None:
        """Project a provider payload, dropping keys only the previous payload owned.

        Raises:
            ProjectionError: If the payload is invalid or a file cannot be written
        """

    @abstractmethod
    def write_mcp_servers(self, servers: Mapping[str, Mapping[str, Any]]) -> None:
        """Replace the projected MCP section with ``servers``.

        Raises:
            ProjectionError: If a server spec is invalid or the file cannot be written
        """

    def write_prompt(self, content: str) -> None:
        """Replace the prompt file with ``content``.

        Raises:
            ProjectionError: If the file cannot be written
        """
        path = self.prompt_file
        with self.guard(path):
            existing = read_text_or_none(path)
            if existing == content or (existing is None and not content):
                return
            atomic_write_text(path, content)
        logger.debug("Projected prompt for %s into %s", self.app.value, path)

    def read_prompt(self) -> str | None:
        """Current prompt file content, or None if absent."""
        with self.guard(self.prompt_file):
            return read_text_or_none(self.prompt_file)

    # ── helpers ──────────────────────────────────────────────────────────

    def fail(self, detail: str) -> ProjectionError:
        return ProjectionError(self.app.value, detail)

    @contextmanager
    def guard(self, path: Path) -> Iterator[None]:
        """Turn OS errors touching ``path`` into ProjectionError."""
        try:
            yield
        except OSError as e:
            raise self.fail(f"cannot access {path}: {e.strerror or e}") from e

    @contextmanager
    def restore_on_failure(self, path: Path) -> Iterator[None]:
        """Put ``path`` back as it was if the rest of a multi-file projection fails.

        Raises:
            ProjectionError: The original failure, naming ``path`` in
                ``stale_files`` when it could not be restored
        """
        with self.guard(path):
            original = read_text_or_none(path)
        try:
            yield
        except ProjectionError as e:
            try:
                if read_text_or_none(path) != original:
                    if original is None:
                        path.unlink(missing_ok=True)
                    else:
                        atomic_write_text(path, original)
                    logger.info("Restored %s after a failed projection", path)
            except OSError as restore_error:
                logger.error("Could not restore %s: %s", path, restore_error)
                raise ProjectionError(e.apps, e.detail, stale_files=[*e.stale_files, str(path)]) from e
            raise

    def read_json_object(self, path: Path) -> dict[str, Any] | None:
        """Parse a JSON object file; None when the file is missing."""
        with self.guard(path):
            text = read_text_or_none(path)
        if text is None:
            return None
        if not text.strip():
            return {}
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise self.fail(f"{path} is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise self.fail(f"{path} must contain a JSON object")
        return data

    def write_json_object(self, path: Path, data: dict[str, Any], original: dict[str, Any] | None) -> None:
        """Write ``data`` unless it equals what is already on disk."""
        if original is not None and data == original:
            return
        if original is None and not data:
            return
        with self.guard(path):
            atomic_write_text(path, json.dumps(data, indent=2, ensure_ascii=False) + "\n")
        logger.debug("Projected %s for %s", path, self.app.value)

    def require_mapping(self, value: Any, what: str) -> Mapping[str, Any]:
        if not isinstance(value, Mapping):
            raise self.fail(f"{what} must be a mapping, got {type(value).__name__}")
        return value

    def normalize_server(self, server_id: str, spec: Mapping[str, Any]) -> tuple[str, dict[str, Any]]:
        """Validate an MCP server spec and return ``(transport, spec)``."""
        spec = dict(self.require_mapping(spec, f"MCP server '{server_id}'"))
        transport = spec.get("type") or ("stdio" if "command" in spec else "http" if "url" in spec else "stdio")
        if transport not in MCP_TRANSPORTS:
            raise self.fail(f"MCP server '{server_id}' has unsupported type '{transport}'")
        if transport == "stdio" and not spec.get("command"):
            raise self.fail(f"MCP server '{server_id}' needs a 'command'")
        if transport != "stdio" and not spec.get("url"):
            raise self.fail(f"MCP server '{server_id}' needs a 'url'")
        for key in ("args",):
            if key in spec and not isinstance(spec[key], list):
                raise self.fail(f"MCP server '{server_id}': '{key}' must be a list")
        for key in ("env", "headers"):
            if key in spec and not isinstance(spec[key], Mapping):
                raise self.fail(f"MCP server '{server_id}': '{key}' must be a mapping")
        return transport, spec


def merge_owned_keys(
    target: Mapping[str, Any],
    new: Mapping[str, Any],
    previous: Mapping[str, Any] | None = None,
    reserved: tuple[str, ...] = (),
) -> dict[str, Any]:
    """Return ``target`` with ``new``'s top-level keys replaced.

    Keys only ``previous`` owned are removed; ``reserved`` keys are never
    touched. Everything else in ``target`` is kept in place.
    """
    result = dict(target)
    for key in previous or {}:
        if key not in new and key not in reserved:
            result.pop(key, None)
    for key, value in new.items():
        if key not in reserved:
            result[key] = value
    return result
