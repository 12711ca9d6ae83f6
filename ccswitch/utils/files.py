"""Atomic file writes."""

import logging
import os
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)


def atomic_write_text(path: Path, text: str, mode: int | None = None) -> None:
    """Replace ``path`` with ``text`` via a temp file and ``os.replace``.

    The temp file lives in the target directory so the rename stays on one
    filesystem; readers see either the old or the new complete content.

    Args:
        path: Destination file
        text: New file content
        mode: Optional permission bits for the new file

    Raises:
        OSError: If the directory cannot be created or the write fails
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        if mode is not None:
            os.chmod(tmp_name, mode)
        elif path.exists():
            os.chmod(tmp_name, path.stat().st_mode & 0o777)
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise
    logger.debug("Wrote %s (%d bytes)", path, len(text))


def read_text_or_none(path: Path) -> str | None:
    """Read a UTF-8 file, returning None when it does not exist."""
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
