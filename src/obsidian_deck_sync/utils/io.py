"""Helpers for reading and replacing vault and state files."""

import os
import shutil
import tempfile
from collections.abc import Generator
from contextlib import contextmanager, suppress
from pathlib import Path
from typing import IO, Any

from obsidian_deck_sync.utils.logging import get_logger

logger = get_logger(__name__)


@contextmanager
def atomic_write(
    path: str | Path,
    mode: str = "w",
    encoding: str | None = "utf-8",
    **kwargs: Any,
) -> Generator[IO[Any]]:
    """Open a scratch file next to ``path`` and swap it in on success.

    Readers see either the old content or the new content, never a mix.
    The scratch file is removed if the block raises, and the target keeps
    its permission bits.

    Example:
        with atomic_write(state_path) as f:
            f.write(fingerprint.model_dump_json())
    """
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)

    fd, scratch_name = tempfile.mkstemp(
        dir=target.parent, prefix=f".{target.name}.", suffix=".partial"
    )
    os.close(fd)
    scratch = Path(scratch_name)

    try:
        with open(scratch, mode, encoding=encoding, **kwargs) as handle:
            yield handle
            handle.flush()
            os.fsync(handle.fileno())
        if target.exists():
            shutil.copymode(target, scratch)
        scratch.replace(target)
    except BaseException as exc:
        with suppress(OSError):
            scratch.unlink(missing_ok=True)
        if isinstance(exc, Exception):
            logger.error("atomic_write_failed", path=str(target), error=str(exc))
        raise


def read_text(path: str | Path) -> str:
    """Read a UTF-8 text file without newline translation."""
    with open(path, encoding="utf-8", newline="") as f:
        return f.read()


def write_text_atomic(path: str | Path, content: str) -> None:
    """Atomically replace a text file's content, preserving newlines as given."""
    with atomic_write(path, newline="") as f:
        f.write(content)
