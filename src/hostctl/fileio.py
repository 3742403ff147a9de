"""File primitives shared by the config store and the hosts file editor.

Every write goes through a temporary file in the target's directory that is
renamed over the target, so readers never observe a half-written file.
"""

from __future__ import annotations

import logging
import os
import stat
import tempfile
from pathlib import Path
from typing import Optional, Union

from .exceptions import io_error

__all__ = ["atomic_write_text", "file_mode", "read_text"]

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def read_text(path: PathLike, errors: str = "strict") -> str:
    """Return the whole file as text, keeping ``\\r\\n`` line endings intact.

    With ``errors="surrogateescape"`` bytes that are not UTF-8 survive a
    read/write cycle unchanged when the text is written back the same way.
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8", errors=errors, newline="") as fp:
            return fp.read()
    except FileNotFoundError:
        raise
    except OSError as e:
        raise io_error(path, "read", e) from e


def _stat(path: Path) -> Optional[os.stat_result]:
    try:
        return os.stat(path)
    except FileNotFoundError:
        return None
    except OSError as e:
        raise io_error(path, "inspect", e) from e


def file_mode(path: PathLike) -> Optional[int]:
    """Return the permission bits of *path*, or ``None`` if it does not exist."""
    st = _stat(Path(path))
    return stat.S_IMODE(st.st_mode) if st is not None else None


def _running_as_root() -> bool:
    return hasattr(os, "geteuid") and os.geteuid() == 0


def atomic_write_text(
    path: PathLike, text: str, mode: Optional[int] = None, errors: str = "strict"
) -> None:
    """Atomically replace *path* with *text*.

    The permission bits of an existing *path* are carried over to the new
    file; for a new file *mode* is applied when given. When running as root
    the owner and group are carried over too, so ``sudo`` does not take a
    user's file away from them. The temporary file is removed if anything
    fails before the rename.
    """
    path = Path(path)
    existing = _stat(path)
    target_mode = stat.S_IMODE(existing.st_mode) if existing is not None else mode

    try:
        temp_fd, temp_path = tempfile.mkstemp(
            dir=path.parent, prefix=f".{path.name}.tmp.", text=True
        )
    except OSError as e:
        raise io_error(path, "write", e) from e

    try:
        with os.fdopen(temp_fd, "w", encoding="utf-8", errors=errors, newline="") as fp:
            fp.write(text)
            fp.flush()
            os.fsync(fp.fileno())
        if target_mode is not None:
            os.chmod(temp_path, target_mode)
        if existing is not None and _running_as_root():
            os.chown(temp_path, existing.st_uid, existing.st_gid)
        os.replace(temp_path, path)
    except BaseException as e:
        if os.path.exists(temp_path):
            os.unlink(temp_path)
        if isinstance(e, OSError):
            raise io_error(path, "write", e) from e
        raise

    logger.debug(f"Wrote {len(text)} characters to {path}")
