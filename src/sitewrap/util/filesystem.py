"""
Filesystem helpers shared across build steps.
"""

from __future__ import annotations

import logging
import os
import shutil
import stat
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path

from filelock import FileLock

logger = logging.getLogger(__name__)

_UMASK_LOCK = threading.Lock()


def _ensure_parent(target: Path) -> None:
    """Ensure the parent directory for target exists."""
    if target.parent and not target.parent.exists():
        target.parent.mkdir(parents=True, exist_ok=True)


def _is_relative_to(path: Path, base: Path) -> bool:
    """Return True if path is under base."""
    try:
        path.relative_to(base)
    except ValueError:
        return False
    return True


def safe_remove(path: Path | str, *, base_dir: Path | str, dry_run: bool = False) -> bool:
    """
    Remove a file or directory tree within base_dir, optionally dry-running.

    Returns True when something was (or would be) removed.
    """
    target = Path(path).expanduser().resolve()
    base = Path(base_dir).expanduser().resolve()
    if target == base or not _is_relative_to(target, base):
        logger.warning("Refusing to delete %s (outside %s)", target, base)
        return False
    if not target.exists():
        return False
    if dry_run:
        logger.info("Dry-run: would delete %s", target)
        return True
    if target.is_dir():
        shutil.rmtree(target)
    else:
        target.unlink()
    return True


@contextmanager
def file_lock(path: Path | str):
    """Context manager for a filesystem lock file alongside the target."""
    target = Path(path).expanduser().resolve()
    lock_path = target.with_suffix(f"{target.suffix}.lock")
    _ensure_parent(lock_path)
    with FileLock(str(lock_path)):
        yield


def read_text_file(path: Path | str, encoding: str = "utf-8") -> str:
    """
    Read a whole text file without newline translation.
    """
    with open(path, "r", encoding=encoding, newline="") as handle:
        return handle.read()


def _current_umask() -> int:
    with _UMASK_LOCK:
        mask = os.umask(0)
        os.umask(mask)
    return mask


def _output_mode(target: Path) -> int:
    """Mode for a written file: keep an existing file's mode, else 0666 minus umask."""
    try:
        return stat.S_IMODE(target.stat().st_mode)
    except FileNotFoundError:
        return 0o666 & ~_current_umask()


def _atomic_write_text(target: Path, content: str, encoding: str) -> None:
    """Write text atomically by staging a temp file and renaming."""
    _ensure_parent(target)
    fd, tmp_path = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=target.parent)
    try:
        with os.fdopen(fd, "w", encoding=encoding, newline="") as handle:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
        os.chmod(tmp_path, _output_mode(target))
        os.replace(tmp_path, target)
    finally:
        try:
            os.unlink(tmp_path)
        except FileNotFoundError:
            pass
        except OSError:
            pass


def write_text_file(path: Path | str, content: str, encoding: str = "utf-8") -> Path:
    """
    Write text to a file, creating parent directories as needed.

    The write is atomic: readers see either the previous file or the new one.
    New files get the usual 0666 minus umask mode; existing files keep theirs.
    """
    target = Path(path).expanduser().resolve()
    _atomic_write_text(target, content, encoding=encoding)
    return target
