"""Cross-platform file locking and atomic replace helpers."""

import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Any


def lock_file(file_obj: Any, exclusive: bool = True) -> None:
    """Lock a file in a cross-platform way.

    Args:
        file_obj: File object to lock
        exclusive: If True, acquire exclusive lock; if False, acquire shared lock
    """
    if sys.platform == "win32":
        import msvcrt  # type: ignore[import-not-found]

        mode = msvcrt.LK_NBLCK if exclusive else msvcrt.LK_NBRLCK
        msvcrt.locking(file_obj.fileno(), mode, 1)
    else:
        import fcntl  # type: ignore[import-not-found]

        mode = fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH
        fcntl.flock(file_obj.fileno(), mode)


def unlock_file(file_obj: Any) -> None:
    """Unlock a file in a cross-platform way."""
    if sys.platform == "win32":
        import msvcrt  # type: ignore[import-not-found]

        msvcrt.locking(file_obj.fileno(), msvcrt.LK_UNLCK, 1)
    else:
        import fcntl  # type: ignore[import-not-found]

        fcntl.flock(file_obj.fileno(), fcntl.LOCK_UN)


@contextmanager
def atomic_write(file_path: Path, newline: str = "\n") -> Iterator[IO[str]]:
    """Write a file through a locked temporary file and an atomic rename.

    The temporary file is removed if the body raises.

    Args:
        file_path: Target file path
        newline: Newline translation for the temporary file
    """
    temp_file = file_path.with_suffix(".tmp")

    try:
        with open(temp_file, "w", newline=newline, encoding="utf-8") as f:
            lock_file(f, exclusive=True)
            yield f
            f.flush()
            os.fsync(f.fileno())
            unlock_file(f)

        temp_file.replace(file_path)

    except Exception:
        if temp_file.exists():
            temp_file.unlink()
        raise


@contextmanager
def locked_read(file_path: Path, newline: str = "\n") -> Iterator[IO[str]]:
    """Open a file for reading under a shared lock."""
    with open(file_path, newline=newline, encoding="utf-8") as f:
        lock_file(f, exclusive=False)
        try:
            yield f
        finally:
            unlock_file(f)
