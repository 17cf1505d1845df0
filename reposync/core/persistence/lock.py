"""
Work-directory lock — keeps two runs from racing on the same files.
"""

from __future__ import annotations

import fcntl
import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

logger = logging.getLogger(__name__)

LOCK_FILE = ".state/reposync.lock"


class LockHeldError(Exception):
    """Raised when another process holds the work-directory lock."""


@contextmanager
def work_dir_lock(work_dir: Path) -> Iterator[Path]:
    """Hold an exclusive advisory lock on ``work_dir`` for the duration.

    Non-blocking: a second concurrent run fails immediately with
    LockHeldError instead of waiting.
    """
    lock_path = work_dir / LOCK_FILE
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    # Append mode: never truncate a lock file another process holds
    with open(lock_path, "a") as lock_fd:
        try:
            fcntl.flock(lock_fd.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError as e:
            raise LockHeldError(
                f"Another reposync run holds {lock_path}"
            ) from e
        logger.debug("Acquired lock %s (pid %d)", lock_path, os.getpid())
        try:
            yield lock_path
        finally:
            fcntl.flock(lock_fd.fileno(), fcntl.LOCK_UN)
