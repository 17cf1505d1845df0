"""
Last-run record — ``<work_dir>/.state/current.json``.

Written atomically (temp file in the same directory, then rename) so an
interrupted run never leaves half a JSON document behind. A missing or
unreadable file simply means "no previous run".
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from reposync.core.models.state import SyncState

logger = logging.getLogger(__name__)

STATE_FILE = Path(".state") / "current.json"


def default_state_path(work_dir: Path) -> Path:
    return work_dir / STATE_FILE


def load_state(path: Path) -> SyncState:
    """Read the state file, or return a fresh SyncState if there is none usable."""
    try:
        return SyncState.model_validate_json(path.read_bytes())
    except FileNotFoundError:
        logger.debug("No state file at %s", path)
    except (OSError, ValidationError) as e:
        logger.warning("Ignoring unreadable state file %s: %s", path, e)
    return SyncState()


def save_state(state: SyncState, path: Path) -> None:
    """Stamp ``updated_at`` and write ``state`` to ``path`` atomically.

    Raises:
        OSError: If the directory or file cannot be written.
    """
    state.touch()
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = json.dumps(state.model_dump(mode="json"), indent=2, ensure_ascii=False) + "\n"

    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".current-", suffix=".tmp")
    tmp = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(payload)
        tmp.replace(path)
    except OSError:
        tmp.unlink(missing_ok=True)
        raise
    logger.debug("State saved to %s", path)
