"""
Status use case — what is configured, on disk, installed, and last done.

Read-only: inspects the package database and the work directory but
never downloads or installs anything.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from reposync.adapters import default_registry
from reposync.adapters.registry import AdapterRegistry
from reposync.core.config.loader import ConfigError, load_config
from reposync.core.context import build_context
from reposync.core.models.config import SyncConfig
from reposync.core.models.state import LocalState, SyncState
from reposync.core.persistence.state_file import default_state_path, load_state
from reposync.core.services.local_state import inspect

logger = logging.getLogger(__name__)


@dataclass
class StatusResult:
    """Result of a status query."""

    config: SyncConfig | None = None
    work_dir: Path | None = None
    local: LocalState | None = None
    state: SyncState | None = None
    error: str | None = None

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}

        assert self.config is not None
        result: dict = {
            "package": self.config.target.package,
            "artifact_url": self.config.target.artifact_url,
            "listing_url": self.config.target.listing_url,
            "media": self.config.target.media_name,
            "work_dir": str(self.work_dir) if self.work_dir else None,
        }
        if self.local:
            result["local"] = self.local.model_dump(mode="json")
        if self.state and self.state.last_run.operation_id:
            result["last_run"] = self.state.last_run.model_dump(mode="json")
            result["runs_total"] = self.state.runs_total
        return result


def get_status(
    config_path: Path | None = None,
    registry: AdapterRegistry | None = None,
) -> StatusResult:
    """Gather configuration, local state and the last run record."""
    result = StatusResult()

    try:
        config = load_config(config_path)
    except ConfigError as e:
        result.error = str(e)
        return result
    result.config = config

    ctx = build_context(config, registry or default_registry())
    result.work_dir = ctx.paths.work_dir
    result.local = inspect(ctx)

    state_path = default_state_path(ctx.paths.work_dir)
    if state_path.is_file():
        result.state = load_state(state_path)

    return result
