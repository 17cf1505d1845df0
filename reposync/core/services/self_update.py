"""
Self-update check — advisory only.

Fetches the authoritative copy of the tool's script and compares it with
the running copy. A difference is reported with a diff and a pointer to
where the update lives; the running script is never replaced.

Three outcomes are kept apart: up to date, update available, and could
not check (fetch failed, or no local copy to compare against).
"""

from __future__ import annotations

import difflib
import logging
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

import reposync
from reposync.core.context import SyncContext
from reposync.core.engine.executor import StepResult
from reposync.core.models.config import SelfUpdateConfig
from reposync.core.services.tools import FETCH_SELF, Toolbox

logger = logging.getLogger(__name__)

UP_TO_DATE = "up_to_date"
UPDATE_AVAILABLE = "update_available"
CHECK_FAILED = "check_failed"
DISABLED = "disabled"

_DIFF_LIMIT = 60

ENTRY_MODULE = Path(reposync.__file__).resolve().parent / "main.py"


@dataclass
class SelfUpdateCheck:
    """Result of comparing the running script with the published one."""

    outcome: str
    local_path: Path | None = None
    message: str = ""
    diff: list[str] = field(default_factory=list)


def running_script_path(cfg: SelfUpdateConfig) -> Path:
    """Configured local path, else the entry module of the installed package.

    The `reposync` command on PATH is a launcher generated at install time,
    so its bytes say nothing about which release is installed.
    """
    if cfg.local_path:
        return Path(cfg.local_path).expanduser()
    return ENTRY_MODULE


def compare_with_published(cfg: SelfUpdateConfig, tools: Toolbox) -> SelfUpdateCheck:
    """Download the published script to a temp dir and compare."""
    if not cfg.script_url:
        return SelfUpdateCheck(DISABLED, message="self-update check not configured")

    local = running_script_path(cfg)
    if not local.is_file():
        return SelfUpdateCheck(
            CHECK_FAILED, local, message="could not check for updates: running script not found"
        )

    with tempfile.TemporaryDirectory(prefix="reposync-") as tmp:
        latest = Path(tmp) / local.name
        receipt = tools.fetch(cfg.script_url, latest, action_id=FETCH_SELF)
        if not receipt.ok:
            return SelfUpdateCheck(
                CHECK_FAILED,
                local,
                message=(
                    f"could not check for updates (exit {receipt.return_code}): "
                    f"{receipt.error}"
                ),
            )

        current_bytes = local.read_bytes()
        latest_bytes = latest.read_bytes()

    if current_bytes == latest_bytes:
        return SelfUpdateCheck(UP_TO_DATE, local, message=f"{local.name} is up to date")

    diff = list(
        difflib.unified_diff(
            current_bytes.decode("utf-8", errors="replace").splitlines(),
            latest_bytes.decode("utf-8", errors="replace").splitlines(),
            fromfile=str(local),
            tofile=cfg.script_url,
            lineterm="",
        )
    )
    where = cfg.homepage or cfg.script_url
    return SelfUpdateCheck(
        UPDATE_AVAILABLE,
        local,
        message=f"a newer version of {local.name} is available from {where}",
        diff=diff,
    )


def check_self_update(ctx: SyncContext) -> StepResult:
    """Workflow step: report the comparison; never fatal."""
    check = compare_with_published(ctx.config.self_update, ctx.tools)

    if check.outcome == UPDATE_AVAILABLE:
        logger.warning("*" * 60)
        logger.warning("*  %s", check.message)
        logger.warning("*" * 60)
        for line in check.diff[:_DIFF_LIMIT]:
            logger.warning("%s", line)
        if len(check.diff) > _DIFF_LIMIT:
            logger.warning("... (%d more diff lines)", len(check.diff) - _DIFF_LIMIT)
        return StepResult.warning(check.message, outcome=check.outcome)

    if check.outcome == CHECK_FAILED:
        return StepResult.warning(check.message, outcome=check.outcome)

    if check.outcome == DISABLED:
        return StepResult.skip(check.message, outcome=check.outcome)

    return StepResult.success(check.message, outcome=check.outcome)
