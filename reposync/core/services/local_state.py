"""
Local-state inspection — purely informational, mutates nothing.
"""

from __future__ import annotations

import logging

from reposync.core.context import SyncContext
from reposync.core.engine.executor import StepResult
from reposync.core.models.state import LocalState
from reposync.core.services.tools import Toolbox

logger = logging.getLogger(__name__)


def query_installed(tools: Toolbox, package: str) -> tuple[bool, str | None]:
    """(installed, version) from the package database; exit 0 = installed."""
    receipt = tools.query_package(package)
    if receipt.ok:
        return True, receipt.output.strip() or None
    return False, None


def inspect(ctx: SyncContext) -> LocalState:
    installed, version = query_installed(ctx.tools, ctx.package)
    artifact = ctx.paths.artifact
    snapshot = ctx.paths.snapshot
    return LocalState(
        installed=installed,
        installed_version=version,
        artifact_present=artifact.is_file() and artifact.stat().st_size > 0,
        snapshot_present=snapshot.is_file() and snapshot.stat().st_size > 0,
    )


def inspect_local_state(ctx: SyncContext) -> StepResult:
    """Workflow step: report what is installed and what is on disk."""
    state = inspect(ctx)
    if state.installed:
        installed = f"{ctx.package} {state.installed_version or '(unknown version)'} installed"
    else:
        installed = f"{ctx.package} not installed"
    return StepResult.success(
        f"{installed}; previous download {'present' if state.artifact_present else 'absent'}; "
        f"listing snapshot {'present' if state.snapshot_present else 'absent'}",
        state=state,
    )
