"""
Sync use case — the whole run, top to bottom.

    validate → self-check → inspect → decide →
        fresh install | artifact compare | listing compare
    → persist → report elapsed time

Fatal steps abort through WorkflowAborted; everything else is logged
and the run keeps going. Partially completed work (a download without
an install, say) stays on disk for the next run to pick up.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from reposync.adapters import default_registry
from reposync.adapters.registry import AdapterRegistry
from reposync.core.config.loader import ConfigError, load_config
from reposync.core.context import SyncContext, build_context
from reposync.core.engine.executor import (
    StepResult,
    Workflow,
    WorkflowAborted,
    WorkflowReport,
)
from reposync.core.models.config import SyncConfig
from reposync.core.models.state import LocalState, RunRecord
from reposync.core.persistence.audit import AuditEntry, AuditWriter
from reposync.core.persistence.lock import LockHeldError, work_dir_lock
from reposync.core.persistence.state_file import default_state_path, load_state, save_state
from reposync.core.services import change_detect, installer, keys, repository
from reposync.core.services.environment import check_privilege, validate_environment
from reposync.core.services.local_state import inspect_local_state
from reposync.core.services.self_update import check_self_update

logger = logging.getLogger(__name__)

# Outcomes
NO_CHANGE = "no_change"
INSTALLED = "installed"
UPDATED = "updated"
INSTALL_FAILED = "install_failed"
DOWNLOAD_FAILED = "download_failed"
ABORTED = "aborted"


@dataclass
class SyncResult:
    """Result of one sync run."""

    config: SyncConfig | None = None
    work_dir: Path | None = None
    decision: str = ""
    outcome: str = ""
    local_state: LocalState | None = None
    installed: bool | None = None
    installed_version: str | None = None
    report: WorkflowReport | None = None
    notes: list[str] = field(default_factory=list)
    error: str | None = None

    @property
    def exit_code(self) -> int:
        return 1 if self.error else 0

    def to_dict(self) -> dict:
        result: dict = {}
        if self.error:
            result["error"] = self.error
        result["package"] = self.config.target.package if self.config else ""
        result["work_dir"] = str(self.work_dir) if self.work_dir else None
        result["decision"] = self.decision
        result["outcome"] = self.outcome
        result["installed"] = self.installed
        result["installed_version"] = self.installed_version
        result["notes"] = list(self.notes)
        if self.report:
            result["report"] = self.report.to_dict()
        return result


def run_sync(
    config_path: Path | None = None,
    config: SyncConfig | None = None,
    registry: AdapterRegistry | None = None,
    clock: Callable[[], float] = time.time,
) -> SyncResult:
    """Run the synchronization workflow once.

    Args:
        config_path: Optional explicit path to reposync.yml.
        config: Pre-loaded configuration (skips file loading).
        registry: Optional pre-configured adapter registry.
        clock: Epoch-seconds source for step timestamps.

    Returns:
        SyncResult; ``exit_code`` is 1 only for fatal conditions.
    """
    result = SyncResult()

    # ── Load config ──────────────────────────────────────────────
    if config is None:
        try:
            config = load_config(config_path)
        except ConfigError as e:
            result.error = str(e)
            return result
    result.config = config

    if registry is None:
        registry = default_registry()

    workflow = Workflow(clock=clock)
    ctx = build_context(config, registry, workflow)
    result.work_dir = ctx.paths.work_dir

    try:
        workflow.run("Checking user", check_privilege, ctx)
        workflow.run("Validating environment", validate_environment, ctx)
        workflow.run("Checking for a newer version of this tool", check_self_update, ctx)
        workflow.run("Preparing work directory", _prepare_work_dir, ctx)

        with work_dir_lock(ctx.paths.work_dir):
            try:
                _synchronize(ctx, result)
            except WorkflowAborted as e:
                _abort(result, str(e))
            finally:
                result.report = workflow.finish()
                _persist(ctx, result)
    except WorkflowAborted as e:
        _abort(result, str(e))
    except LockHeldError as e:
        _abort(result, str(e))

    if result.report is None:
        result.report = workflow.finish()
    return result


def _abort(result: SyncResult, message: str) -> None:
    result.outcome = ABORTED
    result.error = message


def _prepare_work_dir(ctx: SyncContext) -> StepResult:
    ctx.paths.work_dir.mkdir(parents=True, exist_ok=True)
    return StepResult.success(str(ctx.paths.work_dir))


# ── Decision tree ───────────────────────────────────────────────


def _synchronize(ctx: SyncContext, result: SyncResult) -> None:
    wf = ctx.workflow
    local: LocalState = wf.run("Inspecting local state", inspect_local_state, ctx).details["state"]
    result.local_state = local
    result.installed = local.installed
    result.installed_version = local.installed_version

    decision = change_detect.decide(local)
    result.decision = decision.value
    logger.info("Strategy: %s", decision.value.replace("_", " "))

    if decision is change_detect.Decision.FRESH_INSTALL:
        _fresh_install(ctx, result)
    elif decision is change_detect.Decision.ARTIFACT_COMPARE:
        _artifact_compare(ctx, local, result)
    else:
        _listing_compare(ctx, local, result)


def _fresh_install(ctx: SyncContext, result: SyncResult) -> None:
    wf = ctx.workflow
    line = wf.run("Fetching upstream listing", change_detect.fetch_listing, ctx).details["line"]

    downloaded = wf.run("Downloading artifact", change_detect.download_artifact, ctx)
    if not downloaded.details["downloaded"]:
        result.outcome = DOWNLOAD_FAILED
        return
    if line is not None:
        wf.run("Saving listing snapshot", change_detect.store_snapshot, ctx, line)

    _sync_repository(ctx)
    _check_keys(ctx)
    _install(ctx, result, success_outcome=INSTALLED)


def _artifact_compare(
    ctx: SyncContext,
    local: LocalState,
    result: SyncResult,
    listing_fetched: bool = False,
) -> None:
    """No saved listing line: download again and compare whole files.

    ``listing_fetched`` means the caller already tried the listing and got
    nothing, so it is not fetched a second time.
    """
    wf = ctx.workflow
    result.decision = change_detect.Decision.ARTIFACT_COMPARE.value
    line = None
    if not listing_fetched:
        line = wf.run(
            "Fetching upstream listing", change_detect.fetch_listing, ctx
        ).details["line"]

    aside: Path = wf.run(
        "Moving previous artifact aside",
        change_detect.move_artifact_aside,
        ctx,
        _aside_tag(local),
    ).details["aside"]

    downloaded = wf.run("Downloading artifact", change_detect.download_artifact, ctx)
    if not downloaded.details["downloaded"]:
        _download_failed(ctx, local, result, aside)
        return

    changed = wf.run(
        "Comparing artifacts", change_detect.compare_artifacts, ctx, aside
    ).details["changed"]
    if line is not None:
        wf.run("Saving listing snapshot", change_detect.store_snapshot, ctx, line)

    if not changed:
        wf.run("Restoring previous artifact", change_detect.restore_artifact, ctx, aside)
        _unchanged(ctx, local, result)
        return

    _upgrade(ctx, local, result)


def _listing_compare(ctx: SyncContext, local: LocalState, result: SyncResult) -> None:
    wf = ctx.workflow
    line = wf.run("Fetching upstream listing", change_detect.fetch_listing, ctx).details["line"]
    if line is None:
        result.notes.append("listing unavailable; compared artifacts instead")
        _artifact_compare(ctx, local, result, listing_fetched=True)
        return

    changed = wf.run(
        "Comparing upstream listing", change_detect.compare_listing, ctx, line
    ).details["changed"]

    if not changed:
        wf.run("Saving listing snapshot", change_detect.store_snapshot, ctx, line)
        _unchanged(ctx, local, result)
        return

    aside: Path = wf.run(
        "Moving previous artifact aside",
        change_detect.move_artifact_aside,
        ctx,
        _aside_tag(local),
    ).details["aside"]

    downloaded = wf.run("Downloading artifact", change_detect.download_artifact, ctx)
    if not downloaded.details["downloaded"]:
        _download_failed(ctx, local, result, aside)
        return
    wf.run("Saving listing snapshot", change_detect.store_snapshot, ctx, line)

    _upgrade(ctx, local, result)


def _upgrade(ctx: SyncContext, local: LocalState, result: SyncResult) -> None:
    # Keys first: a bad key must abort while the old package is still installed
    _check_keys(ctx)
    if local.installed:
        ctx.workflow.run("Removing installed package", installer.uninstall_previous, ctx)
    _sync_repository(ctx)
    _install(ctx, result, success_outcome=UPDATED)


def _download_failed(
    ctx: SyncContext, local: LocalState, result: SyncResult, aside: Path
) -> None:
    """Put the previous artifact back; install from it if nothing is installed.

    The snapshot is not advanced, so the next run sees the change again.
    """
    ctx.workflow.run("Restoring previous artifact", change_detect.restore_artifact, ctx, aside)
    if local.installed:
        result.outcome = DOWNLOAD_FAILED
        return

    _install_existing(ctx, result)
    if result.installed:
        result.notes.append("download failed; installed from the previous artifact")
    else:
        result.outcome = DOWNLOAD_FAILED


def _unchanged(ctx: SyncContext, local: LocalState, result: SyncResult) -> None:
    if local.installed:
        logger.info("Nothing to do: %s is current and installed", ctx.package)
        result.outcome = NO_CHANGE
        return
    _install_existing(ctx, result)


def _install_existing(ctx: SyncContext, result: SyncResult) -> None:
    # The local copy is not re-validated against upstream beyond being non-empty
    ctx.workflow.run("Checking existing artifact", _existing_artifact, ctx)
    _check_keys(ctx)
    _install(ctx, result, success_outcome=INSTALLED)


def _existing_artifact(ctx: SyncContext) -> StepResult:
    artifact = ctx.paths.artifact
    if not artifact.is_file() or artifact.stat().st_size == 0:
        return StepResult.warning(f"{artifact.name} is missing or empty")
    return StepResult.warning(
        f"installing from existing {artifact.name} without re-checking it against upstream"
    )


def _aside_tag(local: LocalState) -> str:
    if local.installed_version:
        return local.installed_version
    return datetime.now().strftime("%Y%m%d%H%M%S")


# ── Shared tails ────────────────────────────────────────────────


def _sync_repository(ctx: SyncContext) -> None:
    wf = ctx.workflow
    wf.run("Regenerating repository index", repository.regenerate_index, ctx)
    wf.run("Checking package manager media", repository.ensure_media, ctx)
    wf.run("Writing repository manifest", repository.write_manifest, ctx)


def _check_keys(ctx: SyncContext) -> None:
    wf = ctx.workflow
    wf.run("Verifying signing key", keys.ensure_local_key, ctx)
    wf.run("Checking system trust store", keys.ensure_trusted_key, ctx)


def _install(ctx: SyncContext, result: SyncResult, success_outcome: str) -> None:
    outcome = ctx.workflow.run("Installing package", installer.install, ctx)
    result.installed = bool(outcome.details.get("installed"))
    result.installed_version = outcome.details.get("version")
    result.outcome = success_outcome if result.installed else INSTALL_FAILED


# ── Persistence ─────────────────────────────────────────────────


def _persist(ctx: SyncContext, result: SyncResult) -> None:
    report = result.report
    if report is None:
        return

    record = RunRecord(
        operation_id=report.operation_id,
        decision=result.decision,
        outcome=result.outcome,
        status=report.status,
        started_at=datetime.fromtimestamp(report.started).isoformat(),
        ended_at=datetime.fromtimestamp(report.ended).isoformat(),
        elapsed=report.elapsed,
        installed_version=result.installed_version,
        warnings=[f"{r.name}: {r.message}" for r in report.warnings],
        error=result.error,
    )

    state_path = default_state_path(ctx.paths.work_dir)
    state = load_state(state_path)
    state.package = ctx.package
    state.record_run(record)
    try:
        save_state(state, state_path)
    except OSError as e:
        logger.warning("Run record not saved: %s", e)

    AuditWriter(work_dir=ctx.paths.work_dir).write(
        AuditEntry(
            operation_id=report.operation_id,
            package=ctx.package,
            decision=result.decision,
            outcome=result.outcome,
            steps=report.step_names(),
            status=report.status,
            steps_total=len(report.records),
            steps_warned=len(report.warnings),
            duration_ms=int((report.ended - report.started) * 1000),
            errors=[result.error] if result.error else [],
            context={"release": ctx.release, "install_flags": ctx.install_flags},
        )
    )
