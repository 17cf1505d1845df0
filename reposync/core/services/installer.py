"""
Installation — package manager first, direct forced install second.

The high-level install is judged by the package database afterwards,
not by its exit code. If the package is still absent, a direct install
of the downloaded file that skips dependency resolution is attempted
exactly once. Neither failure aborts the run.
"""

from __future__ import annotations

import logging

from reposync.core.context import SyncContext
from reposync.core.engine.executor import StepResult
from reposync.core.services.local_state import query_installed

logger = logging.getLogger(__name__)


def _label(package: str, version: str | None) -> str:
    return f"{package} {version}" if version else package


def uninstall_previous(ctx: SyncContext) -> StepResult:
    receipt = ctx.tools.uninstall_package(ctx.package)
    if not receipt.ok:
        return StepResult.warning(
            f"Removing the installed {ctx.package} failed (exit {receipt.return_code})"
        )
    return StepResult.success(f"removed installed {ctx.package}")


def install(ctx: SyncContext) -> StepResult:
    package = ctx.package
    high = ctx.tools.install_package(package, ctx.install_flags)
    if high.ok:
        logger.info("  package manager finished")
    else:
        logger.warning("  package manager exited %s", high.return_code)

    installed, version = query_installed(ctx.tools, package)
    if installed:
        return StepResult.success(
            f"{_label(package, version)} installed",
            installed=True,
            version=version,
            method="package_manager",
        )

    artifact = ctx.paths.artifact
    if not artifact.is_file():
        return StepResult.warning(
            f"{package} not installed and {artifact.name} is missing; nothing to fall back to",
            installed=False,
            version=None,
            method=None,
        )

    logger.warning("  %s still absent; trying direct install of %s", package, artifact.name)
    low = ctx.tools.force_install(artifact)
    installed, version = query_installed(ctx.tools, package)
    if installed:
        return StepResult.warning(
            f"{_label(package, version)} installed by direct install (dependencies not checked)",
            installed=True,
            version=version,
            method="direct",
        )

    return StepResult.warning(
        f"{package} could not be installed (package manager exit {high.return_code}, "
        f"direct install exit {low.return_code}); see the output above",
        installed=False,
        version=None,
        method=None,
    )
