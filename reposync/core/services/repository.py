"""
Repository synchronization — index, package-manager media, manifest.

After a new artifact lands in the work directory, the directory is
turned into a local repository the package manager can resolve from:
the index is regenerated in place, the directory is registered as a
named media if it is not already, and a README lists what is there.
"""

from __future__ import annotations

import logging
from datetime import datetime

from reposync.core.context import SyncContext
from reposync.core.engine.executor import StepResult

logger = logging.getLogger(__name__)


def regenerate_index(ctx: SyncContext) -> StepResult:
    receipt = ctx.tools.generate_index(ctx.paths.work_dir)
    if not receipt.ok:
        return StepResult.warning(
            f"Repository index generation failed (exit {receipt.return_code}): {receipt.error}"
        )
    return StepResult.success(f"index written to {ctx.paths.index_dir.name}/")


def media_names(output: str) -> set[str]:
    """Media names from a one-name-per-line media listing."""
    return {line.strip() for line in output.splitlines() if line.strip()}


def ensure_media(ctx: SyncContext) -> StepResult:
    """Register the work directory as a media unless already listed.

    Failure to add is a warning: the direct-install fallback does not
    need the media.
    """
    name = ctx.config.target.media_name
    listed = ctx.tools.list_media()
    if listed.ok and name in media_names(listed.output):
        return StepResult.success(f"media '{name}' already configured")
    if not listed.ok:
        logger.debug("Media listing failed (exit %s); trying to add anyway", listed.return_code)

    added = ctx.tools.add_media(name, ctx.paths.work_dir)
    if not added.ok:
        return StepResult.warning(
            f"Could not add media '{name}' for {ctx.paths.work_dir} "
            f"(exit {added.return_code}): {added.error}"
        )
    return StepResult.success(f"added media '{name}' → {ctx.paths.work_dir}")


def render_manifest(ctx: SyncContext, now: datetime | None = None) -> str:
    paths = ctx.paths
    stamp = (now or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")
    rows = [
        (paths.artifact.name, "downloaded package"),
        (paths.snapshot.name, "upstream listing line at the last sync"),
        (paths.snapshot_backup.name, "listing line of the sync before that"),
    ]
    if paths.key is not None and paths.key_checksum is not None:
        rows.append((paths.key.name, "package signing key"))
        rows.append((paths.key_checksum.name, "SHA-256 of the signing key"))
    rows.append((paths.index_dir.name + "/", "repository index"))

    width = max(len(name) for name, _ in rows)
    lines = [
        f"Local repository for {ctx.package}",
        f"Source:  {ctx.config.target.artifact_url}",
        f"Media:   {ctx.config.target.media_name}",
        f"Updated: {stamp}",
        "",
    ]
    lines += [f"{name.ljust(width)}  {desc}" for name, desc in rows]
    return "\n".join(lines) + "\n"


def write_manifest(ctx: SyncContext) -> StepResult:
    ctx.paths.manifest.write_text(render_manifest(ctx), encoding="utf-8")
    return StepResult.success(f"wrote {ctx.paths.manifest.name}")
