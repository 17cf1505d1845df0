"""
Change detection — decide whether upstream moved without downloading it.

The cheap signal is one line of the upstream directory listing (name,
date, size). It is compared textually with the line saved by the last
successful sync. Only when no saved line exists yet does the tool fall
back to downloading the artifact and comparing the files byte for byte.
"""

from __future__ import annotations

import filecmp
import logging
from datetime import datetime
from enum import Enum
from pathlib import Path

from reposync.core.context import SyncContext, SyncPaths
from reposync.core.engine.executor import StepResult
from reposync.core.models.state import LocalState
from reposync.core.services.tools import FETCH_ARTIFACT, FETCH_LISTING

logger = logging.getLogger(__name__)


class Decision(str, Enum):
    """Which comparison strategy the local state allows."""

    FRESH_INSTALL = "fresh_install"
    ARTIFACT_COMPARE = "artifact_compare"
    LISTING_COMPARE = "listing_compare"


def decide(local: LocalState) -> Decision:
    """Pick the strategy from what is already on disk."""
    if not local.artifact_present:
        return Decision.FRESH_INSTALL
    if not local.snapshot_present:
        return Decision.ARTIFACT_COMPARE
    return Decision.LISTING_COMPARE


def extract_listing_line(body: str, artifact_name: str) -> str | None:
    """The first listing line that mentions the artifact, stripped."""
    for line in body.splitlines():
        if artifact_name in line:
            return line.strip()
    return None


def listing_changed(previous: str, current: str) -> bool:
    """Textual inequality; no version parsing."""
    return previous != current


def read_snapshot(paths: SyncPaths) -> str:
    """Saved listing line without its trailing newline ('' if absent)."""
    if not paths.snapshot.is_file():
        return ""
    text = paths.snapshot.read_text(encoding="utf-8", errors="replace")
    return text[:-1] if text.endswith("\n") else text


def save_snapshot(paths: SyncPaths, line: str) -> None:
    """Keep one previous generation as ``<snapshot>-``, then write ``line``."""
    if paths.snapshot.is_file():
        paths.snapshot.replace(paths.snapshot_backup)
    paths.snapshot.write_text(line + "\n", encoding="utf-8")


def artifacts_identical(a: Path, b: Path) -> bool:
    """Byte-for-byte comparison of two files."""
    return filecmp.cmp(a, b, shallow=False)


# ── Workflow steps ──────────────────────────────────────────────


def fetch_listing(ctx: SyncContext) -> StepResult:
    """Fetch the upstream listing and pick out the artifact's line.

    ``details["line"]`` is None when the listing could not be used.
    """
    target = ctx.config.target
    receipt = ctx.tools.fetch_text(target.listing_url, action_id=FETCH_LISTING)
    if not receipt.ok:
        return StepResult.warning(
            f"Could not fetch {target.listing_url} (exit {receipt.return_code})",
            line=None,
        )

    line = extract_listing_line(receipt.output, target.artifact_name)
    if line is None:
        return StepResult.warning(
            f"{target.artifact_name} not found in {target.listing_url}",
            line=None,
        )
    return StepResult.success(line, line=line)


def compare_listing(ctx: SyncContext, current: str) -> StepResult:
    """Compare the fresh listing line with the saved snapshot."""
    previous = read_snapshot(ctx.paths)
    changed = listing_changed(previous, current)
    if changed:
        logger.info("  was: %s", previous)
        return StepResult.success("upstream listing changed", changed=True)
    return StepResult.success("upstream listing unchanged", changed=False)


def store_snapshot(ctx: SyncContext, line: str) -> StepResult:
    save_snapshot(ctx.paths, line)
    return StepResult.success(f"saved {ctx.paths.snapshot.name}")


def move_artifact_aside(ctx: SyncContext, tag: str) -> StepResult:
    """Rename the current artifact to a tagged name; never overwrite it."""
    src = ctx.paths.artifact
    dest = ctx.paths.aside(tag)
    if dest.exists():
        dest = ctx.paths.aside(f"{tag}.{datetime.now().strftime('%Y%m%d%H%M%S')}")
    src.replace(dest)
    return StepResult.success(f"{src.name} → {dest.name}", aside=dest)


def restore_artifact(ctx: SyncContext, aside: Path) -> StepResult:
    aside.replace(ctx.paths.artifact)
    return StepResult.success(f"{aside.name} → {ctx.paths.artifact.name}")


def download_artifact(ctx: SyncContext) -> StepResult:
    target = ctx.config.target
    ctx.paths.work_dir.mkdir(parents=True, exist_ok=True)
    receipt = ctx.tools.fetch(target.artifact_url, ctx.paths.artifact, action_id=FETCH_ARTIFACT)
    if not receipt.ok:
        return StepResult.warning(
            f"Download of {target.artifact_url} failed (exit {receipt.return_code}): "
            f"{receipt.error}",
            downloaded=False,
        )
    size = ctx.paths.artifact.stat().st_size
    return StepResult.success(f"{target.artifact_name} ({size} bytes)", downloaded=True)


def compare_artifacts(ctx: SyncContext, previous: Path) -> StepResult:
    if artifacts_identical(previous, ctx.paths.artifact):
        return StepResult.success("downloaded artifact is identical", changed=False)
    return StepResult.success("downloaded artifact differs", changed=True)
