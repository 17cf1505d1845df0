"""
SyncState — what the last run observed and did.

Serialized to <work_dir>/.state/current.json. It is disposable: delete it
and the next run behaves exactly as before, because change detection is
driven by the files in the work directory, not by this record.
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, Field


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class LocalState(BaseModel):
    """Read-only snapshot of local facts that drive the decision tree."""

    installed: bool = False
    installed_version: str | None = None
    artifact_present: bool = False
    snapshot_present: bool = False


class RunRecord(BaseModel):
    """Summary of one sync run."""

    operation_id: str = ""
    decision: str = ""          # fresh_install, artifact_compare, listing_compare
    outcome: str = ""           # no_change, installed, updated, install_failed, download_failed, aborted
    status: str = ""            # ok, partial, failed
    started_at: str = ""
    ended_at: str = ""
    elapsed: str = ""
    installed_version: str | None = None
    warnings: list[str] = Field(default_factory=list)
    error: str | None = None


class SyncState(BaseModel):
    """Root state model — serialized to .state/current.json."""

    # ── Schema ───────────────────────────────────────────────────
    schema_version: int = 1

    # ── Identity ─────────────────────────────────────────────────
    package: str = ""

    # ── Timestamps ───────────────────────────────────────────────
    created_at: str = Field(default_factory=_now_iso)
    updated_at: str = Field(default_factory=_now_iso)

    # ── Last run ─────────────────────────────────────────────────
    last_run: RunRecord = Field(default_factory=RunRecord)
    runs_total: int = 0

    def touch(self) -> None:
        """Update the updated_at timestamp."""
        self.updated_at = _now_iso()

    def record_run(self, record: RunRecord) -> None:
        """Replace the last-run summary and bump the run counter."""
        self.last_run = record
        self.runs_total += 1
