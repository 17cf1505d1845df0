"""
Run history — one NDJSON line per sync run in ``.state/audit.ndjson``.

Answers "when did this package last change, and what did reposync do
about it". Lines are only ever appended.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

AUDIT_FILE = Path(".state") / "audit.ndjson"


class AuditEntry(BaseModel):
    """What one run decided, did and ended with."""

    timestamp: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    operation_id: str = ""
    package: str = ""

    decision: str = ""          # fresh_install | artifact_compare | listing_compare
    outcome: str = ""           # no_change | installed | updated | install_failed | download_failed | aborted
    status: str = ""            # ok | partial | failed
    steps: list[str] = Field(default_factory=list)
    steps_total: int = 0
    steps_warned: int = 0
    duration_ms: int = 0
    errors: list[str] = Field(default_factory=list)

    context: dict[str, Any] = Field(default_factory=dict)   # release, install flags


class AuditWriter:
    """Appends entries to, and reads them back from, one ledger file."""

    def __init__(self, path: Path | None = None, work_dir: Path | None = None):
        self._path = path or (work_dir or Path(".")) / AUDIT_FILE

    @property
    def path(self) -> Path:
        return self._path

    def write(self, entry: AuditEntry) -> None:
        """Append ``entry``. A write failure is logged, not raised."""
        line = json.dumps(entry.model_dump(mode="json"), ensure_ascii=False)
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as f:
                f.write(line + "\n")
        except OSError as e:
            logger.error("Run history not written to %s: %s", self._path, e)

    def read_all(self) -> list[AuditEntry]:
        """Every readable entry, oldest first; damaged lines are skipped."""
        try:
            lines = self._path.read_text(encoding="utf-8").splitlines()
        except FileNotFoundError:
            return []
        except OSError as e:
            logger.error("Cannot read run history %s: %s", self._path, e)
            return []

        entries: list[AuditEntry] = []
        for number, line in enumerate(lines, start=1):
            if not line.strip():
                continue
            try:
                entries.append(AuditEntry.model_validate_json(line))
            except ValidationError as e:
                logger.warning("Skipping damaged history line %d: %s", number, e)
        return entries

    def read_recent(self, n: int = 20) -> list[AuditEntry]:
        return self.read_all()[-n:]
