"""
Workflow driver — runs steps, timestamps them, decides continue vs abort.

Every step is a plain function that returns a StepResult declaring its
own severity. The driver is the only place that turns a severity into
control flow:

    ok / skipped  → log, continue
    warning       → log as WARNING, continue (best-effort)
    fatal         → log as ERROR, raise WorkflowAborted

Flow:
    step → timestamp → execute → record → continue | abort
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Literal

from reposync.core.observability.timing import format_elapsed

logger = logging.getLogger(__name__)

StepStatus = Literal["ok", "skipped", "warning", "fatal"]

_STAMP_FMT = "%Y-%m-%d %H:%M:%S"


@dataclass
class StepResult:
    """Outcome of one workflow step."""

    status: StepStatus = "ok"
    message: str = ""
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @classmethod
    def success(cls, message: str = "", **details: Any) -> StepResult:
        return cls(status="ok", message=message, details=details)

    @classmethod
    def skip(cls, message: str = "", **details: Any) -> StepResult:
        return cls(status="skipped", message=message, details=details)

    @classmethod
    def warning(cls, message: str, **details: Any) -> StepResult:
        return cls(status="warning", message=message, details=details)

    @classmethod
    def fatal(cls, message: str, **details: Any) -> StepResult:
        return cls(status="fatal", message=message, details=details)


@dataclass
class StepRecord:
    """What the driver saw for one step."""

    name: str
    status: StepStatus
    message: str = ""
    started_at: str = ""
    duration_ms: int = 0

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "status": self.status,
            "message": self.message,
            "started_at": self.started_at,
            "duration_ms": self.duration_ms,
        }


class WorkflowAborted(Exception):
    """Raised when a step reports a fatal result."""

    def __init__(self, record: StepRecord):
        super().__init__(f"{record.name}: {record.message}")
        self.record = record


@dataclass
class WorkflowReport:
    """Result of driving a sequence of steps."""

    operation_id: str = ""
    records: list[StepRecord] = field(default_factory=list)
    started: float = 0.0
    ended: float = 0.0
    aborted: bool = False

    @property
    def warnings(self) -> list[StepRecord]:
        return [r for r in self.records if r.status == "warning"]

    @property
    def status(self) -> str:
        if self.aborted:
            return "failed"
        if self.warnings:
            return "partial"
        return "ok"

    @property
    def elapsed(self) -> str:
        return format_elapsed(self.started, self.ended)

    def step_names(self) -> list[str]:
        return [r.name for r in self.records]

    def to_dict(self) -> dict:
        return {
            "operation_id": self.operation_id,
            "status": self.status,
            "elapsed": self.elapsed,
            "steps": [r.to_dict() for r in self.records],
        }


class Workflow:
    """Sequential step driver with per-step timestamps.

    Args:
        operation_id: Identifier for this run (generated if omitted).
        clock: Epoch-seconds source; injectable for tests.
    """

    def __init__(
        self,
        operation_id: str | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self._clock = clock
        self.report = WorkflowReport(
            operation_id=operation_id or generate_operation_id(),
            started=clock(),
        )

    def run(self, name: str, fn: Callable[..., StepResult], *args: Any, **kwargs: Any) -> StepResult:
        """Run one step and apply its declared severity.

        Raises:
            WorkflowAborted: If the step returns (or fails with) a fatal result.
        """
        started = self._clock()
        stamp = datetime.fromtimestamp(started).strftime(_STAMP_FMT)
        logger.info("[%s] %s", stamp, name)

        mono = time.monotonic()
        try:
            result = fn(*args, **kwargs)
        except OSError as e:
            result = StepResult.fatal(f"{e.__class__.__name__}: {e}")

        record = StepRecord(
            name=name,
            status=result.status,
            message=result.message,
            started_at=stamp,
            duration_ms=int((time.monotonic() - mono) * 1000),
        )
        self.report.records.append(record)

        if result.status == "fatal":
            logger.error("  ✗ %s", result.message)
            self.report.aborted = True
            self.report.ended = self._clock()
            raise WorkflowAborted(record)
        if result.status == "warning":
            logger.warning("  ⚠ %s", result.message)
        elif result.message:
            marker = "⊘" if result.status == "skipped" else "✓"
            logger.info("  %s %s", marker, result.message)

        return result

    def finish(self) -> WorkflowReport:
        """Close the run and log the elapsed wall-clock time."""
        if not self.report.ended:
            self.report.ended = self._clock()
        logger.info("Elapsed: %s", self.report.elapsed)
        return self.report


def generate_operation_id() -> str:
    """Generate a unique operation ID."""
    now = datetime.now(UTC).strftime("%Y%m%d-%H%M%S")
    short = uuid.uuid4().hex[:6]
    return f"op-{now}-{short}"
