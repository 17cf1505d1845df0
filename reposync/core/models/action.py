"""
Action and Receipt — one external command and what came of it.

Every call out to curl, rpm, urpmi and friends is an Action handed to
the adapter registry; the registry hands back a Receipt. Adapters report
failure in the Receipt, never by raising.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

ReceiptStatus = Literal["ok", "failed"]


def _utc_stamp() -> str:
    return datetime.now(UTC).isoformat()


class Action(BaseModel):
    """An external command, spelled out as an argument list.

    Elevation is a flag rather than part of ``argv`` so the adapter can
    skip the prefix when the process is already root.
    """

    id: str                         # fixed per tool call site, e.g. "fetch:artifact"
    argv: list[str] = Field(default_factory=list)
    elevate: bool = False
    timeout: int = 600              # seconds
    cwd: str | None = None          # None = registry work dir
    adapter: str = "command"

    @property
    def program(self) -> str:
        return self.argv[0] if self.argv else ""


class Receipt(BaseModel):
    """Outcome of one Action.

    ``return_code`` is the command's numeric exit status; None when the
    command never ran (not found, timed out, rejected by validation).
    """

    adapter: str
    action_id: str
    status: ReceiptStatus = "ok"
    return_code: int | None = None
    output: str = ""                # stdout, stripped
    error: str | None = None        # stderr or a reason the command never ran

    started_at: str = Field(default_factory=_utc_stamp)
    duration_ms: int = 0
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    @classmethod
    def success(cls, adapter: str, action_id: str, output: str = "", **kwargs: Any) -> Receipt:
        kwargs.setdefault("return_code", 0)
        return cls(adapter=adapter, action_id=action_id, output=output, **kwargs)

    @classmethod
    def failure(cls, adapter: str, action_id: str, error: str, **kwargs: Any) -> Receipt:
        return cls(adapter=adapter, action_id=action_id, status="failed", error=error, **kwargs)
