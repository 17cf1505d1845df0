"""
Command adapter — run one external tool from an explicit argument list.

This is the only place reposync calls ``subprocess.run``. ``argv`` goes
straight to the OS with no shell in between, so URLs and paths are never
reinterpreted.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import time
from pathlib import Path

from reposync.adapters.base import Adapter, ExecutionContext
from reposync.core.models.action import Receipt

logger = logging.getLogger(__name__)


def _decode(raw: bytes) -> str:
    return raw.decode("utf-8", errors="replace").strip()


class CommandAdapter(Adapter):
    """Run ``Action.argv``, elevated when asked and not already root."""

    @property
    def name(self) -> str:
        return "command"

    def is_available(self) -> bool:
        return True

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        program = context.action.program
        if not program:
            return False, "Empty argv"
        if shutil.which(program) is None:
            return False, f"Command not found: {program}"
        if not Path(context.cwd).is_dir():
            return False, f"Working directory does not exist: {context.cwd}"
        return True, ""

    def command_line(self, context: ExecutionContext) -> list[str]:
        action = context.action
        if action.elevate and os.geteuid() != 0:
            return [*context.elevate_prefix, *action.argv]
        return list(action.argv)

    def execute(self, context: ExecutionContext) -> Receipt:
        action = context.action
        argv = self.command_line(context)
        logger.debug("Executing: %s (cwd=%s)", argv, context.cwd)

        started = time.monotonic()
        try:
            proc = subprocess.run(
                argv, cwd=context.cwd, capture_output=True, timeout=action.timeout
            )
        except subprocess.TimeoutExpired:
            return Receipt.failure(
                adapter=self.name,
                action_id=action.id,
                error=f"Command timed out after {action.timeout}s",
                metadata={"argv": argv},
            )
        except OSError as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=action.id,
                error=f"Command execution error: {e}",
                metadata={"argv": argv},
            )

        common = {
            "adapter": self.name,
            "action_id": action.id,
            "output": _decode(proc.stdout),
            "return_code": proc.returncode,
            "duration_ms": int((time.monotonic() - started) * 1000),
            "metadata": {"argv": argv},
        }
        stderr = _decode(proc.stderr)
        if proc.returncode == 0:
            common["metadata"]["stderr"] = stderr
            return Receipt(**common)
        return Receipt(status="failed", error=stderr or f"exit code {proc.returncode}", **common)
