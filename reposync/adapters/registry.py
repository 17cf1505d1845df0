"""
Adapter registry — routes each Action to the adapter named in it.

Workflow code never calls an adapter directly. The registry also owns
the privilege-elevation prefix (``sudo`` by default) so that the tool
table in the configuration decides it in one place.
"""

from __future__ import annotations

import logging
import time
from typing import Any

from reposync.adapters.base import Adapter, ExecutionContext
from reposync.core.models.action import Action, Receipt

logger = logging.getLogger(__name__)


class AdapterRegistry:
    """Name → adapter table plus the dispatch that never raises."""

    def __init__(self, elevate_prefix: list[str] | None = None):
        self._adapters: dict[str, Adapter] = {}
        self._elevate_prefix = list(elevate_prefix or [])

    @property
    def elevate_prefix(self) -> list[str]:
        return list(self._elevate_prefix)

    def set_elevate_prefix(self, prefix: list[str]) -> None:
        self._elevate_prefix = list(prefix)

    def register(self, adapter: Adapter) -> None:
        if adapter.name in self._adapters:
            logger.warning("Replacing adapter %r", adapter.name)
        self._adapters[adapter.name] = adapter

    def unregister(self, name: str) -> None:
        self._adapters.pop(name, None)

    def get(self, name: str) -> Adapter | None:
        return self._adapters.get(name)

    def list_adapters(self) -> list[str]:
        return sorted(self._adapters)

    def adapter_status(self) -> dict[str, dict[str, Any]]:
        """Availability per adapter, for diagnostics."""
        report: dict[str, dict[str, Any]] = {}
        for name, adapter in self._adapters.items():
            try:
                available = adapter.is_available()
            except Exception:
                available = False
            report[name] = {"available": available, "type": type(adapter).__name__}
        return report

    def execute_action(self, action: Action, work_dir: str = ".") -> Receipt:
        """Validate and run ``action``; every failure comes back as a Receipt."""
        started = time.monotonic()
        receipt = self._dispatch(action, work_dir)
        receipt.duration_ms = int((time.monotonic() - started) * 1000)
        if receipt.failed:
            logger.debug("%s failed (exit %s): %s", action.id, receipt.return_code, receipt.error)
        return receipt

    def _dispatch(self, action: Action, work_dir: str) -> Receipt:
        adapter = self._adapters.get(action.adapter)
        if adapter is None:
            return Receipt.failure(
                adapter=action.adapter,
                action_id=action.id,
                error=f"No adapter registered for '{action.adapter}'",
            )

        context = ExecutionContext(
            action=action, work_dir=work_dir, elevate_prefix=self._elevate_prefix
        )
        try:
            valid, reason = adapter.validate(context)
            if not valid:
                return Receipt.failure(adapter=adapter.name, action_id=action.id, error=reason)
            return adapter.execute(context)
        except Exception as e:
            logger.error("Adapter %s raised on %s: %s", adapter.name, action.id, e)
            return Receipt.failure(
                adapter=adapter.name, action_id=action.id, error=f"Unexpected error: {e}"
            )
