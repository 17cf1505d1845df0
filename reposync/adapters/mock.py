"""
Scriptable stand-in for the command adapter.

Lets the whole workflow run without curl, rpm or urpmi. Per action ID
it can answer with a callback (which may also touch files, e.g. write
the ``--output`` path of a fetch), a queue of receipts, or one fixed
receipt. Anything unscripted succeeds.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Callable

from reposync.adapters.base import Adapter, ExecutionContext
from reposync.core.models.action import Receipt

Handler = Callable[[ExecutionContext], Receipt]


class MockAdapter(Adapter):
    """Records every context it is given and answers from its script."""

    def __init__(self, adapter_name: str = "command", available: bool = True):
        self._adapter_name = adapter_name
        self._available = available
        self._handlers: dict[str, Handler] = {}
        self._queues: dict[str, deque[Receipt]] = {}
        self._fixed: dict[str, Receipt] = {}
        self.call_log: list[ExecutionContext] = []

    @property
    def name(self) -> str:
        return self._adapter_name

    def is_available(self) -> bool:
        return self._available

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        return True, ""

    # ── Scripting ───────────────────────────────────────────────

    def set_handler(self, action_id: str, handler: Handler) -> None:
        self._handlers[action_id] = handler

    def set_sequence(self, action_id: str, receipts: list[Receipt]) -> None:
        """Answer with these in order; the last one then repeats."""
        self._queues[action_id] = deque(receipts)

    def set_response(self, action_id: str, receipt: Receipt) -> None:
        self._fixed[action_id] = receipt

    def set_failure(self, action_id: str, error: str = "Mock failure", return_code: int = 1) -> None:
        self._fixed[action_id] = Receipt.failure(
            adapter=self.name, action_id=action_id, error=error, return_code=return_code
        )

    def reset(self) -> None:
        """Forget all scripting and recorded calls."""
        self._handlers.clear()
        self._queues.clear()
        self._fixed.clear()
        self.call_log.clear()

    # ── Inspection ──────────────────────────────────────────────

    @property
    def call_count(self) -> int:
        return len(self.call_log)

    def called_ids(self) -> list[str]:
        return [c.action.id for c in self.call_log]

    def calls_for(self, action_id: str) -> list[ExecutionContext]:
        return [c for c in self.call_log if c.action.id == action_id]

    # ── Execution ───────────────────────────────────────────────

    def execute(self, context: ExecutionContext) -> Receipt:
        self.call_log.append(context)
        action_id = context.action.id

        if action_id in self._handlers:
            return self._handlers[action_id](context)
        queue = self._queues.get(action_id)
        if queue:
            return queue.popleft() if len(queue) > 1 else queue[0]
        if action_id in self._fixed:
            return self._fixed[action_id]
        return Receipt.success(adapter=self.name, action_id=action_id, metadata={"mock": True})
