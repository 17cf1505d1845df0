"""
Tests for adapter protocol, registry, mock, and command adapter.
"""

from pathlib import Path
from unittest.mock import patch

from reposync.adapters import default_registry
from reposync.adapters.base import ExecutionContext
from reposync.adapters.mock import MockAdapter
from reposync.adapters.registry import AdapterRegistry
from reposync.adapters.shell.command import CommandAdapter
from reposync.core.models.action import Action, Receipt

# ── Protocol Tests ───────────────────────────────────────────────────


class TestExecutionContext:
    def test_cwd_defaults_to_work_dir(self):
        ctx = ExecutionContext(action=Action(id="test"), work_dir="/work")
        assert ctx.cwd == "/work"

    def test_action_cwd_overrides(self):
        ctx = ExecutionContext(action=Action(id="test", cwd="/elsewhere"), work_dir="/work")
        assert ctx.cwd == "/elsewhere"


# ── Mock Adapter Tests ───────────────────────────────────────────────


class TestMockAdapter:
    def test_default_success(self):
        mock = MockAdapter(adapter_name="test-mock")
        ctx = ExecutionContext(action=Action(id="op-1", adapter="test-mock"))
        receipt = mock.execute(ctx)
        assert receipt.ok
        assert mock.call_count == 1

    def test_set_failure(self):
        mock = MockAdapter()
        mock.set_failure("op-fail", error="Intentional failure", return_code=22)
        receipt = mock.execute(ExecutionContext(action=Action(id="op-fail")))
        assert receipt.failed
        assert receipt.return_code == 22
        assert "Intentional failure" in receipt.error

    def test_sequence_repeats_last(self):
        mock = MockAdapter()
        mock.set_sequence(
            "q",
            [
                Receipt.failure(adapter="command", action_id="q", error="absent"),
                Receipt.success(adapter="command", action_id="q", output="1.0-1"),
            ],
        )
        results = [mock.execute(ExecutionContext(action=Action(id="q"))) for _ in range(3)]
        assert [r.ok for r in results] == [False, True, True]

    def test_handler_wins(self):
        mock = MockAdapter()
        mock.set_failure("op")
        mock.set_handler(
            "op", lambda c: Receipt.success(adapter="command", action_id="op", output=c.work_dir)
        )
        receipt = mock.execute(ExecutionContext(action=Action(id="op"), work_dir="/w"))
        assert receipt.ok
        assert receipt.output == "/w"

    def test_calls_for(self):
        mock = MockAdapter()
        for action_id in ("a", "b", "a"):
            mock.execute(ExecutionContext(action=Action(id=action_id)))
        assert len(mock.calls_for("a")) == 2
        assert mock.called_ids() == ["a", "b", "a"]

    def test_reset(self):
        mock = MockAdapter()
        mock.set_failure("op-1")
        mock.execute(ExecutionContext(action=Action(id="op-1")))
        mock.reset()
        assert mock.call_count == 0
        assert mock.execute(ExecutionContext(action=Action(id="op-1"))).ok


# ── Registry Tests ───────────────────────────────────────────────────


class TestAdapterRegistry:
    def test_register_and_get(self):
        registry = AdapterRegistry()
        mock = MockAdapter()
        registry.register(mock)
        assert registry.get("command") is mock
        assert registry.list_adapters() == ["command"]

    def test_unknown_adapter_fails(self):
        registry = AdapterRegistry()
        receipt = registry.execute_action(Action(id="x", adapter="missing"))
        assert receipt.failed
        assert "No adapter" in receipt.error

    def test_passes_elevate_prefix(self):
        registry = AdapterRegistry(elevate_prefix=["doas"])
        mock = MockAdapter()
        registry.register(mock)
        registry.execute_action(Action(id="x"), work_dir="/tmp")
        assert mock.call_log[0].elevate_prefix == ["doas"]
        assert mock.call_log[0].work_dir == "/tmp"

    def test_adapter_exception_becomes_receipt(self):
        registry = AdapterRegistry()
        mock = MockAdapter()

        def boom(context):
            raise RuntimeError("boom")

        mock.set_handler("x", boom)
        registry.register(mock)
        receipt = registry.execute_action(Action(id="x"))
        assert receipt.failed
        assert "boom" in receipt.error

    def test_adapter_status(self):
        registry = default_registry()
        status = registry.adapter_status()
        assert status["command"]["available"] is True
        assert status["command"]["type"] == "CommandAdapter"


# ── Command Adapter Tests ────────────────────────────────────────────


def _run(argv: list[str], work_dir: str = ".", **fields) -> Receipt:
    registry = AdapterRegistry(elevate_prefix=["env"])
    registry.register(CommandAdapter())
    return registry.execute_action(Action(id="cmd", argv=argv, **fields), work_dir)


class TestCommandAdapter:
    def test_success_captures_stdout(self):
        receipt = _run(["echo", "hello"])
        assert receipt.ok
        assert receipt.output == "hello"
        assert receipt.return_code == 0

    def test_nonzero_exit_is_failure(self):
        receipt = _run(["false"])
        assert receipt.failed
        assert receipt.return_code == 1

    def test_runs_in_work_dir(self, tmp_path: Path):
        receipt = _run(["pwd"], work_dir=str(tmp_path))
        assert Path(receipt.output).resolve() == tmp_path.resolve()

    def test_missing_command(self):
        receipt = _run(["definitely-not-a-real-command-xyz"])
        assert receipt.failed
        assert "Command not found" in receipt.error

    def test_missing_work_dir(self, tmp_path: Path):
        receipt = _run(["true"], work_dir=str(tmp_path / "missing"))
        assert receipt.failed
        assert "Working directory" in receipt.error

    def test_rejects_empty_argv(self):
        receipt = _run([])
        assert receipt.failed
        assert "argv" in receipt.error

    def test_timeout(self):
        receipt = _run(["sleep", "5"], timeout=1)
        assert receipt.failed
        assert "timed out" in receipt.error

    def test_elevate_prefixes_when_not_root(self):
        with patch("reposync.adapters.shell.command.os.geteuid", return_value=1000):
            receipt = _run(["echo", "hi"], elevate=True)
        assert receipt.ok
        assert receipt.metadata["argv"] == ["env", "echo", "hi"]

    def test_no_prefix_when_root(self):
        with patch("reposync.adapters.shell.command.os.geteuid", return_value=0):
            receipt = _run(["echo", "hi"], elevate=True)
        assert receipt.metadata["argv"] == ["echo", "hi"]
