# Test suite for the tool execution bridge

import asyncio

import pytest

from conftest import DictFileReader, StubGateway
from vibey.agent.context.conversation import ConversationManager
from vibey.agent.context.manager import ContextManager
from vibey.agent.core.cancellation import CancellationToken
from vibey.agent.core.execution import ToolExecutor
from vibey.agent.structs import ToolCall, ToolResult
from vibey.agent.task_manager import TaskManager
from vibey.exceptions.agent import RequestCancelledError
from vibey.exceptions.tools import ToolExecutionError
from vibey.protocol.progress import ProgressReporter
from vibey.tools.defaults import register_default_tools
from vibey.tools.registry import ToolRegistry


@pytest.fixture
def conversation():
    return ConversationManager("sys")


@pytest.fixture
def context_manager():
    return ContextManager(DictFileReader({}))


class TestToolExecutor:
    """Single-call behavior"""

    @pytest.mark.asyncio
    async def test_unknown_tool_is_error_result(self, registry, conversation):
        executor = ToolExecutor(registry, conversation)
        result = await executor.execute(ToolCall(id="c1", name="teleport"))

        assert not result.success
        assert result.error.startswith("Unknown tool: teleport")
        assert conversation.last_role() == "tool"
        assert conversation.get_history()[-1].metadata["tool_call_id"] == "c1"

    @pytest.mark.asyncio
    async def test_invalid_parameters_never_run(self, registry, conversation, settings):
        executor = ToolExecutor(registry, conversation)
        result = await executor.execute(
            ToolCall(id="c1", name="write_file", parameters={"path": "a.txt"})
        )

        assert not result.success
        assert "content" in result.error
        assert not (settings.workspace / "a.txt").exists()

    @pytest.mark.asyncio
    async def test_extra_parameters_are_rejected(self, registry, conversation):
        executor = ToolExecutor(registry, conversation)
        result = await executor.execute(
            ToolCall(name="read_file", parameters={"path": "a", "mode": "rb"})
        )
        assert not result.success
        assert "mode" in result.error

    @pytest.mark.asyncio
    async def test_timeout_becomes_error_result(self, conversation):
        async def slow(params):
            await asyncio.sleep(5)

        executor = ToolExecutor(StubGateway({"slow": slow}), conversation, timeout_seconds=0.05)
        result = await executor.execute(ToolCall(name="slow"))

        assert not result.success
        assert "timed out" in result.error

    @pytest.mark.asyncio
    async def test_crash_becomes_error_result(self, conversation):
        def explode(params):
            raise RuntimeError("kaboom")

        executor = ToolExecutor(StubGateway({"explode": explode}), conversation)
        result = await executor.execute(ToolCall(name="explode"))

        assert not result.success
        assert result.error == "System Error: kaboom"

    @pytest.mark.asyncio
    async def test_tool_error_uses_user_hint(self, conversation):
        def refuse(params):
            raise ToolExecutionError("disk full", tool_name="refuse")

        executor = ToolExecutor(StubGateway({"refuse": refuse}), conversation)
        result = await executor.execute(ToolCall(name="refuse"))
        assert result.error == "disk full"

    @pytest.mark.asyncio
    async def test_file_content_lands_in_master_context(self, conversation, context_manager):
        def reader(params):
            return ToolResult.success_result(
                "body", data={"file_path": "src/app.py", "content": "body"}
            )

        executor = ToolExecutor(StubGateway({"read": reader}), conversation, context_manager)
        result = await executor.execute(ToolCall(id="r1", name="read"))

        assert result.success
        assert result.tool_call_id == "r1"
        assert result.duration >= 0
        assert context_manager.get_from_master_context("context_src/app.py") == "body"

    @pytest.mark.asyncio
    async def test_failed_results_do_not_touch_master_context(self, conversation, context_manager):
        def reader(params):
            return ToolResult.error_result("nope", data={"file_path": "x", "content": "y"})

        executor = ToolExecutor(StubGateway({"read": reader}), conversation, context_manager)
        await executor.execute(ToolCall(name="read"))
        assert context_manager.get_master_context_keys() == []


class TestExecuteBatch:
    """Ordering, isolation and cancellation"""

    @pytest.mark.asyncio
    async def test_write_then_read_in_order(self, registry, conversation, context_manager, settings):
        executor = ToolExecutor(registry, conversation, context_manager)
        calls = [
            ToolCall(id="w", name="write_file", parameters={"path": "out.txt", "content": "fresh"}),
            ToolCall(id="r", name="read_file", parameters={"path": "out.txt"}),
        ]

        results = await executor.execute_batch(calls)

        assert [r.success for r in results] == [True, True]
        assert "fresh" in results[1].output
        assert (settings.workspace / "out.txt").read_text() == "fresh"
        assert context_manager.get_from_master_context("context_out.txt") == "fresh"
        tool_ids = [m.metadata["tool_call_id"] for m in conversation.get_history() if m.role == "tool"]
        assert tool_ids == ["w", "r"]

    @pytest.mark.asyncio
    async def test_failure_does_not_stop_batch(self, conversation):
        gateway = StubGateway({"ok": lambda p: "fine"})
        executor = ToolExecutor(gateway, conversation)

        results = await executor.execute_batch(
            [ToolCall(name="missing"), ToolCall(name="ok")]
        )

        assert [r.success for r in results] == [False, True]

    @pytest.mark.asyncio
    async def test_cancellation_stops_remaining_calls(self, conversation):
        token = CancellationToken()

        def first(params):
            token.cancel()
            return "done"

        gateway = StubGateway({"first": first, "second": lambda p: "never"})
        executor = ToolExecutor(gateway, conversation)

        with pytest.raises(RequestCancelledError):
            await executor.execute_batch(
                [ToolCall(name="first"), ToolCall(name="second")], cancel_token=token
            )

        assert [c.name for c in gateway.executed] == ["first"]

    @pytest.mark.asyncio
    async def test_progress_events(self, conversation):
        events = []
        gateway = StubGateway({"ok": lambda p: "fine", "bad": lambda p: ToolResult.error_result("no")})
        executor = ToolExecutor(gateway, conversation)

        await executor.execute_batch(
            [ToolCall(id="1", name="ok", parameters={"a": 1}), ToolCall(id="2", name="bad")],
            reporter=ProgressReporter(events.append),
        )

        assert [e["type"] for e in events] == ["tool_start", "tool_end", "tool_start", "tool_end"]
        assert events[0] == {"type": "tool_start", "id": "1", "tool": "ok", "parameters": {"a": 1}}
        assert events[1] == {"type": "tool_end", "id": "1", "tool": "ok", "success": True, "result": "fine"}
        assert events[3] == {"type": "tool_end", "id": "2", "tool": "bad", "success": False, "error": "no"}

    @pytest.mark.asyncio
    async def test_cancel_while_running_drops_result(self, conversation, context_manager):
        token = CancellationToken()
        started = asyncio.Event()
        release = asyncio.Event()

        async def block(params):
            started.set()
            await release.wait()
            return ToolResult.success_result("late", data={"file_path": "a.py", "content": "late"})

        executor = ToolExecutor(StubGateway({"block": block}), conversation, context_manager)
        task = asyncio.create_task(executor.execute(ToolCall(name="block"), token))
        await asyncio.wait_for(started.wait(), timeout=1)
        token.cancel()

        with pytest.raises(RequestCancelledError):
            await asyncio.wait_for(task, timeout=1)
        release.set()

        assert [m.role for m in conversation.get_history()] == ["system"]
        assert context_manager.get_master_context_keys() == []

    @pytest.mark.asyncio
    async def test_result_finished_after_cancel_is_not_recorded(self, conversation):
        token = CancellationToken()

        def finish_anyway(params):
            token.cancel()
            return "done"

        executor = ToolExecutor(StubGateway({"finish": finish_anyway}), conversation)

        with pytest.raises(RequestCancelledError):
            await executor.execute(ToolCall(name="finish"), token)
        assert conversation.last_role() == "system"


class CountingRegistry(ToolRegistry):
    def __init__(self):
        super().__init__()
        self.validations = 0

    def validate(self, tool_call):
        self.validations += 1
        return super().validate(tool_call)


class TestValidationBarrier:
    """Parameters are checked once per call"""

    @pytest.mark.asyncio
    async def test_registry_call_is_validated_once(self, settings, conversation):
        registry = CountingRegistry()
        register_default_tools(registry, settings, TaskManager())
        (settings.workspace / "a.txt").write_text("hello", encoding="utf-8")
        executor = ToolExecutor(registry, conversation)

        result = await executor.execute(ToolCall(name="read_file", parameters={"path": "a.txt"}))

        assert result.success
        assert registry.validations == 1

    @pytest.mark.asyncio
    async def test_direct_registry_call_still_validates(self, settings):
        registry = CountingRegistry()
        register_default_tools(registry, settings, TaskManager())

        result = await registry.execute(ToolCall(name="read_file", parameters={}))

        assert not result.success
        assert registry.validations == 1
