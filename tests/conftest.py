# Shared fixtures and stubs for the vibey test suite

import asyncio
from typing import Any, Callable, Dict, List, Optional, Union

import pytest

from vibey.agent.context.token_manager import TokenManager
from vibey.agent.core.cancellation import CancellationToken
from vibey.agent.core.orchestrator import AgentOrchestrator
from vibey.agent.interfaces import FileReader, ToolGateway
from vibey.agent.structs import LLMResponse, Message, ToolCall, ToolResult, Usage
from vibey.agent.task_manager import TaskManager
from vibey.config.settings import load_settings
from vibey.exceptions.context import ContextReadError
from vibey.providers.base import BaseProvider
from vibey.tools.defaults import register_default_tools
from vibey.tools.registry import ToolRegistry

Reply = Union[str, LLMResponse, Exception]


class ScriptedProvider(BaseProvider):
    """Returns canned replies in order; the last reply repeats."""

    name = "scripted"

    def __init__(self, replies: List[Reply]):
        self.replies = list(replies)
        self.calls: List[List[Message]] = []

    async def call(
        self,
        messages: List[Message],
        cancel_token: Optional[CancellationToken] = None,
    ) -> LLMResponse:
        self.calls.append(list(messages))
        index = min(len(self.calls) - 1, len(self.replies) - 1)
        reply = self.replies[index]
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, LLMResponse):
            return reply
        return LLMResponse(content=reply)

    async def validate_connection(self) -> bool:
        return True


class HangingProvider(BaseProvider):
    """Never answers until released; signals when a call has started."""

    name = "hanging"

    def __init__(self):
        self.started = asyncio.Event()
        self.release = asyncio.Event()
        self.calls = 0

    async def call(self, messages, cancel_token=None) -> LLMResponse:
        self.calls += 1
        self.started.set()
        await self.release.wait()
        return LLMResponse(
            content='{"thought": "late", "tool_calls": [{"name": "echo", "parameters": {}}]}'
        )

    async def validate_connection(self) -> bool:
        return True


class StubGateway(ToolGateway):
    """Tool gateway backed by plain callables; records every call."""

    def __init__(self, handlers: Optional[Dict[str, Callable[[Dict[str, Any]], Any]]] = None):
        self.handlers = handlers or {}
        self.executed: List[ToolCall] = []

    async def execute(self, tool_call: ToolCall, params: Any = None) -> ToolResult:
        self.executed.append(tool_call)
        handler = self.handlers.get(tool_call.name)
        if handler is None:
            return ToolResult.error_result(f"Unknown tool: {tool_call.name}")
        outcome = handler(tool_call.parameters)
        if asyncio.iscoroutine(outcome):
            outcome = await outcome
        if isinstance(outcome, ToolResult):
            return outcome
        return ToolResult.success_result(str(outcome))

    def list_tool_definitions(self) -> List[Dict[str, Any]]:
        return [
            {"name": name, "description": f"Stub {name}", "parameters": {}}
            for name in self.handlers
        ]


class DictFileReader(FileReader):
    """In-memory file reader; missing paths raise ContextReadError."""

    def __init__(self, files: Dict[str, str]):
        self.files = files

    async def read(self, path: str) -> str:
        if path not in self.files:
            raise ContextReadError(f"Could not read file: {path}", path=path)
        return self.files[path]


def usage(prompt: int, completion: int) -> Usage:
    return Usage(prompt, completion, prompt + completion)


@pytest.fixture
def settings(tmp_path):
    return load_settings(workspace=tmp_path)


@pytest.fixture
def token_manager(settings):
    return TokenManager.from_settings(settings)


@pytest.fixture
def registry(settings):
    registry = ToolRegistry()
    register_default_tools(registry, settings, TaskManager())
    return registry


@pytest.fixture
def make_orchestrator(settings, token_manager):
    """Build an orchestrator around a provider and gateway of the test's choosing."""

    def factory(provider: BaseProvider, gateway: Optional[ToolGateway] = None, **overrides):
        effective = settings.model_copy(update=overrides) if overrides else settings
        manager = TokenManager.from_settings(effective) if overrides else token_manager
        return AgentOrchestrator(
            effective,
            provider,
            gateway or StubGateway(),
            manager,
        )

    return factory
