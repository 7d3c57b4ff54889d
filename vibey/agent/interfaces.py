#!/usr/bin/env python3
"""
Interfaces consumed by the agent core.
Defines contracts for file access and tool dispatch without implementation
details. The model transport contract lives in vibey.providers.base.
"""

import asyncio
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Union

from vibey.agent.structs import ToolCall, ToolResult
from vibey.exceptions.context import ContextReadError


class FileReader(ABC):
    """Reads the content behind a ContextItem path."""

    @abstractmethod
    async def read(self, path: str) -> str:
        """Return file text. Raises ContextReadError when unreadable."""
        pass


class ToolGateway(ABC):
    """Dispatches tool calls by name."""

    @abstractmethod
    async def execute(self, tool_call: ToolCall, params: Any = None) -> ToolResult:
        """
        Run a tool call. Unknown names yield an error result.

        ``params`` is the value ``validate`` returned for this call. When it
        is None the gateway validates the call itself.
        """
        pass

    @abstractmethod
    def list_tool_definitions(self) -> List[Dict[str, Any]]:
        """Return ``[{name, description, parameters}]`` for the system prompt."""
        pass

    def validate(self, tool_call: ToolCall) -> Any:
        """
        Check a call before it is dispatched.

        Gateways with typed parameters raise ToolNotFoundError or
        ToolInputValidationError here. The default accepts everything.
        """
        return tool_call.parameters


class LocalFileReader(FileReader):
    """
    Reads files from disk relative to a workspace root.
    Blocking I/O is moved off the event loop.
    """

    def __init__(self, root: Union[str, Path], encoding: str = "utf-8"):
        self.root = Path(root).resolve()
        self.encoding = encoding

    def resolve(self, path: str) -> Path:
        candidate = Path(path).expanduser()
        if not candidate.is_absolute():
            candidate = self.root / candidate
        return candidate.resolve()

    async def read(self, path: str) -> str:
        target = self.resolve(path)
        try:
            return await asyncio.to_thread(
                target.read_text, encoding=self.encoding, errors="replace"
            )
        except OSError as e:
            raise ContextReadError(
                f"Could not read file: {path}", path=path, original_error=e
            ) from e
