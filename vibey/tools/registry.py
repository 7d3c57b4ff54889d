"""
Tool Registry - registration and dispatch of tools by name.
"""

import asyncio
import inspect
import logging
from typing import Any, Dict, List, Optional

from vibey.agent.interfaces import ToolGateway
from vibey.agent.structs import ToolCall, ToolResult
from vibey.exceptions.tools import (
    ToolError,
    ToolNotFoundError,
    ToolRegistryError,
)
from vibey.tools.base import BaseTool, ToolParams


class ToolRegistry(ToolGateway):
    """Holds tool instances and runs them on behalf of the agent."""

    def __init__(self):
        self.logger = logging.getLogger("ToolRegistry")
        self._tools: Dict[str, BaseTool] = {}

    def register(self, tool: BaseTool) -> None:
        """
        Register a tool instance.

        Raises:
            ToolRegistryError: If another tool already uses the name.
        """
        if tool.name in self._tools:
            raise ToolRegistryError(
                f"Tool '{tool.name}' is already registered", tool_name=tool.name
            )
        self._tools[tool.name] = tool
        self.logger.debug("Registered tool: %s", tool.name)

    def get_tool(self, name: str) -> Optional[BaseTool]:
        return self._tools.get(name)

    def list_tools(self) -> List[str]:
        return list(self._tools)

    def list_tool_definitions(self) -> List[Dict[str, Any]]:
        return [tool.definition() for tool in self._tools.values()]

    def validate(self, tool_call: ToolCall) -> ToolParams:
        """
        Resolve and validate a call without running it.

        Raises:
            ToolNotFoundError: Unknown tool name.
            ToolInputValidationError: Parameters do not match the tool's model.
        """
        tool = self._tools.get(tool_call.name)
        if tool is None:
            raise ToolNotFoundError(
                f"Unknown tool: {tool_call.name}. Available: {', '.join(self._tools) or 'none'}",
                tool_name=tool_call.name,
            )
        return tool.validate_params(tool_call.parameters)

    async def execute(
        self, tool_call: ToolCall, params: Optional[ToolParams] = None
    ) -> ToolResult:
        """
        Run a tool call. Every failure comes back as an error result.

        Pass the result of ``validate`` as ``params`` to skip validating
        the call a second time.
        """
        if params is None:
            try:
                params = self.validate(tool_call)
            except ToolError as e:
                return self._stamp(ToolResult.error_result(e.message), tool_call)

        tool = self._tools[tool_call.name]
        try:
            if inspect.iscoroutinefunction(tool.execute):
                result = await tool.execute(params)
            else:
                result = await asyncio.to_thread(tool.execute, params)
        except ToolError as e:
            self.logger.warning("Tool %s failed: %s", tool_call.name, e.message)
            result = ToolResult.error_result(e.user_hint)
        except Exception as e:  # pylint: disable=broad-exception-caught
            self.logger.error("Tool execution error '%s'", tool_call.name, exc_info=True)
            result = ToolResult.error_result(f"Tool execution error: {e}")

        return self._stamp(result, tool_call)

    @staticmethod
    def _stamp(result: ToolResult, tool_call: ToolCall) -> ToolResult:
        result.tool_name = tool_call.name
        result.tool_call_id = tool_call.id
        return result

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)
