import asyncio
import logging
import time
from typing import List, Optional

from vibey.agent.context.conversation import ConversationManager
from vibey.agent.context.manager import ContextManager
from vibey.agent.context.store import context_key
from vibey.agent.core.cancellation import CancellationToken
from vibey.agent.interfaces import ToolGateway
from vibey.agent.structs import ToolCall, ToolResult
from vibey.exceptions.agent import RequestCancelledError
from vibey.exceptions.tools import ToolError
from vibey.protocol.events import EventTypes
from vibey.protocol.progress import ProgressReporter


class ToolExecutor:
    """
    The Safe Runner.
    Isolates tool execution from the main loop logic.
    Handles validation, timeouts and crashes, then records every outcome
    in the conversation.
    """

    def __init__(
        self,
        gateway: ToolGateway,
        conversation: ConversationManager,
        context_manager: Optional[ContextManager] = None,
        timeout_seconds: float = 60,
    ):
        self._gateway = gateway
        self._conversation = conversation
        self._context = context_manager
        self._timeout = timeout_seconds
        self._logger = logging.getLogger("ToolExecutor")

    async def execute(
        self, tool_call: ToolCall, cancel_token: Optional[CancellationToken] = None
    ) -> ToolResult:
        """
        Executes a tool call atomically. Never raises for tool failures.

        Raises:
            RequestCancelledError: If ``cancel_token`` fires while the tool
                runs. The result is then dropped, so a cancelled request
                never writes into the conversation.
        """
        start_time = time.time()
        result = await self._run(tool_call, cancel_token)
        result.tool_name = result.tool_name or tool_call.name
        result.tool_call_id = tool_call.id
        result.duration = time.time() - start_time

        if cancel_token is not None and cancel_token.cancelled:
            self._logger.info("Discarding result of %s: request cancelled", tool_call.name)
            cancel_token.raise_if_cancelled()

        self._conversation.append_tool_result(tool_call.id, result)
        self._remember_file(result)
        return result

    async def _run(
        self, tool_call: ToolCall, cancel_token: Optional[CancellationToken]
    ) -> ToolResult:
        # 1. Validation Barrier
        try:
            params = self._gateway.validate(tool_call)
        except ToolError as e:
            self._logger.warning("Rejected %s: %s", tool_call.name, e.message)
            return ToolResult.error_result(e.message)

        try:
            # 2. Atomic Execution with Timeout
            self._logger.info("Executing %s (ID: %s)", tool_call.name, tool_call.id)
            work = asyncio.wait_for(
                self._gateway.execute(tool_call, params), timeout=self._timeout
            )
            if cancel_token is not None:
                return await cancel_token.race(work)
            return await work

        except RequestCancelledError:
            raise

        except asyncio.TimeoutError:
            self._logger.error("Tool %s timed out after %ss", tool_call.name, self._timeout)
            return ToolResult.error_result(
                f"Execution timed out after {self._timeout} seconds."
            )

        except ToolError as e:
            # Domain specific errors (safe)
            self._logger.warning("Tool %s failed: %s", tool_call.name, e.user_hint)
            return ToolResult.error_result(e.user_hint)

        except Exception as e:
            # Unexpected crashes (catch-all barrier)
            self._logger.exception("Unexpected error in tool %s", tool_call.name)
            return ToolResult.error_result(f"System Error: {str(e)}")

    def _remember_file(self, result: ToolResult) -> None:
        if self._context is None or not result.success:
            return
        file_path = result.data.get("file_path")
        content = result.data.get("content")
        if file_path and isinstance(content, str):
            self._context.add_to_master_context(context_key(file_path), content)

    async def execute_batch(
        self,
        tool_calls: List[ToolCall],
        cancel_token: Optional[CancellationToken] = None,
        reporter: Optional[ProgressReporter] = None,
    ) -> List[ToolResult]:
        """
        Run calls strictly in order. A failed call does not stop the batch;
        a fired cancellation token does (RequestCancelledError).
        """
        results = []
        for tool_call in tool_calls:
            if cancel_token is not None:
                cancel_token.raise_if_cancelled()

            if reporter is not None:
                await reporter.emit(
                    EventTypes.TOOL_START,
                    id=tool_call.id,
                    tool=tool_call.name,
                    parameters=tool_call.parameters,
                )

            result = await self.execute(tool_call, cancel_token)
            results.append(result)

            if reporter is not None:
                outcome = {"result": result.output} if result.success else {"error": result.error}
                await reporter.emit(
                    EventTypes.TOOL_END,
                    id=tool_call.id,
                    tool=tool_call.name,
                    success=result.success,
                    **outcome,
                )
        return results
