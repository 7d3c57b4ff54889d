import logging
from typing import Iterable, List, Optional

from vibey.agent.context.conversation import ConversationManager
from vibey.agent.context.manager import ContextManager
from vibey.agent.context.store import TASK_KEY
from vibey.agent.context.token_manager import TokenManager
from vibey.agent.core.cancellation import CancellationToken
from vibey.agent.core.execution import ToolExecutor
from vibey.agent.core.state_machine import AgentState, StateMachine
from vibey.agent.interfaces import LocalFileReader, ToolGateway
from vibey.agent.logic.parsers import parse_llm_response
from vibey.agent.prompts import (
    EMPTY_RESPONSE_MESSAGE,
    MAX_TURNS_FALLBACK_SUMMARY,
    MAX_TURNS_SUMMARY_PROMPT,
    build_condensation_prompt,
    build_system_prompt,
)
from vibey.agent.structs import ContextItem, LLMResponse, Message, TokenUsage
from vibey.agent.task_manager import TaskManager
from vibey.config.settings import Settings
from vibey.exceptions.agent import RequestCancelledError
from vibey.protocol.bus import EventBus
from vibey.protocol.events import EventTypes
from vibey.protocol.progress import ProgressReporter, UpdateCallback
from vibey.providers.base import BaseProvider
from vibey.utils.errors import format_error

CANCELLED_MESSAGE = "Request cancelled."


class AgentOrchestrator:
    """
    The Main Agent Loop.

    Responsibility:
    1. Assemble the context block for a user message and keep it in budget.
    2. Drive the model turn by turn (Idle -> Awaiting Model -> Interpreting).
    3. Execute requested tools in order and feed results back.
    4. Stop on a final answer, the turn limit, cancellation or an error.

    ``chat`` never raises: every outcome is a string.
    """

    def __init__(
        self,
        settings: Settings,
        provider: BaseProvider,
        gateway: ToolGateway,
        token_manager: TokenManager,
        context_manager: Optional[ContextManager] = None,
        task_manager: Optional[TaskManager] = None,
        bus: Optional[EventBus] = None,
    ):
        self._settings = settings
        self._provider = provider
        self._gateway = gateway
        self._tokens = token_manager
        self._context = context_manager or ContextManager(
            LocalFileReader(settings.workspace),
            estimator=token_manager.estimator,
            max_file_lines=settings.max_file_lines,
            context_window_tokens=settings.context_window_tokens,
        )
        self._tasks = task_manager or TaskManager()
        self._bus = bus

        self._conversation = ConversationManager(
            build_system_prompt(
                gateway.list_tool_definitions(),
                settings.workspace,
                settings.system_prompt,
            )
        )
        self._executor = ToolExecutor(
            gateway,
            self._conversation,
            self._context,
            timeout_seconds=settings.tool_timeout,
        )
        self._state = StateMachine()
        self._cancel_token: Optional[CancellationToken] = None
        self._logger = logging.getLogger("AgentOrchestrator")

    # --- Accessors ---

    @property
    def state(self) -> AgentState:
        return self._state.current

    @property
    def conversation(self) -> ConversationManager:
        return self._conversation

    @property
    def context_manager(self) -> ContextManager:
        return self._context

    @property
    def token_manager(self) -> TokenManager:
        return self._tokens

    @property
    def task_manager(self) -> TaskManager:
        return self._tasks

    @property
    def is_busy(self) -> bool:
        return self._cancel_token is not None and not self._cancel_token.cancelled

    # --- Public API ---

    async def chat(
        self,
        user_message: str,
        context_items: Optional[Iterable[ContextItem]] = None,
        on_update: Optional[UpdateCallback] = None,
    ) -> str:
        """
        Handle one user message and return the final answer text.
        """
        # Single flight: a new request supersedes the one in progress.
        if self._cancel_token is not None:
            self._cancel_token.cancel("Superseded by a new request")
        token = CancellationToken()
        self._cancel_token = token
        reporter = ProgressReporter(on_update, self._bus)

        self._state.reset()
        try:
            return await self._handle(user_message, list(context_items or []), token, reporter)

        except RequestCancelledError:
            self._logger.info("Request cancelled: %s", token.reason)
            return CANCELLED_MESSAGE

        except Exception as e:
            self._logger.error(f"Error in main loop: {e}", exc_info=True)
            message = format_error(e)
            await reporter.error(message)
            return f"Error: {message}"

        finally:
            if self._cancel_token is token:
                self._cancel_token = None
                self._state.reset()

    def cancel(self) -> None:
        """Cancel the in-flight request, if any."""
        if self._cancel_token is not None:
            self._cancel_token.cancel("Request cancelled by user")

    def reset_context(self) -> None:
        """Forget the conversation, the master context and all tasks."""
        self.cancel()
        self._conversation.clear()
        self._context.reset()
        self._tasks.clear()
        self._tokens.reset_cumulative_usage()
        self._logger.info("Context reset")

    # --- Request pipeline ---

    async def _handle(
        self,
        user_message: str,
        items: List[ContextItem],
        token: CancellationToken,
        reporter: ProgressReporter,
    ) -> str:
        self._state.transition_to(AgentState.ASSEMBLING_CONTEXT)
        self._context.add_to_master_context(TASK_KEY, user_message)

        block = ""
        if items:
            block = await self._assemble_context(user_message, items, reporter)
            await reporter.emit(
                EventTypes.CONTEXT_ADDED,
                count=len(items),
                strategy=self._settings.context_strategy,
            )

        block = await self._fit_budget(user_message, block, token, reporter)
        token.raise_if_cancelled()
        self._conversation.append_user(user_message + block)

        return await self._run_turns(token, reporter)

    async def _assemble_context(
        self, user_message: str, items: List[ContextItem], reporter: ProgressReporter
    ) -> str:
        if self._settings.context_strategy == "sliding_window":

            async def on_context_added(key: str, content: str) -> None:
                await reporter.emit(
                    EventTypes.CONTEXT_ADDED,
                    key=key,
                    tokens=self._tokens.count_tokens(content),
                )

            return await self._context.get_context_for_task(
                user_message, items, on_context_added
            )

        return await self._context.resolve_context(items)

    async def _fit_budget(
        self,
        user_message: str,
        block: str,
        token: CancellationToken,
        reporter: ProgressReporter,
    ) -> str:
        usage = self._tokens.calculate_usage(
            self._conversation.system_prompt, block, user_message
        )
        await reporter.emit(
            EventTypes.TOKENS,
            **usage.as_dict(),
            max_tokens=self._tokens.budget.max_tokens,
            percentage=self._tokens.get_usage_percentage(usage.total),
        )
        if not block:
            if self._tokens.is_exceeded(usage.total):
                await reporter.warning(
                    f"Request exceeds the {self._tokens.budget.max_tokens} token budget "
                    f"without any context: system prompt {usage.system_prompt} + "
                    f"message {usage.user_message} tokens",
                    **usage.as_dict(),
                )
            return block

        if self._tokens.is_exceeded(usage.total):
            return await self._truncate(user_message, block, usage, reporter)

        if (
            self._tokens.is_approaching_limit(usage.total)
            and usage.total >= self._settings.condensation_trigger_tokens
        ):
            condensed = await self._condense(user_message, block, token, reporter)
            if condensed is not None:
                return condensed
            return await self._truncate(user_message, block, usage, reporter)

        return block

    async def _truncate(
        self,
        user_message: str,
        block: str,
        usage: TokenUsage,
        reporter: ProgressReporter,
    ) -> str:
        result = self._tokens.truncate_context(
            block, usage.system_prompt, usage.user_message
        )
        if result.was_exceeded:
            await reporter.warning(
                f"Context truncated: removed {result.removed_tokens} tokens to fit "
                f"the {self._tokens.budget.max_tokens} token budget",
                removed_tokens=result.removed_tokens,
                removed_sections=result.removed_sections,
                continuation=self._tokens.create_continuation_summary(
                    result.removed_tokens, user_message
                ),
            )
        return result.truncated

    async def _condense(
        self,
        user_message: str,
        block: str,
        token: CancellationToken,
        reporter: ProgressReporter,
    ) -> Optional[str]:
        """
        Ask the model for a summary of ``block``.

        Attempted once per chat. Returns None when the summary cannot be
        used, and the caller truncates instead.
        """
        prompt = build_condensation_prompt(user_message, block)
        if self._tokens.is_exceeded(self._tokens.count_tokens(prompt)):
            await reporter.warning(
                "Context condensation skipped: the condensation request itself "
                "exceeds the token budget. Falling back to truncation."
            )
            return None

        await reporter.thinking("Condensing context...", 0)
        try:
            response = await self._call_model(
                [Message(role="user", content=prompt)], token, reporter
            )
        except RequestCancelledError:
            raise
        except Exception as e:
            self._logger.warning("Context condensation failed: %s", e)
            await reporter.warning(
                f"Context condensation failed ({format_error(e)}). Falling back to truncation."
            )
            return None

        summary = response.content.strip()
        if not summary:
            await reporter.warning(
                "Context condensation returned nothing. Falling back to truncation."
            )
            return None

        condensed = f'\n\n<context condensed="true">\n{summary}\n</context>\n'
        if self._tokens.count_tokens(condensed) >= self._tokens.count_tokens(block):
            await reporter.warning(
                "Context condensation did not shrink the context. Falling back to truncation."
            )
            return None

        self._logger.info(
            "Condensed context from %d to %d tokens",
            self._tokens.count_tokens(block),
            self._tokens.count_tokens(condensed),
        )
        return condensed

    async def _run_turns(self, token: CancellationToken, reporter: ProgressReporter) -> str:
        max_turns = self._settings.max_turns
        empty_retries = self._settings.empty_response_retries

        for turn in range(1, max_turns + 1):
            token.raise_if_cancelled()
            self._state.transition_to(AgentState.AWAITING_MODEL)
            await reporter.thinking(
                "Analyzing request..." if turn == 1 else f"Turn {turn}/{max_turns}: Reasoning...",
                turn,
            )

            response = await self._call_model(
                self._conversation.get_history_for_llm(), token, reporter
            )

            self._state.transition_to(AgentState.INTERPRETING)
            parsed = parse_llm_response(response.content)

            if parsed.is_empty_response:
                await reporter.error("The model returned an empty response.", turn=turn)
                if empty_retries > 0:
                    empty_retries -= 1
                    self._logger.info("Retrying after empty response (turn %d)", turn)
                    continue
                self._state.transition_to(AgentState.FINALIZING)
                self._conversation.append_assistant(EMPTY_RESPONSE_MESSAGE)
                return EMPTY_RESPONSE_MESSAGE

            if not parsed.has_tool_calls:
                self._state.transition_to(AgentState.FINALIZING)
                self._conversation.append_assistant(parsed.text)
                if parsed.thought:
                    await reporter.emit(EventTypes.THOUGHT, content=parsed.thought, turn=turn)
                    return parsed.thought
                return parsed.text

            self._state.transition_to(AgentState.DISPATCHING_TOOLS)
            self._conversation.append_assistant(
                parsed.text,
                tool_calls=[call.model_dump() for call in parsed.tool_calls],
            )
            if parsed.thought:
                await reporter.emit(EventTypes.THOUGHT, content=parsed.thought, turn=turn)

            await self._executor.execute_batch(parsed.tool_calls, token, reporter)
            self._conversation.ensure_role_alternation()

        return await self._summarize_turn_limit(max_turns, token, reporter)

    async def _summarize_turn_limit(
        self, max_turns: int, token: CancellationToken, reporter: ProgressReporter
    ) -> str:
        self._state.transition_to(AgentState.FINALIZING)
        await reporter.warning(
            f"Maximum turns ({max_turns}) reached. Requesting a progress summary."
        )
        self._conversation.append_user(MAX_TURNS_SUMMARY_PROMPT)

        try:
            response = await self._call_model(
                self._conversation.get_history_for_llm(), token, reporter
            )
            summary = response.content.strip()
        except RequestCancelledError:
            raise
        except Exception as e:
            self._logger.warning("Turn-limit summary failed: %s", e)
            await reporter.warning(f"Could not get a summary: {format_error(e)}")
            summary = ""

        if not summary:
            summary = MAX_TURNS_FALLBACK_SUMMARY
        self._conversation.append_assistant(summary)
        return f"**Max Turns Reached ({max_turns})**\n\n{summary}"

    async def _call_model(
        self,
        messages: List[Message],
        token: CancellationToken,
        reporter: ProgressReporter,
    ) -> LLMResponse:
        """Model call raced against the cancellation token."""
        token.raise_if_cancelled()
        response = await token.race(self._provider.call(messages, cancel_token=token))

        if response.usage is not None:
            session = self._tokens.record_usage(response.usage)
            await reporter.emit(
                EventTypes.TOKENS,
                prompt_tokens=response.usage.prompt_tokens,
                completion_tokens=response.usage.completion_tokens,
                total_tokens=response.usage.total_tokens,
                session_total=session.total_tokens,
            )
        token.raise_if_cancelled()
        return response
