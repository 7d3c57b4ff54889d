import logging
from typing import Any, Dict, List, Optional

from vibey.agent.structs import Message, ToolResult

CONTINUE_PROMPT = "Continue with the next step."


def format_tool_result(tool_call_id: str, result: ToolResult) -> str:
    """Render a tool result as the text of a tool message."""
    lines = [
        f"Tool Result: {tool_call_id}",
        "",
        "Success" if result.success else "Error",
        "",
    ]
    if result.output:
        lines.append(f"Output:\n{result.output}")
    if result.error:
        lines.append(f"Error:\n{result.error}")
    return "\n".join(lines).rstrip("\n")


class ConversationManager:
    """
    Ordered message log for one orchestrator.

    The first entry is always the system message. Entries are only ever
    appended; ``clear`` goes back to the system message alone.
    """

    def __init__(self, system_prompt: str):
        self._system_prompt = system_prompt
        self._history: List[Message] = [Message(role="system", content=system_prompt)]
        self._logger = logging.getLogger("ConversationManager")

    @property
    def system_prompt(self) -> str:
        return self._system_prompt

    def set_system_prompt(self, system_prompt: str) -> None:
        """Replace the system message (e.g. after tools were registered)."""
        self._system_prompt = system_prompt
        self._history[0] = Message(role="system", content=system_prompt)

    def get_history(self) -> List[Message]:
        return list(self._history)

    def append_user(self, content: str) -> Message:
        return self._append(Message(role="user", content=content))

    def append_assistant(
        self, content: str, tool_calls: Optional[List[Dict[str, Any]]] = None
    ) -> Message:
        metadata = {"tool_calls": tool_calls} if tool_calls else {}
        return self._append(Message(role="assistant", content=content, metadata=metadata))

    def append_tool_result(self, tool_call_id: str, result: ToolResult) -> Message:
        message = Message(
            role="tool",
            content=format_tool_result(tool_call_id, result),
            metadata={
                "tool_call_id": tool_call_id,
                "tool_name": result.tool_name,
                "status": result.status,
            },
        )
        self._logger.debug("Added tool result for %s", tool_call_id)
        return self._append(message)

    def _append(self, message: Message) -> Message:
        self._history.append(message)
        return message

    def clear(self) -> None:
        self._history = [Message(role="system", content=self._system_prompt)]

    def last_role(self) -> Optional[str]:
        return self._history[-1].role if self._history else None

    def ensure_role_alternation(self) -> None:
        """
        Make sure the log does not end on a plain assistant turn.

        An assistant message that is not a tool-call payload gets a
        synthetic user nudge after it. After a tool result nothing is
        added: the next model call produces the assistant turn.
        """
        last = self._history[-1]
        if last.role == "assistant":
            if "tool_calls" in last.content or last.metadata.get("tool_calls"):
                return
            self.append_user(CONTINUE_PROMPT)

    def get_history_for_llm(self) -> List[Message]:
        """
        History as it should be sent to the model.

        Consecutive tool messages from one batch are merged into a single
        tool message so the model never sees two tool blocks in a row. The
        stored log is not modified.
        """
        self.ensure_role_alternation()

        outgoing: List[Message] = []
        for message in self._history:
            if outgoing and message.role == "tool" and outgoing[-1].role == "tool":
                previous = outgoing[-1]
                ids = previous.metadata.get("tool_call_ids") or [
                    previous.metadata.get("tool_call_id")
                ]
                outgoing[-1] = Message(
                    role="tool",
                    content=f"{previous.content}\n\n{message.content}",
                    timestamp=message.timestamp,
                    metadata={
                        "tool_call_ids": ids + [message.metadata.get("tool_call_id")],
                    },
                )
                continue
            outgoing.append(message)
        return outgoing

    def __len__(self) -> int:
        return len(self._history)
