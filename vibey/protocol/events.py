from enum import Enum


class EventTypes(str, Enum):
    """
    Canonical progress event names.
    Values are the wire names the editor front end listens for.
    """

    # 1. Reasoning
    THINKING = "thinking"
    THOUGHT = "thought"

    # 2. Tool Execution
    TOOL_START = "tool_start"
    TOOL_END = "tool_end"

    # 3. Context & Budget
    CONTEXT_ADDED = "contextAdded"
    TOKENS = "tokens"

    # 4. System
    WARNING = "warning"
    ERROR = "error"
