import time
import uuid
from dataclasses import dataclass, field
from typing import Dict, Any, Optional, List

from pydantic import BaseModel, Field

# --- 1. Conversation ---


@dataclass
class Message:
    """Atomic conversation unit."""

    role: str  # "system", "user", "assistant", "tool"
    content: str
    timestamp: float = field(default_factory=time.time)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


class ContextItem(BaseModel):
    """A file reference supplied by the caller alongside a message."""

    name: str
    path: str


# --- 2. Tool Lifecycle ---


def new_call_id() -> str:
    return f"call_{uuid.uuid4().hex[:12]}"


class ToolCall(BaseModel):
    """A tool invocation requested by the model."""

    id: str = Field(default_factory=new_call_id)
    name: str
    parameters: Dict[str, Any] = Field(default_factory=dict)


@dataclass
class ToolResult:
    """The outcome of an execution."""

    status: str  # "success" | "error"
    output: str = ""
    error: Optional[str] = None
    tool_name: Optional[str] = None
    tool_call_id: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)
    duration: float = 0.0

    @property
    def success(self) -> bool:
        return self.status == "success"

    @classmethod
    def success_result(cls, output: str, data: Optional[Dict[str, Any]] = None):
        """Create a successful execution result."""
        return cls(status="success", output=output, data=data or {})

    @classmethod
    def error_result(
        cls, error: str, output: str = "", data: Optional[Dict[str, Any]] = None
    ):
        """Create a failed execution result."""
        return cls(status="error", output=output, error=error, data=data or {})


# --- 3. Model I/O ---


@dataclass
class Usage:
    """Token counts reported by the model server."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


@dataclass
class LLMResponse:
    """A single non-streamed reply from a provider."""

    content: str
    usage: Optional[Usage] = None


@dataclass
class ParsedResponse:
    """
    Interpretation of raw model text.

    Exactly one shape applies:
    - plain text: ``text`` set, no tool calls, ``thought`` is None
    - structured: ``thought`` and/or ``tool_calls`` set
    - empty: ``is_empty_response`` is True
    """

    text: str = ""
    thought: Optional[str] = None
    tool_calls: List[ToolCall] = field(default_factory=list)
    is_empty_response: bool = False
    extraction_method: Optional[str] = None  # "fenced", "bracket" or None

    @property
    def is_structured(self) -> bool:
        return self.extraction_method is not None

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)


# --- 4. Budget ---


@dataclass(frozen=True)
class TokenBudget:
    """Token limits for one session. Read-only once built."""

    max_tokens: int
    warning_threshold: int
    request_timeout: float


@dataclass
class TokenUsage:
    """Token breakdown of one outgoing request."""

    system_prompt: int = 0
    context: int = 0
    user_message: int = 0
    tool_results: int = 0

    @property
    def total(self) -> int:
        return self.system_prompt + self.context + self.user_message + self.tool_results

    def as_dict(self) -> Dict[str, int]:
        return {
            "system_prompt": self.system_prompt,
            "context": self.context,
            "user_message": self.user_message,
            "tool_results": self.tool_results,
            "total": self.total,
        }


# --- 5. Tasks ---


@dataclass
class TaskStep:
    description: str
    status: str = "pending"


@dataclass
class Task:
    id: str
    title: str
    status: str = "pending"
    steps: List[TaskStep] = field(default_factory=list)
    created_at: float = field(default_factory=time.time)
    updated_at: float = field(default_factory=time.time)
