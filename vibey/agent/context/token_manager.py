import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from vibey.agent.structs import TokenBudget, TokenUsage, Usage
from vibey.exceptions.context import ContextOverflowError
from vibey.utils.token_estimation import TokenEstimator

TRUNCATION_MARKER = "\n... (context truncated)"
_TAG_SECTION = re.compile(r"^(?:<file |<master_context )", re.MULTILINE)
_HEADING_SECTION = re.compile(r"^#+\s", re.MULTILINE)
_CONTEXT_TRAILER = re.compile(r"</context>\s*$")


@dataclass
class TruncationResult:
    truncated: str
    was_exceeded: bool
    removed_tokens: int
    removed_sections: int = 0


class TokenManager:
    """
    Token budget policy for one orchestrator.

    Holds the limits (never mutated after construction) and answers
    budget questions. All counting is delegated to a TokenEstimator so
    the numbers agree with the context assembler.
    """

    def __init__(
        self,
        budget: TokenBudget,
        estimator: Optional[TokenEstimator] = None,
        response_reserve: int = 2000,
    ):
        if budget.max_tokens <= 0:
            raise ContextOverflowError(
                f"Invalid max_tokens value: {budget.max_tokens}. Must be positive.",
                max_tokens=budget.max_tokens,
            )
        self._budget = budget
        self._estimator = estimator or TokenEstimator()
        self._response_reserve = response_reserve
        self._cumulative = Usage()
        self.logger = logging.getLogger("TokenManager")
        self.logger.debug("Initialized with limits: %s", budget)

    @classmethod
    def from_settings(cls, settings, estimator: Optional[TokenEstimator] = None):
        max_tokens = settings.max_context_tokens
        budget = TokenBudget(
            max_tokens=max_tokens,
            warning_threshold=int(max_tokens * settings.warning_threshold_ratio),
            request_timeout=settings.request_timeout,
        )
        return cls(budget, estimator, response_reserve=settings.response_token_reserve)

    @property
    def budget(self) -> TokenBudget:
        return self._budget

    @property
    def estimator(self) -> TokenEstimator:
        return self._estimator

    def count_tokens(self, text: str) -> int:
        return self._estimator.estimate(text)

    # --- Budget questions ---

    def calculate_usage(
        self,
        system_prompt: str,
        context: str,
        user_message: str,
        tool_results: str = "",
    ) -> TokenUsage:
        """Count each part of an outgoing request independently."""
        return TokenUsage(
            system_prompt=self.count_tokens(system_prompt),
            context=self.count_tokens(context),
            user_message=self.count_tokens(user_message),
            tool_results=self.count_tokens(tool_results),
        )

    def is_approaching_limit(self, current_tokens: int) -> bool:
        return current_tokens > self._budget.warning_threshold

    def is_exceeded(self, current_tokens: int) -> bool:
        return current_tokens > self._budget.max_tokens

    def get_remaining_tokens(self, current_tokens: int) -> int:
        return max(0, self._budget.max_tokens - current_tokens)

    def get_usage_percentage(self, current_tokens: int) -> int:
        return round(current_tokens / self._budget.max_tokens * 100)

    def status_label(self, current_tokens: int) -> str:
        if self.is_exceeded(current_tokens):
            return "❌ EXCEEDED"
        if self.is_approaching_limit(current_tokens):
            return "⚠️ WARNING"
        return "✅ OK"

    def calculate_max_context_size(
        self,
        system_prompt_tokens: int,
        user_message_tokens: int,
        response_reserve: Optional[int] = None,
    ) -> int:
        """Tokens left for the context block after the fixed parts and the reply."""
        reserve = self._response_reserve if response_reserve is None else response_reserve
        available = (
            self._budget.max_tokens - system_prompt_tokens - user_message_tokens - reserve
        )
        return max(0, available)

    # --- Truncation ---

    def truncate_context(
        self,
        full_context: str,
        system_prompt_tokens: int,
        user_message_tokens: int,
        max_context_tokens: Optional[int] = None,
    ) -> TruncationResult:
        """
        Shrink a context block to fit the remaining budget.

        Whole sections (``<file>``, ``<master_context>`` or markdown
        headings) are dropped oldest first. If the newest section alone is
        still too large the text is cut at a line break and marked.
        """
        if max_context_tokens is None:
            max_context_tokens = self.calculate_max_context_size(
                system_prompt_tokens, user_message_tokens
            )
        original_tokens = self.count_tokens(full_context)

        if original_tokens <= max_context_tokens:
            return TruncationResult(full_context, False, 0)

        preamble, sections, trailer = _split_sections(full_context)
        removed = 0
        if len(sections) > 1:
            while len(sections) > 1:
                sections.pop(0)
                removed += 1
                candidate = _join_sections(preamble, sections, trailer, removed)
                if self.count_tokens(candidate) <= max_context_tokens:
                    self.logger.info(
                        "Dropped %d context section(s) to fit %d tokens",
                        removed,
                        max_context_tokens,
                    )
                    return TruncationResult(
                        candidate,
                        True,
                        original_tokens - self.count_tokens(candidate),
                        removed,
                    )
            remaining = _join_sections(preamble, sections, trailer, removed)
        else:
            remaining = full_context

        truncated = self._hard_cut(remaining, max_context_tokens)
        self.logger.info(
            "Context hard-truncated from %d to %d tokens",
            original_tokens,
            self.count_tokens(truncated),
        )
        return TruncationResult(
            truncated,
            True,
            original_tokens - self.count_tokens(truncated),
            removed,
        )

    def _hard_cut(self, text: str, max_tokens: int) -> str:
        max_chars = self._estimator.tokens_to_chars(max_tokens) - len(TRUNCATION_MARKER)
        if max_chars <= 0:
            return ""

        cut = text[:max_chars]
        last_newline = cut.rfind("\n")
        if last_newline > 0:
            cut = cut[:last_newline]
        result = cut + TRUNCATION_MARKER

        # A pluggable counter may disagree with chars/4; shrink until it fits.
        while cut and self.count_tokens(result) > max_tokens:
            cut = cut[: len(cut) * 3 // 4]
            result = cut + TRUNCATION_MARKER
        return result if cut else ""

    # --- Reporting ---

    def create_continuation_summary(self, removed_tokens: int, task_so_far: str) -> str:
        return (
            "## Continuation from Previous Turn\n\n"
            "The following context was temporarily removed due to token limits "
            "but is available if needed:\n"
            f"- Removed {removed_tokens} tokens of previous context\n"
            f"- Continue based on task progress: {task_so_far}\n\n"
            "To continue: refer to previous findings but focus on next steps."
        )

    def format_token_report(self, usage: TokenUsage, with_status: bool = False) -> str:
        lines = [
            "Token Budget Report:",
            f"- System Prompt: {usage.system_prompt} tokens",
            f"- Context: {usage.context} tokens",
            f"- User Message: {usage.user_message} tokens",
            f"- Tool Results: {usage.tool_results} tokens",
            f"- Total Used: {usage.total} tokens",
            f"- Max Available: {self._budget.max_tokens} tokens",
            f"- Usage: {self.get_usage_percentage(usage.total)}%",
            f"- Remaining: {self.get_remaining_tokens(usage.total)} tokens",
        ]
        if with_status:
            lines.append(f"- Status: {self.status_label(usage.total)}")
        return "\n".join(lines)

    def create_context_usage_meter(
        self, current_tokens: int, max_tokens: Optional[int] = None
    ) -> str:
        max_tokens = max_tokens or self._budget.max_tokens
        percentage = self.get_usage_percentage(current_tokens)
        used_blocks = max(0, min(20, percentage // 5))
        empty_blocks = 20 - used_blocks
        bar = "█" * used_blocks + "░" * empty_blocks
        return (
            f"📊 Context Usage Meter: [{bar}] {percentage}% "
            f"({current_tokens}/{max_tokens} tokens) {self.status_label(current_tokens)}"
        )

    # --- Provider-reported usage ---

    def record_usage(self, usage: Usage) -> Usage:
        """Add provider-reported counts to the running session total."""
        self._cumulative.prompt_tokens += usage.prompt_tokens
        self._cumulative.completion_tokens += usage.completion_tokens
        self._cumulative.total_tokens += usage.total_tokens
        return self._cumulative

    @property
    def cumulative_usage(self) -> Usage:
        return Usage(
            self._cumulative.prompt_tokens,
            self._cumulative.completion_tokens,
            self._cumulative.total_tokens,
        )

    def reset_cumulative_usage(self) -> None:
        self._cumulative = Usage()


def _split_sections(text: str) -> Tuple[str, List[str], str]:
    """Split a context block into (preamble, sections, trailer)."""
    trailer = ""
    body = text
    trailer_match = _CONTEXT_TRAILER.search(text)
    if trailer_match:
        body, trailer = text[: trailer_match.start()], text[trailer_match.start() :]

    # Tagged sections win; headings are only used for plain markdown blocks
    # since "# " also starts comment lines inside file content.
    starts = [m.start() for m in _TAG_SECTION.finditer(body)]
    if not starts:
        starts = [m.start() for m in _HEADING_SECTION.finditer(body)]
    if not starts:
        return body, [], trailer

    bounds = zip(starts, starts[1:] + [len(body)])
    return body[: starts[0]], [body[s:e] for s, e in bounds], trailer


def _join_sections(preamble: str, sections: List[str], trailer: str, removed: int) -> str:
    note = f"<!-- {removed} earlier context section(s) removed to fit token budget -->\n"
    return preamble + note + "".join(sections) + trailer
