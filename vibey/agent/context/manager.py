import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Iterable, List, Optional

from vibey.agent.interfaces import FileReader
from vibey.agent.structs import ContextItem
from vibey.utils.token_estimation import TokenEstimator

from .store import TASK_KEY, MasterContextStore, context_key

CONTENT_TRUNCATION_MARKER = "\n... (content truncated)"
OMITTED_MARKER = "<!-- additional context omitted to fit token budget -->\n"

# Called with (key, content) whenever file content lands in the master store.
ContextAddedHook = Callable[[str, str], Awaitable[None]]


@dataclass
class Checkpoint:
    """Marks a group of context keys that belong to a finished piece of work."""

    id: str
    description: str
    context_items: List[str] = field(default_factory=list)
    timestamp: float = field(default_factory=time.time)


class ContextManager:
    """
    Builds the context block sent alongside a user message.

    Two views are offered:
    - ``resolve_context``: the requested files inlined, each capped at
      ``max_file_lines`` lines.
    - ``get_context_for_task``: files folded into the session's master store,
      rendered as a priority-ordered sliding window bounded in tokens.
    """

    def __init__(
        self,
        file_reader: FileReader,
        estimator: Optional[TokenEstimator] = None,
        max_file_lines: int = 256,
        context_window_tokens: int = 256 * 1024,
        store: Optional[MasterContextStore] = None,
    ):
        self._reader = file_reader
        self._estimator = estimator or TokenEstimator()
        self._max_file_lines = max_file_lines
        self._window_tokens = context_window_tokens
        self._store = store or MasterContextStore()
        self._checkpoints: List[Checkpoint] = []
        self._logger = logging.getLogger("ContextManager")

    @property
    def store(self) -> MasterContextStore:
        return self._store

    @property
    def context_window_tokens(self) -> int:
        return self._window_tokens

    # --- Inline context ---

    async def resolve_context(self, items: Iterable[ContextItem]) -> str:
        """
        Inline every item as a ``<file>`` element.

        A file that cannot be read becomes an error element; the other
        files are still included.
        """
        items = list(items)
        if not items:
            return ""

        parts = ["\n\n<context>\n"]
        for item in items:
            try:
                content = await self._reader.read(item.path)
            except Exception as e:
                self._logger.warning("Could not read context file %s: %s", item.path, e)
                parts.append(f'<file path="{item.path}" error="true">Could not read file.</file>\n')
                continue

            content, truncated = self._cap_lines(content)
            flag = ' truncated="true"' if truncated else ""
            parts.append(f'<file path="{item.path}"{flag}>\n{content}\n</file>\n')

        parts.append("</context>\n")
        return "".join(parts)

    def _cap_lines(self, content: str):
        lines = content.split("\n")
        if len(lines) <= self._max_file_lines:
            return content, False
        kept = "\n".join(lines[: self._max_file_lines])
        return kept + CONTENT_TRUNCATION_MARKER, True

    # --- Master context ---

    async def get_context_for_task(
        self,
        task_description: str,
        items: Iterable[ContextItem],
        on_context_added: Optional[ContextAddedHook] = None,
    ) -> str:
        """Fold the task and its files into the master store, then render the window."""
        self._store.set(TASK_KEY, task_description)

        for item in items:
            key = context_key(item.path)
            try:
                content = await self._reader.read(item.path)
            except Exception as e:
                self._logger.warning("Could not read context file %s: %s", item.path, e)
                content = f"Could not read file: {item.path}"

            self._store.set(key, content)
            if on_context_added is not None:
                await on_context_added(key, content)

        return self.generate_sliding_window()

    def generate_sliding_window(self) -> str:
        """
        Render the master store within ``context_window_tokens``.

        Entries are taken in priority order. The entry that would overflow
        the window is cut to the remaining budget and marked truncated;
        nothing after it is included.
        """
        budget = self._window_tokens
        parts: List[str] = []
        used = 0

        for key, value in self._store.prioritized():
            rendered = self._render_entry(key, value)
            cost = self._estimator.estimate(rendered)
            if used + cost <= budget:
                parts.append(rendered)
                used += cost
                continue

            partial = self._fit_entry(key, value, budget - used)
            if partial:
                parts.append(partial)
                used += self._estimator.estimate(partial)
            self._logger.info(
                "Sliding window full at key %s (%d/%d tokens)", key, used, budget
            )
            break

        window = "".join(parts)
        if self._estimator.estimate(window) > budget:
            window += OMITTED_MARKER
        return window

    @staticmethod
    def _render_entry(key: str, value: str, truncated: bool = False) -> str:
        flag = ' truncated="true"' if truncated else ""
        return f'<master_context key="{key}"{flag}>\n{value}\n</master_context>\n'

    def _fit_entry(self, key: str, value: str, remaining_tokens: int) -> str:
        """Largest truncated rendering of an entry that fits, or ''."""
        wrapper = self._render_entry(key, CONTENT_TRUNCATION_MARKER, truncated=True)
        room = self._estimator.tokens_to_chars(remaining_tokens) - len(wrapper)
        if room <= 0:
            return ""

        cut = value[:room]
        rendered = self._render_entry(key, cut + CONTENT_TRUNCATION_MARKER, truncated=True)
        while cut and self._estimator.estimate(rendered) > remaining_tokens:
            cut = cut[: len(cut) * 3 // 4]
            rendered = self._render_entry(key, cut + CONTENT_TRUNCATION_MARKER, truncated=True)
        return rendered if cut else ""

    def add_to_master_context(self, key: str, content: str) -> None:
        self._store.set(key, content)

    def get_from_master_context(self, key: str) -> Optional[str]:
        return self._store.get(key)

    def remove_from_master_context(self, key: str) -> bool:
        return self._store.remove(key)

    def clear_master_context(self) -> None:
        self._store.clear()

    def get_master_context_keys(self) -> List[str]:
        return self._store.keys()

    def get_master_context_size(self) -> int:
        """Total tokens held by the master store."""
        return sum(self._estimator.estimate(v) for _, v in self._store.items())

    # --- Checkpoints ---

    def create_checkpoint(
        self, description: str, context_items: Optional[List[str]] = None
    ) -> Checkpoint:
        checkpoint = Checkpoint(
            id=f"checkpoint_{uuid.uuid4().hex[:12]}",
            description=description,
            context_items=list(context_items or []),
        )
        self._checkpoints.append(checkpoint)
        return checkpoint

    def get_checkpoints(self) -> List[Checkpoint]:
        return list(self._checkpoints)

    def clear_checkpoint_context(self, checkpoint_id: str) -> int:
        """Drop master keys matching the checkpoint's items. Returns the count removed."""
        checkpoint = next((c for c in self._checkpoints if c.id == checkpoint_id), None)
        if checkpoint is None:
            return 0

        removed = 0
        for pattern in checkpoint.context_items:
            for key in self._store.keys():
                if pattern in key and self._store.remove(key):
                    removed += 1
        self._checkpoints.remove(checkpoint)
        return removed

    def clear_all_checkpoint_context(self) -> None:
        self._store.clear()
        self._checkpoints.clear()

    def get_context_summary(self) -> str:
        keys = self._store.keys()
        return f"Current context items: {len(keys)} items\n\n" + "\n".join(keys)

    def reset(self) -> None:
        """Full session reset: master store and checkpoints."""
        self.clear_all_checkpoint_context()
