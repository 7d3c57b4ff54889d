import logging
from typing import Any, Dict, Optional

from rich.console import Console
from rich.logging import RichHandler

from vibey.protocol.bus import EventBus
from vibey.protocol.events import EventTypes


def setup_logging(level: str = "INFO", console: Optional[Console] = None) -> None:
    """
    Route all named loggers through a single rich handler on stderr.

    Safe to call more than once; previous rich handlers are replaced.
    """
    root = logging.getLogger()
    root.setLevel(level)

    for handler in list(root.handlers):
        if isinstance(handler, RichHandler):
            root.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    root.addHandler(handler)

    # SDK transports are chatty at INFO.
    for noisy in ("httpx", "httpcore", "openai"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


class EventLogger:
    """
    Observer that mirrors progress events into the log.

    Tool output and model text are not logged in full; only the outcome
    of each step is.
    """

    def __init__(self, bus: EventBus):
        self._bus = bus
        self._logger = logging.getLogger("vibey.events")

    async def start(self):
        """Subscribe to the progress events."""
        await self._bus.subscribe(EventTypes.THINKING, self._log_thinking)
        await self._bus.subscribe(EventTypes.THOUGHT, self._log_thought)
        await self._bus.subscribe(EventTypes.TOOL_START, self._log_tool_start)
        await self._bus.subscribe(EventTypes.TOOL_END, self._log_tool_end)
        await self._bus.subscribe(EventTypes.CONTEXT_ADDED, self._log_context)
        await self._bus.subscribe(EventTypes.TOKENS, self._log_tokens)
        await self._bus.subscribe(EventTypes.WARNING, self._log_warning)
        await self._bus.subscribe(EventTypes.ERROR, self._log_error)

    # --- Handlers ---

    async def _log_thinking(self, data: Dict[str, Any]):
        self._logger.debug(f"🤔 {data.get('message', '')}")

    async def _log_thought(self, data: Dict[str, Any]):
        self._logger.debug(f"💭 THOUGHT: {data.get('content', '')}")

    async def _log_tool_start(self, data: Dict[str, Any]):
        self._logger.info(f"🔧 TOOL: {data.get('tool', 'unknown')} ({data.get('id')})")

    async def _log_tool_end(self, data: Dict[str, Any]):
        icon = "✅" if data.get("success") else "❌"
        self._logger.info(f"{icon} TOOL: {data.get('tool', 'unknown')} finished")

    async def _log_context(self, data: Dict[str, Any]):
        label = data.get("key") or f"{data.get('count', 0)} item(s)"
        self._logger.info(f"📎 CONTEXT: {label}")

    async def _log_tokens(self, data: Dict[str, Any]):
        self._logger.debug(f"📊 TOKENS: {data.get('total', data.get('total_tokens'))}")

    async def _log_warning(self, data: Dict[str, Any]):
        self._logger.warning(f"⚠️  {data.get('message', str(data))}")

    async def _log_error(self, data: Dict[str, Any]):
        self._logger.error(f"🚨 ERROR: {data.get('message', str(data))}")
