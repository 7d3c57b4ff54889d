import inspect
import logging
from typing import Any, Callable, Dict, Optional

from .bus import EventBus
from .events import EventTypes

# on_update callbacks may be plain functions or coroutine functions.
UpdateCallback = Callable[[Dict[str, Any]], Any]


class ProgressReporter:
    """
    Fire-and-forget delivery of progress events for one chat call.

    Every event is a flat dict ``{"type": <wire name>, ...fields}``. It goes
    to the optional per-call ``on_update`` callback first and then to the
    shared EventBus. Observer failures are logged and swallowed here so the
    agent loop never depends on its observers.
    """

    def __init__(
        self,
        on_update: Optional[UpdateCallback] = None,
        bus: Optional[EventBus] = None,
    ):
        self._on_update = on_update
        self._bus = bus
        self._logger = logging.getLogger("ProgressReporter")

    async def emit(self, event_type: EventTypes, **fields: Any) -> Dict[str, Any]:
        event = {"type": event_type.value, **fields}

        if self._on_update is not None:
            try:
                outcome = self._on_update(event)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception as e:
                self._logger.warning(
                    "on_update observer failed for %s: %s", event_type.value, e
                )

        if self._bus is not None:
            await self._bus.emit(event_type, event)

        return event

    async def thinking(self, message: str, turn: int) -> None:
        await self.emit(EventTypes.THINKING, message=message, turn=turn)

    async def warning(self, message: str, **fields: Any) -> None:
        await self.emit(EventTypes.WARNING, message=message, **fields)

    async def error(self, message: str, **fields: Any) -> None:
        await self.emit(EventTypes.ERROR, message=message, **fields)
