import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List

from .events import EventTypes

# Handlers receive the event payload and are always awaited.
EventHandler = Callable[[Any], Awaitable[None]]


class EventBus:
    """
    In-process publish/subscribe for progress events.

    - Handlers for one event type run one after another, in the order they
      subscribed.
    - Delivery works from a copy of the handler list, so handlers may
      subscribe or unsubscribe while an event is in flight. A handler
      removed mid-delivery is not called.
    - A failing handler is logged; the emitter and the remaining handlers
      never see the exception.
    """

    def __init__(self):
        self._lock = asyncio.Lock()
        self._handlers: Dict[EventTypes, List[EventHandler]] = {}
        self._logger = logging.getLogger("EventBus")

    async def subscribe(self, event_type: EventTypes, handler: EventHandler) -> None:
        async with self._lock:
            self._handlers.setdefault(event_type, []).append(handler)

    async def unsubscribe(self, event_type: EventTypes, handler: EventHandler) -> None:
        async with self._lock:
            registered = self._handlers.get(event_type)
            if registered and handler in registered:
                registered.remove(handler)

    async def emit(self, event_type: EventTypes, data: Any = None) -> None:
        """Deliver ``data`` to every handler of ``event_type``."""
        if not self._handlers.get(event_type):
            return

        async with self._lock:
            pending = list(self._handlers[event_type])

        for handler in pending:
            if not await self._is_subscribed(event_type, handler):
                continue
            try:
                await handler(data)
            except Exception as e:
                self._logger.error(
                    "Handler %r failed for %s: %s",
                    handler,
                    event_type.value,
                    e,
                    exc_info=True,
                )

    async def _is_subscribed(self, event_type: EventTypes, handler: EventHandler) -> bool:
        async with self._lock:
            return handler in self._handlers.get(event_type, [])
