"""
In-process event bus.

The encoder publishes notifications here; the EventSynchronizer subscribes.
Handlers run sequentially in subscription order. A failing handler is
logged and does not prevent the remaining handlers from running.
"""

import logging
from collections import defaultdict
from typing import Awaitable, Callable, Dict, List

from .models import ConverterEvent, EventKind

logger = logging.getLogger(__name__)

EventHandler = Callable[[ConverterEvent], Awaitable[None]]


class EventBus:
    """Publish/subscribe hub for encoder notifications."""

    def __init__(self):
        self._handlers: Dict[EventKind, List[EventHandler]] = defaultdict(list)

    def subscribe(self, kind: EventKind, handler: EventHandler) -> Callable[[], None]:
        """
        Register a coroutine handler for one event kind.

        Returns:
            A function that removes the handler
        """
        self._handlers[kind].append(handler)

        def unsubscribe() -> None:
            handlers = self._handlers.get(kind, [])
            if handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    def handler_count(self, kind: EventKind) -> int:
        return len(self._handlers.get(kind, []))

    async def emit(self, event: ConverterEvent) -> None:
        """Deliver an event to every handler subscribed to its kind."""
        for handler in list(self._handlers.get(event.kind, [])):
            try:
                await handler(event)
            except Exception as e:
                logger.error(
                    f"[EVENTS] Handler failed for {event.kind.value} "
                    f"(job {event.job_id}): {e}"
                )
