"""In-process event bus.

Handlers are registered per event type and awaited in registration order.
A failing handler is logged and does not prevent the others from running.
"""

import logging
from collections import defaultdict

from deferq.events.types import EventHandler

logger = logging.getLogger(__name__)


class EventBus:
    """Simple async publish/subscribe bus implementing EventSink.

    Example:
        bus = EventBus()

        @bus.on(ReadyBatch)
        async def handle(batch: ReadyBatch):
            for entry in batch.entries:
                await deliver(entry)
    """

    def __init__(self) -> None:
        self._handlers: dict[type, list[EventHandler]] = defaultdict(list)

    def on(self, event_type: type):
        """Decorator to register a handler for ``event_type``."""

        def decorator(handler: EventHandler) -> EventHandler:
            self.subscribe(event_type, handler)
            return handler

        return decorator

    def subscribe(self, event_type: type, handler: EventHandler) -> None:
        self._handlers[event_type].append(handler)

    def unsubscribe(self, event_type: type, handler: EventHandler) -> bool:
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)
            return True
        return False

    def handler_count(self, event_type: type) -> int:
        return len(self._handlers.get(event_type, []))

    async def publish(self, event: object) -> None:
        for handler in list(self._handlers.get(type(event), [])):
            try:
                await handler(event)
            except Exception as e:
                logger.error(
                    "event_handler_error",
                    extra={
                        "event.type": type(event).__name__,
                        "error.message": str(e),
                    },
                )
