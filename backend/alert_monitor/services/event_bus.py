"""In-memory event bus: fans NewAlert events out to registered async handlers."""
import logging
from typing import Any, Awaitable, Callable, List

logger = logging.getLogger(__name__)

Handler = Callable[[Any], Awaitable[None]]


class EventBus:
    """
    Publish-only from the pipeline's point of view: publish() never raises and
    does not depend on how many handlers (or subscribers behind them) exist.
    """

    def __init__(self):
        self._handlers: List[Handler] = []

    def subscribe(self, handler: Handler) -> None:
        self._handlers.append(handler)

    def unsubscribe(self, handler: Handler) -> None:
        if handler in self._handlers:
            self._handlers.remove(handler)

    @property
    def handler_count(self) -> int:
        return len(self._handlers)

    async def publish(self, event: Any) -> int:
        """Deliver to every handler. Returns how many handlers succeeded."""
        logger.debug("[EVENT_BUS] publish %s", type(event).__name__)
        delivered = 0
        for handler in list(self._handlers):
            try:
                await handler(event)
                delivered += 1
            except Exception as e:
                logger.error(f"[EVENT_BUS] handler {handler!r} failed for {type(event).__name__}: {e}", exc_info=True)
        return delivered


__all__ = [
    "EventBus",
]
