"""
Observer plumbing shared by the live components.

Handlers run in subscription order and each one is awaited to completion
before the next, so an event is fully handled before emit() returns.
"""

import inspect
import logging
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)

Handler = Callable[[Any], Awaitable[None] | None]


class EventEmitter:
    """Ordered list of (sync or async) handlers for one event source."""

    def __init__(self, name: str):
        self.name = name
        self._handlers: list[Handler] = []

    def subscribe(self, handler: Handler) -> Callable[[], None]:
        """Register a handler; returns a callable that unsubscribes it."""
        self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    async def emit(self, event: Any) -> None:
        for handler in list(self._handlers):
            try:
                result = handler(event)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                # A broken subscriber must not stall ingestion
                logger.exception(f"❌ {self.name} handler failed")
