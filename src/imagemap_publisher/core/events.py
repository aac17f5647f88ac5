"""EventBus — Observer channel for progress, completion and error events."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any

logger = logging.getLogger(__name__)

# Callable[..., None]; kept loose so lambdas with **kwargs type-check.
EventHandler = Any


class EventBus:
    """Publish/subscribe bus shared by the tools and the CLI.

    Tools emit ``progress``, ``completed`` and ``error`` events while
    converting and uploading variants.  The CLI subscribes to echo them
    to the console; tests subscribe to record them.
    """

    def __init__(self) -> None:
        """Create a bus with no subscribers."""
        self._handlers: dict[str, list[EventHandler]] = defaultdict(list)

    def subscribe(self, event: str, handler: EventHandler) -> None:
        """Attach *handler* to *event*.

        Args:
            event: Event name, e.g. ``"progress"``.
            handler: Callable invoked with the event's keyword arguments.
        """
        self._handlers[event].append(handler)

    def unsubscribe(self, event: str, handler: EventHandler) -> None:
        """Detach a handler; unknown handlers are logged and ignored.

        Args:
            event: Event name.
            handler: The handler previously passed to ``subscribe``.
        """
        try:
            self._handlers[event].remove(handler)
        except ValueError:
            logger.warning("Handler %r was not subscribed to event %r", handler, event)

    def emit(self, event: str, **kwargs: Any) -> None:
        """Deliver an event to every handler subscribed to it.

        A failing handler is logged and does not prevent the remaining
        handlers from running.

        Args:
            event: Event name.
            **kwargs: Payload forwarded to each handler.
        """
        for handler in list(self._handlers.get(event, [])):
            try:
                handler(**kwargs)
            except Exception:
                logger.exception("Error in handler %r for event %r", handler, event)
